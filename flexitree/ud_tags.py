"""
Universal Dependencies tag inventory.

Used by the projection to flag part-of-speech tags and dependency relations
that fall outside the UD standard (style classes only; nothing is rejected).
"""

from __future__ import annotations

from typing import Optional

# Standard UD UPOS tags
STANDARD_UPOS = {
    "ADJ", "ADP", "ADV", "AUX", "CCONJ", "DET", "INTJ", "NOUN", "NUM",
    "PART", "PRON", "PROPN", "PUNCT", "SCONJ", "SYM", "VERB", "X",
}

# Standard UD universal dependency relations (without language subtypes)
STANDARD_DEPRELS = {
    "acl", "advcl", "advmod", "amod", "appos", "aux", "case", "cc", "ccomp",
    "clf", "compound", "conj", "cop", "csubj", "dep", "det", "discourse",
    "dislocated", "expl", "fixed", "flat", "goeswith", "iobj", "list", "mark",
    "nmod", "nsubj", "nummod", "obj", "obl", "orphan", "parataxis", "punct",
    "reparandum", "root", "vocative", "xcomp",
}

PLACEHOLDER = "_"


def is_filled(value: Optional[str]) -> bool:
    """True when ``value`` carries an annotation (not empty, not ``_``)."""
    return bool(value) and value != PLACEHOLDER


def is_valid_upos(tag: Optional[str]) -> bool:
    if not is_filled(tag):
        return False
    return tag in STANDARD_UPOS


def is_valid_deprel(deprel: Optional[str]) -> bool:
    """Validate the universal part of a relation (``nsubj:pass`` -> ``nsubj``)."""
    if not is_filled(deprel):
        return False
    base = deprel.split(":", 1)[0]
    return base in STANDARD_DEPRELS
