"""
Numbering schemes for the tokens of a sentence.

A token is addressed in several ways at once:

- ``absolute``: position in the flattened display order (root = 0)
- ``conllu``: CoNLL-U ids (``3``, empty nodes ``3.1``, ranges ``3-4``)
- ``cg3``: CG3 cohort numbers (no ranges, no decimals)
- ``cytoscape``: the clump, one per lexical unit, shared by a super-token
  and its sub-tokens; it drives horizontal placement in the rendered tree

``reindex`` is the only place these values are computed.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional, Union

from .doc import AnyToken, Sentence, SuperToken, Token, TokenIndices

_SUBSCRIPTS = {
    "0": "₀",
    "1": "₁",
    "2": "₂",
    "3": "₃",
    "4": "₄",
    "5": "₅",
    "6": "₆",
    "7": "₇",
    "8": "₈",
    "9": "₉",
    "-": "₋",
    "(": "₍",
    ")": "₎",
}

# Some callers pass a missing label across a boundary as this literal
NULL_LABEL = "null"


class IndexFormat(str, Enum):
    CONLLU = "CoNLL-U"
    CG3 = "CG3"
    ABSOLUTE = "absolute"

    @classmethod
    def coerce(cls, value: Union["IndexFormat", str, None]) -> "IndexFormat":
        if isinstance(value, cls):
            return value
        normalized = (value or "").strip().lower().replace("_", "-")
        if normalized in {"conll-u", "conllu"}:
            return cls.CONLLU
        if normalized in {"cg3", "vislcg3"}:
            return cls.CG3
        return cls.ABSOLUTE


def get_index(token: AnyToken, fmt: Union[IndexFormat, str, None]) -> Optional[Union[int, str]]:
    """Return the label of ``token`` in the numbering used by ``fmt``."""
    fmt = IndexFormat.coerce(fmt)
    if fmt is IndexFormat.CONLLU:
        return token.indices.conllu
    if fmt is IndexFormat.CG3:
        return token.indices.cg3
    return token.indices.absolute


def find_by_index(
    sentence: Sentence,
    label: Union[int, str, None],
    fmt: Union[IndexFormat, str, None],
    include_root: bool = True,
) -> Optional[AnyToken]:
    """Reverse of ``get_index``: the token carrying ``label`` in ``fmt``, or None."""
    if label is None:
        return None
    wanted = str(label).strip()
    for token in sentence.iter_tokens(include_root=include_root):
        value = get_index(token, fmt)
        if value is not None and str(value) == wanted:
            return token
    return None


def to_subscript(label: Union[int, str, None]) -> str:
    """Render digits, ``-`` and parentheses of ``label`` as subscript glyphs."""
    if label is None:
        return ""
    text = str(label)
    if text == NULL_LABEL:
        return ""
    return "".join(_SUBSCRIPTS.get(char, char) for char in text)


def reindex(sentence: Sentence) -> None:
    """Recompute every index of every token of ``sentence`` in one pass."""
    absolute = 0
    major = 0
    minor = 0
    cg3 = 0
    clump = 0

    def word_indices(token: Token, sup: int, unit: int) -> TokenIndices:
        nonlocal absolute, major, minor, cg3
        absolute += 1
        cg3 += 1
        if token.is_empty:
            minor += 1
            conllu = f"{major}.{minor}"
        else:
            major += 1
            minor = 0
            conllu = str(major)
        return TokenIndices(absolute=absolute, sup=sup, conllu=conllu, cg3=str(cg3), cytoscape=unit)

    sentence.root.indices = TokenIndices(absolute=0, conllu="0", cg3="0")
    for sup, item in enumerate(sentence.tokens):
        clump += 1
        if isinstance(item, SuperToken):
            absolute += 1
            own_absolute = absolute
            members = []
            for subtoken in item.subtokens:
                subtoken.indices = word_indices(subtoken, sup, clump)
                if not subtoken.is_empty:
                    members.append(subtoken.indices.conllu)
            span = f"{members[0]}-{members[-1]}" if members else None
            item.indices = TokenIndices(absolute=own_absolute, sup=sup, conllu=span, cg3=None, cytoscape=clump)
        else:
            item.indices = word_indices(item, sup, clump)


def count_lexical_units(sentence: Sentence) -> int:
    """Plain tokens outside super-tokens plus super-tokens."""
    return len(sentence.tokens)
