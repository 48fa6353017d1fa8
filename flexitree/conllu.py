"""
Minimal CoNLL-U reader and writer for the token graph.

Only the pieces the editor needs are supported: sentence comments, multiword
ranges, empty nodes, HEAD/DEPREL and enhanced DEPS. A sentence with any DEPS
column filled is loaded in enhanced mode.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .doc import AnyToken, Head, Sentence, SuperToken, Token, UD_SENTENCE_ATTRIBUTES
from .ud_tags import PLACEHOLDER

Row = Tuple[int, List[str]]


def _value(column: str) -> str:
    return "" if column == PLACEHOLDER else column


def _field(value: Optional[str]) -> str:
    return value if value else PLACEHOLDER


def _parse_deps(deps: str, lineno: int) -> List[Tuple[str, str]]:
    pairs = []
    for part in deps.split("|"):
        if ":" not in part:
            raise ValueError(f"Line {lineno}: malformed DEPS entry '{part}'")
        head, deprel = part.split(":", 1)
        pairs.append((head, deprel))
    return pairs


def _build_sentence(rows: List[Row], comments: Dict[str, str]) -> Sentence:
    items: List = []
    by_label: Dict[str, Tuple[int, Token, List[str]]] = {}
    open_range: Optional[Tuple[SuperToken, int]] = None

    for lineno, cols in rows:
        tid = cols[0]
        if "-" in tid:
            start_s, end_s = tid.split("-", 1)
            try:
                start_id, end_id = int(start_s), int(end_s)
            except ValueError:
                raise ValueError(f"Line {lineno}: malformed range id '{tid}'") from None
            if end_id < start_id:
                raise ValueError(f"Line {lineno}: range '{tid}' ends before it starts")
            supertoken = SuperToken(form=cols[1], misc=_value(cols[9]))
            items.append(supertoken)
            open_range = (supertoken, end_id)
            continue

        token = Token(
            form=cols[1],
            lemma=_value(cols[2]),
            upos=_value(cols[3]),
            xpos=_value(cols[4]),
            feats=_value(cols[5]),
            misc=_value(cols[9]),
        )
        if "." in tid:
            major, _, minor = tid.partition(".")
            if not (major.isdigit() and minor.isdigit()):
                raise ValueError(f"Line {lineno}: malformed empty node id '{tid}'")
            if open_range is not None and int(major) < open_range[1]:
                raise ValueError(f"Line {lineno}: empty node '{tid}' inside a multiword range")
            token.is_empty = True
            open_range = None
            items.append(token)
        else:
            if not tid.isdigit():
                raise ValueError(f"Line {lineno}: malformed token id '{tid}'")
            if open_range is not None and int(tid) <= open_range[1]:
                open_range[0].subtokens.append(token)
            else:
                open_range = None
                items.append(token)
        by_label[tid] = (lineno, token, cols)

    sentence = Sentence(
        id=comments.get("sent_id", ""),
        sent_id=comments.get("sent_id", ""),
        text=comments.get("text", ""),
        tokens=items,
        attrs={key: value for key, value in comments.items() if key not in ("sent_id", "text")},
    )

    def resolve(label: str, lineno: int) -> AnyToken:
        if label == "0":
            return sentence.root
        if label not in by_label:
            raise ValueError(f"Line {lineno}: unknown head '{label}'")
        head = by_label[label][1]
        # sub-tokens are never heads in the graph; their multiword token takes the edge
        if head.supertoken is not None:
            return head.supertoken
        return head

    for label, (lineno, token, cols) in by_label.items():
        head_col, deprel, deps = cols[6], _value(cols[7]), _value(cols[8])
        if head_col != PLACEHOLDER:
            token.heads.append(Head(token=resolve(head_col, lineno), deprel=deprel))
        if deps:
            sentence.enhanced = True
            for head_label, dep_rel in _parse_deps(deps, lineno):
                head = resolve(head_label, lineno)
                if token.get_head(head) is not None:
                    continue
                token.heads.append(Head(token=head, deprel=dep_rel, enhanced=bool(token.heads)))
    return sentence


def conllu_to_sentences(conllu_text: str) -> List[Sentence]:
    """
    Parse CoNLL-U text into sentences.

    Raises:
        ValueError: on a malformed token line (the message names the line)
    """
    sentences: List[Sentence] = []
    rows: List[Row] = []
    comments: Dict[str, str] = {}

    for lineno, raw_line in enumerate(conllu_text.splitlines(), start=1):
        line = raw_line.rstrip("\r\n")
        if not line.strip():
            if rows:
                sentences.append(_build_sentence(rows, comments))
            rows, comments = [], {}
            continue
        if line.startswith("#"):
            key_val = line[1:].strip()
            if "=" in key_val:
                key, value = key_val.split("=", 1)
                comments[key.strip()] = value.strip()
            continue
        cols = line.split("\t")
        if len(cols) != 10:
            raise ValueError(f"Line {lineno}: expected 10 tab-separated columns, found {len(cols)}")
        rows.append((lineno, cols))

    if rows:
        sentences.append(_build_sentence(rows, comments))
    return sentences


def conllu_to_sentence(conllu_text: str) -> Sentence:
    """Parse text holding exactly one sentence."""
    sentences = conllu_to_sentences(conllu_text)
    if len(sentences) != 1:
        raise ValueError(f"Expected one sentence, found {len(sentences)}")
    return sentences[0]


def _head_id(head: AnyToken) -> str:
    """HEAD/DEPS value for ``head``; a multiword token is written as its first word."""
    if isinstance(head, SuperToken):
        return head.subtokens[0].indices.conllu
    return head.indices.conllu


def _token_line(token: Token, enhanced: bool) -> str:
    primary = token.primary_head
    if primary is not None and not token.is_empty:
        head_value = _head_id(primary.token)
        deprel = primary.deprel
    else:
        head_value = PLACEHOLDER
        deprel = ""
    deps = ""
    if enhanced and token.heads:
        deps = "|".join(f"{_head_id(edge.token)}:{_field(edge.deprel)}" for edge in token.heads)
    return (
        f"{token.indices.conllu}\t{_field(token.form)}\t{_field(token.lemma)}\t"
        f"{_field(token.upos)}\t{_field(token.xpos)}\t{_field(token.feats)}\t"
        f"{head_value}\t{_field(deprel)}\t{_field(deps)}\t{_field(token.misc)}"
    )


def sentence_lines(sentence: Sentence) -> List[str]:
    lines = []
    standard = sentence.get_standard_attrs()
    for key in UD_SENTENCE_ATTRIBUTES:
        if key in standard:
            lines.append(f"# {key} = {standard[key]}")
    for key, value in sentence.attrs.items():
        if key not in UD_SENTENCE_ATTRIBUTES and value:
            lines.append(f"# {key} = {value}")
    for token in sentence.iter_tokens():
        if isinstance(token, SuperToken):
            if token.indices.conllu is None:
                continue
            lines.append(f"{token.indices.conllu}\t{_field(token.form)}" + "\t_" * 7 + f"\t{_field(token.misc)}")
        else:
            lines.append(_token_line(token, sentence.enhanced))
    return lines


def sentence_to_conllu(sentence: Sentence) -> str:
    return "\n".join(sentence_lines(sentence)) + "\n\n"


def sentences_to_conllu(sentences: Iterable[Sentence]) -> str:
    return "".join(sentence_to_conllu(sentence) for sentence in sentences)
