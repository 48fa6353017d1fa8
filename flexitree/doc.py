from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

# Standard UD sentence attributes kept as direct fields or in attrs
UD_SENTENCE_ATTRIBUTES = {
    "sent_id": "Unique sentence identifier",
    "text": "Original sentence text",
    "lang": "Language code (ISO 639-1)",
    "speaker": "For spoken texts",
    "annotator": "Annotation information",
    "translation": "Translation",
}

EMPTY_FORM = "_"


def _normalize_attrs(attrs: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    if not attrs:
        return {}
    return dict(attrs)


class AttrsMixin:
    attrs: Dict[str, Any]

    def get_attr(self, name: str, default: str = "") -> str:
        value = self.attrs.get(name)
        return default if value is None else value

    def set_attr(self, name: str, value: Optional[str]) -> None:
        if value is None or value == "":
            self.attrs.pop(name, None)
        else:
            self.attrs[name] = value


class TokenKind(str, Enum):
    """Variant tag shared by every token-like entity of a sentence."""

    ROOT = "root"
    PLAIN = "token"
    SUB = "subtoken"
    SUPER = "supertoken"
    EMPTY = "empty"


@dataclass(frozen=True)
class TokenIndices:
    """
    Every numbering scheme a token takes part in.

    Records are never edited in place: ``indices.reindex`` builds a fresh one
    for every token in a single pass so the schemes cannot drift apart.
    """

    absolute: Optional[int] = None
    sup: Optional[int] = None
    conllu: Optional[str] = None
    cg3: Optional[str] = None
    cytoscape: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "absolute": self.absolute,
            "sup": self.sup,
            "conllu": self.conllu,
            "cg3": self.cg3,
            "cytoscape": self.cytoscape,
        }


@dataclass(eq=False)
class Head:
    """A dependency edge, stored on its dependent."""

    token: "AnyToken"
    deprel: str = ""
    enhanced: bool = False

    def to_dict(self) -> dict:
        return {
            "head": self.token.indices.conllu,
            "deprel": self.deprel,
            "enhanced": self.enhanced,
        }


@dataclass(eq=False)
class RootToken:
    """The synthetic attachment target for the sentence head(s)."""

    form: str = ""
    indices: TokenIndices = field(default_factory=lambda: TokenIndices(absolute=0, conllu="0", cg3="0"))
    sentence: Optional["Sentence"] = field(default=None, repr=False)

    @property
    def kind(self) -> TokenKind:
        return TokenKind.ROOT

    @property
    def heads(self) -> tuple:
        return ()

    def __repr__(self) -> str:
        return "RootToken()"


@dataclass(eq=False)
class Token(AttrsMixin):
    """A word-level token; a sub-token while it belongs to a SuperToken."""

    form: str = EMPTY_FORM
    lemma: str = ""
    upos: str = ""
    xpos: str = ""
    feats: str = ""
    misc: str = ""
    is_empty: bool = False
    heads: List[Head] = field(default_factory=list)
    attrs: Dict[str, Any] = field(default_factory=dict)
    indices: TokenIndices = field(default_factory=TokenIndices)
    supertoken: Optional["SuperToken"] = field(default=None, repr=False)
    sentence: Optional["Sentence"] = field(default=None, repr=False)

    def __post_init__(self):
        self.attrs = _normalize_attrs(self.attrs)
        if not self.form:
            self.form = EMPTY_FORM

    @property
    def kind(self) -> TokenKind:
        if self.is_empty:
            return TokenKind.EMPTY
        if self.supertoken is not None:
            return TokenKind.SUB
        return TokenKind.PLAIN

    @property
    def primary_head(self) -> Optional[Head]:
        return self.heads[0] if self.heads else None

    def get_head(self, head: "AnyToken") -> Optional[Head]:
        for edge in self.heads:
            if edge.token is head:
                return edge
        return None

    def pos(self, prefer_xpos: bool = False) -> str:
        if prefer_xpos:
            return self.xpos or self.upos
        return self.upos or self.xpos

    def __repr__(self) -> str:
        return f"Token(form={self.form!r}, conllu={self.indices.conllu!r})"

    def to_dict(self) -> dict:
        result = {
            "kind": self.kind.value,
            "form": self.form,
            "lemma": self.lemma,
            "upos": self.upos,
            "xpos": self.xpos,
            "feats": self.feats,
            "misc": self.misc,
            "is_empty": self.is_empty,
            "heads": [head.to_dict() for head in self.heads],
            "indices": self.indices.to_dict(),
        }
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "Token":
        # heads are resolved by Sentence.from_dict once every token exists
        return cls(
            form=data.get("form", EMPTY_FORM),
            lemma=data.get("lemma", ""),
            upos=data.get("upos", ""),
            xpos=data.get("xpos", ""),
            feats=data.get("feats", ""),
            misc=data.get("misc", ""),
            is_empty=bool(data.get("is_empty", False)),
            attrs=_normalize_attrs(data.get("attrs")),
        )


@dataclass(eq=False)
class SuperToken(AttrsMixin):
    """A multiword token spanning an ordered run of sub-tokens."""

    form: str
    subtokens: List[Token] = field(default_factory=list)
    misc: str = ""
    attrs: Dict[str, Any] = field(default_factory=dict)
    indices: TokenIndices = field(default_factory=TokenIndices)
    sentence: Optional["Sentence"] = field(default=None, repr=False)

    def __post_init__(self):
        self.attrs = _normalize_attrs(self.attrs)
        for subtoken in self.subtokens:
            subtoken.supertoken = self

    @property
    def kind(self) -> TokenKind:
        return TokenKind.SUPER

    @property
    def heads(self) -> tuple:
        return ()

    @property
    def is_empty(self) -> bool:
        return False

    def __repr__(self) -> str:
        forms = [sub.form for sub in self.subtokens]
        return f"SuperToken(form={self.form!r}, subtokens={forms!r})"

    def to_dict(self) -> dict:
        result = {
            "kind": self.kind.value,
            "form": self.form,
            "misc": self.misc,
            "subtokens": [sub.to_dict() for sub in self.subtokens],
            "indices": self.indices.to_dict(),
        }
        if self.attrs:
            result["attrs"] = dict(self.attrs)
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "SuperToken":
        return cls(
            form=data.get("form", EMPTY_FORM),
            subtokens=[Token.from_dict(sub) for sub in data.get("subtokens", [])],
            misc=data.get("misc", ""),
            attrs=_normalize_attrs(data.get("attrs")),
        )


TopLevelToken = Union[Token, SuperToken]
AnyToken = Union[RootToken, Token, SuperToken]


@dataclass(eq=False)
class Sentence(AttrsMixin):
    """
    One sentence of a corpus: its top-level tokens plus a synthetic root.

    ``tokens`` holds plain tokens and super-tokens in sentence order; the
    sub-tokens of a super-token live in its ``subtokens`` list. Iterating with
    ``iter_tokens()`` gives the flattened display order used by every index.
    """

    id: str = ""
    sent_id: str = ""
    text: str = ""
    tokens: List[TopLevelToken] = field(default_factory=list)
    attrs: Dict[str, Any] = field(default_factory=dict)
    enhanced: bool = False
    root: RootToken = field(default_factory=RootToken)

    def __post_init__(self):
        self.attrs = _normalize_attrs(self.attrs)
        self.root.sentence = self
        for item in self.tokens:
            self.adopt(item)
        from .indices import reindex

        reindex(self)

    def adopt(self, item: TopLevelToken) -> None:
        """Point the back-references of ``item`` (and its members) at this sentence."""
        item.sentence = self
        if isinstance(item, SuperToken):
            for subtoken in item.subtokens:
                subtoken.sentence = self
                subtoken.supertoken = item

    def iter_tokens(self, include_root: bool = False) -> Iterator[AnyToken]:
        if include_root:
            yield self.root
        for item in self.tokens:
            yield item
            if isinstance(item, SuperToken):
                yield from item.subtokens

    def words(self) -> Iterator[Token]:
        """Plain, sub and empty tokens (everything that can carry heads)."""
        for token in self.iter_tokens():
            if isinstance(token, Token):
                yield token

    def get_standard_attrs(self) -> Dict[str, str]:
        result = {}
        for attr_name in UD_SENTENCE_ATTRIBUTES:
            if attr_name == "sent_id":
                if self.sent_id:
                    result[attr_name] = self.sent_id
            elif attr_name == "text":
                if self.text:
                    result[attr_name] = self.text
            else:
                value = self.attrs.get(attr_name)
                if value:
                    result[attr_name] = str(value)
        return result

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sent_id": self.sent_id,
            "text": self.text,
            "enhanced": self.enhanced,
            "tokens": [item.to_dict() for item in self.tokens],
            "attrs": dict(self.attrs),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Sentence":
        items: List[TopLevelToken] = []
        for entry in data.get("tokens", []):
            if entry.get("kind") == TokenKind.SUPER.value or entry.get("subtokens"):
                items.append(SuperToken.from_dict(entry))
            else:
                items.append(Token.from_dict(entry))
        sentence = cls(
            id=data.get("id", ""),
            sent_id=data.get("sent_id", ""),
            text=data.get("text", ""),
            tokens=items,
            attrs=_normalize_attrs(data.get("attrs")),
            enhanced=bool(data.get("enhanced", False)),
        )
        from .indices import find_by_index

        # Heads were serialized as CoNLL-U labels; resolve them against the new tokens.
        flat_entries: List[dict] = []
        for entry in data.get("tokens", []):
            if entry.get("kind") == TokenKind.SUPER.value or entry.get("subtokens"):
                flat_entries.extend(entry.get("subtokens", []))
            else:
                flat_entries.append(entry)
        for token, entry in zip(sentence.words(), flat_entries):
            for head_data in entry.get("heads", []):
                head = find_by_index(sentence, head_data.get("head"), "CoNLL-U", include_root=True)
                if head is None:
                    raise ValueError(f"Unknown head {head_data.get('head')!r} for token {token.form!r}")
                token.heads.append(
                    Head(
                        token=head,
                        deprel=head_data.get("deprel", ""),
                        enhanced=bool(head_data.get("enhanced", False)),
                    )
                )
        return sentence
