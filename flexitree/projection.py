"""
Projection of a sentence into flat, renderable elements.

The renderer never looks at the token graph directly. It receives a
``Projection``: one ``multiword`` element per super-token, a ``form`` and a
``pos`` element per word, and one ``dependency`` element per drawn edge, in
display order. Each element carries the numbering the interface needs
(``num`` for keyboard traversal, ``clump`` for horizontal placement) plus the
style classes the renderer maps to colours.

Building is a pure function of the sentence: building twice without an edit
in between gives identical element lists.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

from .doc import AnyToken, Head, RootToken, Sentence, SuperToken, Token, TokenKind
from .indices import NULL_LABEL, IndexFormat, get_index, to_subscript
from .ud_tags import is_filled, is_valid_deprel, is_valid_upos

LEFT_ARROW = "⊲"
RIGHT_ARROW = "⊳"


class ElementKind(str, Enum):
    MULTIWORD = "multiword"
    FORM = "form"
    POS = "pos"
    DEPENDENCY = "dependency"


@dataclass
class Progress:
    """Annotation completeness: filled slots over total slots."""

    done: int = 0
    total: int = 0

    def add(self, filled: bool) -> None:
        self.done += int(bool(filled))
        self.total += 1

    @property
    def ratio(self) -> float | None:
        if self.total == 0:
            return None
        return self.done / self.total

    def to_dict(self) -> dict:
        return {"done": self.done, "total": self.total}


@dataclass
class ProjectionElement:
    id: str
    kind: ElementKind
    label: str
    num: Optional[int] = None
    clump: Optional[int] = None
    classes: List[str] = field(default_factory=list)
    parent: Optional[str] = None
    source: Optional[str] = None
    target: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)
    token: Optional[AnyToken] = field(default=None, repr=False, compare=False)

    def has_class(self, name: str) -> bool:
        return name in self.classes

    def add_class(self, name: str) -> None:
        if name not in self.classes:
            self.classes.append(name)

    def to_dict(self) -> dict:
        result = {
            "id": self.id,
            "kind": self.kind.value,
            "label": self.label,
            "num": self.num,
            "clump": self.clump,
            "classes": list(self.classes),
        }
        for key in ("parent", "source", "target"):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        result.update(self.data)
        return result


@dataclass
class Projection:
    elements: List[ProjectionElement] = field(default_factory=list)
    progress: Progress = field(default_factory=Progress)
    clumps: int = 0
    length: int = 0
    tokens: Dict[str, AnyToken] = field(default_factory=dict)

    def get(self, element_id: str) -> Optional[ProjectionElement]:
        for element in self.elements:
            if element.id == element_id:
                return element
        return None

    def by_kind(self, kind: Union[ElementKind, str]) -> List[ProjectionElement]:
        kind = ElementKind(kind)
        return [element for element in self.elements if element.kind is kind]

    def by_num(self, num: int) -> Optional[ProjectionElement]:
        for element in self.elements:
            if element.num == num:
                return element
        return None

    def step(self, num: int, delta: int = 1) -> Optional[ProjectionElement]:
        """Element ``delta`` places after ``num`` in traversal order, wrapping at both ends."""
        if self.length == 0:
            return None
        target = (num - 1 + delta) % self.length + 1
        return self.by_num(target)

    def forms_in_clump(self, clump: Optional[int]) -> List[ProjectionElement]:
        if clump is None:
            return []
        return [
            element for element in self.elements if element.kind is ElementKind.FORM and element.clump == clump
        ]

    def neighbours(self, clump: Optional[int]) -> Tuple[List[ProjectionElement], List[ProjectionElement]]:
        """Form elements of the previous and next clump (no wrapping); the candidates for merge and combine."""
        if clump is None:
            return [], []
        return self.forms_in_clump(clump - 1), self.forms_in_clump(clump + 1)

    def to_dict(self) -> dict:
        return {
            "elements": [element.to_dict() for element in self.elements],
            "progress": self.progress.to_dict(),
            "clumps": self.clumps,
            "length": self.length,
        }


def _label(token: AnyToken, fmt: IndexFormat) -> str:
    value = get_index(token, fmt)
    return NULL_LABEL if value is None else str(value)


def _id_label(token: AnyToken, fmt: IndexFormat) -> str:
    # CG3 has no number for a multiword token; ``a<absolute>`` keeps its ids unique
    value = get_index(token, fmt)
    return f"a{token.indices.absolute}" if value is None else str(value)


def _element_id(token: AnyToken, fmt: IndexFormat) -> str:
    """Id of the element drawn for ``token``: its multiword span or its form."""
    kind = ElementKind.MULTIWORD if isinstance(token, SuperToken) else ElementKind.FORM
    return f"{kind.value}-{_id_label(token, fmt)}"


def _pos_value(token: Token, fmt: IndexFormat) -> str:
    return token.pos(prefer_xpos=fmt is IndexFormat.CG3)


def _pos_classes(token: Token, pos: str, fmt: IndexFormat) -> List[str]:
    classes = [ElementKind.POS.value]
    if not is_filled(pos):
        classes.append("incomplete")
    elif fmt is not IndexFormat.CG3 and token.upos and not is_valid_upos(token.upos):
        classes.append("error")
    return classes


def _dependency_classes(head: Head) -> List[str]:
    classes = [ElementKind.DEPENDENCY.value]
    if head.enhanced:
        classes.append("enhanced")
    if not is_filled(head.deprel):
        classes.append("incomplete")
    elif not is_valid_deprel(head.deprel):
        classes.append("error")
    return classes


def _arrow_label(token: Token, head: Head, ltr: bool) -> str:
    deprel = head.deprel or ""
    head_first = token.indices.absolute > head.token.indices.absolute
    if head_first == bool(ltr):
        return f"{deprel}{RIGHT_ARROW}"
    return f"{LEFT_ARROW}{deprel}"


def build_projection(
    sentence: Sentence,
    fmt: Union[IndexFormat, str] = IndexFormat.CONLLU,
    ltr: bool = True,
) -> Projection:
    """
    Walk ``sentence`` in display order and emit its renderable elements.

    Progress counts two slots per word (part of speech, attachment) and one
    per projected head (its relation). Root attachments are counted but not
    drawn as edges; the attached form gets the ``root`` class instead.
    """
    fmt = IndexFormat.coerce(fmt)
    projection = Projection()
    progress = projection.progress
    if sentence.enhanced:
        root_dependents = {id(word) for word in sentence.words() if word.get_head(sentence.root) is not None}
    else:
        root_dependents = {
            id(word)
            for word in sentence.words()
            if word.primary_head is not None and word.primary_head.token is sentence.root
        }
    num = 0

    for token in sentence.iter_tokens():
        clump = token.indices.cytoscape
        if clump is None and not isinstance(token, SuperToken):
            continue
        if clump is not None:
            projection.clumps = max(projection.clumps, clump)
        label = _label(token, fmt)

        if token.kind is TokenKind.SUPER:
            projection.elements.append(
                ProjectionElement(
                    id=_element_id(token, fmt),
                    kind=ElementKind.MULTIWORD,
                    label=f"{token.form} {to_subscript(label)}",
                    clump=clump,
                    classes=[ElementKind.MULTIWORD.value],
                    token=token,
                )
            )
            continue

        pos = _pos_value(token, fmt)
        progress.total += 2
        if is_filled(pos):
            progress.done += 1
        if token.heads:
            progress.done += 1

        form_classes = [ElementKind.FORM.value]
        if id(token) in root_dependents:
            form_classes.append("root")
        if token.is_empty:
            form_classes.append("empty")
        parent = None
        if token.supertoken is not None:
            form_classes.append("subtoken")
            parent = _element_id(token.supertoken, fmt)

        num += 1
        projection.tokens[label] = token
        projection.elements.append(
            ProjectionElement(
                id=f"form-{label}",
                kind=ElementKind.FORM,
                label=token.form or "_",
                num=num,
                clump=clump,
                classes=form_classes,
                parent=parent,
                data={
                    "form": token.form,
                    "conllu": token.indices.conllu,
                    "cg3": token.indices.cg3,
                    "absolute": token.indices.absolute,
                },
                token=token,
            )
        )
        projection.elements.append(
            ProjectionElement(
                id=f"pos-{label}",
                kind=ElementKind.POS,
                label=pos,
                num=num,
                clump=clump,
                classes=_pos_classes(token, pos, fmt),
                data={"attr": "xpos" if fmt is IndexFormat.CG3 else "upos"},
                token=token,
            )
        )

        for position, head in enumerate(token.heads):
            if position and not sentence.enhanced:
                break
            progress.total += 1
            if is_filled(head.deprel):
                progress.done += 1
            if isinstance(head.token, RootToken):
                continue
            num += 1
            projection.elements.append(
                ProjectionElement(
                    id=f"dep_{label}_{_id_label(head.token, fmt)}",
                    kind=ElementKind.DEPENDENCY,
                    label=_arrow_label(token, head, ltr),
                    num=num,
                    classes=_dependency_classes(head),
                    source=_element_id(head.token, fmt),
                    target=_element_id(token, fmt),
                    data={"deprel": head.deprel, "enhanced": bool(position)},
                    token=token,
                )
            )

    projection.length = num
    return projection
