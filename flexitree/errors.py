"""Errors raised by the flexitree token graph."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class GraphErrorKind(str, Enum):
    """Machine-interpretable reasons for a rejected graph mutation."""

    SELF_LOOP = "self-loop"
    """A token was asked to depend on itself."""

    INVALID_TARGET = "invalid-target"
    """The token cannot play the requested role (e.g. a sub-token as head)."""

    DUPLICATE_EDGE = "duplicate-edge"
    """The (dependent, head) pair already exists in enhanced mode."""

    NO_SUCH_EDGE = "no-such-edge"
    """The (dependent, head) pair does not exist."""

    NOT_ADJACENT = "not-adjacent"
    """The two tokens are not neighbours in sentence order."""

    INVALID_STATE = "invalid-state"
    """The token cannot take the requested state (e.g. an empty super-token)."""


class GraphError(Exception):
    """
    A mutation was rejected. The sentence is left exactly as it was.

    The UI layer is expected to show ``str(error)`` to the user and keep its
    current selection and lock so the user can retry.
    """

    def __init__(self, kind: GraphErrorKind | str, message: str = "", details: Optional[Dict[str, Any]] = None):
        self.kind = GraphErrorKind(kind)
        self.message = message or self.kind.value
        self.details: Dict[str, Any] = dict(details or {})
        super().__init__(f"{self.kind.value}: {self.message}")

    def to_log_message(self) -> str:
        extra = ", ".join(f"{key}={value}" for key, value in sorted(self.details.items()))
        return f"[{self.kind.value}] {self.message}" + (f" ({extra})" if extra else "")
