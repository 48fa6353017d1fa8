"""
Advisory lock on the element the local user is editing.

The lock is a (sentence index, element id, style tags) triple. It is saved
under the ``graph`` preferences key together with the view's pan and zoom,
announced to collaborators through a broadcast callable, and put back on the
freshly projected element after every redraw. Nothing here blocks edits: the
lock only tells other users (and the next redraw) where the focus is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, Protocol, Tuple

from .projection import Projection, ProjectionElement

logger = logging.getLogger(__name__)

PREFS_KEY = "graph"

# Style tags that survive a redraw; everything else is transient hover state
LOCKABLE_CLASSES = ("selected", "activated", "multiword-active", "merge-source", "combine-source")

# Added to elements held by another user
REMOTE_LOCK_CLASS = "locked"


class PrefsStore(Protocol):
    def get_prefs(self, key: str) -> Optional[dict]:
        ...

    def set_prefs(self, key: str, value: Optional[dict]) -> None:
        ...


class MemoryPrefsStore:
    """In-process preferences, for tests and embedding without a config dir."""

    def __init__(self, initial: Optional[Dict[str, dict]] = None):
        self._data: Dict[str, dict] = {key: dict(value) for key, value in (initial or {}).items()}

    def get_prefs(self, key: str) -> Optional[dict]:
        value = self._data.get(key)
        return dict(value) if value is not None else None

    def set_prefs(self, key: str, value: Optional[dict]) -> None:
        if value is None:
            self._data.pop(key, None)
        else:
            self._data[key] = dict(value)


class LockEventKind(str, Enum):
    LOCK = "lock"
    UNLOCK = "unlock"


@dataclass(frozen=True)
class LockEvent:
    kind: LockEventKind
    element_id: Optional[str] = None
    sentence_index: Optional[int] = None
    user_id: str = ""

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "element_id": self.element_id,
            "sentence_index": self.sentence_index,
            "user_id": self.user_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LockEvent":
        return cls(
            kind=LockEventKind(data.get("kind")),
            element_id=data.get("element_id"),
            sentence_index=data.get("sentence_index"),
            user_id=data.get("user_id", ""),
        )


@dataclass
class LockState:
    locked_index: Optional[int] = None
    locked_id: Optional[str] = None
    locked_classes: List[str] = field(default_factory=list)

    @property
    def active(self) -> bool:
        return self.locked_id is not None

    def to_prefs(self) -> dict:
        return {
            "locked_index": self.locked_index,
            "locked_id": self.locked_id,
            "locked_classes": " ".join(self.locked_classes),
        }

    @classmethod
    def from_prefs(cls, prefs: dict) -> "LockState":
        classes = prefs.get("locked_classes") or ""
        if isinstance(classes, str):
            classes = classes.split()
        index = prefs.get("locked_index")
        return cls(
            locked_index=index if isinstance(index, int) else None,
            locked_id=prefs.get("locked_id") or None,
            locked_classes=filter_lockable(classes),
        )


def filter_lockable(classes: Iterable[str]) -> List[str]:
    """Keep the lockable tags of ``classes`` in their original order."""
    result = []
    for name in classes:
        if name in LOCKABLE_CLASSES and name not in result:
            result.append(name)
    return result


class LockCoordinator:
    def __init__(
        self,
        store: PrefsStore,
        broadcast: Optional[Callable[[LockEvent], Any]] = None,
        user_id: str = "local",
        persist: bool = True,
    ):
        self.store = store
        self.broadcast = broadcast
        self.user_id = user_id
        self.persist = persist
        self.state = LockState()
        self.view: Dict[str, Any] = {}
        self.remote: Dict[str, Tuple[int, str]] = {}

    # ------------------------------------------------------------------
    # persistence

    def load(self) -> LockState:
        """Restore lock and view settings from the preferences store."""
        prefs = self.store.get_prefs(PREFS_KEY) or {}
        self.state = LockState.from_prefs(prefs)
        self.view = {key: prefs[key] for key in ("pan", "zoom") if key in prefs}
        return self.state

    def save(self) -> None:
        if not self.persist:
            return
        prefs = self.store.get_prefs(PREFS_KEY) or {}
        prefs.update(self.view)
        prefs.update(self.state.to_prefs())
        try:
            self.store.set_prefs(PREFS_KEY, prefs)
        except OSError as exc:
            logger.warning("Could not save graph preferences: %s", exc)

    def set_view(self, pan: Optional[dict] = None, zoom: Optional[float] = None) -> None:
        if pan is not None:
            self.view["pan"] = dict(pan)
        if zoom is not None:
            self.view["zoom"] = zoom
        self.save()

    def _emit(self, kind: LockEventKind, element_id: Optional[str], sentence_index: Optional[int]) -> None:
        if self.broadcast is None:
            return
        self.broadcast(LockEvent(kind=kind, element_id=element_id, sentence_index=sentence_index, user_id=self.user_id))

    # ------------------------------------------------------------------
    # local lock

    def lock(self, element_id: Optional[str], sentence_index: int, classes: Iterable[str] = ()) -> LockState:
        """Lock ``element_id`` on sentence ``sentence_index``; an empty id unlocks."""
        if not element_id:
            return self.unlock()
        self.state = LockState(
            locked_index=sentence_index,
            locked_id=element_id,
            locked_classes=filter_lockable(classes),
        )
        self.save()
        self._emit(LockEventKind.LOCK, element_id, sentence_index)
        logger.debug("lock %s on sentence %s %s", element_id, sentence_index, self.state.locked_classes)
        return self.state

    def unlock(self) -> LockState:
        self.state = LockState()
        self.save()
        self._emit(LockEventKind.UNLOCK, None, None)
        logger.debug("unlock")
        return self.state

    def reapply(self, projection: Projection, sentence_index: int) -> Optional[ProjectionElement]:
        """
        Put the saved lock back on a freshly built projection.

        Returns the locked element, or None when nothing is locked on this
        sentence. A lock whose element disappeared (e.g. after a merge) is
        released.
        """
        for held_index, element_id in self.remote.values():
            if held_index != sentence_index:
                continue
            element = projection.get(element_id)
            if element is not None:
                element.add_class(REMOTE_LOCK_CLASS)

        if not self.state.active or self.state.locked_index != sentence_index:
            return None
        element = projection.get(self.state.locked_id)
        if element is None:
            logger.debug("locked element %s is gone, unlocking", self.state.locked_id)
            self.unlock()
            return None
        for name in self.state.locked_classes:
            element.add_class(name)
        return element

    def sentence_changed(self, sentence_index: int) -> None:
        """Tear down state tied to the previously displayed sentence."""
        if self.state.active and self.state.locked_index != sentence_index:
            self.unlock()
        self.remote.clear()

    # ------------------------------------------------------------------
    # collaborators

    def apply_remote(self, event: LockEvent) -> None:
        if event.user_id == self.user_id:
            return
        if event.kind is LockEventKind.LOCK and event.element_id:
            self.remote[event.user_id] = (event.sentence_index, event.element_id)
        else:
            self.remote.pop(event.user_id, None)

    def is_locked_by_other(self, element_id: str, sentence_index: int) -> bool:
        return (sentence_index, element_id) in self.remote.values()
