from __future__ import annotations

import pytest

from flexitree.locks import LockCoordinator, LockEvent, LockEventKind, LockState, MemoryPrefsStore
from flexitree.projection import build_projection
from flexitree.storage import JsonPrefsStore


@pytest.fixture
def events():
    return []


@pytest.fixture
def store():
    return MemoryPrefsStore({"graph": {"pan": {"x": 10, "y": 20}, "zoom": 1.5}})


@pytest.fixture
def coordinator(store, events):
    return LockCoordinator(store, broadcast=events.append, user_id="alice")


def test_lock_keeps_only_lockable_tags(coordinator, store, events):
    state = coordinator.lock("form-2", 0, ["selected", "hover", "activated", "selected"])
    assert state.locked_classes == ["selected", "activated"]

    prefs = store.get_prefs("graph")
    assert prefs["locked_id"] == "form-2"
    assert prefs["locked_index"] == 0
    assert prefs["locked_classes"] == "selected activated"
    assert prefs["pan"] == {"x": 10, "y": 20}
    assert prefs["zoom"] == 1.5

    assert events == [LockEvent(LockEventKind.LOCK, "form-2", 0, "alice")]


def test_empty_id_unlocks(coordinator, store, events):
    coordinator.lock("form-2", 0, ["selected"])
    coordinator.lock("", 0)
    assert not coordinator.state.active
    assert store.get_prefs("graph")["locked_id"] is None
    assert events[-1].kind is LockEventKind.UNLOCK


def test_load_restores_saved_lock(coordinator, store):
    coordinator.lock("dep_1_2", 3, ["activated"])
    restored = LockCoordinator(store, user_id="alice")
    state = restored.load()
    assert state == LockState(locked_index=3, locked_id="dep_1_2", locked_classes=["activated"])
    assert restored.view == {"pan": {"x": 10, "y": 20}, "zoom": 1.5}


def test_reapply_marks_fresh_element(coordinator, saw_graph):
    coordinator.lock("form-2", 0, ["selected", "merge-source"])
    projection = build_projection(saw_graph.sentence)
    element = coordinator.reapply(projection, 0)
    assert element is projection.get("form-2")
    assert element.classes == ["form", "root", "selected", "merge-source"]


def test_reapply_ignores_other_sentences(coordinator, saw_graph):
    coordinator.lock("form-2", 4, ["selected"])
    projection = build_projection(saw_graph.sentence)
    assert coordinator.reapply(projection, 0) is None
    assert not projection.get("form-2").has_class("selected")
    assert coordinator.state.active


def test_reapply_releases_vanished_element(coordinator, saw_graph, events):
    coordinator.lock("dep_9_9", 0, ["selected"])
    assert coordinator.reapply(build_projection(saw_graph.sentence), 0) is None
    assert not coordinator.state.active
    assert events[-1].kind is LockEventKind.UNLOCK


def test_remote_locks(coordinator, saw_graph):
    coordinator.apply_remote(LockEvent(LockEventKind.LOCK, "form-1", 0, "bob"))
    coordinator.apply_remote(LockEvent(LockEventKind.LOCK, "form-3", 0, "alice"))
    assert coordinator.is_locked_by_other("form-1", 0)
    assert not coordinator.is_locked_by_other("form-1", 1)
    assert not coordinator.is_locked_by_other("form-3", 0)

    projection = build_projection(saw_graph.sentence)
    coordinator.reapply(projection, 0)
    assert projection.get("form-1").has_class("locked")

    coordinator.apply_remote(LockEvent(LockEventKind.UNLOCK, user_id="bob"))
    assert not coordinator.is_locked_by_other("form-1", 0)


def test_sentence_changed_tears_down(coordinator):
    coordinator.lock("form-1", 0, ["selected"])
    coordinator.apply_remote(LockEvent(LockEventKind.LOCK, "form-2", 0, "bob"))
    coordinator.sentence_changed(0)
    assert coordinator.state.active

    coordinator.sentence_changed(1)
    assert not coordinator.state.active
    assert coordinator.remote == {}


def test_persistence_can_be_disabled(store):
    coordinator = LockCoordinator(store, persist=False)
    coordinator.lock("form-1", 0, ["selected"])
    assert "locked_id" not in store.get_prefs("graph")


def test_set_view_preserves_lock(coordinator, store):
    coordinator.lock("form-1", 0, ["selected"])
    coordinator.set_view(zoom=2.0)
    prefs = store.get_prefs("graph")
    assert prefs["zoom"] == 2.0
    assert prefs["locked_id"] == "form-1"


def test_event_dict_round_trip():
    event = LockEvent(LockEventKind.LOCK, "form-1", 2, "bob")
    assert LockEvent.from_dict(event.to_dict()) == event


def test_json_prefs_store(tmp_path):
    path = tmp_path / "prefs.json"
    store = JsonPrefsStore(path)
    assert store.get_prefs("graph") is None

    coordinator = LockCoordinator(store)
    coordinator.lock("form-1", 0, ["selected"])
    assert path.exists()

    reloaded = LockCoordinator(JsonPrefsStore(path))
    assert reloaded.load().locked_id == "form-1"

    store.set_prefs("graph", None)
    assert store.get_prefs("graph") is None
