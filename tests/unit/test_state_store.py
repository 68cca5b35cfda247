"""Tests for the per-canvas state store."""

import pytest

from flowplace.state.store import CanvasState, CanvasStateStore, Cursor


class TestStoreBasics:
    """Test lazy creation and removal."""

    def test_get_creates_default(self, store):
        state = store.get("doc-1")
        assert state.owned_item_names == frozenset()
        assert state.cursor is None
        assert "doc-1" in store

    def test_states_are_partitioned_by_canvas(self, store):
        store.update("doc-1", lambda s: s.with_owned("a.pdf"))
        assert store.get("doc-2").owned_item_names == frozenset()

    def test_remove(self, store):
        store.get("doc-1")
        assert store.remove("doc-1") is True
        assert "doc-1" not in store
        assert store.remove("doc-1") is False


class TestUpdate:
    """Test copy-on-write updates."""

    def test_update_replaces_value(self, store):
        cursor = Cursor(0, 1, 200.0)
        new_state = store.update("doc", lambda s: s.with_owned("a.pdf").with_cursor(cursor))
        assert store.get("doc") is new_state
        assert new_state.cursor == cursor
        assert "a.pdf" in new_state.owned_item_names

    def test_earlier_holders_unchanged(self, store):
        before = store.get("doc")
        store.update("doc", lambda s: s.with_owned("a.pdf"))
        assert before.owned_item_names == frozenset()

    def test_state_is_immutable(self):
        state = CanvasState()
        with pytest.raises(AttributeError):
            state.cursor = Cursor(0, 0, 0.0)

    def test_update_must_return_state(self, store):
        with pytest.raises(TypeError):
            store.update("doc", lambda s: None)


class TestReconciliation:
    """Test reconciling with observed canvas content."""

    def test_drops_names_no_longer_observed(self, store):
        store.update("doc", lambda s: s.with_owned("a.pdf", "b.pdf"))
        missing = store.reconcile_owned("doc", ["b.pdf", "external.png"])
        assert missing == frozenset({"a.pdf"})
        assert store.get("doc").owned_item_names == frozenset({"b.pdf"})

    def test_nothing_missing_keeps_state(self, store):
        store.update("doc", lambda s: s.with_owned("a.pdf"))
        before = store.get("doc")
        assert store.reconcile_owned("doc", ["a.pdf"]) == frozenset()
        assert store.get("doc") is before

    def test_prune_closed_canvases(self, store):
        store.get("open")
        store.get("closed")
        removed = store.prune(["open"])
        assert removed == ["closed"]
        assert store.canvas_ids() == ["open"]
        assert len(store) == 1


class TestCursor:
    """Test cursor ordering."""

    def test_is_before(self):
        assert Cursor(0, 0, 500).is_before(Cursor(0, 1, 36))
        assert Cursor(0, 1, 36).is_before(Cursor(1, 0, 36))
        assert Cursor(0, 1, 100).is_before(Cursor(0, 1, 200))
        assert not Cursor(0, 1, 200).is_before(Cursor(0, 1, 200))

    def test_position(self):
        assert Cursor(2, 1, 40.0).position == (2, 1)
