"""
Tests for the batch driver.

Covers batch preconditions, deterministic ordering, per-item failures,
state persistence across batches and the layout scenarios for a
three-column page.
"""

import random

import pytest

from flowplace.canvas.abstraction import BatchItem, ItemStatus, LayoutParameters
from flowplace.canvas.memory_adapter import MemoryCanvas, MemoryHost
from flowplace.errors import BatchRejectedError, BatchTooLargeError, ErrorKind
from flowplace.geometry import Rect
from flowplace.placement.config import PlacementConfig
from flowplace.placement.driver import BatchDriver, run_batch, sort_batch
from flowplace.state.store import Cursor

from conftest import assert_no_overlaps, make_items


class ExplodingHost(MemoryHost):
    """Host whose measurement breaks for some items."""

    def measure(self, canvas_id, item):
        if item.name.startswith("corrupt"):
            raise RuntimeError("renderer crashed")
        return super().measure(canvas_id, item)


class LockedHost(MemoryHost):
    """Host that refuses to add pages."""

    def add_page(self, canvas_id):
        raise RuntimeError("host refused to add a page")


class StickyAnchorHost(MemoryHost):
    """Host that cannot delete anchor markers."""

    def remove_anchor(self, canvas_id, handle):
        raise RuntimeError("marker is locked")


class UnreadableHost(MemoryHost):
    """Host that loses access to page content once a given item is measured."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.unreadable = False

    def measure(self, canvas_id, item):
        if item.name == "linked.pdf":
            self.unreadable = True
            return (148.0, 100.0)
        self.unreadable = False
        return super().measure(canvas_id, item)

    def existing_rects(self, canvas_id, page_index):
        if self.unreadable:
            raise OSError("page content unavailable")
        return super().existing_rects(canvas_id, page_index)


class TestPreconditions:
    """Batch-level rejections."""

    def test_batch_too_large_rejected(self, canvas, host, store):
        items = make_items(*[f"item{i:02d}.pdf" for i in range(51)])

        result = BatchDriver(host, store).run_batch(items)

        assert result.rejected
        assert result.rejection_kind == ErrorKind.BATCH_TOO_LARGE
        assert result.placed_count == 0
        assert canvas.pages == [[]]
        assert all(i.status == ItemStatus.PENDING for i in items)
        assert len(store) == 0
        assert "50" in result.summary()

    def test_fifty_items_accepted(self, canvas, host, store):
        items = make_items(*[f"item{i:02d}.pdf" for i in range(50)])

        result = BatchDriver(host, store).run_batch(items)

        assert not result.rejected
        assert result.placed_count == 50
        # 7 per column, 3 columns per page
        assert len(canvas.pages) == 3
        assert_no_overlaps(canvas)

    def test_no_active_canvas(self, store):
        result = BatchDriver(MemoryHost(), store).run_batch(make_items("a.pdf"))
        assert result.rejected
        assert result.rejection_kind == ErrorKind.NO_ACTIVE_CANVAS

    def test_unknown_canvas(self, host, store):
        result = BatchDriver(host, store).run_batch(make_items("a.pdf"), canvas_id="other")
        assert result.rejection_kind == ErrorKind.NO_ACTIVE_CANVAS

    def test_invalid_layout(self, store):
        bad = MemoryCanvas(identity="bad", layout=LayoutParameters(
            page_width=100, page_height=100, column_count=0))
        result = BatchDriver(MemoryHost([bad]), store).run_batch(make_items("a.pdf"))
        assert result.rejection_kind == ErrorKind.INVALID_LAYOUT

    def test_custom_limit(self, host):
        driver = BatchDriver(host, config=PlacementConfig(max_batch_size=2))
        assert driver.run_batch(make_items("a", "b", "c")).rejected


class TestScenarios:
    """Reference layouts on a 540x792 page with three 148 pt columns."""

    def test_two_items_stack_in_first_column(self, canvas, host, store):
        result = BatchDriver(host, store).run_batch(make_items("item1.pdf", "item2.pdf"))

        assert [r.bounds for r in result.results] == [
            Rect(36, 36, 136, 184),
            Rect(136, 36, 236, 184),
        ]
        assert result.cursor == Cursor(0, 0, 236.0)

    def test_nearly_full_column_moves_to_next(self, canvas, host, store):
        canvas.add_rect(0, Rect(36, 196, 750, 344), owner_name="prev.pdf")
        store.update("brochure", lambda s: s.with_owned("prev.pdf").with_cursor(Cursor(0, 1, 750.0)))

        result = BatchDriver(host, store).run_batch(make_items("next.pdf"))

        assert result.results[0].bounds == Rect(36, 356, 136, 504)
        assert store.get("brochure").cursor.column_index == 2

    def test_item_taller_than_page_fails(self, short_page_layout, store):
        canvas = MemoryCanvas(identity="short", layout=short_page_layout)
        host = MemoryHost([canvas])

        result = BatchDriver(host, store).run_batch(
            [BatchItem(name="poster.pdf", width=100, height=2000)])

        assert result.failed_count == 1
        assert "too large to fit on any page" in result.results[0].error
        assert result.results[0].error_kind == ErrorKind.ITEM_TOO_LARGE
        assert len(canvas.pages) == 1

    def test_anchor_receives_first_item(self, canvas, host, store):
        canvas.add_anchor(0, Rect(200, 200, 210, 210), handle="insert-here")

        result = BatchDriver(host, store).run_batch(make_items("a.pdf", "b.pdf"))

        assert result.results[0].bounds == Rect(200, 196, 300, 344)
        assert result.results[1].bounds == Rect(300, 196, 400, 344)
        assert canvas.anchors == []


class TestOrdering:
    """Items are processed in case-insensitive name order."""

    def test_sort_batch_ignores_case(self):
        items = [BatchItem(name=n) for n in ["b.pdf", "A.pdf", "c.PDF", "a2.pdf"]]
        assert [i.name for i in sort_batch(items)] == ["A.pdf", "a2.pdf", "b.pdf", "c.PDF"]

    def test_results_follow_sorted_order(self, host):
        result = run_batch(host, make_items("Zeta.pdf", "alpha.pdf", "Beta.pdf"))
        assert [r.name for r in result.results] == ["alpha.pdf", "Beta.pdf", "Zeta.pdf"]

    def test_same_names_same_layout(self, three_column_layout):
        names = [f"page-{i}.pdf" for i in range(12)]
        layouts = []
        for seed in (1, 2):
            shuffled = list(names)
            random.Random(seed).shuffle(shuffled)
            canvas = MemoryCanvas(identity="doc", layout=three_column_layout)
            run_batch(MemoryHost([canvas]), make_items(*shuffled))
            layouts.append([(r.owner_name, r.bounds) for r in canvas.pages[0]])
        assert layouts[0] == layouts[1]

    def test_unsorted_when_disabled(self, host):
        config = PlacementConfig(sort_items=False)
        result = run_batch(host, make_items("b.pdf", "a.pdf"), config=config)
        assert [r.name for r in result.results] == ["b.pdf", "a.pdf"]


class TestItemFailures:
    """Item-level failures are recorded and the batch continues."""

    def test_measurement_failure_continues(self, canvas, store):
        host = MemoryHost([canvas], sizes={"b.pdf": (148, 100)})
        items = [BatchItem(name="a.pdf"), BatchItem(name="b.pdf")]

        result = BatchDriver(host, store).run_batch(items)

        assert items[0].status == ItemStatus.FAILED
        assert result.results[0].error_kind == ErrorKind.HOST_MEASUREMENT_FAILURE
        assert items[1].status == ItemStatus.SUCCESS
        assert (items[1].width, items[1].height) == (148.0, 100.0)
        assert result.summary() == "Placed 1 of 2 items. 1 failed."

    def test_unexpected_measure_error_wrapped(self, canvas, store):
        host = ExplodingHost([canvas])
        items = [BatchItem(name="corrupt.pdf"), BatchItem(name="ok.pdf", width=148, height=100)]

        result = BatchDriver(host, store).run_batch(items)

        assert "renderer crashed" in result.results[0].error
        assert result.placed_count == 1

    def test_zero_size_is_measurement_failure(self, canvas, host):
        result = run_batch(host, [BatchItem(name="empty.pdf", width=0, height=10)])
        assert result.results[0].error_kind == ErrorKind.HOST_MEASUREMENT_FAILURE

    def test_failed_item_leaves_state_unchanged(self, canvas, host, store):
        driver = BatchDriver(host, store)
        driver.run_batch(make_items("a.pdf"))
        before = store.get("brochure")

        driver.run_batch([BatchItem(name="huge.pdf", width=148, height=5000)])

        assert store.get("brochure") == before


class TestStateAcrossBatches:
    """The cursor and owned names carry over between batches."""

    def test_second_batch_resumes_at_cursor(self, canvas, host, store):
        driver = BatchDriver(host, store)
        driver.run_batch(make_items("a.pdf"))

        result = driver.run_batch(make_items("b.pdf"))

        assert result.results[0].bounds == Rect(136, 36, 236, 184)
        assert store.get("brochure").owned_item_names == {"a.pdf", "b.pdf"}

    def test_deleted_item_no_longer_owned(self, canvas, host, store):
        driver = BatchDriver(host, store)
        driver.run_batch(make_items("a.pdf", "b.pdf"))

        canvas.remove_owner("a.pdf")
        driver.run_batch(make_items("c.pdf"))

        assert store.get("brochure").owned_item_names == {"b.pdf", "c.pdf"}

    def test_closed_canvas_state_pruned(self, canvas, host, store, three_column_layout):
        other = MemoryCanvas(identity="flyer", layout=three_column_layout)
        host.open_canvas(other)
        driver = BatchDriver(host, store)
        driver.run_batch(make_items("a.pdf"), canvas_id="flyer")
        assert "flyer" in store

        host.close_canvas("flyer")
        driver.run_batch(make_items("b.pdf"), canvas_id="brochure")

        assert "flyer" not in store
        assert "brochure" in store

    def test_canvases_do_not_share_cursor(self, canvas, host, store, three_column_layout):
        other = MemoryCanvas(identity="flyer", layout=three_column_layout)
        host.open_canvas(other, activate=False)
        driver = BatchDriver(host, store)

        driver.run_batch(make_items("a.pdf", "b.pdf"), canvas_id="brochure")
        result = driver.run_batch(make_items("c.pdf"), canvas_id="flyer")

        assert result.results[0].bounds == Rect(36, 36, 136, 184)

    def test_close_canvas(self, host, store):
        driver = BatchDriver(host, store)
        driver.run_batch(make_items("a.pdf"))
        assert driver.close_canvas("brochure") is True
        assert "brochure" not in store


class TestProperties:
    """Invariants over mixed batches."""

    @pytest.fixture
    def mixed_items(self):
        sizes = [(148, 100), (296, 150), (148, 300), (100, 40), (148, 650),
                 (468, 120), (148, 220), (60, 60), (296, 400), (148, 90)]
        return [BatchItem(name=f"file{i:02d}.pdf", width=w, height=h)
                for i, (w, h) in enumerate(sizes * 3)]

    def test_no_overlap_with_existing_content(self, canvas, host, mixed_items):
        canvas.add_rect(0, Rect(300, 36, 420, 344))
        canvas.add_rect(0, Rect(50, 356, 90, 504))

        result = run_batch(host, mixed_items)

        assert result.placed_count == len(mixed_items)
        assert_no_overlaps(canvas)

    def test_cursor_only_moves_forward(self, canvas, host, mixed_items):
        result = run_batch(host, mixed_items)
        positions = [c.position for c in result.cursor_trail]
        assert positions == sorted(positions)

    def test_placements_stay_inside_margins(self, canvas, host, mixed_items):
        run_batch(host, mixed_items)
        layout = canvas.layout
        for page in canvas.pages:
            for placed in page:
                assert placed.bounds.top >= layout.top_margin
                assert placed.bounds.left >= layout.left_margin
                assert placed.bounds.bottom <= layout.usable_bottom
                assert placed.bounds.right <= layout.usable_right


class TestHostErrors:
    """Unexpected host exceptions fail single items, never the batch."""

    def test_add_page_failure_fails_only_overflow_items(self, canvas, store):
        host = LockedHost([canvas])
        items = make_items(*[f"item{i:02d}.pdf" for i in range(23)])

        result = BatchDriver(host, store).run_batch(items)

        assert not result.rejected
        assert result.placed_count == 21
        assert result.failed_count == 2
        assert [i.status for i in items[-2:]] == [ItemStatus.FAILED, ItemStatus.FAILED]
        assert all(i.status == ItemStatus.SUCCESS for i in items[:21])
        assert result.results[-1].error_kind == ErrorKind.PLACEMENT_COMMIT_FAILED
        assert "host refused to add a page" in result.results[-1].error
        assert len(canvas.pages) == 1
        assert len(store.get("brochure").owned_item_names) == 21

    def test_unexpected_error_during_placement(self, canvas, store):
        host = UnreadableHost([canvas])
        items = [BatchItem(name="a.pdf"), BatchItem(name="linked.pdf"), BatchItem(name="z.pdf")]
        host.sizes = {"a.pdf": (148, 100), "z.pdf": (148, 100)}

        result = BatchDriver(host, store).run_batch(items)

        assert [r.status for r in result.results] == [
            ItemStatus.SUCCESS, ItemStatus.FAILED, ItemStatus.SUCCESS]
        assert result.results[1].error_kind == ErrorKind.PLACEMENT_COMMIT_FAILED
        assert "page content unavailable" in result.results[1].error
        assert result.results[2].bounds == Rect(136, 36, 236, 184)
        assert store.get("brochure").owned_item_names == {"a.pdf", "z.pdf"}

    def test_anchor_removal_failure_keeps_placement(self, canvas, store):
        host = StickyAnchorHost([canvas])
        canvas.add_anchor(0, Rect(200, 200, 210, 210), handle="insert-here")

        result = BatchDriver(host, store).run_batch(make_items("a.pdf", "b.pdf"))

        assert result.placed_count == 2
        assert result.results[0].bounds == Rect(200, 196, 300, 344)
        assert result.results[1].bounds == Rect(300, 196, 400, 344)
        assert [a.handle for a in canvas.anchors] == ["insert-here"]


class TestErrorKinds:
    """Batch rejection categories."""

    def test_rejection_kinds(self):
        assert BatchRejectedError("nope").kind == ErrorKind.BATCH_REJECTED
        assert BatchTooLargeError(51, 50).kind == ErrorKind.BATCH_TOO_LARGE
