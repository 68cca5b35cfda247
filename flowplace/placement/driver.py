"""
Batch Driver

Runs one batch of items against one canvas: checks the batch preconditions,
reconciles stored state with what is on the canvas, then measures, plans and
commits each item in turn. A failing item is recorded and the batch moves on.

Usage:
    from flowplace.placement.driver import BatchDriver
    driver = BatchDriver(host)
    result = driver.run_batch(items)
    print(result.summary())
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..canvas.abstraction import BatchItem, ItemStatus, LayoutParameters
from ..canvas.host import LayoutHost
from ..errors import (
    BatchRejectedError,
    BatchTooLargeError,
    ErrorKind,
    MeasurementError,
    NoActiveCanvasError,
    PlacementCommitError,
)
from ..geometry import Rect
from ..state.store import CanvasStateStore, Cursor
from .anchors import Anchor, collect_anchors, reconcile_anchors, remove_displaced_anchors
from .config import PlacementConfig
from .planner import PlacementPlanner

logger = logging.getLogger(__name__)


@dataclass
class ItemResult:
    """Per-item outcome reported to callers."""
    name: str
    status: ItemStatus
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    page_index: Optional[int] = None
    bounds: Optional[Rect] = None

    def to_dict(self) -> Dict[str, Any]:
        d = {"name": self.name, "status": self.status.value}
        if self.error:
            d["error"] = self.error
        if self.page_index is not None:
            d["page"] = self.page_index
        if self.bounds is not None:
            d["bounds"] = list(self.bounds.as_bounds())
        return d


@dataclass
class BatchResult:
    """Outcome of one batch."""
    canvas_id: Optional[str] = None
    placed_count: int = 0
    failed_count: int = 0
    results: List[ItemResult] = field(default_factory=list)
    cursor: Optional[Cursor] = None
    cursor_trail: List[Cursor] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    rejected: bool = False
    rejection: Optional[str] = None
    rejection_kind: Optional[ErrorKind] = None

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def failed(self) -> List[ItemResult]:
        return [r for r in self.results if r.status == ItemStatus.FAILED]

    def summary(self) -> str:
        if self.rejected:
            return f"Batch rejected: {self.rejection}"
        text = f"Placed {self.placed_count} of {self.total} items."
        if self.failed_count:
            text += f" {self.failed_count} failed."
        return text

    def to_dict(self) -> Dict[str, Any]:
        return {
            "canvas": self.canvas_id,
            "placed": self.placed_count,
            "failed": self.failed_count,
            "rejected": self.rejected,
            "rejection": self.rejection,
            "results": [r.to_dict() for r in self.results],
            "warnings": list(self.warnings),
        }


def sort_batch(items: List[BatchItem]) -> List[BatchItem]:
    """Order items by name, ignoring case. Equal names keep input order."""
    return sorted(items, key=lambda item: item.name.casefold())


class BatchDriver:
    """
    Places batches of items onto host canvases.

    The state store is shared across batches so that each canvas resumes
    where the previous batch on it stopped.
    """

    def __init__(self, host: LayoutHost, store: Optional[CanvasStateStore] = None,
                 config: Optional[PlacementConfig] = None):
        self.host = host
        self.store = store if store is not None else CanvasStateStore()
        self.config = config or PlacementConfig()

    def run_batch(self, items: List[BatchItem],
                  canvas_id: Optional[str] = None) -> BatchResult:
        """
        Place a batch of items.

        Args:
            items: Items to place; mutated in place with their outcome
            canvas_id: Target canvas (default: the host's active canvas)

        Returns:
            BatchResult. Rejected batches have rejected=True and place nothing.
        """
        try:
            canvas_id, layout = self._check_preconditions(items, canvas_id)
        except BatchRejectedError as e:
            logger.warning("Batch rejected: %s", e)
            return BatchResult(
                canvas_id=canvas_id,
                rejected=True,
                rejection=str(e),
                rejection_kind=e.kind,
            )

        logger.info("Placing %d item(s) on canvas %s", len(items), canvas_id)

        self.store.prune(self.host.list_open_canvases())
        self.store.reconcile_owned(canvas_id, self._observed_names(canvas_id))

        ordered = sort_batch(items) if self.config.sort_items else list(items)
        state = self.store.get(canvas_id)

        anchors = collect_anchors(self.host, canvas_id, layout)
        reconciliation = reconcile_anchors(self.host, canvas_id, anchors, state.cursor)
        remaining_anchors = reconciliation.remaining

        planner = PlacementPlanner(
            self.host,
            canvas_id,
            layout,
            config=self.config,
            owned_names=state.owned_item_names,
            cursor=reconciliation.cursor,
            anchor=reconciliation.anchor,
        )

        result = BatchResult(canvas_id=canvas_id)
        for item in ordered:
            item_result, remaining_anchors = self._process_item(
                planner, canvas_id, item, remaining_anchors)
            result.results.append(item_result)
            if item_result.status == ItemStatus.SUCCESS:
                result.placed_count += 1
            else:
                result.failed_count += 1

        result.cursor = self.store.get(canvas_id).cursor
        result.cursor_trail = list(planner.cursor_trail)
        result.warnings = list(planner.warnings)

        if logger.isEnabledFor(logging.DEBUG) and result.failed:
            logger.debug("Canvas %s failures: %s", canvas_id, "; ".join(
                f"{r.name}: {r.error}" for r in result.failed))

        logger.info("Canvas %s: %s", canvas_id, result.summary())
        return result

    def close_canvas(self, canvas_id: str) -> bool:
        """Forget everything about a canvas the host has closed."""
        return self.store.remove(canvas_id)

    def _check_preconditions(self, items: List[BatchItem],
                             canvas_id: Optional[str]) -> Tuple[str, LayoutParameters]:
        """
        Validate a batch before anything is touched.

        Raises:
            NoActiveCanvasError: No canvas to place into
            BatchTooLargeError: More items than the configured limit
            InvalidLayoutError: The canvas grid cannot hold content
        """
        if canvas_id is None:
            canvas_id = self.host.active_canvas()
            if canvas_id is None:
                raise NoActiveCanvasError()
        elif canvas_id not in self.host.list_open_canvases():
            raise NoActiveCanvasError(f"Canvas is not open: {canvas_id}")

        if len(items) > self.config.max_batch_size:
            raise BatchTooLargeError(len(items), self.config.max_batch_size)

        layout = self.host.layout_parameters(canvas_id).validate()
        return canvas_id, layout

    def _observed_names(self, canvas_id: str) -> List[str]:
        names = []
        for page_index in range(self.host.page_count(canvas_id)):
            for placed in self.host.existing_rects(canvas_id, page_index):
                if placed.owner_name:
                    names.append(placed.owner_name)
        return names

    def _measure(self, canvas_id: str, item: BatchItem):
        if item.is_measured:
            width, height = item.width, item.height
        else:
            try:
                width, height = self.host.measure(canvas_id, item)
            except MeasurementError:
                raise
            except Exception as e:
                raise MeasurementError(f"Could not measure {item.name}: {e}") from e

        if width is None or height is None or width <= 0 or height <= 0:
            raise MeasurementError(f"{item.name} has no visible size ({width} x {height})")
        item.width, item.height = float(width), float(height)

    def _process_item(self, planner: PlacementPlanner, canvas_id: str, item: BatchItem,
                      anchors: List[Anchor]) -> Tuple[ItemResult, List[Anchor]]:
        try:
            self._measure(canvas_id, item)
        except MeasurementError as e:
            item.mark_failed(str(e))
            logger.warning("%s: %s", item.name, e)
            return ItemResult(item.name, item.status, item.error, e.kind), anchors

        try:
            placement = planner.place(item)
        except Exception as e:
            error = PlacementCommitError(f"Could not place {item.name}: {e}")
            item.mark_failed(str(error))
            logger.warning("%s: host error during placement: %s", item.name, e)
            return ItemResult(item.name, item.status, item.error, error.kind), anchors

        if not placement.success:
            item.mark_failed(placement.error)
            logger.info("%s not placed: %s", item.name, placement.error)
            return ItemResult(item.name, item.status, item.error, placement.error_kind), anchors

        cursor = planner.cursor
        self.store.update(canvas_id, lambda s: s.with_owned(item.name).with_cursor(cursor))
        anchors = remove_displaced_anchors(self.host, canvas_id, anchors,
                                           placement.page_index, placement.bounds)
        item.mark_success()
        logger.debug("%s placed on page %d at %s", item.name, placement.page_index, placement.bounds)
        return ItemResult(
            item.name,
            item.status,
            page_index=placement.page_index,
            bounds=placement.bounds,
        ), anchors


def run_batch(host: LayoutHost, items: List[BatchItem], canvas_id: Optional[str] = None,
              store: Optional[CanvasStateStore] = None,
              config: Optional[PlacementConfig] = None) -> BatchResult:
    """Place a batch with a one-off driver. Pass a store to keep cursor state."""
    return BatchDriver(host, store=store, config=config).run_batch(items, canvas_id)
