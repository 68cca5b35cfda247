"""
Placement Planner

Decides where one item goes and commits it through the host. Positions are
tried in a strict order and the first success wins:

1. Anchor slot - the pending anchor's column from its top edge, then the
   rest of that page's columns
2. Current cursor - the cursor's page from its column and Y, sweeping right
3. Subsequent pages - every later page from column 0
4. New page - appended only when the item fits a blank page; removed again
   if the item still cannot be placed on it
5. Failure

The cursor only moves forward through (page, column). Page content is read
from the host on every attempt since earlier placements change it.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from ..canvas.abstraction import BatchItem, LayoutParameters
from ..canvas.host import LayoutHost
from ..errors import (
    ErrorKind,
    ItemPlacementError,
    ItemTooLargeError,
    PlacementCommitError,
)
from ..geometry import Rect, union_bottom
from ..state.store import Cursor
from .anchors import Anchor
from .config import PlacementConfig
from .gap_finder import find_first_gap, find_gap

logger = logging.getLogger(__name__)

ANCHOR_FALLBACK_WARNING = "Anchor location could not fit the file"


@dataclass
class PlacementResult:
    """Outcome of one placement attempt."""
    success: bool
    page_index: Optional[int] = None
    column_index: Optional[int] = None
    bottom_y: Optional[float] = None
    bounds: Optional[Rect] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    new_page: bool = False  # a page was added for this item
    used_anchor: bool = False

    @classmethod
    def failed(cls, error: ItemPlacementError) -> "PlacementResult":
        return cls(success=False, error=str(error), error_kind=error.kind)


class PlacementPlanner:
    """
    Places items one at a time on a single canvas.

    Holds the working cursor and owned-name set for one batch; the batch
    driver persists them to the state store after each success.
    """

    def __init__(
        self,
        host: LayoutHost,
        canvas_id: str,
        layout: LayoutParameters,
        config: Optional[PlacementConfig] = None,
        owned_names: Optional[Iterable[str]] = None,
        cursor: Optional[Cursor] = None,
        anchor: Optional[Anchor] = None,
    ):
        self.host = host
        self.canvas_id = canvas_id
        self.layout = layout
        self.config = config or PlacementConfig()
        self.owned_names: Set[str] = set(owned_names or ())
        self.cursor = cursor or Cursor(host.active_page_index(canvas_id), 0, layout.top_margin)
        self.anchor = anchor
        self.warnings: List[str] = []
        self.cursor_trail: List[Cursor] = [self.cursor]

    def place(self, item: BatchItem) -> PlacementResult:
        """
        Find a position for a measured item and commit it.

        Returns:
            PlacementResult; failures carry a human-readable error
        """
        if not item.is_measured:
            raise ValueError(f"Item {item.name} must be measured before planning")
        width, height = float(item.width), float(item.height)

        if not self.layout.fits_blank_page(width, height):
            logger.debug("%s (%gx%g) exceeds usable page %gx%g", item.name, width, height,
                         self.layout.usable_width, self.layout.usable_height)
            return PlacementResult.failed(ItemTooLargeError())

        if self.anchor is not None:
            result = self._place_at_anchor(item, width, height)
            if result is not None:
                return result

        found = self._search_forward(width, height)
        if found is not None:
            page_index, column, frame = found
            return self._commit(item, page_index, column, frame)

        return self._place_on_new_page(item, width, height)

    # -- search ------------------------------------------------------------

    def _page_rects(self, page_index: int) -> List[Rect]:
        return [r.bounds for r in self.host.existing_rects(self.canvas_id, page_index)]

    def _find_in_page(self, page_index: int, width: float, height: float,
                      start_column: int, start_y: float) -> Optional[Tuple[int, Rect]]:
        return find_first_gap(
            self.layout,
            self._page_rects(page_index),
            width,
            height,
            start_column=start_column,
            start_y=start_y,
            probe_step=self.config.probe_step,
            probe_count=self.config.probe_count,
        )

    def _search_forward(self, width: float,
                        height: float) -> Optional[Tuple[int, int, Rect]]:
        """Search the cursor's page, then every later page."""
        page_count = self.host.page_count(self.canvas_id)
        cursor = self.cursor

        if cursor.page_index < page_count:
            hit = self._find_in_page(cursor.page_index, width, height,
                                     cursor.column_index, cursor.bottom_y)
            if hit is not None:
                return (cursor.page_index,) + hit

        for page_index in range(cursor.page_index + 1, page_count):
            hit = self._find_in_page(page_index, width, height, 0, self.layout.top_margin)
            if hit is not None:
                return (page_index,) + hit

        return None

    def _place_at_anchor(self, item: BatchItem, width: float,
                         height: float) -> Optional[PlacementResult]:
        """
        Try the pending anchor's slot.

        Returns:
            A result when the anchor slot was used (or its commit failed),
            None when the anchor was discarded and normal search should run
        """
        anchor = self.anchor
        hit = None
        if anchor.page_index < self.host.page_count(self.canvas_id):
            rects = self._page_rects(anchor.page_index)
            frame = find_gap(self.layout, rects, anchor.column_index, width, height,
                             anchor.top, probe_step=self.config.probe_step,
                             probe_count=self.config.probe_count)
            if frame is not None:
                hit = (anchor.column_index, frame)
            elif anchor.column_index + 1 < self.layout.column_count:
                hit = self._find_in_page(anchor.page_index, width, height,
                                         anchor.column_index + 1, self.layout.top_margin)

        if hit is not None:
            column, frame = hit
            result = self._commit(item, anchor.page_index, column, frame)
            if result.success:
                result.used_anchor = True
                self._discard_anchor(anchor)
                self.anchor = None
                logger.debug("Anchor %s consumed by %s", anchor.handle, item.name)
            return result

        # Anchor page has no room; resume on the following page
        self._discard_anchor(anchor)
        self.anchor = None
        self.warnings.append(f"{ANCHOR_FALLBACK_WARNING} ({item.name})")
        logger.warning("Canvas %s: anchor %s on page %d could not fit %s",
                       self.canvas_id, anchor.handle, anchor.page_index, item.name)
        self._move_cursor(Cursor(anchor.page_index + 1, 0, self.layout.top_margin))
        return None

    def _discard_anchor(self, anchor: Anchor):
        try:
            self.host.remove_anchor(self.canvas_id, anchor.handle)
        except Exception as e:
            # The placement stands; the marker stays behind on the canvas
            logger.warning("Canvas %s: could not remove anchor %s: %s", self.canvas_id, anchor.handle, e)

    # -- commit ------------------------------------------------------------

    def _place_on_new_page(self, item: BatchItem, width: float,
                           height: float) -> PlacementResult:
        if not self.config.allow_new_pages:
            return PlacementResult.failed(ItemPlacementError(
                "No room left on any page and adding pages is disabled."))

        try:
            page_index = self.host.add_page(self.canvas_id)
        except Exception as e:
            logger.warning("Canvas %s: could not add a page for %s: %s", self.canvas_id, item.name, e)
            return PlacementResult.failed(PlacementCommitError(f"Could not add a page for {item.name}: {e}"))
        logger.debug("Added page %d for %s", page_index, item.name)

        frame = find_gap(self.layout, self._page_rects(page_index), 0, width, height,
                         self.layout.top_margin, probe_step=self.config.probe_step,
                         probe_count=self.config.probe_count)
        if frame is None:
            self.host.remove_page(self.canvas_id, page_index)
            logger.warning("Rolled back page %d: %s did not fit a new page", page_index, item.name)
            return PlacementResult.failed(ItemPlacementError(
                "Item could not be placed on a new page."))

        result = self._commit(item, page_index, 0, frame)
        if not result.success:
            self.host.remove_page(self.canvas_id, page_index)
            logger.warning("Rolled back page %d after failed commit of %s", page_index, item.name)
            return result

        result.new_page = True
        return result

    def _commit(self, item: BatchItem, page_index: int, column: int,
                frame: Rect) -> PlacementResult:
        try:
            placed = self.host.place_rect(self.canvas_id, page_index, frame, item)
        except PlacementCommitError as e:
            logger.warning("Commit of %s failed: %s", item.name, e)
            return PlacementResult.failed(e)
        except Exception as e:
            logger.warning("Commit of %s failed: %s", item.name, e)
            return PlacementResult.failed(PlacementCommitError(f"Could not place {item.name}: {e}"))

        self.owned_names.add(item.name)
        self._advance_cursor(page_index, column, placed.bounds)
        return PlacementResult(
            success=True,
            page_index=page_index,
            column_index=column,
            bottom_y=placed.bounds.bottom,
            bounds=placed.bounds,
        )

    # -- cursor ------------------------------------------------------------

    def column_fill_bottom(self, page_index: int, column: int) -> Optional[float]:
        """
        Lowest bottom edge of engine-placed content in a column.

        Content the engine did not place is ignored here.
        """
        left = self.layout.column_left(column)
        right = self.layout.column_right(column)
        owned = [
            r.bounds for r in self.host.existing_rects(self.canvas_id, page_index)
            if r.owner_name in self.owned_names
            and r.bounds.left < right and r.bounds.right > left
        ]
        return union_bottom(owned)

    def _advance_cursor(self, page_index: int, column: int, placed: Rect):
        fill_bottom = self.column_fill_bottom(page_index, column)
        if fill_bottom is None or fill_bottom < placed.bottom:
            fill_bottom = placed.bottom
        remaining = self.layout.usable_bottom - fill_bottom

        if (remaining < self.config.column_full_threshold
                and column < self.layout.column_count - 1):
            new_cursor = Cursor(page_index, column + 1, self.layout.top_margin)
            logger.debug("Column %d on page %d full (%.1f left), moving to column %d",
                         column, page_index, remaining, column + 1)
        else:
            new_cursor = Cursor(page_index, column, placed.bottom)
        self._move_cursor(new_cursor)

    def _move_cursor(self, cursor: Cursor):
        self.cursor = cursor
        self.cursor_trail.append(cursor)
