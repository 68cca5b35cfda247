"""
Gap Finder

Finds empty vertical intervals in a column of a page that can hold an item.

Rectangles are scanned top to bottom in the column's horizontal span. Every
space between the running bottom edge and the next rectangle's top is a gap;
the first gap tall enough whose candidate frame collides with nothing on the
page wins. The whole page is checked for collisions, not just the column,
because items wider than one column straddle column boundaries.
"""

import logging
from typing import Iterable, List, Optional, Tuple

from ..canvas.abstraction import EPSILON, LayoutParameters
from ..geometry import Rect, overlaps_any

logger = logging.getLogger(__name__)


def find_gap(
    layout: LayoutParameters,
    page_rects: Iterable[Rect],
    column_index: int,
    width: float,
    height: float,
    search_start_y: float,
    probe_step: float = 5.0,
    probe_count: int = 1,
) -> Optional[Rect]:
    """
    Find the highest admissible frame for an item in one column.

    Args:
        layout: Page grid
        page_rects: Every rectangle currently on the page
        column_index: Column the item's left edge is aligned to
        width: Item width (may span several columns)
        height: Item height
        search_start_y: Nothing is placed above this Y
        probe_step: Distance between candidate tops inside one gap
        probe_count: Candidates tried per gap

    Returns:
        The frame to place the item in, or None if the column has no room
    """
    column_left = layout.column_left(column_index)
    if column_left + width > layout.usable_right + EPSILON:
        # Would cross the page's right margin from this column
        return None

    obstacles = [r for r in page_rects if not r.is_degenerate]
    span_left, span_right = layout.column_span(column_index, width)
    in_column = sorted(
        (r for r in obstacles if r.left < span_right and r.right > span_left),
        key=lambda r: r.top,
    )

    usable_bottom = layout.usable_bottom
    last_bottom = search_start_y

    for i in range(len(in_column) + 1):
        next_top = in_column[i].top if i < len(in_column) else usable_bottom

        if next_top > last_bottom and next_top - last_bottom >= height - EPSILON:
            for step in range(probe_count):
                candidate_top = last_bottom + step * probe_step
                candidate = Rect(
                    top=candidate_top,
                    left=column_left,
                    bottom=candidate_top + height,
                    right=column_left + width,
                )
                if (candidate.bottom > next_top + EPSILON
                        or candidate.bottom > usable_bottom + EPSILON):
                    continue
                if not overlaps_any(candidate, obstacles):
                    return candidate

        if i < len(in_column) and in_column[i].bottom > last_bottom:
            last_bottom = in_column[i].bottom

    return None


def find_first_gap(
    layout: LayoutParameters,
    page_rects: List[Rect],
    width: float,
    height: float,
    start_column: int = 0,
    start_y: Optional[float] = None,
    probe_step: float = 5.0,
    probe_count: int = 1,
) -> Optional[Tuple[int, Rect]]:
    """
    Sweep columns left to right for the first frame that fits.

    The first column is searched from start_y; every later column from the
    top margin.

    Returns:
        (column_index, frame) or None
    """
    if start_y is None:
        start_y = layout.top_margin

    for column in range(start_column, layout.column_count):
        search_y = start_y if column == start_column else layout.top_margin
        frame = find_gap(layout, page_rects, column, width, height, search_y,
                         probe_step=probe_step, probe_count=probe_count)
        if frame is not None:
            return column, frame
        logger.debug("No gap for %gx%g in column %d from y=%g", width, height, column, search_y)

    return None
