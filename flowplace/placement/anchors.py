"""
Anchor Reconciliation

Anchors are markers a user drops on the canvas to say "put the next item
here". At the start of a batch they are collected and ordered, the first one
becomes the target of the batch's first placement, and the cursor is pulled
back to it when it lies at or before the remembered position.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from ..canvas.abstraction import LayoutParameters
from ..canvas.host import LayoutHost
from ..geometry import Rect, overlaps
from ..state.store import Cursor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Anchor:
    """An "insert here next" marker resolved to the column grid."""
    page_index: int
    column_index: int
    top: float
    bounds: Rect
    handle: str

    @property
    def sort_key(self) -> Tuple[int, int, float]:
        return (self.page_index, self.column_index, self.top)

    def as_cursor(self) -> Cursor:
        return Cursor(self.page_index, self.column_index, self.top)


@dataclass
class AnchorReconciliation:
    """Outcome of reconciling anchors with the stored cursor."""
    cursor: Optional[Cursor]  # cursor to start the batch from
    anchor: Optional[Anchor] = None  # target for the first item
    remaining: List[Anchor] = field(default_factory=list)  # left on the canvas
    removed: List[Anchor] = field(default_factory=list)  # conflicting, deleted
    overridden: bool = False  # cursor was moved to the anchor


def collect_anchors(host: LayoutHost, canvas_id: str,
                    layout: LayoutParameters) -> List[Anchor]:
    """
    Read anchor markers from the host, ordered by (page, column, top).

    Markers with zero or inverted bounds are ignored.
    """
    anchors = []
    for marker in host.find_anchors(canvas_id):
        if marker.bounds.is_degenerate:
            logger.debug("Ignoring degenerate anchor %s at %s", marker.handle, marker.bounds)
            continue
        anchors.append(Anchor(
            page_index=marker.page_index,
            column_index=layout.column_at(marker.bounds.left),
            top=marker.bounds.top,
            bounds=marker.bounds,
            handle=marker.handle,
        ))
    anchors.sort(key=lambda a: a.sort_key)
    return anchors


def reconcile_anchors(host: LayoutHost, canvas_id: str, anchors: List[Anchor],
                      cursor: Optional[Cursor]) -> AnchorReconciliation:
    """
    Choose the batch's anchor target and starting cursor.

    The first anchor is always the target. When it lies at or before the
    cursor (or there is no cursor yet) the cursor starts at the anchor.
    Anchors at the same position as the target, or overlapping it, are
    removed from the canvas straight away.
    """
    if not anchors:
        return AnchorReconciliation(cursor=cursor)

    first = anchors[0]
    anchor_cursor = first.as_cursor()
    overridden = cursor is None or not cursor.is_before(anchor_cursor)
    start = anchor_cursor if overridden else cursor

    removed = []
    remaining = []
    for other in anchors[1:]:
        same_spot = other.sort_key == first.sort_key
        collides = other.page_index == first.page_index and overlaps(other.bounds, first.bounds)
        if same_spot or collides:
            host.remove_anchor(canvas_id, other.handle)
            removed.append(other)
        else:
            remaining.append(other)

    if overridden:
        logger.info("Canvas %s: starting at anchor %s (page %d, column %d, y=%g)",
                    canvas_id, first.handle, first.page_index, first.column_index, first.top)
    if removed:
        logger.debug("Removed %d anchor(s) conflicting with %s", len(removed), first.handle)

    return AnchorReconciliation(
        cursor=start,
        anchor=first,
        remaining=remaining,
        removed=removed,
        overridden=overridden,
    )


def remove_displaced_anchors(host: LayoutHost, canvas_id: str, anchors: List[Anchor],
                             page_index: int, placed: Rect) -> List[Anchor]:
    """
    Remove anchors that a new placement has grown over.

    Returns:
        The anchors still on the canvas
    """
    kept = []
    for anchor in anchors:
        if anchor.page_index == page_index and overlaps(anchor.bounds, placed):
            try:
                host.remove_anchor(canvas_id, anchor.handle)
            except Exception as e:
                logger.warning("Canvas %s: could not remove covered anchor %s: %s",
                               canvas_id, anchor.handle, e)
                kept.append(anchor)
                continue
            logger.debug("Anchor %s covered by placement at %s, removed", anchor.handle, placed)
        else:
            kept.append(anchor)
    return kept
