"""
In-Memory Host Adapter

A LayoutHost over plain Python documents. Used by the command line tool
(documents loaded from YAML) and as the reference host for tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..errors import MeasurementError, PlacementCommitError
from ..geometry import Rect, contains, overlaps
from .abstraction import AnchorMarker, BatchItem, LayoutParameters, PlacedRect
from .host import LayoutHost

logger = logging.getLogger(__name__)


@dataclass
class MemoryCanvas:
    """A paginated document held in memory."""
    identity: str
    layout: LayoutParameters
    pages: List[List[PlacedRect]] = field(default_factory=list)
    anchors: List[AnchorMarker] = field(default_factory=list)
    active_page: int = 0
    name: str = ""

    def __post_init__(self):
        if not self.name:
            self.name = self.identity
        if not self.pages:
            self.pages.append([])

    def page_bounds(self) -> Rect:
        return Rect(0.0, 0.0, self.layout.page_height, self.layout.page_width)

    def add_rect(self, page_index: int, bounds: Rect,
                 owner_name: Optional[str] = None) -> PlacedRect:
        """Add content to a page, creating pages up to page_index as needed."""
        while len(self.pages) <= page_index:
            self.pages.append([])
        placed = PlacedRect(bounds=bounds, owner_name=owner_name)
        self.pages[page_index].append(placed)
        return placed

    def remove_owner(self, owner_name: str) -> int:
        """Delete every rectangle showing the named item. Returns count removed."""
        removed = 0
        for page in self.pages:
            keep = [r for r in page if r.owner_name != owner_name]
            removed += len(page) - len(keep)
            page[:] = keep
        return removed

    def add_anchor(self, page_index: int, bounds: Rect,
                   handle: Optional[str] = None) -> AnchorMarker:
        marker = AnchorMarker(
            page_index=page_index,
            bounds=bounds,
            handle=handle or f"anchor-{len(self.anchors) + 1}",
        )
        self.anchors.append(marker)
        return marker

    def all_rects(self) -> List[Tuple[int, PlacedRect]]:
        """Every rectangle on every page as (page_index, rect)."""
        return [(i, r) for i, page in enumerate(self.pages) for r in page]

    def owner_names(self) -> List[str]:
        return [r.owner_name for _, r in self.all_rects() if r.owner_name]


class MemoryHost(LayoutHost):
    """
    Host adapter over MemoryCanvas documents.

    Items are measured from their own width/height when set, otherwise from
    the sizes table (keyed by item name).
    """

    def __init__(self, canvases: Optional[List[MemoryCanvas]] = None,
                 sizes: Optional[Dict[str, Tuple[float, float]]] = None):
        self.canvases: Dict[str, MemoryCanvas] = {}
        self.active_id: Optional[str] = None
        self.sizes: Dict[str, Tuple[float, float]] = dict(sizes or {})
        for canvas in canvases or []:
            self.open_canvas(canvas)

    # -- document lifecycle ------------------------------------------------

    def open_canvas(self, canvas: MemoryCanvas, activate: bool = True) -> MemoryCanvas:
        self.canvases[canvas.identity] = canvas
        if activate or self.active_id is None:
            self.active_id = canvas.identity
        return canvas

    def close_canvas(self, canvas_id: str):
        self.canvases.pop(canvas_id, None)
        if self.active_id == canvas_id:
            self.active_id = next(iter(self.canvases), None)

    def activate(self, canvas_id: str):
        if canvas_id not in self.canvases:
            raise KeyError(f"Canvas not open: {canvas_id}")
        self.active_id = canvas_id

    def canvas(self, canvas_id: str) -> MemoryCanvas:
        try:
            return self.canvases[canvas_id]
        except KeyError:
            raise KeyError(f"Canvas not open: {canvas_id}") from None

    # -- LayoutHost --------------------------------------------------------

    def active_canvas(self) -> Optional[str]:
        return self.active_id

    def list_open_canvases(self) -> List[str]:
        return list(self.canvases)

    def active_page_index(self, canvas_id: str) -> int:
        canvas = self.canvas(canvas_id)
        return min(max(canvas.active_page, 0), len(canvas.pages) - 1)

    def measure(self, canvas_id: str, item: BatchItem) -> Tuple[float, float]:
        if item.is_measured:
            return (float(item.width), float(item.height))
        if item.name in self.sizes:
            width, height = self.sizes[item.name]
            return (float(width), float(height))
        raise MeasurementError(f"Cannot determine the size of {item.name}")

    def layout_parameters(self, canvas_id: str) -> LayoutParameters:
        return self.canvas(canvas_id).layout

    def page_count(self, canvas_id: str) -> int:
        return len(self.canvas(canvas_id).pages)

    def existing_rects(self, canvas_id: str, page_index: int) -> List[PlacedRect]:
        return list(self.canvas(canvas_id).pages[page_index])

    def place_rect(self, canvas_id: str, page_index: int, bounds: Rect,
                   item: BatchItem) -> PlacedRect:
        canvas = self.canvas(canvas_id)
        if not 0 <= page_index < len(canvas.pages):
            raise PlacementCommitError(f"Page {page_index} does not exist")
        if bounds.is_degenerate:
            raise PlacementCommitError(f"Cannot place {item.name} into empty frame {bounds}")
        if not contains(canvas.page_bounds(), bounds):
            raise PlacementCommitError(f"Frame {bounds} for {item.name} lies outside the page")
        for existing in canvas.pages[page_index]:
            if overlaps(bounds, existing.bounds):
                raise PlacementCommitError(
                    f"Frame {bounds} for {item.name} overlaps {existing.bounds}"
                )
        logger.debug("Placed %s on %s page %d at %s", item.name, canvas_id, page_index, bounds)
        return canvas.add_rect(page_index, bounds, owner_name=item.name)

    def add_page(self, canvas_id: str) -> int:
        canvas = self.canvas(canvas_id)
        canvas.pages.append([])
        return len(canvas.pages) - 1

    def remove_page(self, canvas_id: str, page_index: int):
        canvas = self.canvas(canvas_id)
        del canvas.pages[page_index]
        # Markers on later pages move up with their pages
        canvas.anchors = [
            AnchorMarker(a.page_index - 1 if a.page_index > page_index else a.page_index,
                         a.bounds, a.handle)
            for a in canvas.anchors
            if a.page_index != page_index
        ]

    def find_anchors(self, canvas_id: str) -> List[AnchorMarker]:
        return list(self.canvas(canvas_id).anchors)

    def remove_anchor(self, canvas_id: str, handle: str):
        canvas = self.canvas(canvas_id)
        canvas.anchors = [a for a in canvas.anchors if a.handle != handle]
