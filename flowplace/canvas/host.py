"""
Layout Host Interface

The narrow set of capabilities the placement engine needs from a document
host. One adapter is written per host; the engine never touches host objects
directly.

Every method that reads page content is called again on each placement
attempt, so adapters must report live state rather than a snapshot.
"""

from typing import List, Optional, Tuple

from ..geometry import Rect
from .abstraction import AnchorMarker, BatchItem, LayoutParameters, PlacedRect


class LayoutHost:
    """Base class for document host adapters."""

    def active_canvas(self) -> Optional[str]:
        """
        Identity of the canvas currently in focus.

        Returns:
            Canvas identity, or None when no canvas is open
        """
        raise NotImplementedError

    def list_open_canvases(self) -> List[str]:
        """Identities of every canvas currently open in the host."""
        raise NotImplementedError

    def active_page_index(self, canvas_id: str) -> int:
        """Page the user is looking at; new canvases start placing here."""
        return 0

    def measure(self, canvas_id: str, item: BatchItem) -> Tuple[float, float]:
        """
        Intrinsic (width, height) of an item rendered at native scale.

        Raises:
            MeasurementError: If the host cannot render the item
        """
        raise NotImplementedError

    def layout_parameters(self, canvas_id: str) -> LayoutParameters:
        """Page size, margins and column grid of a canvas."""
        raise NotImplementedError

    def page_count(self, canvas_id: str) -> int:
        raise NotImplementedError

    def existing_rects(self, canvas_id: str, page_index: int) -> List[PlacedRect]:
        """All content currently on a page, including content from other sources."""
        raise NotImplementedError

    def place_rect(self, canvas_id: str, page_index: int, bounds: Rect,
                   item: BatchItem) -> PlacedRect:
        """
        Commit an item at the given bounds.

        Raises:
            PlacementCommitError: If the content could not be placed
        """
        raise NotImplementedError

    def add_page(self, canvas_id: str) -> int:
        """Append a blank page and return its index."""
        raise NotImplementedError

    def remove_page(self, canvas_id: str, page_index: int):
        raise NotImplementedError

    def find_anchors(self, canvas_id: str) -> List[AnchorMarker]:
        """Markers placed by the user to request the next insertion point."""
        raise NotImplementedError

    def remove_anchor(self, canvas_id: str, handle: str):
        raise NotImplementedError
