"""
Canvas Abstraction Layer

Host-independent description of a paginated, column-structured canvas.
The placement engine works only with these types so that any document host
(a desktop publishing application, an in-memory model, a file format) can be
plugged in behind the LayoutHost interface.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
import math

from ..errors import InvalidLayoutError
from ..geometry import Rect

# Tolerance for floating point comparisons on column edges (points)
EPSILON = 1e-6


@dataclass(frozen=True)
class LayoutParameters:
    """Page size, margins and column grid of a canvas (points)."""
    page_width: float
    page_height: float
    top_margin: float = 0.0
    left_margin: float = 0.0
    bottom_margin: float = 0.0
    right_margin: float = 0.0
    column_count: int = 1
    column_gutter: float = 0.0

    @property
    def usable_width(self) -> float:
        return self.page_width - self.left_margin - self.right_margin

    @property
    def usable_height(self) -> float:
        return self.page_height - self.top_margin - self.bottom_margin

    @property
    def usable_bottom(self) -> float:
        """Lowest Y content may reach."""
        return self.page_height - self.bottom_margin

    @property
    def usable_right(self) -> float:
        """Rightmost X content may reach."""
        return self.page_width - self.right_margin

    @property
    def column_width(self) -> float:
        return (self.usable_width - self.column_gutter * (self.column_count - 1)) / self.column_count

    def validate(self) -> "LayoutParameters":
        """
        Check that the grid can hold content.

        Raises:
            InvalidLayoutError: If the column grid or usable area is unusable
        """
        if self.column_count < 1:
            raise InvalidLayoutError(f"Column count must be at least 1 (got {self.column_count})")
        if self.column_gutter < 0:
            raise InvalidLayoutError(f"Column gutter must not be negative (got {self.column_gutter})")
        if self.usable_width <= 0 or self.usable_height <= 0:
            raise InvalidLayoutError(
                f"Margins leave no usable area on a {self.page_width:g}x{self.page_height:g} page"
            )
        if self.column_width <= 0:
            raise InvalidLayoutError(
                f"{self.column_count} columns with gutter {self.column_gutter:g} "
                f"do not fit in usable width {self.usable_width:g}"
            )
        return self

    def column_left(self, column_index: int) -> float:
        """Left edge of a column."""
        return self.left_margin + column_index * (self.column_width + self.column_gutter)

    def column_right(self, column_index: int) -> float:
        """Right edge of a column."""
        return self.column_left(column_index) + self.column_width

    def columns_needed(self, width: float) -> int:
        """Number of columns (with the gutters between them) an item of this width spans."""
        if width <= 0:
            return 1
        pitch = self.column_width + self.column_gutter
        return max(1, math.ceil((width + self.column_gutter) / pitch - EPSILON))

    def column_span(self, column_index: int, width: float) -> Tuple[float, float]:
        """
        Horizontal span covered by an item starting at a column.

        Items wider than one column straddle the following columns and
        their gutters.
        """
        last = column_index + self.columns_needed(width) - 1
        return (self.column_left(column_index), self.column_right(last))

    def column_at(self, x: float) -> int:
        """Column index containing horizontal position x (clamped to the grid)."""
        pitch = self.column_width + self.column_gutter
        index = math.floor((x - self.left_margin + EPSILON) / pitch)
        return min(max(index, 0), self.column_count - 1)

    def fits_blank_page(self, width: float, height: float) -> bool:
        """Check whether an item fits the usable area of an empty page."""
        return (height <= self.usable_height + EPSILON
                and width <= self.usable_width + EPSILON)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page_width": self.page_width,
            "page_height": self.page_height,
            "top_margin": self.top_margin,
            "left_margin": self.left_margin,
            "bottom_margin": self.bottom_margin,
            "right_margin": self.right_margin,
            "column_count": self.column_count,
            "column_gutter": self.column_gutter,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LayoutParameters":
        # Hosts commonly leave unset margins and grids empty
        return cls(
            page_width=float(data["page_width"]),
            page_height=float(data["page_height"]),
            top_margin=float(data.get("top_margin") or 0.0),
            left_margin=float(data.get("left_margin") or 0.0),
            bottom_margin=float(data.get("bottom_margin") or 0.0),
            right_margin=float(data.get("right_margin") or 0.0),
            column_count=int(data.get("column_count") or 1),
            column_gutter=float(data.get("column_gutter") or 0.0),
        )


def describe_layout(layout: LayoutParameters, name: str = "") -> List[Tuple[str, str]]:
    """
    Summarize a canvas grid as (label, value) rows for display.

    Column width is rounded to 2 decimals and the gutter to 5.
    """
    rows = []
    if name:
        rows.append(("Name", name))
    rows.extend([
        ("Page size", f"{layout.page_width:g} x {layout.page_height:g} pt"),
        ("Margins", (f"top {layout.top_margin:g}, left {layout.left_margin:g}, "
                     f"bottom {layout.bottom_margin:g}, right {layout.right_margin:g} pt")),
        ("Columns", str(layout.column_count)),
        ("Column width", f"{round(layout.column_width, 2):g} pt"),
        ("Column gutter", f"{round(layout.column_gutter, 5):g} pt"),
    ])
    return rows


@dataclass(frozen=True)
class PlacedRect:
    """Content found on a page, optionally tagged with the item it shows."""
    bounds: Rect
    owner_name: Optional[str] = None


@dataclass(frozen=True)
class AnchorMarker:
    """A host-side "insert here next" marker as reported by the host."""
    page_index: int
    bounds: Rect
    handle: str


class ItemStatus(Enum):
    """Lifecycle of one batch item."""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class BatchItem:
    """
    One piece of content to place.

    width/height are filled by the host's measure call when not known up
    front. status and error are updated in place as the batch progresses.
    """
    name: str
    identifier: str = ""
    size: Optional[int] = None  # Source size in bytes, display only
    width: Optional[float] = None
    height: Optional[float] = None
    status: ItemStatus = ItemStatus.PENDING
    error: Optional[str] = None
    source: Optional[str] = None  # Host-specific reference (path, URI)

    def __post_init__(self):
        if not self.identifier:
            self.identifier = self.name

    @property
    def is_measured(self) -> bool:
        return self.width is not None and self.height is not None

    def mark_success(self):
        self.status = ItemStatus.SUCCESS
        self.error = None

    def mark_failed(self, message: str):
        self.status = ItemStatus.FAILED
        self.error = message
