"""
Rectangle Geometry

Axis-aligned rectangles in canvas units (points) using the host's
(top, left, bottom, right) bounds order. Y grows downwards.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Tuple


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle. Well-formed when top < bottom and left < right."""
    top: float
    left: float
    bottom: float
    right: float

    @classmethod
    def from_size(cls, top: float, left: float, width: float, height: float) -> "Rect":
        """Build a rectangle from its top-left corner and size."""
        return cls(top=top, left=left, bottom=top + height, right=left + width)

    @classmethod
    def from_bounds(cls, bounds) -> "Rect":
        """Build from a (top, left, bottom, right) sequence."""
        top, left, bottom, right = bounds
        return cls(float(top), float(left), float(bottom), float(right))

    @property
    def width(self) -> float:
        return self.right - self.left

    @property
    def height(self) -> float:
        return self.bottom - self.top

    @property
    def is_degenerate(self) -> bool:
        """Zero-area or inverted rectangles are not valid geometry."""
        return not (self.top < self.bottom and self.left < self.right)

    def as_bounds(self) -> Tuple[float, float, float, float]:
        """Return (top, left, bottom, right)."""
        return (self.top, self.left, self.bottom, self.right)

    def overlaps(self, other: "Rect") -> bool:
        return overlaps(self, other)

    def contains(self, other: "Rect") -> bool:
        return contains(self, other)

    def translated(self, dy: float = 0.0, dx: float = 0.0) -> "Rect":
        """Return a copy shifted by (dy, dx)."""
        return Rect(self.top + dy, self.left + dx, self.bottom + dy, self.right + dx)

    def __str__(self) -> str:
        return f"[{self.top:g}, {self.left:g}, {self.bottom:g}, {self.right:g}]"


def overlaps(a: Rect, b: Rect) -> bool:
    """
    Check whether two rectangles overlap.

    Rectangles that only share an edge do not overlap.
    """
    return not (
        b.top >= a.bottom
        or b.bottom <= a.top
        or b.left >= a.right
        or b.right <= a.left
    )


def contains(a: Rect, b: Rect) -> bool:
    """Check whether b lies entirely within a (shared edges allowed)."""
    return (
        b.top >= a.top
        and b.left >= a.left
        and b.bottom <= a.bottom
        and b.right <= a.right
    )


def overlaps_any(candidate: Rect, others: Iterable[Rect]) -> bool:
    """Check a candidate against every rectangle in others."""
    return any(overlaps(candidate, r) for r in others)


def union_bottom(rects: Iterable[Rect]) -> Optional[float]:
    """Lowest bottom edge of a set of rectangles, or None when empty."""
    bottoms = [r.bottom for r in rects]
    return max(bottoms) if bottoms else None
