"""
Shared test fixtures for FlowPlace tests.

Provides canvas layouts, in-memory canvases and hosts, and state stores.
The standard layout is a 540x792 pt page with 36 pt margins and three
148 pt columns separated by 12 pt gutters.
"""

import pytest
from typing import List

from flowplace.canvas.abstraction import BatchItem, LayoutParameters
from flowplace.canvas.memory_adapter import MemoryCanvas, MemoryHost
from flowplace.geometry import Rect, overlaps
from flowplace.placement.config import PlacementConfig
from flowplace.state.store import CanvasStateStore


@pytest.fixture
def three_column_layout() -> LayoutParameters:
    """Letter-width page, three columns."""
    return LayoutParameters(
        page_width=540.0,
        page_height=792.0,
        top_margin=36.0,
        left_margin=36.0,
        bottom_margin=36.0,
        right_margin=36.0,
        column_count=3,
        column_gutter=12.0,
    )


@pytest.fixture
def short_page_layout() -> LayoutParameters:
    """Single column page with 400 pt of usable height."""
    return LayoutParameters(
        page_width=300.0,
        page_height=472.0,
        top_margin=36.0,
        left_margin=36.0,
        bottom_margin=36.0,
        right_margin=36.0,
        column_count=1,
        column_gutter=0.0,
    )


@pytest.fixture
def canvas(three_column_layout) -> MemoryCanvas:
    """An empty one-page three-column canvas."""
    return MemoryCanvas(identity="brochure", layout=three_column_layout)


@pytest.fixture
def host(canvas) -> MemoryHost:
    """A host with the three-column canvas open and active."""
    return MemoryHost([canvas])


@pytest.fixture
def store() -> CanvasStateStore:
    return CanvasStateStore()


@pytest.fixture
def config() -> PlacementConfig:
    return PlacementConfig()


def make_items(*names: str, width: float = 148.0, height: float = 100.0) -> List[BatchItem]:
    """Items of one size, named as given."""
    return [BatchItem(name=name, width=width, height=height) for name in names]


def assert_no_overlaps(canvas: MemoryCanvas):
    """Fail if any two rectangles on any page overlap."""
    for page_index, page in enumerate(canvas.pages):
        rects = [r.bounds for r in page]
        for i, a in enumerate(rects):
            for b in rects[i + 1:]:
                assert not overlaps(a, b), f"page {page_index}: {a} overlaps {b}"
