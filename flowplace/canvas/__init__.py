"""Canvas abstraction layer and host adapters."""

from .abstraction import (
    AnchorMarker,
    BatchItem,
    ItemStatus,
    LayoutParameters,
    PlacedRect,
    describe_layout,
)
from .host import LayoutHost
from .memory_adapter import MemoryCanvas, MemoryHost
from .canvas_file import (
    canvas_from_dict,
    canvas_to_dict,
    load_canvas,
    load_items,
    save_canvas,
)

__all__ = [
    # Core abstractions
    "AnchorMarker",
    "BatchItem",
    "ItemStatus",
    "LayoutParameters",
    "PlacedRect",
    "describe_layout",
    # Host interface
    "LayoutHost",
    "MemoryCanvas",
    "MemoryHost",
    # Description files
    "canvas_from_dict",
    "canvas_to_dict",
    "load_canvas",
    "load_items",
    "save_canvas",
]
