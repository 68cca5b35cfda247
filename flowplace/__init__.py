"""
FlowPlace - Column-Flow Placement Engine

Places batches of rectangular content onto paginated, multi-column canvases
without overlapping existing content, flowing forward through columns and
pages and adding pages only when needed.
"""

__version__ = "0.1.0"
__author__ = "FlowPlace Team"

from .geometry import Rect, overlaps, contains
from .canvas.abstraction import BatchItem, ItemStatus, LayoutParameters
from .placement.driver import BatchDriver, BatchResult, run_batch
from .placement.config import PlacementConfig, get_preset
from .state.store import CanvasStateStore

__all__ = [
    "Rect",
    "overlaps",
    "contains",
    "BatchItem",
    "ItemStatus",
    "LayoutParameters",
    "BatchDriver",
    "BatchResult",
    "run_batch",
    "PlacementConfig",
    "get_preset",
    "CanvasStateStore",
]
