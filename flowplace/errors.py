"""
FlowPlace Error Types

Batch-level errors reject a whole batch before anything is placed.
Item-level errors are recorded on the failing item and the batch continues.
"""

from enum import Enum


class ErrorKind(Enum):
    """Failure categories reported on item and batch results."""
    BATCH_REJECTED = "batch_rejected"
    BATCH_TOO_LARGE = "batch_too_large"
    NO_ACTIVE_CANVAS = "no_active_canvas"
    INVALID_LAYOUT = "invalid_layout"
    ITEM_TOO_LARGE = "item_too_large"
    PLACEMENT_COMMIT_FAILED = "placement_commit_failed"
    HOST_MEASUREMENT_FAILURE = "host_measurement_failure"
    NO_SPACE = "no_space"


class FlowPlaceError(Exception):
    """Base class for all FlowPlace errors."""
    pass


class CanvasFileError(FlowPlaceError):
    """Raised when a canvas or item description file is malformed."""
    pass


class BatchRejectedError(FlowPlaceError):
    """A batch precondition failed; nothing was placed."""
    kind = ErrorKind.BATCH_REJECTED


class BatchTooLargeError(BatchRejectedError):
    """Raised when a batch exceeds the per-call item limit."""
    kind = ErrorKind.BATCH_TOO_LARGE

    def __init__(self, count: int, limit: int):
        self.count = count
        self.limit = limit
        super().__init__(
            f"You can only process up to {limit} items at a time "
            f"({count} given). Nothing was placed."
        )


class NoActiveCanvasError(BatchRejectedError):
    """Raised when no canvas is open to place into."""
    kind = ErrorKind.NO_ACTIVE_CANVAS

    def __init__(self, message: str = "No active canvas is open"):
        super().__init__(message)


class InvalidLayoutError(BatchRejectedError):
    """Raised when a canvas reports unusable layout parameters."""
    kind = ErrorKind.INVALID_LAYOUT


class ItemPlacementError(FlowPlaceError):
    """An error scoped to one item of a batch."""
    kind = ErrorKind.NO_SPACE


class ItemTooLargeError(ItemPlacementError):
    """Item footprint exceeds the usable area of a blank page."""
    kind = ErrorKind.ITEM_TOO_LARGE

    def __init__(self, message: str = "Item is too large to fit on any page at original size."):
        super().__init__(message)


class PlacementCommitError(ItemPlacementError):
    """The host could not commit a computed placement."""
    kind = ErrorKind.PLACEMENT_COMMIT_FAILED


class MeasurementError(ItemPlacementError):
    """The host could not measure an item's intrinsic size."""
    kind = ErrorKind.HOST_MEASUREMENT_FAILURE
