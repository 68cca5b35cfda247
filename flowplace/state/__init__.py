"""Per-canvas engine state."""

from .store import CanvasState, CanvasStateStore, Cursor

__all__ = ["CanvasState", "CanvasStateStore", "Cursor"]
