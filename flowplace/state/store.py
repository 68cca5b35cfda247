"""
Canvas State Store

Remembers, per canvas, where the next placement should start and which
items the engine itself has placed. State lives only for the lifetime of the
process and is dropped when the host closes the canvas.

Stored values are immutable; update() swaps in a new value so callers
holding an earlier state never see it change.
"""

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Cursor:
    """Next-available placement position on a canvas."""
    page_index: int
    column_index: int
    bottom_y: float

    @property
    def position(self) -> Tuple[int, int]:
        """(page, column) used for forward-only ordering."""
        return (self.page_index, self.column_index)

    def is_before(self, other: "Cursor") -> bool:
        """Strictly earlier in reading order (page, column, Y)."""
        return ((self.page_index, self.column_index, self.bottom_y)
                < (other.page_index, other.column_index, other.bottom_y))


@dataclass(frozen=True)
class CanvasState:
    """Engine state for one canvas."""
    owned_item_names: FrozenSet[str] = field(default_factory=frozenset)
    cursor: Optional[Cursor] = None

    def with_owned(self, *names: str) -> "CanvasState":
        return replace(self, owned_item_names=self.owned_item_names | frozenset(names))

    def with_cursor(self, cursor: Optional[Cursor]) -> "CanvasState":
        return replace(self, cursor=cursor)


class CanvasStateStore:
    """
    Per-canvas engine state keyed by canvas identity.

    Provides:
    - Lazy creation of default state
    - Copy-on-write updates
    - Reconciliation against content observed on the canvas
    - Cleanup when canvases close
    """

    def __init__(self):
        self._states: Dict[str, CanvasState] = {}

    def __contains__(self, canvas_id: str) -> bool:
        return canvas_id in self._states

    def __len__(self) -> int:
        return len(self._states)

    def canvas_ids(self) -> List[str]:
        return list(self._states)

    def get(self, canvas_id: str) -> CanvasState:
        """Get the state for a canvas, creating the default if absent."""
        state = self._states.get(canvas_id)
        if state is None:
            state = CanvasState()
            self._states[canvas_id] = state
            logger.debug("Created state for canvas %s", canvas_id)
        return state

    def update(self, canvas_id: str,
               fn: Callable[[CanvasState], CanvasState]) -> CanvasState:
        """
        Replace a canvas's state with fn(current).

        Returns:
            The new state
        """
        new_state = fn(self.get(canvas_id))
        if not isinstance(new_state, CanvasState):
            raise TypeError(f"State update must return CanvasState, got {type(new_state).__name__}")
        self._states[canvas_id] = new_state
        return new_state

    def remove(self, canvas_id: str) -> bool:
        """Drop all state for a closed canvas."""
        if canvas_id in self._states:
            del self._states[canvas_id]
            logger.debug("Removed state for canvas %s", canvas_id)
            return True
        return False

    def reconcile_owned(self, canvas_id: str,
                        observed_names: Iterable[str]) -> FrozenSet[str]:
        """
        Forget owned items that are no longer on the canvas.

        Args:
            canvas_id: Canvas to reconcile
            observed_names: Owner names of all content currently on the canvas

        Returns:
            Names that were dropped
        """
        observed = set(observed_names)
        state = self.get(canvas_id)
        missing = frozenset(n for n in state.owned_item_names if n not in observed)
        if missing:
            self.update(canvas_id, lambda s: replace(
                s, owned_item_names=s.owned_item_names - missing))
            logger.info("Canvas %s: %d placed item(s) no longer present: %s",
                        canvas_id, len(missing), ", ".join(sorted(missing)))
        return missing

    def prune(self, open_canvas_ids: Iterable[str]) -> List[str]:
        """
        Drop state for canvases the host no longer has open.

        Returns:
            Identities that were removed
        """
        still_open = set(open_canvas_ids)
        closed = [cid for cid in self._states if cid not in still_open]
        for canvas_id in closed:
            self.remove(canvas_id)
        return closed
