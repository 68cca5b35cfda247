"""Placement engine: gap finding, planning, anchors and batch driving."""

from .config import PlacementConfig, get_preset, list_presets, load_config, config_from_env
from .gap_finder import find_gap, find_first_gap
from .anchors import Anchor, AnchorReconciliation, collect_anchors, reconcile_anchors
from .planner import PlacementPlanner, PlacementResult
from .driver import BatchDriver, BatchResult, ItemResult, run_batch, sort_batch

__all__ = [
    "PlacementConfig",
    "get_preset",
    "list_presets",
    "load_config",
    "config_from_env",
    "find_gap",
    "find_first_gap",
    "Anchor",
    "AnchorReconciliation",
    "collect_anchors",
    "reconcile_anchors",
    "PlacementPlanner",
    "PlacementResult",
    "BatchDriver",
    "BatchResult",
    "ItemResult",
    "run_batch",
    "sort_batch",
]
