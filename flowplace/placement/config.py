"""
Placement Configuration

Tunable limits of the placement engine, named presets, and loading from
YAML files or the environment.

Environment:
    FLOWPLACE_PRESET: Name of a preset to start from (default: "default")
    FLOWPLACE_CONFIG: Path to a YAML file whose keys override the preset
"""

import logging
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlacementConfig:
    """Configuration for batch placement."""
    # Batch limits
    max_batch_size: int = 50  # larger batches are rejected outright
    sort_items: bool = True  # process items in case-insensitive name order

    # Column fullness: advance to the next column when less than this
    # much vertical space (points) remains below owned content
    column_full_threshold: float = 50.0

    # Gap probing
    probe_step: float = 5.0  # points between candidate tops inside one gap
    probe_count: int = 1  # candidates tried per gap

    # Page creation
    allow_new_pages: bool = True

    def __post_init__(self):
        if self.max_batch_size < 1:
            raise ValueError(f"max_batch_size must be at least 1 (got {self.max_batch_size})")
        if self.column_full_threshold < 0:
            raise ValueError("column_full_threshold must not be negative")
        if self.probe_count < 1:
            raise ValueError(f"probe_count must be at least 1 (got {self.probe_count})")
        if self.probe_step <= 0:
            raise ValueError("probe_step must be positive")

    @classmethod
    def from_dict(cls, data: Dict[str, Any],
                  base: Optional["PlacementConfig"] = None) -> "PlacementConfig":
        """
        Build a config from a mapping, starting from base (or the defaults).

        Raises:
            ValueError: On unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown placement config keys: {', '.join(unknown)}")
        return replace(base or cls(), **data)

    def to_dict(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT = PlacementConfig()

# Fill columns more tightly before moving on, never grow the document
STRICT = PlacementConfig(
    column_full_threshold=20.0,
    probe_count=2,
    allow_new_pages=False,
)

NO_NEW_PAGES = PlacementConfig(allow_new_pages=False)

PRESETS: Dict[str, PlacementConfig] = {
    "default": DEFAULT,
    "strict": STRICT,
    "no_new_pages": NO_NEW_PAGES,
}


def get_preset(name: str) -> PlacementConfig:
    """
    Get a placement preset by name.

    Raises:
        ValueError: If the preset name is not found
    """
    if name not in PRESETS:
        available = ", ".join(sorted(PRESETS.keys()))
        raise ValueError(f"Unknown placement preset '{name}'. Available: {available}")
    return PRESETS[name]


def list_presets() -> List[str]:
    return sorted(PRESETS.keys())


def load_config(path: Union[str, Path],
                base: Optional[PlacementConfig] = None) -> PlacementConfig:
    """
    Load placement settings from a YAML file.

    The file may hold the settings at the top level or under a
    ``placement`` key, and may name a ``preset`` to start from.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Placement config file not found: {path}")

    with open(path, 'r') as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Placement config must be a mapping: {path}")
    if isinstance(data.get("placement"), dict):
        data = data["placement"]

    data = dict(data)
    preset = data.pop("preset", None)
    if preset:
        base = get_preset(preset)

    config = PlacementConfig.from_dict(data, base=base)
    logger.debug("Loaded placement config from %s: %s", path, config)
    return config


def config_from_env(environ: Optional[Dict[str, str]] = None) -> PlacementConfig:
    """Resolve the config from FLOWPLACE_PRESET and FLOWPLACE_CONFIG."""
    env = os.environ if environ is None else environ

    preset_name = env.get("FLOWPLACE_PRESET", "").strip().lower()
    config = get_preset(preset_name) if preset_name else DEFAULT

    config_path = env.get("FLOWPLACE_CONFIG", "").strip()
    if config_path:
        config = load_config(config_path, base=config)

    return config
