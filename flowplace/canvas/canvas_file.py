"""
Canvas Description Files

Reads and writes in-memory canvases and item lists as YAML, so batches can
be run from the command line.

Canvas format:
```yaml
canvas:
  id: brochure
  name: Spring Brochure
  active_page: 0
  layout:
    page_width: 540
    page_height: 792
    top_margin: 36
    left_margin: 36
    bottom_margin: 36
    right_margin: 36
    column_count: 3
    column_gutter: 12
  pages:
    - rects:
        - bounds: [36, 36, 136, 184]   # top, left, bottom, right
          owner: cover.pdf
  anchors:
    - page: 0
      bounds: [200, 196, 210, 206]
      handle: anchor-1
```

Items format:
```yaml
items:
  - name: chart.png
    width: 148
    height: 100
    size: 20480
```
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from ..errors import CanvasFileError
from ..geometry import Rect
from .abstraction import AnchorMarker, BatchItem, LayoutParameters, PlacedRect
from .memory_adapter import MemoryCanvas

logger = logging.getLogger(__name__)


def _parse_bounds(value: Any, where: str) -> Rect:
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise CanvasFileError(f"{where}: bounds must be [top, left, bottom, right]")
    try:
        return Rect.from_bounds(value)
    except (TypeError, ValueError) as e:
        raise CanvasFileError(f"{where}: bounds must be numbers ({e})") from e


def canvas_from_dict(data: Dict[str, Any]) -> MemoryCanvas:
    """
    Build a MemoryCanvas from a parsed canvas document.

    Raises:
        CanvasFileError: If required sections are missing or malformed
    """
    if not isinstance(data, dict):
        raise CanvasFileError("Canvas document must be a mapping")
    if isinstance(data.get("canvas"), dict):
        data = data["canvas"]

    identity = data.get("id")
    if not identity:
        raise CanvasFileError("Canvas document needs an 'id'")
    if not isinstance(data.get("layout"), dict):
        raise CanvasFileError("Canvas document needs a 'layout' section")

    try:
        layout = LayoutParameters.from_dict(data["layout"])
    except (KeyError, TypeError, ValueError) as e:
        raise CanvasFileError(f"Invalid layout: {e}") from e

    pages: List[List[PlacedRect]] = []
    for page_number, page in enumerate(data.get("pages") or []):
        rects = []
        entries = page.get("rects") if isinstance(page, dict) else page
        for rect_number, entry in enumerate(entries or []):
            where = f"page {page_number} rect {rect_number}"
            if not isinstance(entry, dict):
                raise CanvasFileError(f"{where}: expected a mapping")
            rects.append(PlacedRect(
                bounds=_parse_bounds(entry.get("bounds"), where),
                owner_name=entry.get("owner"),
            ))
        pages.append(rects)

    anchors = []
    for number, entry in enumerate(data.get("anchors") or []):
        where = f"anchor {number}"
        if not isinstance(entry, dict):
            raise CanvasFileError(f"{where}: expected a mapping")
        anchors.append(AnchorMarker(
            page_index=int(entry.get("page", 0)),
            bounds=_parse_bounds(entry.get("bounds"), where),
            handle=str(entry.get("handle") or f"anchor-{number + 1}"),
        ))

    return MemoryCanvas(
        identity=str(identity),
        layout=layout,
        pages=pages,
        anchors=anchors,
        active_page=int(data.get("active_page", 0)),
        name=str(data.get("name") or ""),
    )


def canvas_to_dict(canvas: MemoryCanvas) -> Dict[str, Any]:
    """Convert a canvas to a plain mapping for serialization."""
    pages = []
    for page in canvas.pages:
        rects = []
        for placed in page:
            entry = {"bounds": [round(v, 4) for v in placed.bounds.as_bounds()]}
            if placed.owner_name:
                entry["owner"] = placed.owner_name
            rects.append(entry)
        pages.append({"rects": rects})

    return {
        "canvas": {
            "id": canvas.identity,
            "name": canvas.name,
            "active_page": canvas.active_page,
            "layout": canvas.layout.to_dict(),
            "pages": pages,
            "anchors": [
                {
                    "page": a.page_index,
                    "bounds": [round(v, 4) for v in a.bounds.as_bounds()],
                    "handle": a.handle,
                }
                for a in canvas.anchors
            ],
        }
    }


def _read_yaml(path: Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    try:
        return yaml.safe_load(path.read_text())
    except yaml.YAMLError as e:
        raise CanvasFileError(f"Cannot parse {path}: {e}") from e


def load_canvas(path: Union[str, Path]) -> MemoryCanvas:
    """Load a canvas description file."""
    path = Path(path)
    canvas = canvas_from_dict(_read_yaml(path))
    logger.debug("Loaded canvas %s from %s (%d pages)", canvas.identity, path, len(canvas.pages))
    return canvas


def save_canvas(canvas: MemoryCanvas, path: Union[str, Path]) -> Path:
    """Write a canvas description file."""
    path = Path(path)
    content = yaml.dump(
        canvas_to_dict(canvas),
        default_flow_style=None,
        sort_keys=False,
        allow_unicode=True,
    )
    path.write_text(content)
    logger.info("Saved canvas %s to %s", canvas.identity, path)
    return path


def items_from_list(entries: List[Any]) -> List[BatchItem]:
    """Build batch items from parsed entries (mappings or bare names)."""
    items = []
    for number, entry in enumerate(entries):
        if isinstance(entry, str):
            items.append(BatchItem(name=entry))
            continue
        if not isinstance(entry, dict) or not entry.get("name"):
            raise CanvasFileError(f"item {number}: expected a mapping with a 'name'")
        try:
            items.append(BatchItem(
                name=str(entry["name"]),
                identifier=str(entry.get("id") or ""),
                size=int(entry["size"]) if entry.get("size") is not None else None,
                width=float(entry["width"]) if entry.get("width") is not None else None,
                height=float(entry["height"]) if entry.get("height") is not None else None,
                source=entry.get("source"),
            ))
        except (TypeError, ValueError) as e:
            raise CanvasFileError(f"item {number}: {e}") from e
    return items


def load_items(path: Union[str, Path]) -> List[BatchItem]:
    """Load an item list file (a list, or a mapping with an 'items' list)."""
    path = Path(path)
    data = _read_yaml(path)
    if isinstance(data, dict):
        data = data.get("items")
    if not isinstance(data, list):
        raise CanvasFileError(f"{path}: expected a list of items")
    return items_from_list(data)
