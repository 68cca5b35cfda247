"""
Tests for canvas description files.
"""

import pytest

from flowplace.canvas.canvas_file import (
    canvas_from_dict,
    load_canvas,
    load_items,
    save_canvas,
)
from flowplace.errors import CanvasFileError
from flowplace.geometry import Rect


CANVAS_YAML = """\
canvas:
  id: brochure
  name: Spring Brochure
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
        - bounds: [36, 36, 136, 184]
          owner: cover.pdf
        - bounds: [400, 196, 500, 344]
    - rects: []
  anchors:
    - page: 0
      bounds: [200, 356, 210, 366]
"""


@pytest.fixture
def canvas_path(tmp_path):
    path = tmp_path / "brochure.yaml"
    path.write_text(CANVAS_YAML)
    return path


class TestLoadCanvas:

    def test_load(self, canvas_path):
        canvas = load_canvas(canvas_path)

        assert canvas.identity == "brochure"
        assert canvas.name == "Spring Brochure"
        assert canvas.layout.column_count == 3
        assert len(canvas.pages) == 2
        assert canvas.pages[0][0].bounds == Rect(36, 36, 136, 184)
        assert canvas.pages[0][0].owner_name == "cover.pdf"
        assert canvas.pages[0][1].owner_name is None
        assert canvas.anchors[0].handle == "anchor-1"

    def test_save_and_reload(self, canvas_path, tmp_path):
        canvas = load_canvas(canvas_path)
        canvas.add_rect(1, Rect(36, 36, 100, 184), owner_name="new.pdf")

        out = save_canvas(canvas, tmp_path / "out.yaml")
        reloaded = load_canvas(out)

        assert reloaded.pages == canvas.pages
        assert reloaded.anchors == canvas.anchors
        assert reloaded.layout == canvas.layout

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_canvas(tmp_path / "missing.yaml")

    def test_missing_id(self):
        with pytest.raises(CanvasFileError, match="id"):
            canvas_from_dict({"layout": {"page_width": 100, "page_height": 100}})

    def test_bad_bounds(self):
        data = {
            "id": "x",
            "layout": {"page_width": 100, "page_height": 100},
            "pages": [{"rects": [{"bounds": [1, 2, 3]}]}],
        }
        with pytest.raises(CanvasFileError, match="page 0 rect 0"):
            canvas_from_dict(data)

    def test_unset_margins_default_to_zero(self):
        canvas = canvas_from_dict({
            "id": "plain",
            "layout": {"page_width": 100, "page_height": 200, "top_margin": None},
        })
        assert canvas.layout.top_margin == 0.0
        assert canvas.layout.column_count == 1

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("canvas: [unclosed\n")
        with pytest.raises(CanvasFileError):
            load_canvas(path)


class TestLoadItems:

    def test_mapping_with_items(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text(
            "items:\n"
            "  - name: chart.png\n"
            "    width: 148\n"
            "    height: 100\n"
            "    size: 20480\n"
            "  - photo.jpg\n"
        )

        items = load_items(path)

        assert [i.name for i in items] == ["chart.png", "photo.jpg"]
        assert items[0].is_measured
        assert items[0].size == 20480
        assert not items[1].is_measured

    def test_bare_list(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("- a.pdf\n- b.pdf\n")
        assert len(load_items(path)) == 2

    def test_entry_without_name(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("- width: 10\n")
        with pytest.raises(CanvasFileError, match="item 0"):
            load_items(path)

    def test_not_a_list(self, tmp_path):
        path = tmp_path / "items.yaml"
        path.write_text("items: 3\n")
        with pytest.raises(CanvasFileError):
            load_items(path)
