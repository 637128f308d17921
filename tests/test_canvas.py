"""
Tests for the CanvasSurface backends

Covers:
  - value types and DrawPath construction
  - RecordingCanvas bookkeeping
  - MatplotlibCanvas path conversion and PNG output
  - SvgCanvas y-flip and SVG output
"""

from __future__ import annotations

import math

import pytest
from matplotlib.path import Path as MplPath

from netflow_analysis.canvas import ArcTo, Color, DrawPath, Point, RecordingCanvas, TextStyle
from netflow_analysis.canvas_mpl import MatplotlibCanvas, arc_points, to_mpl_path
from netflow_analysis.canvas_svg import SvgCanvas
from netflow_analysis.chord_renderer import ChordDiagram


# ---------------------------------------------------------------------------
# Value types
# ---------------------------------------------------------------------------

class TestValueTypes:

    def test_color_conversions(self):
        color = Color(255, 0, 51, 255)
        assert color.to_rgba() == (1.0, 0.0, 0.2, 1.0)
        assert color.to_hex() == "#ff0033"

    def test_text_style_rejects_unknown_alignment(self):
        with pytest.raises(ValueError):
            TextStyle(color=Color(0, 0, 0), font_size=12, x_align="middle")
        with pytest.raises(ValueError):
            TextStyle(color=Color(0, 0, 0), font_size=12, y_align="baseline")

    def test_arc_end_points(self):
        arc = ArcTo(Point(0, 0), 2.0, 0.0, math.pi / 2)
        assert arc.start_point.x == pytest.approx(2.0)
        assert arc.end_point.x == pytest.approx(0.0, abs=1e-12)
        assert arc.end_point.y == pytest.approx(2.0)

    def test_draw_path_is_chainable(self):
        path = DrawPath().move(Point(0, 0)).cube_to(Point(1, 1), Point(2, 1), Point(3, 0))
        assert len(path.freeze()) == 2


# ---------------------------------------------------------------------------
# RecordingCanvas
# ---------------------------------------------------------------------------

class TestRecordingCanvas:

    def test_stroke_captures_current_state(self):
        canvas = RecordingCanvas(100, 50)
        canvas.set_line_width(2.5)
        canvas.set_color(Color(1, 2, 3, 4))
        canvas.stroke(DrawPath().move(Point(0, 0)))
        op = canvas.ops[0]
        assert canvas.size() == (100.0, 50.0)
        assert op.kind == "stroke"
        assert op.width == 2.5
        assert op.color == Color(1, 2, 3, 4)

    def test_recorded_path_is_a_snapshot(self):
        canvas = RecordingCanvas()
        path = DrawPath().move(Point(0, 0))
        canvas.stroke(path)
        path.move(Point(5, 5))
        assert len(canvas.ops[0].path) == 1

    def test_text_ops(self):
        canvas = RecordingCanvas()
        style = TextStyle(color=Color(0, 0, 0), font_size=9)
        canvas.fill_text(style, Point(1, 2), "hello")
        assert canvas.texts[0].text == "hello"
        assert canvas.strokes == []


# ---------------------------------------------------------------------------
# Matplotlib backend
# ---------------------------------------------------------------------------

class TestMatplotlibCanvas:

    def test_arc_points_cover_sweep(self):
        points = arc_points(Point(0, 0), 1.0, 0.0, math.pi)
        assert points[0] == pytest.approx([1.0, 0.0])
        assert points[-1] == pytest.approx([-1.0, 0.0], abs=1e-12)

    def test_cubic_path_codes(self):
        path = DrawPath().move(Point(0, 0)).cube_to(Point(1, 1), Point(2, 1), Point(3, 0))
        mpl_path = to_mpl_path(path)
        assert list(mpl_path.codes) == [MplPath.MOVETO] + [MplPath.CURVE4] * 3

    def test_arc_after_move_is_connected(self):
        path = DrawPath().move(Point(1, 0)).arc(Point(0, 0), 1.0, 0.0, math.pi / 2)
        mpl_path = to_mpl_path(path)
        assert mpl_path.codes[0] == MplPath.MOVETO
        assert set(mpl_path.codes[1:]) == {MplPath.LINETO}
        assert mpl_path.vertices[-1] == pytest.approx([0.0, 1.0], abs=1e-12)

    def test_cubic_without_current_point(self):
        path = DrawPath().cube_to(Point(1, 1), Point(2, 1), Point(3, 0))
        with pytest.raises(ValueError):
            to_mpl_path(path)

    def test_empty_path(self):
        assert to_mpl_path(DrawPath()) is None

    def test_size_in_points(self):
        canvas = MatplotlibCanvas(2, 3, dpi=50)
        try:
            assert canvas.size() == (144.0, 216.0)
        finally:
            canvas.close()

    def test_renders_png(self, tmp_path):
        canvas = MatplotlibCanvas(2, 2, dpi=50)
        ChordDiagram(labels=["A", "B", "C"], flow=[[0, 100, 0], [0, 0, 50], [0, 0, 0]]).render(canvas)
        assert len(canvas.ax.patches) == 5
        assert len(canvas.ax.texts) == 12
        output = canvas.save(tmp_path / "plots" / "flow.png")
        assert output.exists()
        assert output.read_bytes()[:8] == b"\x89PNG\r\n\x1a\n"


# ---------------------------------------------------------------------------
# SVG backend
# ---------------------------------------------------------------------------

class TestSvgCanvas:

    def test_flip(self):
        canvas = SvgCanvas(200, 100)
        assert canvas._flip(Point(10, 20)) == (10, 80)

    def test_renders_svg(self, tmp_path):
        canvas = SvgCanvas(300, 300)
        ChordDiagram(labels=["10.0.0.1", "10.0.0.2"], flow=[[0, 5], [3, 0]]).render(canvas)
        svg = canvas.as_svg()
        assert svg.count("<path") == 4
        assert svg.count("<text") == 8
        assert "10.0.0.2" in svg
        output = canvas.save(tmp_path / "flow.svg")
        assert "<svg" in output.read_text(encoding="utf-8")

    def test_full_turn_arc(self):
        canvas = SvgCanvas(100, 100, background=None)
        canvas.stroke(DrawPath().arc(Point(50, 50), 20, 0.0, 2 * math.pi))
        assert canvas.as_svg().count("<path") == 1

    def test_cubic_without_current_point(self):
        canvas = SvgCanvas(100, 100)
        with pytest.raises(ValueError):
            canvas.stroke(DrawPath().cube_to(Point(1, 1), Point(2, 1), Point(3, 0)))
