#!/usr/bin/env python
"""
Render a network flow chord diagram to PNG or SVG.

Usage:
    from flow_renderer import render_flow_diagram
    render_flow_diagram(labels, matrix, Path("output/network_flow.png"))
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

try:
    from .canvas import CanvasSurface, Color, Point, TextStyle
    from .canvas_mpl import POINTS_PER_INCH, MatplotlibCanvas
    from .canvas_svg import SvgCanvas
    from .chord_renderer import ChordDiagram, ColorMapper, ColormapColorMapper, IndexScaledColorMapper
except ImportError:
    from canvas import CanvasSurface, Color, Point, TextStyle
    from canvas_mpl import POINTS_PER_INCH, MatplotlibCanvas
    from canvas_svg import SvgCanvas
    from chord_renderer import ChordDiagram, ColorMapper, ColormapColorMapper, IndexScaledColorMapper

logger = logging.getLogger(__name__)

TITLE_FONT_SIZE = 16.0
TITLE_COLOR = Color(0, 0, 0, 255)
TITLE_MARGIN = 24.0


def build_color_mapper(policy: str, node_count: int, colormap_name: str = "tab20") -> ColorMapper:
    if policy == "index":
        return IndexScaledColorMapper()
    if policy == "colormap":
        return ColormapColorMapper(name=colormap_name, node_count=node_count)
    raise ValueError(f"Unknown color policy: {policy}")


def make_canvas(output_format: str, size_inches: float, dpi: int) -> CanvasSurface:
    if output_format == "png":
        return MatplotlibCanvas(size_inches, size_inches, dpi=dpi)
    if output_format == "svg":
        side = size_inches * POINTS_PER_INCH
        return SvgCanvas(side, side)
    raise ValueError(f"Unsupported output format: {output_format}")


def draw_title(canvas: CanvasSurface, title: str) -> None:
    if not title:
        return
    width, height = canvas.size()
    style = TextStyle(color=TITLE_COLOR, font_size=TITLE_FONT_SIZE, x_align="center", y_align="top")
    canvas.fill_text(style, Point(width / 2, height - TITLE_MARGIN), title)


def render_flow_diagram(
    labels: Sequence[str],
    matrix,
    output_path: Path,
    output_format: str = "png",
    size_inches: float = 24.0,
    dpi: int = 100,
    title: str = "Network Traffic Flow Between IPs",
    color_policy: str = "index",
    colormap_name: str = "tab20",
    self_flow: str = "skip",
) -> Path:
    """
    Build the diagram, draw it with a title and save it.

    Input problems raise DiagramInputError before any canvas is created.

    Returns:
        Path of the written file.
    """
    diagram = ChordDiagram(
        labels=labels,
        flow=matrix,
        color_fn=build_color_mapper(color_policy, len(labels), colormap_name),
        self_flow=self_flow,
    )
    logger.info("Rendering %d nodes to %s (max weight %.0f bytes)",
                diagram.node_count, output_format, diagram.max_weight)

    canvas = make_canvas(output_format, size_inches, dpi)
    try:
        draw_title(canvas, title)
        diagram.render(canvas)
    except Exception:
        if isinstance(canvas, MatplotlibCanvas):
            canvas.close()
        raise

    output_path = canvas.save(Path(output_path))
    logger.info("Flow diagram saved to: %s", output_path)
    return output_path
