"""Matplotlib raster backend for CanvasSurface."""
from __future__ import annotations

import math
from pathlib import Path
from typing import List, Optional, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath

try:
    from .canvas import ArcTo, CanvasSurface, Color, CubeTo, DrawPath, MoveTo, Point, TextStyle
except ImportError:
    from canvas import ArcTo, CanvasSurface, Color, CubeTo, DrawPath, MoveTo, Point, TextStyle

POINTS_PER_INCH = 72.0
ARC_POINTS_PER_TURN = 128


def arc_points(center: Point, radius: float, start: float, sweep: float) -> np.ndarray:
    """Sample an arc as a polyline."""
    n = max(8, int(math.ceil(abs(sweep) / (2 * math.pi) * ARC_POINTS_PER_TURN)) + 1)
    angles = np.linspace(start, start + sweep, n)
    return np.column_stack([center.x + radius * np.cos(angles), center.y + radius * np.sin(angles)])


def to_mpl_path(path: DrawPath) -> Optional[MplPath]:
    vertices: List[Tuple[float, float]] = []
    codes: List[int] = []
    has_current = False

    for segment in path.segments:
        if isinstance(segment, MoveTo):
            vertices.append((segment.point.x, segment.point.y))
            codes.append(MplPath.MOVETO)
            has_current = True
        elif isinstance(segment, ArcTo):
            points = arc_points(segment.center, segment.radius, segment.start, segment.sweep)
            for idx, (x, y) in enumerate(points):
                vertices.append((float(x), float(y)))
                codes.append(MplPath.MOVETO if idx == 0 and not has_current else MplPath.LINETO)
            has_current = True
        elif isinstance(segment, CubeTo):
            if not has_current:
                raise ValueError("Cubic segment needs a current point; call move() first.")
            for p in (segment.control1, segment.control2, segment.end):
                vertices.append((p.x, p.y))
                codes.append(MplPath.CURVE4)
        else:
            raise TypeError(f"Unsupported path segment: {segment!r}")

    if not vertices:
        return None
    return MplPath(vertices, codes)


class MatplotlibCanvas(CanvasSurface):
    """
    Draws into a matplotlib figure whose data units are points (y up).

    The figure is created on construction and released by save() or close().
    """

    def __init__(
        self,
        width_in: float = 24.0,
        height_in: float = 24.0,
        dpi: float = 100.0,
        facecolor: str = "white",
    ):
        self.width = width_in * POINTS_PER_INCH
        self.height = height_in * POINTS_PER_INCH
        self.dpi = dpi
        self.fig = plt.figure(figsize=(width_in, height_in), dpi=dpi, facecolor=facecolor)
        self.ax = self.fig.add_axes([0, 0, 1, 1])
        self.ax.set_xlim(0, self.width)
        self.ax.set_ylim(0, self.height)
        self.ax.axis("off")
        self._line_width = 1.0
        self._color = Color(0, 0, 0)

    def size(self) -> Tuple[float, float]:
        return self.width, self.height

    def set_line_width(self, width: float) -> None:
        self._line_width = float(width)

    def set_color(self, color: Color) -> None:
        self._color = color

    def stroke(self, path: DrawPath) -> None:
        mpl_path = to_mpl_path(path)
        if mpl_path is None:
            return
        patch = PathPatch(
            mpl_path,
            facecolor="none",
            edgecolor=self._color.to_rgba(),
            linewidth=self._line_width,
            capstyle="round",
        )
        self.ax.add_patch(patch)

    def fill_text(self, style: TextStyle, point: Point, text: str) -> None:
        self.ax.text(
            point.x,
            point.y,
            text,
            color=style.color.to_rgba(),
            fontsize=style.font_size,
            rotation=math.degrees(style.rotation),
            rotation_mode="anchor",
            ha=style.x_align,
            va=style.y_align,
        )

    def save(self, path: Path, dpi: Optional[float] = None) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.fig.savefig(path, dpi=dpi or self.dpi, facecolor=self.fig.get_facecolor(), edgecolor="none")
        self.close()
        return path

    def close(self) -> None:
        plt.close(self.fig)
