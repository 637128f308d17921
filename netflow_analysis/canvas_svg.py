"""SVG vector backend for CanvasSurface, built on drawsvg."""
from __future__ import annotations

import math
from pathlib import Path
from typing import Tuple

import drawsvg as dw

try:
    from .canvas import ArcTo, CanvasSurface, Color, CubeTo, DrawPath, MoveTo, Point, TextStyle
except ImportError:
    from canvas import ArcTo, CanvasSurface, Color, CubeTo, DrawPath, MoveTo, Point, TextStyle

TEXT_ANCHOR = {"left": "start", "center": "middle", "right": "end"}
BASELINE = {"top": "hanging", "center": "middle", "bottom": "text-after-edge"}


class SvgCanvas(CanvasSurface):
    """Writes draw calls as SVG elements; y is flipped so callers stay y-up."""

    def __init__(self, width: float, height: float, background: str = "white"):
        self.width = float(width)
        self.height = float(height)
        self.drawing = dw.Drawing(self.width, self.height)
        if background:
            self.drawing.append(dw.Rectangle(0, 0, self.width, self.height, fill=background))
        self._line_width = 1.0
        self._color = Color(0, 0, 0)

    def _flip(self, point: Point) -> Tuple[float, float]:
        return point.x, self.height - point.y

    def size(self) -> Tuple[float, float]:
        return self.width, self.height

    def set_line_width(self, width: float) -> None:
        self._line_width = float(width)

    def set_color(self, color: Color) -> None:
        self._color = color

    def _append_arc(self, p: dw.Path, segment: ArcTo, has_current: bool) -> None:
        sx, sy = self._flip(segment.start_point)
        if has_current:
            p.L(sx, sy)
        else:
            p.M(sx, sy)
        # SVG arcs cannot close a full turn in one command; split at half turns.
        chunks = max(1, int(math.ceil(abs(segment.sweep) / math.pi - 1e-9)))
        step = segment.sweep / chunks
        for k in range(1, chunks + 1):
            end = Point(
                segment.center.x + segment.radius * math.cos(segment.start + step * k),
                segment.center.y + segment.radius * math.sin(segment.start + step * k),
            )
            ex, ey = self._flip(end)
            # Counter-clockwise in y-up is sweep-flag 0 once y is flipped.
            p.A(segment.radius, segment.radius, rot=0, large_arc=0, sweep=0 if step > 0 else 1, ex=ex, ey=ey)

    def stroke(self, path: DrawPath) -> None:
        p = dw.Path(
            stroke=self._color.to_hex(),
            stroke_opacity=self._color.a / 255.0,
            stroke_width=self._line_width,
            stroke_linecap="round",
            fill="none",
        )
        has_current = False
        for segment in path.segments:
            if isinstance(segment, MoveTo):
                p.M(*self._flip(segment.point))
                has_current = True
            elif isinstance(segment, ArcTo):
                self._append_arc(p, segment, has_current)
                has_current = True
            elif isinstance(segment, CubeTo):
                if not has_current:
                    raise ValueError("Cubic segment needs a current point; call move() first.")
                c1x, c1y = self._flip(segment.control1)
                c2x, c2y = self._flip(segment.control2)
                ex, ey = self._flip(segment.end)
                p.C(c1x, c1y, c2x, c2y, ex, ey)
            else:
                raise TypeError(f"Unsupported path segment: {segment!r}")
        self.drawing.append(p)

    def fill_text(self, style: TextStyle, point: Point, text: str) -> None:
        x, y = self._flip(point)
        angle = -math.degrees(style.rotation)
        self.drawing.append(dw.Text(
            text,
            font_size=style.font_size,
            x=x,
            y=y,
            fill=style.color.to_hex(),
            fill_opacity=style.color.a / 255.0,
            text_anchor=TEXT_ANCHOR[style.x_align],
            dominant_baseline=BASELINE[style.y_align],
            transform=f"rotate({angle:.4f},{x:.4f},{y:.4f})",
        ))

    def as_svg(self) -> str:
        return self.drawing.as_svg()

    def save(self, path: Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        self.drawing.save_svg(str(path))
        return path
