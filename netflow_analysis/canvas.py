"""
Drawing surface abstraction for the chord renderer.

The renderer only talks to CanvasSurface. Backends:
    RecordingCanvas   - in-memory list of draw operations (tests, diffing)
    MatplotlibCanvas  - raster output (canvas_mpl.py)
    SvgCanvas         - vector output (canvas_svg.py)

Coordinates are points with the y axis pointing up; angles are radians,
counter-clockwise from the positive x axis.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

X_ALIGNS = ("left", "center", "right")
Y_ALIGNS = ("top", "center", "bottom")


@dataclass(frozen=True)
class Color:
    """8-bit RGBA color."""

    r: int
    g: int
    b: int
    a: int = 255

    def to_rgba(self) -> Tuple[float, float, float, float]:
        """Return matplotlib-style floats in [0, 1]."""
        return (self.r / 255.0, self.g / 255.0, self.b / 255.0, self.a / 255.0)

    def to_hex(self) -> str:
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


@dataclass(frozen=True)
class Point:
    x: float
    y: float


def point_on_circle(origin: Point, radius: float, angle: float) -> Point:
    return Point(origin.x + radius * math.cos(angle), origin.y + radius * math.sin(angle))


@dataclass(frozen=True)
class TextStyle:
    color: Color
    font_size: float
    rotation: float = 0.0
    x_align: str = "center"
    y_align: str = "center"

    def __post_init__(self):
        if self.x_align not in X_ALIGNS:
            raise ValueError(f"Unsupported x_align: {self.x_align}")
        if self.y_align not in Y_ALIGNS:
            raise ValueError(f"Unsupported y_align: {self.y_align}")


# ---------------------------------------------------------------------------
# Path construction
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class MoveTo:
    point: Point


@dataclass(frozen=True)
class ArcTo:
    center: Point
    radius: float
    start: float
    sweep: float

    @property
    def start_point(self) -> Point:
        return point_on_circle(self.center, self.radius, self.start)

    @property
    def end_point(self) -> Point:
        return point_on_circle(self.center, self.radius, self.start + self.sweep)


@dataclass(frozen=True)
class CubeTo:
    control1: Point
    control2: Point
    end: Point


@dataclass
class DrawPath:
    """Ordered list of move / arc / cubic segments."""

    segments: List[object] = field(default_factory=list)

    def move(self, point: Point) -> "DrawPath":
        self.segments.append(MoveTo(point))
        return self

    def arc(self, center: Point, radius: float, start: float, sweep: float) -> "DrawPath":
        # A line from the current point to the arc start is implied.
        self.segments.append(ArcTo(center, radius, start, sweep))
        return self

    def cube_to(self, control1: Point, control2: Point, end: Point) -> "DrawPath":
        self.segments.append(CubeTo(control1, control2, end))
        return self

    def freeze(self) -> Tuple[object, ...]:
        return tuple(self.segments)


# ---------------------------------------------------------------------------
# Capability
# ---------------------------------------------------------------------------

class CanvasSurface(ABC):
    """Drawing target consumed by ChordDiagram.render()."""

    @abstractmethod
    def size(self) -> Tuple[float, float]:
        """Return (width, height) in points."""

    @abstractmethod
    def set_line_width(self, width: float) -> None:
        ...

    @abstractmethod
    def set_color(self, color: Color) -> None:
        ...

    @abstractmethod
    def stroke(self, path: DrawPath) -> None:
        """Stroke path with the current line width and color."""

    @abstractmethod
    def fill_text(self, style: TextStyle, point: Point, text: str) -> None:
        ...


@dataclass(frozen=True)
class DrawOp:
    kind: str  # "stroke" or "text"
    path: Optional[Tuple[object, ...]] = None
    width: Optional[float] = None
    color: Optional[Color] = None
    style: Optional[TextStyle] = None
    point: Optional[Point] = None
    text: Optional[str] = None


class RecordingCanvas(CanvasSurface):
    """Keeps every draw call in order instead of rasterizing."""

    def __init__(self, width: float = 800.0, height: float = 800.0):
        self.width = float(width)
        self.height = float(height)
        self.ops: List[DrawOp] = []
        self._line_width = 1.0
        self._color = Color(0, 0, 0)

    def size(self) -> Tuple[float, float]:
        return self.width, self.height

    def set_line_width(self, width: float) -> None:
        self._line_width = float(width)

    def set_color(self, color: Color) -> None:
        self._color = color

    def stroke(self, path: DrawPath) -> None:
        self.ops.append(DrawOp(kind="stroke", path=path.freeze(), width=self._line_width, color=self._color))

    def fill_text(self, style: TextStyle, point: Point, text: str) -> None:
        self.ops.append(DrawOp(kind="text", style=style, point=point, text=text))

    @property
    def strokes(self) -> List[DrawOp]:
        return [op for op in self.ops if op.kind == "stroke"]

    @property
    def texts(self) -> List[DrawOp]:
        return [op for op in self.ops if op.kind == "text"]
