#!/usr/bin/env python
"""
Chord diagram renderer for directed network flow volumes.

Turns an ordered list of node labels and an N x N non-negative flow matrix into
draw calls against a CanvasSurface: one gray arc per node, two rotated labels
per node (address and outgoing volume), then one cubic chord per positive flow.

Usage:
    from chord_renderer import ChordDiagram
    from canvas import RecordingCanvas

    diagram = ChordDiagram(labels=["A", "B"], flow=[[0, 10], [5, 0]])
    diagram.render(RecordingCanvas(600, 600))
"""
from __future__ import annotations

import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np
import matplotlib
from matplotlib.colors import to_rgba

try:
    from .canvas import CanvasSurface, Color, DrawPath, Point, TextStyle, point_on_circle
except ImportError:
    from canvas import CanvasSurface, Color, DrawPath, Point, TextStyle, point_on_circle

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Presentation constants
# ---------------------------------------------------------------------------

RADIUS_FRACTION = 0.35
ARC_HALF_WIDTH_FRACTION = 1.0 / 3.0
ARC_LINE_WIDTH = 2.0
ARC_COLOR = Color(100, 100, 100, 255)

LABEL_FONT_SIZE = 12.0
LABEL_COLOR = Color(0, 0, 0, 255)
BACKPLATE_COLOR = Color(255, 255, 255, 220)
IDENTITY_LABEL_RADIUS = 1.07
VOLUME_LABEL_RADIUS = 1.15

MAX_CHORD_WIDTH = 3.0
CHORD_CONTROL_PULL = 0.5
CHORD_ALPHA_BOOST = 100

SELF_LOOP_REACH = 1.25
SELF_LOOP_SPREAD = 1.0 / 6.0
SELF_FLOW_POLICIES = ("skip", "loop")

BYTES_PER_MB = 1024 * 1024


class DiagramInputError(ValueError):
    """Labels/matrix cannot form a chord diagram."""


# ---------------------------------------------------------------------------
# Layout
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CircleLayout:
    """Ring geometry shared by arcs, labels and chords."""

    origin: Point
    radius: float
    node_count: int

    @property
    def angle_step(self) -> float:
        return 2 * math.pi / self.node_count

    def center_angle(self, index: int) -> float:
        return index * self.angle_step

    def arc_bounds(self, index: int) -> Tuple[float, float]:
        angle = self.center_angle(index)
        half = self.angle_step * ARC_HALF_WIDTH_FRACTION
        return angle - half, angle + half

    def point_at(self, angle: float, scale: float = 1.0) -> Point:
        return point_on_circle(self.origin, self.radius * scale, angle)


def compute_layout(node_count: int, width: float, height: float) -> CircleLayout:
    """Place N nodes evenly on a circle centred in a width x height canvas."""
    if node_count == 0:
        raise DiagramInputError("Cannot lay out a chord diagram with no nodes.")
    if node_count == 1:
        # One node would own the full circle and its arc would overlap itself.
        raise DiagramInputError("A chord diagram needs at least two nodes; got one.")
    if node_count < 0:
        raise DiagramInputError(f"Invalid node count: {node_count}")
    if width <= 0 or height <= 0:
        raise DiagramInputError(f"Canvas size must be positive, got {width} x {height}")
    origin = Point(width / 2, height / 2)
    radius = min(width, height) * RADIUS_FRACTION
    return CircleLayout(origin=origin, radius=radius, node_count=node_count)


# ---------------------------------------------------------------------------
# Color policies
# ---------------------------------------------------------------------------

class ColorMapper(ABC):
    """Deterministic (source, dest) -> Color strategy."""

    @abstractmethod
    def __call__(self, i: int, j: int) -> Color:
        ...


@dataclass(frozen=True)
class IndexScaledColorMapper(ColorMapper):
    """
    Red tracks the source index, green the destination index, blue is fixed.

    Channels are 8 bit and wrap modulo 256, so with the default step of 30
    indices 0 and 9 (270 mod 256 = 14) are close and larger N starts to alias.
    Use ColormapColorMapper for big node sets.
    """

    step: int = 30
    blue: int = 255
    alpha: int = 200

    def __call__(self, i: int, j: int) -> Color:
        return Color((self.step * i) % 256, (self.step * j) % 256, self.blue, self.alpha)


@dataclass(frozen=True)
class ColormapColorMapper(ColorMapper):
    """
    Source tint from a matplotlib colormap, blended toward the destination tint.

    Continuous maps are sampled by position across node_count. Listed maps
    (tab20 and friends) hand out their entries in order; once node_count
    exceeds the list, each further pass over it is lightened toward white by
    a growing share, so node k and node k + cmap.N never share a tint.
    """

    name: str = "tab20"
    node_count: Optional[int] = None
    dest_blend: float = 0.35
    alpha: int = 200
    max_lighten: float = 0.6

    def _tint(self, index: int) -> np.ndarray:
        cmap = matplotlib.colormaps[self.name]
        if cmap.N < 256:
            base = np.array(to_rgba(cmap(index % cmap.N)))
            passes = math.ceil(self.node_count / cmap.N) if self.node_count else 1
            if passes <= 1:
                return base
            share = self.max_lighten * (index // cmap.N % passes) / (passes - 1)
            return base * (1 - share) + np.ones(4) * share
        if not self.node_count:
            return np.array(to_rgba(cmap(index % cmap.N)))
        position = (index % self.node_count) / max(1, self.node_count - 1)
        return np.array(to_rgba(cmap(position)))

    def __call__(self, i: int, j: int) -> Color:
        blended = self._tint(i) * (1 - self.dest_blend) + self._tint(j) * self.dest_blend
        r, g, b = (int(round(float(c) * 255)) for c in blended[:3])
        return Color(r, g, b, self.alpha)


ColorFn = Union[ColorMapper, Callable[[int, int], Color]]


# ---------------------------------------------------------------------------
# Arcs
# ---------------------------------------------------------------------------

def draw_node_arc(canvas: CanvasSurface, layout: CircleLayout, index: int) -> None:
    """Stroke the node's arc segment; independent of flow values."""
    start, end = layout.arc_bounds(index)
    path = DrawPath()
    path.move(layout.point_at(start))
    path.arc(layout.origin, layout.radius, start, end - start)
    canvas.set_line_width(ARC_LINE_WIDTH)
    canvas.set_color(ARC_COLOR)
    canvas.stroke(path)


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LabelPlacement:
    point: Point
    rotation: float
    text: str


def label_rotation(angle: float, offset: float = 0.0) -> float:
    """Rotate text along the radius, flipping it on the left half of the circle."""
    rotation = angle + offset
    if math.pi / 2 < angle < 3 * math.pi / 2:
        rotation += math.pi
    return rotation


def format_megabytes(total_bytes: float) -> str:
    return f"{total_bytes / BYTES_PER_MB:.1f} MB"


def place_identity_label(layout: CircleLayout, index: int, label: str) -> LabelPlacement:
    angle = layout.center_angle(index)
    return LabelPlacement(
        point=layout.point_at(angle, IDENTITY_LABEL_RADIUS),
        rotation=label_rotation(angle),
        text=label,
    )


def place_volume_label(layout: CircleLayout, index: int, total_bytes: float) -> LabelPlacement:
    angle = layout.center_angle(index)
    return LabelPlacement(
        point=layout.point_at(angle, VOLUME_LABEL_RADIUS),
        rotation=label_rotation(angle, math.pi / 2),
        text=format_megabytes(total_bytes),
    )


def _fill_with_backplate(canvas: CanvasSurface, placement: LabelPlacement) -> None:
    style = TextStyle(
        color=LABEL_COLOR,
        font_size=LABEL_FONT_SIZE,
        rotation=placement.rotation,
        x_align="center",
        y_align="center",
    )
    backplate = TextStyle(
        color=BACKPLATE_COLOR,
        font_size=style.font_size,
        rotation=style.rotation,
        x_align=style.x_align,
        y_align=style.y_align,
    )
    canvas.fill_text(backplate, placement.point, placement.text)
    canvas.fill_text(style, placement.point, placement.text)


def draw_labels(
    canvas: CanvasSurface,
    layout: CircleLayout,
    index: int,
    label: str,
    total_bytes: float,
) -> None:
    _fill_with_backplate(canvas, place_identity_label(layout, index, label))
    _fill_with_backplate(canvas, place_volume_label(layout, index, total_bytes))


# ---------------------------------------------------------------------------
# Chords
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ChordGeometry:
    start: Point
    end: Point
    control1: Point
    control2: Point


def chord_geometry(layout: CircleLayout, i: int, j: int) -> ChordGeometry:
    """Cubic from node i to node j with controls pulled halfway to the centre."""
    angle1 = layout.center_angle(i)
    angle2 = layout.center_angle(j)
    return ChordGeometry(
        start=layout.point_at(angle1),
        end=layout.point_at(angle2),
        control1=layout.point_at(angle1, CHORD_CONTROL_PULL),
        control2=layout.point_at(angle2, CHORD_CONTROL_PULL),
    )


def self_loop_geometry(layout: CircleLayout, index: int) -> ChordGeometry:
    """Small loop outside the ring that leaves and re-enters the node's point."""
    angle = layout.center_angle(index)
    spread = layout.angle_step * SELF_LOOP_SPREAD
    anchor = layout.point_at(angle)
    return ChordGeometry(
        start=anchor,
        end=anchor,
        control1=layout.point_at(angle - spread, SELF_LOOP_REACH),
        control2=layout.point_at(angle + spread, SELF_LOOP_REACH),
    )


def chord_stroke_width(weight: float, max_weight: float) -> float:
    if max_weight <= 0 or weight <= 0:
        return 0.0
    return (weight / max_weight) * MAX_CHORD_WIDTH


def boost_alpha(color: Color, boost: int = CHORD_ALPHA_BOOST) -> Color:
    return Color(color.r, color.g, color.b, min(255, color.a + boost))


def draw_chord(canvas: CanvasSurface, geometry: ChordGeometry, width: float, color: Color) -> None:
    path = DrawPath()
    path.move(geometry.start)
    path.cube_to(geometry.control1, geometry.control2, geometry.end)
    canvas.set_line_width(width)
    canvas.set_color(boost_alpha(color))
    canvas.stroke(path)


# ---------------------------------------------------------------------------
# Diagram
# ---------------------------------------------------------------------------

def _validate_flow(labels: Tuple[str, ...], flow) -> np.ndarray:
    try:
        matrix = np.array(flow, dtype=float)
    except (TypeError, ValueError) as exc:
        raise DiagramInputError(f"Flow matrix is not a rectangular numeric table: {exc}") from exc

    n = len(labels)
    if n == 0 or matrix.size == 0:
        raise DiagramInputError("Chord diagram needs at least one node; got none.")
    if matrix.ndim != 2 or matrix.shape[0] != matrix.shape[1]:
        raise DiagramInputError(f"Flow matrix must be square, got shape {matrix.shape}")
    if matrix.shape[0] != n:
        raise DiagramInputError(
            f"Flow matrix is {matrix.shape[0]}x{matrix.shape[1]} but there are {n} labels"
        )
    if n == 1:
        raise DiagramInputError("A chord diagram needs at least two nodes; got one.")
    if not np.all(np.isfinite(matrix)):
        raise DiagramInputError("Flow matrix contains NaN or infinite values.")
    if np.any(matrix < 0):
        raise DiagramInputError("Flow matrix contains negative values.")

    matrix.setflags(write=False)
    return matrix


@dataclass(frozen=True)
class ChordDiagram:
    """
    Immutable snapshot of labels, flow matrix and color policy.

    render() draws every arc and label first and the chords last, so chords
    sit on top of the ring. A second render on the same canvas draws again
    on top; clearing is up to the caller.
    """

    labels: Sequence[str]
    flow: Sequence[Sequence[float]]
    color_fn: ColorFn = field(default_factory=IndexScaledColorMapper)
    self_flow: str = "skip"

    def __post_init__(self):
        labels = tuple(str(label) for label in self.labels)
        object.__setattr__(self, "labels", labels)
        object.__setattr__(self, "flow", _validate_flow(labels, self.flow))
        if self.self_flow not in SELF_FLOW_POLICIES:
            raise DiagramInputError(
                f"self_flow must be one of {SELF_FLOW_POLICIES}, got {self.self_flow!r}"
            )

    @property
    def node_count(self) -> int:
        return len(self.labels)

    @property
    def max_weight(self) -> float:
        return float(self.flow.max())

    def node_volume(self, index: int) -> float:
        """Total outgoing flow of a node (row sum)."""
        return float(self.flow[index].sum())

    def render(self, canvas: CanvasSurface) -> int:
        """Draw the diagram onto canvas and return the number of chords drawn."""
        width, height = canvas.size()
        layout = compute_layout(self.node_count, width, height)

        for i, label in enumerate(self.labels):
            draw_node_arc(canvas, layout, i)
            draw_labels(canvas, layout, i, label, self.node_volume(i))

        max_weight = self.max_weight
        if max_weight <= 0:
            logger.info("Flow matrix is all zero; drawing %d nodes without chords", self.node_count)
            return 0

        drawn = 0
        n = self.node_count
        for i in range(n):
            for j in range(n):
                weight = float(self.flow[i, j])
                if weight <= 0:
                    continue
                if i == j:
                    if self.self_flow == "skip":
                        logger.debug("Skipping self-flow on %s (%.0f)", self.labels[i], weight)
                        continue
                    geometry = self_loop_geometry(layout, i)
                else:
                    geometry = chord_geometry(layout, i, j)
                draw_chord(canvas, geometry, chord_stroke_width(weight, max_weight), self.color_fn(i, j))
                drawn += 1

        logger.info("Rendered %d nodes and %d chords (max weight %.0f)", n, drawn, max_weight)
        return drawn
