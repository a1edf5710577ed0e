"""Finder pattern renderer: repaints the three 7x7 corner markers in the chosen styles.

Placement is fixed by the symbol format (top-left, top-right, bottom-left);
styling only changes the shapes drawn inside each zone. The ring and the
center dot are always present: a "none" style falls back to square.
"""

from dataclasses import dataclass

from qrstudio.gradient import Fill, SolidFill
from qrstudio.logging import get_logger
from qrstudio.matrix import FINDER_SIZE, Matrix, finder_origins
from qrstudio.shapes import (
    Circle,
    Polygon,
    Rect,
    RoundedRect,
    Shape,
    diamond_points,
    notched_square_points,
    star_points,
    superellipse_points,
)
from qrstudio.style import CornerDotStyle, CornerSquareStyle, StyleConfig, parse_color

log = get_logger("finders")

DOT_MODULES = 3
# Ring squareness for the "circle" style. A true circle bends the dark runs
# off the 1:1:3:1:1 rows that readers look for.
RING_EXPONENT = 4


@dataclass(frozen=True)
class FinderZone:
    """One finder zone in module and pixel coordinates."""

    row: int
    col: int
    x: float
    y: float
    outer: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.outer / 2, self.y + self.outer / 2

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.outer, self.outer)


def finder_zones(matrix: Matrix, origin: tuple[float, float], module_size: float) -> list[FinderZone]:
    qx, qy = origin
    return [
        FinderZone(r, c, qx + c * module_size, qy + r * module_size, module_size * FINDER_SIZE)
        for r, c in finder_origins(matrix.size)
    ]


def ring_shape(cx: float, cy: float, outer: float, style: CornerSquareStyle) -> tuple[Shape, float]:
    """Outline path and line width for the outer ring.

    The path runs on the centerline so the stroke's outer edge meets the
    7x7 box.
    """
    lw = outer / FINDER_SIZE
    inner = outer - lw
    x, y = cx - inner / 2, cy - inner / 2
    if style is CornerSquareStyle.ROUNDED:
        return RoundedRect(x, y, inner, inner, inner * 0.2), lw
    if style is CornerSquareStyle.CIRCLE:
        return Polygon(superellipse_points(cx, cy, inner / 2, RING_EXPONENT)), lw
    if style is CornerSquareStyle.OUTPOINT:
        return RoundedRect(x, y, inner, inner, inner * 0.35), lw
    if style is CornerSquareStyle.INPOINT:
        return Polygon(notched_square_points(cx, cy, inner, inner * 0.15)), lw
    return Rect(x, y, inner, inner), lw


def dot_shape(cx: float, cy: float, size: float, style: CornerDotStyle) -> Shape:
    """Filled center dot covering the inner 3x3 modules."""
    half = size / 2
    if style is CornerDotStyle.ROUNDED:
        return RoundedRect(cx - half, cy - half, size, size, size * 0.25)
    if style is CornerDotStyle.CIRCLE:
        return Circle(cx, cy, half)
    if style is CornerDotStyle.DIAMOND:
        return Polygon(diamond_points(cx, cy, half))
    if style is CornerDotStyle.STAR:
        return Polygon(star_points(cx, cy, half, half * 0.45))
    return Rect(cx - half, cy - half, size, size)


def effective_ring_style(style: CornerSquareStyle) -> CornerSquareStyle:
    return CornerSquareStyle.SQUARE if style is CornerSquareStyle.NONE else style


def effective_dot_style(style: CornerDotStyle) -> CornerDotStyle:
    return CornerDotStyle.SQUARE if style is CornerDotStyle.NONE else style


def draw_finders(surface, matrix: Matrix, config: StyleConfig, origin: tuple[float, float],
                 background: Fill | None) -> list[FinderZone]:
    """Erase and redraw the three finder zones.

    Args:
        surface: Target surface.
        matrix: Module grid (only its size is used).
        config: Style.
        origin: Pixel position of the symbol's top-left module.
        background: Canvas background paint, or None when transparent.
    """
    module_size = config.size / matrix.size
    ring_style = effective_ring_style(config.corner_square_style)
    dot_style = effective_dot_style(config.corner_dot_style)
    ring_fill = SolidFill(parse_color(config.corner_square_color))
    dot_fill = SolidFill(parse_color(config.corner_dot_color))

    zones = finder_zones(matrix, origin, module_size)
    for zone in zones:
        # undo anything a generic fill leaked into the zone
        surface.clear(zone.rect)
        if background is not None:
            surface.fill_shapes([zone.rect], background)

        cx, cy = zone.center
        ring, lw = ring_shape(cx, cy, zone.outer, ring_style)
        surface.stroke_shape(ring, ring_fill, lw)
        surface.fill_shapes([dot_shape(cx, cy, module_size * DOT_MODULES, dot_style)], dot_fill)

    log.debug("finders drawn: ring=%s dot=%s", ring_style.value, dot_style.value)
    return zones
