"""Module renderer: one shape per dark data module, outside the finder zones."""

from qrstudio.gradient import resolve_fill
from qrstudio.logging import get_logger
from qrstudio.matrix import Matrix, is_finder_module
from qrstudio.shapes import Circle, Polygon, Rect, RoundedRect, Shape, quadratic_points
from qrstudio.style import PatternStyle, StyleConfig

log = get_logger("modules")


def module_shape(x: float, y: float, s: float, style: PatternStyle) -> Shape:
    """Shape for a single module cell of side *s* at (x, y)."""
    gap = s * 0.1
    if style is PatternStyle.ROUNDED:
        return RoundedRect(x + gap, y + gap, s - gap * 2, s - gap * 2, s * 0.35)
    if style is PatternStyle.DOT:
        return Circle(x + s / 2, y + s / 2, s * 0.38)
    if style is PatternStyle.CLASSY:
        # square top and right edges, curved bottom-left
        pts = [(x, y), (x + s, y), (x + s, y + s)]
        pts += quadratic_points((x + s, y + s), (x + s * 0.2, y + s), (x, y + s * 0.2))
        return Polygon(tuple(pts))
    if style is PatternStyle.CLASSY_ROUNDED:
        return RoundedRect(x + gap, y + gap, s - gap * 2, s - gap * 2, s * 0.4)
    if style is PatternStyle.EXTRA_ROUNDED:
        return Circle(x + s / 2, y + s / 2, s * 0.45)
    return Rect(x, y, s, s)


def module_shapes(matrix: Matrix, origin: tuple[float, float], module_size: float,
                  style: PatternStyle) -> list[Shape]:
    """Shapes for every dark module that is not part of a finder pattern."""
    qx, qy = origin
    n = matrix.size
    shapes = []
    for r in range(n):
        row = matrix[r]
        for c in range(n):
            if not row[c] or is_finder_module(r, c, n):
                continue
            shapes.append(module_shape(qx + c * module_size, qy + r * module_size, module_size, style))
    return shapes


def draw_modules(surface, matrix: Matrix, config: StyleConfig, origin: tuple[float, float]) -> int:
    """Paint the data modules; returns how many were drawn.

    The paint is resolved once over the whole symbol box so a gradient runs
    continuously across modules.
    """
    module_size = config.size / matrix.size
    shapes = module_shapes(matrix, origin, module_size, config.pattern_style)
    fill = resolve_fill(config.pattern_color, config.pattern_gradient,
                        (origin[0], origin[1], config.size, config.size))
    surface.fill_shapes(shapes, fill)
    log.debug("modules drawn: %d (%s)", len(shapes), config.pattern_style.value)
    return len(shapes)
