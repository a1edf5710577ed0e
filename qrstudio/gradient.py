"""Gradient engine: turns a color/gradient pair and a bounding box into a paint."""

from dataclasses import dataclass

import numpy as np
from PIL import Image

from qrstudio.style import GradientConfig, GradientDirection, parse_color

Box = tuple[float, float, float, float]  # x, y, w, h
RGBA = tuple[int, int, int, int]


@dataclass(frozen=True)
class SolidFill:
    color: RGBA

    def render(self, size: tuple[int, int]) -> Image.Image:
        return Image.new("RGBA", size, self.color)


def _interpolate(t: np.ndarray, c1: RGBA, c2: RGBA) -> Image.Image:
    """Blend two colors along a parameter field t in [0, 1].

    Uses ``c1 + (c2 - c1) * t`` so equal stops give exactly c1.
    """
    t = np.clip(t, 0.0, 1.0)[..., None]
    a = np.asarray(c1, dtype=np.float64)
    b = np.asarray(c2, dtype=np.float64)
    arr = np.rint(a + (b - a) * t).astype(np.uint8)
    return Image.fromarray(arr)


def _grid(size: tuple[int, int]) -> tuple[np.ndarray, np.ndarray]:
    """Pixel-center coordinates for a canvas of *size*."""
    w, h = size
    ys, xs = np.mgrid[0:h, 0:w].astype(np.float64)
    return xs + 0.5, ys + 0.5


@dataclass(frozen=True)
class LinearGradientFill:
    x0: float
    y0: float
    x1: float
    y1: float
    stops: tuple[RGBA, RGBA]

    def render(self, size: tuple[int, int]) -> Image.Image:
        xs, ys = _grid(size)
        dx, dy = self.x1 - self.x0, self.y1 - self.y0
        length_sq = dx * dx + dy * dy
        if length_sq == 0:
            t = np.zeros_like(xs)
        else:
            t = ((xs - self.x0) * dx + (ys - self.y0) * dy) / length_sq
        return _interpolate(t, *self.stops)


@dataclass(frozen=True)
class RadialGradientFill:
    cx: float
    cy: float
    r: float
    stops: tuple[RGBA, RGBA]

    def render(self, size: tuple[int, int]) -> Image.Image:
        xs, ys = _grid(size)
        if self.r <= 0:
            t = np.ones_like(xs)
        else:
            t = np.hypot(xs - self.cx, ys - self.cy) / self.r
        return _interpolate(t, *self.stops)


Fill = SolidFill | LinearGradientFill | RadialGradientFill

TRANSPARENT = SolidFill((0, 0, 0, 0))


def build_fill(gradient: GradientConfig, box: Box) -> Fill:
    """Resolve *gradient* over *box*; a disabled gradient is its first color."""
    if not gradient.enabled:
        return SolidFill(parse_color(gradient.color1))

    x, y, w, h = box
    stops = (parse_color(gradient.color1), parse_color(gradient.color2))
    if gradient.direction is GradientDirection.RADIAL:
        return RadialGradientFill(x + w / 2, y + h / 2, max(w, h) / 2, stops)
    if gradient.direction is GradientDirection.VERTICAL:
        return LinearGradientFill(x, y, x, y + h, stops)
    if gradient.direction is GradientDirection.DIAGONAL:
        return LinearGradientFill(x, y, x + w, y + h, stops)
    return LinearGradientFill(x, y, x + w, y, stops)


def resolve_fill(color: str, gradient: GradientConfig, box: Box) -> Fill:
    """Gradient fill when enabled, otherwise the flat *color*."""
    if gradient.enabled:
        return build_fill(gradient, box)
    return SolidFill(parse_color(color))


def primary_color(color: str, gradient: GradientConfig) -> str:
    """The representative single color of a possibly-gradient paint."""
    return gradient.color1 if gradient.enabled else color


def background_fill(config, canvas_size: tuple[int, int]) -> Fill | None:
    """Canvas background paint; None for a transparent background."""
    if config.transparent_bg:
        return None
    w, h = canvas_size
    return resolve_fill(config.bg_color, config.bg_gradient, (0, 0, w, h))
