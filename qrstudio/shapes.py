"""Geometry value types drawn by a Surface, plus polygon builders.

Coordinates are floats in canvas pixels. A shape knows how to rasterize itself
into an 8-bit coverage mask via ``PIL.ImageDraw``; the surface decides what
paint goes through that mask.
"""

import math
from dataclasses import dataclass

from PIL import ImageDraw

Point = tuple[float, float]


# ---------------------------------------------------------------------------
# Pixel snapping
# ---------------------------------------------------------------------------

def _pixel_box(x0: float, y0: float, x1: float, y1: float) -> list[int]:
    """Half-open float box -> inclusive integer box as ImageDraw expects.

    Adjacent boxes sharing an edge tile without gaps or overlap.
    """
    left, top = round(x0), round(y0)
    right, bottom = round(x1) - 1, round(y1) - 1
    return [left, top, max(left, right), max(top, bottom)]


def _stroke_box(x0: float, y0: float, x1: float, y1: float, width: float) -> tuple[list[int], int]:
    """Box whose inward outline of *width* is centered on the given path box."""
    half = width / 2
    return _pixel_box(x0 - half, y0 - half, x1 + half, y1 + half), max(1, round(width))


# ---------------------------------------------------------------------------
# Shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Rect:
    x: float
    y: float
    w: float
    h: float

    def fill(self, draw: ImageDraw.ImageDraw) -> None:
        draw.rectangle(_pixel_box(self.x, self.y, self.x + self.w, self.y + self.h), fill=255)

    def stroke(self, draw: ImageDraw.ImageDraw, width: float) -> None:
        box, lw = _stroke_box(self.x, self.y, self.x + self.w, self.y + self.h, width)
        draw.rectangle(box, outline=255, width=lw)

    def outline(self) -> list[Point]:
        x, y, w, h = self.x, self.y, self.w, self.h
        return [(x, y), (x + w, y), (x + w, y + h), (x, y + h)]


@dataclass(frozen=True)
class RoundedRect:
    x: float
    y: float
    w: float
    h: float
    r: float

    @property
    def radius(self) -> float:
        return max(0.0, min(self.r, self.w / 2, self.h / 2))

    def fill(self, draw: ImageDraw.ImageDraw) -> None:
        draw.rounded_rectangle(
            _pixel_box(self.x, self.y, self.x + self.w, self.y + self.h),
            radius=round(self.radius), fill=255,
        )

    def stroke(self, draw: ImageDraw.ImageDraw, width: float) -> None:
        box, lw = _stroke_box(self.x, self.y, self.x + self.w, self.y + self.h, width)
        draw.rounded_rectangle(box, radius=round(self.radius + width / 2), outline=255, width=lw)

    def outline(self, steps: int = 8) -> list[Point]:
        x, y, w, h, r = self.x, self.y, self.w, self.h, self.radius
        if r <= 0:
            return Rect(x, y, w, h).outline()
        corners = [
            (x + w - r, y + r, -90),      # top-right
            (x + w - r, y + h - r, 0),    # bottom-right
            (x + r, y + h - r, 90),       # bottom-left
            (x + r, y + r, 180),          # top-left
        ]
        pts: list[Point] = []
        for cx, cy, start in corners:
            for i in range(steps + 1):
                a = math.radians(start + 90 * i / steps)
                pts.append((cx + r * math.cos(a), cy + r * math.sin(a)))
        return pts


@dataclass(frozen=True)
class Circle:
    cx: float
    cy: float
    r: float

    def fill(self, draw: ImageDraw.ImageDraw) -> None:
        draw.ellipse(_pixel_box(self.cx - self.r, self.cy - self.r, self.cx + self.r, self.cy + self.r), fill=255)

    def stroke(self, draw: ImageDraw.ImageDraw, width: float) -> None:
        box, lw = _stroke_box(self.cx - self.r, self.cy - self.r, self.cx + self.r, self.cy + self.r, width)
        draw.ellipse(box, outline=255, width=lw)

    def outline(self, steps: int = 72) -> list[Point]:
        return [
            (self.cx + self.r * math.cos(2 * math.pi * i / steps),
             self.cy + self.r * math.sin(2 * math.pi * i / steps))
            for i in range(steps)
        ]


@dataclass(frozen=True)
class Polygon:
    points: tuple[Point, ...]

    def fill(self, draw: ImageDraw.ImageDraw) -> None:
        draw.polygon(list(self.points), fill=255)

    def stroke(self, draw: ImageDraw.ImageDraw, width: float) -> None:
        pts = list(self.points)
        draw.line(pts + pts[:2], fill=255, width=max(1, round(width)), joint="curve")

    def outline(self) -> list[Point]:
        return list(self.points)


Shape = Rect | RoundedRect | Circle | Polygon


# ---------------------------------------------------------------------------
# Polygon builders
# ---------------------------------------------------------------------------

def quadratic_points(p0: Point, ctrl: Point, p1: Point, steps: int = 8) -> list[Point]:
    """Points along a quadratic Bezier, *p0* excluded, *p1* included."""
    pts = []
    for i in range(1, steps + 1):
        t = i / steps
        u = 1 - t
        pts.append((
            u * u * p0[0] + 2 * u * t * ctrl[0] + t * t * p1[0],
            u * u * p0[1] + 2 * u * t * ctrl[1] + t * t * p1[1],
        ))
    return pts


def star_points(cx: float, cy: float, outer_r: float, inner_r: float, spikes: int = 5) -> tuple[Point, ...]:
    """Star with the first spike pointing straight up."""
    pts = []
    for i in range(spikes * 2):
        r = outer_r if i % 2 == 0 else inner_r
        angle = math.pi * i / spikes - math.pi / 2
        pts.append((cx + r * math.cos(angle), cy + r * math.sin(angle)))
    return tuple(pts)


def diamond_points(cx: float, cy: float, half: float) -> tuple[Point, ...]:
    return ((cx, cy - half), (cx + half, cy), (cx, cy + half), (cx - half, cy))


def superellipse_points(cx: float, cy: float, half: float, exponent: float = 4, steps: int = 96) -> tuple[Point, ...]:
    """Closed |x|^n + |y|^n = half^n curve: a circle at n=2, squarer as n grows."""
    pts = []
    for i in range(steps):
        angle = 2 * math.pi * i / steps
        c, s = math.cos(angle), math.sin(angle)
        pts.append((
            cx + half * math.copysign(abs(c) ** (2 / exponent), c),
            cy + half * math.copysign(abs(s) ** (2 / exponent), s),
        ))
    return tuple(pts)


def notched_square_points(cx: float, cy: float, side: float, notch: float) -> tuple[Point, ...]:
    """Octagon: a square of *side* with each corner cut back by *notch*."""
    h = side / 2
    return (
        (cx - h + notch, cy - h), (cx + h - notch, cy - h),
        (cx + h, cy - h + notch), (cx + h, cy + h - notch),
        (cx + h - notch, cy + h), (cx - h + notch, cy + h),
        (cx - h, cy + h - notch), (cx - h, cy - h + notch),
    )


def dash_polyline(points: list[Point], pattern: tuple[float, float], closed: bool = True) -> list[list[Point]]:
    """Split a polyline into "on" dash runs following an (on, off) pattern."""
    if closed and points:
        points = points + [points[0]]
    on_len, off_len = pattern
    runs: list[list[Point]] = []
    current: list[Point] = []
    drawing = True
    remaining = on_len

    for (x0, y0), (x1, y1) in zip(points, points[1:]):
        seg = math.hypot(x1 - x0, y1 - y0)
        pos = 0.0
        while seg - pos > 1e-9:
            step = min(remaining, seg - pos)
            t0, t1 = pos / seg, (pos + step) / seg
            a = (x0 + (x1 - x0) * t0, y0 + (y1 - y0) * t0)
            b = (x0 + (x1 - x0) * t1, y0 + (y1 - y0) * t1)
            if drawing:
                if not current:
                    current.append(a)
                current.append(b)
            pos += step
            remaining -= step
            if remaining <= 1e-9:
                if drawing and current:
                    runs.append(current)
                    current = []
                drawing = not drawing
                remaining = on_len if drawing else off_len
    if current:
        runs.append(current)
    return runs
