import math

import pytest

from qrstudio.gradient import SolidFill
from qrstudio.shapes import (
    Circle,
    Rect,
    RoundedRect,
    dash_polyline,
    diamond_points,
    notched_square_points,
    quadratic_points,
    star_points,
    superellipse_points,
)
from qrstudio.surface import RasterSurface

RED = (255, 0, 0, 255)


def test_adjacent_rects_tile_without_gaps():
    surface = RasterSurface(30, 10)
    s = 30 / 7
    surface.fill_shapes([Rect(i * s, 0, s, 10) for i in range(7)], SolidFill(RED))
    alpha = surface.to_image().getchannel("A")
    assert alpha.getextrema() == (255, 255)


def test_clear_region():
    surface = RasterSurface(20, 20)
    surface.fill_shapes([Rect(0, 0, 20, 20)], SolidFill(RED))
    surface.clear(Rect(5, 5, 10, 10))
    img = surface.to_image()
    assert img.getpixel((10, 10))[3] == 0
    assert img.getpixel((2, 2)) == RED


def test_rounded_rect_radius_is_clamped():
    assert RoundedRect(0, 0, 10, 4, 50).radius == 2


def test_circle_outline_radius():
    for x, y in Circle(5, 5, 3).outline():
        assert math.hypot(x - 5, y - 5) == pytest.approx(3)


def test_polygon_builders():
    star = star_points(0, 0, 10, 4)
    assert len(star) == 10
    assert star[0] == pytest.approx((0, -10))
    assert diamond_points(0, 0, 2) == ((0, -2), (2, 0), (0, 2), (-2, 0))
    assert len(notched_square_points(0, 0, 10, 1)) == 8
    curve = quadratic_points((0, 0), (5, 5), (10, 0), steps=4)
    assert curve[-1] == (10, 0)
    assert len(curve) == 4


def test_dash_polyline_splits_perimeter():
    runs = dash_polyline([(0, 0), (20, 0)], (6, 4), closed=False)
    assert len(runs) == 2
    assert runs[0][0] == (0, 0)
    assert runs[0][-1] == pytest.approx((6, 0))
    assert runs[1][0] == pytest.approx((10, 0))


def test_dashed_stroke_leaves_gaps():
    surface = RasterSurface(40, 40)
    surface.stroke_shape(Rect(5, 5, 30, 30), SolidFill(RED), 2, dash=(6, 4))
    img = surface.to_image()
    row = [max(img.getpixel((x, y))[3] for y in (4, 5, 6)) for x in range(5, 36)]
    assert 0 in row and 255 in row


def test_text_draws_something():
    surface = RasterSurface(120, 40)
    surface.fill_text("Scan Me !", 60, 30, 18, SolidFill(RED))
    assert surface.to_image().getchannel("A").getbbox() is not None


def test_superellipse_points_span_the_box():
    pts = superellipse_points(0, 0, 10, exponent=4, steps=8)
    assert pts[0] == pytest.approx((10, 0))
    assert pts[2] == pytest.approx((0, 10), abs=1e-6)
    # |x|^4 + |y|^4 == 10^4 on every point
    for x, y in pts:
        assert abs(x) ** 4 + abs(y) ** 4 == pytest.approx(10 ** 4)
    circle = superellipse_points(0, 0, 10, exponent=2, steps=12)
    for x, y in circle:
        assert math.hypot(x, y) == pytest.approx(10)
