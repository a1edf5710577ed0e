import pytest

from conftest import LOGO_COLOR, make_logo_png
from qrstudio.finders import DOT_MODULES, draw_finders, dot_shape, ring_shape
from qrstudio.frame import FRAME_EXTRA, draw_frame
from qrstudio.gradient import background_fill
from qrstudio.logo import LOGO_RATIO, decode_logo, logo_circle
from qrstudio.modules import module_shapes
from qrstudio.render import PADDING, compute_layout, render, render_config
from qrstudio.shapes import Polygon, Rect, RoundedRect
from qrstudio.style import (
    DEFAULT_CONFIG,
    CornerDotStyle,
    CornerSquareStyle,
    FrameStyle,
    PatternStyle,
    parse_color,
)
from qrstudio.surface import RasterSurface


def test_default_canvas_size(matrix):
    surface = render(matrix, DEFAULT_CONFIG)
    assert surface.size == (344, 344)


def test_framed_canvas_size(matrix):
    surface = render(matrix, DEFAULT_CONFIG.with_frame("simple"))
    assert surface.size == (344, 414)
    assert FRAME_EXTRA == 70


def test_layout_module_size(matrix):
    layout = compute_layout(DEFAULT_CONFIG.evolve(size=500), matrix.size)
    assert layout.origin == (PADDING, PADDING)
    assert layout.module_size == pytest.approx(500 / matrix.size)


def test_background_and_transparency(matrix):
    opaque = render(matrix, DEFAULT_CONFIG.evolve(bg_color="#fafafa")).to_image()
    assert opaque.getpixel((2, 2)) == parse_color("#fafafa")

    clear = render(matrix, DEFAULT_CONFIG.evolve(transparent_bg=True)).to_image()
    assert clear.getpixel((2, 2))[3] == 0


def test_finder_modules_excluded_from_data_shapes(matrix):
    shapes = module_shapes(matrix, (0, 0), 10, PatternStyle.SQUARE)
    dark = sum(
        matrix.is_dark(r, c) for r in range(matrix.size) for c in range(matrix.size)
    )
    # each finder zone has 33 dark modules (24 ring + 9 center)
    assert len(shapes) == dark - 3 * 33


@pytest.mark.parametrize("pattern", list(PatternStyle))
def test_module_shapes_stay_inside_their_cell(matrix, pattern):
    for shape in module_shapes(matrix, (0, 0), 10, pattern):
        xs, ys = zip(*shape.outline())
        assert min(xs) >= -1e-6 and min(ys) >= -1e-6
        col, row = int(min(xs) // 10), int(min(ys) // 10)
        assert max(xs) <= (col + 1) * 10 + 1e-6
        assert max(ys) <= (row + 1) * 10 + 1e-6


@pytest.mark.parametrize("ring", list(CornerSquareStyle))
@pytest.mark.parametrize("dot", list(CornerDotStyle))
def test_finder_zones_fixed_for_every_corner_style(matrix, ring, dot):
    config = DEFAULT_CONFIG.evolve(corner_square_style=ring, corner_dot_style=dot)
    surface = RasterSurface(344, 344)
    zones = draw_finders(surface, matrix, config, (PADDING, PADDING), None)
    n = matrix.size
    assert [(z.row, z.col) for z in zones] == [(0, 0), (0, n - 7), (n - 7, 0)]
    m = config.size / n
    assert [(z.x, z.y) for z in zones] == [
        (PADDING, PADDING), (PADDING + (n - 7) * m, PADDING), (PADDING, PADDING + (n - 7) * m),
    ]

    # center of the top-left finder is always dark
    cx, cy = zones[0].center
    assert surface.to_image().getpixel((int(cx), int(cy))) == parse_color(config.corner_dot_color)


def test_none_corner_styles_still_draw_markers():
    ring, lw = ring_shape(35, 35, 70, CornerSquareStyle.SQUARE)
    assert isinstance(ring, Rect)
    assert lw == pytest.approx(10)
    assert (ring.x, ring.w) == (5, 60)

    assert isinstance(ring_shape(35, 35, 70, CornerSquareStyle.CIRCLE)[0], Polygon)
    assert isinstance(ring_shape(35, 35, 70, CornerSquareStyle.INPOINT)[0], Polygon)
    assert isinstance(dot_shape(35, 35, 30, CornerDotStyle.ROUNDED), RoundedRect)
    assert isinstance(dot_shape(35, 35, 30, CornerDotStyle.STAR), Polygon)


@pytest.mark.parametrize("ring", list(CornerSquareStyle))
def test_finder_rows_keep_reader_proportions(matrix, ring):
    # module centers across the middle row and column read dark, light, dark x3, light, dark
    config = DEFAULT_CONFIG.evolve(corner_square_style=ring, corner_dot_style=CornerDotStyle.SQUARE)
    surface = RasterSurface(344, 344)
    zone = draw_finders(surface, matrix, config, (PADDING, PADDING), None)[0]
    img = surface.to_image()
    m = zone.outer / 7
    cx, cy = zone.center
    across = [img.getpixel((int(zone.x + (i + 0.5) * m), int(cy)))[3] > 0 for i in range(7)]
    down = [img.getpixel((int(cx), int(zone.y + (i + 0.5) * m)))[3] > 0 for i in range(7)]
    expected = [True, False, True, True, True, False, True]
    assert across == expected
    assert down == expected


def test_circle_ring_stays_inside_the_finder_box():
    ring, lw = ring_shape(35, 35, 70, CornerSquareStyle.CIRCLE)
    assert isinstance(ring, Polygon)
    xs, ys = zip(*ring.outline())
    assert min(xs) == pytest.approx(5) and max(xs) == pytest.approx(65)
    assert min(ys) == pytest.approx(5) and max(ys) == pytest.approx(65)
    # corners pulled in from the square box, but fuller than a circle
    corner = max(x + y for x, y in ring.outline() if x > 35 and y > 35)
    assert 70 + 30 * 2 ** 0.5 < corner < 125


def test_finder_zone_repaints_background(matrix):
    config = DEFAULT_CONFIG.evolve(bg_color="#fafafa")
    surface = RasterSurface(344, 344)
    zones = draw_finders(surface, matrix, config, (PADDING, PADDING), background_fill(config, (344, 344)))
    m = config.size / matrix.size
    x, y = zones[0].x, zones[0].y
    # the light band between ring and dot
    light = surface.to_image().getpixel((int(x + m * 1.5), int(y + m * 3.5)))
    assert light == parse_color("#fafafa")
    assert DOT_MODULES == 3


@pytest.mark.parametrize("frame", [f for f in FrameStyle if f is not FrameStyle.NONE])
def test_every_frame_draws_in_the_extended_canvas(frame):
    config = DEFAULT_CONFIG.with_frame(frame)
    surface = RasterSurface(344, 414)
    draw_frame(surface, config, PADDING, PADDING)
    img = surface.to_image()
    below = img.crop((0, PADDING + config.size, 344, 414))
    assert below.getchannel("A").getbbox() is not None


def test_no_frame_draws_nothing():
    surface = RasterSurface(344, 344)
    draw_frame(surface, DEFAULT_CONFIG, PADDING, PADDING)
    assert surface.to_image().getchannel("A").getbbox() is None


def test_logo_composited_at_center(matrix, logo_png):
    config = DEFAULT_CONFIG.evolve(logo_url="logo.png")
    surface = render(matrix, config, decode_logo(logo_png))
    img = surface.to_image()
    center = PADDING + config.size // 2
    assert img.getpixel((center, center)) == LOGO_COLOR

    circle = logo_circle(config, (PADDING, PADDING))
    assert circle.r == pytest.approx(config.size * LOGO_RATIO / 2)
    # padding ring in the background color just outside the logo
    assert img.getpixel((int(circle.cx + circle.r + 3), int(circle.cy))) == parse_color(config.bg_color)


def test_render_config_encodes_url():
    surface = render_config(DEFAULT_CONFIG.evolve(url="https://example.com", size=200))
    assert surface.size == (264, 264)
    assert surface.export_raster().startswith(b"\x89PNG")


def test_logo_over_frame_order():
    config = DEFAULT_CONFIG.with_frame("circle-badge").evolve(logo_url="x")
    img = render_config(config, decode_logo(make_logo_png(color=(0, 0, 255, 255)))).to_image()
    assert img.getpixel((172, 172)) == (0, 0, 255, 255)
