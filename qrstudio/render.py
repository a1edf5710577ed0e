"""Render pipeline: canvas layout and the pure ``render(matrix, config) -> surface`` pass.

Paint order: background, data modules, finder zones (with background
repaint), frame, logo. Nothing here reads ambient state; everything comes in
through the arguments.
"""

from dataclasses import dataclass

from PIL import Image

from qrstudio.finders import draw_finders
from qrstudio.frame import draw_frame, frame_extra_height
from qrstudio.gradient import background_fill, primary_color
from qrstudio.logging import audit, get_logger, trace
from qrstudio.logo import composite_logo, warn_if_low_ec
from qrstudio.matrix import Matrix, encode_matrix
from qrstudio.modules import draw_modules
from qrstudio.shapes import Rect
from qrstudio.style import StyleConfig, check_contrast
from qrstudio.surface import RasterSurface

log = get_logger("render")

PADDING = 32  # quiet zone around the symbol, px


@dataclass(frozen=True)
class Layout:
    """Canvas geometry for one render pass."""

    width: int
    height: int
    qr_x: float
    qr_y: float
    module_count: int
    module_size: float

    @property
    def origin(self) -> tuple[float, float]:
        return self.qr_x, self.qr_y


def compute_layout(config: StyleConfig, module_count: int) -> Layout:
    """Canvas is the symbol plus PADDING on each side, plus frame room at the bottom."""
    width = config.size + PADDING * 2
    height = config.size + PADDING * 2 + frame_extra_height(config)
    return Layout(
        width=width,
        height=height,
        qr_x=PADDING,
        qr_y=PADDING,
        module_count=module_count,
        module_size=config.size / module_count,
    )


def _check_contrast(config: StyleConfig) -> None:
    if config.transparent_bg:
        return
    fg = primary_color(config.pattern_color, config.pattern_gradient)
    ratio = check_contrast(fg, config.bg_color)
    if ratio < 4.5:
        log.warning("Contrast ratio %.1f:1 is below 4.5:1 - scannability at risk", ratio)


@trace
def paint(surface, matrix: Matrix, config: StyleConfig, layout: Layout) -> None:
    """Everything up to (not including) the logo."""
    background = background_fill(config, (layout.width, layout.height))
    surface.clear()
    if background is not None:
        surface.fill_shapes([Rect(0, 0, layout.width, layout.height)], background)

    draw_modules(surface, matrix, config, layout.origin)
    draw_finders(surface, matrix, config, layout.origin, background)
    draw_frame(surface, config, layout.qr_x, layout.qr_y)


@trace
def render(matrix: Matrix, config: StyleConfig, logo: Image.Image | None = None) -> RasterSurface:
    """Render *matrix* in *config*'s style onto a fresh raster surface.

    Args:
        matrix: Module grid from the matrix provider.
        config: Style.
        logo: Decoded logo image to composite last, or None.
    """
    layout = compute_layout(config, matrix.size)
    surface = RasterSurface(layout.width, layout.height)
    _check_contrast(config)

    paint(surface, matrix, config, layout)
    if logo is not None:
        warn_if_low_ec(config)
        composite_logo(surface, logo, config, layout.origin)

    audit("render.completed", logger=log,
          canvas=f"{layout.width}x{layout.height}", modules=matrix.size,
          pattern=config.pattern_style.value, frame=config.frame_style.value,
          logo=logo is not None)
    return surface


def render_config(config: StyleConfig, logo: Image.Image | None = None) -> RasterSurface:
    """Encode ``config.url`` and render it in one call."""
    return render(encode_matrix(config.url, config.error_correction), config, logo)
