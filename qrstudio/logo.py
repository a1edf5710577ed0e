"""Logo overlay: upload checks, decoding, and the circular center composite."""

import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from qrstudio.errors import LogoDecodeError, LogoTooLargeError
from qrstudio.gradient import SolidFill, primary_color
from qrstudio.logging import audit, get_logger, trace
from qrstudio.matrix import ECLevel
from qrstudio.shapes import Circle
from qrstudio.style import StyleConfig, parse_color

log = get_logger("logo")

MAX_LOGO_BYTES = 1024 * 1024
LOGO_RATIO = 0.22     # logo diameter relative to the symbol size
LOGO_PADDING = 6      # background ring around the logo, px
LOGO_RING_WIDTH = 2


def validate_logo_upload(data: bytes, filename: str = "") -> bytes:
    """Reject uploads above MAX_LOGO_BYTES; returns *data* unchanged otherwise."""
    if len(data) > MAX_LOGO_BYTES:
        audit("logo.rejected", logger=log, filename=filename, bytes=len(data), limit=MAX_LOGO_BYTES)
        raise LogoTooLargeError(len(data), MAX_LOGO_BYTES)
    return data


@trace
def decode_logo(data: bytes) -> Image.Image:
    """Decode image bytes into an RGBA image."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            return img.convert("RGBA")
    except (UnidentifiedImageError, OSError) as e:
        raise LogoDecodeError(f"logo is not a readable image: {e}") from e


@trace
def read_logo_file(path: str | Path) -> tuple[bytes, str]:
    """Read a logo file from disk and apply the upload ceiling.

    Returns:
        (bytes, file name)
    """
    path = Path(path)
    data = path.read_bytes()
    return validate_logo_upload(data, path.name), path.name


def logo_circle(config: StyleConfig, origin: tuple[float, float]) -> Circle:
    """Circle the logo is clipped to, centered on the symbol."""
    diameter = config.size * LOGO_RATIO
    qx, qy = origin
    return Circle(qx + config.size / 2, qy + config.size / 2, diameter / 2)


def warn_if_low_ec(config: StyleConfig) -> None:
    """A logo hides modules; below EC level H that may leave the symbol unreadable."""
    if config.has_logo and config.error_correction is not ECLevel.H:
        log.warning("Logo with error correction %s: scannability at risk (H recommended)",
                    config.error_correction.value)


@trace
def composite_logo(surface, logo: Image.Image, config: StyleConfig, origin: tuple[float, float]) -> None:
    """Paint the logo over the finished composition.

    Order: a background-colored disc LOGO_PADDING px wider than the logo, a
    thin ring in the module's primary color around it, then the logo clipped
    to its own circle.
    """
    clip = logo_circle(config, origin)
    pad = Circle(clip.cx, clip.cy, clip.r + LOGO_PADDING)

    surface.fill_shapes([pad], SolidFill(parse_color(config.bg_color)))
    ring_color = primary_color(config.pattern_color, config.pattern_gradient)
    surface.stroke_shape(pad, SolidFill(parse_color(ring_color)), LOGO_RING_WIDTH)
    surface.composite_image(logo, (clip.cx - clip.r, clip.cy - clip.r, clip.r * 2, clip.r * 2), clip=clip)

    audit("logo.composited", logger=log,
          diameter=round(clip.r * 2, 1), source=f"{logo.size[0]}x{logo.size[1]}")
