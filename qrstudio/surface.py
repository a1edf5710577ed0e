"""Drawing surface capability interface and the Pillow raster backend.

The renderers only talk to :class:`Surface`; they never touch Pillow directly.
That keeps style resolution (which shape, which paint) in one place and lets
another backend replay the same calls.
"""

import functools
import io
from abc import ABC, abstractmethod

from PIL import Image, ImageChops, ImageDraw, ImageFont

from qrstudio.gradient import Fill
from qrstudio.logging import get_logger
from qrstudio.shapes import Circle, Rect, Shape, dash_polyline

log = get_logger("surface")

_FONT_FILES = {
    False: ("DejaVuSans-Bold.ttf", "Arial Bold.ttf", "arialbd.ttf"),
    True: ("DejaVuSans-Bold.ttf", "Arial Black.ttf", "ariblk.ttf"),
}


@functools.lru_cache(maxsize=64)
def load_font(size: int, heavy: bool = False) -> ImageFont.FreeTypeFont:
    """Bold font at *size* px; falls back to Pillow's scalable default font."""
    for name in _FONT_FILES[heavy]:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.debug("No bold TrueType font found; using Pillow default at %dpx", size)
    return ImageFont.load_default(size=size)


class Surface(ABC):
    """What a renderer may do to a canvas."""

    width: int
    height: int

    @property
    def size(self) -> tuple[int, int]:
        return self.width, self.height

    @abstractmethod
    def clear(self, rect: Rect | None = None) -> None:
        """Reset *rect* (or everything) to fully transparent."""

    @abstractmethod
    def fill_shapes(self, shapes: list[Shape], fill: Fill) -> None:
        """Fill all *shapes* with one paint resolved once for the whole batch."""

    @abstractmethod
    def stroke_shape(self, shape: Shape, fill: Fill, width: float,
                     dash: tuple[float, float] | None = None) -> None:
        """Stroke *shape*'s outline, centered on the path."""

    @abstractmethod
    def fill_text(self, text: str, x: float, baseline: float, font_size: int, fill: Fill,
                  heavy: bool = False) -> None:
        """Draw *text* horizontally centered on *x* with its baseline at *baseline*."""

    @abstractmethod
    def composite_image(self, image: Image.Image, box: tuple[float, float, float, float],
                        clip: Circle | None = None) -> None:
        """Scale *image* into *box* (x, y, w, h), optionally clipped to *clip*."""

    @abstractmethod
    def export_raster(self, fmt: str = "PNG") -> bytes:
        """Encode the current pixels."""


class RasterSurface(Surface):
    """RGBA Pillow canvas. Shapes rasterize into a coverage mask, paint goes through it."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.image = Image.new("RGBA", (width, height), (0, 0, 0, 0))

    def _new_mask(self) -> tuple[Image.Image, ImageDraw.ImageDraw]:
        mask = Image.new("L", self.size, 0)
        return mask, ImageDraw.Draw(mask)

    def _paint(self, mask: Image.Image, fill: Fill) -> None:
        if mask.getbbox() is None:
            return
        layer = fill.render(self.size)
        layer.putalpha(ImageChops.multiply(layer.getchannel("A"), mask))
        self.image.alpha_composite(layer)

    def clear(self, rect: Rect | None = None) -> None:
        if rect is None:
            self.image = Image.new("RGBA", self.size, (0, 0, 0, 0))
            return
        mask, draw = self._new_mask()
        rect.fill(draw)
        self.image.paste((0, 0, 0, 0), (0, 0), mask)

    def fill_shapes(self, shapes, fill):
        mask, draw = self._new_mask()
        for shape in shapes:
            shape.fill(draw)
        self._paint(mask, fill)

    def stroke_shape(self, shape, fill, width, dash=None):
        mask, draw = self._new_mask()
        if dash is None:
            shape.stroke(draw, width)
        else:
            lw = max(1, round(width))
            for run in dash_polyline(shape.outline(), dash):
                draw.line(run, fill=255, width=lw)
        self._paint(mask, fill)

    def fill_text(self, text, x, baseline, font_size, fill, heavy=False):
        if not text:
            return
        mask, draw = self._new_mask()
        draw.text((x, baseline), text, font=load_font(max(1, font_size), heavy), fill=255, anchor="ms")
        self._paint(mask, fill)

    def composite_image(self, image, box, clip=None):
        x, y, w, h = box
        left, top = round(x), round(y)
        w, h = max(1, round(w)), max(1, round(h))
        scaled = image.convert("RGBA").resize((w, h), Image.LANCZOS)

        layer = Image.new("RGBA", self.size, (0, 0, 0, 0))
        layer.paste(scaled, (left, top))
        if clip is not None:
            mask, draw = self._new_mask()
            clip.fill(draw)
            layer.putalpha(ImageChops.multiply(layer.getchannel("A"), mask))
        self.image.alpha_composite(layer)

    def export_raster(self, fmt="PNG"):
        buf = io.BytesIO()
        image = self.image if fmt.upper() == "PNG" else self.image.convert("RGB")
        image.save(buf, format=fmt)
        return buf.getvalue()

    def to_image(self) -> Image.Image:
        return self.image.copy()
