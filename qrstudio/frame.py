"""Frame composer: decorative border, banner or badge plus caption around the symbol."""

from qrstudio.gradient import SolidFill
from qrstudio.logging import get_logger
from qrstudio.shapes import Circle, Rect, RoundedRect
from qrstudio.style import FrameStyle, StyleConfig, parse_color

log = get_logger("frame")

FRAME_PAD = 16       # border distance from the symbol
CAPTION_BAND = 36    # caption band height
FRAME_EXTRA = 70     # extra canvas height reserved when a frame is drawn


def frame_extra_height(config: StyleConfig) -> int:
    return FRAME_EXTRA if config.has_frame else 0


def draw_frame(surface, config: StyleConfig, qr_x: float, qr_y: float) -> None:
    """Draw ``config.frame_style`` around the symbol box at (qr_x, qr_y).

    Captions are centered on the symbol. Their size follows the band they sit
    in, and they use the frame's own text color (ticket and circle-badge
    print the caption in the frame color since there is no filled band).
    """
    style = config.frame_style
    if style is FrameStyle.NONE:
        return

    q = config.size
    p = FRAME_PAD
    t = CAPTION_BAND
    frame_fill = SolidFill(parse_color(config.frame_color))
    text_fill = SolidFill(parse_color(config.frame_text_color))
    text = config.frame_text
    mid_x = qr_x + q / 2

    if style is FrameStyle.SIMPLE:
        surface.stroke_shape(Rect(qr_x - p, qr_y - p, q + p * 2, q + p * 2 + t), frame_fill, 3)
        surface.fill_shapes([Rect(qr_x - p, qr_y + q + p - 2, q + p * 2, t)], frame_fill)
        surface.fill_text(text, mid_x, qr_y + q + p + t * 0.65, round(t * 0.45), text_fill)

    elif style is FrameStyle.ROUNDED:
        surface.stroke_shape(RoundedRect(qr_x - p, qr_y - p, q + p * 2, q + p * 2 + t, 16), frame_fill, 3)
        surface.fill_shapes([RoundedRect(qr_x - p + 1.5, qr_y + q + p - 4, q + p * 2 - 3, t + 2, 12)], frame_fill)
        surface.fill_text(text, mid_x, qr_y + q + p + t * 0.6, round(t * 0.45), text_fill)

    elif style is FrameStyle.BANNER_BOTTOM:
        bw = q + p * 4
        bh = t + 8
        bx = mid_x - bw / 2
        by = qr_y + q + 8
        surface.fill_shapes([RoundedRect(bx, by, bw, bh, 10)], frame_fill)
        surface.fill_text(text, mid_x, by + bh * 0.62, round(bh * 0.4), text_fill)

    elif style is FrameStyle.BADGE_TOP:
        bw = min(q * 0.7, 180)
        bh = 32
        bx = mid_x - bw / 2
        by = qr_y - bh - 6
        surface.fill_shapes([RoundedRect(bx, by, bw, bh, 16)], frame_fill)
        surface.fill_text(text, mid_x, by + bh * 0.67, round(bh * 0.48), text_fill)
        surface.stroke_shape(Rect(qr_x - p / 2, qr_y - 4, q + p, q + 8), frame_fill, 2)

    elif style is FrameStyle.TICKET:
        ticket = RoundedRect(qr_x - p, qr_y - p, q + p * 2, q + p * 2 + t, 12)
        surface.stroke_shape(ticket, frame_fill, 2.5, dash=(6, 4))
        surface.fill_text(text, mid_x, qr_y + q + p + t * 0.55, round(t * 0.42), frame_fill)

    elif style is FrameStyle.CIRCLE_BADGE:
        radius = (q + p * 3) / 2
        surface.stroke_shape(Circle(mid_x, qr_y + q / 2, radius), frame_fill, 4)
        surface.fill_text(text, mid_x, qr_y + q + p + 14, round(t * 0.4), frame_fill)

    elif style is FrameStyle.BOLD_BOTTOM:
        bbh = t + 12
        surface.fill_shapes([RoundedRect(qr_x - p - 4, qr_y + q + 4, q + p * 2 + 8, bbh, 14)], frame_fill)
        border = RoundedRect(qr_x - p - 4, qr_y - p - 4, q + p * 2 + 8, q + p * 2 + bbh + 12, 18)
        surface.stroke_shape(border, frame_fill, 3)
        surface.fill_text(text, mid_x, qr_y + q + 4 + bbh * 0.6, round(bbh * 0.42), text_fill, heavy=True)

    log.debug("frame drawn: %s caption=%r", style.value, text)
