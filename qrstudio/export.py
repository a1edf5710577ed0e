"""Export: raster bytes, flat vector SVG, download names and clipboard copy."""

import re
import shutil
import subprocess
import sys
import tempfile
import xml.etree.ElementTree as ET
from pathlib import Path

from qrcode.image.svg import SvgPathImage

from qrstudio.logging import audit, get_logger, trace
from qrstudio.matrix import build_qrcode, resolve_text
from qrstudio.style import StyleConfig

log = get_logger("export")

SVG_NS = "http://www.w3.org/2000/svg"
SVG_QUIET_ZONE = 4


def export_filename(label: str, ext: str) -> str:
    """Download name derived from the label: ``My Poster`` -> ``My_Poster_QR.png``."""
    stem = re.sub(r"\s+", "_", label.strip())
    stem = re.sub(r"[^A-Za-z0-9_.-]", "", stem).strip(".")
    return f"{stem or 'qr'}_QR.{ext.lstrip('.').lower()}"


@trace
def export_png(surface) -> bytes:
    """PNG bytes of the finished composition."""
    data = surface.export_raster("PNG")
    audit("export.png", logger=log, bytes=len(data), canvas=f"{surface.width}x{surface.height}")
    return data


@trace
def export_svg(config: StyleConfig) -> str:
    """Vector export through qrcode's own SVG path serializer.

    Only the flat module color and the background color are carried over;
    pattern shape, corner styles, gradients, frame and logo are not. A
    transparent background leaves the SVG without a background rectangle.
    """
    text = resolve_text(config.url, config.error_correction)
    qr = build_qrcode(text, config.error_correction, box_size=10, border=SVG_QUIET_ZONE)
    svg = qr.make_image(image_factory=SvgPathImage).to_string(encoding="unicode")

    ET.register_namespace("", SVG_NS)
    root = ET.fromstring(svg)
    root.set("width", str(config.size))
    root.set("height", str(config.size))

    for path in root.iter(f"{{{SVG_NS}}}path"):
        path.set("fill", config.pattern_color)
    for rect in list(root.iter(f"{{{SVG_NS}}}rect")):
        root.remove(rect)
    if not config.transparent_bg:
        background = ET.Element(f"{{{SVG_NS}}}rect", {
            "x": "0", "y": "0", "width": "100%", "height": "100%", "fill": config.bg_color,
        })
        root.insert(0, background)

    out = ET.tostring(root, encoding="unicode")
    audit("export.svg", logger=log, data=text[:80], size=config.size,
          dark=config.pattern_color, light="none" if config.transparent_bg else config.bg_color)
    return out


def save_exports(config: StyleConfig, directory: str | Path, png: bytes | None = None,
                 svg: str | None = None) -> list[Path]:
    """Write the given artifacts into *directory* under label-derived names."""
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    written = []
    if png is not None:
        path = directory / export_filename(config.label, "png")
        path.write_bytes(png)
        written.append(path)
    if svg is not None:
        path = directory / export_filename(config.label, "svg")
        path.write_text(svg, encoding="utf-8")
        written.append(path)
    for path in written:
        audit("export.saved", logger=log, path=str(path))
    return written


# ---------------------------------------------------------------------------
# Clipboard (best effort)
# ---------------------------------------------------------------------------

def _run_clipboard_tool(png: bytes) -> str | None:
    """Hand *png* to the first available clipboard tool; returns its name."""
    if sys.platform == "darwin":
        if shutil.which("osascript") is None:
            return None
        with tempfile.NamedTemporaryFile(suffix=".png", delete=False) as tmp:
            tmp.write(png)
        try:
            script = f'set the clipboard to (read (POSIX file "{tmp.name}") as «class PNGf»)'
            subprocess.run(["osascript", "-e", script], check=True, capture_output=True)
        finally:
            Path(tmp.name).unlink(missing_ok=True)
        return "osascript"

    for cmd in (["wl-copy", "--type", "image/png"],
                ["xclip", "-selection", "clipboard", "-t", "image/png", "-i"]):
        if shutil.which(cmd[0]) is None:
            continue
        subprocess.run(cmd, input=png, check=True)
        return cmd[0]
    return None


@trace
def copy_image_to_clipboard(png: bytes) -> bool:
    """Put *png* on the system clipboard.

    Failures are logged and swallowed, and the call still reports success,
    matching what the editor shows the user.
    """
    try:
        tool = _run_clipboard_tool(png)
    except (subprocess.SubprocessError, OSError) as e:
        log.warning("Clipboard copy failed: %s", e)
        return True
    if tool is None:
        log.warning("No clipboard tool available; image not copied")
        return True
    audit("clipboard.copied", logger=log, tool=tool, bytes=len(png))
    return True
