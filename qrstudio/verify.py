"""Scan verification: decode rendered artwork back with real QR readers."""

import io
import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

try:
    from pyzbar.pyzbar import ZBarSymbol
    from pyzbar.pyzbar import decode as pyzbar_decode
except ImportError as e:  # pyzbar loads the system libzbar at import time
    ZBarSymbol = pyzbar_decode = None
    PYZBAR_IMPORT_ERROR = str(e)
else:
    PYZBAR_IMPORT_ERROR = None

from qrstudio.logging import audit, get_logger, trace

log = get_logger("verify")


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = ""
    error: str | None = None


def flatten(image: Image.Image, background: tuple[int, int, int] = (255, 255, 255)) -> Image.Image:
    """Composite a (possibly transparent) render onto an opaque background.

    Readers see transparent pixels as black otherwise.
    """
    if image.mode != "RGBA":
        return image.convert("RGB")
    base = Image.new("RGBA", image.size, background + (255,))
    base.alpha_composite(image)
    return base.convert("RGB")


def load_image(source) -> Image.Image:
    """Accept a PIL image, raw PNG bytes, or a path."""
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, (bytes, bytearray)):
        source = io.BytesIO(source)
    with Image.open(source) as img:
        img.load()
        return img.copy()


def _timed(decoder: str, start: float, data: str | None, error: str | None = None) -> ScanResult:
    elapsed = (time.perf_counter() - start) * 1000
    if data:
        audit("scan.verified", logger=log, decoder=decoder, success=True,
              time_ms=round(elapsed, 1), data=data[:80])
        return ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed, decoder=decoder)
    error = error or "No QR code detected"
    audit("scan.verified", logger=log, decoder=decoder, success=False,
          time_ms=round(elapsed, 1), error=error)
    return ScanResult(success=False, decode_time_ms=elapsed, decoder=decoder, error=error)


@trace
def scan_pyzbar(image: Image.Image) -> ScanResult:
    """Scan with pyzbar (ZBar)."""
    start = time.perf_counter()
    if pyzbar_decode is None:
        return _timed("pyzbar/zbar", start, None, f"pyzbar unavailable: {PYZBAR_IMPORT_ERROR}")
    try:
        results = pyzbar_decode(flatten(image), symbols=[ZBarSymbol.QRCODE])
    except Exception as e:  # zbar failures arrive as assorted ctypes/OS errors
        return _timed("pyzbar/zbar", start, None, str(e))
    data = results[0].data.decode("utf-8", errors="replace") if results else None
    return _timed("pyzbar/zbar", start, data)


@trace
def scan_opencv(image: Image.Image) -> ScanResult:
    """Scan with OpenCV's QRCodeDetector."""
    start = time.perf_counter()
    try:
        gray = cv2.cvtColor(np.array(flatten(image)), cv2.COLOR_RGB2GRAY)
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        return _timed("opencv", start, None, str(e))
    return _timed("opencv", start, data or None)


@trace
def verify(image: Image.Image, expected_data: str | None = None) -> list[ScanResult]:
    """Run every decoder on *image*.

    Args:
        image: Rendered QR artwork.
        expected_data: If given, a decode of anything else counts as a failure.

    Returns:
        One ScanResult per decoder.
    """
    results = []
    for scanner in (scan_pyzbar, scan_opencv):
        result = scanner(image)
        if result.success and expected_data is not None and result.decoded_data != expected_data:
            result.success = False
            result.error = f"Data mismatch: got '{result.decoded_data}', expected '{expected_data}'"
        results.append(result)
    return results


def available_decoders() -> list[str]:
    """Names of the decoders that can run in this environment."""
    return ["opencv"] if pyzbar_decode is None else ["pyzbar/zbar", "opencv"]


def is_scannable(image: Image.Image, expected_data: str | None = None) -> bool:
    """True when at least one reader decodes the expected payload."""
    return any(r.success for r in verify(image, expected_data))
