"""Matrix provider: wraps the qrcode encoder and hands out immutable module grids."""

from dataclasses import dataclass
from enum import Enum

import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError

from qrstudio.errors import InvalidStyleError
from qrstudio.logging import audit, get_logger, trace

log = get_logger("matrix")

FALLBACK_TEXT = "https://pickleplay.ph"
FINDER_SIZE = 7


class ECLevel(str, Enum):
    L = "L"  # 7%
    M = "M"  # 15%
    Q = "Q"  # 25%
    H = "H"  # 30%

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str) and value.upper() in cls.__members__:
            return cls[value.upper()]
        return None

    @property
    def qrcode_constant(self) -> int:
        return _QRCODE_EC[self]


_QRCODE_EC = {
    ECLevel.L: qrcode.constants.ERROR_CORRECT_L,
    ECLevel.M: qrcode.constants.ERROR_CORRECT_M,
    ECLevel.Q: qrcode.constants.ERROR_CORRECT_Q,
    ECLevel.H: qrcode.constants.ERROR_CORRECT_H,
}


def parse_ec_level(value: ECLevel | str) -> ECLevel:
    """ECLevel from an enum or a case-insensitive letter; anything else is a style error."""
    try:
        return ECLevel(value)
    except ValueError:
        raise InvalidStyleError(f"error_correction: {value!r} is not one of L, M, Q, H") from None


@dataclass(frozen=True)
class Matrix:
    """Square boolean module grid (True = dark), quiet zone excluded."""

    modules: tuple[tuple[bool, ...], ...]
    text: str
    error_correction: ECLevel
    fallback_used: bool = False

    @property
    def size(self) -> int:
        return len(self.modules)

    def __getitem__(self, row: int) -> tuple[bool, ...]:
        return self.modules[row]

    def is_dark(self, row: int, col: int) -> bool:
        return self.modules[row][col]


def finder_origins(size: int) -> tuple[tuple[int, int], ...]:
    """(row, col) of the top-left, top-right and bottom-left finder zones."""
    return ((0, 0), (0, size - FINDER_SIZE), (size - FINDER_SIZE, 0))


def is_finder_module(row: int, col: int, size: int) -> bool:
    """True if (row, col) lies inside one of the three 7x7 finder zones."""
    if row < FINDER_SIZE and col < FINDER_SIZE:
        return True
    if row < FINDER_SIZE and col >= size - FINDER_SIZE:
        return True
    if row >= size - FINDER_SIZE and col < FINDER_SIZE:
        return True
    return False


def build_qrcode(text: str, ec: ECLevel, **kwargs) -> qrcode.QRCode:
    """Create and fit a qrcode.QRCode for *text*; raises on unencodable input."""
    qr = qrcode.QRCode(
        version=None,
        error_correction=ec.qrcode_constant,
        box_size=kwargs.pop("box_size", 1),
        border=kwargs.pop("border", 0),
        **kwargs,
    )
    qr.add_data(text)
    qr.make(fit=True)
    return qr


def _encode(text: str, ec: ECLevel) -> tuple[tuple[bool, ...], ...]:
    qr = build_qrcode(text, ec)
    return tuple(tuple(bool(cell) for cell in row) for row in qr.modules)


def resolve_text(text: str, ec: ECLevel) -> str:
    """Text that will actually be encoded: *text*, or the fallback if it cannot be."""
    if not text:
        return FALLBACK_TEXT
    try:
        build_qrcode(text, ec)
    except (DataOverflowError, ValueError):
        return FALLBACK_TEXT
    return text


@trace
def encode_matrix(text: str, ec: ECLevel | str = ECLevel.H) -> Matrix:
    """Encode *text* at *ec* into a Matrix.

    Never raises for bad input: empty or unencodable text is replaced by
    FALLBACK_TEXT so there is always something to render.
    """
    ec = parse_ec_level(ec)
    fallback = False
    modules = None
    if text:
        try:
            modules = _encode(text, ec)
        except (DataOverflowError, ValueError) as e:
            log.warning("Encoding failed (%s); using fallback text", e)
    if modules is None:
        fallback = True
        modules = _encode(FALLBACK_TEXT, ec)
        audit("matrix.fallback", logger=log, requested=text[:80], ec=ec.value)

    matrix = Matrix(
        modules=modules,
        text=FALLBACK_TEXT if fallback else text,
        error_correction=ec,
        fallback_used=fallback,
    )
    audit("matrix.encoded", logger=log,
          data=matrix.text[:80], ec=ec.value, size=f"{matrix.size}x{matrix.size}",
          version=(matrix.size - 17) // 4, fallback=fallback)
    return matrix


class MatrixProvider:
    """Caches the last encoded matrix; re-encodes only when text or EC level change."""

    def __init__(self):
        self._key: tuple[str, ECLevel] | None = None
        self._matrix: Matrix | None = None
        self.encode_count = 0

    def get(self, text: str, ec: ECLevel | str) -> Matrix:
        key = (text, parse_ec_level(ec))
        if self._matrix is None or key != self._key:
            self._matrix = encode_matrix(*key)
            self._key = key
            self.encode_count += 1
        return self._matrix
