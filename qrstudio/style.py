"""Style configuration: immutable value objects describing every visual axis of a styled QR."""

import dataclasses
import json
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from PIL import ImageColor

from qrstudio.errors import InvalidStyleError
from qrstudio.matrix import ECLevel

MIN_SIZE = 100
MAX_SIZE = 1000
DEFAULT_FRAME_TEXT = "Scan Me !"


class _StyleEnum(str, Enum):
    """String-valued enum tolerant of case and ``_``/``-`` spelling."""

    @classmethod
    def _missing_(cls, value):
        if not isinstance(value, str):
            return None
        key = value.strip().lower().replace("_", "-")
        key = cls._aliases().get(key, key)
        for member in cls:
            if member.value == key:
                return member
        return None

    @classmethod
    def _aliases(cls) -> dict[str, str]:
        return {}


class PatternStyle(_StyleEnum):
    SQUARE = "square"
    ROUNDED = "rounded"
    DOT = "dot"
    CLASSY = "classy"
    CLASSY_ROUNDED = "classy-rounded"
    EXTRA_ROUNDED = "extra-rounded"

    @classmethod
    def _aliases(cls):
        return {"dots": "dot"}


class CornerSquareStyle(_StyleEnum):
    NONE = "none"
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    OUTPOINT = "outpoint"
    INPOINT = "inpoint"


class CornerDotStyle(_StyleEnum):
    NONE = "none"
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    DIAMOND = "diamond"
    STAR = "star"


class GradientDirection(_StyleEnum):
    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    DIAGONAL = "diagonal"
    RADIAL = "radial"


class FrameStyle(_StyleEnum):
    NONE = "none"
    SIMPLE = "simple"
    ROUNDED = "rounded"
    BANNER_BOTTOM = "banner-bottom"
    BADGE_TOP = "badge-top"
    TICKET = "ticket"
    CIRCLE_BADGE = "circle-badge"
    BOLD_BOTTOM = "bold-bottom"


def _coerce_enum(enum_cls, value, field_name: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidStyleError(f"{field_name}: {value!r} is not one of {allowed}") from None


def _check_color(value: str, field_name: str) -> str:
    if not isinstance(value, str):
        raise InvalidStyleError(f"{field_name}: expected a color string, got {type(value).__name__}")
    try:
        ImageColor.getrgb(value)
    except ValueError:
        raise InvalidStyleError(f"{field_name}: unrecognised color {value!r}") from None
    return value


def parse_color(value: str) -> tuple[int, int, int, int]:
    """Color string to an RGBA tuple."""
    return ImageColor.getcolor(value, "RGBA")


@dataclass(frozen=True)
class GradientConfig:
    """Two-stop gradient; when disabled only ``color1`` matters."""

    enabled: bool = False
    color1: str = "#000000"
    color2: str = "#000000"
    direction: GradientDirection = GradientDirection.HORIZONTAL

    def __post_init__(self):
        object.__setattr__(self, "enabled", bool(self.enabled))
        _check_color(self.color1, "gradient.color1")
        _check_color(self.color2, "gradient.color2")
        object.__setattr__(self, "direction", _coerce_enum(GradientDirection, self.direction, "gradient.direction"))

    def evolve(self, **changes) -> "GradientConfig":
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "enabled": self.enabled,
            "color1": self.color1,
            "color2": self.color2,
            "direction": self.direction.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "GradientConfig":
        return cls(**{k: data[k] for k in ("enabled", "color1", "color2", "direction") if k in data})


@dataclass(frozen=True)
class StyleConfig:
    """Everything that determines how a QR symbol is drawn.

    Instances are immutable and compared by value. Use :meth:`evolve` to
    derive an edited copy.
    """

    url: str = "https://pickleplay.ph"
    label: str = "PicklePlay Marketing"
    pattern_style: PatternStyle = PatternStyle.SQUARE
    pattern_color: str = "#1a7a4c"
    pattern_gradient: GradientConfig = field(default_factory=lambda: GradientConfig(
        enabled=False, color1="#AFD137", color2="#1057A7", direction=GradientDirection.HORIZONTAL,
    ))
    bg_color: str = "#ffffff"
    transparent_bg: bool = False
    bg_gradient: GradientConfig = field(default_factory=lambda: GradientConfig(
        enabled=False, color1="#ffffff", color2="#f0f0f0", direction=GradientDirection.VERTICAL,
    ))
    corner_square_style: CornerSquareStyle = CornerSquareStyle.SQUARE
    corner_square_color: str = "#1a7a4c"
    corner_dot_style: CornerDotStyle = CornerDotStyle.SQUARE
    corner_dot_color: str = "#1a7a4c"
    logo_url: str = ""
    frame_style: FrameStyle = FrameStyle.NONE
    frame_color: str = "#1a7a4c"
    frame_text_color: str = "#ffffff"
    frame_text: str = ""
    size: int = 280
    error_correction: ECLevel = ECLevel.H

    def __post_init__(self):
        def set_(name, value):
            object.__setattr__(self, name, value)

        set_("pattern_style", _coerce_enum(PatternStyle, self.pattern_style, "pattern_style"))
        set_("corner_square_style", _coerce_enum(CornerSquareStyle, self.corner_square_style, "corner_square_style"))
        set_("corner_dot_style", _coerce_enum(CornerDotStyle, self.corner_dot_style, "corner_dot_style"))
        set_("frame_style", _coerce_enum(FrameStyle, self.frame_style, "frame_style"))
        set_("error_correction", _coerce_enum(ECLevel, self.error_correction, "error_correction"))

        for name in ("pattern_gradient", "bg_gradient"):
            value = getattr(self, name)
            if isinstance(value, dict):
                set_(name, GradientConfig.from_dict(value))
            elif not isinstance(value, GradientConfig):
                raise InvalidStyleError(f"{name}: expected a gradient, got {type(value).__name__}")

        for name in ("pattern_color", "bg_color", "corner_square_color", "corner_dot_color",
                     "frame_color", "frame_text_color"):
            _check_color(getattr(self, name), name)

        if isinstance(self.size, bool) or not isinstance(self.size, int):
            raise InvalidStyleError(f"size: expected an integer, got {self.size!r}")
        if not MIN_SIZE <= self.size <= MAX_SIZE:
            raise InvalidStyleError(f"size: {self.size} is outside {MIN_SIZE}-{MAX_SIZE}px")

        set_("transparent_bg", bool(self.transparent_bg))
        set_("url", str(self.url))
        set_("label", str(self.label))
        set_("logo_url", str(self.logo_url or ""))
        # no caption without a frame
        if self.frame_style is FrameStyle.NONE:
            set_("frame_text", "")
        else:
            set_("frame_text", str(self.frame_text))

    # -- copy-on-write --------------------------------------------------------

    def evolve(self, **changes) -> "StyleConfig":
        """Return a copy with *changes* applied (and re-validated)."""
        return dataclasses.replace(self, **changes)

    def with_frame(self, frame_style: FrameStyle | str, text: str | None = None) -> "StyleConfig":
        """Switch frame kind; turning a frame on with no caption uses the default caption."""
        kind = _coerce_enum(FrameStyle, frame_style, "frame_style")
        if text is None:
            text = self.frame_text or DEFAULT_FRAME_TEXT
        return self.evolve(frame_style=kind, frame_text=text)

    @property
    def has_frame(self) -> bool:
        return self.frame_style is not FrameStyle.NONE

    @property
    def has_logo(self) -> bool:
        return bool(self.logo_url)

    # -- serialization --------------------------------------------------------

    def to_dict(self) -> dict:
        out = {}
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, GradientConfig):
                value = value.to_dict()
            elif isinstance(value, Enum):
                value = value.value
            out[f.name] = value
        return out

    @classmethod
    def from_dict(cls, data: dict) -> "StyleConfig":
        """Build from a dict; camelCase keys from the web editor are accepted too."""
        names = {f.name for f in dataclasses.fields(cls)}
        kwargs = {}
        for key, value in data.items():
            name = _snake(key)
            if name in names:
                kwargs[name] = value
        return cls(**kwargs)

    def to_json(self, **kwargs) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    @classmethod
    def from_json(cls, source: str | Path) -> "StyleConfig":
        """Parse a JSON string, or read a JSON file when given a Path."""
        if isinstance(source, Path):
            source = source.read_text(encoding="utf-8")
        try:
            data = json.loads(source)
        except json.JSONDecodeError as e:
            raise InvalidStyleError(f"style JSON is malformed: {e}") from e
        if not isinstance(data, dict):
            raise InvalidStyleError("style JSON must be an object")
        return cls.from_dict(data)


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


DEFAULT_CONFIG = StyleConfig()


# ---------------------------------------------------------------------------
# Preset themes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Theme:
    name: str
    c1: str
    c2: str
    bg: str
    corner: str
    corner_dot: str


PRESET_THEMES = (
    Theme("PicklePlay", "#AFD137", "#1057A7", "#ffffff", "#1057A7", "#AFD137"),
    Theme("Ocean", "#0ea5e9", "#1e3a5f", "#ffffff", "#1e3a5f", "#0ea5e9"),
    Theme("Sunset", "#f97316", "#dc2626", "#fff7ed", "#dc2626", "#f97316"),
    Theme("Royal", "#7c3aed", "#4f46e5", "#ffffff", "#4f46e5", "#7c3aed"),
    Theme("Rose", "#f43f5e", "#be123c", "#fff1f2", "#be123c", "#f43f5e"),
    Theme("Dark", "#22d3ee", "#06b6d4", "#0f172a", "#06b6d4", "#22d3ee"),
    Theme("Classic", "#000000", "#333333", "#ffffff", "#000000", "#000000"),
    Theme("Forest", "#16a34a", "#15803d", "#f0fdf4", "#15803d", "#16a34a"),
)


def get_theme(name: str) -> Theme:
    for theme in PRESET_THEMES:
        if theme.name.lower() == name.lower():
            return theme
    raise InvalidStyleError(f"unknown theme {name!r}")


def apply_theme(config: StyleConfig, theme: Theme | str) -> StyleConfig:
    """Recolor *config* with a preset theme (horizontal module gradient)."""
    if isinstance(theme, str):
        theme = get_theme(theme)
    return config.evolve(
        pattern_gradient=GradientConfig(
            enabled=True, color1=theme.c1, color2=theme.c2, direction=GradientDirection.HORIZONTAL,
        ),
        pattern_color=theme.c1,
        bg_color=theme.bg,
        corner_square_color=theme.corner,
        corner_dot_color=theme.corner_dot,
        frame_color=theme.corner,
    )


# ---------------------------------------------------------------------------
# WCAG contrast ratio
# ---------------------------------------------------------------------------

def _linearize(channel: int) -> float:
    """sRGB channel (0-255) to linear light."""
    c = channel / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def _luminance(rgb: tuple[int, int, int]) -> float:
    """Relative luminance per WCAG 2.0."""
    r, g, b = [_linearize(ch) for ch in rgb]
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def check_contrast(fg: str, bg: str) -> float:
    """WCAG contrast ratio between two colors (1.0 - 21.0)."""
    l1 = _luminance(parse_color(fg)[:3])
    l2 = _luminance(parse_color(bg)[:3])
    if l1 < l2:
        l1, l2 = l2, l1
    return (l1 + 0.05) / (l2 + 0.05)
