"""
Quality presets, glyph ramps and the run configuration.

Everything here is immutable and resolved once before any frame is processed.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

# Define ASCII character sets from dense to sparse
ASCII_SETS: Dict[str, str] = {
    "standard": "@%#*+=-:. ",
    "detailed": "$@B%8&WM#*oahkbdpqwmZO0QLCJUYXzcvunxrjft/\\|()1{}[]?-_+~<>i!lI;:,\"^`'. ",
    "simple": "#@%=+*:-. ",
    "blocks": "█▓▒░ ",
    "numbers": "9876543210 ",
}

DEFAULT_ASCII_SET = "detailed"

# Used when no preset is selected
CUSTOM_DEFAULTS = (800, 30.0, 0.7)


@dataclass(frozen=True)
class GlyphRamp:
    """
    Characters used to render luminance, indexed by normalized luminance.

    Index 0 is used for the darkest cells and the last index for the
    brightest. The built-in sets run from dense to sparse, so a white frame
    renders with the sparsest glyph unless the ramp is inverted.
    """

    chars: str
    name: str = "custom"

    def __post_init__(self):
        if not self.chars:
            raise ValueError("Glyph ramp must contain at least one character")

    def __len__(self) -> int:
        return len(self.chars)

    @classmethod
    def named(cls, name: str = DEFAULT_ASCII_SET, invert: bool = False) -> "GlyphRamp":
        """Build a ramp from one of the built-in ASCII sets."""
        try:
            chars = ASCII_SETS[name]
        except KeyError:
            raise ValueError(
                f"Unknown ASCII set {name!r}; choose from {', '.join(ASCII_SETS)}"
            ) from None
        ramp = cls(chars, name)
        return ramp.inverted() if invert else ramp

    def inverted(self) -> "GlyphRamp":
        return GlyphRamp(self.chars[::-1], self.name)

    @property
    def lightest(self) -> str:
        return self.chars[-1]

    @property
    def densest(self) -> str:
        return self.chars[0]


@dataclass(frozen=True)
class QualityProfile:
    """Named bundle of conversion parameters."""

    name: str
    columns: int
    fps: float
    font_ratio: float

    def __post_init__(self):
        if not isinstance(self.columns, int) or self.columns <= 0:
            raise ValueError(f"columns must be a positive integer, got {self.columns!r}")
        if self.fps <= 0:
            raise ValueError(f"fps must be positive, got {self.fps!r}")
        if self.font_ratio <= 0:
            raise ValueError(f"font ratio must be positive, got {self.font_ratio!r}")


PROFILES: Dict[str, QualityProfile] = {
    "small": QualityProfile("small", 80, 24.0, 0.44),
    "default": QualityProfile("default", 200, 24.0, 0.5),
    "large": QualityProfile("large", 800, 60.0, 0.7),
}


def resolve_profile(
    preset: Optional[str] = None,
    columns: Optional[int] = None,
    fps: Optional[float] = None,
    font_ratio: Optional[float] = None,
) -> QualityProfile:
    """
    Resolve the profile for a run.

    A preset without overrides is returned as-is. Any explicit value turns the
    result into a ``custom`` profile whose remaining fields come from the
    preset, or from ``CUSTOM_DEFAULTS`` when no preset was chosen.
    """
    if preset is not None and preset != "custom":
        if preset not in PROFILES:
            raise ValueError(f"Unknown profile {preset!r}; choose from {', '.join(PROFILES)}")
        base = PROFILES[preset]
        if columns is None and fps is None and font_ratio is None:
            return base
        defaults = (base.columns, base.fps, base.font_ratio)
    else:
        defaults = CUSTOM_DEFAULTS

    return QualityProfile(
        "custom",
        columns if columns is not None else defaults[0],
        float(fps) if fps is not None else defaults[1],
        float(font_ratio) if font_ratio is not None else defaults[2],
    )


@dataclass(frozen=True)
class TimeSegment:
    """Clipping window in source seconds."""

    start: float = 0.0
    end: Optional[float] = None

    def __post_init__(self):
        if self.start < 0:
            raise ValueError(f"segment start must be non-negative, got {self.start}")
        if self.end is not None and self.end < self.start:
            raise ValueError(f"segment end {self.end} is before start {self.start}")

    @property
    def duration(self) -> Optional[float]:
        if self.end is None:
            return None
        return self.end - self.start


@dataclass(frozen=True)
class TrimSpec:
    """Rows/columns to strip from each edge of a written frame."""

    top: int = 0
    bottom: int = 0
    left: int = 0
    right: int = 0

    def __post_init__(self):
        for edge in ("top", "bottom", "left", "right"):
            value = getattr(self, edge)
            if not isinstance(value, int) or value < 0:
                raise ValueError(f"trim {edge} must be a non-negative integer, got {value!r}")

    def __bool__(self) -> bool:
        return any((self.top, self.bottom, self.left, self.right))


@dataclass(frozen=True)
class ConversionConfig:
    """Immutable context threaded through every pipeline stage."""

    profile: QualityProfile = PROFILES["default"]
    ramp: GlyphRamp = field(default_factory=GlyphRamp.named)
    segment: Optional[TimeSegment] = None
    trim: TrimSpec = field(default_factory=TrimSpec)
    luminance: int = 0
    workers: Optional[int] = None

    def __post_init__(self):
        if not 0 <= self.luminance <= 255:
            raise ValueError(f"luminance threshold must be within 0-255, got {self.luminance}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
