"""
Luminance sampling and glyph mapping.

A raster frame is partitioned into ``rows x columns`` cells. Each cell's mean
Rec. 709 luminance is normalized to [0, 1] and used to index the glyph ramp.
All arithmetic on pixel data is done on integers, so the output is a pure
function of the pixels, the profile and the ramp.
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from cascii.errors import InvalidFrame
from cascii.profiles import GlyphRamp, QualityProfile
from cascii.source import RasterFrame

logger = logging.getLogger(__name__)

# Rec. 709 luma coefficients scaled to integers; they sum to LUMA_SCALE.
LUMA_WEIGHTS = (2126, 7152, 722)
LUMA_SCALE = 10000
MAX_LUMA = 255


@dataclass(frozen=True)
class TextFrame:
    """ASCII rendering of one RasterFrame; every row has the same length."""

    index: int
    rows: Tuple[str, ...]
    profile: QualityProfile

    def __post_init__(self):
        if not self.rows:
            raise InvalidFrame(self.index, "text frame has no rows")
        width = len(self.rows[0])
        if any(len(row) != width for row in self.rows):
            raise InvalidFrame(self.index, "text frame rows differ in length")

    @property
    def width(self) -> int:
        return len(self.rows[0])

    @property
    def height(self) -> int:
        return len(self.rows)

    @property
    def text(self) -> str:
        return "\n".join(self.rows)

    def __repr__(self) -> str:
        return f"TextFrame(index={self.index}, size={self.width}x{self.height}, profile={self.profile.name})"


def compute_rows(width: int, height: int, columns: int, font_ratio: float) -> int:
    """Rows needed to keep the source aspect ratio with non-square character cells."""
    return max(1, math.floor(columns * (height / width) * font_ratio + 0.5))


def cell_bounds(size: int, cells: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Split ``size`` pixels into ``cells`` contiguous ranges.

    Returns start and end offsets. Remainder pixels are spread across the
    cells; when there are more cells than pixels each cell still covers one
    pixel.
    """
    edges = (np.arange(cells + 1, dtype=np.int64) * size) // cells
    starts = edges[:-1]
    ends = np.maximum(edges[1:], starts + 1)
    return starts, ends


def luminance(pixels: np.ndarray) -> np.ndarray:
    """Per-pixel luminance scaled by LUMA_SCALE, as int64."""
    rgb = pixels.astype(np.int64)
    r, g, b = LUMA_WEIGHTS
    return rgb[..., 0] * r + rgb[..., 1] * g + rgb[..., 2] * b


def _validate(frame: RasterFrame) -> None:
    pixels = frame.pixels
    if not isinstance(pixels, np.ndarray) or pixels.ndim != 3 or pixels.shape[2] != 3:
        shape = getattr(pixels, "shape", None)
        raise InvalidFrame(frame.index, f"expected an RGB array of shape (height, width, 3), got {shape}")
    if pixels.dtype != np.uint8:
        raise InvalidFrame(frame.index, f"expected uint8 pixels, got {pixels.dtype}")
    if frame.width == 0 or frame.height == 0:
        raise InvalidFrame(frame.index, f"zero-area frame ({frame.width}x{frame.height})")


def frame_to_ascii(
    frame: RasterFrame,
    profile: QualityProfile,
    ramp: GlyphRamp,
    threshold: int = 0,
) -> TextFrame:
    """
    Convert one raster frame into a text frame.

    Args:
        frame: Decoded RGB frame
        profile: Supplies the column count and font ratio
        ramp: Glyphs indexed by normalized luminance
        threshold: Cells darker than this (0-255) render as blank space;
            the ramp then spans [threshold, 255]

    Raises:
        InvalidFrame: pixel data is not a non-empty uint8 RGB array
    """
    _validate(frame)

    columns = profile.columns
    rows = compute_rows(frame.width, frame.height, columns, profile.font_ratio)

    # Summed-area table gives every cell's total in four lookups
    table = np.zeros((frame.height + 1, frame.width + 1), dtype=np.int64)
    table[1:, 1:] = luminance(frame.pixels).cumsum(axis=0).cumsum(axis=1)

    y0, y1 = cell_bounds(frame.height, rows)
    x0, x1 = cell_bounds(frame.width, columns)
    sums = (
        table[np.ix_(y1, x1)] - table[np.ix_(y0, x1)]
        - table[np.ix_(y1, x0)] + table[np.ix_(y0, x0)]
    )
    areas = np.outer(y1 - y0, x1 - x0)

    last = len(ramp) - 1
    floor_sums = threshold * LUMA_SCALE * areas
    if threshold >= MAX_LUMA:
        indices = np.full(sums.shape, last, dtype=np.int64)
    else:
        span = (MAX_LUMA - threshold) * LUMA_SCALE * areas
        indices = np.clip(((sums - floor_sums) * last) // span, 0, last)

    glyphs = np.array(list(ramp.chars))[indices]
    if threshold > 0:
        glyphs[sums < floor_sums] = " "

    text_rows = tuple("".join(row) for row in glyphs.tolist())
    logger.debug("Converted frame %d to %dx%d", frame.index, columns, rows)
    return TextFrame(frame.index, text_rows, profile)
