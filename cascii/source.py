"""
Raster source resolution.

An input path is classified as either a :class:`VideoFile` or an
:class:`ImageDirectory`. Image directories produce :class:`RasterFrame` objects
lazily in lexicographic filename order; video files are handed to
:mod:`cascii.extract` for decoding.
"""

import logging
import re
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, NamedTuple, Optional, Tuple, Union

import numpy as np
from PIL import Image

from cascii.errors import UnsupportedInput

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".gif", ".webp")
VIDEO_EXTENSIONS = (".mp4", ".mov", ".avi", ".mkv", ".webm")


@dataclass(frozen=True, eq=False)
class RasterFrame:
    """
    One decoded bitmap.

    Attributes:
        index: 1-based ordinal within the source
        timestamp: source time in seconds (frame units for image directories)
        pixels: read-only uint8 array of shape (height, width, 3)
    """

    index: int
    timestamp: float
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1]) if self.pixels.ndim >= 2 else 0

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0]) if self.pixels.ndim >= 1 else 0

    def __repr__(self) -> str:
        return (
            f"RasterFrame(index={self.index}, "
            f"timestamp={self.timestamp:.3f}, "
            f"size={self.width}x{self.height})"
        )


class FrameStream(NamedTuple):
    """Lazily decoded frames together with how many there will be."""

    frames: Iterator[RasterFrame]
    total: int


@dataclass(frozen=True)
class VideoFile:
    path: Path
    width: int
    height: int
    duration: Optional[float] = None

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height


@dataclass(frozen=True)
class ImageDirectory:
    path: Path
    files: Tuple[Path, ...]
    width: int
    height: int

    @property
    def dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def __len__(self) -> int:
        return len(self.files)

    def frames(self) -> Iterator[RasterFrame]:
        """Decode the images one at a time, one frame per file."""
        for index, image_path in enumerate(self.files, start=1):
            yield load_raster(image_path, index, float(index - 1))

    def stream(self) -> FrameStream:
        return FrameStream(self.frames(), len(self.files))


RasterSource = Union[VideoFile, ImageDirectory]


def load_raster(image_path: Union[str, Path], index: int, timestamp: float) -> RasterFrame:
    """Decode an image file into an RGB RasterFrame."""
    try:
        with Image.open(image_path) as image:
            pixels = np.array(image.convert("RGB"), dtype=np.uint8)
    except OSError as e:
        raise UnsupportedInput(image_path, f"cannot decode image: {e}") from e
    pixels.setflags(write=False)
    return RasterFrame(index, timestamp, pixels)


def is_image_file(path: Path) -> bool:
    return path.is_file() and path.suffix.lower() in IMAGE_EXTENSIONS


def list_images(directory: Union[str, Path]) -> Tuple[Path, ...]:
    """Image files directly inside ``directory``, sorted by filename."""
    return tuple(sorted(
        (p for p in Path(directory).iterdir() if is_image_file(p)),
        key=lambda p: p.name,
    ))


def probe_video(video_path: Union[str, Path]) -> VideoFile:
    """Read dimensions and duration of the first video stream with ffprobe."""
    video_path = Path(video_path)
    if shutil.which("ffprobe") is None:
        raise UnsupportedInput(video_path, "ffprobe is required to read video files but was not found")

    cmd = ["ffprobe", "-v", "error", "-select_streams", "v:0",
           "-show_entries", "stream=width,height:format=duration",
           "-of", "default=noprint_wrappers=1", str(video_path)]
    result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise UnsupportedInput(video_path, f"ffprobe could not read the file: {result.stderr.strip()}")

    output = result.stdout
    width_match = re.search(r'width=(\d+)', output)
    height_match = re.search(r'height=(\d+)', output)
    duration_match = re.search(r'duration=([0-9.]+)', output)
    if not (width_match and height_match):
        raise UnsupportedInput(video_path, "no video stream found")

    duration = float(duration_match.group(1)) if duration_match else None
    video = VideoFile(video_path, int(width_match.group(1)), int(height_match.group(1)), duration)
    logger.debug("Probed %s: %dx%d, duration=%s", video_path, video.width, video.height, duration)
    return video


def resolve_source(input_path: Union[str, Path]) -> RasterSource:
    """Classify ``input_path`` as a video file or an image directory."""
    input_path = Path(input_path)

    if input_path.is_dir():
        files = list_images(input_path)
        if not files:
            raise UnsupportedInput(
                input_path,
                f"directory contains no images ({', '.join(IMAGE_EXTENSIONS)})",
            )
        try:
            with Image.open(files[0]) as first:
                width, height = first.size
        except OSError as e:
            raise UnsupportedInput(files[0], f"cannot decode image: {e}") from e
        logger.info("Found %d images in %s", len(files), input_path)
        return ImageDirectory(input_path, files, width, height)

    if input_path.is_file():
        if input_path.suffix.lower() in VIDEO_EXTENSIONS:
            return probe_video(input_path)
        if input_path.suffix.lower() in IMAGE_EXTENSIONS:
            raise UnsupportedInput(input_path, "single images are not supported; pass their directory instead")
        raise UnsupportedInput(
            input_path,
            f"unrecognized file type {input_path.suffix or '(none)'}; "
            f"supported videos: {', '.join(VIDEO_EXTENSIONS)}",
        )

    raise UnsupportedInput(input_path, "path does not exist")
