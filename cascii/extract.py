"""
Frame extraction for video input.

Decoding is delegated to ffmpeg, which writes numbered PNG files into a
temporary directory. The directory lives for the duration of the
:func:`extracted_frames` context and is removed on exit, whether or not the
conversion succeeded.
"""

import logging
import re
import shutil
import subprocess
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Sequence, Union

from cascii.errors import ExtractionFailed, InvalidSegment
from cascii.profiles import TimeSegment
from cascii.source import FrameStream, RasterFrame, VideoFile, load_raster

logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame_%04d.png"
_FRAME_NAME = re.compile(r"frame_(\d+)\.png$")


def check_segment(video: VideoFile, segment: Optional[TimeSegment]) -> Optional[TimeSegment]:
    """Validate ``segment`` against the probed duration of ``video``."""
    if segment is None or video.duration is None:
        return segment
    end = segment.end if segment.end is not None else video.duration
    if segment.start >= video.duration or end > video.duration:
        raise InvalidSegment(video.path, segment.start, end, video.duration)
    return segment


def build_ffmpeg_command(
    video_path: Union[str, Path],
    fps: float,
    out_dir: Union[str, Path],
    segment: Optional[TimeSegment] = None,
) -> List[str]:
    """Assemble the ffmpeg invocation; seeking options precede the input so clipping happens before decode."""
    cmd = ["ffmpeg", "-nostdin", "-loglevel", "error"]
    if segment is not None and segment.start > 0:
        cmd.extend(["-ss", f"{segment.start:.3f}"])
    cmd.extend(["-i", str(video_path)])
    if segment is not None and segment.duration is not None:
        cmd.extend(["-t", f"{segment.duration:.3f}"])
    cmd.extend([
        "-vf", f"fps={fps:g}",
        "-start_number", "1",
        str(Path(out_dir) / FRAME_PATTERN),
    ])
    return cmd


def run_ffmpeg_extract(
    video_path: Union[str, Path],
    fps: float,
    out_dir: Union[str, Path],
    segment: Optional[TimeSegment] = None,
) -> List[Path]:
    """Extract frames from a video into ``out_dir`` and return them in order."""
    if shutil.which("ffmpeg") is None:
        raise ExtractionFailed(video_path, "ffmpeg is required for video processing but was not found")

    cmd = build_ffmpeg_command(video_path, fps, out_dir, segment)
    logger.info("Extracting frames at %g FPS from %s", fps, video_path)
    logger.debug("Running: %s", " ".join(cmd))

    result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    if result.returncode != 0:
        raise ExtractionFailed(video_path, "ffmpeg exited with an error", result.returncode, result.stderr)

    # Length first keeps frame_10000 after frame_9999
    frame_paths = sorted(Path(out_dir).glob("frame_*.png"), key=lambda p: (len(p.name), p.name))
    if not frame_paths:
        raise ExtractionFailed(video_path, "no frames were extracted", stderr=result.stderr)
    _check_dense(video_path, frame_paths)

    logger.info("Extracted %d frames", len(frame_paths))
    return frame_paths


def _check_dense(video_path: Union[str, Path], frame_paths: Sequence[Path]) -> None:
    for expected, path in enumerate(frame_paths, start=1):
        match = _FRAME_NAME.search(path.name)
        if match is None or int(match.group(1)) != expected:
            raise ExtractionFailed(video_path, f"unexpected frame file {path.name} (expected frame {expected})")


def iter_extracted(frame_paths: Sequence[Path], fps: float, start: float = 0.0) -> Iterator[RasterFrame]:
    for index, frame_path in enumerate(frame_paths, start=1):
        yield load_raster(frame_path, index, start + (index - 1) / fps)


@contextmanager
def extracted_frames(
    video: VideoFile,
    fps: float,
    segment: Optional[TimeSegment] = None,
) -> Iterator[FrameStream]:
    """
    Extract ``video`` at ``fps`` and yield a lazy stream of its frames.

    Usage::

        with extracted_frames(video, 24) as stream:
            for frame in stream.frames:
                ...

    Raises:
        InvalidSegment: segment lies outside the video duration
        ExtractionFailed: ffmpeg is missing, fails, or yields no frames
    """
    segment = check_segment(video, segment)
    with tempfile.TemporaryDirectory(prefix="cascii-") as tmp_dir:
        frame_paths = run_ffmpeg_extract(video.path, fps, tmp_dir, segment)
        start = segment.start if segment is not None else 0.0
        yield FrameStream(iter_extracted(frame_paths, fps, start), len(frame_paths))
        logger.debug("Removing extracted frames in %s", tmp_dir)
