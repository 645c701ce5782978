"""
End-to-end conversion: resolve the source, convert every frame in parallel,
write the results, trim them if requested and mark the run complete.
"""

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator, Optional, Union

from cascii.convert import TextFrame
from cascii.extract import extracted_frames
from cascii.profiles import ConversionConfig
from cascii.scheduler import convert_frames
from cascii.source import FrameStream, ImageDirectory, RasterSource, VideoFile, resolve_source
from cascii.trim import trim_frames
from cascii.writer import prepare_output_dir, write_details, write_frames

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversionResult:
    source: RasterSource
    output_dir: Path
    frame_count: int
    config: ConversionConfig


@contextmanager
def open_frames(source: RasterSource, config: ConversionConfig) -> Iterator[FrameStream]:
    """Frame stream for either kind of source; extraction artifacts live as long as the context."""
    if isinstance(source, VideoFile):
        with extracted_frames(source, config.profile.fps, config.segment) as stream:
            yield stream
    elif isinstance(source, ImageDirectory):
        if config.segment is not None:
            logger.warning("Time segments only apply to video input; ignoring it for %s", source.path)
        yield source.stream()
    else:
        raise TypeError(f"Unknown raster source: {source!r}")


def run_conversion(
    input_path: Union[str, Path],
    output_dir: Union[str, Path],
    config: ConversionConfig,
    overwrite: bool = True,
    on_start: Optional[Callable[[int], None]] = None,
    on_frame: Optional[Callable[[TextFrame], None]] = None,
) -> ConversionResult:
    """
    Convert a video or image directory into numbered ASCII frame files.

    Args:
        input_path: Video file or directory of images
        output_dir: Directory receiving ``frame_0001.txt`` ... and ``details.md``
        config: Profile, ramp, segment and trim for this run
        overwrite: Replace frame files left by an earlier run
        on_start: Called with the number of frames once it is known
        on_frame: Called after each frame has been written

    Returns:
        ConversionResult describing what was written

    Any error aborts the run before ``details.md`` is written.
    """
    source = resolve_source(input_path)
    width, height = source.dimensions
    logger.info(
        "Converting %s (%dx%d) with profile %s: %d columns, font ratio %g",
        source.path, width, height, config.profile.name,
        config.profile.columns, config.profile.font_ratio,
    )

    output_dir = prepare_output_dir(output_dir, overwrite)

    with open_frames(source, config) as stream:
        if on_start is not None:
            on_start(stream.total)
        text_frames = convert_frames(
            stream.frames,
            config.profile,
            config.ramp,
            threshold=config.luminance,
            workers=config.workers,
        )
        frame_count = write_frames(text_frames, output_dir, on_frame)

    if config.trim:
        trim_frames(output_dir, config.trim)

    is_video = isinstance(source, VideoFile)
    write_details(
        output_dir,
        frame_count,
        config.profile,
        config.luminance,
        fps=config.profile.fps if is_video else None,
    )
    logger.info("ASCII generation complete in %s", output_dir)
    return ConversionResult(source, output_dir, frame_count, config)
