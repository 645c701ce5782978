"""
Output writer: one UTF-8 text file per frame plus a completion marker.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Union

from cascii.convert import TextFrame
from cascii.errors import OutputWriteFailed
from cascii.profiles import QualityProfile

logger = logging.getLogger(__name__)

DETAILS_FILE = "details.md"
FRAME_FILE = re.compile(r"^frame_\d{4,}\.txt$")


def frame_filename(index: int) -> str:
    """File name for a 1-based frame ordinal."""
    return f"frame_{index:04d}.txt"


def list_frame_files(directory: Union[str, Path]) -> List[Path]:
    """Frame files in ``directory`` sorted by name (which is temporal order)."""
    return sorted(
        (p for p in Path(directory).iterdir() if p.is_file() and FRAME_FILE.match(p.name)),
        key=lambda p: p.name,
    )


def atomic_write_text(path: Union[str, Path], content: str) -> None:
    """Write ``content`` to a sibling temp file and rename it over ``path``."""
    path = Path(path)
    tmp_name = None
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name is not None and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteFailed(path, e.strerror or str(e)) from e


def prepare_output_dir(directory: Union[str, Path], overwrite: bool = True) -> Path:
    """
    Create the output directory and clear the results of any earlier run.

    The completion marker is removed first so an interrupted run never looks
    finished.
    """
    directory = Path(directory)
    try:
        directory.mkdir(parents=True, exist_ok=True)
        stale = list_frame_files(directory)
        if stale and not overwrite:
            raise OutputWriteFailed(directory, f"already contains {len(stale)} frame files")
        marker = directory / DETAILS_FILE
        if marker.exists():
            marker.unlink()
        for path in stale:
            path.unlink()
    except OSError as e:
        raise OutputWriteFailed(directory, e.strerror or str(e)) from e
    if stale:
        logger.info("Removed %d frame files from a previous run in %s", len(stale), directory)
    return directory


def write_frame(frame: TextFrame, directory: Union[str, Path]) -> Path:
    path = Path(directory) / frame_filename(frame.index)
    atomic_write_text(path, frame.text)
    return path


def write_frames(
    frames: Iterable[TextFrame],
    directory: Union[str, Path],
    on_frame: Optional[Callable[[TextFrame], None]] = None,
) -> int:
    """Write frames in the order given and return how many were written."""
    count = 0
    for frame in frames:
        write_frame(frame, directory)
        count += 1
        if on_frame is not None:
            on_frame(frame)
    logger.info("Wrote %d frames to %s", count, directory)
    return count


def write_details(
    directory: Union[str, Path],
    frame_count: int,
    profile: QualityProfile,
    luminance: int,
    fps: Optional[float] = None,
) -> Path:
    """Write the run summary that marks the output directory as complete."""
    details = (
        f"Frames: {frame_count}\n"
        f"Luminance: {luminance}\n"
        f"Font Ratio: {profile.font_ratio:g}\n"
        f"Columns: {profile.columns}\n"
        f"Profile: {profile.name}"
    )
    if fps is not None:
        details += f"\nFPS: {fps:g}"
    path = Path(directory) / DETAILS_FILE
    atomic_write_text(path, details + "\n")
    return path
