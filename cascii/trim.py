"""
In-place trimming of written frame files.

Every frame is read and checked before any file is rewritten, so an
oversized trim leaves the whole frame set untouched.
"""

import logging
from pathlib import Path
from typing import List, Tuple, Union

from cascii.errors import InvalidFrame, OutputWriteFailed, TrimExceedsFrame, UnsupportedInput
from cascii.profiles import TrimSpec
from cascii.writer import atomic_write_text, list_frame_files

logger = logging.getLogger(__name__)


def trim_rows(rows: List[str], trim: TrimSpec) -> List[str]:
    """Remove ``trim`` rows/columns from the edges of a rectangular grid."""
    kept = rows[trim.top:len(rows) - trim.bottom]
    return [row[trim.left:len(row) - trim.right] for row in kept]


def _read_frame(path: Path) -> Tuple[List[str], bool]:
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        raise OutputWriteFailed(path, e.strerror or str(e)) from e
    trailing_newline = content.endswith("\n")
    rows = content.split("\n")
    if trailing_newline:
        rows.pop()
    return rows, trailing_newline


def trim_frames(directory: Union[str, Path], trim: TrimSpec) -> int:
    """
    Strip rows/columns from every ``frame_*.txt`` file in ``directory``.

    Returns the number of files rewritten.

    Raises:
        TrimExceedsFrame: the trim would leave a frame with no rows or columns
        InvalidFrame: a frame file is not rectangular
    """
    directory = Path(directory)
    if not trim:
        return 0
    if not directory.is_dir():
        raise UnsupportedInput(directory, "not a directory of frame files")

    paths = list_frame_files(directory)
    if not paths:
        logger.warning("No frame files to trim in %s", directory)
        return 0

    loaded = []
    for path in paths:
        rows, trailing_newline = _read_frame(path)
        height = len(rows)
        width = len(rows[0]) if rows else 0
        if any(len(row) != width for row in rows):
            raise InvalidFrame(int(path.stem.split("_")[-1]), f"{path} is not rectangular")
        if trim.top + trim.bottom >= height or trim.left + trim.right >= width:
            raise TrimExceedsFrame(
                path,
                (trim.top + trim.bottom, trim.left + trim.right),
                (height, width),
            )
        loaded.append((path, rows, trailing_newline))

    for path, rows, trailing_newline in loaded:
        content = "\n".join(trim_rows(rows, trim))
        if trailing_newline:
            content += "\n"
        atomic_write_text(path, content)

    logger.info(
        "Trimmed %d frames in %s (top=%d, bottom=%d, left=%d, right=%d)",
        len(loaded), directory, trim.top, trim.bottom, trim.left, trim.right,
    )
    return len(loaded)
