"""
Error types raised by the frame conversion pipeline.
"""

from pathlib import Path
from typing import Optional, Tuple, Union


class CasciiError(Exception):
    """Base class for all pipeline errors."""


class UnsupportedInput(CasciiError):
    """The input is neither a recognized video nor a directory of images."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Unsupported input {self.path}: {reason}")


class InvalidSegment(UnsupportedInput, ValueError):
    """A time segment falls outside the source duration."""

    def __init__(self, path: Union[str, Path], start: float, end: float, duration: Optional[float]):
        self.start = start
        self.end = end
        self.duration = duration
        bounds = f"0..{duration:.3f}s" if duration is not None else "start <= end"
        super().__init__(path, f"segment {start:.3f}s..{end:.3f}s is outside {bounds}")


class ExtractionFailed(CasciiError):
    """The external decoding tool failed or produced no frames."""

    def __init__(self, path: Union[str, Path], reason: str,
                 returncode: Optional[int] = None, stderr: str = ""):
        self.path = Path(path)
        self.reason = reason
        self.returncode = returncode
        self.stderr = stderr
        message = f"Frame extraction failed for {self.path}: {reason}"
        if returncode is not None:
            message += f" (exit code {returncode})"
        if stderr:
            message += f"\n{stderr.strip()}"
        super().__init__(message)


class InvalidFrame(CasciiError):
    """Malformed raster data reached the sampler."""

    def __init__(self, index: int, reason: str):
        self.index = index
        self.reason = reason
        super().__init__(f"Invalid frame {index}: {reason}")


class TrimExceedsFrame(CasciiError):
    """A trim request removes every row or column of a frame."""

    def __init__(self, path: Union[str, Path], requested: Tuple[int, int], actual: Tuple[int, int]):
        self.path = Path(path)
        self.requested = requested
        self.actual = actual
        super().__init__(
            f"Cannot trim {self.path}: removing {requested[0]} rows x {requested[1]} columns "
            f"from a {actual[0]} x {actual[1]} frame leaves nothing"
        )


class OutputWriteFailed(CasciiError):
    """A filesystem error occurred while writing output."""

    def __init__(self, path: Union[str, Path], reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Could not write {self.path}: {reason}")
