"""
Parallel conversion with ordered results.

Frames are submitted to a thread pool as they arrive from the source. At most
``window`` conversions are in flight; results are drained strictly in
submission order, so the n-th TextFrame out always belongs to the n-th
RasterFrame in.
"""

import logging
import os
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Deque, Iterable, Iterator, Optional

from cascii.convert import TextFrame, frame_to_ascii
from cascii.profiles import GlyphRamp, QualityProfile
from cascii.source import RasterFrame

logger = logging.getLogger(__name__)

Converter = Callable[[RasterFrame, QualityProfile, GlyphRamp, int], TextFrame]


def default_workers() -> int:
    return os.cpu_count() or 4


def convert_frames(
    frames: Iterable[RasterFrame],
    profile: QualityProfile,
    ramp: GlyphRamp,
    threshold: int = 0,
    workers: Optional[int] = None,
    window: Optional[int] = None,
    converter: Converter = frame_to_ascii,
) -> Iterator[TextFrame]:
    """
    Convert ``frames`` on a worker pool, yielding TextFrames in input order.

    The first conversion error is re-raised when its slot is drained; frames
    that have not started yet are cancelled.
    """
    workers = workers or default_workers()
    window = window or workers * 2
    pending: Deque[Future] = deque()

    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cascii")
    try:
        for frame in frames:
            pending.append(executor.submit(converter, frame, profile, ramp, threshold))
            if len(pending) >= window:
                yield pending.popleft().result()
        while pending:
            yield pending.popleft().result()
    except BaseException:
        for future in pending:
            future.cancel()
        raise
    finally:
        executor.shutdown(wait=True, cancel_futures=True)
    logger.debug("Converted all frames with %d workers", workers)
