"""
Parallel Conversion Scheduler Tests
"""

import threading
import time

import numpy as np
import pytest

from conftest import make_frame
from cascii.convert import TextFrame, frame_to_ascii
from cascii.errors import InvalidFrame
from cascii.profiles import PROFILES, GlyphRamp, QualityProfile
from cascii.scheduler import convert_frames


PROFILE = QualityProfile("custom", 12, 24.0, 0.5)
RAMP = GlyphRamp.named("detailed")


def numbered_frames(count):
    for index in range(1, count + 1):
        yield make_frame((index * 20 % 256,) * 3, index=index)


def slow_for_early_frames(frame, profile, ramp, threshold):
    """Finishes later frames first."""
    time.sleep((40 - frame.index) * 0.002)
    return TextFrame(frame.index, (f"{frame.index:04d}",), profile)


class TestOrdering:

    def test_output_order_matches_input(self):
        results = list(convert_frames(
            numbered_frames(40), PROFILE, RAMP, workers=8, converter=slow_for_early_frames,
        ))
        assert [r.index for r in results] == list(range(1, 41))
        assert results[2].rows == ("0003",)

    def test_matches_sequential_conversion(self):
        rng = np.random.default_rng(3)
        frames = [make_frame(rng.integers(0, 256, (30, 50, 3), dtype=np.uint8), index=i) for i in range(1, 21)]
        expected = [frame_to_ascii(f, PROFILE, RAMP) for f in frames]
        actual = list(convert_frames(iter(frames), PROFILE, RAMP, workers=4))
        assert [a.rows for a in actual] == [e.rows for e in expected]

    def test_runs_on_several_threads(self):
        seen = set()
        lock = threading.Lock()

        def record_thread(frame, profile, ramp, threshold):
            with lock:
                seen.add(threading.current_thread().name)
            time.sleep(0.01)
            return TextFrame(frame.index, ("x",), profile)

        list(convert_frames(numbered_frames(16), PROFILE, RAMP, workers=4, converter=record_thread))
        assert len(seen) > 1

    def test_threshold_is_passed_through(self):
        frames = [make_frame((3, 3, 3))]
        result = list(convert_frames(iter(frames), PROFILES["small"], RAMP, threshold=50, workers=2))
        assert set(result[0].text) - {"\n"} == {" "}


class TestBackpressure:

    def test_source_is_consumed_lazily(self):
        pulled = []

        def source():
            for frame in numbered_frames(10):
                pulled.append(frame.index)
                yield frame

        results = convert_frames(source(), PROFILE, RAMP, workers=2, window=2)
        first = next(results)
        assert first.index == 1
        assert len(pulled) == 2
        assert [r.index for r in results] == list(range(2, 11))


class TestFailure:

    def test_invalid_frame_aborts_run(self):
        def frames():
            yield from numbered_frames(4)
            yield make_frame(np.zeros((0, 4, 3), dtype=np.uint8), index=5)
            yield from (make_frame((9, 9, 9), index=i) for i in range(6, 10))

        produced = []
        with pytest.raises(InvalidFrame) as exc_info:
            for text in convert_frames(frames(), PROFILE, RAMP, workers=3):
                produced.append(text.index)
        assert exc_info.value.index == 5
        assert produced == [1, 2, 3, 4]
