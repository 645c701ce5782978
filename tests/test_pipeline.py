"""
End-to-end Pipeline Tests
"""

from pathlib import Path

import pytest

from cascii.convert import frame_to_ascii
from cascii.errors import ExtractionFailed, UnsupportedInput
from cascii.pipeline import run_conversion
from cascii.profiles import ConversionConfig, GlyphRamp, QualityProfile, TimeSegment, TrimSpec
from cascii.source import load_raster
from cascii.writer import DETAILS_FILE, frame_filename


def read_rows(path):
    return path.read_text(encoding="utf-8").split("\n")


@pytest.fixture
def config():
    return ConversionConfig(
        profile=QualityProfile("custom", 40, 24.0, 0.5),
        ramp=GlyphRamp.named("detailed"),
        workers=4,
    )


class TestImageDirectoryRun:

    def test_ten_frame_directory(self, image_dir, tmp_path, config):
        out = tmp_path / "out"
        result = run_conversion(image_dir, out, config)

        assert result.frame_count == 10
        names = sorted(p.name for p in out.glob("frame_*.txt"))
        assert names == [frame_filename(i) for i in range(1, 11)]

        for i in range(1, 11):
            rows = read_rows(out / frame_filename(i))
            # 40 columns * (48 / 64) * 0.5 = 15 rows
            assert len(rows) == 15
            assert all(len(row) == 40 for row in rows)
            expected = config.ramp.lightest if i % 2 else config.ramp.densest
            assert set("".join(rows)) == {expected}

        details = (out / DETAILS_FILE).read_text()
        assert "Frames: 10" in details
        assert "Columns: 40" in details
        assert "FPS" not in details

    def test_output_order_matches_source_order(self, tmp_path, write_image, config):
        source = tmp_path / "grey"
        source.mkdir()
        for i in range(1, 13):
            level = (i * 21) % 256
            write_image(source / f"{i:02d}.png", (level, level, level), size=(32, 32))

        out = tmp_path / "out"
        run_conversion(source, out, config)

        for i in range(1, 13):
            frame = load_raster(source / f"{i:02d}.png", i, 0.0)
            expected = frame_to_ascii(frame, config.profile, config.ramp)
            assert read_rows(out / frame_filename(i)) == list(expected.rows)

    def test_progress_callbacks(self, image_dir, tmp_path, config):
        totals, written = [], []
        run_conversion(image_dir, tmp_path / "out", config,
                       on_start=totals.append, on_frame=lambda f: written.append(f.index))
        assert totals == [10]
        assert written == list(range(1, 11))

    def test_trim_is_applied_after_writing(self, image_dir, tmp_path):
        config = ConversionConfig(
            profile=QualityProfile("custom", 40, 24.0, 0.5),
            trim=TrimSpec(top=2, bottom=1, left=3, right=5),
        )
        out = tmp_path / "out"
        run_conversion(image_dir, out, config)

        rows = read_rows(out / "frame_0001.txt")
        assert len(rows) == 12
        assert all(len(row) == 32 for row in rows)
        assert (out / DETAILS_FILE).exists()

    def test_failed_run_has_no_completion_marker(self, image_dir, tmp_path, config):
        out = tmp_path / "out"
        run_conversion(image_dir, out, config)
        assert (out / DETAILS_FILE).exists()

        (image_dir / "img_005.png").write_bytes(b"truncated")
        with pytest.raises(UnsupportedInput):
            run_conversion(image_dir, out, config)
        assert not (out / DETAILS_FILE).exists()

    def test_unsupported_input_writes_nothing(self, tmp_path, config):
        out = tmp_path / "out"
        with pytest.raises(UnsupportedInput):
            run_conversion(tmp_path / "missing", out, config)
        assert not out.exists()


class TestVideoRun:

    def test_segment_run(self, tmp_path, fake_tools):
        video_path = tmp_path / "clip.mp4"
        video_path.write_bytes(b"")
        config = ConversionConfig(
            profile=QualityProfile("custom", 20, 10.0, 0.5),
            segment=TimeSegment(5, 8),
            workers=2,
        )
        out = tmp_path / "out"

        result = run_conversion(video_path, out, config)

        assert result.frame_count == 30
        assert len(list(out.glob("frame_*.txt"))) == 30
        assert "FPS: 10" in (out / DETAILS_FILE).read_text()
        assert not Path(fake_tools.ffmpeg_calls[0][-1]).parent.exists()

    def test_extraction_failure_aborts(self, tmp_path, fake_tools):
        video_path = tmp_path / "clip.mp4"
        video_path.write_bytes(b"")
        fake_tools.returncode = 1
        out = tmp_path / "out"

        with pytest.raises(ExtractionFailed):
            run_conversion(video_path, out, ConversionConfig())
        assert list(out.iterdir()) == []
