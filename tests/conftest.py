"""
Test Configuration
==================

Pytest fixtures and helpers shared by the cascii test suite.
"""

import subprocess
from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from cascii.source import RasterFrame


def make_frame(pixels, index: int = 1, timestamp: float = 0.0) -> RasterFrame:
    """Wrap an array (or an RGB tuple broadcast to 8x8) in a RasterFrame."""
    if isinstance(pixels, tuple):
        pixels = np.full((8, 8, 3), pixels, dtype=np.uint8)
    return RasterFrame(index, timestamp, pixels)


def solid_frame(color, width: int, height: int, index: int = 1) -> RasterFrame:
    return RasterFrame(index, float(index - 1), np.full((height, width, 3), color, dtype=np.uint8))


@pytest.fixture
def write_image():
    """Write a solid-colour image and return its path."""
    def _write(path: Path, color=(255, 255, 255), size=(64, 48), mode="RGB") -> Path:
        Image.new(mode, size, color).save(path)
        return path
    return _write


@pytest.fixture
def image_dir(tmp_path, write_image):
    """Ten 64x48 frames alternating white and black."""
    directory = tmp_path / "frames_in"
    directory.mkdir()
    for i in range(1, 11):
        color = (255, 255, 255) if i % 2 else (0, 0, 0)
        write_image(directory / f"img_{i:03d}.png", color)
    return directory


class FakeTools:
    """
    Stands in for ffprobe/ffmpeg.

    ffmpeg calls write ``duration * fps`` numbered PNG files into the output
    pattern, honouring ``-ss`` and ``-t`` the way input seeking does.
    """

    def __init__(self, duration: float = 20.0, size=(64, 36), returncode: int = 0, frames=None):
        self.duration = duration
        self.size = size
        self.returncode = returncode
        self.frames = frames
        self.calls = []

    def __call__(self, cmd, **kwargs):
        self.calls.append(list(cmd))
        if cmd[0] == "ffprobe":
            stdout = f"width={self.size[0]}\nheight={self.size[1]}\nduration={self.duration:.6f}\n"
            return subprocess.CompletedProcess(cmd, 0, stdout, "")
        if self.returncode != 0:
            return subprocess.CompletedProcess(cmd, self.returncode, "", "Invalid data found when processing input")

        start = float(cmd[cmd.index("-ss") + 1]) if "-ss" in cmd else 0.0
        length = float(cmd[cmd.index("-t") + 1]) if "-t" in cmd else self.duration - start
        fps = float(cmd[cmd.index("-vf") + 1].split("=")[1])
        count = self.frames if self.frames is not None else round(length * fps)
        pattern = cmd[-1]
        for i in range(1, count + 1):
            Image.new("RGB", self.size, (i % 256,) * 3).save(pattern % i)
        return subprocess.CompletedProcess(cmd, 0, "", "")

    @property
    def ffmpeg_calls(self):
        return [c for c in self.calls if c[0] == "ffmpeg"]


@pytest.fixture
def fake_tools(monkeypatch):
    """Install a FakeTools instance in place of the ffmpeg/ffprobe executables."""
    tools = FakeTools()
    monkeypatch.setattr("shutil.which", lambda name: f"/usr/bin/{name}")
    monkeypatch.setattr("subprocess.run", tools)
    return tools
