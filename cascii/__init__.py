"""
cascii
======

Convert a video or an ordered sequence of still images into plain-text ASCII
frames (``frame_0001.txt``, ``frame_0002.txt``, ...) for terminal or web
playback.

Example:
    from cascii.pipeline import run_conversion
    from cascii.profiles import ConversionConfig, PROFILES

    run_conversion("clip.mp4", "out/clip", ConversionConfig(profile=PROFILES["small"]))
"""

__version__ = "0.3.0"

__all__ = [
    "__version__",
]
