#!/usr/bin/env python3
"""
cascii command line
Convert videos and image sequences to ASCII frame files, and trim the results.
"""

import argparse
import logging
import sys
import threading
from typing import List, Optional

from cascii import __version__
from cascii.errors import CasciiError, InvalidFrame
from cascii.pipeline import run_conversion
from cascii.profiles import (
    ASCII_SETS,
    DEFAULT_ASCII_SET,
    PROFILES,
    ConversionConfig,
    GlyphRamp,
    TimeSegment,
    TrimSpec,
    resolve_profile,
)
from cascii.trim import trim_frames


class ProgressBar:
    """Simple progress bar for showing conversion progress."""
    def __init__(self, total: int, prefix: str = "Progress", length: int = 40):
        self.total = total
        self.prefix = prefix
        self.length = length
        self.current = 0
        self._lock = threading.Lock()

    def update(self, increment: int = 1):
        """Increment progress bar."""
        with self._lock:
            self.current += increment
            percent = self.current / self.total * 100 if self.total else 100.0
            filled_length = int(self.length * self.current // self.total) if self.total else self.length
            bar = '#' * filled_length + '-' * (self.length - filled_length)
            sys.stdout.write(f'\r{self.prefix}: |{bar}| {percent:.1f}% ({self.current}/{self.total})')
            sys.stdout.flush()

            if self.current >= self.total:
                sys.stdout.write('\n')


def non_negative_int(value: str) -> int:
    number = int(value)
    if number < 0:
        raise argparse.ArgumentTypeError(f"expected a non-negative integer, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cascii",
        description="Convert videos and image sequences to ASCII frame files",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only show errors")
    subparsers = parser.add_subparsers(dest="command", required=True)

    convert = subparsers.add_parser(
        "convert",
        help="Convert a video file or a directory of images",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    convert.add_argument("input", help="Input video file or directory of images")
    convert.add_argument("out", nargs="?", default=".", help="Output directory for the frame files")

    presets = convert.add_mutually_exclusive_group()
    for name, profile in PROFILES.items():
        presets.add_argument(
            f"--{name}", dest="preset", action="store_const", const=name,
            help=f"Use the {name} preset ({profile.columns} columns, "
                 f"{profile.fps:g} FPS, font ratio {profile.font_ratio:g})",
        )

    convert.add_argument("--columns", type=int, help="Target columns (width)")
    convert.add_argument("--fps", type=float, help="Frames per second when extracting from video")
    convert.add_argument("--font-ratio", type=float, help="Font aspect ratio (character width:height)")
    convert.add_argument("--start", type=float, help="Segment start in seconds (video only)")
    convert.add_argument("--end", type=float, help="Segment end in seconds (video only)")
    convert.add_argument("--ascii-set", choices=list(ASCII_SETS.keys()), default=DEFAULT_ASCII_SET,
                         help="ASCII character set to use")
    convert.add_argument("--invert", action="store_true", help="Invert brightness (dense glyphs for bright areas)")
    convert.add_argument("--luminance", type=int, default=0,
                         help="Luminance threshold (0-255) below which cells are left blank")
    convert.add_argument("--workers", type=int, help="Worker threads (defaults to the CPU count)")
    convert.add_argument("--no-overwrite", action="store_true",
                         help="Fail instead of replacing frames from an earlier run")
    for edge in ("top", "bottom", "left", "right"):
        convert.add_argument(f"--trim-{edge}", type=non_negative_int, default=0,
                             help=f"Rows/columns to remove from the {edge} of every frame")

    trim = subparsers.add_parser(
        "trim",
        help="Trim rows/columns from already written frames, in place",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    trim.add_argument("directory", help="Directory containing frame_*.txt files")
    for edge in ("top", "bottom", "left", "right"):
        trim.add_argument(f"--{edge}", type=non_negative_int, default=0,
                          help=f"Rows/columns to remove from the {edge}")

    return parser


def config_from_args(args: argparse.Namespace) -> ConversionConfig:
    profile = resolve_profile(args.preset, args.columns, args.fps, args.font_ratio)
    segment = None
    if args.start is not None or args.end is not None:
        segment = TimeSegment(args.start or 0.0, args.end)
    return ConversionConfig(
        profile=profile,
        ramp=GlyphRamp.named(args.ascii_set, invert=args.invert),
        segment=segment,
        trim=TrimSpec(args.trim_top, args.trim_bottom, args.trim_left, args.trim_right),
        luminance=args.luminance,
        workers=args.workers,
    )


def run_convert(args: argparse.Namespace) -> int:
    config = config_from_args(args)
    progress: List[ProgressBar] = []

    def on_start(total: int) -> None:
        if not args.quiet:
            print(f"Converting {total} frames to ASCII...")
            progress.append(ProgressBar(total, "Converting frames"))

    def on_frame(_frame) -> None:
        if progress:
            progress[0].update()

    result = run_conversion(
        args.input, args.out, config,
        overwrite=not args.no_overwrite,
        on_start=on_start,
        on_frame=on_frame,
    )
    print(f"\nASCII generation complete: {result.frame_count} frames in {result.output_dir}")
    return 0


def run_trim(args: argparse.Namespace) -> int:
    count = trim_frames(args.directory, TrimSpec(args.top, args.bottom, args.left, args.right))
    print(f"Trimmed {count} frames in {args.directory}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main function for the cascii command."""
    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.ERROR if args.quiet else logging.WARNING
    logging.basicConfig(level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    try:
        if args.command == "convert":
            return run_convert(args)
        return run_trim(args)
    except InvalidFrame:
        raise
    except (CasciiError, ValueError) as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
