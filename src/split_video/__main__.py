"""
CLI for splitting a video into even sized chunks.

Usage:
  python -m split_video [--gop-size 30] [--chunk-size 120] [--skip 123]
                        [--length 1200] input_file output_template
  split-video --gop-size 25 --chunk-size 100 myfile.mp4 chunks/%05d.mp4

The example splits a video into chunks of 100 frames with I-frames every 25 frames.
Audio is not preserved. Defaults come from SPLIT_VIDEO_* env vars (config.py).
"""

from __future__ import annotations

import argparse
import logging
import sys

from split_video.config import get_settings
from split_video.controller import make_plan, split_video
from split_video.errors import SplitVideoError
from split_video.logging_config import configure_av_logging, configure_logging
from split_video.template import validate_output_template

logger = logging.getLogger("split_video")


class _ArgumentParser(argparse.ArgumentParser):
    """Usage errors exit with status 1 like every other failure."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def _build_parser(gop_default: int, chunk_default: int) -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="split-video",
        description="Split a video into even sized chunks. Audio is not preserved.",
        epilog=(
            "example: split-video --gop-size 25 --chunk-size 100 myfile.mp4 chunks/%%05d.mp4 "
            "splits a video into chunks of 100 frames, with I-frames every 25 frames"
        ),
    )
    parser.add_argument(
        "--gop-size",
        type=int,
        default=gop_default,
        help=f"Size of a group of pictures in frames (default: {gop_default})",
    )
    parser.add_argument(
        "--chunk-size",
        type=int,
        default=chunk_default,
        help=f"Size of a chunk in frames; a multiple of --gop-size (default: {chunk_default})",
    )
    parser.add_argument(
        "--skip",
        type=int,
        default=0,
        help="Number of frames to skip at the beginning of the input (default: 0)",
    )
    parser.add_argument(
        "--length",
        type=int,
        default=None,
        help="Number of frames to encode (default: all remaining frames)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: SPLIT_VIDEO_LOG_LEVEL or INFO)",
    )
    parser.add_argument("input_file", help="Input video file")
    parser.add_argument(
        "output_template",
        help="Output path with one integer placeholder for the chunk index, e.g. chunks/%%05d.mp4",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    try:
        settings = get_settings()
    except SplitVideoError as e:
        configure_logging(logging.INFO)
        logger.error("%s error: %s", e.stage, e)
        return 1
    parser = _build_parser(settings.gop_size, settings.chunk_size)
    args = parser.parse_args(argv)

    configure_logging(args.log_level or settings.log_level)
    configure_av_logging(settings.av_log_level)

    try:
        plan = make_plan(
            args.gop_size,
            args.chunk_size,
            skip_frames=args.skip,
            max_frames=args.length,
        )
        validate_output_template(args.output_template)
        options = settings.encode_options()
    except SplitVideoError as e:
        logger.error("%s error: %s", e.stage, e)
        return 1

    print(f"GOP size: {plan.gop_size}")
    print(f"Chunk size: {plan.chunk_size}")

    try:
        split_video(
            args.input_file,
            args.output_template,
            plan,
            options,
        )
    except SplitVideoError as e:
        logger.error("%s error: %s", e.stage, e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
