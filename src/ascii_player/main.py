"""
ascii-player Command Line
=========================

Entry point: play a video file as ASCII art in the terminal.

Usage:
    ascii-player --file clip.mp4
    ascii-player --file clip.mp4 --rows 45 --columns 160 --gamma 0.8
    ascii-player --file clip.mp4 --ramp "@%#*+=-:. " --ramp-order light_to_dark

Exit Codes:
    0 - Playback finished or was interrupted by the user
    2 - Video file missing/unreadable, or invalid configuration
    3 - Video could not be decoded
    4 - Display could not be written
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

import yaml
from pydantic import ValidationError

from ascii_player import __version__
from ascii_player.config import load_config, setup_logging
from ascii_player.errors import PlayerError
from ascii_player.playback import Player


logger = logging.getLogger(__name__)


EXIT_OK = 0
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ascii-player",
        description="Play a video file as ASCII art in the terminal",
    )
    parser.add_argument("--file", "-f", dest="file_path", help="Path to video file")
    parser.add_argument("--rows", type=int, help="Character rows (default: fit terminal)")
    parser.add_argument("--columns", type=int, help="Character columns (default: fit terminal)")
    parser.add_argument("--ramp", help="Glyph ramp characters")
    parser.add_argument(
        "--ramp-order",
        choices=["dark_to_light", "light_to_dark"],
        help="Order the ramp is written in (default: dark_to_light)",
    )
    parser.add_argument("--gamma", type=float, help="Brightness tone curve exponent")
    parser.add_argument("--cell-aspect", type=float, help="Width / height of a terminal cell")
    parser.add_argument("--config", help="Path to config.yaml")
    parser.add_argument("--log-level", help="Log level (logs go to stderr)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    
    overrides = {
        "source": {"file_path": args.file_path},
        "grid": {
            "rows": args.rows,
            "columns": args.columns,
            "cell_aspect": args.cell_aspect,
        },
        "glyphs": {"ramp": args.ramp, "order": args.ramp_order},
        "conversion": {"gamma": args.gamma},
        "logging": {"level": args.log_level},
    }
    
    try:
        settings = load_config(args.config, overrides=overrides)
    except (ValidationError, ValueError, yaml.YAMLError) as e:
        print(f"ascii-player: invalid configuration:\n{e}", file=sys.stderr)
        return EXIT_CONFIG
    
    setup_logging(settings)
    
    if not settings.source.file_path:
        print("ascii-player: no video file given (use --file)", file=sys.stderr)
        return EXIT_CONFIG
    
    player = Player.from_settings(settings)
    
    def _handle_signal(signum, frame):
        """Handle SIGINT/SIGTERM by stopping playback at the next frame."""
        # No logging here: the signal may land mid-write to stderr
        player.stop()
    
    previous = {
        signum: signal.signal(signum, _handle_signal)
        for signum in (signal.SIGINT, signal.SIGTERM)
    }
    
    try:
        summary = player.play(settings.source.file_path)
    except PlayerError as e:
        logger.error(f"{type(e).__name__}: {e}")
        return e.exit_code
    finally:
        for signum, handler in previous.items():
            signal.signal(signum, handler)
    
    if summary.cancelled:
        logger.info("Playback stopped by signal")
    
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
