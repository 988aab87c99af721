#!/usr/bin/env python3
"""
Playback Smoke Script
=====================

Standalone script to exercise the full pipeline against a real codec.

This script:
    1. Writes a synthetic clip (a bright bar sweeping over a gradient)
    2. Plays it in the terminal through OpenCV decoding
    3. Reports a final summary with pacing drift

Prerequisites:
    - Install the package: pip install -e .

Usage:
    python scripts/smoke_playback.py --seconds 3 --fps 24
    python scripts/smoke_playback.py --keep clip.avi
"""

import argparse
import logging
import os
import sys
import tempfile
import time

import cv2
import numpy as np

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from ascii_player.convert.glyphs import GlyphRamp
from ascii_player.display.renderer import FrameRenderer
from ascii_player.errors import PlayerError
from ascii_player.playback import Player
from ascii_player.stream.source import OpenCVFrameSource


# Logs go to stderr so they do not interleave with the display
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


def write_clip(path: str, seconds: float, fps: float, width: int, height: int) -> int:
    """
    Write a synthetic MJPG clip.
    
    Returns:
        Number of frames written
    """
    writer = cv2.VideoWriter(path, cv2.VideoWriter_fourcc(*"MJPG"), fps, (width, height))
    if not writer.isOpened():
        raise RuntimeError(f"OpenCV cannot write MJPG to {path}")
    
    gradient = np.tile(np.linspace(0, 160, width, dtype=np.uint8), (height, 1))
    bar = max(width // 10, 1)
    total = int(seconds * fps)
    
    try:
        for k in range(total):
            frame = cv2.cvtColor(gradient, cv2.COLOR_GRAY2BGR)
            x = (k * width // max(total, 1)) % width
            frame[:, x:x + bar] = 255
            writer.write(frame)
    finally:
        writer.release()
    
    return total


def run(path: str, rows: int, columns: int) -> dict:
    """Play the clip and return the summary as a dict."""
    player = Player(
        source=OpenCVFrameSource(),
        renderer=FrameRenderer(),
        ramp=GlyphRamp(),
        rows=rows,
        columns=columns,
        log_every_n_frames=24,
    )
    
    start_time = time.monotonic()
    try:
        summary = player.play(path)
    except KeyboardInterrupt:
        player.stop()
        logger.info("Smoke run interrupted by user")
        return {"frames_rendered": 0, "max_drift": 0.0, "runtime": 0.0}
    runtime = time.monotonic() - start_time
    
    logger.info("=" * 60)
    logger.info("FINAL SUMMARY")
    logger.info("=" * 60)
    logger.info(f"Clip: {summary.path}")
    logger.info(f"Grid: {summary.columns}x{summary.rows}")
    logger.info(f"Frames rendered: {summary.frames_rendered}")
    logger.info(f"Frame interval: {summary.frame_interval * 1000:.1f}ms")
    logger.info(f"Runtime: {runtime:.2f}s")
    logger.info(f"Max drift: {summary.max_drift * 1000:.1f}ms")
    logger.info("=" * 60)
    
    return {
        "frames_rendered": summary.frames_rendered,
        "max_drift": summary.max_drift,
        "runtime": runtime,
    }


def main():
    parser = argparse.ArgumentParser(
        description="Smoke test: play a synthetic clip through the ASCII pipeline"
    )
    parser.add_argument("--seconds", type=float, default=2.0, help="Clip length (default: 2)")
    parser.add_argument("--fps", type=float, default=24.0, help="Clip frame rate (default: 24)")
    parser.add_argument("--rows", type=int, default=20, help="Grid rows (default: 20)")
    parser.add_argument("--columns", type=int, default=60, help="Grid columns (default: 60)")
    parser.add_argument("--keep", help="Write the clip here and keep it")
    
    args = parser.parse_args()
    
    with tempfile.TemporaryDirectory() as tmp:
        path = args.keep or os.path.join(tmp, "smoke.avi")
        written = write_clip(path, args.seconds, args.fps, width=320, height=180)
        logger.info(f"Wrote {written} frames to {path}")
        
        try:
            result = run(path, args.rows, args.columns)
        except PlayerError as e:
            logger.error(f"❌ SMOKE FAILED - {type(e).__name__}: {e}")
            sys.exit(e.exit_code)
    
    if result["frames_rendered"] == written:
        logger.info("✅ SMOKE PASSED - every frame rendered")
        sys.exit(0)
    
    logger.error(f"❌ SMOKE FAILED - rendered {result['frames_rendered']} of {written} frames")
    sys.exit(1)


if __name__ == "__main__":
    main()
