"""
Stream Module
=============

Video decoding and frame sequencing.

This module provides the ingestion layer for ascii-player:
    - RawFrame: Typed, immutable decoded frame
    - FrameSource: Protocol isolating the pipeline from the decoder
    - OpenCVFrameSource: cv2.VideoCapture-backed source
    - MemoryFrameSource: In-memory source for tests and demos

Example:
    from ascii_player.stream import OpenCVFrameSource, iter_frames
    
    source = OpenCVFrameSource()
    handle = source.open("clip.mp4")
    try:
        for frame in iter_frames(source, handle):
            process(frame)
    finally:
        source.close(handle)
"""

from ascii_player.stream.frame import RawFrame
from ascii_player.stream.source import (
    FrameSource,
    MemoryFrameSource,
    OpenCVFrameSource,
    StreamHandle,
    iter_frames,
)


__all__ = [
    "RawFrame",
    "FrameSource",
    "StreamHandle",
    "OpenCVFrameSource",
    "MemoryFrameSource",
    "iter_frames",
]
