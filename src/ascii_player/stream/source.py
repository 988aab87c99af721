"""
Frame Source
============

Decoder abstraction producing RawFrames in decode order.

This module provides the FrameSource protocol and two implementations:
    - OpenCVFrameSource: decodes video files with cv2.VideoCapture
    - MemoryFrameSource: serves pre-built numpy frames (tests, demos)

Design Rules:
    - This is the ONLY place in the codebase that talks to a decoder
    - Sequences are lazy, finite and NOT restartable
    - Fails fast on corrupt frames (no partial recovery, no retry)
    - Frame interval is known before the first frame is decoded
"""

import logging
import math
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator, Optional, Protocol, Sequence, Union

import cv2
import numpy as np

from ascii_player.errors import DecodeError, SourceNotFound
from ascii_player.stream.frame import RawFrame


logger = logging.getLogger(__name__)


PathLike = Union[str, os.PathLike]


@dataclass
class StreamHandle:
    """
    An opened video stream.
    
    Attributes:
        path: Location the stream was opened from
        fps: Frame rate used for pacing (declared or fallback)
        frame_interval: Seconds between frames (1 / fps)
        width: Source frame width in pixels (0 if unknown)
        height: Source frame height in pixels (0 if unknown)
        frame_count: Declared number of frames (0 if unknown)
        position: Index of the next frame to decode
        exhausted: True once the end of the stream was reported
        native: Decoder-specific state
    """
    
    path: str
    fps: float
    frame_interval: float
    width: int = 0
    height: int = 0
    frame_count: int = 0
    position: int = 0
    exhausted: bool = False
    native: Any = None


class FrameSource(Protocol):
    """
    Protocol for frame sources.
    
    Isolates the pipeline from the concrete decoding library. All
    implementations must expose exactly these operations.
    """
    
    def open(self, path: PathLike) -> StreamHandle:
        """
        Open a stream.
        
        Raises:
            SourceNotFound: If the path is invalid or unreadable
            DecodeError: If the container cannot be decoded
        """
        ...
    
    def next_frame(self, handle: StreamHandle) -> Optional[RawFrame]:
        """
        Decode the next frame, or return None at end of stream.
        
        Raises:
            DecodeError: If the frame is corrupt or unsupported
        """
        ...
    
    def frame_interval(self, handle: StreamHandle) -> float:
        """Nominal seconds between frames."""
        ...
    
    def close(self, handle: StreamHandle) -> None:
        """Release decoder resources. Safe to call more than once."""
        ...


def iter_frames(source: FrameSource, handle: StreamHandle) -> Iterator[RawFrame]:
    """
    Lazily yield frames from an opened stream until it ends.
    
    The iterator shares the handle's position, so a second call on the
    same handle continues where the first stopped and yields nothing
    once the stream is exhausted.
    """
    while True:
        frame = source.next_frame(handle)
        if frame is None:
            return
        yield frame


def validate_path(path: PathLike) -> Path:
    """
    Check that a path names a readable regular file.
    
    Raises:
        SourceNotFound: If the path is missing, not a file, or unreadable
    """
    resolved = Path(path).expanduser()
    if not resolved.exists():
        raise SourceNotFound(f"Video file not found: {resolved}")
    if not resolved.is_file():
        raise SourceNotFound(f"Not a regular file: {resolved}")
    if not os.access(resolved, os.R_OK):
        raise SourceNotFound(f"Video file is not readable: {resolved}")
    return resolved


def validate_image(image: Optional[np.ndarray], index: int) -> np.ndarray:
    """
    Validate a decoded image before it becomes a RawFrame.
    
    Raises:
        DecodeError: If the image is missing or has an unexpected layout
    """
    if image is None:
        raise DecodeError(f"Failed to decode frame {index}: decoder returned no image")
    
    if image.ndim == 3 and image.shape[2] == 1:
        image = image[:, :, 0]
    
    if image.ndim not in (2, 3) or (image.ndim == 3 and image.shape[2] not in (3, 4)):
        raise DecodeError(f"Invalid image shape for frame {index}: {image.shape}")
    
    if image.dtype != np.uint8:
        raise DecodeError(f"Invalid dtype for frame {index}: {image.dtype}")
    
    if image.shape[0] == 0 or image.shape[1] == 0:
        raise DecodeError(f"Empty image for frame {index}: {image.shape}")
    
    if image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2BGR)
    
    return image


def resolve_fps(declared: float, fallback: float, path: str) -> float:
    """Use the declared frame rate when usable, else the fallback."""
    if declared is None or math.isnan(declared) or declared <= 0:
        logger.warning(
            f"Stream {path} declares no usable frame rate ({declared}), "
            f"falling back to {fallback} fps"
        )
        return fallback
    return float(declared)


class OpenCVFrameSource:
    """
    Frame source backed by cv2.VideoCapture.
    
    OpenCV reports both a clean end of stream and an unreadable trailing
    packet as a failed read. A failed read is treated as end of stream;
    when the container declared more frames than were decoded a warning
    is logged.
    
    DecodeError mid-stream is therefore raised only for decoder
    exceptions (cv2.error) and for images that fail validation. A file
    truncated or damaged so that read() simply fails ends playback
    normally after the last good frame.
    
    Attributes:
        fallback_fps: Rate used when the container declares none
    """
    
    def __init__(self, fallback_fps: float = 30.0) -> None:
        """
        Initialize the OpenCV frame source.
        
        Args:
            fallback_fps: Frame rate for streams without a usable declared rate
        """
        if fallback_fps <= 0:
            raise ValueError("fallback_fps must be positive")
        self.fallback_fps = fallback_fps
    
    def open(self, path: PathLike) -> StreamHandle:
        resolved = validate_path(path)
        
        try:
            capture = cv2.VideoCapture(str(resolved))
        except cv2.error as e:
            raise DecodeError(f"Decoder failed to open {resolved}: {e}")
        
        if not capture.isOpened():
            capture.release()
            raise DecodeError(f"Unsupported or corrupt video container: {resolved}")
        
        fps = resolve_fps(capture.get(cv2.CAP_PROP_FPS), self.fallback_fps, str(resolved))
        handle = StreamHandle(
            path=str(resolved),
            fps=fps,
            frame_interval=1.0 / fps,
            width=int(capture.get(cv2.CAP_PROP_FRAME_WIDTH) or 0),
            height=int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT) or 0),
            frame_count=max(0, int(capture.get(cv2.CAP_PROP_FRAME_COUNT) or 0)),
            native=capture,
        )
        
        logger.info(
            f"Opened {handle.path}: {handle.width}x{handle.height} "
            f"@ {handle.fps:.3f} fps, {handle.frame_count or 'unknown'} frames"
        )
        return handle
    
    def next_frame(self, handle: StreamHandle) -> Optional[RawFrame]:
        if handle.exhausted or handle.native is None:
            return None
        
        index = handle.position
        try:
            ok, image = handle.native.read()
        except cv2.error as e:
            handle.exhausted = True
            raise DecodeError(f"Decoder error at frame {index}: {e}")
        
        if not ok:
            handle.exhausted = True
            if handle.frame_count and index < handle.frame_count:
                logger.warning(
                    f"Stream ended after {index} frames, "
                    f"container declared {handle.frame_count}"
                )
            else:
                logger.debug(f"End of stream after {index} frames")
            return None
        
        try:
            image = validate_image(image, index)
        except DecodeError:
            handle.exhausted = True
            raise
        
        position_ms = handle.native.get(cv2.CAP_PROP_POS_MSEC)
        if position_ms and position_ms > 0:
            timestamp = position_ms / 1000.0
        else:
            timestamp = index * handle.frame_interval
        
        handle.position += 1
        return RawFrame(index=index, timestamp=timestamp, pixels=image)
    
    def frame_interval(self, handle: StreamHandle) -> float:
        return handle.frame_interval
    
    def close(self, handle: StreamHandle) -> None:
        if handle.native is not None:
            handle.native.release()
            handle.native = None
        handle.exhausted = True


class MemoryFrameSource:
    """
    Deterministic in-memory frame source.
    
    Serves a fixed list of numpy images at a declared frame rate. Indices
    listed in corrupt_indices raise DecodeError when reached, which makes
    mid-stream failures reproducible without a damaged video file.
    
    The path passed to open() is recorded on the handle but not read.
    
    Attributes:
        frames: Images served in order
        fps: Declared frame rate
        corrupt_indices: Frame indices that fail to decode
    """
    
    def __init__(
        self,
        frames: Sequence[np.ndarray],
        fps: float = 30.0,
        corrupt_indices: Sequence[int] = (),
    ) -> None:
        """
        Initialize memory frame source.
        
        Args:
            frames: uint8 images, (H, W) or (H, W, 3)
            fps: Declared frame rate, must be positive
            corrupt_indices: Indices that raise DecodeError
        """
        if fps <= 0:
            raise ValueError("fps must be positive")
        self.frames = [np.array(f, dtype=np.uint8, copy=True) for f in frames]
        self.fps = fps
        self.corrupt_indices = frozenset(corrupt_indices)
    
    def open(self, path: PathLike = "<memory>") -> StreamHandle:
        first = self.frames[0] if self.frames else None
        return StreamHandle(
            path=str(path),
            fps=self.fps,
            frame_interval=1.0 / self.fps,
            width=int(first.shape[1]) if first is not None else 0,
            height=int(first.shape[0]) if first is not None else 0,
            frame_count=len(self.frames),
        )
    
    def next_frame(self, handle: StreamHandle) -> Optional[RawFrame]:
        if handle.exhausted:
            return None
        
        index = handle.position
        if index >= len(self.frames):
            handle.exhausted = True
            return None
        
        if index in self.corrupt_indices:
            handle.exhausted = True
            raise DecodeError(f"Corrupt frame {index} in {handle.path}")
        
        image = validate_image(self.frames[index], index)
        handle.position += 1
        return RawFrame(
            index=index,
            timestamp=index * handle.frame_interval,
            pixels=image.copy(),
        )
    
    def frame_interval(self, handle: StreamHandle) -> float:
        return handle.frame_interval
    
    def close(self, handle: StreamHandle) -> None:
        handle.exhausted = True
