"""
Frame Data Model
=================

Internal frame representation for the playback pipeline.

This module defines the typed RawFrame class that is used as the interface
between the frame source and the downsampler.

Design Rules:
    - This is the ONLY frame format passed to downstream stages
    - Pixel data is read-only once the frame is produced
    - Frames carry their decode index; ordering is never inferred later
"""

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Decoded video frame.
    
    It is immutable (frozen, read-only pixel buffer) so a frame can be
    handed between stages without defensive copies.
    
    Attributes:
        index: Position in decode order, starting at 0
        timestamp: Presentation time in seconds from stream start
        pixels: uint8 array, (H, W) grayscale or (H, W, 3) BGR
    """
    
    index: int
    timestamp: float
    pixels: np.ndarray
    
    def __post_init__(self) -> None:
        """Validate invariants and freeze the pixel buffer."""
        if self.index < 0:
            raise ValueError("index must be non-negative")
        if self.pixels.ndim not in (2, 3):
            raise ValueError(f"pixels must be 2D or 3D, got shape {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"pixels must be uint8, got {self.pixels.dtype}")
        self.pixels.setflags(write=False)
    
    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])
    
    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])
    
    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel buffer."""
        return (
            f"RawFrame(index={self.index}, "
            f"timestamp={self.timestamp:.3f}, "
            f"size={self.width}x{self.height})"
        )
