"""
Playback Clock
==============

Explicit timing state for one playback run.

Schedule:
    target(k) = start_time + k * frame_interval

The clock is owned and mutated only by the PacingController. It is
reset when the first frame is presented and discarded when the run ends.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class PlaybackState(str, Enum):
    """
    Pacing controller states.
    
    Attributes:
        IDLE: No frame presented yet
        RUNNING: Presenting frames on schedule
        DRAINING: Source ended; presenting the last decoded frame
        STOPPED: Terminal; no further frames accepted
    """
    
    IDLE = "IDLE"
    RUNNING = "RUNNING"
    DRAINING = "DRAINING"
    STOPPED = "STOPPED"


@dataclass
class PlaybackClock:
    """
    Presentation schedule for a stream.
    
    Attributes:
        frame_interval: Seconds between frames
        start_time: Clock reading when frame 0 was scheduled
        frames_scheduled: Number of targets handed out so far
        last_target: Most recent target time
    """
    
    frame_interval: float
    start_time: Optional[float] = None
    frames_scheduled: int = 0
    last_target: Optional[float] = None
    
    def __post_init__(self) -> None:
        if self.frame_interval <= 0:
            raise ValueError("frame_interval must be positive")
    
    @property
    def started(self) -> bool:
        return self.start_time is not None
    
    def reset(self, now: float) -> None:
        """Start a new schedule at now."""
        self.start_time = now
        self.frames_scheduled = 0
        self.last_target = None
    
    def next_target(self) -> float:
        """Target presentation time of the next frame."""
        if self.start_time is None:
            raise RuntimeError("PlaybackClock used before reset()")
        target = self.start_time + self.frames_scheduled * self.frame_interval
        self.frames_scheduled += 1
        self.last_target = target
        return target
    
    def elapsed(self, now: float) -> float:
        """Seconds since the schedule started."""
        if self.start_time is None:
            return 0.0
        return now - self.start_time
    
    def drift(self, now: float) -> float:
        """Seconds the presentation is behind the last target (never negative)."""
        if self.last_target is None:
            return 0.0
        return max(0.0, now - self.last_target)
