"""
Pacing Controller
=================

Gates frame presentation to the source frame rate.

State Machine:
    IDLE → RUNNING → DRAINING → STOPPED
    
    IDLE:     First advance() starts the clock and enters RUNNING
    RUNNING:  advance() waits until start + k * interval for frame k
    DRAINING: Entered via drain() when the source ends; the frame that
              was already decoded is still paced and presented. A drain
              requested while IDLE is held until the first advance()
              has entered RUNNING
    STOPPED:  Entered via finish() or stop(); advance() returns False

Drift Policy:
    A frame that is late is presented immediately. Frames are never
    dropped and the controller never skips ahead to catch up, so drift
    can accumulate when conversion is slower than the source rate.
    Lag is tracked and logged.

Cancellation:
    stop() sets a threading.Event. The wait in advance() is an
    Event.wait(timeout), so a stop interrupts a pending wait promptly.
"""

import logging
import threading
import time
from typing import Callable, Optional

from ascii_player.playback.clock import PlaybackClock, PlaybackState


logger = logging.getLogger(__name__)


class PacingController:
    """
    Presents frames at start + k * interval without dropping any.
    
    Attributes:
        frame_interval: Seconds between frames
        frames_presented: Frames released by advance()
        max_drift: Largest lag behind schedule seen so far (seconds)
    
    Example:
        pacing = PacingController(frame_interval=1 / 30)
        for frame in frames:
            if not pacing.advance():
                break
            renderer.render(frame)
        pacing.finish()
    """
    
    def __init__(
        self,
        frame_interval: float,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
        log_every_n_frames: int = 120,
    ) -> None:
        """
        Initialize pacing controller.
        
        Args:
            frame_interval: Seconds between frames, > 0
            clock: Monotonic time source in seconds
            stop_event: Shared cancellation event (created if omitted)
            log_every_n_frames: Log drift every N frames (0 disables)
        """
        self._clock = PlaybackClock(frame_interval=frame_interval)
        self._now = clock
        self._stop_event = stop_event if stop_event is not None else threading.Event()
        self._state = PlaybackState.IDLE
        self._drain_pending = False
        self.log_every_n_frames = log_every_n_frames
        
        self.frames_presented: int = 0
        self.last_drift: float = 0.0
        self.max_drift: float = 0.0
    
    @property
    def frame_interval(self) -> float:
        return self._clock.frame_interval
    
    @property
    def state(self) -> PlaybackState:
        return self._state
    
    @property
    def clock(self) -> PlaybackClock:
        return self._clock
    
    @property
    def is_stopped(self) -> bool:
        if self._stop_event.is_set() and self._state is not PlaybackState.STOPPED:
            self._transition(PlaybackState.STOPPED)
        return self._state is PlaybackState.STOPPED
    
    def advance(self) -> bool:
        """
        Wait until the next frame is due.
        
        Returns:
            True if the frame should be presented now,
            False if playback was stopped (before or during the wait).
        """
        if self.is_stopped:
            return False
        
        now = self._now()
        if not self._clock.started:
            self._clock.reset(now)
            if self._state is PlaybackState.IDLE:
                self._transition(PlaybackState.RUNNING)
            if self._drain_pending:
                self._drain_pending = False
                self._transition(PlaybackState.DRAINING)
        
        target = self._clock.next_target()
        delay = target - now
        
        if delay > 0:
            if self._stop_event.wait(delay):
                self._transition(PlaybackState.STOPPED)
                return False
            self.last_drift = 0.0
        else:
            self.last_drift = -delay
            self.max_drift = max(self.max_drift, self.last_drift)
        
        self.frames_presented += 1
        
        if self.log_every_n_frames and self.frames_presented % self.log_every_n_frames == 0:
            logger.debug(
                f"Presented {self.frames_presented} frames, "
                f"elapsed={self._clock.elapsed(self._now()):.2f}s, "
                f"drift={self.last_drift * 1000:.1f}ms, "
                f"max_drift={self.max_drift * 1000:.1f}ms"
            )
        
        return True
    
    def drain(self) -> None:
        """Source reported end of sequence; present what is already decoded."""
        if self._state is PlaybackState.IDLE:
            self._drain_pending = True
        elif self._state is PlaybackState.RUNNING:
            self._transition(PlaybackState.DRAINING)
    
    def finish(self) -> None:
        """End playback normally."""
        if self._state is not PlaybackState.STOPPED:
            self._transition(PlaybackState.STOPPED)
    
    def stop(self) -> None:
        """Cancel playback from any state, abandoning in-flight frames."""
        self._stop_event.set()
        if self._state is not PlaybackState.STOPPED:
            self._transition(PlaybackState.STOPPED)
    
    def _transition(self, new_state: PlaybackState) -> None:
        logger.debug(f"Pacing {self._state.value} -> {new_state.value}")
        self._state = new_state
