"""
Test Configuration
==================

Pytest fixtures and test helpers for ascii-player.
"""

import io

import numpy as np
import pytest

from ascii_player.display.renderer import FrameRenderer


class FakeClock:
    """Manually advanced monotonic clock."""
    
    def __init__(self, start: float = 100.0) -> None:
        self.now = start
    
    def __call__(self) -> float:
        return self.now
    
    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeEvent:
    """
    Stand-in for threading.Event whose wait() advances a FakeClock.
    
    Records every wait timeout. When stop_after_waits is set, the event
    becomes set during that wait, simulating a stop signal mid-wait.
    """
    
    def __init__(self, clock: FakeClock, stop_after_waits: int = 0) -> None:
        self.clock = clock
        self.waits = []
        self.stop_after_waits = stop_after_waits
        self._flag = False
    
    def set(self) -> None:
        self._flag = True
    
    def is_set(self) -> bool:
        return self._flag
    
    def wait(self, timeout=None) -> bool:
        self.waits.append(timeout)
        if self.stop_after_waits and len(self.waits) >= self.stop_after_waits:
            self._flag = True
            return True
        self.clock.advance(timeout or 0.0)
        return self._flag


class RecordingRenderer(FrameRenderer):
    """FrameRenderer that also keeps every rendered TextFrame."""
    
    def __init__(self, stream=None, clock=None) -> None:
        super().__init__(stream if stream is not None else io.StringIO())
        self.frames = []
        self.render_times = []
        self._clock = clock
    
    def render(self, frame) -> None:
        super().render(frame)
        self.frames.append(frame)
        if self._clock is not None:
            self.render_times.append(self._clock())


def solid_frame(value: int, height: int = 48, width: int = 64, color: bool = True) -> np.ndarray:
    """Uniform frame, BGR by default."""
    shape = (height, width, 3) if color else (height, width)
    return np.full(shape, value, dtype=np.uint8)


@pytest.fixture
def fake_clock():
    """Provide a fake clock starting at t=100s."""
    return FakeClock()


@pytest.fixture
def fake_event(fake_clock):
    """Provide a fake stop event bound to fake_clock."""
    return FakeEvent(fake_clock)


@pytest.fixture
def recording_renderer(fake_clock):
    """Provide a renderer writing to a StringIO and recording frames."""
    return RecordingRenderer(clock=fake_clock)


@pytest.fixture
def black_and_white_frames():
    """Provide a solid black frame followed by a solid white frame."""
    return [solid_frame(0), solid_frame(255)]


@pytest.fixture
def clean_env(monkeypatch):
    """Remove ASCII_PLAYER_* variables so tests see only what they set."""
    import os
    
    for name in list(os.environ):
        if name.startswith("ASCII_PLAYER_"):
            monkeypatch.delenv(name, raising=False)
    return monkeypatch
