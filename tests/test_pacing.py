"""
Pacing Controller Tests
=======================

Schedule, drift policy, state machine and cancellation.
"""

import threading
import time

import pytest

from ascii_player.playback.clock import PlaybackClock, PlaybackState
from ascii_player.playback.pacing import PacingController

from conftest import FakeClock, FakeEvent


INTERVAL = 0.04


class TestPlaybackClock:
    """Target times and drift."""
    
    def test_targets_follow_schedule(self):
        """Verify target(k) = start + k * interval."""
        clock = PlaybackClock(frame_interval=0.5)
        clock.reset(10.0)
        assert [clock.next_target() for _ in range(4)] == [10.0, 10.5, 11.0, 11.5]
    
    def test_targets_non_decreasing(self):
        """Verify targets never go backwards."""
        clock = PlaybackClock(frame_interval=1 / 29.97)
        clock.reset(0.0)
        targets = [clock.next_target() for _ in range(500)]
        assert targets == sorted(targets)
    
    def test_drift(self):
        """Verify drift is lag behind the last target, never negative."""
        clock = PlaybackClock(frame_interval=1.0)
        clock.reset(0.0)
        clock.next_target()
        assert clock.drift(0.25) == 0.25
        assert clock.drift(-1.0) == 0.0
    
    def test_requires_reset(self):
        """Verify targets cannot be handed out before the clock starts."""
        with pytest.raises(RuntimeError):
            PlaybackClock(frame_interval=1.0).next_target()
    
    def test_rejects_non_positive_interval(self):
        """Verify a zero interval is refused."""
        with pytest.raises(ValueError):
            PlaybackClock(frame_interval=0.0)


class TestSchedule:
    """Frames are never presented early and never dropped."""
    
    def test_never_early(self, fake_clock, fake_event):
        """Verify frame k is released no earlier than start + k * interval."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        start = fake_clock()
        released = []
        
        for k in range(20):
            fake_clock.advance(0.005)  # conversion cost
            assert pacing.advance()
            released.append(fake_clock())
        
        for k, t in enumerate(released):
            assert t >= start + k * INTERVAL - 1e-9
    
    def test_waits_for_remaining_time(self, fake_clock, fake_event):
        """Verify the wait covers only the time left until the target."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.advance()
        fake_clock.advance(0.01)
        pacing.advance()
        
        assert fake_event.waits == [pytest.approx(0.03)]
    
    def test_behind_schedule_renders_all(self, fake_clock, fake_event):
        """Verify slow frames are all released immediately, none dropped."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        
        released = 0
        for _ in range(10):
            if pacing.advance():
                released += 1
            fake_clock.advance(INTERVAL * 3)  # much slower than the source
        
        assert released == 10
        assert pacing.frames_presented == 10
        assert fake_event.waits == []
    
    def test_drift_accumulates(self, fake_clock, fake_event):
        """Verify lag is tracked rather than caught up."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        for _ in range(5):
            pacing.advance()
            fake_clock.advance(INTERVAL * 2)
        
        # Frame 4 due at start + 0.16, released at start + 0.32
        assert pacing.last_drift == pytest.approx(4 * INTERVAL)
        assert pacing.max_drift == pytest.approx(4 * INTERVAL)
    
    def test_real_clock_not_early(self):
        """Verify the schedule against the real monotonic clock."""
        interval = 0.01
        pacing = PacingController(interval)
        released = []
        start = time.monotonic()
        
        for _ in range(5):
            assert pacing.advance()
            released.append(time.monotonic())
        
        slack = 0.002
        for k, t in enumerate(released):
            assert t >= start + k * interval - slack


class TestStateMachine:
    """IDLE → RUNNING → DRAINING → STOPPED."""
    
    def test_initial_state(self, fake_clock, fake_event):
        """Verify a new controller is IDLE."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        assert pacing.state == PlaybackState.IDLE
        assert not pacing.clock.started
    
    def test_first_advance_starts_running(self, fake_clock, fake_event):
        """Verify the first advance records the start time."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.advance()
        assert pacing.state == PlaybackState.RUNNING
        assert pacing.clock.start_time == fake_clock()
    
    def test_drain_then_finish(self, fake_clock, fake_event):
        """Verify draining still presents the last frame, then stops."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.advance()
        pacing.drain()
        assert pacing.state == PlaybackState.DRAINING
        
        assert pacing.advance()
        pacing.finish()
        assert pacing.state == PlaybackState.STOPPED
        assert not pacing.advance()
    
    def test_drain_before_first_frame(self, fake_clock, fake_event, caplog):
        """Verify a single-frame stream still passes through RUNNING before DRAINING."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        
        with caplog.at_level("DEBUG", logger="ascii_player.playback.pacing"):
            pacing.drain()
            assert pacing.state == PlaybackState.IDLE
            assert pacing.advance()
        
        assert pacing.state == PlaybackState.DRAINING
        assert [r.getMessage() for r in caplog.records if r.getMessage().startswith("Pacing")] == [
            "Pacing IDLE -> RUNNING",
            "Pacing RUNNING -> DRAINING",
        ]
    
    def test_pending_drain_then_finish(self, fake_clock, fake_event):
        """Verify an empty stream can drain from IDLE and finish without a frame."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.drain()
        pacing.finish()
        assert pacing.state == PlaybackState.STOPPED
    
    def test_stopped_is_terminal(self, fake_clock, fake_event):
        """Verify drain does not leave STOPPED."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.finish()
        pacing.drain()
        assert pacing.state == PlaybackState.STOPPED


class TestCancellation:
    """External stop signal."""
    
    def test_stop_from_running(self, fake_clock, fake_event):
        """Verify stop() goes straight to STOPPED and blocks further frames."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        pacing.advance()
        pacing.stop()
        
        assert pacing.state == PlaybackState.STOPPED
        assert fake_event.is_set()
        assert not pacing.advance()
    
    def test_stop_during_wait(self, fake_clock):
        """Verify a stop arriving mid-wait abandons the frame."""
        event = FakeEvent(fake_clock, stop_after_waits=1)
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=event)
        
        assert pacing.advance()
        assert not pacing.advance()
        assert pacing.state == PlaybackState.STOPPED
        assert pacing.frames_presented == 1
    
    def test_event_set_elsewhere(self, fake_clock, fake_event):
        """Verify a shared event set by another party is observed."""
        pacing = PacingController(INTERVAL, clock=fake_clock, stop_event=fake_event)
        fake_event.set()
        assert pacing.is_stopped
        assert pacing.state == PlaybackState.STOPPED
    
    def test_stop_interrupts_real_wait(self):
        """Verify a stop from another thread ends a long wait promptly."""
        pacing = PacingController(frame_interval=5.0)
        assert pacing.advance()
        
        timer = threading.Timer(0.05, pacing.stop)
        timer.start()
        started = time.monotonic()
        try:
            assert not pacing.advance()
        finally:
            timer.cancel()
        
        assert time.monotonic() - started < 2.0
