"""
Playback Module
===============

Timing and the end-to-end playback loop.
    
    - PlaybackClock / PlaybackState: Explicit presentation schedule
    - PacingController: IDLE → RUNNING → DRAINING → STOPPED gate
    - Player: Wires source, conversion, pacing and rendering together
"""

from ascii_player.playback.clock import PlaybackClock, PlaybackState
from ascii_player.playback.pacing import PacingController
from ascii_player.playback.player import PlaybackSummary, Player

__all__ = [
    "PlaybackClock",
    "PlaybackState",
    "PacingController",
    "PlaybackSummary",
    "Player",
]
