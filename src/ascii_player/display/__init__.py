"""
Display Module
==============

Terminal output for ascii-player.
    
    - FrameRenderer: Fixed-origin repaint of TextFrames
    - terminal_size: Terminal dimensions with an 80x24 fallback
"""

from ascii_player.display.renderer import FrameRenderer, terminal_size

__all__ = [
    "FrameRenderer",
    "terminal_size",
]
