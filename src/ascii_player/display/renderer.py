"""
Frame Renderer
==============

Writes TextFrames to a text display with a fixed-origin repaint.

Each frame is written after moving the cursor to the top-left cell, so
it overwrites the previous frame in place instead of scrolling.

Design Rules:
    - Single writer: one renderer owns the display surface
    - Write failures are fatal (RenderTargetError), never retried
    - Runs on the alternate screen; the user's scrollback and cursor
      are restored on close
"""

import logging
import os
import sys
from typing import Optional, TextIO, Tuple

from ascii_player.convert.glyphs import TextFrame
from ascii_player.errors import RenderTargetError


logger = logging.getLogger(__name__)


# ANSI escape codes
ESC = "\033"
CLEAR_SCREEN = f"{ESC}[2J"
CURSOR_HOME = f"{ESC}[H"
HIDE_CURSOR = f"{ESC}[?25l"
SHOW_CURSOR = f"{ESC}[?25h"
RESET = f"{ESC}[0m"
ENTER_ALT_SCREEN = f"{ESC}[?1049h"
LEAVE_ALT_SCREEN = f"{ESC}[?1049l"

FALLBACK_TERMINAL_SIZE = (80, 24)


def terminal_size(stream: Optional[TextIO] = None) -> Tuple[int, int]:
    """
    Get (columns, lines) of the terminal behind a stream.
    
    Falls back to 80x24 when the stream is not a terminal.
    """
    stream = stream or sys.stdout
    try:
        size = os.get_terminal_size(stream.fileno())
        return size.columns, size.lines
    except (AttributeError, OSError, ValueError):
        return FALLBACK_TERMINAL_SIZE


class FrameRenderer:
    """
    Fixed-origin text renderer.
    
    Attributes:
        stream: Display surface (stdout by default)
        frames_rendered: Number of frames written successfully
    
    Example:
        with FrameRenderer(sys.stdout) as renderer:
            renderer.render(text_frame)
    """
    
    def __init__(self, stream: Optional[TextIO] = None) -> None:
        """
        Initialize renderer.
        
        Args:
            stream: Writable text stream, defaults to sys.stdout
        """
        self.stream = stream if stream is not None else sys.stdout
        self.frames_rendered: int = 0
        self._started: bool = False
    
    def __enter__(self) -> "FrameRenderer":
        self.start()
        return self
    
    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
    
    def start(self) -> None:
        """Switch to the alternate screen, hide the cursor and clear once."""
        self._write(ENTER_ALT_SCREEN + HIDE_CURSOR + CLEAR_SCREEN)
        self._started = True
    
    def render(self, frame: TextFrame) -> None:
        """
        Repaint the display with a frame.
        
        Raises:
            RenderTargetError: If the display can no longer be written
        """
        self._write(CURSOR_HOME + frame.to_text())
        self.frames_rendered += 1
    
    def close(self) -> None:
        """Restore terminal state; a broken display is left as is."""
        if not self._started:
            return
        self._started = False
        try:
            self._write(RESET + SHOW_CURSOR + LEAVE_ALT_SCREEN)
        except RenderTargetError as e:
            logger.debug(f"Could not restore terminal state: {e}")
    
    def _write(self, data: str) -> None:
        try:
            self.stream.write(data)
            self.stream.flush()
        except (OSError, ValueError) as e:
            raise RenderTargetError(f"Display write failed: {e}") from e
