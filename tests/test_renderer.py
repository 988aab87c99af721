"""
Frame Renderer Tests
====================

Fixed-origin repaint, terminal restore and write failures.
"""

import io

import pytest

from ascii_player.convert.glyphs import TextFrame
from ascii_player.display.renderer import (
    CLEAR_SCREEN,
    CURSOR_HOME,
    ENTER_ALT_SCREEN,
    HIDE_CURSOR,
    LEAVE_ALT_SCREEN,
    SHOW_CURSOR,
    FrameRenderer,
    terminal_size,
)
from ascii_player.errors import RenderTargetError


FRAME_A = TextFrame(index=0, lines=("ab", "cd"))
FRAME_B = TextFrame(index=1, lines=("ef", "gh"))


class BrokenStream(io.StringIO):
    """Stream whose writes fail like a closed pipe."""
    
    def write(self, data):
        raise BrokenPipeError("pipe closed")


class TestRender:
    """Repaint behaviour."""
    
    def test_each_frame_starts_at_origin(self):
        """Verify every frame is preceded by cursor-home."""
        out = io.StringIO()
        with FrameRenderer(out) as renderer:
            renderer.render(FRAME_A)
            renderer.render(FRAME_B)
        
        written = out.getvalue()
        assert written.startswith(ENTER_ALT_SCREEN + HIDE_CURSOR + CLEAR_SCREEN)
        assert CURSOR_HOME + "ab\ncd" in written
        assert CURSOR_HOME + "ef\ngh" in written
        assert written.index("ab\ncd") < written.index("ef\ngh")
        assert written.count(CURSOR_HOME) == 2
    
    def test_no_scrolling_newline_after_frame(self):
        """Verify the frame text itself does not end with a newline."""
        out = io.StringIO()
        renderer = FrameRenderer(out)
        renderer.render(FRAME_A)
        assert out.getvalue() == CURSOR_HOME + "ab\ncd"
    
    def test_counts_frames(self):
        """Verify frames_rendered counts successful writes."""
        renderer = FrameRenderer(io.StringIO())
        renderer.render(FRAME_A)
        renderer.render(FRAME_B)
        assert renderer.frames_rendered == 2
    
    def test_close_restores_cursor(self):
        """Verify the cursor is shown again on exit."""
        out = io.StringIO()
        with FrameRenderer(out):
            pass
        assert SHOW_CURSOR in out.getvalue()
    
    def test_alternate_screen(self):
        """Verify playback runs on the alternate screen and leaves it on close."""
        out = io.StringIO()
        with FrameRenderer(out) as renderer:
            renderer.render(FRAME_A)
        
        written = out.getvalue()
        assert written.count(ENTER_ALT_SCREEN) == 1
        assert written.endswith(LEAVE_ALT_SCREEN)
        assert written.index(ENTER_ALT_SCREEN) < written.index("ab\ncd") < written.index(LEAVE_ALT_SCREEN)


class TestRenderFailures:
    """Write failures are fatal."""
    
    def test_closed_stream(self):
        """Verify writing to a closed stream raises RenderTargetError."""
        out = io.StringIO()
        renderer = FrameRenderer(out)
        out.close()
        
        with pytest.raises(RenderTargetError):
            renderer.render(FRAME_A)
        assert renderer.frames_rendered == 0
    
    def test_broken_pipe(self):
        """Verify OS-level write errors raise RenderTargetError."""
        with pytest.raises(RenderTargetError):
            FrameRenderer(BrokenStream()).render(FRAME_A)
    
    def test_close_tolerates_broken_stream(self):
        """Verify close() does not mask the original failure."""
        out = io.StringIO()
        renderer = FrameRenderer(out)
        renderer.start()
        out.close()
        renderer.close()
    
    def test_error_surfaces_through_context_manager(self):
        """Verify a failure inside the with-block propagates."""
        out = io.StringIO()
        with pytest.raises(RenderTargetError):
            with FrameRenderer(out) as renderer:
                out.close()
                renderer.render(FRAME_A)


class TestTerminalSize:
    """Terminal size lookup."""
    
    def test_fallback_for_non_terminal(self):
        """Verify a StringIO reports the 80x24 fallback."""
        assert terminal_size(io.StringIO()) == (80, 24)
