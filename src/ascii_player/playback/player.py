"""
Player
======

Single-threaded frame pipeline:
    
    FrameSource → Downsampler → LuminanceMapper → FrameRenderer
                                                      ↑
                                              PacingController

Loop (one frame of decode-ahead, at most one frame in flight):
    1. Check cancellation
    2. Decode and convert the next frame
    3. Source ended → pacing.drain()
    4. pacing.advance() (the only suspension point)
    5. Render the pending frame

A DecodeError raised while decoding ahead is held until the pending
frame has been rendered, so every frame before the corrupt one is shown.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ascii_player.config import Settings
from ascii_player.convert.downsample import (
    DEFAULT_CELL_ASPECT,
    Downsampler,
    select_grid_size,
)
from ascii_player.convert.glyphs import GlyphRamp, LuminanceMapper, TextFrame
from ascii_player.display.renderer import FrameRenderer, terminal_size
from ascii_player.errors import DecodeError
from ascii_player.playback.pacing import PacingController
from ascii_player.stream.frame import RawFrame
from ascii_player.stream.source import FrameSource, OpenCVFrameSource, PathLike, iter_frames


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlaybackSummary:
    """Outcome of a completed or cancelled run."""
    
    path: str
    frames_rendered: int
    rows: int
    columns: int
    frame_interval: float
    max_drift: float
    cancelled: bool


class Player:
    """
    Plays one video file as ASCII art.
    
    Attributes:
        source: Frame source used to open streams
        renderer: Display writer
        ramp: Glyph ramp shared by all frames
        pacing: Controller of the current run (None before play())
    
    Example:
        player = Player(OpenCVFrameSource(), FrameRenderer(), GlyphRamp())
        summary = player.play("clip.mp4")
    """
    
    def __init__(
        self,
        source: FrameSource,
        renderer: FrameRenderer,
        ramp: GlyphRamp,
        rows: Optional[int] = None,
        columns: Optional[int] = None,
        cell_aspect: float = DEFAULT_CELL_ASPECT,
        gamma: float = 1.0,
        terminal: Optional[Tuple[int, int]] = None,
        clock: Callable[[], float] = time.monotonic,
        stop_event: Optional[threading.Event] = None,
        log_every_n_frames: int = 120,
    ) -> None:
        """
        Initialize player.
        
        Args:
            source: FrameSource implementation
            renderer: FrameRenderer writing to the display
            ramp: Glyph ramp
            rows: Fixed grid rows (None = fit terminal)
            columns: Fixed grid columns (None = fit terminal)
            cell_aspect: Width / height of one terminal cell
            gamma: Tone curve exponent
            terminal: (columns, lines) override; queried from the renderer's
                stream when omitted
            clock: Monotonic time source for pacing
            stop_event: Cancellation event shared with the pacing controller
            log_every_n_frames: Pacing drift log interval
        """
        self.source = source
        self.renderer = renderer
        self.ramp = ramp
        self.rows = rows
        self.columns = columns
        self.cell_aspect = cell_aspect
        self.gamma = gamma
        self.terminal = terminal
        self.log_every_n_frames = log_every_n_frames
        
        self._clock = clock
        self._stop_event = stop_event if stop_event is not None else threading.Event()
        self.pacing: Optional[PacingController] = None
    
    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        source: Optional[FrameSource] = None,
        renderer: Optional[FrameRenderer] = None,
    ) -> "Player":
        """Build a player from loaded settings."""
        return cls(
            source=source or OpenCVFrameSource(fallback_fps=settings.source.fallback_fps),
            renderer=renderer or FrameRenderer(),
            ramp=GlyphRamp(settings.glyphs.ramp, settings.glyphs.order),
            rows=settings.grid.rows,
            columns=settings.grid.columns,
            cell_aspect=settings.grid.cell_aspect,
            gamma=settings.conversion.gamma,
            log_every_n_frames=settings.playback.log_every_n_frames,
        )
    
    def stop(self) -> None:
        """
        Request cancellation. Safe to call from a signal handler.
        
        Only sets the shared stop event. The pacing controller observes it
        at its next check or wakes from its wait, and does the logging.
        """
        self._stop_event.set()
    
    def play(self, path: PathLike) -> PlaybackSummary:
        """
        Play a video file to completion, cancellation, or failure.
        
        Raises:
            SourceNotFound: If the path is invalid (nothing rendered)
            DecodeError: If a frame cannot be decoded (earlier frames rendered)
            RenderTargetError: If the display fails
        """
        handle = self.source.open(path)
        pacing = PacingController(
            frame_interval=self.source.frame_interval(handle),
            clock=self._clock,
            stop_event=self._stop_event,
            log_every_n_frames=self.log_every_n_frames,
        )
        self.pacing = pacing
        rendered_before = self.renderer.frames_rendered
        rows = columns = 0
        
        try:
            frames = iter_frames(self.source, handle)
            first = next(frames, None)
            
            if first is None:
                logger.warning(f"Stream {handle.path} contains no frames")
                pacing.drain()
            else:
                rows, columns = self._grid_for(first)
                downsampler = Downsampler(rows, columns, gamma=self.gamma)
                mapper = LuminanceMapper(self.ramp)
                
                def convert(raw: RawFrame) -> TextFrame:
                    return mapper.map(downsampler.sample(raw))
                
                with self.renderer:
                    self._run(frames, convert(first), convert, pacing)
        finally:
            pacing.finish()
            self.source.close(handle)
        
        summary = PlaybackSummary(
            path=handle.path,
            frames_rendered=self.renderer.frames_rendered - rendered_before,
            rows=rows,
            columns=columns,
            frame_interval=pacing.frame_interval,
            max_drift=pacing.max_drift,
            cancelled=self._stop_event.is_set(),
        )
        logger.info(
            f"Playback {'cancelled' if summary.cancelled else 'finished'}: "
            f"{summary.frames_rendered} frames, max drift "
            f"{summary.max_drift * 1000:.1f}ms"
        )
        return summary
    
    def _run(self, frames, pending: TextFrame, convert, pacing: PacingController) -> None:
        deferred: Optional[DecodeError] = None
        
        while pending is not None:
            if pacing.is_stopped:
                logger.info(f"Playback stopped before frame {pending.index}")
                return
            
            upcoming: Optional[TextFrame] = None
            try:
                raw = next(frames, None)
                if raw is not None:
                    upcoming = convert(raw)
            except DecodeError as e:
                deferred = e
            
            if upcoming is None and deferred is None:
                pacing.drain()
            
            if not pacing.advance():
                logger.info(f"Playback stopped before frame {pending.index}")
                return
            
            self.renderer.render(pending)
            
            if deferred is not None:
                logger.error(f"Decoding stopped after frame {pending.index}: {deferred}")
                raise deferred
            
            pending = upcoming
    
    def _grid_for(self, first: RawFrame) -> Tuple[int, int]:
        term_columns, term_lines = self.terminal or terminal_size(self.renderer.stream)
        rows, columns = select_grid_size(
            frame_width=first.width,
            frame_height=first.height,
            terminal_columns=term_columns,
            terminal_lines=term_lines,
            cell_aspect=self.cell_aspect,
            rows=self.rows,
            columns=self.columns,
        )
        logger.info(
            f"Grid {columns}x{rows} for {first.width}x{first.height} source "
            f"on {term_columns}x{term_lines} terminal"
        )
        return rows, columns
