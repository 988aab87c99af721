"""
Downsampler
===========

Reduces decoded frames to a character-grid brightness map.

Pipeline per frame:
    1. Luminance: BGR -> single channel (cv2.cvtColor)
    2. Box filter: mean brightness of each cell's pixel block, computed
       from a summed-area table so the cost is independent of block size
    3. Gamma: optional tone curve applied through a 256-entry LUT

Block Geometry:
    Cell (r, c) of a rows x columns grid over an H x W image covers
        rows    [floor(r * H / rows), floor((r + 1) * H / rows))
        columns [floor(c * W / cols), floor((c + 1) * W / cols))
    A block that would be empty (source smaller than the grid) is widened
    to a single pixel, which is nearest-sample upsampling.

Cell Aspect:
    Terminal cells are roughly twice as tall as they are wide. Grid
    selection compresses the row count by cell_aspect (width / height of
    one cell) so circles stay round.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np

from ascii_player.stream.frame import RawFrame


logger = logging.getLogger(__name__)


DEFAULT_CELL_ASPECT = 0.5


@dataclass(frozen=True, slots=True)
class SampleGrid:
    """
    Per-cell brightness for one frame.
    
    Attributes:
        index: Decode index of the source frame
        values: uint8 array (rows, columns), 0 = black, 255 = white
    """
    
    index: int
    values: np.ndarray
    
    @property
    def rows(self) -> int:
        return int(self.values.shape[0])
    
    @property
    def columns(self) -> int:
        return int(self.values.shape[1])
    
    def __repr__(self) -> str:
        return f"SampleGrid(index={self.index}, size={self.columns}x{self.rows})"


def select_grid_size(
    frame_width: int,
    frame_height: int,
    terminal_columns: int,
    terminal_lines: int,
    cell_aspect: float = DEFAULT_CELL_ASPECT,
    rows: Optional[int] = None,
    columns: Optional[int] = None,
) -> Tuple[int, int]:
    """
    Choose the (rows, columns) grid for a stream.
    
    Explicit rows/columns always win. Missing dimensions are derived
    from the source aspect ratio and capped so the picture fits the
    terminal, leaving the last line free so the cursor does not scroll
    the frame.
    
    Args:
        frame_width: Source width in pixels
        frame_height: Source height in pixels
        terminal_columns: Available character columns
        terminal_lines: Available character lines
        cell_aspect: Width / height of one character cell
        rows: Configured row count, if any
        columns: Configured column count, if any
    
    Returns:
        Tuple of (rows, columns), both >= 1
    """
    if cell_aspect <= 0:
        raise ValueError("cell_aspect must be positive")
    
    if rows is not None and columns is not None:
        return max(1, rows), max(1, columns)
    
    max_rows = max(1, terminal_lines - 1)
    max_columns = max(1, terminal_columns)
    
    if frame_width <= 0 or frame_height <= 0:
        return max(1, rows or max_rows), max(1, columns or max_columns)
    
    # Rows per column for this source once cells are accounted for
    ratio = (frame_height / frame_width) * cell_aspect
    
    # A derived dimension never exceeds the terminal, a configured one may
    if columns is not None:
        return max(1, min(max_rows, round(columns * ratio))), max(1, columns)
    if rows is not None:
        return max(1, rows), max(1, min(max_columns, round(rows / ratio)))
    
    grid_columns = max_columns
    grid_rows = round(grid_columns * ratio)
    if grid_rows > max_rows:
        grid_rows = max_rows
        grid_columns = min(max_columns, round(grid_rows / ratio))
    
    return max(1, grid_rows), max(1, grid_columns)


def to_luminance(pixels: np.ndarray) -> np.ndarray:
    """Convert a BGR or grayscale uint8 image to a 2D luminance array."""
    if pixels.ndim == 2:
        return pixels
    return cv2.cvtColor(pixels, cv2.COLOR_BGR2GRAY)


def build_gamma_lut(gamma: float) -> np.ndarray:
    """
    Build a 256-entry lookup table for b' = (b / 255) ** gamma * 255.
    
    gamma < 1 brightens midtones, gamma > 1 darkens them. The end points
    0 and 255 are fixed for every gamma.
    """
    if gamma <= 0:
        raise ValueError("gamma must be positive")
    levels = np.arange(256, dtype=np.float64) / 255.0
    return np.clip(np.rint(np.power(levels, gamma) * 255.0), 0, 255).astype(np.uint8)


def _block_edges(size: int, cells: int) -> Tuple[np.ndarray, np.ndarray]:
    """Start/stop pixel offsets for each cell along one axis."""
    cell = np.arange(cells, dtype=np.int64)
    start = (cell * size) // cells
    stop = ((cell + 1) * size) // cells
    stop = np.maximum(stop, start + 1)
    return start, stop


class Downsampler:
    """
    Box-filter downsampler to a fixed character grid.
    
    The grid is chosen once at stream start and never changes for the
    life of the stream.
    
    Attributes:
        rows: Target row count
        columns: Target column count
        gamma: Tone curve exponent (1.0 = identity)
    
    Example:
        downsampler = Downsampler(rows=45, columns=160)
        grid = downsampler.sample(frame)
        assert grid.values.shape == (45, 160)
    """
    
    def __init__(self, rows: int, columns: int, gamma: float = 1.0) -> None:
        """
        Initialize downsampler.
        
        Args:
            rows: Target row count, >= 1
            columns: Target column count, >= 1
            gamma: Tone curve exponent, > 0
        """
        if rows < 1 or columns < 1:
            raise ValueError(f"grid must be at least 1x1, got {columns}x{rows}")
        
        self.rows = rows
        self.columns = columns
        self.gamma = gamma
        self._lut = None if gamma == 1.0 else build_gamma_lut(gamma)
        
        # Block edges depend only on the source size; cache per size
        self._edges_for: Optional[Tuple[int, int]] = None
        self._edges: Optional[Tuple[np.ndarray, ...]] = None
        
        logger.info(f"Downsampler initialized: grid={columns}x{rows}, gamma={gamma}")
    
    def sample(self, frame: RawFrame) -> SampleGrid:
        """
        Reduce a frame to a SampleGrid of exactly rows x columns.
        
        Args:
            frame: Decoded frame of any resolution
        
        Returns:
            SampleGrid with uint8 brightness per cell
        """
        gray = to_luminance(frame.pixels)
        values = self._box_filter(gray)
        
        if self._lut is not None:
            values = cv2.LUT(values, self._lut)
        
        return SampleGrid(index=frame.index, values=values)
    
    def _box_filter(self, gray: np.ndarray) -> np.ndarray:
        height, width = gray.shape
        y0, y1, x0, x1 = self._edges_for_size(height, width)
        
        # Summed-area table, shape (H + 1, W + 1)
        table = cv2.integral(gray, sdepth=cv2.CV_64F)
        
        sums = (
            table[np.ix_(y1, x1)]
            - table[np.ix_(y0, x1)]
            - table[np.ix_(y1, x0)]
            + table[np.ix_(y0, x0)]
        )
        counts = np.outer(y1 - y0, x1 - x0)
        
        means = np.floor(sums / counts)
        return np.clip(means, 0, 255).astype(np.uint8)
    
    def _edges_for_size(self, height: int, width: int) -> Tuple[np.ndarray, ...]:
        if self._edges_for != (height, width):
            y0, y1 = _block_edges(height, self.rows)
            x0, x1 = _block_edges(width, self.columns)
            self._edges = (y0, y1, x0, x1)
            self._edges_for = (height, width)
        return self._edges
