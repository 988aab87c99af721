"""
Luminance Mapper
================

Maps per-cell brightness to glyphs from an ordered ramp.

Mapping:
    index = floor(b / 256 * len(ramp)), clamped to [0, len(ramp) - 1]

Ramp Order:
    Ramps are stored dark-to-light: index 0 is drawn for black, the last
    glyph for white. The default " .:-=+*#%@" suits light text on a dark
    terminal. A ramp written light-to-dark is reversed once when the
    GlyphRamp is built, so the mapping stays monotonic either way.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np

from ascii_player.convert.downsample import SampleGrid


logger = logging.getLogger(__name__)


DEFAULT_RAMP = " .:-=+*#%@"


class RampOrder(str, Enum):
    """
    How the configured ramp string is written.
    
    Attributes:
        DARK_TO_LIGHT: First character is drawn for the darkest cells
        LIGHT_TO_DARK: First character is drawn for the brightest cells
    """
    
    DARK_TO_LIGHT = "dark_to_light"
    LIGHT_TO_DARK = "light_to_dark"


class GlyphRamp:
    """
    Ordered glyphs from darkest to brightest.
    
    Fixed at configuration time and shared read-only by all frames.
    
    Attributes:
        glyphs: Characters, index 0 = darkest
    """
    
    def __init__(
        self,
        glyphs: str = DEFAULT_RAMP,
        order: Union[RampOrder, str] = RampOrder.DARK_TO_LIGHT,
    ) -> None:
        """
        Build a glyph ramp.
        
        Args:
            glyphs: Ramp characters in the given order
            order: Whether glyphs are written dark-to-light or light-to-dark
        
        Raises:
            ValueError: If the ramp has fewer than two distinct glyphs,
                or contains line breaks
        """
        order = RampOrder(order)
        
        if len(set(glyphs)) < 2:
            raise ValueError(
                f"Glyph ramp needs at least two distinct characters, got {glyphs!r}"
            )
        if "\n" in glyphs or "\r" in glyphs:
            raise ValueError("Glyph ramp must not contain line breaks")
        
        if order is RampOrder.LIGHT_TO_DARK:
            glyphs = glyphs[::-1]
        
        self._glyphs = glyphs
        self._table = np.array(list(glyphs), dtype="<U1")
    
    @property
    def glyphs(self) -> str:
        return self._glyphs
    
    @property
    def darkest(self) -> str:
        return self._glyphs[0]
    
    @property
    def brightest(self) -> str:
        return self._glyphs[-1]
    
    @property
    def table(self) -> np.ndarray:
        return self._table
    
    def __len__(self) -> int:
        return len(self._glyphs)
    
    def __repr__(self) -> str:
        return f"GlyphRamp({self._glyphs!r})"


@dataclass(frozen=True, slots=True)
class TextFrame:
    """
    Rendered characters for one frame.
    
    Attributes:
        index: Decode index of the source frame
        lines: One string per row, all of equal length
    """
    
    index: int
    lines: Tuple[str, ...]
    
    @property
    def rows(self) -> int:
        return len(self.lines)
    
    @property
    def columns(self) -> int:
        return len(self.lines[0]) if self.lines else 0
    
    def to_text(self) -> str:
        return "\n".join(self.lines)


def glyph_indices(values: np.ndarray, ramp_length: int) -> np.ndarray:
    """
    Ramp index for each brightness value.
    
    Args:
        values: uint8 brightness array of any shape
        ramp_length: Number of glyphs in the ramp
    
    Returns:
        int array of the same shape, each in [0, ramp_length - 1]
    """
    scaled = (values.astype(np.int64) * ramp_length) // 256
    return np.clip(scaled, 0, ramp_length - 1)


class LuminanceMapper:
    """
    Converts SampleGrids into TextFrames.
    
    Example:
        mapper = LuminanceMapper(GlyphRamp(" .:-=+*#%@"))
        text = mapper.map(grid)
        assert (text.rows, text.columns) == (grid.rows, grid.columns)
    """
    
    def __init__(self, ramp: GlyphRamp) -> None:
        self.ramp = ramp
        logger.info(f"LuminanceMapper initialized: {len(ramp)} glyphs {ramp.glyphs!r}")
    
    def map(self, grid: SampleGrid) -> TextFrame:
        """Map every cell of the grid to a glyph."""
        indices = glyph_indices(grid.values, len(self.ramp))
        chars = self.ramp.table[indices]
        lines = tuple("".join(row) for row in chars)
        return TextFrame(index=grid.index, lines=lines)
