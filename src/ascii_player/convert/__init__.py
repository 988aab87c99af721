"""
Conversion Module
=================

Frame-to-text conversion for ascii-player.

This module provides:
    - Downsampler: Box-filter reduction to a character grid
    - select_grid_size: Terminal-fit grid selection with cell aspect
    - GlyphRamp / LuminanceMapper: Brightness to glyph mapping
    - SampleGrid / TextFrame: Intermediate and final frame forms
"""

from ascii_player.convert.downsample import (
    DEFAULT_CELL_ASPECT,
    Downsampler,
    SampleGrid,
    build_gamma_lut,
    select_grid_size,
    to_luminance,
)
from ascii_player.convert.glyphs import (
    DEFAULT_RAMP,
    GlyphRamp,
    LuminanceMapper,
    RampOrder,
    TextFrame,
    glyph_indices,
)

__all__ = [
    # Downsampling
    "DEFAULT_CELL_ASPECT",
    "Downsampler",
    "SampleGrid",
    "build_gamma_lut",
    "select_grid_size",
    "to_luminance",
    # Glyph mapping
    "DEFAULT_RAMP",
    "GlyphRamp",
    "LuminanceMapper",
    "RampOrder",
    "TextFrame",
    "glyph_indices",
]
