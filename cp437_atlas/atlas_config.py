"""Shared configuration for atlas generation.

This module centralizes the constants used by:
    - size_solver.py (iteration bounds and convergence tolerances)
    - atlas_composer.py (grid layout and background colors)
    - bitmask_packer.py (ink threshold and dump layout)
    - atlas_cli.py (defaults for command-line options)

AtlasConfig bundles the per-run choices that are made once, when the atlas
is constructed, rather than per glyph.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from .codepage import GLYPH_COUNT, GRID_COLUMNS, GRID_ROWS
from .font_backend import Hinting, RenderStyle
from .surface import PixelFormat

__all__ = [
    'GLYPH_COUNT', 'GRID_COLUMNS', 'GRID_ROWS',
    'WIDTH_MAX_ITERATIONS', 'DESCENDING_START_SIZE', 'DESCENDING_MAX_ITERATIONS',
    'PROPORTIONAL_INITIAL_RATIO', 'PROPORTIONAL_MAX_ITERATIONS',
    'PROPORTIONAL_TOLERANCE', 'INK_THRESHOLD', 'WORD_BITS', 'WORDS_PER_LINE',
    'WHITE', 'PALE_FILL', 'AtlasConfig',
]

# Width-match policy: integer sizes 1..127
WIDTH_MAX_ITERATIONS = 127

# Height-match descending policy: integer sizes 48 down to 5
DESCENDING_START_SIZE = 48
DESCENDING_MAX_ITERATIONS = 44

# Height-match proportional policy
PROPORTIONAL_INITIAL_RATIO = 0.75  # body height is roughly 75% of point size
PROPORTIONAL_MAX_ITERATIONS = 15
PROPORTIONAL_TOLERANCE = 0.5       # pixels

# Bitmask packing
INK_THRESHOLD = 128  # average channel brightness below this is ink
WORD_BITS = 32
WORDS_PER_LINE = 8

# Background fills
WHITE = (255, 255, 255)
PALE_FILL = (250, 250, 240, 255)


@dataclass(frozen=True)
class AtlasConfig:
    """Construction-time options for an atlas.

    Attributes:
        pixel_format: Surface layout (RGB24 or RGBA32).
        style: Glyph render style.
        hinting: Hinting mode applied to every font handle.
        background: Fill color applied before any glyph is blitted.
        threshold: Ink threshold used when packing the atlas to a bitmask.
    """
    pixel_format: PixelFormat = PixelFormat.RGB24
    style: RenderStyle = RenderStyle.SHADED
    hinting: Hinting = Hinting.NONE
    background: tuple[int, ...] = WHITE
    threshold: int = INK_THRESHOLD

    @classmethod
    def for_pixel_format(cls, pixel_format: PixelFormat, **overrides) -> AtlasConfig:
        """Build a config with the defaults that suit a pixel format.

        RGB24 atlases get SHADED glyphs on white; RGBA32 atlases get BLENDED
        glyphs on the pale fill color. Keyword overrides whose value is None
        are ignored.
        """
        if pixel_format is PixelFormat.RGBA32:
            config = cls(pixel_format=pixel_format, style=RenderStyle.BLENDED,
                         background=PALE_FILL)
        else:
            config = cls(pixel_format=pixel_format)
        overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(config, **overrides)
