"""Font backend: glyph measurement and rasterization.

This module defines the narrow interface the size solver and the atlas
composer use to talk to a font rasterizer, plus the FreeType implementation
of it. The engine never touches FreeType directly; it only sees FontHandle
objects that can measure and render single characters or whole strings.

Key functionality:
    - GlyphMetrics: Integer bounding box of one glyph relative to its pen origin
    - Raster: Rendered pixels (RGB or RGBA) of a glyph or string
    - Hinting / RenderStyle: Load-time hinting mode and output pixel style
    - FreeTypeBackend: Loads TTF files through freetype-py

Rendering convention:
    Every raster produced by render_glyph() and render_text() is exactly
    line_height() pixels tall with the baseline ascent() pixels below the top
    edge, so rasters of different glyphs line up when blitted at the same y.

Typical usage:
    from cp437_atlas.font_backend import FreeTypeBackend, Hinting, RenderStyle

    backend = FreeTypeBackend()
    font = backend.load_font('fonts/Px437.ttf', 16.0)
    font.set_hinting(Hinting.MONO)
    metrics = font.glyph_metrics('A')
    raster = font.render_glyph('A', RenderStyle.SHADED)
"""

from __future__ import annotations

import enum
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import freetype
import numpy as np

from .errors import FontLoadError, GlyphRenderError

logger = logging.getLogger(__name__)

# FreeType works in 26.6 fixed point
_FIXED_ONE = 64

# Coverage at or above this value counts as ink for SOLID rendering
SOLID_COVERAGE_THRESHOLD = 128

INK = 0
PAPER = 255


class Hinting(enum.Enum):
    """Hinting applied when glyphs are loaded.

    Enabled hinting snaps outlines to the pixel grid differently at each
    size, which breaks the monotonic growth the size solver relies on. Only
    the two modes that keep metrics stable are offered.
    """
    NONE = 'none'
    MONO = 'mono'


class RenderStyle(enum.Enum):
    """Pixel style of rendered rasters.

    SHADED: anti-aliased black ink on a white background (RGB).
    SOLID: 1-bit black ink on a white background (RGB).
    BLENDED: SHADED colors plus an alpha channel carrying ink coverage (RGBA).
    """
    SHADED = 'shaded'
    SOLID = 'solid'
    BLENDED = 'blended'


@dataclass(frozen=True)
class GlyphMetrics:
    """Glyph bounding box in whole pixels, y axis pointing up.

    Attributes:
        min_x: Left edge relative to the pen origin.
        max_x: Right edge relative to the pen origin.
        min_y: Bottom edge relative to the baseline (negative for descenders).
        max_y: Top edge relative to the baseline.
        advance: Horizontal pen advance.
    """
    min_x: int
    max_x: int
    min_y: int
    max_y: int
    advance: int = 0

    @property
    def width(self) -> int:
        return self.max_x - self.min_x

    @property
    def height(self) -> int:
        return self.max_y - self.min_y

    @property
    def is_empty(self) -> bool:
        """True when the box has no extent on either axis."""
        return self.min_x == self.max_x or self.min_y == self.max_y


@dataclass(frozen=True)
class Raster:
    """Rendered pixels of a glyph or string.

    Attributes:
        pixels: uint8 array of shape (height, width, 3) or (height, width, 4).
    """
    pixels: np.ndarray

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def channels(self) -> int:
        return int(self.pixels.shape[2])

    def ink_bounds(self) -> tuple[int, int, int, int] | None:
        """Return (left, top, right, bottom) of the inked pixels, or None if blank.

        A pixel carries ink when any color channel is darker than paper,
        which holds for every RenderStyle. Right and bottom are exclusive.
        """
        ink = (self.pixels[:, :, :3] < PAPER).any(axis=2)
        rows = np.flatnonzero(ink.any(axis=1))
        if rows.size == 0:
            return None
        cols = np.flatnonzero(ink.any(axis=0))
        return int(cols[0]), int(rows[0]), int(cols[-1]) + 1, int(rows[-1]) + 1

    @classmethod
    def from_coverage(cls, coverage: np.ndarray, style: RenderStyle) -> Raster:
        """Colorize an 8-bit coverage map according to a render style.

        Args:
            coverage: uint8 array (height, width); 0 = no ink, 255 = full ink.
            style: Output pixel style.

        Returns:
            Raster with 3 channels (SHADED, SOLID) or 4 channels (BLENDED).
        """
        coverage = np.asarray(coverage, dtype=np.uint8)
        if style is RenderStyle.SOLID:
            gray = np.where(coverage >= SOLID_COVERAGE_THRESHOLD, INK, PAPER).astype(np.uint8)
        else:
            gray = (PAPER - coverage).astype(np.uint8)

        rgb = np.repeat(gray[:, :, np.newaxis], 3, axis=2)
        if style is RenderStyle.BLENDED:
            return cls(np.dstack([rgb, coverage]))
        return cls(rgb)


class FontHandle(Protocol):
    """A font opened at one point size.

    Handles are cheap to create and are never shared between solver trials;
    a new handle is loaded for every candidate size.
    """

    point_size: float

    def set_hinting(self, mode: Hinting) -> None:
        ...

    def has_glyph(self, char: str) -> bool:
        ...

    def glyph_metrics(self, char: str) -> GlyphMetrics | None:
        """Return metrics, or None if the font has no glyph for char."""
        ...

    def render_glyph(self, char: str, style: RenderStyle) -> Raster:
        """Render one character. Raises GlyphRenderError on failure."""
        ...

    def render_text(self, text: str, style: RenderStyle) -> Raster:
        """Render a string on one line. Raises GlyphRenderError on failure."""
        ...

    def ascent(self) -> int:
        ...

    def descent(self) -> int:
        ...

    def line_height(self) -> int:
        ...


class FontBackend(Protocol):
    """Factory for FontHandle objects."""

    def load_font(self, path: str | Path, point_size: float) -> FontHandle:
        """Open a font file at a point size. Raises FontLoadError on failure."""
        ...


def _bitmap_coverage(bitmap) -> np.ndarray:
    """Convert a FreeType bitmap to an 8-bit coverage array.

    Handles both 8-bit gray bitmaps and 1-bit mono bitmaps (MSB = leftmost
    pixel), as produced by FT_LOAD_TARGET_MONO.
    """
    rows, width, pitch = bitmap.rows, bitmap.width, bitmap.pitch
    if rows == 0 or width == 0:
        return np.zeros((rows, width), dtype=np.uint8)

    buf = np.array(bitmap.buffer, dtype=np.uint8).reshape(rows, abs(pitch))
    if pitch < 0:
        buf = buf[::-1]

    if bitmap.pixel_mode == freetype.FT_PIXEL_MODE_MONO:
        bits = np.unpackbits(buf, axis=1)[:, :width]
        return (bits * 255).astype(np.uint8)
    return buf[:, :width].copy()


class FreeTypeFont:
    """FontHandle backed by a freetype.Face sized to one point size.

    Sizes are set at 72 dpi, so one point equals one pixel.

    Attributes:
        font_path: Path of the font file.
        point_size: Point size the face was sized to.
        hinting: Current hinting mode; applied on every glyph load.
    """

    def __init__(self, face: freetype.Face, font_path: str, point_size: float):
        self._face = face
        self.font_path = font_path
        self.point_size = point_size
        self.hinting = Hinting.NONE

    def set_hinting(self, mode: Hinting) -> None:
        self.hinting = mode

    def _load_flags(self, render: bool) -> int:
        flags = freetype.FT_LOAD_RENDER if render else freetype.FT_LOAD_DEFAULT
        if self.hinting is Hinting.MONO:
            flags |= freetype.FT_LOAD_TARGET_MONO
        else:
            flags |= freetype.FT_LOAD_NO_HINTING
        return flags

    def _load(self, char: str, render: bool):
        try:
            self._face.load_char(char, self._load_flags(render))
        except freetype.FT_Exception as e:
            raise GlyphRenderError(char, str(e)) from e
        return self._face.glyph

    def has_glyph(self, char: str) -> bool:
        return self._face.get_char_index(char) != 0

    def glyph_metrics(self, char: str) -> GlyphMetrics | None:
        if not self.has_glyph(char):
            return None
        try:
            glyph = self._load(char, render=False)
        except GlyphRenderError:
            return None

        m = glyph.metrics
        min_x = math.floor(m.horiBearingX / _FIXED_ONE)
        max_y = math.floor(m.horiBearingY / _FIXED_ONE)
        return GlyphMetrics(
            min_x=min_x,
            max_x=min_x + math.ceil(m.width / _FIXED_ONE),
            min_y=max_y - math.ceil(m.height / _FIXED_ONE),
            max_y=max_y,
            advance=math.ceil(m.horiAdvance / _FIXED_ONE),
        )

    def ascent(self) -> int:
        return math.ceil(self._face.size.ascender / _FIXED_ONE)

    def descent(self) -> int:
        return math.floor(self._face.size.descender / _FIXED_ONE)

    def line_height(self) -> int:
        return self.ascent() - self.descent()

    def render_glyph(self, char: str, style: RenderStyle) -> Raster:
        if not self.has_glyph(char):
            raise GlyphRenderError(char, "glyph not in font")
        return self.render_text(char, style)

    def render_text(self, text: str, style: RenderStyle) -> Raster:
        """Render text on a single line, skipping characters the font lacks.

        The raster spans from the leftmost ink (or the pen origin) to the
        farther of the final pen position and the rightmost ink.
        """
        ascent = self.ascent()
        height = self.line_height()

        placed = []
        pen_x = 0
        for char in text:
            if not self.has_glyph(char):
                continue
            glyph = self._load(char, render=True)
            coverage = _bitmap_coverage(glyph.bitmap)
            placed.append((pen_x + glyph.bitmap_left, ascent - glyph.bitmap_top, coverage))
            pen_x += int(round(glyph.advance.x / _FIXED_ONE))

        left = min([0] + [x for x, _, _ in placed])
        right = max([pen_x] + [x + cov.shape[1] for x, _, cov in placed])
        canvas = np.zeros((max(height, 0), right - left), dtype=np.uint8)

        for x, y, coverage in placed:
            _paste_max(canvas, coverage, x - left, y)

        return Raster.from_coverage(canvas, style)


def _paste_max(canvas: np.ndarray, coverage: np.ndarray, x: int, y: int) -> None:
    """Combine coverage into canvas at (x, y), clipped to the canvas."""
    h, w = coverage.shape
    top, bottom = max(y, 0), min(y + h, canvas.shape[0])
    left, right = max(x, 0), min(x + w, canvas.shape[1])
    if top >= bottom or left >= right:
        return
    src = coverage[top - y:bottom - y, left - x:right - x]
    region = canvas[top:bottom, left:right]
    np.maximum(region, src, out=region)


class FreeTypeBackend:
    """FontBackend that opens fonts with freetype-py."""

    def load_font(self, path: str | Path, point_size: float) -> FreeTypeFont:
        font_path = str(path)
        if point_size <= 0:
            raise FontLoadError(font_path, point_size, "point size must be positive")
        try:
            face = freetype.Face(font_path)
            face.set_char_size(int(round(point_size * _FIXED_ONE)))
        except (freetype.FT_Exception, OSError) as e:
            raise FontLoadError(font_path, point_size, str(e)) from e
        logger.debug("Loaded %s at %.4fpt", font_path, point_size)
        return FreeTypeFont(face, font_path, point_size)
