"""Shared pytest fixtures for the cp437_atlas test suite.

Fixtures:
    fake_backend: FontBackend with simple, predictable metrics
    make_fake_backend: Factory for FakeBackend with custom metrics
    test_font_path: Path to a real TTF font, or skip
    blank_surface: 32x32 white RGB surface

Markers:
    slow: Mark test as slow-running (skip with -m "not slow")
    integration: Mark test as integration test

The fake backend models a font whose metrics are plain functions of the
point size. Every glyph raster is line_height() tall with a solid block of
ink from the cap height down to the baseline (or to the descent line for
descender glyphs), so the position of each glyph in an atlas is easy to
check pixel by pixel.
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from cp437_atlas.errors import FontLoadError, GlyphRenderError  # noqa: E402
from cp437_atlas.font_backend import GlyphMetrics, Raster  # noqa: E402
from cp437_atlas.surface import PixelFormat, Surface  # noqa: E402

DESCENDERS = set("gjpqy")
BLANKS = {" "}


def default_width(size):
    return int(size) // 2 + 1


def default_height(size):
    return int(size) + int(size) // 4


def default_cap(size):
    return int(size) * 7 // 10


class FakeFont:
    """FontHandle whose metrics are functions of the point size."""

    def __init__(self, point_size, width_fn, height_fn, cap_fn,
                 missing=(), broken=(), blank=BLANKS):
        self.point_size = point_size
        self.hinting = None
        self._width_fn = width_fn
        self._height_fn = height_fn
        self._cap_fn = cap_fn
        self._missing = set(missing)
        self._broken = set(broken)
        self._blank = set(blank)

    def set_hinting(self, mode):
        self.hinting = mode

    def has_glyph(self, char):
        return char not in self._missing

    def glyph_width(self):
        return self._width_fn(self.point_size)

    def line_height(self):
        return self._height_fn(self.point_size)

    def ascent(self):
        height = self.line_height()
        return height - height // 5

    def descent(self):
        return self.ascent() - self.line_height()

    def glyph_metrics(self, char):
        if char in self._missing:
            return None
        advance = self.glyph_width()
        if char in self._blank:
            return GlyphMetrics(0, 0, 0, 0, advance)
        min_y = self.descent() if char in DESCENDERS else 0
        return GlyphMetrics(0, advance, min_y, self._cap_fn(self.point_size), advance)

    def render_glyph(self, char, style):
        if char in self._missing or char in self._broken:
            raise GlyphRenderError(char, "fake failure")
        metrics = self.glyph_metrics(char)
        coverage = np.zeros((self.line_height(), metrics.advance), dtype=np.uint8)
        if not metrics.is_empty:
            top = self.ascent() - metrics.max_y
            bottom = self.ascent() - metrics.min_y
            coverage[max(top, 0):bottom, :] = 255
        return Raster.from_coverage(coverage, style)

    def render_text(self, text, style):
        present = [ch for ch in text if ch not in self._missing]
        for ch in present:
            if ch in self._broken:
                raise GlyphRenderError(ch, "fake failure")
        coverage = np.zeros((max(self.line_height(), 0), self.glyph_width() * len(present)),
                            dtype=np.uint8)
        return Raster.from_coverage(coverage, style)


class FakeBackend:
    """FontBackend producing FakeFont handles.

    Attributes:
        loaded: Point sizes in the order handles were loaded.
        fonts: Every handle handed out.
    """

    def __init__(self, width_fn=default_width, height_fn=default_height,
                 cap_fn=default_cap, missing=(), broken=(), blank=BLANKS,
                 fail_paths=()):
        self.width_fn = width_fn
        self.height_fn = height_fn
        self.cap_fn = cap_fn
        self.missing = missing
        self.broken = broken
        self.blank = blank
        self.fail_paths = {str(p) for p in fail_paths}
        self.loaded = []
        self.fonts = []

    def load_font(self, path, point_size):
        if str(path) in self.fail_paths or point_size <= 0:
            raise FontLoadError(path, point_size, "fake failure")
        font = FakeFont(point_size, self.width_fn, self.height_fn, self.cap_fn,
                        self.missing, self.broken, self.blank)
        self.loaded.append(point_size)
        self.fonts.append(font)
        return font


# -----------------------------------------------------------------------------
# Pytest Markers
# -----------------------------------------------------------------------------

def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "slow: mark test as slow-running (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )


# -----------------------------------------------------------------------------
# Font Backend Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def fake_backend():
    """Return a FakeBackend with default metrics.

    At size s: widest glyph s // 2 + 1, line height s + s // 4, cap height
    s * 7 // 10. A 10px target width is first reached at 18pt.
    """
    return FakeBackend()


@pytest.fixture
def make_fake_backend():
    """Return the FakeBackend class for tests that need custom metrics.

    Example:
        def test_missing(make_fake_backend):
            backend = make_fake_backend(missing={'A'})
    """
    return FakeBackend


@pytest.fixture
def test_font_path():
    """Return path to a real TTF font file.

    Checks a bundled test font first, then common system locations.

    Raises:
        pytest.skip: If no font files are available for testing.
    """
    base_dir = Path(__file__).parent
    fallback_paths = [
        base_dir / "fonts" / "TestFont.ttf",
        Path("/usr/share/fonts/truetype/dejavu/DejaVuSansMono.ttf"),
        Path("/usr/share/fonts/dejavu/DejaVuSansMono.ttf"),
        Path("/usr/share/fonts/TTF/DejaVuSansMono.ttf"),
        Path("/usr/share/fonts/truetype/liberation/LiberationMono-Regular.ttf"),
        Path("/Library/Fonts/Courier New.ttf"),
        Path("C:/Windows/Fonts/cour.ttf"),
    ]
    for path in fallback_paths:
        if path.exists():
            return str(path)

    pytest.skip("No font files available for testing")


# -----------------------------------------------------------------------------
# Surface Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def blank_surface():
    """Return a 32x32 RGB surface filled with white."""
    surface = Surface(32, 32, PixelFormat.RGB24)
    surface.fill((255, 255, 255))
    return surface
