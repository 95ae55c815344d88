"""Unit tests for atlas composition.

Uses the fake backend at 18pt: cells are 10x22, ascent 18, and every
non-blank glyph has solid ink on rows 6-17 of its raster.
"""

import logging

import numpy as np
import pytest

from cp437_atlas.atlas_composer import atlas_size, compose_atlas, place_glyph
from cp437_atlas.atlas_config import PALE_FILL, AtlasConfig
from cp437_atlas.codepage import CP437
from cp437_atlas.font_backend import GlyphMetrics, Raster, RenderStyle
from cp437_atlas.placement import BaselinePlacement, CenteredPlacement, TopPlacement
from cp437_atlas.size_solver import CellGeometry
from cp437_atlas.surface import PixelFormat

CELL = CellGeometry(10, 22)


def cell_pixels(atlas, cell, index):
    col, row = index % 16, index // 16
    return atlas.pixels[row * cell.cell_height:(row + 1) * cell.cell_height,
                        col * cell.cell_width:(col + 1) * cell.cell_width]


@pytest.fixture
def font(fake_backend):
    return fake_backend.load_font('font.ttf', 18)


class TestComposeAtlas:
    """Tests for compose_atlas."""

    def test_atlas_dimensions(self, font):
        atlas, _ = compose_atlas(font, CELL)
        assert (atlas.width, atlas.height) == (160, 352)
        assert atlas_size(CELL) == (160, 352)
        assert atlas.pixels.shape == (352, 160, 3)

    def test_each_glyph_in_its_cell(self, font):
        """Glyph i lands in column i % 16, row i // 16."""
        atlas, report = compose_atlas(font, CELL)

        for index in report.placed:
            pixels = cell_pixels(atlas, CELL, index)
            assert (pixels[6:18] == 0).all(), CP437[index]
            assert (pixels[:6] == 255).all(), CP437[index]

    def test_descender_glyph_reaches_descent_line(self, font):
        atlas, _ = compose_atlas(font, CELL)
        pixels = cell_pixels(atlas, CELL, ord('g'))
        assert (pixels[6:22] == 0).all()

    def test_blank_glyphs_skipped(self, font):
        atlas, report = compose_atlas(font, CELL)
        assert 0x00 in report.skipped
        assert 0x20 in report.skipped
        assert (cell_pixels(atlas, CELL, 0x20) == 255).all()
        assert len(report.placed) + len(report.skipped) == 256

    def test_missing_glyph_leaves_background_cell(self, make_fake_backend):
        backend = make_fake_backend(missing={'A'})
        font = backend.load_font('font.ttf', 18)
        atlas, report = compose_atlas(font, CELL)

        assert (atlas.width, atlas.height) == (160, 352)
        assert 0x41 in report.skipped
        assert (cell_pixels(atlas, CELL, 0x41) == 255).all()
        assert (cell_pixels(atlas, CELL, 0x42)[6:18] == 0).all()

    def test_render_failure_is_not_fatal(self, make_fake_backend, caplog):
        backend = make_fake_backend(broken={'♥'})
        font = backend.load_font('font.ttf', 18)
        with caplog.at_level(logging.DEBUG, logger='cp437_atlas.atlas_composer'):
            atlas, report = compose_atlas(font, CELL)

        assert 0x03 in report.skipped
        assert (cell_pixels(atlas, CELL, 0x03) == 255).all()
        assert any("index 3" in r.getMessage() for r in caplog.records
                   if r.levelno == logging.DEBUG)

    def test_narrow_cell_clips_with_warning(self, font, caplog):
        cell = CellGeometry(6, 22)
        with caplog.at_level(logging.WARNING, logger='cp437_atlas.atlas_composer'):
            atlas, report = compose_atlas(font, cell)

        assert report.clipped == report.placed
        assert (atlas.width, atlas.height) == (96, 352)
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == len(report.clipped)
        assert "clipped" in warnings[0].getMessage()

    def test_short_cell_never_overflows_into_next_row(self, font):
        """A raster taller than the cell is clipped, not spilled into row + 1."""
        cell = CellGeometry(10, 16)
        atlas, report = compose_atlas(font, cell, placement=TopPlacement())

        assert report.clipped
        # Rows below the first glyph row start with the next cell's own content
        for index in range(16, 32):
            if index in report.placed:
                assert (cell_pixels(atlas, cell, index)[:6] == 255).all()

    def test_centered_in_cap_height_cell(self, font):
        """Cell as tall as the cap height: the whole ink box of each capital fits."""
        cell = CellGeometry(10, 12)
        atlas, report = compose_atlas(font, cell, placement=CenteredPlacement())

        for index in report.placed:
            if CP437[index] in 'gjpqy':
                continue
            assert (cell_pixels(atlas, cell, index) == 0).all(), CP437[index]
            assert index not in report.clipped, CP437[index]
        assert ord('g') in report.clipped

    def test_blank_raster_margins_are_not_clipping(self, font, caplog):
        cell = CellGeometry(10, 16)
        with caplog.at_level(logging.WARNING, logger='cp437_atlas.atlas_composer'):
            atlas, report = compose_atlas(font, cell, placement=CenteredPlacement())

        # Rasters are 22 rows tall, ink spans at most 16 rows
        assert ord('M') in report.placed
        assert report.clipped == []
        assert not [r for r in caplog.records if r.levelno == logging.WARNING]
        assert (cell_pixels(atlas, cell, ord('g')) == 0).all()

    def test_rgba_blended(self, font):
        config = AtlasConfig.for_pixel_format(PixelFormat.RGBA32)
        atlas, report = compose_atlas(font, CELL, config)

        assert atlas.pixels.shape == (352, 160, 4)
        blank = cell_pixels(atlas, CELL, 0x20)
        assert (blank == np.array(PALE_FILL, dtype=np.uint8)).all()

        glyph = cell_pixels(atlas, CELL, 0x41)
        assert (glyph[6:18, :, 3] == 255).all()
        # Uncovered raster pixels keep the background
        assert (glyph[:6] == np.array(PALE_FILL, dtype=np.uint8)).all()
        assert (glyph[18:] == np.array(PALE_FILL, dtype=np.uint8)).all()

    def test_solid_style(self, font):
        config = AtlasConfig(style=RenderStyle.SOLID)
        atlas, _ = compose_atlas(font, CELL, config)
        assert set(np.unique(atlas.pixels)) <= {0, 255}

    def test_summary_logged(self, font, caplog):
        with caplog.at_level(logging.INFO, logger='cp437_atlas.atlas_composer'):
            compose_atlas(font, CELL)
        assert any(r.getMessage().startswith("Atlas: 160x352") for r in caplog.records)


class TestPlaceGlyph:
    """Tests for place_glyph."""

    @staticmethod
    def _raster(width, height):
        return Raster.from_coverage(np.full((height, width), 255, dtype=np.uint8),
                                    RenderStyle.SHADED)

    def test_centered_horizontally(self):
        where = place_glyph(0x41, self._raster(6, 22), GlyphMetrics(0, 6, 0, 12), -4,
                            CELL, BaselinePlacement())
        assert where.dst.x == 1 * 10 + 2
        assert where.dst.y == 4 * 22
        assert not where.clipped

    def test_short_raster_bottom_aligned(self):
        where = place_glyph(0, self._raster(10, 12), GlyphMetrics(0, 10, 0, 12), -4,
                            CELL, BaselinePlacement())
        assert where.dst.y == 10
        assert where.dst.height == 12

    def test_centered_policy(self):
        where = place_glyph(0, self._raster(10, 12), GlyphMetrics(0, 10, 0, 12), -4,
                            CELL, CenteredPlacement())
        assert where.dst.y == 5

    def test_tall_raster_loses_top_rows(self):
        where = place_glyph(17, self._raster(10, 30), GlyphMetrics(0, 10, 0, 20), -4,
                            CELL, BaselinePlacement())
        assert where.clipped
        assert where.src_y == 8
        assert where.dst.y == 22
        assert where.dst.height == 22

    def test_wide_raster_truncated(self):
        where = place_glyph(15, self._raster(14, 22), GlyphMetrics(0, 14, 0, 12), -4,
                            CELL, BaselinePlacement())
        assert where.clipped
        assert where.dst.x == 150
        assert where.dst.width == 10

    def test_line_height_raster_cropped_to_ink(self):
        coverage = np.zeros((26, 10), dtype=np.uint8)
        coverage[5:17] = 255
        raster = Raster.from_coverage(coverage, RenderStyle.SHADED)
        where = place_glyph(0x4D, raster, GlyphMetrics(0, 10, -1, 15), -6,
                            CellGeometry(10, 12), CenteredPlacement())
        assert where.src_y == 5
        assert where.dst.y == 4 * 12
        assert where.dst.height == 12
        assert not where.clipped
