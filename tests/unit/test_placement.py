"""Unit tests for glyph placement policies."""

import unittest

import numpy as np

from cp437_atlas.font_backend import GlyphMetrics, Raster, RenderStyle
from cp437_atlas.placement import (
    PLACEMENTS,
    BaselinePlacement,
    CenteredPlacement,
    TopPlacement,
    get_placement,
    horizontal_offset,
)

CAPITAL = GlyphMetrics(min_x=0, max_x=8, min_y=0, max_y=12)
DESCENDER = GlyphMetrics(min_x=0, max_x=8, min_y=-4, max_y=8)
SUPERSCRIPT = GlyphMetrics(min_x=0, max_x=4, min_y=8, max_y=14)


def raster(height, ink=None, width=8):
    """Raster of the given height with solid ink on rows ink[0]:ink[1].

    With ink=None the whole raster is inked.
    """
    coverage = np.zeros((height, width), dtype=np.uint8)
    top, bottom = ink if ink is not None else (0, height)
    coverage[top:bottom] = 255
    return Raster.from_coverage(coverage, RenderStyle.SHADED)


class TestHorizontalOffset(unittest.TestCase):
    """Tests for horizontal_offset."""

    def test_centers_narrow_glyph(self):
        self.assertEqual(horizontal_offset(6, 10), 2)

    def test_odd_remainder_rounds_down(self):
        self.assertEqual(horizontal_offset(7, 10), 1)

    def test_full_width(self):
        self.assertEqual(horizontal_offset(10, 10), 0)

    def test_wide_glyph_never_negative(self):
        self.assertEqual(horizontal_offset(14, 10), 0)


class TestBaselinePlacement(unittest.TestCase):
    """Tests for BaselinePlacement."""

    def setUp(self):
        self.policy = BaselinePlacement()

    def test_full_height_at_top(self):
        self.assertEqual(self.policy.vertical_offset(raster(22), 22, CAPITAL, -4), 0)

    def test_short_glyph_pushed_to_bottom(self):
        self.assertEqual(self.policy.vertical_offset(raster(12), 22, CAPITAL, -4), 10)

    def test_descender_pushed_to_bottom(self):
        self.assertEqual(self.policy.vertical_offset(raster(12), 22, DESCENDER, -4), 10)

    def test_raised_glyph_stays_at_top(self):
        """A glyph sitting well above the baseline is not bottom-aligned."""
        self.assertEqual(self.policy.vertical_offset(raster(6), 22, SUPERSCRIPT, -4), 0)

    def test_slack_boundary(self):
        at_slack = GlyphMetrics(0, 4, 5, 10)
        above_slack = GlyphMetrics(0, 4, 6, 10)
        self.assertEqual(self.policy.vertical_offset(raster(5), 22, at_slack, -4), 17)
        self.assertEqual(self.policy.vertical_offset(raster(5), 22, above_slack, -4), 0)

    def test_tall_glyph_gets_negative_offset(self):
        self.assertEqual(self.policy.vertical_offset(raster(30), 22, CAPITAL, -4), -8)


class TestOtherPlacements(unittest.TestCase):
    """Tests for CenteredPlacement and TopPlacement."""

    def test_centered(self):
        self.assertEqual(CenteredPlacement().vertical_offset(raster(12), 22, CAPITAL, -4), 5)

    def test_centered_full_height(self):
        self.assertEqual(CenteredPlacement().vertical_offset(raster(22), 22, CAPITAL, -4), 0)

    def test_centered_tall_ink_overhangs_evenly(self):
        self.assertEqual(CenteredPlacement().vertical_offset(raster(30), 22, CAPITAL, -4), -4)

    def test_centered_uses_ink_rows(self):
        """Line-height raster, cell as tall as the ink: ink lands on cell rows 0-11."""
        line = raster(26, ink=(5, 17))
        self.assertEqual(CenteredPlacement().vertical_offset(line, 12, CAPITAL, -6), -5)

    def test_centered_ink_in_short_cell(self):
        line = raster(26, ink=(5, 17))
        offset = CenteredPlacement().vertical_offset(line, 16, CAPITAL, -6)
        self.assertEqual(offset, -3)
        self.assertGreaterEqual(5 + offset, 0)
        self.assertLessEqual(17 + offset, 16)

    def test_centered_blank_raster(self):
        self.assertEqual(CenteredPlacement().vertical_offset(raster(12, ink=(0, 0)), 22,
                                                             CAPITAL, -4), 5)

    def test_top(self):
        self.assertEqual(TopPlacement().vertical_offset(raster(12), 22, DESCENDER, -4), 0)


class TestGetPlacement(unittest.TestCase):
    """Tests for the placement registry."""

    def test_known_names(self):
        self.assertEqual(sorted(PLACEMENTS), ['baseline', 'center', 'top'])
        self.assertIsInstance(get_placement('baseline'), BaselinePlacement)
        self.assertIsInstance(get_placement('center'), CenteredPlacement)
        self.assertIsInstance(get_placement('top'), TopPlacement)

    def test_unknown_name(self):
        with self.assertRaises(KeyError):
            get_placement('bottom')
