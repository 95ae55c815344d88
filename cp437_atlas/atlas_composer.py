"""Atlas composition.

Renders all 256 CP437 characters at the resolved font size and places each
one into its cell of a 16x16 grid. Glyph index i always lands in column
i % 16, row i // 16.

Per-glyph failures never abort composition:
    - A glyph that fails to render, has no metrics, has a zero-extent
      bounding box, or renders to an empty raster is skipped and its cell
      stays background-filled (reported at DEBUG level).
    - A glyph whose ink would overflow its cell is clipped to the cell and
      reported at WARNING level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .atlas_config import GLYPH_COUNT, GRID_COLUMNS, GRID_ROWS, AtlasConfig
from .codepage import CP437, cell_position
from .errors import GlyphRenderError
from .font_backend import FontHandle, GlyphMetrics, Raster
from .placement import BaselinePlacement, PlacementPolicy, horizontal_offset
from .size_solver import CellGeometry
from .surface import Rect, Surface

logger = logging.getLogger(__name__)


@dataclass
class ComposeReport:
    """Indices of glyphs by outcome."""
    placed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    clipped: list[int] = field(default_factory=list)


@dataclass(frozen=True)
class GlyphPlacement:
    """Where a glyph raster goes.

    Attributes:
        dst: Destination rectangle on the atlas, already clipped to the cell.
        src_x: Left edge of the copied region in the raster.
        src_y: Top edge of the copied region in the raster.
        clipped: Whether any ink of the raster was cut off.
    """
    dst: Rect
    src_x: int
    src_y: int
    clipped: bool


def atlas_size(cell: CellGeometry) -> tuple[int, int]:
    """Return the (width, height) of an atlas for a cell geometry."""
    return GRID_COLUMNS * cell.cell_width, GRID_ROWS * cell.cell_height


def place_glyph(index: int, raster: Raster, metrics: GlyphMetrics, descent: int,
                cell: CellGeometry, placement: PlacementPolicy) -> GlyphPlacement:
    """Compute the clipped destination of a glyph raster.

    Offsets are relative to the cell; a negative vertical offset drops the
    raster's top rows. The glyph counts as clipped only when some of its ink
    falls outside the copied region; blank raster margins may be cut freely.
    """
    cw, ch = cell.cell_width, cell.cell_height
    x_offset = horizontal_offset(raster.width, cw)
    y_offset = placement.vertical_offset(raster, ch, metrics, descent)

    src_x = max(0, -x_offset)
    src_y = max(0, -y_offset)
    x_offset = max(0, x_offset)
    y_offset = max(0, y_offset)

    width = max(0, min(raster.width - src_x, cw - x_offset))
    height = max(0, min(raster.height - src_y, ch - y_offset))

    bounds = raster.ink_bounds()
    clipped = False
    if bounds is not None:
        left, top, right, bottom = bounds
        clipped = (left < src_x or top < src_y
                   or right > src_x + width or bottom > src_y + height)

    col, row = cell_position(index)
    dst = Rect(col * cw + x_offset, row * ch + y_offset, width, height)
    return GlyphPlacement(dst, src_x, src_y, clipped)


def _render(font: FontHandle, index: int, config: AtlasConfig
            ) -> tuple[Raster, GlyphMetrics] | None:
    ch = CP437[index]
    try:
        raster = font.render_glyph(ch, config.style)
    except GlyphRenderError as e:
        logger.debug("Skipping '%s' (index %d): %s", ch, index, e)
        return None

    metrics = font.glyph_metrics(ch)
    if metrics is None:
        logger.debug("Skipping '%s' (index %d): no metrics", ch, index)
        return None
    if metrics.is_empty:
        logger.debug("Skipping '%s' (index %d): zero dimension "
                     "(min_x=%d max_x=%d min_y=%d max_y=%d)",
                     ch, index, metrics.min_x, metrics.max_x, metrics.min_y, metrics.max_y)
        return None
    if raster.width == 0 or raster.height == 0:
        logger.debug("Skipping '%s' (index %d): empty %dx%d raster",
                     ch, index, raster.width, raster.height)
        return None
    return raster, metrics


def compose_atlas(font: FontHandle, cell: CellGeometry, config: AtlasConfig | None = None,
                  placement: PlacementPolicy | None = None) -> tuple[Surface, ComposeReport]:
    """Render the CP437 set into a 16x16 grid atlas.

    Args:
        font: Font handle at the resolved size, hinting already applied.
        cell: Cell geometry.
        config: Pixel format, render style and background. Defaults to RGB24
            SHADED on white.
        placement: Vertical placement policy. Defaults to BaselinePlacement.

    Returns:
        Tuple of (surface, report). The surface is exactly
        16*cell_width x 16*cell_height pixels.
    """
    config = config or AtlasConfig()
    placement = placement or BaselinePlacement()

    width, height = atlas_size(cell)
    atlas = Surface(width, height, config.pixel_format)
    atlas.fill(config.background)

    descent = font.descent()
    report = ComposeReport()
    for index in range(GLYPH_COUNT):
        rendered = _render(font, index, config)
        if rendered is None:
            report.skipped.append(index)
            continue
        raster, metrics = rendered

        where = place_glyph(index, raster, metrics, descent, cell, placement)
        logger.debug("'%s' (index %d): min_y=%d max_y=%d ascent=%d descent=%d "
                     "raster=%dx%d cell=%dx%d dst=%s",
                     CP437[index], index, metrics.min_y, metrics.max_y, font.ascent(),
                     descent, raster.width, raster.height, cell.cell_width,
                     cell.cell_height, where.dst)
        if where.clipped:
            logger.warning("'%s' (index %d) ink of %dx%d raster exceeds the %dx%d cell, clipped to %s",
                           CP437[index], index, raster.width, raster.height,
                           cell.cell_width, cell.cell_height, where.dst)
            report.clipped.append(index)

        if not where.dst.is_empty:
            atlas.blit(raster, where.dst, where.src_x, where.src_y)
        report.placed.append(index)

    logger.info("Atlas: %dx%d (%d glyphs placed, %d skipped, %d clipped)",
                width, height, len(report.placed), len(report.skipped), len(report.clipped))
    return atlas, report
