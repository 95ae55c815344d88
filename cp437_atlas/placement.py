"""Glyph placement inside an atlas cell.

Horizontal placement is always centering. Vertical placement is a pluggable
policy, since the right choice depends on how the cell height was obtained:

    BaselinePlacement: Rasters already carry the baseline at a fixed offset,
        so full-height rasters go at the top. Shorter rasters of glyphs with
        no descender contribution are pushed to the bottom of the cell.
    CenteredPlacement: The inked rows of the raster are centered in the
        cell. Rasters are line-height tall, so the offset is negative when
        the cell is shorter than a line.
    TopPlacement: Everything goes at the top of the cell.

A negative offset means the raster's top rows fall above the cell and are
cropped when the glyph is placed.

Example:
    from cp437_atlas.placement import get_placement

    policy = get_placement('baseline')
    y = policy.vertical_offset(raster, cell_height, metrics, font.descent())
"""

from __future__ import annotations

from typing import Protocol

from .font_backend import GlyphMetrics, Raster

# min_y + descent at or below this means the glyph has no descender contribution
DESCENDER_SLACK = 1


def horizontal_offset(glyph_width: int, cell_width: int) -> int:
    """Center a glyph horizontally; never negative."""
    return max(0, (cell_width - glyph_width) // 2)


class PlacementPolicy(Protocol):
    """Computes the vertical offset of a glyph raster inside its cell."""

    name: str

    def vertical_offset(self, raster: Raster, cell_height: int,
                        metrics: GlyphMetrics, descent: int) -> int:
        """Return the y offset of the raster's top edge within the cell.

        Args:
            raster: Rendered glyph.
            cell_height: Height of the cell.
            metrics: Glyph metrics at the resolved size.
            descent: Font descent (zero or negative).
        """
        ...


class BaselinePlacement:
    """Baseline-preserving placement with a bottom-align heuristic."""

    name = 'baseline'

    def vertical_offset(self, raster: Raster, cell_height: int,
                        metrics: GlyphMetrics, descent: int) -> int:
        if raster.height == cell_height:
            return 0
        if metrics.min_y + descent <= DESCENDER_SLACK:
            return cell_height - raster.height
        return 0


class CenteredPlacement:
    """Vertical centering of the glyph's ink."""

    name = 'center'

    def vertical_offset(self, raster: Raster, cell_height: int,
                        metrics: GlyphMetrics, descent: int) -> int:
        bounds = raster.ink_bounds()
        if bounds is None:
            return max(0, (cell_height - raster.height) // 2)
        _, top, _, bottom = bounds
        return (cell_height - (bottom - top)) // 2 - top


class TopPlacement:
    """Top alignment."""

    name = 'top'

    def vertical_offset(self, raster: Raster, cell_height: int,
                        metrics: GlyphMetrics, descent: int) -> int:
        return 0


PLACEMENTS: dict[str, PlacementPolicy] = {
    policy.name: policy
    for policy in (BaselinePlacement(), CenteredPlacement(), TopPlacement())
}


def get_placement(name: str) -> PlacementPolicy:
    """Look up a placement policy by name.

    Raises:
        KeyError: If no policy has that name.
    """
    try:
        return PLACEMENTS[name]
    except KeyError:
        raise KeyError(f"Unknown placement {name!r}; choose from {sorted(PLACEMENTS)}") from None
