"""CP437 Font Atlas Package.

Turns a TrueType font into a bitmap atlas of the 256 IBM PC code page 437
characters laid out in a 16x16 grid, for use as a text-mode or shader font.

The package is organized into the following modules:
    codepage: The CP437 byte-to-character table and grid addressing.
    font_backend: Glyph measurement and rasterization through freetype-py.
    size_solver: Searches for the point size that fits a target cell.
    placement: Vertical placement policies for glyphs inside a cell.
    atlas_composer: Renders every glyph into its cell of the atlas surface.
    surface: Pixel surfaces with fill, blit and PNG export.
    bitmask_packer: Packs an atlas into 32-bit words and formats the dump.
    atlas_config: Shared constants and per-run AtlasConfig.
    atlas_cli: Command-line entry point.

Example usage:
    Build an atlas and save it::

        from cp437_atlas import FreeTypeBackend, SolverMode, compose_atlas, solve

        backend = FreeTypeBackend()
        result = solve(SolverMode.WIDTH, backend, 'font.ttf', target_width=10)
        atlas, report = compose_atlas(result.font.open(backend), result.cell)
        atlas.save_png('atlas.png')

    Pack it for a shader::

        from cp437_atlas import format_hex_dump, pack_surface

        text = format_hex_dump(pack_surface(atlas, result.cell), 'vga')

Attributes:
    __version__ (str): Package version string.
    __all__ (list): List of public symbols exported by this package.
"""

from .atlas_composer import ComposeReport, compose_atlas
from .atlas_config import AtlasConfig
from .bitmask_packer import PackedBitmap, format_hex_dump, pack_surface, unpack_bitmask
from .codepage import CP437, cp437_char
from .errors import AtlasError, DegenerateRenderError, FontLoadError, GlyphRenderError, OutputError
from .font_backend import FreeTypeBackend, GlyphMetrics, Hinting, RenderStyle
from .placement import get_placement
from .size_solver import CellGeometry, ResolvedFont, SolveResult, SolverMode, solve
from .surface import PixelFormat, Surface

__all__ = [
    # Code page
    'CP437', 'cp437_char',
    # Fonts
    'FreeTypeBackend', 'GlyphMetrics', 'Hinting', 'RenderStyle',
    # Size search
    'SolverMode', 'solve', 'SolveResult', 'ResolvedFont', 'CellGeometry',
    # Composition
    'AtlasConfig', 'PixelFormat', 'Surface', 'compose_atlas', 'ComposeReport',
    'get_placement',
    # Packing
    'PackedBitmap', 'pack_surface', 'unpack_bitmask', 'format_hex_dump',
    # Errors
    'AtlasError', 'FontLoadError', 'DegenerateRenderError', 'GlyphRenderError',
    'OutputError',
]

__version__ = '1.0.0'
