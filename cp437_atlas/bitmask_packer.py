"""Bit-per-pixel packing of atlas rasters.

Converts an RGB or RGBA raster into a mask of 32-bit words that a GPU text
shader can index directly. Every scanline is padded to a multiple of 32 bits,
so the row stride in words is constant and a pixel's word and bit are:

    word = (y * padded_width + x) // 32
    bit  = x % 32

Within a word, bit i holds pixel i of its 32-pixel chunk (bit 0 = leftmost).
A pixel is ink (1) when its average channel brightness (r + g + b) // 3 is
below the threshold, background (0) otherwise.

Typical usage:
    from cp437_atlas.bitmask_packer import pack_surface, format_hex_dump

    packed = pack_surface(atlas, cell)
    text = format_hex_dump(packed, 'vga')
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .atlas_config import GRID_COLUMNS, GRID_ROWS, INK_THRESHOLD, WORD_BITS, WORDS_PER_LINE
from .size_solver import CellGeometry
from .surface import Surface

_BIT_WEIGHTS = np.left_shift(np.uint64(1), np.arange(WORD_BITS, dtype=np.uint64))


@dataclass(frozen=True)
class PackedBitmap:
    """A packed bitmask and the layout needed to address it.

    Attributes:
        words: uint32 array of height * padded_width // 32 words.
        width: Raster width in pixels.
        height: Raster height in pixels.
        padded_width: Scanline width rounded up to a multiple of 32.
        cell_width: Width of one atlas cell.
        cell_height: Height of one atlas cell.
        grid_columns: Cells per atlas row.
        grid_rows: Cells per atlas column.
    """
    words: np.ndarray
    width: int
    height: int
    padded_width: int
    cell_width: int
    cell_height: int
    grid_columns: int = GRID_COLUMNS
    grid_rows: int = GRID_ROWS

    @property
    def words_per_row(self) -> int:
        return self.padded_width // WORD_BITS


def padded_width(width: int) -> int:
    """Round a scanline width up to the next multiple of 32."""
    return ((width + WORD_BITS - 1) // WORD_BITS) * WORD_BITS


def ink_mask(pixels: np.ndarray, threshold: int = INK_THRESHOLD) -> np.ndarray:
    """Classify pixels as ink (True) or background (False).

    Args:
        pixels: uint8 array (height, width, channels) with channels >= 3.
        threshold: Brightness cutoff; strictly darker pixels are ink.

    Returns:
        Boolean array of shape (height, width).
    """
    rgb = pixels[:, :, :3].astype(np.uint32)
    brightness = rgb.sum(axis=2) // 3
    return brightness < threshold


def pack_mask(mask: np.ndarray) -> np.ndarray:
    """Pack a boolean (height, width) mask into row-padded 32-bit words."""
    height, width = mask.shape
    padded = padded_width(width)
    bits = np.zeros((height, padded), dtype=np.uint64)
    bits[:, :width] = mask
    chunks = bits.reshape(height, padded // WORD_BITS, WORD_BITS)
    words = (chunks * _BIT_WEIGHTS).sum(axis=2, dtype=np.uint64)
    return words.astype(np.uint32).reshape(-1)


def pack_pixels(pixels: np.ndarray, cell: CellGeometry,
                threshold: int = INK_THRESHOLD) -> PackedBitmap:
    """Pack a raster given as a (height, width, channels) array."""
    height, width = pixels.shape[:2]
    return PackedBitmap(
        words=pack_mask(ink_mask(pixels, threshold)),
        width=width,
        height=height,
        padded_width=padded_width(width),
        cell_width=cell.cell_width,
        cell_height=cell.cell_height,
    )


def pack_surface(surface: Surface, cell: CellGeometry,
                 threshold: int = INK_THRESHOLD) -> PackedBitmap:
    """Pack a surface by reading its raw bytes with its pitch and pixel size."""
    bpp = surface.bytes_per_pixel
    raw = np.frombuffer(surface.raw_bytes(), dtype=np.uint8)
    rows = raw.reshape(surface.height, surface.pitch)
    pixels = rows[:, :surface.width * bpp].reshape(surface.height, surface.width, bpp)
    return pack_pixels(pixels, cell, threshold)


def unpack_bitmask(packed: PackedBitmap) -> np.ndarray:
    """Expand packed words back into a boolean (height, width) mask."""
    words = packed.words.astype(np.uint64).reshape(packed.height, packed.words_per_row)
    shifts = np.arange(WORD_BITS, dtype=np.uint64)
    bits = (words[:, :, np.newaxis] >> shifts) & np.uint64(1)
    return bits.reshape(packed.height, packed.padded_width)[:, :packed.width].astype(bool)


def is_ink(packed: PackedBitmap, x: int, y: int) -> bool:
    """Look up one pixel using the shader's addressing scheme."""
    word = packed.words[(y * packed.padded_width + x) // WORD_BITS]
    return bool((int(word) >> (x % WORD_BITS)) & 1)


def format_hex_dump(packed: PackedBitmap, name: str,
                    words_per_line: int = WORDS_PER_LINE) -> str:
    """Render a packed bitmap as shader-includable text.

    The output has a comment header with the layout, a LONGVAR block named
    font_data_<name> holding the words, and #define lines for the cell size
    and the fontstr/multiline_font helper invocations.
    """
    cw, ch, pw = packed.cell_width, packed.cell_height, packed.padded_width
    lines = [
        f"// Pixel dimensions: {packed.width} wide x {packed.height} tall",
        f"// Padded scanline width (map_w for shader): {pw}",
        f"// Character grid: {packed.grid_columns}x{packed.grid_rows}",
        f"// Character cell: {cw}x{ch} pixels",
        "// Packing: per-row, 32-bit aligned",
        "",
        f"//!LONGVAR uint[] font_data_{name}",
    ]

    words = [int(w) for w in packed.words]
    for start in range(0, len(words), words_per_line):
        chunk = words[start:start + words_per_line]
        lines.append("//!  " + " ".join(f"0x{w:08X} " for w in chunk))
    if not words:
        lines.append("")

    lines += [
        "//!ENDLONGVAR",
        f"#define font_{name}_width ({cw})",
        f"#define font_{name}_height ({ch})",
        f"#define font_{name}(uv,pos,txt,start,len) "
        f"(fontstr(uv,pos,txt,start,len,{cw},{ch},{pw},{name}))",
        f"#define multiline_{name}(uv,pos,txt,starts,lens) "
        f"multiline_font((uv), (pos), (txt), (starts), (lens), {cw}, {ch}, {pw}, {name})",
    ]
    return "\n".join(lines) + "\n"
