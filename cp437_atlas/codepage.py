"""CP437 code-page table.

Maps every byte value 0-255 to the Unicode character the IBM PC displays for
it. The control-code slots 0x01-0x1F and 0x7F show the classic graphical
characters (smileys, card suits, arrows, the house) instead of control codes,
matching DOS text mode. NUL and 0xFF (non-breaking space) render as a plain
space.

The table is stored as sixteen rows of sixteen characters, one row per high
nibble, so the layout reads like the atlas grid itself.

Typical usage:
    from cp437_atlas.codepage import CP437, cp437_char, cell_position

    ch = cp437_char(0x03)          # '♥'
    col, row = cell_position(0x03)  # (3, 0)
"""

from __future__ import annotations

_ROWS = (
    " ☺☻♥♦♣♠•◘○◙♂♀♪♫☼",    # 0x00
    "►◄↕‼¶§▬↨↑↓→←∟↔▲▼",    # 0x10
    " !\"#$%&'()*+,-./",   # 0x20
    "0123456789:;<=>?",    # 0x30
    "@ABCDEFGHIJKLMNO",    # 0x40
    "PQRSTUVWXYZ[\\]^_",   # 0x50
    "`abcdefghijklmno",    # 0x60
    "pqrstuvwxyz{|}~⌂",    # 0x70
    "ÇüéâäàåçêëèïîìÄÅ",    # 0x80
    "ÉæÆôöòûùÿÖÜ¢£¥₧ƒ",    # 0x90
    "áíóúñÑªº¿⌐¬½¼¡«»",    # 0xA0
    "░▒▓│┤╡╢╖╕╣║╗╝╜╛┐",    # 0xB0
    "└┴┬├─┼╞╟╚╔╩╦╠═╬╧",    # 0xC0
    "╨╤╥╙╘╒╓╫╪┘┌█▄▌▐▀",    # 0xD0
    "αßΓπΣσµτΦΘΩδ∞φε∩",    # 0xE0
    "≡±≥≤⌠⌡÷≈°∙·√ⁿ²■ ",    # 0xF0
)

CP437: tuple[str, ...] = tuple(ch for row in _ROWS for ch in row)
"""tuple[str, ...]: Display character for each byte value, indexed 0-255."""

GLYPH_COUNT = len(CP437)

# Every character of the code page, in byte order
CP437_STRING = "".join(CP437)

# Printable ASCII subset (0x20-0x7E)
PRINTABLE_ASCII = "".join(chr(code) for code in range(0x20, 0x7F))

# Glyph whose height stands in for the body height of a font
REFERENCE_GLYPH = "M"

GRID_COLUMNS = 16
GRID_ROWS = 16


def cp437_char(index: int) -> str:
    """Return the display character for a CP437 byte value.

    Args:
        index: Byte value in the range 0-255.

    Returns:
        Single-character string.

    Raises:
        IndexError: If index is outside 0-255.
    """
    if not 0 <= index < GLYPH_COUNT:
        raise IndexError(f"CP437 index out of range: {index}")
    return CP437[index]


def cell_position(index: int) -> tuple[int, int]:
    """Return the (column, row) of a glyph index in the 16x16 grid."""
    return index % GRID_COLUMNS, index // GRID_COLUMNS


def describe(index: int) -> str:
    """Format a glyph for log messages, e.g. ``'♥' (index 3, U+2665)``."""
    ch = CP437[index]
    return f"'{ch}' (index {index}, U+{ord(ch):04X})"
