"""Exception hierarchy for atlas generation.

Fatal errors (font load failure, degenerate renders, unwritable output)
propagate to the command-line entry point, which reports them and exits
non-zero. GlyphRenderError is recoverable: the solver and the composer
absorb it per glyph and continue with the next character.
"""


class AtlasError(Exception):
    """Base class for all atlas generation errors."""


class FontLoadError(AtlasError):
    """The font file could not be opened or sized."""

    def __init__(self, font_path, point_size, reason=None):
        self.font_path = str(font_path)
        self.point_size = point_size
        message = f"Failed to load font {self.font_path} at {point_size:.4f}pt"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class DegenerateRenderError(AtlasError):
    """A render produced no usable extent (zero height or width)."""


class OutputError(AtlasError):
    """The atlas or dump could not be written."""


class GlyphRenderError(AtlasError):
    """A single glyph could not be rendered or measured."""

    def __init__(self, char, reason=None):
        self.char = char
        message = f"Failed to render {char!r}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
