#!/usr/bin/env python3
"""Command-line interface for CP437 atlas generation.

Finds a font size that fits the requested cell, renders the 256 CP437
characters into a 16x16 grid and writes either a PNG atlas or a text dump
of the atlas packed into 32-bit words for a shader.

Usage:
    cp437-atlas --font-path font.ttf --font-width 10 --output atlas.png
    cp437-atlas --font-path font.ttf --font-width 8 --font-height 16 \\
        --mode height-descending --output atlas.png
    cp437-atlas --font-path font.ttf --font-width 10 --hex-dump vga > vga.glsl

Or run via the package:
    python -m cp437_atlas --font-path font.ttf --font-width 10 --output atlas.png

Exit codes:
    0: success
    1: fatal error (font load failure, degenerate render, unwritable output)
    2: invalid arguments
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .atlas_composer import compose_atlas
from .atlas_config import INK_THRESHOLD, AtlasConfig
from .bitmask_packer import format_hex_dump, pack_surface
from .errors import AtlasError, OutputError
from .font_backend import FontBackend, FreeTypeBackend, Hinting, RenderStyle
from .log_config import configure_logging
from .placement import PLACEMENTS, get_placement
from .size_solver import SolverMode, solve
from .surface import PixelFormat

logger = logging.getLogger(__name__)

# Vertical placement used when --placement is not given
DEFAULT_PLACEMENT = {
    SolverMode.WIDTH: 'baseline',
    SolverMode.HEIGHT_DESCENDING: 'baseline',
    SolverMode.HEIGHT_PROPORTIONAL: 'center',
}


def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be a positive integer, got {value}")
    return number


def _create_argument_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog='cp437-atlas',
        description='Generate a CP437 font atlas from a TTF file'
    )
    parser.add_argument('--font-path', type=Path, required=True,
                        help='Path to the TTF font file')
    parser.add_argument('--font-width', type=_positive_int, required=True,
                        help='Width of each character cell in pixels')
    parser.add_argument('--font-height', type=_positive_int, default=None,
                        help='Height of each character cell in pixels '
                             '(height modes only; derived in width mode)')
    parser.add_argument('--mode', choices=[m.value for m in SolverMode],
                        default=SolverMode.WIDTH.value,
                        help='Size search policy (default: width)')
    parser.add_argument('--output', '-o', type=Path, default=None,
                        help='Output PNG path, or dump path with --hex-dump '
                             '(dump goes to stdout if omitted)')
    parser.add_argument('--hex-dump', metavar='NAME', default=None,
                        help='Write a 32-bit word dump labelled NAME instead of a PNG')
    parser.add_argument('--pixel-format', choices=[f.value for f in PixelFormat],
                        default=PixelFormat.RGB24.value,
                        help='Atlas pixel format (default: rgb)')
    parser.add_argument('--style', choices=[s.value for s in RenderStyle], default=None,
                        help='Glyph render style (default: shaded for rgb, blended for rgba)')
    parser.add_argument('--hinting', choices=[h.value for h in Hinting],
                        default=Hinting.NONE.value,
                        help='Hinting mode used for measuring and rendering (default: none)')
    parser.add_argument('--placement', choices=sorted(PLACEMENTS), default=None,
                        help='Vertical glyph placement (default depends on --mode)')
    parser.add_argument('--threshold', type=int, default=INK_THRESHOLD,
                        help=f'Ink brightness threshold for --hex-dump (default: {INK_THRESHOLD})')
    parser.add_argument('--debug', action='store_true',
                        help='Enable per-glyph diagnostic output')
    parser.add_argument('--log-file', default=None,
                        help='Also write log output to this file')
    return parser


def _validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Reject option combinations argparse cannot express. Exits with code 2."""
    mode = SolverMode(args.mode)
    if args.output is None and args.hex_dump is None:
        parser.error("either --output or --hex-dump must be provided")
    if mode.needs_height and args.font_height is None:
        parser.error(f"--font-height is required with --mode {mode.value}")
    if not mode.needs_height and args.font_height is not None:
        parser.error("--font-height is derived in width mode and cannot be given")
    if not 0 < args.threshold <= 255:
        parser.error("--threshold must be between 1 and 255")


def _config_from_args(args: argparse.Namespace) -> AtlasConfig:
    return AtlasConfig.for_pixel_format(
        PixelFormat(args.pixel_format),
        style=RenderStyle(args.style) if args.style else None,
        hinting=Hinting(args.hinting),
        threshold=args.threshold,
    )


def _write_dump(text: str, output: Path | None) -> None:
    if output is None:
        sys.stdout.write(text)
        return
    try:
        output.write_text(text, encoding='utf-8')
    except OSError as e:
        raise OutputError(f"Failed to write dump {output}: {e}") from e
    logger.info("Hex dump written to %s", output)


def run(args: argparse.Namespace, backend: FontBackend) -> None:
    """Generate the atlas described by parsed arguments.

    Raises:
        AtlasError: On any fatal condition.
    """
    mode = SolverMode(args.mode)
    config = _config_from_args(args)
    placement = get_placement(args.placement or DEFAULT_PLACEMENT[mode])

    result = solve(mode, backend, args.font_path, args.font_width, args.font_height,
                   hinting=config.hinting, style=config.style)
    resolved = result.font
    cell = result.cell
    logger.info("Final: font_size=%.4fpt, ascent=%d, descent=%d, height=%d",
                resolved.point_size, resolved.ascent, resolved.descent, resolved.line_height)
    logger.info("Cell: %dx%d (%s)", cell.cell_width, cell.cell_height,
                "width specified, height derived" if mode is SolverMode.WIDTH
                else "width and height specified")

    font = resolved.open(backend)
    atlas, _report = compose_atlas(font, cell, config, placement)

    if args.hex_dump is not None:
        packed = pack_surface(atlas, cell, config.threshold)
        _write_dump(format_hex_dump(packed, args.hex_dump), args.output)
    else:
        atlas.save_png(args.output)
        print(f"Font atlas saved to {args.output}")


def main(argv: list[str] | None = None, backend: FontBackend | None = None) -> int:
    """Command-line entry point.

    Args:
        argv: Argument list; defaults to sys.argv[1:].
        backend: Font backend; defaults to FreeTypeBackend.

    Returns:
        Process exit code.
    """
    parser = _create_argument_parser()
    args = parser.parse_args(argv)
    _validate_args(parser, args)

    configure_logging(level='DEBUG' if args.debug else 'INFO', log_file=args.log_file)

    try:
        run(args, backend or FreeTypeBackend())
    except AtlasError as e:
        logger.error("%s", e)
        return 1
    return 0


def cli() -> None:
    """Console script wrapper around main()."""
    sys.exit(main())


if __name__ == '__main__':
    cli()
