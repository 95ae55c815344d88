"""Font size search.

Finds the point size at which a font's glyphs fit a target character cell.
Three policies are available, all sharing the same trial mechanics: every
candidate size gets a freshly loaded font handle with the configured hinting
mode applied before anything is measured, and no handle outlives its trial.

Policies:
    WIDTH: Ascend through integer sizes until the widest CP437 glyph reaches
        the target cell width. The cell height is derived from a test render
        of the whole code page at the accepted size.
    HEIGHT_DESCENDING: Descend through integer sizes until a line of
        printable ASCII fits the target height, then step back up one size.
    HEIGHT_PROPORTIONAL: Start at 75% of the target height and rescale by
        target/actual until the height of 'M' is within half a pixel.

Typical usage:
    from cp437_atlas.font_backend import FreeTypeBackend
    from cp437_atlas.size_solver import SolverMode, solve

    result = solve(SolverMode.WIDTH, FreeTypeBackend(), 'font.ttf', target_width=10)
    print(result.font.point_size, result.cell)
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path

from .atlas_config import (
    DESCENDING_MAX_ITERATIONS,
    DESCENDING_START_SIZE,
    PROPORTIONAL_INITIAL_RATIO,
    PROPORTIONAL_MAX_ITERATIONS,
    PROPORTIONAL_TOLERANCE,
    WIDTH_MAX_ITERATIONS,
)
from .codepage import CP437, CP437_STRING, PRINTABLE_ASCII, REFERENCE_GLYPH, describe
from .errors import DegenerateRenderError, GlyphRenderError
from .font_backend import FontBackend, FontHandle, Hinting, RenderStyle

logger = logging.getLogger(__name__)


class SolverMode(enum.Enum):
    """Size search policy."""
    WIDTH = 'width'
    HEIGHT_DESCENDING = 'height-descending'
    HEIGHT_PROPORTIONAL = 'height-proportional'

    @property
    def needs_height(self) -> bool:
        """Whether the caller must supply a target cell height."""
        return self is not SolverMode.WIDTH


@dataclass(frozen=True)
class CellGeometry:
    """Size of one atlas cell in pixels."""
    cell_width: int
    cell_height: int


@dataclass(frozen=True)
class ResolvedFont:
    """The accepted point size and the metrics derived from it.

    Only meaningful together with the font file it was derived from; use
    open() to get a fresh handle for rendering.
    """
    font_path: str
    point_size: float
    hinting: Hinting
    ascent: int
    descent: int
    line_height: int

    def open(self, backend: FontBackend) -> FontHandle:
        """Load a new handle at the resolved size with hinting applied."""
        return load_trial_font(backend, self.font_path, self.point_size, self.hinting)


@dataclass(frozen=True)
class SolverTrial:
    """One iteration of a size search.

    Attributes:
        iteration: 1-based iteration number.
        point_size: Size tried.
        measured: Quantity compared against the target (max glyph width,
            line height or reference glyph height, depending on the policy).
    """
    iteration: int
    point_size: float
    measured: int


@dataclass(frozen=True)
class SolveResult:
    """Outcome of a size search.

    Attributes:
        font: Accepted size and its metrics.
        cell: Cell geometry the atlas should use.
        trace: Every trial in order.
        converged: False when the iteration bound ran out before the fit
            criterion was met.
        residual_error: For the proportional policy, |actual - target| of
            the accepted size; 0.0 for the other policies.
    """
    font: ResolvedFont
    cell: CellGeometry
    trace: list[SolverTrial] = field(default_factory=list)
    converged: bool = True
    residual_error: float = 0.0


def load_trial_font(backend: FontBackend, font_path: str | Path,
                    point_size: float, hinting: Hinting) -> FontHandle:
    """Load a fresh font handle for one trial. FontLoadError propagates."""
    font = backend.load_font(font_path, point_size)
    font.set_hinting(hinting)
    return font


def _resolve(font_path: str | Path, font: FontHandle, hinting: Hinting) -> ResolvedFont:
    return ResolvedFont(
        font_path=str(font_path),
        point_size=font.point_size,
        hinting=hinting,
        ascent=font.ascent(),
        descent=font.descent(),
        line_height=font.line_height(),
    )


def widest_glyph(font: FontHandle) -> int:
    """Return max(metrics.max_x) over the CP437 glyphs present in the font."""
    max_width = 0
    for index, ch in enumerate(CP437):
        metrics = font.glyph_metrics(ch)
        if metrics is None:
            logger.debug("No metrics for %s, skipping", describe(index))
            continue
        max_width = max(max_width, metrics.max_x)
    return max_width


def _text_height(font: FontHandle, text: str, style: RenderStyle) -> int:
    try:
        return font.render_text(text, style).height
    except GlyphRenderError as e:
        raise DegenerateRenderError(f"Test render failed: {e}") from e


def solve_width(backend: FontBackend, font_path: str | Path, target_width: int,
                hinting: Hinting = Hinting.NONE,
                style: RenderStyle = RenderStyle.SHADED,
                max_iterations: int = WIDTH_MAX_ITERATIONS) -> SolveResult:
    """Find the smallest integer size whose widest glyph reaches target_width.

    Args:
        backend: Font backend used to load each trial.
        font_path: Font file.
        target_width: Required cell width in pixels.
        hinting: Hinting mode applied before measuring.
        style: Style of the full-code-page test render that sets the height.
        max_iterations: Upper bound on sizes tried (sizes 1..max_iterations).

    Returns:
        SolveResult whose cell width is target_width, or the narrower last
        observed width when the bound ran out, and whose cell height is the
        height of the test render.

    Raises:
        FontLoadError: If the font cannot be loaded.
        DegenerateRenderError: If the resulting cell has no width or height.
    """
    if target_width <= 0:
        raise ValueError(f"target_width must be positive, got {target_width}")

    trace = []
    converged = False
    point_size = 1.0
    max_width = 0
    for iteration in range(1, max_iterations + 1):
        point_size = float(iteration)
        font = load_trial_font(backend, font_path, point_size, hinting)
        max_width = widest_glyph(font)
        trace.append(SolverTrial(iteration, point_size, max_width))

        if max_width >= target_width:
            logger.info("Iteration %d: font_size=%.4fpt, max_width=%d >= font_width=%d, done",
                        iteration, point_size, max_width, target_width)
            converged = True
            break
        logger.info("Iteration %d: font_size=%.4fpt, max_width=%d < font_width=%d",
                    iteration, point_size, max_width, target_width)

    if not converged:
        logger.warning("Widest glyph only reached %dpx after %d sizes (wanted %dpx)",
                       max_width, len(trace), target_width)

    final = load_trial_font(backend, font_path, point_size, hinting)
    cell_width = min(max_width, target_width)
    cell_height = _text_height(final, CP437_STRING, style)
    if cell_width <= 0 or cell_height <= 0:
        raise DegenerateRenderError(
            f"Rendered glyphs have a zero dimension at {point_size:.4f}pt "
            f"(width={cell_width}, height={cell_height}); the font size is "
            f"too small or the font file is invalid")

    return SolveResult(
        font=_resolve(font_path, final, hinting),
        cell=CellGeometry(cell_width, cell_height),
        trace=trace,
        converged=converged,
    )


def solve_height_descending(backend: FontBackend, font_path: str | Path,
                            target_width: int, target_height: int,
                            hinting: Hinting = Hinting.NONE,
                            style: RenderStyle = RenderStyle.SHADED,
                            start_size: int = DESCENDING_START_SIZE,
                            max_iterations: int = DESCENDING_MAX_ITERATIONS) -> SolveResult:
    """Find a size by walking down from start_size until printable ASCII fits.

    The first size whose line fits within target_height triggers a step back
    up by one size. When the first size tried already fits, nothing larger
    was measured and it is accepted as is. When no size fits within the
    bound, the smallest size tried is accepted.

    Raises:
        FontLoadError: If the font cannot be loaded.
        DegenerateRenderError: If the test render fails.
    """
    _check_cell(target_width, target_height)

    trace = []
    converged = False
    accepted = float(start_size)
    for iteration in range(1, max_iterations + 1):
        point_size = float(start_size - (iteration - 1))
        if point_size < 1:
            break
        font = load_trial_font(backend, font_path, point_size, hinting)
        height = _text_height(font, PRINTABLE_ASCII, style)
        trace.append(SolverTrial(iteration, point_size, height))
        accepted = point_size

        if height <= target_height:
            if iteration > 1:
                accepted = point_size + 1
            logger.info("Iteration %d: font_size=%.4fpt, height=%d <= %d, accepting %.4fpt",
                        iteration, point_size, height, target_height, accepted)
            converged = True
            break
        logger.info("Iteration %d: font_size=%.4fpt, height=%d > %d",
                    iteration, point_size, height, target_height)

    if not converged:
        logger.warning("No size down to %.4fpt fits %dpx; using the smallest",
                       accepted, target_height)

    final = load_trial_font(backend, font_path, accepted, hinting)
    return SolveResult(
        font=_resolve(font_path, final, hinting),
        cell=CellGeometry(target_width, target_height),
        trace=trace,
        converged=converged,
    )


def solve_height_proportional(backend: FontBackend, font_path: str | Path,
                              target_width: int, target_height: int,
                              hinting: Hinting = Hinting.NONE,
                              initial_ratio: float = PROPORTIONAL_INITIAL_RATIO,
                              max_iterations: int = PROPORTIONAL_MAX_ITERATIONS,
                              tolerance: float = PROPORTIONAL_TOLERANCE) -> SolveResult:
    """Scale the point size until the reference glyph matches target_height.

    Each step multiplies the size by target/actual. After max_iterations the
    last size tried is accepted; a warning is logged if it is still off by
    tolerance or more.

    Raises:
        FontLoadError: If the font cannot be loaded.
        DegenerateRenderError: If the reference glyph is missing or has no
            height, since the next size could not be computed.
    """
    _check_cell(target_width, target_height)

    trace = []
    converged = False
    error = float('inf')
    point_size = target_height * initial_ratio
    font = None
    for iteration in range(1, max_iterations + 1):
        font = load_trial_font(backend, font_path, point_size, hinting)
        metrics = font.glyph_metrics(REFERENCE_GLYPH)
        if metrics is None or metrics.height <= 0:
            raise DegenerateRenderError(
                f"Reference glyph {REFERENCE_GLYPH!r} has no height at {point_size:.4f}pt")

        actual = metrics.height
        error = abs(actual - target_height)
        trace.append(SolverTrial(iteration, point_size, actual))
        logger.info("Iteration %d: font_size=%.4fpt, height=%d, target=%d, error=%.2f",
                    iteration, point_size, actual, target_height, error)

        if error < tolerance:
            converged = True
            break
        if iteration < max_iterations:
            point_size *= target_height / actual

    if not converged:
        logger.warning("Size search stopped at %.4fpt with %.2fpx residual error "
                       "after %d iterations", point_size, error, len(trace))

    return SolveResult(
        font=_resolve(font_path, font, hinting),
        cell=CellGeometry(target_width, target_height),
        trace=trace,
        converged=converged,
        residual_error=error,
    )


def _check_cell(target_width: int, target_height: int) -> None:
    if target_width <= 0 or target_height <= 0:
        raise ValueError(f"Cell size must be positive, got {target_width}x{target_height}")


def solve(mode: SolverMode, backend: FontBackend, font_path: str | Path,
          target_width: int, target_height: int | None = None,
          hinting: Hinting = Hinting.NONE,
          style: RenderStyle = RenderStyle.SHADED) -> SolveResult:
    """Run the size search for a mode.

    Args:
        mode: Policy to use.
        backend: Font backend.
        font_path: Font file.
        target_width: Cell width in pixels.
        target_height: Cell height in pixels; required for the height modes
            and ignored in WIDTH mode.
        hinting: Hinting mode applied to every trial.
        style: Render style used for test renders.

    Returns:
        SolveResult of the selected policy.
    """
    if mode is SolverMode.WIDTH:
        return solve_width(backend, font_path, target_width, hinting=hinting, style=style)
    if target_height is None:
        raise ValueError(f"{mode.value} mode requires a target height")
    if mode is SolverMode.HEIGHT_DESCENDING:
        return solve_height_descending(backend, font_path, target_width, target_height,
                                       hinting=hinting, style=style)
    return solve_height_proportional(backend, font_path, target_width, target_height,
                                     hinting=hinting)
