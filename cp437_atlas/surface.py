"""Raster surfaces for atlas composition.

A Surface is a row-major, byte-packed pixel grid (3 or 4 bytes per pixel)
held in a numpy array. It provides the handful of imaging primitives the
composer and the packer need: solid fill, opaque blit with clipping, raw
pixel access with pitch, and PNG export through Pillow.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from pathlib import Path

import numpy as np
from PIL import Image

from .errors import OutputError
from .font_backend import Raster

logger = logging.getLogger(__name__)


class PixelFormat(enum.Enum):
    """Supported surface pixel layouts."""
    RGB24 = 'rgb'
    RGBA32 = 'rgba'

    @property
    def bytes_per_pixel(self) -> int:
        return 4 if self is PixelFormat.RGBA32 else 3


@dataclass(frozen=True)
class Rect:
    """Axis-aligned rectangle in surface pixel coordinates."""
    x: int
    y: int
    width: int
    height: int

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0


def _match_channels(pixels: np.ndarray, channels: int) -> np.ndarray:
    """Add an opaque alpha channel or drop alpha to match a surface layout."""
    have = pixels.shape[2]
    if have == channels:
        return pixels
    if have == 3 and channels == 4:
        alpha = np.full(pixels.shape[:2] + (1,), 255, dtype=np.uint8)
        return np.concatenate([pixels, alpha], axis=2)
    return pixels[:, :, :channels]


class Surface:
    """A width x height pixel grid.

    Attributes:
        width: Width in pixels.
        height: Height in pixels.
        pixel_format: PixelFormat of the stored pixels.
    """

    def __init__(self, width: int, height: int,
                 pixel_format: PixelFormat = PixelFormat.RGB24):
        if width < 0 or height < 0:
            raise ValueError(f"Invalid surface size {width}x{height}")
        self.width = width
        self.height = height
        self.pixel_format = pixel_format
        self._pixels = np.zeros((height, width, pixel_format.bytes_per_pixel),
                                dtype=np.uint8)

    @property
    def bytes_per_pixel(self) -> int:
        return self.pixel_format.bytes_per_pixel

    @property
    def pitch(self) -> int:
        """Bytes per scanline."""
        return self.width * self.bytes_per_pixel

    @property
    def pixels(self) -> np.ndarray:
        """Pixel array of shape (height, width, bytes_per_pixel)."""
        return self._pixels

    def raw_bytes(self) -> bytes:
        """Pixel data as a flat byte string, scanline after scanline."""
        return self._pixels.tobytes()

    def fill(self, color: tuple[int, ...]) -> None:
        """Fill the whole surface with a solid color.

        Args:
            color: RGB or RGBA tuple; alpha defaults to 255 on RGBA surfaces.
        """
        color = tuple(color)
        if len(color) == 3 and self.bytes_per_pixel == 4:
            color = color + (255,)
        self._pixels[:, :] = np.array(color[:self.bytes_per_pixel], dtype=np.uint8)

    def blit(self, raster: Raster, dst: Rect, src_x: int = 0, src_y: int = 0) -> Rect:
        """Copy part of a raster onto the surface, replacing pixels.

        No blending is performed: destination pixels, alpha included, are
        overwritten. A raster with an alpha channel only writes the pixels
        whose alpha is non-zero, so its blank margins keep the surface's
        background. The copied region is clipped to the raster, to dst and
        to the surface bounds.

        Args:
            raster: Source pixels.
            dst: Destination rectangle on this surface.
            src_x: Left edge of the source region in the raster.
            src_y: Top edge of the source region in the raster.

        Returns:
            The rectangle actually written (may be empty).
        """
        width = min(dst.width, raster.width - src_x, self.width - dst.x)
        height = min(dst.height, raster.height - src_y, self.height - dst.y)
        written = Rect(dst.x, dst.y, width, height)
        if written.is_empty or dst.x < 0 or dst.y < 0:
            return Rect(dst.x, dst.y, 0, 0)

        src = raster.pixels[src_y:src_y + height, src_x:src_x + width]
        region = self._pixels[dst.y:dst.y + height, dst.x:dst.x + width]
        converted = _match_channels(src, self.bytes_per_pixel)
        if raster.channels == 4:
            covered = src[:, :, 3] > 0
            region[covered] = converted[covered]
        else:
            region[...] = converted
        return written

    def to_image(self) -> Image.Image:
        """Return a Pillow image sharing nothing with the surface."""
        return Image.fromarray(self._pixels.copy())

    def save_png(self, path: str | Path) -> None:
        """Encode the surface as PNG.

        Raises:
            OutputError: If the file cannot be written.
        """
        try:
            self.to_image().save(path, format='PNG')
        except (OSError, ValueError) as e:
            raise OutputError(f"Failed to save PNG {path}: {e}") from e
        logger.debug("Saved %dx%d %s surface to %s",
                     self.width, self.height, self.pixel_format.name, path)
