"""Reconcile two bitmaps of different sizes onto a shared canvas."""

from __future__ import annotations

import logging
import math

import numpy as np

from .bitmap import Bitmap

logger = logging.getLogger(__name__)

MAX_DIMENSION = 5000


def downscale(bitmap: Bitmap, max_dimension: int = MAX_DIMENSION) -> Bitmap:
    """Nearest-neighbour downscale so neither axis exceeds ``max_dimension``.

    Aspect ratio is preserved. Bitmaps already within bounds are returned as-is.
    """
    width, height = bitmap.size
    if width <= max_dimension and height <= max_dimension:
        return bitmap

    scale = min(max_dimension / width, max_dimension / height)
    new_width = max(1, math.floor(width * scale))
    new_height = max(1, math.floor(height * scale))

    src_x = np.minimum(np.floor(np.arange(new_width) / scale).astype(np.intp), width - 1)
    src_y = np.minimum(np.floor(np.arange(new_height) / scale).astype(np.intp), height - 1)
    resized = bitmap.pixels[src_y[:, None], src_x[None, :]]

    logger.debug("Downscaled %dx%d -> %dx%d", width, height, new_width, new_height)
    return Bitmap(resized)


def _place(bitmap: Bitmap, width: int, height: int) -> Bitmap:
    if bitmap.size == (width, height):
        return bitmap
    canvas = np.zeros((height, width, 4), dtype=np.uint8)
    canvas[: bitmap.height, : bitmap.width] = bitmap.pixels
    return Bitmap(canvas)


def normalize(a: Bitmap, b: Bitmap, max_dimension: int = MAX_DIMENSION) -> tuple[Bitmap, Bitmap]:
    """Return both bitmaps on a common canvas of the union of their sizes.

    Oversized inputs are downscaled first; each source is then copied to the
    top-left corner of a transparent-black canvas, unscaled.
    """
    a = downscale(a, max_dimension)
    b = downscale(b, max_dimension)
    width = max(a.width, b.width)
    height = max(a.height, b.height)
    if a.size != b.size:
        logger.debug(
            "Normalizing %dx%d and %dx%d onto %dx%d canvas",
            a.width, a.height, b.width, b.height, width, height,
        )
    return _place(a, width, height), _place(b, width, height)
