"""Chunked pixel comparator — perceptual per-pixel diff in bounded-memory strips.

Colour distance is the YIQ metric used by pixelmatch: both pixels are blended
onto white by their alpha, and the weighted squared difference of their Y, I
and Q components is tested against ``35215 * threshold**2`` (35215 is the
largest possible YIQ delta). With anti-aliasing tolerance enabled, a pixel is
forgiven when it sits between a darker and a brighter neighbour that each
belong to a flat region in both images.

The canvas is walked in horizontal strips. Each strip is read with a two-row
halo above and below: the anti-aliasing test looks one pixel out, and its
sibling test another pixel beyond that. Results are therefore identical for
any strip height, including a single whole-image pass.
"""

from __future__ import annotations

import logging
import math
from typing import Optional

import numpy as np

from .bitmap import Bitmap

logger = logging.getLogger(__name__)

MAX_YIQ_DELTA = 35215.0
HALO_ROWS = 2
DEFAULT_CHUNK_ROWS = 25

# 3x3 neighbourhood, column-major (x outer, y inner); the order decides ties
# between equally dark or equally bright neighbours.
_NEIGHBOURS = [
    (dx, dy)
    for dx in (-1, 0, 1)
    for dy in (-1, 0, 1)
    if (dx, dy) != (0, 0)
]


def _blend(c: np.ndarray, a: np.ndarray) -> np.ndarray:
    return 255.0 + (c - 255.0) * a


def _blended_channels(pixels: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """RGB composited onto white using the pixel alpha."""
    rgba = pixels.astype(np.float64)
    r, g, b, a = rgba[..., 0], rgba[..., 1], rgba[..., 2], rgba[..., 3]
    translucent = a < 255
    a = a / 255.0
    return (
        np.where(translucent, _blend(r, a), r),
        np.where(translucent, _blend(g, a), g),
        np.where(translucent, _blend(b, a), b),
    )


def _rgb2y(r, g, b):
    return r * 0.29889531 + g * 0.58662247 + b * 0.11448223


def _rgb2i(r, g, b):
    return r * 0.59597799 - g * 0.27417610 - b * 0.32180189


def _rgb2q(r, g, b):
    return r * 0.21147017 - g * 0.52261711 + b * 0.31114694


def color_delta(p1: np.ndarray, p2: np.ndarray) -> np.ndarray:
    """Signed YIQ distance between two same-shaped RGBA arrays.

    Negative where the first pixel is brighter. Exactly 0 for identical pixels.
    """
    r1, g1, b1 = _blended_channels(p1)
    r2, g2, b2 = _blended_channels(p2)
    y1 = _rgb2y(r1, g1, b1)
    y2 = _rgb2y(r2, g2, b2)
    y = y1 - y2
    i = _rgb2i(r1, g1, b1) - _rgb2i(r2, g2, b2)
    q = _rgb2q(r1, g1, b1) - _rgb2q(r2, g2, b2)
    delta = 0.5053 * y * y + 0.299 * i * i + 0.1957 * q * q
    delta = np.where(y1 > y2, -delta, delta)
    identical = np.all(p1 == p2, axis=-1)
    return np.where(identical, 0.0, delta)


def _brightness(pixels: np.ndarray) -> np.ndarray:
    return _rgb2y(*_blended_channels(pixels))


def _shift(arr: np.ndarray, dx: int, dy: int, fill) -> np.ndarray:
    """Value of each cell's (x+dx, y+dy) neighbour; out-of-window cells get ``fill``."""
    h, w = arr.shape
    out = np.full_like(arr, fill)
    ys, ye = max(-dy, 0), h - max(dy, 0)
    xs, xe = max(-dx, 0), w - max(dx, 0)
    if ys < ye and xs < xe:
        out[ys:ye, xs:xe] = arr[ys + dy:ye + dy, xs + dx:xe + dx]
    return out


class _Window:
    """Rows ``[top, top + h)`` of both canvases plus neighbourhood bookkeeping."""

    def __init__(self, p1: np.ndarray, p2: np.ndarray, top: int, image_height: int):
        self.p1 = p1
        self.p2 = p2
        h, w = p1.shape[:2]
        rows = np.arange(top, top + h)
        cols = np.arange(w)
        self.valid = {}
        for dx, dy in _NEIGHBOURS:
            row_ok = (rows + dy >= 0) & (rows + dy < image_height)
            col_ok = (cols + dx >= 0) & (cols + dx < w)
            self.valid[(dx, dy)] = row_ok[:, None] & col_ok[None, :]
        self.on_border = (
            ((rows == 0) | (rows == image_height - 1))[:, None]
            | ((cols == 0) | (cols == w - 1))[None, :]
        )

    def many_siblings(self, pixels: np.ndarray) -> np.ndarray:
        """True where more than two neighbours (border counts as one) match exactly."""
        packed = np.ascontiguousarray(pixels).view(np.uint32)[..., 0]
        zeroes = self.on_border.astype(np.int8)
        for offset in _NEIGHBOURS:
            same = _shift(packed, *offset, fill=0) == packed
            zeroes += same & self.valid[offset]
        return zeroes > 2

    def antialiased(self, brightness: np.ndarray, both_flat: np.ndarray) -> np.ndarray:
        """Anti-aliasing test for every cell using one image's brightness.

        A cell qualifies when it has at most two equal-brightness neighbours and
        both its darkest and its brightest neighbour exist; it is an artifact if
        either of those extremes is flat ("many siblings") in both images.
        """
        zeroes = self.on_border.astype(np.int8)
        min_delta = np.zeros_like(brightness)
        max_delta = np.zeros_like(brightness)
        min_at = np.full(brightness.shape, -1, dtype=np.int8)
        max_at = np.full(brightness.shape, -1, dtype=np.int8)
        for k, offset in enumerate(_NEIGHBOURS):
            valid = self.valid[offset]
            delta = brightness - _shift(brightness, *offset, fill=0.0)
            zeroes += valid & (delta == 0)
            darker = valid & (delta < min_delta)
            min_delta = np.where(darker, delta, min_delta)
            min_at = np.where(darker, k, min_at)
            brighter = valid & (delta > max_delta)
            max_delta = np.where(brighter, delta, max_delta)
            max_at = np.where(brighter, k, max_at)

        extreme_flat = np.zeros(brightness.shape, dtype=bool)
        for k, offset in enumerate(_NEIGHBOURS):
            flat = _shift(both_flat, *offset, fill=False)
            extreme_flat |= flat & ((min_at == k) | (max_at == k))

        candidates = (zeroes <= 2) & (min_delta < 0) & (max_delta > 0)
        return candidates & extreme_flat


def _gray(pixels: np.ndarray, alpha: float) -> np.ndarray:
    rgba = pixels.astype(np.float64)
    y = _rgb2y(rgba[..., 0], rgba[..., 1], rgba[..., 2])
    return _blend(y, alpha * rgba[..., 3] / 255.0).astype(np.uint8)


def _compare_strip(
    a: np.ndarray,
    b: np.ndarray,
    out: np.ndarray,
    start: int,
    end: int,
    max_delta: float,
    ignore_antialiasing: bool,
    alpha: float,
    diff_color: tuple[int, int, int],
    diff_color_alt: Optional[tuple[int, int, int]],
    aa_color: tuple[int, int, int],
) -> int:
    height = a.shape[0]
    s1, s2 = a[start:end], b[start:end]
    strip_out = out[start:end]

    gray = _gray(s1, alpha)
    strip_out[..., 0] = gray
    strip_out[..., 1] = gray
    strip_out[..., 2] = gray
    strip_out[..., 3] = 255
    if np.array_equal(s1, s2):
        return 0

    delta = color_delta(s1, s2)
    mismatched = np.abs(delta) > max_delta
    if not mismatched.any():
        return 0

    if ignore_antialiasing:
        top = max(start - HALO_ROWS, 0)
        bottom = min(end + HALO_ROWS, height)
        window = _Window(a[top:bottom], b[top:bottom], top, height)
        both_flat = window.many_siblings(window.p1) & window.many_siblings(window.p2)
        aa = (
            window.antialiased(_brightness(window.p1), both_flat)
            | window.antialiased(_brightness(window.p2), both_flat)
        )[start - top:end - top]
        aa &= mismatched
        mismatched &= ~aa
        strip_out[aa, :3] = aa_color

    if diff_color_alt is not None:
        alt = mismatched & (delta < 0)
        strip_out[mismatched & ~alt, :3] = diff_color
        strip_out[alt, :3] = diff_color_alt
    else:
        strip_out[mismatched, :3] = diff_color
    return int(np.count_nonzero(mismatched))


def compare(
    a: Bitmap,
    b: Bitmap,
    threshold: float = 0.2,
    *,
    chunk_rows: int = DEFAULT_CHUNK_ROWS,
    ignore_antialiasing: bool = False,
    alpha: float = 0.5,
    diff_color: tuple[int, int, int] = (255, 0, 0),
    diff_color_alt: Optional[tuple[int, int, int]] = (0, 0, 255),
    aa_color: tuple[int, int, int] = (255, 255, 0),
) -> tuple[Bitmap, int]:
    """Compare two same-sized bitmaps strip by strip.

    Returns the diff bitmap and the number of mismatched pixels. Mismatches are
    painted ``diff_color`` (``diff_color_alt`` where the upgraded pixel is
    darker), forgiven anti-aliasing pixels ``aa_color``, and everything else
    a dimmed grayscale of ``a``.
    """
    if a.size != b.size:
        raise ValueError(
            f"Image sizes do not match: {a.width}x{a.height} vs {b.width}x{b.height}"
        )
    if chunk_rows < 1:
        raise ValueError("chunk_rows must be at least 1")

    width, height = a.size
    out = np.zeros((height, width, 4), dtype=np.uint8)
    max_delta = MAX_YIQ_DELTA * threshold * threshold
    chunks = math.ceil(height / chunk_rows) if height else 0
    total = 0

    for index, start in enumerate(range(0, height, chunk_rows)):
        end = min(start + chunk_rows, height)
        total += _compare_strip(
            a.pixels, b.pixels, out, start, end, max_delta,
            ignore_antialiasing, alpha, diff_color, diff_color_alt, aa_color,
        )
        logger.debug("Processed chunk %d/%d (rows %d-%d)", index + 1, chunks, start, end)

    return Bitmap(out), total


def mismatch_percentage(mismatched: int, width: int, height: int) -> float:
    """Share of mismatched pixels on the canvas, 0-100."""
    total = width * height
    if total == 0:
        return 0.0
    return mismatched / total * 100
