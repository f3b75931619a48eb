"""Tests for the bitmap type, PNG I/O and size normalization."""

import numpy as np
import pytest

from pagediff.imaging.bitmap import Bitmap, load_png, save_png
from pagediff.imaging.normalizer import downscale, normalize


def _coordinate_bitmap(width: int, height: int) -> Bitmap:
    """Red channel holds x, green holds y."""
    pixels = np.zeros((height, width, 4), dtype=np.uint8)
    pixels[..., 0] = np.arange(width)[None, :]
    pixels[..., 1] = np.arange(height)[:, None]
    pixels[..., 3] = 255
    return Bitmap(pixels)


# ============================================================================
# Bitmap
# ============================================================================


class TestBitmap:
    def test_dimensions(self):
        bmp = Bitmap.blank(7, 3)
        assert bmp.width == 7
        assert bmp.height == 3
        assert bmp.size == (7, 3)

    def test_rejects_wrong_shape(self):
        with pytest.raises(ValueError):
            Bitmap(np.zeros((3, 3, 3), dtype=np.uint8))

    def test_rejects_wrong_dtype(self):
        with pytest.raises(ValueError):
            Bitmap(np.zeros((3, 3, 4), dtype=np.float32))

    def test_pixels_are_read_only(self):
        bmp = Bitmap.filled(2, 2, (1, 2, 3, 4))
        with pytest.raises(ValueError):
            bmp.pixels[0, 0, 0] = 9

    def test_png_round_trip(self, tmp_path):
        bmp = _coordinate_bitmap(5, 4)
        path = tmp_path / "nested" / "shot.png"
        save_png(bmp, path)
        assert path.exists()
        loaded = load_png(path)
        assert np.array_equal(loaded.pixels, bmp.pixels)

    def test_load_converts_rgb_to_rgba(self, tmp_path):
        from PIL import Image

        path = tmp_path / "rgb.png"
        Image.new("RGB", (3, 2), (10, 20, 30)).save(path)
        loaded = load_png(path)
        assert loaded.pixels[0, 0].tolist() == [10, 20, 30, 255]


# ============================================================================
# Normalizer
# ============================================================================


class TestDownscale:
    def test_within_bounds_unchanged(self):
        bmp = Bitmap.blank(10, 10)
        assert downscale(bmp, 10) is bmp

    def test_preserves_aspect_with_nearest_neighbour(self):
        bmp = _coordinate_bitmap(8, 4)
        small = downscale(bmp, 4)
        assert small.size == (4, 2)
        assert small.pixels[0, :, 0].tolist() == [0, 2, 4, 6]
        assert small.pixels[:, 0, 1].tolist() == [0, 2]

    def test_never_collapses_to_zero(self):
        small = downscale(Bitmap.blank(100, 1), 10)
        assert small.size == (10, 1)


class TestNormalize:
    def test_same_size_passthrough(self):
        a, b = Bitmap.blank(4, 4), Bitmap.blank(4, 4)
        na, nb = normalize(a, b)
        assert na is a
        assert nb is b

    def test_union_canvas_top_left_placement(self):
        a = Bitmap.filled(2, 3, (255, 0, 0, 255))
        b = Bitmap.filled(4, 2, (0, 255, 0, 255))
        na, nb = normalize(a, b)
        assert na.size == nb.size == (4, 3)
        assert na.pixels[2, 1].tolist() == [255, 0, 0, 255]
        assert na.pixels[0, 3].tolist() == [0, 0, 0, 0]
        assert nb.pixels[1, 3].tolist() == [0, 255, 0, 255]
        assert nb.pixels[2, 0].tolist() == [0, 0, 0, 0]

    def test_oversized_input_downscaled_first(self):
        a = Bitmap.blank(20, 10)
        b = Bitmap.blank(5, 5)
        na, nb = normalize(a, b, max_dimension=10)
        assert na.size == (10, 5)
        assert nb.size == (10, 5)
