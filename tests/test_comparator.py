"""Tests for the chunked pixel comparator."""

import numpy as np
import pytest

from pagediff.imaging.bitmap import Bitmap
from pagediff.imaging.comparator import color_delta, compare, mismatch_percentage

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def _edge_pair() -> tuple[Bitmap, Bitmap]:
    """Hard black/white edge vs the same edge softened by a gray column."""
    a = np.full((10, 10, 4), 255, dtype=np.uint8)
    a[:, :5, :3] = 0
    b = a.copy()
    b[:, 5, :3] = 128
    return Bitmap(a), Bitmap(b)


class TestColorDelta:
    def test_identical_pixels_zero(self):
        p = np.array([[[10, 20, 30, 255]]], dtype=np.uint8)
        assert color_delta(p, p)[0, 0] == 0.0

    def test_sign_follows_brightness(self):
        white = np.array([[WHITE]], dtype=np.uint8)
        black = np.array([[BLACK]], dtype=np.uint8)
        assert color_delta(white, black)[0, 0] < 0
        assert color_delta(black, white)[0, 0] > 0

    def test_transparent_blends_onto_white(self):
        clear_black = np.array([[[0, 0, 0, 0]]], dtype=np.uint8)
        white = np.array([[WHITE]], dtype=np.uint8)
        assert color_delta(clear_black, white)[0, 0] == pytest.approx(0.0)


class TestCompare:
    def test_identical_images_have_no_mismatch(self):
        a = Bitmap.filled(12, 9, (200, 100, 50, 255))
        diff, mismatched = compare(a, a)
        assert mismatched == 0
        assert diff.size == (12, 9)
        assert np.all(diff.pixels[..., 3] == 255)
        assert np.all(diff.pixels[..., 0] == diff.pixels[..., 1])

    def test_unchanged_pixels_are_dimmed_gray(self):
        a = Bitmap.filled(3, 3, BLACK)
        diff, _ = compare(a, a, alpha=0.5)
        assert diff.pixels[1, 1].tolist() == [127, 127, 127, 255]

    def test_white_vs_black_full_mismatch(self):
        white = Bitmap.filled(4, 4, WHITE)
        black = Bitmap.filled(4, 4, BLACK)
        _, mismatched = compare(white, black)
        assert mismatched == 16
        assert mismatch_percentage(mismatched, 4, 4) == 100.0

    def test_darker_upgrade_uses_alt_color(self):
        diff, _ = compare(Bitmap.filled(2, 2, WHITE), Bitmap.filled(2, 2, BLACK))
        assert diff.pixels[0, 0, :3].tolist() == [0, 0, 255]

    def test_brighter_upgrade_uses_diff_color(self):
        diff, _ = compare(Bitmap.filled(2, 2, BLACK), Bitmap.filled(2, 2, WHITE))
        assert diff.pixels[0, 0, :3].tolist() == [255, 0, 0]

    def test_alt_color_disabled(self):
        diff, _ = compare(
            Bitmap.filled(2, 2, WHITE), Bitmap.filled(2, 2, BLACK), diff_color_alt=None,
        )
        assert diff.pixels[0, 0, :3].tolist() == [255, 0, 0]

    def test_threshold_tolerates_small_changes(self):
        a = Bitmap.filled(5, 5, WHITE)
        b = Bitmap.filled(5, 5, (250, 250, 250, 255))
        assert compare(a, b, threshold=0.2)[1] == 0
        assert compare(a, b, threshold=0.0)[1] == 25

    def test_size_mismatch_raises(self):
        with pytest.raises(ValueError, match="do not match"):
            compare(Bitmap.blank(3, 3), Bitmap.blank(3, 4))

    def test_invalid_chunk_rows_raises(self):
        a = Bitmap.blank(3, 3)
        with pytest.raises(ValueError, match="chunk_rows"):
            compare(a, a, chunk_rows=0)

    def test_empty_canvas(self):
        a = Bitmap.blank(0, 0)
        diff, mismatched = compare(a, a)
        assert mismatched == 0
        assert mismatch_percentage(mismatched, 0, 0) == 0.0

    def test_deterministic(self, patterned_bitmap):
        other = Bitmap(np.ascontiguousarray(patterned_bitmap.pixels[::-1]))
        first = compare(patterned_bitmap, other, ignore_antialiasing=True)
        second = compare(patterned_bitmap, other, ignore_antialiasing=True)
        assert first[1] == second[1]
        assert np.array_equal(first[0].pixels, second[0].pixels)


class TestChunking:
    @pytest.mark.parametrize("chunk_rows", [1, 2, 3, 7, 25, 1000])
    @pytest.mark.parametrize("ignore_antialiasing", [False, True])
    def test_chunked_matches_single_pass(self, patterned_bitmap, chunk_rows, ignore_antialiasing):
        other_pixels = patterned_bitmap.pixels.copy()
        other_pixels[8:26, 10:18, :3] = (240, 10, 10)
        other_pixels[:, 21] = (120, 120, 120, 255)
        other = Bitmap(other_pixels)

        expected_diff, expected_count = compare(
            patterned_bitmap, other, 0.1,
            chunk_rows=patterned_bitmap.height, ignore_antialiasing=ignore_antialiasing,
        )
        diff, count = compare(
            patterned_bitmap, other, 0.1,
            chunk_rows=chunk_rows, ignore_antialiasing=ignore_antialiasing,
        )
        assert count == expected_count
        assert np.array_equal(diff.pixels, expected_diff.pixels)

    @pytest.mark.parametrize("chunk_rows", [1, 4, 10])
    def test_antialiasing_detection_across_strip_boundaries(self, chunk_rows):
        a, b = _edge_pair()
        _, counted = compare(a, b, chunk_rows=chunk_rows)
        diff, forgiven = compare(a, b, chunk_rows=chunk_rows, ignore_antialiasing=True)
        assert counted == 10
        assert forgiven == 0
        assert diff.pixels[4, 5, :3].tolist() == [255, 255, 0]


class TestMismatchPercentage:
    def test_partial(self):
        assert mismatch_percentage(5, 10, 10) == 5.0

    def test_zero_area(self):
        assert mismatch_percentage(0, 0, 10) == 0.0
