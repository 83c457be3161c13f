"""Tests for per-pixel normalization."""

from __future__ import annotations

import math

import numpy as np
import pytest

from sign_classifier.errors import InvalidPixelError, SampleError
from sign_classifier.features import normalize_pixel, normalize_pixels
from sign_classifier.types import NormalizedPixel


class TestNormalizePixel:
    def test_divides_each_channel_by_255(self) -> None:
        pixel = normalize_pixel([255, 0, 51, 102])
        assert isinstance(pixel, NormalizedPixel)
        assert pixel == NormalizedPixel(1.0, 0.0, 51 / 255.0, 102 / 255.0)

    def test_accepts_numpy_samples(self) -> None:
        pixel = normalize_pixel(np.array([10, 20, 30, 40], dtype=np.uint8))
        assert pixel.red == pytest.approx(10 / 255.0)
        assert pixel.alpha == pytest.approx(40 / 255.0)

    def test_all_values_in_unit_interval(self) -> None:
        rng = np.random.default_rng(3)
        for sample in rng.integers(0, 256, size=(50, 4)):
            assert all(0.0 <= v <= 1.0 for v in normalize_pixel(sample))

    def test_none_raises(self) -> None:
        with pytest.raises(InvalidPixelError, match="absent"):
            normalize_pixel(None)

    @pytest.mark.parametrize("sample", [[1, 2, 3], [1, 2, 3, 4, 5], []])
    def test_wrong_channel_count_raises(self, sample: list[int]) -> None:
        with pytest.raises(InvalidPixelError, match="4 channels"):
            normalize_pixel(sample)

    @pytest.mark.parametrize("value", [-1, 256, 300.5, math.nan])
    def test_out_of_range_raises(self, value: float) -> None:
        with pytest.raises(InvalidPixelError):
            normalize_pixel([0, 0, 0, value])

    def test_non_number_raises(self) -> None:
        with pytest.raises(InvalidPixelError, match="not a number"):
            normalize_pixel([0, "1", 0, 0])  # type: ignore[list-item]

    def test_is_a_recoverable_sample_error(self) -> None:
        with pytest.raises(SampleError):
            normalize_pixel([0, 0, 0])


class TestNormalizePixels:
    def test_matches_scalar_normalization(self) -> None:
        image = np.array([[[255, 0, 51, 102], [1, 2, 3, 4]]], dtype=np.uint8)
        out = normalize_pixels(image)
        assert out.dtype == np.float64
        assert out.shape == (1, 2, 4)
        assert tuple(out[0, 0]) == tuple(normalize_pixel([255, 0, 51, 102]))

    def test_three_channels_raises(self) -> None:
        with pytest.raises(InvalidPixelError, match="4 channels"):
            normalize_pixels(np.zeros((2, 2, 3), dtype=np.uint8))

    def test_out_of_range_float_raises(self) -> None:
        image = np.zeros((1, 1, 4), dtype=np.float32)
        image[0, 0, 2] = 255.5
        with pytest.raises(InvalidPixelError, match="outside"):
            normalize_pixels(image)

    def test_nan_raises(self) -> None:
        image = np.zeros((1, 1, 4), dtype=np.float64)
        image[0, 0, 0] = np.nan
        with pytest.raises(InvalidPixelError, match="non-finite"):
            normalize_pixels(image)

    def test_empty_grid_is_allowed(self) -> None:
        assert normalize_pixels(np.zeros((0, 0, 4), dtype=np.uint8)).size == 0
