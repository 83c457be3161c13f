"""Tests for DatasetAssembler, SignDataset and the image sources."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import torch
from PIL import Image

from sign_classifier.config import DatasetConfig
from sign_classifier.data import DatasetAssembler, ImageSample, LoadableImage, SignDataset
from sign_classifier.errors import (
    ImageDecodeError,
    InvalidConfigurationError,
    InvalidPixelError,
)
from sign_classifier.labels import SignClassification
from sign_classifier.types import RawImage


def _config(**overrides: object) -> DatasetConfig:
    params: dict[str, object] = {
        "target_rows": 2,
        "target_cols": 2,
        "num_classes": 3,
        "crop_signs": False,
    }
    params.update(overrides)
    return DatasetConfig(**params)  # type: ignore[arg-type]


class TestDatasetAssembler:
    def test_three_rgba_images(self, tiny_samples: list[ImageSample]) -> None:
        dataset = DatasetAssembler(_config()).build(tiny_samples)
        assert dataset.features.shape == (3, 16)
        assert dataset.labels.shape == (3, 3)
        assert torch.equal(dataset.labels, torch.eye(3))
        assert dataset.skipped == ()
        expected = np.asarray(tiny_samples[1].image).reshape(-1) / 255.0
        np.testing.assert_allclose(dataset.features[1].numpy(), expected, rtol=1e-6)

    def test_rows_follow_input_order(self, tiny_samples: list[ImageSample]) -> None:
        reversed_samples = list(reversed(tiny_samples))
        dataset = DatasetAssembler(_config()).build(reversed_samples)
        assert dataset.class_indices().tolist() == [2, 1, 0]

    def test_corrupt_sample_is_skipped(self, tiny_samples: list[ImageSample]) -> None:
        corrupt = ImageSample(
            image=np.zeros((2, 2, 3), dtype=np.uint8),
            label=SignClassification.YIELD,
            name="rgb_only",
        )
        samples = [tiny_samples[0], corrupt, tiny_samples[2]]
        dataset = DatasetAssembler(_config()).build(samples)
        assert len(dataset) == 3
        assert dataset.skipped == (1,)
        assert not dataset.features[1].any()
        assert not dataset.labels[1].any()
        assert dataset.labels.sum().item() == 2
        assert dataset.included.tolist() == [True, False, True]
        assert dataset.class_indices().tolist() == [0, -1, 2]

    @pytest.mark.parametrize(
        "bad_pixel", [None, [1, 2, 3]], ids=["absent_pixel", "short_pixel"]
    )
    def test_malformed_pixel_grid_is_skipped(
        self, tiny_samples: list[ImageSample], bad_pixel: object
    ) -> None:
        grid = [[[1, 2, 3, 4], bad_pixel], [[1, 2, 3, 4], [1, 2, 3, 4]]]
        corrupt = ImageSample(
            image=grid, label=SignClassification.YIELD, name="ragged"
        )
        samples = [tiny_samples[0], corrupt, tiny_samples[2]]
        for num_workers in (0, 2):
            dataset = DatasetAssembler(_config(num_workers=num_workers)).build(samples)
            assert dataset.skipped == (1,)
            assert not dataset.labels[1].any()
            assert dataset.class_indices().tolist() == [0, -1, 2]

    def test_zero_size_sample_is_skipped(self) -> None:
        samples = [
            ImageSample(image=np.zeros((0, 0, 4), dtype=np.uint8), label=0),
            ImageSample(image=np.full((3, 3, 4), 255, dtype=np.uint8), label=1),
        ]
        dataset = DatasetAssembler(_config()).build(samples)
        assert dataset.skipped == (0,)
        assert dataset.features[1].min().item() == 1.0

    def test_unreadable_file_is_skipped(self, tmp_path: Path) -> None:
        bad = tmp_path / "broken.png"
        bad.write_bytes(b"not an image")
        good = tmp_path / "good.png"
        Image.new("RGBA", (4, 4), color=(0, 0, 255, 255)).save(good)
        samples = [
            LoadableImage(path=bad, label=SignClassification.STOP),
            LoadableImage(path=good, label=SignClassification.YIELD),
        ]
        dataset = DatasetAssembler(_config()).build(samples)
        assert dataset.skipped == (0,)
        assert dataset.class_indices().tolist() == [-1, 1]

    def test_cropping_failure_is_skipped(self, sign_image: np.ndarray) -> None:
        samples = [
            ImageSample(image=sign_image, label=SignClassification.STOP),
            ImageSample(
                image=np.full((20, 20, 4), 90, dtype=np.uint8),
                label=SignClassification.YIELD,
            ),
        ]
        dataset = DatasetAssembler(_config(target_rows=8, target_cols=8)).build(
            samples
        )
        assert dataset.skipped == (1,)
        assert dataset.features[0].any()

    def test_custom_cropper_only_used_when_enabled(
        self, tiny_samples: list[ImageSample]
    ) -> None:
        calls: list[tuple[int, ...]] = []

        def _cropper(image: RawImage) -> RawImage:
            calls.append(image.shape)
            return image

        DatasetAssembler(_config(), cropper=_cropper).build(tiny_samples)
        assert calls == []
        DatasetAssembler(_config(crop_signs=True), cropper=_cropper).build(tiny_samples)
        assert len(calls) == 3

    def test_thread_pool_matches_sequential(
        self, tiny_samples: list[ImageSample]
    ) -> None:
        samples = tiny_samples * 4
        sequential = DatasetAssembler(_config()).build(samples)
        pooled = DatasetAssembler(_config(num_workers=3)).build(samples)
        assert torch.equal(sequential.features, pooled.features)
        assert torch.equal(sequential.labels, pooled.labels)

    def test_string_and_int_labels(self) -> None:
        image = np.zeros((2, 2, 4), dtype=np.uint8)
        samples = [
            ImageSample(image=image, label=2),
            ImageSample(image=image, label=SignClassification.YIELD),
        ]
        dataset = DatasetAssembler(_config()).build(samples)
        assert dataset.class_indices().tolist() == [2, 1]

    def test_empty_input_raises(self) -> None:
        with pytest.raises(InvalidConfigurationError, match="empty"):
            DatasetAssembler(_config()).build([])

    def test_label_out_of_range_raises(self) -> None:
        samples = [
            ImageSample(
                image=np.zeros((2, 2, 4), dtype=np.uint8),
                label=SignClassification.ROUNDABOUT,
                name="too_far",
            )
        ]
        with pytest.raises(InvalidConfigurationError, match="too_far"):
            DatasetAssembler(_config()).build(samples)

    @pytest.mark.parametrize(
        "overrides", [{"target_rows": 0}, {"target_cols": 0}, {"num_classes": 0}]
    )
    def test_invalid_config_raises(self, overrides: dict[str, int]) -> None:
        with pytest.raises(InvalidConfigurationError):
            _config(**overrides)


class TestSignDataset:
    def test_getitem(self) -> None:
        dataset = SignDataset(torch.ones(2, 4), torch.eye(2))
        item = dataset[1]
        assert torch.equal(item["features"], torch.ones(4))
        assert torch.equal(item["labels"], torch.tensor([0.0, 1.0]))
        assert dataset.num_features == 4
        assert dataset.num_classes == 2

    def test_mismatched_rows_raise(self) -> None:
        with pytest.raises(ValueError, match="rows"):
            SignDataset(torch.ones(3, 4), torch.eye(2))


class TestLoadableImage:
    def test_load_converts_to_rgba(self, tmp_path: Path) -> None:
        path = tmp_path / "rgb.png"
        Image.new("RGB", (5, 3), color=(10, 20, 30)).save(path)
        array = LoadableImage(path=path, label=SignClassification.STOP).load()
        assert array.shape == (3, 5, 4)
        assert tuple(array[0, 0]) == (10, 20, 30, 255)

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        sample = LoadableImage(path=tmp_path / "nope.png", label=SignClassification.STOP)
        with pytest.raises(ImageDecodeError, match="nope.png"):
            sample.load()


class TestImageSample:
    def test_load_returns_numeric_array(self) -> None:
        sample = ImageSample(image=[[[1, 2, 3, 4]]], label=0)
        array = sample.load()
        assert array.shape == (1, 1, 4)

    def test_load_ragged_grid_raises(self) -> None:
        sample = ImageSample(image=[[[1, 2, 3, 4], None]], label=0)
        with pytest.raises(InvalidPixelError, match="regular pixel grid"):
            sample.load()
