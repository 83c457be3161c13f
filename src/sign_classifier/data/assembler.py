"""Turn labeled images into a :class:`SignDataset`."""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable, Sequence

import numpy as np
import torch
from loguru import logger
from tqdm import tqdm

from sign_classifier.config import DatasetConfig
from sign_classifier.data.dataset import SignDataset
from sign_classifier.errors import (
    InconsistentFeatureSizeError,
    InvalidConfigurationError,
    SampleError,
)
from sign_classifier.features.extractor import FeatureExtractor
from sign_classifier.labels import SignClassification
from sign_classifier.transforms.crop import crop_sign
from sign_classifier.types import FeatureVector, LabeledSample, RawImage

Cropper = Callable[[RawImage], RawImage]


class DatasetAssembler:
    """Build input and one-hot label matrices from labeled images.

    A sample whose image cannot be loaded, cropped or extracted is logged and
    skipped: its row stays all-zero and its index is recorded in
    :attr:`SignDataset.skipped`.  One bad image never aborts a build.  All
    other problems (empty input, out-of-range labels) are raised before any
    image is processed.

    Args:
        config: Validated dataset configuration.
        cropper: Region-of-interest isolation applied before rescaling when
            ``config.crop_signs`` is set.
    """

    def __init__(self, config: DatasetConfig, cropper: Cropper = crop_sign) -> None:
        self.config = config
        self.cropper: Cropper | None = cropper if config.crop_signs else None
        self.extractor = FeatureExtractor(
            config.target_rows,
            config.target_cols,
            include_alpha_channel=config.include_alpha_channel,
        )

    def build(self, samples: Sequence[LabeledSample]) -> SignDataset:
        if not samples:
            raise InvalidConfigurationError("Images list cannot be empty")
        class_indices = [
            self._class_index(i, sample) for i, sample in enumerate(samples)
        ]

        num_examples = len(samples)
        features = np.zeros(
            (num_examples, self.extractor.feature_length), dtype=np.float32
        )
        labels = np.zeros((num_examples, self.config.num_classes), dtype=np.float32)

        def _process(idx: int) -> bool:
            sample = samples[idx]
            try:
                vector = self._extract(sample)
            except (SampleError, InconsistentFeatureSizeError) as e:
                logger.warning(
                    f"Skipping sample {idx} ({sample.name}): could not extract "
                    f"features: {e}"
                )
                return False
            # each call writes only its own row
            features[idx] = vector
            labels[idx, class_indices[idx]] = 1.0
            return True

        logger.info(
            f"Building dataset from {num_examples} images "
            f"({self.config.target_rows}x{self.config.target_cols}, "
            f"{self.extractor.channels} channels, workers={self.config.num_workers})"
        )
        if self.config.num_workers > 0:
            with concurrent.futures.ThreadPoolExecutor(
                max_workers=self.config.num_workers
            ) as executor:
                results = list(
                    tqdm(
                        executor.map(_process, range(num_examples)),
                        total=num_examples,
                        desc="Dataset",
                        unit="img",
                    )
                )
        else:
            results = [
                _process(idx)
                for idx in tqdm(range(num_examples), desc="Dataset", unit="img")
            ]

        skipped = [idx for idx, ok in enumerate(results) if not ok]
        if skipped:
            logger.warning(f"Skipped {len(skipped)} of {num_examples} images")
        logger.info(
            f"Dataset built: {num_examples - len(skipped)} usable rows, "
            f"{self.extractor.feature_length} features, "
            f"{self.config.num_classes} classes"
        )
        return SignDataset(
            torch.from_numpy(features), torch.from_numpy(labels), skipped=skipped
        )

    def _extract(self, sample: LabeledSample) -> FeatureVector:
        image = sample.load()
        if self.cropper is not None:
            image = self.cropper(image)
        vector = self.extractor.scale_and_extract(image)
        if vector.shape[0] != self.extractor.feature_length:
            raise InconsistentFeatureSizeError(
                f"got {vector.shape[0]} features, expected "
                f"{self.extractor.feature_length}"
            )
        return vector

    def _class_index(self, idx: int, sample: LabeledSample) -> int:
        label = sample.label
        if isinstance(label, SignClassification):
            index = label.ordinal
        elif isinstance(label, str):
            try:
                index = SignClassification[label].ordinal
            except KeyError:
                raise InvalidConfigurationError(
                    f"Sample {idx} ({sample.name}) has unknown label {label!r}"
                ) from None
        else:
            index = int(label)
        if not 0 <= index < self.config.num_classes:
            raise InvalidConfigurationError(
                f"Sample {idx} ({sample.name}) has class index {index}, outside "
                f"[0, {self.config.num_classes})"
            )
        return index
