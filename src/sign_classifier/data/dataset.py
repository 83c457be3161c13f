"""Assembled datasets and the labeled image sources they are built from."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

import numpy as np
import torch
from PIL import Image
from pydantic import BaseModel, ConfigDict
from torch.utils.data import Dataset

from sign_classifier.errors import ImageDecodeError
from sign_classifier.labels import SignClassification
from sign_classifier.transforms.resize import as_array
from sign_classifier.types import RawImage, TrainingBatch


class ImageSample(BaseModel):
    """An in-memory image with its label.

    ``image`` is a ``(rows, cols, channels)`` array or a Pillow image; it is
    handed to the pipeline as-is, so a non-RGBA image is rejected during
    extraction.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    image: Any
    label: SignClassification | int
    name: str = "<memory>"

    def load(self) -> RawImage:
        """The image as a numeric array.

        Raises:
            InvalidPixelError: If ``image`` is not a regular grid of numbers.
        """
        return as_array(self.image)


class LoadableImage(BaseModel, frozen=True):
    """An image file on disk with its label, decoded lazily into RGBA."""

    path: Path
    label: SignClassification

    @property
    def name(self) -> str:
        return str(self.path)

    def load(self) -> RawImage:
        """Decode the file into a ``(rows, cols, 4)`` uint8 array.

        Raises:
            ImageDecodeError: If the file is missing or not a decodable image.
        """
        try:
            with Image.open(self.path) as img:
                return np.asarray(img.convert("RGBA"))
        except OSError as e:
            raise ImageDecodeError(f"Could not load image from path: {self.path}") from e


class SignDataset(Dataset[TrainingBatch]):
    """Input matrix plus one-hot label matrix, row-aligned with the sources.

    Rows listed in ``skipped`` belong to samples whose features could not be
    extracted; they are all-zero in both matrices, so they never carry a
    class label.

    Args:
        features: Float tensor of shape ``(N, F)``.
        labels: Float tensor of shape ``(N, K)``.
        skipped: Row indices of excluded samples.
    """

    def __init__(
        self,
        features: torch.Tensor,
        labels: torch.Tensor,
        skipped: Sequence[int] = (),
    ) -> None:
        if features.ndim != 2 or labels.ndim != 2:
            raise ValueError(
                "features and labels must be 2-D, got shapes "
                f"{tuple(features.shape)} and {tuple(labels.shape)}"
            )
        if features.shape[0] != labels.shape[0]:
            raise ValueError(
                f"features has {features.shape[0]} rows but labels has "
                f"{labels.shape[0]}"
            )
        self.features = features
        self.labels = labels
        self.skipped = tuple(sorted(skipped))

    def __len__(self) -> int:
        return int(self.features.shape[0])

    def __getitem__(self, idx: int) -> TrainingBatch:
        return {"features": self.features[idx], "labels": self.labels[idx]}

    @property
    def num_features(self) -> int:
        return int(self.features.shape[1])

    @property
    def num_classes(self) -> int:
        return int(self.labels.shape[1])

    @property
    def included(self) -> torch.Tensor:
        """Boolean mask of rows that carry a real sample."""
        mask = torch.ones(len(self), dtype=torch.bool)
        if self.skipped:
            mask[list(self.skipped)] = False
        return mask

    def class_indices(self) -> torch.Tensor:
        """Class index per row; skipped rows map to ``-1``."""
        indices = self.labels.argmax(dim=1)
        indices[~self.included] = -1
        return indices
