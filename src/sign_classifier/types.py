"""Type aliases, NamedTuples and Protocols for sign_classifier contracts."""

from __future__ import annotations

from typing import Any, NamedTuple, Protocol, TypedDict

import numpy as np
import numpy.typing as npt
import torch

from sign_classifier.labels import SignClassification

# (rows, cols, channels) pixel grid, intensities in [0, 255].
RawImage = npt.NDArray[Any]

# Flat float32 vector of rows * cols * channels normalized intensities.
FeatureVector = npt.NDArray[np.float32]


class NormalizedPixel(NamedTuple):
    """One pixel with every channel scaled from [0, 255] to [0.0, 1.0]."""

    red: float
    green: float
    blue: float
    alpha: float


class TrainingBatch(TypedDict):
    """A single (full) batch handed to the network by the DataLoader.

    features: Float tensor of shape (N, F), normalized pixel intensities.
    labels: Float tensor of shape (N, K), one-hot rows (all-zero when skipped).
    """

    features: torch.Tensor
    labels: torch.Tensor


class LabeledSample(Protocol):
    """Anything that can supply a raw image together with its class label."""

    @property
    def label(self) -> SignClassification | str | int: ...

    @property
    def name(self) -> str: ...

    def load(self) -> RawImage: ...
