"""Image -> feature vector conversion with a fixed target size."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
from loguru import logger
from PIL import Image

from sign_classifier.config import RGB_CHANNELS, RGBA_CHANNELS
from sign_classifier.errors import (
    InconsistentFeatureSizeError,
    InvalidConfigurationError,
    InvalidPixelError,
)
from sign_classifier.features.pixel import normalize_pixels
from sign_classifier.transforms.resize import as_array, rescale
from sign_classifier.types import FeatureVector, RawImage


class FeatureExtractor:
    """Rescale images to a fixed grid and flatten them into feature vectors.

    Pixels are visited row by row, column by column; each contributes its
    normalized R, G, B (and A when ``include_alpha_channel``) values in that
    order.  Input pixels must always carry four channels, even when alpha is
    dropped from the output.

    Args:
        target_rows: Height every image is rescaled to.
        target_cols: Width every image is rescaled to.
        include_alpha_channel: Emit the alpha channel as a fourth feature per
            pixel.
    """

    def __init__(
        self,
        target_rows: int,
        target_cols: int,
        include_alpha_channel: bool = True,
    ) -> None:
        if target_rows <= 0 or target_cols <= 0:
            raise InvalidConfigurationError(
                "Target dimensions must be positive, got "
                f"target_rows={target_rows}, target_cols={target_cols}"
            )
        self.target_rows = target_rows
        self.target_cols = target_cols
        self.include_alpha_channel = include_alpha_channel

    @property
    def channels(self) -> int:
        return RGBA_CHANNELS if self.include_alpha_channel else RGB_CHANNELS

    @property
    def feature_length(self) -> int:
        return self.target_rows * self.target_cols * self.channels

    def rescale(self, image: RawImage | Image.Image) -> RawImage:
        return rescale(image, self.target_rows, self.target_cols)

    def extract(self, image: RawImage | Image.Image) -> FeatureVector:
        """Flatten ``image`` as-is (no rescaling) into a feature vector.

        Raises:
            InvalidPixelError: If the image has no channel axis or any pixel
                is malformed.  Nothing is returned for a partially valid image.
        """
        array = as_array(image)
        if array.ndim != 3:
            raise InvalidPixelError(
                f"Image must have shape (rows, cols, channels), got {array.shape}"
            )
        normalized = normalize_pixels(array)
        if not self.include_alpha_channel:
            normalized = normalized[:, :, :RGB_CHANNELS]
        # C-order reshape keeps each pixel's channels adjacent
        return normalized.reshape(-1).astype(np.float32)

    def scale_and_extract(self, image: RawImage | Image.Image) -> FeatureVector:
        return self.extract(self.rescale(image))

    def extract_batch(
        self, images: Sequence[RawImage | Image.Image]
    ) -> np.ndarray:
        """Rescale and extract every image; stack the vectors row-wise.

        Returns:
            float32 array of shape ``(len(images), feature_length)``.

        Raises:
            InvalidPixelError: Propagated from :meth:`extract`.
            InconsistentFeatureSizeError: If any vector's length differs from
                :attr:`feature_length`, e.g. for a zero-size image that could
                not be rescaled.
        """
        vectors = [self.scale_and_extract(image) for image in images]
        for i, vector in enumerate(vectors):
            if vector.shape[0] != self.feature_length:
                raise InconsistentFeatureSizeError(
                    f"Image {i} produced {vector.shape[0]} features, expected "
                    f"{self.feature_length} ({self.target_rows}x{self.target_cols}"
                    f"x{self.channels})"
                )
        logger.debug(
            f"Extracted {len(vectors)} feature vectors of length {self.feature_length}"
        )
        if not vectors:
            return np.zeros((0, self.feature_length), dtype=np.float32)
        return np.stack(vectors)
