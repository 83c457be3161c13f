"""Per-pixel channel normalization."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np
import numpy.typing as npt

from sign_classifier.errors import InvalidPixelError
from sign_classifier.types import NormalizedPixel

PIXEL_CHANNELS = 4
MAX_INTENSITY = 255.0


def normalize_pixel(sample: Sequence[float] | npt.NDArray[np.generic] | None) -> NormalizedPixel:
    """Scale one RGBA sample from ``[0, 255]`` to ``[0.0, 1.0]``.

    Each channel is divided by 255.0; nothing is clipped or zero-filled.

    Raises:
        InvalidPixelError: If the sample is missing, does not hold exactly
            four values, or holds a value that is not a finite number in
            ``[0, 255]``.
    """
    if sample is None:
        raise InvalidPixelError("Pixel is absent")
    values = [v.item() if isinstance(v, np.generic) else v for v in sample]
    if len(values) != PIXEL_CHANNELS:
        raise InvalidPixelError(
            f"Pixel does not have {PIXEL_CHANNELS} channels: got {len(values)}"
        )
    for value in values:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidPixelError(f"Pixel channel is not a number: {value!r}")
        if not 0.0 <= value <= MAX_INTENSITY:
            raise InvalidPixelError(
                f"Pixel channel {value!r} is outside [0, {MAX_INTENSITY:g}]"
            )
    red, green, blue, alpha = values
    return NormalizedPixel(
        red / MAX_INTENSITY,
        green / MAX_INTENSITY,
        blue / MAX_INTENSITY,
        alpha / MAX_INTENSITY,
    )


def normalize_pixels(pixels: npt.ArrayLike) -> npt.NDArray[np.float64]:
    """Vectorised :func:`normalize_pixel` over an array of RGBA samples.

    Args:
        pixels: Array whose last axis holds the four channels, e.g. an image
            of shape ``(rows, cols, 4)``.

    Returns:
        float64 array of the same shape, every value divided by 255.0.

    Raises:
        InvalidPixelError: If the last axis is not 4 wide or any value is
            non-finite or outside ``[0, 255]``.
    """
    array = np.asarray(pixels)
    if array.ndim == 0 or array.shape[-1] != PIXEL_CHANNELS:
        channels = "none" if array.ndim == 0 else array.shape[-1]
        raise InvalidPixelError(
            f"Pixels do not have {PIXEL_CHANNELS} channels: got {channels} "
            f"(array shape {array.shape})"
        )
    if not (np.issubdtype(array.dtype, np.integer) or np.issubdtype(array.dtype, np.floating)):
        raise InvalidPixelError(f"Pixel data has non-numeric dtype {array.dtype}")
    values = array.astype(np.float64)
    if values.size and not np.isfinite(values).all():
        raise InvalidPixelError("Pixel data contains non-finite values")
    if values.size and (values.min() < 0.0 or values.max() > MAX_INTENSITY):
        raise InvalidPixelError(
            f"Pixel data spans [{values.min():g}, {values.max():g}], "
            f"outside [0, {MAX_INTENSITY:g}]"
        )
    return values / MAX_INTENSITY
