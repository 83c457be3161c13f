"""Image rescaling primitive shared by training and inference."""

from __future__ import annotations

import cv2
import numpy as np
import numpy.typing as npt
from loguru import logger
from PIL import Image

from sign_classifier.errors import InvalidPixelError
from sign_classifier.types import RawImage

# dtypes cv2.resize handles natively; everything else goes through float64
_CV2_DTYPES = (np.uint8, np.uint16, np.int16, np.float32, np.float64)


def as_array(image: RawImage | Image.Image) -> npt.NDArray[np.generic]:
    """Return ``image`` as a numeric numpy array, converting Pillow images.

    Raises:
        InvalidPixelError: If ``image`` is not a regular grid of numbers, e.g.
            a nested list with an absent pixel or a pixel of the wrong width.
    """
    try:
        array = np.asarray(image)
    except (ValueError, TypeError) as e:
        raise InvalidPixelError(f"Image is not a regular pixel grid: {e}") from e
    if array.dtype.kind not in "biuf":
        raise InvalidPixelError(
            f"Image holds non-numeric pixel data (dtype {array.dtype})"
        )
    return array


def rescale(
    image: RawImage | Image.Image,
    target_rows: int,
    target_cols: int,
    interpolation: int = cv2.INTER_LINEAR,
) -> RawImage:
    """Resize ``image`` to exactly ``target_rows x target_cols``.

    Uses bilinear interpolation by default; the same routine must be used for
    training and inference data.  The channel axis is preserved, including a
    trailing axis of width 1.

    Zero-size images cannot be interpolated and are returned unchanged; batch
    extraction reports them through a feature-size mismatch.
    """
    array = as_array(image)
    if array.ndim < 2 or array.shape[0] == 0 or array.shape[1] == 0:
        logger.warning(
            f"Cannot rescale image of shape {array.shape}; returning it unchanged"
        )
        return array
    if array.shape[:2] == (target_rows, target_cols):
        return array
    if array.dtype not in _CV2_DTYPES:
        array = array.astype(np.float64)
    # cv2 takes dsize as (width, height)
    resized = cv2.resize(array, (target_cols, target_rows), interpolation=interpolation)
    if array.ndim == 3 and resized.ndim == 2:
        resized = resized[:, :, np.newaxis]
    return resized
