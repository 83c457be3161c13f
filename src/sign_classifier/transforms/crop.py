"""Sign isolation: keep the largest contour's convex hull, clear the rest.

The image keeps its size; every pixel outside the sign's convex hull is set
to zero in all channels, which makes the background fully transparent for
RGBA input.
"""

from __future__ import annotations

import cv2
import numpy as np
from loguru import logger
from PIL import Image

from sign_classifier.errors import CroppingError, InvalidPixelError
from sign_classifier.features.pixel import PIXEL_CHANNELS
from sign_classifier.transforms.resize import as_array
from sign_classifier.types import RawImage

CANNY_THRESHOLDS = (100.0, 200.0)
THRESHOLD_DECAY = 1.5


def crop_sign(image: RawImage | Image.Image) -> RawImage:
    """Isolate the sign in an RGBA image.

    Edges are found with Canny; if no external contour shows up, both
    thresholds are divided by :data:`THRESHOLD_DECAY` and the search is
    repeated until either threshold drops below 1.

    Returns:
        A copy of ``image`` (same shape and dtype) with everything outside the
        convex hull of the largest contour zeroed.

    Raises:
        CroppingError: If the image is empty or no contour is found.
        InvalidPixelError: If the image is not 4-channel.
    """
    sign = as_array(image)
    if sign.ndim != 3 or sign.shape[2] != PIXEL_CHANNELS:
        raise InvalidPixelError(
            f"Cropping expects an RGBA image, got shape {sign.shape}"
        )
    if sign.shape[0] == 0 or sign.shape[1] == 0:
        raise CroppingError(f"Cannot crop an empty image of shape {sign.shape}")

    gray = cv2.cvtColor(_to_uint8(sign), cv2.COLOR_RGBA2GRAY)
    contours = _find_contours_adapting(gray, *CANNY_THRESHOLDS)
    largest = max(contours, key=cv2.contourArea)
    hull = cv2.convexHull(largest)

    mask = np.zeros(gray.shape, dtype=np.uint8)
    cv2.drawContours(mask, [hull], -1, 255, thickness=cv2.FILLED)

    cropped = sign.copy()
    cropped[mask == 0] = 0
    return cropped


def _to_uint8(image: RawImage) -> RawImage:
    if image.dtype == np.uint8:
        return np.ascontiguousarray(image)
    return np.clip(np.rint(image), 0, 255).astype(np.uint8)


def _find_contours_adapting(
    gray: RawImage, threshold1: float, threshold2: float
) -> list[RawImage]:
    while threshold1 >= 1.0 and threshold2 >= 1.0:
        edges = cv2.Canny(gray, threshold1, threshold2)
        contours, _ = cv2.findContours(
            edges, cv2.RETR_EXTERNAL, cv2.CHAIN_APPROX_SIMPLE
        )
        if contours:
            return list(contours)
        logger.debug(
            f"No contour at Canny thresholds ({threshold1:.2f}, {threshold2:.2f}); "
            "relaxing"
        )
        threshold1 /= THRESHOLD_DECAY
        threshold2 /= THRESHOLD_DECAY
    raise CroppingError("No contour found even after relaxing the edge thresholds")
