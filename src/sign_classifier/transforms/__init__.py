"""Image-level primitives applied before feature extraction.

``rescale`` resizes to the fixed feature grid; ``crop_sign`` clears the
background around the sign.  Both operate on ``(rows, cols, channels)``
numpy arrays and accept Pillow images.
"""

from sign_classifier.transforms.crop import crop_sign
from sign_classifier.transforms.resize import rescale

__all__ = [
    "crop_sign",
    "rescale",
]
