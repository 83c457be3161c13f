"""Pixel normalization and image feature extraction."""

from sign_classifier.features.extractor import FeatureExtractor
from sign_classifier.features.pixel import normalize_pixel, normalize_pixels

__all__ = [
    "FeatureExtractor",
    "normalize_pixel",
    "normalize_pixels",
]
