"""Dataset assembly for sign_classifier."""

from sign_classifier.data.assembler import DatasetAssembler
from sign_classifier.data.dataset import ImageSample, LoadableImage, SignDataset

__all__ = [
    "DatasetAssembler",
    "ImageSample",
    "LoadableImage",
    "SignDataset",
]
