"""Network construction and training for sign_classifier."""

from sign_classifier.models.builder import (
    NetworkBuilder,
    ParametricSigmoidNetworkBuilder,
)
from sign_classifier.models.network import DenseLayer, SignClassifierNetwork

__all__ = [
    "DenseLayer",
    "NetworkBuilder",
    "ParametricSigmoidNetworkBuilder",
    "SignClassifierNetwork",
]
