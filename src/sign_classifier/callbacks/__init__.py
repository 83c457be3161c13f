"""Training callbacks for sign_classifier."""

from sign_classifier.callbacks.model_info import ModelInfoCallback
from sign_classifier.callbacks.score_logging import ScoreIterationCallback

__all__ = [
    "ModelInfoCallback",
    "ScoreIterationCallback",
]
