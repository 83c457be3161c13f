"""Result schemas for sign_classifier."""

from sign_classifier.schemas.evaluation import EvaluationResult

__all__ = ["EvaluationResult"]
