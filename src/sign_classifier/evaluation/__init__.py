"""Model evaluation for sign_classifier."""

from sign_classifier.evaluation.evaluator import CursorState, Evaluator

__all__ = ["CursorState", "Evaluator"]
