"""Evaluation result schema."""

from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, Field


class EvaluationResult(BaseModel, frozen=True):
    """Scores of a trained network on a labeled dataset.

    ``accuracy`` is micro-averaged; ``precision``, ``recall`` and ``f1`` are
    macro-averaged over ``labels``.  ``confusion_matrix[i][j]`` counts rows
    of true class ``i`` predicted as class ``j``.  Skipped rows are counted
    in ``num_skipped`` and excluded from every score.
    """

    accuracy: float
    precision: float
    recall: float
    f1: float
    num_samples: int
    num_skipped: int = 0
    labels: list[str]
    confusion_matrix: list[list[int]]
    created_at: str = Field(default_factory=lambda: datetime.now(tz=UTC).isoformat())

    def stats(self) -> str:
        """Human-readable multi-line summary."""
        width = max((len(label) for label in self.labels), default=0)
        lines = [
            "==========================Scores==========================",
            f" # of classes:    {len(self.labels)}",
            f" # of samples:    {self.num_samples} ({self.num_skipped} skipped)",
            f" Accuracy:        {self.accuracy:.4f}",
            f" Precision:       {self.precision:.4f}",
            f" Recall:          {self.recall:.4f}",
            f" F1 Score:        {self.f1:.4f}",
            "",
            " Confusion matrix (rows = actual, columns = predicted):",
        ]
        for label, row in zip(self.labels, self.confusion_matrix, strict=True):
            counts = " ".join(f"{count:>5d}" for count in row)
            lines.append(f" {label:<{width}} {counts}")
        lines.append("==========================================================")
        return "\n".join(lines)
