"""Score a trained network against a labeled dataset."""

from __future__ import annotations

from collections.abc import Sequence
from enum import Enum
from typing import Protocol

import torch
from loguru import logger
from torchmetrics.classification import (
    MulticlassAccuracy,
    MulticlassConfusionMatrix,
    MulticlassF1Score,
    MulticlassPrecision,
    MulticlassRecall,
)

from sign_classifier.data.dataset import SignDataset
from sign_classifier.errors import EvaluationError
from sign_classifier.labels import SignClassification
from sign_classifier.schemas.evaluation import EvaluationResult
from sign_classifier.types import TrainingBatch


class Predictor(Protocol):
    def predict(self, features: torch.Tensor) -> torch.Tensor: ...


class CursorState(Enum):
    PENDING = "pending"
    CONSUMED = "consumed"


class Evaluator:
    """Single-pass cursor over a dataset plus the scores of one model on it.

    The whole dataset is one batch: the cursor yields it once, then reports
    exhaustion until :meth:`reset`.  :meth:`evaluate` always resets first, so
    repeated calls give the same result.

    Args:
        model: Anything with ``predict(features) -> scores``.
        dataset: Dataset to score against; its skipped rows are ignored.
        labels: Class names in index order.  Defaults to the sign category
            names when the dataset has at most that many classes.

    Raises:
        EvaluationError: If ``labels`` does not match the dataset's class count.
    """

    def __init__(
        self,
        model: Predictor,
        dataset: SignDataset,
        labels: Sequence[str] | None = None,
    ) -> None:
        num_classes = dataset.num_classes
        if labels is None:
            names = SignClassification.names()
            labels = (
                names[:num_classes]
                if num_classes <= len(names)
                else [f"class_{i}" for i in range(num_classes)]
            )
        if len(labels) != num_classes:
            raise EvaluationError(
                f"Got {len(labels)} labels for a dataset with {num_classes} classes"
            )
        self.model = model
        self.dataset = dataset
        self.labels = list(labels)
        self._state = CursorState.PENDING

    @property
    def state(self) -> CursorState:
        return self._state

    def has_next(self) -> bool:
        return self._state is CursorState.PENDING

    def next(self) -> TrainingBatch:
        """Return the whole dataset as one batch.

        Raises:
            StopIteration: If the batch was already consumed since the last reset.
        """
        if not self.has_next():
            raise StopIteration
        self._state = CursorState.CONSUMED
        return {"features": self.dataset.features, "labels": self.dataset.labels}

    def reset(self) -> None:
        self._state = CursorState.PENDING

    def __iter__(self) -> Evaluator:
        return self

    def __next__(self) -> TrainingBatch:
        return self.next()

    def evaluate(self) -> EvaluationResult:
        """Run the model once over the dataset and score its predictions.

        Raises:
            EvaluationError: If there is no evaluable row or the model output
                width differs from the dataset's class count.
        """
        self.reset()
        batch = self.next()
        included = self.dataset.included
        if not bool(included.any()):
            raise EvaluationError(
                f"No evaluable rows: all {len(self.dataset)} samples were skipped"
            )

        scores = self.model.predict(batch["features"]).detach().cpu()
        num_classes = len(self.labels)
        if scores.ndim != 2 or scores.shape[1] != num_classes:
            raise EvaluationError(
                f"Model produced scores of shape {tuple(scores.shape)}, expected "
                f"(N, {num_classes})"
            )

        preds = scores[included].argmax(dim=1)
        target = self.dataset.class_indices()[included]

        accuracy = MulticlassAccuracy(num_classes=num_classes, average="micro")
        precision = MulticlassPrecision(num_classes=num_classes, average="macro")
        recall = MulticlassRecall(num_classes=num_classes, average="macro")
        f1 = MulticlassF1Score(num_classes=num_classes, average="macro")
        confusion = MulticlassConfusionMatrix(num_classes=num_classes)

        result = EvaluationResult(
            accuracy=accuracy(preds, target).item(),
            precision=precision(preds, target).item(),
            recall=recall(preds, target).item(),
            f1=f1(preds, target).item(),
            num_samples=int(included.sum().item()),
            num_skipped=len(self.dataset.skipped),
            labels=self.labels,
            confusion_matrix=confusion(preds, target).to(torch.int64).tolist(),
        )
        logger.info(
            f"Evaluated {result.num_samples} samples: accuracy={result.accuracy:.4f} "
            f"f1={result.f1:.4f}"
        )
        return result
