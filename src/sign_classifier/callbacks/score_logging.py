"""Periodic training-loss logging."""

from __future__ import annotations

from typing import Any

import lightning as L
import torch
from loguru import logger


class ScoreIterationCallback(L.Callback):
    """Log the training loss every ``log_frequency`` optimizer iterations.

    The first iteration is always logged.  Logged values are kept in
    :attr:`scores` as ``(iteration, loss)`` pairs.

    Args:
        log_frequency: Number of iterations between two log lines.
    """

    def __init__(self, log_frequency: int = 10) -> None:
        super().__init__()
        if log_frequency <= 0:
            raise ValueError(f"log_frequency must be > 0, got {log_frequency}")
        self.log_frequency = log_frequency
        self.scores: list[tuple[int, float]] = []

    def on_train_batch_end(
        self,
        trainer: L.Trainer,
        pl_module: L.LightningModule,
        outputs: Any,
        batch: Any,
        batch_idx: int,
    ) -> None:
        # global_step has already been advanced past this iteration
        iteration = trainer.global_step - 1
        if iteration % self.log_frequency != 0:
            return
        loss = outputs["loss"] if isinstance(outputs, dict) else outputs
        if isinstance(loss, torch.Tensor):
            loss = loss.item()
        self.scores.append((iteration, float(loss)))
        logger.info(f"Score at iteration {iteration} is {loss:.6f}")
