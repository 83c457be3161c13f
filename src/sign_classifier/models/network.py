"""Fully-connected sign classifier as a LightningModule."""

from __future__ import annotations

import math
from collections.abc import Sequence

import lightning as L
import torch
import torch.nn.functional as F
from loguru import logger
from torch import nn

from sign_classifier.activations import ActivationFunction, Softmax
from sign_classifier.errors import TrainingFaultError
from sign_classifier.types import TrainingBatch

# Floor for probabilities before log() when the output activation is not softmax.
_LOG_EPS = 1e-12


class DenseLayer(nn.Module):
    """Affine map followed by an :class:`ActivationFunction`.

    Weights are Xavier-uniform initialised from ``generator`` and biases start
    at zero, so identical generators give identical layers without touching
    torch's global RNG.
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        activation: ActivationFunction,
        generator: torch.Generator,
    ) -> None:
        super().__init__()
        self.in_features = in_features
        self.out_features = out_features
        self.activation = activation
        limit = math.sqrt(6.0 / (in_features + out_features))
        weight = torch.empty(out_features, in_features)
        weight.uniform_(-limit, limit, generator=generator)
        self.weight = nn.Parameter(weight)
        self.bias = nn.Parameter(torch.zeros(out_features))

    def pre_activation(self, x: torch.Tensor) -> torch.Tensor:
        return F.linear(x, self.weight, self.bias)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.activation(self.pre_activation(x))

    def extra_repr(self) -> str:
        return (
            f"in_features={self.in_features}, out_features={self.out_features}, "
            f"activation={self.activation!r}"
        )


class SignClassifierNetwork(L.LightningModule):
    """Stack of dense layers trained full-batch with Adam.

    ``layers`` holds the hidden layers in order followed by the output layer.
    The loss is the negative log-likelihood of the one-hot label rows; all-zero
    (skipped) rows contribute nothing.  After :meth:`freeze` the network is
    read-only and refuses to be fitted again.

    Args:
        layers: Hidden layers first to last, then the output layer.  Each
            layer's ``in_features`` must equal the previous ``out_features``.
        learning_rate: Adam step size.
    """

    def __init__(self, layers: Sequence[DenseLayer], learning_rate: float) -> None:
        super().__init__()
        if not layers:
            raise ValueError("A network needs at least an output layer")
        for i in range(1, len(layers)):
            if layers[i].in_features != layers[i - 1].out_features:
                raise ValueError(
                    f"Layer {i} expects {layers[i].in_features} inputs but layer "
                    f"{i - 1} produces {layers[i - 1].out_features}"
                )
        self.layers = nn.ModuleList(layers)
        self.learning_rate = learning_rate
        self.epoch_losses: list[float] = []
        self._frozen_after_training = False

    @property
    def input_size(self) -> int:
        return self.layers[0].in_features  # type: ignore[no-any-return]

    @property
    def output_size(self) -> int:
        return self.layers[-1].out_features  # type: ignore[no-any-return]

    @property
    def hidden_layers(self) -> list[DenseLayer]:
        return list(self.layers[:-1])  # type: ignore[arg-type]

    @property
    def output_layer(self) -> DenseLayer:
        return self.layers[-1]  # type: ignore[return-value]

    def logits(self, features: torch.Tensor) -> torch.Tensor:
        """Output-layer pre-activations."""
        x = features
        for layer in self.hidden_layers:
            x = layer(x)
        return self.output_layer.pre_activation(x)

    def forward(self, features: torch.Tensor) -> torch.Tensor:
        return self.output_layer.activation(self.logits(features))

    def predict(self, features: torch.Tensor) -> torch.Tensor:
        """Output activations for ``features`` without tracking gradients."""
        with torch.no_grad():
            return self(features.to(self.device))

    def compute_loss(self, logits: torch.Tensor, labels: torch.Tensor) -> torch.Tensor:
        activation = self.output_layer.activation
        if isinstance(activation, Softmax):
            log_probs = F.log_softmax(logits, dim=1)
        else:
            log_probs = torch.log(activation(logits).clamp_min(_LOG_EPS))
        return -(labels * log_probs).sum(dim=1).mean()

    def on_fit_start(self) -> None:
        if self._frozen_after_training:
            raise TrainingFaultError(
                "Network is already trained and frozen; build a new one to retrain"
            )

    def training_step(self, batch: TrainingBatch, batch_idx: int) -> torch.Tensor:
        features, labels = batch["features"], batch["labels"]
        loss = self.compute_loss(self.logits(features), labels)
        if not torch.isfinite(loss):
            raise TrainingFaultError(
                f"Non-finite loss {loss.item()} in epoch {self.current_epoch}; "
                "aborting training"
            )
        self.log(
            "train/loss",
            loss,
            on_step=True,
            on_epoch=True,
            batch_size=features.shape[0],
        )
        self.epoch_losses.append(loss.item())
        return loss

    def configure_optimizers(self) -> torch.optim.Optimizer:
        return torch.optim.Adam(self.parameters(), lr=self.learning_rate)

    def freeze(self) -> None:
        """Make the network read-only for evaluation."""
        super().freeze()
        self._frozen_after_training = True
        logger.debug(f"{type(self).__name__} frozen after training")
