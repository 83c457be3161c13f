"""Builders that materialize and train :class:`SignClassifierNetwork`."""

from __future__ import annotations

import math
from collections.abc import Sequence

import lightning as L
import torch
from loguru import logger
from torch.utils.data import DataLoader

from sign_classifier.activations import Activation, ActivationFunction, ParametricSigmoid
from sign_classifier.callbacks import ModelInfoCallback, ScoreIterationCallback
from sign_classifier.config import LayerSpec, ModelConfig
from sign_classifier.data.dataset import SignDataset
from sign_classifier.errors import InvalidModelConfigurationError
from sign_classifier.models.network import DenseLayer, SignClassifierNetwork
from sign_classifier.utils.hydra import register


@register(group="builder", name="network")
class NetworkBuilder:
    """Build a feed-forward classifier from a :class:`ModelConfig` and train it.

    The config has already been validated, so a builder can always build.
    Training runs exactly ``num_epochs`` full-batch Adam steps: the whole
    dataset is one batch, seen once per epoch, in a fixed order.

    Args:
        config: Validated model configuration.
    """

    def __init__(self, config: ModelConfig) -> None:
        self.config = config

    def _hidden_activation(self, spec: LayerSpec) -> ActivationFunction:
        return spec.activation.build()

    def build(self) -> SignClassifierNetwork:
        """Materialize an untrained network with seeded weights."""
        cfg = self.config
        generator = torch.Generator().manual_seed(cfg.seed)
        layers: list[DenseLayer] = []
        in_features = cfg.input_size
        for spec in cfg.hidden_layers:
            layers.append(
                DenseLayer(
                    in_features, spec.width, self._hidden_activation(spec), generator
                )
            )
            in_features = spec.width
        layers.append(
            DenseLayer(
                in_features,
                cfg.output_size,
                cfg.output_activation.build(),
                generator,
            )
        )
        network = SignClassifierNetwork(layers, learning_rate=cfg.learning_rate)
        logger.debug(
            f"Built network {cfg.input_size} -> "
            f"{' -> '.join(str(s.width) for s in cfg.hidden_layers)} -> "
            f"{cfg.output_size} (seed={cfg.seed})"
        )
        return network

    def build_and_train(
        self,
        dataset: SignDataset,
        callbacks: Sequence[L.Callback] | None = None,
    ) -> SignClassifierNetwork:
        """Build a network, train it on ``dataset`` and return it frozen.

        Raises:
            InvalidModelConfigurationError: If ``dataset`` is empty or its
                feature or label width differs from the configured sizes.
            TrainingFaultError: If a training step produces a non-finite loss.
        """
        self._check_dataset(dataset)
        network = self.build()
        cfg = self.config

        trainer_callbacks: list[L.Callback] = [
            ScoreIterationCallback(cfg.log_frequency)
        ]
        if cfg.model_summary:
            trainer_callbacks.append(ModelInfoCallback())
        trainer_callbacks.extend(callbacks or [])

        trainer = L.Trainer(
            max_epochs=cfg.num_epochs,
            accelerator=cfg.accelerator,
            devices=1,
            logger=False,
            enable_checkpointing=False,
            enable_progress_bar=False,
            enable_model_summary=False,
            num_sanity_val_steps=0,
            callbacks=trainer_callbacks,
        )
        loader = DataLoader(dataset, batch_size=len(dataset), shuffle=False)

        logger.info(
            f"Training for {cfg.num_epochs} epochs on {len(dataset)} samples "
            f"(lr={cfg.learning_rate})"
        )
        trainer.fit(network, train_dataloaders=loader)
        network.freeze()
        if network.epoch_losses:
            logger.info(f"Training finished, final loss {network.epoch_losses[-1]:.6f}")
        return network

    def _check_dataset(self, dataset: SignDataset) -> None:
        cfg = self.config
        if len(dataset) == 0:
            raise InvalidModelConfigurationError("Training dataset is empty")
        if dataset.num_features != cfg.input_size:
            raise InvalidModelConfigurationError(
                f"Dataset has {dataset.num_features} features but input_size is "
                f"{cfg.input_size}"
            )
        if dataset.num_classes != cfg.output_size:
            raise InvalidModelConfigurationError(
                f"Dataset has {dataset.num_classes} label columns but output_size "
                f"is {cfg.output_size}"
            )


@register(group="builder", name="parametric_sigmoid", alpha=1.0)
class ParametricSigmoidNetworkBuilder(NetworkBuilder):
    """A :class:`NetworkBuilder` whose hidden layers use ``ParametricSigmoid(alpha)``.

    Every hidden layer must be declared with the sigmoid activation; the
    steepness ``alpha`` then replaces the plain sigmoid in all of them.  The
    output layer keeps the configured output activation.

    Args:
        config: Validated model configuration.
        alpha: Sigmoid steepness, strictly positive.

    Raises:
        InvalidModelConfigurationError: If ``alpha <= 0`` or a hidden layer
            declares an activation other than sigmoid.
    """

    def __init__(self, config: ModelConfig, alpha: float) -> None:
        try:
            steepness = float(alpha)
        except (TypeError, ValueError):
            steepness = math.nan
        if not (math.isfinite(steepness) and steepness > 0):
            raise InvalidModelConfigurationError(
                f"Alpha must be a finite number greater than 0, got {alpha!r}"
            )
        for i, spec in enumerate(config.hidden_layers):
            if spec.activation is not Activation.SIGMOID:
                raise InvalidModelConfigurationError(
                    f"Hidden layer {i} uses {spec.activation.value}; every hidden "
                    "layer must use the sigmoid activation"
                )
        super().__init__(config)
        self.alpha = steepness

    @classmethod
    def from_builder(
        cls, builder: NetworkBuilder, alpha: float
    ) -> ParametricSigmoidNetworkBuilder:
        """Reuse the full configuration of ``builder``, output activation included."""
        return cls(builder.config, alpha)

    def _hidden_activation(self, spec: LayerSpec) -> ActivationFunction:
        return ParametricSigmoid(self.alpha)
