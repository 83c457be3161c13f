"""Pydantic frozen configuration models for sign_classifier.

Every model validates itself exhaustively at construction time, before any
image is touched or any layer is materialized.  Out-of-range values raise the
domain errors from :mod:`sign_classifier.errors`; those are not ``ValueError``
subclasses, so pydantic lets them propagate unchanged.  Missing, wrong-typed
or unknown values fail pydantic's own validation, which is re-raised as the
same domain error with every offending field named.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from pydantic import BaseModel, ValidationError, field_validator, model_validator

from sign_classifier.activations import Activation
from sign_classifier.errors import (
    InvalidConfigurationError,
    InvalidModelConfigurationError,
)

RGB_CHANNELS = 3
RGBA_CHANNELS = 4


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or '<root>'}: {err['msg']}"
        for err in error.errors()
    )


class DatasetConfig(BaseModel, frozen=True):
    """Configuration for :class:`~sign_classifier.data.DatasetAssembler`.

    Dimensions and class count default to 0 so that a config built without
    them fails with a message saying which one is missing.
    """

    target_rows: int = 0
    target_cols: int = 0
    num_classes: int = 0
    include_alpha_channel: bool = True
    crop_signs: bool = True
    num_workers: int = 0

    @model_validator(mode="wrap")
    @classmethod
    def _as_configuration_error(
        cls, data: Any, handler: Callable[[Any], DatasetConfig]
    ) -> DatasetConfig:
        try:
            return handler(data)
        except ValidationError as e:
            raise InvalidConfigurationError(
                f"Invalid dataset configuration: {_describe(e)}"
            ) from e

    @model_validator(mode="after")
    def _check_positive(self) -> DatasetConfig:
        if self.target_rows <= 0 or self.target_cols <= 0:
            raise InvalidConfigurationError(
                "Target dimensions must be positive, got "
                f"target_rows={self.target_rows}, target_cols={self.target_cols}"
            )
        if self.num_classes <= 0:
            raise InvalidConfigurationError(
                f"Number of classes must be positive, got num_classes={self.num_classes}"
            )
        if self.num_workers < 0:
            raise InvalidConfigurationError(
                f"num_workers must be >= 0, got {self.num_workers}"
            )
        return self

    @property
    def channels(self) -> int:
        return RGBA_CHANNELS if self.include_alpha_channel else RGB_CHANNELS

    @property
    def feature_length(self) -> int:
        """Length of every feature vector produced under this config."""
        return self.target_rows * self.target_cols * self.channels


class LayerSpec(BaseModel, frozen=True):
    """One hidden layer: its output width and its activation."""

    width: int
    activation: Activation = Activation.RELU


class ModelConfig(BaseModel, frozen=True):
    """Configuration for :class:`~sign_classifier.models.NetworkBuilder`.

    ``hidden_layers`` lists the hidden layers first to last; the output layer
    is described separately by ``output_size`` and ``output_activation``.
    Plain ``(width, activation)`` pairs are accepted for hidden layers.
    """

    input_size: int = 0
    output_size: int = 0
    hidden_layers: tuple[LayerSpec, ...] = ()
    output_activation: Activation = Activation.SOFTMAX
    learning_rate: float = 0.01
    num_epochs: int = 500
    log_frequency: int = 10
    seed: int = 1
    accelerator: str = "cpu"
    model_summary: bool = False

    @model_validator(mode="wrap")
    @classmethod
    def _as_model_configuration_error(
        cls, data: Any, handler: Callable[[Any], ModelConfig]
    ) -> ModelConfig:
        try:
            return handler(data)
        except ValidationError as e:
            raise InvalidModelConfigurationError(
                f"Invalid model configuration: {_describe(e)}"
            ) from e

    @field_validator("hidden_layers", mode="before")
    @classmethod
    def _coerce_pairs(cls, value: Any) -> Any:
        if isinstance(value, Sequence) and not isinstance(value, str):
            return tuple(
                {"width": item[0], "activation": item[1]}
                if isinstance(item, (tuple, list))
                else item
                for item in value
            )
        return value

    @model_validator(mode="after")
    def _check_ranges(self) -> ModelConfig:
        if self.input_size <= 0:
            raise InvalidModelConfigurationError(
                f"Input size must be set and greater than 0, got {self.input_size}"
            )
        if self.output_size <= 0:
            raise InvalidModelConfigurationError(
                f"Output size must be set and greater than 0, got {self.output_size}"
            )
        if not self.hidden_layers:
            raise InvalidModelConfigurationError(
                "Hidden layer configuration must contain at least one layer"
            )
        for i, layer in enumerate(self.hidden_layers):
            if layer.width <= 0:
                raise InvalidModelConfigurationError(
                    f"Hidden layer {i} must have a positive width, got {layer.width}"
                )
        if not self.learning_rate > 0:
            raise InvalidModelConfigurationError(
                f"Learning rate must be greater than 0, got {self.learning_rate}"
            )
        if self.num_epochs <= 0:
            raise InvalidModelConfigurationError(
                f"Number of epochs must be greater than 0, got {self.num_epochs}"
            )
        if self.log_frequency <= 0:
            raise InvalidModelConfigurationError(
                f"Log frequency must be greater than 0, got {self.log_frequency}"
            )
        return self
