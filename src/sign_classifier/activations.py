"""Activation functions with hand-derived gradients.

Every activation implements the same two-method interface: ``forward(x)``
and ``backward(x, upstream_grad)``.  Calling an activation routes it through
:class:`_ActivationFunction`, a ``torch.autograd.Function`` whose backward
pass is the activation's own ``backward``; autograd never differentiates the
forward expression itself.  All implementations are element-wise except
:class:`Softmax`, which acts on the last dimension.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

import torch

from sign_classifier.errors import InvalidActivationParameterError

_SQRT_2 = math.sqrt(2.0)
_INV_SQRT_2PI = 1.0 / math.sqrt(2.0 * math.pi)


def _stable_sigmoid(z: torch.Tensor) -> torch.Tensor:
    """``1 / (1 + exp(-z))`` without ever exponentiating a positive number."""
    e = torch.exp(-z.abs())
    return torch.where(z >= 0, 1.0 / (1.0 + e), e / (1.0 + e))


def _stable_softplus(z: torch.Tensor) -> torch.Tensor:
    """``log(1 + exp(z))`` split so that exp never overflows."""
    return z.clamp_min(0) + torch.log1p(torch.exp(-z.abs()))


class ActivationFunction(ABC):
    """Stateless activation with an explicit analytic gradient."""

    name: str = "activation"

    @abstractmethod
    def forward(self, x: torch.Tensor) -> torch.Tensor:
        """Apply the activation to ``x``."""

    @abstractmethod
    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        """Gradient of the loss w.r.t. ``x`` given the gradient w.r.t. the output."""

    def __call__(self, x: torch.Tensor) -> torch.Tensor:
        return apply_activation(x, self)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class _ActivationFunction(torch.autograd.Function):
    """Bridges :class:`ActivationFunction` into autograd."""

    @staticmethod
    def forward(  # type: ignore[override]
        ctx: Any, x: torch.Tensor, activation: ActivationFunction
    ) -> torch.Tensor:
        ctx.activation = activation
        ctx.save_for_backward(x)
        return activation.forward(x)

    @staticmethod
    def backward(  # type: ignore[override]
        ctx: Any, grad_output: torch.Tensor
    ) -> tuple[torch.Tensor, None]:
        (x,) = ctx.saved_tensors
        return ctx.activation.backward(x, grad_output), None


def apply_activation(x: torch.Tensor, activation: ActivationFunction) -> torch.Tensor:
    """Apply ``activation`` so that its hand-written backward is used by autograd."""
    return _ActivationFunction.apply(x, activation)  # type: ignore[no-any-return]


class ParametricSigmoid(ActivationFunction):
    """Sigmoid with a fixed steepness constant: ``h(x) = 1 / (1 + exp(-k x))``.

    The derivative is ``k * h(x) * (1 - h(x))``.  ``k`` is a hyperparameter,
    not a trainable weight.  ``k <= 0`` is rejected: ``k = 0`` collapses the
    function to the constant 0.5 and ``k < 0`` makes it decreasing.

    Args:
        k: Strictly positive, finite steepness constant.

    Raises:
        InvalidActivationParameterError: If ``k`` is not finite or not > 0.
    """

    name = "parametric_sigmoid"

    def __init__(self, k: float) -> None:
        k = float(k)
        if not (math.isfinite(k) and k > 0.0):
            raise InvalidActivationParameterError(
                f"Steepness k must be a finite number greater than 0, got {k}"
            )
        self.k = k

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return _stable_sigmoid(self.k * x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        h = self.forward(x)
        return upstream_grad * (self.k * h * (1.0 - h))

    def __repr__(self) -> str:
        return f"ParametricSigmoid(k={self.k})"


class Identity(ActivationFunction):
    name = "identity"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.clone()

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        return upstream_grad.clone()


class ReLU(ActivationFunction):
    name = "relu"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.clamp_min(0)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        return upstream_grad * (x > 0).to(upstream_grad.dtype)


class LeakyReLU(ActivationFunction):
    name = "leakyrelu"

    def __init__(self, negative_slope: float = 0.01) -> None:
        self.negative_slope = negative_slope

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.where(x > 0, x, self.negative_slope * x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        slope = torch.where(
            x > 0, torch.ones_like(x), torch.full_like(x, self.negative_slope)
        )
        return upstream_grad * slope


class ELU(ActivationFunction):
    name = "elu"

    def __init__(self, alpha: float = 1.0, scale: float = 1.0) -> None:
        self.alpha = alpha
        self.scale = scale

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        # clamp keeps expm1 away from overflow on the unused branch
        negative = self.alpha * torch.expm1(x.clamp_max(0))
        return self.scale * torch.where(x > 0, x, negative)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        negative = self.alpha * torch.exp(x.clamp_max(0))
        return upstream_grad * self.scale * torch.where(
            x > 0, torch.ones_like(x), negative
        )


class SELU(ELU):
    """Scaled ELU with the self-normalizing constants of Klambauer et al."""

    name = "selu"

    def __init__(self) -> None:
        super().__init__(alpha=1.6732632423543772, scale=1.0507009873554805)


class Sigmoid(ActivationFunction):
    name = "sigmoid"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return _stable_sigmoid(x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        s = _stable_sigmoid(x)
        return upstream_grad * s * (1.0 - s)


class HardSigmoid(ActivationFunction):
    """Piecewise-linear sigmoid: ``clamp(0.2 x + 0.5, 0, 1)``."""

    name = "hardsigmoid"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return (0.2 * x + 0.5).clamp(0.0, 1.0)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        inside = ((x > -2.5) & (x < 2.5)).to(upstream_grad.dtype)
        return upstream_grad * 0.2 * inside


class Tanh(ActivationFunction):
    name = "tanh"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return torch.tanh(x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        t = torch.tanh(x)
        return upstream_grad * (1.0 - t * t)


class HardTanh(ActivationFunction):
    name = "hardtanh"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x.clamp(-1.0, 1.0)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        inside = ((x > -1.0) & (x < 1.0)).to(upstream_grad.dtype)
        return upstream_grad * inside


class Softplus(ActivationFunction):
    name = "softplus"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return _stable_softplus(x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        return upstream_grad * _stable_sigmoid(x)


class Swish(ActivationFunction):
    """``x * sigmoid(x)``."""

    name = "swish"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x * _stable_sigmoid(x)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        s = _stable_sigmoid(x)
        return upstream_grad * (s + x * s * (1.0 - s))


class GELU(ActivationFunction):
    """Exact GELU, ``x * Phi(x)`` with ``Phi`` the standard normal CDF."""

    name = "gelu"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return 0.5 * x * (1.0 + torch.erf(x / _SQRT_2))

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        cdf = 0.5 * (1.0 + torch.erf(x / _SQRT_2))
        pdf = _INV_SQRT_2PI * torch.exp(-0.5 * x * x)
        return upstream_grad * (cdf + x * pdf)


class Mish(ActivationFunction):
    """``x * tanh(softplus(x))``."""

    name = "mish"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return x * torch.tanh(_stable_softplus(x))

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        t = torch.tanh(_stable_softplus(x))
        return upstream_grad * (t + x * _stable_sigmoid(x) * (1.0 - t * t))


class Softmax(ActivationFunction):
    """Softmax over the last dimension."""

    name = "softmax"

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        shifted = x - x.amax(dim=-1, keepdim=True)
        exp_x = torch.exp(shifted)
        return exp_x / exp_x.sum(dim=-1, keepdim=True)

    def backward(
        self, x: torch.Tensor, upstream_grad: torch.Tensor
    ) -> torch.Tensor:
        # Jacobian-vector product: s * (g - <g, s>)
        s = self.forward(x)
        dot = (upstream_grad * s).sum(dim=-1, keepdim=True)
        return s * (upstream_grad - dot)


class Activation(str, Enum):
    """Names of the standard activations, usable directly in configs."""

    IDENTITY = "identity"
    RELU = "relu"
    LEAKYRELU = "leakyrelu"
    ELU = "elu"
    SELU = "selu"
    GELU = "gelu"
    SWISH = "swish"
    MISH = "mish"
    TANH = "tanh"
    HARDTANH = "hardtanh"
    SIGMOID = "sigmoid"
    HARDSIGMOID = "hardsigmoid"
    SOFTPLUS = "softplus"
    SOFTMAX = "softmax"

    def build(self) -> ActivationFunction:
        """Return a fresh instance of the activation this name refers to."""
        return _REGISTRY[self]()


_REGISTRY: dict[Activation, type[ActivationFunction]] = {
    Activation.IDENTITY: Identity,
    Activation.RELU: ReLU,
    Activation.LEAKYRELU: LeakyReLU,
    Activation.ELU: ELU,
    Activation.SELU: SELU,
    Activation.GELU: GELU,
    Activation.SWISH: Swish,
    Activation.MISH: Mish,
    Activation.TANH: Tanh,
    Activation.HARDTANH: HardTanh,
    Activation.SIGMOID: Sigmoid,
    Activation.HARDSIGMOID: HardSigmoid,
    Activation.SOFTPLUS: Softplus,
    Activation.SOFTMAX: Softmax,
}
