"""
Activation Functions

Scalar activation functions for creature brains. The enum values double
as the activation names stored in serialized networks.
"""

from enum import Enum
from typing import Callable, Dict, Tuple, Union

import numpy as np

from .exceptions import DegenerateNetworkError


class Activation(Enum):
    """Supported neuron activations (value = serialized name)."""
    SIGMOID = "sigmoid"
    TANH = "tanh"
    RELU = "relu"
    LEAKY_RELU = "leakyRelu"
    LINEAR = "linear"


LEAKY_SLOPE = 0.01


def sigmoid(x: float) -> float:
    # Saturate outside +-500 to keep exp() finite
    if x < -500:
        return 0.0
    if x > 500:
        return 1.0
    return float(1.0 / (1.0 + np.exp(-x)))


def tanh(x: float) -> float:
    return float(np.tanh(x))


def relu(x: float) -> float:
    return x if x > 0 else 0.0


def leaky_relu(x: float) -> float:
    return x if x > 0 else LEAKY_SLOPE * x


def linear(x: float) -> float:
    return x


ACTIVATION_FUNCTIONS: Dict[Activation, Callable[[float], float]] = {
    Activation.SIGMOID: sigmoid,
    Activation.TANH: tanh,
    Activation.RELU: relu,
    Activation.LEAKY_RELU: leaky_relu,
    Activation.LINEAR: linear,
}


def resolve_activation(activation: Union[str, Activation]) -> Activation:
    """Map an activation name or enum member to the enum member."""
    if isinstance(activation, Activation):
        return activation
    try:
        return Activation(activation)
    except ValueError:
        raise DegenerateNetworkError(f"Unknown activation function: {activation!r}") from None


def get_activation(activation: Union[str, Activation]) -> Tuple[Activation, Callable[[float], float]]:
    """
    Look up an activation function.

    Args:
        activation: Serialized name (e.g. "leakyRelu") or Activation member

    Returns:
        Tuple of (Activation, function)
    """
    kind = resolve_activation(activation)
    return kind, ACTIVATION_FUNCTIONS[kind]
