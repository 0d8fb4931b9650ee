"""
Activation Functions
====================

Pluggable elementwise activation strategies for the neural network.

Each activation exposes:
    activate(x)              y = f(x)
    activation_derivative(y) dy/dx, computed from the ALREADY-ACTIVATED value y

Taking y instead of x is what the network has on hand after a forward pass
(the node values), and for sigmoid y * (1 - y) is cheaper than recomputing
f(x) first.

Activation objects are stateless and immutable, so layers and cloned
networks share them by reference.

Each activation has a one-line text form used by saved network files:
    Sigmoid
    NoActivation
    LeakyReLU
    ReLUWithSlopes <positive slope> <negative slope>
"""

from abc import ABC, abstractmethod
from typing import Union

import numpy as np


Number = Union[float, np.ndarray]


class UnknownActivationError(ValueError):
    """Raised when an activation description (or object) can't be recognised."""


class ActivationFunction(ABC):
    """Base class for activation strategies."""

    @abstractmethod
    def activate(self, x: Number) -> Number:
        """Apply the activation to x (scalar or array)."""

    @abstractmethod
    def activation_derivative(self, y: Number) -> Number:
        """
        Derivative of the activation at the point whose ACTIVATED value is y.

        Args:
            y: Output of activate(x), scalar or array

        Returns:
            d activate(x) / dx at that point
        """

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        return hash((type(self).__name__, tuple(sorted(vars(self).items()))))

    def __repr__(self) -> str:
        return write_activation(self)


class Sigmoid(ActivationFunction):
    """Logistic function 1 / (1 + e^-x)."""

    def activate(self, x: Number) -> Number:
        return 1 / (1 + np.exp(-x))

    def activation_derivative(self, y: Number) -> Number:
        # sigmoid'(x) = sigmoid(x) * (1 - sigmoid(x))
        return y * (1 - y)


class ReLUWithSlopes(ActivationFunction):
    """
    Piecewise linear unit with configurable slopes.

        f(x) = positive_slope * x   if x > 0
               negative_slope * x   otherwise

    The derivative branches on the sign of the activated value y. That only
    agrees with the sign of x when both slopes are non-negative and the
    positive slope is non-zero, so other slopes are rejected.
    """

    def __init__(self, positive_slope: float, negative_slope: float):
        if positive_slope <= 0:
            raise ValueError(f"Positive slope must be > 0, got {positive_slope}")
        if negative_slope < 0:
            raise ValueError(f"Negative slope must be >= 0, got {negative_slope}")
        self._positive_slope = float(positive_slope)
        self._negative_slope = float(negative_slope)

    @property
    def positive_slope(self) -> float:
        return self._positive_slope

    @property
    def negative_slope(self) -> float:
        return self._negative_slope

    def activate(self, x: Number) -> Number:
        if np.ndim(x) == 0:
            return self._positive_slope * x if x > 0 else self._negative_slope * x
        return np.where(x > 0, self._positive_slope * x, self._negative_slope * x)

    def activation_derivative(self, y: Number) -> Number:
        if np.ndim(y) == 0:
            return self._positive_slope if y > 0 else self._negative_slope
        return np.where(y > 0, self._positive_slope, self._negative_slope)


class LeakyReLU(ReLUWithSlopes):
    """Leaky ReLU: slope 1 above zero, 0.1 below."""

    SUB_ZERO_SLOPE = 0.1

    def __init__(self):
        super().__init__(1.0, self.SUB_ZERO_SLOPE)


class NoActivation(ActivationFunction):
    """Identity, f(x) = x. Used for output layers with raw Q-values."""

    def activate(self, x: Number) -> Number:
        return x

    def activation_derivative(self, y: Number) -> Number:
        return np.ones_like(y) if isinstance(y, np.ndarray) else 1.0


# =============================================================================
# TEXT FORM
# =============================================================================

def write_activation(activator: ActivationFunction) -> str:
    """
    Get the one-line text form of an activation function.

    Raises:
        UnknownActivationError: If the object is not a known activation kind
    """
    # LeakyReLU first, it's a ReLUWithSlopes too
    if isinstance(activator, LeakyReLU):
        return "LeakyReLU"
    if isinstance(activator, ReLUWithSlopes):
        return f"ReLUWithSlopes {activator.positive_slope!r} {activator.negative_slope!r}"
    if isinstance(activator, NoActivation):
        return "NoActivation"
    if isinstance(activator, Sigmoid):
        return "Sigmoid"
    raise UnknownActivationError(f"Unknown activation function type: {type(activator).__name__}")


def read_activation(description: str) -> ActivationFunction:
    """
    Parse the text form written by write_activation().

    Raises:
        UnknownActivationError: If the description names no known activation
            or its parameters are malformed
    """
    words = description.split()
    if not words:
        raise UnknownActivationError("Empty activation description")

    kind = words[0]
    if kind == "Sigmoid" and len(words) == 1:
        return Sigmoid()
    if kind == "NoActivation" and len(words) == 1:
        return NoActivation()
    if kind == "LeakyReLU" and len(words) == 1:
        return LeakyReLU()
    if kind == "ReLUWithSlopes" and len(words) == 3:
        try:
            return ReLUWithSlopes(float(words[1]), float(words[2]))
        except ValueError as e:
            raise UnknownActivationError(f"Bad ReLUWithSlopes description {description!r}: {e}") from e
    raise UnknownActivationError(f"Unknown activation function type: {description!r}")
