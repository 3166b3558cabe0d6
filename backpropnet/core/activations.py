"""Activation utilities for backpropnet."""

from __future__ import annotations

import numpy as np


def sigmoid(net: float) -> float:
    """Return the logistic activation ``1 / (1 + e^(-net))``."""

    with np.errstate(over="ignore"):
        return float(1.0 / (1.0 + np.exp(-net)))


def sigmoid_deriv(output: float) -> float:
    """Derivative of the sigmoid expressed through its output ``y``."""

    return output * (1.0 - output)
