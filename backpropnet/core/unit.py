"""Single sigmoid neuron with a bias weight."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .activations import sigmoid
from .errors import OutOfRangeError, ReadError
from .rng import make_rng, rand_int
from .types import Array

WEIGHT_PRECISION = 20


def random_weight(rng: np.random.Generator) -> float:
    """Uniform weight in [-0.7, 0.7] on a 1e-3 grid, never exactly 0."""

    value = 0.0
    while value == 0.0:
        value = (rand_int(rng, 0, 1400) - 700) / 1000.0
    return value


class Unit:
    """A neuron computing ``sigmoid(sum(w[i] * x[i]))``.

    ``x[0]`` is the bias input, fixed at 1, so a unit with ``k`` inputs owns
    ``k + 1`` weights. Weights are drawn from ``rng`` at construction.
    """

    def __init__(self, n_inputs: int = 0, rng: np.random.Generator | None = None) -> None:
        if n_inputs < 0:
            raise ValueError("A unit cannot have a negative number of inputs")
        rng = rng if rng is not None else make_rng()
        self._inputs: Array = np.zeros(n_inputs + 1, dtype=np.float64)
        self._inputs[0] = 1.0
        self._weights: Array = np.array(
            [random_weight(rng) for _ in range(n_inputs + 1)], dtype=np.float64
        )
        self._last_output = 0.0

    @property
    def n_inputs(self) -> int:
        return self._weights.size - 1

    @property
    def n_weights(self) -> int:
        return self._weights.size

    @property
    def last_output(self) -> float:
        return self._last_output

    @property
    def weights(self) -> Array:
        return self._weights.copy()

    def set_input(self, i: int, value: float) -> None:
        if not 1 <= i <= self.n_inputs:
            raise OutOfRangeError(f"Unit input index {i} not in [1, {self.n_inputs}]")
        self._inputs[i] = value

    def set_inputs(self, values: Sequence[float]) -> None:
        # Length mismatches are ignored.
        if len(values) != self.n_inputs:
            return
        self._inputs[1:] = values

    def set_weight(self, i: int, value: float) -> None:
        self._check_weight_index(i)
        self._weights[i] = value

    def set_weights(self, values: Sequence[float]) -> None:
        if len(values) != self.n_weights:
            return
        self._weights[:] = values

    def sum_to_weight(self, i: int, delta: float) -> None:
        self._check_weight_index(i)
        self._weights[i] += delta

    def get_weight(self, i: int) -> float:
        self._check_weight_index(i)
        return float(self._weights[i])

    def get_last_input(self, i: int) -> float:
        if not 0 <= i <= self.n_inputs:
            raise OutOfRangeError(f"Unit input index {i} not in [0, {self.n_inputs}]")
        return float(self._inputs[i])

    def compute_output(self) -> float:
        net = 0.0
        for w, x in zip(self._weights, self._inputs):
            net += w * x
        self._last_output = sigmoid(net)
        return self._last_output

    def to_line(self) -> str:
        """Serialise as ``count,w0,...,w(count-1)``."""

        fields = [str(self.n_weights)]
        fields.extend(f"{w:.{WEIGHT_PRECISION}e}" for w in self._weights)
        return ",".join(fields)

    @classmethod
    def from_line(cls, line: str) -> "Unit":
        fields = [field.strip() for field in line.strip().split(",")]
        if len(fields) < 2:
            raise ReadError(f"Unit line has too few fields: {line!r}")
        try:
            count = int(fields[0])
            weights = [float(value) for value in fields[1:]]
        except ValueError as exc:
            raise ReadError(f"Unit line is not numeric: {line!r}") from exc
        if count != len(weights):
            raise ReadError(
                f"Unit line declares {count} weights but carries {len(weights)}"
            )
        unit = cls.__new__(cls)
        unit._inputs = np.zeros(count, dtype=np.float64)
        unit._inputs[0] = 1.0
        unit._weights = np.asarray(weights, dtype=np.float64)
        unit._last_output = 0.0
        return unit

    def copy(self) -> "Unit":
        clone = Unit.__new__(Unit)
        clone._inputs = self._inputs.copy()
        clone._weights = self._weights.copy()
        clone._last_output = self._last_output
        return clone

    def _check_weight_index(self, i: int) -> None:
        if not 0 <= i < self.n_weights:
            raise OutOfRangeError(f"Weight index {i} not in [0, {self.n_weights - 1}]")

    def __repr__(self) -> str:
        return f"Unit(n_inputs={self.n_inputs})"


__all__ = ["Unit", "random_weight", "WEIGHT_PRECISION"]
