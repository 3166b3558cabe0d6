"""Online back-propagation with momentum and L2 regularisation."""

from __future__ import annotations

from typing import List, Sequence

from .activations import sigmoid_deriv
from .network import Network


class BackPropagation:
    """One forward pass plus one gradient/weight-update pass per call.

    The weight update is::

        dw = eta * delta * x - 2 * eta * lambda * w + alpha * m

    where ``m`` is the momentum of the *unit*: a single scalar holding the
    last delta applied to any of its weights. Within one :meth:`compute` call
    the momentum used for weight ``k`` is therefore the delta of weight
    ``k - 1`` of the same unit. Bias weights are never regularised.
    """

    def __init__(
        self,
        learning_rate: float = 0.0,
        momentum_rate: float = 0.0,
        regularization_rate: float = 0.0,
    ) -> None:
        self.learning_rate = float(learning_rate)
        self.momentum_rate = float(momentum_rate)
        self.regularization_rate = float(regularization_rate)
        self._network: Network | None = None
        self._momentum: List[List[float]] = []

    @property
    def model(self) -> Network | None:
        return self._network

    @property
    def momentum(self) -> List[List[float]]:
        return [list(row) for row in self._momentum]

    def set_model(self, network: Network) -> None:
        """Attach ``network`` and zero the momentum table."""

        if network.n_layers < 2:
            raise ValueError("Back-propagation needs at least one hidden layer and an output layer")
        self._network = network
        self._momentum = [
            [0.0] * network.layer_size(layer) for layer in range(network.n_layers)
        ]

    def compute(self, inputs: Sequence[float], target: Sequence[float]) -> None:
        net = self._network
        if net is None:
            raise RuntimeError("No model attached, call set_model() first")
        if len(inputs) != net.n_inputs:
            raise ValueError(f"Expected {net.n_inputs} inputs, got {len(inputs)}")
        if len(target) != net.n_outputs:
            raise ValueError(f"Expected {net.n_outputs} targets, got {len(target)}")

        # forward phase
        net.set_inputs(inputs)
        net.compute()

        # output layer
        layer = net.n_layers - 1
        deltas = [
            (float(target[j]) - net.get_output(j)) * sigmoid_deriv(net.get_output(j))
            for j in range(net.layer_size(layer))
        ]
        errors = self._update_layer(layer, deltas, net.layer_size(layer - 1))

        # hidden layers, last to first
        for layer in range(net.n_layers - 2, -1, -1):
            deltas = [
                errors[i] * sigmoid_deriv(net.get_unit_output(layer, i))
                for i in range(net.layer_size(layer))
            ]
            upstream = net.layer_size(layer - 1) if layer > 0 else net.n_inputs
            errors = self._update_layer(layer, deltas, upstream)

    def _update_layer(self, layer: int, deltas: Sequence[float], upstream: int) -> List[float]:
        """Update every weight of ``layer`` and return the propagated errors."""

        net = self._network
        errors = [0.0] * upstream
        for unit, delta in enumerate(deltas):
            self._update_weight(layer, unit, 0, delta, 0.0)
            for j in range(upstream):
                errors[j] += delta * net.get_weight(layer, unit, j + 1)
                self._update_weight(layer, unit, j + 1, delta, self.regularization_rate)
        return errors

    def _update_weight(self, layer: int, unit: int, index: int, delta: float, lam: float) -> None:
        net = self._network
        eta = self.learning_rate
        dw = (
            eta * delta * net.get_unit_input(layer, unit, index)
            - 2 * eta * lam * net.get_weight(layer, unit, index)
            + self.momentum_rate * self._momentum[layer][unit]
        )
        net.sum_to_weight(layer, unit, index, dw)
        self._momentum[layer][unit] = dw

    def __repr__(self) -> str:
        return (
            f"BackPropagation(learning_rate={self.learning_rate}, "
            f"momentum_rate={self.momentum_rate}, "
            f"regularization_rate={self.regularization_rate})"
        )


__all__ = ["BackPropagation"]
