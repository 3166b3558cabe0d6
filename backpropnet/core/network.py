"""Fully-connected multi-layer network of sigmoid units."""

from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import IO, Iterator, List, Mapping, Sequence

import numpy as np

from .errors import FileError, OutOfRangeError, ReadError
from .rng import make_rng
from .types import Array, ModelDescription
from .unit import Unit


class Network:
    """Feed-forward network whose every layer is fully connected to the next.

    ``units`` lists the number of units of each layer, the output layer
    included, so ``Network(3, [4, 2])`` has three inputs, one hidden layer of
    four units and two outputs. The model file format written by
    :meth:`write` is::

        # number of inputs
        ninputs
        # number of layers
        nlayers
        # units for any layer
        nunits(0),...,nunits(n-1)
        # units layer 0
        unit(0,0)
        ...

    where each unit line is produced by :meth:`Unit.to_line`.
    """

    def __init__(
        self,
        n_inputs: int,
        units: Sequence[int],
        rng: np.random.Generator | None = None,
    ) -> None:
        if n_inputs < 0:
            raise ValueError("A network cannot have a negative number of inputs")
        if not units:
            raise ValueError("A network needs at least one layer")
        if any(int(n) <= 0 for n in units):
            raise ValueError(f"Every layer needs at least one unit, got {list(units)}")
        rng = rng if rng is not None else make_rng()
        layers: List[List[Unit]] = []
        prev = int(n_inputs)
        for size in units:
            layers.append([Unit(prev, rng) for _ in range(int(size))])
            prev = int(size)
        self._set_layers(int(n_inputs), layers)

    def _set_layers(self, n_inputs: int, layers: List[List[Unit]]) -> None:
        self._n_inputs = n_inputs
        self._layers = layers
        self._inputs: Array = np.zeros(n_inputs, dtype=np.float64)
        self._outputs: Array = np.zeros(len(layers[-1]), dtype=np.float64)

    @classmethod
    def _from_layers(cls, n_inputs: int, layers: List[List[Unit]]) -> "Network":
        network = cls.__new__(cls)
        network._set_layers(n_inputs, layers)
        return network

    # ------------------------------------------------------------------
    # Inputs and forward pass

    def set_input(self, i: int, value: float) -> None:
        if not 0 <= i < self._n_inputs:
            raise OutOfRangeError(f"Network input index {i} not in [0, {self._n_inputs - 1}]")
        self._inputs[i] = value

    def set_inputs(self, values: Sequence[float]) -> None:
        # Length mismatches are ignored.
        if len(values) != self._n_inputs:
            return
        self._inputs[:] = values

    def compute(self) -> Array:
        """Propagate the current inputs through every layer."""

        values: Sequence[float] = self._inputs
        for layer in self._layers:
            for unit in layer:
                unit.set_inputs(values)
            values = [unit.compute_output() for unit in layer]
        self._outputs[:] = values
        return self.outputs

    # ------------------------------------------------------------------
    # Weights

    def set_weight(self, layer: int, unit: int, index: int, value: float) -> None:
        self._unit(layer, unit).set_weight(index, value)

    def sum_to_weight(self, layer: int, unit: int, index: int, delta: float) -> None:
        self._unit(layer, unit).sum_to_weight(index, delta)

    def get_weight(self, layer: int, unit: int, index: int) -> float:
        return self._unit(layer, unit).get_weight(index)

    def n_weights(self, layer: int, unit: int) -> int:
        return self._unit(layer, unit).n_weights

    # ------------------------------------------------------------------
    # Read access

    @property
    def inputs(self) -> Array:
        return self._inputs.copy()

    @property
    def outputs(self) -> Array:
        return self._outputs.copy()

    def get_input(self, i: int) -> float:
        if not 0 <= i < self._n_inputs:
            raise OutOfRangeError(f"Network input index {i} not in [0, {self._n_inputs - 1}]")
        return float(self._inputs[i])

    def get_output(self, i: int) -> float:
        if not 0 <= i < self._outputs.size:
            raise OutOfRangeError(f"Network output index {i} not in [0, {self._outputs.size - 1}]")
        return float(self._outputs[i])

    def get_unit_input(self, layer: int, unit: int, index: int) -> float:
        target = self._unit(layer, unit)
        if not 0 <= index < target.n_weights:
            raise OutOfRangeError(f"Unit input index {index} not in [0, {target.n_weights - 1}]")
        return target.get_last_input(index)

    def get_unit_output(self, layer: int, unit: int) -> float:
        return self._unit(layer, unit).last_output

    @property
    def n_inputs(self) -> int:
        return self._n_inputs

    @property
    def n_outputs(self) -> int:
        return len(self._layers[-1])

    @property
    def n_layers(self) -> int:
        return len(self._layers)

    @property
    def n_hidden_layers(self) -> int:
        return self.n_layers - 1

    def layer_size(self, i: int) -> int:
        self._check_layer(i)
        return len(self._layers[i])

    def n_units(self, layer: int | None = None) -> int:
        """Units in ``layer``, or in the whole network when ``layer`` is None."""

        if layer is None:
            return sum(len(units) for units in self._layers)
        return self.layer_size(layer)

    @property
    def n_hidden_units(self) -> int:
        return self.n_units() - self.n_outputs

    def describe(self) -> ModelDescription:
        return ModelDescription(
            n_inputs=self._n_inputs,
            layer_sizes=[len(layer) for layer in self._layers],
        )

    def parameter_count(self) -> int:
        return sum(unit.n_weights for layer in self._layers for unit in layer)

    # ------------------------------------------------------------------
    # Copies and state

    def copy(self) -> "Network":
        """Exact deep copy, weights and cached values included."""

        clone = Network._from_layers(
            self._n_inputs, [[unit.copy() for unit in layer] for layer in self._layers]
        )
        clone._inputs[:] = self._inputs
        clone._outputs[:] = self._outputs
        return clone

    def reinitialized(self, rng: np.random.Generator | None = None) -> "Network":
        """New network with the same topology and freshly drawn weights."""

        return Network(self._n_inputs, self.describe().layer_sizes, rng)

    def state_dict(self) -> Mapping[str, Array]:
        return {
            f"W{idx}": np.stack([unit.weights for unit in layer])
            for idx, layer in enumerate(self._layers)
        }

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        for idx, layer in enumerate(self._layers):
            key = f"W{idx}"
            if key not in state:
                raise KeyError(f"Missing weight {key} in state dict")
            matrix = np.asarray(state[key], dtype=np.float64)
            expected = (len(layer), layer[0].n_weights)
            if matrix.shape != expected:
                raise ValueError(f"{key} has shape {matrix.shape}, expected {expected}")
            for unit, row in zip(layer, matrix):
                unit.set_weights(row)

    # ------------------------------------------------------------------
    # Serialisation

    def write(self, stream: IO[str]) -> None:
        stream.write("# number of inputs\n")
        stream.write(f"{self._n_inputs}\n")
        stream.write("# number of layers\n")
        stream.write(f"{self.n_layers}\n")
        stream.write("# units for any layer\n")
        stream.write(",".join(str(len(layer)) for layer in self._layers) + "\n")
        for idx, layer in enumerate(self._layers):
            stream.write(f"# units layer {idx}\n")
            for unit in layer:
                stream.write(unit.to_line() + "\n")

    @classmethod
    def read(cls, stream: IO[str]) -> "Network":
        lines = _good_lines(stream)
        n_inputs = _read_count(lines, "number of inputs")
        n_layers = _read_count(lines, "number of layers")
        sizes_line = _next_line(lines, "units for any layer")
        try:
            sizes = [int(value) for value in sizes_line.split(",")]
        except ValueError as exc:
            raise ReadError(f"Invalid unit counts: {sizes_line!r}") from exc
        if len(sizes) != n_layers or n_layers == 0:
            raise ReadError(f"Expected {n_layers} unit counts, got {len(sizes)}")

        layers: List[List[Unit]] = []
        prev = n_inputs
        for idx, size in enumerate(sizes):
            if size <= 0:
                raise ReadError(f"Layer {idx} declares {size} units")
            layer: List[Unit] = []
            for _ in range(size):
                unit = Unit.from_line(_next_line(lines, f"unit of layer {idx}"))
                if unit.n_inputs != prev:
                    raise ReadError(
                        f"Unit of layer {idx} has {unit.n_inputs} inputs, expected {prev}"
                    )
                layer.append(unit)
            layers.append(layer)
            prev = size
        return cls._from_layers(n_inputs, layers)

    def to_text(self) -> str:
        buffer = StringIO()
        self.write(buffer)
        return buffer.getvalue()

    def save(self, path: str | Path) -> None:
        """Write the model to ``path``, overwriting any existing file."""

        path = Path(path)
        try:
            with path.open("w", encoding="utf-8") as handle:
                self.write(handle)
        except OSError as exc:
            raise FileError(f"Cannot write model file {path}") from exc

    @classmethod
    def load(cls, path: str | Path) -> "Network":
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise FileError(f"Cannot open model file {path}") from exc
        except UnicodeDecodeError as exc:
            raise ReadError(f"Model file {path} is not valid UTF-8") from exc
        return cls.read(StringIO(text))

    # ------------------------------------------------------------------
    # Internal helpers

    def _check_layer(self, layer: int) -> None:
        if not 0 <= layer < len(self._layers):
            raise OutOfRangeError(f"Layer index {layer} not in [0, {len(self._layers) - 1}]")

    def _unit(self, layer: int, unit: int) -> Unit:
        self._check_layer(layer)
        units = self._layers[layer]
        if not 0 <= unit < len(units):
            raise OutOfRangeError(f"Unit index {unit} not in [0, {len(units) - 1}] for layer {layer}")
        return units[unit]

    def __repr__(self) -> str:
        sizes = ",".join(str(len(layer)) for layer in self._layers)
        return f"Network(n_inputs={self._n_inputs}, units=[{sizes}])"


def _good_lines(stream: IO[str]) -> Iterator[str]:
    for raw in stream:
        line = raw.strip()
        if line and not line.startswith("#"):
            yield line


def _next_line(lines: Iterator[str], what: str) -> str:
    try:
        return next(lines)
    except StopIteration:
        raise ReadError(f"Model file ended before the {what}") from None


def _read_count(lines: Iterator[str], what: str) -> int:
    line = _next_line(lines, what)
    try:
        value = int(line)
    except ValueError as exc:
        raise ReadError(f"Invalid {what}: {line!r}") from exc
    if value < 0:
        raise ReadError(f"Invalid {what}: {line!r}")
    return value


__all__ = ["Network"]
