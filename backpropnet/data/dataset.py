"""Labelled dataset with index-based shuffling and k-fold partitioning."""

from __future__ import annotations

import csv
from io import StringIO
from pathlib import Path
from typing import Iterable, Iterator, List, Sequence

import numpy as np
import pandas as pd

from ..core.errors import FileError, OutOfRangeError, ReadError
from ..core.rng import make_rng, shuffle_in_place
from ..core.types import Array, Instance


def fold_start(total: int, folds: int, k: int) -> int:
    """Index of the first element of fold ``k`` of ``total`` elements."""

    rest = total % folds
    base = total // folds
    if k <= rest:
        return k * (base + 1)
    return k * base + rest


def fold_end(total: int, folds: int, k: int) -> int:
    """One past the index of the last element of fold ``k``."""

    if k == folds - 1:
        return total
    return fold_start(total, folds, k + 1)


def read_instances(path: str | Path, n_inputs: int, n_outputs: int) -> List[Instance]:
    """Parse ``id,x1,...,xn,y1,...,ym`` rows, skipping comments and blank lines."""

    path = Path(path)
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise FileError(f"Cannot open dataset file {path}") from exc
    except UnicodeDecodeError as exc:
        raise ReadError(f"Dataset file {path} is not valid UTF-8") from exc
    # Comments only count at the start of a trimmed line.
    rows = [line.strip(" \t\r") for line in raw.splitlines()]
    rows = [line for line in rows if line and not line.startswith("#")]
    if not rows:
        return []

    expected = 1 + n_inputs + n_outputs
    try:
        frame = pd.read_csv(
            StringIO("\n".join(rows)),
            header=None,
            skipinitialspace=True,
            quoting=csv.QUOTE_NONE,
            escapechar=None,
            dtype=str,
            keep_default_na=False,
        )
    except pd.errors.ParserError as exc:
        raise ReadError(f"Malformed dataset file {path}: {exc}") from exc

    if frame.shape[1] != expected:
        raise ReadError(
            f"{path}: rows have {frame.shape[1]} fields, expected {expected} "
            f"(id + {n_inputs} inputs + {n_outputs} outputs)"
        )
    try:
        values = frame.iloc[:, 1:].apply(lambda col: pd.to_numeric(col.str.strip()))
    except ValueError as exc:
        raise ReadError(f"{path}: non-numeric value: {exc}") from exc
    if values.isna().to_numpy().any():
        row = int(values.isna().any(axis=1).to_numpy().argmax())
        raise ReadError(f"{path}: data row {row + 1} has a missing value")

    ids = frame.iloc[:, 0].str.strip().tolist()
    matrix = values.to_numpy(dtype=np.float64)
    return [
        Instance(
            id=ident,
            input=matrix[row, :n_inputs].copy(),
            output=matrix[row, n_inputs:].copy(),
        )
        for row, ident in enumerate(ids)
    ]


class Dataset:
    """Ordered collection of instances accessed through index permutations.

    Shuffling and partitioning never move the instances themselves: the
    access vector reorders the whole dataset, and the training access vector
    lists the positions (in access order) outside the validation fold. With
    ``folds >= 2`` the dataset is split, in its current access order, into
    contiguous ranges whose sizes differ by at most one, the first
    ``size % folds`` ranges being the larger ones.
    """

    def __init__(self, rng: np.random.Generator | None = None) -> None:
        self.rng = rng if rng is not None else make_rng()
        self._instances: List[Instance] = []
        self._access: List[int] = []
        self._training_access: List[int] = []
        self._folds = 0
        self._validation_fold = 0

    @classmethod
    def from_instances(
        cls, instances: Iterable[Instance], rng: np.random.Generator | None = None
    ) -> "Dataset":
        dataset = cls(rng)
        dataset._instances = list(instances)
        dataset._access = list(range(len(dataset._instances)))
        return dataset

    def load(self, path: str | Path, n_inputs: int, n_outputs: int) -> None:
        self._instances = read_instances(path, n_inputs, n_outputs)
        self._access = list(range(len(self._instances)))
        self.merge()

    # ------------------------------------------------------------------
    # Partitioning

    def set_folds(self, n: int) -> None:
        if n < 0 or n > len(self._instances):
            raise OutOfRangeError(f"Cannot split {len(self._instances)} instances into {n} folds")
        if n == 0:
            self.merge()
            return
        self._folds = n
        self._validation_fold = 0
        self._rebuild_training_access()

    def set_validation_fold(self, k: int) -> None:
        """Hold out fold ``k``; the training order is reset to access order."""

        if not 0 <= k < self._folds:
            raise OutOfRangeError(f"Validation fold {k} not in [0, {self._folds - 1}]")
        if self._folds == 1:
            return
        self._validation_fold = k
        self._rebuild_training_access()

    def merge(self) -> None:
        self._folds = 0
        self._validation_fold = 0
        self._training_access = []

    def random_shuffle(self) -> None:
        shuffle_in_place(self._access, self.rng)

    def random_shuffle_training_set(self) -> None:
        shuffle_in_place(self._training_access, self.rng)

    def restore(self) -> None:
        self.merge()
        self._access = list(range(len(self._instances)))

    # ------------------------------------------------------------------
    # Sizes

    @property
    def size(self) -> int:
        return len(self._instances)

    def __len__(self) -> int:
        return len(self._instances)

    @property
    def is_empty(self) -> bool:
        return not self._instances

    @property
    def folds(self) -> int:
        return self._folds

    @property
    def validation_fold(self) -> int:
        return self._validation_fold

    def fold_size(self, i: int) -> int:
        if not 0 <= i < self._folds:
            raise OutOfRangeError(f"Fold {i} not in [0, {self._folds - 1}]")
        return self._fold_end(i) - self._fold_start(i)

    @property
    def training_size(self) -> int:
        return len(self._training_access)

    @property
    def validation_size(self) -> int:
        if self._folds <= 1:
            return 0
        return self.fold_size(self._validation_fold)

    @property
    def access_order(self) -> List[int]:
        return list(self._access)

    @property
    def training_indices(self) -> List[int]:
        """Positions (in access order) of the training partition."""

        return list(self._training_access)

    @property
    def validation_indices(self) -> List[int]:
        if self._folds <= 1:
            return []
        k = self._validation_fold
        return list(range(self._fold_start(k), self._fold_end(k)))

    # ------------------------------------------------------------------
    # Element access

    def at(self, i: int) -> Instance:
        if not 0 <= i < len(self._instances):
            raise OutOfRangeError(f"Instance {i} not in [0, {len(self._instances) - 1}]")
        return self._instances[self._access[i]]

    def __getitem__(self, i: int) -> Instance:
        return self.at(i)

    def __iter__(self) -> Iterator[Instance]:
        for i in range(len(self._instances)):
            yield self.at(i)

    def tr_at(self, i: int) -> Instance:
        if not 0 <= i < len(self._training_access):
            raise OutOfRangeError(f"Training instance {i} not in [0, {len(self._training_access) - 1}]")
        return self.at(self._training_access[i])

    def va_at(self, i: int) -> Instance:
        if self._folds <= 1 or not 0 <= i < self.validation_size:
            raise OutOfRangeError(f"Validation instance {i} out of range")
        return self.at(self._fold_start(self._validation_fold) + i)

    def get_id(self, i: int) -> str:
        return self.at(i).id

    def get_inputs(self, i: int) -> Array:
        return self.at(i).input

    def get_outputs(self, i: int) -> Array:
        return self.at(i).output

    def training_set(self) -> Iterator[Instance]:
        for i in range(self.training_size):
            yield self.tr_at(i)

    def validation_set(self) -> Iterator[Instance]:
        for i in range(self.validation_size):
            yield self.va_at(i)

    # ------------------------------------------------------------------
    # Internal helpers

    def _fold_start(self, k: int) -> int:
        return fold_start(len(self._instances), self._folds, k)

    def _fold_end(self, k: int) -> int:
        return fold_end(len(self._instances), self._folds, k)

    def _rebuild_training_access(self) -> None:
        total = len(self._instances)
        if self._folds == 1:
            self._training_access = list(range(total))
            return
        start = self._fold_start(self._validation_fold)
        end = self._fold_end(self._validation_fold)
        self._training_access = [i for i in range(total) if i < start or i >= end]

    def __repr__(self) -> str:
        return f"Dataset(size={len(self._instances)}, folds={self._folds})"


def instances_from_arrays(
    inputs: Sequence[Sequence[float]],
    outputs: Sequence[Sequence[float]],
    ids: Sequence[str] | None = None,
) -> List[Instance]:
    """Build instances from parallel input/output rows."""

    if len(inputs) != len(outputs):
        raise ValueError("inputs and outputs must have the same number of rows")
    ids = list(ids) if ids is not None else [str(i + 1) for i in range(len(inputs))]
    return [
        Instance(
            id=ident,
            input=np.asarray(x, dtype=np.float64),
            output=np.asarray(y, dtype=np.float64),
        )
        for ident, x, y in zip(ids, inputs, outputs)
    ]


__all__ = ["Dataset", "fold_start", "fold_end", "read_instances", "instances_from_arrays"]
