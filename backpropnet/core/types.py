"""Core typing contracts for backpropnet."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Instance:
    """A single labelled row of a dataset."""

    id: str
    input: Array
    output: Array


@dataclass
class Tracked:
    """Best-so-far value paired with the epoch it was recorded at."""

    value: float
    epoch: int = 0

    def as_tuple(self) -> tuple[float, int]:
        return self.value, self.epoch


@dataclass(frozen=True)
class EpochMetrics:
    """Errors and accuracies measured at the end of one epoch."""

    epoch: int
    tr_error: float
    va_error: float
    tr_accuracy: float
    va_accuracy: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "tr_error": self.tr_error,
            "va_error": self.va_error,
            "tr_accuracy": self.tr_accuracy,
            "va_accuracy": self.va_accuracy,
        }


class StopReason(str, enum.Enum):
    """Why a training run ended."""

    MAX_EPOCHS = "max_epochs"
    DIVERGENCE = "divergence"
    STOP_ERROR = "stop_error"
    STOP_ACCURACY = "stop_accuracy"
    ERROR_CHANGE = "error_change"


class TrainerState(str, enum.Enum):
    NOT_STARTED = "not_started"
    TRAINING = "training"
    STOPPED = "stopped"


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    n_inputs: int
    layer_sizes: List[int]

    @property
    def layer_dims(self) -> List[int]:
        return [self.n_inputs, *self.layer_sizes]


@dataclass
class FoldResult:
    """Outcome of training on a single validation fold."""

    fold: int
    epochs: int
    training_size: int
    validation_size: int
    final: EpochMetrics
    min_training_error: Tracked
    min_validation_error: Tracked
    max_training_accuracy: Tracked
    max_validation_accuracy: Tracked
    stop_reason: Optional[StopReason]
    elapsed: float = 0.0
    model_path: str = ""
    results_path: str = ""


@dataclass
class CrossValidationResult:
    """Summary returned by :func:`backpropnet.training.pipelines.run_training`."""

    folds: int
    dataset_size: int
    seed: int
    fold_results: List[FoldResult] = field(default_factory=list)
    summary_path: str = ""
    manifest_path: str = ""

    def means(self) -> Dict[str, float]:
        """Mean of the final and best-so-far metrics over the folds that ran."""

        if not self.fold_results:
            return {}
        n = float(len(self.fold_results))
        sums: Dict[str, float] = {
            "epochs": 0.0,
            "tr_error": 0.0,
            "va_error": 0.0,
            "tr_accuracy": 0.0,
            "va_accuracy": 0.0,
            "min_tr_error": 0.0,
            "min_va_error": 0.0,
            "max_tr_accuracy": 0.0,
            "max_va_accuracy": 0.0,
            "elapsed": 0.0,
        }
        for result in self.fold_results:
            sums["epochs"] += result.epochs
            for key, value in result.final.as_dict().items():
                sums[key] += value
            sums["min_tr_error"] += result.min_training_error.value
            sums["min_va_error"] += result.min_validation_error.value
            sums["max_tr_accuracy"] += result.max_training_accuracy.value
            sums["max_va_accuracy"] += result.max_validation_accuracy.value
            sums["elapsed"] += result.elapsed
        return {key: value / n for key, value in sums.items()}


@dataclass(frozen=True)
class TestResult:
    """Summary returned by :func:`backpropnet.training.pipelines.run_test`."""

    __test__ = False

    dataset_size: int
    hits: int
    missed: int
    accuracy: float
    error: float
    responses_path: str = ""
