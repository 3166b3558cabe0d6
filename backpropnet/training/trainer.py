"""Epoch-driven training loop with k-fold validation and stop criteria."""

from __future__ import annotations

import math
from pathlib import Path
from typing import List, Sequence

import numpy as np
from loguru import logger

from ..core.backprop import BackPropagation
from ..core.errors import ConfigError
from ..core.network import Network
from ..core.rng import make_rng
from ..core.types import EpochMetrics, Instance, StopReason, Tracked, TrainerState
from ..data.dataset import Dataset
from ..reporting.metrics import EpochResultsSink
from .metrics import (
    ErrorChangeMonitor,
    StopCriteria,
    check_stop,
    check_threshold,
    is_hit,
    squared_error,
)

RESET_POLICIES = ("reinitialize", "restore")


class Trainer:
    """Train a :class:`Network` with :class:`BackPropagation` on one fold.

    The dataset is loaded with :meth:`set_dataset`, shuffled and partitioned
    with :meth:`set_folds`, and the held-out fold chosen with
    :meth:`set_validation_on`. :meth:`start` then runs epochs until a stop
    criterion fires. Every epoch is one online pass over the training
    partition followed by a forward-only pass over the validation fold.
    """

    def __init__(
        self,
        model: Network,
        algorithm: BackPropagation,
        rng: np.random.Generator | None = None,
        *,
        reset_policy: str = "reinitialize",
        callbacks: Sequence[object] | None = None,
    ) -> None:
        if reset_policy not in RESET_POLICIES:
            raise ConfigError(f"reset_policy must be one of {RESET_POLICIES}, got {reset_policy!r}")
        self.rng = rng if rng is not None else make_rng()
        self.algorithm = algorithm
        self.reset_policy = reset_policy
        self.callbacks = list(callbacks or [])
        self._model = model
        self._initial = model.copy()
        self.dataset = Dataset(self.rng)

        self.max_epochs = 0
        self.shuffle_epochs = 0
        self.threshold = 0.5
        self.criteria = StopCriteria()
        self.monitor = ErrorChangeMonitor()
        self._results: EpochResultsSink | None = None

        self.state = TrainerState.NOT_STARTED
        self.stop_reason: StopReason | None = None
        self.history: List[EpochMetrics] = []
        self._reset_run_state()

    # ------------------------------------------------------------------
    # Configuration

    def set_dataset(self, source: str | Path | Dataset) -> None:
        if isinstance(source, Dataset):
            self.dataset = source
            return
        self.dataset.load(source, self._model.n_inputs, self._model.n_outputs)
        logger.info("Loaded {} instances from {}", self.dataset.size, source)

    def set_folds(self, n: int) -> None:
        """Shuffle the whole dataset, then split it into ``n`` folds."""

        self.dataset.random_shuffle()
        self.dataset.set_folds(n)

    def set_validation_on(self, k: int) -> None:
        self.dataset.set_validation_fold(k)

    def set_max_epochs(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"max_epochs must be >= 0, got {n}")
        self.max_epochs = int(n)

    def set_shuffle_epochs(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"shuffle interval must be >= 0, got {n}")
        self.shuffle_epochs = int(n)

    def set_stop_error(self, error: float) -> None:
        self.criteria.stop_error = float(error)

    def set_stop_error_change(self, percent: float, epochs: int) -> None:
        if epochs < 0:
            raise ValueError(f"error-change window must be >= 0, got {epochs}")
        self.monitor = ErrorChangeMonitor(percent, epochs)

    def set_stop_accuracy(self, accuracy: float) -> None:
        self.criteria.stop_accuracy = float(accuracy)

    def set_threshold(self, threshold: float) -> None:
        self.threshold = check_threshold(threshold)

    def set_save_results(self, path: str | Path | None) -> None:
        """Start a fresh results log at ``path``; ``None`` stops logging."""

        self._results = EpochResultsSink(path) if path else None

    def add_callback(self, callback: object) -> None:
        self.callbacks.append(callback)

    def reset_model(self) -> None:
        if self.reset_policy == "restore":
            self._model = self._initial.copy()
        else:
            self._model = self._initial.reinitialized(self.rng)

    # ------------------------------------------------------------------
    # Results

    @property
    def model(self) -> Network:
        return self._model

    @property
    def epochs(self) -> int:
        return len(self.history)

    @property
    def training_error(self) -> float:
        return self._last.tr_error

    @property
    def validation_error(self) -> float:
        return self._last.va_error

    @property
    def training_accuracy(self) -> float:
        return self._last.tr_accuracy

    @property
    def validation_accuracy(self) -> float:
        return self._last.va_accuracy

    @property
    def folds(self) -> int:
        return self.dataset.folds

    def fold_size(self, i: int) -> int:
        return self.dataset.fold_size(i)

    @property
    def dataset_size(self) -> int:
        return self.dataset.size

    @property
    def training_size(self) -> int:
        return self.dataset.training_size

    @property
    def validation_size(self) -> int:
        return self.dataset.validation_size

    # ------------------------------------------------------------------
    # Training loop

    def start(self) -> StopReason:
        if self.dataset.training_size == 0:
            raise ConfigError("The training partition is empty, load a dataset and call set_folds() first")
        self.algorithm.set_model(self._model)
        self._reset_run_state()
        self.state = TrainerState.TRAINING

        index = 0
        while self.max_epochs == 0 or index < self.max_epochs:
            if self.shuffle_epochs and index % self.shuffle_epochs == 0:
                self.dataset.random_shuffle_training_set()
            tr_error, tr_accuracy = self._training_pass()
            va_error, va_accuracy = self._validation_pass()
            metrics = EpochMetrics(index + 1, tr_error, va_error, tr_accuracy, va_accuracy)
            self._record(metrics)
            reason = check_stop(metrics, self.criteria, self.monitor)
            if reason is not None:
                self.stop_reason = reason
                break
            index += 1
        else:
            self.stop_reason = StopReason.MAX_EPOCHS

        self.state = TrainerState.STOPPED
        if self.stop_reason is StopReason.DIVERGENCE:
            logger.warning(
                "Training diverged at epoch {} (tr_error={}, va_error={})",
                self.epochs,
                self.training_error,
                self.validation_error,
            )
        else:
            logger.info("Training stopped at epoch {}: {}", self.epochs, self.stop_reason.value)
        return self.stop_reason

    def _training_pass(self) -> tuple[float, float]:
        error = 0.0
        hits = 0
        for i in range(self.dataset.training_size):
            instance = self.dataset.tr_at(i)
            self.algorithm.compute(instance.input, instance.output)
            e, hit = self._evaluate(instance)
            error += e
            hits += hit
        n = self.dataset.training_size
        return error / n, hits / n

    def _validation_pass(self) -> tuple[float, float]:
        n = self.dataset.validation_size
        if n == 0:
            return 0.0, 0.0
        error = 0.0
        hits = 0
        for instance in self.dataset.validation_set():
            e, hit = self._evaluate(instance)
            error += e
            hits += hit
        return error / n, hits / n

    def _evaluate(self, instance: Instance) -> tuple[float, bool]:
        self._model.set_inputs(instance.input)
        outputs = self._model.compute()
        return (
            squared_error(outputs, instance.output),
            is_hit(outputs, instance.output, self.threshold),
        )

    def _record(self, metrics: EpochMetrics) -> None:
        self.history.append(metrics)
        self._last = metrics
        epoch = metrics.epoch
        if metrics.tr_error < self.min_training_error.value:
            self.min_training_error = Tracked(metrics.tr_error, epoch)
        if metrics.va_error < self.min_validation_error.value:
            self.min_validation_error = Tracked(metrics.va_error, epoch)
        if metrics.tr_accuracy > self.max_training_accuracy.value:
            self.max_training_accuracy = Tracked(metrics.tr_accuracy, epoch)
        if metrics.va_accuracy > self.max_validation_accuracy.value:
            self.max_validation_accuracy = Tracked(metrics.va_accuracy, epoch)

        logger.debug(
            "epoch {} tr_error={:.5e} va_error={:.5e} tr_accuracy={:.5e} va_accuracy={:.5e}",
            epoch,
            metrics.tr_error,
            metrics.va_error,
            metrics.tr_accuracy,
            metrics.va_accuracy,
        )
        values = metrics.as_dict()
        if self._results is not None:
            self._results.on_epoch(epoch, values)
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, values)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, values)

    def _reset_run_state(self) -> None:
        self.history = []
        self.stop_reason = None
        self._last = EpochMetrics(0, 0.0, 0.0, 0.0, 0.0)
        self.min_training_error = Tracked(math.inf, 0)
        self.min_validation_error = Tracked(math.inf, 0)
        self.max_training_accuracy = Tracked(0.0, 0)
        self.max_validation_accuracy = Tracked(0.0, 0)
        self.monitor.reset()


__all__ = ["Trainer", "RESET_POLICIES"]
