"""Error, hit and stop-criterion helpers shared by the trainer and tester."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from ..core.types import EpochMetrics, StopReason


def squared_error(outputs: Sequence[float], targets: Sequence[float]) -> float:
    """Half the sum of squared differences, ``0.5 * sum((d - y) ** 2)``."""

    if len(outputs) != len(targets):
        raise ValueError(f"Got {len(outputs)} outputs for {len(targets)} targets")
    error = 0.0
    for y, d in zip(outputs, targets):
        error += (float(d) - float(y)) ** 2
    return error / 2


def is_hit(outputs: Sequence[float], targets: Sequence[float], threshold: float) -> bool:
    """True when every output falls on the same side of ``threshold`` as its target."""

    if len(outputs) != len(targets):
        raise ValueError(f"Got {len(outputs)} outputs for {len(targets)} targets")
    for y, d in zip(outputs, targets):
        if (d > threshold) != (y > threshold):
            return False
    return True


def check_threshold(value: float) -> float:
    value = float(value)
    if not 0.0 <= value <= 1.0:
        raise ValueError(f"Threshold must lie in [0, 1], got {value}")
    return value


class ErrorChangeMonitor:
    """Counts consecutive epochs whose relative error change stays small.

    ``percent`` is the allowed change in percent of the current error and
    ``epochs`` the number of consecutive quiet epochs that stops training;
    ``epochs == 0`` disables the criterion.
    """

    def __init__(self, percent: float = 0.0, epochs: int = 0) -> None:
        self.percent = float(percent)
        self.epochs = int(epochs)
        self.reset()

    @property
    def enabled(self) -> bool:
        return self.epochs != 0

    def reset(self) -> None:
        self.previous = 0.0
        self.count = 0

    def update(self, error: float) -> bool:
        if not self.enabled:
            return False
        # A zero error has no relative change; it is treated as a jump.
        if error != 0.0 and abs((error - self.previous) / error) <= self.percent / 100.0:
            self.count += 1
        else:
            self.count = 0
        self.previous = error
        return self.count >= self.epochs


@dataclass
class StopCriteria:
    """Thresholds checked at the end of every epoch.

    A negative ``stop_error`` or a ``stop_accuracy`` above 1 never fires.
    """

    stop_error: float = -1.0
    stop_accuracy: float = 1.1


def is_divergent(metrics: EpochMetrics) -> bool:
    if not (math.isfinite(metrics.tr_error) and math.isfinite(metrics.va_error)):
        return True
    return min(metrics.tr_error, metrics.va_error, metrics.tr_accuracy, metrics.va_accuracy) < 0


def check_stop(
    metrics: EpochMetrics,
    criteria: StopCriteria,
    monitor: ErrorChangeMonitor | None = None,
) -> StopReason | None:
    """Return the first satisfied stop reason, or ``None`` to keep training."""

    if is_divergent(metrics):
        return StopReason.DIVERGENCE
    if metrics.tr_error <= criteria.stop_error:
        return StopReason.STOP_ERROR
    if metrics.tr_accuracy >= criteria.stop_accuracy:
        return StopReason.STOP_ACCURACY
    if monitor is not None and monitor.update(metrics.tr_error):
        return StopReason.ERROR_CHANGE
    return None


__all__ = [
    "ErrorChangeMonitor",
    "StopCriteria",
    "check_stop",
    "check_threshold",
    "is_divergent",
    "is_hit",
    "squared_error",
]
