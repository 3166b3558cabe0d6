import math

import pytest

from backpropnet.core.types import EpochMetrics, StopReason
from backpropnet.training.metrics import (
    ErrorChangeMonitor,
    StopCriteria,
    check_stop,
    check_threshold,
    is_hit,
    squared_error,
)


def _metrics(tr_error=0.2, va_error=0.2, tr_accuracy=0.5, va_accuracy=0.5):
    return EpochMetrics(1, tr_error, va_error, tr_accuracy, va_accuracy)


def test_squared_error_is_half_sum_of_squares():
    assert squared_error([0.5], [1.0]) == pytest.approx(0.125)
    assert squared_error([0.2, 0.9], [0.0, 1.0]) == pytest.approx(0.5 * (0.04 + 0.01))
    assert squared_error([], []) == 0.0
    with pytest.raises(ValueError):
        squared_error([0.1], [0.1, 0.2])


def test_hit_requires_every_output_on_the_target_side():
    assert is_hit([0.7, 0.2], [1.0, 0.0], 0.5)
    assert not is_hit([0.7, 0.6], [1.0, 0.0], 0.5)
    # exactly at the threshold counts as the low side
    assert is_hit([0.5], [0.0], 0.5)
    assert not is_hit([0.5], [0.6], 0.5)


def test_threshold_bounds():
    assert check_threshold(0.0) == 0.0
    assert check_threshold(1) == 1.0
    with pytest.raises(ValueError):
        check_threshold(1.5)
    with pytest.raises(ValueError):
        check_threshold(-0.1)


def test_error_change_needs_consecutive_quiet_epochs():
    monitor = ErrorChangeMonitor(0.1, 3)
    # first epoch compares against 0 and counts as a jump
    assert [monitor.update(1.0) for _ in range(4)] == [False, False, False, True]

    monitor.reset()
    assert not monitor.update(1.0)
    assert not monitor.update(1.0)
    assert not monitor.update(0.5)
    assert monitor.count == 0


def test_error_change_zero_error_is_a_jump():
    monitor = ErrorChangeMonitor(50.0, 1)
    assert not monitor.update(0.0)
    assert not monitor.update(0.0)
    assert monitor.count == 0


def test_error_change_disabled():
    monitor = ErrorChangeMonitor(100.0, 0)
    assert not monitor.enabled
    assert not any(monitor.update(1.0) for _ in range(5))


@pytest.mark.parametrize(
    "metrics",
    [
        _metrics(tr_error=math.nan),
        _metrics(va_error=math.inf),
        _metrics(tr_accuracy=-0.1),
        _metrics(va_error=-1.0),
    ],
)
def test_divergence_stops(metrics):
    assert check_stop(metrics, StopCriteria(stop_error=-1.0)) is StopReason.DIVERGENCE


def test_stop_order_and_disabled_defaults():
    assert check_stop(_metrics(), StopCriteria()) is None
    both = StopCriteria(stop_error=0.3, stop_accuracy=0.4)
    assert check_stop(_metrics(), both) is StopReason.STOP_ERROR
    assert check_stop(_metrics(), StopCriteria(stop_accuracy=0.5)) is StopReason.STOP_ACCURACY
    assert check_stop(_metrics(tr_accuracy=1.0), StopCriteria()) is None


def test_error_change_only_checked_after_thresholds():
    monitor = ErrorChangeMonitor(10.0, 1)
    check_stop(_metrics(tr_error=0.1), StopCriteria(stop_error=0.5), monitor)
    assert monitor.previous == 0.0
    assert check_stop(_metrics(), StopCriteria(), monitor) is None
    assert check_stop(_metrics(), StopCriteria(), monitor) is StopReason.ERROR_CHANGE
