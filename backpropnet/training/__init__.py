"""Training loop, tester and run pipelines."""

from .metrics import ErrorChangeMonitor, StopCriteria, check_stop, is_hit, squared_error
from .tester import Tester
from .trainer import Trainer

__all__ = [
    "ErrorChangeMonitor",
    "StopCriteria",
    "Tester",
    "Trainer",
    "check_stop",
    "is_hit",
    "squared_error",
]
