"""backpropnet public API."""

from .config import AlgorithmConfig, NetworkConfig, TestConfig, TrainingConfig, load_config
from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.backprop import BackPropagation
from .core.errors import BackPropNetError, ConfigError, FileError, OutOfRangeError, ReadError
from .core.network import Network
from .core.unit import Unit
from .data.dataset import Dataset
from .data.splitter import split_file
from .training.pipelines import run_test, run_training
from .training.tester import Tester
from .training.trainer import Trainer

__version__ = "0.1.0"

__all__ = [
    "AlgorithmConfig",
    "BackPropNetError",
    "BackPropagation",
    "ConfigError",
    "Dataset",
    "FileError",
    "Network",
    "NetworkConfig",
    "OutOfRangeError",
    "ReadError",
    "TestConfig",
    "Tester",
    "Trainer",
    "TrainingConfig",
    "Unit",
    "activations",
    "load_config",
    "run_test",
    "run_training",
    "split_file",
    "types",
]
