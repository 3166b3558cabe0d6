"""Run configuration: dataclasses, file loading and validation."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml

from .core.errors import ConfigError
from .training.trainer import RESET_POLICIES

DISABLED_STOP_ACCURACY = 1.1


@dataclass
class NetworkConfig:
    n_inputs: int = 0
    n_outputs: int = 0
    hidden_layers: int = 1
    hidden_units: List[int] = field(default_factory=list)

    @property
    def layer_sizes(self) -> List[int]:
        return [*self.hidden_units, self.n_outputs]

    def validate(self) -> None:
        if self.n_inputs <= 0:
            raise ConfigError("inputs must be a positive integer")
        if self.n_outputs <= 0:
            raise ConfigError("outputs must be a positive integer")
        if self.hidden_layers < 1:
            raise ConfigError("at least one hidden layer is required")
        if len(self.hidden_units) != self.hidden_layers:
            raise ConfigError(
                f"units lists {len(self.hidden_units)} values for {self.hidden_layers} hidden layers"
            )
        if any(n <= 0 for n in self.hidden_units):
            raise ConfigError(f"every hidden layer needs at least one unit, got {self.hidden_units}")


@dataclass
class AlgorithmConfig:
    learning_rate: float = 0.0
    momentum: float = 0.0
    regularization: float = 0.0

    def validate(self) -> None:
        if self.learning_rate < 0:
            raise ConfigError("eta must be >= 0")
        if self.momentum < 0:
            raise ConfigError("alpha must be >= 0")
        if self.regularization < 0:
            raise ConfigError("lambda must be >= 0")


@dataclass
class TrainingConfig:
    """Everything a cross-validation run needs.

    ``stop_accuracy=None`` leaves the accuracy criterion disabled and a
    negative ``stop_error_change`` disables the error-change criterion.
    ``seed=0`` derives the seed from the clock.
    """

    network: NetworkConfig = field(default_factory=NetworkConfig)
    algorithm: AlgorithmConfig = field(default_factory=AlgorithmConfig)
    dataset: str = ""
    results_path: Optional[str] = None
    model_path: Optional[str] = None
    folds: int = 10
    max_folds: Optional[int] = None
    max_epochs: int = 0
    shuffle_epochs: int = 0
    stop_error: float = 0.0
    stop_accuracy: Optional[float] = None
    stop_error_change: float = -1.0
    stop_error_change_epochs: int = 10
    threshold: float = 0.5
    seed: int = 0
    reset_policy: str = "reinitialize"
    run_dir: Optional[str] = None
    enable_plots: bool = False

    @property
    def effective_max_folds(self) -> int:
        return self.folds if self.max_folds is None else self.max_folds

    @property
    def effective_stop_accuracy(self) -> float:
        return DISABLED_STOP_ACCURACY if self.stop_accuracy is None else self.stop_accuracy

    @property
    def error_change(self) -> tuple[float, int]:
        """``(percent, epochs)`` for the trainer, ``(0, 0)`` when disabled."""

        if self.stop_error_change < 0:
            return 0.0, 0
        return self.stop_error_change, self.stop_error_change_epochs

    def validate(self) -> "TrainingConfig":
        self.network.validate()
        self.algorithm.validate()
        if not self.dataset:
            raise ConfigError("a training dataset file is required")
        if self.folds < 1:
            raise ConfigError("folds must be at least 1")
        if not 1 <= self.effective_max_folds <= self.folds:
            raise ConfigError(f"maxfolds must lie in [1, {self.folds}]")
        if self.max_epochs < 0:
            raise ConfigError("maxepochs must be >= 0")
        if self.shuffle_epochs < 0:
            raise ConfigError("shuffle must be >= 0")
        if self.stop_error < 0:
            raise ConfigError("stoperr must be a positive number")
        if self.stop_accuracy is not None and not 0.0 <= self.stop_accuracy <= 1.0:
            raise ConfigError("stopacc must be a number in [0, 1]")
        if self.stop_error_change_epochs < 0:
            raise ConfigError("stoperrchep must be >= 0")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError("threshold must be a number in [0, 1]")
        if self.reset_policy not in RESET_POLICIES:
            raise ConfigError(f"reset must be one of {RESET_POLICIES}")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TrainingConfig":
        data = dict(data)
        network = NetworkConfig(**_pick(NetworkConfig, data.pop("network", {}) or {}))
        algorithm = AlgorithmConfig(**_pick(AlgorithmConfig, data.pop("algorithm", {}) or {}))
        return cls(network=network, algorithm=algorithm, **_pick(cls, data))


@dataclass
class TestConfig:
    __test__ = False

    model_path: str = ""
    dataset: str = ""
    with_output: bool = False
    responses_path: Optional[str] = None
    threshold: float = 0.5

    def validate(self) -> "TestConfig":
        if not self.model_path:
            raise ConfigError("a model file is required")
        if not self.dataset:
            raise ConfigError("a dataset file is required")
        if not 0.0 <= self.threshold <= 1.0:
            raise ConfigError("threshold must be a number in [0, 1]")
        return self

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "TestConfig":
        return cls(**_pick(cls, data))


def _pick(cls: type, data: Mapping[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(cls)}
    unknown = sorted(set(data) - known - {"network", "algorithm"})
    if unknown:
        raise ConfigError(f"Unknown {cls.__name__} keys: {', '.join(unknown)}")
    return {key: value for key, value in data.items() if key in known and key not in {"network", "algorithm"}}


def load_config(path: str | Path) -> Dict[str, Any]:
    """Read a JSON or YAML mapping from ``path``."""

    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}") from exc
    except UnicodeDecodeError as exc:
        raise ConfigError(f"Config file {path} is not valid UTF-8") from exc
    try:
        if path.suffix in {".yml", ".yaml"}:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (yaml.YAMLError, json.JSONDecodeError) as exc:
        raise ConfigError(f"Cannot parse config file {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge(dict(base[key]), value)
        else:
            base[key] = value
    return base


__all__ = [
    "AlgorithmConfig",
    "NetworkConfig",
    "TestConfig",
    "TrainingConfig",
    "load_config",
    "merge",
]
