"""Error taxonomy shared by every backpropnet component."""

from __future__ import annotations


class BackPropNetError(Exception):
    """Base class for all errors raised by backpropnet."""


class OutOfRangeError(BackPropNetError, IndexError):
    """A layer, unit, weight, fold or instance index is out of bounds."""


class ReadError(BackPropNetError, ValueError):
    """Persisted data (dataset rows, model files) could not be parsed."""


class FileError(BackPropNetError, OSError):
    """A file could not be opened for reading or writing."""


class ConfigError(BackPropNetError, ValueError):
    """A configuration value is invalid."""


__all__ = [
    "BackPropNetError",
    "OutOfRangeError",
    "ReadError",
    "FileError",
    "ConfigError",
]
