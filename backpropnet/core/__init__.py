"""Core numerical primitives for backpropnet."""

from . import activations, errors, rng, types
from .backprop import BackPropagation
from .network import Network
from .unit import Unit

__all__ = [
    "activations",
    "errors",
    "rng",
    "types",
    "BackPropagation",
    "Network",
    "Unit",
]
