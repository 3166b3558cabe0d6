"""Dataset loading, partitioning and splitting helpers."""

from .dataset import Dataset, fold_end, fold_start, instances_from_arrays, read_instances
from .splitter import SplitPaths, split_file, split_lines

__all__ = [
    "Dataset",
    "SplitPaths",
    "fold_end",
    "fold_start",
    "instances_from_arrays",
    "read_instances",
    "split_file",
    "split_lines",
]
