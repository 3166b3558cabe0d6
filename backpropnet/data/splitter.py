"""Split a dataset file into one test fold and the union of the other folds."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple

import numpy as np
from loguru import logger

from ..core.errors import FileError, OutOfRangeError, ReadError
from ..core.rng import shuffle_in_place
from .dataset import fold_end, fold_start


@dataclass(frozen=True)
class SplitPaths:
    training: Path
    test: Path


def split_lines(
    lines: List[str], folds: int, fold: int, rng: np.random.Generator
) -> Tuple[List[str], List[str]]:
    """Return ``(training, test)`` lines, each kept in its original order.

    The permutation only depends on ``rng``, so rotating ``fold`` with the
    same seed yields disjoint test parts that cover every line.
    """

    total = len(lines)
    if folds < 1 or folds > max(total, 1):
        raise OutOfRangeError(f"Cannot split {total} lines into {folds} folds")
    if not 0 <= fold < folds:
        raise OutOfRangeError(f"Fold {fold} not in [0, {folds - 1}]")

    order = list(range(total))
    shuffle_in_place(order, rng)
    start = fold_start(total, folds, fold)
    end = fold_end(total, folds, fold)
    test_idx = sorted(order[start:end])
    train_idx = sorted(order[:start] + order[end:])
    return [lines[i] for i in train_idx], [lines[i] for i in test_idx]


def split_file(
    path: str | Path, folds: int, fold: int, rng: np.random.Generator
) -> SplitPaths:
    """Write ``<path>.tr`` and ``<path>.ts`` next to ``path``."""

    path = Path(path)
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise FileError(f"Cannot open {path}") from exc
    except UnicodeDecodeError as exc:
        raise ReadError(f"{path} is not valid UTF-8") from exc

    training, test = split_lines(lines, folds, fold, rng)
    out = SplitPaths(
        training=path.with_name(path.name + ".tr"),
        test=path.with_name(path.name + ".ts"),
    )
    for target, chunk in ((out.training, training), (out.test, test)):
        try:
            target.write_text("".join(line + "\n" for line in chunk), encoding="utf-8")
        except OSError as exc:
            raise FileError(f"Cannot write {target}") from exc
    logger.info(
        "Split {} into {} training and {} test lines (fold {}/{})",
        path,
        len(training),
        len(test),
        fold,
        folds,
    )
    return out


__all__ = ["SplitPaths", "split_lines", "split_file"]
