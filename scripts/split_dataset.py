"""Split a dataset file into ``<file>.tr`` and ``<file>.ts`` for one fold.

Usage: ``python scripts/split_dataset.py FILE FOLDS FOLD SEED``. With the same
seed every ``FOLD`` in ``[0, FOLDS - 1]`` yields a disjoint test part, so the
test fold can be rotated across runs.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("file", type=Path, help="Dataset file to split")
    ap.add_argument("folds", type=int, help="Total number of folds")
    ap.add_argument("fold", type=int, help="Test fold in [0, folds - 1]")
    ap.add_argument("seed", type=int, help="Random seed")
    return ap.parse_args(argv)


def main(argv: Iterable[str] | None = None) -> int:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

    from loguru import logger

    from backpropnet.core.errors import BackPropNetError
    from backpropnet.core.rng import make_rng
    from backpropnet.data.splitter import split_file

    args = parse_args(argv)
    try:
        paths = split_file(args.file, args.folds, args.fold, make_rng(args.seed))
    except BackPropNetError as exc:
        logger.error("{}: {}", type(exc).__name__, exc)
        return 1
    print(paths.training)
    print(paths.test)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
