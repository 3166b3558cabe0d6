"""Deterministic cross-validation summaries."""

from __future__ import annotations

import json
from dataclasses import asdict
from pathlib import Path
from typing import Mapping

import pandas as pd

from ..core.types import CrossValidationResult, FoldResult
from .metrics import RESULT_FIELDS


def load_results_log(path: str | Path) -> pd.DataFrame:
    """Read a per-epoch results log written by :class:`EpochResultsSink`."""

    return pd.read_csv(path)


def summarize_curve(frame: pd.DataFrame) -> Mapping[str, Mapping[str, float]]:
    summary: dict[str, Mapping[str, float]] = {}
    for name in RESULT_FIELDS:
        if name not in frame or frame.empty:
            continue
        column = frame[name].astype(float)
        summary[name] = {
            "min": float(column.min()),
            "max": float(column.max()),
            "mean": float(column.mean()),
            "last": float(column.iloc[-1]),
        }
    return summary


def _fold_record(result: FoldResult) -> Mapping[str, object]:
    record = asdict(result)
    record["stop_reason"] = result.stop_reason.value if result.stop_reason else None
    if result.results_path and Path(result.results_path).exists():
        record["curve"] = summarize_curve(load_results_log(result.results_path))
    return record


def write_summary(result: CrossValidationResult, out_summary_json: str | Path) -> str:
    """Write per-fold outcomes and their means to ``out_summary_json``."""

    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    summary = {
        "version": 1,
        "folds": result.folds,
        "dataset_size": result.dataset_size,
        "seed": result.seed,
        "fold_results": [_fold_record(fold) for fold in result.fold_results],
        "means": result.means(),
    }
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["load_results_log", "summarize_curve", "write_summary"]
