"""CSV sinks for per-epoch results and per-instance model responses."""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Mapping, Sequence

from ..core.errors import FileError

RESULT_FIELDS = ("tr_error", "va_error", "tr_accuracy", "va_accuracy")


def _fmt(value: float) -> str:
    return f"{float(value):.5e}"


class _CsvLog:
    """Header written on creation, then one appended row per call."""

    def __init__(self, path: str | Path, header: Sequence[str]) -> None:
        self.path = Path(path)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("w", encoding="utf-8", newline="") as handle:
                csv.writer(handle, quoting=csv.QUOTE_ALL, lineterminator="\n").writerow(header)
        except OSError as exc:
            raise FileError(f"Cannot create {self.path}") from exc

    def _append(self, row: Sequence[str]) -> None:
        try:
            with self.path.open("a", encoding="utf-8", newline="") as handle:
                csv.writer(handle, lineterminator="\n").writerow(row)
        except OSError as exc:
            raise FileError(f"Cannot append to {self.path}") from exc


class EpochResultsSink(_CsvLog):
    """Write ``epoch,tr_error,va_error,tr_accuracy,va_accuracy`` rows."""

    def __init__(self, path: str | Path) -> None:
        super().__init__(path, ("epoch", *RESULT_FIELDS))

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._append([str(int(epoch)), *(_fmt(metrics[key]) for key in RESULT_FIELDS)])

    __call__ = on_epoch


class ResponseSink(_CsvLog):
    """Write ``id,out[0],...`` rows, one per tested instance."""

    def __init__(self, path: str | Path, n_outputs: int) -> None:
        super().__init__(path, ("id", *(f"out[{i}]" for i in range(n_outputs))))
        self.n_outputs = n_outputs

    def on_response(self, ident: str, outputs: Sequence[float]) -> None:
        self._append([ident, *(_fmt(value) for value in outputs)])

    __call__ = on_response


__all__ = ["EpochResultsSink", "ResponseSink", "RESULT_FIELDS"]
