"""Reporting utilities for backpropnet."""

from .artifacts import dataset_fingerprint, write_manifest
from .metrics import EpochResultsSink, ResponseSink
from .plots import PlotAdapter
from .summary import load_results_log, summarize_curve, write_summary

__all__ = [
    "dataset_fingerprint",
    "write_manifest",
    "EpochResultsSink",
    "ResponseSink",
    "PlotAdapter",
    "load_results_log",
    "summarize_curve",
    "write_summary",
]
