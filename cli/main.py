"""Command line entry point for backpropnet training and testing."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, Iterable

from loguru import logger

from backpropnet.config import TestConfig, TrainingConfig, load_config, merge
from backpropnet.core.errors import BackPropNetError
from backpropnet.core.types import CrossValidationResult
from backpropnet.training import pipelines

# argparse destination -> (config section, config key)
_TRAINING_FLAGS = {
    "inputs": ("network", "n_inputs"),
    "outputs": ("network", "n_outputs"),
    "hlayers": ("network", "hidden_layers"),
    "units": ("network", "hidden_units"),
    "eta": ("algorithm", "learning_rate"),
    "alpha": ("algorithm", "momentum"),
    "lambda_": ("algorithm", "regularization"),
    "trfile": (None, "dataset"),
    "trsave": (None, "results_path"),
    "nnsave": (None, "model_path"),
    "folds": (None, "folds"),
    "maxfolds": (None, "max_folds"),
    "maxepochs": (None, "max_epochs"),
    "shuffle": (None, "shuffle_epochs"),
    "stoperr": (None, "stop_error"),
    "stopacc": (None, "stop_accuracy"),
    "stoperrch": (None, "stop_error_change"),
    "stoperrchep": (None, "stop_error_change_epochs"),
    "threshold": (None, "threshold"),
    "rseed": (None, "seed"),
    "reset": (None, "reset_policy"),
    "run_dir": (None, "run_dir"),
}

_TEST_FLAGS = {
    "nnfile": "model_path",
    "dsfile": "dataset",
    "tssave": "responses_path",
    "threshold": "threshold",
}


def _parse_units(text: str) -> list[int]:
    try:
        return [int(value) for value in text.split(",") if value.strip()]
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid unit list: {text!r}") from None


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--mode", choices=["training", "test"], default="training")
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config file")
    parser.add_argument("--rseed", type=int, help="Random seed (0 derives it from the clock)")
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Verbosity of the log written to stderr",
    )

    train = parser.add_argument_group("training mode")
    train.add_argument("--inputs", type=int, help="Number of network inputs")
    train.add_argument("--outputs", type=int, help="Number of network outputs")
    train.add_argument("--hlayers", type=int, help="Number of hidden layers")
    train.add_argument("--units", type=_parse_units, help="Comma-separated hidden layer sizes")
    train.add_argument("--eta", type=float, help="Learning rate")
    train.add_argument("--alpha", type=float, help="Momentum rate")
    train.add_argument("--lambda", dest="lambda_", type=float, help="Regularization rate")
    train.add_argument("--trfile", help="Training dataset file")
    train.add_argument("--trsave", help="Prefix of the per-fold results logs")
    train.add_argument("--nnsave", help="Prefix of the per-fold saved models")
    train.add_argument("--folds", type=int, help="Number of folds (1 trains on everything)")
    train.add_argument("--maxfolds", type=int, help="Number of folds actually run")
    train.add_argument("--maxepochs", type=int, help="Epoch limit (0 is unbounded)")
    train.add_argument("--shuffle", type=int, help="Reshuffle the training set every N epochs")
    train.add_argument("--stoperr", type=float, help="Stop when the training error drops to this")
    train.add_argument("--stopacc", type=float, help="Stop when the training accuracy reaches this")
    train.add_argument("--stoperrch", type=float, help="Error change percentage that stops training")
    train.add_argument("--stoperrchep", type=int, help="Epochs the error change must stay small")
    train.add_argument("--reset", choices=["reinitialize", "restore"], help="Model reset policy between folds")
    train.add_argument("--run-dir", help="Directory for summary, manifest and plots")
    train.add_argument("--enable-plots", action="store_true", help="Plot error curves into --run-dir")

    test = parser.add_argument_group("test mode")
    test.add_argument("--nnfile", help="Saved model to test")
    test.add_argument("--dsfile", help="Dataset to test on")
    test.add_argument("--output", action="store_true", help="The dataset carries target outputs")
    test.add_argument("--tssave", help="File receiving the model responses")

    parser.add_argument("--threshold", type=float, help="Classification threshold in [0, 1]")
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logger.remove()
    logger.add(sys.stderr, format="<level>{level: <8}</level> | {message}", level=level)


def _training_config(args: argparse.Namespace, base: Dict[str, Any]) -> TrainingConfig:
    override: Dict[str, Any] = {}
    for dest, (section, key) in _TRAINING_FLAGS.items():
        value = getattr(args, dest)
        if value is None:
            continue
        target = override.setdefault(section, {}) if section else override
        target[key] = value
    if args.enable_plots:
        override["enable_plots"] = True
    return TrainingConfig.from_mapping(merge(base, override))


def _test_config(args: argparse.Namespace, base: Dict[str, Any]) -> TestConfig:
    override: Dict[str, Any] = {
        key: getattr(args, dest) for dest, key in _TEST_FLAGS.items() if getattr(args, dest) is not None
    }
    if args.output:
        override["with_output"] = True
    return TestConfig.from_mapping(merge(base, override))


def _format_result(result) -> str:
    if isinstance(result, CrossValidationResult):
        payload = {
            "folds": result.folds,
            "folds_run": len(result.fold_results),
            "seed": result.seed,
            "means": result.means(),
            "summary": result.summary_path,
            "manifest": result.manifest_path,
        }
    else:
        payload = {
            "dataset_size": result.dataset_size,
            "hits": result.hits,
            "missed": result.missed,
            "accuracy": result.accuracy,
            "error": result.error,
            "responses": result.responses_path,
        }
    return json.dumps(payload, sort_keys=True)


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.log_level)

    try:
        base = load_config(args.config) if args.config else {}
        if args.mode == "training":
            result = pipelines.run_training(_training_config(args, base))
        else:
            result = pipelines.run_test(_test_config(args, base))
    except BackPropNetError as exc:
        logger.error("{}: {}", type(exc).__name__, exc)
        raise SystemExit(1) from exc

    print(_format_result(result))


if __name__ == "__main__":
    main()
