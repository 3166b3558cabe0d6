"""Cross-validation training and model testing pipelines."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Any, Mapping

from loguru import logger

from ..config import TestConfig, TrainingConfig
from ..core.backprop import BackPropagation
from ..core.network import Network
from ..core.rng import make_rng, resolve_seed
from ..core.types import CrossValidationResult, FoldResult, TestResult
from ..reporting.artifacts import dataset_fingerprint, write_manifest
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .tester import Tester
from .trainer import Trainer


def _fold_path(base: str | None, fold: int) -> str:
    return f"{base}-{fold + 1}" if base else ""


def run_training(config: TrainingConfig | Mapping[str, Any]) -> CrossValidationResult:
    """Train and validate on the first ``max_folds`` folds of the dataset.

    Every fold starts from the model produced by :meth:`Trainer.reset_model`
    and its trained weights are saved to ``<model_path>-<fold>``.
    """

    if not isinstance(config, TrainingConfig):
        config = TrainingConfig.from_mapping(config)
    config.validate()

    seed = resolve_seed(config.seed)
    rng = make_rng(seed)
    logger.info("Random seed used: {}", seed)

    network = Network(config.network.n_inputs, config.network.layer_sizes, rng)
    algorithm = BackPropagation(
        config.algorithm.learning_rate,
        config.algorithm.momentum,
        config.algorithm.regularization,
    )
    _log_startup_summary(network, algorithm)

    trainer = Trainer(network, algorithm, rng, reset_policy=config.reset_policy)
    trainer.set_dataset(config.dataset)
    trainer.set_folds(config.folds)
    trainer.set_max_epochs(config.max_epochs)
    trainer.set_shuffle_epochs(config.shuffle_epochs)
    trainer.set_stop_error(config.stop_error)
    trainer.set_stop_error_change(*config.error_change)
    trainer.set_stop_accuracy(config.effective_stop_accuracy)
    trainer.set_threshold(config.threshold)

    result = CrossValidationResult(folds=config.folds, dataset_size=trainer.dataset_size, seed=seed)
    run_dir = Path(config.run_dir) if config.run_dir else None

    for k in range(config.effective_max_folds):
        trainer.reset_model()
        trainer.set_validation_on(k)
        results_path = _fold_path(config.results_path, k)
        trainer.set_save_results(results_path or None)
        plotter = None
        if run_dir is not None and config.enable_plots:
            plotter = PlotAdapter(run_dir, enable_plots=True, filename=f"errors-{k + 1}.png")
            trainer.callbacks = [plotter]

        started = time.perf_counter()
        reason = trainer.start()
        elapsed = time.perf_counter() - started

        model_path = _fold_path(config.model_path, k)
        if model_path:
            trainer.model.save(model_path)
        if plotter is not None:
            plotter.close()

        fold = FoldResult(
            fold=k + 1,
            epochs=trainer.epochs,
            training_size=trainer.training_size,
            validation_size=trainer.validation_size,
            final=trainer.history[-1],
            min_training_error=trainer.min_training_error,
            min_validation_error=trainer.min_validation_error,
            max_training_accuracy=trainer.max_training_accuracy,
            max_validation_accuracy=trainer.max_validation_accuracy,
            stop_reason=reason,
            elapsed=elapsed,
            model_path=model_path,
            results_path=results_path,
        )
        result.fold_results.append(fold)
        _log_fold(fold, config.folds, trainer.dataset_size)

    if len(result.fold_results) > 1:
        means = result.means()
        logger.info(
            "Mean over {} folds: epochs {:.1f}, tr_error {:.5e}, va_error {:.5e}, "
            "tr_accuracy {:.5e}, va_accuracy {:.5e}",
            len(result.fold_results),
            means["epochs"],
            means["tr_error"],
            means["va_error"],
            means["tr_accuracy"],
            means["va_accuracy"],
        )

    if run_dir is not None:
        run_dir.mkdir(parents=True, exist_ok=True)
        result.summary_path = write_summary(result, run_dir / "summary.json")
        result.manifest_path = write_manifest(
            run_dir / "manifest.json",
            config={**config.to_dict(), "seed": seed},
            dataset_provenance={**dataset_fingerprint(config.dataset), "size": trainer.dataset_size},
        )
    return result


def run_test(config: TestConfig | Mapping[str, Any]) -> TestResult:
    """Load a saved model and evaluate it on ``config.dataset``."""

    if not isinstance(config, TestConfig):
        config = TestConfig.from_mapping(config)
    config.validate()

    network = Network.load(config.model_path)
    logger.info(
        "Loaded model {}: {} inputs, {} outputs, layers {}",
        config.model_path,
        network.n_inputs,
        network.n_outputs,
        network.describe().layer_sizes,
    )
    tester = Tester(network, with_output=config.with_output)
    tester.set_dataset(config.dataset)
    tester.set_save_model_responses(config.responses_path)
    tester.set_threshold(config.threshold)
    return tester.start()


def _log_startup_summary(network: Network, algorithm: BackPropagation) -> None:
    logger.info(
        "Network: {} inputs, {} outputs, {} hidden layers, units per layer {} (total {})",
        network.n_inputs,
        network.n_outputs,
        network.n_hidden_layers,
        network.describe().layer_sizes,
        network.n_units(),
    )
    logger.info(
        "Back-propagation: learning rate {}, momentum rate {}, regularization rate {}",
        algorithm.learning_rate,
        algorithm.momentum_rate,
        algorithm.regularization_rate,
    )


def _log_fold(fold: FoldResult, folds: int, dataset_size: int) -> None:
    logger.info(
        "Fold {} of {}: {} training instances (dataset of {}), {} epochs in {:.2f}s, stop: {}",
        fold.fold,
        folds,
        fold.training_size,
        dataset_size,
        fold.epochs,
        fold.elapsed,
        fold.stop_reason.value if fold.stop_reason else "none",
    )
    logger.info(
        "Fold {}: tr_error {:.5e}, va_error {:.5e}, tr_accuracy {:.5e}, va_accuracy {:.5e}",
        fold.fold,
        fold.final.tr_error,
        fold.final.va_error,
        fold.final.tr_accuracy,
        fold.final.va_accuracy,
    )
    logger.info(
        "Fold {} best: tr_error {:.5e} ({}), va_error {:.5e} ({}), "
        "tr_accuracy {:.5e} ({}), va_accuracy {:.5e} ({})",
        fold.fold,
        *fold.min_training_error.as_tuple(),
        *fold.min_validation_error.as_tuple(),
        *fold.max_training_accuracy.as_tuple(),
        *fold.max_validation_accuracy.as_tuple(),
    )


__all__ = ["run_training", "run_test"]
