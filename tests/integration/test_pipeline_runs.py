import json
from pathlib import Path

import pytest

from backpropnet.core.errors import ConfigError, ReadError
from backpropnet.core.network import Network
from backpropnet.training import pipelines


def _config(tmp_path: Path, dataset: Path, **overrides) -> dict:
    config = {
        "network": {"n_inputs": 2, "n_outputs": 1, "hidden_layers": 1, "hidden_units": [2]},
        "algorithm": {"learning_rate": 0.5, "momentum": 0.5},
        "dataset": str(dataset),
        "results_path": str(tmp_path / "out" / "results"),
        "model_path": str(tmp_path / "out" / "model"),
        "folds": 3,
        "max_folds": 2,
        "max_epochs": 20,
        "seed": 9,
        "run_dir": str(tmp_path / "run"),
    }
    config.update(overrides)
    return config


def test_training_writes_per_fold_artifacts(tmp_path, and_file):
    result = pipelines.run_training(_config(tmp_path, and_file))

    assert result.folds == 3
    assert result.dataset_size == 8
    assert [f.fold for f in result.fold_results] == [1, 2]
    out = tmp_path / "out"
    assert (out / "results-1").exists()
    assert (out / "results-2").exists()
    assert not (out / "results-3").exists()
    # 8 rows in 3 folds: sizes 3, 3, 2
    assert [f.validation_size for f in result.fold_results] == [3, 3]
    assert [f.training_size for f in result.fold_results] == [5, 5]

    for fold in result.fold_results:
        assert fold.epochs == 20
        assert fold.stop_reason.value == "max_epochs"
        assert len((out / f"results-{fold.fold}").read_text().splitlines()) == 21
        model = Network.load(fold.model_path)
        assert model.describe().layer_dims == [2, 2, 1]

    summary = json.loads(Path(result.summary_path).read_text())
    assert len(summary["fold_results"]) == 2
    assert summary["fold_results"][0]["curve"]["tr_error"]["last"] == pytest.approx(
        result.fold_results[0].final.tr_error, rel=1e-5
    )
    manifest = json.loads(Path(result.manifest_path).read_text())
    assert manifest["config"]["seed"] == 9
    assert manifest["dataset"]["size"] == 8
    assert len(manifest["dataset"]["sha256"]) == 64


def test_single_fold_trains_on_everything(tmp_path, and_file):
    result = pipelines.run_training(
        _config(tmp_path, and_file, folds=1, max_folds=None, run_dir=None, stop_accuracy=1.0,
                max_epochs=5000)
    )
    (fold,) = result.fold_results
    assert fold.training_size == 8
    assert fold.validation_size == 0
    assert fold.stop_reason.value == "stop_accuracy"
    assert result.summary_path == ""


def test_plots_written_when_enabled(tmp_path, and_file):
    pipelines.run_training(_config(tmp_path, and_file, max_epochs=3, enable_plots=True))
    assert (tmp_path / "run" / "errors-1.png").exists()
    assert (tmp_path / "run" / "errors-2.png").exists()


def test_saved_model_can_be_tested(tmp_path, and_file):
    pipelines.run_training(
        _config(tmp_path, and_file, folds=1, max_folds=None, max_epochs=5000, stop_accuracy=1.0)
    )
    responses = tmp_path / "responses.csv"
    result = pipelines.run_test(
        {
            "model_path": str(tmp_path / "out" / "model-1"),
            "dataset": str(and_file),
            "with_output": True,
            "responses_path": str(responses),
        }
    )
    assert result.dataset_size == 8
    assert result.hits == 8
    assert result.accuracy == pytest.approx(100.0)
    assert len(responses.read_text().splitlines()) == 9


def test_invalid_configs_raise(tmp_path, and_file):
    with pytest.raises(ConfigError):
        pipelines.run_training(_config(tmp_path, and_file, folds=0))
    with pytest.raises(ConfigError):
        pipelines.run_test({"model_path": "", "dataset": str(and_file)})


def test_dataset_with_wrong_columns(tmp_path, write_rows):
    path = write_rows("bad.csv", [("x", 1, 0)])
    with pytest.raises(ReadError):
        pipelines.run_training(_config(tmp_path, path))
