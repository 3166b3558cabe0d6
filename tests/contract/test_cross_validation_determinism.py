from pathlib import Path

from backpropnet.training import pipelines


def _config(tmp_path: Path, dataset: Path, tag: str) -> dict:
    return {
        "network": {"n_inputs": 2, "n_outputs": 1, "hidden_layers": 1, "hidden_units": [3]},
        "algorithm": {"learning_rate": 0.3, "momentum": 0.2, "regularization": 0.001},
        "dataset": str(dataset),
        "results_path": str(tmp_path / tag / "results"),
        "model_path": str(tmp_path / tag / "model"),
        "folds": 4,
        "max_folds": 2,
        "max_epochs": 12,
        "shuffle_epochs": 3,
        "seed": 55,
    }


def test_same_seed_reproduces_logs_and_models(tmp_path, and_file):
    first = pipelines.run_training(_config(tmp_path, and_file, "a"))
    second = pipelines.run_training(_config(tmp_path, and_file, "b"))

    assert first.seed == second.seed == 55
    for fold in range(1, 3):
        for name in ("results", "model"):
            a = (tmp_path / "a" / f"{name}-{fold}").read_bytes()
            b = (tmp_path / "b" / f"{name}-{fold}").read_bytes()
            assert a == b

    means_a = {k: v for k, v in first.means().items() if k != "elapsed"}
    means_b = {k: v for k, v in second.means().items() if k != "elapsed"}
    assert means_a == means_b
    assert [f.final for f in first.fold_results] == [f.final for f in second.fold_results]


def test_different_seed_changes_the_run(tmp_path, and_file):
    first = pipelines.run_training(_config(tmp_path, and_file, "a"))
    config = _config(tmp_path, and_file, "b")
    config["seed"] = 56
    second = pipelines.run_training(config)
    assert (tmp_path / "a" / "model-1").read_bytes() != (tmp_path / "b" / "model-1").read_bytes()
    assert first.seed != second.seed
