"""Evaluate a trained network on a dataset and record its responses."""

from __future__ import annotations

from pathlib import Path

from loguru import logger

from ..core.network import Network
from ..core.types import TestResult
from ..data.dataset import Dataset
from ..reporting.metrics import ResponseSink
from .metrics import check_threshold, is_hit, squared_error


class Tester:
    """Run ``model`` forward on every instance of a dataset, in file order.

    With ``with_output=False`` the dataset rows carry no targets: only the
    responses are recorded and accuracy/error stay at zero. Accuracy is
    reported as a percentage.
    """

    __test__ = False

    def __init__(self, model: Network, with_output: bool = True) -> None:
        self.model = model
        self.with_output = with_output
        self.dataset = Dataset()
        self.threshold = 0.5
        self._responses: ResponseSink | None = None
        self.hits = 0
        self.missed = 0
        self.accuracy = 0.0
        self.error = 0.0

    def set_dataset(self, source: str | Path | Dataset) -> None:
        if isinstance(source, Dataset):
            self.dataset = source
            return
        n_outputs = self.model.n_outputs if self.with_output else 0
        self.dataset.load(source, self.model.n_inputs, n_outputs)

    def set_save_model_responses(self, path: str | Path | None) -> None:
        self._responses = ResponseSink(path, self.model.n_outputs) if path else None

    def set_threshold(self, threshold: float) -> None:
        self.threshold = check_threshold(threshold)

    @property
    def dataset_size(self) -> int:
        return self.dataset.size

    def start(self) -> TestResult:
        if self.dataset.is_empty:
            raise ValueError("Cannot test on an empty dataset")
        first = self.dataset.at(0)
        if first.input.size != self.model.n_inputs:
            raise ValueError(
                f"Dataset rows have {first.input.size} inputs, the model expects {self.model.n_inputs}"
            )
        if self.with_output and first.output.size != self.model.n_outputs:
            raise ValueError(
                f"Dataset rows have {first.output.size} outputs, the model produces {self.model.n_outputs}"
            )

        self.hits = 0
        self.missed = 0
        self.accuracy = 0.0
        self.error = 0.0
        for instance in self.dataset:
            self.model.set_inputs(instance.input)
            outputs = self.model.compute()
            if self.with_output:
                if is_hit(outputs, instance.output, self.threshold):
                    self.hits += 1
                else:
                    self.missed += 1
                self.error += squared_error(outputs, instance.output)
            if self._responses is not None:
                self._responses.on_response(instance.id, outputs)

        size = self.dataset.size
        if self.with_output:
            self.accuracy = self.hits * 100.0 / size
            self.error = self.error / size
            logger.info(
                "Tested {} instances: {} hits, {} missed, accuracy {:.2f}%, error {:.5e}",
                size,
                self.hits,
                self.missed,
                self.accuracy,
                self.error,
            )
        else:
            logger.info("Computed responses for {} instances", size)
        return TestResult(
            dataset_size=size,
            hits=self.hits,
            missed=self.missed,
            accuracy=self.accuracy,
            error=self.error,
            responses_path=str(self._responses.path) if self._responses else "",
        )


__all__ = ["Tester"]
