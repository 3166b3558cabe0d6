"""Per-fold error and accuracy curves, rendered headless."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping

_CURVES = ("tr_error", "va_error", "tr_accuracy", "va_accuracy")


class PlotAdapter:
    """Epoch callback that records the four curves and draws them on ``close``."""

    def __init__(
        self, run_dir: str | Path, enable_plots: bool = False, filename: str = "errors.png"
    ):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.filename = filename
        self.epochs: List[int] = []
        self.curves: Dict[str, List[float]] = {name: [] for name in _CURVES}
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self.epochs.append(epoch)
        for name in _CURVES:
            self.curves[name].append(float(metrics.get(name, 0.0)))

    def close(self) -> Path | None:
        """Write the figure and return its path; ``None`` when nothing was drawn."""

        if not self.enable_plots or not self.epochs:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        # folds == 1 leaves the validation curves at zero
        has_validation = any(self.curves["va_error"])
        fig, (err_ax, acc_ax) = plt.subplots(2, 1, sharex=True, figsize=(6, 6))
        err_ax.plot(self.epochs, self.curves["tr_error"], label="training")
        acc_ax.plot(self.epochs, self.curves["tr_accuracy"], label="training")
        if has_validation:
            err_ax.plot(self.epochs, self.curves["va_error"], label="validation")
            acc_ax.plot(self.epochs, self.curves["va_accuracy"], label="validation")
        err_ax.set_ylabel("Mean squared error")
        acc_ax.set_ylabel("Accuracy")
        acc_ax.set_ylim(0.0, 1.05)
        acc_ax.set_xlabel("Epoch")
        err_ax.legend()
        fig.tight_layout()
        plot_path = self.run_dir / self.filename
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
