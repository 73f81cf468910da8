"""Headless-safe training curve plots."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect epoch accuracy and optionally render it with matplotlib."""

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self._history: List[Tuple[int, float, float]] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._history.append(
            (
                int(epoch),
                float(metrics.get("accuracy", 0.0)),
                float(metrics.get("mean_iterations", 0.0)),
            )
        )

    def close(self) -> str | None:
        if not self.enable_plots or not self._history:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, accuracy, iterations = zip(*self._history)
        fig, (ax_acc, ax_iter) = plt.subplots(2, 1, sharex=True)
        ax_acc.plot(epochs, accuracy, marker="o")
        ax_acc.set_ylabel("Already-correct fraction")
        ax_acc.set_ylim(0.0, 1.05)
        ax_iter.plot(epochs, iterations, marker="o", color="tab:orange")
        ax_iter.set_ylabel("Mean iterations")
        ax_iter.set_xlabel("Epoch")
        fig.suptitle("Training curve")
        self.run_dir.mkdir(parents=True, exist_ok=True)
        plot_path = self.run_dir / "accuracy.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return str(plot_path)

    __call__ = on_epoch
