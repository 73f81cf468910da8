"""Epoch-level orchestration around :meth:`Network.train_on_set`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Sequence, Tuple

from ..core.network import Network
from ..core.sample import SampleSet
from ..reporting.metrics import MetricsCapture


@dataclass(frozen=True)
class FitResult:
    """Outcome of :meth:`Trainer.fit`."""

    epochs: int
    train_accuracy: float
    history: List[Tuple[int, Dict[str, float]]] = field(default_factory=list)


class _ValidationHook:
    """Score a held-out set after every training epoch."""

    def __init__(self, trainer: "Trainer", samples: SampleSet, parallel: bool | None):
        self.trainer = trainer
        self.samples = samples
        self.parallel = parallel

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.trainer.evaluate(self.samples, split="val", epoch=epoch, parallel=self.parallel)


class Trainer:
    """Run the per-sample training loop and route metrics to loggers.

    ``split_loggers`` maps a split name (``train``, ``val``, ``test``) to
    objects exposing ``on_epoch(epoch, metrics)`` or plain callables.
    """

    def __init__(
        self,
        network: Network,
        callbacks: Sequence[object] | None = None,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
    ) -> None:
        self.network = network
        self.callbacks = list(callbacks or [])
        self.split_loggers = {k: list(v) for k, v in (split_loggers or {}).items()}

    def fit(
        self,
        train_set: SampleSet,
        *,
        epochs: int,
        acceptable_error_rate: float = 0.0,
        val_set: SampleSet | None = None,
        parallel: bool | None = None,
    ) -> FitResult:
        capture = MetricsCapture()
        callbacks: List[object] = [*self.callbacks, *self.split_loggers.get("train", []), capture]
        if val_set is not None and len(val_set) > 0:
            callbacks.append(_ValidationHook(self, val_set, parallel))
        percent = self.network.train_on_set(
            train_set,
            epochs,
            acceptable_error_rate,
            parallel=parallel,
            callbacks=callbacks,
        )
        return FitResult(
            epochs=len(capture.history),
            train_accuracy=percent / 100.0,
            history=capture.history,
        )

    def evaluate(
        self,
        samples: SampleSet,
        *,
        split: str = "test",
        epoch: int = 0,
        parallel: bool | None = None,
    ) -> Dict[str, float]:
        accuracy = self.network.evaluate(samples, parallel)
        metrics = {
            "accuracy": accuracy,
            "error_rate": 1.0 - accuracy,
            "mean_estimated_error": samples.mean_estimated_error(),
        }
        for callback in self.split_loggers.get(split, []):
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)
        return metrics


__all__ = ["FitResult", "Trainer"]
