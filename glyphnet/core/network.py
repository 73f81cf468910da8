"""Fully-connected sigmoid network trained with the per-sample delta rule."""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Sequence, Tuple

import numpy as np

from . import persistence
from .errors import ConfigurationError, NotScoredError, ShapeMismatchError
from .sample import Sample, SampleSet
from .types import UNDEFINED, Array
from .unit import Layer, build_layers

logger = logging.getLogger(__name__)

DEFAULT_ALPHA = 0.25
DEFAULT_WORKERS = 16
MAX_TRAIN_ITERATIONS = 100
CONVERGENCE_ERROR = 0.1


def default_workers() -> int:
    """Worker-pool width, overridable through ``GLYPHNET_WORKERS``."""

    raw = os.environ.get("GLYPHNET_WORKERS")
    if raw is None or raw.strip() == "":
        return DEFAULT_WORKERS
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"GLYPHNET_WORKERS must be an integer, got {raw!r}") from None


def partition_range(size: int, chunks: int) -> List[Tuple[int, int]]:
    """Split ``[0, size)`` into at most ``chunks`` contiguous, disjoint ranges.

    The ranges cover every index exactly once; the final upper bound is
    always ``size``. Empty ranges are dropped when ``size < chunks``.
    """

    if chunks < 1:
        raise ConfigurationError(f"chunks must be >= 1, got {chunks}")
    bounds = [size * k // chunks for k in range(chunks)] + [size]
    return [(lo, hi) for lo, hi in zip(bounds[:-1], bounds[1:]) if hi > lo]


def _validate_structure(structure: Sequence[int]) -> List[int]:
    dims = [int(size) for size in structure]
    if len(dims) < 2:
        raise ConfigurationError(
            f"A network needs at least a sensor and an output layer, got {dims}"
        )
    if any(size < 1 for size in dims):
        raise ConfigurationError(f"Layer sizes must be positive, got {dims}")
    return dims


class Network:
    """Multi-layer perceptron over a layer arena.

    ``parallel`` selects the default execution mode for :meth:`infer`,
    :meth:`backward` and the training loops; every call can override it.
    Parallel work runs on a thread pool of ``workers`` threads that is
    created on first use and released by :meth:`close`.
    """

    def __init__(
        self,
        structure: Sequence[int],
        *,
        alpha: float = DEFAULT_ALPHA,
        seed: int | None = None,
        parallel: bool = False,
        workers: int | None = None,
    ) -> None:
        self._configure(
            alpha=alpha,
            rng=np.random.default_rng(seed),
            parallel=parallel,
            workers=workers,
        )
        self.reinit(structure, alpha)

    def _configure(
        self,
        *,
        alpha: float,
        rng: np.random.Generator,
        parallel: bool,
        workers: int | None,
    ) -> None:
        workers = default_workers() if workers is None else int(workers)
        if workers < 1:
            raise ConfigurationError(f"workers must be >= 1, got {workers}")
        self.alpha = float(alpha)
        self.rng = rng
        self.parallel = bool(parallel)
        self.workers = workers
        self.layers: List[Layer] = []
        self._executor: ThreadPoolExecutor | None = None

    # ------------------------------------------------------------------
    # Construction

    def reinit(self, structure: Sequence[int], alpha: float = DEFAULT_ALPHA) -> None:
        """Rebuild the topology with fresh random weights."""

        dims = _validate_structure(structure)
        self.alpha = float(alpha)
        self.layers = build_layers(dims, self.rng)
        logger.info(
            "Initialised network %s (alpha=%s, parallel=%s, workers=%d)",
            dims,
            self.alpha,
            self.parallel,
            self.workers,
        )

    @classmethod
    def from_snapshot(
        cls,
        snapshot: Mapping[str, object],
        *,
        seed: int | None = None,
        parallel: bool = False,
        workers: int | None = None,
    ) -> "Network":
        layers, alpha = persistence.from_snapshot(snapshot)
        net = cls.__new__(cls)
        net._configure(
            alpha=DEFAULT_ALPHA if alpha is None else alpha,
            rng=np.random.default_rng(seed),
            parallel=parallel,
            workers=workers,
        )
        net.layers = layers
        return net

    @classmethod
    def load(cls, path: str | Path, **kwargs) -> "Network":
        """Load a network from a JSON snapshot written by :meth:`save`."""

        return cls.from_snapshot(persistence.read_snapshot(path), **kwargs)

    @classmethod
    def share(cls, other: "Network") -> "Network":
        """Return a second handle onto ``other``'s layers.

        This is not a deep copy: training through either handle mutates the
        same weights. The new handle gets its own worker pool and RNG stream.
        """

        net = cls.__new__(cls)
        net._configure(
            alpha=other.alpha,
            rng=other.rng.spawn(1)[0],
            parallel=other.parallel,
            workers=other.workers,
        )
        net.layers = other.layers
        return net

    def __copy__(self) -> "Network":
        return type(self).share(self)

    # ------------------------------------------------------------------
    # Topology

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    @property
    def sensor_count(self) -> int:
        return len(self.layers[0])

    @property
    def class_count(self) -> int:
        return len(self.layers[-1])

    @property
    def structure(self) -> List[int]:
        return [len(layer) for layer in self.layers]

    def parameter_count(self) -> int:
        """Number of trainable weights, bias weights included."""

        pairs = zip(self.layers, self.layers[1:])
        return int(sum(len(prev) * len(cur) + len(cur) for prev, cur in pairs))

    def output(self) -> Array:
        """Copy of the final layer's activations from the last forward pass."""

        return self.layers[-1].out.copy()

    # ------------------------------------------------------------------
    # Forward pass

    def infer(self, sample: Sample, parallel: bool | None = None) -> None:
        """Run ``sample`` through the network and score its output."""

        if sample.input.shape[0] != self.sensor_count:
            raise ShapeMismatchError(
                f"Sample has {sample.input.shape[0]} inputs, network expects {self.sensor_count}"
            )
        if sample.class_count != self.class_count:
            raise ShapeMismatchError(
                f"Sample has {sample.class_count} outputs, network has {self.class_count} classes"
            )

        self.layers[0].out[:] = sample.input
        use_parallel = self._use_parallel(parallel)
        for layer_idx in range(1, self.layer_count):
            units = self.layers[layer_idx].units
            if use_parallel:
                self._run_tasks(
                    partial(self._activate_chunk, layer_idx, start, stop)
                    for start, stop in partition_range(len(units), self.workers)
                )
            else:
                for unit in units:
                    unit.activate(self.layers)

        sample.output[:] = self.layers[-1].out
        sample.process_output()

    def _activate_chunk(self, layer_idx: int, start: int, stop: int) -> None:
        for unit in self.layers[layer_idx].units[start:stop]:
            unit.activate(self.layers)

    def predict(self, sample: Sample, parallel: bool | None = None) -> int:
        self.infer(sample, parallel)
        return sample.predicted_label

    # ------------------------------------------------------------------
    # Backward pass

    def backward(self, sample: Sample, parallel: bool | None = None) -> None:
        """Propagate ``sample.error`` back through every layer and update weights."""

        if sample.error is None:
            raise NotScoredError("infer() must run before backward()")
        if sample.error.shape[0] != self.class_count:
            raise ShapeMismatchError(
                f"Sample error has {sample.error.shape[0]} entries, "
                f"network has {self.class_count} classes"
            )

        self.layers[-1].error[:] = sample.error
        if self._use_parallel(parallel):
            self._backward_parallel()
        else:
            self._backward_sequential()
        # Sensor error is never consumed.
        self.layers[0].reset_error()

    def _backward_sequential(self) -> None:
        for layer_idx in range(self.layer_count - 1, 0, -1):
            self.layers[layer_idx - 1].reset_error()
            for unit in self.layers[layer_idx].units:
                unit.backpropagate(self.layers, self.alpha)

    def _backward_parallel(self) -> None:
        for layer_idx in range(self.layer_count - 1, 0, -1):
            current = self.layers[layer_idx]
            upstream = self.layers[layer_idx - 1]
            upstream.reset_error()
            for unit in current.units:
                unit.apply_local_gradient(self.layers, self.alpha)
            # Workers own disjoint upstream slices, so no locking is needed.
            self._run_tasks(
                partial(self._backpropagate_chunk, layer_idx, start, stop)
                for start, stop in partition_range(len(upstream), self.workers)
            )

    def _backpropagate_chunk(self, layer_idx: int, start: int, stop: int) -> None:
        for unit in self.layers[layer_idx].units:
            unit.backpropagate_range(self.layers, self.alpha, start, stop)

    # ------------------------------------------------------------------
    # Training loops

    def train(self, sample: Sample, parallel: bool | None = None) -> int:
        """Train on one sample until it converges or the iteration cap is hit.

        Returns the number of backward passes performed, ``0`` when the sample
        was already classified correctly with squared error below
        :data:`CONVERGENCE_ERROR`, and :data:`MAX_TRAIN_ITERATIONS` when it
        never converged.
        """

        if sample.true_label == UNDEFINED:
            raise ValueError("Cannot train on a sample without a true label")
        for iteration in range(MAX_TRAIN_ITERATIONS):
            self.infer(sample, parallel)
            if sample.is_correct() and sample.estimated_error() < CONVERGENCE_ERROR:
                return iteration
            self.backward(sample, parallel)
        return MAX_TRAIN_ITERATIONS

    def train_on_set(
        self,
        samples: SampleSet,
        epochs: int,
        acceptable_error_rate: float,
        parallel: bool | None = None,
        callbacks: Sequence[object] = (),
    ) -> float:
        """Train over ``samples`` for up to ``epochs`` epochs.

        The set is shuffled once up front. A sample counts as correct for an
        epoch when it needed no backward pass. Training stops early once the
        epoch error rate is at most ``acceptable_error_rate``. Each epoch's
        metrics carry ``elapsed_s``, the wall time since training started.
        Returns the last epoch's accuracy as a percentage.
        """

        total = len(samples)
        if total == 0:
            raise ValueError("Cannot train on an empty SampleSet")
        if epochs < 1:
            raise ValueError(f"epochs must be >= 1, got {epochs}")

        samples.shuffle(self.rng)
        started = time.perf_counter()
        correct = 0
        for epoch in range(1, epochs + 1):
            correct = 0
            iterations = 0
            for sample in samples:
                used = self.train(sample, parallel)
                iterations += used
                if used == 0:
                    correct += 1
            error_rate = 1.0 - correct / total
            metrics = {
                "accuracy": correct / total,
                "error_rate": error_rate,
                "mean_iterations": iterations / total,
                "elapsed_s": time.perf_counter() - started,
            }
            logger.debug("epoch %d: %s", epoch, metrics)
            _emit_epoch(callbacks, epoch, metrics)
            if error_rate <= acceptable_error_rate:
                break
        logger.info(
            "Trained on %d samples for %d epochs in %.3fs",
            total,
            epoch,
            time.perf_counter() - started,
        )
        return correct / total * 100.0

    def evaluate(self, samples: SampleSet, parallel: bool | None = None) -> float:
        """Fraction of ``samples`` classified correctly, without training."""

        if len(samples) == 0:
            raise ValueError("Cannot evaluate on an empty SampleSet")
        correct = 0
        for sample in samples:
            self.predict(sample, parallel)
            if sample.is_correct():
                correct += 1
        return correct / len(samples)

    # ------------------------------------------------------------------
    # Persistence

    def to_snapshot(self) -> dict:
        return persistence.to_snapshot(self.layers, self.alpha)

    def save(self, path: str | Path) -> str:
        return persistence.write_snapshot(path, self.to_snapshot())

    # ------------------------------------------------------------------
    # Worker pool

    def _use_parallel(self, parallel: bool | None) -> bool:
        return self.parallel if parallel is None else bool(parallel)

    def _run_tasks(self, tasks: Iterable[Callable[[], None]]) -> None:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(
                max_workers=self.workers, thread_name_prefix="glyphnet"
            )
        futures = [self._executor.submit(task) for task in tasks]
        # Barrier: the next layer only starts once every chunk has finished.
        for future in futures:
            future.result()

    def close(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def __enter__(self) -> "Network":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return (
            f"Network(structure={self.structure}, alpha={self.alpha}, "
            f"parallel={self.parallel}, workers={self.workers})"
        )


def _emit_epoch(
    callbacks: Sequence[object], epoch: int, metrics: Mapping[str, float]
) -> None:
    for callback in callbacks:
        if hasattr(callback, "on_epoch"):
            callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        elif callable(callback):
            callback(epoch, metrics)


__all__ = [
    "CONVERGENCE_ERROR",
    "DEFAULT_ALPHA",
    "DEFAULT_WORKERS",
    "MAX_TRAIN_ITERATIONS",
    "Network",
    "default_workers",
    "partition_range",
]
