"""Samples and sample sets consumed by :class:`glyphnet.core.network.Network`."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Sequence

import numpy as np

from .errors import NotScoredError
from .types import UNDEFINED, Array


class Sample:
    """One observation: input vector, network response and derived error.

    ``output`` starts as the one-hot target when a true label is given, but a
    forward pass overwrites it with the final-layer activations. ``error`` and
    ``predicted_label`` are only meaningful after :meth:`process_output`.
    """

    def __init__(
        self,
        inputs: Sequence[float] | Array,
        class_count: int,
        true_label: int = UNDEFINED,
    ) -> None:
        if class_count < 1:
            raise ValueError(f"class_count must be positive, got {class_count}")
        true_label = int(true_label)
        if true_label != UNDEFINED and not 0 <= true_label < class_count:
            raise ValueError(f"true_label {true_label} outside [0, {class_count})")

        self.input: Array = np.array(inputs, dtype=np.float64, copy=True).reshape(-1)
        self.input.setflags(write=False)
        self.output: Array = np.zeros(class_count, dtype=np.float64)
        if true_label != UNDEFINED:
            self.output[true_label] = 1.0
        self.error: Array | None = None
        self.true_label = true_label
        self.predicted_label = UNDEFINED

    @property
    def class_count(self) -> int:
        return int(self.output.shape[0])

    @property
    def scored(self) -> bool:
        return self.error is not None

    def process_output(self) -> None:
        """Derive ``error`` and ``predicted_label`` from the current ``output``."""

        if self.error is None:
            self.error = np.zeros_like(self.output)
        target = np.zeros_like(self.output)
        if self.true_label != UNDEFINED:
            target[self.true_label] = 1.0
        np.subtract(target, self.output, out=self.error)
        # np.argmax returns the first maximal index, matching a strict ``>`` scan.
        self.predicted_label = int(np.argmax(self.output))

    def _require_error(self) -> Array:
        if self.error is None:
            raise NotScoredError("process_output() must run before reading the error")
        return self.error

    def estimated_error(self) -> float:
        """Sum of squared per-class errors."""

        error = self._require_error()
        return float(np.dot(error, error))

    def accumulate_error_into(self, target: Array) -> Array:
        """Add the (signed, unsquared) error vector into ``target`` in place."""

        error = self._require_error()
        if target.shape != error.shape:
            raise ValueError(
                f"Accumulator shape {target.shape} does not match error shape {error.shape}"
            )
        target += error
        return target

    def is_correct(self) -> bool:
        return self.predicted_label == self.true_label

    def __repr__(self) -> str:
        return (
            f"Sample(true_label={self.true_label}, predicted_label={self.predicted_label}, "
            f"input={np.array2string(self.input, precision=3)}, "
            f"output={np.array2string(self.output, precision=3)}, "
            f"error={None if self.error is None else np.array2string(self.error, precision=3)})"
        )


class SampleSet:
    """Ordered, index-addressable collection of :class:`Sample` objects."""

    def __init__(self, samples: Iterable[Sample] = ()) -> None:
        self._samples: List[Sample] = list(samples)

    @classmethod
    def from_arrays(
        cls,
        inputs: Array,
        labels: Sequence[int] | Array | None,
        class_count: int,
    ) -> "SampleSet":
        """Build a set from a 2-D feature matrix and optional label vector."""

        features = np.asarray(inputs, dtype=np.float64)
        if features.ndim != 2:
            raise ValueError(f"inputs must be 2-D, got shape {features.shape}")
        if labels is None:
            targets = [UNDEFINED] * features.shape[0]
        else:
            targets = [int(label) for label in np.asarray(labels).reshape(-1)]
            if len(targets) != features.shape[0]:
                raise ValueError(
                    f"Got {len(targets)} labels for {features.shape[0]} input rows"
                )
        return cls(Sample(row, class_count, label) for row, label in zip(features, targets))

    def add(self, sample: Sample) -> None:
        self._samples.append(sample)

    def __len__(self) -> int:
        return len(self._samples)

    def __getitem__(self, index: int) -> Sample:
        return self._samples[index]

    def __setitem__(self, index: int, sample: Sample) -> None:
        self._samples[index] = sample

    def __iter__(self) -> Iterator[Sample]:
        return iter(self._samples)

    def shuffle(self, rng: np.random.Generator | None = None) -> None:
        """Reorder the samples with an unbiased uniform permutation."""

        rng = rng or np.random.default_rng()
        order = rng.permutation(len(self._samples))
        self._samples = [self._samples[int(idx)] for idx in order]

    def _require_scored(self) -> None:
        if not self._samples:
            raise ValueError("SampleSet is empty")
        if not all(sample.scored for sample in self._samples):
            raise NotScoredError("every sample must be scored before aggregating")

    def accuracy(self) -> float:
        """Fraction of scored samples that were classified correctly."""

        self._require_scored()
        correct = sum(1 for sample in self._samples if sample.is_correct())
        return correct / len(self._samples)

    def error_vector(self) -> Array:
        """Per-class sum of every sample's error vector."""

        self._require_scored()
        total = np.zeros(self._samples[0].class_count, dtype=np.float64)
        for sample in self._samples:
            sample.accumulate_error_into(total)
        return total

    def mean_estimated_error(self) -> float:
        self._require_scored()
        return float(np.mean([sample.estimated_error() for sample in self._samples]))


__all__ = ["Sample", "SampleSet"]
