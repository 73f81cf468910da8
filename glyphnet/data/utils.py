"""Split and scaling helpers shared by the dataset loaders."""

from __future__ import annotations

from typing import Callable, Dict

import numpy as np

from ..core.sample import SampleSet
from .registry import SPLITS

Splits = Dict[str, np.ndarray]


def _split_size(n_samples: int, fraction: float) -> int:
    if fraction <= 0.0:
        return 0
    return max(1, int(round(n_samples * fraction)))


def deterministic_split(
    n_samples: int,
    *,
    val_split: float = 0.0,
    test_split: float = 0.2,
    seed: int = 0,
) -> Splits:
    """Partition ``range(n_samples)`` into seeded train/val/test index arrays.

    A split with a positive fraction receives at least one sample; training
    keeps whatever is left and must not end up empty.
    """

    for name, fraction in (("val_split", val_split), ("test_split", test_split)):
        if not 0.0 <= fraction < 1.0:
            raise ValueError(f"{name} must be in [0, 1), got {fraction}")
    if val_split + test_split >= 1.0:
        raise ValueError("val_split + test_split must be < 1")

    order = np.random.default_rng(seed).permutation(n_samples)
    n_test = min(_split_size(n_samples, test_split), n_samples)
    n_val = min(_split_size(n_samples, val_split), n_samples - n_test)
    if n_samples - n_test - n_val < 1:
        raise ValueError(f"{n_samples} samples cannot fill the requested splits")
    return {
        "test": order[:n_test],
        "val": order[n_test : n_test + n_val],
        "train": order[n_test + n_val :],
    }


def split_sizes(splits: Splits) -> Dict[str, int]:
    return {name: int(splits[name].size) for name in SPLITS}


def split_loader(
    features: np.ndarray,
    labels: np.ndarray,
    splits: Splits,
    class_count: int,
) -> Callable[[str], SampleSet]:
    """Return a loader that builds a fresh :class:`SampleSet` per call."""

    def loader(split: str) -> SampleSet:
        indices = splits[split]
        return SampleSet.from_arrays(features[indices], labels[indices], class_count)

    return loader


def standardize(features: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Scale columns to zero mean and unit variance.

    Constant columns keep a standard deviation of 1 so they map to zero.
    """

    mean = features.mean(axis=0)
    std = features.std(axis=0)
    std[std == 0.0] = 1.0
    return (features - mean) / std, mean, std


__all__ = ["Splits", "deterministic_split", "split_loader", "split_sizes", "standardize"]
