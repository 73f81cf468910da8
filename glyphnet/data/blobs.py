"""Linearly separable Gaussian clusters, one per class."""

from __future__ import annotations

import numpy as np

from ..core.types import LabelSet
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, split_loader, split_sizes


def _make_blobs(
    classes: int, dims: int, n_per_class: int, spread: float, seed: int
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    centers = np.zeros((classes, dims))
    if dims == 1:
        centers[:, 0] = np.linspace(-1.0, 1.0, classes)
    else:
        # Centres evenly spaced on the unit circle of the first two axes.
        angles = rng.uniform(0.0, 2 * np.pi) + 2 * np.pi * np.arange(classes) / classes
        centers[:, 0] = np.cos(angles)
        centers[:, 1] = np.sin(angles)
    points = []
    labels = []
    for cls, center in enumerate(centers):
        points.append(center + spread * rng.standard_normal((n_per_class, dims)))
        labels.append(np.full(n_per_class, cls, dtype=np.int64))
    return np.vstack(points), np.concatenate(labels)


@register_dataset("blobs")
def load_blobs(
    *,
    classes: int = 2,
    dims: int = 2,
    n_per_class: int = 16,
    spread: float = 0.1,
    seed: int = 0,
    val_split: float = 0.0,
    test_split: float = 0.25,
) -> DatasetSpec:
    """Small clustered dataset for smoke tests and convergence checks."""

    features, labels = _make_blobs(classes, dims, n_per_class, spread, seed)
    splits = deterministic_split(
        features.shape[0], val_split=val_split, test_split=test_split, seed=seed
    )
    data_spec = DataSpec(
        sensor_count=dims,
        class_count=classes,
        labels=LabelSet.of(f"class_{idx}" for idx in range(classes)),
    )
    provenance = {
        "type": "blobs",
        "classes": classes,
        "dims": dims,
        "n_per_class": n_per_class,
        "spread": spread,
        "seed": seed,
        "val_split": val_split,
        "test_split": test_split,
    }
    return DatasetSpec(
        name="blobs",
        loader=split_loader(features, labels, splits, classes),
        data_spec=data_spec,
        provenance=provenance,
        splits=split_sizes(splits),
    )


__all__ = ["load_blobs"]
