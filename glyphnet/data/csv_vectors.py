"""Labelled feature vectors stored in a CSV file."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pandas as pd
from sklearn.preprocessing import LabelEncoder

from ..core.types import LabelSet
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, split_loader, split_sizes, standardize

FIXTURE_DIR = Path(__file__).resolve().parent / "_fixtures"


def _load_csv(path: Path, label_col: str) -> tuple[np.ndarray, np.ndarray]:
    df = pd.read_csv(path)
    if label_col not in df.columns:
        raise KeyError(f"Label column {label_col!r} not found in CSV")
    y = df.pop(label_col).astype(str).to_numpy()
    X = df.to_numpy(dtype=np.float64)
    return X, y


@register_dataset("csv_vectors")
def load_csv_vectors(
    *,
    csv_path: str | Path | None = None,
    label_col: str = "label",
    val_split: float = 0.0,
    test_split: float = 0.25,
    seed: int = 0,
    standardize_inputs: bool = False,
) -> DatasetSpec:
    """Load feature columns plus a label column from ``csv_path``."""

    path = Path(csv_path) if csv_path else FIXTURE_DIR / "glyph_vectors.csv"
    X, y_raw = _load_csv(path, label_col)

    normalization: dict[str, dict[str, list[float]]] = {}
    if standardize_inputs:
        X, mean, std = standardize(X)
        normalization["inputs"] = {
            "mean": mean.tolist(),
            "std": std.tolist(),
        }

    encoder = LabelEncoder()
    y = encoder.fit_transform(y_raw).astype(np.int64)
    labels = LabelSet.of(encoder.classes_.tolist())

    splits = deterministic_split(
        X.shape[0], val_split=val_split, test_split=test_split, seed=seed
    )
    data_spec = DataSpec(
        sensor_count=int(X.shape[1]),
        class_count=len(labels),
        labels=labels,
        normalization=normalization,
    )
    provenance = {
        "path": str(path),
        "label_col": label_col,
        "val_split": val_split,
        "test_split": test_split,
        "seed": seed,
        "standardize_inputs": standardize_inputs,
        "classes": list(labels.names),
    }
    return DatasetSpec(
        name="csv_vectors",
        loader=split_loader(X, y, splits, len(labels)),
        data_spec=data_spec,
        provenance=provenance,
        splits=split_sizes(splits),
    )


__all__ = ["load_csv_vectors"]
