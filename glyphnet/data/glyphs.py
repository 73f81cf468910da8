"""Built-in 5x7 letter bitmaps with pixel-flip noise.

These stand in for the output of an image feature extractor: every sample is
a flattened binary bitmap, so the sensor layer has ``5 * 7`` inputs.
"""

from __future__ import annotations

from typing import Dict, Sequence, Tuple

import numpy as np

from ..core.types import LabelSet
from .registry import DataSpec, DatasetSpec, register_dataset
from .utils import deterministic_split, split_loader, split_sizes

GLYPH_SHAPE = (7, 5)

GLYPHS: Dict[str, Tuple[str, ...]] = {
    "A": (".###.", "#...#", "#...#", "#####", "#...#", "#...#", "#...#"),
    "B": ("####.", "#...#", "#...#", "####.", "#...#", "#...#", "####."),
    "C": (".###.", "#...#", "#....", "#....", "#....", "#...#", ".###."),
    "D": ("####.", "#...#", "#...#", "#...#", "#...#", "#...#", "####."),
    "E": ("#####", "#....", "#....", "####.", "#....", "#....", "#####"),
    "H": ("#...#", "#...#", "#...#", "#####", "#...#", "#...#", "#...#"),
    "L": ("#....", "#....", "#....", "#....", "#....", "#....", "#####"),
    "O": (".###.", "#...#", "#...#", "#...#", "#...#", "#...#", ".###."),
    "T": ("#####", "..#..", "..#..", "..#..", "..#..", "..#..", "..#.."),
    "X": ("#...#", "#...#", ".#.#.", "..#..", ".#.#.", "#...#", "#...#"),
}


def glyph_vector(letter: str) -> np.ndarray:
    """Flattened 0/1 bitmap for ``letter``."""

    rows = GLYPHS[letter]
    return np.array([[1.0 if px == "#" else 0.0 for px in row] for row in rows]).reshape(-1)


def _make_glyphs(
    letters: Sequence[str], n_per_class: int, noise: float, seed: int
) -> tuple[np.ndarray, np.ndarray]:
    rng = np.random.default_rng(seed)
    features = []
    labels = []
    for cls, letter in enumerate(letters):
        clean = glyph_vector(letter)
        flips = rng.random((n_per_class, clean.size)) < noise
        features.append(np.abs(clean - flips.astype(np.float64)))
        labels.append(np.full(n_per_class, cls, dtype=np.int64))
    return np.vstack(features), np.concatenate(labels)


@register_dataset("glyphs")
def load_glyphs(
    *,
    letters: Sequence[str] | str | None = None,
    n_per_class: int = 12,
    noise: float = 0.05,
    seed: int = 0,
    val_split: float = 0.0,
    test_split: float = 0.25,
) -> DatasetSpec:
    """Noisy copies of the built-in letter bitmaps."""

    if letters is None:
        letters = sorted(GLYPHS)
    elif isinstance(letters, str):
        letters = [ch for ch in letters.replace(",", "") if not ch.isspace()]
    letters = [str(letter).upper() for letter in letters]
    unknown = sorted(set(letters) - set(GLYPHS))
    if unknown:
        raise KeyError(f"No built-in bitmap for: {', '.join(unknown)}")
    if not 0.0 <= noise < 0.5:
        raise ValueError("noise must be in [0, 0.5)")

    features, labels = _make_glyphs(letters, n_per_class, noise, seed)
    splits = deterministic_split(
        features.shape[0], val_split=val_split, test_split=test_split, seed=seed
    )
    data_spec = DataSpec(
        sensor_count=int(features.shape[1]),
        class_count=len(letters),
        labels=LabelSet.of(letters),
        extra={"bitmap_shape": list(GLYPH_SHAPE)},
    )
    provenance = {
        "type": "glyphs",
        "letters": list(letters),
        "n_per_class": n_per_class,
        "noise": noise,
        "seed": seed,
        "val_split": val_split,
        "test_split": test_split,
    }
    return DatasetSpec(
        name="glyphs",
        loader=split_loader(features, labels, splits, len(letters)),
        data_spec=data_spec,
        provenance=provenance,
        splits=split_sizes(splits),
    )


__all__ = ["GLYPHS", "GLYPH_SHAPE", "glyph_vector", "load_glyphs"]
