"""Core typing contracts for glyphnet."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np

Array = np.ndarray

UNDEFINED = -1
"""Label sentinel for samples that carry no true label or are not yet scored."""


@dataclass(frozen=True)
class LabelSet:
    """Names for the output classes ``0..C-1`` of a network."""

    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        if not self.names:
            raise ValueError("LabelSet requires at least one label")
        if len(set(self.names)) != len(self.names):
            raise ValueError(f"Duplicate label names: {list(self.names)}")

    @classmethod
    def of(cls, names: Sequence[object]) -> "LabelSet":
        return cls(names=tuple(str(name) for name in names))

    def __len__(self) -> int:
        return len(self.names)

    def index(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"Unknown label: {name!r}") from None

    def name(self, label: int) -> str | None:
        """Return the name for ``label`` or ``None`` for :data:`UNDEFINED`."""

        if label == UNDEFINED:
            return None
        if not 0 <= label < len(self.names):
            raise IndexError(f"Label {label} outside [0, {len(self.names)})")
        return self.names[label]


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`glyphnet.training.pipelines.run_pipeline`."""

    epochs: int
    train_accuracy: float
    test_accuracy: float
    metrics_path: str
    manifest_path: str
    summary_path: str = ""
    snapshot_path: str = ""


__all__ = ["Array", "LabelSet", "RunResult", "UNDEFINED"]
