"""Deterministic run summaries built from a metrics JSONL file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping, Sequence

import numpy as np

# Bookkeeping and wall-clock fields stay out of the deterministic summary.
_NON_METRICS = {"epoch", "seed", "elapsed_s"}


def compute_auc(points: Sequence[float]) -> float:
    """Trapezoidal area under ``points`` along an implicit epoch axis."""

    if len(points) < 2:
        return 0.0
    y = np.asarray(points, dtype=np.float64)
    return float(np.sum((y[1:] + y[:-1]) / 2.0))


def _numeric_series(records: Iterable[Mapping[str, object]]) -> dict[str, list[float]]:
    series: dict[str, list[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in _NON_METRICS or isinstance(value, bool):
                continue
            if isinstance(value, (int, float)):
                series.setdefault(key, []).append(float(value))
    return series


def _build_summary(records: list[Mapping[str, object]], tail: int) -> Mapping[str, object]:
    tail_window = min(tail, len(records))
    metrics: dict[str, Mapping[str, float]] = {}
    for name, values in _numeric_series(records).items():
        arr = np.asarray(values, dtype=np.float64)
        metrics[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
            "tail_auc": compute_auc(arr[-tail_window:].tolist()) if tail_window else 0.0,
        }

    best_epoch = None
    accuracies = [
        (float(r["accuracy"]), int(r.get("epoch", idx + 1)))
        for idx, r in enumerate(records)
        if isinstance(r.get("accuracy"), (int, float))
    ]
    if accuracies:
        # Earliest epoch reaching the best accuracy.
        best = max(acc for acc, _ in accuracies)
        best_epoch = next(epoch for acc, epoch in accuracies if acc == best)

    return {
        "version": 1,
        "epochs": len(records),
        "best_epoch": best_epoch,
        "tail_window": tail_window,
        "metrics": metrics,
    }


def write_summary(
    metrics_jsonl: str | Path, out_summary_json: str | Path, *, tail: int = 8
) -> str:
    """Write a deterministic summary for ``metrics_jsonl``."""

    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_summary_json)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    records: list[Mapping[str, object]] = []
    if metrics_path.exists():
        for line in metrics_path.read_text().splitlines():
            line = line.strip()
            if line:
                records.append(json.loads(line))

    summary = _build_summary(records, tail)
    out_path.write_text(json.dumps(summary, sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["compute_auc", "write_summary"]
