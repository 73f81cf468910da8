"""Per-epoch metric sinks for training runs."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, Mapping

from .artifacts import git_sha


class _EpochSink:
    """Shared record building for the file-backed sinks."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.split = split

    def _record(self, epoch: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        record.update(
            {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}
        )
        return record

    def _write(self, record: Mapping[str, object]) -> None:
        raise NotImplementedError

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self._write(self._record(epoch, metrics))

    __call__ = on_epoch


class JsonlSink(_EpochSink):
    """Append-only JSONL writer; truncates ``path`` on creation."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        super().__init__(path, split=split)
        self.path.write_text("")
        self.seed = seed
        self.sha = sha or git_sha()

    def _record(self, epoch: int, metrics: Mapping[str, float]) -> Dict[str, object]:
        record = super()._record(epoch, metrics)
        record["seed"] = self.seed
        record["sha"] = self.sha
        return record

    def _write(self, record: Mapping[str, object]) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record, sort_keys=True) + "\n")


class CsvSink(_EpochSink):
    """CSV writer with the header taken from the first record."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        super().__init__(path, split=split)
        self.path.write_text("")
        self._fieldnames: list[str] | None = None

    def _write(self, record: Mapping[str, object]) -> None:
        if self._fieldnames is None:
            self._fieldnames = sorted(record.keys())
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self._fieldnames, extrasaction="ignore")
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(record)


class MetricsCapture:
    """In-memory history of epoch metrics."""

    def __init__(self) -> None:
        self.history: list[tuple[int, Dict[str, float]]] = []

    @property
    def last(self) -> Dict[str, float]:
        return dict(self.history[-1][1]) if self.history else {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        self.history.append((int(epoch), {k: float(v) for k, v in metrics.items()}))


__all__ = ["CsvSink", "JsonlSink", "MetricsCapture"]
