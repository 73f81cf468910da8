import csv
import json
from pathlib import Path

import pytest

from glyphnet.reporting.artifacts import write_config, write_manifest
from glyphnet.reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from glyphnet.reporting.plots import PlotAdapter
from glyphnet.reporting.summary import compute_auc, write_summary


def test_jsonl_sink_truncates_and_appends(tmp_path):
    path = tmp_path / "metrics.jsonl"
    path.write_text("stale\n")
    sink = JsonlSink(path, split="train", seed=5, sha="abc")
    sink.on_epoch(1, {"accuracy": 0.5, "error_rate": 0.5})
    sink(2, {"accuracy": 0.75, "error_rate": 0.25})

    lines = path.read_text().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first == {
        "accuracy": 0.5,
        "epoch": 1,
        "error_rate": 0.5,
        "seed": 5,
        "sha": "abc",
        "split": "train",
    }


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "metrics.csv", split="train")
    sink.on_epoch(1, {"accuracy": 0.5, "mean_iterations": 3})
    sink.on_epoch(2, {"accuracy": 1.0, "mean_iterations": 0})
    with (tmp_path / "metrics.csv").open(newline="") as handle:
        rows = list(csv.DictReader(handle))
    assert [row["epoch"] for row in rows] == ["1", "2"]
    assert rows[1]["accuracy"] == "1.0"
    assert rows[0]["split"] == "train"


def test_metrics_capture_keeps_history():
    capture = MetricsCapture()
    assert capture.last == {}
    capture.on_epoch(1, {"accuracy": 0.25})
    capture.on_epoch(2, {"accuracy": 0.5})
    assert capture.last == {"accuracy": 0.5}
    assert [epoch for epoch, _ in capture.history] == [1, 2]


def test_compute_auc():
    assert compute_auc([1.0]) == 0.0
    assert compute_auc([0.0, 1.0, 1.0]) == pytest.approx(1.5)


def test_summary_reports_earliest_best_epoch(tmp_path):
    jsonl = tmp_path / "metrics.jsonl"
    sink = JsonlSink(jsonl, seed=1, sha="x")
    for epoch, accuracy in enumerate([0.25, 0.75, 0.5, 0.75], start=1):
        sink.on_epoch(epoch, {"accuracy": accuracy, "elapsed_s": 0.1 * epoch})

    out = write_summary(jsonl, tmp_path / "summary.json", tail=2)
    summary = json.loads(Path(out).read_text())
    assert summary["epochs"] == 4
    assert summary["best_epoch"] == 2
    assert summary["tail_window"] == 2
    assert summary["metrics"]["accuracy"]["max"] == 0.75
    assert summary["metrics"]["accuracy"]["last"] == 0.75
    assert "seed" not in summary["metrics"]
    assert "elapsed_s" not in summary["metrics"]


def test_summary_of_missing_metrics_is_empty(tmp_path):
    out = write_summary(tmp_path / "none.jsonl", tmp_path / "summary.json")
    summary = json.loads(Path(out).read_text())
    assert summary["epochs"] == 0
    assert summary["best_epoch"] is None


def test_manifest_and_config(tmp_path):
    manifest_path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"epochs": 2}},
        dataset_provenance={"type": "blobs"},
        network={"structure": [2, 2]},
    )
    manifest = json.loads(Path(manifest_path).read_text())
    assert manifest["dataset"] == {"type": "blobs"}
    assert manifest["network"]["structure"] == [2, 2]
    assert {"python", "numpy"} <= set(manifest["environment"])

    config_path = write_config(tmp_path / "sub" / "config.json", {"b": 1, "a": 2})
    assert Path(config_path).read_text().index('"a"') < Path(config_path).read_text().index('"b"')


def test_plot_adapter_disabled_writes_nothing(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=False)
    adapter.on_epoch(1, {"accuracy": 0.5})
    assert adapter.close() is None
    assert not (tmp_path / "accuracy.png").exists()


def test_plot_adapter_renders_png(tmp_path):
    pytest.importorskip("matplotlib")
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"accuracy": 0.5, "mean_iterations": 12})
    adapter.on_epoch(2, {"accuracy": 0.9, "mean_iterations": 3})
    path = adapter.close()
    assert path == str(tmp_path / "accuracy.png")
    assert Path(path).stat().st_size > 0
