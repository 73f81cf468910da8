import json
from pathlib import Path

import pytest

from cli.main import main
from glyphnet.core.network import Network


def test_cli_blobs_preset(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    main(["--preset", "blobs-sequential", "--epochs", "2", "--dump-config", "cfg.json"])
    run_dir = Path("runs/blobs-sequential")
    assert (run_dir / "metrics_train.jsonl").exists()
    assert (run_dir / "manifest.json").exists()
    assert (run_dir / "network.json").exists()
    assert json.loads(Path("cfg.json").read_text())["train"]["epochs"] == 2

    result = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
    assert result["snapshot"] == str(run_dir / "network.json")
    assert 1 <= result["epochs"] <= 2


def test_cli_parallel_override_and_config_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    override = tmp_path / "override.yaml"
    override.write_text("train:\n  run_dir: runs/custom\n  epochs: 1\n")
    main(["--preset", "blobs-sequential", "--config", str(override), "--parallel", "--workers", "2"])
    config = json.loads(Path("runs/custom/config.json").read_text())
    assert config["model"]["parallel"] is True
    assert config["model"]["workers"] == 2
    assert config["train"]["epochs"] == 1


def test_cli_predicts_from_snapshot(tmp_path, capsys):
    net = Network([2, 2], seed=0)
    net.layers[1].units[0].weights[:] = [6.0, -6.0]
    net.layers[1].units[1].weights[:] = [-6.0, 6.0]
    snapshot = net.save(tmp_path / "net.json")

    main(["--snapshot", snapshot, "--vector", "0,1", "--labels", "yes,no"])
    payload = json.loads(capsys.readouterr().out)
    assert payload["label"] == "no"
    assert set(payload["scores"]) == {"yes", "no"}


def test_cli_vector_requires_snapshot():
    with pytest.raises(SystemExit):
        main(["--vector", "0,1"])


def test_cli_lists_presets(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main(["--list-presets"])
    assert excinfo.value.code == 0
    assert "glyphs-basic" in capsys.readouterr().out.split()
