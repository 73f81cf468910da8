"""Pipeline assembly: dataset -> network -> training -> artifacts."""

from __future__ import annotations

import json
import logging
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.errors import ConfigurationError
from ..core.network import DEFAULT_ALPHA, Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_config, write_manifest
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import Trainer

logger = logging.getLogger(__name__)

_PRESETS: Dict[str, Mapping[str, object]] = {
    "blobs-sequential": {
        "data": {
            "name": "blobs",
            "options": {"classes": 2, "dims": 2, "n_per_class": 16, "seed": 0},
        },
        "model": {"hidden": [4], "alpha": 0.25, "parallel": False},
        "train": {
            "epochs": 20,
            "acceptable_error_rate": 0.0,
            "seed": 7,
            "run_dir": "runs/blobs-sequential",
            "enable_plots": False,
        },
    },
    "blobs-parallel": {
        "data": {
            "name": "blobs",
            "options": {"classes": 3, "dims": 4, "n_per_class": 16, "seed": 1},
        },
        "model": {"hidden": [8], "alpha": 0.25, "parallel": True, "workers": 4},
        "train": {
            "epochs": 20,
            "acceptable_error_rate": 0.0,
            "seed": 7,
            "run_dir": "runs/blobs-parallel",
            "enable_plots": False,
        },
    },
    "glyphs-basic": {
        "data": {
            "name": "glyphs",
            "options": {"n_per_class": 12, "noise": 0.05, "seed": 0},
        },
        "model": {"hidden": [24], "alpha": 0.25, "parallel": False},
        "train": {
            "epochs": 30,
            "acceptable_error_rate": 0.02,
            "seed": 3,
            "run_dir": "runs/glyphs-basic",
            "enable_plots": False,
        },
    },
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None
_REQUIRED_SECTIONS = {"data", "model", "train"}


def read_config_file(path: str | Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    path = Path(path)
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = _REQUIRED_SECTIONS - set(data)
                if missing:
                    raise KeyError(
                        f"Preset {file.name} is missing required sections: "
                        f"{', '.join(sorted(missing))}"
                    )
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError:
        raise KeyError(f"Unknown preset: {name}") from None


def merge_config(base: dict, override: Mapping[str, object]) -> dict:
    """Recursively merge ``override`` into ``base`` and return ``base``."""

    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(base.get(key), dict):
            base[key] = merge_config(dict(base[key]), value)
        else:
            base[key] = value
    return base


def build_structure(
    model_cfg: Mapping[str, object], sensor_count: int, class_count: int
) -> List[int]:
    """Resolve ``[sensors, *hidden, classes]`` and check it against the dataset."""

    for key, observed in (("sensors", sensor_count), ("classes", class_count)):
        configured = model_cfg.get(key)
        if configured is not None and int(configured) != observed:
            raise ConfigurationError(
                f"Configured {key}={configured} but the dataset provides {observed}"
            )
    hidden = [int(size) for size in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    return [sensor_count, *hidden, class_count]


def build_network(
    model_cfg: Mapping[str, object], structure: Sequence[int], seed: int
) -> Network:
    parallel = bool(model_cfg.get("parallel", False))
    workers = model_cfg.get("workers")
    workers = int(workers) if workers is not None else None
    snapshot = model_cfg.get("snapshot")
    if snapshot:
        network = Network.load(str(snapshot), seed=seed, parallel=parallel, workers=workers)
        if network.structure != list(structure):
            raise ConfigurationError(
                f"Snapshot structure {network.structure} does not match {list(structure)}"
            )
        if "alpha" in model_cfg:
            network.alpha = float(model_cfg["alpha"])  # type: ignore[arg-type]
        return network
    return Network(
        structure,
        alpha=float(model_cfg.get("alpha", DEFAULT_ALPHA)),  # type: ignore[arg-type]
        seed=seed,
        parallel=parallel,
        workers=workers,
    )


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    missing = _REQUIRED_SECTIONS - set(config)
    if missing:
        raise ConfigurationError(f"Config is missing sections: {', '.join(sorted(missing))}")
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = registry.get_dataset(str(data_cfg["name"]), **data_cfg.get("options", {}))
    data_spec = dataset.data_spec
    seed = int(train_cfg.get("seed", 0))
    structure = build_structure(model_cfg, data_spec.sensor_count, data_spec.class_count)

    epochs = int(train_cfg.get("epochs", 10))
    acceptable = float(train_cfg.get("acceptable_error_rate", 0.0))
    if not 0.0 <= acceptable <= 1.0:
        raise ConfigurationError("acceptable_error_rate must be in [0, 1]")

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    train_set = dataset.split("train")
    val_set = dataset.split("val")
    test_set = dataset.split("test")

    with build_network(model_cfg, structure, seed) as network:
        _print_startup_summary(
            dataset_name=dataset.name,
            structure=network.structure,
            alpha=network.alpha,
            parallel=network.parallel,
            workers=network.workers,
            param_count=network.parameter_count(),
            splits=dataset.splits,
        )

        train_jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
        train_csv = CsvSink(run_dir / "metrics_train.csv", split="train")
        val_jsonl = JsonlSink(run_dir / "metrics_val.jsonl", split="val", seed=seed)
        test_capture = MetricsCapture()
        plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))

        trainer = Trainer(
            network,
            split_loggers={
                "train": [train_jsonl, train_csv, plots],
                "val": [val_jsonl],
                "test": [test_capture],
            },
        )
        fit = trainer.fit(
            train_set,
            epochs=epochs,
            acceptable_error_rate=acceptable,
            val_set=val_set,
        )
        test_metrics = (
            trainer.evaluate(test_set, split="test", epoch=fit.epochs)
            if len(test_set)
            else {}
        )
        plots.close()
        logger.info(
            "Finished %s after %d epochs: train=%.3f test=%s",
            dataset.name,
            fit.epochs,
            fit.train_accuracy,
            test_metrics.get("accuracy"),
        )

        snapshot_path = network.save(run_dir / str(train_cfg.get("snapshot", "network.json")))
        network_info = {
            "structure": network.structure,
            "alpha": network.alpha,
            "parallel": network.parallel,
            "workers": network.workers,
            "labels": list(data_spec.labels.names),
        }

    (run_dir / "metrics_test.json").write_text(json.dumps(test_metrics, indent=2, sort_keys=True))
    resolved = _safe_config(config, structure)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        dataset_provenance=dataset.provenance,
        network=network_info,
    )
    write_config(run_dir / "config.json", resolved)
    summary_path = write_summary(
        train_jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 8))
    )

    return RunResult(
        epochs=fit.epochs,
        train_accuracy=fit.train_accuracy,
        test_accuracy=float(test_metrics.get("accuracy", 0.0)),
        metrics_path=str(train_jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
        snapshot_path=snapshot_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], structure: Sequence[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["structure"] = list(structure)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    structure: Sequence[int],
    alpha: float,
    parallel: bool,
    workers: int,
    param_count: int,
    splits: Mapping[str, int],
) -> None:
    print("=== glyphnet run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Splits        : {dict(splits)}")
    print(f"Structure     : {list(structure)}")
    print(f"Alpha         : {alpha}")
    print(f"Mode          : {'parallel x' + str(workers) if parallel else 'sequential'}")
    print(f"Parameters    : {param_count}")
    print("====================")


__all__ = [
    "build_network",
    "build_structure",
    "load_preset",
    "merge_config",
    "presets",
    "read_config_file",
    "run_pipeline",
]
