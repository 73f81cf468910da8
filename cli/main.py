"""Command line entry point for glyphnet training runs and predictions."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Iterable

from glyphnet.core.network import Network
from glyphnet.core.types import LabelSet
from glyphnet.data import available_datasets
from glyphnet.recognizer import GlyphRecognizer
from glyphnet.training import pipelines


def _format_result(result) -> str:
    payload = {
        "epochs": result.epochs,
        "train_accuracy": round(result.train_accuracy, 6),
        "test_accuracy": round(result.test_accuracy, 6),
        "metrics": result.metrics_path,
        "manifest": result.manifest_path,
        "snapshot": result.snapshot_path,
    }
    if result.summary_path:
        payload["summary"] = result.summary_path
    return json.dumps(payload, sort_keys=True)


def parse_args(argv: Iterable[str] | None = None) -> argparse.Namespace:
    preset_names = sorted(pipelines.presets().keys())
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--preset",
        choices=preset_names,
        default="blobs-sequential",
        help="Preset configuration to execute",
    )
    parser.add_argument("--config", type=Path, help="Optional JSON/YAML config override")
    parser.add_argument("--seed", type=int, help="Seed used for weight init and shuffling")
    parser.add_argument("--epochs", type=int, help="Override the number of training epochs")
    parser.add_argument(
        "--parallel",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Run forward/backward passes on the worker pool",
    )
    parser.add_argument("--workers", type=int, help="Worker-pool width for parallel passes")
    parser.add_argument(
        "--enable-plots", action="store_true", help="Write accuracy.png into the run dir"
    )
    parser.add_argument(
        "--snapshot",
        type=Path,
        help="Network snapshot; with --vector, predict instead of training",
    )
    parser.add_argument("--vector", help="Comma-separated feature vector to recognise")
    parser.add_argument(
        "--labels", help="Comma-separated label names for --vector (defaults to indices)"
    )
    parser.add_argument(
        "--list-presets", action="store_true", help="List available presets and exit"
    )
    parser.add_argument(
        "--list-datasets", action="store_true", help="List registered datasets and exit"
    )
    parser.add_argument(
        "--dump-config", type=Path, help="Dump the resolved config to a JSON file"
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity",
    )
    return parser.parse_args(argv)


def _predict(args: argparse.Namespace) -> None:
    vector = [float(item) for item in args.vector.split(",") if item.strip()]
    network = Network.load(args.snapshot)
    if args.labels:
        labels = LabelSet.of(item.strip() for item in args.labels.split(","))
    else:
        labels = LabelSet.of(range(network.class_count))
    with GlyphRecognizer(network, labels) as recognizer:
        scores = recognizer.scores(vector)
        payload = {"label": recognizer.recognise(vector), "scores": scores}
    print(json.dumps(payload, sort_keys=True))


def main(argv: Iterable[str] | None = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.list_presets:
        for name in sorted(pipelines.presets().keys()):
            print(name)
        raise SystemExit(0)

    if args.list_datasets:
        for name in available_datasets():
            print(name)
        raise SystemExit(0)

    if args.vector is not None:
        if args.snapshot is None:
            raise SystemExit("--vector requires --snapshot")
        _predict(args)
        return

    config = json.loads(json.dumps(pipelines.load_preset(args.preset)))

    if args.config:
        override = pipelines.read_config_file(args.config)
        if {"data", "model", "train"} <= set(override.keys()):
            config = json.loads(json.dumps(override))
        else:
            config = pipelines.merge_config(config, override)

    train_cfg = config.setdefault("train", {})
    model_cfg = config.setdefault("model", {})
    if args.enable_plots:
        train_cfg["enable_plots"] = True
    if args.seed is not None:
        train_cfg["seed"] = int(args.seed)
    if args.epochs is not None:
        train_cfg["epochs"] = int(args.epochs)
    if args.parallel is not None:
        model_cfg["parallel"] = bool(args.parallel)
    if args.workers is not None:
        model_cfg["workers"] = int(args.workers)
    if args.snapshot is not None:
        model_cfg["snapshot"] = str(args.snapshot)

    if args.dump_config:
        args.dump_config.parent.mkdir(parents=True, exist_ok=True)
        args.dump_config.write_text(json.dumps(config, indent=2))

    result = pipelines.run_pipeline(config)
    print(_format_result(result))


if __name__ == "__main__":
    main()
