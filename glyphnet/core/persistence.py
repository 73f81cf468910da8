"""JSON snapshots of network weights.

The current format (version 1) stores every unit's weight vector *and* bias
weight, so a save/load round trip reproduces inference exactly::

    {
      "format": "glyphnet.network",
      "version": 1,
      "alpha": 0.25,
      "layer_count": 3,
      "sensor_count": 2,
      "class_count": 2,
      "structure": [2, 4, 2],
      "layers": [[{"weights": null, "bias_weight": 0.01}, ...], ...]
    }

Older snapshots written by the original recogniser (``CntLayers``,
``CntSensors``, ``CntClasses`` and ``{"weight": [...]}`` per unit) are still
readable; they carry no bias weights, so units fall back to the default.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Mapping, Sequence, Tuple

import numpy as np

from .errors import PersistenceError
from .unit import DEFAULT_BIAS_WEIGHT, Layer, Unit

logger = logging.getLogger(__name__)

FORMAT = "glyphnet.network"
VERSION = 1


def to_snapshot(layers: Sequence[Layer], alpha: float) -> dict:
    """Return a JSON-serialisable snapshot of ``layers``."""

    structure = [len(layer) for layer in layers]
    return {
        "format": FORMAT,
        "version": VERSION,
        "alpha": float(alpha),
        "layer_count": len(layers),
        "sensor_count": structure[0],
        "class_count": structure[-1],
        "structure": structure,
        "layers": [
            [
                {
                    "weights": None if unit.weights is None else unit.weights.tolist(),
                    "bias_weight": float(unit.bias_weight),
                }
                for unit in layer.units
            ]
            for layer in layers
        ],
    }


def _normalise_legacy(data: Mapping[str, Any]) -> dict:
    raw_layers = data.get("layers")
    if not isinstance(raw_layers, list):
        raise PersistenceError("Legacy snapshot is missing its 'layers' array")
    layers = []
    for raw_layer in raw_layers:
        if not isinstance(raw_layer, list):
            raise PersistenceError("Legacy snapshot layers must be arrays of units")
        units = []
        for unit in raw_layer:
            if unit is not None and not isinstance(unit, Mapping):
                raise PersistenceError("Legacy snapshot units must be objects")
            units.append(
                {"weights": (unit or {}).get("weight"), "bias_weight": DEFAULT_BIAS_WEIGHT}
            )
        layers.append(units)
    return {
        "format": FORMAT,
        "version": 0,
        "alpha": None,
        "layer_count": data.get("CntLayers"),
        "sensor_count": data.get("CntSensors"),
        "class_count": data.get("CntClasses"),
        "layers": layers,
    }


def from_snapshot(data: Mapping[str, Any]) -> Tuple[List[Layer], float | None]:
    """Rebuild the layer arena described by ``data``.

    Returns the layers and the stored learning rate (``None`` for legacy
    snapshots, which do not record one).
    """

    if not isinstance(data, Mapping):
        raise PersistenceError("Snapshot must decode to a mapping")
    if "CntLayers" in data:
        data = _normalise_legacy(data)
    elif data.get("format") != FORMAT:
        raise PersistenceError(f"Unrecognised snapshot format: {data.get('format')!r}")
    elif data.get("version") != VERSION:
        raise PersistenceError(f"Unsupported snapshot version: {data.get('version')!r}")

    raw_layers = data.get("layers")
    if not isinstance(raw_layers, list) or len(raw_layers) < 2:
        raise PersistenceError("Snapshot must contain at least two layers")
    if not all(isinstance(raw_layer, list) for raw_layer in raw_layers):
        raise PersistenceError("Snapshot layers must be arrays of units")
    structure = [len(raw_layer) for raw_layer in raw_layers]
    expected = {
        "layer_count": len(raw_layers),
        "sensor_count": structure[0],
        "class_count": structure[-1],
    }
    for key, value in expected.items():
        if data.get(key) != value:
            raise PersistenceError(
                f"Snapshot {key}={data.get(key)!r} disagrees with its layers ({value})"
            )

    layers: List[Layer] = []
    for layer_idx, raw_layer in enumerate(raw_layers):
        units: List[Unit] = []
        for unit_idx, raw_unit in enumerate(raw_layer):
            if not isinstance(raw_unit, Mapping):
                raise PersistenceError(f"Unit {layer_idx}/{unit_idx} must be a mapping")
            units.append(_restore_unit(layer_idx, unit_idx, raw_unit, structure))
        layers.append(Layer(units))

    alpha = data.get("alpha")
    if alpha is None:
        return layers, None
    try:
        return layers, float(alpha)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"Snapshot alpha {alpha!r} is not a number") from exc


def _restore_unit(
    layer_idx: int, unit_idx: int, raw_unit: Mapping[str, Any], structure: Sequence[int]
) -> Unit:
    try:
        bias_weight = float(raw_unit.get("bias_weight", DEFAULT_BIAS_WEIGHT))
    except (TypeError, ValueError) as exc:
        raise PersistenceError(
            f"Unit {layer_idx}/{unit_idx} has a non-numeric bias weight"
        ) from exc
    if layer_idx == 0:
        return Unit(layer=0, index=unit_idx, bias_weight=bias_weight)
    raw_weights = raw_unit.get("weights")
    if raw_weights is None:
        raise PersistenceError(f"Unit {layer_idx}/{unit_idx} has no weights")
    try:
        weights = np.asarray(raw_weights, dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise PersistenceError(f"Unit {layer_idx}/{unit_idx} has non-numeric weights") from exc
    if weights.shape != (structure[layer_idx - 1],):
        raise PersistenceError(
            f"Unit {layer_idx}/{unit_idx} has {weights.size} weights, "
            f"expected {structure[layer_idx - 1]}"
        )
    return Unit(layer=layer_idx, index=unit_idx, weights=weights.copy(), bias_weight=bias_weight)


def write_snapshot(path: str | Path, snapshot: Mapping[str, Any]) -> str:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(snapshot, indent=2))
    logger.info("Saved network snapshot %s (structure=%s)", path, snapshot.get("structure"))
    return str(path)


def read_snapshot(path: str | Path) -> Mapping[str, Any]:
    path = Path(path)
    try:
        text = path.read_text()
    except OSError as exc:
        raise PersistenceError(f"Cannot read network snapshot {path}: {exc}") from exc
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        raise PersistenceError(f"Network snapshot {path} is not valid JSON: {exc}") from exc
    logger.info("Loaded network snapshot %s", path)
    return data


__all__ = ["FORMAT", "VERSION", "from_snapshot", "read_snapshot", "to_snapshot", "write_snapshot"]
