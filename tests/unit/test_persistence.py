import json

import numpy as np
import pytest

from glyphnet.core import persistence
from glyphnet.core.errors import PersistenceError
from glyphnet.core.network import Network
from glyphnet.core.sample import Sample
from glyphnet.core.unit import DEFAULT_BIAS_WEIGHT


def _outputs(net, vectors):
    results = []
    for vector in vectors:
        sample = Sample(vector, net.class_count)
        net.infer(sample)
        results.append(sample.output.copy())
    return results


def test_save_load_round_trip_reproduces_inference(tmp_path):
    net = Network([4, 3, 2], alpha=0.4, seed=11)
    for unit in net.layers[2].units:
        unit.bias_weight = 0.3
    vectors = np.random.default_rng(0).uniform(-1, 1, (5, 4))

    path = net.save(tmp_path / "nested" / "net.json")
    loaded = Network.load(path)

    assert loaded.structure == net.structure
    assert loaded.alpha == 0.4
    for expected, actual in zip(_outputs(net, vectors), _outputs(loaded, vectors)):
        assert np.array_equal(expected, actual)


def test_snapshot_layout(tmp_path):
    path = Network([3, 2], seed=0).save(tmp_path / "n.json")
    snapshot = json.loads((tmp_path / "n.json").read_text())
    assert path == str(tmp_path / "n.json")
    assert snapshot["format"] == persistence.FORMAT
    assert snapshot["version"] == persistence.VERSION
    assert snapshot["layer_count"] == 2
    assert snapshot["sensor_count"] == 3
    assert snapshot["class_count"] == 2
    assert snapshot["structure"] == [3, 2]
    assert all(unit["weights"] is None for unit in snapshot["layers"][0])
    assert all(len(unit["weights"]) == 3 for unit in snapshot["layers"][1])


def test_legacy_snapshot_loads_with_default_bias_weight():
    legacy = {
        "CntLayers": 2,
        "CntSensors": 2,
        "CntClasses": 2,
        "layers": [
            [{"weight": None}, {"weight": None}],
            [{"weight": [0.5, -0.5]}, {"weight": [-0.5, 0.5]}],
        ],
    }
    net = Network.from_snapshot(legacy)
    assert net.structure == [2, 2]
    assert np.array_equal(net.layers[1].units[0].weights, [0.5, -0.5])
    assert all(unit.bias_weight == DEFAULT_BIAS_WEIGHT for unit in net.layers[1].units)
    assert net.predict(Sample([1.0, 0.0], 2)) == 0


def test_missing_file_raises_persistence_error(tmp_path):
    with pytest.raises(PersistenceError):
        Network.load(tmp_path / "absent.json")


def test_invalid_json_raises_persistence_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(PersistenceError):
        Network.load(path)


def test_unknown_version_rejected():
    snapshot = Network([2, 2], seed=0).to_snapshot()
    snapshot["version"] = 99
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)


def test_unknown_format_rejected():
    with pytest.raises(PersistenceError):
        Network.from_snapshot({"format": "something-else", "version": 1})


def test_weight_shape_mismatch_rejected():
    snapshot = Network([3, 2], seed=0).to_snapshot()
    snapshot["layers"][1][0]["weights"] = [0.1, 0.2]
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)


def test_header_must_agree_with_layers():
    snapshot = Network([3, 2], seed=0).to_snapshot()
    snapshot["class_count"] = 5
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)


def test_persistence_error_is_an_os_error(tmp_path):
    with pytest.raises(OSError):
        Network.load(tmp_path / "absent.json")


def test_legacy_unit_that_is_not_an_object_rejected():
    legacy = {
        "CntLayers": 2,
        "CntSensors": 2,
        "CntClasses": 1,
        "layers": [[{"weight": None}, {"weight": None}], [[0.5, -0.5]]],
    }
    with pytest.raises(PersistenceError):
        Network.from_snapshot(legacy)


def test_layer_that_is_not_an_array_rejected():
    snapshot = Network([2, 2], seed=0).to_snapshot()
    snapshot["layers"][1] = 7
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)


@pytest.mark.parametrize("value", ["abc", [1.0]])
def test_non_numeric_bias_weight_rejected(value):
    snapshot = Network([2, 2], seed=0).to_snapshot()
    snapshot["layers"][1][0]["bias_weight"] = value
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)


def test_non_numeric_alpha_rejected():
    snapshot = Network([2, 2], seed=0).to_snapshot()
    snapshot["alpha"] = "fast"
    with pytest.raises(PersistenceError):
        Network.from_snapshot(snapshot)
