import pytest

from glyphnet.core.network import Network
from glyphnet.core.types import LabelSet
from glyphnet.recognizer import GlyphRecognizer


def _network():
    net = Network([2, 2], seed=0)
    net.layers[1].units[0].weights[:] = [6.0, -6.0]
    net.layers[1].units[1].weights[:] = [-6.0, 6.0]
    return net


def test_recognise_returns_label_name():
    recognizer = GlyphRecognizer(_network(), ["left", "right"])
    assert recognizer.recognise([1.0, 0.0]) == "left"
    assert recognizer.recognise([0.0, 1.0]) == "right"


def test_scores_are_keyed_by_label():
    recognizer = GlyphRecognizer(_network(), LabelSet.of(["left", "right"]))
    scores = recognizer.scores([1.0, 0.0])
    assert set(scores) == {"left", "right"}
    assert scores["left"] > 0.99 > scores["right"]


def test_label_count_must_match_network():
    with pytest.raises(ValueError):
        GlyphRecognizer(_network(), ["only-one"])


def test_from_snapshot(tmp_path):
    path = _network().save(tmp_path / "net.json")
    recognizer = GlyphRecognizer.from_snapshot(path, ["left", "right"])
    assert recognizer.recognise([0.0, 1.0]) == "right"


def test_label_set_lookups():
    labels = LabelSet.of("ABC")
    assert labels.index("B") == 1
    assert labels.name(-1) is None
    with pytest.raises(KeyError):
        labels.index("Z")
    with pytest.raises(IndexError):
        labels.name(3)
    with pytest.raises(ValueError):
        LabelSet.of("AA")


def test_context_manager_releases_the_worker_pool(tmp_path):
    path = _network().save(tmp_path / "net.json")
    with GlyphRecognizer.from_snapshot(path, ["left", "right"], parallel=True, workers=2) as rec:
        assert rec.recognise([1.0, 0.0]) == "left"
        assert rec.network._executor is not None
    assert rec.network._executor is None
