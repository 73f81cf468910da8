import numpy as np
import pytest

from glyphnet.core.errors import NotScoredError
from glyphnet.core.sample import Sample, SampleSet
from glyphnet.core.types import UNDEFINED


def _scored(output, label, class_count=None):
    sample = Sample(np.zeros(2), class_count or len(output), label)
    sample.output[:] = output
    sample.process_output()
    return sample


def test_construction_copies_input_and_one_hot_encodes():
    raw = np.array([0.25, 0.5, 0.75])
    sample = Sample(raw, 4, true_label=2)
    raw[0] = 99.0
    assert sample.input[0] == 0.25
    assert not sample.input.flags.writeable
    assert np.array_equal(sample.output, [0.0, 0.0, 1.0, 0.0])
    assert sample.error is None
    assert sample.predicted_label == UNDEFINED


def test_unlabelled_sample_has_zero_output():
    sample = Sample([1.0, 2.0], 3)
    assert sample.true_label == UNDEFINED
    assert np.array_equal(sample.output, np.zeros(3))


@pytest.mark.parametrize("label", [3, 7, -2])
def test_out_of_range_label_rejected(label):
    with pytest.raises(ValueError):
        Sample([0.0], 3, label)


def test_process_output_recomputes_error_from_true_label():
    sample = _scored([0.2, 0.7, 0.1], label=0)
    assert np.allclose(sample.error, [0.8, -0.7, -0.1])
    assert sample.predicted_label == 1
    assert not sample.is_correct()


def test_process_output_ties_resolve_to_first_index():
    sample = _scored([0.3, 0.6, 0.6, 0.1], label=2)
    assert sample.predicted_label == 1


def test_unlabelled_error_is_negated_output():
    sample = Sample([0.0], 2)
    sample.output[:] = [0.4, 0.9]
    sample.process_output()
    assert np.allclose(sample.error, [-0.4, -0.9])
    assert sample.predicted_label == 1


def test_estimated_error_is_sum_of_squares():
    sample = _scored([0.2, 0.7, 0.1], label=0)
    assert sample.estimated_error() == pytest.approx(0.64 + 0.49 + 0.01)

    exact = _scored([0.0, 1.0, 0.0], label=1)
    assert exact.estimated_error() == 0.0
    assert exact.is_correct()


def test_estimated_error_requires_scoring():
    sample = Sample([0.0], 2, 0)
    with pytest.raises(NotScoredError):
        sample.estimated_error()


def test_accumulate_error_adds_signed_values():
    first = _scored([0.5, 0.5], label=0)
    second = _scored([0.25, 0.75], label=1)
    total = np.zeros(2)
    first.accumulate_error_into(total)
    second.accumulate_error_into(total)
    assert np.allclose(total, [0.5 - 0.25, -0.5 + 0.25])

    with pytest.raises(ValueError):
        first.accumulate_error_into(np.zeros(3))


def test_sample_set_indexing_and_iteration():
    samples = SampleSet()
    a, b, c = (Sample([float(i)], 2, i % 2) for i in range(3))
    for sample in (a, b, c):
        samples.add(sample)
    assert len(samples) == 3
    assert samples[1] is b
    samples[1] = c
    assert [s for s in samples] == [a, c, c]


def test_shuffle_preserves_the_samples():
    samples = SampleSet(Sample([float(i)], 2, i % 2) for i in range(20))
    before = [id(sample) for sample in samples]
    inputs_before = {id(s): s.input.copy() for s in samples}
    samples.shuffle(np.random.default_rng(0))
    after = [id(sample) for sample in samples]
    assert sorted(before) == sorted(after)
    assert before != after
    for sample in samples:
        assert np.array_equal(sample.input, inputs_before[id(sample)])


def test_accuracy_and_error_vector():
    samples = SampleSet(
        [
            _scored([0.9, 0.1], label=0),
            _scored([0.2, 0.8], label=1),
            _scored([0.6, 0.4], label=1),
            _scored([0.3, 0.7], label=0),
        ]
    )
    assert samples.accuracy() == 0.5
    assert np.allclose(samples.error_vector(), [0.1 - 0.2 - 0.6 + 0.7, -0.1 + 0.2 + 0.6 - 0.7])
    assert samples.mean_estimated_error() > 0.0


def test_accuracy_requires_scored_samples():
    samples = SampleSet([Sample([0.0], 2, 0)])
    with pytest.raises(NotScoredError):
        samples.accuracy()
    with pytest.raises(ValueError):
        SampleSet().accuracy()


def test_from_arrays_builds_labelled_samples():
    inputs = np.arange(6, dtype=float).reshape(3, 2)
    samples = SampleSet.from_arrays(inputs, [0, 1, 1], class_count=2)
    assert len(samples) == 3
    assert samples[2].true_label == 1
    assert np.array_equal(samples[2].input, [4.0, 5.0])

    unlabelled = SampleSet.from_arrays(inputs, None, class_count=2)
    assert all(sample.true_label == UNDEFINED for sample in unlabelled)

    with pytest.raises(ValueError):
        SampleSet.from_arrays(inputs, [0, 1], class_count=2)
