"""glyphnet public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.errors import (
    ConfigurationError,
    GlyphNetError,
    NotScoredError,
    PersistenceError,
    ShapeMismatchError,
)
from .core.network import Network, partition_range
from .core.sample import Sample, SampleSet
from .core.types import UNDEFINED, LabelSet
from .recognizer import GlyphRecognizer
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import Trainer

__all__ = [
    "ConfigurationError",
    "GlyphNetError",
    "GlyphRecognizer",
    "LabelSet",
    "Network",
    "NotScoredError",
    "PersistenceError",
    "Sample",
    "SampleSet",
    "ShapeMismatchError",
    "Trainer",
    "UNDEFINED",
    "activations",
    "load_preset",
    "partition_range",
    "presets",
    "run_pipeline",
    "types",
]
