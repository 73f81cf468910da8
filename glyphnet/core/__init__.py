"""Core numerical primitives for glyphnet."""

from . import activations, errors, persistence, types
from .network import Network, partition_range
from .sample import Sample, SampleSet
from .unit import Layer, Unit

__all__ = [
    "Layer",
    "Network",
    "Sample",
    "SampleSet",
    "Unit",
    "activations",
    "errors",
    "partition_range",
    "persistence",
    "types",
]
