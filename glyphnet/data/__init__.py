"""Dataset registry and loader helpers."""

# Ensure built-in datasets register themselves when the package is imported.
from . import blobs as _blobs  # noqa: F401
from . import csv_vectors as _csv_vectors  # noqa: F401
from . import glyphs as _glyphs  # noqa: F401
from .registry import (
    DatasetSpec,
    DataSpec,
    available_datasets,
    get_dataset,
    register_dataset,
)

__all__ = [
    "DataSpec",
    "DatasetSpec",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
