"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, MutableMapping

from ..core.sample import SampleSet
from ..core.types import LabelSet

SPLITS = ("train", "val", "test")


@dataclass(frozen=True)
class DataSpec:
    """Structural information about a dataset.

    Attributes
    ----------
    sensor_count:
        Length of every input vector, i.e. the size of the sensor layer.
    class_count:
        Number of output classes.
    labels:
        Human-readable names for the classes ``0..class_count-1``.
    normalization:
        Metadata describing any scaling applied to the inputs.  The registry
        does not interpret these values but keeping them makes runs
        reproducible.
    extra:
        Free-form metadata, for example the bitmap shape of glyph datasets.
    """

    sensor_count: int
    class_count: int
    labels: LabelSet
    normalization: Dict[str, Any] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class DatasetSpec:
    """Description of a dataset registered in the system."""

    name: str
    loader: Callable[[str], SampleSet]
    data_spec: DataSpec
    provenance: Dict[str, Any]
    splits: Dict[str, int]

    def split(self, split: str) -> SampleSet:
        """Return a freshly built :class:`SampleSet` for ``split``."""

        if split not in SPLITS:
            raise ValueError(f"Unknown split: {split}")
        return self.loader(split)


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("glyphs")
        def make_glyphs(**kwargs):
            ...

    or directly::

        register_dataset("glyphs", make_glyphs)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Return the :class:`DatasetSpec` for ``dataset``."""

    if dataset not in _REGISTRY:
        raise KeyError(f"Unknown dataset: {dataset}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    data_spec = spec.data_spec
    if data_spec.sensor_count < 1:
        raise ValueError(f"Dataset {spec.name!r} has no input features")
    if data_spec.class_count < 1:
        raise ValueError(f"Dataset {spec.name!r} has no classes")
    if len(data_spec.labels) != data_spec.class_count:
        raise ValueError(
            f"Dataset {spec.name!r} names {len(data_spec.labels)} labels "
            f"for {data_spec.class_count} classes"
        )
    if not isinstance(spec.splits, dict):
        raise TypeError("DatasetSpec.splits must be a mapping")
    for split, count in spec.splits.items():
        if count < 0:
            raise ValueError(f"Split {split!r} has negative sample count {count}")


__all__ = [
    "DataSpec",
    "DatasetSpec",
    "SPLITS",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
