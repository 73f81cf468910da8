"""Recognition facade used by callers that hold a feature vector.

The chat front-end and the bitmap feature extractor live outside this
package; they hand a vector to :meth:`GlyphRecognizer.recognise` and get a
label name back.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Sequence

from .core.network import Network
from .core.sample import Sample
from .core.types import Array, LabelSet

logger = logging.getLogger(__name__)


class GlyphRecognizer:
    """Map feature vectors to label names through a trained :class:`Network`."""

    def __init__(self, network: Network, labels: LabelSet | Sequence[str]):
        if not isinstance(labels, LabelSet):
            labels = LabelSet.of(labels)
        if len(labels) != network.class_count:
            raise ValueError(
                f"{len(labels)} labels given for a network with {network.class_count} classes"
            )
        self.network = network
        self.labels = labels

    @classmethod
    def from_snapshot(
        cls, path: str | Path, labels: LabelSet | Sequence[str], **network_kwargs
    ) -> "GlyphRecognizer":
        return cls(Network.load(path, **network_kwargs), labels)

    def _score(self, vector: Sequence[float] | Array) -> Sample:
        sample = Sample(vector, self.network.class_count)
        self.network.predict(sample)
        return sample

    def recognise(self, vector: Sequence[float] | Array) -> str:
        sample = self._score(vector)
        name = self.labels.name(sample.predicted_label)
        logger.debug("Recognised %s (scores=%s)", name, sample.output)
        return name  # type: ignore[return-value]

    def scores(self, vector: Sequence[float] | Array) -> Dict[str, float]:
        """Final-layer activation per label name."""

        sample = self._score(vector)
        return {name: float(value) for name, value in zip(self.labels.names, sample.output)}

    def close(self) -> None:
        """Release the wrapped network's worker pool."""

        self.network.close()

    def __enter__(self) -> "GlyphRecognizer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


__all__ = ["GlyphRecognizer"]
