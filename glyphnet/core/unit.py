"""Layer arena and the per-unit update rules of the delta-rule network."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np

from .activations import sigmoid, sigmoid_deriv_from_output
from .types import Array

BIAS = -1.0
DEFAULT_BIAS_WEIGHT = 0.01


@dataclass
class Unit:
    """One neuron addressed by ``(layer, index)`` inside a :class:`Layer` arena.

    Activations and pending errors live in the owning layer's arrays so the
    unit itself only carries parameters. The upstream layer is always
    ``layer - 1`` and is reached through the arena passed to each method.
    Sensor units (``layer == 0``) have no weights.
    """

    layer: int
    index: int
    weights: Array | None = None
    bias: float = BIAS
    bias_weight: float = DEFAULT_BIAS_WEIGHT

    @property
    def upstream(self) -> int | None:
        return self.layer - 1 if self.layer > 0 else None

    @property
    def is_sensor(self) -> bool:
        return self.layer == 0

    def activate(self, layers: Sequence["Layer"]) -> None:
        if self.is_sensor:
            return
        upstream = layers[self.layer - 1]
        total = self.bias_weight * self.bias + float(np.dot(self.weights, upstream.out))
        layers[self.layer].out[self.index] = sigmoid(total)

    def apply_local_gradient(self, layers: Sequence["Layer"], alpha: float) -> None:
        """Scale the pending error by the sigmoid slope and step the bias weight."""

        own = layers[self.layer]
        own.error[self.index] *= sigmoid_deriv_from_output(own.out[self.index])
        self.bias_weight += alpha * self.bias * own.error[self.index]

    def backpropagate(self, layers: Sequence["Layer"], alpha: float) -> None:
        self.apply_local_gradient(layers, alpha)
        self.backpropagate_range(layers, alpha, 0, len(layers[self.layer - 1]))
        layers[self.layer].error[self.index] = 0.0

    def backpropagate_range(
        self, layers: Sequence["Layer"], alpha: float, start: int, stop: int
    ) -> None:
        """Push error upstream and update weights for upstream ``[start, stop)``.

        :meth:`apply_local_gradient` must already have run for this unit.
        """

        error = layers[self.layer].error[self.index]
        upstream = layers[self.layer - 1]
        upstream.error[start:stop] += error * self.weights[start:stop]
        self.weights[start:stop] += alpha * upstream.out[start:stop] * error


@dataclass
class Layer:
    """Units of one layer plus their activations and pending errors."""

    units: List[Unit]
    out: Array = field(init=False, repr=False)
    error: Array = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.out = np.zeros(len(self.units), dtype=np.float64)
        self.error = np.zeros(len(self.units), dtype=np.float64)

    def __len__(self) -> int:
        return len(self.units)

    def reset_error(self) -> None:
        self.error[:] = 0.0


def init_weights(rng: np.random.Generator, count: int) -> Array:
    """Draw ``count`` weights independently from ``U[-1, 1]``."""

    return rng.uniform(-1.0, 1.0, size=count)


def build_layers(structure: Sequence[int], rng: np.random.Generator) -> List[Layer]:
    layers: List[Layer] = [Layer([Unit(layer=0, index=j) for j in range(structure[0])])]
    for layer_idx in range(1, len(structure)):
        fan_in = structure[layer_idx - 1]
        units = [
            Unit(layer=layer_idx, index=j, weights=init_weights(rng, fan_in))
            for j in range(structure[layer_idx])
        ]
        layers.append(Layer(units))
    return layers


__all__ = ["BIAS", "DEFAULT_BIAS_WEIGHT", "Layer", "Unit", "build_layers", "init_weights"]
