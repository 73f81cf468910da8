"""Activation utilities for glyphnet."""

from __future__ import annotations

import numpy as np

from .types import Array


def sigmoid(x: Array | float) -> Array | float:
    """Return the logistic sigmoid ``1 / (1 + exp(-x))``."""

    return 1.0 / (1.0 + np.exp(-x))


def sigmoid_deriv_from_output(out: Array | float) -> Array | float:
    """Sigmoid derivative expressed through the activation itself."""

    return out * (1.0 - out)
