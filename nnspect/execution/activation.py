# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Fused Activation Functions

Applied in place to the freshly computed output of conv and pool
operators, before the output is stored.
"""

from __future__ import annotations

import numpy as np

from ..core.types import ActivationFunction


def apply_activation(data: np.ndarray, function: ActivationFunction) -> np.ndarray:
    """
    Apply a fused activation function in place.

    Args:
        data: Writable float32 array, modified in place.
        function: Activation to apply.

    Returns:
        The same array, for chaining.
    """
    if function is ActivationFunction.NONE:
        pass
    elif function is ActivationFunction.RELU:
        np.maximum(data, 0.0, out=data)
    elif function is ActivationFunction.RELU_N1_TO_1:
        np.clip(data, -1.0, 1.0, out=data)
    elif function is ActivationFunction.RELU6:
        np.clip(data, 0.0, 6.0, out=data)
    elif function is ActivationFunction.TANH:
        np.tanh(data, out=data)
    elif function is ActivationFunction.SIGN_BIT:
        # -0.0 has its sign bit set
        data[...] = np.signbit(data)
    else:
        raise ValueError(f"Unknown activation function: {function}")
    return data
