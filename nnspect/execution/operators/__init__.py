# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operator Implementations

Operators are organized by category:
- conv_ops: Conv2D, DepthwiseConv2D
- pool_ops: MaxPool, AveragePool
- activation_ops: Softmax
- shape_ops: Reshape

Each module exposes the pure kernel functions and registers an
operator implementation with the OperatorRegistry on import.
"""

# Import all operator modules to register them
from . import conv_ops
from . import pool_ops
from . import activation_ops
from . import shape_ops

__all__ = [
    "conv_ops",
    "pool_ops",
    "activation_ops",
    "shape_ops",
]
