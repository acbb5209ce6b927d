# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect Execution Engine

Computes every tensor value of a model from an input image, using
numpy kernels for each supported operator kind.

Components:
- TensorStore: Id-indexed table of computed buffers
- ExecutionContext: Gives operators access to shapes and values
- OperatorRegistry: Maps operator kinds to implementations
- ComputeEngine: Runs operators in declaration order
- compute: One-call entry point
"""

from .store import TensorStore
from .context import ExecutionContext
from .registry import OperatorRegistry, OperatorSpec
from .padding import SpatialAxis, compute_padding, padding_before
from .activation import apply_activation
from .options import (
    CONV2D_OPTIONS,
    DEPTHWISE_CONV2D_OPTIONS,
    POOL_OPTIONS,
    SOFTMAX_OPTIONS,
    extract_options,
    get_option,
)
from .input_prep import (
    ColorOrder,
    InputNormalization,
    NormalizationRange,
    canonical_input_shape,
    prepare_input,
    resize_image,
)
from .interpreter import (
    CallbackObserver,
    ComputeEngine,
    ComputeObserver,
    ComputeResult,
    EngineConfig,
    compute,
)

__all__ = [
    "TensorStore",
    "ExecutionContext",
    "OperatorRegistry",
    "OperatorSpec",
    "SpatialAxis",
    "compute_padding",
    "padding_before",
    "apply_activation",
    "CONV2D_OPTIONS",
    "DEPTHWISE_CONV2D_OPTIONS",
    "POOL_OPTIONS",
    "SOFTMAX_OPTIONS",
    "extract_options",
    "get_option",
    "ColorOrder",
    "InputNormalization",
    "NormalizationRange",
    "canonical_input_shape",
    "prepare_input",
    "resize_image",
    "CallbackObserver",
    "ComputeEngine",
    "ComputeObserver",
    "ComputeResult",
    "EngineConfig",
    "compute",
]
