# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect: Tensor Inspection for Image Models

Computes the value of every tensor of a convolutional image model on
the CPU, so each intermediate result can be inspected.

Example:
    import nnspect

    result = nnspect.compute(
        model,
        nnspect.InputNormalization.from_labels("-1..1"),
        image, (224, 224, 3),
        on_warning=print,
    )
    if result:
        probs = result.tensor_store.get(model.get_outputs()[0])
"""

__version__ = "0.1.0"
__author__ = "Wahyu Ardiansyah"

from .core import (
    ActivationFunction,
    GraphModel,
    MergeDequantizeOperators,
    Model,
    OperatorKind,
    OperatorOption,
    OptionName,
    OptionType,
    OptionValue,
    PaddingType,
)

from .execution import (
    CallbackObserver,
    ComputeEngine,
    ComputeObserver,
    ComputeResult,
    EngineConfig,
    InputNormalization,
    OperatorRegistry,
    TensorStore,
    compute,
)

# Observability
from .observability import set_verbosity, Verbosity

# Errors
from .errors import (
    NnspectError,
    StructuralPreconditionError,
    UnsupportedFeatureError,
    MultipleInputsError,
    UnsupportedInputShapeError,
    UnsupportedOperatorError,
    ComputationCancelledError,
    ValidationError,
    ConfigurationError,
)


__all__ = [
    "__version__",
    # Model
    "ActivationFunction",
    "GraphModel",
    "MergeDequantizeOperators",
    "Model",
    "OperatorKind",
    "OperatorOption",
    "OptionName",
    "OptionType",
    "OptionValue",
    "PaddingType",
    # Execution
    "CallbackObserver",
    "ComputeEngine",
    "ComputeObserver",
    "ComputeResult",
    "EngineConfig",
    "InputNormalization",
    "OperatorRegistry",
    "TensorStore",
    "compute",
    # Observability
    "set_verbosity",
    "Verbosity",
    # Errors
    "NnspectError",
    "StructuralPreconditionError",
    "UnsupportedFeatureError",
    "MultipleInputsError",
    "UnsupportedInputShapeError",
    "UnsupportedOperatorError",
    "ComputationCancelledError",
    "ValidationError",
    "ConfigurationError",
]
