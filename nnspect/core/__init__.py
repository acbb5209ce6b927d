# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""nnspect Core Module"""

from .types import (
    TensorShape,
    TensorId,
    OperatorId,
    OperatorKind,
    PaddingType,
    ActivationFunction,
    OptionName,
    OptionType,
    OptionValue,
    OperatorOption,
    OperatorOptionsList,
    flat_size,
    num_multi_dims,
    last_dims,
)
from .model import Model, GraphModel
from .model_views import MergeDequantizeOperators

__all__ = [
    "TensorShape",
    "TensorId",
    "OperatorId",
    "OperatorKind",
    "PaddingType",
    "ActivationFunction",
    "OptionName",
    "OptionType",
    "OptionValue",
    "OperatorOption",
    "OperatorOptionsList",
    "flat_size",
    "num_multi_dims",
    "last_dims",
    "Model",
    "GraphModel",
    "MergeDequantizeOperators",
]
