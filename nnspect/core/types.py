# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect Core Types

Shapes, operator kinds and the typed operator option values
that a model exposes to the compute engine.
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Sequence, Union

from ..errors import ValidationError


# Tensor shape: [B,H,W,C] for rank 4, [H,W,C] for rank 3, channel-last
TensorShape = tuple[int, ...]
TensorId = int
OperatorId = int


def flat_size(shape: Sequence[int]) -> int:
    """Get the total number of elements in a shape."""
    result = 1
    for d in shape:
        result *= int(d)
    return result


def num_multi_dims(shape: Sequence[int]) -> int:
    """Count the dimensions that are larger than 1."""
    return sum(1 for d in shape if d > 1)


def last_dims(shape: Sequence[int], ndims: int) -> TensorShape:
    """Get the trailing ``ndims`` dimensions of a shape."""
    if ndims > len(shape):
        raise ValidationError(
            f"can't take {ndims} trailing dimensions of a rank-{len(shape)} shape",
            parameter="ndims",
        )
    return tuple(int(d) for d in shape[len(shape) - ndims :])


class OperatorKind(Enum):
    """Operator kinds known to the model interface."""

    Conv2D = auto()
    DepthwiseConv2D = auto()
    Pad = auto()
    FullyConnected = auto()
    MaxPool = auto()
    AveragePool = auto()
    Add = auto()
    Relu = auto()
    Relu6 = auto()
    LeakyRelu = auto()
    Tanh = auto()
    Sub = auto()
    Mul = auto()
    Div = auto()
    Maximum = auto()
    Minimum = auto()
    Transpose = auto()
    Reshape = auto()
    Softmax = auto()
    Concatenation = auto()
    StridedSlice = auto()
    Mean = auto()
    Dequantize = auto()
    Unknown = auto()

    def __str__(self) -> str:
        return self.name


class PaddingType(Enum):
    """Symbolic padding modes recorded by the model."""

    SAME = auto()
    VALID = auto()


class ActivationFunction(Enum):
    """Activation functions fused into conv and pool operators."""

    NONE = auto()
    RELU = auto()
    RELU_N1_TO_1 = auto()
    RELU6 = auto()
    TANH = auto()
    SIGN_BIT = auto()


class OptionName(Enum):
    """Names of operator options."""

    UNKNOWN = auto()
    ALIGN_CORNERS = auto()
    ALPHA = auto()
    AXIS = auto()
    BATCH_DIM = auto()
    BEGIN_MASK = auto()
    BETA = auto()
    BIAS = auto()
    BLOCK_SIZE = auto()
    DEPTH_MULTIPLIER = auto()
    DILATION_H_FACTOR = auto()
    DILATION_W_FACTOR = auto()
    ELLIPSIS_MASK = auto()
    END_MASK = auto()
    FILTER_HEIGHT = auto()
    FILTER_WIDTH = auto()
    FUSED_ACTIVATION_FUNCTION = auto()
    KEEP_DIMS = auto()
    MAX = auto()
    MIN = auto()
    MODE = auto()
    NEW_AXIS_MASK = auto()
    NEW_HEIGHT = auto()
    NEW_SHAPE = auto()
    NEW_WIDTH = auto()
    NUM = auto()
    NUM_CHANNELS = auto()
    NUM_SPLITS = auto()
    PADDING = auto()
    SHRINK_AXIS_MASK = auto()
    SQUEEZE_DIMS = auto()
    STRIDE_H = auto()
    STRIDE_W = auto()
    TYPE = auto()
    WEIGHTS_FORMAT = auto()

    def __str__(self) -> str:
        return self.name.lower()


class OptionType(Enum):
    """Closed set of option value types."""

    BOOL = "boolean"
    INT = "int"
    UINT = "unsigned int"
    FLOAT = "float"
    INT_ARRAY = "array of int"
    PADDING_TYPE = "padding type"
    ACTIVATION_FUNCTION = "activation function"

    def __str__(self) -> str:
        return self.value


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


_VALIDATORS = {
    OptionType.BOOL: lambda v: isinstance(v, bool),
    OptionType.INT: _is_int,
    OptionType.UINT: lambda v: _is_int(v) and v >= 0,
    OptionType.FLOAT: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    OptionType.INT_ARRAY: lambda v: isinstance(v, tuple) and all(_is_int(i) for i in v),
    OptionType.PADDING_TYPE: lambda v: isinstance(v, PaddingType),
    OptionType.ACTIVATION_FUNCTION: lambda v: isinstance(v, ActivationFunction),
}


@dataclass(frozen=True)
class OptionValue:
    """
    Tagged option value.

    The payload is checked against the tag on construction, so a value
    tagged INT always holds an int. Use the ``of_*`` constructors.
    """

    type: OptionType
    value: Union[bool, int, float, tuple, PaddingType, ActivationFunction]

    def __post_init__(self):
        if self.type is OptionType.INT_ARRAY and isinstance(self.value, list):
            object.__setattr__(self, "value", tuple(self.value))
        if self.type is OptionType.FLOAT and _is_int(self.value):
            object.__setattr__(self, "value", float(self.value))
        if not _VALIDATORS[self.type](self.value):
            raise ValidationError(
                "option payload doesn't match its type",
                parameter="value",
                expected=str(self.type),
                received=repr(self.value),
            )

    @classmethod
    def of_bool(cls, value: bool) -> "OptionValue":
        return cls(OptionType.BOOL, value)

    @classmethod
    def of_int(cls, value: int) -> "OptionValue":
        return cls(OptionType.INT, value)

    @classmethod
    def of_uint(cls, value: int) -> "OptionValue":
        return cls(OptionType.UINT, value)

    @classmethod
    def of_float(cls, value: float) -> "OptionValue":
        return cls(OptionType.FLOAT, value)

    @classmethod
    def of_int_array(cls, value: Sequence[int]) -> "OptionValue":
        return cls(OptionType.INT_ARRAY, tuple(value))

    @classmethod
    def of_padding(cls, value: PaddingType) -> "OptionValue":
        return cls(OptionType.PADDING_TYPE, value)

    @classmethod
    def of_activation(cls, value: ActivationFunction) -> "OptionValue":
        return cls(OptionType.ACTIVATION_FUNCTION, value)

    def __str__(self) -> str:
        if self.type is OptionType.BOOL:
            return "true" if self.value else "false"
        if self.type is OptionType.INT_ARRAY:
            return "{" + ", ".join(str(i) for i in self.value) + "}"
        if self.type in (OptionType.PADDING_TYPE, OptionType.ACTIVATION_FUNCTION):
            return self.value.name
        return str(self.value)


@dataclass(frozen=True)
class OperatorOption:
    """A single named operator option."""

    name: OptionName
    value: OptionValue

    def __str__(self) -> str:
        return f"{self.name}={self.value}"


OperatorOptionsList = list[OperatorOption]
