# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Model Interface

Read-only accessor over an imported model graph, plus an in-memory
implementation that callers populate from whatever format they parse.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from ..errors import StructuralPreconditionError, ValidationError
from .types import (
    OperatorId,
    OperatorKind,
    OperatorOption,
    OperatorOptionsList,
    TensorId,
    TensorShape,
    flat_size,
)


class Model(ABC):
    """
    Read-only view of a model graph.

    Tensor and operator ids are dense indices. Operators are listed
    in execution order.
    """

    @abstractmethod
    def get_inputs(self) -> list[TensorId]:
        """Get the ids of the model's input tensors."""

    @abstractmethod
    def get_outputs(self) -> list[TensorId]:
        """Get the ids of the model's output tensors."""

    @abstractmethod
    def num_operators(self) -> int:
        """Get the number of operators."""

    @abstractmethod
    def get_operator_io(
        self, operator_id: OperatorId
    ) -> tuple[list[TensorId], list[TensorId]]:
        """Get an operator's (input ids, output ids)."""

    @abstractmethod
    def get_operator_kind(self, operator_id: OperatorId) -> OperatorKind:
        """Get an operator's kind."""

    @abstractmethod
    def get_operator_options(
        self, operator_id: OperatorId
    ) -> Optional[OperatorOptionsList]:
        """
        Get an operator's options.

        Returns a new list on every call, the caller owns it.
        None means the operator carries no options table at all.
        """

    @abstractmethod
    def num_tensors(self) -> int:
        """Get the number of tensors."""

    @abstractmethod
    def get_tensor_shape(self, tensor_id: TensorId) -> TensorShape:
        """Get a tensor's shape."""

    @abstractmethod
    def get_tensor_name(self, tensor_id: TensorId) -> str:
        """Get a tensor's name."""

    @abstractmethod
    def get_tensor_has_data(self, tensor_id: TensorId) -> bool:
        """Check if a tensor carries static data (weights, biases)."""

    @abstractmethod
    def get_tensor_data(self, tensor_id: TensorId) -> np.ndarray:
        """
        Get a tensor's static data as a flat float32 array.

        Only valid when get_tensor_has_data() is True.
        """

    @abstractmethod
    def get_tensor_is_variable(self, tensor_id: TensorId) -> bool:
        """Check if a tensor is marked as variable."""

    def num_inputs(self) -> int:
        """Get number of inputs."""
        return len(self.get_inputs())

    def num_outputs(self) -> int:
        """Get number of outputs."""
        return len(self.get_outputs())


@dataclass
class TensorEntry:
    """A tensor declared in a GraphModel."""

    name: str
    shape: TensorShape
    data: Optional[np.ndarray] = None
    is_variable: bool = False


@dataclass
class OperatorEntry:
    """An operator declared in a GraphModel."""

    kind: OperatorKind
    inputs: list[TensorId] = field(default_factory=list)
    outputs: list[TensorId] = field(default_factory=list)
    options: Optional[OperatorOptionsList] = None


class GraphModel(Model):
    """
    In-memory model graph.

    Example:
        model = GraphModel(name="tiny")
        x = model.add_tensor("input", (1, 4, 4, 3))
        w = model.add_tensor("weights", (2, 3, 3, 3), data=weights)
        b = model.add_tensor("bias", (2,), data=bias)
        y = model.add_tensor("conv", (1, 4, 4, 2))
        model.add_operator(OperatorKind.Conv2D, [x, w, b], [y], options)
        model.set_inputs([x])
        model.set_outputs([y])
    """

    def __init__(self, name: str = ""):
        self.name = name
        self._tensors: list[TensorEntry] = []
        self._operators: list[OperatorEntry] = []
        self._inputs: list[TensorId] = []
        self._outputs: list[TensorId] = []

    # Building

    def add_tensor(
        self,
        name: str,
        shape: Sequence[int],
        data: Optional[np.ndarray] = None,
        is_variable: bool = False,
    ) -> TensorId:
        """Declare a tensor and return its id."""
        shape = tuple(int(d) for d in shape)
        if any(d < 0 for d in shape):
            raise ValidationError(
                "tensor dimensions must be non-negative",
                parameter=name,
                received=str(shape),
            )

        if data is not None:
            data = np.array(data, dtype=np.float32).reshape(-1)
            if data.size != flat_size(shape):
                raise ValidationError(
                    "static data size doesn't match the tensor shape",
                    parameter=name,
                    expected=str(flat_size(shape)),
                    received=str(data.size),
                )
            data.flags.writeable = False

        self._tensors.append(TensorEntry(name, shape, data, is_variable))
        return len(self._tensors) - 1

    def add_operator(
        self,
        kind: OperatorKind,
        inputs: Sequence[TensorId],
        outputs: Sequence[TensorId],
        options: Optional[Sequence[OperatorOption]] = None,
    ) -> OperatorId:
        """Declare an operator (appended to execution order) and return its id."""
        for tid in list(inputs) + list(outputs):
            self._check_tensor_id(tid)

        if options is not None:
            names = [o.name for o in options]
            if len(set(names)) != len(names):
                raise ValidationError(
                    "duplicate option names",
                    parameter="options",
                    received=", ".join(str(n) for n in names),
                )
            options = list(options)

        self._operators.append(OperatorEntry(kind, list(inputs), list(outputs), options))
        return len(self._operators) - 1

    def set_inputs(self, inputs: Sequence[TensorId]) -> None:
        """Set graph input tensors."""
        for tid in inputs:
            self._check_tensor_id(tid)
        self._inputs = list(inputs)

    def set_outputs(self, outputs: Sequence[TensorId]) -> None:
        """Set graph output tensors."""
        for tid in outputs:
            self._check_tensor_id(tid)
        self._outputs = list(outputs)

    def _check_tensor_id(self, tensor_id: TensorId) -> None:
        if not 0 <= tensor_id < len(self._tensors):
            raise ValidationError(
                f"unknown tensor id {tensor_id}",
                parameter="tensor_id",
                expected=f"0..{len(self._tensors) - 1}",
                received=str(tensor_id),
            )

    # Model interface

    def get_inputs(self) -> list[TensorId]:
        return list(self._inputs)

    def get_outputs(self) -> list[TensorId]:
        return list(self._outputs)

    def num_operators(self) -> int:
        return len(self._operators)

    def get_operator_io(
        self, operator_id: OperatorId
    ) -> tuple[list[TensorId], list[TensorId]]:
        op = self._operators[operator_id]
        return list(op.inputs), list(op.outputs)

    def get_operator_kind(self, operator_id: OperatorId) -> OperatorKind:
        return self._operators[operator_id].kind

    def get_operator_options(
        self, operator_id: OperatorId
    ) -> Optional[OperatorOptionsList]:
        options = self._operators[operator_id].options
        return list(options) if options is not None else None

    def num_tensors(self) -> int:
        return len(self._tensors)

    def get_tensor_shape(self, tensor_id: TensorId) -> TensorShape:
        return self._tensors[tensor_id].shape

    def get_tensor_name(self, tensor_id: TensorId) -> str:
        return self._tensors[tensor_id].name

    def get_tensor_has_data(self, tensor_id: TensorId) -> bool:
        return self._tensors[tensor_id].data is not None

    def get_tensor_data(self, tensor_id: TensorId) -> np.ndarray:
        data = self._tensors[tensor_id].data
        if data is None:
            raise StructuralPreconditionError(
                f"tensor '{self._tensors[tensor_id].name}' has no static data",
                tensor_id=tensor_id,
            )
        return data

    def get_tensor_is_variable(self, tensor_id: TensorId) -> bool:
        return self._tensors[tensor_id].is_variable

    def __repr__(self) -> str:
        return (
            f"GraphModel(name='{self.name}', "
            f"tensors={len(self._tensors)}, "
            f"operators={len(self._operators)})"
        )
