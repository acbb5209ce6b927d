# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Execution Context

Gives operator implementations access to tensor shapes and values
during a run, and stores what they produce.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..core.model import Model
from ..core.types import TensorId, TensorShape, flat_size
from ..errors import StructuralPreconditionError
from .store import TensorStore


class ExecutionContext:
    """
    Bridges a Model and a TensorStore for the duration of a run.

    Values are read from the store first and fall back to the model's
    static data (weights, biases). Reading anything else is an error.

    Example:
        ctx = ExecutionContext(model, store)
        x = ctx.read(inputs[0])
        y = ctx.allocate(outputs[0])
        ...
        ctx.write(outputs[0], y)
    """

    def __init__(self, model: Model, store: TensorStore):
        self.model = model
        self.store = store
        self.operator_id: Optional[int] = None

    def shape(self, tensor_id: TensorId) -> TensorShape:
        """Get a tensor's declared shape."""
        return tuple(self.model.get_tensor_shape(tensor_id))

    def has_value(self, tensor_id: TensorId) -> bool:
        """Check if a tensor can be read."""
        return self.store.has(tensor_id) or self.model.get_tensor_has_data(tensor_id)

    def read(self, tensor_id: TensorId) -> np.ndarray:
        """
        Get a tensor's value as a flat float32 array.

        Raises:
            StructuralPreconditionError: If the tensor was neither computed
                nor has static data.
        """
        if self.store.has(tensor_id):
            return self.store.get(tensor_id)
        if self.model.get_tensor_has_data(tensor_id):
            return self.model.get_tensor_data(tensor_id)
        raise StructuralPreconditionError(
            f"input data of tensor '{self.model.get_tensor_name(tensor_id)}' "
            "isn't available",
            operator_id=self.operator_id,
            tensor_id=tensor_id,
        )

    def allocate(self, tensor_id: TensorId) -> np.ndarray:
        """Allocate a flat output buffer sized for the tensor's shape."""
        return np.empty(flat_size(self.shape(tensor_id)), dtype=np.float32)

    def write(self, tensor_id: TensorId, buffer: np.ndarray) -> None:
        """Store a freshly computed buffer."""
        expected = flat_size(self.shape(tensor_id))
        if buffer.size != expected:
            raise StructuralPreconditionError(
                f"output has {buffer.size} elements, shape needs {expected}",
                operator_id=self.operator_id,
                tensor_id=tensor_id,
            )
        self.store.set(tensor_id, buffer)

    def alias(self, dst_id: TensorId, src_id: TensorId) -> None:
        """Bind dst_id to src_id's buffer without copying."""
        if not self.store.has(src_id):
            # static data is owned by the model, share it as is
            self.store.set(dst_id, self.read(src_id), owned=False)
        else:
            self.store.alias(dst_id, src_id)

    def __repr__(self) -> str:
        return (
            f"ExecutionContext(operator_id={self.operator_id}, "
            f"store={self.store!r})"
        )
