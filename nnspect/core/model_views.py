# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Model Views

Wrappers that present a transformed view of another Model without
copying it.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..errors import StructuralPreconditionError
from ..observability import get_logger
from .model import Model
from .types import OperatorId, OperatorKind, OperatorOptionsList, TensorId, TensorShape


class MergeDequantizeOperators(Model):
    """
    Hides Dequantize operators that convert static data.

    Models often store weights in a compact type followed by a Dequantize
    operator. This view drops those operators and reports each Dequantize
    output as a static float tensor, so the weights feed straight into
    the consuming operator. Dequantize inputs can't be queried through
    the view.
    """

    def __init__(self, original: Model):
        self.original = original
        self._operator_map: list[OperatorId] = []
        self._dequantize_input_of: dict[TensorId, TensorId] = {}
        self._dequantize_inputs: set[TensorId] = set()

        num_merged = 0
        for oid in range(original.num_operators()):
            if original.get_operator_kind(oid) is not OperatorKind.Dequantize:
                self._operator_map.append(oid)
                continue

            inputs, outputs = original.get_operator_io(oid)
            num_merged += 1
            if len(inputs) != 1 or len(outputs) != 1:
                raise StructuralPreconditionError(
                    "Dequantize operator should have 1 input and 1 output, found "
                    f"{len(inputs)} input(s) and {len(outputs)} output(s)",
                    operator_id=oid,
                )
            if not original.get_tensor_has_data(inputs[0]) or original.get_tensor_has_data(
                outputs[0]
            ):
                raise StructuralPreconditionError(
                    "Dequantize operator tensor types aren't consistent "
                    "with Dequantize definition",
                    operator_id=oid,
                )
            self._dequantize_inputs.add(inputs[0])
            self._dequantize_input_of[outputs[0]] = inputs[0]

        get_logger().info(
            f"merged {num_merged} operators out of a total of "
            f"{original.num_operators()} operators in a model",
            component="model_views",
            operation="MergeDequantizeOperators",
        )

    def _check_visible(self, tensor_id: TensorId) -> None:
        if tensor_id in self._dequantize_inputs:
            raise StructuralPreconditionError(
                "Dequantize input can't be queried through the merged view",
                tensor_id=tensor_id,
            )

    def get_inputs(self) -> list[TensorId]:
        return self.original.get_inputs()

    def get_outputs(self) -> list[TensorId]:
        return self.original.get_outputs()

    def num_operators(self) -> int:
        return len(self._operator_map)

    def get_operator_io(
        self, operator_id: OperatorId
    ) -> tuple[list[TensorId], list[TensorId]]:
        return self.original.get_operator_io(self._operator_map[operator_id])

    def get_operator_kind(self, operator_id: OperatorId) -> OperatorKind:
        return self.original.get_operator_kind(self._operator_map[operator_id])

    def get_operator_options(
        self, operator_id: OperatorId
    ) -> Optional[OperatorOptionsList]:
        return self.original.get_operator_options(self._operator_map[operator_id])

    def num_tensors(self) -> int:
        return self.original.num_tensors()

    def get_tensor_shape(self, tensor_id: TensorId) -> TensorShape:
        self._check_visible(tensor_id)
        return self.original.get_tensor_shape(tensor_id)

    def get_tensor_name(self, tensor_id: TensorId) -> str:
        self._check_visible(tensor_id)
        return self.original.get_tensor_name(tensor_id)

    def get_tensor_has_data(self, tensor_id: TensorId) -> bool:
        self._check_visible(tensor_id)
        if tensor_id in self._dequantize_input_of:
            return True
        return self.original.get_tensor_has_data(tensor_id)

    def get_tensor_data(self, tensor_id: TensorId) -> np.ndarray:
        self._check_visible(tensor_id)
        source = self._dequantize_input_of.get(tensor_id, tensor_id)
        return self.original.get_tensor_data(source)

    def get_tensor_is_variable(self, tensor_id: TensorId) -> bool:
        self._check_visible(tensor_id)
        return self.original.get_tensor_is_variable(tensor_id)
