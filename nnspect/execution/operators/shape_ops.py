# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Shape Operators

- Reshape: Rebind the same data under a new shape
"""

from __future__ import annotations

from typing import Any, Dict, List, TYPE_CHECKING

from ...core.types import OperatorKind, OptionName, TensorId, flat_size
from ...errors import StructuralPreconditionError
from ..registry import OperatorRegistry

if TYPE_CHECKING:
    from ..context import ExecutionContext


# The new shape is given both as an optional second input and as an
# option; the output tensor's declared shape already reflects it, so
# both are ignored.
@OperatorRegistry.register(OperatorKind.Reshape, options=None, num_inputs=(1, 2))
def execute_reshape(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """
    Reshape operator.

    Buffers are flat, so the output shares the input's buffer.
    """
    input_size = flat_size(ctx.shape(inputs[0]))
    output_size = flat_size(ctx.shape(outputs[0]))
    if input_size != output_size:
        raise StructuralPreconditionError(
            f"Reshape from {input_size} to {output_size} elements",
            operator_id=ctx.operator_id,
        )

    ctx.alias(outputs[0], inputs[0])
