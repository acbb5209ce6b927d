# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Activation Operators

- Softmax: Normalized exponential along the channel (innermost) axis
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, TYPE_CHECKING
import numpy as np

from ...core.types import OperatorKind, OptionName, TensorId, flat_size
from ...errors import StructuralPreconditionError
from ..options import SOFTMAX_OPTIONS
from ..registry import OperatorRegistry

if TYPE_CHECKING:
    from ..context import ExecutionContext


def softmax(
    input_shape: Sequence[int],
    input_data: np.ndarray,
    output_shape: Sequence[int],
    output_data: np.ndarray,
    beta: float,
) -> None:
    """
    Softmax along the innermost axis, written into ``output_data``.

    out_i = exp(beta * (x_i - max_j x_j)) / sum_j exp(beta * (x_j - max_j x_j))
    """
    size = flat_size(input_shape)
    if size != flat_size(output_shape) or input_data.size != size or output_data.size != size:
        raise StructuralPreconditionError(
            f"Softmax input {list(input_shape)} and output {list(output_shape)} "
            "don't have the same number of elements"
        )

    channels = int(input_shape[-1]) if len(input_shape) else 1
    x = input_data.reshape(-1, channels)
    y = output_data.reshape(-1, channels)

    # subtracting the max keeps exp() from overflowing
    e = np.exp((x - x.max(axis=1, keepdims=True)) * np.float32(beta))
    y[...] = e / e.sum(axis=1, keepdims=True)


@OperatorRegistry.register(
    OperatorKind.Softmax, options=SOFTMAX_OPTIONS, num_inputs=(1,)
)
def execute_softmax(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """
    Softmax operator.

    No fused activation is applied.
    """
    output = ctx.allocate(outputs[0])
    softmax(
        ctx.shape(inputs[0]), ctx.read(inputs[0]),
        ctx.shape(outputs[0]), output,
        opts[OptionName.BETA],
    )
    ctx.write(outputs[0], output)
