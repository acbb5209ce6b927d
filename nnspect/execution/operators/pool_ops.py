# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pooling Operators

- MaxPool: Max over the in-bounds cells of each window
- AveragePool: Mean over the in-bounds cells of each window

Padding is inferred the same way as for convolutions. Padded cells
never take part: at borders the average divides by the number of
in-bounds cells, not by the window area.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Sequence, TYPE_CHECKING
import numpy as np

from ...core.types import OperatorKind, OptionName, TensorId
from ...errors import StructuralPreconditionError
from ..activation import apply_activation
from ..options import POOL_OPTIONS
from ..padding import SpatialAxis, padding_before
from ..registry import OperatorRegistry
from .conv_ops import _nhwc_shape, _pad_input, _view_nhwc, _window

if TYPE_CHECKING:
    from ..context import ExecutionContext


def _check_pool_shapes(x: np.ndarray, y: np.ndarray, kind: str) -> None:
    if x.shape[0] != y.shape[0] or x.shape[3] != y.shape[3]:
        raise StructuralPreconditionError(
            f"{kind} input {list(x.shape)} and output {list(y.shape)} "
            "differ in batch or channels"
        )


def max_pool(
    input_shape: Sequence[int],
    input_data: np.ndarray,
    output_shape: Sequence[int],
    output_data: np.ndarray,
    pad_w: int,
    pad_h: int,
    stride_w: int,
    stride_h: int,
    filter_w: int,
    filter_h: int,
) -> None:
    """Max pooling, written into ``output_data``."""
    x = _view_nhwc(input_shape, input_data)
    y = _view_nhwc(output_shape, output_data)
    _check_pool_shapes(x, y, "MaxPool")
    _, out_h, out_w, _ = y.shape

    xp = _pad_input(
        x, out_h, out_w, filter_h, filter_w, pad_h, pad_w,
        stride_h, stride_w, 1, 1, fill=-np.inf,
    )

    acc = np.full(y.shape, -np.inf, dtype=np.float32)
    for i in range(filter_h):
        for j in range(filter_w):
            np.maximum(acc, _window(xp, i, j, out_h, out_w, stride_h, stride_w), out=acc)

    y[...] = acc


def average_pool(
    input_shape: Sequence[int],
    input_data: np.ndarray,
    output_shape: Sequence[int],
    output_data: np.ndarray,
    pad_w: int,
    pad_h: int,
    stride_w: int,
    stride_h: int,
    filter_w: int,
    filter_h: int,
) -> None:
    """Average pooling over in-bounds cells, written into ``output_data``."""
    x = _view_nhwc(input_shape, input_data)
    y = _view_nhwc(output_shape, output_data)
    _check_pool_shapes(x, y, "AveragePool")
    _, h, w, _ = x.shape
    _, out_h, out_w, _ = y.shape

    xp = _pad_input(
        x, out_h, out_w, filter_h, filter_w, pad_h, pad_w,
        stride_h, stride_w, 1, 1, fill=0.0,
    )
    # 1 for every real cell, 0 for padding
    mask = _pad_input(
        np.ones((1, h, w, 1), dtype=np.float32), out_h, out_w, filter_h, filter_w,
        pad_h, pad_w, stride_h, stride_w, 1, 1, fill=0.0,
    )

    total = np.zeros(y.shape, dtype=np.float32)
    count = np.zeros((1, out_h, out_w, 1), dtype=np.float32)
    for i in range(filter_h):
        for j in range(filter_w):
            total += _window(xp, i, j, out_h, out_w, stride_h, stride_w)
            count += _window(mask, i, j, out_h, out_w, stride_h, stride_w)

    y[...] = total / count


def _execute_pool(
    pool: Callable[..., None],
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    input_shape = _nhwc_shape(ctx.shape(inputs[0]))
    output_shape = _nhwc_shape(ctx.shape(outputs[0]))

    stride_w = opts[OptionName.STRIDE_W]
    stride_h = opts[OptionName.STRIDE_H]
    filter_w = opts[OptionName.FILTER_WIDTH]
    filter_h = opts[OptionName.FILTER_HEIGHT]
    filter_shape = (0, filter_h, filter_w, 0)

    output = ctx.allocate(outputs[0])
    pool(
        input_shape, ctx.read(inputs[0]),
        output_shape, output,
        padding_before(stride_w, 1, SpatialAxis.WIDTH, input_shape, filter_shape, output_shape),
        padding_before(stride_h, 1, SpatialAxis.HEIGHT, input_shape, filter_shape, output_shape),
        stride_w, stride_h,
        filter_w, filter_h,
    )

    apply_activation(output, opts[OptionName.FUSED_ACTIVATION_FUNCTION])
    ctx.write(outputs[0], output)


@OperatorRegistry.register(
    OperatorKind.MaxPool, options=POOL_OPTIONS, num_inputs=(1,)
)
def execute_max_pool(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """MaxPool operator."""
    _execute_pool(max_pool, ctx, inputs, outputs, opts)


@OperatorRegistry.register(
    OperatorKind.AveragePool, options=POOL_OPTIONS, num_inputs=(1,)
)
def execute_average_pool(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """AveragePool operator."""
    _execute_pool(average_pool, ctx, inputs, outputs, opts)
