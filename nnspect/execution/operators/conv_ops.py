# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Convolution Operators

- Conv2D: 2D convolution
- DepthwiseConv2D: Per-channel 2D convolution with a depth multiplier

All tensors are channel-last: input [N,H,W,C], output [N,Ho,Wo,O].
Conv2D filters are [O,Kh,Kw,I], depthwise filters are [1,Kh,Kw,I*M].
Padding cells contribute zero.
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence, TYPE_CHECKING
import numpy as np

from ...core.types import OperatorKind, OptionName, TensorId, TensorShape, flat_size
from ...errors import StructuralPreconditionError
from ..activation import apply_activation
from ..options import CONV2D_OPTIONS, DEPTHWISE_CONV2D_OPTIONS
from ..padding import SpatialAxis, padding_before
from ..registry import OperatorRegistry

if TYPE_CHECKING:
    from ..context import ExecutionContext


def _nhwc_shape(shape: Sequence[int]) -> TensorShape:
    """Get a [N,H,W,C] shape, adding N=1 to [H,W,C]."""
    shape = tuple(int(d) for d in shape)
    if len(shape) == 3:
        return (1,) + shape
    if len(shape) == 4:
        return shape
    raise StructuralPreconditionError(
        f"expected a rank 3 or 4 image-like shape, got {list(shape)}"
    )


def _view_nhwc(shape: Sequence[int], data: np.ndarray) -> np.ndarray:
    """View a flat buffer as [N,H,W,C]."""
    shape = _nhwc_shape(shape)
    if data.size != flat_size(shape):
        raise StructuralPreconditionError(
            f"buffer has {data.size} elements, shape {list(shape)} needs {flat_size(shape)}"
        )
    return data.reshape(shape)


def _view_filter(shape: Sequence[int], data: np.ndarray) -> np.ndarray:
    """View a flat filter buffer as its rank-4 shape."""
    shape = tuple(int(d) for d in shape)
    if len(shape) != 4 or data.size != flat_size(shape):
        raise StructuralPreconditionError(
            f"filter buffer of {data.size} elements doesn't fit rank-4 shape {list(shape)}"
        )
    return data.reshape(shape)


def _pad_input(
    x: np.ndarray,
    out_h: int,
    out_w: int,
    filter_h: int,
    filter_w: int,
    pad_h: int,
    pad_w: int,
    stride_h: int,
    stride_w: int,
    dilation_h: int,
    dilation_w: int,
    fill: float,
) -> np.ndarray:
    """Pad [N,H,W,C] so every output window lies inside the result."""
    _, h, w, _ = x.shape
    extent_h = (out_h - 1) * stride_h + (filter_h - 1) * dilation_h + 1
    extent_w = (out_w - 1) * stride_w + (filter_w - 1) * dilation_w + 1
    bottom = max(0, extent_h - h - pad_h)
    right = max(0, extent_w - w - pad_w)
    return np.pad(
        x,
        ((0, 0), (pad_h, bottom), (pad_w, right), (0, 0)),
        mode="constant",
        constant_values=fill,
    )


def _window(
    xp: np.ndarray,
    row: int,
    col: int,
    out_h: int,
    out_w: int,
    stride_h: int,
    stride_w: int,
) -> np.ndarray:
    """Strided [N,Ho,Wo,C] view of the cells one filter tap sees."""
    return xp[
        :,
        row : row + (out_h - 1) * stride_h + 1 : stride_h,
        col : col + (out_w - 1) * stride_w + 1 : stride_w,
        :,
    ]


def conv2d(
    input_shape: Sequence[int],
    input_data: np.ndarray,
    filter_shape: Sequence[int],
    filter_data: np.ndarray,
    bias_shape: Sequence[int],
    bias_data: np.ndarray,
    output_shape: Sequence[int],
    output_data: np.ndarray,
    pad_w: int,
    pad_h: int,
    stride_w: int,
    stride_h: int,
    dilation_w: int,
    dilation_h: int,
) -> None:
    """
    2D cross-correlation with bias, written into ``output_data``.

    ``pad_w``/``pad_h`` are the leading pad amounts; trailing padding
    is whatever the output shape requires.
    """
    x = _view_nhwc(input_shape, input_data)
    y = _view_nhwc(output_shape, output_data)
    w = _view_filter(filter_shape, filter_data)
    bias = bias_data.reshape(-1)

    n, _, _, channels = x.shape
    c_out, k_h, k_w, c_in = w.shape
    _, out_h, out_w, _ = y.shape

    if channels != c_in or y.shape[3] != c_out or bias.size != c_out or y.shape[0] != n:
        raise StructuralPreconditionError(
            f"Conv2D shapes don't agree: input {list(input_shape)}, "
            f"filter {list(filter_shape)}, bias {list(bias_shape)}, "
            f"output {list(output_shape)}"
        )

    xp = _pad_input(
        x, out_h, out_w, k_h, k_w, pad_h, pad_w,
        stride_h, stride_w, dilation_h, dilation_w, fill=0.0,
    )

    acc = np.zeros(y.shape, dtype=np.float32)
    for i in range(k_h):
        for j in range(k_w):
            patch = _window(xp, i * dilation_h, j * dilation_w, out_h, out_w, stride_h, stride_w)
            acc += patch @ w[:, i, j, :].T

    acc += bias
    y[...] = acc


def depthwise_conv2d(
    input_shape: Sequence[int],
    input_data: np.ndarray,
    filter_shape: Sequence[int],
    filter_data: np.ndarray,
    bias_shape: Sequence[int],
    bias_data: np.ndarray,
    output_shape: Sequence[int],
    output_data: np.ndarray,
    pad_w: int,
    pad_h: int,
    stride_w: int,
    stride_h: int,
    dilation_w: int,
    dilation_h: int,
    depth_multiplier: int,
) -> None:
    """
    Depthwise 2D convolution with bias, written into ``output_data``.

    Output channel ``i * depth_multiplier + m`` convolves input channel ``i``.
    """
    x = _view_nhwc(input_shape, input_data)
    y = _view_nhwc(output_shape, output_data)
    w = _view_filter(filter_shape, filter_data)
    bias = bias_data.reshape(-1)

    n, _, _, channels = x.shape
    k_n, k_h, k_w, c_out = w.shape
    _, out_h, out_w, _ = y.shape

    if (
        k_n != 1
        or depth_multiplier < 1
        or channels * depth_multiplier != c_out
        or y.shape[3] != c_out
        or bias.size != c_out
        or y.shape[0] != n
    ):
        raise StructuralPreconditionError(
            f"DepthwiseConv2D shapes don't agree: input {list(input_shape)}, "
            f"filter {list(filter_shape)}, bias {list(bias_shape)}, "
            f"output {list(output_shape)}, depth multiplier {depth_multiplier}"
        )

    xp = _pad_input(
        x, out_h, out_w, k_h, k_w, pad_h, pad_w,
        stride_h, stride_w, dilation_h, dilation_w, fill=0.0,
    )

    acc = np.zeros(y.shape, dtype=np.float32)
    for i in range(k_h):
        for j in range(k_w):
            patch = _window(xp, i * dilation_h, j * dilation_w, out_h, out_w, stride_h, stride_w)
            if depth_multiplier != 1:
                patch = np.repeat(patch, depth_multiplier, axis=3)
            acc += patch * w[0, i, j, :]

    acc += bias
    y[...] = acc


@OperatorRegistry.register(
    OperatorKind.Conv2D, options=CONV2D_OPTIONS, num_inputs=(3,)
)
def execute_conv2d(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """Conv2D operator: Y = act(conv(X, W) + B)"""
    input_shape = _nhwc_shape(ctx.shape(inputs[0]))
    filter_shape = ctx.shape(inputs[1])
    output_shape = _nhwc_shape(ctx.shape(outputs[0]))

    stride_w = opts[OptionName.STRIDE_W]
    stride_h = opts[OptionName.STRIDE_H]
    dilation_w = opts[OptionName.DILATION_W_FACTOR]
    dilation_h = opts[OptionName.DILATION_H_FACTOR]

    output = ctx.allocate(outputs[0])
    conv2d(
        input_shape, ctx.read(inputs[0]),
        filter_shape, ctx.read(inputs[1]),
        ctx.shape(inputs[2]), ctx.read(inputs[2]),
        output_shape, output,
        padding_before(stride_w, dilation_w, SpatialAxis.WIDTH, input_shape, filter_shape, output_shape),
        padding_before(stride_h, dilation_h, SpatialAxis.HEIGHT, input_shape, filter_shape, output_shape),
        stride_w, stride_h,
        dilation_w, dilation_h,
    )

    apply_activation(output, opts[OptionName.FUSED_ACTIVATION_FUNCTION])
    ctx.write(outputs[0], output)


@OperatorRegistry.register(
    OperatorKind.DepthwiseConv2D, options=DEPTHWISE_CONV2D_OPTIONS, num_inputs=(3,)
)
def execute_depthwise_conv2d(
    ctx: "ExecutionContext",
    inputs: List[TensorId],
    outputs: List[TensorId],
    opts: Dict[OptionName, Any],
) -> None:
    """DepthwiseConv2D operator: Y = act(depthwise_conv(X, W) + B)"""
    input_shape = _nhwc_shape(ctx.shape(inputs[0]))
    filter_shape = ctx.shape(inputs[1])
    output_shape = _nhwc_shape(ctx.shape(outputs[0]))

    stride_w = opts[OptionName.STRIDE_W]
    stride_h = opts[OptionName.STRIDE_H]
    dilation_w = opts[OptionName.DILATION_W_FACTOR]
    dilation_h = opts[OptionName.DILATION_H_FACTOR]

    output = ctx.allocate(outputs[0])
    depthwise_conv2d(
        input_shape, ctx.read(inputs[0]),
        filter_shape, ctx.read(inputs[1]),
        ctx.shape(inputs[2]), ctx.read(inputs[2]),
        output_shape, output,
        padding_before(stride_w, dilation_w, SpatialAxis.WIDTH, input_shape, filter_shape, output_shape),
        padding_before(stride_h, dilation_h, SpatialAxis.HEIGHT, input_shape, filter_shape, output_shape),
        stride_w, stride_h,
        dilation_w, dilation_h,
        opts[OptionName.DEPTH_MULTIPLIER],
    )

    apply_activation(output, opts[OptionName.FUSED_ACTIVATION_FUNCTION])
    ctx.write(outputs[0], output)
