# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Padding Calculator

Models record a symbolic padding mode and the already inferred output
shape, not explicit pad amounts. The amounts are reconstructed here by
inverting the output size relation of a strided, dilated window.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Sequence


class SpatialAxis(IntEnum):
    """Index of a spatial axis in a [B,H,W,C] shape."""

    HEIGHT = 1
    WIDTH = 2


def compute_padding(
    stride: int,
    dilation: int,
    input_size: int,
    filter_size: int,
    output_size: int,
) -> tuple[int, int]:
    """
    Infer the padding applied along one axis.

    Args:
        stride: Window stride.
        dilation: Dilation factor of the filter.
        input_size: Input extent along the axis.
        filter_size: Filter extent along the axis.
        output_size: Output extent along the axis.

    Returns:
        (before, after) padding. Any odd cell goes after.

    Example:
        >>> compute_padding(1, 1, 5, 3, 5)
        (1, 1)
    """
    effective_filter = (filter_size - 1) * dilation + 1
    total = max(0, (output_size - 1) * stride + effective_filter - input_size)
    before = total // 2
    return before, total - before


def padding_before(
    stride: int,
    dilation: int,
    axis: SpatialAxis,
    input_shape: Sequence[int],
    filter_shape: Sequence[int],
    output_shape: Sequence[int],
) -> int:
    """Leading padding along ``axis`` for rank-4 input/filter/output shapes."""
    idx = int(axis)
    before, _ = compute_padding(
        stride, dilation, input_shape[idx], filter_shape[idx], output_shape[idx]
    )
    return before
