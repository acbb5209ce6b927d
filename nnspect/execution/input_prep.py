# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Input Preparation

Adapts a decoded image to the model's single input tensor: canonical
[H,W,C] shape, resize when the shapes differ, then value-range and
color-order normalization.

Images arrive as float32 [H,W,C] buffers with values in 0..255 and RGB
channel order. That combination is the default normalization and
leaves values untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

import numpy as np

from ..core.model import Model
from ..core.types import TensorId, TensorShape, flat_size, last_dims
from ..errors import (
    ConfigurationError,
    MultipleInputsError,
    UnsupportedInputShapeError,
    ValidationError,
    format_shape_mismatch,
)
from ..observability import get_logger
from .store import TensorStore


IMAGENET_MEANS = (123.68, 116.78, 103.94)
BGR_PERMUTATION = (2, 1, 0)

# XXX the divisor stays 256 for every target range, including 0..128
RANGE_DIVISOR = 256.0


class NormalizationRange(Enum):
    """Value range the model expects its input in."""

    R_0_1 = "0..1"
    R_0_255 = "0..255"
    R_0_128 = "0..128"
    R_0_64 = "0..64"
    R_0_32 = "0..32"
    R_0_16 = "0..16"
    R_0_8 = "0..8"
    R_M1_P1 = "-1..1"
    IMAGENET = "ImageNet"

    @property
    def bounds(self) -> Optional[tuple[float, float]]:
        """(min, max) of a linear target range, None for ImageNet."""
        return _RANGE_BOUNDS.get(self)


_RANGE_BOUNDS = {
    NormalizationRange.R_0_1: (0.0, 1.0),
    NormalizationRange.R_0_255: (0.0, 255.0),
    NormalizationRange.R_0_128: (0.0, 128.0),
    NormalizationRange.R_0_64: (0.0, 64.0),
    NormalizationRange.R_0_32: (0.0, 32.0),
    NormalizationRange.R_0_16: (0.0, 16.0),
    NormalizationRange.R_0_8: (0.0, 8.0),
    NormalizationRange.R_M1_P1: (-1.0, 1.0),
}


class ColorOrder(Enum):
    """Channel order the model expects."""

    RGB = "RGB"
    BGR = "BGR"


@dataclass(frozen=True)
class InputNormalization:
    """
    How the model expects its input to be normalized.

    Attributes:
        range: Target value range
        color_order: Target channel order
    """

    range: NormalizationRange = NormalizationRange.R_0_255
    color_order: ColorOrder = ColorOrder.RGB

    @classmethod
    def default(cls) -> "InputNormalization":
        """0..255/RGB, the way images are decoded."""
        return cls()

    @classmethod
    def from_labels(cls, range_label: str, color_order_label: str = "RGB") -> "InputNormalization":
        """
        Parse labels such as ("-1..1", "BGR").

        Raises:
            ConfigurationError: If a label isn't recognized.
        """
        try:
            value_range = NormalizationRange(range_label)
        except ValueError:
            raise ConfigurationError(
                f"unknown normalization range '{range_label}', expected one of "
                + ", ".join(r.value for r in NormalizationRange),
                config_key="range",
                config_value=range_label,
            ) from None
        try:
            color_order = ColorOrder(color_order_label)
        except ValueError:
            raise ConfigurationError(
                f"unknown color order '{color_order_label}', expected one of "
                + ", ".join(c.value for c in ColorOrder),
                config_key="color_order",
                config_value=color_order_label,
            ) from None
        return cls(value_range, color_order)

    @property
    def is_default(self) -> bool:
        return self == InputNormalization.default()

    def __str__(self) -> str:
        return f"{self.range.value}/{self.color_order.value}"


def canonical_input_shape(required_shape: Sequence[int]) -> TensorShape:
    """
    Express the model's input shape as [H,W,C].

    - [1,H,W,C] drops the batch
    - [1,H,W] is a monochrome image [H,W,1]
    - [H,W,C] must have C=1 or C=3

    Raises:
        UnsupportedInputShapeError: For any other shape.
    """
    shape = tuple(int(d) for d in required_shape)

    if len(shape) == 4:
        if shape[0] != 1:
            raise UnsupportedInputShapeError(
                shape, "has 4 elements but doesn't begin with B=1"
            )
        return last_dims(shape, 3)

    if len(shape) == 3:
        if shape[0] == 1:
            return last_dims(shape, 2) + (1,)
        if shape[2] not in (1, 3):
            raise UnsupportedInputShapeError(
                shape,
                "has 3 elements but doesn't have C=1 or C=3, "
                "it doesn't look like it describes an image",
            )
        return shape

    raise UnsupportedInputShapeError(shape, "isn't standard")


def _adapt_channels(img: np.ndarray, channels: int, required_shape: TensorShape) -> np.ndarray:
    src_channels = img.shape[2]
    if src_channels == channels:
        return img
    if channels == 1:
        return img.mean(axis=2, keepdims=True, dtype=np.float32)
    if src_channels == 1:
        return np.repeat(img, channels, axis=2)
    raise UnsupportedInputShapeError(
        required_shape,
        f"needs C={channels} but the image has C={src_channels}",
    )


def resize_image(
    data: np.ndarray,
    src_shape: Sequence[int],
    dst_shape: Sequence[int],
) -> np.ndarray:
    """
    Bilinear resize of an [H,W,C] image into a new flat buffer.

    Sample positions use pixel centers and clamp at the edges. The
    channel count is adapted first: averaging to get one channel,
    replicating a single channel to get more.
    """
    src_h, src_w, _ = (int(d) for d in src_shape)
    dst_h, dst_w, dst_c = (int(d) for d in dst_shape)

    img = _adapt_channels(
        np.asarray(data, dtype=np.float32).reshape(src_h, src_w, -1),
        dst_c,
        tuple(dst_shape),
    )

    ys = (np.arange(dst_h, dtype=np.float64) + 0.5) * (src_h / dst_h) - 0.5
    xs = (np.arange(dst_w, dtype=np.float64) + 0.5) * (src_w / dst_w) - 0.5

    y0 = np.floor(ys).astype(int)
    x0 = np.floor(xs).astype(int)
    wy = (ys - y0)[:, None, None]
    wx = (xs - x0)[None, :, None]
    y1 = np.clip(y0 + 1, 0, src_h - 1)
    x1 = np.clip(x0 + 1, 0, src_w - 1)
    y0 = np.clip(y0, 0, src_h - 1)
    x0 = np.clip(x0, 0, src_w - 1)

    top = img[y0][:, x0] * (1.0 - wx) + img[y0][:, x1] * wx
    bottom = img[y1][:, x0] * (1.0 - wx) + img[y1][:, x1] * wx
    out = top * (1.0 - wy) + bottom * wy

    return np.ascontiguousarray(out, dtype=np.float32).reshape(-1)


def normalize_range(src: np.ndarray, dst: np.ndarray, lo: float, hi: float) -> None:
    """dst = lo + src * (hi - lo) / 256"""
    scale = np.float32((hi - lo) / RANGE_DIVISOR)
    np.multiply(src, scale, out=dst)
    dst += np.float32(lo)


def subtract_means(src: np.ndarray, dst: np.ndarray, means: Sequence[float]) -> None:
    """Subtract per-channel means, cycling through ``means`` along the buffer."""
    k = len(means)
    np.subtract(
        src.reshape(-1, k),
        np.asarray(means, dtype=np.float32),
        out=dst.reshape(-1, k),
    )


def reorder_channels(src: np.ndarray, dst: np.ndarray, permutation: Sequence[int]) -> None:
    """Permute every pixel's channels; ``src`` may be ``dst``."""
    k = len(permutation)
    dst.reshape(-1, k)[...] = src.reshape(-1, k)[:, list(permutation)]


def prepare_input(
    model: Model,
    normalization: InputNormalization,
    buffer: np.ndarray,
    shape: Sequence[int],
    store: TensorStore,
) -> TensorId:
    """
    Compute the model's input tensor from an image and store it.

    The caller's buffer is stored as is when it already has the right
    shape and the normalization is the default; it is never modified.

    Args:
        model: Model with exactly one input.
        normalization: Normalization the model expects.
        buffer: float32 image data, [H,W,C] in row-major order.
        shape: Image shape [H,W,C].
        store: Store that receives the input tensor.

    Returns:
        The input tensor id.

    Raises:
        MultipleInputsError: If the model doesn't have exactly one input.
        UnsupportedInputShapeError: If the model's input isn't image-like.
        ValidationError: If the buffer doesn't match ``shape``.
    """
    logger = get_logger()

    inputs = model.get_inputs()
    if len(inputs) != 1:
        raise MultipleInputsError(len(inputs))
    input_id = inputs[0]

    image_shape = tuple(int(d) for d in shape)
    if len(image_shape) != 3:
        raise ValidationError(
            "image shape must be [H,W,C]",
            parameter="input_shape",
            received=str(list(image_shape)),
        )

    data = np.asarray(buffer, dtype=np.float32)
    if data.ndim != 1:
        data = data.reshape(-1)
    if data.size != flat_size(image_shape):
        raise format_shape_mismatch((flat_size(image_shape),), data.shape, "input_buffer")

    model_shape = tuple(model.get_tensor_shape(input_id))
    required_shape = canonical_input_shape(model_shape)

    owned = False
    if image_shape != required_shape:
        logger.debug(
            f"resizing image {list(image_shape)} -> {list(required_shape)}",
            component="input",
        )
        data = resize_image(data, image_shape, required_shape)
        owned = True

    if not normalization.is_default:
        channels = required_shape[2]
        src = data
        dst = data if owned else np.empty_like(data)

        bounds = normalization.range.bounds
        if normalization.range is NormalizationRange.IMAGENET:
            if channels != 3:
                raise UnsupportedInputShapeError(
                    model_shape, "doesn't have C=3 as ImageNet normalization requires"
                )
            subtract_means(src, dst, IMAGENET_MEANS)
            src = dst
        elif normalization.range is not NormalizationRange.R_0_255:
            normalize_range(src, dst, *bounds)
            src = dst

        if normalization.color_order is ColorOrder.BGR:
            if channels == 3:
                reorder_channels(src, dst, BGR_PERMUTATION)
                src = dst
            elif channels != 1:
                raise UnsupportedInputShapeError(
                    model_shape, f"has C={channels}, BGR reordering needs C=3"
                )

        # monochrome BGR leaves src untouched
        if src is not data:
            data = src
            owned = True

        logger.debug(f"normalized input to {normalization}", component="input")

    store.set(input_id, data, owned=owned)
    return input_id
