# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operator Option Extraction

Each supported operator kind declares exactly which options it needs
and of which type. Extraction checks the model against that declaration:
a missing, extra or mistyped option means the model is malformed.
"""

from __future__ import annotations

from typing import Any, Optional, Sequence

from ..core.types import OperatorOption, OptionName, OptionType
from ..errors import StructuralPreconditionError

OptionSpec = tuple[tuple[OptionName, OptionType], ...]


CONV2D_OPTIONS: OptionSpec = (
    (OptionName.STRIDE_W, OptionType.INT),
    (OptionName.STRIDE_H, OptionType.INT),
    (OptionName.DILATION_W_FACTOR, OptionType.INT),
    (OptionName.DILATION_H_FACTOR, OptionType.INT),
    (OptionName.PADDING, OptionType.PADDING_TYPE),
    (OptionName.FUSED_ACTIVATION_FUNCTION, OptionType.ACTIVATION_FUNCTION),
)

DEPTHWISE_CONV2D_OPTIONS: OptionSpec = (
    (OptionName.DEPTH_MULTIPLIER, OptionType.INT),
) + CONV2D_OPTIONS

POOL_OPTIONS: OptionSpec = (
    (OptionName.STRIDE_W, OptionType.INT),
    (OptionName.STRIDE_H, OptionType.INT),
    (OptionName.FILTER_WIDTH, OptionType.INT),
    (OptionName.FILTER_HEIGHT, OptionType.INT),
    (OptionName.PADDING, OptionType.PADDING_TYPE),
    (OptionName.FUSED_ACTIVATION_FUNCTION, OptionType.ACTIVATION_FUNCTION),
)

SOFTMAX_OPTIONS: OptionSpec = ((OptionName.BETA, OptionType.FLOAT),)


def get_option(
    options: Sequence[OperatorOption],
    name: OptionName,
    expected_type: OptionType,
    operator_id: Optional[int] = None,
) -> tuple[bool, Any]:
    """
    Look up a single option.

    Returns:
        (found, value). value is None when not found.

    Raises:
        StructuralPreconditionError: If the option exists with another type.
    """
    for option in options:
        if option.name is name:
            if option.value.type is not expected_type:
                raise StructuralPreconditionError(
                    f"option '{name}' has type {option.value.type}, "
                    f"expected {expected_type}",
                    operator_id=operator_id,
                )
            return True, option.value.value
    return False, None


def extract_options(
    options: Optional[Sequence[OperatorOption]],
    spec: OptionSpec,
    operator_id: Optional[int] = None,
) -> dict[OptionName, Any]:
    """
    Extract all options an operator kind requires.

    Args:
        options: The operator's options list, None if it has none.
        spec: Required (name, type) pairs.
        operator_id: Used in error context.

    Returns:
        Mapping from option name to its payload.

    Raises:
        StructuralPreconditionError: If the list is absent, an option is
            missing or mistyped, or the list has options beyond ``spec``.
    """
    if options is None:
        raise StructuralPreconditionError(
            "operator has no options", operator_id=operator_id
        )

    values: dict[OptionName, Any] = {}
    for name, expected_type in spec:
        found, value = get_option(options, name, expected_type, operator_id)
        if found:
            values[name] = value

    if len(values) != len(spec):
        missing = [str(name) for name, _ in spec if name not in values]
        raise StructuralPreconditionError(
            f"need {len(spec)} options, missing: {', '.join(missing)}",
            operator_id=operator_id,
        )
    if len(values) != len(options):
        extra = [str(o.name) for o in options if o.name not in values]
        raise StructuralPreconditionError(
            f"unexpected options: {', '.join(extra)}",
            operator_id=operator_id,
        )

    return values
