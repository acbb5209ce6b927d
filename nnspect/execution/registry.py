# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Operator Registry

Maps operator kinds to their implementations together with the options
and arity each kind requires. Kinds without a registration are the
unsupported case.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from ..core.types import OperatorKind, OptionName, TensorId
from .options import OptionSpec

if TYPE_CHECKING:
    from .context import ExecutionContext


# Signature: (ctx, inputs, outputs, options) -> None
OperatorFunc = Callable[
    ["ExecutionContext", List[TensorId], List[TensorId], Dict[OptionName, Any]], None
]


@dataclass(frozen=True)
class OperatorSpec:
    """
    Registration record of one operator kind.

    Attributes:
        kind: The operator kind.
        func: Implementation.
        options: Required options, or None when options must be present
                 but are ignored.
        num_inputs: Accepted input counts.
        num_outputs: Required output count.
    """

    kind: OperatorKind
    func: OperatorFunc
    options: Optional[OptionSpec]
    num_inputs: tuple[int, ...]
    num_outputs: int = 1


class OperatorRegistry:
    """
    Registry of operator implementations.

    Example:
        @OperatorRegistry.register(
            OperatorKind.Softmax, options=SOFTMAX_OPTIONS, num_inputs=(1,)
        )
        def execute_softmax(ctx, inputs, outputs, opts):
            ...

        spec = OperatorRegistry.get(OperatorKind.Softmax)
    """

    _registry: Dict[OperatorKind, OperatorSpec] = {}

    @classmethod
    def register(
        cls,
        kind: OperatorKind,
        options: Optional[OptionSpec],
        num_inputs: tuple[int, ...],
        num_outputs: int = 1,
    ) -> Callable[[OperatorFunc], OperatorFunc]:
        """
        Decorator to register an operator implementation.

        Args:
            kind: Operator kind handled by the function.
            options: Required options (None: present but ignored).
            num_inputs: Accepted input counts.
            num_outputs: Required output count.
        """

        def decorator(func: OperatorFunc) -> OperatorFunc:
            cls._registry[kind] = OperatorSpec(
                kind=kind,
                func=func,
                options=options,
                num_inputs=num_inputs,
                num_outputs=num_outputs,
            )
            return func

        return decorator

    @classmethod
    def get(cls, kind: OperatorKind) -> OperatorSpec:
        """
        Get the registration of an operator kind.

        Raises:
            KeyError: If the kind isn't registered.
        """
        if kind not in cls._registry:
            raise KeyError(
                f"Operator '{kind}' not registered. "
                f"Supported operators: {cls.list_operators()}"
            )
        return cls._registry[kind]

    @classmethod
    def is_supported(cls, kind: OperatorKind) -> bool:
        """Check if an operator kind is supported."""
        return kind in cls._registry

    @classmethod
    def list_operators(cls) -> List[str]:
        """List all registered operator kind names."""
        return sorted(kind.name for kind in cls._registry)

    @classmethod
    def count(cls) -> int:
        """Get number of registered operators."""
        return len(cls._registry)

    @classmethod
    def get_unsupported_ops(cls, kinds: List[OperatorKind]) -> List[OperatorKind]:
        """Get the kinds from ``kinds`` that have no implementation."""
        return [kind for kind in kinds if not cls.is_supported(kind)]
