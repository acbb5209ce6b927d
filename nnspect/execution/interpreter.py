# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Compute Engine

Walks a model's operators in declaration order and computes every
tensor value, starting from a prepared input image.

A run either computes all operators or stops at the first operator it
can't compute. Stopping reports exactly one warning; tensors computed
before that point stay in the store.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np

from ..core.model import Model
from ..core.types import TensorId
from ..errors import (
    ComputationCancelledError,
    StructuralPreconditionError,
    UnsupportedFeatureError,
    UnsupportedOperatorError,
    ValidationError,
)
from ..observability import EventNames, get_emitter, get_logger
from .context import ExecutionContext
from .input_prep import InputNormalization, prepare_input
from .options import extract_options
from .registry import OperatorRegistry
from .store import TensorStore

# Import operators to populate the registry
from . import operators  # noqa: F401


@dataclass
class EngineConfig:
    """
    Configuration of the compute engine.

    Attributes:
        verbose: Logger verbosity (0-4), None keeps the current level
        emit_events: Whether to publish progress on the global event emitter
    """

    verbose: Optional[int] = None
    emit_events: bool = True


class ComputeObserver:
    """
    Receives progress of a run.

    on_tensor_computed fires once per tensor id: the input first, then
    each operator's outputs in operator order. on_warning fires at most
    once, when the run aborts.
    """

    def on_warning(self, message: str) -> None:
        pass

    def on_tensor_computed(self, tensor_id: TensorId) -> None:
        pass


class CallbackObserver(ComputeObserver):
    """Observer that forwards to plain callables."""

    def __init__(
        self,
        on_warning: Optional[Callable[[str], None]] = None,
        on_tensor_computed: Optional[Callable[[TensorId], None]] = None,
    ):
        self._on_warning = on_warning
        self._on_tensor_computed = on_tensor_computed

    def on_warning(self, message: str) -> None:
        if self._on_warning is not None:
            self._on_warning(message)

    def on_tensor_computed(self, tensor_id: TensorId) -> None:
        if self._on_tensor_computed is not None:
            self._on_tensor_computed(tensor_id)


@dataclass
class ComputeResult:
    """
    Outcome of a run.

    Truthy when every operator was computed.

    Attributes:
        success: Whether the run reached the end of the model
        tensor_store: The store used, possibly created by the run
        warning: The warning message of an aborted run
        computed: Tensor ids notified during the run, in order
    """

    success: bool
    tensor_store: TensorStore
    warning: Optional[str] = None
    computed: tuple[TensorId, ...] = ()

    def __bool__(self) -> bool:
        return self.success


class ComputeEngine:
    """
    Computes all tensors of a model.

    Example:
        engine = ComputeEngine(model)
        result = engine.run(
            InputNormalization.from_labels("0..1"),
            image, (224, 224, 3),
            observer=CallbackObserver(on_tensor_computed=print),
        )
        if result:
            probs = result.tensor_store.get(model.get_outputs()[0])
    """

    def __init__(self, model: Model, config: Optional[EngineConfig] = None):
        self.model = model
        self.config = config or EngineConfig()
        self._logger = get_logger()
        if self.config.verbose is not None:
            self._logger.set_verbosity(self.config.verbose)

    @property
    def unsupported_operators(self) -> list[str]:
        """Kind names of the model's operators that can't be computed."""
        kinds = [
            self.model.get_operator_kind(oid)
            for oid in range(self.model.num_operators())
        ]
        return sorted({k.name for k in OperatorRegistry.get_unsupported_ops(kinds)})

    @property
    def is_fully_supported(self) -> bool:
        """Check if every operator of the model can be computed."""
        return not self.unsupported_operators

    def create_store(self) -> TensorStore:
        """Create an empty store sized for the model."""
        return TensorStore(self.model.num_tensors())

    def run(
        self,
        normalization: InputNormalization,
        input_buffer: np.ndarray,
        input_shape: Sequence[int],
        tensor_store: Optional[TensorStore] = None,
        observer: Optional[ComputeObserver] = None,
        should_cancel: Optional[Callable[[], bool]] = None,
    ) -> ComputeResult:
        """
        Compute the input tensor and then every operator.

        Args:
            normalization: How the model expects its input normalized.
            input_buffer: float32 image data, [H,W,C] row-major.
            input_shape: Image shape [H,W,C].
            tensor_store: Store to fill, created when None. Existing
                          contents are kept and replaced as recomputed.
            observer: Receives warnings and per-tensor notifications.
            should_cancel: Polled between operators.

        Returns:
            ComputeResult, truthy on success.

        Raises:
            StructuralPreconditionError: If the model is malformed.
            ValidationError: If the arguments are invalid.
        """
        observer = observer or ComputeObserver()
        if tensor_store is None:
            tensor_store = self.create_store()
        elif len(tensor_store) != self.model.num_tensors():
            raise ValidationError(
                "tensor store doesn't match the model",
                parameter="tensor_store",
                expected=f"{self.model.num_tensors()} tensors",
                received=f"{len(tensor_store)} tensors",
            )
        tensor_store.begin_run()

        computed: list[TensorId] = []

        def notify(tensor_id: TensorId) -> None:
            computed.append(tensor_id)
            observer.on_tensor_computed(tensor_id)
            self._emit(EventNames.TENSOR_COMPUTED, tensor_id=tensor_id)

        num_operators = self.model.num_operators()
        self._logger.info(
            f"computing {num_operators} operators, input normalization {normalization}",
            component="engine",
        )
        self._emit(EventNames.COMPUTE_STARTED, num_operators=num_operators)
        start = time.perf_counter()

        try:
            notify(prepare_input(self.model, normalization, input_buffer, input_shape, tensor_store))
            self._dispatch(tensor_store, notify, should_cancel)
        except UnsupportedFeatureError as e:
            self._logger.warning(e.message, component="engine")
            self._emit(EventNames.COMPUTE_ABORTED, message=e.message)
            observer.on_warning(e.message)
            return ComputeResult(False, tensor_store, e.message, tuple(computed))
        except StructuralPreconditionError as e:
            self._logger.error(e.message, component="engine")
            raise

        elapsed_ms = (time.perf_counter() - start) * 1000
        self._logger.info(
            "computation succeeded", component="engine", duration_ms=elapsed_ms
        )
        self._emit(EventNames.COMPUTE_COMPLETED, duration_ms=elapsed_ms)
        return ComputeResult(True, tensor_store, None, tuple(computed))

    def _dispatch(
        self,
        store: TensorStore,
        notify: Callable[[TensorId], None],
        should_cancel: Optional[Callable[[], bool]],
    ) -> None:
        """Execute operators in declaration order."""
        ctx = ExecutionContext(self.model, store)
        num_operators = self.model.num_operators()

        for oid in range(num_operators):
            if should_cancel is not None and should_cancel():
                raise ComputationCancelledError(oid, num_operators)

            kind = self.model.get_operator_kind(oid)
            if not OperatorRegistry.is_supported(kind):
                raise UnsupportedOperatorError(
                    oid, kind.name, OperatorRegistry.list_operators()
                )

            spec = OperatorRegistry.get(kind)
            inputs, outputs = self.model.get_operator_io(oid)
            if len(inputs) not in spec.num_inputs or len(outputs) != spec.num_outputs:
                raise StructuralPreconditionError(
                    f"{kind.name} has {len(inputs)} input(s) and {len(outputs)} output(s)",
                    operator_id=oid,
                )

            options = self.model.get_operator_options(oid)
            if spec.options is None:
                if options is None:
                    raise StructuralPreconditionError(
                        "operator has no options", operator_id=oid
                    )
                opts = {}
            else:
                opts = extract_options(options, spec.options, oid)

            if not ctx.has_value(inputs[0]):
                raise StructuralPreconditionError(
                    "input data isn't available", operator_id=oid, tensor_id=inputs[0]
                )

            self._logger.debug(
                ", ".join(f"{name}={value}" for name, value in opts.items())
                or "no options used",
                component="engine",
                operation=kind.name,
                operator_id=oid,
            )

            ctx.operator_id = oid
            spec.func(ctx, inputs, outputs, opts)

            for tid in outputs:
                notify(tid)

    def _emit(self, name: str, **data) -> None:
        if self.config.emit_events:
            get_emitter().emit(name, **data)

    def summary(self) -> str:
        """Get a summary of the model as seen by the engine."""
        lines = [
            "ComputeEngine Summary",
            f"  Operators: {self.model.num_operators()}",
            f"  Tensors: {self.model.num_tensors()}",
            f"  Inputs: {self.model.get_inputs()}",
            f"  Outputs: {self.model.get_outputs()}",
            f"  Fully Supported: {self.is_fully_supported}",
        ]
        if not self.is_fully_supported:
            lines.append(f"  Unsupported Ops: {', '.join(self.unsupported_operators)}")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"ComputeEngine(model={self.model!r})"


def compute(
    model: Model,
    input_normalization: InputNormalization,
    input_buffer: np.ndarray,
    input_shape: Sequence[int],
    tensor_store: Optional[TensorStore] = None,
    on_warning: Optional[Callable[[str], None]] = None,
    on_tensor_computed: Optional[Callable[[TensorId], None]] = None,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> ComputeResult:
    """
    Compute every tensor of ``model`` from an input image.

    Example:
        result = compute(
            model, InputNormalization.default(), image, image.shape,
            on_warning=print,
        )
        store = result.tensor_store
    """
    engine = ComputeEngine(model)
    return engine.run(
        input_normalization,
        input_buffer,
        input_shape,
        tensor_store=tensor_store,
        observer=CallbackObserver(on_warning, on_tensor_computed),
        should_cancel=should_cancel,
    )
