# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect Error Hierarchy

Provides error types for the nnspect compute engine with:
- Clear error categorization
- Helpful error messages with suggestions
- Context information for debugging

Error Categories:
- NnspectError: Base class for all nnspect errors
- StructuralPreconditionError: The model violates assumptions the engine
  relies on (option arity/type, missing input data). Never user-facing.
- UnsupportedFeatureError: A designed failure reported to the caller
  through the warning callback.
- ValidationError: Invalid arguments supplied by the caller
- ConfigurationError: Invalid configuration values
"""

from typing import Optional


class NnspectError(Exception):
    """
    Base class for all nnspect errors.

    Attributes:
        message: Human-readable error message
        suggestions: List of suggestions to fix the error
        context: Optional context dictionary for debugging
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}

        full_message = self._format_message()
        super().__init__(full_message)

    def _format_message(self) -> str:
        """Format the error message with suggestions."""
        lines = [self.message]

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)


class StructuralPreconditionError(NnspectError):
    """
    The model does not satisfy an assumption of the engine.

    Raised when:
    - An operator carries missing, extra or mistyped options
    - An operator has the wrong number of inputs or outputs
    - A tensor is read before it was computed and has no static data
    - Reshape input and output element counts differ

    These indicate a malformed model, they are not reported as warnings.
    """

    def __init__(
        self,
        message: str,
        operator_id: Optional[int] = None,
        tensor_id: Optional[int] = None,
    ):
        context = {}
        if operator_id is not None:
            context["operator"] = f"#{operator_id + 1}"
        if tensor_id is not None:
            context["tensor_id"] = tensor_id

        super().__init__(
            message=f"Model precondition violated: {message}",
            context=context,
        )


class UnsupportedFeatureError(NnspectError):
    """
    The model uses something the engine deliberately does not compute.

    The engine turns these into a single warning message and a failed run.
    The warning carries only ``message``, without suggestions or context.
    """


class MultipleInputsError(UnsupportedFeatureError):
    """Raised when the model declares anything but exactly one input."""

    def __init__(self, num_inputs: int):
        self.num_inputs = num_inputs
        super().__init__(
            message=(
                "We currently only support models with a single input, "
                f"the current model has {num_inputs} inputs"
            ),
            context={"num_inputs": num_inputs},
        )


class UnsupportedInputShapeError(UnsupportedFeatureError):
    """Raised when the model's input shape doesn't describe an image."""

    def __init__(self, shape: tuple, reason: str):
        self.shape = tuple(shape)
        super().__init__(
            message=(
                f"Model's required shape {list(self.shape)} {reason}, "
                "don't know how to adjust the image for it"
            ),
            suggestions=[
                "Use a model whose input is [1,H,W,C], [H,W,C] or [1,H,W]",
            ],
            context={"shape": list(self.shape)},
        )


class UnsupportedOperatorError(UnsupportedFeatureError):
    """Raised when dispatch reaches an operator kind without a kernel."""

    def __init__(
        self,
        operator_id: int,
        kind_name: str,
        supported_ops: Optional[list[str]] = None,
    ):
        self.operator_id = operator_id
        self.kind_name = kind_name
        self.supported_ops = supported_ops or []

        suggestions = []
        if self.supported_ops:
            suggestions.append(f"Supported operators: {', '.join(self.supported_ops)}")

        super().__init__(
            message=(
                f"Computation didn't succeed: operator #{operator_id + 1}: "
                f"{kind_name} isn't yet implemented"
            ),
            suggestions=suggestions,
            context={"operator": f"#{operator_id + 1}", "kind": kind_name},
        )


class ComputationCancelledError(UnsupportedFeatureError):
    """Raised when the caller requested cancellation between operators."""

    def __init__(self, next_operator_id: int, num_operators: int):
        self.next_operator_id = next_operator_id
        super().__init__(
            message=(
                f"Computation was cancelled before operator #{next_operator_id + 1} "
                f"of {num_operators}"
            ),
        )


class ValidationError(NnspectError):
    """
    Input validation error.

    Raised when:
    - The supplied image shape or buffer size is invalid
    - An option value doesn't match its declared type
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ):
        context = {}
        if parameter:
            context["parameter"] = parameter
        if expected:
            context["expected"] = expected
        if received:
            context["received"] = received

        super().__init__(
            message=f"Validation failed: {message}",
            suggestions=[
                "Check the parameter value and type",
            ],
            context=context,
        )


class ConfigurationError(NnspectError):
    """
    Configuration error.

    Raised when a normalization label or engine setting is not recognized.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[str] = None,
    ):
        context = {}
        if config_key:
            context["config_key"] = config_key
        if config_value:
            context["config_value"] = str(config_value)

        super().__init__(
            message=f"Configuration error: {message}",
            suggestions=[
                "Check configuration parameters",
            ],
            context=context,
        )


def format_shape_mismatch(
    expected_shape: tuple,
    actual_shape: tuple,
    tensor_name: Optional[str] = None,
) -> ValidationError:
    """Create a ValidationError for shape mismatch."""
    msg = f"Shape mismatch: expected {expected_shape}, got {actual_shape}"
    return ValidationError(
        message=msg,
        parameter=tensor_name or "tensor",
        expected=str(expected_shape),
        received=str(actual_shape),
    )
