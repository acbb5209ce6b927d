# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Structured Logger for nnspect

Text or JSON log lines with a fixed set of context fields.

Example:
    from nnspect.observability import get_logger, Verbosity

    logger = get_logger()
    logger.set_verbosity(Verbosity.DEBUG)
    logger.info("Tensor computed", component="engine", tensor_id=4)
"""

import json
import os
import sys
from dataclasses import dataclass, asdict, field
from datetime import datetime
from enum import IntEnum
from typing import Callable, Optional, TextIO


class Verbosity(IntEnum):
    """
    Logging verbosity levels.

    Uses IntEnum for numeric comparison (e.g., if verbosity >= INFO).
    """

    SILENT = 0
    ERROR = 1
    WARNING = 2
    INFO = 3
    DEBUG = 4


@dataclass
class LogEntry:
    """
    Structured log entry.

    Attributes:
        level: Log level (ERROR, WARNING, INFO, DEBUG)
        message: Log message
        timestamp: ISO format timestamp
        component: Source component (engine, input, kernel)
        model_name: Optional model name
        operation: Optional operator kind
        operator_id: Optional 0-based operator id
        duration_ms: Optional duration in milliseconds
        extra: Additional context fields
    """

    level: str
    message: str
    timestamp: str
    component: str = "nnspect"
    model_name: Optional[str] = None
    operation: Optional[str] = None
    operator_id: Optional[int] = None
    duration_ms: Optional[float] = None
    extra: dict = field(default_factory=dict)

    def to_json(self) -> str:
        """Convert to JSON string."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if not data.get("extra"):
            data.pop("extra", None)
        return json.dumps(data, default=str)

    def to_text(self) -> str:
        """Convert to human-readable text format."""
        parts = [
            f"[{self.level}]",
            f"[{self.component}]",
        ]
        if self.operator_id is not None:
            parts.append(f"op#{self.operator_id + 1}")
        if self.operation is not None:
            parts.append(f"{self.operation}:")
        parts.append(self.message)
        if self.duration_ms is not None:
            parts.append(f"({self.duration_ms:.2f}ms)")
        return " ".join(parts)


LogHandler = Callable[[LogEntry], None]


class NnspectLogger:
    """
    Structured logger for nnspect.

    A single shared instance keeps logging configuration consistent
    across the package.
    """

    _instance: Optional["NnspectLogger"] = None

    def __init__(self):
        self._verbosity = Verbosity.WARNING
        self._output: TextIO = sys.stderr
        self._json_format = False
        self._handlers: list[LogHandler] = []

        env_verbosity = os.environ.get("NNSPECT_VERBOSITY")
        if env_verbosity is not None:
            try:
                self._verbosity = Verbosity(int(env_verbosity))
            except ValueError:
                pass

    @classmethod
    def get(cls) -> "NnspectLogger":
        """Get the shared logger instance."""
        if cls._instance is None:
            cls._instance = NnspectLogger()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the shared instance (for testing)."""
        cls._instance = None

    def set_verbosity(self, level: int) -> None:
        """
        Set verbosity level.

        Args:
            level: Verbosity level (0-4 or Verbosity enum)
        """
        if isinstance(level, Verbosity):
            self._verbosity = level
        else:
            self._verbosity = Verbosity(max(0, min(4, int(level))))

    def get_verbosity(self) -> Verbosity:
        """Get current verbosity level."""
        return self._verbosity

    def set_json_format(self, enabled: bool) -> None:
        """Enable or disable JSON output format."""
        self._json_format = enabled

    def set_output(self, output: TextIO) -> None:
        """Set output stream."""
        self._output = output

    def add_handler(self, handler: LogHandler) -> None:
        """Add a custom log handler."""
        self._handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        """Remove a previously added handler."""
        self._handlers = [h for h in self._handlers if h != handler]

    def _log(self, level: Verbosity, message: str, context: dict) -> None:
        if self._verbosity < level:
            return

        entry = LogEntry(
            level=level.name,
            message=message,
            timestamp=datetime.now().isoformat(),
            component=context.pop("component", "nnspect"),
            model_name=context.pop("model_name", None),
            operation=context.pop("operation", None),
            operator_id=context.pop("operator_id", None),
            duration_ms=context.pop("duration_ms", None),
            extra=context,
        )

        line = entry.to_json() if self._json_format else entry.to_text()
        self._output.write(line + "\n")
        self._output.flush()

        for handler in self._handlers:
            handler(entry)

    def debug(self, message: str, **context) -> None:
        """Log debug message."""
        self._log(Verbosity.DEBUG, message, context)

    def info(self, message: str, **context) -> None:
        """Log info message."""
        self._log(Verbosity.INFO, message, context)

    def warning(self, message: str, **context) -> None:
        """Log warning message."""
        self._log(Verbosity.WARNING, message, context)

    def error(self, message: str, **context) -> None:
        """Log error message."""
        self._log(Verbosity.ERROR, message, context)


def get_logger() -> NnspectLogger:
    """Get the global nnspect logger."""
    return NnspectLogger.get()


def set_verbosity(level: int) -> None:
    """
    Set global verbosity level.

    Args:
        level: Verbosity level (0=SILENT, 1=ERROR, 2=WARNING, 3=INFO, 4=DEBUG)
    """
    NnspectLogger.get().set_verbosity(level)
