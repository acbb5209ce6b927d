# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
nnspect Observability Module

Structured logging and event tracking for the compute engine.

Components:
- NnspectLogger: Structured logging with text or JSON output
- EventEmitter: Event system for tracking engine progress
"""

from .logger import (
    Verbosity,
    LogEntry,
    NnspectLogger,
    get_logger,
    set_verbosity,
)

from .events import (
    Event,
    EventEmitter,
    EventNames,
    get_emitter,
)

__all__ = [
    # Logger
    "Verbosity",
    "LogEntry",
    "NnspectLogger",
    "get_logger",
    "set_verbosity",
    # Events
    "Event",
    "EventEmitter",
    "EventNames",
    "get_emitter",
]
