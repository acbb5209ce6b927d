# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Event System for nnspect

Lightweight event emitter for reacting to engine progress, such as
a run starting, each tensor becoming available, and a run aborting.

Example:
    from nnspect.observability import get_emitter

    get_emitter().on("tensor.*", lambda e: print(e.data["tensor_id"]))
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, List, Any, Optional
import threading
import fnmatch

from .logger import get_logger


@dataclass
class Event:
    """
    A single event occurrence.

    Attributes:
        name: Event name (e.g., "compute.started", "tensor.computed")
        timestamp: ISO format timestamp when event occurred
        data: Event payload as dictionary
    """

    name: str
    timestamp: str
    data: Dict[str, Any] = field(default_factory=dict)


EventHandler = Callable[[Event], None]


class EventEmitter:
    """
    Event emitter with glob-pattern subscriptions.

    Example:
        emitter = EventEmitter()
        emitter.on("compute.*", handler_func)
        emitter.emit("compute.started", num_operators=3)
    """

    def __init__(self):
        self._handlers: Dict[str, List[EventHandler]] = {}
        self._lock = threading.RLock()
        self._history: List[Event] = []
        self._history_limit = 1000
        self._record_history = False

    def on(self, pattern: str, handler: EventHandler) -> None:
        """
        Subscribe to events matching pattern.

        Args:
            pattern: Event name or glob pattern (e.g., "tensor.*")
            handler: Callback receiving the Event object
        """
        with self._lock:
            handlers = self._handlers.setdefault(pattern, [])
            if handler not in handlers:
                handlers.append(handler)

    def off(self, pattern: str, handler: Optional[EventHandler] = None) -> None:
        """
        Unsubscribe from events.

        Args:
            pattern: Event pattern to unsubscribe from
            handler: Specific handler to remove, or None to remove all
        """
        with self._lock:
            if pattern not in self._handlers:
                return

            if handler is None:
                del self._handlers[pattern]
            else:
                self._handlers[pattern] = [
                    h for h in self._handlers[pattern] if h != handler
                ]
                if not self._handlers[pattern]:
                    del self._handlers[pattern]

    def emit(self, name: str, **data) -> Event:
        """
        Emit an event.

        Handler failures are logged and don't interrupt the emitter.

        Returns:
            The emitted Event object
        """
        event = Event(
            name=name,
            timestamp=datetime.now().isoformat(),
            data=data,
        )

        with self._lock:
            if self._record_history:
                self._history.append(event)
                if len(self._history) > self._history_limit:
                    self._history = self._history[-self._history_limit :]

            handlers_to_call = []
            for pattern, handlers in self._handlers.items():
                if self._matches(name, pattern):
                    handlers_to_call.extend(handlers)

        # Handlers run outside the lock so they may subscribe or emit
        for handler in handlers_to_call:
            try:
                handler(event)
            except Exception as e:
                get_logger().error(
                    f"event handler for '{name}' failed: {e}", component="events"
                )

        return event

    def _matches(self, name: str, pattern: str) -> bool:
        if pattern == "*":
            return True
        return fnmatch.fnmatch(name, pattern)

    def enable_history(self, limit: int = 1000) -> None:
        """Enable event history recording."""
        with self._lock:
            self._record_history = True
            self._history_limit = limit

    def disable_history(self) -> None:
        """Disable event history recording."""
        with self._lock:
            self._record_history = False

    def get_history(
        self, pattern: Optional[str] = None, limit: Optional[int] = None
    ) -> List[Event]:
        """Get recorded events (newest last), optionally filtered."""
        with self._lock:
            events = self._history.copy()

        if pattern:
            events = [e for e in events if self._matches(e.name, pattern)]

        if limit:
            events = events[-limit:]

        return events

    def clear_all(self) -> None:
        """Clear all handlers and history."""
        with self._lock:
            self._handlers.clear()
            self._history.clear()


_emitter: Optional[EventEmitter] = None


def get_emitter() -> EventEmitter:
    """Get or create the global event emitter."""
    global _emitter
    if _emitter is None:
        _emitter = EventEmitter()
    return _emitter


class EventNames:
    """Standard event names for nnspect."""

    COMPUTE_STARTED = "compute.started"
    COMPUTE_COMPLETED = "compute.completed"
    COMPUTE_ABORTED = "compute.aborted"

    TENSOR_COMPUTED = "tensor.computed"
