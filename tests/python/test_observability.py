# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Tests for nnspect Observability Module

Validates:
- Verbosity enum
- LogEntry serialization
- NnspectLogger singleton
- EventEmitter subscriptions and history
- Engine logging
"""

import io
import json

import numpy as np

from nnspect.core import GraphModel
from nnspect.execution import ComputeEngine, EngineConfig, InputNormalization
from nnspect.observability import (
    Event,
    EventEmitter,
    EventNames,
    Verbosity,
    LogEntry,
    NnspectLogger,
    get_emitter,
    get_logger,
    set_verbosity,
)


class TestVerbosity:
    """Tests for Verbosity enum."""

    def test_verbosity_values(self):
        """Test verbosity level values."""
        assert Verbosity.SILENT == 0
        assert Verbosity.ERROR == 1
        assert Verbosity.WARNING == 2
        assert Verbosity.INFO == 3
        assert Verbosity.DEBUG == 4

    def test_verbosity_comparison(self):
        """Test verbosity comparison."""
        assert Verbosity.DEBUG > Verbosity.INFO
        assert Verbosity.WARNING > Verbosity.SILENT


class TestLogEntry:
    """Tests for LogEntry dataclass."""

    def test_log_entry_to_json(self):
        """Test JSON serialization drops empty fields."""
        entry = LogEntry(
            level="DEBUG",
            message="dispatch",
            timestamp="2025-01-01T00:00:00",
            component="engine",
            operation="Conv2D",
            operator_id=2,
        )
        data = json.loads(entry.to_json())
        assert data["level"] == "DEBUG"
        assert data["operation"] == "Conv2D"
        assert data["operator_id"] == 2
        assert "duration_ms" not in data
        assert "extra" not in data

    def test_log_entry_to_text(self):
        """Test text format with a 1-based operator number."""
        entry = LogEntry(
            level="DEBUG",
            message="stride_w=1",
            timestamp="2025-01-01T00:00:00",
            component="engine",
            operation="Conv2D",
            operator_id=2,
            duration_ms=1.5,
        )
        text = entry.to_text()
        assert text == "[DEBUG] [engine] op#3 Conv2D: stride_w=1 (1.50ms)"


class TestNnspectLogger:
    """Tests for NnspectLogger."""

    def test_singleton_pattern(self):
        """Test singleton pattern."""
        assert NnspectLogger.get() is NnspectLogger.get()
        assert get_logger() is NnspectLogger.get()

    def test_default_verbosity(self, monkeypatch):
        """Test default verbosity is WARNING."""
        monkeypatch.delenv("NNSPECT_VERBOSITY", raising=False)
        NnspectLogger.reset()
        assert get_logger().get_verbosity() == Verbosity.WARNING

    def test_verbosity_from_environment(self, monkeypatch):
        """Test NNSPECT_VERBOSITY sets the initial level."""
        monkeypatch.setenv("NNSPECT_VERBOSITY", "4")
        NnspectLogger.reset()
        assert get_logger().get_verbosity() == Verbosity.DEBUG

    def test_invalid_environment_value(self, monkeypatch):
        """Test an unparseable NNSPECT_VERBOSITY is ignored."""
        monkeypatch.setenv("NNSPECT_VERBOSITY", "loud")
        NnspectLogger.reset()
        assert get_logger().get_verbosity() == Verbosity.WARNING

    def test_set_verbosity_clamps(self):
        """Test out-of-range levels are clamped."""
        set_verbosity(10)
        assert get_logger().get_verbosity() == Verbosity.DEBUG
        set_verbosity(-1)
        assert get_logger().get_verbosity() == Verbosity.SILENT

    def test_filtering(self):
        """Test messages below the level are dropped."""
        logger = get_logger()
        output = io.StringIO()
        logger.set_output(output)
        logger.set_verbosity(Verbosity.WARNING)

        logger.info("hidden")
        logger.warning("shown", component="input")

        assert output.getvalue() == "[WARNING] [input] shown\n"

    def test_json_format(self):
        """Test JSON output format."""
        logger = get_logger()
        output = io.StringIO()
        logger.set_output(output)
        logger.set_json_format(True)

        logger.error("bad", component="engine", tensor_id=3)

        data = json.loads(output.getvalue())
        assert data["level"] == "ERROR"
        assert data["extra"] == {"tensor_id": 3}

    def test_handlers(self):
        """Test custom handlers receive entries."""
        logger = get_logger()
        logger.set_output(io.StringIO())
        entries = []
        logger.add_handler(entries.append)

        logger.warning("first")
        logger.remove_handler(entries.append)
        logger.warning("second")

        assert [e.message for e in entries] == ["first"]

    def test_remove_handler_keeps_others(self):
        """Test removing a bound method leaves other handlers subscribed."""
        logger = get_logger()
        logger.set_output(io.StringIO())
        kept, removed = [], []
        logger.add_handler(kept.append)
        logger.add_handler(removed.append)

        logger.remove_handler(removed.append)
        logger.warning("only kept")

        assert [e.message for e in kept] == ["only kept"]
        assert removed == []


class TestEventEmitter:
    """Tests for EventEmitter."""

    def test_pattern_subscription(self):
        """Test glob pattern subscriptions."""
        emitter = EventEmitter()
        received = []
        emitter.on("compute.*", received.append)

        emitter.emit("compute.started", num_operators=3)
        emitter.emit("tensor.computed", tensor_id=0)

        assert len(received) == 1
        assert isinstance(received[0], Event)
        assert received[0].data == {"num_operators": 3}

    def test_off(self):
        """Test unsubscribing."""
        emitter = EventEmitter()
        received = []
        emitter.on("*", received.append)
        emitter.off("*", received.append)

        emitter.emit("compute.started")

        assert received == []

    def test_history(self):
        """Test history recording and filtering."""
        emitter = EventEmitter()
        emitter.enable_history(limit=2)

        emitter.emit("a.one")
        emitter.emit("b.two")
        emitter.emit("a.three")

        assert [e.name for e in emitter.get_history()] == ["b.two", "a.three"]
        assert [e.name for e in emitter.get_history("a.*")] == ["a.three"]

    def test_failing_handler_is_logged(self):
        """Test a failing handler doesn't stop other handlers."""
        logger = get_logger()
        output = io.StringIO()
        logger.set_output(output)
        emitter = EventEmitter()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        emitter.on("x", broken)
        emitter.on("*", received.append)
        emitter.emit("x")

        assert len(received) == 1
        assert "boom" in output.getvalue()


class TestEngineLogging:
    """Tests for what the engine logs."""

    def test_debug_logs_options(self):
        """Test dispatch logs each operator at DEBUG."""
        from nnspect.core import (
            OperatorKind,
            OperatorOption,
            OptionName,
            OptionValue,
        )

        model = GraphModel()
        x = model.add_tensor("input", (1, 1, 1, 2))
        y = model.add_tensor("probs", (1, 2))
        model.add_operator(
            OperatorKind.Softmax,
            [x],
            [y],
            [OperatorOption(OptionName.BETA, OptionValue.of_float(0.5))],
        )
        model.set_inputs([x])

        output = io.StringIO()
        get_logger().set_output(output)
        engine = ComputeEngine(model, EngineConfig(verbose=4, emit_events=False))
        assert engine.run(
            InputNormalization.default(), np.zeros(2, dtype=np.float32), (1, 1, 2)
        )

        text = output.getvalue()
        assert "[DEBUG] [engine] op#1 Softmax: beta=0.5" in text
        assert "computation succeeded" in text

    def test_abort_logged_as_warning(self):
        """Test an aborted run logs its warning."""
        model = GraphModel()
        model.add_tensor("a", (1, 2, 2, 1))

        output = io.StringIO()
        get_logger().set_output(output)
        result = ComputeEngine(model, EngineConfig(emit_events=False)).run(
            InputNormalization.default(), np.zeros(4, dtype=np.float32), (2, 2, 1)
        )

        assert not result
        assert "[WARNING] [engine] We currently only support models with a single input" in (
            output.getvalue()
        )

    def test_events_disabled(self):
        """Test emit_events=False keeps the global emitter quiet."""
        emitter = get_emitter()

        emitter.enable_history()
        model = GraphModel()
        x = model.add_tensor("input", (1, 2, 2, 1))
        model.set_inputs([x])

        ComputeEngine(model, EngineConfig(emit_events=False)).run(
            InputNormalization.default(), np.zeros(4, dtype=np.float32), (2, 2, 1)
        )

        assert emitter.get_history() == []
        assert EventNames.TENSOR_COMPUTED == "tensor.computed"
