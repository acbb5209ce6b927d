# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pytest configuration for nnspect package tests.
"""

import sys
from pathlib import Path

import pytest

# Add the project root to sys.path so we can import nnspect
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from nnspect.observability import NnspectLogger, get_emitter  # noqa: E402


@pytest.fixture(autouse=True)
def fresh_observability():
    """Each test starts with a new logger and an empty event emitter."""
    NnspectLogger.reset()
    get_emitter().clear_all()
    get_emitter().disable_history()
    yield
    NnspectLogger.reset()
    get_emitter().clear_all()
    get_emitter().disable_history()
