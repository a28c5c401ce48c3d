# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Pytest configuration for mxbind Python tests.

Every test runs against a fresh FakeEngine installed as the native library,
so no libmxnet build is needed.
"""

import gc
import sys
from pathlib import Path

import pytest

# Add the project root to sys.path so we can import mxbind
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

import mxbind  # noqa: E402
from mxbind.base import SymbolHandle  # noqa: E402
from mxbind.config import set_config  # noqa: E402
from mxbind.observability import BindLogger  # noqa: E402

from fake_engine import FakeEngine  # noqa: E402


@pytest.fixture(autouse=True)
def engine():
    """Install a fresh fake native library for the duration of a test."""
    set_config(None)
    BindLogger.reset()
    fake = FakeEngine()
    mxbind.set_library(fake)
    yield fake
    gc.collect()
    set_config(None)
    BindLogger.reset()
    # Objects collected after the test still need a library to free into.
    mxbind.set_library(FakeEngine())


@pytest.fixture
def make_symbol(engine):
    """Factory creating Symbols backed by the fake engine."""

    def _make(name, arguments, aux_states=(), outputs=None):
        handle = engine.new_symbol(name, arguments, aux_states, outputs)
        return mxbind.Symbol(SymbolHandle(handle))

    return _make


@pytest.fixture
def plus_symbol(make_symbol):
    """Symbol with arguments [a, b], like ``a + b``."""
    return make_symbol("_plus0", ["a", "b"], outputs=["_plus0_output"])
