# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
mxbind: Python bindings for the MXNet symbolic-graph C API

Marshals Python lists, dicts, Symbols and NDArrays into the native engine's
calling convention and wraps the results back into Python objects.

Example:
    import mxbind

    x = mxbind.var("x")
    ex = x.bind(mxbind.cpu(), {"x": mxbind.nd.ones((2, 3))})
    ex.forward()
"""

__version__ = "0.1.0"
__author__ = "Wahyu Ardiansyah"

from . import ndarray
from . import ndarray as nd

from .base import get_library, set_library
from .config import RuntimeConfig, get_config, set_config
from .context import Context, cpu, cpu_pinned, current_context, gpu
from .ndarray import NDArray
from .executor import Executor
from .symbol import Symbol, Variable, var
from .binding import GRAD_REQ_MAP

# Observability
from .observability import set_verbosity, Verbosity

# Errors
from .errors import (
    MXBindError,
    ArgumentCountError,
    ArgumentTypeError,
    MissingKeyError,
    InvalidGradReqError,
    MXNetError,
    LibraryNotFoundError,
)

__all__ = [
    # Native library
    "get_library",
    "set_library",
    # Configuration
    "RuntimeConfig",
    "get_config",
    "set_config",
    # Core types
    "Context",
    "cpu",
    "gpu",
    "cpu_pinned",
    "current_context",
    "NDArray",
    "Executor",
    "Symbol",
    "Variable",
    "var",
    "GRAD_REQ_MAP",
    "nd",
    "ndarray",
    # Observability
    "set_verbosity",
    "Verbosity",
    # Errors
    "MXBindError",
    "ArgumentCountError",
    "ArgumentTypeError",
    "MissingKeyError",
    "InvalidGradReqError",
    "MXNetError",
    "LibraryNotFoundError",
]
