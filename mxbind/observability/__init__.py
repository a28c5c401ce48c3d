# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
mxbind Observability Module

Structured logging for the binding layer.
"""

from .logger import (
    Verbosity,
    LogEntry,
    BindLogger,
    get_logger,
    set_verbosity,
)

__all__ = [
    "Verbosity",
    "LogEntry",
    "BindLogger",
    "get_logger",
    "set_verbosity",
]
