# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Structured Logger for mxbind

Provides structured logging with optional JSON output for the binding layer.
Module-level tracing of individual native calls goes through the standard
``logging`` package (``mxbind.*`` loggers); this logger carries the
user-facing summaries such as bind reports.

Example:
    from mxbind.observability import BindLogger, Verbosity

    logger = BindLogger.get()
    logger.set_verbosity(Verbosity.DEBUG)
    logger.debug("Executor bound", component="symbol", num_args=2)
"""

import json
import sys
from dataclasses import dataclass, asdict, field
from datetime import datetime
from enum import IntEnum
from typing import Optional, TextIO

from ..config import get_config


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
        component: Source component (base, symbol, executor, ndarray)
        symbol_name: Optional name of the symbol involved
        operation: Optional native entry point name
        extra: Additional context fields
    """

    level: str
    message: str
    timestamp: str
    component: str = "mxbind"
    symbol_name: Optional[str] = None
    operation: Optional[str] = None
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
            self.message,
        ]
        if self.operation is not None:
            parts.append(f"({self.operation})")
        if self.extra:
            parts.append(" ".join(f"{k}={v}" for k, v in self.extra.items()))
        return " ".join(parts)


class BindLogger:
    """
    Structured logger for mxbind.

    Singleton pattern ensures consistent logging configuration across the
    package. Initial verbosity and format come from RuntimeConfig.

    Example:
        logger = BindLogger.get()
        logger.set_verbosity(Verbosity.DEBUG)
        logger.info("Library loaded", component="base")
    """

    _instance: Optional["BindLogger"] = None

    def __init__(self):
        """Initialize logger from the active runtime configuration."""
        config = get_config()
        self._verbosity = Verbosity(config.verbosity)
        self._output: TextIO = sys.stderr
        self._json_format = config.json_logs
        self._handlers: list = []

    @classmethod
    def get(cls) -> "BindLogger":
        """Get the singleton logger instance."""
        if cls._instance is None:
            cls._instance = BindLogger()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance (for testing)."""
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
            self._verbosity = Verbosity(max(0, min(4, level)))

    def get_verbosity(self) -> Verbosity:
        """Get current verbosity level."""
        return self._verbosity

    def set_json_format(self, enabled: bool) -> None:
        """Enable or disable JSON output format."""
        self._json_format = enabled

    def set_output(self, output: TextIO) -> None:
        """Set output stream."""
        self._output = output

    def add_handler(self, handler) -> None:
        """Add a custom log handler."""
        self._handlers.append(handler)

    def _emit(self, entry: LogEntry) -> None:
        if self._json_format:
            line = entry.to_json()
        else:
            line = entry.to_text()

        self._output.write(line + "\n")
        self._output.flush()

        for handler in self._handlers:
            handler(entry)

    def _log(self, level: Verbosity, message: str, context: dict) -> None:
        if self._verbosity < level:
            return
        self._emit(
            LogEntry(
                level=level.name,
                message=message,
                timestamp=datetime.now().isoformat(),
                component=context.pop("component", "mxbind"),
                symbol_name=context.pop("symbol_name", None),
                operation=context.pop("operation", None),
                extra=context,
            )
        )

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


def get_logger() -> BindLogger:
    """Get the global mxbind logger."""
    return BindLogger.get()


def set_verbosity(level: int) -> None:
    """
    Set global verbosity level.

    Args:
        level: Verbosity level (0=SILENT, 1=ERROR, 2=WARNING, 3=INFO, 4=DEBUG)
    """
    BindLogger.get().set_verbosity(level)
