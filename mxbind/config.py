# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Runtime configuration for mxbind.

Settings are read once from the environment and can be replaced
programmatically before the native library is first used.

Environment variables:
    MXBIND_LIBRARY_PATH   Full path of the native engine library
    MXNET_LIBRARY_PATH    Fallback path, honoured for MXNet compatibility
    MXBIND_VERBOSITY      Structured logger verbosity (0-4)
    MXBIND_JSON_LOGS      Set to 1 to emit structured logs as JSON
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class RuntimeConfig:
    """
    Configuration for the binding layer.

    Attributes:
        library_path: Explicit path of the native library, None to search
        verbosity: Structured logger verbosity level (0-4)
        json_logs: Whether structured logs are written as JSON
    """

    library_path: Optional[str] = None
    verbosity: int = 2
    json_logs: bool = False

    @classmethod
    def from_env(cls) -> "RuntimeConfig":
        """Build a configuration from MXBIND_* environment variables."""
        library_path = os.environ.get("MXBIND_LIBRARY_PATH") or os.environ.get(
            "MXNET_LIBRARY_PATH"
        )

        verbosity = cls.verbosity
        env_verbosity = os.environ.get("MXBIND_VERBOSITY")
        if env_verbosity is not None:
            try:
                verbosity = max(0, min(4, int(env_verbosity)))
            except ValueError:
                pass

        json_logs = os.environ.get("MXBIND_JSON_LOGS", "0").lower() in (
            "1",
            "true",
            "on",
        )

        return cls(
            library_path=library_path or None,
            verbosity=verbosity,
            json_logs=json_logs,
        )


_config: Optional[RuntimeConfig] = None


def get_config() -> RuntimeConfig:
    """Get the active configuration, reading the environment on first use."""
    global _config
    if _config is None:
        _config = RuntimeConfig.from_env()
    return _config


def set_config(config: Optional[RuntimeConfig]) -> None:
    """Replace the active configuration (None re-reads the environment)."""
    global _config
    _config = config
