# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Native library access for mxbind.

Loads the engine's shared library exactly once, declares the ctypes types
used by its C ABI, and provides the marshalling helpers shared by the
Symbol, NDArray and Executor wrappers.

Search order for the library:
1. RuntimeConfig.library_path (MXBIND_LIBRARY_PATH / MXNET_LIBRARY_PATH)
2. ctypes.util.find_library("mxnet")
3. libmxnet.so / libmxnet.dylib / libmxnet.dll on the loader path
"""

import ctypes
import ctypes.util
import logging
import sys
import threading
from typing import Any, Iterable, Optional

from .config import get_config
from .errors import LibraryNotFoundError, MXNetError
from .observability import get_logger

logger = logging.getLogger("mxbind.base")

# C ABI types
mx_uint = ctypes.c_uint
mx_float = ctypes.c_float
NDArrayHandle = ctypes.c_void_p
SymbolHandle = ctypes.c_void_p
ExecutorHandle = ctypes.c_void_p

_LIB: Any = None
_LIB_LOCK = threading.Lock()


def _candidate_paths() -> list[str]:
    """Return library paths to try, most specific first."""
    candidates = []

    config_path = get_config().library_path
    if config_path:
        candidates.append(config_path)

    found = ctypes.util.find_library("mxnet")
    if found:
        candidates.append(found)

    if sys.platform == "darwin":
        candidates.append("libmxnet.dylib")
    elif sys.platform == "win32":
        candidates.append("libmxnet.dll")
    else:
        candidates.append("libmxnet.so")

    return candidates


def _register_prototypes(lib: ctypes.CDLL) -> None:
    """Declare return types the default int conversion would corrupt."""
    lib.MXGetLastError.restype = ctypes.c_char_p


def _load_lib() -> ctypes.CDLL:
    """Load the native library, trying each candidate path in turn."""
    candidates = _candidate_paths()
    for path in candidates:
        try:
            lib = ctypes.CDLL(path, ctypes.RTLD_LOCAL)
        except OSError as e:
            logger.debug(f"Could not load {path}: {e}")
            continue
        _register_prototypes(lib)
        get_logger().info("Native library loaded", component="base", path=path)
        return lib

    raise LibraryNotFoundError("no usable libmxnet found", searched=candidates)


def get_library() -> Any:
    """Return the native library, loading it on first use."""
    global _LIB
    if _LIB is None:
        with _LIB_LOCK:
            if _LIB is None:
                _LIB = _load_lib()
    return _LIB


def set_library(lib: Any) -> None:
    """
    Install an already loaded library object.

    Args:
        lib: A ctypes.CDLL (or any object exposing the same C entry points),
            or None to force the next call to search again.
    """
    global _LIB
    with _LIB_LOCK:
        _LIB = lib


def check_call(ret: int) -> None:
    """
    Check the return value of a native call.

    Raises:
        MXNetError: The engine reported failure; the message is the one
            returned by MXGetLastError.
    """
    if ret != 0:
        raise MXNetError(py_str(get_library().MXGetLastError()))


def c_str(string: str) -> bytes:
    """Convert a Python string to a C string."""
    return string.encode("utf-8")


def py_str(value: Optional[bytes]) -> str:
    """Convert a C string to a Python string."""
    if value is None:
        return ""
    return value.decode("utf-8")


def c_array(ctype: Any, values: Iterable[Any]) -> ctypes.Array:
    """
    Create a ctypes array of ``ctype`` from a Python iterable.

    Args:
        ctype: Element type, e.g. mx_uint or NDArrayHandle
        values: Elements; None is accepted for pointer types
    """
    values = list(values)
    return (ctype * len(values))(*values)


def c_handle_array(objs: Iterable[Any]) -> ctypes.Array:
    """Create a NDArrayHandle array from objects exposing ``.handle``."""
    return c_array(
        NDArrayHandle, [None if obj is None else obj.handle for obj in objs]
    )
