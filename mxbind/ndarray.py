# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
NDArray: host-visible reference to a native tensor.

An NDArray owns one NDArrayHandle and frees it when collected. Host data
moves in and out through numpy buffers copied synchronously by the engine.
"""

import ctypes
import logging
from typing import Any, Optional, Union

import numpy as np

from .base import (
    NDArrayHandle,
    check_call,
    get_library,
    mx_uint,
)
from .context import Context, current_context
from .errors import ArgumentTypeError

logger = logging.getLogger("mxbind.ndarray")

_DTYPE_NP_TO_MX = {
    np.dtype(np.float32): 0,
    np.dtype(np.float64): 1,
    np.dtype(np.float16): 2,
    np.dtype(np.uint8): 3,
    np.dtype(np.int32): 4,
    np.dtype(np.int8): 5,
    np.dtype(np.int64): 6,
}

_DTYPE_MX_TO_NP = {v: k for k, v in _DTYPE_NP_TO_MX.items()}


def _new_alloc_handle(
    shape: tuple[int, ...], ctx: Context, delay_alloc: bool, dtype: np.dtype
) -> NDArrayHandle:
    """Allocate an uninitialized native array and return its handle."""
    if dtype not in _DTYPE_NP_TO_MX:
        raise ArgumentTypeError(
            f"Unsupported dtype {dtype}",
            parameter="dtype",
            expected=", ".join(str(d) for d in _DTYPE_NP_TO_MX),
            received=str(dtype),
        )
    hdl = NDArrayHandle()
    shape_array = (mx_uint * len(shape))(*shape)
    check_call(
        get_library().MXNDArrayCreateEx(
            shape_array,
            mx_uint(len(shape)),
            ctypes.c_int(ctx.device_typeid),
            ctypes.c_int(ctx.device_id),
            ctypes.c_int(int(delay_alloc)),
            ctypes.c_int(_DTYPE_NP_TO_MX[dtype]),
            ctypes.byref(hdl),
        )
    )
    return hdl


class NDArray:
    """
    Reference to an n-dimensional array living in the native engine.

    Args:
        handle: NDArrayHandle owned by this object
        writable: Whether the array may be written through this reference
    """

    __array_priority__ = 1000.0

    def __init__(self, handle: NDArrayHandle, writable: bool = True):
        if handle is not None and not isinstance(handle, NDArrayHandle):
            raise ArgumentTypeError(
                "NDArray requires an NDArrayHandle",
                parameter="handle",
                expected="NDArrayHandle",
                received=type(handle).__name__,
            )
        self.handle = handle
        self.writable = writable

    def __del__(self):
        if getattr(self, "handle", None) is not None:
            check_call(get_library().MXNDArrayFree(self.handle))
            self.handle = None

    def __repr__(self):
        shape_info = "x".join(str(x) for x in self.shape)
        return f"<{self.__class__.__name__} {shape_info} @{self.context}>"

    @property
    def shape(self) -> tuple[int, ...]:
        """Tuple of array dimensions."""
        ndim = mx_uint()
        pdata = ctypes.POINTER(mx_uint)()
        check_call(
            get_library().MXNDArrayGetShape(
                self.handle, ctypes.byref(ndim), ctypes.byref(pdata)
            )
        )
        return tuple(pdata[:ndim.value])

    @property
    def size(self) -> int:
        """Number of elements in the array."""
        size = 1
        for d in self.shape:
            size *= d
        return size

    @property
    def dtype(self) -> np.dtype:
        """Element type as a numpy dtype."""
        mx_dtype = ctypes.c_int()
        check_call(
            get_library().MXNDArrayGetDType(self.handle, ctypes.byref(mx_dtype))
        )
        return _DTYPE_MX_TO_NP[mx_dtype.value]

    @property
    def context(self) -> Context:
        """Device context of the array."""
        dev_typeid = ctypes.c_int()
        dev_id = ctypes.c_int()
        check_call(
            get_library().MXNDArrayGetContext(
                self.handle, ctypes.byref(dev_typeid), ctypes.byref(dev_id)
            )
        )
        return Context(Context.devtype2str[dev_typeid.value], dev_id.value)

    def _sync_copyfrom(self, source_array: Any) -> None:
        """Copy host data into the native array, blocking until done."""
        if not self.writable:
            raise ValueError("trying to assign to a readonly NDArray")
        source_array = np.asarray(source_array, dtype=self.dtype, order="C")
        if source_array.shape != self.shape:
            raise ValueError(
                f"Shape inconsistent: expected {self.shape} vs got {source_array.shape}"
            )
        check_call(
            get_library().MXNDArraySyncCopyFromCPU(
                self.handle,
                source_array.ctypes.data_as(ctypes.c_void_p),
                ctypes.c_size_t(source_array.size),
            )
        )

    def asnumpy(self) -> np.ndarray:
        """Return a copy of the array as a numpy.ndarray."""
        data = np.empty(self.shape, dtype=self.dtype)
        check_call(
            get_library().MXNDArraySyncCopyToCPU(
                self.handle,
                data.ctypes.data_as(ctypes.c_void_p),
                ctypes.c_size_t(data.size),
            )
        )
        return data


def _normalize_shape(shape: Union[int, tuple, list]) -> tuple[int, ...]:
    if isinstance(shape, int):
        return (shape,)
    return tuple(int(d) for d in shape)


def empty(
    shape: Union[int, tuple, list],
    ctx: Optional[Context] = None,
    dtype: Any = np.float32,
) -> NDArray:
    """Return a new array of the given shape, without initializing entries."""
    if ctx is None:
        ctx = current_context()
    return NDArray(
        handle=_new_alloc_handle(_normalize_shape(shape), ctx, False, np.dtype(dtype))
    )


def array(
    source_array: Any,
    ctx: Optional[Context] = None,
    dtype: Any = None,
) -> NDArray:
    """
    Create an NDArray holding a copy of ``source_array``.

    Args:
        source_array: numpy array, nested list or scalar
        ctx: Target context, the current context if None
        dtype: Element type, source dtype (or float32 for lists) if None
    """
    if isinstance(source_array, np.ndarray):
        dtype = source_array.dtype if dtype is None else dtype
    else:
        dtype = np.float32 if dtype is None else dtype
        source_array = np.array(source_array, dtype=dtype)
    arr = empty(source_array.shape, ctx, dtype)
    arr._sync_copyfrom(source_array)
    return arr


def zeros(
    shape: Union[int, tuple, list],
    ctx: Optional[Context] = None,
    dtype: Any = np.float32,
) -> NDArray:
    """Return a new array filled with zeros."""
    return array(np.zeros(_normalize_shape(shape), dtype=dtype), ctx, dtype)


def ones(
    shape: Union[int, tuple, list],
    ctx: Optional[Context] = None,
    dtype: Any = np.float32,
) -> NDArray:
    """Return a new array filled with ones."""
    return array(np.ones(_normalize_shape(shape), dtype=dtype), ctx, dtype)
