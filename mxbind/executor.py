# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Executor: a symbol bound to concrete arrays and a device.

Executors are created by Symbol.bind(). The executor owns its
ExecutorHandle exclusively and shares the bound argument, gradient and
auxiliary arrays with the caller so that the native execution plan never
outlives the memory it references.
"""

import ctypes
import logging
from typing import Any, Optional

from .base import (
    ExecutorHandle,
    NDArrayHandle,
    c_handle_array,
    check_call,
    get_library,
    mx_uint,
)
from .context import Context
from .errors import ArgumentCountError, ArgumentTypeError
from .ndarray import NDArray

logger = logging.getLogger("mxbind.executor")


class Executor:
    """
    Executor is the object providing efficient symbolic graph execution.

    Args:
        handle: ExecutorHandle returned by the engine
        symbol: The Symbol this executor was bound from
        ctx: Device context
        grad_req: grad_req argument as passed to bind()
        group2ctx: Device placement map as passed to bind()
    """

    def __init__(
        self,
        handle: ExecutorHandle,
        symbol: Any,
        ctx: Context,
        grad_req: Any,
        group2ctx: Optional[dict],
    ):
        if not isinstance(handle, ExecutorHandle):
            raise ArgumentTypeError(
                "Handle type error",
                parameter="handle",
                expected="ExecutorHandle",
                received=type(handle).__name__,
            )
        self.handle = handle
        self._symbol = symbol
        self._ctx = ctx
        self._grad_req = grad_req
        self._group2ctx = group2ctx
        self._arg_arrays: list = []
        self._grad_arrays: list = []
        self._aux_arrays: list = []
        self._output_arrays: Optional[list] = None

    def __del__(self):
        if getattr(self, "handle", None) is not None:
            check_call(get_library().MXExecutorFree(self.handle))
            self.handle = None

    @property
    def symbol(self) -> Any:
        """The Symbol this executor was bound from."""
        return self._symbol

    @property
    def ctx(self) -> Context:
        return self._ctx

    @property
    def grad_req(self) -> Any:
        return self._grad_req

    @property
    def group2ctx(self) -> Optional[dict]:
        return self._group2ctx

    @property
    def arg_arrays(self) -> list:
        """Bound argument arrays, in list_arguments() order."""
        return self._arg_arrays

    @arg_arrays.setter
    def arg_arrays(self, arrays: list) -> None:
        self._arg_arrays = list(arrays)

    @property
    def grad_arrays(self) -> list:
        """Gradient arrays, None where no gradient buffer was bound."""
        return self._grad_arrays

    @grad_arrays.setter
    def grad_arrays(self, arrays: list) -> None:
        self._grad_arrays = list(arrays)

    @property
    def aux_arrays(self) -> list:
        """Auxiliary state arrays, in list_auxiliary_states() order."""
        return self._aux_arrays

    @aux_arrays.setter
    def aux_arrays(self, arrays: list) -> None:
        self._aux_arrays = list(arrays)

    @property
    def arg_dict(self) -> dict:
        """Dictionary of argument name to bound array."""
        return dict(zip(self._symbol.list_arguments(), self._arg_arrays))

    @property
    def grad_dict(self) -> dict:
        """Dictionary of argument name to gradient array."""
        return dict(zip(self._symbol.list_arguments(), self._grad_arrays))

    @property
    def aux_dict(self) -> dict:
        """Dictionary of auxiliary state name to bound array."""
        return dict(zip(self._symbol.list_auxiliary_states(), self._aux_arrays))

    @property
    def outputs(self) -> list:
        """Output arrays of the last forward pass."""
        if self._output_arrays is None:
            self._output_arrays = self._get_outputs()
        return self._output_arrays

    def _get_outputs(self) -> list:
        out_size = mx_uint()
        handles = ctypes.POINTER(NDArrayHandle)()
        check_call(
            get_library().MXExecutorOutputs(
                self.handle, ctypes.byref(out_size), ctypes.byref(handles)
            )
        )
        return [
            NDArray(NDArrayHandle(handles[i])) for i in range(out_size.value)
        ]

    def forward(self, is_train: bool = False) -> list:
        """
        Run a forward pass over the bound arrays.

        Args:
            is_train: Whether the pass is for training (enables backward)

        Returns:
            The output arrays.
        """
        logger.debug(f"MXExecutorForward is_train={is_train}")
        check_call(
            get_library().MXExecutorForward(self.handle, ctypes.c_int(int(is_train)))
        )
        self._output_arrays = self._get_outputs()
        return self._output_arrays

    def backward(self, out_grads: Optional[Any] = None) -> None:
        """
        Run a backward pass, writing gradients into ``grad_arrays``.

        Args:
            out_grads: Gradients on the outputs, a single NDArray or a list
                with one entry per output; None for loss outputs.
        """
        if out_grads is None:
            out_grads = []
        elif isinstance(out_grads, NDArray):
            out_grads = [out_grads]

        for obj in out_grads:
            if not isinstance(obj, NDArray):
                raise ArgumentTypeError(
                    "inputs must be NDArray",
                    parameter="out_grads",
                    expected="NDArray",
                    received=type(obj).__name__,
                )
        num_outputs = len(self._symbol.list_outputs())
        if out_grads and len(out_grads) != num_outputs:
            raise ArgumentCountError("out_grads", num_outputs, len(out_grads))

        ndarray = c_handle_array(out_grads)
        check_call(
            get_library().MXExecutorBackward(
                self.handle, mx_uint(len(out_grads)), ndarray
            )
        )

    def __repr__(self):
        return f"<Executor {self._symbol!r} @{self._ctx}>"
