# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Argument marshalling for Symbol.bind().

Turns the Python forms accepted by bind() into the positional, fixed-size
ctypes arrays MXExecutorBindEX expects:

- resolve_ndarray_inputs: list or dict of NDArray -> handle array
- resolve_grad_req: label, list of labels or dict of labels -> code array
- resolve_group2ctx: dict of group -> Context -> three parallel arrays

Every check happens here, before the native call is made. Scratch arrays
are registered with a ScratchBuffers scope so they are released on every
exit path of bind(), including native failures.
"""

import ctypes
import logging
from collections.abc import Mapping
from contextlib import ExitStack
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from .base import NDArrayHandle, c_array, c_handle_array, c_str, mx_uint
from .context import Context
from .errors import (
    ArgumentCountError,
    ArgumentTypeError,
    InvalidGradReqError,
    MissingKeyError,
)
from .ndarray import NDArray

logger = logging.getLogger("mxbind.binding")

GRAD_REQ_MAP = {"null": 0, "write": 1, "add": 3}

_INPUT_TYPE_MESSAGE = "Only accept list of NDArrays or dict of str to NDArray"


class InputForm(Enum):
    """Accepted shapes of a tensor binding."""

    SEQUENCE = "sequence"
    MAPPING = "mapping"


class GradReqForm(Enum):
    """Accepted shapes of a grad_req argument."""

    DEFAULT = "default"
    SCALAR = "scalar"
    SEQUENCE = "sequence"
    MAPPING = "mapping"


@dataclass
class ResolvedInputs:
    """
    Positional view of a tensor binding.

    Attributes:
        arrays: NDArray (or None for allowed holes) per name, in name order
        handles: NDArrayHandle array of the same length for the native call
    """

    arrays: list
    handles: ctypes.Array

    def __len__(self) -> int:
        return len(self.arrays)


@dataclass
class DeviceGroups:
    """Parallel arrays describing a group-to-context placement map."""

    keys: ctypes.Array
    dev_types: ctypes.Array
    dev_ids: ctypes.Array

    def __len__(self) -> int:
        return len(self.keys)


class ScratchBuffers:
    """
    Scope owning the temporary ctypes arrays of one native call.

    Arrays registered with ``hold`` stay referenced until the scope exits,
    then are dropped whether the scope exits normally or by exception.

    Example:
        with ScratchBuffers() as scratch:
            handles = scratch.hold(c_array(NDArrayHandle, [...]))
            check_call(lib.SomeCall(handles))
    """

    def __init__(self):
        self._buffers: list = []
        self._stack = ExitStack()

    def __enter__(self) -> "ScratchBuffers":
        self._stack.callback(self._release)
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self._stack.close()

    def hold(self, buffer: Any) -> Any:
        """Keep ``buffer`` alive for the lifetime of the scope and return it."""
        self._buffers.append(buffer)
        return buffer

    def _release(self) -> None:
        logger.debug(f"Releasing {len(self._buffers)} scratch buffers")
        self._buffers.clear()

    def __len__(self) -> int:
        return len(self._buffers)


def _classify_inputs(arg_key: str, args: Any) -> InputForm:
    if isinstance(args, (list, tuple)):
        return InputForm.SEQUENCE
    if isinstance(args, Mapping):
        return InputForm.MAPPING
    raise ArgumentTypeError(
        _INPUT_TYPE_MESSAGE,
        parameter=arg_key,
        expected="list or dict",
        received=type(args).__name__,
    )


def _check_ndarray(arg_key: str, value: Any) -> NDArray:
    if not isinstance(value, NDArray):
        raise ArgumentTypeError(
            _INPUT_TYPE_MESSAGE,
            parameter=arg_key,
            expected="NDArray",
            received=type(value).__name__,
        )
    return value


def resolve_ndarray_inputs(
    arg_key: str,
    args: Any,
    arg_names: list[str],
    allow_missing: bool,
) -> ResolvedInputs:
    """
    Get positional NDArray handles from a list or dict binding.

    Args:
        arg_key: Name of the bind() parameter, used in error messages
        args: list of NDArray in ``arg_names`` order, or dict of name to NDArray
        arg_names: Names the binding must cover, in positional order
        allow_missing: Whether names absent from a dict become null handles

    Returns:
        ResolvedInputs with one entry per name.

    Raises:
        ArgumentCountError: list length differs from ``len(arg_names)``
        ArgumentTypeError: ``args`` or one of its values has the wrong kind
        MissingKeyError: a name is absent from a dict and missing is not allowed
    """
    form = _classify_inputs(arg_key, args)

    if form is InputForm.SEQUENCE:
        if len(args) != len(arg_names):
            raise ArgumentCountError(arg_key, len(arg_names), len(args))
        arrays = [_check_ndarray(arg_key, narr) for narr in args]
    else:
        arrays = []
        for name in arg_names:
            if name in args:
                arrays.append(_check_ndarray(arg_key, args[name]))
            elif allow_missing:
                arrays.append(None)
            else:
                raise MissingKeyError(name, arg_key)

    return ResolvedInputs(arrays=arrays, handles=c_handle_array(arrays))


def null_handles(count: int) -> ResolvedInputs:
    """Binding with ``count`` absent entries, used when args_grad is omitted."""
    return ResolvedInputs(
        arrays=[None] * count, handles=c_array(NDArrayHandle, [None] * count)
    )


def _classify_grad_req(grad_req: Any) -> GradReqForm:
    if grad_req is None:
        return GradReqForm.DEFAULT
    if isinstance(grad_req, str):
        return GradReqForm.SCALAR
    if isinstance(grad_req, (list, tuple)):
        return GradReqForm.SEQUENCE
    if isinstance(grad_req, Mapping):
        return GradReqForm.MAPPING
    raise ArgumentTypeError(
        f"Invalid type of grad_req ({type(grad_req).__name__} for str, list, or dict)",
        parameter="grad_req",
        expected="str, list, or dict",
        received=type(grad_req).__name__,
    )


def _grad_req_code(label: Any) -> int:
    if not isinstance(label, str) or label not in GRAD_REQ_MAP:
        raise InvalidGradReqError(label, GRAD_REQ_MAP)
    return GRAD_REQ_MAP[label]


def resolve_grad_req(grad_req: Any, arg_names: list[str]) -> ctypes.Array:
    """
    Build the per-argument gradient requirement codes.

    Args:
        grad_req: None ("write" everywhere), a label, a list of labels in
            ``arg_names`` order, or a dict of name to label (absent names
            get "null")
        arg_names: Argument names from list_arguments()

    Returns:
        mx_uint array with one code per argument.
    """
    form = _classify_grad_req(grad_req)

    if form is GradReqForm.DEFAULT:
        codes = [GRAD_REQ_MAP["write"]] * len(arg_names)
    elif form is GradReqForm.SCALAR:
        codes = [_grad_req_code(grad_req)] * len(arg_names)
    elif form is GradReqForm.SEQUENCE:
        if len(grad_req) != len(arg_names):
            raise ArgumentCountError("grad_req", len(arg_names), len(grad_req))
        codes = [_grad_req_code(label) for label in grad_req]
    else:
        codes = [
            _grad_req_code(grad_req[name]) if name in grad_req else GRAD_REQ_MAP["null"]
            for name in arg_names
        ]

    return c_array(mx_uint, codes)


def resolve_group2ctx(group2ctx: Optional[Mapping]) -> DeviceGroups:
    """
    Flatten a group-to-context map into parallel native arrays.

    The arrays follow the mapping's iteration order; index ``i`` of each
    array describes the same group. None disables device grouping.
    """
    if group2ctx is None:
        group2ctx = {}
    elif not isinstance(group2ctx, Mapping):
        raise ArgumentTypeError(
            "group2ctx must be a dict of str to Context",
            parameter="group2ctx",
            expected="dict",
            received=type(group2ctx).__name__,
        )

    keys, dev_types, dev_ids = [], [], []
    for key, ctx in group2ctx.items():
        if not isinstance(ctx, Context):
            raise ArgumentTypeError(
                "group2ctx must be a dict of str to Context",
                parameter=f"group2ctx[{key!r}]",
                expected="Context",
                received=type(ctx).__name__,
            )
        keys.append(c_str(str(key)))
        dev_types.append(ctx.device_typeid)
        dev_ids.append(ctx.device_id)

    return DeviceGroups(
        keys=c_array(ctypes.c_char_p, keys),
        dev_types=c_array(ctypes.c_int, dev_types),
        dev_ids=c_array(ctypes.c_int, dev_ids),
    )
