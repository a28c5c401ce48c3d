# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Device context.

A Context is a (device type, device index) pair identifying where the
native engine places memory and runs kernels. The numeric type ids are the
engine's own.

Example:
    ctx = mxbind.gpu(1)
    ctx.device_typeid   # 2
    with mxbind.cpu():
        mxbind.current_context()  # cpu(0)
"""

import threading

from .errors import ArgumentTypeError


class Context:
    """
    Device context for NDArrays and executors.

    Args:
        device_type: "cpu", "gpu", "cpu_pinned" or "cpu_shared", or another
            Context to copy
        device_id: Device index
    """

    devtype2str = {1: "cpu", 2: "gpu", 3: "cpu_pinned", 5: "cpu_shared"}
    devstr2type = {"cpu": 1, "gpu": 2, "cpu_pinned": 3, "cpu_shared": 5}

    _default_ctx = threading.local()

    def __init__(self, device_type, device_id: int = 0):
        if isinstance(device_type, Context):
            self.device_typeid = device_type.device_typeid
            self.device_id = device_type.device_id
        else:
            if device_type not in Context.devstr2type:
                raise ArgumentTypeError(
                    f"Unknown device type '{device_type}'",
                    parameter="device_type",
                    expected=", ".join(Context.devstr2type),
                    received=repr(device_type),
                )
            self.device_typeid = Context.devstr2type[device_type]
            self.device_id = int(device_id)

    @property
    def device_type(self) -> str:
        """Device type name, e.g. "cpu"."""
        return Context.devtype2str[self.device_typeid]

    def __hash__(self):
        return hash((self.device_typeid, self.device_id))

    def __eq__(self, other):
        return (
            isinstance(other, Context)
            and self.device_typeid == other.device_typeid
            and self.device_id == other.device_id
        )

    def __str__(self):
        return f"{self.device_type}({self.device_id})"

    def __repr__(self):
        return self.__str__()

    def __enter__(self):
        _context_stack().append(self)
        return self

    def __exit__(self, ptype, value, trace):
        _context_stack().pop()


def _context_stack() -> list:
    """Per-thread stack of contexts entered with ``with``."""
    if not hasattr(Context._default_ctx, "stack"):
        Context._default_ctx.stack = []
    return Context._default_ctx.stack


def cpu(device_id: int = 0) -> Context:
    """Return a CPU context."""
    return Context("cpu", device_id)


def gpu(device_id: int = 0) -> Context:
    """Return a GPU context."""
    return Context("gpu", device_id)


def cpu_pinned(device_id: int = 0) -> Context:
    """Return a page-locked CPU memory context."""
    return Context("cpu_pinned", device_id)


def current_context() -> Context:
    """Return the innermost context entered with ``with``, cpu(0) by default."""
    stack = _context_stack()
    if stack:
        return stack[-1]
    return Context("cpu", 0)
