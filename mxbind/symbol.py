# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
Symbol: reference to a symbolic graph owned by the native engine.

The Symbol wrapper only holds a SymbolHandle. Name listing reads through
to the engine; bind() marshals Python bindings (see mxbind.binding) into
MXExecutorBindEX and wraps the result in an Executor.

Example:
    a = mxbind.var("a")
    a.list_arguments()             # ['a']
    ex = a.bind(mxbind.cpu(), {"a": mxbind.nd.ones((2, 3))})
    ex.forward()
"""

import ctypes
import logging
from typing import Any, Optional

from .base import (
    ExecutorHandle,
    SymbolHandle,
    c_str,
    check_call,
    get_library,
    mx_uint,
    py_str,
)
from .binding import (
    ScratchBuffers,
    null_handles,
    resolve_grad_req,
    resolve_group2ctx,
    resolve_ndarray_inputs,
)
from .context import Context
from .errors import ArgumentTypeError
from .executor import Executor
from .observability import get_logger

logger = logging.getLogger("mxbind.symbol")


class Symbol:
    """
    Symbolic graph reference.

    Args:
        handle: SymbolHandle owned by this object
    """

    def __init__(self, handle: SymbolHandle):
        if not isinstance(handle, SymbolHandle):
            raise ArgumentTypeError(
                "Symbol requires a SymbolHandle",
                parameter="handle",
                expected="SymbolHandle",
                received=type(handle).__name__,
            )
        self.handle = handle

    def __del__(self):
        if getattr(self, "handle", None) is not None:
            check_call(get_library().MXSymbolFree(self.handle))
            self.handle = None

    def __repr__(self):
        name = self.name
        return f"<{self.__class__.__name__} {'Grouped' if name is None else name}>"

    def __copy__(self):
        return self.dup()

    def __deepcopy__(self, _):
        return self.dup()

    @property
    def name(self) -> Optional[str]:
        """Name of the symbol, None for grouped symbols."""
        ret = ctypes.c_char_p()
        success = ctypes.c_int()
        check_call(
            get_library().MXSymbolGetName(
                self.handle, ctypes.byref(ret), ctypes.byref(success)
            )
        )
        if success.value != 0:
            return py_str(ret.value)
        return None

    def _list_strings(self, entry_point: str) -> list[str]:
        size = mx_uint()
        sarr = ctypes.POINTER(ctypes.c_char_p)()
        check_call(
            getattr(get_library(), entry_point)(
                self.handle, ctypes.byref(size), ctypes.byref(sarr)
            )
        )
        return [py_str(sarr[i]) for i in range(size.value)]

    def list_arguments(self) -> list[str]:
        """
        List all the arguments in the symbol.

        Returns:
            Names of the arguments required to compute the symbol, in the
            positional order bind() uses.
        """
        return self._list_strings("MXSymbolListArguments")

    def list_auxiliary_states(self) -> list[str]:
        """
        List all the auxiliary states in the symbol.

        Auxiliary states are special states of symbols that do not correspond
        to an argument and are not updated by gradient descent, such as the
        moving mean and variance of BatchNorm. Most operators have none.
        """
        return self._list_strings("MXSymbolListAuxiliaryStates")

    def list_outputs(self) -> list[str]:
        """
        List all the outputs in the symbol.

        For most symbols this is the name of the symbol itself; for symbol
        groups it lists the outputs of every symbol in the group.
        """
        return self._list_strings("MXSymbolListOutputs")

    def dup(self) -> "Symbol":
        """Return an independent deep copy of this symbol."""
        handle = SymbolHandle()
        check_call(get_library().MXSymbolCopy(self.handle, ctypes.byref(handle)))
        return Symbol(handle)

    def bind(
        self,
        ctx: Context,
        args: Any,
        args_grad: Any = None,
        grad_req: Any = "write",
        aux_states: Any = None,
        group2ctx: Optional[dict] = None,
        shared_exec: Optional[Executor] = None,
    ) -> Executor:
        """
        Bind the symbol to arrays and a device, returning an Executor.

        Args:
            ctx: Device context the executor runs on
            args: list of NDArray in list_arguments() order, or dict of
                name to NDArray; every argument must be provided
            args_grad: list or dict of NDArray receiving gradients; with a
                dict only the listed arguments get gradient buffers
            grad_req: "write", "add" or "null", a list of those per
                argument, or a dict of name to label (absent names: "null")
            aux_states: list or dict of NDArray for list_auxiliary_states()
            group2ctx: dict of ctx_group attribute to Context
            shared_exec: Executor to share memory with

        Returns:
            The bound Executor.

        Raises:
            ArgumentTypeError: a parameter has the wrong kind
            ArgumentCountError: a list has the wrong length
            MissingKeyError: a required name is absent from a dict
            InvalidGradReqError: unknown grad_req label
            MXNetError: the engine rejected the binding
        """
        if not isinstance(ctx, Context):
            raise ArgumentTypeError(
                "Context type error",
                parameter="ctx",
                expected="Context",
                received=type(ctx).__name__,
            )
        if shared_exec is not None and not isinstance(shared_exec, Executor):
            raise ArgumentTypeError(
                "shared_exec must be an Executor",
                parameter="shared_exec",
                expected="Executor",
                received=type(shared_exec).__name__,
            )

        listed_arguments = self.list_arguments()

        with ScratchBuffers() as scratch:
            args_in = resolve_ndarray_inputs("args", args, listed_arguments, False)
            scratch.hold(args_in.handles)

            if args_grad is None:
                grads_in = null_handles(len(args_in))
            else:
                grads_in = resolve_ndarray_inputs(
                    "args_grad", args_grad, listed_arguments, True
                )
            scratch.hold(grads_in.handles)

            if aux_states is None:
                aux_states = []
            aux_in = resolve_ndarray_inputs(
                "aux_states", aux_states, self.list_auxiliary_states(), False
            )
            scratch.hold(aux_in.handles)

            reqs_array = scratch.hold(resolve_grad_req(grad_req, listed_arguments))
            groups = scratch.hold(resolve_group2ctx(group2ctx))

            shared_handle = (
                shared_exec.handle if shared_exec is not None else ExecutorHandle()
            )
            handle = ExecutorHandle()

            logger.debug(
                f"MXExecutorBindEX ctx={ctx} num_args={len(args_in)} "
                f"num_aux={len(aux_in)} num_groups={len(groups)}"
            )
            check_call(
                get_library().MXExecutorBindEX(
                    self.handle,
                    ctypes.c_int(ctx.device_typeid),
                    ctypes.c_int(ctx.device_id),
                    mx_uint(len(groups)),
                    groups.keys,
                    groups.dev_types,
                    groups.dev_ids,
                    mx_uint(len(args_in)),
                    args_in.handles,
                    grads_in.handles,
                    reqs_array,
                    mx_uint(len(aux_in)),
                    aux_in.handles,
                    shared_handle,
                    ctypes.byref(handle),
                )
            )

        executor = Executor(handle, self, ctx, grad_req, group2ctx)
        executor.arg_arrays = args_in.arrays
        executor.grad_arrays = grads_in.arrays
        executor.aux_arrays = aux_in.arrays

        get_logger().debug(
            "Executor bound",
            component="symbol",
            symbol_name=self.name,
            operation="MXExecutorBindEX",
            ctx=str(ctx),
            num_args=len(args_in),
            num_aux=len(aux_in),
        )
        return executor


def var(name: str) -> Symbol:
    """
    Create a symbolic variable with the given name.

    Args:
        name: Variable name

    Returns:
        A Symbol whose only argument is ``name``.
    """
    if not isinstance(name, str):
        raise ArgumentTypeError(
            "Expect a string for variable `name`",
            parameter="name",
            expected="str",
            received=type(name).__name__,
        )
    handle = SymbolHandle()
    check_call(get_library().MXSymbolCreateVariable(c_str(name), ctypes.byref(handle)))
    return Symbol(handle)


Variable = var
