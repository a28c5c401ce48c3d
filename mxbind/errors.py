# Copyright 2025 Wahyu Ardiansyah
# Licensed under the Apache License, Version 2.0

"""
mxbind Error Hierarchy

Provides the error types raised while marshalling Python values into the
native engine's calling convention, with:
- Clear error categorization
- Helpful error messages with suggestions
- Context information for debugging

Error Categories:
- MXBindError: Base class for all mxbind errors
- ArgumentCountError: Sequence length does not match the name list
- ArgumentTypeError: Wrong kind of value where a tensor/context was expected
- MissingKeyError: Required name absent from a mapping
- InvalidGradReqError: Gradient requirement label not recognized
- MXNetError: Failure reported by the native engine (message kept verbatim)
- LibraryNotFoundError: Native library could not be located
"""

from typing import Optional


class MXBindError(Exception):
    """
    Base class for all mxbind errors.

    Provides consistent error formatting and context tracking.

    Attributes:
        message: Human-readable error message
        suggestions: List of suggestions to fix the error
        context: Optional context dictionary for debugging
    """

    def __init__(
        self,
        message: str,
        suggestions: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        self.message = message
        self.suggestions = suggestions or []
        self.context = context or {}

        full_message = self._format_message()
        super().__init__(full_message)

    def _format_message(self) -> str:
        """Format the error message with suggestions."""
        lines = [self.message]

        if self.suggestions:
            lines.append("")
            lines.append("Suggestions:")
            for i, suggestion in enumerate(self.suggestions, 1):
                lines.append(f"  {i}. {suggestion}")

        if self.context:
            lines.append("")
            lines.append("Context:")
            for key, value in self.context.items():
                lines.append(f"  {key}: {value}")

        return "\n".join(lines)


class ArgumentCountError(MXBindError, ValueError):
    """
    Sequence length does not match the expected name list.

    Raised when a positional list of arrays (or of grad_req labels) has a
    different length than list_arguments()/list_auxiliary_states().
    """

    def __init__(
        self,
        arg_key: str,
        expected: int,
        received: int,
    ):
        self.arg_key = arg_key
        self.expected = expected
        self.received = received

        super().__init__(
            message=f"Length of {arg_key} does not match the number of arguments",
            suggestions=[
                f"Pass exactly {expected} entries in `{arg_key}`",
                "Pass a dict keyed by argument name instead of a list",
            ],
            context={
                "parameter": arg_key,
                "expected": expected,
                "received": received,
            },
        )


class ArgumentTypeError(MXBindError, TypeError):
    """
    Wrong kind of value supplied.

    Raised when:
    - A binding is neither a list nor a dict
    - An element is not an NDArray
    - A device context is not a Context
    """

    def __init__(
        self,
        message: str,
        parameter: Optional[str] = None,
        expected: Optional[str] = None,
        received: Optional[str] = None,
    ):
        self.parameter = parameter

        context = {}
        if parameter:
            context["parameter"] = parameter
        if expected:
            context["expected"] = expected
        if received:
            context["received"] = received

        super().__init__(message=message, context=context)


class MissingKeyError(MXBindError, ValueError):
    """
    A name required by the symbol is absent from a dict binding.
    """

    def __init__(self, key: str, arg_key: str):
        self.key = key
        self.arg_key = arg_key

        super().__init__(
            message=f"key `{key}` is missing in `{arg_key}`",
            suggestions=[
                f"Add an NDArray for `{key}` to `{arg_key}`",
                "Check the names returned by list_arguments() / list_auxiliary_states()",
            ],
        )


class InvalidGradReqError(MXBindError, ValueError):
    """
    Gradient requirement label is not one of the recognized members.
    """

    def __init__(self, label, valid: dict):
        self.label = label
        self.valid = dict(valid)

        super().__init__(
            message=f"grad_req must be in {self.valid}",
            context={"received": repr(label)},
        )


class MXNetError(MXBindError):
    """
    Error reported by the native engine.

    The message is the engine's own (from MXGetLastError), unchanged.
    """

    def __init__(self, message: str):
        super().__init__(message=message)


class LibraryNotFoundError(MXBindError):
    """
    The native engine library could not be located or loaded.
    """

    def __init__(self, message: str, searched: Optional[list[str]] = None):
        self.searched = searched or []

        context = {}
        if self.searched:
            context["searched"] = ", ".join(self.searched)

        super().__init__(
            message=f"Cannot load native library: {message}",
            suggestions=[
                "Set MXBIND_LIBRARY_PATH to the full path of libmxnet.so",
                "Install an MXNet build that ships the shared library",
            ],
            context=context,
        )
