"""
=============================================================================
MESSAGE ERRORS
=============================================================================

Every failure raised by the message model derives from HTTPMessageError
AND from the builtin exception a Python caller would naturally expect:

    ┌──────────────────────┬──────────────┬─────────────────────────────────┐
    │ Class                │ Builtin      │ Raised for                      │
    ├──────────────────────┼──────────────┼─────────────────────────────────┤
    │ InvalidTypeError     │ TypeError    │ wrong argument kind             │
    │ MalformedValueError  │ ValueError   │ bad syntax (URI, target, ...)   │
    │ OutOfRangeError      │ ValueError   │ status code, port, length       │
    │ InvalidStateError    │ RuntimeError │ detached stream, moved upload   │
    │ OperationFailedError │ RuntimeError │ filesystem / resource failure   │
    └──────────────────────┴──────────────┴─────────────────────────────────┘

So both of these work:

    try:
        response.with_status(999)
    except OutOfRangeError: ...

    try:
        response.with_status(999)
    except ValueError: ...

All errors are raised before any side effect. A failed with_*() call never
changes the instance it was called on.

=============================================================================
"""


class HTTPMessageError(Exception):
    """
    Base class for all message model errors.

    Like the parse errors of a server, each error carries the HTTP status a
    transport would answer with if the failure came from client input.
    """

    status_code = 500

    def __init__(self, message: str, status_code: int = None):
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code


class InvalidTypeError(HTTPMessageError, TypeError):
    """An argument has the wrong shape or kind."""

    status_code = 400


class MalformedValueError(HTTPMessageError, ValueError):
    """An argument has the right type but invalid syntax."""

    status_code = 400


class OutOfRangeError(HTTPMessageError, ValueError):
    """A value lies outside its legal domain."""

    status_code = 400


class InvalidStateError(HTTPMessageError, RuntimeError):
    """The operation is not allowed in the object's current lifecycle state."""


class OperationFailedError(HTTPMessageError, RuntimeError):
    """An operation on an external resource (file, stream) failed."""
