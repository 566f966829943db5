"""
=============================================================================
HTTP MESSAGE MODEL
=============================================================================

Immutable value objects for HTTP messages and their parts.

=============================================================================
MODULE COMPONENTS
=============================================================================

    stream.py          Stream         body bytes over a binary file object
    uri.py             Uri            RFC 3986 parser and builder
    headers.py         Headers        case-insensitive multi-valued headers
    message.py         MessageState   protocol version + headers + body
    request.py         Request        method, URI, target, attributes
                       ServerRequest  + server/cookie/query/files/parsed body
    response.py        Response       status code + reason phrase
    uploaded_file.py   UploadedFile   upload metadata and one-shot move
    status_codes.py    HTTPStatus     status code → reason phrase table
    errors.py          *Error         error taxonomy

=============================================================================
IMMUTABILITY
=============================================================================

Every with_*()/without_*() method returns a NEW object:

    request = Request("GET", "http://example.com/")
    posted  = request.with_method("POST")

    request.get_method()   → "GET"
    posted.get_method()    → "POST"

Streams and uploaded files are the exceptions: they wrap real resources
and change state as they are read, written, closed or moved.

=============================================================================
"""

from .errors import (
    HTTPMessageError,
    InvalidStateError,
    InvalidTypeError,
    MalformedValueError,
    OperationFailedError,
    OutOfRangeError,
)
from .headers import Headers
from .message import MessageState
from .request import Request, ServerRequest
from .response import Response
from .status_codes import HTTPStatus, reason_phrase
from .stream import Stream, to_stream
from .uploaded_file import UploadError, UploadedFile
from .uri import Uri, parse_query

# Public API - what you get when you do:
# from httpmodel.http import *
__all__ = [
    # Messages
    "Request",
    "ServerRequest",
    "Response",
    "MessageState",
    "Headers",

    # Parts
    "Stream",
    "to_stream",
    "Uri",
    "parse_query",
    "UploadedFile",
    "UploadError",

    # Status codes
    "HTTPStatus",
    "reason_phrase",

    # Errors
    "HTTPMessageError",
    "InvalidTypeError",
    "MalformedValueError",
    "OutOfRangeError",
    "InvalidStateError",
    "OperationFailedError",
]
