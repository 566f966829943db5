"""
=============================================================================
HTTPMODEL - Immutable HTTP Message Value Objects
=============================================================================

Requests, server requests, responses, URIs, body streams and uploaded files
as immutable, composable values, in the shape web frameworks expect from an
HTTP message abstraction.

=============================================================================
PACKAGE STRUCTURE
=============================================================================

    httpmodel/
    ├── __init__.py          # This file - public API
    ├── config.py            # MessageConfig (memory limit, logging, ...)
    └── http/
        ├── errors.py        # Error taxonomy
        ├── stream.py        # Stream
        ├── uri.py           # Uri, parse_query
        ├── headers.py       # Headers
        ├── message.py       # MessageState, MessageMixin
        ├── request.py       # Request, ServerRequest
        ├── response.py      # Response
        ├── uploaded_file.py # UploadedFile, UploadError
        └── status_codes.py  # HTTPStatus, reason phrases

=============================================================================
QUICK START
=============================================================================

    from httpmodel import ServerRequest, Response, HTTPStatus

    request = ServerRequest(
        "POST", "https://example.com/users?notify=1",
        {"Content-Type": "application/json"},
        '{"name": "John"}',
    )

    request.get_parsed_body()      # {"name": "John"}
    request.get_query_params()     # {"notify": "1"}
    request.is_https()             # True

    response = (Response(HTTPStatus.CREATED)
        .with_header("Location", "/users/1"))

    # Transports emit the response from its accessors
    response.get_status_code(), response.get_reason_phrase()

=============================================================================
"""

__version__ = "1.0.0"

from .config import MessageConfig, get_config, set_config
from .http import (
    HTTPMessageError,
    HTTPStatus,
    Headers,
    InvalidStateError,
    InvalidTypeError,
    MalformedValueError,
    OperationFailedError,
    OutOfRangeError,
    Request,
    Response,
    ServerRequest,
    Stream,
    UploadError,
    UploadedFile,
    Uri,
)

__all__ = [
    "MessageConfig",
    "get_config",
    "set_config",
    "Request",
    "ServerRequest",
    "Response",
    "Headers",
    "Stream",
    "Uri",
    "UploadedFile",
    "UploadError",
    "HTTPStatus",
    "HTTPMessageError",
    "InvalidTypeError",
    "MalformedValueError",
    "OutOfRangeError",
    "InvalidStateError",
    "OperationFailedError",
    "__version__",
]
