"""
=============================================================================
HTTP RESPONSES
=============================================================================

Immutable response value object: a status code and reason phrase on top of
the shared protocol version, headers and body.

    Response(404)

    HTTP/1.1 404 Not Found          ← version, status code, reason phrase
    Content-Type: text/plain        ← headers (with_header / with_added_header)
                                    ← body Stream
    Page not found

Responses are built by application code and handed to a transport, which
reads get_status_code(), get_reason_phrase(), get_headers() and get_body()
to emit them. Framing the status line is the transport's job.

=============================================================================
STATUS VALIDATION
=============================================================================

    with_status(404)                   → 404 "Not Found"
    with_status(404, "Nothing here")   → 404 "Nothing here"
    with_status(299)                   → 299 ""       (valid, unregistered)
    with_status(999)                   → OutOfRangeError
    with_status("404")                 → InvalidTypeError

=============================================================================
"""

from collections.abc import Mapping
from typing import Any, Optional

from ..config import get_config
from .errors import InvalidTypeError, OutOfRangeError
from .headers import Headers
from .message import MessageMixin, MessageState, validate_protocol_version
from .status_codes import HTTPStatus, MAX_STATUS_CODE, MIN_STATUS_CODE, reason_phrase
from .stream import to_stream


def _validate_status(code: int) -> int:
    if isinstance(code, bool) or not isinstance(code, int):
        raise InvalidTypeError(f"Status code must be an integer, got {type(code).__name__}")
    if not MIN_STATUS_CODE <= code <= MAX_STATUS_CODE:
        raise OutOfRangeError(
            f"Invalid status code: {code}. Must be between {MIN_STATUS_CODE} and {MAX_STATUS_CODE}"
        )
    return int(code)


def _resolve_reason(code: int, reason: str) -> str:
    if not isinstance(reason, str):
        raise InvalidTypeError(f"Reason phrase must be a string, got {type(reason).__name__}")
    return reason or reason_phrase(code)


class Response(MessageMixin):
    """
    An HTTP response.

    Example:
        response = (Response(HTTPStatus.CREATED)
            .with_header("Location", "/users/42")
            .with_header("Content-Type", "application/json")
            .with_body(Stream.from_string('{"id": 42}')))

        response.get_status_code()    # 201
        response.get_reason_phrase()  # "Created"
    """

    def __init__(
        self,
        status: int = HTTPStatus.OK,
        headers: Optional[Mapping] = None,
        body: Any = None,
        protocol_version: Optional[str] = None,
        reason: str = "",
    ):
        status = _validate_status(status)
        reason = _resolve_reason(status, reason)
        header_map = Headers(headers)

        if protocol_version is None:
            protocol_version = get_config().default_protocol_version
        validate_protocol_version(protocol_version)

        # allocated last, once nothing else can fail
        stream = to_stream(body)

        self._init(
            _message=MessageState(protocol_version, header_map, stream),
            _status_code=status,
            _reason_phrase=reason,
        )

    def get_status_code(self) -> int:
        return self._status_code

    def get_reason_phrase(self) -> str:
        return self._reason_phrase

    def with_status(self, code: int, reason_phrase: str = "") -> "Response":
        """
        Change the status code.

        An empty reason_phrase is replaced by the standard phrase for the
        code (empty for codes without one).
        """
        code = _validate_status(code)
        return self._evolve(_status_code=code, _reason_phrase=_resolve_reason(code, reason_phrase))

    def __repr__(self) -> str:
        return f"<Response {self._status_code} {self._reason_phrase}>"
