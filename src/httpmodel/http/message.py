"""
=============================================================================
MESSAGE CORE
=============================================================================

The state every HTTP message carries, whatever its start line:

    ┌─────────────────────────────────────────────────────────────────────┐
    │  MessageState (frozen)                                              │
    │    protocol_version   "1.1"                                         │
    │    headers            Headers (case-insensitive, multi-valued)      │
    │    body               Stream                                        │
    └─────────────────────────────────────────────────────────────────────┘
              ▲                                   ▲
              │ embedded in                       │ embedded in
        ┌─────┴──────┐                      ┌─────┴──────┐
        │  Request   │                      │  Response  │
        └────────────┘                      └────────────┘

Request and Response do not inherit message behaviour from each other; each
embeds a MessageState and gets the shared header/body surface from
MessageMixin, which only forwards to the embedded state.

=============================================================================
COPY-ON-WRITE
=============================================================================

    original = Response(200)
    changed  = original.with_header("X-Id", "1")

    original.has_header("X-Id")   → False   (never touched)
    changed.has_header("X-Id")    → True    (new instance)

Instances refuse attribute assignment; every change goes through _evolve(),
which shallow-copies the instance and swaps the changed fields.

=============================================================================
"""

import copy
import re
from dataclasses import dataclass, replace
from typing import Any, Dict, List

from .errors import InvalidTypeError, MalformedValueError
from .headers import HeaderValue, Headers
from .stream import Stream, is_file_like


PROTOCOL_VERSION_PATTERN = re.compile(r"^\d(?:\.\d)?$")


def validate_protocol_version(version: str) -> str:
    if not isinstance(version, str):
        raise InvalidTypeError(
            f"Protocol version must be a string, got {type(version).__name__}"
        )
    if not PROTOCOL_VERSION_PATTERN.match(version):
        raise MalformedValueError(f"Invalid HTTP protocol version: {version!r}")
    return version


@dataclass(frozen=True)
class MessageState:
    """Protocol version, headers and body of one message."""

    protocol_version: str
    headers: Headers
    body: Stream

    def __post_init__(self):
        validate_protocol_version(self.protocol_version)


class MessageMixin:
    """
    Header, protocol-version and body accessors shared by all messages.

    Classes using the mixin store a MessageState in self._message.
    """

    _message: MessageState

    # =========================================================================
    # IMMUTABILITY
    # =========================================================================

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable; use the with_*() methods")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable; use the with_*() methods")

    def _init(self, **fields: Any) -> None:
        for name, value in fields.items():
            object.__setattr__(self, name, value)

    def _evolve(self, **changes: Any):
        clone = copy.copy(self)
        clone._init(**changes)
        return clone

    def _with_state(self, **changes: Any):
        return self._evolve(_message=replace(self._message, **changes))

    # =========================================================================
    # PROTOCOL VERSION
    # =========================================================================

    def get_protocol_version(self) -> str:
        return self._message.protocol_version

    def with_protocol_version(self, version: str):
        return self._with_state(protocol_version=version)

    # =========================================================================
    # HEADERS
    # =========================================================================

    def get_headers(self) -> Dict[str, List[str]]:
        """All headers as {original name: [values]}."""
        return self._message.headers.to_dict()

    def has_header(self, name: str) -> bool:
        return self._message.headers.has(name)

    def get_header(self, name: str) -> List[str]:
        return self._message.headers.get(name)

    def get_header_line(self, name: str) -> str:
        """
        All values of a header joined with ", ".

        Example:
            message.with_header("Accept", ["text/html", "text/json"])
                   .get_header_line("accept")   # "text/html, text/json"
        """
        return self._message.headers.line(name)

    def with_header(self, name: str, value: HeaderValue):
        return self._with_state(headers=self._message.headers.with_value(name, value))

    def with_added_header(self, name: str, value: HeaderValue):
        return self._with_state(headers=self._message.headers.with_added(name, value))

    def without_header(self, name: str):
        return self._with_state(headers=self._message.headers.without(name))

    # =========================================================================
    # BODY
    # =========================================================================

    def get_body(self) -> Stream:
        return self._message.body

    def with_body(self, body: Stream):
        """
        Replace the body.

        Accepts a Stream or a binary file object (wrapped in a Stream).
        """
        if isinstance(body, Stream):
            stream = body
        elif is_file_like(body):
            stream = Stream(body)
        else:
            raise InvalidTypeError(
                f"Message body must be a Stream or a binary file object, got {type(body).__name__}"
            )
        return self._with_state(body=stream)
