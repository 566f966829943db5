"""
=============================================================================
BODY STREAMS
=============================================================================

A Stream wraps exactly one binary file object and is the only way message
bodies and uploaded files expose their bytes.

=============================================================================
OWNERSHIP
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                                                                     │
    │   Stream(resource)      ──► owns resource                           │
    │        │                                                            │
    │        ├── close()      ──► resource.close(), stream is inert       │
    │        │                                                            │
    │        └── detach()     ──► returns resource, stream is inert       │
    │                                                                     │
    │   Inert stream: every read/write/seek/tell/eof raises               │
    │   InvalidStateError, is_*() answer False, get_size() is None.       │
    │                                                                     │
    └─────────────────────────────────────────────────────────────────────┘

A stream is not safe for concurrent use. Whoever holds it (a message or an
uploaded file) owns the resource exclusively.

=============================================================================
CAPABILITIES
=============================================================================

Capabilities are inferred once, at construction, from the open mode:

    "rb"   → readable
    "wb"   → writable          "ab" → writable          "xb" → writable
    "r+b"  → readable + writable (any mode containing "+")

File objects without a mode string (io.BytesIO, sockets wrapped in
BufferedRWPair, ...) are asked directly via readable()/writable().
Seekability always comes from the file object's own seekable().

=============================================================================
"""

import io
import os
import logging
import tempfile
from typing import Any, Optional, Union

from ..config import get_config
from .errors import (
    InvalidStateError,
    InvalidTypeError,
    HTTPMessageError,
    OperationFailedError,
    OutOfRangeError,
)


logger = logging.getLogger(__name__)


def is_file_like(value: Any) -> bool:
    """Check whether a value can back a Stream (a binary file object)."""
    if isinstance(value, io.TextIOBase):
        return False
    if isinstance(value, io.IOBase):
        return True
    return callable(getattr(value, "read", None)) and callable(getattr(value, "seek", None))


class Stream:
    """
    Readable/writable/seekable view over a binary file object.

    Usage:
        with Stream.from_string('{"title": "value"}') as body:
            body.read(1)        # b'{'
            str(body)           # whole content, from the start
    """

    def __init__(self, resource: Any):
        if not is_file_like(resource):
            raise InvalidTypeError(
                f"Stream must wrap a binary file object, got {type(resource).__name__}"
            )

        self._resource = resource
        self._eof = False

        mode = getattr(resource, "mode", None)
        if isinstance(mode, str) and mode:
            self._readable = "r" in mode or "+" in mode
            self._writable = any(flag in mode for flag in "wax+")
        else:
            self._readable = _ask(resource, "readable")
            self._writable = _ask(resource, "writable")
        self._seekable = _ask(resource, "seekable")

    @classmethod
    def from_string(cls, content: Union[str, bytes] = b"") -> "Stream":
        """
        Create a new in-memory stream holding content, rewound to 0.

        The buffer is a SpooledTemporaryFile: it stays in memory until it
        grows past MessageConfig.memory_limit.
        """
        if isinstance(content, str):
            content = content.encode("utf-8")
        elif not isinstance(content, (bytes, bytearray, memoryview)):
            raise InvalidTypeError(
                f"Stream content must be str or bytes, got {type(content).__name__}"
            )

        buffer = tempfile.SpooledTemporaryFile(max_size=get_config().memory_limit, mode="w+b")
        buffer.write(content)
        buffer.seek(0)
        return cls(buffer)

    # =========================================================================
    # CAPABILITIES
    # =========================================================================

    @property
    def detached(self) -> bool:
        return self._resource is None

    def is_readable(self) -> bool:
        return self._resource is not None and self._readable

    def is_writable(self) -> bool:
        return self._resource is not None and self._writable

    def is_seekable(self) -> bool:
        return self._resource is not None and self._seekable

    # =========================================================================
    # POSITION
    # =========================================================================

    def tell(self) -> int:
        """Current position of the read/write pointer."""
        resource = self._require_resource()
        try:
            return resource.tell()
        except (OSError, ValueError) as exc:
            raise OperationFailedError("Unable to determine stream position") from exc

    def eof(self) -> bool:
        """True once a read hit the end of the stream."""
        self._require_resource()
        return self._eof

    def seek(self, offset: int, whence: int = io.SEEK_SET) -> None:
        resource = self._require_resource()
        if not self._seekable:
            raise InvalidStateError("Stream is not seekable")
        if whence not in (io.SEEK_SET, io.SEEK_CUR, io.SEEK_END):
            raise OutOfRangeError(f"Invalid whence value: {whence}")

        try:
            resource.seek(offset, whence)
        except (OSError, ValueError) as exc:
            raise OperationFailedError(
                f"Unable to seek to stream position {offset} with whence {whence}"
            ) from exc
        self._eof = False

    def rewind(self) -> None:
        self.seek(0)

    def get_size(self) -> Optional[int]:
        """
        Size of the stream in bytes, or None when it cannot be known.

        Seekable streams are measured by seeking to the end (which includes
        buffered writes); other streams fall back to fstat() on their file
        descriptor.
        """
        resource = self._resource
        if resource is None:
            return None

        if self._seekable:
            try:
                position = resource.tell()
                size = resource.seek(0, io.SEEK_END)
                resource.seek(position)
                return size
            except (OSError, ValueError):
                return None

        try:
            return os.fstat(resource.fileno()).st_size
        except (AttributeError, OSError, ValueError, io.UnsupportedOperation):
            return None

    # =========================================================================
    # READ / WRITE
    # =========================================================================

    def read(self, length: int) -> bytes:
        """
        Read up to length bytes.

        Returns fewer bytes when the end of the stream is reached, and
        flags eof() in that case.
        """
        resource = self._require_resource()
        if not self._readable:
            raise InvalidStateError("Cannot read from non-readable stream")
        if isinstance(length, bool) or not isinstance(length, int):
            raise InvalidTypeError(
                f"Length parameter must be an integer, got {type(length).__name__}"
            )
        if length < 0:
            raise OutOfRangeError(f"Length parameter cannot be negative: {length}")
        if length == 0:
            return b""

        try:
            data = resource.read(length)
        except (OSError, ValueError) as exc:
            raise OperationFailedError("Unable to read from stream") from exc

        data = data or b""
        if len(data) < length:
            self._eof = True
        return data

    def write(self, data: Union[str, bytes]) -> int:
        """Write data at the current position. Returns bytes written."""
        resource = self._require_resource()
        if not self._writable:
            raise InvalidStateError("Cannot write to a non-writable stream")

        if isinstance(data, str):
            data = data.encode("utf-8")
        elif not isinstance(data, (bytes, bytearray, memoryview)):
            raise InvalidTypeError(
                f"Stream data must be str or bytes, got {type(data).__name__}"
            )

        try:
            written = resource.write(data)
        except (OSError, ValueError) as exc:
            raise OperationFailedError("Unable to write to stream") from exc

        self._eof = False
        return len(data) if written is None else written

    def get_contents(self) -> bytes:
        """Read everything from the current position to the end."""
        resource = self._require_resource()
        if not self._readable:
            raise InvalidStateError("Cannot read from non-readable stream")

        try:
            contents = resource.read()
        except (OSError, ValueError) as exc:
            raise OperationFailedError("Unable to read stream contents") from exc

        self._eof = True
        return contents or b""

    def __bytes__(self) -> bytes:
        """
        Whole content of the stream.

        Reads from the start when seekable, otherwise from the current
        position. Never raises: a stream that cannot be read converts to b"".
        """
        try:
            if self.is_seekable():
                self.seek(0)
            return self.get_contents()
        except HTTPMessageError as exc:
            logger.debug(f"Stream conversion returned empty content: {exc}")
            return b""

    def __str__(self) -> str:
        return bytes(self).decode("utf-8", errors="replace")

    # =========================================================================
    # METADATA & LIFECYCLE
    # =========================================================================

    def get_metadata(self, key: Optional[str] = None) -> Any:
        """
        Stream metadata: mode, seekable, uri, closed.

        With a key, returns that single entry (None when unknown).
        """
        if self._resource is None:
            return None if key is not None else {}

        metadata = {
            "mode": getattr(self._resource, "mode", None),
            "seekable": self._seekable,
            "uri": _resource_name(self._resource),
            "closed": bool(getattr(self._resource, "closed", False)),
        }
        if key is None:
            return metadata
        return metadata.get(key)

    def close(self) -> None:
        """Close the underlying resource. Closing twice is a no-op."""
        resource = self.detach()
        if resource is not None:
            resource.close()
            logger.debug("Stream closed")

    def detach(self) -> Any:
        """
        Separate the underlying resource from the stream.

        Returns the resource (or None when already detached). The stream is
        unusable afterwards.
        """
        resource, self._resource = self._resource, None
        self._readable = self._writable = self._seekable = False
        if resource is not None:
            logger.debug("Stream detached from its resource")
        return resource

    def __enter__(self) -> "Stream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        if self._resource is None:
            return "<Stream detached>"
        flags = "".join(
            flag for flag, enabled in (("r", self._readable), ("w", self._writable), ("s", self._seekable))
            if enabled
        )
        return f"<Stream {flags or '-'} {_resource_name(self._resource) or 'memory'}>"

    def _require_resource(self) -> Any:
        if self._resource is None:
            raise InvalidStateError("Stream is detached")
        return self._resource


def to_stream(body: Any) -> Stream:
    """
    Resolve a message body argument into a Stream.

        None            → empty in-memory stream
        str / bytes     → in-memory stream holding the content
        Stream          → used as is
        file object     → wrapped

    Anything else raises InvalidTypeError naming the offending type.
    """
    if body is None:
        return Stream.from_string(b"")
    if isinstance(body, Stream):
        return body
    if isinstance(body, (str, bytes, bytearray)):
        return Stream.from_string(body)
    if is_file_like(body):
        return Stream(body)
    raise InvalidTypeError(f"Invalid resource type: {type(body).__name__}")


def _ask(resource: Any, capability: str) -> bool:
    probe = getattr(resource, capability, None)
    if not callable(probe):
        return False
    try:
        return bool(probe())
    except (OSError, ValueError):
        return False


def _resource_name(resource: Any) -> Optional[str]:
    name = getattr(resource, "name", None)
    return name if isinstance(name, str) else None
