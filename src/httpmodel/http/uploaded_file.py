"""
=============================================================================
UPLOADED FILES
=============================================================================

One file received in a multipart upload: its metadata as reported by the
client/transport, and a one-shot move to its final location.

=============================================================================
LIFECYCLE
=============================================================================

    ┌─────────┐    move_to(path)    ┌─────────┐
    │  READY  │ ──────────────────► │  MOVED  │   terminal
    └─────────┘                     └─────────┘
         │                               │
         │ get_stream() ok               │ get_stream() → InvalidStateError
         │                               │ move_to()    → InvalidStateError
         ▼
    error != UploadError.OK  ──►  ERRORED: get_stream()/move_to() refused,
                                  metadata getters still work

A failed move (missing directory, permissions, ...) raises
OperationFailedError and leaves the file READY.

=============================================================================
BACKING CONTENT
=============================================================================

    str / os.PathLike   temporary file written by the transport; opened for
                        reading on first get_stream(), moved with
                        shutil.move()
    file object         wrapped in a Stream on first use, copied on move
    Stream              used as is, copied on move

The client filename and media type are whatever the client sent. Never use
them as a filesystem path without sanitizing.

=============================================================================
"""

import contextlib
import logging
import os
import shutil
from enum import IntEnum
from typing import Any, Optional

from ..config import get_config
from .errors import (
    HTTPMessageError,
    InvalidStateError,
    InvalidTypeError,
    OperationFailedError,
)
from .stream import Stream, is_file_like


logger = logging.getLogger(__name__)


class UploadError(IntEnum):
    """Standard upload error codes, as reported by the transport."""

    OK = 0
    INI_SIZE = 1
    FORM_SIZE = 2
    PARTIAL = 3
    NO_FILE = 4
    NO_TMP_DIR = 6
    CANT_WRITE = 7
    EXTENSION = 8

    @property
    def description(self) -> str:
        return _UPLOAD_ERROR_DESCRIPTIONS[self]


_UPLOAD_ERROR_DESCRIPTIONS = {
    UploadError.OK: "The file uploaded successfully",
    UploadError.INI_SIZE: "The file exceeds the server's maximum upload size",
    UploadError.FORM_SIZE: "The file exceeds the maximum size given by the form",
    UploadError.PARTIAL: "The file was only partially uploaded",
    UploadError.NO_FILE: "No file was uploaded",
    UploadError.NO_TMP_DIR: "Missing a temporary folder",
    UploadError.CANT_WRITE: "Failed to write the file to disk",
    UploadError.EXTENSION: "An extension stopped the file upload",
}


def describe_upload_error(code: int) -> str:
    return _UPLOAD_ERROR_DESCRIPTIONS.get(code, f"Unknown upload error {code}")


class UploadedFile:
    """
    Metadata and content of one uploaded file.

    Example:
        upload = UploadedFile("/tmp/upload-1a2b", 12, UploadError.OK,
                              "report.txt", "text/plain")
        upload.get_client_filename()    # "report.txt"
        upload.get_stream().read(4)     # first 4 bytes
        upload.move_to("/srv/uploads/report.txt")
    """

    def __init__(
        self,
        file: Any,
        size: Optional[int],
        error: int,
        client_filename: Optional[str] = None,
        client_media_type: Optional[str] = None,
    ):
        self._path = None
        self._resource = None
        self._stream = None

        if isinstance(file, Stream):
            self._stream = file
        elif isinstance(file, (str, os.PathLike)) and os.fspath(file):
            self._path = os.fspath(file)
        elif is_file_like(file):
            self._resource = file
        else:
            raise InvalidTypeError("Invalid resource provided for uploaded file")

        if client_filename is not None and not isinstance(client_filename, str):
            raise InvalidTypeError("Uploaded file filename must be string or None")
        if client_media_type is not None and not isinstance(client_media_type, str):
            raise InvalidTypeError("Uploaded file media type must be string or None")

        self._size = size
        self._error = error
        self._client_filename = client_filename
        self._client_media_type = client_media_type
        self._moved = False

    # =========================================================================
    # METADATA
    # =========================================================================

    def get_size(self) -> Optional[int]:
        """Size as reported by the transport. Not re-measured."""
        return self._size

    def get_error(self) -> int:
        return self._error

    def get_client_filename(self) -> Optional[str]:
        return self._client_filename

    def get_client_media_type(self) -> Optional[str]:
        return self._client_media_type

    @property
    def moved(self) -> bool:
        return self._moved

    # =========================================================================
    # CONTENT
    # =========================================================================

    def get_stream(self) -> Stream:
        """
        The uploaded content as a Stream.

        Raises:
            InvalidStateError: upload error, or the file was already moved.
            OperationFailedError: the temporary file cannot be opened.
        """
        if self._error != UploadError.OK:
            raise InvalidStateError(
                f"Cannot retrieve stream due to upload error: {describe_upload_error(self._error)}"
            )
        if self._moved:
            raise InvalidStateError("Cannot retrieve stream after it has already been moved")

        if self._stream is None:
            if self._path is not None:
                try:
                    resource = open(self._path, "rb")
                except OSError as exc:
                    raise OperationFailedError(f"Unable to open uploaded file {self._path}") from exc
            else:
                resource = self._resource
            self._stream = Stream(resource)
        return self._stream

    def move_to(self, target_path: Any) -> None:
        """
        Move the uploaded file to target_path. Allowed exactly once.

        =====================================================================
        MOVE ALGORITHM
        =====================================================================

        1. Validate target_path (before touching the filesystem)
        2. Refuse when already moved or the upload failed
        3. Path backing   → shutil.move(source, target)
           Stream backing → copy in chunks of copy_chunk_size
        4. Release the stream and mark the file MOVED

        =====================================================================

        Raises:
            InvalidTypeError: target_path is not a non-empty path.
            InvalidStateError: already moved, or upload error.
            OperationFailedError: the move or copy failed.
        """
        if isinstance(target_path, os.PathLike):
            target_path = os.fspath(target_path)
        if not isinstance(target_path, (str, bytes)) or not target_path:
            raise InvalidTypeError("The specified path is invalid")

        if self._moved:
            raise InvalidStateError("File has already been moved once")
        if self._error != UploadError.OK:
            raise InvalidStateError(
                f"Cannot move file due to upload error: {describe_upload_error(self._error)}"
            )

        source = self._describe_source()
        try:
            if self._path is not None:
                self._release_stream()
                shutil.move(self._path, target_path)
            else:
                self._copy_to(target_path)
        except (OSError, HTTPMessageError) as exc:
            logger.warning(f"Uploaded file {source} could not be moved to {target_path}: {exc}")
            raise OperationFailedError(f"File {source} could not be moved to {target_path}") from exc

        self._release_stream()
        self._resource = None
        self._moved = True
        logger.info(f"Uploaded file {source} moved to {target_path}")

    # =========================================================================
    # INTERNALS
    # =========================================================================

    def _copy_to(self, target_path) -> None:
        stream = self._stream if self._stream is not None else Stream(self._resource)
        self._stream = stream

        if stream.is_seekable():
            stream.rewind()

        chunk_size = get_config().copy_chunk_size
        try:
            with open(target_path, "wb") as target:
                while True:
                    chunk = stream.read(chunk_size)
                    if not chunk:
                        break
                    target.write(chunk)
        except HTTPMessageError:
            # the target was created before the read failed
            with contextlib.suppress(OSError):
                os.remove(target_path)
            raise

    def _release_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def _describe_source(self) -> str:
        if self._path is not None:
            return os.fsdecode(self._path)
        if self._stream is not None:
            uri = self._stream.get_metadata("uri")
            if uri:
                return uri
        return "<stream>"

    def __repr__(self) -> str:
        state = "moved" if self._moved else ("error" if self._error != UploadError.OK else "ready")
        return (
            f"<UploadedFile {self._client_filename!r} "
            f"{self._client_media_type!r} size={self._size} {state}>"
        )
