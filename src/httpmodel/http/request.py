"""
=============================================================================
HTTP REQUESTS
=============================================================================

Immutable request value objects.

    Request            method + URI + request target + attributes
                       (plus the shared headers/body from MessageState)
    ServerRequest      a Request as seen by the application: adds server
                       params, cookies, query params, uploaded files and a
                       parsed body

=============================================================================
REQUEST ANATOMY
=============================================================================

    Request("GET", "http://example.com/test/23?test=123")

    GET /test/23?test=123 HTTP/1.1      ← method, request target, version
    Host: example.com                   ← synthesized from the URI, first
                                        ← body: empty Stream

The request target comes from the URI (path + "?" + query, "/" when both
are empty) unless overridden with with_request_target(). An override is
sticky: with_uri() does not clear it.

=============================================================================
BODY INPUT
=============================================================================

    None          → empty in-memory Stream
    str / bytes   → in-memory Stream holding the content
    Stream        → used as is
    file object   → wrapped in a Stream
    anything else → InvalidTypeError("Invalid resource type: <type>")

=============================================================================
PARSED BODY
=============================================================================

ServerRequest.get_parsed_body() returns the explicitly set value when there
is one. Otherwise it decodes the body once, based on Content-Type:

    application/json, */*+json          → json.loads(body), None on failure
    application/x-www-form-urlencoded   → parse_query(body)
    anything else                       → None

=============================================================================
"""

import json
import logging
import re
from collections.abc import Mapping
from dataclasses import replace
from typing import Any, Dict, Optional, Union

from ..config import get_config
from .errors import InvalidTypeError, MalformedValueError
from .headers import Headers
from .message import MessageMixin, MessageState, validate_protocol_version
from .stream import to_stream
from .uploaded_file import UploadedFile
from .uri import Uri, parse_query


logger = logging.getLogger(__name__)

WHITESPACE = re.compile(r"\s")

_UNSET = object()


def _coerce_uri(uri: Union[str, Uri]) -> Uri:
    if isinstance(uri, Uri):
        return uri
    if isinstance(uri, str):
        return Uri.parse(uri)
    raise InvalidTypeError(f"URI must be a string or a Uri, got {type(uri).__name__}")


def _validate_method(method: str) -> str:
    if not isinstance(method, str):
        raise InvalidTypeError(f"HTTP method must be a string, got {type(method).__name__}")
    if not method:
        raise MalformedValueError("HTTP method must not be empty")
    return method


def _host_header(uri: Uri) -> str:
    host = uri.get_host()
    port = uri.get_port()
    return f"{host}:{port}" if port is not None else host


class Request(MessageMixin):
    """
    An outgoing or incoming HTTP request.

    Example:
        request = Request("POST", "https://api.example.com/users",
                          {"Content-Type": "application/json"},
                          '{"name": "John"}')
        request.get_request_target()    # "/users"
        request.get_header_line("host") # "api.example.com"
        request.is_https()              # True
    """

    def __init__(
        self,
        method: str,
        uri: Union[str, Uri],
        headers: Optional[Mapping] = None,
        body: Any = None,
        protocol_version: Optional[str] = None,
    ):
        method = _validate_method(method)
        uri = _coerce_uri(uri)
        header_map = Headers(headers)

        if not header_map.has("Host") and uri.get_host():
            header_map = header_map.with_value("Host", _host_header(uri), first=True)
            logger.debug(f"Host header synthesized from URI: {header_map.line('Host')}")

        if protocol_version is None:
            protocol_version = get_config().default_protocol_version
        validate_protocol_version(protocol_version)

        # allocated last, once nothing else can fail
        stream = to_stream(body)

        self._init(
            _message=MessageState(protocol_version, header_map, stream),
            _method=method,
            _uri=uri,
            _request_target=None,
            _attributes={},
        )

    # =========================================================================
    # METHOD
    # =========================================================================

    def get_method(self) -> str:
        return self._method

    def with_method(self, method: str) -> "Request":
        """Change the method. Stored verbatim, case is not normalized."""
        return self._evolve(_method=_validate_method(method))

    def is_get(self) -> bool:
        return self._method.upper() == "GET"

    def is_post(self) -> bool:
        return self._method.upper() == "POST"

    def is_put(self) -> bool:
        return self._method.upper() == "PUT"

    def is_delete(self) -> bool:
        return self._method.upper() == "DELETE"

    def is_patch(self) -> bool:
        return self._method.upper() == "PATCH"

    def is_head(self) -> bool:
        return self._method.upper() == "HEAD"

    def is_options(self) -> bool:
        return self._method.upper() == "OPTIONS"

    # =========================================================================
    # URI & REQUEST TARGET
    # =========================================================================

    def get_uri(self) -> Uri:
        return self._uri

    def with_uri(self, uri: Union[str, Uri], preserve_host: bool = False) -> "Request":
        """
        Replace the URI.

        The Host header follows the new URI's host, except when
        preserve_host is True and the request already has a non-empty Host.
        A URI without a host never touches the Host header.
        """
        uri = _coerce_uri(uri)
        headers = self._message.headers

        keep_host = preserve_host and headers.line("Host") != ""
        if uri.get_host() and not keep_host:
            headers = headers.with_value("Host", _host_header(uri), first=True)

        return self._evolve(_message=replace(self._message, headers=headers), _uri=uri)

    def get_request_target(self) -> str:
        if self._request_target is not None:
            return self._request_target

        target = self._uri.get_path() or "/"
        query = self._uri.get_query()
        if query:
            target = f"{target}?{query}"
        return target

    def with_request_target(self, request_target: str) -> "Request":
        if not isinstance(request_target, str):
            raise InvalidTypeError(
                f"Request target must be a string, got {type(request_target).__name__}"
            )
        if WHITESPACE.search(request_target):
            raise MalformedValueError(
                "Invalid target provided. Request targets may not contain whitespaces."
            )
        return self._evolve(_request_target=request_target)

    # =========================================================================
    # CONVENIENCE PREDICATES
    # =========================================================================

    def is_https(self) -> bool:
        return self._uri.get_scheme() == "https"

    def is_ajax(self) -> bool:
        """True when X-Requested-With is exactly "XMLHttpRequest"."""
        return self.get_header_line("X-Requested-With") == "XMLHttpRequest"

    # =========================================================================
    # ATTRIBUTES
    # =========================================================================
    #
    # Request-scoped metadata (route params, authenticated user, ...).
    # Never sent over the wire.
    #

    def get_attributes(self) -> Dict[str, Any]:
        return dict(self._attributes)

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self._attributes.get(name, default)

    def with_attribute(self, name: str, value: Any) -> "Request":
        return self._evolve(_attributes={**self._attributes, name: value})

    def without_attribute(self, name: str) -> "Request":
        if name not in self._attributes:
            return self._evolve()
        attributes = dict(self._attributes)
        del attributes[name]
        return self._evolve(_attributes=attributes)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._method} {self._uri}>"


class ServerRequest(Request):
    """
    A request received by the server, with the data the hosting environment
    supplies alongside it.

    Example:
        request = ServerRequest(
            "POST", "http://example.com/upload?draft=1",
            {"Content-Type": "application/x-www-form-urlencoded"},
            "title=Hello&tags[]=a&tags[]=b",
            server_params={"REMOTE_ADDR": "127.0.0.1"},
            uploaded_files={"avatar": UploadedFile("/tmp/php123", 512, 0)},
        )
        request.get_query_params()   # {"draft": "1"}
        request.get_parsed_body()    # {"title": "Hello", "tags": ["a", "b"]}
    """

    def __init__(
        self,
        method: str,
        uri: Union[str, Uri],
        headers: Optional[Mapping] = None,
        body: Any = None,
        protocol_version: Optional[str] = None,
        server_params: Optional[Mapping] = None,
        cookie_params: Optional[Mapping] = None,
        query_params: Optional[Mapping] = None,
        uploaded_files: Any = None,
        parsed_body: Any = _UNSET,
    ):
        # validated before the body is buffered
        server_params = _copy_params("Server params", server_params)
        cookie_params = _copy_params("Cookie params", cookie_params)
        if query_params is not None:
            query_params = _copy_params("Query params", query_params)
        uploaded_files = _validate_uploaded_files(uploaded_files if uploaded_files is not None else {})
        if parsed_body is not _UNSET:
            parsed_body = _validate_parsed_body(parsed_body)

        super().__init__(method, uri, headers, body, protocol_version)

        if query_params is None:
            query_params = parse_query(self._uri.get_query())

        self._init(
            _server_params=server_params,
            _cookie_params=cookie_params,
            _query_params=query_params,
            _uploaded_files=uploaded_files,
            _parsed_body=parsed_body,
            _parsed_body_cache=_UNSET,
        )

    def _evolve(self, **changes: Any) -> "ServerRequest":
        changes.setdefault("_parsed_body_cache", _UNSET)
        return super()._evolve(**changes)

    # =========================================================================
    # SERVER PARAMS (read-only snapshot)
    # =========================================================================

    def get_server_params(self) -> Dict[str, Any]:
        return dict(self._server_params)

    # =========================================================================
    # COOKIES & QUERY
    # =========================================================================

    def get_cookie_params(self) -> Dict[str, Any]:
        return dict(self._cookie_params)

    def with_cookie_params(self, cookies: Mapping) -> "ServerRequest":
        return self._evolve(_cookie_params=_copy_params("Cookie params", cookies))

    def get_query_params(self) -> Dict[str, Any]:
        return dict(self._query_params)

    def with_query_params(self, query: Mapping) -> "ServerRequest":
        """Replace the query params. The URI is left untouched."""
        return self._evolve(_query_params=_copy_params("Query params", query))

    # =========================================================================
    # UPLOADED FILES
    # =========================================================================

    def get_uploaded_files(self) -> Any:
        return _copy_tree(self._uploaded_files)

    def with_uploaded_files(self, uploaded_files: Any) -> "ServerRequest":
        """
        Replace the uploaded files tree.

        Nodes must be dicts or lists, leaves must be UploadedFile instances.
        """
        return self._evolve(_uploaded_files=_validate_uploaded_files(uploaded_files))

    # =========================================================================
    # PARSED BODY
    # =========================================================================

    def get_parsed_body(self) -> Any:
        if self._parsed_body is not _UNSET:
            return self._parsed_body

        if self._parsed_body_cache is _UNSET:
            object.__setattr__(self, "_parsed_body_cache", self._decode_body())
        return self._parsed_body_cache

    def with_parsed_body(self, data: Any) -> "ServerRequest":
        """
        Set the deserialized body: None, a dict, a list or an object.

        An explicit None counts as set and disables decoding of the body.
        """
        return self._evolve(_parsed_body=_validate_parsed_body(data))

    def _media_type(self) -> str:
        content_type = self.get_header_line("Content-Type")
        return content_type.split(";")[0].strip().lower()

    def _decode_body(self) -> Any:
        media_type = self._media_type()

        if media_type == "application/json" or media_type.endswith("+json"):
            raw = bytes(self.get_body())
            try:
                decoded = json.loads(raw)
            except ValueError as exc:
                logger.debug(f"Request body is not valid JSON: {exc}")
                return None
            return decoded if isinstance(decoded, (dict, list)) else None

        if media_type == "application/x-www-form-urlencoded":
            raw = bytes(self.get_body())
            return parse_query(raw.decode("utf-8", errors="replace"))

        return None


# =============================================================================
# VALIDATION HELPERS
# =============================================================================

def _copy_params(label: str, params: Optional[Mapping]) -> Dict[str, Any]:
    if params is None:
        return {}
    if not isinstance(params, Mapping):
        raise InvalidTypeError(f"{label} must be a mapping, got {type(params).__name__}")
    return dict(params)


def _validate_uploaded_files(files: Any) -> Any:
    if isinstance(files, Mapping):
        children = files.values()
    elif isinstance(files, (list, tuple)):
        children = files
    else:
        raise InvalidTypeError(
            f"Uploaded files must be a dict or a list, got {type(files).__name__}"
        )

    for child in children:
        if isinstance(child, UploadedFile):
            continue
        if isinstance(child, (Mapping, list, tuple)):
            _validate_uploaded_files(child)
        else:
            raise InvalidTypeError(
                f"Invalid leaf in uploaded files structure: {type(child).__name__}"
            )
    return _copy_tree(files)


def _copy_tree(files: Any) -> Any:
    if isinstance(files, Mapping):
        return {key: _copy_tree(value) for key, value in files.items()}
    if isinstance(files, (list, tuple)):
        return [_copy_tree(value) for value in files]
    return files


def _validate_parsed_body(data: Any) -> Any:
    if data is None or isinstance(data, (Mapping, list, tuple)):
        return data
    if isinstance(data, (str, bytes, bytearray, int, float, bool)):
        raise InvalidTypeError(
            f"Parsed body must be None, a mapping, a list or an object, got {type(data).__name__}"
        )
    return data
