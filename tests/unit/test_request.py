"""
Unit tests for requests and server requests.
"""

import io

import pytest

from httpmodel.http import request as request_module
from httpmodel.http.errors import (
    InvalidTypeError,
    MalformedValueError,
)
from httpmodel.http.request import Request, ServerRequest
from httpmodel.http.stream import Stream
from httpmodel.http.uploaded_file import UploadedFile
from httpmodel.http.uri import Uri


class TestRequestConstruction:
    """Tests for the Request constructor."""

    def test_defaults(self, sample_request: Request):
        """Test a request built from a method and a URI string."""
        assert sample_request.get_method() == "GET"
        assert str(sample_request.get_uri()) == "http://example.com/test/23?test=123"
        assert sample_request.get_protocol_version() == "1.1"
        assert sample_request.get_body().get_contents() == b""

    def test_host_header_is_synthesized_first(self):
        """Test that Host comes from the URI and is the first header."""
        request = Request("GET", "http://example.com:8080/", {"Accept": "*/*"})

        assert request.get_header_line("Host") == "example.com:8080"
        assert list(request.get_headers()) == ["Host", "Accept"]

    def test_explicit_host_is_kept(self):
        """Test that a caller-supplied Host header wins over the URI."""
        request = Request("GET", "http://example.com/", {"host": "other.org"})
        assert request.get_header("Host") == ["other.org"]

    def test_no_host_for_relative_uri(self):
        """Test that a URI without host does not add a Host header."""
        assert not Request("GET", "/path").has_header("Host")

    def test_accepts_uri_instance(self):
        """Test that a Uri instance is used as is."""
        uri = Uri.parse("https://example.com/a")
        assert Request("GET", uri).get_uri() is uri

    def test_string_body(self):
        """Test that a str body becomes an in-memory stream."""
        request = Request("POST", "/", body="payload")
        assert str(request.get_body()) == "payload"

    def test_stream_and_file_bodies(self, memory_resource):
        """Test that streams are reused and file objects wrapped."""
        stream = Stream.from_string("x")

        assert Request("POST", "/", body=stream).get_body() is stream
        assert Request("POST", "/", body=memory_resource).get_body().get_contents() == b"test"

    def test_invalid_body(self):
        """Test that unsupported body types are refused."""
        with pytest.raises(InvalidTypeError, match="Invalid resource type"):
            Request("GET", "/", body=42)

    def test_invalid_uri(self):
        """Test that the URI must be a valid string or a Uri."""
        with pytest.raises(InvalidTypeError):
            Request("GET", 42)
        with pytest.raises(MalformedValueError):
            Request("GET", "http://:80")

    def test_invalid_method(self):
        """Test that the method must be a non-empty string."""
        with pytest.raises(InvalidTypeError):
            Request(None, "/")
        with pytest.raises(MalformedValueError):
            Request("", "/")

    def test_invalid_protocol_version(self):
        """Test that the protocol version is validated at construction."""
        with pytest.raises(MalformedValueError):
            Request("GET", "/", protocol_version="HTTP/1.1")

    @pytest.mark.parametrize("arguments", [
        {"method": "", "uri": "/"},
        {"method": "GET", "uri": "http://:80"},
        {"method": "GET", "uri": "/", "headers": {"Bad Name": "x"}},
        {"method": "GET", "uri": "/", "protocol_version": "x"},
    ])
    def test_body_not_buffered_when_invalid(self, monkeypatch, arguments):
        """Test that no body buffer is created for a rejected request."""
        resolved = []
        monkeypatch.setattr(request_module, "to_stream", resolved.append)

        with pytest.raises(MalformedValueError):
            Request(body="payload", **arguments)
        assert resolved == []

    def test_server_body_not_buffered_when_invalid(self, monkeypatch):
        """Test that server request params are checked before the body."""
        resolved = []
        monkeypatch.setattr(request_module, "to_stream", resolved.append)

        with pytest.raises(InvalidTypeError):
            ServerRequest("GET", "/", body="payload", cookie_params="a=1")
        assert resolved == []

    def test_is_immutable(self, sample_request: Request):
        """Test that attribute assignment is refused."""
        with pytest.raises(AttributeError):
            sample_request._method = "POST"


class TestRequestTarget:
    """Tests for the request target."""

    def test_target_from_uri(self, sample_request: Request):
        """Test that the target is path plus query."""
        assert sample_request.get_request_target() == "/test/23?test=123"

    def test_target_defaults_to_slash(self):
        """Test that an empty path is sent as "/"."""
        assert Request("GET", "").get_request_target() == "/"
        assert Request("GET", "?q=1").get_request_target() == "/?q=1"

    def test_with_request_target(self, sample_request: Request):
        """Test overriding the target, e.g. for OPTIONS *."""
        request = sample_request.with_request_target("*")

        assert request.get_request_target() == "*"
        assert sample_request.get_request_target() == "/test/23?test=123"

    def test_target_with_whitespace(self, sample_request: Request):
        """Test that targets containing whitespace are rejected."""
        with pytest.raises(MalformedValueError, match="may not contain whitespaces"):
            sample_request.with_request_target("/foo bar")

    def test_target_must_be_string(self, sample_request: Request):
        """Test that the target must be a string."""
        with pytest.raises(InvalidTypeError):
            sample_request.with_request_target(None)

    def test_override_survives_with_uri(self, sample_request: Request):
        """Test that an explicit target is not reset by a new URI."""
        request = sample_request.with_request_target("*").with_uri("http://example.com/other")
        assert request.get_request_target() == "*"


class TestRequestMutators:
    """Tests for method and URI mutators."""

    def test_with_method(self, sample_request: Request):
        """Test that the method is stored verbatim on a new request."""
        request = sample_request.with_method("post")

        assert request.get_method() == "post"
        assert request.is_post()
        assert sample_request.get_method() == "GET"

    def test_with_method_invalid(self, sample_request: Request):
        """Test that non-string methods are rejected."""
        with pytest.raises(InvalidTypeError):
            sample_request.with_method(1)

    def test_with_uri_updates_host(self, sample_request: Request):
        """Test that the Host header follows the new URI."""
        request = sample_request.with_uri("https://other.org:8443/x")

        assert request.get_header_line("Host") == "other.org:8443"
        assert request.get_uri().get_host() == "other.org"
        assert sample_request.get_header_line("Host") == "example.com"

    def test_with_uri_preserve_host(self, sample_request: Request):
        """Test that preserve_host keeps an existing Host header."""
        request = sample_request.with_uri("http://other.org/", preserve_host=True)
        assert request.get_header_line("Host") == "example.com"

    def test_preserve_host_without_existing_host(self):
        """Test that preserve_host still fills in a missing Host header."""
        request = Request("GET", "/").with_uri("http://other.org/", preserve_host=True)
        assert request.get_header_line("Host") == "other.org"

    def test_with_uri_without_host(self, sample_request: Request):
        """Test that a host-less URI leaves Host alone."""
        request = sample_request.with_uri("/relative")
        assert request.get_header_line("Host") == "example.com"

    def test_header_mutators_return_new_request(self, sample_request: Request):
        """Test that header changes produce a new Request."""
        request = sample_request.with_header("X-Foo", "bar")

        assert request.get_header_line("x-foo") == "bar"
        assert not sample_request.has_header("X-Foo")
        assert isinstance(request, Request)


class TestRequestPredicates:
    """Tests for convenience predicates."""

    @pytest.mark.parametrize("method,predicate", [
        ("GET", "is_get"),
        ("post", "is_post"),
        ("PUT", "is_put"),
        ("DELETE", "is_delete"),
        ("PATCH", "is_patch"),
        ("HEAD", "is_head"),
        ("options", "is_options"),
    ])
    def test_method_predicates(self, method, predicate):
        """Test that predicates ignore the method's case."""
        assert getattr(Request(method, "/"), predicate)()

    def test_predicates_are_exclusive(self):
        """Test that only the matching predicate is true."""
        request = Request("POST", "/")

        assert not request.is_get()
        assert not request.is_put()
        assert not request.is_options()

    def test_is_https(self):
        """Test detection of the https scheme."""
        assert Request("GET", "https://example.com/").is_https()
        assert not Request("GET", "http://example.com/").is_https()

    def test_is_ajax(self, sample_request: Request):
        """Test detection of X-Requested-With: XMLHttpRequest."""
        assert not sample_request.is_ajax()
        assert sample_request.with_header("X-Requested-With", "XMLHttpRequest").is_ajax()


class TestRequestAttributes:
    """Tests for request attributes."""

    def test_attributes(self, sample_request: Request):
        """Test setting an attribute on a new request."""
        request = sample_request.with_attribute("route", "users.show")

        assert request.get_attribute("route") == "users.show"
        assert request.get_attributes() == {"route": "users.show"}
        assert sample_request.get_attributes() == {}

    def test_attribute_default(self, sample_request: Request):
        """Test the default returned for a missing attribute."""
        assert sample_request.get_attribute("missing") is None
        assert sample_request.get_attribute("missing", 7) == 7

    def test_without_attribute(self, sample_request: Request):
        """Test removing present and missing attributes."""
        request = sample_request.with_attribute("a", 1).with_attribute("b", 2)
        removed = request.without_attribute("a")

        assert removed.get_attributes() == {"b": 2}
        assert request.get_attributes() == {"a": 1, "b": 2}
        assert removed.without_attribute("missing").get_attributes() == {"b": 2}

    def test_get_attributes_is_a_copy(self, sample_request: Request):
        """Test that the returned dict cannot change the request."""
        sample_request.get_attributes()["x"] = 1
        assert sample_request.get_attributes() == {}


class TestServerRequestParams:
    """Tests for server, cookie and query params."""

    def test_query_params_from_uri(self, sample_server_request: ServerRequest):
        """Test that query params default to the decoded URI query."""
        assert sample_server_request.get_query_params() == {"test": "123"}

    def test_nested_query_params_from_uri(self):
        """Test that bracketed query keys nest."""
        request = ServerRequest("GET", "/?filter[status]=open&filter[tags][]=bug")
        assert request.get_query_params() == {"filter": {"status": "open", "tags": ["bug"]}}

    def test_explicit_query_params(self):
        """Test that supplied query params win over the URI."""
        request = ServerRequest("GET", "/?a=1", query_params={"b": "2"})
        assert request.get_query_params() == {"b": "2"}

    def test_server_params(self):
        """Test that server params are exposed read-only."""
        request = ServerRequest("GET", "/", server_params={"REMOTE_ADDR": "127.0.0.1"})
        assert request.get_server_params() == {"REMOTE_ADDR": "127.0.0.1"}

    def test_with_cookie_params(self, sample_server_request: ServerRequest):
        """Test replacing cookies on a new request."""
        request = sample_server_request.with_cookie_params({"session": "abc"})

        assert request.get_cookie_params() == {"session": "abc"}
        assert sample_server_request.get_cookie_params() == {}

    def test_with_query_params_keeps_uri(self, sample_server_request: ServerRequest):
        """Test that replacing query params does not rewrite the URI."""
        request = sample_server_request.with_query_params({"page": "2"})

        assert request.get_query_params() == {"page": "2"}
        assert request.get_uri().get_query() == "test=123"

    def test_params_must_be_mappings(self, sample_server_request: ServerRequest):
        """Test that params given as other types are rejected."""
        with pytest.raises(InvalidTypeError):
            sample_server_request.with_cookie_params([("a", "b")])
        with pytest.raises(InvalidTypeError):
            ServerRequest("GET", "/", server_params="REMOTE_ADDR=1")

    def test_mutators_keep_subclass(self, sample_server_request: ServerRequest):
        """Test that inherited with_*() methods return a ServerRequest."""
        request = sample_server_request.with_method("POST").with_attribute("a", 1)

        assert isinstance(request, ServerRequest)
        assert request.get_query_params() == {"test": "123"}


class TestServerRequestUploadedFiles:
    """Tests for the uploaded files tree."""

    def test_default_is_empty(self, sample_server_request: ServerRequest):
        """Test that a request has no uploads by default."""
        assert sample_server_request.get_uploaded_files() == {}

    def test_nested_tree(self, sample_server_request: ServerRequest, uploaded_file: UploadedFile):
        """Test dict and list nodes with UploadedFile leaves."""
        files = {"avatar": uploaded_file, "docs": [uploaded_file, {"x": uploaded_file}]}
        request = sample_server_request.with_uploaded_files(files)

        assert request.get_uploaded_files()["avatar"] is uploaded_file
        assert request.get_uploaded_files()["docs"][1]["x"] is uploaded_file
        assert sample_server_request.get_uploaded_files() == {}

    def test_invalid_leaf(self, sample_server_request: ServerRequest):
        """Test that non-UploadedFile leaves are refused."""
        with pytest.raises(InvalidTypeError):
            sample_server_request.with_uploaded_files({"avatar": "not a file"})
        with pytest.raises(InvalidTypeError):
            sample_server_request.with_uploaded_files({"docs": [1]})

    def test_invalid_root(self, sample_server_request: ServerRequest):
        """Test that the tree root must be a dict or list."""
        with pytest.raises(InvalidTypeError):
            sample_server_request.with_uploaded_files("file")


class TestServerRequestParsedBody:
    """Tests for parsed body access."""

    def test_json_body(self, json_server_request: ServerRequest):
        """Test decoding an application/json body."""
        assert json_server_request.get_parsed_body() == {"title": "value", "array": [1, 2]}

    def test_json_suffix_media_type(self):
        """Test that "+json" media types with parameters are decoded."""
        request = ServerRequest(
            "POST", "/", {"Content-Type": "application/vnd.api+json; charset=utf-8"}, "[1, 2]"
        )
        assert request.get_parsed_body() == [1, 2]

    def test_invalid_json(self):
        """Test that an undecodable JSON body gives None."""
        request = ServerRequest("POST", "/", {"Content-Type": "application/json"}, "{broken")
        assert request.get_parsed_body() is None

    def test_json_scalar_is_not_a_parsed_body(self):
        """Test that a scalar JSON document gives None."""
        request = ServerRequest("POST", "/", {"Content-Type": "application/json"}, "42")
        assert request.get_parsed_body() is None

    def test_form_body(self):
        """Test decoding a form body, including bracketed keys."""
        request = ServerRequest(
            "POST",
            "/",
            {"Content-Type": "application/x-www-form-urlencoded"},
            "title=Hello&tags[]=a&tags[]=b&user[name]=bob&user[age]=3",
        )
        assert request.get_parsed_body() == {
            "title": "Hello",
            "tags": ["a", "b"],
            "user": {"name": "bob", "age": "3"},
        }

    def test_other_media_type(self):
        """Test that unknown media types are not decoded."""
        request = ServerRequest("POST", "/", {"Content-Type": "text/plain"}, "hello")
        assert request.get_parsed_body() is None

    def test_body_read_position_does_not_matter(self, json_server_request: ServerRequest):
        """Test that decoding reads the body from the start."""
        json_server_request.get_body().read(5)
        assert json_server_request.get_parsed_body()["title"] == "value"

    def test_with_parsed_body(self, json_server_request: ServerRequest):
        """Test that an explicit parsed body replaces decoding."""
        request = json_server_request.with_parsed_body({"override": True})

        assert request.get_parsed_body() == {"override": True}
        assert json_server_request.get_parsed_body() == {"title": "value", "array": [1, 2]}

    def test_explicit_none(self, json_server_request: ServerRequest):
        """Test that an explicit None disables body decoding."""
        assert json_server_request.with_parsed_body(None).get_parsed_body() is None

    def test_object_parsed_body(self, sample_server_request: ServerRequest):
        """Test that arbitrary objects are accepted as parsed body."""
        class Payload:
            pass

        payload = Payload()
        assert sample_server_request.with_parsed_body(payload).get_parsed_body() is payload

    def test_scalar_parsed_body(self, sample_server_request: ServerRequest):
        """Test that scalars are rejected as parsed body."""
        with pytest.raises(InvalidTypeError):
            sample_server_request.with_parsed_body("raw")

    def test_decoding_follows_new_body(self, json_server_request: ServerRequest):
        """Test that a cached decode is not carried over to a new body."""
        assert json_server_request.get_parsed_body()["title"] == "value"

        request = json_server_request.with_body(io.BytesIO(b'{"title": "other"}'))
        assert request.get_parsed_body() == {"title": "other"}
