"""
Unit tests for the header collection.
"""

import pytest

from httpmodel.http.errors import InvalidTypeError, MalformedValueError
from httpmodel.http.headers import Headers, normalize_values


class TestHeadersConstruction:
    """Tests for building a Headers map."""

    def test_from_mapping(self):
        """Test building headers from a dict."""
        headers = Headers({"Content-Type": "text/html", "Accept": ["a", "b"]})

        assert headers.get("content-type") == ["text/html"]
        assert headers.get("ACCEPT") == ["a", "b"]
        assert len(headers) == 2
        assert list(headers) == ["Content-Type", "Accept"]

    def test_duplicate_names_are_merged(self):
        """Test that names differing only in case are combined."""
        headers = Headers({"X-Foo": "a", "x-foo": "b"})

        assert headers.get("X-Foo") == ["a", "b"]
        assert list(headers) == ["x-foo"]

    def test_copy_from_headers(self):
        """Test building headers from another Headers."""
        original = Headers({"A": "1"})
        assert Headers(original) == original

    def test_not_a_mapping(self):
        """Test that non-mapping input is rejected."""
        with pytest.raises(InvalidTypeError):
            Headers([("A", "1")])

    def test_numbers_become_strings(self):
        """Test that numeric values are converted to strings."""
        headers = Headers({"Content-Length": 42, "X-Ratio": 0.5})

        assert headers.get("Content-Length") == ["42"]
        assert headers.get("X-Ratio") == ["0.5"]

    def test_values_are_trimmed(self):
        """Test that surrounding spaces and tabs are removed."""
        assert Headers({"X-Foo": " \tvalue \t"}).get("X-Foo") == ["value"]

    def test_empty_value_allowed(self):
        """Test that an empty value is a valid header."""
        assert Headers({"X-Empty": ""}).line("X-Empty") == ""
        assert Headers({"X-Empty": ""}).has("X-Empty")


class TestHeaderValidation:
    """Tests for name and value validation."""

    @pytest.mark.parametrize("name", ["X Foo", "X-Foo:", "", "Ünicode"])
    def test_invalid_names(self, name):
        """Test that names which are not tokens are rejected."""
        with pytest.raises(MalformedValueError):
            Headers({name: "a"})

    @pytest.mark.parametrize("value", ["a\rb", "a\nb", "a\x00b", "a\x7fb"])
    def test_invalid_values(self, value):
        """Test that control characters in values are rejected."""
        with pytest.raises(MalformedValueError):
            Headers({"X-Foo": value})

    def test_tab_inside_value_is_allowed(self):
        """Test that an inner tab is a valid value character."""
        assert normalize_values("X-Foo", "a\tb") == ("a\tb",)

    def test_empty_list(self):
        """Test that a header needs at least one value."""
        with pytest.raises(MalformedValueError):
            Headers({"X-Foo": []})

    @pytest.mark.parametrize("value", [None, True, {"a": 1}, [None]])
    def test_invalid_value_types(self, value):
        """Test that unsupported value types are rejected."""
        with pytest.raises(InvalidTypeError):
            Headers({"X-Foo": value})


class TestHeadersCopyOnWrite:
    """Tests for with_value/with_added/without."""

    def test_with_value(self):
        """Test replacing all values on a new Headers."""
        headers = Headers({"X-Foo": "a"})
        changed = headers.with_value("X-FOO", ["b", "c"])

        assert changed.to_dict() == {"X-FOO": ["b", "c"]}
        assert headers.to_dict() == {"X-Foo": ["a"]}

    def test_with_value_first(self):
        """Test moving a header to the front."""
        headers = Headers({"Accept": "*/*", "Host": "old"}).with_value("Host", "new", first=True)
        assert list(headers) == ["Host", "Accept"]

    def test_with_added(self):
        """Test appending to an existing header."""
        headers = Headers({"X-Foo": "a"}).with_added("x-foo", "b")

        assert headers.to_dict() == {"X-Foo": ["a", "b"]}
        assert headers.line("X-Foo") == "a, b"

    def test_with_added_new_header(self):
        """Test appending to a header that is absent."""
        assert Headers().with_added("X-New", "1").to_dict() == {"X-New": ["1"]}

    def test_without(self):
        """Test removing a header."""
        headers = Headers({"X-Foo": "a", "X-Bar": "b"})

        assert headers.without("x-foo").to_dict() == {"X-Bar": ["b"]}
        assert headers.without("X-Missing") is headers

    def test_contains(self):
        """Test the case-insensitive "in" operator."""
        headers = Headers({"X-Foo": "a"})

        assert "x-foo" in headers
        assert "X-Bar" not in headers
        assert 42 not in headers
