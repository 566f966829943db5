"""
=============================================================================
HEADER COLLECTION
=============================================================================

Immutable, case-insensitive, multi-valued header map shared by every
message type.

    Headers({"Content-Type": "application/json", "Accept": ["a", "b"]})

    ┌────────────────┬────────────────┬──────────────────────┐
    │ lookup key     │ original name  │ values               │
    ├────────────────┼────────────────┼──────────────────────┤
    │ "content-type" │ "Content-Type" │ ("application/json",)│
    │ "accept"       │ "Accept"       │ ("a", "b")           │
    └────────────────┴────────────────┴──────────────────────┘

Lookups fold the name to lowercase; emission uses the original casing.
Every with_*()/without() call returns a new Headers.

=============================================================================
VALIDATION (RFC 7230 §3.2)
=============================================================================

    field-name  = token            "X-Custom" ok, "X Custom" rejected
    field-value = *( VCHAR / SP / HTAB / obs-text )

CR and LF are never allowed in a value, which rules out header injection:

    "value\r\nSet-Cookie: admin=1"  →  MalformedValueError

An empty value is allowed. Surrounding spaces and tabs are trimmed.
Numbers are accepted and converted to strings.

=============================================================================
"""

import re
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from .errors import InvalidTypeError, MalformedValueError


HeaderValue = Union[str, int, float, Iterable[Union[str, int, float]]]

TOKEN_PATTERN = re.compile(r"^[!#$%&'*+.^_`|~0-9A-Za-z-]+$")
INVALID_VALUE_CHARS = re.compile(r"[\x00-\x08\x0a-\x1f\x7f]")


def normalize_name(name: str) -> str:
    """Validate a header name and return it unchanged."""
    if not isinstance(name, str):
        raise InvalidTypeError(f"Header name must be a string, got {type(name).__name__}")
    if not TOKEN_PATTERN.match(name):
        raise MalformedValueError(f"{name!r} is not a valid header name")
    return name


def normalize_values(name: str, value: HeaderValue) -> Tuple[str, ...]:
    """
    Validate one header value (or a list of them) and return a tuple of
    trimmed strings.
    """
    if isinstance(value, (str, int, float)) and not isinstance(value, bool):
        values = [value]
    elif isinstance(value, (list, tuple)):
        if not value:
            raise MalformedValueError(f"Header {name!r} must have at least one value")
        values = list(value)
    else:
        raise InvalidTypeError(
            f"Header {name!r} value must be a string or a list of strings, got {type(value).__name__}"
        )

    normalized = []
    for item in values:
        if isinstance(item, bool) or not isinstance(item, (str, int, float)):
            raise InvalidTypeError(
                f"Header {name!r} value must be a string, got {type(item).__name__}"
            )
        item = str(item).strip(" \t")
        if INVALID_VALUE_CHARS.search(item):
            raise MalformedValueError(f"Header {name!r} contains an invalid value: {item!r}")
        normalized.append(item)
    return tuple(normalized)


class Headers:
    """
    Case-insensitive, ordered, immutable header map.

    Iterating yields the original header names in insertion order.
    """

    __slots__ = ("_entries",)

    def __init__(self, headers: Optional[Mapping[str, HeaderValue]] = None):
        entries: Dict[str, Tuple[str, Tuple[str, ...]]] = {}
        if headers is not None:
            if isinstance(headers, Headers):
                entries = dict(headers._entries)
            elif not isinstance(headers, Mapping):
                raise InvalidTypeError(
                    f"Headers must be a mapping, got {type(headers).__name__}"
                )
            else:
                # fail fast on the first invalid entry
                for name, value in headers.items():
                    name = normalize_name(name)
                    values = normalize_values(name, value)
                    key = name.lower()
                    if key in entries:
                        values = entries[key][1] + values
                    entries[key] = (name, values)
        self._entries = entries

    @classmethod
    def _from_entries(cls, entries: Dict[str, Tuple[str, Tuple[str, ...]]]) -> "Headers":
        headers = cls.__new__(cls)
        headers._entries = entries
        return headers

    # =========================================================================
    # LOOKUP
    # =========================================================================

    def has(self, name: str) -> bool:
        return isinstance(name, str) and name.lower() in self._entries

    def get(self, name: str) -> List[str]:
        """All values for a header, [] when absent."""
        if not isinstance(name, str):
            return []
        entry = self._entries.get(name.lower())
        return list(entry[1]) if entry else []

    def line(self, name: str) -> str:
        """Values joined with ", ", "" when absent."""
        return ", ".join(self.get(name))

    def to_dict(self) -> Dict[str, List[str]]:
        """{original name: [values]} in insertion order."""
        return {name: list(values) for name, values in self._entries.values()}

    # =========================================================================
    # COPY-ON-WRITE
    # =========================================================================

    def with_value(self, name: str, value: HeaderValue, first: bool = False) -> "Headers":
        """
        Replace every value of a header.

        The new casing of the name replaces the old one. With first=True the
        header is moved to the front (used for Host).
        """
        name = normalize_name(name)
        values = normalize_values(name, value)
        key = name.lower()

        entries = dict(self._entries)
        if first:
            entries.pop(key, None)
            entries = {key: (name, values), **entries}
        else:
            entries[key] = (name, values)
        return self._from_entries(entries)

    def with_added(self, name: str, value: HeaderValue) -> "Headers":
        """Append values to a header, keeping the existing ones."""
        name = normalize_name(name)
        values = normalize_values(name, value)
        key = name.lower()

        entries = dict(self._entries)
        if key in entries:
            original, existing = entries[key]
            entries[key] = (original, existing + values)
        else:
            entries[key] = (name, values)
        return self._from_entries(entries)

    def without(self, name: str) -> "Headers":
        if not self.has(name):
            return self
        entries = dict(self._entries)
        del entries[name.lower()]
        return self._from_entries(entries)

    # =========================================================================
    # DUNDER
    # =========================================================================

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __iter__(self) -> Iterator[str]:
        return (name for name, _ in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Headers):
            return NotImplemented
        return self._entries == other._entries

    def __repr__(self) -> str:
        return f"Headers({self.to_dict()!r})"
