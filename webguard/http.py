"""Small HTTP request, response and header types used by the middleware."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, MutableMapping
from dataclasses import dataclass, field
from typing import Union

HeaderSource = Union[Mapping[str, str], Iterable[tuple[str, str]], None]


class Headers(MutableMapping):
    """Case-insensitive header map. Names are kept in lower case, in insertion order."""

    __slots__ = ("_data",)

    def __init__(self, items: HeaderSource = None) -> None:
        self._data: dict[str, str] = {}
        if items is None:
            return
        pairs = items.items() if isinstance(items, Mapping) else items
        for name, value in pairs:
            self[name] = value

    def __getitem__(self, name: str) -> str:
        return self._data[name.lower()]

    def __setitem__(self, name: str, value: str) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError(f"invalid header name: {name!r}")
        self._data[name.lower()] = str(value)

    def __delitem__(self, name: str) -> None:
        key = name.lower()
        if key not in self._data:
            raise KeyError(name)
        self._data.pop(key)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def get(self, name: str, default: str | None = None) -> str | None:
        return self._data.get(name.lower(), default)

    def keys(self):
        return self._data.keys()

    def items(self):
        return self._data.items()

    def __repr__(self) -> str:
        return f"Headers({self._data!r})"


def _as_headers(value: Headers | HeaderSource) -> Headers:
    return value if isinstance(value, Headers) else Headers(value)


@dataclass
class Request:
    """An incoming HTTP request as seen by the middleware."""

    method: str = "GET"
    path: str = "/"
    headers: Headers = field(default_factory=Headers)

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)

    def cookie(self, name: str) -> str | None:
        """Return the value of the named cookie from the Cookie header, if present."""
        raw = self.headers.get("cookie")
        if raw is None:
            return None
        for part in raw.split(";"):
            key, sep, value = part.strip().partition("=")
            if sep and key.strip() == name:
                return value.strip()
        return None


@dataclass
class Response:
    """An outgoing HTTP response."""

    status: int = 200
    headers: Headers = field(default_factory=Headers)
    body: bytes = b""

    def __post_init__(self) -> None:
        self.headers = _as_headers(self.headers)
        if isinstance(self.body, str):
            self.body = self.body.encode()