"""CORS policy state and the checks applied to requests."""

from __future__ import annotations

import string
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

from webguard.all_or_some import AllOrSome
from webguard.cors.errors import CorsError, CorsErrorKind
from webguard.http import Headers, Request

OriginFn = Callable[[str, Request], bool]

VARY_VALUE = "Origin, Access-Control-Request-Method, Access-Control-Request-Headers"

_TOKEN_CHARS = frozenset("!#$%&'*+-.^_`|~" + string.ascii_letters + string.digits)


def _is_token(value: str) -> bool:
    return bool(value) and all(char in _TOKEN_CHARS for char in value)


def _is_visible_ascii(value: str) -> bool:
    return all(char == "\t" or " " <= char <= "~" for char in value)


def parse_method(value: str) -> str | None:
    """Return the HTTP method named by ``value``, or None if it is not a valid method token."""
    return value if _is_token(value) else None


def is_valid_header_name(name: str) -> bool:
    """Whether ``name`` is a syntactically valid header field name."""
    return _is_token(name)


def join_header_values(values: Iterable[str]) -> str:
    """Join values into one comma separated header value; the values must not be empty."""
    ordered = sorted(values)
    if not ordered:
        raise ValueError("cannot join an empty set of header values")
    return ", ".join(ordered)


def add_vary_header(headers: Headers) -> None:
    """Add the CORS request headers to the response's Vary header."""
    existing = headers.get("vary")
    headers["vary"] = VARY_VALUE if existing is None else f"{existing}, {VARY_VALUE}"


def _empty_some() -> AllOrSome[set[str]]:
    return AllOrSome.some(set())


@dataclass
class CorsPolicy:
    """Resolved CORS settings. The defaults are the restrictive ones."""

    allowed_origins: AllOrSome[set[str]] = field(default_factory=_empty_some)
    allowed_origin_fns: list[OriginFn] = field(default_factory=list)
    allowed_methods: set[str] = field(default_factory=set)
    allowed_methods_baked: str | None = None
    allowed_headers: AllOrSome[set[str]] = field(default_factory=_empty_some)
    allowed_headers_baked: str | None = None
    expose_headers: AllOrSome[set[str]] = field(default_factory=_empty_some)
    expose_headers_baked: str | None = None
    max_age: int | None = None
    preflight: bool = True
    send_wildcard: bool = False
    supports_credentials: bool = False
    vary_header: bool = True
    block_on_origin_mismatch: bool = False

    def validate_origin(self, request: Request) -> bool:
        """Whether the Access-Control-Allow-Origin header should be added.

        Raises CorsError when the origin is missing, or mismatched while blocking is on.
        """
        if self.allowed_origins.is_all():
            if not self.allowed_origin_fns:
                return True
            allowed: set[str] | frozenset[str] = frozenset()
        else:
            allowed = self.allowed_origins.value

        origin = request.headers.get("origin")
        if origin is None:
            raise CorsError(CorsErrorKind.MISSING_ORIGIN)
        if origin in allowed or any(fn(origin, request) for fn in self.allowed_origin_fns):
            return True
        if self.block_on_origin_mismatch:
            raise CorsError(CorsErrorKind.ORIGIN_NOT_ALLOWED)
        return False

    def access_control_allow_origin(self, request: Request) -> str | None:
        """Value for Access-Control-Allow-Origin; call only after the origin is validated."""
        if self.allowed_origins.is_all() and self.send_wildcard:
            return "*"
        return request.headers.get("origin")

    def validate_allowed_method(self, request: Request) -> None:
        """Check the Access-Control-Request-Method header of a preflight request."""
        raw = request.headers.get("access-control-request-method")
        if raw is None:
            raise CorsError(CorsErrorKind.MISSING_REQUEST_METHOD)
        method = parse_method(raw)
        if method is None:
            raise CorsError(CorsErrorKind.BAD_REQUEST_METHOD)
        if method not in self.allowed_methods:
            raise CorsError(CorsErrorKind.METHOD_NOT_ALLOWED)

    def validate_allowed_headers(self, request: Request) -> None:
        """Check the Access-Control-Request-Headers list against the allowed headers."""
        if self.allowed_headers.is_all():
            return
        raw = request.headers.get("access-control-request-headers")
        if raw is None:
            return
        if not _is_visible_ascii(raw):
            raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS)

        requested = set()
        for part in raw.split(","):
            name = part.strip()
            if not is_valid_header_name(name):
                raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS)
            requested.add(name.lower())

        if not requested:
            raise CorsError(CorsErrorKind.BAD_REQUEST_HEADERS)
        if not requested <= self.allowed_headers.value:
            raise CorsError(CorsErrorKind.HEADERS_NOT_ALLOWED)