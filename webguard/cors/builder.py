"""Fluent builder for CORS middleware."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Iterable

from webguard.all_or_some import AllOrSome
from webguard.cors.errors import CorsConfigError, CorsError, CorsErrorKind
from webguard.cors.inner import (
    CorsPolicy,
    OriginFn,
    is_valid_header_name,
    join_header_values,
    parse_method,
)
from webguard.cors.middleware import CorsMiddleware, Handler

logger = logging.getLogger(__name__)

ALL_METHODS = frozenset(
    {"GET", "POST", "PUT", "DELETE", "HEAD", "OPTIONS", "CONNECT", "PATCH", "TRACE"}
)

_URI_FORBIDDEN = frozenset(' "<>\\^`{|}')


def _is_valid_uri(value: str) -> bool:
    if not value or len(value) >= 65535:
        return False
    if any(not ("!" <= char <= "~") or char in _URI_FORBIDDEN for char in value):
        return False
    scheme, sep, rest = value.partition("://")
    if sep:
        if not scheme or not scheme[0].isalpha():
            return False
        if not all(char.isalnum() or char in "+-." for char in scheme):
            return False
        if not rest or rest.startswith("/"):
            return False
    return True


def _copy_all_or_some(value: AllOrSome[set[str]]) -> AllOrSome[set[str]]:
    return AllOrSome.all() if value.is_all() else AllOrSome.some(set(value.value))


class Cors:
    """Builder for CORS middleware.

    ``Cors()`` starts from a restrictive configuration: no allowed origins, methods,
    request headers or exposed headers. Configuration errors are recorded and reported
    when :meth:`wrap` is called; the first error stops further configuration.
    """

    def __init__(self) -> None:
        self._policy = CorsPolicy()
        self._error: Exception | None = None

    @classmethod
    def permissive(cls) -> Cors:
        """A wide-open configuration for development; not meant for production.

        All origins, methods, request headers and exposed headers are allowed,
        credentials are supported, max age is one hour and no wildcard is sent.
        """
        cors = cls()
        cors._policy = CorsPolicy(
            allowed_origins=AllOrSome.all(),
            allowed_methods=set(ALL_METHODS),
            allowed_headers=AllOrSome.all(),
            expose_headers=AllOrSome.all(),
            max_age=3600,
            supports_credentials=True,
        )
        return cors

    def _configurable(self) -> bool:
        return self._error is None

    def allow_any_origin(self) -> Cors:
        """Accept any origin."""
        if self._configurable():
            self._policy.allowed_origins = AllOrSome.all()
        return self

    def allowed_origin(self, origin: str) -> Cors:
        """Add an origin that may make requests; compared case-sensitively."""
        if not self._configurable():
            return self
        if not _is_valid_uri(origin):
            self._error = CorsConfigError(f"invalid origin: {origin!r}")
        elif origin == "*":
            logger.error("Wildcard in `allowed_origin` is not allowed. Use `send_wildcard`.")
            self._error = CorsError(CorsErrorKind.WILDCARD_ORIGIN)
        else:
            if self._policy.allowed_origins.is_all():
                self._policy.allowed_origins = AllOrSome.some(set())
            self._policy.allowed_origins.value.add(origin)
        return self

    def allowed_origin_fn(self, func: OriginFn) -> Cors:
        """Add a predicate ``func(origin, request)`` consulted when no listed origin matches."""
        if self._configurable():
            self._policy.allowed_origin_fns.append(func)
        return self

    def allow_any_method(self) -> Cors:
        """Allow every standard HTTP method."""
        if self._configurable():
            self._policy.allowed_methods = set(ALL_METHODS)
        return self

    def allowed_methods(self, methods: Iterable[str]) -> Cors:
        """Add methods which allowed origins may perform."""
        if not self._configurable():
            return self
        for raw in methods:
            method = parse_method(raw) if isinstance(raw, str) else None
            if method is None:
                self._error = CorsConfigError(f"invalid HTTP method: {raw!r}")
                break
            self._policy.allowed_methods.add(method)
        return self

    def allow_any_header(self) -> Cors:
        """Accept any request header."""
        if self._configurable():
            self._policy.allowed_headers = AllOrSome.all()
        return self

    def _add_allowed_header(self, header: object) -> bool:
        if not isinstance(header, str) or not is_valid_header_name(header):
            self._error = CorsConfigError(f"invalid header name: {header!r}")
            return False
        if self._policy.allowed_headers.is_all():
            self._policy.allowed_headers = AllOrSome.some(set())
        self._policy.allowed_headers.value.add(header.lower())
        return True

    def allowed_header(self, header: str) -> Cors:
        """Add one allowed request header."""
        if self._configurable():
            self._add_allowed_header(header)
        return self

    def allowed_headers(self, headers: Iterable[str]) -> Cors:
        """Add request header names that allowed origins may use."""
        if self._configurable():
            for header in headers:
                if not self._add_allowed_header(header):
                    break
        return self

    def expose_any_header(self) -> Cors:
        """Expose every response header."""
        if self._configurable():
            self._policy.expose_headers = AllOrSome.all()
        return self

    def expose_headers(self, headers: Iterable[str]) -> Cors:
        """Add response headers that are safe to expose to the client."""
        for header in headers:
            if not isinstance(header, str) or not is_valid_header_name(header):
                self._error = CorsConfigError(f"invalid header name: {header!r}")
                break
            if self._configurable():
                if self._policy.expose_headers.is_all():
                    self._policy.expose_headers = AllOrSome.some(set())
                self._policy.expose_headers.value.add(header.lower())
        return self

    def max_age(self, max_age: int | None) -> Cors:
        """Set the preflight cache time in seconds, or None to omit the header."""
        if max_age is not None and (not isinstance(max_age, int) or max_age < 0):
            raise ValueError(f"max_age must be a non-negative integer or None: {max_age!r}")
        if self._configurable():
            self._policy.max_age = max_age
        return self

    def send_wildcard(self) -> Cors:
        """Send ``*`` as the allowed origin when all origins are allowed."""
        if self._configurable():
            self._policy.send_wildcard = True
        return self

    def supports_credentials(self) -> Cors:
        """Send Access-Control-Allow-Credentials: true."""
        if self._configurable():
            self._policy.supports_credentials = True
        return self

    def disable_vary_header(self) -> Cors:
        """Stop adding the CORS request headers to the Vary header."""
        if self._configurable():
            self._policy.vary_header = False
        return self

    def disable_preflight(self) -> Cors:
        """Pass OPTIONS requests through to the handler instead of answering them."""
        if self._configurable():
            self._policy.preflight = False
        return self

    def block_on_origin_mismatch(self, block: bool) -> Cors:
        """Whether to answer 400 immediately when the origin is not allowed."""
        if self._configurable():
            self._policy.block_on_origin_mismatch = bool(block)
        return self

    def wrap(self, handler: Handler) -> CorsMiddleware:
        """Build the middleware around ``handler``.

        Raises CorsConfigError if the configuration is invalid.
        """
        if self._error is not None:
            logger.error("%s", self._error)
            raise CorsConfigError(str(self._error)) from self._error

        source = self._policy
        if (
            source.supports_credentials
            and source.send_wildcard
            and source.allowed_origins.is_all()
        ):
            message = (
                "Illegal combination of CORS options: credentials can not be supported "
                "when all origins are allowed and `send_wildcard` is enabled."
            )
            logger.error(message)
            raise CorsConfigError(message)

        policy = dataclasses.replace(
            source,
            allowed_origins=_copy_all_or_some(source.allowed_origins),
            allowed_origin_fns=list(source.allowed_origin_fns),
            allowed_methods=set(source.allowed_methods),
            allowed_headers=_copy_all_or_some(source.allowed_headers),
            expose_headers=_copy_all_or_some(source.expose_headers),
        )

        if policy.allowed_headers.is_some() and policy.allowed_headers.value:
            policy.allowed_headers_baked = join_header_values(policy.allowed_headers.value)
        if policy.allowed_methods:
            policy.allowed_methods_baked = join_header_values(policy.allowed_methods)
        if policy.expose_headers.is_some() and policy.expose_headers.value:
            policy.expose_headers_baked = join_header_values(policy.expose_headers.value)

        return CorsMiddleware(handler, policy)


OriginPredicate = Callable[[str, object], bool]