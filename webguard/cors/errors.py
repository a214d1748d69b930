"""Errors raised while processing CORS guarded requests."""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus

from webguard.http import Response


class CorsErrorKind(Enum):
    """The ways a CORS check can fail; each value is its message."""

    WILDCARD_ORIGIN = "`allowed_origin` argument must not be wildcard (`*`)"
    MISSING_ORIGIN = "Request header `Origin` is required but was not provided"
    MISSING_REQUEST_METHOD = (
        "Request header `Access-Control-Request-Method` is required but is missing"
    )
    BAD_REQUEST_METHOD = "Request header `Access-Control-Request-Method` has an invalid value"
    BAD_REQUEST_HEADERS = "Request header `Access-Control-Request-Headers` has an invalid value"
    ORIGIN_NOT_ALLOWED = "Origin is not allowed to make this request"
    METHOD_NOT_ALLOWED = "Requested method is not allowed"
    HEADERS_NOT_ALLOWED = "One or more request headers are not allowed"


class CorsError(Exception):
    """A CORS check failed; answered with 400 Bad Request."""

    status_code = HTTPStatus.BAD_REQUEST

    def __init__(self, kind: CorsErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind

    def __str__(self) -> str:
        return self.kind.value

    def error_response(self) -> Response:
        """Build the response sent to the client for this error."""
        return Response(status=int(self.status_code), body=str(self).encode())


class CorsConfigError(ValueError):
    """Raised when a CORS configuration cannot be turned into middleware."""