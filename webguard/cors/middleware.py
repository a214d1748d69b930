"""Middleware applying a CORS policy to requests and responses."""

from __future__ import annotations

import logging
from collections.abc import Callable

from webguard.cors.errors import CorsError, CorsErrorKind
from webguard.cors.inner import (
    CorsPolicy,
    add_vary_header,
    join_header_values,
    parse_method,
)
from webguard.http import Request, Response

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]


def is_request_preflight(request: Request) -> bool:
    """Whether the request is OPTIONS with a valid Access-Control-Request-Method header."""
    if request.method != "OPTIONS":
        return False
    raw = request.headers.get("access-control-request-method")
    return raw is not None and parse_method(raw) is not None


class CorsMiddleware:
    """Wraps a handler, answering preflight requests and adding CORS response headers."""

    def __init__(self, handler: Handler, policy: CorsPolicy) -> None:
        self.handler = handler
        self.policy = policy

    def __call__(self, request: Request) -> Response:
        policy = self.policy

        if policy.preflight and is_request_preflight(request):
            return self._handle_preflight(request)

        if "origin" not in request.headers:
            origin_allowed = False
        else:
            try:
                origin_allowed = policy.validate_origin(request)
            except CorsError as err:
                logger.debug("origin validation failed; inner handler is not called")
                response = err.error_response()
                if policy.vary_header:
                    add_vary_header(response.headers)
                return response

        response = self.handler(request)
        return self._augment_response(request, origin_allowed, response)

    def _handle_preflight(self, request: Request) -> Response:
        policy = self.policy

        try:
            if not policy.validate_origin(request):
                raise CorsError(CorsErrorKind.ORIGIN_NOT_ALLOWED)
            policy.validate_allowed_method(request)
            policy.validate_allowed_headers(request)
        except CorsError as err:
            return err.error_response()

        response = Response(status=200)
        headers = response.headers

        origin = policy.access_control_allow_origin(request)
        if origin is not None:
            headers["access-control-allow-origin"] = origin

        if policy.allowed_methods_baked is not None:
            headers["access-control-allow-methods"] = policy.allowed_methods_baked

        if policy.allowed_headers_baked is not None:
            headers["access-control-allow-headers"] = policy.allowed_headers_baked
        else:
            requested = request.headers.get("access-control-request-headers")
            if requested is not None:
                headers["access-control-allow-headers"] = requested

        if policy.supports_credentials:
            headers["access-control-allow-credentials"] = "true"

        if policy.max_age is not None:
            headers["access-control-max-age"] = str(policy.max_age)

        if policy.vary_header:
            add_vary_header(headers)

        return response

    def _augment_response(
        self, request: Request, origin_allowed: bool, response: Response
    ) -> Response:
        policy = self.policy
        headers = response.headers

        if origin_allowed:
            origin = policy.access_control_allow_origin(request)
            if origin is not None:
                headers["access-control-allow-origin"] = origin

        if policy.expose_headers_baked is not None:
            logger.debug("exposing selected headers: %s", policy.expose_headers_baked)
            headers["access-control-expose-headers"] = policy.expose_headers_baked
        elif policy.expose_headers.is_all() and len(headers):
            value = join_header_values(set(headers.keys()))
            logger.debug("exposing all response headers: %s", value)
            headers["access-control-expose-headers"] = value

        if policy.supports_credentials:
            headers["access-control-allow-credentials"] = "true"

        if policy.vary_header:
            add_vary_header(headers)

        return response