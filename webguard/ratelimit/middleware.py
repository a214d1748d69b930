"""Middleware enforcing a rate limit on requests."""

from __future__ import annotations

import logging
from collections.abc import Callable
from http import HTTPStatus

from webguard.http import Request, Response
from webguard.ratelimit.errors import (
    LimitationError,
    LimitExceededError,
    RedisClientError,
)
from webguard.ratelimit.limiter import Limiter

logger = logging.getLogger(__name__)

Handler = Callable[[Request], Response]


class RateLimiter:
    """Wraps a handler, answering 429 once a key's limit is exceeded.

    Requests for which the limiter derives no key are passed through unchecked.
    """

    def __init__(self, handler: Handler, limiter: Limiter) -> None:
        self.handler = handler
        self.limiter = limiter

    def __call__(self, request: Request) -> Response:
        key = self.limiter.key_for(request)
        if key is None:
            return self.handler(request)

        try:
            self.limiter.count(key)
        except LimitExceededError:
            logger.warning("Rate limit exceed error for %s", key)
            return Response(status=int(HTTPStatus.TOO_MANY_REQUESTS))
        except RedisClientError as err:
            logger.error("Client request failed, redis error: %s", err)
            return Response(status=int(HTTPStatus.INTERNAL_SERVER_ERROR))
        except LimitationError as err:
            logger.error("Count failed: %s", err)
            return Response(status=int(HTTPStatus.INTERNAL_SERVER_ERROR))

        return self.handler(request)