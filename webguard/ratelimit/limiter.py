"""Fixed window rate limiter for arbitrary keys, backed by Redis."""

from __future__ import annotations

import warnings
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Optional

import redis

from webguard.http import Request
from webguard.ratelimit.errors import (
    LimitationError,
    LimitExceededError,
    RedisClientError,
)
from webguard.ratelimit.status import Status, epoch_utc_plus

DEFAULT_REQUEST_LIMIT = 5000
"""Default request limit."""

DEFAULT_PERIOD_SECS = 3600
"""Default period, in seconds."""

DEFAULT_COOKIE_NAME = "sid"
"""Default cookie name."""

KeyFn = Callable[[Request], Optional[str]]


def _as_period(period: timedelta | int | float) -> timedelta:
    value = period if isinstance(period, timedelta) else timedelta(seconds=period)
    if value < timedelta(0):
        raise ValueError(f"period must not be negative: {period!r}")
    return value


def _cookie_key_fn(cookie_name: str) -> KeyFn:
    def resolve(request: Request) -> str | None:
        value = request.cookie(cookie_name)
        return None if value is None else f"{cookie_name}={value}"

    return resolve


@dataclass
class Limiter:
    """Rate limiter counting requests per key in fixed windows."""

    client: Any = field(repr=False)
    limit: int
    period: timedelta
    get_key_fn: KeyFn = field(repr=False)

    @classmethod
    def builder(cls, redis_url: str) -> Builder:
        """Start a builder with the default limit, period and cookie name."""
        return Builder(redis_url)

    def key_for(self, request: Request) -> str | None:
        """Derive the rate limit key for a request, or None to skip limiting."""
        return self.get_key_fn(request)

    def count(self, key: str) -> Status:
        """Consume one unit for ``key``, returning its status.

        Raises LimitExceededError when the limit is exceeded.
        """
        count, reset = self._track(str(key))
        status = Status.from_count(count, self.limit, reset)
        if count > self.limit:
            raise LimitExceededError(status)
        return status

    def _track(self, key: str) -> tuple[int, int]:
        expires = int(self.period.total_seconds())
        try:
            pipe = self.client.pipeline(transaction=True)
            pipe.set(key, 0, ex=expires, nx=True)
            pipe.incr(key)
            pipe.ttl(key)
            _, count, ttl = pipe.execute()
        except redis.RedisError as exc:
            raise RedisClientError(str(exc)) from exc
        if ttl < 0:
            raise RedisClientError(f"key has no expiry (TTL {ttl})")
        return int(count), epoch_utc_plus(int(ttl))


class Builder:
    """Builder for a Limiter."""

    def __init__(self, redis_url: str) -> None:
        self.redis_url = str(redis_url)
        self._limit = DEFAULT_REQUEST_LIMIT
        self._period = timedelta(seconds=DEFAULT_PERIOD_SECS)
        self._get_key_fn: KeyFn | None = None
        self._cookie_name = DEFAULT_COOKIE_NAME

    def limit(self, limit: int) -> Builder:
        """Set the upper limit per period."""
        if limit < 0:
            raise ValueError(f"limit must not be negative: {limit!r}")
        self._limit = limit
        return self

    def period(self, period: timedelta | int | float) -> Builder:
        """Set the window length, as a timedelta or a number of seconds."""
        self._period = _as_period(period)
        return self

    def key_by(self, resolver: KeyFn) -> Builder:
        """Set the function deriving a key from a request; conflicts with cookie_name."""
        self._get_key_fn = resolver
        return self

    def cookie_name(self, cookie_name: str) -> Builder:
        """Set the cookie whose value keys the limit. Prefer key_by."""
        warnings.warn("Prefer `key_by`.", DeprecationWarning, stacklevel=2)
        if self._get_key_fn is not None:
            raise ValueError(
                "This method should not be used in combination of get_key "
                "as they overwrite each other"
            )
        self._cookie_name = cookie_name
        return self

    def build(self) -> Limiter:
        """Finish the builder. Raises RedisClientError if the Redis URL does not parse."""
        get_key = self._get_key_fn or _cookie_key_fn(self._cookie_name)
        try:
            client = redis.Redis.from_url(self.redis_url)
        except ValueError as exc:
            raise RedisClientError("Redis URL did not parse") from exc
        return Limiter(
            client=client, limit=self._limit, period=self._period, get_key_fn=get_key
        )


__all__ = [
    "DEFAULT_COOKIE_NAME",
    "DEFAULT_PERIOD_SECS",
    "DEFAULT_REQUEST_LIMIT",
    "Builder",
    "LimitationError",
    "Limiter",
]