"""Failure modes of the rate limiter."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from webguard.ratelimit.status import Status


class LimitationError(Exception):
    """Base class of rate limiter errors."""

    message = "Rate limiter error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail if detail is not None else self.message)
        self.detail = detail

    def __str__(self) -> str:
        if self.detail is None:
            return self.message
        return f"{self.message}: {self.detail}"


class RedisClientError(LimitationError):
    """The Redis client failed to connect or run a query."""

    message = "Redis client failed to connect or run a query"


class LimitExceededError(LimitationError):
    """The limit is exceeded for a key; carries the key's status."""

    message = "Limit is exceeded for a key"

    def __init__(self, status: Status) -> None:
        super().__init__()
        self.status = status


class TimeConversionError(LimitationError):
    """A time conversion failed."""

    message = "Time conversion failed"


class OtherLimitationError(LimitationError):
    """A generic error with a description."""

    message = "Generic error"