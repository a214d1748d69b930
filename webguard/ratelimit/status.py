"""Rate limit status reports and reset time calculation."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import timedelta

from webguard.ratelimit.errors import OtherLimitationError

# Largest span, in whole seconds, that a signed 64-bit millisecond count can hold.
_MAX_SECONDS = (2**63 - 1) // 1000

_OUT_OF_RANGE = "Source duration value is out of range for the target type"


@dataclass(frozen=True)
class Status:
    """Limit status for a key.

    ``limit`` is the maximum number of requests allowed per period, ``remaining``
    how many are left in the current period and ``reset_epoch_utc`` a UNIX
    timestamp (UTC) of roughly when the next period begins.
    """

    limit: int
    remaining: int
    reset_epoch_utc: int

    @classmethod
    def from_count(cls, count: int, limit: int, reset_epoch_utc: int) -> Status:
        """Build a status from the number of units consumed so far."""
        remaining = 0 if count >= limit else limit - count
        return cls(limit=limit, remaining=remaining, reset_epoch_utc=reset_epoch_utc)


def epoch_utc_plus(seconds: int | float | timedelta) -> int:
    """Return the current UNIX time plus ``seconds``, rounded to the nearest second.

    Raises OtherLimitationError when the span is negative or too large.
    """
    if isinstance(seconds, timedelta):
        span = seconds.total_seconds()
    else:
        span = seconds
    if span < 0 or span > _MAX_SECONDS:
        raise OtherLimitationError(_OUT_OF_RANGE)

    whole, nanos = divmod(time.time_ns(), 1_000_000_000)
    span_whole = int(span)
    span_nanos = round((span - span_whole) * 1_000_000_000)
    nanos += span_nanos
    whole += span_whole + nanos // 1_000_000_000
    nanos %= 1_000_000_000
    if nanos >= 500_000_000:
        whole += 1
    return max(whole, 0)