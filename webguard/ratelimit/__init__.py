"""Fixed-window rate limiting backed by Redis: limiter, status, errors and middleware."""

__all__ = ["errors", "limiter", "middleware", "status"]