"""CORS controls and Redis-backed fixed-window rate limiting as request middleware."""

__version__ = "0.1.0"

__all__ = ["all_or_some", "cors", "demo", "http", "ratelimit"]