"""Cross-Origin Resource Sharing policy, builder, errors and middleware."""

__all__ = ["builder", "errors", "inner", "middleware"]