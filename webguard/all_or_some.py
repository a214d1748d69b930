"""A value that is either everything, or some specific collection."""

from __future__ import annotations

from typing import Generic, TypeVar

T = TypeVar("T")

_ALL = object()


class AllOrSome(Generic[T]):
    """Either ``All`` (anything is allowed) or ``Some(value)``. Defaults to ``All``."""

    __slots__ = ("_value",)

    def __init__(self, value: object = _ALL) -> None:
        self._value = value

    @classmethod
    def all(cls) -> AllOrSome[T]:
        return cls()

    @classmethod
    def some(cls, value: T) -> AllOrSome[T]:
        return cls(value)

    def is_all(self) -> bool:
        return self._value is _ALL

    def is_some(self) -> bool:
        return not self.is_all()

    @property
    def value(self) -> T | None:
        """The held value for ``Some``, or ``None`` for ``All``."""
        return None if self.is_all() else self._value  # type: ignore[return-value]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AllOrSome):
            return NotImplemented
        if self.is_all() or other.is_all():
            return self.is_all() and other.is_all()
        return self._value == other._value

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return "AllOrSome.all()" if self.is_all() else f"AllOrSome.some({self._value!r})"