"""Optional and success/failure containers used across the store API.

Lookups hand back ``Maybe`` and mutations hand back ``Either``, so callers
branch on the result instead of catching exceptions.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, TypeVar

T = TypeVar("T")
U = TypeVar("U")
E = TypeVar("E")


class Maybe(ABC, Generic[T]):
    @staticmethod
    def of(value: Optional[T]) -> "Maybe[T]":
        return Nothing() if value is None else Some(value)

    @abstractmethod
    def map(self, f: Callable[[T], U]) -> "Maybe[U]": ...

    @abstractmethod
    def get_or_else(self, default: Any) -> Any: ...

    @abstractmethod
    def is_some(self) -> bool: ...

    def is_none(self) -> bool:
        return not self.is_some()


@dataclass(frozen=True)
class Some(Maybe[T]):
    value: T

    def map(self, f):
        return Maybe.of(f(self.value))

    def get_or_else(self, default):
        return self.value

    def is_some(self) -> bool:
        return True


@dataclass(frozen=True)
class Nothing(Maybe[T]):
    def map(self, f):
        return self

    def get_or_else(self, default):
        return default

    def is_some(self) -> bool:
        return False


class Either(ABC, Generic[E, T]):
    """``Right`` holds a result, ``Left`` holds the error that prevented it."""

    @abstractmethod
    def fold(self, on_left: Callable[[E], U], on_right: Callable[[T], U]) -> U: ...

    def map(self, f: Callable[[T], U]) -> "Either[E, U]":
        return self.fold(lambda _: self, lambda v: Right(f(v)))

    def bind(self, f: Callable[[T], "Either[E, U]"]) -> "Either[E, U]":
        return self.fold(lambda _: self, f)

    def get_or_else(self, default: Any) -> Any:
        return self.fold(lambda _: default, lambda v: v)

    def is_right(self) -> bool:
        return self.fold(lambda _: False, lambda _: True)

    def is_left(self) -> bool:
        return not self.is_right()


@dataclass(frozen=True)
class Right(Either[E, T]):
    value: T

    def fold(self, on_left, on_right):
        return on_right(self.value)

    def get_error(self):
        raise ValueError(f"{self!r} carries no error")


@dataclass(frozen=True)
class Left(Either[E, T]):
    error: E

    @property
    def value(self):
        raise ValueError(f"no value: {self.error}")

    def fold(self, on_left, on_right):
        return on_left(self.error)

    def get_error(self) -> E:
        return self.error
