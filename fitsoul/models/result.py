"""Success/failure carrier returned by the auth gateway."""

from dataclasses import dataclass
from typing import Generic, TypeVar

from fitsoul.errors import AuthError, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a value or the AuthError that prevented it.

    Build instances with ``Result.success`` / ``Result.failure``; none of the
    accessors raise.
    """
    _value: T | None = None
    _cause: AuthError | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "Result[T]":
        return cls(_value=value)

    @classmethod
    def failure(cls, cause: AuthError) -> "Result[T]":
        if cause is None:
            raise ValueError("A failed result needs a cause")
        return cls(_cause=cause)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> "Result[T]":
        return cls.failure(AuthError(kind, message))

    @property
    def is_success(self) -> bool:
        return self._cause is None

    @property
    def is_failure(self) -> bool:
        return self._cause is not None

    def value_or_none(self) -> T | None:
        return self._value if self.is_success else None

    def value_or_default(self, default: T) -> T:
        return self._value if self.is_success else default

    def cause_or_none(self) -> AuthError | None:
        return self._cause

    @property
    def error_message(self) -> str | None:
        return self._cause.message if self._cause else None
