"""Explicit success/failure results for sync operations.

The fetcher, reconciler and cycle return :class:`Success` or
:class:`Failure` instead of raising, and callers branch on
:attr:`Failure.kind`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    TRANSIENT = "transient"
    MALFORMED = "malformed"
    CANCELLED = "cancelled"
    STORE = "store"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    detail: str = ""
    status_code: int | None = None

    @property
    def ok(self) -> bool:
        return False

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


Result = Union[Success[T], Failure]

CANCELLED = Failure(FailureKind.CANCELLED)


__all__ = ["CANCELLED", "Failure", "FailureKind", "Result", "Success"]
