"""Outcome variant threaded through retry/timeout composition."""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class OutcomeStatus(str, Enum):
    """How a bounded provider call finished."""

    OK = "ok"
    TIMED_OUT = "timed_out"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a bounded call.

    ``value`` is always usable: the task result on success and the fallback
    otherwise, so a falsy success is never confused with "no result".
    """

    status: OutcomeStatus
    value: T
    elapsed_ms: int = 0
    error: BaseException | None = None

    @classmethod
    def success(cls, value: T, elapsed_ms: int = 0) -> "Outcome[T]":
        return cls(OutcomeStatus.OK, value, elapsed_ms)

    @classmethod
    def timeout(cls, fallback: T, elapsed_ms: int = 0) -> "Outcome[T]":
        return cls(OutcomeStatus.TIMED_OUT, fallback, elapsed_ms)

    @classmethod
    def failure(
        cls, error: BaseException, fallback: T, elapsed_ms: int = 0
    ) -> "Outcome[T]":
        return cls(OutcomeStatus.FAILED, fallback, elapsed_ms, error)

    @property
    def ok(self) -> bool:
        return self.status is OutcomeStatus.OK

    @property
    def timed_out(self) -> bool:
        return self.status is OutcomeStatus.TIMED_OUT

    @property
    def failed(self) -> bool:
        return self.status is OutcomeStatus.FAILED
