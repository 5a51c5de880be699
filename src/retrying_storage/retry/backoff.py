"""
Backoff state and failure classification.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

import httpx

from .config import RetryConfig
from ..exceptions import DeadlineExceededError

T = TypeVar("T")

TIMEOUT_ERRORS: tuple[type[BaseException], ...] = (
    DeadlineExceededError,
    TimeoutError,  # also asyncio.TimeoutError and concurrent.futures.TimeoutError
    httpx.TimeoutException,
)


class FailureKind(str, Enum):
    """How a failed attempt affects the wait before the next one."""

    TIMEOUT = "timeout"  # wait grows after this attempt
    TRANSIENT = "transient"  # wait stays the same


def classify_failure(error: BaseException, *, deferred: bool = False) -> FailureKind:
    """
    Classify a failed attempt.

    Args:
        error: The exception raised by the attempt
        deferred: True when the attempt was awaiting a deferred result, in
            which case an interrupted join counts as a timeout

    Returns:
        FailureKind.TIMEOUT or FailureKind.TRANSIENT
    """
    if isinstance(error, TIMEOUT_ERRORS):
        return FailureKind.TIMEOUT
    if deferred and isinstance(error, InterruptedError):
        return FailureKind.TIMEOUT
    return FailureKind.TRANSIENT


@dataclass(frozen=True)
class AttemptResult(Generic[T]):
    """Outcome of a single invocation of an operation."""

    value: T | None = None
    error: Exception | None = None
    kind: FailureKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "AttemptResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: Exception, *, deferred: bool = False) -> "AttemptResult[T]":
        return cls(error=error, kind=classify_failure(error, deferred=deferred))


@dataclass(frozen=True)
class Retry:
    """Try again after waiting ``wait_ms`` milliseconds."""

    wait_ms: int

    @property
    def wait_seconds(self) -> float:
        return self.wait_ms / 1000


@dataclass(frozen=True)
class Exhausted:
    """The attempt budget is spent; the call must fail."""

    attempts: int


@dataclass
class BackoffState:
    """
    Remaining attempt budget and current wait for one logical call.

    Never share an instance between calls: concurrent calls stay isolated
    only because each builds its own.
    """

    attempts_left: int = 6
    wait_ms: int = 800
    multiplier: int = 3
    failures: int = 0

    @classmethod
    def from_config(cls, config: RetryConfig) -> "BackoffState":
        return cls(
            attempts_left=config.max_attempts,
            wait_ms=config.base_wait_ms,
            multiplier=config.timeout_multiplier,
        )

    def consume_failure(self, is_timeout: bool) -> Retry | Exhausted:
        """
        Record a failed attempt and decide what happens next.

        The returned wait is the value accumulated so far. Growth after a
        timeout only applies to the attempt after the next one.
        """
        self.attempts_left -= 1
        self.failures += 1

        if self.attempts_left <= 0:
            return Exhausted(attempts=self.failures)

        wait_ms = self.wait_ms
        if is_timeout:
            self.wait_ms = self.wait_ms * self.multiplier
        return Retry(wait_ms=wait_ms)
