"""
Retry logic for storage calls.

A fixed attempt budget with a wait that grows only after timeouts.
"""

from .config import RetryConfig
from .backoff import (
    AttemptResult,
    BackoffState,
    Exhausted,
    FailureKind,
    Retry,
    classify_failure,
)
from .handler import (
    RetryingHandler,
    execute,
    execute_async,
    with_retry,
    async_with_retry,
)

__all__ = [
    "RetryConfig",
    "AttemptResult",
    "BackoffState",
    "Exhausted",
    "FailureKind",
    "Retry",
    "classify_failure",
    "RetryingHandler",
    "execute",
    "execute_async",
    "with_retry",
    "async_with_retry",
]
