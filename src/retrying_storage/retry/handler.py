"""
Retry executor for storage operations.

Both modes run the same state machine: invoke, classify the failure, ask a
per-call BackoffState what to do, then sleep or give up.
"""

import asyncio
import functools
import logging
import threading
import time
from typing import Awaitable, Callable, ParamSpec, TypeVar

from .backoff import AttemptResult, BackoffState, Exhausted, FailureKind
from .config import RetryConfig
from ..clients.base import BaseAsyncStorageClient, BaseStorageClient
from ..exceptions import NoMoreRetriesError, RetryCancelledError

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")

OnRetry = Callable[[int, Exception, int], None]


def _attempt(call: Callable[[], T]) -> AttemptResult[T]:
    try:
        return AttemptResult.success(call())
    except Exception as e:
        return AttemptResult.failure(e)


async def _attempt_async(call: Callable[[], Awaitable[T]]) -> AttemptResult[T]:
    try:
        return AttemptResult.success(await call())
    except Exception as e:
        return AttemptResult.failure(e, deferred=True)


def _next_wait(
    state: BackoffState,
    attempt: AttemptResult,
    label: str,
    on_retry: OnRetry | None,
) -> float:
    """Record a failed attempt; return the wait in seconds or raise NoMoreRetriesError."""
    error = attempt.error
    outcome = state.consume_failure(attempt.kind is FailureKind.TIMEOUT)

    if isinstance(outcome, Exhausted):
        logger.error(
            f"PERF - No more tries for {label} after {outcome.attempts} attempts: {error}",
            exc_info=error,
        )
        raise NoMoreRetriesError(error, outcome.attempts) from error

    if on_retry:
        on_retry(state.failures, error, outcome.wait_ms)
    else:
        logger.warning(
            f"{label} failed ({attempt.kind.value}) on attempt {state.failures}, "
            f"{state.attempts_left} left, waiting {outcome.wait_ms}ms: {error}"
        )
    return outcome.wait_seconds


def execute(
    call: Callable[[], T],
    config: RetryConfig | None = None,
    *,
    sleep: Callable[[float], object] | None = None,
    on_retry: OnRetry | None = None,
    cancel_event: threading.Event | None = None,
    label: str = "storage call",
) -> T:
    """
    Run a blocking call until it succeeds or the attempt budget is spent.

    Args:
        call: Zero-argument callable performing one attempt
        config: Retry configuration (default: RetryConfig())
        sleep: Sleep function taking seconds (default: time.sleep, or
            cancel_event.wait when a cancel event is given)
        on_retry: Optional callback(attempt, exception, wait_ms) called before each retry
        cancel_event: When set, the call stops between attempts with RetryCancelledError.
            The event is checked before and after each wait; an injected
            ``sleep`` other than ``cancel_event.wait`` is not cut short by it.
        label: Name used in log records

    Returns:
        The first successful result of ``call``

    Raises:
        NoMoreRetriesError: Every attempt failed
        RetryCancelledError: cancel_event was set between attempts
    """
    if sleep is None:
        sleep = cancel_event.wait if cancel_event is not None else time.sleep
    state = BackoffState.from_config(config or RetryConfig())

    def check_cancelled(error: Exception) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RetryCancelledError(
                f"{label} cancelled after {state.failures} failed attempts",
                last_error=error,
            ) from error

    while True:
        attempt = _attempt(call)
        if attempt.ok:
            return attempt.value

        wait = _next_wait(state, attempt, label, on_retry)
        check_cancelled(attempt.error)
        try:
            sleep(wait)
        except InterruptedError:
            logger.debug(f"{label}: sleep interrupted, retrying now")
        check_cancelled(attempt.error)


async def execute_async(
    call: Callable[[], Awaitable[T]],
    config: RetryConfig | None = None,
    *,
    sleep: Callable[[float], Awaitable[object]] | None = None,
    on_retry: OnRetry | None = None,
    label: str = "storage call",
) -> T:
    """
    Async version of execute().

    Awaiting ``call()`` is the join on the deferred result, so failures
    surfacing on completion are retried like invocation failures.
    Cancelling the surrounding task aborts the join or the sleep at once.
    """
    if sleep is None:
        sleep = asyncio.sleep
    state = BackoffState.from_config(config or RetryConfig())

    while True:
        attempt = await _attempt_async(call)
        if attempt.ok:
            return attempt.value

        wait = _next_wait(state, attempt, label, on_retry)
        try:
            await sleep(wait)
        except InterruptedError:
            logger.debug(f"{label}: sleep interrupted, retrying now")


def with_retry(
    config: RetryConfig | None = None,
    on_retry: OnRetry | None = None,
    sleep: Callable[[float], object] | None = None,
) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for synchronous functions with retry logic.

    Args:
        config: Retry configuration (default: RetryConfig())
        on_retry: Optional callback(attempt, exception, wait_ms) called before each retry
        sleep: Sleep function taking seconds (default: time.sleep)

    Returns:
        Decorated function with retry behavior
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return execute(
                functools.partial(func, *args, **kwargs),
                config,
                sleep=sleep,
                on_retry=on_retry,
                label=func.__qualname__,
            )

        return wrapper

    return decorator


def async_with_retry(
    config: RetryConfig | None = None,
    on_retry: OnRetry | None = None,
    sleep: Callable[[float], Awaitable[object]] | None = None,
) -> Callable[[Callable[P, Awaitable[T]]], Callable[P, Awaitable[T]]]:
    """
    Decorator for async functions with retry logic.

    Args:
        config: Retry configuration (default: RetryConfig())
        on_retry: Optional callback(attempt, exception, wait_ms) called before each retry
        sleep: Async sleep function taking seconds (default: asyncio.sleep)

    Returns:
        Decorated async function with retry behavior
    """

    def decorator(func: Callable[P, Awaitable[T]]) -> Callable[P, Awaitable[T]]:
        @functools.wraps(func)
        async def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            return await execute_async(
                functools.partial(func, *args, **kwargs),
                config,
                sleep=sleep,
                on_retry=on_retry,
                label=func.__qualname__,
            )

        return wrapper

    return decorator


class RetryingHandler:
    """
    Runs storage operations against injected clients with retry and backoff.

    The handler keeps no per-call state, so one instance can serve any
    number of concurrent callers.
    """

    def __init__(
        self,
        client: BaseStorageClient | None = None,
        async_client: BaseAsyncStorageClient | None = None,
        config: RetryConfig | None = None,
        *,
        sleep: Callable[[float], object] | None = None,
        async_sleep: Callable[[float], Awaitable[object]] | None = None,
        on_retry: OnRetry | None = None,
    ):
        """
        Initialize the handler.

        Args:
            client: Blocking storage client used by run()
            async_client: Deferred storage client used by run_async()
            config: Retry configuration
            sleep: Sleep function for blocking mode, in seconds
            async_sleep: Sleep coroutine function for deferred mode, in seconds
            on_retry: Optional callback(attempt, exception, wait_ms) called before each retry
        """
        self.client = client
        self.async_client = async_client
        self.config = config or RetryConfig()
        self.on_retry = on_retry
        self._sleep = sleep
        self._async_sleep = async_sleep

    def run(
        self,
        operation: Callable[[BaseStorageClient], T],
        *,
        name: str = "storage call",
        cancel_event: threading.Event | None = None,
    ) -> T:
        """
        Invoke ``operation(client)`` until it succeeds or the budget is spent.

        ``cancel_event`` belongs to this call only; setting it stops this call
        between attempts and leaves every other call on the handler alone.
        """
        if self.client is None:
            raise RuntimeError("RetryingHandler has no blocking storage client")
        return execute(
            functools.partial(operation, self.client),
            self.config,
            sleep=self._sleep,
            on_retry=self.on_retry,
            cancel_event=cancel_event,
            label=name,
        )

    async def run_async(
        self,
        operation: Callable[[BaseAsyncStorageClient], Awaitable[T]],
        *,
        name: str = "storage call",
    ) -> T:
        """Await ``operation(async_client)`` until it succeeds or the budget is spent."""
        if self.async_client is None:
            raise RuntimeError("RetryingHandler has no async storage client")
        return await execute_async(
            functools.partial(operation, self.async_client),
            self.config,
            sleep=self._async_sleep,
            on_retry=self.on_retry,
            label=name,
        )
