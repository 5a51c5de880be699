"""
Retrying Storage - resilient calls against a flaky storage backend.

Runs storage operations with a bounded attempt budget and a backoff that
grows after timeouts, in blocking and async flavors.
"""

from .clients import (
    BaseStorageClient,
    BaseAsyncStorageClient,
    Entity,
    HttpStorageClient,
    AsyncHttpStorageClient,
)
from .exceptions import (
    StorageError,
    DeadlineExceededError,
    StorageConnectionError,
    ContentionError,
    AuthenticationError,
    InvalidRequestError,
    ServerError,
    NoMoreRetriesError,
    RetryCancelledError,
)
from .operations import StorageOperations
from .retry import (
    RetryConfig,
    BackoffState,
    FailureKind,
    RetryingHandler,
    classify_failure,
    with_retry,
    async_with_retry,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Clients
    "BaseStorageClient",
    "BaseAsyncStorageClient",
    "Entity",
    "HttpStorageClient",
    "AsyncHttpStorageClient",
    # Exceptions
    "StorageError",
    "DeadlineExceededError",
    "StorageConnectionError",
    "ContentionError",
    "AuthenticationError",
    "InvalidRequestError",
    "ServerError",
    "NoMoreRetriesError",
    "RetryCancelledError",
    # Operations
    "StorageOperations",
    # Retry
    "RetryConfig",
    "BackoffState",
    "FailureKind",
    "RetryingHandler",
    "classify_failure",
    "with_retry",
    "async_with_retry",
]
