"""
Storage exception hierarchy.
"""

from .base import (
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

__all__ = [
    "StorageError",
    "DeadlineExceededError",
    "StorageConnectionError",
    "ContentionError",
    "AuthenticationError",
    "InvalidRequestError",
    "ServerError",
    "NoMoreRetriesError",
    "RetryCancelledError",
]
