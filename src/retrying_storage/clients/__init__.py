"""
Storage clients driven by the retry executor.
"""

from .base import BaseAsyncStorageClient, BaseStorageClient, Entity
from .http import AsyncHttpStorageClient, HttpStorageClient

__all__ = [
    "BaseStorageClient",
    "BaseAsyncStorageClient",
    "Entity",
    "HttpStorageClient",
    "AsyncHttpStorageClient",
]
