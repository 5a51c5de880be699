"""
HTTP storage client adapters.

Talks to a JSON entity store:

    DELETE /entities/{key}
    POST   /entities:batchDelete  {"keys": [...]}
    PUT    /entities/{key}        {"properties": {...}}  -> {"key": ...}
    POST   /entities:batchPut     {"entities": [...]}    -> {"keys": [...]}
    POST   /entities:batchGet     {"keys": [...]}        -> {"found": [...]}

These clients do not retry; wrap them in a RetryingHandler.
"""

import logging
from contextlib import contextmanager
from typing import Iterable, Iterator
from urllib.parse import quote

import httpx

from .base import BaseAsyncStorageClient, BaseStorageClient, Entity
from ..exceptions import (
    AuthenticationError,
    ContentionError,
    DeadlineExceededError,
    InvalidRequestError,
    ServerError,
    StorageConnectionError,
    StorageError,
)

logger = logging.getLogger(__name__)


class _HttpStorageMixin:
    """Request building and error translation shared by both adapters."""

    def _setup(
        self,
        base_url: str,
        api_key: str | None,
        timeout: float,
        transport: httpx.BaseTransport | httpx.AsyncBaseTransport | None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    @property
    def backend_name(self) -> str:
        return "HttpStorage"

    def _get_headers(self) -> dict:
        """Get headers for store API requests."""
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _client_kwargs(self) -> dict:
        kwargs = {"timeout": self.timeout, "headers": self._get_headers()}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        return kwargs

    def _entity_url(self, key: str) -> str:
        return f"{self.base_url}/entities/{quote(key, safe='')}"

    @contextmanager
    def _translate_errors(self, operation: str) -> Iterator[None]:
        """Convert transport failures to domain exceptions."""
        try:
            yield
        except httpx.TimeoutException as e:
            raise DeadlineExceededError(
                f"{operation} timed out after {self.timeout}s",
                backend=self.backend_name,
            ) from e
        except httpx.ConnectError as e:
            raise StorageConnectionError(
                f"Failed to connect to {self.base_url}",
                backend=self.backend_name,
            ) from e
        except httpx.TransportError as e:
            raise StorageConnectionError(
                f"{operation} failed in transport: {e}",
                backend=self.backend_name,
            ) from e

    def _check(self, response: httpx.Response, *, allow_missing: bool = False) -> None:
        """Convert HTTP error statuses to domain exceptions."""
        status = response.status_code
        if status < 400 or (allow_missing and status == 404):
            return

        text = response.text
        if status == 400:
            raise InvalidRequestError(
                f"Invalid request: {text}",
                backend=self.backend_name,
                status_code=status,
            )
        elif status in (401, 403):
            raise AuthenticationError(
                "Credentials rejected",
                backend=self.backend_name,
                status_code=status,
            )
        elif status == 409:
            raise ContentionError(
                f"Write conflict: {text}",
                backend=self.backend_name,
                status_code=status,
            )
        elif status == 504:
            raise DeadlineExceededError(
                "Backend deadline exceeded",
                backend=self.backend_name,
                status_code=status,
            )
        elif status >= 500:
            raise ServerError(
                f"Server error: {text}",
                backend=self.backend_name,
                status_code=status,
            )
        raise StorageError(
            f"Unexpected response: {text}",
            backend=self.backend_name,
            status_code=status,
        )

    @staticmethod
    def _stored_key(response: httpx.Response, default: str) -> str:
        if not response.content:
            return default
        return response.json().get("key", default)

    @staticmethod
    def _found(data: dict) -> dict[str, Entity]:
        entities = (Entity.from_dict(item) for item in data.get("found", []))
        return {entity.key: entity for entity in entities}


class HttpStorageClient(_HttpStorageMixin, BaseStorageClient):
    """Blocking client for the HTTP entity store."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080/v1",
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Store API base URL
            api_key: Optional bearer token
            timeout: Per-request deadline in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        self._setup(base_url, api_key, timeout, transport)

    def _request(self, operation: str, method: str, url: str, **kwargs) -> httpx.Response:
        logger.debug(f"[{self.backend_name}] {method} {url}")
        with self._translate_errors(operation):
            with httpx.Client(**self._client_kwargs()) as client:
                return client.request(method, url, **kwargs)

    def delete(self, key: str) -> None:
        response = self._request("delete", "DELETE", self._entity_url(key))
        self._check(response, allow_missing=True)

    def delete_many(self, keys: Iterable[str]) -> None:
        response = self._request(
            "delete_many",
            "POST",
            f"{self.base_url}/entities:batchDelete",
            json={"keys": list(keys)},
        )
        self._check(response)

    def put(self, entity: Entity) -> str:
        response = self._request(
            "put",
            "PUT",
            self._entity_url(entity.key),
            json={"properties": entity.properties},
        )
        self._check(response)
        return self._stored_key(response, entity.key)

    def put_many(self, entities: Iterable[Entity]) -> list[str]:
        response = self._request(
            "put_many",
            "POST",
            f"{self.base_url}/entities:batchPut",
            json={"entities": [entity.to_dict() for entity in entities]},
        )
        self._check(response)
        return response.json()["keys"]

    def get_many(self, keys: Iterable[str]) -> dict[str, Entity]:
        response = self._request(
            "get_many",
            "POST",
            f"{self.base_url}/entities:batchGet",
            json={"keys": list(keys)},
        )
        self._check(response)
        return self._found(response.json())


class AsyncHttpStorageClient(_HttpStorageMixin, BaseAsyncStorageClient):
    """Async client for the HTTP entity store."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080/v1",
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._setup(base_url, api_key, timeout, transport)

    async def _request(self, operation: str, method: str, url: str, **kwargs) -> httpx.Response:
        logger.debug(f"[{self.backend_name}] {method} {url}")
        with self._translate_errors(operation):
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                return await client.request(method, url, **kwargs)

    async def delete(self, key: str) -> None:
        response = await self._request("delete", "DELETE", self._entity_url(key))
        self._check(response, allow_missing=True)

    async def delete_many(self, keys: Iterable[str]) -> None:
        response = await self._request(
            "delete_many",
            "POST",
            f"{self.base_url}/entities:batchDelete",
            json={"keys": list(keys)},
        )
        self._check(response)

    async def put(self, entity: Entity) -> str:
        response = await self._request(
            "put",
            "PUT",
            self._entity_url(entity.key),
            json={"properties": entity.properties},
        )
        self._check(response)
        return self._stored_key(response, entity.key)

    async def put_many(self, entities: Iterable[Entity]) -> list[str]:
        response = await self._request(
            "put_many",
            "POST",
            f"{self.base_url}/entities:batchPut",
            json={"entities": [entity.to_dict() for entity in entities]},
        )
        self._check(response)
        return response.json()["keys"]

    async def get_many(self, keys: Iterable[str]) -> dict[str, Entity]:
        response = await self._request(
            "get_many",
            "POST",
            f"{self.base_url}/entities:batchGet",
            json={"keys": list(keys)},
        )
        self._check(response)
        return self._found(response.json())
