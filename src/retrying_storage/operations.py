"""
Named storage operations run through the retry executor.

Each method hands exactly one storage client call to the RetryingHandler.
"""

import logging
from typing import Awaitable, Callable, Iterable, TypeVar

from .clients import BaseAsyncStorageClient, BaseStorageClient, Entity
from .retry import RetryingHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _diagnostics_off() -> bool:
    return False


class StorageOperations:
    """
    Convenience wrappers around common storage calls.

    When ``diagnostics_enabled()`` is true at call time, every attempt logs a
    ``PERF - <operation>`` record with the caller's stack, for tracking
    down who hammers the backend in production.
    """

    def __init__(
        self,
        handler: RetryingHandler,
        diagnostics_enabled: Callable[[], bool] = _diagnostics_off,
    ):
        self.handler = handler
        self.diagnostics_enabled = diagnostics_enabled

    def _diagnose(self, name: str) -> None:
        logger.warning(f"PERF - {name}", stack_info=True, extra={"operation": name})

    def _run(self, name: str, call: Callable[[BaseStorageClient], T]) -> T:
        verbose = self.diagnostics_enabled()

        def operation(client: BaseStorageClient) -> T:
            if verbose:
                self._diagnose(name)
            return call(client)

        return self.handler.run(operation, name=name)

    async def _run_async(
        self, name: str, call: Callable[[BaseAsyncStorageClient], Awaitable[T]]
    ) -> T:
        verbose = self.diagnostics_enabled()

        async def operation(client: BaseAsyncStorageClient) -> T:
            if verbose:
                self._diagnose(name)
            return await call(client)

        return await self.handler.run_async(operation, name=name)

    # Blocking

    def remove(self, key: str) -> None:
        self._run("remove", lambda client: client.delete(key))

    def remove_many(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        self._run("remove_many", lambda client: client.delete_many(keys))

    def put(self, entity: Entity) -> str:
        return self._run("put", lambda client: client.put(entity))

    def put_many(self, entities: Iterable[Entity]) -> list[str]:
        entities = list(entities)
        return self._run("put_many", lambda client: client.put_many(entities))

    def get_many(self, keys: Iterable[str]) -> dict[str, Entity]:
        keys = list(keys)
        return self._run("get_many", lambda client: client.get_many(keys))

    # Deferred

    async def remove_async(self, key: str) -> None:
        await self._run_async("remove_async", lambda client: client.delete(key))

    async def remove_many_async(self, keys: Iterable[str]) -> None:
        keys = list(keys)
        await self._run_async("remove_many_async", lambda client: client.delete_many(keys))

    async def put_async(self, entity: Entity) -> str:
        return await self._run_async("put_async", lambda client: client.put(entity))

    async def put_many_async(self, entities: Iterable[Entity]) -> list[str]:
        entities = list(entities)
        return await self._run_async("put_many_async", lambda client: client.put_many(entities))

    async def get_many_async(self, keys: Iterable[str]) -> dict[str, Entity]:
        keys = list(keys)
        return await self._run_async("get_many_async", lambda client: client.get_many(keys))
