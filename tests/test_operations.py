"""Tests for the storage operation library."""

import logging

import pytest

from retrying_storage.clients import BaseAsyncStorageClient, BaseStorageClient, Entity
from retrying_storage.exceptions import ContentionError, DeadlineExceededError
from retrying_storage.operations import StorageOperations
from retrying_storage.retry import RetryConfig, RetryingHandler


# --- Fakes ---


class MemoryStore:
    """Shared state and failure injection for the fake clients."""

    def __init__(self):
        self.entities: dict[str, Entity] = {}
        self.calls: list[tuple] = []
        self.failures: list[Exception] = []

    def record(self, name: str, *args) -> None:
        self.calls.append((name, *args))
        if self.failures:
            raise self.failures.pop(0)


class MemoryClient(BaseStorageClient):
    def __init__(self, store: MemoryStore):
        self.store = store

    @property
    def backend_name(self) -> str:
        return "Memory"

    def delete(self, key):
        self.store.record("delete", key)
        self.store.entities.pop(key, None)

    def delete_many(self, keys):
        keys = list(keys)
        self.store.record("delete_many", keys)
        for key in keys:
            self.store.entities.pop(key, None)

    def put(self, entity):
        self.store.record("put", entity.key)
        self.store.entities[entity.key] = entity
        return entity.key

    def put_many(self, entities):
        entities = list(entities)
        self.store.record("put_many", [e.key for e in entities])
        for entity in entities:
            self.store.entities[entity.key] = entity
        return [e.key for e in entities]

    def get_many(self, keys):
        keys = list(keys)
        self.store.record("get_many", keys)
        return {k: self.store.entities[k] for k in keys if k in self.store.entities}


class AsyncMemoryClient(BaseAsyncStorageClient):
    def __init__(self, store: MemoryStore):
        self.sync = MemoryClient(store)

    @property
    def backend_name(self) -> str:
        return "Memory"

    async def delete(self, key):
        return self.sync.delete(key)

    async def delete_many(self, keys):
        return self.sync.delete_many(keys)

    async def put(self, entity):
        return self.sync.put(entity)

    async def put_many(self, entities):
        return self.sync.put_many(entities)

    async def get_many(self, keys):
        return self.sync.get_many(keys)


class Flag:
    """Diagnostics switch that counts how often it is read."""

    def __init__(self, enabled: bool):
        self.enabled = enabled
        self.reads = 0

    def __call__(self) -> bool:
        self.reads += 1
        return self.enabled


# --- Fixtures ---


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def handler(store):
    return RetryingHandler(
        client=MemoryClient(store),
        async_client=AsyncMemoryClient(store),
        config=RetryConfig.no_wait(),
        sleep=lambda seconds: None,
    )


@pytest.fixture
def ops(handler):
    return StorageOperations(handler)


def perf_records(caplog):
    return [r for r in caplog.records if r.name == "retrying_storage.operations"]


# --- Blocking operations ---


class TestBlockingOperations:
    def test_put_then_get_many(self, ops):
        assert ops.put(Entity("a", {"n": 1})) == "a"
        assert ops.put_many([Entity("b"), Entity("c")]) == ["b", "c"]

        found = ops.get_many(["a", "c", "missing"])

        assert set(found) == {"a", "c"}
        assert found["a"].properties == {"n": 1}

    def test_remove_and_remove_many(self, ops, store):
        ops.put_many([Entity("a"), Entity("b"), Entity("c")])

        ops.remove("a")
        ops.remove_many(["b", "c"])

        assert store.entities == {}

    def test_one_client_call_per_attempt(self, ops, store):
        """A retried operation repeats exactly the same single client call."""
        store.failures = [DeadlineExceededError()]

        ops.remove_many(k for k in ["a", "b"])

        assert store.calls == [("delete_many", ["a", "b"]), ("delete_many", ["a", "b"])]

    def test_retries_through_contention(self, ops, store):
        store.failures = [ContentionError(), ContentionError()]

        assert ops.put(Entity("a")) == "a"
        assert len(store.calls) == 3


class TestDiagnostics:
    """Test the PERF diagnostic records."""

    def test_silent_by_default(self, ops, caplog):
        with caplog.at_level(logging.DEBUG, logger="retrying_storage.operations"):
            ops.remove("a")

        assert perf_records(caplog) == []

    def test_logs_operation_and_call_site(self, handler, caplog):
        ops = StorageOperations(handler, diagnostics_enabled=lambda: True)

        with caplog.at_level(logging.WARNING, logger="retrying_storage.operations"):
            ops.put(Entity("a"))

        [record] = perf_records(caplog)
        assert record.getMessage() == "PERF - put"
        assert record.operation == "put"
        assert record.stack_info is not None
        assert "test_logs_operation_and_call_site" in record.stack_info

    def test_flag_read_once_per_call(self, handler, store, caplog):
        """The switch is read once, but every attempt is logged."""
        flag = Flag(True)
        ops = StorageOperations(handler, diagnostics_enabled=flag)
        store.failures = [DeadlineExceededError()]

        with caplog.at_level(logging.WARNING, logger="retrying_storage.operations"):
            ops.get_many(["a"])

        assert flag.reads == 1
        assert len(perf_records(caplog)) == 2

    def test_flag_change_mid_call_is_ignored(self, handler, store, caplog):
        """Turning diagnostics on between attempts only affects later calls."""
        flag = Flag(False)
        ops = StorageOperations(handler, diagnostics_enabled=flag)

        handler.on_retry = lambda attempt, error, wait_ms: setattr(flag, "enabled", True)
        store.failures = [ContentionError()]

        with caplog.at_level(logging.WARNING, logger="retrying_storage.operations"):
            ops.remove("a")
            ops.remove_many(["b"])

        assert [r.operation for r in perf_records(caplog)] == ["remove_many"]


# --- Deferred operations ---


class TestDeferredOperations:
    @pytest.mark.asyncio
    async def test_put_then_get_many(self, ops):
        assert await ops.put_async(Entity("a")) == "a"
        assert await ops.put_many_async([Entity("b")]) == ["b"]

        found = await ops.get_many_async(["a", "b"])

        assert set(found) == {"a", "b"}

    @pytest.mark.asyncio
    async def test_remove_async(self, ops, store):
        await ops.put_many_async([Entity("a"), Entity("b"), Entity("c")])

        await ops.remove_async("a")
        await ops.remove_many_async(["b", "c"])

        assert store.entities == {}

    @pytest.mark.asyncio
    async def test_retries_deadline_on_join(self, ops, store):
        store.failures = [DeadlineExceededError(), DeadlineExceededError()]

        assert await ops.put_async(Entity("a")) == "a"
        assert [c[0] for c in store.calls] == ["put", "put", "put"]

    @pytest.mark.asyncio
    async def test_diagnostics_tag_async_names(self, handler, caplog):
        ops = StorageOperations(handler, diagnostics_enabled=lambda: True)

        with caplog.at_level(logging.WARNING, logger="retrying_storage.operations"):
            await ops.remove_many_async(["a"])

        assert [r.operation for r in perf_records(caplog)] == ["remove_many_async"]
