"""
Base storage client interfaces.

Defines the blocking and deferred operations the retry executor drives.
Implementations raise DeadlineExceededError (or another timeout) when the
backend misses its deadline.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass
class Entity:
    """A keyed record in the store."""

    key: str
    properties: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Convert to dictionary format for API requests."""
        return {"key": self.key, "properties": self.properties}

    @classmethod
    def from_dict(cls, data: dict) -> "Entity":
        """Build an entity from an API response item."""
        return cls(key=data["key"], properties=data.get("properties") or {})


class BaseStorageClient(ABC):
    """
    Abstract base class for blocking storage clients.

    Each method performs exactly one backend call.
    """

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend name for logging."""
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        """Delete one entity. Deleting a missing key is not an error."""
        ...

    @abstractmethod
    def delete_many(self, keys: Iterable[str]) -> None:
        """Delete several entities in one call."""
        ...

    @abstractmethod
    def put(self, entity: Entity) -> str:
        """
        Store one entity.

        Returns:
            The key the entity was stored under
        """
        ...

    @abstractmethod
    def put_many(self, entities: Iterable[Entity]) -> list[str]:
        """Store several entities in one call and return their keys."""
        ...

    @abstractmethod
    def get_many(self, keys: Iterable[str]) -> dict[str, Entity]:
        """
        Fetch several entities in one call.

        Returns:
            Mapping of key to entity for the keys that exist
        """
        ...


class BaseAsyncStorageClient(ABC):
    """Abstract base class for deferred (async) storage clients."""

    @property
    @abstractmethod
    def backend_name(self) -> str:
        """Return the backend name for logging."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def delete_many(self, keys: Iterable[str]) -> None:
        ...

    @abstractmethod
    async def put(self, entity: Entity) -> str:
        ...

    @abstractmethod
    async def put_many(self, entities: Iterable[Entity]) -> list[str]:
        ...

    @abstractmethod
    async def get_many(self, keys: Iterable[str]) -> dict[str, Entity]:
        ...
