from abc import abstractmethod
from typing import Any, Mapping, Optional, Protocol

from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from docfacade.core import FacadeABC
from docfacade.database.core.query import Namespace


class DocumentCursor(Protocol):
    """The subset of an async driver cursor the operation layer relies on."""

    async def to_list(self, length: Optional[int] = None) -> list[dict[str, Any]]: ...

    async def close(self) -> None: ...


class StoreHandle(FacadeABC):
    """Abstract boundary over a connected document store.

    The operation layer and the connection manager only talk to the store through this interface, so they can be
    exercised against a substitute implementation without a live database. Implementations must be safe to call
    concurrently from multiple tasks; docfacade adds no locking of its own.
    """

    @abstractmethod
    async def ping(self) -> None:
        """Round trip to a primary-capable server. Raises on failure."""
        raise NotImplementedError

    @abstractmethod
    async def find_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        """Return the first document matching ``filter``, or ``None`` if nothing matches."""
        raise NotImplementedError

    @abstractmethod
    def find(self, namespace: Namespace, filter: Mapping[str, Any]) -> DocumentCursor:
        """Return a cursor over every document matching ``filter``, in the store's natural order."""
        raise NotImplementedError

    @abstractmethod
    async def insert_one(self, namespace: Namespace, document: Mapping[str, Any]) -> InsertOneResult:
        raise NotImplementedError

    @abstractmethod
    async def update_one(
        self, namespace: Namespace, filter: Mapping[str, Any], update: Mapping[str, Any] | list
    ) -> UpdateResult:
        raise NotImplementedError

    @abstractmethod
    async def delete_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> DeleteResult:
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """Release the connection. Closing an already closed handle must be a no-op."""
        raise NotImplementedError

    @property
    @abstractmethod
    def is_closed(self) -> bool:
        raise NotImplementedError
