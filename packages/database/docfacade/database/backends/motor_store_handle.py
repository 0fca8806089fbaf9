from typing import Any, Mapping, Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorCursor
from pymongo import ReadPreference
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from docfacade.database.backends.store_handle import StoreHandle
from docfacade.database.core.options import ClientOptions
from docfacade.database.core.query import Namespace


def _to_millis(seconds: float) -> int:
    """Whole milliseconds, never rounding a positive timeout down to 0, which PyMongo reads as unbounded."""
    return max(1, round(seconds * 1000)) if seconds > 0 else 0


class MotorStoreHandle(StoreHandle):
    """
    MongoDB store handle backed by Motor.

    Motor clients manage their own connection pool and are safe to share between tasks running on the event loop
    they were first used on.

    Args:
        client (AsyncIOMotorClient): The Motor client this handle owns.

    Example:
        .. code-block:: python

            from docfacade.database.backends.motor_store_handle import MotorStoreHandle

            handle = MotorStoreHandle.from_options(ClientOptions(uri="mongodb://localhost:27017"))
            await handle.ping()
    """

    def __init__(self, client: AsyncIOMotorClient):
        super().__init__()
        self.client = client
        self._closed = False

    @classmethod
    def from_options(cls, options: ClientOptions) -> "MotorStoreHandle":
        """Create a handle for ``options``. No network I/O happens until the first command."""
        client = AsyncIOMotorClient(
            options.uri,
            connectTimeoutMS=_to_millis(options.connect_timeout),
            serverSelectionTimeoutMS=_to_millis(options.server_selection_timeout),
        )
        return cls(client)

    def collection(self, namespace: Namespace) -> AsyncIOMotorCollection:
        return self.client[namespace.database][namespace.collection]

    async def ping(self) -> None:
        await self.client.admin.command("ping", read_preference=ReadPreference.PRIMARY_PREFERRED)

    async def find_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        return await self.collection(namespace).find_one(filter)

    def find(self, namespace: Namespace, filter: Mapping[str, Any]) -> AsyncIOMotorCursor:
        return self.collection(namespace).find(filter)

    async def insert_one(self, namespace: Namespace, document: Mapping[str, Any]) -> InsertOneResult:
        return await self.collection(namespace).insert_one(document)

    async def update_one(
        self, namespace: Namespace, filter: Mapping[str, Any], update: Mapping[str, Any] | list
    ) -> UpdateResult:
        return await self.collection(namespace).update_one(filter, update)

    async def delete_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> DeleteResult:
        return await self.collection(namespace).delete_one(filter)

    async def close(self) -> None:
        if self._closed:
            return
        self.client.close()
        self._closed = True
        self.logger.debug("Motor client closed.")

    @property
    def is_closed(self) -> bool:
        return self._closed
