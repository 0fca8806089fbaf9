import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Mapping, Optional

from bson.errors import BSONError
from pydantic import BaseModel, ValidationError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from docfacade.core import FacadeBase
from docfacade.database.backends.store_handle import StoreHandle
from docfacade.database.core.decode import decode_document
from docfacade.database.core.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DocumentDecodeError,
    DocumentNotFoundError,
    OperationCancelledError,
    OperationError,
)
from docfacade.database.core.query import Query
from docfacade.database.core.sync import run_sync


def _to_document(document: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """Copy ``document`` into a fresh dict so the driver never mutates the caller's object."""
    if isinstance(document, BaseModel):
        data = document.model_dump(by_alias=True)
        if data.get("_id") is None:
            data.pop("_id", None)
        return data
    return dict(document)


class Client(FacadeBase):
    """
    Narrow CRUD surface over a connected document store.

    A Client exclusively owns one ``StoreHandle`` until closed and keeps no other state, so a single instance can be
    shared by any number of concurrent tasks. Clients are created by ``ConnectionManager.connect``.

    Every operation accepts a keyword-only ``timeout`` in seconds. ``None`` means no deadline. An expired deadline
    raises ``OperationCancelledError``; cancelling the calling task propagates ``asyncio.CancelledError`` unchanged.
    Nothing is retried.

    Example:
        .. code-block:: python

            from docfacade.database import ClientOptions, Query, connect

            async with await connect(ClientOptions(uri="mongodb://localhost:27017")) as client:
                users = Query(database="shop", collection="users")
                result = await client.insert_one(users, {"name": "John"})
                john = await client.read_one(users.replace(filter={"_id": result.inserted_id}))
    """

    def __init__(self, handle: StoreHandle, **kwargs):
        super().__init__(**kwargs)
        self._handle = handle

    @property
    def handle(self) -> StoreHandle:
        return self._handle

    @asynccontextmanager
    async def _guard(
        self, step: str, timeout: Optional[float], error_cls: type[DatabaseError] = OperationError
    ) -> AsyncIterator[None]:
        """Bound the enclosed store call by ``timeout`` and wrap its failures as ``error_cls`` prefixed by ``step``.

        Only the expiry of ``timeout`` itself is reported as ``OperationCancelledError``. Driver-side timeouts such as
        server selection or ``maxTimeMS`` are ordinary failures of the step. Failures are logged at WARNING here;
        ``autolog`` logs them at ERROR once they leave the operation.
        """
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                yield
        except DatabaseError:
            raise
        except Exception as e:
            if deadline.expired() and isinstance(e, TimeoutError) and issubclass(error_cls, OperationError):
                self.logger.warning(f"{step}: deadline of {timeout}s exceeded")
                raise OperationCancelledError(f"{step}: deadline exceeded") from e
            self.logger.warning(f"{step}: {e}")
            raise error_cls(f"{step}: {e}") from e

    @FacadeBase.autolog()
    async def read_one(self, query: Query, *, timeout: Optional[float] = None) -> Any:
        """Find at most one document matching ``query.filter`` and decode it into ``query.target``.

        Returns:
            The decoded document, or ``None`` if nothing matches. A missing document is not an error and leaves an
            in-place target untouched.

        Raises:
            DocumentDecodeError: If the matched document does not fit the target.
            OperationError: If the query itself fails.
        """
        async with self._guard("failed to execute FindOne query", timeout):
            document = await self._handle.find_one(query.namespace, query.filter)
        if document is None:
            return None
        return decode_document(document, query.target)

    @FacadeBase.autolog()
    async def read_one_generic(self, query: Query, *, timeout: Optional[float] = None) -> dict[str, Any]:
        """Find at most one document matching ``query.filter`` and return it as a plain dict.

        Unlike ``read_one``, a missing document is reported as an error. ``query.target`` is ignored.

        Raises:
            DocumentNotFoundError: If no document matches.
            OperationError: If the query itself fails.
        """
        async with self._guard("failed to query MongoDB", timeout):
            document = await self._handle.find_one(query.namespace, query.filter)
        if document is None:
            raise DocumentNotFoundError(f"no documents found in {query.namespace} matching {query.filter}")
        return dict(document)

    @FacadeBase.autolog()
    async def read_many(self, query: Query, *, timeout: Optional[float] = None) -> list[Any]:
        """Return every document matching ``query.filter``, in cursor order.

        The whole result set is loaded into memory before returning. When ``query.target`` is a model class each
        document is decoded into a new instance; in-place targets are not supported here and documents are returned
        as dicts.

        Raises:
            DocumentDecodeError: If a document cannot be decoded.
            OperationError: If the query fails. Building the cursor does no I/O, so server and network failures
                surface while iterating it and are reported as query failures too.
        """
        async with self._guard("failed to execute Find query", timeout):
            cursor = self._handle.find(query.namespace, query.filter)
            try:
                documents = await cursor.to_list(length=None)
            except (BSONError, ValidationError) as e:
                raise DocumentDecodeError(f"failed to decode query results: {e}") from e
            finally:
                await cursor.close()

        target = query.target if isinstance(query.target, type) else None
        return [decode_document(document, target) for document in documents]

    @FacadeBase.autolog()
    async def insert_one(
        self, query: Query, document: Mapping[str, Any] | BaseModel, *, timeout: Optional[float] = None
    ) -> InsertOneResult:
        """Insert exactly one document into the query's namespace. ``query.filter`` is ignored.

        The document is copied first; the caller's object never gains the generated ``_id``.

        Returns:
            InsertOneResult: The driver's insert descriptor, including ``inserted_id``.

        Raises:
            OperationError: If the write fails, including duplicate key and validation rejections.
        """
        async with self._guard("failed to insert document", timeout):
            return await self._handle.insert_one(query.namespace, _to_document(document))

    @FacadeBase.autolog()
    async def update_one(
        self, query: Query, update: Mapping[str, Any] | list, *, timeout: Optional[float] = None
    ) -> UpdateResult:
        """Apply ``update`` to at most one document matching ``query.filter``.

        A filter matching nothing is a successful no-op reported as ``matched_count == 0``.

        Raises:
            OperationError: If the update fails.
        """
        async with self._guard("failed to update document", timeout):
            return await self._handle.update_one(query.namespace, query.filter, update)

    @FacadeBase.autolog()
    async def delete_one(self, query: Query, *, timeout: Optional[float] = None) -> DeleteResult:
        """Delete at most one document matching ``query.filter``.

        A filter matching nothing is a successful no-op reported as ``deleted_count == 0``.

        Raises:
            OperationError: If the delete fails.
        """
        async with self._guard("failed to delete document", timeout):
            return await self._handle.delete_one(query.namespace, query.filter)

    async def ping(self, *, timeout: Optional[float] = None) -> None:
        """Check that the store is still reachable.

        Raises:
            DatabaseConnectionError: If the liveness check fails or times out.
        """
        async with self._guard("failed to ping MongoDB", timeout, error_cls=DatabaseConnectionError):
            await self._handle.ping()

    async def close(self, *, timeout: Optional[float] = None) -> None:
        """Release the owned handle. Closing an already closed client is a no-op.

        Raises:
            DatabaseConnectionError: If the store fails to release the connection.
        """
        if self._handle.is_closed:
            return
        async with self._guard("failed to disconnect from MongoDB", timeout, error_cls=DatabaseConnectionError):
            await self._handle.close()
        self.logger.info("Disconnected from MongoDB.")

    @property
    def is_closed(self) -> bool:
        return self._handle.is_closed

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # Synchronous wrappers, run on the shared background loop
    def read_one_sync(self, query: Query, *, timeout: Optional[float] = None) -> Any:
        return run_sync(self.read_one(query, timeout=timeout), "read_one")

    def read_one_generic_sync(self, query: Query, *, timeout: Optional[float] = None) -> dict[str, Any]:
        return run_sync(self.read_one_generic(query, timeout=timeout), "read_one_generic")

    def read_many_sync(self, query: Query, *, timeout: Optional[float] = None) -> list[Any]:
        return run_sync(self.read_many(query, timeout=timeout), "read_many")

    def insert_one_sync(
        self, query: Query, document: Mapping[str, Any] | BaseModel, *, timeout: Optional[float] = None
    ) -> InsertOneResult:
        return run_sync(self.insert_one(query, document, timeout=timeout), "insert_one")

    def update_one_sync(
        self, query: Query, update: Mapping[str, Any] | list, *, timeout: Optional[float] = None
    ) -> UpdateResult:
        return run_sync(self.update_one(query, update, timeout=timeout), "update_one")

    def delete_one_sync(self, query: Query, *, timeout: Optional[float] = None) -> DeleteResult:
        return run_sync(self.delete_one(query, timeout=timeout), "delete_one")

    def ping_sync(self, *, timeout: Optional[float] = None) -> None:
        return run_sync(self.ping(timeout=timeout), "ping")

    def close_sync(self, *, timeout: Optional[float] = None) -> None:
        return run_sync(self.close(timeout=timeout), "close")
