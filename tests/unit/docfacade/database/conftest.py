"""In-memory store handle and shared fixtures for the database unit tests."""

from copy import deepcopy
from typing import Any, Mapping, Optional

import pytest
from bson import ObjectId
from pymongo.errors import DuplicateKeyError
from pymongo.results import DeleteResult, InsertOneResult, UpdateResult

from docfacade.database import Client, ClientOptions, ConnectionManager, Namespace, Query, StoredDocument, StoreHandle


class InMemoryCursor:
    def __init__(self, documents: list[dict[str, Any]], error: Optional[Exception] = None):
        self._documents = documents
        self._error = error
        self.closed = False

    async def to_list(self, length: Optional[int] = None) -> list[dict[str, Any]]:
        if self._error is not None:
            raise self._error
        return self._documents if length is None else self._documents[:length]

    async def close(self) -> None:
        self.closed = True


class InMemoryStoreHandle(StoreHandle):
    """Store handle keeping documents in insertion order per namespace.

    Filters match on top-level equality only. Updates support ``$set`` and ``$inc``. Set ``failures[method]`` to an
    exception to make the next calls to that method raise it.
    """

    def __init__(self):
        super().__init__()
        self.collections: dict[Namespace, list[dict[str, Any]]] = {}
        self.failures: dict[str, BaseException] = {}
        self.calls: list[str] = []
        self.cursors: list[InMemoryCursor] = []
        self.close_calls = 0
        self._closed = False

    def _record(self, method: str):
        self.calls.append(method)
        if method in self.failures:
            raise self.failures[method]

    def _matches(self, namespace: Namespace, filter: Mapping[str, Any]) -> list[dict[str, Any]]:
        documents = self.collections.get(namespace, [])
        return [doc for doc in documents if all(doc.get(k) == v for k, v in filter.items())]

    async def ping(self) -> None:
        self._record("ping")

    async def find_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> Optional[dict[str, Any]]:
        self._record("find_one")
        matches = self._matches(namespace, filter)
        return deepcopy(matches[0]) if matches else None

    def find(self, namespace: Namespace, filter: Mapping[str, Any]) -> InMemoryCursor:
        self._record("find")
        cursor = InMemoryCursor(deepcopy(self._matches(namespace, filter)), error=self.failures.get("to_list"))
        self.cursors.append(cursor)
        return cursor

    async def insert_one(self, namespace: Namespace, document: Mapping[str, Any]) -> InsertOneResult:
        self._record("insert_one")
        if "_id" not in document:
            # Mirror pymongo, which adds the generated id to the mapping it is given
            document["_id"] = ObjectId()
        if self._matches(namespace, {"_id": document["_id"]}):
            raise DuplicateKeyError(f"E11000 duplicate key error collection: {namespace} dup key: _id")
        self.collections.setdefault(namespace, []).append(deepcopy(dict(document)))
        return InsertOneResult(document["_id"], acknowledged=True)

    async def update_one(
        self, namespace: Namespace, filter: Mapping[str, Any], update: Mapping[str, Any] | list
    ) -> UpdateResult:
        self._record("update_one")
        matches = self._matches(namespace, filter)
        if not matches:
            return UpdateResult({"n": 0, "nModified": 0, "ok": 1.0}, acknowledged=True)
        document = matches[0]
        before = deepcopy(document)
        document.update(update.get("$set", {}))
        for key, amount in update.get("$inc", {}).items():
            document[key] = document.get(key, 0) + amount
        modified = int(document != before)
        return UpdateResult({"n": 1, "nModified": modified, "ok": 1.0}, acknowledged=True)

    async def delete_one(self, namespace: Namespace, filter: Mapping[str, Any]) -> DeleteResult:
        self._record("delete_one")
        matches = self._matches(namespace, filter)
        if not matches:
            return DeleteResult({"n": 0, "ok": 1.0}, acknowledged=True)
        self.collections[namespace].remove(matches[0])
        return DeleteResult({"n": 1, "ok": 1.0}, acknowledged=True)

    async def close(self) -> None:
        self.close_calls += 1
        self._record("close")
        self._closed = True

    @property
    def is_closed(self) -> bool:
        return self._closed


class UserDoc(StoredDocument):
    name: str
    age: int
    email: str


@pytest.fixture
def store() -> InMemoryStoreHandle:
    return InMemoryStoreHandle()


@pytest.fixture
def client(store) -> Client:
    return Client(store)


@pytest.fixture
def users() -> Query:
    return Query(database="test_db", collection="users")


@pytest.fixture
def user_doc_cls() -> type[UserDoc]:
    return UserDoc


@pytest.fixture
def options() -> ClientOptions:
    return ClientOptions(uri="mongodb://localhost:27017", connect_timeout=1.0, server_selection_timeout=1.0)


@pytest.fixture
def manager(store) -> ConnectionManager:
    return ConnectionManager(handle_factory=lambda _options: store)
