import pytest
import pytest_asyncio
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from docfacade.database import ClientOptions, ConnectionManager, Query, StoredDocument

MONGO_URL = "mongodb://localhost:27017"
MONGO_DB = "docfacade_test_db"


class UserDoc(StoredDocument):
    name: str
    age: int
    email: str


@pytest.fixture(scope="session")
def mongo_available():
    mongo = MongoClient(MONGO_URL, serverSelectionTimeoutMS=1000)
    try:
        mongo.admin.command("ping")
    except PyMongoError as e:
        pytest.skip(f"MongoDB is not reachable at {MONGO_URL}: {e}")
    finally:
        mongo.close()


@pytest.fixture
def options(mongo_available) -> ClientOptions:
    return ClientOptions(uri=MONGO_URL, connect_timeout=5, server_selection_timeout=5)


@pytest_asyncio.fixture(scope="function")
async def client(options):
    """Connected client. The test database is dropped afterwards."""
    client = await ConnectionManager().connect(options)
    try:
        yield client
    finally:
        await client.handle.client.drop_database(MONGO_DB)
        await client.close()


@pytest.fixture
def users() -> Query:
    return Query(database=MONGO_DB, collection="users")


@pytest.fixture
def user_doc_cls() -> type[UserDoc]:
    return UserDoc
