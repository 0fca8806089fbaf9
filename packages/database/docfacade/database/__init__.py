from docfacade.database.backends import DocumentCursor, MotorStoreHandle, StoreHandle
from docfacade.database.client import Client
from docfacade.database.connection_manager import ConnectionManager, connect, connect_sync
from docfacade.database.core import (
    ClientOptions,
    DatabaseConnectionError,
    DatabaseError,
    DocumentDecodeError,
    DocumentNotFoundError,
    Namespace,
    OperationCancelledError,
    OperationError,
    Query,
    StoredDocument,
)

__all__ = [
    "Client",
    "ClientOptions",
    "connect",
    "connect_sync",
    "ConnectionManager",
    "DatabaseConnectionError",
    "DatabaseError",
    "DocumentCursor",
    "DocumentDecodeError",
    "DocumentNotFoundError",
    "MotorStoreHandle",
    "Namespace",
    "OperationCancelledError",
    "OperationError",
    "Query",
    "StoreHandle",
    "StoredDocument",
]
