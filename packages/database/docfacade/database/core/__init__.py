from docfacade.database.core.decode import decode_document
from docfacade.database.core.documents import StoredDocument
from docfacade.database.core.exceptions import (
    DatabaseConnectionError,
    DatabaseError,
    DocumentDecodeError,
    DocumentNotFoundError,
    OperationCancelledError,
    OperationError,
)
from docfacade.database.core.options import ClientOptions
from docfacade.database.core.query import Namespace, Query

__all__ = [
    "ClientOptions",
    "DatabaseConnectionError",
    "DatabaseError",
    "decode_document",
    "DocumentDecodeError",
    "DocumentNotFoundError",
    "Namespace",
    "OperationCancelledError",
    "OperationError",
    "Query",
    "StoredDocument",
]
