"""Exceptions raised by the docfacade database layer.

Errors wrapping a driver failure chain it as ``__cause__``.
"""


class DatabaseError(Exception):
    """Base class for all docfacade database errors."""


class DatabaseConnectionError(DatabaseError):
    """Raised when connecting, verifying liveness or disconnecting fails."""


class DocumentNotFoundError(DatabaseError):
    """Raised by the generic read path when no document matches the filter."""


class OperationError(DatabaseError):
    """Raised when a find, insert, update or delete fails on the store."""


class DocumentDecodeError(OperationError):
    """Raised when a matched document cannot be decoded into the requested target."""


class OperationCancelledError(OperationError):
    """Raised when an operation's deadline expires before the store answers."""
