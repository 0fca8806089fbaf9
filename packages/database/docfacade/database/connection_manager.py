import asyncio
from typing import Callable, Optional

from docfacade.core import FacadeBase
from docfacade.database.backends.motor_store_handle import MotorStoreHandle
from docfacade.database.backends.store_handle import StoreHandle
from docfacade.database.client import Client
from docfacade.database.core.exceptions import DatabaseConnectionError
from docfacade.database.core.options import ClientOptions
from docfacade.database.core.sync import run_sync

HandleFactory = Callable[[ClientOptions], StoreHandle]


def _redact(uri: str) -> str:
    """Drop any credentials from a connection URI before it is logged."""
    scheme, sep, rest = uri.partition("://")
    if not sep:
        return uri
    return f"{scheme}://{rest.rsplit('@', 1)[-1]}"


class ConnectionManager(FacadeBase):
    """
    Owns the lifecycle of store handles: construct, verify liveness, close.

    Args:
        handle_factory: Builds an unverified handle from ``ClientOptions``. Defaults to
            ``MotorStoreHandle.from_options``.
        config_overrides: Settings merged over ``CoreConfig``; ``connect()`` without options reads its
            ``DOCFACADE_MONGO`` section from the result.

    Example:
        .. code-block:: python

            from docfacade.database import ClientOptions, ConnectionManager

            manager = ConnectionManager()
            client = await manager.connect(ClientOptions(uri="mongodb://localhost:27017", connect_timeout=5))
            try:
                ...
            finally:
                await manager.close(client)
    """

    def __init__(self, handle_factory: Optional[HandleFactory] = None, **kwargs):
        super().__init__(**kwargs)
        self.handle_factory: HandleFactory = handle_factory or MotorStoreHandle.from_options

    async def connect(self, options: Optional[ClientOptions] = None) -> Client:
        """Connect to the store described by ``options`` and verify it answers a ping.

        Without ``options`` the connection settings come from this manager's ``config``.

        The initial connection and the liveness check share the ``connect_timeout`` budget. If the liveness check
        fails the handle is closed before the error is raised.

        Returns:
            Client: A client exclusively owning the verified handle.

        Raises:
            DatabaseConnectionError: If the deadline is already expired, the handle cannot be created, or the
                liveness check fails.
        """
        if options is None:
            options = ClientOptions.from_config(self.config)
        target = _redact(options.uri)
        if options.connect_timeout <= 0:
            raise DatabaseConnectionError(f"failed to connect to MongoDB at {target}: connect timeout already expired")

        try:
            handle = self.handle_factory(options)
        except Exception as e:
            self.logger.error(f"failed to connect to MongoDB at {target}: {e}")
            raise DatabaseConnectionError(f"failed to connect to MongoDB: {e}") from e

        try:
            async with asyncio.timeout(options.connect_timeout):
                await handle.ping()
        except asyncio.CancelledError:
            await self._release(handle)
            raise
        except Exception as e:
            self.logger.error(f"failed to ping MongoDB at {target}: {e}")
            await self._release(handle)
            raise DatabaseConnectionError(f"failed to ping MongoDB: {e}") from e

        self.logger.info(f"Connected to MongoDB at {target}.")
        return Client(handle)

    async def _release(self, handle: StoreHandle) -> None:
        try:
            await handle.close()
        except Exception as e:
            # The liveness failure is what the caller sees
            self.logger.warning(f"failed to release unverified MongoDB handle: {e}")

    async def close(self, client: Client, *, timeout: Optional[float] = None) -> None:
        """Release the client's handle. Closing an already closed client is a no-op.

        Raises:
            DatabaseConnectionError: If the store fails to release the connection.
        """
        await client.close(timeout=timeout)

    def connect_sync(self, options: Optional[ClientOptions] = None) -> Client:
        """Synchronous version of ``connect``, run on the shared background loop."""
        return run_sync(self.connect(options), "connect")

    def close_sync(self, client: Client, *, timeout: Optional[float] = None) -> None:
        """Synchronous version of ``close``, run on the shared background loop."""
        return run_sync(self.close(client, timeout=timeout), "close")


async def connect(options: Optional[ClientOptions] = None) -> Client:
    """Connect with a default ``ConnectionManager``. Options default to the ``DOCFACADE_MONGO`` config section."""
    return await ConnectionManager().connect(options)


def connect_sync(options: Optional[ClientOptions] = None) -> Client:
    """Synchronous version of ``connect``, run on the shared background loop."""
    return run_sync(connect(options), "connect")
