from pydantic import BaseModel, ConfigDict, Field

from docfacade.core.config import Config
from docfacade.core.utils import first_not_none


class ClientOptions(BaseModel):
    """Connection settings consumed once by ``ConnectionManager.connect``.

    Timeouts are in seconds. ``connect_timeout`` bounds both the initial connection and the liveness check.

    Example:
        .. code-block:: python

            options = ClientOptions(uri="mongodb://localhost:27017", connect_timeout=5, server_selection_timeout=5)
            client = await connect(options)
    """

    model_config = ConfigDict(frozen=True)

    uri: str = Field(min_length=1)
    connect_timeout: float = Field(default=10.0, ge=0)
    server_selection_timeout: float = Field(default=30.0, ge=0)

    @classmethod
    def from_config(cls, config: Config) -> "ClientOptions":
        """Build options from the ``DOCFACADE_MONGO`` section of ``config``, revealing the masked URI."""
        section = config["DOCFACADE_MONGO"]
        return cls(
            uri=first_not_none([config.get_secret("DOCFACADE_MONGO", "URI"), section["URI"]]),
            connect_timeout=section["CONNECT_TIMEOUT"],
            server_selection_timeout=section["SERVER_SELECTION_TIMEOUT"],
        )
