from collections.abc import MutableMapping
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Namespace(NamedTuple):
    """The (database name, collection name) pair identifying where documents live."""

    database: str
    collection: str

    def __str__(self) -> str:
        return f"{self.database}.{self.collection}"


class Query(BaseModel):
    """Target namespace and filter for a single database operation.

    The filter is opaque to docfacade and handed to the store unchanged. The optional ``target`` tells the read
    operations what to decode matched documents into:

    - ``None``: the raw document (a ``dict``) is returned.
    - a pydantic model class: a new validated instance is returned.
    - a pydantic model instance or a mutable mapping: the object is populated in place and returned.

    Example:
        .. code-block:: python

            from docfacade.database import Query

            query = Query(database="shop", collection="users", filter={"email": "john@example.com"}, target=User)
            user = await client.read_one(query)

    Use ``replace`` rather than ``model_copy(update=...)`` to derive queries; ``model_copy`` skips validation.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    database: str = Field(min_length=1)
    collection: str = Field(min_length=1)
    filter: dict[str, Any] = Field(default_factory=dict)
    target: Any = None

    @field_validator("target")
    @classmethod
    def _check_target(cls, value: Any) -> Any:
        if value is None or isinstance(value, (BaseModel, MutableMapping)):
            return value
        if isinstance(value, type) and issubclass(value, BaseModel):
            return value
        raise ValueError(
            f"target must be a pydantic model class, a pydantic model instance or a mutable mapping, got {value!r}"
        )

    @property
    def namespace(self) -> Namespace:
        return Namespace(self.database, self.collection)

    def replace(self, **changes: Any) -> "Query":
        """Return a new query with ``changes`` applied, validated like a freshly constructed one.

        Example:
            .. code-block:: python

                users = Query(database="shop", collection="users", target=User)
                adults = users.replace(filter={"age": {"$gte": 18}})
        """
        return type(self).model_validate({**self.__dict__, **changes})
