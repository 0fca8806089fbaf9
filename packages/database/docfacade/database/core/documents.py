from typing import Optional

from beanie import PydanticObjectId
from pydantic import BaseModel, ConfigDict, Field


class StoredDocument(BaseModel):
    """
    Base model for decode targets of documents stored in MongoDB.

    Maps the ``_id`` key onto an ``id`` attribute typed as a pydantic-compatible ObjectId, so the identifier generated
    on insert survives a read round trip.

    Example:
        .. code-block:: python

            from docfacade.database import StoredDocument

            class User(StoredDocument):
                name: str
                email: str

            user = await client.read_one(Query(database="shop", collection="users", filter={"_id": oid}, target=User))
            print(user.id)
    """

    model_config = ConfigDict(populate_by_name=True)

    id: Optional[PydanticObjectId] = Field(default=None, alias="_id")
