#!/usr/bin/env python3
"""
MongoDB CRUD Example

Demonstrates connecting through docfacade, running each CRUD operation and handling the normalized errors.
The async API is native; the ``*_sync`` variants are shown at the end.

Prerequisites:
- MongoDB running on localhost:27017 (or set DOCFACADE_MONGO__URI)
"""

import asyncio
from typing import List

from pydantic import Field

from docfacade.database import (
    DocumentDecodeError,
    DocumentNotFoundError,
    OperationError,
    Query,
    StoredDocument,
    connect,
    connect_sync,
)

DATABASE = "docfacade_samples"


# ============================================================================
# Model Definitions
# ============================================================================


class User(StoredDocument):
    """User document stored in the ``users`` collection."""

    name: str = Field(description="User name")
    email: str = Field(description="Email address")
    age: int = Field(ge=0, description="Age")
    skills: List[str] = Field(default_factory=list, description="User skills")


def users(**kwargs) -> Query:
    return Query(database=DATABASE, collection="users", **kwargs)


# ============================================================================
# Example Functions
# ============================================================================


async def demonstrate_async_operations():
    """Demonstrate the asynchronous API."""
    print("\n" + "=" * 70)
    print("ASYNCHRONOUS OPERATIONS")
    print("=" * 70)

    async with await connect() as client:
        result = await client.insert_one(users(), User(name="Alice", email="alice@example.com", age=30, skills=["go"]))
        print(f"Inserted Alice with id {result.inserted_id}")
        await client.insert_one(users(), {"name": "Bob", "email": "bob@example.com", "age": 25})

        alice = await client.read_one(users(filter={"_id": result.inserted_id}, target=User))
        print(f"Read back: {alice}")

        adults = await client.read_many(users(filter={"age": {"$gte": 18}}, target=User))
        print(f"Found {len(adults)} adults: {[user.name for user in adults]}")

        updated = await client.update_one(users(filter={"name": "Bob"}), {"$push": {"skills": "python"}})
        print(f"Updated {updated.modified_count} document(s)")

        deleted = await client.delete_one(users(filter={"name": "Alice"}))
        print(f"Deleted {deleted.deleted_count} document(s)")

        missing = users(filter={"name": "Alice"})
        print(f"read_one for a missing user returns: {await client.read_one(missing)}")
        try:
            await client.read_one_generic(missing)
        except DocumentNotFoundError as e:
            print(f"read_one_generic raises: {e}")

        await client.insert_one(users(), {"name": "Carol"})
        try:
            await client.read_many(users(target=User))
        except DocumentDecodeError as e:
            print(f"Shape mismatch: {e}")

        try:
            await client.read_many(users(), timeout=0.000001)
        except OperationError as e:
            print(f"Deadline expired: {type(e).__name__}")

        await client.handle.client.drop_database(DATABASE)


def demonstrate_sync_operations():
    """Demonstrate the synchronous wrappers."""
    print("\n" + "=" * 70)
    print("SYNCHRONOUS OPERATIONS")
    print("=" * 70)

    client = connect_sync()
    try:
        client.insert_one_sync(users(), User(name="Dave", email="dave@example.com", age=41))
        dave = client.read_one_sync(users(filter={"name": "Dave"}, target=User))
        print(f"Read back: {dave}")
        client.delete_one_sync(users(filter={"name": "Dave"}))
    finally:
        client.close_sync()


def main():
    asyncio.run(demonstrate_async_operations())
    demonstrate_sync_operations()


if __name__ == "__main__":
    main()
