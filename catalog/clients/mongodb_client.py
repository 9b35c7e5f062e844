"""MongoDB client for user and product storage."""

import logging
from typing import Any, Optional

from pymongo import ASCENDING, TEXT, AsyncMongoClient, ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError, PyMongoError

from catalog.errors import ConflictError, InternalError

logger = logging.getLogger(__name__)

USERS = "users"
PRODUCTS = "products"


class MongoDBClient:
    """Async MongoDB client with connection management.

    Works against MongoDB or any wire-compatible store (e.g. Azure Cosmos DB
    for MongoDB). Driver failures are re-raised as InternalError, duplicate
    keys as ConflictError. Transient failures are retried by the driver
    (retryable reads and writes), never by callers.
    """

    def __init__(
        self,
        uri: str,
        database_name: str,
        server_selection_timeout_ms: int = 5000,
    ):
        """Initialize the MongoDB client.

        Args:
            uri: MongoDB connection string
            database_name: Name of the database to use
            server_selection_timeout_ms: How long to wait for a reachable server
        """
        self._uri = uri
        self._database_name = database_name
        self._server_selection_timeout_ms = server_selection_timeout_ms

        self._client: Optional[AsyncMongoClient] = None
        self._database: Optional[AsyncDatabase] = None

    async def connect(self) -> None:
        """Open the connection pool and verify the server is reachable."""
        self._client = AsyncMongoClient(
            self._uri,
            serverSelectionTimeoutMS=self._server_selection_timeout_ms,
            retryReads=True,
            retryWrites=True,
            tz_aware=True,
        )
        try:
            await self._client.admin.command("ping")
        except PyMongoError as e:
            await self._client.close()
            self._client = None
            raise InternalError(f"Could not connect to MongoDB: {e}") from e

        self._database = self._client[self._database_name]
        logger.info(f"Connected to MongoDB database '{self._database_name}'")

    async def close(self) -> None:
        """Close the MongoDB connection."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None

    async def __aenter__(self) -> "MongoDBClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Async context manager exit with cleanup."""
        await self.close()
        return False

    @property
    def database(self) -> AsyncDatabase:
        if self._database is None:
            raise RuntimeError("MongoDB client not connected. Call connect() first.")
        return self._database

    def _collection(self, name: str) -> AsyncCollection:
        return self.database[name]

    async def ensure_indexes(self) -> None:
        """Create the indexes the catalog relies on. Idempotent."""
        try:
            await self._collection(USERS).create_index([("email", ASCENDING)], unique=True)
            products = self._collection(PRODUCTS)
            await products.create_index([("owner_id", ASCENDING), ("created_at", ASCENDING)])
            await products.create_index([("category", ASCENDING)])
            await products.create_index([("name", TEXT), ("description", TEXT)])
        except PyMongoError as e:
            raise InternalError(f"Failed to create indexes: {e}") from e
        logger.debug("MongoDB indexes ensured")

    async def insert_one(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a document and return it with its generated _id.

        Raises:
            ConflictError: If a unique index rejects the document.
            InternalError: On any other driver failure.
        """
        try:
            result = await self._collection(collection).insert_one(document)
        except DuplicateKeyError as e:
            raise ConflictError(f"Duplicate key in {collection}") from e
        except PyMongoError as e:
            raise InternalError(f"Insert into {collection} failed: {e}") from e
        return {**document, "_id": result.inserted_id}

    async def insert_many(self, collection: str, documents: list[dict[str, Any]]) -> list[Any]:
        """Insert a batch of documents in order and return their ids."""
        try:
            result = await self._collection(collection).insert_many(documents, ordered=True)
        except DuplicateKeyError as e:
            raise ConflictError(f"Duplicate key in {collection}") from e
        except PyMongoError as e:
            raise InternalError(f"Batch insert into {collection} failed: {e}") from e
        return list(result.inserted_ids)

    async def find_one(self, collection: str, predicate: dict[str, Any]) -> Optional[dict[str, Any]]:
        try:
            return await self._collection(collection).find_one(predicate)
        except PyMongoError as e:
            raise InternalError(f"Lookup in {collection} failed: {e}") from e

    async def count_documents(self, collection: str, predicate: dict[str, Any]) -> int:
        try:
            return await self._collection(collection).count_documents(predicate)
        except PyMongoError as e:
            raise InternalError(f"Count in {collection} failed: {e}") from e

    async def aggregate(self, collection: str, pipeline: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Run an aggregation pipeline and return all resulting documents."""
        try:
            cursor = await self._collection(collection).aggregate(pipeline)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise InternalError(f"Aggregation on {collection} failed: {e}") from e

    async def find_one_and_update(
        self,
        collection: str,
        predicate: dict[str, Any],
        update: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """Atomically update the first match and return it after the update."""
        try:
            return await self._collection(collection).find_one_and_update(
                predicate,
                update,
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            raise ConflictError(f"Duplicate key in {collection}") from e
        except PyMongoError as e:
            raise InternalError(f"Update in {collection} failed: {e}") from e

    async def find_one_and_delete(
        self,
        collection: str,
        predicate: dict[str, Any],
    ) -> Optional[dict[str, Any]]:
        """Atomically delete the first match and return the removed document."""
        try:
            return await self._collection(collection).find_one_and_delete(predicate)
        except PyMongoError as e:
            raise InternalError(f"Delete in {collection} failed: {e}") from e
