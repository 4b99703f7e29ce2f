"""MongoDB document store adapter.

Implements DocumentStorePort using pymongo's native asyncio client.
Filters are already in the MongoDB dialect and are passed through
unchanged; FindOptions are mapped onto find() keyword arguments.
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

from pymongo import AsyncMongoClient
from pymongo.errors import PyMongoError

from wishkeeper.core.errors import StorageError
from wishkeeper.core.models import Document
from wishkeeper.core.ports import DocumentStorePort
from wishkeeper.core.query import Filter, FindOptions

logger = logging.getLogger(__name__)


class MongoDocumentStore(DocumentStorePort):
    """MongoDB-backed document store with a shared client connection pool."""

    def __init__(
        self,
        url: str = "mongodb://localhost:27017",
        database: str = "wishlist",
        client: AsyncMongoClient | None = None,
    ):
        """Initialize the MongoDB store.

        The client connects lazily on the first operation.

        Args:
            url: MongoDB connection URL.
            database: Name of the database holding the collections.
            client: Pre-built client to use instead of creating one from url.
        """
        self.url = url
        self.database = database
        self._client: AsyncMongoClient = client if client is not None else AsyncMongoClient(url)

    def _collection(self, name: str) -> Any:
        return self._client[self.database][name]

    @staticmethod
    def _find_kwargs(options: FindOptions | None) -> dict[str, Any]:
        """Translate FindOptions into pymongo find() keyword arguments."""
        if options is None:
            return {}
        kwargs: dict[str, Any] = {}
        if options.sort:
            kwargs["sort"] = list(options.sort)
        if options.projection is not None:
            kwargs["projection"] = dict(options.projection)
        if options.skip:
            kwargs["skip"] = options.skip
        if options.limit is not None:
            kwargs["limit"] = options.limit
        return kwargs

    async def find_one(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> Document | None:
        """Return the first matching document, or None."""
        try:
            return await self._collection(collection).find_one(
                filter, **self._find_kwargs(options)
            )
        except PyMongoError as e:
            logger.error(f"find_one on '{collection}' failed: {e}")
            raise StorageError(f"find_one on '{collection}' failed: {e}") from e

    async def find(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> AsyncIterator[Document]:
        """Stream matching documents from a server-side cursor."""
        try:
            cursor = self._collection(collection).find(
                filter, **self._find_kwargs(options)
            )
            async for document in cursor:
                yield document
        except PyMongoError as e:
            logger.error(f"find on '{collection}' failed: {e}")
            raise StorageError(f"find on '{collection}' failed: {e}") from e

    async def count(self, collection: str, filter: Filter | None = None) -> int:
        """Count matching documents with count_documents."""
        try:
            return await self._collection(collection).count_documents(filter or {})
        except PyMongoError as e:
            logger.error(f"count on '{collection}' failed: {e}")
            raise StorageError(f"count on '{collection}' failed: {e}") from e

    async def close(self) -> None:
        """Close the client and its connection pool."""
        await self._client.close()
