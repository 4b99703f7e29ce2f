"""Entity repository: typed fetch/list/count over one collection.

Wraps DocumentStorePort with a decoder so the rest of the core works with
entities instead of raw documents. Listings degrade gracefully: a document
that fails to decode is logged and dropped. Single lookups do not.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any, Generic, TypeVar

from .errors import DocumentDecodeError, EmptyResultError
from .ports import DocumentStorePort
from .query import Filter, FindOptions

logger = logging.getLogger(__name__)

T = TypeVar("T")

Decoder = Callable[[Mapping[str, Any]], T]


class EntityRepository(Generic[T]):
    """Typed read access to a single named collection."""

    def __init__(
        self,
        store: DocumentStorePort,
        collection: str,
        decoder: "Decoder[T]",
    ):
        """Initialize the repository.

        Args:
            store: DocumentStorePort implementation to read from.
            collection: Logical collection name.
            decoder: Converts a raw document into the entity type. Must raise
                DocumentDecodeError (or ValueError/KeyError/TypeError) on
                malformed input.
        """
        self.store = store
        self.collection = collection
        self.decoder = decoder

    def _decode(self, document: Mapping[str, Any]) -> T:
        try:
            return self.decoder(document)
        except DocumentDecodeError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise DocumentDecodeError(
                f"Malformed document in '{self.collection}': {e}"
            ) from e

    async def find_one(
        self,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> T:
        """Fetch and decode exactly one entity.

        Raises:
            EmptyResultError: If nothing matched ``filter``.
            DocumentDecodeError: If the matched document is malformed.
            StorageError: If the store fails.
        """
        document = await self.store.find_one(self.collection, filter, options)
        if document is None:
            raise EmptyResultError(self.collection)
        return self._decode(document)

    async def find_many(
        self,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> list[T]:
        """Fetch every matching entity, skipping documents that fail to decode.

        The store cursor is drained into a list before returning.

        Raises:
            StorageError: If the store fails.
        """
        results: list[T] = []
        skipped = 0
        async for document in self.store.find(self.collection, filter, options):
            try:
                results.append(self._decode(document))
            except DocumentDecodeError as e:
                skipped += 1
                logger.warning(
                    f"Skipping malformed document in '{self.collection}': {e}",
                    extra={
                        "collection": self.collection,
                        "document_id": str(document.get("_id")),
                    },
                )

        logger.debug(
            f"Loaded {len(results)} documents from '{self.collection}'",
            extra={"collection": self.collection, "skipped": skipped},
        )
        return results

    async def count(self, filter: Filter | None = None) -> int:
        """Count documents matching ``filter``.

        Raises:
            StorageError: If the store fails.
        """
        return await self.store.count(self.collection, filter)
