"""Port interfaces for the Wishkeeper catalog.

These abstract base classes define the boundaries between core
domain logic and external adapters. Implementations live in the
adapters/ package.

Port Interface Categories:

1. **Driven Ports** (core calls out to adapters)
   - DocumentStorePort: Read documents from a named collection

2. **Driving Ports** (adapters/external systems call into core)
   - CatalogPort: Aggregate read views served to callers
"""

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from .models import Category, Document, Pagination, Product, Wishlist
from .query import Filter, FindOptions


# ============================================================================
# DRIVEN PORTS (Core calls out to adapters)
# ============================================================================


class DocumentStorePort(ABC):
    """Port for reading documents from the backing document store.

    The store holds four logical collections (wishlist, product, source,
    category). Filters use the MongoDB query dialect restricted to field
    equality, ``$in``, ``$nin`` and ``$not``/``$in``.

    Implementations must handle:
    - Translating FindOptions (sort, projection, skip, limit)
    - Wrapping driver/transport failures in StorageError
    - Connection pooling and reconnection (the core never retries)
    """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> Document | None:
        """Return the first document matching ``filter``.

        Args:
            collection: Logical collection name.
            filter: Query predicate. None matches every document.
            options: Sort and projection to apply (skip/limit are honored
                if given).

        Returns:
            The first matching document, or None if nothing matched.

        Raises:
            StorageError: If the store is unreachable or the query fails.
        """

    @abstractmethod
    def find(
        self,
        collection: str,
        filter: Filter | None = None,
        options: FindOptions | None = None,
    ) -> AsyncIterator[Document]:
        """Stream every document matching ``filter``.

        The returned iterator is lazy and can only be consumed once.

        Args:
            collection: Logical collection name.
            filter: Query predicate. None matches every document.
            options: Sort, projection, skip and limit to apply.

        Yields:
            Raw documents in the requested sort order.

        Raises:
            StorageError: If the store is unreachable or the query fails.
        """

    @abstractmethod
    async def count(self, collection: str, filter: Filter | None = None) -> int:
        """Count documents matching ``filter``.

        Raises:
            StorageError: If the store is unreachable or the query fails.
        """

    @abstractmethod
    async def close(self) -> None:
        """Release connections held by the store."""


# ============================================================================
# DRIVING PORTS (External systems call into core)
# ============================================================================


class CatalogPort(ABC):
    """Port for the read views served to request-routing layers.

    Every operation is an independent, sequential pipeline of store reads.
    No partial aggregates are returned: the first required lookup or
    required-field check that fails aborts the whole operation.
    """

    @abstractmethod
    async def get_last_wishlist_hydrated(self) -> Wishlist:
        """Return the most recent wishlist with its products and sources.

        Raises:
            EmptyResultError: If no wishlist exists, or a referenced source
                is missing.
            FieldNotLoadedError: If the wishlist has no product_ids.
        """

    @abstractmethod
    async def get_newest_products(self) -> list[Product]:
        """Return the newest products (at most 10), sources attached."""

    @abstractmethod
    async def get_archived_products(self, pagination: Pagination) -> list[Product]:
        """Return one page of products not on the latest wishlist.

        Raises:
            EmptyResultError: If no wishlist exists.
            FieldNotLoadedError: If the wishlist has no product_ids.
        """

    @abstractmethod
    async def get_archived_product_count(self) -> int:
        """Count products not on the latest wishlist."""

    @abstractmethod
    async def get_categories(self) -> list[Category]:
        """Return every category."""

    @abstractmethod
    async def get_category_by_name(self, name: str) -> Category:
        """Return the category with exactly this name.

        The name "null" resolves to the default category without a
        store lookup.

        Raises:
            EmptyResultError: If no category has this name.
        """

    @abstractmethod
    async def get_products_by_category_name(self, name: str) -> list[Product]:
        """Return products assigned to the named category, sources attached.

        Raises:
            EmptyResultError: If no category has this name.
            FieldNotLoadedError: If the category has no id.
        """
