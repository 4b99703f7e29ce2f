"""Catalog service: implements CatalogPort for the caller-facing read views.

Builds category and archive queries on top of the wishlist aggregator.
"Archived" products are everything not on the latest wishlist; that set
subtraction is pushed down to the store as a negated membership filter
rather than computed in memory.
"""

import logging

from .hydrator import ProductHydrator
from .models import NULL_CATEGORY_NAME, Category, Pagination, Product, Wishlist
from .ports import CatalogPort
from .query import (
    DESCENDING,
    ID_FIELD,
    PRODUCT_LISTING_PROJECTION,
    Filter,
    FindOptions,
    archived_products_filter,
    archived_products_options,
    field_equals,
    sort_by,
)
from .repository import EntityRepository
from .wishlist_aggregator import WishlistAggregator

logger = logging.getLogger(__name__)

NEWEST_PRODUCTS_LIMIT = 10

NEWEST_PRODUCTS_OPTIONS = FindOptions(
    sort=sort_by(ID_FIELD, DESCENDING),
    projection=PRODUCT_LISTING_PROJECTION,
    limit=NEWEST_PRODUCTS_LIMIT,
)


class CatalogService(CatalogPort):
    """Core implementation of CatalogPort.

    Every operation runs its store reads strictly in dependency order
    (wishlist, then products, then sources) and builds a fresh
    aggregate per call.
    """

    def __init__(
        self,
        aggregator: WishlistAggregator,
        products: EntityRepository[Product],
        categories: EntityRepository[Category],
        hydrator: ProductHydrator,
    ):
        """Initialize the catalog service.

        Args:
            aggregator: Resolves the latest wishlist.
            products: Repository over the product collection.
            categories: Repository over the category collection.
            hydrator: Attaches sources to fetched products.
        """
        self.aggregator = aggregator
        self.products = products
        self.categories = categories
        self.hydrator = hydrator

    async def _load_products(
        self, filter: Filter | None = None, options: FindOptions | None = None
    ) -> list[Product]:
        products = await self.products.find_many(filter, options)
        await self.hydrator.hydrate(products)
        return products

    async def _archived_filter(self) -> Filter:
        wishlist = await self.aggregator.get_last_wishlist()
        return archived_products_filter(wishlist.require_product_ids())

    async def get_last_wishlist_hydrated(self) -> Wishlist:
        return await self.aggregator.get_last_wishlist_hydrated()

    async def get_newest_products(self) -> list[Product]:
        return await self._load_products(None, NEWEST_PRODUCTS_OPTIONS)

    async def get_archived_products(self, pagination: Pagination) -> list[Product]:
        """Return one newest-first page of products not on the latest wishlist."""
        filter = await self._archived_filter()
        products = await self._load_products(
            filter, archived_products_options(pagination.offset, pagination.per_page)
        )
        logger.debug(
            f"Loaded {len(products)} archived products",
            extra={"offset": pagination.offset, "per_page": pagination.per_page},
        )
        return products

    async def get_archived_product_count(self) -> int:
        # Reads the wishlist again; a wishlist written between this call and
        # a listing call can make the two disagree.
        filter = await self._archived_filter()
        return await self.products.count(filter)

    async def get_categories(self) -> list[Category]:
        return await self.categories.find_many()

    async def get_category_by_name(self, name: str) -> Category:
        """Look up a category by exact name.

        "null" is the unassigned category and never hits the store.

        Raises:
            EmptyResultError: If no category has this name.
        """
        if name == NULL_CATEGORY_NAME:
            return Category.default()
        return await self.categories.find_one(field_equals("name", name))

    async def get_products_by_category_name(self, name: str) -> list[Product]:
        """Return products assigned to the named category.

        Raises:
            EmptyResultError: If no category has this name.
            FieldNotLoadedError: If the resolved category has no id, which
                is always the case for the "null" category.
        """
        category = await self.get_category_by_name(name)
        category_id = category.require_id()
        return await self._load_products(field_equals("category", category_id))
