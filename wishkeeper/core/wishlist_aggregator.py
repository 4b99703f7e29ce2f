"""Wishlist aggregator: the latest wishlist with its products hydrated."""

import logging

from .hydrator import ProductHydrator
from .models import Product, Wishlist
from .query import (
    DESCENDING,
    ID_FIELD,
    PRODUCT_LISTING_PROJECTION,
    FindOptions,
    ids_in,
    sort_by,
)
from .repository import EntityRepository

logger = logging.getLogger(__name__)

# Latest snapshot first; the raw id is not needed downstream
LAST_WISHLIST_OPTIONS = FindOptions(
    sort=sort_by("timestamp", DESCENDING),
    projection={ID_FIELD: False},
)

WISHLIST_PRODUCTS_OPTIONS = FindOptions(
    sort=sort_by("timestamp", DESCENDING),
    projection=PRODUCT_LISTING_PROJECTION,
)


class WishlistAggregator:
    """Builds wishlist aggregates from the wishlist and product collections."""

    def __init__(
        self,
        wishlists: EntityRepository[Wishlist],
        products: EntityRepository[Product],
        hydrator: ProductHydrator,
    ):
        """Initialize the aggregator.

        Args:
            wishlists: Repository over the wishlist collection.
            products: Repository over the product collection.
            hydrator: Attaches sources to fetched products.
        """
        self.wishlists = wishlists
        self.products = products
        self.hydrator = hydrator

    async def get_last_wishlist(self) -> Wishlist:
        """Fetch the most recent wishlist by timestamp.

        Raises:
            EmptyResultError: If there is no wishlist at all.
        """
        return await self.wishlists.find_one(None, LAST_WISHLIST_OPTIONS)

    async def hydrate_wishlist(self, wishlist: Wishlist) -> Wishlist:
        """Fetch the wishlist's products, attach sources, and set them.

        Raises:
            FieldNotLoadedError: If ``wishlist.product_ids`` was not loaded.
        """
        product_ids = wishlist.require_product_ids()
        products = await self.products.find_many(
            ids_in(product_ids), WISHLIST_PRODUCTS_OPTIONS
        )
        await self.hydrator.hydrate(products)
        wishlist.set_products(products)

        if len(products) != len(product_ids):
            logger.info(
                f"Wishlist references {len(product_ids)} products, "
                f"{len(products)} were loaded",
                extra={"referenced": len(product_ids), "loaded": len(products)},
            )
        return wishlist

    async def get_last_wishlist_hydrated(self) -> Wishlist:
        """Fetch the most recent wishlist with products and sources attached."""
        wishlist = await self.get_last_wishlist()
        return await self.hydrate_wishlist(wishlist)
