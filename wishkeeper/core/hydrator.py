"""Product hydration: attach each product's resolved Source."""

import logging
from collections.abc import MutableSequence

from .models import Product, Source
from .repository import EntityRepository
from .source_cache import SourceResolutionCache

logger = logging.getLogger(__name__)


class ProductHydrator:
    """Replaces product source references with resolved Source entities.

    Each call gets its own SourceResolutionCache, so a batch referencing K
    distinct sources issues at most K source lookups.
    """

    def __init__(self, sources: EntityRepository[Source]):
        """Initialize the hydrator.

        Args:
            sources: Repository over the source collection.
        """
        self.sources = sources

    async def hydrate(self, products: MutableSequence[Product]) -> MutableSequence[Product]:
        """Attach sources to every product in place, preserving order.

        Products are processed in iteration order and the first failure
        aborts the rest of the batch.

        Args:
            products: Products carrying a source_id but no source.

        Returns:
            The same sequence, for chaining.

        Raises:
            FieldNotLoadedError: If a product has no source_id.
            EmptyResultError: If a referenced source does not exist.
            StorageError: If the store fails.
        """
        cache = SourceResolutionCache(self.sources)
        for product in products:
            source_id = product.require_source_id()
            product.attach_source(await cache.resolve(source_id))

        logger.debug(
            f"Hydrated {len(products)} products from {len(cache)} sources",
            extra={"products": len(products), "distinct_sources": len(cache)},
        )
        return products
