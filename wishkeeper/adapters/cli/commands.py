"""CLI command implementations for reading the Wishkeeper catalog.

This adapter maps CLI commands (wishlist, newest, archived, categories, ...)
to CatalogPort operations. It handles CLI-specific formatting and error
reporting: every command returns a JSON-ready dictionary instead of raising.
"""

import logging
from typing import Any

from wishkeeper.core.errors import CatalogError, EmptyResultError
from wishkeeper.core.models import DEFAULT_PER_PAGE, Pagination
from wishkeeper.core.ports import CatalogPort

logger = logging.getLogger(__name__)


class CLICommandHandler:
    """Handles CLI commands by delegating to CatalogPort."""

    def __init__(self, catalog: CatalogPort, default_per_page: int = DEFAULT_PER_PAGE):
        """Initialize the CLI command handler.

        Args:
            catalog: CatalogPort implementation to execute commands.
            default_per_page: Page size used when a command gives none.
        """
        self.catalog = catalog
        self.default_per_page = default_per_page

    @staticmethod
    def _error(operation: str, error: Exception) -> dict[str, Any]:
        if isinstance(error, EmptyResultError):
            logger.info(f"{operation}: {error}")
            code = "not_found"
        elif isinstance(error, ValueError):
            logger.info(f"{operation}: invalid request: {error}")
            code = "invalid_request"
        else:
            logger.error(f"{operation} failed: {error}")
            code = "error"
        return {
            "status": "error",
            "operation": operation,
            "code": code,
            "message": str(error),
        }

    def _pagination(self, offset: Any, per_page: Any) -> Pagination:
        try:
            return Pagination(
                offset=int(offset),
                per_page=int(per_page) if per_page is not None else self.default_per_page,
            )
        except TypeError as e:
            raise ValueError(f"Invalid pagination: {e}") from e

    async def get_last_wishlist(self) -> dict[str, Any]:
        """Show the latest wishlist with its products."""
        try:
            wishlist = await self.catalog.get_last_wishlist_hydrated()
        except CatalogError as e:
            return self._error("wishlist", e)
        return {
            "status": "success",
            "operation": "wishlist",
            "wishlist": wishlist.to_dict(),
        }

    async def get_newest_products(self) -> dict[str, Any]:
        """Show the newest products."""
        try:
            products = await self.catalog.get_newest_products()
        except CatalogError as e:
            return self._error("newest", e)
        return {
            "status": "success",
            "operation": "newest",
            "products": [product.to_dict() for product in products],
        }

    async def get_archived_products(
        self, offset: int = 0, per_page: int | None = None
    ) -> dict[str, Any]:
        """Show one page of archived products.

        Args:
            offset: Number of archived products to skip.
            per_page: Page size; defaults to the configured page size.
        """
        try:
            pagination = self._pagination(offset, per_page)
            products = await self.catalog.get_archived_products(pagination)
        except (CatalogError, ValueError) as e:
            return self._error("archived", e)
        return {
            "status": "success",
            "operation": "archived",
            "offset": pagination.offset,
            "per_page": pagination.per_page,
            "products": [product.to_dict() for product in products],
        }

    async def get_archived_product_count(self) -> dict[str, Any]:
        """Show how many products are archived."""
        try:
            count = await self.catalog.get_archived_product_count()
        except CatalogError as e:
            return self._error("archived-count", e)
        return {"status": "success", "operation": "archived-count", "count": count}

    async def get_categories(self) -> dict[str, Any]:
        """List every category."""
        try:
            categories = await self.catalog.get_categories()
        except CatalogError as e:
            return self._error("categories", e)
        return {
            "status": "success",
            "operation": "categories",
            "categories": [category.to_dict() for category in categories],
        }

    async def get_products_by_category(self, name: str) -> dict[str, Any]:
        """List products in the named category."""
        try:
            products = await self.catalog.get_products_by_category_name(name)
        except CatalogError as e:
            return self._error("category", e)
        return {
            "status": "success",
            "operation": "category",
            "category": name,
            "products": [product.to_dict() for product in products],
        }
