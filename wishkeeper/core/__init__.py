"""Core domain logic for the Wishkeeper catalog.

This package contains zero external dependencies and represents
the pure read/denormalization logic of the application. All adapters
and external integrations are handled by the adapters package.
"""

from .errors import (
    CatalogError,
    DocumentDecodeError,
    EmptyResultError,
    FieldNotLoadedError,
    StorageError,
)
from .models import (
    Category,
    Pagination,
    Product,
    Source,
    Wishlist,
)

__all__ = [
    "CatalogError",
    "Category",
    "DocumentDecodeError",
    "EmptyResultError",
    "FieldNotLoadedError",
    "Pagination",
    "Product",
    "Source",
    "StorageError",
    "Wishlist",
]
