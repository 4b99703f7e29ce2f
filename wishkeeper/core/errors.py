"""Error types raised by the Wishkeeper core.

Every failure the core can surface to a caller derives from CatalogError,
so adapters at the edge (CLI, HTTP) can translate the whole family in one
place.
"""


class CatalogError(Exception):
    """Base class for all catalog read errors."""


class EmptyResultError(CatalogError):
    """A required single-document lookup matched nothing."""

    def __init__(self, collection: str):
        self.collection = collection
        super().__init__(f"No matching document in collection '{collection}'")


class FieldNotLoadedError(CatalogError):
    """An operation needed a field the loaded document did not carry.

    This indicates a sequencing error in a read pipeline (for example,
    hydrating a wishlist whose product_ids were never fetched), not a
    data problem.
    """

    def __init__(self, entity: str, field: str):
        self.entity = entity
        self.field = field
        super().__init__(f"Field '{field}' of {entity} was not loaded")


class StorageError(CatalogError):
    """The document store failed or was unreachable."""


class DocumentDecodeError(CatalogError):
    """A stored document could not be converted into its entity type."""
