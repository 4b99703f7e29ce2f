"""Query options and filter builders for the document store.

Filters are plain dicts in the MongoDB query dialect, restricted to the
operators every store adapter supports: field equality, ``$in``, ``$nin``
and ``$not`` wrapping ``$in``.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from .models import DocumentId

ASCENDING = 1
DESCENDING = -1

ID_FIELD = "_id"

# Fields stripped from product listings returned to callers
PRODUCT_LISTING_PROJECTION: Mapping[str, bool] = MappingProxyType(
    {ID_FIELD: False, "item_id": False}
)

Filter = dict[str, Any]


@dataclass(frozen=True)
class FindOptions:
    """Options for a find/find_one call.

    Attributes:
        sort: (field, direction) pairs applied in order.
        projection: field -> include flag. None returns whole documents.
        skip: Number of matching documents to skip.
        limit: Maximum number of documents to return, None for no limit.
    """

    sort: tuple[tuple[str, int], ...] = ()
    projection: Mapping[str, bool] | None = None
    skip: int = 0
    limit: int | None = None

    def __post_init__(self) -> None:
        """Validate option invariants on creation."""
        for sort_field, direction in self.sort:
            if direction not in (ASCENDING, DESCENDING):
                raise ValueError(
                    f"Sort direction for '{sort_field}' must be 1 or -1, got {direction}"
                )
        if self.skip < 0:
            raise ValueError(f"skip must be non-negative, got {self.skip}")
        if self.limit is not None and self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if isinstance(self.projection, dict):
            object.__setattr__(
                self, "projection", MappingProxyType(self.projection)
            )


def sort_by(field_name: str, direction: int = ASCENDING) -> tuple[tuple[str, int], ...]:
    """Build a single-field sort specification."""
    return ((field_name, direction),)


def ids_in(ids: Iterable[DocumentId]) -> Filter:
    """Match documents whose id is in ``ids``."""
    return {ID_FIELD: {"$in": list(ids)}}


def ids_not_in(ids: Iterable[DocumentId]) -> Filter:
    """Match documents whose id is NOT in ``ids``."""
    return {ID_FIELD: {"$not": {"$in": list(ids)}}}


def id_equals(document_id: DocumentId) -> Filter:
    return {ID_FIELD: document_id}


def field_equals(field_name: str, value: Any) -> Filter:
    return {field_name: value}


def archived_products_filter(wishlist_product_ids: Iterable[DocumentId]) -> Filter:
    """Predicate for archived products: every product not on the wishlist.

    Shared by the paginated archive listing and the archive count so both
    evaluate the same set subtraction in storage.
    """
    return ids_not_in(wishlist_product_ids)


def archived_products_options(offset: int, per_page: int) -> FindOptions:
    """Newest-first page window over archived products."""
    return FindOptions(
        sort=sort_by(ID_FIELD, DESCENDING),
        projection=PRODUCT_LISTING_PROJECTION,
        skip=offset,
        limit=per_page,
    )


def apply_projection(
    document: Mapping[str, Any], projection: Mapping[str, bool] | None
) -> dict[str, Any]:
    """Apply a MongoDB-style projection to a document in memory.

    For stores that cannot project server-side. A projection is either
    all-inclusion or all-exclusion; ``_id`` is kept in inclusion mode
    unless it is explicitly excluded.

    Raises:
        ValueError: If inclusion and exclusion are mixed on fields other
            than ``_id``.
    """
    if projection is None:
        return dict(document)

    included = {name for name, keep in projection.items() if keep}
    excluded = {name for name, keep in projection.items() if not keep}
    if included and excluded - {ID_FIELD}:
        raise ValueError("Projection cannot mix inclusion and exclusion")

    if included:
        if ID_FIELD not in excluded:
            included.add(ID_FIELD)
        return {name: value for name, value in document.items() if name in included}
    return {name: value for name, value in document.items() if name not in excluded}
