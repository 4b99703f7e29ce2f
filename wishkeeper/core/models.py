"""Domain models for the Wishkeeper catalog.

All models in this module use only Python standard library types,
ensuring zero external dependencies in the core domain. Identifiers are
kept opaque (a Mongo ObjectId, a string from SQLite, ...): the core only
needs them to be hashable and comparable for equality.
"""

from collections.abc import Hashable, Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, TypeAlias

from .errors import DocumentDecodeError, FieldNotLoadedError

Document: TypeAlias = dict[str, Any]
DocumentId: TypeAlias = Hashable

# Logical collection names in the document store
WISHLIST_COLLECTION = "wishlist"
PRODUCT_COLLECTION = "product"
SOURCE_COLLECTION = "source"
CATEGORY_COLLECTION = "category"

# Category name meaning "no category assigned"
NULL_CATEGORY_NAME = "null"

DEFAULT_PER_PAGE = 20


def _parse_timestamp(value: Any) -> datetime | None:
    """Normalize a stored timestamp (datetime, epoch seconds or ISO string)."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    if isinstance(value, bool):
        raise DocumentDecodeError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise DocumentDecodeError(f"Timestamp out of range: {value!r}") from e
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError as e:
            raise DocumentDecodeError(f"Invalid timestamp: {value!r}") from e
    raise DocumentDecodeError(f"Invalid timestamp type: {type(value).__name__}")


def _optional_str(doc: Mapping[str, Any], key: str) -> str | None:
    value = doc.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise DocumentDecodeError(
            f"Field '{key}' must be a string, got {type(value).__name__}"
        )
    return value


def _render_id(value: DocumentId | None) -> str | None:
    return None if value is None else str(value)


@dataclass(frozen=True)
class Source:
    """The vendor or site a product was found on.

    Immutable once fetched, so one instance is shared by every product
    referencing the same source.
    """

    id: DocumentId | None
    name: str
    url: str | None = None
    logo_url: str | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Source":
        name = _optional_str(doc, "name")
        if name is None:
            raise DocumentDecodeError("Source document is missing 'name'")
        return cls(
            id=doc.get("_id"),
            name=name,
            url=_optional_str(doc, "url"),
            logo_url=_optional_str(doc, "logo_url"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": _render_id(self.id),
            "name": self.name,
            "url": self.url,
            "logo_url": self.logo_url,
        }


@dataclass(frozen=True)
class Category:
    """A product category.

    The default category (no id, name "null") stands for "unassigned" and
    never comes from storage.
    """

    id: DocumentId | None
    name: str

    @classmethod
    def default(cls) -> "Category":
        """Return the unassigned category."""
        return cls(id=None, name=NULL_CATEGORY_NAME)

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Category":
        name = _optional_str(doc, "name")
        if name is None:
            raise DocumentDecodeError("Category document is missing 'name'")
        return cls(id=doc.get("_id"), name=name)

    def require_id(self) -> DocumentId:
        """Return the category id or fail if it was never loaded."""
        if self.id is None:
            raise FieldNotLoadedError("category", "id")
        return self.id

    def to_dict(self) -> dict[str, Any]:
        return {"id": _render_id(self.id), "name": self.name}


@dataclass
class Product:
    """A product tracked on a wishlist.

    Products reference their source by id. The resolved Source is attached
    exactly once by the hydrator; until then ``source`` is None.

    Note: This dataclass is intentionally mutable so hydration can fill in
    ``source`` after the product has been decoded.
    """

    id: DocumentId | None
    item_id: str | None
    name: str
    source_id: DocumentId | None
    price: float | None = None
    currency: str | None = None
    url: str | None = None
    image_url: str | None = None
    category_id: DocumentId | None = None
    timestamp: datetime | None = None
    source: Source | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Product":
        name = _optional_str(doc, "name")
        if name is None:
            raise DocumentDecodeError("Product document is missing 'name'")

        price = doc.get("price")
        if price is not None:
            if isinstance(price, bool):
                raise DocumentDecodeError(f"Invalid price: {price!r}")
            try:
                price = float(price)
            except (TypeError, ValueError) as e:
                raise DocumentDecodeError(f"Invalid price: {price!r}") from e

        item_id = doc.get("item_id")
        return cls(
            id=doc.get("_id"),
            item_id=None if item_id is None else str(item_id),
            name=name,
            source_id=doc.get("source_id"),
            price=price,
            currency=_optional_str(doc, "currency"),
            url=_optional_str(doc, "url"),
            image_url=_optional_str(doc, "image_url"),
            category_id=doc.get("category"),
            timestamp=_parse_timestamp(doc.get("timestamp")),
        )

    def require_source_id(self) -> DocumentId:
        """Return the source id or fail if the document did not carry one."""
        if self.source_id is None:
            raise FieldNotLoadedError("product", "source_id")
        return self.source_id

    def attach_source(self, source: Source) -> None:
        """Attach the resolved source. Only allowed once."""
        if self.source is not None:
            raise ValueError(f"Product {self.name!r} already has a source attached")
        self.source = source

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": _render_id(self.id),
            "item_id": self.item_id,
            "name": self.name,
            "price": self.price,
            "currency": self.currency,
            "url": self.url,
            "image_url": self.image_url,
            "category_id": _render_id(self.category_id),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "source": self.source.to_dict() if self.source else None,
        }


@dataclass
class Wishlist:
    """A snapshot of the wishlist at a point in time.

    ``product_ids`` is None when the field was not loaded, and an empty
    tuple when it was loaded and the wishlist is empty. ``products`` stays
    None until the aggregate is hydrated.
    """

    id: DocumentId | None
    timestamp: datetime | None
    product_ids: tuple[DocumentId, ...] | None = None
    products: list[Product] | None = None

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Wishlist":
        raw_ids = doc.get("product_ids")
        product_ids = None
        if raw_ids is not None:
            if not isinstance(raw_ids, (list, tuple)):
                raise DocumentDecodeError(
                    f"Field 'product_ids' must be a list, got {type(raw_ids).__name__}"
                )
            product_ids = tuple(raw_ids)
        return cls(
            id=doc.get("_id"),
            timestamp=_parse_timestamp(doc.get("timestamp")),
            product_ids=product_ids,
        )

    def require_product_ids(self) -> tuple[DocumentId, ...]:
        """Return the product ids or fail if they were never loaded."""
        if self.product_ids is None:
            raise FieldNotLoadedError("wishlist", "product_ids")
        return self.product_ids

    def set_products(self, products: list[Product]) -> None:
        """Attach the hydrated products. Only allowed once."""
        if self.products is not None:
            raise ValueError("Wishlist products are already set")
        self.products = products

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": _render_id(self.id),
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "product_ids": (
                [str(pid) for pid in self.product_ids]
                if self.product_ids is not None
                else None
            ),
            "products": (
                [product.to_dict() for product in self.products]
                if self.products is not None
                else None
            ),
        }


@dataclass(frozen=True)
class Pagination:
    """A page window over a sorted listing."""

    offset: int = 0
    per_page: int = DEFAULT_PER_PAGE

    def __post_init__(self) -> None:
        """Validate pagination invariants on creation."""
        if self.offset < 0:
            raise ValueError(f"offset must be non-negative, got {self.offset}")
        if self.per_page <= 0:
            raise ValueError(f"per_page must be positive, got {self.per_page}")
