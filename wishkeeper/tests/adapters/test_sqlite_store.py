"""Integration tests for the SQLite document store adapter."""

import json
import tempfile
from pathlib import Path

import pytest

from wishkeeper.adapters.store.sqlite import (
    SQLiteDocumentStore,
    compile_filter,
    compile_options,
)
from wishkeeper.core.errors import DocumentDecodeError, StorageError
from wishkeeper.core.models import Pagination
from wishkeeper.core.query import DESCENDING, FindOptions, sort_by
from wishkeeper.main import build_catalog


async def seed(store: SQLiteDocumentStore, collection: str, *documents: dict) -> None:
    """Insert documents through a raw pooled connection."""
    conn = await store._get_connection()
    try:
        for document in documents:
            body = {k: v for k, v in document.items() if k != "_id"}
            await conn.execute(
                "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
                (collection, document["_id"], json.dumps(body)),
            )
        await conn.commit()
    finally:
        await store._return_connection(conn)


async def seed_raw(store: SQLiteDocumentStore, collection: str, doc_id: str, body: str) -> None:
    """Insert a row with an arbitrary, possibly unreadable, body."""
    conn = await store._get_connection()
    try:
        await conn.execute(
            "INSERT INTO documents (collection, id, body) VALUES (?, ?, ?)",
            (collection, doc_id, body),
        )
        await conn.commit()
    finally:
        await store._return_connection(conn)


@pytest.fixture
async def temp_store() -> SQLiteDocumentStore:
    """Create a temporary SQLite document store for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SQLiteDocumentStore(str(Path(tmpdir) / "test.db"))
        await store._init_schema()
        yield store
        await store.close()


@pytest.fixture
async def catalog_store(temp_store: SQLiteDocumentStore) -> SQLiteDocumentStore:
    """Store seeded with the wishlist [p1, p2] over products p1..p3."""
    await seed(temp_store, "source", {"_id": "s1", "name": "Shop One"})
    await seed(temp_store, "category", {"_id": "c1", "name": "Electronics"})
    await seed(
        temp_store,
        "product",
        {"_id": "p1", "name": "Lamp", "source_id": "s1", "category": "c1",
         "timestamp": "2024-01-01T10:00:00+00:00"},
        {"_id": "p2", "name": "Desk", "source_id": "s1",
         "timestamp": "2024-01-02T10:00:00+00:00"},
        {"_id": "p3", "name": "Chair", "source_id": "s1", "category": "c1",
         "timestamp": "2024-01-03T10:00:00+00:00"},
    )
    await seed(
        temp_store,
        "wishlist",
        {"_id": "w1", "timestamp": "2024-01-01T00:00:00+00:00", "product_ids": ["p1"]},
        {"_id": "w2", "timestamp": "2024-01-05T00:00:00+00:00", "product_ids": ["p1", "p2"]},
    )
    return temp_store


# ============================================================================
# Filter compilation
# ============================================================================


class TestCompileFilter:
    def test_empty_filter_matches_all(self):
        assert compile_filter(None) == ("1", [])
        assert compile_filter({}) == ("1", [])

    def test_id_equality_uses_column(self):
        assert compile_filter({"_id": "p1"}) == ("id = ?", ["p1"])

    def test_field_equality_uses_guarded_json_extract(self):
        assert compile_filter({"name": "Lamp"}) == (
            "CASE WHEN json_valid(body) THEN json_extract(body, '$.name') END = ?",
            ["Lamp"],
        )

    def test_in(self):
        assert compile_filter({"_id": {"$in": ["a", "b"]}}) == ("id IN (?, ?)", ["a", "b"])

    def test_not_in(self):
        clause, params = compile_filter({"_id": {"$not": {"$in": ["a"]}}})

        assert clause == "(id IS NULL OR id NOT IN (?))"
        assert params == ["a"]

    def test_empty_membership(self):
        assert compile_filter({"_id": {"$in": []}}) == ("0", [])
        assert compile_filter({"_id": {"$nin": []}}) == ("1", [])

    def test_unsupported_operator(self):
        with pytest.raises(ValueError, match="Unsupported filter operator"):
            compile_filter({"price": {"$gt": 10}})

    def test_rejects_unsafe_field_name(self):
        with pytest.raises(ValueError, match="Unsupported field name"):
            compile_filter({"name') OR 1=1 --": "x"})

    def test_options(self):
        sql, params = compile_options(
            FindOptions(sort=sort_by("_id", DESCENDING), skip=5, limit=10)
        )

        assert sql == " ORDER BY id DESC LIMIT ? OFFSET ?"
        assert params == [10, 5]

    def test_skip_without_limit(self):
        assert compile_options(FindOptions(skip=3)) == (" LIMIT ? OFFSET ?", [-1, 3])


# ============================================================================
# Store operations
# ============================================================================


@pytest.mark.asyncio
async def test_find_one_with_sort_and_projection(catalog_store):
    document = await catalog_store.find_one(
        "wishlist",
        None,
        FindOptions(sort=sort_by("timestamp", DESCENDING), projection={"_id": False}),
    )

    assert document == {
        "timestamp": "2024-01-05T00:00:00+00:00",
        "product_ids": ["p1", "p2"],
    }


@pytest.mark.asyncio
async def test_find_one_no_match(catalog_store):
    assert await catalog_store.find_one("category", {"name": "Garden"}) is None


@pytest.mark.asyncio
async def test_find_is_scoped_to_collection(catalog_store):
    documents = [doc async for doc in catalog_store.find("source")]

    assert documents == [{"_id": "s1", "name": "Shop One"}]


@pytest.mark.asyncio
async def test_find_with_window(catalog_store):
    documents = [
        doc
        async for doc in catalog_store.find(
            "product",
            None,
            FindOptions(sort=sort_by("_id", DESCENDING), skip=1, limit=1),
        )
    ]

    assert [doc["_id"] for doc in documents] == ["p2"]


@pytest.mark.asyncio
async def test_find_by_missing_field_membership(catalog_store):
    documents = [
        doc async for doc in catalog_store.find("product", {"category": {"$nin": ["c1"]}})
    ]

    # p2 has no category and still matches a negated membership test
    assert [doc["_id"] for doc in documents] == ["p2"]


@pytest.mark.asyncio
async def test_count(catalog_store):
    assert await catalog_store.count("product") == 3
    assert await catalog_store.count("product", {"category": "c1"}) == 2
    assert await catalog_store.count("product", {"_id": {"$not": {"$in": ["p1", "p2"]}}}) == 1


@pytest.mark.asyncio
async def test_find_skips_unreadable_rows(temp_store):
    await seed_raw(temp_store, "source", "bad", "not json")
    await seed(temp_store, "source", {"_id": "good", "name": "Shop"})

    documents = [doc async for doc in temp_store.find("source")]

    assert [doc["_id"] for doc in documents] == ["good"]
    with pytest.raises(DocumentDecodeError):
        await temp_store.find_one("source", {"_id": "bad"})


@pytest.mark.asyncio
async def test_sqlite_errors_are_wrapped(temp_store):
    conn = await temp_store._get_connection()
    try:
        await conn.execute("DROP TABLE documents")
        await conn.commit()
    finally:
        await temp_store._return_connection(conn)

    with pytest.raises(StorageError):
        await temp_store.count("product")
    with pytest.raises(StorageError):
        await temp_store.find_one("product")


# ============================================================================
# End-to-end through the catalog
# ============================================================================


@pytest.mark.asyncio
async def test_archived_products_end_to_end(catalog_store):
    catalog = build_catalog(catalog_store)

    products = await catalog.get_archived_products(Pagination(offset=0, per_page=10))

    assert [p.name for p in products] == ["Chair"]
    assert products[0].source.name == "Shop One"
    assert await catalog.get_archived_product_count() == 1


@pytest.mark.asyncio
async def test_hydrated_wishlist_end_to_end(catalog_store):
    catalog = build_catalog(catalog_store)

    wishlist = await catalog.get_last_wishlist_hydrated()

    assert [p.name for p in wishlist.products] == ["Desk", "Lamp"]


@pytest.mark.asyncio
async def test_products_by_category_end_to_end(catalog_store):
    catalog = build_catalog(catalog_store)

    products = await catalog.get_products_by_category_name("Electronics")

    assert sorted(p.name for p in products) == ["Chair", "Lamp"]


@pytest.mark.asyncio
async def test_unreadable_product_row_does_not_break_listings(catalog_store):
    await seed_raw(catalog_store, "product", "p9", "not json")
    catalog = build_catalog(catalog_store)

    by_category = await catalog.get_products_by_category_name("Electronics")
    archived = await catalog.get_archived_products(Pagination(offset=0, per_page=10))

    assert sorted(p.name for p in by_category) == ["Chair", "Lamp"]
    assert [p.name for p in archived] == ["Chair"]
    assert await catalog.get_archived_product_count() == 1


@pytest.mark.asyncio
async def test_unreadable_wishlist_row_is_passed_over(catalog_store):
    await seed_raw(catalog_store, "wishlist", "w9", "{broken")
    catalog = build_catalog(catalog_store)

    wishlist = await catalog.get_last_wishlist_hydrated()

    assert wishlist.product_ids == ("p1", "p2")
