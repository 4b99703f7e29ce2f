"""Unit tests for SourceResolutionCache and ProductHydrator.

Verifies that each distinct source costs exactly one store lookup per
hydration call, that ordering is preserved, and that the first failure
aborts the whole batch.
"""

import pytest

from wishkeeper.core.errors import EmptyResultError, FieldNotLoadedError, StorageError
from wishkeeper.core.hydrator import ProductHydrator
from wishkeeper.core.models import SOURCE_COLLECTION, Product, Source
from wishkeeper.core.repository import EntityRepository
from wishkeeper.core.source_cache import SourceResolutionCache
from wishkeeper.tests.fakes import FakeDocumentStore


def make_product(name: str, source_id: str | None) -> Product:
    return Product(id=None, item_id=None, name=name, source_id=source_id)


@pytest.fixture
def store() -> FakeDocumentStore:
    store = FakeDocumentStore()
    store.insert(
        SOURCE_COLLECTION,
        {"_id": "s1", "name": "Shop One"},
        {"_id": "s2", "name": "Shop Two"},
    )
    return store


@pytest.fixture
def sources(store) -> EntityRepository[Source]:
    return EntityRepository(store, SOURCE_COLLECTION, Source.from_document)


class TestSourceResolutionCache:
    @pytest.mark.asyncio
    async def test_first_resolve_hits_store(self, store, sources):
        cache = SourceResolutionCache(sources)

        source = await cache.resolve("s1")

        assert source.name == "Shop One"
        assert store.lookups(SOURCE_COLLECTION) == 1
        assert "s1" in cache

    @pytest.mark.asyncio
    async def test_repeat_resolve_is_served_from_cache(self, store, sources):
        cache = SourceResolutionCache(sources)

        first = await cache.resolve("s1")
        second = await cache.resolve("s1")

        assert first is second
        assert store.lookups(SOURCE_COLLECTION) == 1
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_unknown_source_fails(self, sources):
        cache = SourceResolutionCache(sources)

        with pytest.raises(EmptyResultError):
            await cache.resolve("missing")
        assert "missing" not in cache


class TestProductHydrator:
    @pytest.mark.asyncio
    async def test_one_lookup_per_distinct_source(self, store, sources):
        products = [
            make_product("a", "s1"),
            make_product("b", "s2"),
            make_product("c", "s1"),
            make_product("d", "s1"),
        ]

        await ProductHydrator(sources).hydrate(products)

        looked_up = [call[1] for call in store.find_one_calls]
        assert looked_up == [{"_id": "s1"}, {"_id": "s2"}]
        assert products[0].source is products[2].source is products[3].source
        assert products[1].source.name == "Shop Two"

    @pytest.mark.asyncio
    async def test_preserves_order(self, sources):
        products = [make_product(name, "s2") for name in ("z", "a", "m")]

        result = await ProductHydrator(sources).hydrate(products)

        assert result is products
        assert [p.name for p in result] == ["z", "a", "m"]

    @pytest.mark.asyncio
    async def test_cache_is_scoped_to_one_call(self, store, sources):
        hydrator = ProductHydrator(sources)

        await hydrator.hydrate([make_product("a", "s1")])
        await hydrator.hydrate([make_product("b", "s1")])

        assert store.lookups(SOURCE_COLLECTION) == 2

    @pytest.mark.asyncio
    async def test_empty_batch_makes_no_lookups(self, store, sources):
        assert await ProductHydrator(sources).hydrate([]) == []
        assert store.total_calls == 0

    @pytest.mark.asyncio
    async def test_missing_source_id_aborts_batch(self, store, sources):
        products = [
            make_product("a", "s1"),
            make_product("b", None),
            make_product("c", "s2"),
        ]

        with pytest.raises(FieldNotLoadedError) as exc_info:
            await ProductHydrator(sources).hydrate(products)

        assert (exc_info.value.entity, exc_info.value.field) == ("product", "source_id")
        assert products[0].source is not None
        assert products[2].source is None
        assert store.lookups(SOURCE_COLLECTION) == 1

    @pytest.mark.asyncio
    async def test_unknown_source_aborts_batch(self, sources):
        products = [make_product("a", "missing"), make_product("b", "s1")]

        with pytest.raises(EmptyResultError):
            await ProductHydrator(sources).hydrate(products)
        assert products[1].source is None

    @pytest.mark.asyncio
    async def test_storage_error_propagates(self, store, sources):
        store.fail_on(SOURCE_COLLECTION, StorageError("timeout"))

        with pytest.raises(StorageError):
            await ProductHydrator(sources).hydrate([make_product("a", "s1")])
