"""Unit tests for query options, filter builders and in-memory projection."""

import pytest

from wishkeeper.core.query import (
    DESCENDING,
    FindOptions,
    apply_projection,
    archived_products_filter,
    archived_products_options,
    ids_in,
    ids_not_in,
)


def test_archived_filter_is_negated_membership():
    assert archived_products_filter(("p1", "p2")) == {
        "_id": {"$not": {"$in": ["p1", "p2"]}}
    }


def test_archived_filter_matches_ids_not_in():
    ids = ["a", "b"]
    assert archived_products_filter(ids) == ids_not_in(ids)


def test_ids_in_accepts_any_iterable():
    assert ids_in(iter(["p1"])) == {"_id": {"$in": ["p1"]}}


def test_archived_options_window():
    options = archived_products_options(offset=20, per_page=10)

    assert options.sort == (("_id", DESCENDING),)
    assert options.skip == 20
    assert options.limit == 10
    assert dict(options.projection) == {"_id": False, "item_id": False}


class TestFindOptions:
    def test_rejects_bad_direction(self):
        with pytest.raises(ValueError, match="Sort direction"):
            FindOptions(sort=(("_id", 0),))

    def test_rejects_negative_skip(self):
        with pytest.raises(ValueError):
            FindOptions(skip=-1)

    def test_rejects_non_positive_limit(self):
        with pytest.raises(ValueError):
            FindOptions(limit=0)

    def test_projection_is_read_only(self):
        options = FindOptions(projection={"_id": False})

        with pytest.raises(TypeError):
            options.projection["name"] = True  # type: ignore[index]


class TestApplyProjection:
    document = {"_id": "p1", "item_id": "42", "name": "Lamp", "price": 10.0}

    def test_no_projection_copies(self):
        projected = apply_projection(self.document, None)

        assert projected == self.document
        assert projected is not self.document

    def test_exclusion(self):
        assert apply_projection(self.document, {"_id": False, "item_id": False}) == {
            "name": "Lamp",
            "price": 10.0,
        }

    def test_inclusion_keeps_id(self):
        assert apply_projection(self.document, {"name": True}) == {
            "_id": "p1",
            "name": "Lamp",
        }

    def test_inclusion_can_drop_id(self):
        assert apply_projection(self.document, {"name": True, "_id": False}) == {
            "name": "Lamp"
        }

    def test_mixed_projection_rejected(self):
        with pytest.raises(ValueError):
            apply_projection(self.document, {"name": True, "price": False})
