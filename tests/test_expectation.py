"""Tests for required-facet expectations."""

from __future__ import annotations

import pytest

from dynamo_entity import IncompleteFacetsError
from dynamo_entity.keys import expect_facets, missing_facets

SUPPLIED = {
    "store": "store-value",
    "mall": "mall-value",
    "building": "building-value",
    "unit": "unit-value",
}


@pytest.fixture
def units(stores):
    return stores.registry.by_accessor("units")


class TestExpectFacets:
    def test_all_pk_and_sk_matches(self, units) -> None:
        """Results are restricted to the required names, in required order."""
        all_names = [facet.name for facet in units.facets]

        all_matches = expect_facets(SUPPLIED, all_names)
        pk_matches = expect_facets(SUPPLIED, units.pk_facets)
        sk_matches = expect_facets(SUPPLIED, units.sk_facets)

        assert all_matches == {
            "mall": "mall-value",
            "building": "building-value",
            "unit": "unit-value",
            "store": "store-value",
        }
        assert list(all_matches) == ["mall", "building", "unit", "store"]
        assert pk_matches == {"mall": "mall-value"}
        assert list(sk_matches) == ["building", "unit", "store"]

    def test_missing_properties_default_label(self, units) -> None:
        all_names = [facet.name for facet in units.facets]

        with pytest.raises(IncompleteFacetsError) as exc_info:
            expect_facets({"store": "store-value"}, all_names)

        assert str(exc_info.value) == (
            "Incomplete or invalid key facets supplied. Missing properties: mall, building, unit"
        )
        assert exc_info.value.missing == ["mall", "building", "unit"]

    def test_missing_partition_keys_label(self, units) -> None:
        with pytest.raises(IncompleteFacetsError) as exc_info:
            expect_facets(
                {"store": "s", "building": "b", "unit": "u"}, units.pk_facets, "partition keys"
            )

        assert str(exc_info.value) == (
            "Incomplete or invalid partition keys supplied. Missing properties: mall"
        )

    def test_missing_sort_keys_label(self, units) -> None:
        with pytest.raises(IncompleteFacetsError, match="sort keys supplied. Missing properties: unit"):
            expect_facets({"store": "s", "mall": "m", "building": "b"}, units.sk_facets, "sort keys")

    def test_none_counts_as_missing(self) -> None:
        assert missing_facets({"mall": None, "store": "s"}, ["mall", "store"]) == ["mall"]

        with pytest.raises(IncompleteFacetsError):
            expect_facets({"mall": None}, ["mall"])

    def test_falsy_values_are_present(self) -> None:
        """Only None is missing; empty strings and zero are real values."""
        assert expect_facets({"count": 0, "name": ""}, ["count", "name"]) == {"count": 0, "name": ""}
