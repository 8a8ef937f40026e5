"""Tests for best-index selection."""

from __future__ import annotations

import pytest

from dynamo_entity import FacetKey, IndexMatch, KeyRole, build_registry
from dynamo_entity.keys import IndexSelector

PK = KeyRole.PK
SK = KeyRole.SK


@pytest.fixture
def selector(stores) -> IndexSelector:
    return stores.selector


class TestFindBestMatch:
    """Tests for IndexSelector.find_best_match against the mall schema."""

    def test_primary_index(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["id"])

        assert match.index == ""
        assert match.keys == (FacetKey("id", PK),)

    def test_units_index(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["mall", "building", "unit"])

        assert match.index == "gsi1pk-gsi1sk-index"
        assert [key.to_dict() for key in match.keys] == [
            {"name": "mall", "role": "pk"},
            {"name": "building", "role": "sk"},
            {"name": "unit", "role": "sk"},
        ]

    def test_leases_index(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["mall", "leaseEnd"])

        assert match.index == "gsi2pk-gsi2sk-index"
        assert match.keys == (FacetKey("mall", PK), FacetKey("leaseEnd", SK))

    def test_categories_index(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["mall", "category"])

        assert match.index == "gsi3pk-gsi3sk-index"
        assert match.keys == (FacetKey("mall", PK), FacetKey("category", SK))

    def test_shops_index(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["mall", "store"])

        assert match.index == "gsi4pk-gsi4sk-index"
        assert match.keys == (FacetKey("store", PK), FacetKey("mall", SK))

    def test_tie_goes_to_first_declared(self, selector: IndexSelector) -> None:
        """categories and shops both match three facets; categories is declared first."""
        match = selector.find_best_match(["mall", "store", "building", "category"])

        assert match.index == "gsi3pk-gsi3sk-index"
        assert match.keys == (
            FacetKey("mall", PK),
            FacetKey("category", SK),
            FacetKey("building", SK),
        )

    def test_no_match(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(["unit"])

        assert match == IndexMatch()
        assert match.index == ""
        assert match.keys == ()
        assert not match.matched

    def test_sort_prefix_does_not_skip_gaps(self, selector: IndexSelector) -> None:
        """unit and store without building add nothing to the units score."""
        match = selector.find_best_match(["mall", "unit", "store"])

        # shops: store pk + mall sk beats units' lone mall
        assert match.index == "gsi4pk-gsi4sk-index"
        assert match.keys == (FacetKey("store", PK), FacetKey("mall", SK))

    def test_accepts_any_iterable(self, selector: IndexSelector) -> None:
        match = selector.find_best_match(name for name in {"mall": 1, "leaseEnd": 2})

        assert match.index == "gsi2pk-gsi2sk-index"


class TestRanking:
    """Tests for the tie-break rules."""

    def _selector(self, indexes: dict) -> IndexSelector:
        registry = build_registry(indexes, service="svc", entity="ent", table="tbl")
        return IndexSelector(registry)

    def test_secondary_outranks_primary_on_equal_score(self) -> None:
        selector = self._selector(
            {
                "primary": {"pk": {"field": "pk", "facets": ["tenant"]}},
                "byTenant": {
                    "index": "gsi1",
                    "pk": {"field": "gsi1pk", "facets": ["tenant"]},
                    "sk": {"field": "gsi1sk", "facets": ["created"]},
                },
            }
        )

        assert selector.find_best_match(["tenant"]).index == "gsi1"

    def test_higher_score_beats_declaration_order(self) -> None:
        selector = self._selector(
            {
                "primary": {"pk": {"field": "pk", "facets": ["id"]}},
                "first": {
                    "index": "gsi1",
                    "pk": {"field": "gsi1pk", "facets": ["tenant"]},
                    "sk": {"field": "gsi1sk", "facets": ["region"]},
                },
                "second": {
                    "index": "gsi2",
                    "pk": {"field": "gsi2pk", "facets": ["tenant"]},
                    "sk": {"field": "gsi2sk", "facets": ["created", "region"]},
                },
            }
        )

        assert selector.find_best_match(["tenant", "created", "region"]).index == "gsi2"
        assert selector.find_best_match(["tenant", "region"]).index == "gsi1"

    def test_candidates_are_ranked(self, selector: IndexSelector) -> None:
        ranked = selector.candidates(["mall", "store", "building", "category"])

        assert [match.index for match in ranked] == [
            "gsi3pk-gsi3sk-index",
            "gsi4pk-gsi4sk-index",
            "gsi1pk-gsi1sk-index",
            "gsi2pk-gsi2sk-index",
        ]
