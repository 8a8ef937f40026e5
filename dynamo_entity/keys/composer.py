"""
Composite key encoding.

Partition keys are scoped to the service and version, sort keys to the
entity, and every facet contributes a ``#name_value`` segment:

    pk  $MallStoreDirectory_1#mall_EastPointe
    sk  $MallStores#building_BuildingA#unit_B54#store_LatteLarrys

A sort key is built from whatever facets the caller supplies. The walk stops
at the first missing facet and leaves that facet's label open
(``#unit_``), so the result is a prefix usable for ``begins_with`` and range
conditions. Later facets are never considered once a gap is hit.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from ..schema.registry import IndexRegistry
from ..schema.types import Index, KeyResult
from .expectation import expect_facets


def format_value(value: Any) -> str:
    """Render a facet value as it appears inside a key."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class KeyComposer:
    """Builds partition and sort key strings for the indexes of one registry."""

    def __init__(self, registry: IndexRegistry) -> None:
        self.registry = registry

    def compose(
        self,
        index_id: str,
        pk_values: Mapping[str, Any],
        *sk_partials: Mapping[str, Any],
    ) -> KeyResult:
        """Compose keys for ``index_id``.

        Args:
            index_id: Physical index identifier ("" for the primary index)
            pk_values: Values for every partition key facet
            *sk_partials: Zero or more (possibly partial) sort key facet
                mappings; each yields one sort key string

        Raises:
            InvalidIndexError: If the index is not registered
            IncompleteFacetsError: If a partition key facet is missing
        """
        index = self.registry.get(index_id)
        pk = self.make_pk(index, pk_values)
        sk = [self.make_sk(index, partial) for partial in sk_partials] if index.has_sk else []
        return KeyResult(pk=pk, sk=sk)

    def make_pk(self, index: Index, values: Mapping[str, Any]) -> str:
        values = expect_facets(values, index.pk_facets, "partition keys")
        segments = [f"#{name}_{format_value(value)}" for name, value in values.items()]
        return self.registry.pk_prefix + "".join(segments)

    def make_sk(self, index: Index, partial: Mapping[str, Any]) -> str:
        key = self.registry.sk_prefix
        for name in index.sk_facets:
            value = partial.get(name)
            if value is None:
                return f"{key}#{name}_"
            key += f"#{name}_{format_value(value)}"
        return key

    def key_item(self, index: Index, values: Mapping[str, Any]) -> dict[str, str]:
        """Physical key fields for ``index`` built from complete facet values."""
        item = {index.pk_field: self.make_pk(index, values)}
        if index.has_sk:
            expect_facets(values, index.sk_facets, "sort keys")
            item[index.sk_field] = self.make_sk(index, values)
        return item
