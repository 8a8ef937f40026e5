"""
Immutable index registry.

``build_registry`` resolves the ``indexes`` section of a schema definition
into frozen ``Index`` records once. Declaration order is preserved and is
part of the registry contract: index selection breaks ties between equally
specific secondary indexes by it.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from ..exceptions import InvalidIndexError, InvalidSchemaError
from .types import Index

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexRegistry:
    """Every index of one entity, in declaration order."""

    service: str
    entity: str
    table: str
    version: str
    indexes: tuple[Index, ...]

    @property
    def pk_prefix(self) -> str:
        """Scope prefix shared by all partition keys of the service."""
        return f"${self.service}_{self.version}"

    @property
    def sk_prefix(self) -> str:
        """Scope prefix shared by all sort keys of the entity."""
        return f"${self.entity}"

    @property
    def primary(self) -> Index:
        return self.get("")

    def get(self, index_id: str) -> Index:
        """Look up an index by its physical identifier ("" for primary)."""
        for index in self.indexes:
            if index.id == index_id:
                return index
        raise InvalidIndexError(index_id)

    def by_accessor(self, accessor: str) -> Index:
        """Look up an index by its schema key (e.g. ``units``)."""
        for index in self.indexes:
            if index.accessor == accessor:
                return index
        raise InvalidIndexError(accessor)

    def __contains__(self, index_id: object) -> bool:
        return any(index.id == index_id for index in self.indexes)

    @property
    def accessors(self) -> tuple[str, ...]:
        return tuple(index.accessor for index in self.indexes)

    @property
    def key_fields(self) -> tuple[str, ...]:
        """Physical key fields of every index, in index order."""
        fields: list[str] = []
        for index in self.indexes:
            fields.extend(index.fields)
        return tuple(fields)

    @property
    def facet_names(self) -> tuple[str, ...]:
        """Every attribute used as a facet anywhere, first use first."""
        names: list[str] = []
        for index in self.indexes:
            for facet in index.facets:
                if facet.name not in names:
                    names.append(facet.name)
        return tuple(names)


def _key_facets(accessor: str, role: str, definition: Any, problems: list[str]) -> tuple[str | None, tuple[str, ...]]:
    if not isinstance(definition, Mapping):
        problems.append(f'Index "{accessor}" property "{role}" must be a mapping')
        return None, ()
    field = definition.get("field")
    facets = definition.get("facets", definition.get("compose"))
    if not field or not isinstance(field, str):
        problems.append(f'Index "{accessor}" property "{role}.field" must be a non-empty string')
    if isinstance(facets, str):
        facets = [facets]
    if not facets or not all(isinstance(name, str) for name in facets):
        problems.append(f'Index "{accessor}" property "{role}.facets" must list attribute names')
        facets = ()
    return field, tuple(facets)


def build_registry(
    indexes: Mapping[str, Any],
    *,
    service: str,
    entity: str,
    table: str,
    version: str | int = "1",
) -> IndexRegistry:
    """Resolve raw index definitions into an ``IndexRegistry``.

    Args:
        indexes: Mapping of accessor name to ``{index?, pk: {field, facets},
            sk?: {field, facets}}``. The single definition without ``index``
            is the primary index.
        service: Service name used in the partition key scope
        entity: Entity name used in the sort key scope
        table: Table name placed in every request
        version: Schema version used in the partition key scope

    Raises:
        InvalidSchemaError: On any structural problem; all problems found are
            reported together.
    """
    if not isinstance(indexes, Mapping) or not indexes:
        raise InvalidSchemaError("Schema must declare at least one index")

    problems: list[str] = []
    resolved: list[Index] = []
    seen_ids: dict[str, str] = {}
    seen_fields: dict[str, str] = {}

    for accessor, definition in indexes.items():
        if not isinstance(definition, Mapping):
            problems.append(f'Index "{accessor}" must be a mapping')
            continue
        index_id = definition.get("index") or ""
        if index_id in seen_ids:
            label = "primary index" if index_id == "" else f'index "{index_id}"'
            problems.append(
                f'Index "{accessor}" redeclares the {label} already used by "{seen_ids[index_id]}"'
            )
        seen_ids.setdefault(index_id, accessor)

        pk_field, pk_facets = _key_facets(accessor, "pk", definition.get("pk"), problems)
        sk_field: str | None = None
        sk_facets: tuple[str, ...] = ()
        if definition.get("sk") is not None:
            sk_field, sk_facets = _key_facets(accessor, "sk", definition["sk"], problems)

        for field in (pk_field, sk_field):
            if not field:
                continue
            if field in seen_fields:
                problems.append(
                    f'Index "{accessor}" reuses key field "{field}" already used by "{seen_fields[field]}"'
                )
            seen_fields.setdefault(field, accessor)

        all_facets = pk_facets + sk_facets
        duplicates = sorted({name for name in all_facets if all_facets.count(name) > 1})
        if duplicates:
            problems.append(
                f'Index "{accessor}" uses facets more than once: {", ".join(duplicates)}'
            )

        resolved.append(
            Index(
                id=index_id,
                accessor=accessor,
                pk_field=pk_field or "",
                pk_facets=pk_facets,
                sk_field=sk_field,
                sk_facets=sk_facets,
            )
        )

    if "" not in seen_ids:
        problems.append("Schema must declare a primary index (an index without an \"index\" property)")

    if problems:
        raise InvalidSchemaError(
            "Schema Validation Error: " + "; ".join(problems), problems
        )

    registry = IndexRegistry(
        service=service,
        entity=entity,
        table=table,
        version=str(version),
        indexes=tuple(resolved),
    )
    logger.debug(
        "Built index registry for %s with %d indexes: %s",
        entity,
        len(resolved),
        ", ".join(registry.accessors),
    )
    return registry
