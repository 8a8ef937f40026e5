"""
Entity facade.

An ``Entity`` is built once from a schema definition and hands out fresh
chains for every call:

    stores = Entity(schema, executor=DynamoDBExecutor.create())

    stores.get({"id": store_id}).params()
    stores.put({"mall": "EastPointe", "store": "LatteLarrys", ...}).params()
    stores.update({"id": store_id}).set({"rent": "25.00"}).params()
    stores.query.units({"mall": "EastPointe", "building": "BuildingA"}).params()
    stores.find({"mall": "EastPointe", "category": "food/coffee"}).params()

    items = await stores.query.units({"mall": "EastPointe"}).gt({"building": "A"}).go()

The entity itself is immutable after construction, so it can be shared
freely between concurrent callers.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any

from .chain import DeleteChain, GetChain, PutChain, QueryChain, UpdateChain
from .exceptions import InvalidChainError, ValidationError
from .executor.base import Executor, Method
from .expressions.compiler import Clause, ExpressionCompiler
from .expressions.nodes import Attributes, Node
from .keys.composer import KeyComposer
from .keys.selector import IndexSelector
from .logging_utils import EntityLoggerAdapter, get_entity_logger
from .schema.builder import ResolvedSchema, resolve_schema
from .schema.types import Index


@dataclass
class IndexImpact:
    """Which secondary index keys a partial write touches.

    Attributes:
        impacted: Whether any index key is touched
        incomplete: Facets still needed to rebuild the touched keys
        complete: Touched facets that were supplied, with their values
    """

    impacted: bool = False
    incomplete: list[str] = field(default_factory=list)
    complete: dict[str, Any] = field(default_factory=dict)


class _QueryAccessors:
    """``entity.query.<accessor>(facets)`` for every registered index."""

    def __init__(self, entity: Entity) -> None:
        self._entity = entity

    def __getattr__(self, accessor: str) -> Callable[[Mapping[str, Any]], QueryChain]:
        if accessor.startswith("_"):
            raise AttributeError(accessor)
        entity = self._entity
        index = entity.registry.by_accessor(accessor)

        def query(facets: Mapping[str, Any]) -> QueryChain:
            return QueryChain(entity, index, facets)

        query.__name__ = accessor
        return query

    def __dir__(self) -> list[str]:
        return list(self._entity.registry.accessors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entity.registry.accessors)


def _equals_all(attr: Attributes, expected: Mapping[str, Any]) -> Node:
    conditions = [attr[name].eq(value) for name, value in expected.items()]
    node = conditions[0]
    for condition in conditions[1:]:
        node = node & condition
    return node


class Entity:
    """Builds requests for one entity of a single-table design.

    Args:
        schema: Raw schema definition or an already resolved schema
        executor: Collaborator used by ``go()``; optional for params-only use
        strict_filters: Validate filter operand values against their attributes
    """

    def __init__(
        self,
        schema: Mapping[str, Any] | ResolvedSchema,
        executor: Executor | None = None,
        *,
        strict_filters: bool = False,
    ) -> None:
        self.schema = schema if isinstance(schema, ResolvedSchema) else resolve_schema(schema)
        self.registry = self.schema.registry
        self.attributes = self.schema.attributes
        self.filters = self.schema.filters
        self.executor = executor
        self.strict_filters = strict_filters

        self.composer = KeyComposer(self.registry)
        self.selector = IndexSelector(self.registry)
        self.compiler = ExpressionCompiler(self.attributes, strict=strict_filters)
        self.query = _QueryAccessors(self)

        self._fields_to_names = {attribute.field: name for name, attribute in self.attributes.items()}
        self._key_fields = frozenset(self.registry.key_fields)
        self.logger = EntityLoggerAdapter(
            get_entity_logger("entity"),
            {
                "service": self.registry.service,
                "entity": self.registry.entity,
                "table": self.registry.table,
            },
        )

    @property
    def table(self) -> str:
        return self.registry.table

    def with_executor(self, executor: Executor) -> Entity:
        """A copy of this entity bound to another executor."""
        return Entity(self.schema, executor, strict_filters=self.strict_filters)

    # ------------------------------------------------------------------
    # Chains
    # ------------------------------------------------------------------

    def get(self, facets: Mapping[str, Any]) -> GetChain:
        return GetChain(self, facets)

    def delete(self, facets: Mapping[str, Any]) -> DeleteChain:
        return DeleteChain(self, facets)

    def put(self, item: Mapping[str, Any]) -> PutChain:
        return PutChain(self, item)

    def update(self, facets: Mapping[str, Any]) -> UpdateChain:
        return UpdateChain(self, facets)

    def find(self, facets: Mapping[str, Any]) -> QueryChain:
        """Query the most specific index for an arbitrary bag of attributes.

        Supplied attributes that the chosen index cannot use in its key are
        applied as equality filters.
        """
        values = self.cast_facets(facets)
        facet_names = set(self.registry.facet_names)
        match = self.selector.find_best_match(name for name in values if name in facet_names)
        if not match.matched:
            raise InvalidChainError(
                f"No index matches the supplied facets: {', '.join(values) or '(none)'}"
            )

        index = self.registry.get(match.index)
        used = {key.name for key in match.keys}
        chain = QueryChain(self, index, {name: values[name] for name in used})
        leftovers = {name: value for name, value in values.items() if name not in used}
        if leftovers:
            chain.filter(_equals_all, leftovers)
        self.logger.debug("Routed find to index %r", index.accessor)
        return chain

    def build_clause(self, fn: Callable[..., Any]) -> Clause:
        """Compile a standalone clause over this entity's attributes."""
        return self.compiler.build_clause(fn)

    # ------------------------------------------------------------------
    # Values and keys
    # ------------------------------------------------------------------

    def cast_facets(self, facets: Mapping[str, Any]) -> dict[str, Any]:
        """Run supplied values through their attributes; None means not supplied."""
        values: dict[str, Any] = {}
        for name, value in facets.items():
            if name not in self.attributes:
                raise ValidationError(name, "Unknown attribute", None if value is None else str(value))
            if value is None:
                continue
            values[name] = self.attributes[name].val(value)
        return values

    def _key_halves(self) -> Iterator[tuple[Index, str, tuple[str, ...], bool]]:
        for index in self.registry.indexes:
            if index.is_primary:
                continue
            yield index, index.pk_field, index.pk_facets, True
            if index.has_sk:
                yield index, index.sk_field, index.sk_facets, False

    def index_impact(self, values: Mapping[str, Any], touched: Mapping[str, Any] | None = None) -> IndexImpact:
        """Report which secondary index keys a write of ``touched`` affects.

        Args:
            values: Every facet value known for the item
            touched: The values being written (defaults to ``values``)
        """
        touched = values if touched is None else touched
        impact = IndexImpact()
        for _index, _field, facets, _is_pk in self._key_halves():
            if not any(name in touched for name in facets):
                continue
            impact.impacted = True
            for name in facets:
                if values.get(name) is None:
                    if name not in impact.incomplete:
                        impact.incomplete.append(name)
                elif name in touched:
                    impact.complete[name] = values[name]
        return impact

    def refreshed_keys(self, values: Mapping[str, Any], touched: Mapping[str, Any]) -> dict[str, str]:
        """Key fields to rewrite when ``touched`` changes, in index order.

        A key is rewritten only when every one of its facets is known; touched
        keys that cannot be rebuilt are logged and left alone.
        """
        keys: dict[str, str] = {}
        for index, key_field, facets, is_pk in self._key_halves():
            if not any(name in touched for name in facets):
                continue
            missing = [name for name in facets if values.get(name) is None]
            if missing:
                self.logger.warning(
                    "Not updating %s of index %r; missing facets: %s",
                    key_field,
                    index.accessor,
                    ", ".join(missing),
                )
                continue
            keys[key_field] = (
                self.composer.make_pk(index, values) if is_pk else self.composer.make_sk(index, values)
            )
        return keys

    def format_item(self, item: Mapping[str, Any]) -> dict[str, Any]:
        """Translate a stored item back to attribute names, dropping key fields.

        Attribute getters see the translated item before any getter has run.
        """
        stored = {
            self._fields_to_names.get(field, field): value
            for field, value in item.items()
            if field not in self._key_fields
        }
        formatted: dict[str, Any] = {}
        for name, value in stored.items():
            attribute = self.attributes.get(name)
            formatted[name] = value if attribute is None else attribute.apply_getter(value, stored)
        return formatted

    def apply_setters(self, values: Mapping[str, Any], item: dict[str, Any]) -> dict[str, Any]:
        """Run attribute setters over ``values``; setters see ``item``."""
        return {
            name: self.attributes[name].apply_setter(value, item)
            for name, value in values.items()
        }

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def execute(self, method: Method, params: dict[str, Any]) -> dict[str, Any]:
        """Hand a materialized request to the executor exactly once."""
        if self.executor is None:
            raise InvalidChainError(
                f"No executor configured for entity {self.registry.entity}; use params() or with_executor()"
            )
        self.logger.debug("Executing %s", method, extra={"index": params.get("IndexName", "")})
        return await self.executor.execute(method, params)

    def __repr__(self) -> str:
        return f"Entity(entity={self.registry.entity!r}, table={self.table!r})"

