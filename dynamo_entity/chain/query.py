"""
Query chain.

A query chain moves through explicit states:

    SEEDED        partition key facets bound (validated at construction)
    RANGED        one sort key condition applied (optional)
    FILTERED      one or more filter clauses applied (optional)
    MATERIALIZED  params() or go() called

Transitions are checked against the state tag; anything else raises
``InvalidChainError``. ``params()`` may be called any number of times and
always returns the same request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

from ..exceptions import InvalidChainError
from ..expressions.compiler import ClauseState
from ..keys.expectation import expect_facets
from ..schema.types import Index

if TYPE_CHECKING:
    from ..entity import Entity

logger = logging.getLogger(__name__)


class ChainState(str, Enum):
    """Lifecycle states of a chain."""

    SEEDED = "seeded"
    RANGED = "ranged"
    FILTERED = "filtered"
    MATERIALIZED = "materialized"


# operator -> key condition template over #sk1/:sk1(/:sk2)
SORT_KEY_CONDITIONS: dict[str, str] = {
    "between": "#sk1 BETWEEN :sk1 AND :sk2",
    "gt": "#sk1 > :sk1",
    "gte": "#sk1 >= :sk1",
    "lt": "#sk1 < :sk1",
    "lte": "#sk1 <= :sk1",
    "begins_with": "begins_with(#sk1, :sk1)",
}

# :sk1 and :sk2 are the most a sort key condition uses
_SORT_KEY_VALUE_SLOTS = 2


class QueryChain:
    """Fluent builder for one query against one index."""

    def __init__(self, entity: Entity, index: Index, facets: Mapping[str, Any]) -> None:
        self._entity = entity
        self.index = index
        values = entity.cast_facets(facets)
        self._pk_values = expect_facets(values, index.pk_facets, "partition keys")
        self._sk_values = {name: values[name] for name in index.sk_facets if name in values}
        self._sort_condition: tuple[str, list[str]] | None = None
        # filters share the request's placeholder namespace with the key condition
        self._clauses = ClauseState(
            names=self._key_names(),
            value_count={"sk": _SORT_KEY_VALUE_SLOTS + 1},
        )
        self.state = ChainState.SEEDED

    def _key_names(self) -> dict[str, str]:
        names = {"#pk": self.index.pk_field}
        if self.index.has_sk:
            names["#sk1"] = self.index.sk_field
        return names

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _require(self, *allowed: ChainState, action: str) -> None:
        if self.state in allowed:
            return
        if self.state is ChainState.MATERIALIZED:
            message = f"Cannot {action}: the chain has already been materialized"
        elif self.state is ChainState.RANGED:
            message = f"Cannot {action}: only one sort key condition can be applied to a query"
        else:
            message = f"Cannot {action}: sort key conditions must be applied before filters"
        raise InvalidChainError(message, self.state.value)

    def _apply_sort_condition(self, operator: str, *partials: Mapping[str, Any]) -> QueryChain:
        self._require(ChainState.SEEDED, action=operator)
        if not self.index.has_sk:
            raise InvalidChainError(
                f"Index {self.index.accessor!r} has no sort key; {operator} is not available",
                self.state.value,
            )

        composer = self._entity.composer
        sort_keys: list[str] = []
        partition_keys: set[str] = set()
        for partial in partials:
            values = self._entity.cast_facets(partial)
            pk_values = {**self._pk_values, **{k: v for k, v in values.items() if k in self.index.pk_facets}}
            sk_values = {**self._sk_values, **{k: v for k, v in values.items() if k in self.index.sk_facets}}
            keys = composer.compose(self.index.id, pk_values, sk_values)
            partition_keys.add(keys.pk)
            sort_keys.extend(keys.sk)

        if len(partition_keys) > 1:
            raise InvalidChainError(
                f"Partition keys of a {operator} condition must match, got: {', '.join(sorted(partition_keys))}",
                self.state.value,
            )
        self._sort_condition = (operator, sort_keys)
        self.state = ChainState.RANGED
        return self

    def between(self, start: Mapping[str, Any], end: Mapping[str, Any]) -> QueryChain:
        """Items whose sort key lies between two (partial) facet sets."""
        return self._apply_sort_condition("between", start, end)

    def gt(self, facets: Mapping[str, Any]) -> QueryChain:
        return self._apply_sort_condition("gt", facets)

    def gte(self, facets: Mapping[str, Any]) -> QueryChain:
        return self._apply_sort_condition("gte", facets)

    def lt(self, facets: Mapping[str, Any]) -> QueryChain:
        return self._apply_sort_condition("lt", facets)

    def lte(self, facets: Mapping[str, Any]) -> QueryChain:
        return self._apply_sort_condition("lte", facets)

    def begins_with(self, facets: Mapping[str, Any]) -> QueryChain:
        return self._apply_sort_condition("begins_with", facets)

    def filter(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> QueryChain:
        """Apply a filter function; see ``ExpressionCompiler``."""
        self._require(ChainState.SEEDED, ChainState.RANGED, ChainState.FILTERED, action="filter")
        self._clauses = self._entity.compiler.compile(fn, self._clauses, *args, **kwargs)
        self.state = ChainState.FILTERED
        return self

    def __getattr__(self, name: str) -> Callable[..., QueryChain]:
        if name.startswith("_"):
            raise AttributeError(name)
        filters = self._entity.filters
        if name in filters:
            fn = filters[name]

            def apply(*args: Any, **kwargs: Any) -> QueryChain:
                return self.filter(fn, *args, **kwargs)

            apply.__name__ = name
            return apply
        raise AttributeError(f"{type(self).__name__!s} has no attribute or filter {name!r}")

    # ------------------------------------------------------------------
    # Materialization
    # ------------------------------------------------------------------

    def _key_condition(self) -> tuple[str, dict[str, str], dict[str, Any]]:
        pk = self._entity.composer.make_pk(self.index, self._pk_values)
        names = self._key_names()
        values: dict[str, Any] = {":pk": pk}

        if self._sort_condition is not None:
            operator, sort_keys = self._sort_condition
        elif self.index.has_sk:
            operator, sort_keys = "begins_with", [self._entity.composer.make_sk(self.index, self._sk_values)]
        else:
            return "#pk = :pk", names, values

        for position, sort_key in enumerate(sort_keys, start=1):
            values[f":sk{position}"] = sort_key
        return f"#pk = :pk and {SORT_KEY_CONDITIONS[operator]}", names, values

    def params(self) -> dict[str, Any]:
        """Materialize the request. Pure: no I/O, same output on every call."""
        expression, names, values = self._key_condition()
        filter_params = self._clauses.to_params()

        for placeholder, field in filter_params.get("ExpressionAttributeNames", {}).items():
            if names.get(placeholder, field) != field:
                raise InvalidChainError(
                    f"Filter name {placeholder} conflicts with a key condition name", self.state.value
                )
            names[placeholder] = field
        for placeholder, value in filter_params.get("ExpressionAttributeValues", {}).items():
            if placeholder in values:
                raise InvalidChainError(
                    f"Filter value {placeholder} conflicts with a key condition value", self.state.value
                )
            values[placeholder] = value

        params: dict[str, Any] = {"TableName": self._entity.table}
        if self.index.id:
            params["IndexName"] = self.index.id
        params["KeyConditionExpression"] = expression
        if "FilterExpression" in filter_params:
            params["FilterExpression"] = filter_params["FilterExpression"]
        params["ExpressionAttributeNames"] = names
        params["ExpressionAttributeValues"] = values

        logger.debug("Materialized query on %r: %s", self.index.accessor, expression)
        self.state = ChainState.MATERIALIZED
        return params

    async def go(self, raw: bool = False) -> list[dict[str, Any]] | dict[str, Any]:
        """Materialize and run the query once; returns items keyed by attribute name.

        With ``raw=True`` the executor's response is returned untouched.
        """
        params = self.params()
        response = await self._entity.execute("query", params)
        if raw:
            return response
        return [self._entity.format_item(item) for item in response.get("Items", [])]

    def __repr__(self) -> str:
        return f"QueryChain(index={self.index.accessor!r}, state={self.state.value!r})"
