"""
Point operation chains: get, delete, put and update.

These always address the primary index. Like ``QueryChain`` they validate
facets on construction, materialize with a pure ``params()`` and run once
with ``go()``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from ..exceptions import InvalidChainError, ValidationError
from ..keys.expectation import expect_facets
from .query import ChainState

if TYPE_CHECKING:
    from ..entity import Entity

logger = logging.getLogger(__name__)


class _KeyedChain:
    """Base for chains addressing one item by its primary key."""

    method = ""

    def __init__(self, entity: Entity, facets: Mapping[str, Any]) -> None:
        self._entity = entity
        primary = entity.registry.primary
        values = entity.cast_facets(facets)
        self._key_values = expect_facets(values, primary.pk_facets + primary.sk_facets)
        self.state = ChainState.SEEDED

    def _key(self) -> dict[str, str]:
        return self._entity.composer.key_item(self._entity.registry.primary, self._key_values)

    def params(self) -> dict[str, Any]:
        self.state = ChainState.MATERIALIZED
        return {"TableName": self._entity.table, "Key": self._key()}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(state={self.state.value!r})"



def _free_placeholder(base: str, taken: Mapping[str, Any]) -> str:
    placeholder, suffix = base, 0
    while placeholder in taken:
        suffix += 1
        placeholder = f"{base}_{suffix}"
    return placeholder


class GetChain(_KeyedChain):
    """Fetch one item by primary key."""

    method = "get"

    async def go(self, raw: bool = False) -> dict[str, Any] | None:
        response = await self._entity.execute(self.method, self.params())
        if raw:
            return response
        item = response.get("Item")
        return None if item is None else self._entity.format_item(item)


class DeleteChain(_KeyedChain):
    """Delete one item by primary key."""

    method = "delete"

    async def go(self, raw: bool = False) -> dict[str, Any]:
        # the delete response carries no item, so raw and formatted agree
        return await self._entity.execute(self.method, self.params())


class PutChain:
    """Write a complete item, computing every index key.

    Keys are composed from the validated values; attribute setters only
    change what is stored under each attribute's own field.
    """

    method = "put"

    def __init__(self, entity: Entity, item: Mapping[str, Any]) -> None:
        self._entity = entity
        unknown = [name for name in item if name not in entity.attributes]
        if unknown:
            raise ValidationError(unknown[0], "Unknown attribute", str(item[unknown[0]]))

        # Defaults and setters are resolved once here so repeated params() calls agree.
        values: dict[str, Any] = {}
        for name, attribute in entity.attributes.items():
            value = attribute.val(item.get(name))
            if value is not None:
                values[name] = value
        expect_facets(values, entity.registry.facet_names)
        self._values = values
        self._stored = entity.apply_setters(values, dict(values))
        self.state = ChainState.SEEDED

    def params(self) -> dict[str, Any]:
        attributes = self._entity.attributes
        item = {attributes[name].field: value for name, value in self._stored.items()}
        for index in self._entity.registry.indexes:
            item.update(self._entity.composer.key_item(index, self._values))
        self.state = ChainState.MATERIALIZED
        return {"TableName": self._entity.table, "Item": item}

    async def go(self, raw: bool = False) -> dict[str, Any]:
        params = self.params()
        response = await self._entity.execute(self.method, params)
        if raw:
            return response
        return self._entity.format_item(params["Item"])

    def __repr__(self) -> str:
        return f"PutChain(state={self.state.value!r})"


class UpdateChain(_KeyedChain):
    """Set attributes on an existing item, refreshing affected index keys."""

    method = "update"

    def __init__(self, entity: Entity, facets: Mapping[str, Any]) -> None:
        super().__init__(entity, facets)
        self._set_values: dict[str, Any] = {}

    def set(self, values: Mapping[str, Any]) -> UpdateChain:
        """Merge attribute values into the update; may be called repeatedly."""
        if self.state is ChainState.MATERIALIZED:
            raise InvalidChainError(
                "Cannot set: the chain has already been materialized", self.state.value
            )
        attributes = self._entity.attributes
        for name, value in values.items():
            if name not in attributes:
                raise ValidationError(name, "Unknown attribute", None if value is None else str(value))
            if attributes[name].read_only:
                raise InvalidChainError(f"Attribute {name} is Read-Only and cannot be updated")
            if value is None:
                raise InvalidChainError(f"Attribute {name} cannot be set to None")
            self._set_values[name] = attributes[name].val(value)
        return self

    def params(self) -> dict[str, Any]:
        if not self._set_values:
            raise InvalidChainError("Update requires at least one attribute to set", self.state.value)

        entity = self._entity
        assignments: list[str] = []
        names: dict[str, str] = {}
        values: dict[str, Any] = {}
        # setters see only the values being written
        stored = entity.apply_setters(self._set_values, dict(self._set_values))

        for name, attribute in entity.attributes.items():
            if name not in stored:
                continue
            assignments.append(f"#{name} = :{name}")
            names[f"#{name}"] = attribute.field
            values[f":{name}"] = stored[name]

        merged = {**self._key_values, **self._set_values}
        for field, key in entity.refreshed_keys(merged, touched=self._set_values).items():
            # an attribute may be named like a key field it does not map to
            name = _free_placeholder(f"#{field}", names)
            value = _free_placeholder(f":{field}", values)
            assignments.append(f"{name} = {value}")
            names[name] = field
            values[value] = key

        logger.debug("Materialized update setting %s", ", ".join(self._set_values))
        self.state = ChainState.MATERIALIZED
        return {
            "UpdateExpression": "SET " + ", ".join(assignments),
            "ExpressionAttributeNames": names,
            "ExpressionAttributeValues": values,
            "TableName": entity.table,
            "Key": self._key(),
        }

    async def go(self, raw: bool = False) -> dict[str, Any]:
        # update requests ask for no return values, so raw and formatted agree
        return await self._entity.execute(self.method, self.params())
