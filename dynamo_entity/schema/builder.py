"""
One-time schema resolution.

Turns a raw schema mapping (service, entity, table, version, attributes,
indexes, filters) into a ``ResolvedSchema``: the immutable index registry,
the attribute models and the named custom filters, after checking every
structural rule that can be checked before an entity exists.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from ..exceptions import EntityError, InvalidSchemaError
from .attribute import Attribute
from .registry import IndexRegistry, build_registry

logger = logging.getLogger(__name__)

RESERVED_FILTER_NAMES = ("go", "params", "filter")

_REQUIRED_PROPERTIES = ("service", "entity", "table", "attributes", "indexes")


@dataclass(frozen=True)
class ResolvedSchema:
    """A validated schema ready to back an ``Entity``."""

    registry: IndexRegistry
    attributes: Mapping[str, Attribute]
    filters: Mapping[str, Callable[..., Any]] = field(default_factory=dict)

    @property
    def table(self) -> str:
        return self.registry.table


def _attribute_from_definition(
    name: str, definition: Any, read_only: bool
) -> Attribute:
    if definition is None:
        definition = {}
    if isinstance(definition, str):
        definition = {"type": definition}
    if not isinstance(definition, Mapping):
        raise InvalidSchemaError(f'Attribute "{name}" must be a mapping or a type name')
    return Attribute(
        name=name,
        field=definition.get("field") or definition.get("attr"),
        type=definition.get("type"),
        required=definition.get("required", False),
        read_only=bool(definition.get("read_only", definition.get("readOnly", False))) or read_only,
        cast=definition.get("cast"),
        default=definition.get("default"),
        validate=definition.get("validate"),
        label=definition.get("label"),
        get=definition.get("get"),
        set=definition.get("set"),
    )


def resolve_schema(definition: Mapping[str, Any]) -> ResolvedSchema:
    """Validate a raw schema definition and build its resolved form.

    Raises:
        InvalidSchemaError: Missing top-level properties, duplicate physical
            field names, facets that are not declared attributes, reserved
            or non-callable filters, or any index problem reported by
            ``build_registry``.
    """
    if not isinstance(definition, Mapping):
        raise InvalidSchemaError("Schema definition must be a mapping")

    missing = [prop for prop in _REQUIRED_PROPERTIES if not definition.get(prop)]
    if missing:
        raise InvalidSchemaError(
            f"Schema is missing required properties: {', '.join(missing)}", missing
        )

    registry = build_registry(
        definition["indexes"],
        service=definition["service"],
        entity=definition["entity"],
        table=definition["table"],
        version=definition.get("version", "1"),
    )

    problems: list[str] = []
    primary_facets = set(registry.primary.pk_facets) | set(registry.primary.sk_facets)
    key_fields = set(registry.key_fields)
    attributes: dict[str, Attribute] = {}
    used_fields: dict[str, str] = {}

    raw_attributes = definition["attributes"]
    if not isinstance(raw_attributes, Mapping):
        raise InvalidSchemaError("Schema property \"attributes\" must be a mapping")

    for name, raw in raw_attributes.items():
        try:
            attribute = _attribute_from_definition(name, raw, name in primary_facets)
        except EntityError as exc:
            problems.append(exc.message)
            continue
        if attribute.field in used_fields:
            problems.append(
                f'Attribute "{name}" property "field". Received: "{attribute.field}", '
                f'Expected: "Unique field property, already used by attribute {used_fields[attribute.field]}"'
            )
        elif attribute.field in key_fields:
            problems.append(
                f'Attribute "{name}" property "field". Received: "{attribute.field}", '
                'Expected: "A field not already used as an index key field"'
            )
        used_fields.setdefault(attribute.field, name)
        attributes[name] = attribute

    for facet_name in registry.facet_names:
        if facet_name not in raw_attributes:
            problems.append(f'Facet "{facet_name}" is used by an index but is not a declared attribute')

    if problems:
        raise InvalidSchemaError("Schema Validation Error: " + "; ".join(problems), problems)

    filters = _resolve_filters(definition.get("filters") or {})

    logger.debug(
        "Resolved schema for %s: %d attributes, %d indexes, %d filters",
        registry.entity,
        len(attributes),
        len(registry.indexes),
        len(filters),
    )
    return ResolvedSchema(
        registry=registry,
        attributes=MappingProxyType(attributes),
        filters=MappingProxyType(filters),
    )


def _resolve_filters(filters: Mapping[str, Any]) -> dict[str, Callable[..., Any]]:
    if not isinstance(filters, Mapping):
        raise InvalidSchemaError('Schema property "filters" must be a mapping')
    resolved: dict[str, Callable[..., Any]] = {}
    for name, fn in filters.items():
        if name in RESERVED_FILTER_NAMES:
            raise InvalidSchemaError(
                'Invalid filter name. Filter cannot be named "go", "params", or "filter"'
            )
        if not callable(fn):
            raise InvalidSchemaError(f'Filter "{name}" must be callable')
        resolved[name] = fn
    return resolved
