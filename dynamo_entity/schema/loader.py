"""
Schema file loading.

Schemas can live in YAML files next to application config:

```yaml
service: MallStoreDirectory
entity: MallStores
table: StoreDirectory
version: "1"
attributes:
  mall: {type: string, required: true}
  store: {type: string, required: true}
indexes:
  stores:
    pk: {field: pk, facets: [mall, store]}
```

YAML cannot carry Python callables, so defaults, validators, get/set hooks and named
filters are attached by the caller when loading.
"""

from __future__ import annotations

import copy
import logging
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from ..exceptions import InvalidSchemaError

logger = logging.getLogger(__name__)


def load_schema(
    source: str | Path | Mapping[str, Any],
    *,
    defaults: Mapping[str, Any] | None = None,
    validators: Mapping[str, Callable[[Any], Any]] | None = None,
    getters: Mapping[str, Callable[[Any, dict[str, Any]], Any]] | None = None,
    setters: Mapping[str, Callable[[Any, dict[str, Any]], Any]] | None = None,
    filters: Mapping[str, Callable[..., Any]] | None = None,
) -> dict[str, Any]:
    """Load a schema definition and attach Python-side hooks.

    Args:
        source: Path to a YAML file, YAML text, or an already-parsed mapping
        defaults: Attribute name -> default value or zero-argument callable
        validators: Attribute name -> validation callable
        getters: Attribute name -> ``(value, item)`` hook for values read back
        setters: Attribute name -> ``(value, item)`` hook for values written
        filters: Filter name -> predicate function

    Returns:
        A schema definition mapping suitable for ``Entity``/``resolve_schema``
    """
    definition = _read(source)

    attributes = definition.setdefault("attributes", {})
    if not isinstance(attributes, dict):
        raise InvalidSchemaError('Schema property "attributes" must be a mapping')

    hook_sets = (
        ("default", defaults),
        ("validate", validators),
        ("get", getters),
        ("set", setters),
    )
    for hook_name, hooks in hook_sets:
        for name, hook in (hooks or {}).items():
            if name not in attributes:
                raise InvalidSchemaError(
                    f'Cannot attach {hook_name} to unknown attribute "{name}"'
                )
            attribute = attributes[name]
            if attribute is None or isinstance(attribute, str):
                attribute = {"type": attribute} if attribute else {}
                attributes[name] = attribute
            attribute[hook_name] = hook

    if filters:
        merged = dict(definition.get("filters") or {})
        merged.update(filters)
        definition["filters"] = merged

    return definition


def _read(source: str | Path | Mapping[str, Any]) -> dict[str, Any]:
    if isinstance(source, Mapping):
        return copy.deepcopy(dict(source))

    text: str
    if isinstance(source, Path) or (isinstance(source, str) and "\n" not in source and source.endswith((".yaml", ".yml"))):
        path = Path(source)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise InvalidSchemaError(f"Failed to read schema file {path}: {e}") from e
        logger.debug("Loading schema from %s", path)
    else:
        text = source

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise InvalidSchemaError(f"Failed to parse schema: {e}") from e

    if not isinstance(data, dict):
        raise InvalidSchemaError("Schema document must be a mapping")
    return data
