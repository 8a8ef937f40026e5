"""Required-facet checks run before any key is composed."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ..exceptions import IncompleteFacetsError


def missing_facets(supplied: Mapping[str, Any], required: Iterable[str]) -> list[str]:
    """Names in ``required`` that are absent or None in ``supplied``, in order."""
    return [name for name in required if supplied.get(name) is None]


def expect_facets(
    supplied: Mapping[str, Any],
    required: Iterable[str],
    label: str | None = None,
) -> dict[str, Any]:
    """Return ``supplied`` restricted to ``required``, in ``required`` order.

    Args:
        supplied: Facet values provided by the caller
        required: Facet names that must all be present
        label: How to describe the facets in the error (e.g. "partition keys")

    Raises:
        IncompleteFacetsError: If any required facet is missing
    """
    required = list(required)
    missing = missing_facets(supplied, required)
    if missing:
        raise IncompleteFacetsError(missing, label)
    return {name: supplied[name] for name in required}
