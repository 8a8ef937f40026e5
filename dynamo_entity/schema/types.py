"""
Resolved schema records.

Everything here is produced once by ``build_registry`` and never mutated:
frozen dataclasses with tuple-valued collections.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class KeyRole(str, Enum):
    """Which half of a composite key a facet belongs to."""

    PK = "pk"
    SK = "sk"


@dataclass(frozen=True)
class Facet:
    """An attribute's participation in one index's key."""

    name: str
    role: KeyRole
    index_id: str


@dataclass(frozen=True)
class Index:
    """A composite index definition.

    Attributes:
        id: Physical index name ("" for the primary index)
        accessor: Schema key used to reach the index (e.g. ``units``)
        pk_field: Physical field holding the partition key
        pk_facets: Ordered partition key facet names
        sk_field: Physical field holding the sort key (None without sk)
        sk_facets: Ordered sort key facet names
    """

    id: str
    accessor: str
    pk_field: str
    pk_facets: tuple[str, ...]
    sk_field: str | None = None
    sk_facets: tuple[str, ...] = ()

    @property
    def is_primary(self) -> bool:
        return self.id == ""

    @property
    def has_sk(self) -> bool:
        return self.sk_field is not None

    @property
    def facets(self) -> tuple[Facet, ...]:
        """All facets, pk first then sk, in declared order."""
        pk = tuple(Facet(name, KeyRole.PK, self.id) for name in self.pk_facets)
        sk = tuple(Facet(name, KeyRole.SK, self.id) for name in self.sk_facets)
        return pk + sk

    @property
    def fields(self) -> tuple[str, ...]:
        if self.sk_field is None:
            return (self.pk_field,)
        return (self.pk_field, self.sk_field)


@dataclass(frozen=True)
class FacetKey:
    """A matched facet returned by index selection."""

    name: str
    role: KeyRole

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "role": self.role.value}


@dataclass(frozen=True)
class IndexMatch:
    """Result of index selection; ``index == ""`` with no keys means no match."""

    index: str = ""
    keys: tuple[FacetKey, ...] = ()

    @property
    def matched(self) -> bool:
        return bool(self.keys)


@dataclass
class KeyResult:
    """Composed keys for one index. ``sk`` holds one string per partial."""

    pk: str
    sk: list[str] = field(default_factory=list)
