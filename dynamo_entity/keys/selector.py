"""
Best-index selection for an arbitrary bag of supplied facet names.

A registered index is a candidate when every one of its partition key facets
was supplied. Candidates score one point per partition key facet plus one per
sort key facet in the longest fully supplied prefix of the sort key order;
a gap ends the prefix.

Ranking, highest first:
1. Score
2. Secondary indexes before the primary index
3. Declaration order in the registry
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from ..schema.registry import IndexRegistry
from ..schema.types import FacetKey, Index, IndexMatch, KeyRole

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Candidate:
    index: Index
    position: int
    keys: tuple[FacetKey, ...]

    @property
    def rank(self) -> tuple[int, bool, int]:
        return (-len(self.keys), self.index.is_primary, self.position)


class IndexSelector:
    """Routes a set of supplied facet names to the most specific index."""

    def __init__(self, registry: IndexRegistry) -> None:
        self.registry = registry

    def _match(self, index: Index, position: int, supplied: frozenset[str]) -> _Candidate | None:
        if not set(index.pk_facets) <= supplied:
            return None
        keys = [FacetKey(name, KeyRole.PK) for name in index.pk_facets]
        for name in index.sk_facets:
            if name not in supplied:
                break
            keys.append(FacetKey(name, KeyRole.SK))
        return _Candidate(index=index, position=position, keys=tuple(keys))

    def candidates(self, supplied_facet_names: Iterable[str]) -> list[IndexMatch]:
        """Every viable index, best first."""
        supplied = frozenset(supplied_facet_names)
        matches = [
            candidate
            for position, index in enumerate(self.registry.indexes)
            if (candidate := self._match(index, position, supplied)) is not None
        ]
        matches.sort(key=lambda candidate: candidate.rank)
        return [IndexMatch(index=c.index.id, keys=c.keys) for c in matches]

    def find_best_match(self, supplied_facet_names: Iterable[str]) -> IndexMatch:
        """Pick the best index, or ``IndexMatch("", ())`` when none is viable."""
        supplied = list(supplied_facet_names)
        ranked = self.candidates(supplied)
        if not ranked:
            logger.debug("No index matches facets: %s", ", ".join(supplied))
            return IndexMatch()
        best = ranked[0]
        logger.debug(
            "Selected index %r for facets %s (%d matched)",
            best.index,
            ", ".join(supplied),
            len(best.keys),
        )
        return best
