"""
Schema resolution: attribute models, the immutable index registry and
schema loading.
"""

from .attribute import ATTRIBUTE_TYPES, CAST_TYPES, Attribute
from .builder import RESERVED_FILTER_NAMES, ResolvedSchema, resolve_schema
from .loader import load_schema
from .registry import IndexRegistry, build_registry
from .types import Facet, FacetKey, Index, IndexMatch, KeyResult, KeyRole

__all__ = [
    # Types
    "Facet",
    "FacetKey",
    "Index",
    "IndexMatch",
    "KeyResult",
    "KeyRole",
    # Attributes
    "Attribute",
    "ATTRIBUTE_TYPES",
    "CAST_TYPES",
    # Registry
    "IndexRegistry",
    "build_registry",
    # Resolution
    "ResolvedSchema",
    "resolve_schema",
    "RESERVED_FILTER_NAMES",
    "load_schema",
]
