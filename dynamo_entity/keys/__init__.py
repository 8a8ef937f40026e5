"""
Composite keys: facet expectations, key composition and index selection.
"""

from .composer import KeyComposer, format_value
from .expectation import expect_facets, missing_facets
from .selector import IndexSelector

__all__ = [
    "KeyComposer",
    "IndexSelector",
    "expect_facets",
    "missing_facets",
    "format_value",
]
