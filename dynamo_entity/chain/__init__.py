"""
Request chains: queries and point operations.
"""

from .operations import DeleteChain, GetChain, PutChain, UpdateChain
from .query import SORT_KEY_CONDITIONS, ChainState, QueryChain

__all__ = [
    "ChainState",
    "QueryChain",
    "SORT_KEY_CONDITIONS",
    "GetChain",
    "DeleteChain",
    "PutChain",
    "UpdateChain",
]
