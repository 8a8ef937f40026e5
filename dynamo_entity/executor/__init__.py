"""
Execution collaborators that perform materialized requests.
"""

from .base import METHODS, Executor, Method
from .dynamodb import DynamoDBConfig, DynamoDBExecutor

__all__ = [
    "Executor",
    "Method",
    "METHODS",
    "DynamoDBConfig",
    "DynamoDBExecutor",
]
