"""
Dynamo Entity

Composite keys and parameterized requests for single-table DynamoDB designs.

Provides:
- Declarative schemas: attributes plus named composite indexes
- Key composition with partial (prefix) sort keys for range queries
- Best-index routing for arbitrary bags of attributes
- Filter functions compiled into parameterized expressions

Usage:

    >>> from dynamo_entity import Entity
    >>> stores = Entity(schema)
    >>> stores.query.units({"mall": "EastPointe", "building": "BuildingA"}).params()
    {'TableName': 'StoreDirectory', 'IndexName': 'gsi1pk-gsi1sk-index', ...}

Execution:

    from dynamo_entity.executor import DynamoDBConfig, DynamoDBExecutor

    executor = DynamoDBExecutor.create(DynamoDBConfig.from_env())
    items = await stores.with_executor(executor).query.units({"mall": "EastPointe"}).go()
"""

from .chain import ChainState, DeleteChain, GetChain, PutChain, QueryChain, UpdateChain
from .entity import Entity, IndexImpact

# Exceptions
from .exceptions import (
    EntityError,
    ExecutionError,
    IncompleteFacetsError,
    InvalidChainError,
    InvalidIndexError,
    InvalidSchemaError,
    ValidationError,
)
from .executor import DynamoDBConfig, DynamoDBExecutor, Executor
from .expressions import ClauseState, ExpressionCompiler
from .keys import IndexSelector, KeyComposer, expect_facets
from .schema import (
    Attribute,
    Facet,
    FacetKey,
    Index,
    IndexMatch,
    IndexRegistry,
    KeyResult,
    KeyRole,
    ResolvedSchema,
    build_registry,
    load_schema,
    resolve_schema,
)

__all__ = [
    # Entity
    "Entity",
    "IndexImpact",
    # Chains
    "ChainState",
    "QueryChain",
    "GetChain",
    "DeleteChain",
    "PutChain",
    "UpdateChain",
    # Schema
    "Attribute",
    "Facet",
    "FacetKey",
    "Index",
    "IndexMatch",
    "IndexRegistry",
    "KeyResult",
    "KeyRole",
    "ResolvedSchema",
    "build_registry",
    "resolve_schema",
    "load_schema",
    # Keys
    "KeyComposer",
    "IndexSelector",
    "expect_facets",
    # Expressions
    "ClauseState",
    "ExpressionCompiler",
    # Execution
    "Executor",
    "DynamoDBConfig",
    "DynamoDBExecutor",
    # Exceptions
    "EntityError",
    "InvalidIndexError",
    "IncompleteFacetsError",
    "InvalidChainError",
    "InvalidSchemaError",
    "ValidationError",
    "ExecutionError",
]

__version__ = "0.1.0"
