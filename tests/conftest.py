"""
Shared test configuration and fixtures.

Provides the mall store directory schema used across the suite and a
recording executor that stands in for DynamoDB.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

import pytest

from dynamo_entity import Entity
from dynamo_entity.executor import Executor

CATEGORIES = [
    "food/coffee",
    "food/meal",
    "clothing",
    "electronics",
    "department",
    "misc",
]


def valid_date(value: str) -> str:
    """Validation hook: empty reason when value is a YYYY-MM-DD date."""
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError:
        return "Invalid date format"
    return ""


def make_mall_schema(**overrides: Any) -> dict[str, Any]:
    """Build a fresh mall store directory schema definition."""
    schema: dict[str, Any] = {
        "service": "MallStoreDirectory",
        "entity": "MallStores",
        "table": "StoreDirectory",
        "version": "1",
        "attributes": {
            "id": {"type": "string", "default": lambda: str(uuid.uuid4())},
            "mall": {"type": "string", "required": True},
            "store": {"type": "string", "required": True},
            "building": {"type": "string", "required": True},
            "unit": {"type": "string", "required": True},
            "category": {"type": CATEGORIES, "required": True},
            "leaseEnd": {"type": "string", "required": True, "validate": valid_date},
            "rent": {"type": "string", "required": False, "default": "0.00"},
            "adjustments": {"type": "string", "required": False},
        },
        "indexes": {
            "store": {
                "pk": {"field": "pk", "facets": ["id"]},
            },
            "units": {
                "index": "gsi1pk-gsi1sk-index",
                "pk": {"field": "gsi1pk", "facets": ["mall"]},
                "sk": {"field": "gsi1sk", "facets": ["building", "unit", "store"]},
            },
            "leases": {
                "index": "gsi2pk-gsi2sk-index",
                "pk": {"field": "gsi2pk", "facets": ["mall"]},
                "sk": {"field": "gsi2sk", "facets": ["leaseEnd", "store", "building", "unit"]},
            },
            "categories": {
                "index": "gsi3pk-gsi3sk-index",
                "pk": {"field": "gsi3pk", "facets": ["mall"]},
                "sk": {"field": "gsi3sk", "facets": ["category", "building", "unit", "store"]},
            },
            "shops": {
                "index": "gsi4pk-gsi4sk-index",
                "pk": {"field": "gsi4pk", "facets": ["store"]},
                "sk": {"field": "gsi4sk", "facets": ["mall", "building", "unit"]},
            },
        },
    }
    schema.update(overrides)
    return schema


class RecordingExecutor(Executor):
    """Executor that records every request and replays canned responses."""

    def __init__(self, responses: dict[str, dict[str, Any]] | None = None):
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.responses = responses or {}
        self.closed = False

    async def execute(self, method: str, params: dict[str, Any]) -> dict[str, Any]:
        self.calls.append((method, params))
        return self.responses.get(method, {})

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def mall_schema() -> dict[str, Any]:
    """Fresh mall store directory schema definition."""
    return make_mall_schema()


@pytest.fixture
def stores(mall_schema) -> Entity:
    """Entity for the mall store directory without an executor."""
    return Entity(mall_schema)


@pytest.fixture
def recording_executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def make_schema():
    """Factory for mall schema variants; keyword arguments replace top-level properties."""
    return make_mall_schema
