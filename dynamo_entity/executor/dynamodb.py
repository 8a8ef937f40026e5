"""
DynamoDB executor.

Runs materialized requests through the boto3 DynamoDB resource's client,
which accepts and returns plain Python values (the document-client shape the
chains produce). boto3 is synchronous, so each call runs in a worker thread.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from ..exceptions import ExecutionError
from .base import METHODS, Executor, Method

logger = logging.getLogger(__name__)

_CLIENT_METHODS = {
    "get": "get_item",
    "delete": "delete_item",
    "put": "put_item",
    "update": "update_item",
    "query": "query",
}


@dataclass
class DynamoDBConfig:
    """Configuration for the DynamoDB executor."""

    region_name: str | None = None
    endpoint_url: str | None = None
    profile_name: str | None = None

    @classmethod
    def from_env(cls) -> DynamoDBConfig:
        """Create config from environment variables."""
        return cls(
            region_name=os.environ.get("DYNAMO_ENTITY_REGION") or os.environ.get("AWS_REGION"),
            endpoint_url=os.environ.get("DYNAMO_ENTITY_ENDPOINT_URL"),
            profile_name=os.environ.get("DYNAMO_ENTITY_PROFILE"),
        )


class DynamoDBExecutor(Executor):
    """
    Executor backed by boto3.

    Usage:
        executor = DynamoDBExecutor.create(DynamoDBConfig.from_env())
        item = await entity.with_executor(executor).get({"id": "123"}).go()
    """

    def __init__(self, client: Any, config: DynamoDBConfig | None = None) -> None:
        """
        Initialize the executor.

        Args:
            client: A DynamoDB client that speaks plain Python values, usually
                ``boto3.resource("dynamodb").meta.client``
            config: The configuration the client was built from, if any
        """
        self.client = client
        self.config = config

    @classmethod
    def create(cls, config: DynamoDBConfig | None = None) -> DynamoDBExecutor:
        """Build an executor with its own boto3 session."""
        config = config or DynamoDBConfig.from_env()
        session = boto3.session.Session(profile_name=config.profile_name)
        resource = session.resource(
            "dynamodb",
            region_name=config.region_name,
            endpoint_url=config.endpoint_url,
        )
        logger.info(
            "Created DynamoDB executor (region=%s, endpoint=%s)",
            config.region_name,
            config.endpoint_url or "default",
        )
        return cls(resource.meta.client, config)

    async def execute(self, method: Method, params: dict[str, Any]) -> dict[str, Any]:
        if method not in METHODS:
            raise ExecutionError(method, params.get("TableName"), ValueError(f"Unknown method: {method}"))

        call = getattr(self.client, _CLIENT_METHODS[method])
        table = params.get("TableName")
        logger.debug("Executing %s on %s", method, table)
        try:
            return await asyncio.to_thread(call, **params)
        except (ClientError, BotoCoreError) as e:
            logger.error("DynamoDB %s on %s failed: %s", method, table, e)
            raise ExecutionError(method, table, e) from e

    async def close(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            await asyncio.to_thread(close)
