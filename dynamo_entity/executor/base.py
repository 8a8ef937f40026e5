"""
Abstract execution interface.

Chains never talk to the network themselves: ``go()`` materializes the
request and hands it to an ``Executor`` exactly once. Retry and backoff
policy belongs to the executor implementation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Literal

Method = Literal["get", "delete", "put", "update", "query"]

METHODS: tuple[str, ...] = ("get", "delete", "put", "update", "query")


class Executor(ABC):
    """Performs one materialized request against the backing store."""

    @abstractmethod
    async def execute(self, method: Method, params: dict[str, Any]) -> dict[str, Any]:
        """
        Perform one request.

        Args:
            method: Operation name (get, delete, put, update, query)
            params: Request parameters exactly as produced by ``params()``

        Returns:
            The raw response mapping from the store
        """

    async def close(self) -> None:
        """Release any resources held by the executor."""

    async def __aenter__(self) -> Executor:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
