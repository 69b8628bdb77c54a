"""Hooks for embedding the DataHub tools in a larger platform.

Every hook is optional. Implementations are plain objects with async methods;
returning None from a query provider method means "no information" and the
corresponding enrichment is simply left out of the response.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

from mcp.server.fastmcp import Context

from datahub_mcp.models import ExecutionContext, QueryExample, TableAvailability, TableIdentifier


@runtime_checkable
class URNResolver(Protocol):
    """Maps external identifiers to DataHub URNs."""

    async def resolve_to_urn(self, ctx: Context | None, external_id: str) -> str: ...


@runtime_checkable
class AccessFilter(Protocol):
    """Decides which entities the caller may see."""

    async def can_access(self, ctx: Context | None, urn: str) -> bool: ...

    async def filter_urns(self, ctx: Context | None, urns: list[str]) -> list[str]: ...


@runtime_checkable
class AuditLogger(Protocol):
    async def log_tool_call(self, ctx: Context | None, tool: str, params: dict[str, Any], user_id: str) -> None: ...


@runtime_checkable
class MetadataEnricher(Protocol):
    """Adds platform-specific fields to single-entity responses."""

    async def enrich_entity(self, ctx: Context | None, urn: str, data: dict[str, Any]) -> dict[str, Any]: ...


GetUserID = Callable[[Context | None], str]


@runtime_checkable
class QueryProvider(Protocol):
    """Supplies query engine context (e.g., from a Trino integration) for catalog entities."""

    def name(self) -> str: ...

    async def resolve_table(self, urn: str) -> TableIdentifier | None: ...

    async def get_table_availability(self, urn: str) -> TableAvailability | None: ...

    async def get_query_examples(self, urn: str) -> list[QueryExample] | None: ...

    async def get_execution_context(self, urns: list[str]) -> ExecutionContext | None: ...

    async def close(self) -> None: ...


class NoOpQueryProvider:
    """A query provider that never has anything to add."""

    def name(self) -> str:
        return "noop"

    async def resolve_table(self, urn: str) -> TableIdentifier | None:
        return None

    async def get_table_availability(self, urn: str) -> TableAvailability | None:
        return None

    async def get_query_examples(self, urn: str) -> list[QueryExample] | None:
        return None

    async def get_execution_context(self, urns: list[str]) -> ExecutionContext | None:
        return None

    async def close(self) -> None:
        return None


@dataclass
class QueryProviderFunc:
    """Build a query provider from individual coroutine functions.

    Any function left unset answers with None.
    """

    name_fn: Callable[[], str] | None = None
    resolve_table_fn: Callable[[str], Awaitable[TableIdentifier | None]] | None = None
    get_table_availability_fn: Callable[[str], Awaitable[TableAvailability | None]] | None = None
    get_query_examples_fn: Callable[[str], Awaitable[list[QueryExample] | None]] | None = None
    get_execution_context_fn: Callable[[list[str]], Awaitable[ExecutionContext | None]] | None = None
    close_fn: Callable[[], Awaitable[None]] | None = None

    def name(self) -> str:
        return self.name_fn() if self.name_fn else "func"

    async def resolve_table(self, urn: str) -> TableIdentifier | None:
        return await self.resolve_table_fn(urn) if self.resolve_table_fn else None

    async def get_table_availability(self, urn: str) -> TableAvailability | None:
        return await self.get_table_availability_fn(urn) if self.get_table_availability_fn else None

    async def get_query_examples(self, urn: str) -> list[QueryExample] | None:
        return await self.get_query_examples_fn(urn) if self.get_query_examples_fn else None

    async def get_execution_context(self, urns: list[str]) -> ExecutionContext | None:
        return await self.get_execution_context_fn(urns) if self.get_execution_context_fn else None

    async def close(self) -> None:
        if self.close_fn:
            await self.close_fn()
