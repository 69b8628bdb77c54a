import logging
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import QueryContextEntry, SearchInput, SearchOutput, SearchResult
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit

logger = logging.getLogger(__name__)


async def datahub_search(toolkit: "Toolkit", ctx: Context | None, params: SearchInput) -> CallToolResult:
    """Search the catalog.

    Args:
        toolkit: Toolkit providing the connection and optional query provider
        ctx: MCP request context
        params: Query, entity type and paging

    Returns:
        Search results, with query_context per URN when a query provider knows the entity
    """
    if not params.query:
        return error_result("query parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        result = await client.search(
            params.query,
            entity_type=params.entity_type,
            limit=params.limit,
            offset=params.offset,
        )
    except DataHubError as e:
        return error_result(str(e))

    query_context = await _query_context(toolkit, result)
    output = SearchOutput(**result.model_dump(), query_context=query_context or None)
    return json_result(output)


async def _query_context(toolkit: "Toolkit", result: SearchResult) -> dict[str, QueryContextEntry]:
    provider = toolkit.query_provider
    if provider is None:
        return {}

    context: dict[str, QueryContextEntry] = {}
    for entity in result.entities:
        try:
            availability = await provider.get_table_availability(entity.urn)
        except Exception as e:
            logger.debug("Query provider %s could not check %s: %s", provider.name(), entity.urn, e)
            continue
        if availability is None:
            continue
        context[entity.urn] = QueryContextEntry(
            available=availability.available,
            table=str(availability.table) if availability.table else None,
        )
    return context
