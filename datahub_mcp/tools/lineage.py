import logging
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import GetColumnLineageInput, GetLineageInput, LineageOutput, LineageResult
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit

logger = logging.getLogger(__name__)


async def datahub_get_lineage(toolkit: "Toolkit", ctx: Context | None, params: GetLineageInput) -> CallToolResult:
    """Get upstream or downstream lineage for an entity.

    Args:
        toolkit: Toolkit providing the connection and optional query provider
        ctx: MCP request context
        params: Starting URN, direction and depth

    Returns:
        Lineage graph; with a query provider, execution_context sits next to nodes and edges
    """
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        lineage = await client.get_lineage(params.urn, direction=params.direction, depth=params.depth)
    except DataHubError as e:
        return error_result(str(e))

    provider = toolkit.query_provider
    if provider is None:
        return json_result(lineage)

    output = LineageOutput(**lineage.model_dump())
    urns = lineage_urns(lineage)
    if urns:
        try:
            output.execution_context = await provider.get_execution_context(urns)
        except Exception as e:
            logger.debug("Query provider %s could not build execution context: %s", provider.name(), e)
    return json_result(output)


def lineage_urns(lineage: LineageResult) -> list[str]:
    """The starting URN followed by every node URN."""
    urns = [lineage.start] if lineage.start else []
    urns.extend(node.urn for node in lineage.nodes)
    return urns


async def datahub_get_column_lineage(
    toolkit: "Toolkit", ctx: Context | None, params: GetColumnLineageInput
) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        column_lineage = await client.get_column_lineage(params.urn)
    except DataHubError as e:
        return error_result(str(e))
    return json_result(column_lineage)
