from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import ListConnectionsInput, ListConnectionsOutput
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit


async def datahub_list_connections(
    toolkit: "Toolkit", ctx: Context | None, params: ListConnectionsInput
) -> CallToolResult:
    """List the configured DataHub connections, the default one flagged."""
    try:
        infos = toolkit.connection_infos()
    except DataHubError as e:
        return error_result(str(e))
    return json_result(ListConnectionsOutput(connections=infos, count=len(infos)))
