from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import (
    ListDataProductsInput,
    ListDataProductsOutput,
    ListDomainsInput,
    ListDomainsOutput,
    ListTagsInput,
    ListTagsOutput,
)
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit


async def datahub_list_tags(toolkit: "Toolkit", ctx: Context | None, params: ListTagsInput) -> CallToolResult:
    """List tags, optionally only those whose name matches `filter`."""
    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        tags = await client.list_tags(params.filter)
    except DataHubError as e:
        return error_result(str(e))
    return json_result(ListTagsOutput(tags=tags))


async def datahub_list_domains(toolkit: "Toolkit", ctx: Context | None, params: ListDomainsInput) -> CallToolResult:
    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        domains = await client.list_domains()
    except DataHubError as e:
        return error_result(str(e))
    return json_result(ListDomainsOutput(domains=domains))


async def datahub_list_data_products(
    toolkit: "Toolkit", ctx: Context | None, params: ListDataProductsInput
) -> CallToolResult:
    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        products = await client.list_data_products()
    except DataHubError as e:
        return error_result(str(e))
    return json_result(ListDataProductsOutput(data_products=products))
