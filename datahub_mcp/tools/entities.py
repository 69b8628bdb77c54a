"""Single-entity tools: entities, schemas, glossary terms, data products and saved queries."""

import logging
from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import (
    GetDataProductInput,
    GetEntityInput,
    GetGlossaryTermInput,
    GetQueriesInput,
    GetSchemaInput,
    SchemaOutput,
    merge_flat,
)
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit

logger = logging.getLogger(__name__)


async def datahub_get_entity(toolkit: "Toolkit", ctx: Context | None, params: GetEntityInput) -> CallToolResult:
    """Get full metadata for one entity.

    With a query provider configured, the response also carries query_table,
    query_examples and query_availability next to the entity fields.
    """
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        entity = await client.get_entity(params.urn)
    except DataHubError as e:
        return error_result(f"GetEntity failed for {params.urn}: {e}")

    provider = toolkit.query_provider
    if provider is None:
        return json_result(entity)

    table = await _optional(provider.resolve_table(params.urn), "resolve_table", params.urn)
    examples = await _optional(provider.get_query_examples(params.urn), "get_query_examples", params.urn)
    availability = await _optional(provider.get_table_availability(params.urn), "get_table_availability", params.urn)
    return json_result(
        merge_flat(
            entity,
            query_table=str(table) if table else None,
            query_examples=examples,
            query_availability=availability,
        )
    )


async def datahub_get_schema(toolkit: "Toolkit", ctx: Context | None, params: GetSchemaInput) -> CallToolResult:
    """Get the fields of a dataset's schema, flattened next to its URN."""
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        schema = await client.get_schema(params.urn)
    except DataHubError as e:
        return error_result(str(e))

    output = SchemaOutput(urn=params.urn, **schema.model_dump())
    provider = toolkit.query_provider
    if provider is not None:
        table = await _optional(provider.resolve_table(params.urn), "resolve_table", params.urn)
        if table:
            output.query_table = str(table)
    return json_result(output)


async def datahub_get_glossary_term(
    toolkit: "Toolkit", ctx: Context | None, params: GetGlossaryTermInput
) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        term = await client.get_glossary_term(params.urn)
    except DataHubError as e:
        return error_result(str(e))
    return json_result(term)


async def datahub_get_data_product(
    toolkit: "Toolkit", ctx: Context | None, params: GetDataProductInput
) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        product = await client.get_data_product(params.urn)
    except DataHubError as e:
        return error_result(str(e))
    return json_result(product)


async def datahub_get_queries(toolkit: "Toolkit", ctx: Context | None, params: GetQueriesInput) -> CallToolResult:
    """Get the SQL queries DataHub has linked to a dataset."""
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_client(params.connection)
    except DataHubError as e:
        return error_result(f"Connection error: {e}")

    try:
        queries = await client.get_queries(params.urn)
    except DataHubError as e:
        return error_result(str(e))
    return json_result(queries)


async def _optional(call, operation: str, urn: str):
    """Await a query provider call, treating failures as "no information"."""
    try:
        return await call
    except Exception as e:
        logger.debug("Query provider %s failed for %s: %s", operation, urn, e)
        return None
