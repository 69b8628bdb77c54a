"""Middlewares that plug the integration hooks into the tool pipeline."""

import asyncio
import logging
from typing import Any

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import AccessDeniedError
from datahub_mcp.integration import AccessFilter, AuditLogger, GetUserID, MetadataEnricher, URNResolver
from datahub_mcp.tools.context import ACCESS_OK, RESOLVED_URN, ToolContext
from datahub_mcp.tools.middleware import ToolMiddleware
from datahub_mcp.tools.names import is_entity_tool, is_list_tool
from datahub_mcp.tools.results import json_result, result_payload

logger = logging.getLogger(__name__)

DATAHUB_URN_PREFIX = "urn:li:"

# Response arrays whose items are filtered by URN.
_FILTERED_ARRAYS = ("entities", "nodes", "tags", "domains", "data_products")


def is_datahub_urn(value: str) -> bool:
    return value.startswith(DATAHUB_URN_PREFIX)


def _usable(result: CallToolResult | None) -> bool:
    return result is not None and not result.isError and bool(result.content)


class URNResolverMiddleware(ToolMiddleware):
    """Translates external identifiers in entity inputs to DataHub URNs."""

    def __init__(self, resolver: URNResolver):
        self.resolver = resolver

    async def before(self, ctx: Context | None, tc: ToolContext) -> Context | None:
        urn = tc.input_urn()
        if not urn:
            return ctx
        if is_datahub_urn(urn):
            tc.set(RESOLVED_URN, urn)
            return ctx
        tc.set(RESOLVED_URN, await self.resolver.resolve_to_urn(ctx, urn))
        return ctx


class AccessFilterMiddleware(ToolMiddleware):
    """Denies calls on inaccessible entities and drops inaccessible items from list results."""

    def __init__(self, access_filter: AccessFilter):
        self.filter = access_filter

    async def before(self, ctx: Context | None, tc: ToolContext) -> Context | None:
        urn = tc.effective_urn()
        if not urn:
            return ctx
        if not await self.filter.can_access(ctx, urn):
            raise AccessDeniedError()
        tc.set(ACCESS_OK, True)
        return ctx

    async def after(
        self,
        ctx: Context | None,
        tc: ToolContext,
        result: CallToolResult | None,
        error: Exception | None,
    ) -> CallToolResult | None:
        if not is_list_tool(tc.tool_name) or not _usable(result):
            return result
        try:
            return await self._filter(ctx, result)
        except Exception as e:
            logger.warning("Access filtering failed for %s, returning unfiltered result: %s", tc.tool_name, e)
            return result

    async def _filter(self, ctx: Context | None, result: CallToolResult) -> CallToolResult:
        data = result_payload(result)
        urns = [
            item["urn"]
            for key in _FILTERED_ARRAYS
            for item in data.get(key) or []
            if isinstance(item, dict) and isinstance(item.get("urn"), str)
        ]
        if isinstance(data.get("urn"), str):
            urns.append(data["urn"])
        if not urns:
            return result

        allowed = set(await self.filter.filter_urns(ctx, urns))
        for key in _FILTERED_ARRAYS:
            items = data.get(key)
            if not isinstance(items, list):
                continue
            data[key] = [item for item in items if isinstance(item, dict) and item.get("urn") in allowed]
            if key == "entities" and "total" in data:
                data["total"] = len(data[key])
        return json_result(data)


class MetadataEnricherMiddleware(ToolMiddleware):
    """Merges enricher-supplied fields into single-entity responses."""

    def __init__(self, enricher: MetadataEnricher):
        self.enricher = enricher

    async def after(
        self,
        ctx: Context | None,
        tc: ToolContext,
        result: CallToolResult | None,
        error: Exception | None,
    ) -> CallToolResult | None:
        if not is_entity_tool(tc.tool_name) or not _usable(result):
            return result
        urn = tc.effective_urn()
        if not urn:
            return result
        try:
            enriched = await self.enricher.enrich_entity(ctx, urn, result_payload(result))
        except Exception as e:
            logger.warning("Metadata enrichment failed for %s: %s", urn, e)
            return result
        return json_result(enriched)


class AuditLoggerMiddleware(ToolMiddleware):
    """Reports every call to an audit logger without waiting for it.

    The audit call runs as a background task; its failures are logged and
    never reach the caller.
    """

    def __init__(self, audit_logger: AuditLogger, get_user_id: GetUserID | None = None):
        self.audit_logger = audit_logger
        self.get_user_id = get_user_id
        self._pending: set[asyncio.Task[None]] = set()

    async def after(
        self,
        ctx: Context | None,
        tc: ToolContext,
        result: CallToolResult | None,
        error: Exception | None,
    ) -> CallToolResult | None:
        user_id = ""
        if self.get_user_id is not None:
            try:
                user_id = self.get_user_id(ctx)
            except Exception as e:
                logger.warning("Could not determine the caller of %s for audit logging: %s", tc.tool_name, e)
        params: dict[str, Any] = tc.input.model_dump(mode="json") if tc.input is not None else {}
        task = asyncio.create_task(self.audit_logger.log_tool_call(ctx, tc.tool_name, params, user_id))
        self._pending.add(task)
        task.add_done_callback(self._done)
        return result

    def _done(self, task: "asyncio.Task[None]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        if (exc := task.exception()) is not None:
            logger.warning("Audit logging failed: %s", exc)

    async def drain(self) -> None:
        """Wait for audit calls still in flight."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)


def build_integration_middleware(
    *,
    urn_resolver: URNResolver | None = None,
    access_filter: AccessFilter | None = None,
    metadata_enricher: MetadataEnricher | None = None,
    audit_logger: AuditLogger | None = None,
    get_user_id: GetUserID | None = None,
) -> list[ToolMiddleware]:
    """Middlewares for the configured hooks: resolver, access filter, enricher, then audit logger."""
    middlewares: list[ToolMiddleware] = []
    if urn_resolver is not None:
        middlewares.append(URNResolverMiddleware(urn_resolver))
    if access_filter is not None:
        middlewares.append(AccessFilterMiddleware(access_filter))
    if metadata_enricher is not None:
        middlewares.append(MetadataEnricherMiddleware(metadata_enricher))
    if audit_logger is not None:
        middlewares.append(AuditLoggerMiddleware(audit_logger, get_user_id))
    return middlewares
