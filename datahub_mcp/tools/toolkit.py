"""The toolkit: binds DataHub tools to an MCP server.

A `Toolkit` owns everything a tool call needs (the connection manager or a
single client, middlewares, integration hooks and metadata overrides) and
registers any subset of the tools on a FastMCP server.
"""

import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass
from functools import partial
from typing import Annotated, Any

from mcp.server.fastmcp import Context, FastMCP
from mcp.types import CallToolResult, Icon, ToolAnnotations
from pydantic import BaseModel, ConfigDict, Field

from datahub_mcp.client import CatalogClient
from datahub_mcp.connections import ConnectionManager
from datahub_mcp.errors import DataHubError, UnknownToolError, WriteDisabledError
from datahub_mcp.integration import AccessFilter, AuditLogger, GetUserID, MetadataEnricher, QueryProvider, URNResolver
from datahub_mcp.models import (
    AddGlossaryTermInput,
    AddLinkInput,
    AddTagInput,
    ConnectionInfo,
    GetColumnLineageInput,
    GetDataProductInput,
    GetEntityInput,
    GetGlossaryTermInput,
    GetLineageInput,
    GetQueriesInput,
    GetSchemaInput,
    ListConnectionsInput,
    ListDataProductsInput,
    ListDomainsInput,
    ListTagsInput,
    RemoveGlossaryTermInput,
    RemoveLinkInput,
    RemoveTagInput,
    SearchInput,
    UpdateDescriptionInput,
)
from datahub_mcp.tools import catalog, connections, entities, lineage, search, write
from datahub_mcp.tools.adapters import build_integration_middleware
from datahub_mcp.tools.host import CatalogMCP
from datahub_mcp.tools.middleware import Handler, ToolMiddleware, build_pipeline, wrap_handler
from datahub_mcp.tools.names import READ_TOOLS, WRITE_TOOLS, ToolName
from datahub_mcp.tools.overrides import (
    DEFAULT_ANNOTATIONS,
    DEFAULT_DESCRIPTIONS,
    DEFAULT_ICONS,
    DEFAULT_OUTPUT_SCHEMAS,
    DEFAULT_TITLES,
    resolve,
)

logger = logging.getLogger(__name__)

ToolHandler = Callable[["Toolkit", Context | None, Any], Awaitable[CallToolResult]]


@dataclass(frozen=True)
class ToolSpec:
    input_model: type[BaseModel]
    handler: ToolHandler


# Every tool the toolkit knows how to register.
TOOL_REGISTRY: dict[ToolName, ToolSpec] = {
    ToolName.SEARCH: ToolSpec(SearchInput, search.datahub_search),
    ToolName.GET_ENTITY: ToolSpec(GetEntityInput, entities.datahub_get_entity),
    ToolName.GET_SCHEMA: ToolSpec(GetSchemaInput, entities.datahub_get_schema),
    ToolName.GET_LINEAGE: ToolSpec(GetLineageInput, lineage.datahub_get_lineage),
    ToolName.GET_COLUMN_LINEAGE: ToolSpec(GetColumnLineageInput, lineage.datahub_get_column_lineage),
    ToolName.GET_QUERIES: ToolSpec(GetQueriesInput, entities.datahub_get_queries),
    ToolName.GET_GLOSSARY_TERM: ToolSpec(GetGlossaryTermInput, entities.datahub_get_glossary_term),
    ToolName.LIST_TAGS: ToolSpec(ListTagsInput, catalog.datahub_list_tags),
    ToolName.LIST_DOMAINS: ToolSpec(ListDomainsInput, catalog.datahub_list_domains),
    ToolName.LIST_DATA_PRODUCTS: ToolSpec(ListDataProductsInput, catalog.datahub_list_data_products),
    ToolName.GET_DATA_PRODUCT: ToolSpec(GetDataProductInput, entities.datahub_get_data_product),
    ToolName.LIST_CONNECTIONS: ToolSpec(ListConnectionsInput, connections.datahub_list_connections),
    ToolName.UPDATE_DESCRIPTION: ToolSpec(UpdateDescriptionInput, write.datahub_update_description),
    ToolName.ADD_TAG: ToolSpec(AddTagInput, write.datahub_add_tag),
    ToolName.REMOVE_TAG: ToolSpec(RemoveTagInput, write.datahub_remove_tag),
    ToolName.ADD_GLOSSARY_TERM: ToolSpec(AddGlossaryTermInput, write.datahub_add_glossary_term),
    ToolName.REMOVE_GLOSSARY_TERM: ToolSpec(RemoveGlossaryTermInput, write.datahub_remove_glossary_term),
    ToolName.ADD_LINK: ToolSpec(AddLinkInput, write.datahub_add_link),
    ToolName.REMOVE_LINK: ToolSpec(RemoveLinkInput, write.datahub_remove_link),
}


class ToolkitConfig(BaseModel):
    """Toolkit-wide settings. Paging and lineage limits live on each connection's `ClientConfig`."""

    model_config = ConfigDict(frozen=True)

    write_enabled: bool = False
    debug: bool = False


@dataclass(frozen=True)
class RegistrationOptions:
    """Settings for a single `register_with` call. Unset facets fall back to the toolkit."""

    middlewares: Sequence[ToolMiddleware] = ()
    description: str | None = None
    title: str | None = None
    icons: list[Icon] | None = None
    annotations: ToolAnnotations | None = None
    output_schema: dict[str, Any] | None = None


def tool_function(name: str, input_model: type[BaseModel], handler: Handler) -> Callable[..., Awaitable[CallToolResult]]:
    """Build the function FastMCP registers for a tool.

    The function takes the input model's fields as flat keyword arguments (so
    the published input schema matches the model) plus the request context,
    and hands a validated model instance to `handler`.
    """

    async def tool(ctx: Context, **arguments: Any) -> CallToolResult:
        return await handler(ctx, input_model.model_validate(arguments))

    parameters = [inspect.Parameter("ctx", inspect.Parameter.KEYWORD_ONLY, annotation=Context)]
    annotations: dict[str, Any] = {"ctx": Context}
    for field_name, info in input_model.model_fields.items():
        annotation = Annotated[(info.annotation, *info.metadata, Field(description=info.description))]
        default = inspect.Parameter.empty if info.is_required() else info.get_default(call_default_factory=True)
        parameters.append(
            inspect.Parameter(field_name, inspect.Parameter.KEYWORD_ONLY, annotation=annotation, default=default)
        )
        annotations[field_name] = annotation
    annotations["return"] = CallToolResult

    tool.__name__ = name
    tool.__qualname__ = name
    tool.__annotations__ = annotations
    tool.__signature__ = inspect.Signature(parameters, return_annotation=CallToolResult)  # type: ignore[attr-defined]
    return tool


class Toolkit:
    """DataHub tools with their middleware pipeline and metadata overrides.

    Tools run against either a `ConnectionManager` (multi-connection mode) or
    a single client. Middlewares run in this order: integration hooks
    (resolver, access filter, enricher, audit logger), toolkit-wide
    middlewares, per-tool middlewares, then per-registration middlewares.

    Args:
        client: Client used for every call when no manager is given
        config: Toolkit settings
        manager: Connection manager; takes precedence over `client`
        middlewares: Middlewares applied to every tool
        tool_middlewares: Middlewares applied to specific tools
        urn_resolver: Translates external identifiers into URNs
        access_filter: Restricts which entities a caller may see
        audit_logger: Records every tool call
        metadata_enricher: Adds fields to single-entity responses
        get_user_id: Extracts the caller identity for audit records
        query_provider: Adds query engine context to responses
        descriptions: Toolkit-level description overrides
        titles: Toolkit-level title overrides
        icons: Toolkit-level icon overrides
        annotations: Toolkit-level annotation overrides
        output_schemas: Toolkit-level output schema overrides
    """

    def __init__(
        self,
        client: CatalogClient | None = None,
        config: ToolkitConfig | None = None,
        *,
        manager: ConnectionManager | None = None,
        middlewares: Iterable[ToolMiddleware] = (),
        tool_middlewares: Mapping[str, Iterable[ToolMiddleware]] | None = None,
        urn_resolver: URNResolver | None = None,
        access_filter: AccessFilter | None = None,
        audit_logger: AuditLogger | None = None,
        metadata_enricher: MetadataEnricher | None = None,
        get_user_id: GetUserID | None = None,
        query_provider: QueryProvider | None = None,
        descriptions: Mapping[str, str] | None = None,
        titles: Mapping[str, str] | None = None,
        icons: Mapping[str, list[Icon]] | None = None,
        annotations: Mapping[str, ToolAnnotations] | None = None,
        output_schemas: Mapping[str, dict[str, Any]] | None = None,
    ):
        self.client = client
        self.config = config or ToolkitConfig()
        self.manager = manager
        self.query_provider = query_provider
        self.middlewares: tuple[ToolMiddleware, ...] = tuple(middlewares)
        self.tool_middlewares: dict[str, tuple[ToolMiddleware, ...]] = {
            name: tuple(mws) for name, mws in (tool_middlewares or {}).items()
        }
        self.integration_middlewares: tuple[ToolMiddleware, ...] = tuple(
            build_integration_middleware(
                urn_resolver=urn_resolver,
                access_filter=access_filter,
                metadata_enricher=metadata_enricher,
                audit_logger=audit_logger,
                get_user_id=get_user_id,
            )
        )
        self.descriptions = dict(descriptions or {})
        self.titles = dict(titles or {})
        self.icons = dict(icons or {})
        self.annotations = dict(annotations or {})
        self.output_schemas = dict(output_schemas or {})
        self._registered: set[ToolName] = set()

    # Registration

    def register_all(self, server: FastMCP) -> None:
        """Register the read tools, and the write tools when writes are enabled."""
        self.register(server, *READ_TOOLS)
        if self.config.write_enabled:
            self.register(server, *WRITE_TOOLS)

    def register(self, server: FastMCP, *names: str) -> None:
        """Register the named tools. Tools already registered are skipped.

        Raises:
            UnknownToolError: If a name is not a DataHub tool
        """
        for name in names:
            self._register(server, name, None)

    def register_with(
        self,
        server: FastMCP,
        name: str,
        *,
        middlewares: Sequence[ToolMiddleware] = (),
        description: str | None = None,
        title: str | None = None,
        icons: list[Icon] | None = None,
        annotations: ToolAnnotations | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> None:
        """Register one tool with overrides that apply to this registration only."""
        options = RegistrationOptions(
            middlewares=tuple(middlewares),
            description=description,
            title=title,
            icons=icons,
            annotations=annotations,
            output_schema=output_schema,
        )
        self._register(server, name, options)

    def is_registered(self, name: str) -> bool:
        return name in self._registered

    def _register(self, server: FastMCP, name: str, options: RegistrationOptions | None) -> None:
        tool_name = _tool_name(name)
        if tool_name in self._registered:
            logger.debug("Tool %s already registered, skipping", tool_name)
            return

        spec = TOOL_REGISTRY[tool_name]
        handler = self.wrap(tool_name, partial(spec.handler, self), options)
        fn = tool_function(tool_name.value, spec.input_model, handler)
        add_tool_kwargs: dict[str, Any] = {
            "name": tool_name.value,
            "title": self.get_title(tool_name, options),
            "description": self.get_description(tool_name, options),
            "annotations": self.get_annotations(tool_name, options),
            "icons": self.get_icons(tool_name, options),
        }
        if isinstance(server, CatalogMCP):
            add_tool_kwargs["output_schema"] = self.get_output_schema(tool_name, options)
        server.add_tool(fn, **add_tool_kwargs)
        self._registered.add(tool_name)
        logger.debug("Registered tool %s", tool_name)

    def wrap(self, name: str, handler: Handler, options: RegistrationOptions | None = None) -> Handler:
        """Apply the middleware pipeline for `name` to `handler`.

        Returns `handler` itself when no middleware applies and debug logging is off.
        """
        chain = build_pipeline(
            self.integration_middlewares,
            self.middlewares,
            self.tool_middlewares.get(name, ()),
            options.middlewares if options else (),
        )
        return wrap_handler(name, handler, chain, debug=self.config.debug)

    def has_middleware(self) -> bool:
        """Whether any integration, toolkit-wide or per-tool middleware is configured."""
        return bool(
            self.integration_middlewares or self.middlewares or any(self.tool_middlewares.values())
        )

    # Metadata

    def get_description(self, name: str, options: RegistrationOptions | None = None) -> str | None:
        return resolve(options.description if options else None, self.descriptions.get(name), DEFAULT_DESCRIPTIONS.get(name))

    def get_title(self, name: str, options: RegistrationOptions | None = None) -> str | None:
        return resolve(options.title if options else None, self.titles.get(name), DEFAULT_TITLES.get(name))

    def get_icons(self, name: str, options: RegistrationOptions | None = None) -> list[Icon] | None:
        return resolve(options.icons if options else None, self.icons.get(name), DEFAULT_ICONS.get(name))

    def get_annotations(self, name: str, options: RegistrationOptions | None = None) -> ToolAnnotations | None:
        return resolve(
            options.annotations if options else None, self.annotations.get(name), DEFAULT_ANNOTATIONS.get(name)
        )

    def get_output_schema(self, name: str, options: RegistrationOptions | None = None) -> dict[str, Any] | None:
        return resolve(
            options.output_schema if options else None, self.output_schemas.get(name), DEFAULT_OUTPUT_SCHEMAS.get(name)
        )

    # Connections

    def get_client(self, connection: str = "") -> CatalogClient:
        """The client for `connection`, or the default connection when empty.

        Raises:
            ConfigurationError: If the connection is unknown or misconfigured
            DataHubError: If no client is configured at all
        """
        if self.manager is not None:
            logger.debug("Selecting connection %s", connection or "(default)")
            try:
                return self.manager.client(connection)
            except DataHubError as e:
                logger.error("Connection selection failed for %s: %s", connection or "(default)", e)
                raise
        if self.client is None:
            logger.error("No client configured")
            raise DataHubError("no client configured")
        return self.client

    def get_write_client(self, connection: str = "") -> CatalogClient:
        """Like `get_client`, but refuses while write operations are disabled.

        Raises:
            WriteDisabledError: If the toolkit was built without write_enabled
        """
        if not self.config.write_enabled:
            raise WriteDisabledError()
        return self.get_client(connection)

    def connection_infos(self) -> list[ConnectionInfo]:
        if self.manager is not None:
            return self.manager.connection_infos()
        return [ConnectionInfo(name="default", url="configured via single client", is_default=True)]

    def connection_count(self) -> int:
        if self.manager is not None:
            return self.manager.connection_count()
        return 1


def _tool_name(name: str) -> ToolName:
    try:
        return ToolName(name)
    except ValueError:
        raise UnknownToolError(name) from None
