import logging
from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager

import typer
from mcp.server.fastmcp import Context, FastMCP

from datahub_mcp.client import DataHubClient, env_flag
from datahub_mcp.connections import ClientFactory, ConnectionManager, ConnectionsConfig
from datahub_mcp.errors import ConfigurationError
from datahub_mcp.extensions import ExtensionsConfig, MetricsCollector, build_extension_middlewares
from datahub_mcp.models import MCPContext
from datahub_mcp.tools import BeforeFunc, CatalogMCP, ToolContext, Toolkit, ToolkitConfig, ToolMiddleware
from datahub_mcp.utils import get_mcp_context

logging.basicConfig(level=logging.WARNING)
logger = logging.getLogger(__name__)


app = typer.Typer()

MCP_SERVER_INSTRUCTIONS = """
Use these tools to explore the DataHub metadata catalog: datasets, dashboards,
pipelines, glossary terms, domains, data products and their lineage.

Start with datahub_search to discover entities, then use datahub_get_entity,
datahub_get_schema and datahub_get_lineage with the URNs it returns. Several
DataHub servers may be configured; call datahub_list_connections to see them
and pass the connection name in the `connection` parameter of any other tool.

READ operations are safe to use. WRITE operations (descriptions, tags, glossary
terms, links) change the catalog for everyone. Always confirm with the user
before making changes, especially on production connections.
"""


def make_lifespan(
    manager: ConnectionManager, write_enabled: bool
) -> Callable[[FastMCP], AbstractAsyncContextManager[MCPContext]]:
    @asynccontextmanager
    async def app_lifespan(server: FastMCP) -> AsyncIterator[MCPContext]:
        """Lifespan context manager for the MCP server.

        Makes the connection summary available to all tools during the
        server's lifetime and closes every DataHub client on shutdown.

        Args:
            server: The MCP server instance

        Yields:
            MCPContext with server configuration
        """
        try:
            yield get_mcp_context(manager, write_enabled)
        finally:
            await manager.close()

    return app_lifespan


def configuration_error_middleware(error: ConfigurationError) -> ToolMiddleware:
    """Middleware that fails every call with `error`."""

    async def refuse(ctx: Context | None, tc: ToolContext) -> Context | None:
        raise error

    return BeforeFunc(refuse)


def create_server(
    *,
    enable_write_tools: bool = False,
    debug: bool = False,
    connections: ConnectionsConfig | None = None,
    client_factory: ClientFactory = DataHubClient,
    metrics_collector: MetricsCollector | None = None,
) -> CatalogMCP:
    """Build the DataHub MCP server with every tool registered.

    Write tools are registered when `enable_write_tools` is set or
    DATAHUB_WRITE_ENABLED is true. When the DataHub configuration is missing
    or invalid the server still starts, and every tool call reports the
    configuration problem.

    Args:
        enable_write_tools: Register the write tools
        debug: Log every tool invocation
        connections: Connection configuration; read from the environment when omitted
        client_factory: Builds a client from a resolved connection configuration
        metrics_collector: Receives call metrics when MCP_DATAHUB_EXT_METRICS is on

    Returns:
        The configured server, ready to run
    """
    write_enabled = enable_write_tools or env_flag("DATAHUB_WRITE_ENABLED")
    debug = debug or env_flag("DATAHUB_DEBUG")
    if debug:
        logging.getLogger("datahub_mcp").setLevel(logging.DEBUG)

    middlewares = build_extension_middlewares(ExtensionsConfig.from_env(), metrics_collector)
    try:
        if connections is None:
            connections = ConnectionsConfig.from_env()
        connections.primary.ensure_valid()
    except ConfigurationError as e:
        logger.error("DataHub is not configured: %s", e)
        middlewares.insert(0, configuration_error_middleware(e))
        if connections is None:
            connections = ConnectionsConfig()

    manager = ConnectionManager(connections, client_factory)
    mcp = CatalogMCP(
        "DataHub MCP Server",
        lifespan=make_lifespan(manager, write_enabled),
        instructions=MCP_SERVER_INSTRUCTIONS,
    )
    toolkit = Toolkit(
        manager=manager,
        config=ToolkitConfig(write_enabled=write_enabled, debug=debug),
        middlewares=middlewares,
    )
    toolkit.register_all(mcp)
    return mcp


@app.command()
def run(*, enable_write_tools: bool = False, debug: bool = False) -> None:
    """Run the DataHub MCP server.

    Starts the MCP server with read-only tools enabled by default.
    Use --enable-write-tools to also enable catalog write capabilities.

    Args:
        enable_write_tools: Flag to enable write tools (metadata changes)
        debug: Flag to log every tool invocation
    """
    mcp = create_server(enable_write_tools=enable_write_tools, debug=debug)
    mcp.run()
