from datahub_mcp.connections import ConnectionManager
from datahub_mcp.models import MCPContext


def get_mcp_context(manager: ConnectionManager, write_enabled: bool) -> MCPContext:
    """Get MCP Context.

    Creates the context object describing the configured connections.
    This is called during server startup via the lifespan context manager.

    Args:
        manager: Connection manager serving the tools
        write_enabled: Whether write tools are enabled

    Returns:
        MCPContext with server configuration
    """
    return MCPContext(
        default_connection=manager.config.default,
        default_url=manager.config.primary.url,
        connection_count=manager.connection_count(),
        write_enabled=write_enabled,
    )
