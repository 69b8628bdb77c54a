from pydantic import BaseModel


class MCPContext(BaseModel):
    """MCP server context describing the configured DataHub connections.

    This context is created during server startup and made available to tools
    via the lifespan context manager.
    """

    default_connection: str
    default_url: str
    connection_count: int
    write_enabled: bool
