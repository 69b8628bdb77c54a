from typing import Any

from mcp.server.fastmcp import FastMCP
from mcp.types import AnyFunction, Icon, ToolAnnotations
from mcp.types import Tool as MCPTool


class CatalogMCP(FastMCP):
    """FastMCP server that publishes an explicit output schema per tool.

    DataHub tools return ready-made `CallToolResult`s, so FastMCP cannot derive
    their output schemas from return annotations. The schemas are kept here and
    merged into `list_tools`.
    """

    def __init__(self, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self._output_schemas: dict[str, dict[str, Any]] = {}

    def add_tool(
        self,
        fn: AnyFunction,
        name: str | None = None,
        title: str | None = None,
        description: str | None = None,
        annotations: ToolAnnotations | None = None,
        icons: list[Icon] | None = None,
        meta: dict[str, Any] | None = None,
        structured_output: bool | None = None,
        output_schema: dict[str, Any] | None = None,
    ) -> None:
        super().add_tool(
            fn,
            name=name,
            title=title,
            description=description,
            annotations=annotations,
            icons=icons,
            meta=meta,
            structured_output=False if output_schema is not None else structured_output,
        )
        if output_schema is not None:
            self._output_schemas[name or fn.__name__] = output_schema

    def output_schema(self, name: str) -> dict[str, Any] | None:
        return self._output_schemas.get(name)

    async def list_tools(self) -> list[MCPTool]:
        tools = await super().list_tools()
        return [
            tool.model_copy(update={"outputSchema": self._output_schemas[tool.name]})
            if tool.name in self._output_schemas
            else tool
            for tool in tools
        ]
