from .adapters import (
    AccessFilterMiddleware,
    AuditLoggerMiddleware,
    MetadataEnricherMiddleware,
    URNResolverMiddleware,
    build_integration_middleware,
)
from .context import ACCESS_OK, RESOLVED_URN, ToolContext
from .host import CatalogMCP
from .middleware import AfterFunc, BeforeFunc, Handler, ToolMiddleware, build_pipeline, wrap_handler
from .names import ALL_TOOLS, READ_TOOLS, WRITE_TOOLS, ToolName, is_entity_tool, is_list_tool
from .overrides import resolve
from .results import error_result, json_result
from .toolkit import TOOL_REGISTRY, RegistrationOptions, Toolkit, ToolkitConfig

__all__ = [
    "ACCESS_OK",
    "ALL_TOOLS",
    "READ_TOOLS",
    "RESOLVED_URN",
    "TOOL_REGISTRY",
    "WRITE_TOOLS",
    "AccessFilterMiddleware",
    "AfterFunc",
    "AuditLoggerMiddleware",
    "BeforeFunc",
    "CatalogMCP",
    "Handler",
    "MetadataEnricherMiddleware",
    "RegistrationOptions",
    "ToolContext",
    "ToolMiddleware",
    "ToolName",
    "Toolkit",
    "ToolkitConfig",
    "URNResolverMiddleware",
    "build_integration_middleware",
    "build_pipeline",
    "error_result",
    "is_entity_tool",
    "is_list_tool",
    "json_result",
    "resolve",
    "wrap_handler",
]
