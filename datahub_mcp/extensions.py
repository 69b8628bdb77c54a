"""Optional built-in middlewares, switched on through MCP_DATAHUB_EXT_* variables."""

import logging
import os
import threading
from dataclasses import dataclass, replace
from typing import Protocol

from mcp.types import CallToolResult, TextContent
from pydantic import BaseModel, ConfigDict

from datahub_mcp.client import env_flag
from datahub_mcp.tools.context import ToolContext
from datahub_mcp.tools.middleware import ToolMiddleware

logger = logging.getLogger(__name__)

# Checked in order against the lowercased error text; the first match wins.
ERROR_HINTS: tuple[tuple[str, str], ...] = (
    ("entity not found", "Hint: Use datahub_search to find entities."),
    ("connection error", "Hint: Use datahub_list_connections to see available connections."),
    ("unknown connection", "Hint: Use datahub_list_connections to see available connections."),
    ("access denied", "Hint: Check your DataHub token and permissions."),
    ("unauthorized", "Hint: Check your DataHub token and permissions."),
    ("write operations are disabled", "Hint: Set DATAHUB_WRITE_ENABLED=true to enable writes."),
    ("urn parameter is required", "Hint: Use datahub_search to find entity URNs."),
    ("invalid urn", "Hint: URNs follow the format urn:li:dataset:(platform,name,env)."),
)


class ExtensionsConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    enable_logging: bool = False
    enable_metrics: bool = False
    enable_metadata: bool = False
    enable_error_hints: bool = True

    @classmethod
    def from_env(cls) -> "ExtensionsConfig":
        """Read the MCP_DATAHUB_EXT_* flags. Unset variables keep their defaults."""
        values = {}
        for field_name, variable in (
            ("enable_logging", "MCP_DATAHUB_EXT_LOGGING"),
            ("enable_metrics", "MCP_DATAHUB_EXT_METRICS"),
            ("enable_metadata", "MCP_DATAHUB_EXT_METADATA"),
            ("enable_error_hints", "MCP_DATAHUB_EXT_ERRORS"),
        ):
            if os.getenv(variable):
                values[field_name] = env_flag(variable)
        return cls(**values)


def append_text(result: CallToolResult, text: str) -> CallToolResult:
    """Copy of `result` with `text` appended to its first text block."""
    content = list(result.content)
    for i, block in enumerate(content):
        if isinstance(block, TextContent):
            content[i] = TextContent(type="text", text=block.text + text)
            return result.model_copy(update={"content": content})
    return result


class LoggingMiddleware(ToolMiddleware):
    """Logs each call's connection, duration and outcome."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logger

    async def before(self, ctx, tc: ToolContext):
        self.log.info("tool=%s connection=%s", tc.tool_name, tc.connection or "(default)")
        return ctx

    async def after(self, ctx, tc: ToolContext, result, error):
        duration_ms = tc.duration * 1000
        if error is not None:
            self.log.info("tool=%s duration=%.0fms error=%s", tc.tool_name, duration_ms, error)
        elif result is not None and result.isError:
            self.log.info("tool=%s duration=%.0fms status=error", tc.tool_name, duration_ms)
        else:
            self.log.info("tool=%s duration=%.0fms status=ok", tc.tool_name, duration_ms)
        return result


@dataclass
class ToolMetrics:
    """Aggregated counters for one tool."""

    calls: int = 0
    errors: int = 0
    total_seconds: float = 0.0


class MetricsCollector(Protocol):
    def record_call(self, tool_name: str, duration: float, success: bool) -> None: ...


class InMemoryCollector:
    """Thread-safe per-tool call counters."""

    def __init__(self):
        self._lock = threading.Lock()
        self._metrics: dict[str, ToolMetrics] = {}

    def record_call(self, tool_name: str, duration: float, success: bool) -> None:
        with self._lock:
            metrics = self._metrics.setdefault(tool_name, ToolMetrics())
            metrics.calls += 1
            metrics.total_seconds += duration
            if not success:
                metrics.errors += 1

    def get_metrics(self, tool_name: str) -> ToolMetrics | None:
        """A snapshot of the counters for `tool_name`, or None if it was never called."""
        with self._lock:
            metrics = self._metrics.get(tool_name)
            return replace(metrics) if metrics is not None else None

    def reset(self) -> None:
        with self._lock:
            self._metrics = {}


class MetricsMiddleware(ToolMiddleware):
    """Records each call's duration and success with a metrics collector."""

    def __init__(self, collector: MetricsCollector | None = None):
        self.collector = collector if collector is not None else InMemoryCollector()

    async def after(self, ctx, tc: ToolContext, result, error):
        success = error is None and (result is None or not result.isError)
        self.collector.record_call(tc.tool_name, tc.duration, success)
        return result


class MetadataMiddleware(ToolMiddleware):
    """Appends a footer with the tool name, duration and start time to successful results."""

    async def after(self, ctx, tc: ToolContext, result, error):
        if result is None or result.isError:
            return result
        footer = "\n\n---\ntool: {} | duration: {}ms | timestamp: {}".format(
            tc.tool_name,
            round(tc.duration * 1000),
            tc.started_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
        )
        return append_text(result, footer)


class ErrorHintMiddleware(ToolMiddleware):
    """Appends a hint about what to try next to recognised error results."""

    async def after(self, ctx, tc: ToolContext, result, error):
        if result is None or not result.isError:
            return result
        text = next((block.text for block in result.content if isinstance(block, TextContent)), "")
        if not text:
            return result
        lowered = text.lower()
        for substring, hint in ERROR_HINTS:
            if substring in lowered:
                return append_text(result, "\n\n" + hint)
        return result


def build_extension_middlewares(
    config: ExtensionsConfig, metrics_collector: MetricsCollector | None = None
) -> list[ToolMiddleware]:
    """The enabled extension middlewares: logging, metrics, metadata footer, then error hints.

    Metrics go to `metrics_collector`, or to a fresh `InMemoryCollector` when none is given.
    """
    middlewares: list[ToolMiddleware] = []
    if config.enable_logging:
        middlewares.append(LoggingMiddleware())
    if config.enable_metrics:
        middlewares.append(MetricsMiddleware(metrics_collector))
    if config.enable_metadata:
        middlewares.append(MetadataMiddleware())
    if config.enable_error_hints:
        middlewares.append(ErrorHintMiddleware())
    return middlewares
