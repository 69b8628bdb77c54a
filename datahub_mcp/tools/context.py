import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from datahub_mcp.models.inputs import ENTITY_INPUTS

# Keys used by the integration middlewares to share state within one call.
RESOLVED_URN = "resolved_urn"
ACCESS_OK = "access_ok"


@dataclass
class ToolContext:
    """Per-invocation state shared between the before and after hooks of a call."""

    tool_name: str
    input: BaseModel | None
    start_time: float = field(default_factory=time.monotonic)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    extra: dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> float:
        """Seconds elapsed since the call started."""
        return time.monotonic() - self.start_time

    @property
    def connection(self) -> str:
        """Connection named in the input; empty means the default connection."""
        return getattr(self.input, "connection", "") or ""

    def set(self, key: str, value: Any) -> None:
        self.extra[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.extra.get(key, default)

    def get_string(self, key: str) -> str:
        value = self.extra.get(key)
        return value if isinstance(value, str) else ""

    def input_urn(self) -> str:
        """The `urn` field of the input, for tools that address a single entity."""
        if isinstance(self.input, ENTITY_INPUTS):
            return self.input.urn
        return ""

    def effective_urn(self) -> str:
        """The resolved URN when a resolver ran, otherwise the input URN."""
        return self.get_string(RESOLVED_URN) or self.input_urn()
