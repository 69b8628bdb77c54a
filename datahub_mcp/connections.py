"""Named DataHub connections.

The primary connection comes from the standard DATAHUB_* variables. Additional
connections are declared in DATAHUB_ADDITIONAL_SERVERS as a JSON object, e.g.::

    {"staging": {"url": "https://staging.datahub.example.com", "token": "xxx"}}

Every field an additional connection leaves empty (or zero) is inherited from
the primary connection.
"""

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator, model_validator

from datahub_mcp.client import CatalogClient, ClientConfig, DataHubClient
from datahub_mcp.errors import ConfigurationError, DataHubError, UnknownConnectionError
from datahub_mcp.models import ConnectionInfo

logger = logging.getLogger(__name__)

DEFAULT_CONNECTION_NAME = "datahub"


class ConnectionOverride(BaseModel):
    """Partial settings for an additional connection. Empty and zero values inherit."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    token: str = ""
    timeout: int = Field(default=0, description="Request timeout in seconds")
    retry_max: int = 0
    default_limit: int = 0
    max_limit: int = 0
    max_lineage_depth: int = 0


_OVERRIDES = TypeAdapter(dict[str, ConnectionOverride])


class ConnectionsConfig(BaseModel):
    """The primary connection plus any named overrides."""

    model_config = ConfigDict(frozen=True)

    default: str = DEFAULT_CONNECTION_NAME
    primary: ClientConfig = Field(default_factory=ClientConfig)
    connections: dict[str, ConnectionOverride] = Field(default_factory=dict)

    @field_validator("default")
    @classmethod
    def _default_name(cls, value: str) -> str:
        return value or DEFAULT_CONNECTION_NAME

    @model_validator(mode="before")
    @classmethod
    def _drop_default_override(cls, data: Any) -> Any:
        # The default name always means the primary connection.
        if not isinstance(data, dict):
            return data
        default = data.get("default") or DEFAULT_CONNECTION_NAME
        connections = data.get("connections") or {}
        if default in connections:
            logger.warning("Ignoring additional connection %r: the name is used by the primary connection", default)
            data = {**data, "connections": {k: v for k, v in connections.items() if k != default}}
        return data

    @classmethod
    def from_env(cls) -> "ConnectionsConfig":
        """Load the primary and additional connections from the environment.

        Raises:
            ConfigurationError: If a numeric variable is invalid or
                DATAHUB_ADDITIONAL_SERVERS is not a JSON object of connections
        """
        primary = ClientConfig.from_env()
        connections: dict[str, ConnectionOverride] = {}
        raw = os.getenv("DATAHUB_ADDITIONAL_SERVERS", "").strip()
        if raw:
            try:
                connections = _OVERRIDES.validate_json(raw)
            except ValidationError as e:
                raise ConfigurationError(f"parsing DATAHUB_ADDITIONAL_SERVERS: {e}") from e
        return cls(
            default=os.getenv("DATAHUB_CONNECTION_NAME", ""),
            primary=primary,
            connections=connections,
        )

    def client_config(self, name: str = "") -> ClientConfig:
        """Resolve a connection name to its full client configuration.

        Empty or default name returns the primary configuration unchanged.
        Otherwise each override field replaces the primary's value only when
        it is non-empty (strings) or positive (numbers).

        Raises:
            UnknownConnectionError: If the name is not configured
        """
        if not name or name == self.default:
            return self.primary

        override = self.connections.get(name)
        if override is None:
            raise UnknownConnectionError(name, self.connection_names())

        updates: dict[str, Any] = {}
        if override.url:
            updates["url"] = override.url
        if override.token:
            updates["token"] = override.token
        if override.timeout > 0:
            updates["timeout"] = float(override.timeout)
        if override.retry_max > 0:
            updates["retry_max"] = override.retry_max
        if override.default_limit > 0:
            updates["default_limit"] = override.default_limit
        if override.max_limit > 0:
            updates["max_limit"] = override.max_limit
        if override.max_lineage_depth > 0:
            updates["max_lineage_depth"] = override.max_lineage_depth
        return self.primary.model_copy(update=updates)

    def resolve(self, name: str = "") -> ClientConfig:
        return self.client_config(name)

    def connection_names(self) -> list[str]:
        """All connection names, primary first."""
        return [self.default, *self.connections]

    def connection_count(self) -> int:
        return 1 + len(self.connections)

    def connection_infos(self) -> list[ConnectionInfo]:
        infos = [ConnectionInfo(name=self.default, url=self.primary.url, is_default=True)]
        for name in self.connections:
            infos.append(ConnectionInfo(name=name, url=self.client_config(name).url, is_default=False))
        return infos


ClientFactory = Callable[[ClientConfig], CatalogClient]


class ConnectionManager:
    """Hands out one lazily-built client per connection name.

    Clients are cached under a lock, so concurrent callers asking for the same
    connection share a single instance. A client that fails to build is not
    cached; the next call tries again.
    """

    def __init__(self, config: ConnectionsConfig, client_factory: ClientFactory = DataHubClient):
        self.config = config
        self._client_factory = client_factory
        self._clients: dict[str, CatalogClient] = {}
        self._lock = threading.Lock()

    def client(self, name: str = "") -> CatalogClient:
        """Return the client for `name`, building it on first use.

        Raises:
            UnknownConnectionError: If the name is not configured
            ConfigurationError: If the resolved configuration is incomplete
        """
        client_config = self.config.client_config(name)
        key = name or self.config.default
        with self._lock:
            client = self._clients.get(key)
            if client is None:
                client = self._client_factory(client_config)
                self._clients[key] = client
                logger.debug("Created DataHub client for connection %r (%s)", key, client_config.url)
            return client

    def default_client(self) -> CatalogClient:
        return self.client("")

    def has_connection(self, name: str) -> bool:
        return not name or name == self.config.default or name in self.config.connections

    def connections(self) -> dict[str, ClientConfig]:
        """Resolved configuration of every connection, keyed by name."""
        return {name: self.config.client_config(name) for name in self.config.connection_names()}

    def connection_count(self) -> int:
        return self.config.connection_count()

    def connection_names(self) -> list[str]:
        return self.config.connection_names()

    def connection_infos(self) -> list[ConnectionInfo]:
        return self.config.connection_infos()

    async def close(self) -> None:
        """Close every cached client. Safe to call repeatedly; the cache stays usable."""
        with self._lock:
            clients = list(self._clients.items())
            self._clients.clear()

        errors: list[Exception] = []
        for name, client in clients:
            try:
                await client.close()
            except Exception as e:
                logger.error("Failed to close DataHub client for connection %r: %s", name, e)
                errors.append(e)
        if errors:
            raise DataHubError(f"failed to close {len(errors)} connection(s): {errors[0]}") from errors[0]
