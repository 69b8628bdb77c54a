class DataHubError(Exception):
    """Base class for all errors raised by this package."""


class ConfigurationError(DataHubError):
    """The client or connection configuration is missing or invalid."""


class UnknownConnectionError(ConfigurationError):
    """A tool asked for a connection name that is not configured.

    The message lists every valid connection name so the caller can retry
    with one of them (see datahub_list_connections).
    """

    def __init__(self, name: str, available: list[str]):
        self.name = name
        self.available = available
        super().__init__(f"unknown connection: {name!r} (available: {available})")


class UnauthorizedError(DataHubError):
    def __init__(self, message: str = "unauthorized: invalid or missing token"):
        super().__init__(message)


class ForbiddenError(DataHubError):
    def __init__(self, message: str = "forbidden: insufficient permissions"):
        super().__init__(message)


class NotFoundError(DataHubError):
    def __init__(self, message: str = "entity not found"):
        super().__init__(message)


class RateLimitedError(DataHubError):
    def __init__(self, message: str = "rate limited by DataHub"):
        super().__init__(message)


class RequestTimeoutError(DataHubError):
    def __init__(self, message: str = "request timed out"):
        super().__init__(message)


class GraphQLError(DataHubError):
    """DataHub answered with a GraphQL error payload."""


class WriteDisabledError(DataHubError):
    def __init__(self, message: str = "write operations are disabled: set DATAHUB_WRITE_ENABLED=true to enable them"):
        super().__init__(message)


class AccessDeniedError(DataHubError):
    def __init__(self, message: str = "access denied"):
        super().__init__(message)


class UnknownToolError(DataHubError, ValueError):
    """Registration was requested for a name that is not a known tool."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"unknown tool: {name!r}")
