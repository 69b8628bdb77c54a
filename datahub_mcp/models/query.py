from datetime import datetime

from pydantic import Field

from datahub_mcp.models.base import CatalogModel


class TableIdentifier(CatalogModel):
    """A table in a query engine (e.g., Trino)."""

    connection: str | None = Field(default=None, description="Named query engine connection (None for default)")
    catalog: str = Field(description="Catalog or database name")
    schema_name: str = Field(alias="schema", description="Schema name")
    table: str = Field(description="Table name")

    def __str__(self) -> str:
        name = f"{self.catalog}.{self.schema_name}.{self.table}"
        if self.connection:
            return f"{self.connection}:{name}"
        return name


class TableAvailability(CatalogModel):
    """Whether a catalog entity can be queried in the connected engine."""

    available: bool = Field(description="Whether the table exists and is queryable")
    table: TableIdentifier | None = Field(default=None, description="Resolved table, when available")
    connection: str | None = Field(default=None, description="Engine connection the table lives on")
    error: str | None = Field(default=None, description="Why the table is not available")
    last_checked: datetime | None = Field(default=None, description="When availability was last verified")
    row_count: int | None = Field(default=None, description="Estimated row count, if known")
    last_updated: datetime | None = Field(default=None, description="When the table data last changed")


class QueryExample(CatalogModel):
    name: str = Field(description="Short identifier for the example")
    description: str | None = Field(default=None, description="What the query does")
    sql: str = Field(description="Executable SQL")
    category: str | None = Field(default=None, description="sample, aggregation, join, filter or common")
    source: str | None = Field(default=None, description="generated, history, template or documentation")


class ExecutionQuery(CatalogModel):
    sql: str | None = None
    sources: list[str] | None = None
    targets: list[str] | None = None
    executed_at: datetime | None = None
    query_id: str | None = None


class ExecutionContext(CatalogModel):
    """How a set of lineage URNs maps onto query engine execution."""

    tables: dict[str, TableIdentifier] | None = Field(default=None, description="URN to resolved table")
    connections: list[str] | None = Field(default=None, description="Engine connections involved")
    queries: list[ExecutionQuery] | None = Field(default=None, description="Queries touching these entities")
    source: str | None = Field(default=None, description="Provider that supplied the context")
