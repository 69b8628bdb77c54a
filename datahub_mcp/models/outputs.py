from typing import Any

from pydantic import Field

from datahub_mcp.models.base import CatalogModel
from datahub_mcp.models.catalog import (
    DataProduct,
    Domain,
    Entity,
    LineageResult,
    SchemaMetadata,
    SearchResult,
    Tag,
)
from datahub_mcp.models.query import ExecutionContext, QueryExample, TableAvailability


class ConnectionInfo(CatalogModel):
    """A configured DataHub connection, as shown to tool callers."""

    name: str = Field(description="Connection name to pass as the `connection` parameter")
    url: str = Field(description="DataHub GMS URL of the connection")
    is_default: bool = Field(default=False, description="Whether this is the default connection")


class ListConnectionsOutput(CatalogModel):
    connections: list[ConnectionInfo] = Field(description="Configured connections")
    count: int = Field(description="Number of configured connections")


class ListTagsOutput(CatalogModel):
    tags: list[Tag] = Field(default_factory=list, description="Tags matching the filter")


class ListDomainsOutput(CatalogModel):
    domains: list[Domain] = Field(default_factory=list, description="Domains in the catalog")


class ListDataProductsOutput(CatalogModel):
    data_products: list[DataProduct] = Field(default_factory=list, description="Data products in the catalog")


class QueryContextEntry(CatalogModel):
    available: bool = Field(description="Whether the entity is queryable")
    table: str | None = Field(default=None, description="Resolved query engine table path")


class SearchOutput(SearchResult):
    """Search results, optionally annotated with query engine availability per URN."""

    query_context: dict[str, QueryContextEntry] | None = Field(
        default=None, description="Optional: query engine availability per entity URN"
    )


class EntityOutput(Entity):
    query_table: str | None = Field(default=None, description="Optional: resolved query engine table path")
    query_examples: list[QueryExample] | None = Field(default=None, description="Optional: example queries")
    query_availability: TableAvailability | None = Field(
        default=None, description="Optional: query engine availability"
    )


class SchemaOutput(SchemaMetadata):
    urn: str = Field(description="The dataset URN")
    query_table: str | None = Field(default=None, description="Optional: resolved query engine table path")


class LineageOutput(LineageResult):
    execution_context: ExecutionContext | None = Field(
        default=None, description="Optional: query engine execution context for the lineage graph"
    )


class WriteOutput(CatalogModel):
    """Confirmation of a metadata mutation."""

    urn: str = Field(description="URN of the modified entity")
    aspect: str = Field(description="DataHub aspect that was written")
    action: str = Field(description="What was done (updated, added or removed)")


class UpdateDescriptionOutput(WriteOutput):
    pass


class TagWriteOutput(WriteOutput):
    tag: str = Field(description="URN of the tag")


class GlossaryTermWriteOutput(WriteOutput):
    term: str = Field(description="URN of the glossary term")


class LinkWriteOutput(WriteOutput):
    url: str = Field(description="URL of the link")


def merge_flat(base: CatalogModel, **extra: Any) -> dict[str, Any]:
    """Dump `base` and merge the non-empty `extra` values into the same top-level object."""
    payload = base.to_payload()
    for key, value in extra.items():
        if value is None:
            continue
        if isinstance(value, CatalogModel):
            value = value.to_payload()
        elif isinstance(value, list):
            if not value:
                continue
            value = [item.to_payload() if isinstance(item, CatalogModel) else item for item in value]
        elif isinstance(value, dict) and not value:
            continue
        payload[key] = value
    return payload
