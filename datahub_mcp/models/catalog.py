from typing import Any, Literal

from pydantic import Field

from datahub_mcp.models.base import CatalogModel

OwnershipType = Literal["TECHNICAL_OWNER", "BUSINESS_OWNER", "DATA_STEWARD", "NONE"] | str


class Owner(CatalogModel):
    """An owner (user or group) of a catalog entity."""

    urn: str = Field(description="URN of the owning user or group")
    type: OwnershipType = Field(default="NONE", description="Ownership type (e.g., TECHNICAL_OWNER)")
    name: str | None = Field(default=None, description="Username or group name")
    email: str | None = Field(default=None, description="Email address, if known")


class Tag(CatalogModel):
    urn: str = Field(description="The tag URN (e.g., urn:li:tag:PII)")
    name: str = Field(description="The tag name")
    description: str | None = Field(default=None, description="Tag description")
    properties: dict[str, str] | None = Field(default=None, description="Custom properties")


class Domain(CatalogModel):
    urn: str = Field(description="The domain URN")
    name: str = Field(description="The domain name")
    description: str | None = Field(default=None, description="Domain description")
    parent_domain: str | None = Field(default=None, description="URN of the parent domain")
    owners: list[Owner] | None = Field(default=None, description="Domain owners")
    entity_count: int | None = Field(default=None, description="Number of entities in the domain")


class GlossaryTermRelation(CatalogModel):
    urn: str
    name: str
    relation_type: str


class GlossaryTerm(CatalogModel):
    """A business glossary term."""

    urn: str = Field(description="The glossary term URN")
    name: str = Field(description="The term name")
    description: str | None = Field(default=None, description="The business definition of the term")
    parent_node: str | None = Field(default=None, description="Name of the parent glossary node")
    owners: list[Owner] | None = Field(default=None, description="Term owners")
    related_terms: list[GlossaryTermRelation] | None = Field(default=None, description="Related terms")
    properties: dict[str, str] | None = Field(default=None, description="Custom properties")


class Deprecation(CatalogModel):
    deprecated: bool = Field(description="Whether the entity is deprecated")
    note: str | None = Field(default=None, description="Deprecation note")
    actor: str | None = Field(default=None, description="Who deprecated the entity")
    decommission_time: int | None = Field(default=None, description="Planned decommission time (epoch ms)")


class MatchedField(CatalogModel):
    name: str
    value: str


class SearchEntity(CatalogModel):
    """A single search hit."""

    urn: str = Field(description="The entity URN")
    type: str = Field(description="The entity type (e.g., DATASET)")
    name: str = Field(description="The entity name")
    description: str | None = Field(default=None, description="Entity description")
    platform: str | None = Field(default=None, description="Data platform name (e.g., snowflake)")
    owners: list[Owner] | None = Field(default=None, description="Entity owners")
    tags: list[Tag] | None = Field(default=None, description="Tags attached to the entity")
    domain: Domain | None = Field(default=None, description="Domain the entity belongs to")
    matched_fields: list[MatchedField] | None = Field(default=None, description="Fields that matched the query")


class SearchResult(CatalogModel):
    """A page of search results."""

    entities: list[SearchEntity] = Field(default_factory=list, description="Matching entities")
    total: int = Field(default=0, description="Total number of matching entities")
    offset: int = Field(default=0, description="Offset of this page")
    limit: int = Field(default=0, description="Page size used for the request")


class Entity(CatalogModel):
    """Full metadata of a single catalog entity."""

    urn: str = Field(description="The entity URN")
    type: str = Field(description="The entity type")
    name: str = Field(description="The entity name")
    description: str | None = Field(default=None, description="Entity description")
    owners: list[Owner] | None = Field(default=None, description="Entity owners")
    tags: list[Tag] | None = Field(default=None, description="Tags attached to the entity")
    glossary_terms: list[GlossaryTerm] | None = Field(default=None, description="Glossary terms attached")
    domain: Domain | None = Field(default=None, description="Domain the entity belongs to")
    platform: str | None = Field(default=None, description="Data platform name")
    deprecation: Deprecation | None = Field(default=None, description="Deprecation status")
    properties: dict[str, Any] | None = Field(default=None, description="Custom properties")
    sub_types: list[str] | None = Field(default=None, description="Entity sub types (e.g., View)")
    created: int | None = Field(default=None, description="Creation time (epoch ms)")
    last_modified: int | None = Field(default=None, description="Last modification time (epoch ms)")


class SchemaField(CatalogModel):
    field_path: str = Field(description="Path of the field (column name for flat schemas)")
    type: str = Field(description="DataHub logical type")
    native_type: str | None = Field(default=None, description="Platform-native type")
    description: str | None = Field(default=None, description="Field description")
    nullable: bool = Field(default=False, description="Whether the field is nullable")
    is_partition_key: bool | None = Field(default=None, description="Whether the field is part of the key")
    tags: list[Tag] | None = Field(default=None, description="Field-level tags")
    glossary_terms: list[GlossaryTerm] | None = Field(default=None, description="Field-level glossary terms")


class ForeignKey(CatalogModel):
    name: str | None = None
    source_fields: list[str] = Field(default_factory=list)
    foreign_dataset: str
    foreign_fields: list[str] = Field(default_factory=list)


class SchemaMetadata(CatalogModel):
    """The schema of a dataset."""

    name: str | None = Field(default=None, description="Schema name")
    platform_schema: str | None = Field(default=None, description="Raw platform schema, when available")
    version: int | None = Field(default=None, description="Schema version")
    fields: list[SchemaField] = Field(default_factory=list, description="Schema fields")
    primary_keys: list[str] | None = Field(default=None, description="Primary key field paths")
    foreign_keys: list[ForeignKey] | None = Field(default=None, description="Foreign keys")
    hash: str | None = Field(default=None, description="Schema hash")


LineageDirection = Literal["UPSTREAM", "DOWNSTREAM"]


class LineageNode(CatalogModel):
    urn: str = Field(description="The entity URN")
    type: str = Field(description="The entity type")
    name: str = Field(description="The entity name")
    platform: str | None = Field(default=None, description="Data platform name")
    description: str | None = Field(default=None, description="Entity description")
    level: int = Field(description="Hops from the starting entity")


class LineageEdge(CatalogModel):
    source: str = Field(description="URN of the upstream end")
    target: str = Field(description="URN of the downstream end")
    type: str | None = Field(default=None, description="Edge type")


class LineageResult(CatalogModel):
    """The lineage graph around an entity."""

    start: str = Field(description="URN the traversal started from")
    direction: LineageDirection = Field(description="Traversal direction")
    depth: int = Field(description="Maximum depth traversed")
    nodes: list[LineageNode] = Field(default_factory=list, description="Entities in the lineage graph")
    edges: list[LineageEdge] = Field(default_factory=list, description="Edges of the lineage graph")


class ColumnLineageMapping(CatalogModel):
    downstream_column: str = Field(description="Column of the requested dataset")
    upstream_dataset: str = Field(description="URN of the upstream dataset")
    upstream_column: str = Field(description="Column of the upstream dataset")
    transform: str | None = Field(default=None, description="Transformation operation")
    query: str | None = Field(default=None, description="URN of the query that produced the mapping")
    confidence_score: float | None = Field(default=None, description="Confidence score of the mapping")


class ColumnLineage(CatalogModel):
    dataset_urn: str = Field(description="The dataset URN")
    mappings: list[ColumnLineageMapping] = Field(default_factory=list, description="Column mappings")


class Query(CatalogModel):
    urn: str | None = Field(default=None, description="Query URN, for saved queries")
    name: str | None = Field(default=None, description="Query name")
    statement: str = Field(description="The SQL statement")
    description: str | None = Field(default=None, description="Query description")
    source: str | None = Field(default=None, description="Where the query came from (e.g., usage, manual)")
    created_by: str | None = Field(default=None, description="Author URN")


class QueryList(CatalogModel):
    queries: list[Query] = Field(default_factory=list, description="Queries linked to the dataset")
    total: int = Field(default=0, description="Number of queries")


class DataProduct(CatalogModel):
    """A data product grouping datasets for a business use case."""

    urn: str = Field(description="The data product URN")
    name: str = Field(description="The data product name")
    description: str | None = Field(default=None, description="Data product description")
    domain: Domain | None = Field(default=None, description="Domain of the data product")
    owners: list[Owner] | None = Field(default=None, description="Data product owners")
    assets: list[str] | None = Field(default=None, description="URNs of member datasets")
    properties: dict[str, str] | None = Field(default=None, description="Custom properties")
