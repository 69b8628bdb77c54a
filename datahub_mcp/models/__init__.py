from .base import DEFAULT_LIMIT, DEFAULT_LINEAGE_DEPTH, MAXIMUM_LIMIT, CatalogModel
from .catalog import (
    ColumnLineage,
    ColumnLineageMapping,
    DataProduct,
    Deprecation,
    Domain,
    Entity,
    ForeignKey,
    GlossaryTerm,
    GlossaryTermRelation,
    LineageDirection,
    LineageEdge,
    LineageNode,
    LineageResult,
    MatchedField,
    Owner,
    Query,
    QueryList,
    SchemaField,
    SchemaMetadata,
    SearchEntity,
    SearchResult,
    Tag,
)
from .context import MCPContext
from .inputs import (
    AddGlossaryTermInput,
    AddLinkInput,
    AddTagInput,
    GetColumnLineageInput,
    GetDataProductInput,
    GetEntityInput,
    GetGlossaryTermInput,
    GetLineageInput,
    GetQueriesInput,
    GetSchemaInput,
    ListConnectionsInput,
    ListDataProductsInput,
    ListDomainsInput,
    ListTagsInput,
    RemoveGlossaryTermInput,
    RemoveLinkInput,
    RemoveTagInput,
    SearchInput,
    ToolInput,
    UpdateDescriptionInput,
)
from .outputs import (
    ConnectionInfo,
    EntityOutput,
    GlossaryTermWriteOutput,
    LineageOutput,
    LinkWriteOutput,
    ListConnectionsOutput,
    ListDataProductsOutput,
    ListDomainsOutput,
    ListTagsOutput,
    QueryContextEntry,
    SchemaOutput,
    SearchOutput,
    TagWriteOutput,
    UpdateDescriptionOutput,
    WriteOutput,
    merge_flat,
)
from .query import ExecutionContext, ExecutionQuery, QueryExample, TableAvailability, TableIdentifier

__all__ = [
    "DEFAULT_LIMIT",
    "DEFAULT_LINEAGE_DEPTH",
    "MAXIMUM_LIMIT",
    "AddGlossaryTermInput",
    "AddLinkInput",
    "AddTagInput",
    "CatalogModel",
    "ColumnLineage",
    "ColumnLineageMapping",
    "ConnectionInfo",
    "DataProduct",
    "Deprecation",
    "Domain",
    "Entity",
    "EntityOutput",
    "ExecutionContext",
    "ExecutionQuery",
    "ForeignKey",
    "GetColumnLineageInput",
    "GetDataProductInput",
    "GetEntityInput",
    "GetGlossaryTermInput",
    "GetLineageInput",
    "GetQueriesInput",
    "GetSchemaInput",
    "GlossaryTerm",
    "GlossaryTermRelation",
    "GlossaryTermWriteOutput",
    "LineageDirection",
    "LineageEdge",
    "LineageNode",
    "LineageOutput",
    "LineageResult",
    "LinkWriteOutput",
    "ListConnectionsInput",
    "ListConnectionsOutput",
    "ListDataProductsInput",
    "ListDataProductsOutput",
    "ListDomainsInput",
    "ListDomainsOutput",
    "ListTagsInput",
    "ListTagsOutput",
    "MCPContext",
    "MatchedField",
    "Owner",
    "Query",
    "QueryContextEntry",
    "QueryExample",
    "QueryList",
    "RemoveGlossaryTermInput",
    "RemoveLinkInput",
    "RemoveTagInput",
    "SchemaField",
    "SchemaMetadata",
    "SchemaOutput",
    "SearchEntity",
    "SearchInput",
    "SearchOutput",
    "SearchResult",
    "TableAvailability",
    "TableIdentifier",
    "Tag",
    "TagWriteOutput",
    "ToolInput",
    "UpdateDescriptionInput",
    "WriteOutput",
    "merge_flat",
]
