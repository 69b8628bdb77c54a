"""Built-in tool metadata and the precedence rule for overriding it.

Each facet (description, title, icons, annotations, output schema) resolves
the same way: a value given when registering one tool wins over a value set
on the toolkit, which wins over the built-in default below.
"""

import base64
from typing import Any

from mcp.types import Icon, ToolAnnotations

from datahub_mcp.models import (
    ColumnLineage,
    DataProduct,
    EntityOutput,
    GlossaryTerm,
    GlossaryTermWriteOutput,
    LineageOutput,
    LinkWriteOutput,
    ListConnectionsOutput,
    ListDataProductsOutput,
    ListDomainsOutput,
    ListTagsOutput,
    QueryList,
    SchemaOutput,
    SearchOutput,
    TagWriteOutput,
    UpdateDescriptionOutput,
)
from datahub_mcp.tools.names import READ_TOOLS, WRITE_TOOLS, ToolName


def resolve[T](per_registration: T | None, per_toolkit: T | None, default: T | None) -> T | None:
    """First value that is set, from most to least specific."""
    if per_registration is not None:
        return per_registration
    if per_toolkit is not None:
        return per_toolkit
    return default


DEFAULT_DESCRIPTIONS: dict[str, str] = {
    ToolName.SEARCH: (
        "Search for datasets, dashboards, pipelines, and other assets in the DataHub catalog. "
        "Use this first when answering data questions to discover relevant datasets. "
        "When a query engine is configured, results include query_context showing which "
        "datasets are queryable and their resolved table paths. Search by topic keywords, "
        "table names, tags, or domain concepts, then follow up with datahub_get_schema for "
        "column details."
    ),
    ToolName.GET_ENTITY: (
        "Get comprehensive metadata for a DataHub entity including description, owners, tags, "
        "glossary terms, domain, deprecation status, and custom properties. Use this when you "
        "need the full metadata picture for a specific dataset, especially ownership and "
        "deprecation warnings. Includes the query_table path, example queries and availability "
        "when a query engine is configured."
    ),
    ToolName.GET_SCHEMA: (
        "Get the schema (fields, types, descriptions) for a dataset. Returns query_table "
        "(resolved table path) when a query engine is configured. For example queries, "
        "use datahub_get_entity instead."
    ),
    ToolName.GET_LINEAGE: (
        "Get upstream or downstream lineage for a DataHub entity. When a query engine is "
        "configured, includes execution_context mapping URNs to query engine tables."
    ),
    ToolName.GET_COLUMN_LINEAGE: (
        "Get column-level lineage showing exactly which upstream columns feed each downstream "
        'column. Use this when a user asks "where does this column come from?" or to trace a '
        "metric through transformations. More precise than datahub_get_lineage, which shows "
        "dataset-level relationships."
    ),
    ToolName.GET_QUERIES: (
        "Get SQL queries linked to a dataset, such as frequently run queries from usage "
        "statistics. Useful for understanding how a dataset is used and for showing example "
        "query patterns."
    ),
    ToolName.GET_GLOSSARY_TERM: (
        "Get the full definition of a business glossary term. Use when a result references a "
        'glossary term URN and you need its definition, or when a user asks "what does '
        '[business term] mean?"'
    ),
    ToolName.LIST_TAGS: "List available tags in the DataHub catalog",
    ToolName.LIST_DOMAINS: "List data domains in the DataHub catalog",
    ToolName.LIST_DATA_PRODUCTS: (
        "List data products in the DataHub catalog. Data products group datasets for specific business use cases."
    ),
    ToolName.GET_DATA_PRODUCT: (
        "Get full details of a data product including its owners, domain and properties. "
        "Use after datahub_list_data_products to drill into a specific product. Useful for "
        'answering "what data do we have about [topic]?"'
    ),
    ToolName.LIST_CONNECTIONS: (
        "List all configured DataHub server connections. Use this to discover available "
        "connections before querying specific servers. Pass the connection name to other "
        "tools via the 'connection' parameter."
    ),
    ToolName.UPDATE_DESCRIPTION: "Update the description of a DataHub entity",
    ToolName.ADD_TAG: "Add a tag to a DataHub entity",
    ToolName.REMOVE_TAG: "Remove a tag from a DataHub entity",
    ToolName.ADD_GLOSSARY_TERM: "Add a glossary term to a DataHub entity",
    ToolName.REMOVE_GLOSSARY_TERM: "Remove a glossary term from a DataHub entity",
    ToolName.ADD_LINK: "Add a link to a DataHub entity",
    ToolName.REMOVE_LINK: "Remove a link from a DataHub entity",
}

DEFAULT_TITLES: dict[str, str] = {
    ToolName.SEARCH: "Search Catalog",
    ToolName.GET_ENTITY: "Get Entity",
    ToolName.GET_SCHEMA: "Get Schema",
    ToolName.GET_LINEAGE: "Get Lineage",
    ToolName.GET_COLUMN_LINEAGE: "Get Column Lineage",
    ToolName.GET_QUERIES: "Get Queries",
    ToolName.GET_GLOSSARY_TERM: "Get Glossary Term",
    ToolName.LIST_TAGS: "List Tags",
    ToolName.LIST_DOMAINS: "List Domains",
    ToolName.LIST_DATA_PRODUCTS: "List Data Products",
    ToolName.GET_DATA_PRODUCT: "Get Data Product",
    ToolName.LIST_CONNECTIONS: "List Connections",
    ToolName.UPDATE_DESCRIPTION: "Update Description",
    ToolName.ADD_TAG: "Add Tag",
    ToolName.REMOVE_TAG: "Remove Tag",
    ToolName.ADD_GLOSSARY_TERM: "Add Glossary Term",
    ToolName.REMOVE_GLOSSARY_TERM: "Remove Glossary Term",
    ToolName.ADD_LINK: "Add Link",
    ToolName.REMOVE_LINK: "Remove Link",
}

# Writes add or remove a single association at a time.
_READ_ANNOTATIONS = ToolAnnotations(readOnlyHint=True, idempotentHint=True, openWorldHint=False)
_WRITE_ANNOTATIONS = ToolAnnotations(destructiveHint=False, idempotentHint=True, openWorldHint=False)

DEFAULT_ANNOTATIONS: dict[str, ToolAnnotations] = {
    **{name: _READ_ANNOTATIONS for name in READ_TOOLS},
    **{name: _WRITE_ANNOTATIONS for name in WRITE_TOOLS},
}

_ICON_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24" fill="none" stroke="currentColor" '
    'stroke-width="2" stroke-linecap="round" stroke-linejoin="round">'
    '<ellipse cx="12" cy="5" rx="9" ry="3"/><path d="M3 5v14c0 1.66 4 3 9 3s9-1.34 9-3V5"/>'
    '<path d="M3 12c0 1.66 4 3 9 3s9-1.34 9-3"/></svg>'
)
DATAHUB_ICON = Icon(
    src="data:image/svg+xml;base64," + base64.b64encode(_ICON_SVG.encode()).decode(),
    mimeType="image/svg+xml",
)

DEFAULT_ICONS: dict[str, list[Icon]] = {name: [DATAHUB_ICON] for name in READ_TOOLS + WRITE_TOOLS}

_OUTPUT_MODELS = {
    ToolName.SEARCH: SearchOutput,
    ToolName.GET_ENTITY: EntityOutput,
    ToolName.GET_SCHEMA: SchemaOutput,
    ToolName.GET_LINEAGE: LineageOutput,
    ToolName.GET_COLUMN_LINEAGE: ColumnLineage,
    ToolName.GET_QUERIES: QueryList,
    ToolName.GET_GLOSSARY_TERM: GlossaryTerm,
    ToolName.LIST_TAGS: ListTagsOutput,
    ToolName.LIST_DOMAINS: ListDomainsOutput,
    ToolName.LIST_DATA_PRODUCTS: ListDataProductsOutput,
    ToolName.GET_DATA_PRODUCT: DataProduct,
    ToolName.LIST_CONNECTIONS: ListConnectionsOutput,
    ToolName.UPDATE_DESCRIPTION: UpdateDescriptionOutput,
    ToolName.ADD_TAG: TagWriteOutput,
    ToolName.REMOVE_TAG: TagWriteOutput,
    ToolName.ADD_GLOSSARY_TERM: GlossaryTermWriteOutput,
    ToolName.REMOVE_GLOSSARY_TERM: GlossaryTermWriteOutput,
    ToolName.ADD_LINK: LinkWriteOutput,
    ToolName.REMOVE_LINK: LinkWriteOutput,
}

DEFAULT_OUTPUT_SCHEMAS: dict[str, dict[str, Any]] = {
    name: model.model_json_schema(mode="serialization") for name, model in _OUTPUT_MODELS.items()
}
