from enum import StrEnum


class ToolName(StrEnum):
    """Stable names of the DataHub tools as exposed to MCP clients."""

    SEARCH = "datahub_search"
    GET_ENTITY = "datahub_get_entity"
    GET_SCHEMA = "datahub_get_schema"
    GET_LINEAGE = "datahub_get_lineage"
    GET_COLUMN_LINEAGE = "datahub_get_column_lineage"
    GET_QUERIES = "datahub_get_queries"
    GET_GLOSSARY_TERM = "datahub_get_glossary_term"
    LIST_TAGS = "datahub_list_tags"
    LIST_DOMAINS = "datahub_list_domains"
    LIST_DATA_PRODUCTS = "datahub_list_data_products"
    GET_DATA_PRODUCT = "datahub_get_data_product"
    LIST_CONNECTIONS = "datahub_list_connections"

    UPDATE_DESCRIPTION = "datahub_update_description"
    ADD_TAG = "datahub_add_tag"
    REMOVE_TAG = "datahub_remove_tag"
    ADD_GLOSSARY_TERM = "datahub_add_glossary_term"
    REMOVE_GLOSSARY_TERM = "datahub_remove_glossary_term"
    ADD_LINK = "datahub_add_link"
    REMOVE_LINK = "datahub_remove_link"


# Read-only tools (safe, non-destructive operations)
READ_TOOLS: tuple[ToolName, ...] = (
    ToolName.SEARCH,
    ToolName.GET_ENTITY,
    ToolName.GET_SCHEMA,
    ToolName.GET_LINEAGE,
    ToolName.GET_COLUMN_LINEAGE,
    ToolName.GET_QUERIES,
    ToolName.GET_GLOSSARY_TERM,
    ToolName.LIST_TAGS,
    ToolName.LIST_DOMAINS,
    ToolName.LIST_DATA_PRODUCTS,
    ToolName.GET_DATA_PRODUCT,
    ToolName.LIST_CONNECTIONS,
)

# Write tools (modify catalog metadata; registered only when writes are enabled)
WRITE_TOOLS: tuple[ToolName, ...] = (
    ToolName.UPDATE_DESCRIPTION,
    ToolName.ADD_TAG,
    ToolName.REMOVE_TAG,
    ToolName.ADD_GLOSSARY_TERM,
    ToolName.REMOVE_GLOSSARY_TERM,
    ToolName.ADD_LINK,
    ToolName.REMOVE_LINK,
)

ALL_TOOLS = READ_TOOLS + WRITE_TOOLS

_LIST_TOOLS = frozenset(
    {
        ToolName.SEARCH,
        ToolName.LIST_TAGS,
        ToolName.LIST_DOMAINS,
        ToolName.LIST_DATA_PRODUCTS,
        ToolName.GET_LINEAGE,
    }
)

_ENTITY_TOOLS = frozenset(
    {
        ToolName.GET_ENTITY,
        ToolName.GET_SCHEMA,
        ToolName.GET_GLOSSARY_TERM,
        ToolName.GET_DATA_PRODUCT,
    }
)


def is_list_tool(name: str) -> bool:
    """Tools whose response is a list of entities (or lineage nodes)."""
    return name in _LIST_TOOLS


def is_entity_tool(name: str) -> bool:
    """Tools whose response describes a single entity."""
    return name in _ENTITY_TOOLS
