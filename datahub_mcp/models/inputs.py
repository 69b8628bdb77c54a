from pydantic import BaseModel, ConfigDict, Field

from datahub_mcp.models.catalog import LineageDirection

CONNECTION_DESCRIPTION = "Named connection to use (see datahub_list_connections). Empty uses the default connection."


class ToolInput(BaseModel):
    """Base class for tool inputs. Every tool can target a named connection."""

    model_config = ConfigDict(extra="forbid")

    connection: str = Field(default="", description=CONNECTION_DESCRIPTION)


class SearchInput(ToolInput):
    query: str = Field(description="Search query string")
    entity_type: str = Field(
        default="",
        description="Entity type to search (DATASET, DASHBOARD, DATA_FLOW, DATA_JOB, CONTAINER, TAG, "
        "GLOSSARY_TERM, DATA_PRODUCT, ...). Defaults to DATASET.",
    )
    limit: int = Field(default=0, ge=0, description="Maximum number of results (default: 10, max: 100)")
    offset: int = Field(default=0, ge=0, description="Result offset for pagination")


class GetEntityInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")


class GetSchemaInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the dataset")


class GetLineageInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    direction: LineageDirection | None = Field(
        default=None,
        description="Lineage direction: UPSTREAM or DOWNSTREAM (default: DOWNSTREAM)",
    )
    depth: int = Field(default=0, ge=0, description="Maximum depth of lineage traversal (default: 1, max: 5)")


class GetColumnLineageInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the dataset")


class GetQueriesInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the dataset")


class GetGlossaryTermInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the glossary term")


class ListTagsInput(ToolInput):
    filter: str = Field(default="", description="Optional filter string to match tag names")


class ListDomainsInput(ToolInput):
    pass


class ListDataProductsInput(ToolInput):
    pass


class GetDataProductInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the data product")


class ListConnectionsInput(BaseModel):
    model_config = ConfigDict(extra="forbid")


class UpdateDescriptionInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity to update")
    description: str = Field(description="The new description text")


class AddTagInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    tag_urn: str = Field(description="The URN of the tag to add (e.g., urn:li:tag:PII)")


class RemoveTagInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    tag_urn: str = Field(description="The URN of the tag to remove (e.g., urn:li:tag:PII)")


class AddGlossaryTermInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    term_urn: str = Field(description="The URN of the glossary term to add (e.g., urn:li:glossaryTerm:Classification)")


class RemoveGlossaryTermInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    term_urn: str = Field(description="The URN of the glossary term to remove")


class AddLinkInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    url: str = Field(description="The URL of the link to add")
    description: str = Field(default="", description="A description of the link")


class RemoveLinkInput(ToolInput):
    urn: str = Field(description="The DataHub URN of the entity")
    url: str = Field(description="The URL of the link to remove")


# Inputs whose `urn` identifies the entity the call is about. Write inputs also
# carry a urn but are not resolved or access-checked by the integration adapters.
ENTITY_INPUTS = (
    GetEntityInput,
    GetSchemaInput,
    GetLineageInput,
    GetQueriesInput,
    GetGlossaryTermInput,
    GetDataProductInput,
)
