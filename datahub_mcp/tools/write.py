"""Write tools. Each one changes a single aspect of one entity.

Every write goes through `Toolkit.get_write_client`, which refuses while
write operations are disabled.
"""

from typing import TYPE_CHECKING

from mcp.server.fastmcp import Context
from mcp.types import CallToolResult

from datahub_mcp.errors import DataHubError
from datahub_mcp.models import (
    AddGlossaryTermInput,
    AddLinkInput,
    AddTagInput,
    GlossaryTermWriteOutput,
    LinkWriteOutput,
    RemoveGlossaryTermInput,
    RemoveLinkInput,
    RemoveTagInput,
    TagWriteOutput,
    UpdateDescriptionInput,
    UpdateDescriptionOutput,
)
from datahub_mcp.tools.results import error_result, json_result

if TYPE_CHECKING:
    from datahub_mcp.tools.toolkit import Toolkit

TAGS_ASPECT = "globalTags"
GLOSSARY_TERMS_ASPECT = "glossaryTerms"
LINKS_ASPECT = "institutionalMemory"

# Entity types whose description does not live in an editable<Type>Properties aspect.
_DESCRIPTION_ASPECTS = {
    "glossaryTerm": "glossaryTermInfo",
    "glossaryNode": "glossaryNodeInfo",
    "domain": "domainProperties",
    "tag": "tagProperties",
    "dataProduct": "dataProductProperties",
}


def urn_entity_type(urn: str) -> str:
    """The `<type>` of a `urn:li:<type>:<key>` URN, or "" if the URN is malformed."""
    parts = urn.split(":", 3)
    if len(parts) < 4 or parts[:2] != ["urn", "li"]:
        return ""
    return parts[2]


def description_aspect(urn: str) -> str:
    """Aspect holding the editable description of `urn`; datasets when the type is unknown."""
    entity_type = urn_entity_type(urn) or "dataset"
    if entity_type in _DESCRIPTION_ASPECTS:
        return _DESCRIPTION_ASPECTS[entity_type]
    return f"editable{entity_type[0].upper()}{entity_type[1:]}Properties"


async def datahub_update_description(
    toolkit: "Toolkit", ctx: Context | None, params: UpdateDescriptionInput
) -> CallToolResult:
    """Replace the editable description of an entity."""
    if not params.urn:
        return error_result("urn parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.update_description(params.urn, params.description)
    except DataHubError as e:
        return error_result(f"UpdateDescription failed: {e}")
    return json_result(UpdateDescriptionOutput(urn=params.urn, aspect=description_aspect(params.urn), action="updated"))


async def datahub_add_tag(toolkit: "Toolkit", ctx: Context | None, params: AddTagInput) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.tag_urn:
        return error_result("tag_urn parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.add_tag(params.urn, params.tag_urn)
    except DataHubError as e:
        return error_result(f"AddTag failed: {e}")
    return json_result(TagWriteOutput(urn=params.urn, tag=params.tag_urn, aspect=TAGS_ASPECT, action="added"))


async def datahub_remove_tag(toolkit: "Toolkit", ctx: Context | None, params: RemoveTagInput) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.tag_urn:
        return error_result("tag_urn parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.remove_tag(params.urn, params.tag_urn)
    except DataHubError as e:
        return error_result(f"RemoveTag failed: {e}")
    return json_result(TagWriteOutput(urn=params.urn, tag=params.tag_urn, aspect=TAGS_ASPECT, action="removed"))


async def datahub_add_glossary_term(
    toolkit: "Toolkit", ctx: Context | None, params: AddGlossaryTermInput
) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.term_urn:
        return error_result("term_urn parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.add_glossary_term(params.urn, params.term_urn)
    except DataHubError as e:
        return error_result(f"AddGlossaryTerm failed: {e}")
    return json_result(
        GlossaryTermWriteOutput(urn=params.urn, term=params.term_urn, aspect=GLOSSARY_TERMS_ASPECT, action="added")
    )


async def datahub_remove_glossary_term(
    toolkit: "Toolkit", ctx: Context | None, params: RemoveGlossaryTermInput
) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.term_urn:
        return error_result("term_urn parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.remove_glossary_term(params.urn, params.term_urn)
    except DataHubError as e:
        return error_result(f"RemoveGlossaryTerm failed: {e}")
    return json_result(
        GlossaryTermWriteOutput(urn=params.urn, term=params.term_urn, aspect=GLOSSARY_TERMS_ASPECT, action="removed")
    )


async def datahub_add_link(toolkit: "Toolkit", ctx: Context | None, params: AddLinkInput) -> CallToolResult:
    """Attach a documentation link to an entity."""
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.url:
        return error_result("url parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.add_link(params.urn, params.url, params.description)
    except DataHubError as e:
        return error_result(f"AddLink failed: {e}")
    return json_result(LinkWriteOutput(urn=params.urn, url=params.url, aspect=LINKS_ASPECT, action="added"))


async def datahub_remove_link(toolkit: "Toolkit", ctx: Context | None, params: RemoveLinkInput) -> CallToolResult:
    if not params.urn:
        return error_result("urn parameter is required")
    if not params.url:
        return error_result("url parameter is required")

    try:
        client = toolkit.get_write_client(params.connection)
    except DataHubError as e:
        return error_result(f"Write error: {e}")

    try:
        await client.remove_link(params.urn, params.url)
    except DataHubError as e:
        return error_result(f"RemoveLink failed: {e}")
    return json_result(LinkWriteOutput(urn=params.urn, url=params.url, aspect=LINKS_ASPECT, action="removed"))
