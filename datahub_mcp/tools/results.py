import copy
import json
from typing import Any

from mcp.types import CallToolResult, TextContent

from datahub_mcp.models import CatalogModel


def json_result(payload: CatalogModel | dict[str, Any]) -> CallToolResult:
    """A successful result carrying `payload` as indented JSON text and as structured content."""
    if isinstance(payload, CatalogModel):
        payload = payload.to_payload()
    return CallToolResult(
        content=[TextContent(type="text", text=json.dumps(payload, indent=2))],
        structuredContent=payload,
    )


def error_result(message: str) -> CallToolResult:
    """A soft failure: a valid response flagged as an error."""
    return CallToolResult(content=[TextContent(type="text", text=message)], isError=True)


def result_text(result: CallToolResult) -> str:
    """Text of the first content block, or an empty string."""
    if result.content and isinstance(result.content[0], TextContent):
        return result.content[0].text
    return ""


def result_payload(result: CallToolResult) -> dict[str, Any]:
    """The JSON object carried by a result.

    Structured content is preferred; otherwise the text content is parsed.

    Raises:
        ValueError: If the result carries no JSON object
    """
    if isinstance(result.structuredContent, dict):
        return copy.deepcopy(result.structuredContent)
    data = json.loads(result_text(result))
    if not isinstance(data, dict):
        raise ValueError("result is not a JSON object")
    return data
