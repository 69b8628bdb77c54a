from typing import Any

from pydantic import BaseModel, ConfigDict

DEFAULT_LIMIT = 10
MAXIMUM_LIMIT = 100
DEFAULT_LINEAGE_DEPTH = 5
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_RETRY_MAX = 3


class CatalogModel(BaseModel):
    """Base model for everything serialized into a tool response.

    Optional fields default to None and are dropped from the payload so that
    responses only carry the keys DataHub actually returned.
    """

    model_config = ConfigDict(populate_by_name=True)

    def to_payload(self) -> dict[str, Any]:
        """Dump the model as a JSON-compatible dict without unset optional fields."""
        return self.model_dump(mode="json", exclude_none=True, by_alias=True)
