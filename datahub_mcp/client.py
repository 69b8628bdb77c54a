import asyncio
import logging
import os
from importlib import metadata
from typing import Any, Protocol

import httpx
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict

from datahub_mcp import DIST_NAME, graphql
from datahub_mcp.errors import (
    ConfigurationError,
    DataHubError,
    ForbiddenError,
    GraphQLError,
    NotFoundError,
    RateLimitedError,
    RequestTimeoutError,
    UnauthorizedError,
)
from datahub_mcp.models import (
    ColumnLineage,
    ColumnLineageMapping,
    DataProduct,
    Deprecation,
    Domain,
    Entity,
    ForeignKey,
    GlossaryTerm,
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
from datahub_mcp.models.base import (
    DEFAULT_LIMIT,
    DEFAULT_LINEAGE_DEPTH,
    DEFAULT_RETRY_MAX,
    DEFAULT_TIMEOUT_SECONDS,
    MAXIMUM_LIMIT,
)

logger = logging.getLogger(__name__)

load_dotenv()

GRAPHQL_PATH = "/api/graphql"


def env_int(name: str, default: int) -> int:
    """Read an integer environment variable, raising ConfigurationError on garbage."""
    raw = os.getenv(name, "")
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"invalid {name}: {raw!r} is not an integer") from e


def env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


class ClientConfig(BaseModel):
    """Connection settings for a single DataHub instance."""

    model_config = ConfigDict(frozen=True)

    url: str = ""
    token: str = ""
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    retry_max: int = DEFAULT_RETRY_MAX
    default_limit: int = DEFAULT_LIMIT
    max_limit: int = MAXIMUM_LIMIT
    max_lineage_depth: int = DEFAULT_LINEAGE_DEPTH

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build the primary connection configuration from DATAHUB_* variables.

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        return cls(
            url=os.getenv("DATAHUB_URL", ""),
            token=os.getenv("DATAHUB_TOKEN", ""),
            timeout=float(env_int("DATAHUB_TIMEOUT", int(DEFAULT_TIMEOUT_SECONDS))),
            retry_max=env_int("DATAHUB_RETRY_MAX", DEFAULT_RETRY_MAX),
            default_limit=env_int("DATAHUB_DEFAULT_LIMIT", DEFAULT_LIMIT),
            max_limit=env_int("DATAHUB_MAX_LIMIT", MAXIMUM_LIMIT),
            max_lineage_depth=env_int("DATAHUB_MAX_LINEAGE_DEPTH", DEFAULT_LINEAGE_DEPTH),
        )

    def ensure_valid(self) -> None:
        """Raise ConfigurationError unless both URL and token are set."""
        if not self.url:
            raise ConfigurationError("DATAHUB_URL is required")
        if not self.token:
            raise ConfigurationError("DATAHUB_TOKEN is required")

    def with_defaults(self) -> "ClientConfig":
        """Replace non-positive numeric settings with the built-in defaults."""
        updates: dict[str, Any] = {}
        if self.timeout <= 0:
            updates["timeout"] = DEFAULT_TIMEOUT_SECONDS
        if self.retry_max <= 0:
            updates["retry_max"] = DEFAULT_RETRY_MAX
        if self.default_limit <= 0:
            updates["default_limit"] = DEFAULT_LIMIT
        if self.max_limit <= 0:
            updates["max_limit"] = MAXIMUM_LIMIT
        if self.max_lineage_depth <= 0:
            updates["max_lineage_depth"] = DEFAULT_LINEAGE_DEPTH
        return self.model_copy(update=updates) if updates else self


class CatalogClient(Protocol):
    """Operations the tools need from a DataHub connection."""

    async def search(
        self, query: str, *, entity_type: str = "", limit: int = 0, offset: int = 0
    ) -> SearchResult: ...

    async def get_entity(self, urn: str) -> Entity: ...

    async def get_schema(self, urn: str) -> SchemaMetadata: ...

    async def get_lineage(
        self, urn: str, *, direction: LineageDirection | None = None, depth: int = 0
    ) -> LineageResult: ...

    async def get_column_lineage(self, urn: str) -> ColumnLineage: ...

    async def get_queries(self, urn: str) -> QueryList: ...

    async def get_glossary_term(self, urn: str) -> GlossaryTerm: ...

    async def list_tags(self, filter: str = "") -> list[Tag]: ...

    async def list_domains(self) -> list[Domain]: ...

    async def list_data_products(self) -> list[DataProduct]: ...

    async def get_data_product(self, urn: str) -> DataProduct: ...

    async def ping(self) -> None: ...

    async def close(self) -> None: ...

    async def update_description(self, urn: str, description: str) -> None: ...

    async def add_tag(self, urn: str, tag_urn: str) -> None: ...

    async def remove_tag(self, urn: str, tag_urn: str) -> None: ...

    async def add_glossary_term(self, urn: str, term_urn: str) -> None: ...

    async def remove_glossary_term(self, urn: str, term_urn: str) -> None: ...

    async def add_link(self, urn: str, url: str, description: str = "") -> None: ...

    async def remove_link(self, urn: str, url: str) -> None: ...


def _owners(entity: dict[str, Any]) -> list[Owner] | None:
    owners = []
    for item in (entity.get("ownership") or {}).get("owners") or []:
        owner = item.get("owner") or {}
        info = owner.get("info") or {}
        name = info.get("displayName") or owner.get("name") or owner.get("username")
        owners.append(
            Owner(
                urn=owner.get("urn", ""),
                type=item.get("type") or "NONE",
                name=name or None,
                email=info.get("email") or None,
            )
        )
    return owners or None


def _tags(entity: dict[str, Any]) -> list[Tag] | None:
    tags = [
        Tag(urn=tag.get("urn", ""), name=tag.get("name", ""), description=tag.get("description") or None)
        for tag in ((item.get("tag") or {}) for item in (entity.get("tags") or {}).get("tags") or [])
    ]
    return tags or None


def _domain(entity: dict[str, Any]) -> Domain | None:
    domain = (entity.get("domain") or {}).get("domain") or {}
    if not domain.get("urn"):
        return None
    properties = domain.get("properties") or {}
    return Domain(
        urn=domain["urn"],
        name=properties.get("name", ""),
        description=properties.get("description") or None,
    )


def _custom_properties(properties: dict[str, Any]) -> dict[str, str] | None:
    custom = {item["key"]: item.get("value", "") for item in properties.get("customProperties") or []}
    return custom or None


def _name_and_description(entity: dict[str, Any]) -> tuple[str, str | None]:
    """Pick name and description, preferring `properties` then `info` over top-level fields."""
    name = entity.get("name") or ""
    description = entity.get("description") or None
    for section in ("info", "properties"):
        values = entity.get(section) or {}
        name = values.get("name") or name
        description = values.get("description") or description
    return name, description


def _schema_metadata(raw: dict[str, Any]) -> SchemaMetadata:
    fields = []
    for field in raw.get("fields") or []:
        tags = [
            Tag(urn=t["tag"]["urn"], name=t["tag"].get("name", ""))
            for t in (field.get("tags") or {}).get("tags") or []
        ]
        terms = [
            GlossaryTerm(urn=t["term"]["urn"], name=t["term"].get("name", ""))
            for t in (field.get("glossaryTerms") or {}).get("terms") or []
        ]
        fields.append(
            SchemaField(
                field_path=field.get("fieldPath", ""),
                type=field.get("type", ""),
                native_type=field.get("nativeDataType") or None,
                description=field.get("description") or None,
                nullable=bool(field.get("nullable")),
                is_partition_key=field.get("isPartOfKey"),
                tags=tags or None,
                glossary_terms=terms or None,
            )
        )
    foreign_keys = [
        ForeignKey(
            name=fk.get("name"),
            source_fields=[f["fieldPath"] for f in fk.get("sourceFields") or []],
            foreign_dataset=(fk.get("foreignDataset") or {}).get("urn", ""),
            foreign_fields=[f["fieldPath"] for f in fk.get("foreignFields") or []],
        )
        for fk in raw.get("foreignKeys") or []
    ]
    return SchemaMetadata(
        name=raw.get("name"),
        platform_schema=(raw.get("platformSchema") or {}).get("schema"),
        version=raw.get("version"),
        hash=raw.get("hash"),
        fields=fields,
        primary_keys=raw.get("primaryKeys") or None,
        foreign_keys=foreign_keys or None,
    )


class DataHubClient:
    """Async GraphQL client for a DataHub GMS instance.

    Handles authentication, retries and the mapping of HTTP and GraphQL
    failures onto the package's exception hierarchy.
    """

    def __init__(self, config: ClientConfig, *, transport: httpx.AsyncBaseTransport | None = None):
        """Initialize the DataHub client.

        Args:
            config: Connection settings; URL and token are required
            transport: Optional httpx transport (used by tests)

        Raises:
            ConfigurationError: If the URL or token is missing
        """
        config.ensure_valid()
        self.config = config.with_defaults()
        endpoint = self.config.url.rstrip("/")
        if not endpoint.endswith(GRAPHQL_PATH):
            endpoint += GRAPHQL_PATH
        self.endpoint = endpoint
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self.config.token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": self.user_agent,
            },
            timeout=self.config.timeout,
            transport=transport,
        )

    @property
    def user_agent(self) -> str:
        """Generate User-Agent string for API requests."""
        try:
            version = metadata.version(DIST_NAME)
        except metadata.PackageNotFoundError:
            version = "dev"
        return f"{DIST_NAME}/{version}"

    async def execute(self, query: str, variables: dict[str, Any] | None = None) -> dict[str, Any]:
        """Run a GraphQL document and return its `data` object.

        Retries up to `retry_max` times with quadratic back-off. Authentication,
        authorization and not-found failures are returned immediately.

        Raises:
            DataHubError: Or one of its subclasses, describing the last failure
        """
        body: dict[str, Any] = {"query": query}
        if variables:
            body["variables"] = variables

        attempt = 0
        while True:
            try:
                return await self._post(body)
            except (UnauthorizedError, ForbiddenError, NotFoundError):
                raise
            except DataHubError as e:
                logger.debug("DataHub request failed (attempt %d): %s", attempt + 1, e)
                if attempt >= self.config.retry_max:
                    raise
            attempt += 1
            await asyncio.sleep(attempt * attempt * 0.1)

    async def _post(self, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self._client.post(self.endpoint, json=body)
        except httpx.TimeoutException as e:
            raise RequestTimeoutError() from e
        except httpx.HTTPError as e:
            raise DataHubError(f"failed to execute request: {e}") from e

        if response.status_code == 401:
            raise UnauthorizedError()
        if response.status_code == 403:
            raise ForbiddenError()
        if response.status_code == 429:
            raise RateLimitedError()
        if response.status_code != 200:
            raise DataHubError(f"unexpected status {response.status_code}: {response.text}")

        try:
            payload = response.json()
        except ValueError as e:
            raise DataHubError(f"failed to parse response: {e}") from e

        errors = payload.get("errors") or []
        if errors:
            message = errors[0].get("message", "")
            if "not found" in message.lower():
                raise NotFoundError()
            raise GraphQLError(f"graphql error: {message}")
        return payload.get("data") or {}

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def ping(self) -> None:
        await self.execute(graphql.PING)

    async def search(
        self, query: str, *, entity_type: str = "", limit: int = 0, offset: int = 0
    ) -> SearchResult:
        """Search for entities, defaulting to datasets.

        The limit falls back to `default_limit` and is clamped to `max_limit`.
        """
        limit = min(limit if limit > 0 else self.config.default_limit, self.config.max_limit)
        variables = {
            "input": {
                "type": entity_type or "DATASET",
                "query": query,
                "start": max(offset, 0),
                "count": limit,
            }
        }
        data = await self.execute(graphql.SEARCH, variables)
        search = data.get("search") or {}
        entities = []
        for hit in search.get("searchResults") or []:
            raw = hit.get("entity") or {}
            name, description = _name_and_description(raw)
            matched = [MatchedField(name=m["name"], value=m.get("value", "")) for m in hit.get("matchedFields") or []]
            entities.append(
                SearchEntity(
                    urn=raw.get("urn", ""),
                    type=raw.get("type", ""),
                    name=name,
                    description=description,
                    platform=(raw.get("platform") or {}).get("name") or None,
                    owners=_owners(raw),
                    tags=_tags(raw),
                    domain=_domain(raw),
                    matched_fields=matched or None,
                )
            )
        return SearchResult(
            entities=entities,
            total=search.get("total", 0),
            offset=search.get("start", 0),
            limit=search.get("count", limit),
        )

    async def get_entity(self, urn: str) -> Entity:
        data = await self.execute(graphql.GET_ENTITY, {"urn": urn})
        raw = data.get("entity") or {}
        if not raw.get("urn"):
            raise NotFoundError(f"entity not found: {urn}")

        name, description = _name_and_description(raw)
        properties = raw.get("properties") or {}
        deprecation = raw.get("deprecation") or {}
        terms = []
        for item in (raw.get("glossaryTerms") or {}).get("terms") or []:
            term = item.get("term") or {}
            term_properties = term.get("properties") or {}
            terms.append(
                GlossaryTerm(
                    urn=term.get("urn", ""),
                    name=term_properties.get("name", ""),
                    description=term_properties.get("description") or None,
                )
            )
        return Entity(
            urn=raw["urn"],
            type=raw.get("type", ""),
            name=name,
            description=description,
            owners=_owners(raw),
            tags=_tags(raw),
            glossary_terms=terms or None,
            domain=_domain(raw),
            platform=(raw.get("platform") or {}).get("name") or None,
            deprecation=(
                Deprecation(
                    deprecated=True,
                    note=deprecation.get("note") or None,
                    actor=deprecation.get("actor") or None,
                    decommission_time=deprecation.get("decommissionTime"),
                )
                if deprecation.get("deprecated")
                else None
            ),
            properties=_custom_properties(properties),
            sub_types=(raw.get("subTypes") or {}).get("typeNames") or None,
        )

    async def get_schema(self, urn: str) -> SchemaMetadata:
        data = await self.execute(graphql.GET_SCHEMA, {"urn": urn})
        return _schema_metadata((data.get("dataset") or {}).get("schemaMetadata") or {})

    async def get_lineage(
        self, urn: str, *, direction: LineageDirection | None = None, depth: int = 0
    ) -> LineageResult:
        """Traverse lineage from `urn`.

        Depth defaults to 1 and is clamped to `max_lineage_depth`; nodes beyond
        it are dropped client-side. When DataHub returns no paths, first-hop
        edges are inferred from the node degrees.
        """
        direction = direction or "DOWNSTREAM"
        depth = min(depth if depth > 0 else 1, self.config.max_lineage_depth)
        data = await self.execute(graphql.GET_LINEAGE, {"urn": urn, "direction": direction})

        result = LineageResult(start=urn, direction=direction, depth=depth)
        first_hop: list[str] = []
        seen_edges: set[tuple[str, str]] = set()
        for hit in (data.get("searchAcrossLineage") or {}).get("searchResults") or []:
            degree = hit.get("degree", 0)
            if degree > depth:
                continue
            raw = hit.get("entity") or {}
            name, description = _name_and_description(raw)
            result.nodes.append(
                LineageNode(
                    urn=raw.get("urn", ""),
                    type=raw.get("type", ""),
                    name=name or raw.get("jobId") or "",
                    platform=(raw.get("platform") or {}).get("name") or None,
                    description=description,
                    level=degree,
                )
            )
            if degree == 1:
                first_hop.append(raw.get("urn", ""))
            for group in hit.get("paths") or []:
                path = [step.get("urn", "") for step in group.get("path") or []]
                for source, target in list(zip(path, path[1:]))[:depth]:
                    if (source, target) not in seen_edges:
                        seen_edges.add((source, target))
                        result.edges.append(LineageEdge(source=source, target=target))

        if not result.edges:
            for node_urn in first_hop:
                if direction == "UPSTREAM":
                    result.edges.append(LineageEdge(source=node_urn, target=urn))
                else:
                    result.edges.append(LineageEdge(source=urn, target=node_urn))
        return result

    async def get_column_lineage(self, urn: str) -> ColumnLineage:
        """Return fine-grained lineage; empty when DataHub has none for the dataset."""
        result = ColumnLineage(dataset_urn=urn)
        try:
            data = await self.execute(graphql.GET_COLUMN_LINEAGE, {"urn": urn})
        except DataHubError as e:
            logger.debug("Column lineage unavailable for %s: %s", urn, e)
            return result

        for lineage in (data.get("dataset") or {}).get("fineGrainedLineages") or []:
            for downstream in lineage.get("downstreams") or []:
                for upstream in lineage.get("upstreams") or []:
                    result.mappings.append(
                        ColumnLineageMapping(
                            downstream_column=downstream.get("path", ""),
                            upstream_dataset=upstream.get("dataset", ""),
                            upstream_column=upstream.get("path", ""),
                            transform=lineage.get("transformOperation") or None,
                            query=lineage.get("query") or None,
                            confidence_score=lineage.get("confidenceScore"),
                        )
                    )
        return result

    async def get_queries(self, urn: str) -> QueryList:
        """Return top SQL queries from usage stats; empty when usage is not tracked."""
        try:
            data = await self.execute(graphql.GET_QUERIES, {"urn": urn})
        except DataHubError as e:
            logger.debug("Usage stats unavailable for %s: %s", urn, e)
            return QueryList()

        queries = [
            Query(statement=statement, source="usage")
            for bucket in ((data.get("dataset") or {}).get("usageStats") or {}).get("buckets") or []
            for statement in (bucket.get("metrics") or {}).get("topSqlQueries") or []
        ]
        return QueryList(queries=queries, total=len(queries))

    async def get_glossary_term(self, urn: str) -> GlossaryTerm:
        data = await self.execute(graphql.GET_GLOSSARY_TERM, {"urn": urn})
        raw = data.get("glossaryTerm") or {}
        if not raw.get("urn"):
            raise NotFoundError(f"glossary term not found: {urn}")
        properties = raw.get("properties") or {}
        parents = (raw.get("parentNodes") or {}).get("nodes") or []
        return GlossaryTerm(
            urn=raw["urn"],
            name=properties.get("name") or raw.get("name", ""),
            description=properties.get("description") or None,
            parent_node=parents[0].get("urn") if parents else None,
            owners=_owners(raw),
            properties=_custom_properties(properties),
        )

    async def list_tags(self, filter: str = "") -> list[Tag]:
        variables = {"input": {"type": "TAG", "query": filter or "*", "start": 0, "count": self.config.max_limit}}
        data = await self.execute(graphql.LIST_TAGS, variables)
        tags = []
        for hit in (data.get("search") or {}).get("searchResults") or []:
            raw = hit.get("entity") or {}
            name, description = _name_and_description(raw)
            tags.append(Tag(urn=raw.get("urn", ""), name=name, description=description))
        return tags

    async def list_domains(self) -> list[Domain]:
        data = await self.execute(graphql.LIST_DOMAINS)
        domains = []
        for raw in (data.get("listDomains") or {}).get("domains") or []:
            properties = raw.get("properties") or {}
            domains.append(
                Domain(
                    urn=raw.get("urn", ""),
                    name=properties.get("name", ""),
                    description=properties.get("description") or None,
                    owners=_owners(raw),
                    entity_count=(raw.get("entities") or {}).get("total"),
                )
            )
        return domains

    async def list_data_products(self) -> list[DataProduct]:
        """List data products, falling back to search on DataHub versions without listDataProducts."""
        try:
            data = await self.execute(graphql.LIST_DATA_PRODUCTS)
        except (UnauthorizedError, ForbiddenError):
            raise
        except DataHubError as e:
            logger.debug("listDataProducts failed, falling back to search: %s", e)
            try:
                found = await self.search("*", entity_type="DATA_PRODUCT", limit=self.config.max_limit)
            except DataHubError as search_error:
                raise DataHubError(
                    f"list data products: {e} (search fallback also failed: {search_error})"
                ) from search_error
            return [DataProduct(urn=hit.urn, name=hit.name, description=hit.description) for hit in found.entities]

        return [self._data_product(raw) for raw in (data.get("listDataProducts") or {}).get("dataProducts") or []]

    async def get_data_product(self, urn: str) -> DataProduct:
        data = await self.execute(graphql.GET_DATA_PRODUCT, {"urn": urn})
        raw = data.get("dataProduct") or {}
        if not raw.get("urn"):
            raise NotFoundError(f"data product not found: {urn}")
        return self._data_product(raw)

    @staticmethod
    def _data_product(raw: dict[str, Any]) -> DataProduct:
        properties = raw.get("properties") or {}
        return DataProduct(
            urn=raw.get("urn", ""),
            name=properties.get("name", ""),
            description=properties.get("description") or None,
            domain=_domain(raw),
            owners=_owners(raw),
            properties=_custom_properties(properties),
        )

    async def _mutate(self, operation: str, document: str, variables: dict[str, Any]) -> None:
        data = await self.execute(document, variables)
        if data.get(operation) is False:
            raise DataHubError(f"{operation} was rejected by DataHub for {variables['urn']}")

    async def update_description(self, urn: str, description: str) -> None:
        await self._mutate("updateDescription", graphql.UPDATE_DESCRIPTION, {"urn": urn, "description": description})

    async def add_tag(self, urn: str, tag_urn: str) -> None:
        await self._mutate("addTag", graphql.ADD_TAG, {"urn": urn, "tagUrn": tag_urn})

    async def remove_tag(self, urn: str, tag_urn: str) -> None:
        await self._mutate("removeTag", graphql.REMOVE_TAG, {"urn": urn, "tagUrn": tag_urn})

    async def add_glossary_term(self, urn: str, term_urn: str) -> None:
        await self._mutate("addTerm", graphql.ADD_TERM, {"urn": urn, "termUrn": term_urn})

    async def remove_glossary_term(self, urn: str, term_urn: str) -> None:
        await self._mutate("removeTerm", graphql.REMOVE_TERM, {"urn": urn, "termUrn": term_urn})

    async def add_link(self, urn: str, url: str, description: str = "") -> None:
        await self._mutate("addLink", graphql.ADD_LINK, {"urn": urn, "linkUrl": url, "label": description or url})

    async def remove_link(self, urn: str, url: str) -> None:
        await self._mutate("removeLink", graphql.REMOVE_LINK, {"urn": urn, "linkUrl": url})
