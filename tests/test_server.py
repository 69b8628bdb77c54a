import os
import unittest
from unittest.mock import patch

import httpx
from fakes import GraphQLServer, RecordingFactory, data, make_client, payload, text

from datahub_mcp.client import ClientConfig, DataHubClient
from datahub_mcp.connections import ConnectionManager, ConnectionOverride, ConnectionsConfig
from datahub_mcp.errors import NotFoundError
from datahub_mcp.extensions import InMemoryCollector
from datahub_mcp.server import create_server, make_lifespan
from datahub_mcp.tools import READ_TOOLS, WRITE_TOOLS, CatalogMCP
from datahub_mcp.utils import get_mcp_context

ENV = {"DATAHUB_URL": "https://p", "DATAHUB_TOKEN": "t"}

CONNECTIONS = ConnectionsConfig(
    primary=ClientConfig(url="https://p", token="t"),
    connections={"staging": ConnectionOverride(url="https://s")},
)


def tool_names(server: CatalogMCP) -> set[str]:
    return set(server._tool_manager._tools)


class TestCreateServer(unittest.IsolatedAsyncioTestCase):
    """Tests for create_server."""

    def test_read_tools_by_default(self):
        with patch.dict(os.environ, ENV, clear=True):
            server = create_server(client_factory=RecordingFactory())
        self.assertIsInstance(server, CatalogMCP)
        self.assertEqual(tool_names(server), {str(name) for name in READ_TOOLS})

    def test_write_tools_from_flag(self):
        with patch.dict(os.environ, ENV, clear=True):
            server = create_server(enable_write_tools=True, client_factory=RecordingFactory())
        self.assertEqual(tool_names(server), {str(name) for name in READ_TOOLS + WRITE_TOOLS})

    def test_write_tools_from_environment(self):
        with patch.dict(os.environ, {**ENV, "DATAHUB_WRITE_ENABLED": "true"}, clear=True):
            server = create_server(client_factory=RecordingFactory())
        self.assertTrue({str(name) for name in WRITE_TOOLS} <= tool_names(server))

    async def test_tools_use_the_named_connection(self):
        factory = RecordingFactory(list_tags=[])
        with patch.dict(os.environ, {}, clear=True):
            server = create_server(connections=CONNECTIONS, client_factory=factory)
        await server.call_tool("datahub_list_tags", {"connection": "staging"})
        self.assertEqual([config.url for config in factory.configs], ["https://s"])

    async def test_list_connections(self):
        with patch.dict(os.environ, {}, clear=True):
            server = create_server(connections=CONNECTIONS, client_factory=RecordingFactory())
        data = payload(await server.call_tool("datahub_list_connections", {}))
        self.assertEqual(data["count"], 2)
        self.assertEqual([c["name"] for c in data["connections"]], ["datahub", "staging"])

    async def test_missing_configuration_fails_every_call(self):
        """Without DATAHUB_URL the server starts but every tool reports the problem."""
        factory = RecordingFactory()
        with patch.dict(os.environ, {}, clear=True), self.assertLogs("datahub_mcp.server", level="ERROR"):
            server = create_server(client_factory=factory)
        self.assertEqual(tool_names(server), {str(name) for name in READ_TOOLS})
        result = await server.call_tool("datahub_search", {"query": "orders"})
        self.assertTrue(result.isError)
        self.assertTrue(text(result).startswith("middleware error: DATAHUB_URL is required"))
        self.assertEqual(factory.configs, [])

    async def test_invalid_additional_servers(self):
        env = {**ENV, "DATAHUB_ADDITIONAL_SERVERS": "[1, 2]"}
        with patch.dict(os.environ, env, clear=True), self.assertLogs("datahub_mcp.server", level="ERROR"):
            server = create_server(client_factory=RecordingFactory())
        result = await server.call_tool("datahub_list_connections", {})
        self.assertIn("DATAHUB_ADDITIONAL_SERVERS", text(result))

    async def test_error_hints_are_on_by_default(self):
        def factory(config):
            client = make_client()
            client.get_entity.side_effect = NotFoundError()
            return client

        with patch.dict(os.environ, ENV, clear=True):
            server = create_server(client_factory=factory)
        result = await server.call_tool("datahub_get_entity", {"urn": "urn:li:dataset:x"})
        self.assertTrue(text(result).endswith("Hint: Use datahub_search to find entities."))

    async def test_metadata_footer_extension(self):
        factory = RecordingFactory(list_domains=[])
        with patch.dict(os.environ, {**ENV, "MCP_DATAHUB_EXT_METADATA": "true"}, clear=True):
            server = create_server(client_factory=factory)
        result = await server.call_tool("datahub_list_domains", {})
        self.assertIn("\n\n---\ntool: datahub_list_domains | duration: ", text(result))

    async def test_metrics_extension(self):
        collector = InMemoryCollector()
        factory = RecordingFactory(list_domains=[])
        with patch.dict(os.environ, {**ENV, "MCP_DATAHUB_EXT_METRICS": "true"}, clear=True):
            server = create_server(client_factory=factory, metrics_collector=collector)
        await server.call_tool("datahub_list_domains", {})
        await server.call_tool("datahub_get_entity", {"urn": ""})
        self.assertEqual(collector.get_metrics("datahub_list_domains").calls, 1)
        self.assertEqual(collector.get_metrics("datahub_get_entity").errors, 1)


class TestConnectionLimits(unittest.IsolatedAsyncioTestCase):
    """Paging and lineage limits follow the selected connection."""

    def setUp(self):
        self.graphql = GraphQLServer(data({"search": {}, "searchAcrossLineage": {"searchResults": []}}))
        connections = ConnectionsConfig(
            primary=ClientConfig(url="https://p", token="t"),
            connections={
                "staging": ConnectionOverride(url="https://s", default_limit=25, max_limit=500, max_lineage_depth=3)
            },
        )
        with patch.dict(os.environ, {}, clear=True):
            self.server = create_server(
                connections=connections,
                client_factory=lambda config: DataHubClient(config, transport=httpx.MockTransport(self.graphql)),
            )

    async def search_count(self, **arguments) -> int:
        await self.server.call_tool("datahub_search", {"query": "orders", **arguments})
        return self.graphql.body()["variables"]["input"]["count"]

    async def test_search_uses_connection_limits(self):
        self.assertEqual(await self.search_count(connection="staging"), 25)
        self.assertEqual(self.graphql.requests[-1].url.host, "s")
        self.assertEqual(await self.search_count(connection="staging", limit=300), 300)
        self.assertEqual(await self.search_count(connection="staging", limit=900), 500)

    async def test_primary_keeps_its_own_limits(self):
        self.assertEqual(await self.search_count(), 10)
        self.assertEqual(await self.search_count(limit=300), 100)

    async def test_lineage_uses_connection_depth(self):
        arguments = {"urn": "urn:li:dataset:x", "depth": 4}
        staging = payload(await self.server.call_tool("datahub_get_lineage", {**arguments, "connection": "staging"}))
        self.assertEqual(staging["depth"], 3)
        primary = payload(await self.server.call_tool("datahub_get_lineage", arguments))
        self.assertEqual(primary["depth"], 4)


class TestLifespan(unittest.IsolatedAsyncioTestCase):
    """Tests for the server lifespan."""

    async def test_yields_context_and_closes_clients(self):
        manager = ConnectionManager(CONNECTIONS, RecordingFactory())
        client = manager.client("staging")
        async with make_lifespan(manager, write_enabled=True)(CatalogMCP("test")) as context:
            self.assertEqual(context.default_connection, "datahub")
            self.assertEqual(context.connection_count, 2)
            self.assertTrue(context.write_enabled)
        client.close.assert_awaited_once()

    def test_get_mcp_context(self):
        manager = ConnectionManager(CONNECTIONS, RecordingFactory())
        context = get_mcp_context(manager, write_enabled=False)
        self.assertEqual(context.default_url, "https://p")
        self.assertFalse(context.write_enabled)


if __name__ == "__main__":
    unittest.main()
