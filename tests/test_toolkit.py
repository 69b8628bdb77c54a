import inspect
import unittest

from fakes import AllowListFilter, RecordingFactory, RecordingMiddleware, make_client, payload, text
from mcp.server.fastmcp import Context, FastMCP
from mcp.types import Icon, ToolAnnotations

from datahub_mcp.client import ClientConfig
from datahub_mcp.connections import ConnectionManager, ConnectionOverride, ConnectionsConfig
from datahub_mcp.errors import DataHubError, UnknownToolError, WriteDisabledError
from datahub_mcp.models import Entity, GetEntityInput, SearchInput, SearchResult
from datahub_mcp.tools import (
    READ_TOOLS,
    WRITE_TOOLS,
    CatalogMCP,
    RegistrationOptions,
    Toolkit,
    ToolkitConfig,
    ToolName,
    resolve,
)
from datahub_mcp.tools.overrides import DEFAULT_DESCRIPTIONS, DEFAULT_OUTPUT_SCHEMAS, DEFAULT_TITLES
from datahub_mcp.tools.results import json_result
from datahub_mcp.tools.toolkit import tool_function

ENTITY = Entity(urn="urn:li:dataset:x", type="DATASET", name="x")


class TestResolve(unittest.TestCase):
    """Precedence of metadata overrides."""

    def test_most_specific_value_wins(self):
        self.assertEqual(resolve("registration", "toolkit", "default"), "registration")
        self.assertEqual(resolve(None, "toolkit", "default"), "toolkit")
        self.assertEqual(resolve(None, None, "default"), "default")
        self.assertIsNone(resolve(None, None, None))

    def test_empty_values_count_as_set(self):
        self.assertEqual(resolve("", "toolkit", "default"), "")


class TestToolkitConfig(unittest.TestCase):
    """Tests for ToolkitConfig."""

    def test_defaults(self):
        config = ToolkitConfig()
        self.assertFalse(config.write_enabled)
        self.assertFalse(config.debug)

    def test_explicit_values_are_kept(self):
        config = ToolkitConfig(write_enabled=True, debug=True)
        self.assertTrue(config.write_enabled)
        self.assertTrue(config.debug)


class TestToolFunction(unittest.TestCase):
    """Tests for tool_function."""

    def test_flat_keyword_parameters(self):
        async def handler(ctx, params):
            return json_result({})

        fn = tool_function("datahub_search", SearchInput, handler)
        parameters = inspect.signature(fn).parameters
        self.assertEqual(list(parameters), ["ctx", "connection", "query", "entity_type", "limit", "offset"])
        self.assertIs(parameters["ctx"].annotation, Context)
        self.assertIs(parameters["query"].default, inspect.Parameter.empty)
        self.assertEqual(parameters["limit"].default, 0)
        self.assertEqual(fn.__name__, "datahub_search")


class TestToolkitRegistration(unittest.TestCase):
    """Registering tools on a server."""

    def setUp(self):
        self.server = FastMCP("test")

    def registered(self) -> set[str]:
        return set(self.server._tool_manager._tools)

    def test_register_all_read_only(self):
        Toolkit(make_client()).register_all(self.server)
        self.assertEqual(self.registered(), {str(name) for name in READ_TOOLS})

    def test_register_all_with_writes(self):
        Toolkit(make_client(), ToolkitConfig(write_enabled=True)).register_all(self.server)
        self.assertEqual(self.registered(), {str(name) for name in READ_TOOLS + WRITE_TOOLS})

    def test_register_is_idempotent(self):
        toolkit = Toolkit(make_client())
        toolkit.register(self.server, "datahub_search")
        toolkit.register(self.server, "datahub_search", ToolName.GET_ENTITY)
        self.assertTrue(toolkit.is_registered("datahub_search"))
        self.assertTrue(toolkit.is_registered("datahub_get_entity"))
        self.assertFalse(toolkit.is_registered("datahub_get_schema"))
        self.assertEqual(self.registered(), {"datahub_search", "datahub_get_entity"})

    def test_unknown_tool_name(self):
        toolkit = Toolkit(make_client())
        with self.assertRaises(UnknownToolError):
            toolkit.register(self.server, "datahub_drop_everything")
        self.assertFalse(toolkit.is_registered("datahub_drop_everything"))

    def test_default_metadata(self):
        Toolkit(make_client()).register(self.server, "datahub_search")
        tool = self.server._tool_manager.get_tool("datahub_search")
        self.assertEqual(tool.title, DEFAULT_TITLES[ToolName.SEARCH])
        self.assertEqual(tool.description, DEFAULT_DESCRIPTIONS[ToolName.SEARCH])
        self.assertTrue(tool.annotations.readOnlyHint)

    def test_registration_overrides_win(self):
        toolkit = Toolkit(make_client(), descriptions={"datahub_search": "toolkit description"})
        toolkit.register_with(
            self.server,
            "datahub_search",
            title="Find Assets",
            annotations=ToolAnnotations(readOnlyHint=True, openWorldHint=True),
        )
        tool = self.server._tool_manager.get_tool("datahub_search")
        self.assertEqual(tool.title, "Find Assets")
        self.assertEqual(tool.description, "toolkit description")
        self.assertTrue(tool.annotations.openWorldHint)


class TestToolkitMetadata(unittest.TestCase):
    """Override lookups on the toolkit."""

    def test_toolkit_overrides_and_defaults(self):
        icon = Icon(src="https://example.com/icon.png")
        toolkit = Toolkit(
            make_client(),
            titles={"datahub_get_entity": "Describe"},
            icons={"datahub_get_entity": [icon]},
            output_schemas={"datahub_get_entity": {"type": "object"}},
        )
        self.assertEqual(toolkit.get_title("datahub_get_entity"), "Describe")
        self.assertEqual(toolkit.get_title("datahub_search"), "Search Catalog")
        self.assertEqual(toolkit.get_icons("datahub_get_entity"), [icon])
        self.assertEqual(toolkit.get_output_schema("datahub_get_entity"), {"type": "object"})
        self.assertEqual(toolkit.get_output_schema("datahub_search"), DEFAULT_OUTPUT_SCHEMAS[ToolName.SEARCH])

    def test_unknown_tool_has_no_metadata(self):
        toolkit = Toolkit(make_client())
        self.assertIsNone(toolkit.get_description("datahub_unknown"))
        self.assertIsNone(toolkit.get_title("datahub_unknown"))
        self.assertIsNone(toolkit.get_annotations("datahub_unknown"))
        self.assertIsNone(toolkit.get_output_schema("datahub_unknown"))

    def test_every_tool_has_defaults(self):
        toolkit = Toolkit(make_client())
        for name in READ_TOOLS + WRITE_TOOLS:
            with self.subTest(tool=name):
                self.assertTrue(toolkit.get_description(name))
                self.assertTrue(toolkit.get_title(name))
                self.assertIsNotNone(toolkit.get_annotations(name))
                self.assertIsNotNone(toolkit.get_output_schema(name))


class TestToolkitConnections(unittest.TestCase):
    """Client selection in single-client and multi-connection mode."""

    def test_single_client_mode(self):
        client = make_client()
        toolkit = Toolkit(client)
        self.assertIs(toolkit.get_client(), client)
        self.assertIs(toolkit.get_client("anything"), client)
        self.assertEqual(toolkit.connection_count(), 1)
        [info] = toolkit.connection_infos()
        self.assertEqual((info.name, info.url, info.is_default), ("default", "configured via single client", True))

    def test_no_client_configured(self):
        with self.assertRaisesRegex(DataHubError, "no client configured"):
            Toolkit().get_client()

    def test_manager_takes_precedence(self):
        config = ConnectionsConfig(
            primary=ClientConfig(url="https://p", token="t"),
            connections={"staging": ConnectionOverride(url="https://s")},
        )
        manager = ConnectionManager(config, RecordingFactory())
        toolkit = Toolkit(make_client(), manager=manager)
        self.assertEqual(toolkit.get_client("staging").config.url, "https://s")
        self.assertEqual(toolkit.connection_count(), 2)

    def test_write_client_requires_writes_enabled(self):
        client = make_client()
        with self.assertRaises(WriteDisabledError):
            Toolkit(client).get_write_client()
        self.assertIs(Toolkit(client, ToolkitConfig(write_enabled=True)).get_write_client(), client)


class TestToolkitWrap(unittest.IsolatedAsyncioTestCase):
    """Middleware layering done by Toolkit.wrap."""

    async def handler(self, ctx, params):
        self.log.append("handler")
        return json_result({"urn": params.urn})

    def setUp(self):
        self.log: list[str] = []

    def test_no_middleware_is_identity(self):
        toolkit = Toolkit(make_client())
        self.assertFalse(toolkit.has_middleware())
        self.assertIs(toolkit.wrap("datahub_get_entity", self.handler), self.handler)

    async def test_layer_order(self):
        """Toolkit-wide, then per-tool, then per-registration middlewares."""
        toolkit = Toolkit(
            make_client(),
            middlewares=[RecordingMiddleware("global", self.log)],
            tool_middlewares={"datahub_get_entity": [RecordingMiddleware("tool", self.log)]},
        )
        self.assertTrue(toolkit.has_middleware())
        options = RegistrationOptions(middlewares=(RecordingMiddleware("registration", self.log),))
        wrapped = toolkit.wrap("datahub_get_entity", self.handler, options)
        await wrapped(None, GetEntityInput(urn="urn:li:dataset:x"))
        self.assertEqual(
            self.log,
            [
                "global.before",
                "tool.before",
                "registration.before",
                "handler",
                "registration.after",
                "tool.after",
                "global.after",
            ],
        )

    async def test_per_tool_middleware_only_applies_to_its_tool(self):
        toolkit = Toolkit(make_client(), tool_middlewares={"datahub_get_entity": [RecordingMiddleware("tool", self.log)]})
        self.assertIs(toolkit.wrap("datahub_get_schema", self.handler), self.handler)


class TestToolkitEndToEnd(unittest.IsolatedAsyncioTestCase):
    """Calling registered tools through the MCP server."""

    async def test_call_tool_with_flat_arguments(self):
        client = make_client(get_entity=ENTITY)
        server = CatalogMCP("test")
        Toolkit(client).register_all(server)
        result = await server.call_tool("datahub_get_entity", {"urn": "urn:li:dataset:x"})
        self.assertEqual(payload(result), {"urn": "urn:li:dataset:x", "type": "DATASET", "name": "x"})
        client.get_entity.assert_awaited_once_with("urn:li:dataset:x")

    async def test_list_tools_publishes_output_schemas(self):
        server = CatalogMCP("test")
        Toolkit(make_client()).register_all(server)
        tools = {tool.name: tool for tool in await server.list_tools()}
        self.assertEqual(tools["datahub_search"].outputSchema, DEFAULT_OUTPUT_SCHEMAS[ToolName.SEARCH])
        self.assertIn("query", tools["datahub_search"].inputSchema["properties"])
        self.assertIn("query", tools["datahub_search"].inputSchema["required"])

    async def test_registration_output_schema(self):
        server = CatalogMCP("test")
        Toolkit(make_client()).register_with(server, "datahub_list_tags", output_schema={"type": "object"})
        self.assertEqual(server.output_schema("datahub_list_tags"), {"type": "object"})

    async def test_access_filter_applies_through_server(self):
        client = make_client(
            search=SearchResult(
                entities=[
                    {"urn": "u1", "type": "DATASET", "name": "one"},
                    {"urn": "u2", "type": "DATASET", "name": "two"},
                ],
                total=2,
            )
        )
        server = CatalogMCP("test")
        Toolkit(client, access_filter=AllowListFilter({"u2"})).register_all(server)
        result = await server.call_tool("datahub_search", {"query": "orders"})
        data = payload(result)
        self.assertEqual([entity["urn"] for entity in data["entities"]], ["u2"])
        self.assertEqual(data["total"], 1)

    async def test_write_tool_refused_when_writes_disabled(self):
        server = CatalogMCP("test")
        toolkit = Toolkit(make_client())
        toolkit.register(server, "datahub_add_tag")
        result = await server.call_tool("datahub_add_tag", {"urn": "urn:li:dataset:x", "tag_urn": "urn:li:tag:PII"})
        self.assertTrue(result.isError)
        self.assertTrue(text(result).startswith("Write error: write operations are disabled"))


if __name__ == "__main__":
    unittest.main()
