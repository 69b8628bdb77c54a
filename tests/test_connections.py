import os
import threading
import unittest
from unittest.mock import patch

from fakes import RecordingFactory

from datahub_mcp.client import ClientConfig
from datahub_mcp.connections import ConnectionManager, ConnectionOverride, ConnectionsConfig
from datahub_mcp.errors import ConfigurationError, DataHubError, UnknownConnectionError

PRIMARY = ClientConfig(
    url="https://p",
    token="t",
    timeout=30.0,
    retry_max=3,
    default_limit=10,
    max_limit=100,
    max_lineage_depth=5,
)


def staging_config(**override) -> ConnectionsConfig:
    return ConnectionsConfig(primary=PRIMARY, connections={"staging": ConnectionOverride(**override)})


class TestConnectionInheritance(unittest.TestCase):
    """Field-by-field inheritance of additional connections."""

    def test_empty_override_inherits_everything(self):
        """An override with no fields resolves to the primary settings."""
        resolved = staging_config().client_config("staging")
        self.assertEqual(resolved, PRIMARY)

    def test_each_field_overrides_independently(self):
        """Setting one field changes only that field."""
        cases = {
            "url": ("https://s", "https://s"),
            "token": ("other", "other"),
            "timeout": (5, 5.0),
            "retry_max": (7, 7),
            "default_limit": (20, 20),
            "max_limit": (50, 50),
            "max_lineage_depth": (2, 2),
        }
        for field, (value, expected) in cases.items():
            with self.subTest(field=field):
                resolved = staging_config(**{field: value}).client_config("staging")
                self.assertEqual(getattr(resolved, field), expected)
                for other in cases:
                    if other != field:
                        self.assertEqual(getattr(resolved, other), getattr(PRIMARY, other))

    def test_zero_values_inherit(self):
        """Zero numeric fields are treated as unset."""
        resolved = staging_config(timeout=0, retry_max=0, max_limit=0).client_config("staging")
        self.assertEqual(resolved.timeout, PRIMARY.timeout)
        self.assertEqual(resolved.retry_max, PRIMARY.retry_max)
        self.assertEqual(resolved.max_limit, PRIMARY.max_limit)

    def test_empty_and_default_name_return_primary(self):
        """The empty name and the default name both mean the primary connection."""
        config = ConnectionsConfig(
            default="prod",
            primary=PRIMARY,
            connections={"staging": ConnectionOverride(url="https://s")},
        )
        self.assertIs(config.resolve(""), PRIMARY)
        self.assertIs(config.resolve("prod"), PRIMARY)

    def test_override_named_like_default_is_ignored(self):
        """An override cannot shadow the primary connection."""
        config = ConnectionsConfig(
            primary=PRIMARY,
            connections={"datahub": ConnectionOverride(url="https://evil")},
        )
        self.assertEqual(config.resolve("datahub").url, "https://p")
        self.assertEqual(config.connection_count(), 1)

    def test_end_to_end_staging(self):
        """Primary plus a staging override: count, inheritance and unknown names."""
        config = staging_config(url="https://s")
        self.assertEqual(config.connection_count(), 2)
        self.assertEqual(config.client_config("staging").token, "t")
        self.assertEqual(config.client_config("staging").url, "https://s")
        with self.assertRaises(UnknownConnectionError) as caught:
            config.client_config("missing")
        self.assertEqual(caught.exception.available, ["datahub", "staging"])
        self.assertIn("missing", str(caught.exception))
        self.assertIn("staging", str(caught.exception))

    def test_connection_infos_mark_only_the_primary_default(self):
        infos = staging_config(url="https://s").connection_infos()
        self.assertEqual([(i.name, i.url, i.is_default) for i in infos], [
            ("datahub", "https://p", True),
            ("staging", "https://s", False),
        ])


class TestConnectionsFromEnv(unittest.TestCase):
    """Loading connection configuration from the environment."""

    def test_primary_only(self):
        env = {"DATAHUB_URL": "https://p", "DATAHUB_TOKEN": "t"}
        with patch.dict(os.environ, env, clear=True):
            config = ConnectionsConfig.from_env()
        self.assertEqual(config.default, "datahub")
        self.assertEqual(config.primary.url, "https://p")
        self.assertEqual(config.connection_count(), 1)

    def test_custom_connection_name_and_additional_servers(self):
        env = {
            "DATAHUB_URL": "https://p",
            "DATAHUB_TOKEN": "t",
            "DATAHUB_TIMEOUT": "12",
            "DATAHUB_CONNECTION_NAME": "prod",
            "DATAHUB_ADDITIONAL_SERVERS": '{"staging": {"url": "https://s", "max_limit": 25}}',
        }
        with patch.dict(os.environ, env, clear=True):
            config = ConnectionsConfig.from_env()
        self.assertEqual(config.connection_names(), ["prod", "staging"])
        staging = config.client_config("staging")
        self.assertEqual(staging.url, "https://s")
        self.assertEqual(staging.max_limit, 25)
        self.assertEqual(staging.timeout, 12.0)
        self.assertEqual(staging.token, "t")

    def test_invalid_additional_servers_json(self):
        env = {"DATAHUB_URL": "https://p", "DATAHUB_TOKEN": "t", "DATAHUB_ADDITIONAL_SERVERS": "{not json"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError) as caught:
                ConnectionsConfig.from_env()
        self.assertIn("DATAHUB_ADDITIONAL_SERVERS", str(caught.exception))

    def test_invalid_integer(self):
        env = {"DATAHUB_URL": "https://p", "DATAHUB_TOKEN": "t", "DATAHUB_RETRY_MAX": "many"}
        with patch.dict(os.environ, env, clear=True):
            with self.assertRaises(ConfigurationError):
                ConnectionsConfig.from_env()


class TestConnectionManager(unittest.IsolatedAsyncioTestCase):
    """Client caching and shutdown."""

    def setUp(self):
        self.factory = RecordingFactory()
        self.manager = ConnectionManager(staging_config(url="https://s"), self.factory)

    def test_same_name_returns_cached_client(self):
        self.assertIs(self.manager.client("staging"), self.manager.client("staging"))
        self.assertEqual(len(self.factory.configs), 1)

    def test_default_aliases_share_one_client(self):
        """"", the default name and default_client() all return the primary client."""
        client = self.manager.client("")
        self.assertIs(self.manager.client("datahub"), client)
        self.assertIs(self.manager.default_client(), client)

    def test_different_names_return_distinct_clients(self):
        primary = self.manager.client("")
        staging = self.manager.client("staging")
        self.assertIsNot(primary, staging)
        self.assertEqual(staging.config.url, "https://s")

    def test_unknown_connection(self):
        with self.assertRaises(UnknownConnectionError):
            self.manager.client("missing")
        self.assertFalse(self.manager.has_connection("missing"))
        self.assertTrue(self.manager.has_connection("staging"))

    def test_failed_construction_is_not_cached(self):
        factory = RecordingFactory(fail_for={"https://s"})
        manager = ConnectionManager(staging_config(url="https://s"), factory)
        with self.assertRaises(RuntimeError):
            manager.client("staging")
        factory.fail_for.clear()
        self.assertIsNotNone(manager.client("staging"))

    def test_concurrent_callers_share_one_client(self):
        """Many threads asking for the same name build exactly one client."""
        results = []

        def worker():
            results.append(self.manager.client("staging"))

        threads = [threading.Thread(target=worker) for _ in range(16)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(self.factory.configs), 1)
        self.assertTrue(all(client is results[0] for client in results))

    def test_connections_lists_resolved_configs(self):
        connections = self.manager.connections()
        self.assertEqual(list(connections), ["datahub", "staging"])
        self.assertEqual(connections["staging"].token, "t")

    async def test_close_twice(self):
        """Closing twice never fails and the manager stays usable."""
        client = self.manager.client("")
        await self.manager.close()
        await self.manager.close()
        client.close.assert_awaited_once()
        self.assertIsNot(self.manager.client(""), client)

    async def test_close_reports_failures_after_closing_everything(self):
        primary = self.manager.client("")
        staging = self.manager.client("staging")
        primary.close.side_effect = RuntimeError("boom")
        with self.assertRaises(DataHubError):
            await self.manager.close()
        staging.close.assert_awaited_once()


if __name__ == "__main__":
    unittest.main()
