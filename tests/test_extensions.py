import logging
import os
import re
import threading
import unittest
from unittest.mock import patch

from fakes import payload, text, text_result

from datahub_mcp.extensions import (
    ErrorHintMiddleware,
    ExtensionsConfig,
    InMemoryCollector,
    LoggingMiddleware,
    MetadataMiddleware,
    MetricsMiddleware,
    ToolMetrics,
    append_text,
    build_extension_middlewares,
)
from datahub_mcp.models import GetEntityInput
from datahub_mcp.tools.context import ToolContext
from datahub_mcp.tools.middleware import BeforeFunc, wrap_handler
from datahub_mcp.tools.results import error_result, json_result, result_payload

INPUT = GetEntityInput(urn="urn:li:dataset:x", connection="staging")


def tool_context() -> ToolContext:
    return ToolContext(tool_name="datahub_get_entity", input=INPUT)


class TestExtensionsConfig(unittest.TestCase):
    """Tests for ExtensionsConfig."""

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            config = ExtensionsConfig.from_env()
        self.assertEqual(
            config,
            ExtensionsConfig(enable_logging=False, enable_metrics=False, enable_metadata=False, enable_error_hints=True),
        )

    def test_flags_from_environment(self):
        env = {
            "MCP_DATAHUB_EXT_LOGGING": "true",
            "MCP_DATAHUB_EXT_METRICS": "yes",
            "MCP_DATAHUB_EXT_METADATA": "1",
            "MCP_DATAHUB_EXT_ERRORS": "false",
        }
        with patch.dict(os.environ, env, clear=True):
            config = ExtensionsConfig.from_env()
        self.assertTrue(config.enable_logging)
        self.assertTrue(config.enable_metrics)
        self.assertTrue(config.enable_metadata)
        self.assertFalse(config.enable_error_hints)

    def test_build_order(self):
        middlewares = build_extension_middlewares(
            ExtensionsConfig(enable_logging=True, enable_metrics=True, enable_metadata=True, enable_error_hints=True)
        )
        self.assertEqual(
            [type(m) for m in middlewares],
            [LoggingMiddleware, MetricsMiddleware, MetadataMiddleware, ErrorHintMiddleware],
        )
        self.assertEqual(build_extension_middlewares(ExtensionsConfig(enable_error_hints=False)), [])


class TestAppendText(unittest.TestCase):
    def test_appends_to_first_text_block(self):
        result = json_result({"a": 1})
        updated = append_text(result, "\n\nfooter")
        self.assertTrue(text(updated).endswith("\n\nfooter"))
        self.assertFalse(text(result).endswith("footer"))
        self.assertEqual(updated.structuredContent, {"a": 1})


class TestLoggingMiddleware(unittest.IsolatedAsyncioTestCase):
    """Tests for LoggingMiddleware."""

    async def test_logs_connection_and_outcome(self):
        log = logging.getLogger("test.extensions")

        async def handler(ctx, params):
            return error_result("entity not found")

        wrapped = wrap_handler("datahub_get_entity", handler, [LoggingMiddleware(log)])
        with self.assertLogs(log, level="INFO") as logs:
            await wrapped(None, INPUT)
        self.assertIn("tool=datahub_get_entity connection=staging", logs.output[0])
        self.assertIn("status=error", logs.output[1])

    async def test_logs_exceptions(self):
        log = logging.getLogger("test.extensions")
        tc = tool_context()
        with self.assertLogs(log, level="INFO") as logs:
            await LoggingMiddleware(log).after(None, tc, None, RuntimeError("backend down"))
        self.assertIn("error=backend down", logs.output[0])


class TestInMemoryCollector(unittest.TestCase):
    """Tests for InMemoryCollector."""

    def test_counts_calls_and_errors(self):
        collector = InMemoryCollector()
        collector.record_call("datahub_search", 0.25, True)
        collector.record_call("datahub_search", 0.5, False)
        self.assertEqual(collector.get_metrics("datahub_search"), ToolMetrics(calls=2, errors=1, total_seconds=0.75))
        self.assertIsNone(collector.get_metrics("datahub_get_entity"))

    def test_snapshot_is_a_copy(self):
        collector = InMemoryCollector()
        collector.record_call("datahub_search", 0.1, True)
        snapshot = collector.get_metrics("datahub_search")
        collector.record_call("datahub_search", 0.1, True)
        self.assertEqual(snapshot.calls, 1)

    def test_reset(self):
        collector = InMemoryCollector()
        collector.record_call("datahub_search", 0.1, True)
        collector.reset()
        self.assertIsNone(collector.get_metrics("datahub_search"))

    def test_concurrent_recording(self):
        collector = InMemoryCollector()

        def record():
            for _ in range(500):
                collector.record_call("datahub_search", 0.001, True)

        threads = [threading.Thread(target=record) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(collector.get_metrics("datahub_search").calls, 2000)


class TestMetricsMiddleware(unittest.IsolatedAsyncioTestCase):
    """Tests for MetricsMiddleware."""

    async def test_records_success_and_failures(self):
        collector = InMemoryCollector()
        outcomes = [json_result({"urn": "u"}), error_result("entity not found"), RuntimeError("backend down")]

        async def handler(ctx, params):
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        wrapped = wrap_handler("datahub_get_entity", handler, [MetricsMiddleware(collector)])
        for _ in range(3):
            await wrapped(None, INPUT)
        metrics = collector.get_metrics("datahub_get_entity")
        self.assertEqual((metrics.calls, metrics.errors), (3, 2))
        self.assertGreaterEqual(metrics.total_seconds, 0)

    async def test_default_collector(self):
        middleware = MetricsMiddleware()
        result = json_result({})
        self.assertIs(await middleware.after(None, tool_context(), result, None), result)
        self.assertEqual(middleware.collector.get_metrics("datahub_get_entity").calls, 1)


class TestMetadataMiddleware(unittest.IsolatedAsyncioTestCase):
    """Tests for MetadataMiddleware."""

    async def test_footer_on_success(self):
        result = await MetadataMiddleware().after(None, tool_context(), json_result({"urn": "u"}), None)
        footer = text(result).split("\n\n---\n", 1)[1]
        self.assertRegex(
            footer,
            re.compile(r"^tool: datahub_get_entity \| duration: \d+ms \| timestamp: \d{4}-\d\d-\d\dT\d\d:\d\d:\d\dZ$"),
        )

    async def test_payload_survives_footer(self):
        result = await MetadataMiddleware().after(None, tool_context(), json_result({"urn": "u"}), None)
        self.assertEqual(result_payload(result), {"urn": "u"})

    async def test_errors_are_left_alone(self):
        result = error_result("boom")
        self.assertIs(await MetadataMiddleware().after(None, tool_context(), result, None), result)


class TestErrorHintMiddleware(unittest.IsolatedAsyncioTestCase):
    """Tests for ErrorHintMiddleware."""

    async def test_known_errors_get_a_hint(self):
        cases = {
            "GetEntity failed for u: entity not found": "Hint: Use datahub_search to find entities.",
            "Connection error: unknown connection: 'x'": "Hint: Use datahub_list_connections to see available connections.",
            "Write error: write operations are disabled": "Hint: Set DATAHUB_WRITE_ENABLED=true to enable writes.",
            "urn parameter is required": "Hint: Use datahub_search to find entity URNs.",
            "middleware error: access denied": "Hint: Check your DataHub token and permissions.",
        }
        for message, hint in cases.items():
            with self.subTest(message=message):
                result = await ErrorHintMiddleware().after(None, tool_context(), error_result(message), None)
                self.assertEqual(text(result), f"{message}\n\n{hint}")
                self.assertTrue(result.isError)

    async def test_unknown_errors_and_successes_are_untouched(self):
        unknown = error_result("something odd")
        self.assertIs(await ErrorHintMiddleware().after(None, tool_context(), unknown, None), unknown)
        success = text_result("entity not found in description")
        self.assertIs(await ErrorHintMiddleware().after(None, tool_context(), success, None), success)

    async def test_before_failure_skips_after_hooks(self):
        """A refused call short-circuits the pipeline, so no hint is added."""

        async def handler(ctx, params):
            return json_result({"urn": params.urn})

        async def refuse(ctx, tc):
            raise PermissionError("access denied")

        wrapped = wrap_handler("datahub_get_entity", handler, [ErrorHintMiddleware(), BeforeFunc(refuse)])
        result = await wrapped(None, INPUT)
        self.assertEqual(text(result), "middleware error: access denied")

    async def test_successful_call_through_pipeline(self):
        async def handler(ctx, params):
            return json_result({"urn": params.urn})

        wrapped = wrap_handler("datahub_get_entity", handler, [ErrorHintMiddleware()])
        self.assertEqual(payload(await wrapped(None, INPUT)), {"urn": "urn:li:dataset:x"})


if __name__ == "__main__":
    unittest.main()
