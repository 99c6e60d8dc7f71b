#!/usr/bin/env python3
"""Tests for tool handlers and the MCP server wiring."""

import json
import unittest
from unittest.mock import AsyncMock, MagicMock

from mcp.server.fastmcp.exceptions import ToolError

from graphql_fakes import PROJECT_KEY, GraphQLRouter, make_config

from deepsource_mcp import handlers
from deepsource_mcp.exceptions import ClassifiedError, ErrorCategory
from deepsource_mcp.models import (
    MetricDirection,
    MetricHistoryResponse,
    MetricHistoryValue,
    MetricItem,
    MetricThresholdStatus,
)
from deepsource_mcp.server import DeepSourceMCPServer, tool_result


def payload_of(response):
    return json.loads(response["content"][0]["text"])


class TestResponses(unittest.TestCase):

    def test_error_payload_carries_category_code(self):
        error = ClassifiedError("Authentication error: Invalid or expired API key", ErrorCategory.AUTH)
        response = handlers.create_error_response(error, "Failed to retrieve projects")
        self.assertTrue(response["isError"])
        self.assertEqual(payload_of(response), {
            "error": "Authentication error: Invalid or expired API key",
            "details": "Failed to retrieve projects",
            "code": "AUTHENTICATION_ERROR",
        })

    def test_error_payload_for_non_exception(self):
        response = handlers.create_error_response("boom", "Failed")
        self.assertEqual(payload_of(response)["error"], "Unknown error")
        self.assertNotIn("code", payload_of(response))

    def test_tool_result(self):
        self.assertEqual(tool_result(handlers.wrap_in_api_response({"a": 1})), json.dumps({"a": 1}, indent=2))
        with self.assertRaises(ToolError):
            tool_result(handlers.create_error_response(ValueError("bad"), "Failed"))


class TestDerivedFields(unittest.TestCase):

    def test_threshold_info(self):
        item = MetricItem(id="i", key="AGGREGATE", threshold=80, latest_value=72,
                          threshold_status=MetricThresholdStatus.FAILING)
        self.assertEqual(handlers.threshold_info(item), {
            "difference": -8,
            "percentDifference": "-10.00%",
            "isPassing": False,
        })

    def test_threshold_info_without_threshold(self):
        self.assertIsNone(handlers.threshold_info(MetricItem(id="i", key="AGGREGATE", latest_value=50)))

    def test_cvss_description(self):
        self.assertEqual(handlers.describe_cvss_score(9.8), "Critical")
        self.assertEqual(handlers.describe_cvss_score(7.0), "High")
        self.assertEqual(handlers.describe_cvss_score(5.3), "Medium")
        self.assertEqual(handlers.describe_cvss_score(1.0), "Low")
        self.assertEqual(handlers.describe_cvss_score(None), "Unknown")


class TestHandlers(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.client = MagicMock()

    async def test_missing_run_is_an_error_payload(self):
        self.client.get_run = AsyncMock(return_value=None)
        response = await handlers.handle_run(self.client, "abc1234")
        self.assertTrue(response["isError"])
        self.assertEqual(payload_of(response)["error"], "Run with identifier abc1234 not found")

    async def test_invalid_project_key_never_reaches_client(self):
        self.client.get_issues = AsyncMock()
        response = await handlers.handle_project_issues(self.client, "not a key!")
        self.assertTrue(response["isError"])
        self.client.get_issues.assert_not_called()

    async def test_missing_compliance_report(self):
        self.client.get_compliance_report = AsyncMock(return_value=None)
        response = await handlers.handle_compliance_report(self.client, PROJECT_KEY, "OWASP_TOP_10")
        self.assertEqual(
            payload_of(response)["error"],
            f"Report of type 'OWASP_TOP_10' not found for project '{PROJECT_KEY}'",
        )

    async def test_metric_history_analysis(self):
        values = [MetricHistoryValue(value=v, value_display=str(v)) for v in (70, 75, 82)]
        self.client.get_metric_history = AsyncMock(return_value=MetricHistoryResponse(
            shortcode="LCV", metric_key="AGGREGATE", name="Line Coverage",
            positive_direction=MetricDirection.UPWARD, values=values, is_trending_positive=True,
        ))
        response = await handlers.handle_metric_history(self.client, PROJECT_KEY, "LCV")
        analysis = payload_of(response)["analysis"]
        self.assertEqual(analysis["change"], 12)
        self.assertEqual(analysis["changePercentage"], "17.14%")
        self.assertEqual(analysis["direction"], "higher is better")
        self.assertTrue(analysis["isTrendingPositive"])

    async def test_invalid_threshold(self):
        self.client.set_metric_threshold = AsyncMock()
        response = await handlers.handle_update_metric_threshold(
            self.client, PROJECT_KEY, "repo-1", "LCV", "AGGREGATE", -5
        )
        self.assertTrue(response["isError"])
        self.client.set_metric_threshold.assert_not_called()


class TestServer(unittest.IsolatedAsyncioTestCase):

    async def test_registers_every_tool(self):
        server = DeepSourceMCPServer(config=make_config(), http_transport=GraphQLRouter({}).transport())
        self.addAsyncCleanup(server.client.aclose)
        names = {tool.name for tool in await server.mcp.list_tools()}
        self.assertEqual(names, {
            "projects", "project_issues", "runs", "run", "recent_run_issues",
            "quality_metrics", "update_metric_threshold", "update_metric_setting",
            "metric_history", "dependency_vulnerabilities", "compliance_report",
        })
        self.assertTrue(server.get_status()["initialized"])


if __name__ == "__main__":
    unittest.main()
