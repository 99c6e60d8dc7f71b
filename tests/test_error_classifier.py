#!/usr/bin/env python3
"""Tests for error classification and empty-result recovery."""

import os
import sys
import unittest

import httpx

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from deepsource_mcp.error_classifier import (
    categorize_message,
    classify_error,
    graphql_error_messages,
    is_error_with_message,
    is_none_type_error,
    recover_or_raise,
)
from deepsource_mcp.exceptions import ClassifiedError, ErrorCategory


REQUEST = httpx.Request("POST", "https://api.deepsource.io/graphql/")


def status_error(status, **kwargs):
    response = httpx.Response(status, request=REQUEST, **kwargs)
    return httpx.HTTPStatusError(f"HTTP {status}", request=REQUEST, response=response)


class TestClassifyError(unittest.TestCase):
    """Decision order of classify_error."""

    def test_graphql_payload_on_http_error(self):
        error = status_error(400, json={"errors": [{"message": "Error 1"}, {"message": "Error 2"}]})
        classified = classify_error(error)
        self.assertEqual(classified.message, "GraphQL Error: Error 1, Error 2")
        self.assertEqual(classified.category, ErrorCategory.GRAPHQL)
        self.assertIs(classified.original_error, error)

    def test_graphql_payload_keeps_positions_of_missing_messages(self):
        error = status_error(400, json={"errors": [{"message": "a"}, {}, {"message": 5}, {"message": "b"}]})
        self.assertEqual(classify_error(error).message, "GraphQL Error: a, , , b")

    def test_graphql_payload_categorized_by_message(self):
        error = status_error(403, json={"errors": [{"message": "Invalid token"}]})
        self.assertEqual(classify_error(error).category, ErrorCategory.AUTH)

    def test_connection_refused(self):
        classified = classify_error(httpx.ConnectError("[Errno 111] Connection refused", request=REQUEST))
        self.assertEqual(classified.message, "Connection error: Unable to connect to DeepSource API")
        self.assertEqual(classified.category, ErrorCategory.NETWORK)

    def test_timeout(self):
        classified = classify_error(httpx.ReadTimeout("timed out", request=REQUEST))
        self.assertEqual(classified.message, "Timeout error: DeepSource API request timed out")
        self.assertEqual(classified.category, ErrorCategory.TIMEOUT)

    def test_status_401(self):
        classified = classify_error(status_error(401))
        self.assertEqual(classified.message, "Authentication error: Invalid or expired API key")
        self.assertEqual(classified.category, ErrorCategory.AUTH)

    def test_status_429(self):
        classified = classify_error(status_error(429))
        self.assertEqual(classified.message, "Rate limit exceeded: Too many requests to DeepSource API")
        self.assertEqual(classified.category, ErrorCategory.RATE_LIMIT)

    def test_status_5xx(self):
        classified = classify_error(status_error(503))
        self.assertEqual(classified.message, "Server error (503): DeepSource API server error")
        self.assertEqual(classified.category, ErrorCategory.SERVER)

    def test_status_404(self):
        classified = classify_error(status_error(404))
        self.assertEqual(classified.message, "Not found (404): The requested resource was not found")
        self.assertEqual(classified.category, ErrorCategory.NOT_FOUND)

    def test_other_client_error_uses_reason_phrase(self):
        classified = classify_error(status_error(400))
        self.assertEqual(classified.message, "Client error (400): Bad Request")
        self.assertEqual(classified.category, ErrorCategory.CLIENT)

    def test_non_json_error_body_falls_back_to_status(self):
        classified = classify_error(status_error(500, text="<html>oops</html>"))
        self.assertEqual(classified.category, ErrorCategory.SERVER)

    def test_generic_exception(self):
        classified = classify_error(ValueError("something broke"))
        self.assertEqual(classified.message, "DeepSource API error: something broke")
        self.assertEqual(classified.category, ErrorCategory.UNKNOWN)

    def test_generic_exception_is_categorized(self):
        self.assertEqual(classify_error(RuntimeError("Cannot query field 'foo'")).category, ErrorCategory.SCHEMA)

    def test_non_exception_value(self):
        classified = classify_error({"weird": True})
        self.assertEqual(classified.message, "Unknown error occurred while communicating with DeepSource API")
        self.assertEqual(classified.category, ErrorCategory.UNKNOWN)

    def test_already_classified_passes_through(self):
        original = ClassifiedError("GraphQL Errors: x", ErrorCategory.GRAPHQL)
        self.assertIs(classify_error(original), original)


class TestRecovery(unittest.TestCase):
    """When failures become empty results."""

    def test_none_type_message_returns_empty(self):
        error = ClassifiedError("GraphQL Errors: 'NoneType' object has no attribute 'get'", ErrorCategory.GRAPHQL)
        self.assertEqual(recover_or_raise(error, [], "list"), [])

    def test_none_type_in_http_payload_returns_empty(self):
        error = status_error(400, json={"errors": [{"message": "NoneType object has no attribute get"}]})
        self.assertTrue(is_none_type_error(error))
        self.assertIsNone(recover_or_raise(error, None, "lookup"))

    def test_not_found_only_for_lookups(self):
        error = RuntimeError("Run not found")
        self.assertIsNone(recover_or_raise(error, None, "get_run", tolerate_not_found=True))
        with self.assertRaises(ClassifiedError) as ctx:
            recover_or_raise(error, [], "list_runs")
        self.assertEqual(ctx.exception.message, "DeepSource API error: Run not found")

    def test_other_errors_are_raised_classified(self):
        with self.assertRaises(ClassifiedError) as ctx:
            recover_or_raise(status_error(401), [], "list_projects")
        self.assertEqual(ctx.exception.category, ErrorCategory.AUTH)
        self.assertIsInstance(ctx.exception.__cause__, httpx.HTTPStatusError)

    def test_classified_error_is_reraised_unchanged(self):
        original = ClassifiedError("GraphQL Errors: boom", ErrorCategory.GRAPHQL)
        with self.assertRaises(ClassifiedError) as ctx:
            recover_or_raise(original, [], "list")
        self.assertIs(ctx.exception, original)


class TestHelpers(unittest.TestCase):

    def test_categorize_message(self):
        cases = {
            "Unauthorized request": ErrorCategory.AUTH,
            "Rate limit hit": ErrorCategory.RATE_LIMIT,
            "ECONNRESET by peer": ErrorCategory.NETWORK,
            "Request timed out": ErrorCategory.TIMEOUT,
            "Unknown argument 'x'": ErrorCategory.SCHEMA,
            "Repository does not exist": ErrorCategory.NOT_FOUND,
            "Internal error": ErrorCategory.SERVER,
            "weird": ErrorCategory.UNKNOWN,
        }
        for message, category in cases.items():
            with self.subTest(message=message):
                self.assertEqual(categorize_message(message), category)

    def test_graphql_error_messages_ignores_non_lists(self):
        self.assertEqual(graphql_error_messages(None), [])

    def test_is_error_with_message(self):
        self.assertTrue(is_error_with_message(ValueError("x")))
        self.assertFalse(is_error_with_message("x"))


if __name__ == "__main__":
    unittest.main()
