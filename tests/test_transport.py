#!/usr/bin/env python3
"""Tests for the GraphQL transport."""

import unittest

import httpx

from graphql_fakes import GraphQLRouter, graphql_errors, make_config

from deepsource_mcp.exceptions import ClassifiedError, ErrorCategory
from deepsource_mcp.queries import VIEWER_PROJECTS_QUERY
from deepsource_mcp.transport import GraphQLTransport


class TestGraphQLTransport(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.config = make_config()

    async def _execute(self, response):
        router = GraphQLRouter({"viewer {": response})
        transport = GraphQLTransport(self.config, transport=router.transport())
        try:
            return router, await transport.execute(VIEWER_PROJECTS_QUERY, {"x": 1})
        finally:
            await transport.aclose()

    async def test_sends_bearer_token(self):
        router, data = await self._execute({"data": {"viewer": {"email": "a@b.c"}}})
        self.assertEqual(data, {"viewer": {"email": "a@b.c"}})
        self.assertEqual(router.headers[0]["authorization"], "Bearer test-api-key")
        self.assertEqual(router.calls[0][1], {"x": 1})

    async def test_graphql_errors_are_joined(self):
        with self.assertRaises(ClassifiedError) as ctx:
            await self._execute(graphql_errors("Error 1", "Error 2"))
        self.assertEqual(ctx.exception.message, "GraphQL Errors: Error 1, Error 2")
        self.assertEqual(ctx.exception.category, ErrorCategory.GRAPHQL)

    async def test_missing_data_is_empty(self):
        _, data = await self._execute({})
        self.assertEqual(data, {})

    async def test_non_object_body_is_format_error(self):
        with self.assertRaises(ClassifiedError) as ctx:
            await self._execute(httpx.Response(200, json=[1, 2]))
        self.assertEqual(ctx.exception.category, ErrorCategory.FORMAT)

    async def test_http_error_status_raises(self):
        with self.assertRaises(httpx.HTTPStatusError):
            await self._execute(httpx.Response(401, json={"detail": "nope"}))


if __name__ == "__main__":
    unittest.main()
