"""
Shared fakes for the DeepSource MCP Server tests.

Routes GraphQL requests to canned responses by operation marker so the
client can be exercised end to end without network access.
"""

import json
import os
import sys
from typing import Any, Callable, Dict, List, Tuple, Union
from unittest.mock import patch

import httpx

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from deepsource_mcp.config import Config


PROJECT_KEY = "https://abc123@deepsource.io"

VIEWER_RESPONSE = {
    "data": {
        "viewer": {
            "email": "dev@example.com",
            "accounts": {
                "edges": [
                    {
                        "node": {
                            "login": "acme",
                            "repositories": {
                                "edges": [
                                    {
                                        "node": {
                                            "name": "widgets",
                                            "defaultBranch": "main",
                                            "dsn": PROJECT_KEY,
                                            "isPrivate": False,
                                            "isActivated": True,
                                            "vcsProvider": "GITHUB",
                                            "vcsUrl": "https://github.com/acme/widgets",
                                        }
                                    },
                                    {"node": {"name": "no-dsn", "dsn": None}},
                                ]
                            },
                        }
                    }
                ]
            },
        }
    }
}

ResponseSpec = Union[Dict[str, Any], httpx.Response, Callable[[Dict[str, Any]], Any]]

# Ordered so that more specific markers win
MARKERS = (
    "viewer {",
    "getRepositoryIssues",
    "getRepositoryRuns",
    "getRunByCommit",
    "getRunIssues",
    "query getRun(",
    "getQualityMetrics",
    "getMetricHistory",
    "setRepositoryMetricThreshold",
    "updateRepositoryMetricSetting",
    "getDependencyVulnerabilities",
    "getComplianceReport",
)


class GraphQLRouter:
    """Records GraphQL calls and answers them from canned responses."""

    def __init__(self, responses: Dict[str, ResponseSpec]):
        self.responses = responses
        self.calls: List[Tuple[str, Dict[str, Any]]] = []
        self.headers: List[httpx.Headers] = []

    def _marker(self, query: str) -> str:
        for marker in MARKERS:
            if marker in query:
                return marker
        raise AssertionError(f"Unexpected query: {query[:80]}")

    def __call__(self, request: httpx.Request) -> httpx.Response:
        payload = json.loads(request.content)
        marker = self._marker(payload["query"])
        self.calls.append((marker, payload.get("variables") or {}))
        self.headers.append(request.headers)

        response = self.responses.get(marker, {"data": None})
        if callable(response):
            response = response(payload.get("variables") or {})
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json=response)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def count(self, marker: str) -> int:
        return sum(1 for called, _ in self.calls if called == marker)


def make_config(**overrides: str) -> Config:
    """Build a Config from a controlled environment."""
    env = {"DEEPSOURCE_API_KEY": "test-api-key", **overrides}
    with patch.dict(os.environ, env, clear=True), patch("deepsource_mcp.config.load_dotenv"):
        return Config()


def graphql_errors(*messages: Any, status: int = 200) -> httpx.Response:
    """A response carrying a GraphQL ``errors`` array."""
    return httpx.Response(status, json={"errors": [{"message": m} for m in messages]})


def connection(nodes: List[Any], has_next_page: bool = False, end_cursor: str = None, total_count: int = None) -> Dict[str, Any]:
    """A Relay connection wrapping ``nodes``."""
    return {
        "pageInfo": {
            "hasNextPage": has_next_page,
            "hasPreviousPage": False,
            "startCursor": "start" if nodes else None,
            "endCursor": end_cursor,
        },
        "totalCount": len(nodes) if total_count is None else total_count,
        "edges": [{"node": node} for node in nodes],
    }
