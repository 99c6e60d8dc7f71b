"""
GraphQL transport for the DeepSource API.

A thin wrapper around a shared ``httpx.AsyncClient``. It holds only static
configuration (base URL, timeout, auth header), so one instance serves
concurrent calls. Retries and cancellation are not handled here.
"""

import time
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from .config import Config
from .error_classifier import graphql_error_messages
from .exceptions import ClassifiedError, ErrorCategory
from .validation import sanitize_for_logging


class GraphQLTransport:
    """Executes GraphQL documents against DeepSource."""

    def __init__(self, config: Config, transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the transport.

        Args:
            config: Configuration instance
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.config.api_url,
                headers=self.config.auth_headers,
                timeout=self.config.request_timeout,
                transport=self._transport,
            )
        return self._client

    async def execute(self, query: str, variables: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        POST a GraphQL document and return its ``data`` object.

        Args:
            query: GraphQL query or mutation
            variables: Variables for the document

        Returns:
            The response ``data``; ``{}`` when the body has neither data nor errors

        Raises:
            ClassifiedError: When the response carries GraphQL errors
            httpx.HTTPError: On transport failures and non-2xx responses
        """
        payload = {"query": query, "variables": variables or {}}
        logger.debug(f"Executing GraphQL request with variables: {sanitize_for_logging(payload['variables'])}")
        started = time.perf_counter()

        response = await self.client.post("", json=payload)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"GraphQL request completed: HTTP {response.status_code} in {elapsed_ms:.0f}ms")
        response.raise_for_status()

        body = response.json()
        if not isinstance(body, dict):
            raise ClassifiedError(
                "Invalid response format: expected a JSON object",
                ErrorCategory.FORMAT,
                metadata={"status": response.status_code},
            )

        errors = body.get("errors")
        if errors:
            messages = graphql_error_messages(errors)
            raise ClassifiedError(
                f"GraphQL Errors: {', '.join(messages)}",
                ErrorCategory.GRAPHQL,
                original_error=errors,
                metadata={"status": response.status_code},
            )

        data = body.get("data")
        return data if isinstance(data, dict) else {}

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
        self._client = None
