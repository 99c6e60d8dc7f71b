"""
DeepSource MCP Server

Exposes DeepSource's code quality, analysis run, metric and security data
as Model Context Protocol tools using FastMCP.
"""

import json
import sys
import traceback
from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from mcp.server.fastmcp import FastMCP
from mcp.server.fastmcp.exceptions import ToolError

from .client import DeepSourceClient
from .config import Config
from .exceptions import DeepSourceError, ConfigurationError
from .models import PaginationParams
from .pagination import create_pagination_help
from . import handlers

# Loguru logger is configured in main.py


def _pagination(
    offset: Optional[int] = None,
    first: Optional[int] = None,
    after: Optional[str] = None,
    before: Optional[str] = None,
    last: Optional[int] = None,
    page_size: Optional[int] = None,
    max_pages: Optional[int] = None,
) -> PaginationParams:
    return PaginationParams(
        offset=offset, first=first, after=after, before=before, last=last,
        page_size=page_size, max_pages=max_pages,
    )


def tool_result(response: Dict[str, Any]) -> str:
    """
    Unwrap a handler payload into tool text.

    Raises:
        ToolError: When the payload is flagged ``isError``; FastMCP reports
            the call as failed with the payload text
    """
    text = "\n".join(part["text"] for part in response.get("content", []) if part.get("type") == "text")
    if response.get("isError"):
        raise ToolError(text)
    return text


class DeepSourceMCPServer:
    """Main MCP server class wiring the DeepSource client to FastMCP tools."""

    def __init__(
        self,
        env_file: Optional[str] = None,
        config: Optional[Config] = None,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize the DeepSource MCP server.

        Args:
            env_file: Optional path to environment file
            config: Pre-built configuration (skips environment loading)
            http_transport: Optional httpx transport override
        """
        self.config = config
        self._initialized = False

        if self.config is None:
            try:
                self.config = Config(env_file)
                logger.info("✅ Configuration loaded successfully")
            except ConfigurationError as e:
                logger.error(f"❌ Configuration error: {e.message}")
                if 'missing_variables' in e.details:
                    logger.error("Required environment variables:")
                    for var in e.details['missing_variables']:
                        logger.error(f"  - {var}")
                sys.exit(1)

        self.mcp = FastMCP(self.config.server_name)
        self.client = DeepSourceClient(self.config, http_transport=http_transport)

        self._register_tools()

        self._initialized = True
        logger.info("🚀 DeepSource MCP Server initialized successfully")

    def _register_tools(self) -> None:
        """Register all MCP tools with the server."""
        try:
            self._register_project_tools()
            self._register_run_tools()
            self._register_metric_tools()
            self._register_security_tools()
            logger.info("✅ All MCP tools registered successfully")

        except Exception as e:
            logger.error(f"❌ Tool registration failed: {e}")
            raise DeepSourceError(f"Failed to register tools: {str(e)}", cause=e)

    def _register_project_tools(self) -> None:
        """Register project and issue tools."""
        client = self.client

        @self.mcp.tool()
        async def projects() -> str:
            """List all DeepSource projects accessible with the configured API key."""
            return tool_result(await handlers.handle_projects(client))

        @self.mcp.tool(description=(
            "Get issues reported by DeepSource for a project, optionally filtered by "
            "analyzer shortcodes, tags or file path.\n\n" + create_pagination_help()
        ))
        async def project_issues(
            project_key: str,
            offset: Optional[int] = None,
            first: Optional[int] = None,
            after: Optional[str] = None,
            before: Optional[str] = None,
            last: Optional[int] = None,
            page_size: Optional[int] = None,
            max_pages: Optional[int] = None,
            analyzer_in: Optional[List[str]] = None,
            tags: Optional[List[str]] = None,
            path: Optional[str] = None,
        ) -> str:
            pagination = _pagination(offset, first, after, before, last, page_size, max_pages)
            return tool_result(await handlers.handle_project_issues(
                client, project_key, pagination, analyzer_in, tags, path
            ))

    def _register_run_tools(self) -> None:
        """Register analysis run tools."""
        client = self.client

        @self.mcp.tool(description="List analysis runs for a project.\n\n" + create_pagination_help())
        async def runs(
            project_key: str,
            offset: Optional[int] = None,
            first: Optional[int] = None,
            after: Optional[str] = None,
            before: Optional[str] = None,
            last: Optional[int] = None,
            page_size: Optional[int] = None,
            max_pages: Optional[int] = None,
        ) -> str:
            pagination = _pagination(offset, first, after, before, last, page_size, max_pages)
            return tool_result(await handlers.handle_runs(client, project_key, pagination))

        @self.mcp.tool()
        async def run(run_identifier: str) -> str:
            """Get a single analysis run by run UUID or commit SHA."""
            return tool_result(await handlers.handle_run(client, run_identifier))

        @self.mcp.tool(description=(
            "Get issues raised by the most recent analysis run on a branch.\n\n"
            + create_pagination_help()
        ))
        async def recent_run_issues(
            project_key: str,
            branch_name: str,
            first: Optional[int] = None,
            after: Optional[str] = None,
            before: Optional[str] = None,
            last: Optional[int] = None,
        ) -> str:
            pagination = _pagination(first=first, after=after, before=before, last=last)
            return tool_result(await handlers.handle_recent_run_issues(
                client, project_key, branch_name, pagination
            ))

    def _register_metric_tools(self) -> None:
        """Register quality metric tools."""
        client = self.client

        @self.mcp.tool()
        async def quality_metrics(project_key: str, shortcode_in: Optional[List[str]] = None) -> str:
            """Get code quality metrics (coverage, duplication, ...) with threshold status."""
            return tool_result(await handlers.handle_quality_metrics(client, project_key, shortcode_in))

        @self.mcp.tool()
        async def update_metric_threshold(
            project_key: str,
            repository_id: str,
            metric_shortcode: str,
            metric_key: str,
            threshold_value: Optional[float] = None,
        ) -> str:
            """Set the threshold of a quality metric, or remove it with a null value."""
            return tool_result(await handlers.handle_update_metric_threshold(
                client, project_key, repository_id, metric_shortcode, metric_key, threshold_value
            ))

        @self.mcp.tool()
        async def update_metric_setting(
            project_key: str,
            repository_id: str,
            metric_shortcode: str,
            is_reported: bool,
            is_threshold_enforced: bool,
        ) -> str:
            """Choose whether a metric is reported and whether its threshold is enforced."""
            return tool_result(await handlers.handle_update_metric_setting(
                client, project_key, repository_id, metric_shortcode, is_reported, is_threshold_enforced
            ))

        @self.mcp.tool()
        async def metric_history(
            project_key: str,
            metric_shortcode: str,
            metric_key: str = "AGGREGATE",
            limit: Optional[int] = None,
        ) -> str:
            """Get historical values of a metric and whether it is trending in the right direction."""
            return tool_result(await handlers.handle_metric_history(
                client, project_key, metric_shortcode, metric_key, limit
            ))

    def _register_security_tools(self) -> None:
        """Register dependency vulnerability and compliance tools."""
        client = self.client

        @self.mcp.tool(description=(
            "Get dependency vulnerabilities for a project with severity and remediation advice.\n\n"
            + create_pagination_help()
        ))
        async def dependency_vulnerabilities(
            project_key: str,
            offset: Optional[int] = None,
            first: Optional[int] = None,
            after: Optional[str] = None,
            before: Optional[str] = None,
            last: Optional[int] = None,
            page_size: Optional[int] = None,
            max_pages: Optional[int] = None,
        ) -> str:
            pagination = _pagination(offset, first, after, before, last, page_size, max_pages)
            return tool_result(await handlers.handle_dependency_vulnerabilities(client, project_key, pagination))

        @self.mcp.tool()
        async def compliance_report(project_key: str, report_type: str) -> str:
            """Get an OWASP_TOP_10, SANS_TOP_25 or MISRA_C compliance report with recommendations."""
            return tool_result(await handlers.handle_compliance_report(client, project_key, report_type))

    def get_status(self) -> Dict[str, Any]:
        """Server and configuration status, without secrets."""
        return {"initialized": self._initialized, **self.config.get_status()}

    def run(self, transport: str = 'stdio') -> None:
        """
        Run the MCP server.

        Args:
            transport: Transport type ('stdio' or 'sse')
        """
        try:
            if not self._initialized:
                raise DeepSourceError("Server not properly initialized")

            logger.info("🛠️ Available tools:")
            logger.info("  📁 Projects: projects, project_issues")
            logger.info("  🏃 Runs: runs, run, recent_run_issues")
            logger.info("  📊 Metrics: quality_metrics, update_metric_threshold, update_metric_setting, metric_history")
            logger.info("  🔒 Security: dependency_vulnerabilities, compliance_report")
            logger.debug(f"Status: {json.dumps(self.get_status())}")

            logger.info(f"🎯 Starting MCP server with {transport} transport...")
            self.mcp.run(transport=transport)

        except KeyboardInterrupt:
            logger.info("🛑 Server stopped by user")
        except Exception as e:
            logger.error(f"❌ Server error: {e}")
            logger.error(traceback.format_exc())
            sys.exit(1)
