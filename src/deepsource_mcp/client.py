"""
DeepSource API client.

A single entry point over the per-area services. All services share one
GraphQL transport, so one client can serve concurrent tool calls.
"""

from typing import Dict, List, Optional

import httpx
from loguru import logger

from .config import Config
from .models import (
    ComplianceReport,
    Issue,
    MetricHistoryResponse,
    PaginatedResponse,
    PaginationParams,
    Project,
    RecentRunIssues,
    RepositoryMetric,
    Run,
    VulnerabilityOccurrence,
)
from .services import IssueService, MetricService, ProjectService, RunService, SecurityService
from .transport import GraphQLTransport


class DeepSourceClient:
    """Client for the DeepSource GraphQL API."""

    def __init__(self, config: Config, http_transport: Optional[httpx.AsyncBaseTransport] = None):
        """
        Initialize the client and its services.

        Args:
            config: Configuration instance
            http_transport: Optional httpx transport override
        """
        self.config = config
        self.transport = GraphQLTransport(config, transport=http_transport)

        self.projects = ProjectService(config, self.transport)
        self.issues = IssueService(config, self.transport, self.projects)
        self.runs = RunService(config, self.transport, self.projects)
        self.metrics = MetricService(config, self.transport, self.projects)
        self.security = SecurityService(config, self.transport, self.projects)
        logger.debug(f"DeepSource client ready for {config.api_url}")

    async def __aenter__(self) -> "DeepSourceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.transport.aclose()

    # Projects and issues

    async def list_projects(self) -> List[Project]:
        return await self.projects.list_projects()

    async def get_issues(
        self,
        project_key: str,
        pagination: Optional[PaginationParams] = None,
        analyzer_in: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        path: Optional[str] = None,
    ) -> PaginatedResponse[Issue]:
        return await self.issues.get_issues(project_key, pagination, analyzer_in, tags, path)

    async def get_issue(self, project_key: str, issue_id: str) -> Optional[Issue]:
        return await self.issues.get_issue(project_key, issue_id)

    # Runs

    async def list_runs(
        self, project_key: str, pagination: Optional[PaginationParams] = None
    ) -> PaginatedResponse[Run]:
        return await self.runs.list_runs(project_key, pagination)

    async def get_run(self, identifier: str) -> Optional[Run]:
        return await self.runs.get_run(identifier)

    async def find_most_recent_run(self, project_key: str, branch_name: str) -> Run:
        return await self.runs.find_most_recent_run(project_key, branch_name)

    async def get_recent_run_issues(
        self, project_key: str, branch_name: str, pagination: Optional[PaginationParams] = None
    ) -> RecentRunIssues:
        return await self.runs.get_recent_run_issues(project_key, branch_name, pagination)

    # Metrics

    async def get_quality_metrics(
        self, project_key: str, shortcode_in: Optional[List[str]] = None
    ) -> List[RepositoryMetric]:
        return await self.metrics.get_quality_metrics(project_key, shortcode_in)

    async def set_metric_threshold(
        self,
        project_key: str,
        repository_id: str,
        metric_shortcode: str,
        metric_key: str,
        threshold: Optional[float],
    ) -> Dict[str, bool]:
        return await self.metrics.set_metric_threshold(
            project_key, repository_id, metric_shortcode, metric_key, threshold
        )

    async def update_metric_setting(
        self,
        project_key: str,
        repository_id: str,
        metric_shortcode: str,
        is_reported: bool,
        is_threshold_enforced: bool,
    ) -> Dict[str, bool]:
        return await self.metrics.update_metric_setting(
            project_key, repository_id, metric_shortcode, is_reported, is_threshold_enforced
        )

    async def get_metric_history(
        self,
        project_key: str,
        metric_shortcode: str,
        metric_key: str = "AGGREGATE",
        limit: Optional[int] = None,
    ) -> Optional[MetricHistoryResponse]:
        return await self.metrics.get_metric_history(project_key, metric_shortcode, metric_key, limit)

    # Security

    async def get_dependency_vulnerabilities(
        self, project_key: str, pagination: Optional[PaginationParams] = None
    ) -> PaginatedResponse[VulnerabilityOccurrence]:
        return await self.security.get_dependency_vulnerabilities(project_key, pagination)

    async def get_compliance_report(self, project_key: str, report_type: str) -> Optional[ComplianceReport]:
        return await self.security.get_compliance_report(project_key, report_type)
