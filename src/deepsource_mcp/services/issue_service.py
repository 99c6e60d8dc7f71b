"""
Issue service for the DeepSource MCP Server.

Fetches a repository's reported issues and flattens every occurrence into
its own Issue record.
"""

from typing import List, Optional

from loguru import logger

from ..config import Config
from ..error_classifier import recover_or_raise
from ..extraction import collect_valid, extract_connection
from ..mappers import map_repository_issue
from ..models import Issue, PaginatedResponse, PaginationParams, Project
from ..pagination import create_empty_paginated_response, paginate, process_pagination_params
from ..queries import REPOSITORY_ISSUES_QUERY
from ..transport import GraphQLTransport
from .project_service import ProjectService


class IssueService:
    """Service for repository issues."""

    def __init__(self, config: Config, transport: GraphQLTransport, projects: ProjectService):
        self.config = config
        self.transport = transport
        self.projects = projects

    async def get_issues(
        self,
        project_key: str,
        pagination: Optional[PaginationParams] = None,
        analyzer_in: Optional[List[str]] = None,
        tags: Optional[List[str]] = None,
        path: Optional[str] = None,
    ) -> PaginatedResponse[Issue]:
        """
        Get issues for a project.

        Args:
            project_key: Project key (repository DSN)
            pagination: Offset or cursor pagination, optionally multi-page
            analyzer_in: Only issues raised by these analyzer shortcodes
            tags: Only issues carrying these tags
            path: Only issues under this file path

        Returns:
            One Issue per occurrence; the empty page for unknown projects

        Raises:
            ClassifiedError: If the request fails for a reason other than
                an absent upstream object
        """
        plan = process_pagination_params(pagination)
        filters = {"analyzerIn": analyzer_in, "tags": tags, "path": path}

        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return create_empty_paginated_response()

            logger.info(f"Fetching issues for {project.name}")

            async def fetch_page(params: PaginationParams) -> PaginatedResponse[Issue]:
                return await self._fetch_page(project, params, filters)

            return await paginate(plan, fetch_page)

        except Exception as e:
            return recover_or_raise(e, create_empty_paginated_response(), "get_issues")

    async def _fetch_page(self, project: Project, params: PaginationParams, filters: dict) -> PaginatedResponse[Issue]:
        variables = {
            **ProjectService.repository_variables(project),
            **params.to_variables(),
            **{key: value for key, value in filters.items() if value is not None},
        }
        data = await self.transport.execute(REPOSITORY_ISSUES_QUERY, variables)
        page = extract_connection(data, "issues")

        issues: List[Issue] = []
        for occurrences in collect_valid(page.items, map_repository_issue, label="issue"):
            issues.extend(occurrences)

        return PaginatedResponse(items=issues, page_info=page.page_info, total_count=page.total_count)

    async def get_issue(self, project_key: str, issue_id: str) -> Optional[Issue]:
        """Find a single issue occurrence by id in the project's first page of issues."""
        result = await self.get_issues(project_key)
        return next((issue for issue in result.items if issue.id == issue_id), None)
