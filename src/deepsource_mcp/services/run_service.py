"""
Run service for the DeepSource MCP Server.

Lists analysis runs, looks runs up by UUID or commit, and finds the
issues raised by the most recent run on a branch.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from ..config import Config
from ..constants import PROCESSING
from ..error_classifier import recover_or_raise
from ..exceptions import ClassifiedError, ErrorCategory
from ..extraction import collect_valid, dig, extract_connection, extract_items
from ..mappers import Valid, map_occurrence, map_run
from ..models import (
    Issue,
    PageInfo,
    PaginatedResponse,
    PaginationParams,
    Project,
    RecentRunIssues,
    Run,
)
from ..pagination import (
    create_empty_paginated_response,
    fetch_multiple_pages,
    paginate,
    process_pagination_params,
)
from ..queries import REPOSITORY_RUNS_QUERY, RUN_BY_COMMIT_QUERY, RUN_BY_UID_QUERY, RUN_ISSUES_QUERY
from ..transport import GraphQLTransport
from ..validation import InputValidator
from .project_service import ProjectService


class RunService:
    """Service for analysis runs."""

    def __init__(self, config: Config, transport: GraphQLTransport, projects: ProjectService):
        self.config = config
        self.transport = transport
        self.projects = projects

    async def list_runs(
        self,
        project_key: str,
        pagination: Optional[PaginationParams] = None,
    ) -> PaginatedResponse[Run]:
        """
        List analysis runs for a project, newest first.

        Returns:
            A page of runs; the empty page for unknown projects
        """
        plan = process_pagination_params(pagination)
        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return create_empty_paginated_response()

            async def fetch_page(params: PaginationParams) -> PaginatedResponse[Run]:
                return await self._fetch_runs_page(project, params)

            return await paginate(plan, fetch_page)

        except Exception as e:
            return recover_or_raise(e, create_empty_paginated_response(), "list_runs")

    async def _fetch_runs_page(self, project: Project, params: PaginationParams) -> PaginatedResponse[Run]:
        variables = {**ProjectService.repository_variables(project), **params.to_variables()}
        data = await self.transport.execute(REPOSITORY_RUNS_QUERY, variables)
        return extract_items(data, "analysisRuns", map_run)

    async def get_run(self, identifier: str) -> Optional[Run]:
        """
        Get a run by run UUID or commit OID.

        Args:
            identifier: Run UUID, or a commit SHA

        Returns:
            The run, or None if it does not exist
        """
        identifier = InputValidator.validate_run_identifier(identifier)
        if InputValidator.is_run_uid(identifier):
            query, variables, field = RUN_BY_UID_QUERY, {"runUid": identifier}, "run"
        else:
            query, variables, field = RUN_BY_COMMIT_QUERY, {"commitOid": identifier}, "runByCommit"

        try:
            logger.info(f"Fetching run {identifier}")
            data = await self.transport.execute(query, variables)
            node = dig(data, field)
            if node is None:
                return None

            parsed = map_run(node)
            if not isinstance(parsed, Valid):
                logger.warning(f"Run {identifier} is malformed: {parsed.reason}")
                return None
            return parsed.record

        except Exception as e:
            return recover_or_raise(e, None, "get_run", tolerate_not_found=True)

    async def find_most_recent_run(self, project_key: str, branch_name: str) -> Run:
        """
        Find the newest run on a branch.

        Scans runs in pages of 50, up to the configured page limit.

        Raises:
            ClassifiedError: If the branch has no runs
        """
        InputValidator.validate_branch_name(branch_name)

        runs: List[Run] = []
        try:
            project = await self.projects.find_project(project_key)
            if project is not None:

                async def fetcher(cursor: Optional[str], size: int) -> PaginatedResponse[Run]:
                    return await self._fetch_runs_page(project, PaginationParams(first=size, after=cursor))

                result = await fetch_multiple_pages(
                    fetcher,
                    max_pages=self.config.max_pages,
                    page_size=PROCESSING.RUNS_PAGE_SIZE,
                )
                runs = result.response.items
        except Exception as e:
            runs = recover_or_raise(e, [], "find_most_recent_run")

        branch_runs = [run for run in runs if run.branch_name == branch_name]
        if not branch_runs:
            raise ClassifiedError(
                f"No runs found for branch '{branch_name}' in project '{project_key}'",
                ErrorCategory.NOT_FOUND,
                metadata={"project_key": project_key, "branch": branch_name},
            )

        # ISO-8601 timestamps from upstream sort lexicographically
        most_recent = max(branch_runs, key=lambda run: run.created_at or "")
        logger.info(f"Most recent run on {branch_name}: {most_recent.run_uid}")
        return most_recent

    async def get_recent_run_issues(
        self,
        project_key: str,
        branch_name: str,
        pagination: Optional[PaginationParams] = None,
    ) -> RecentRunIssues:
        """
        Get the issues raised by the most recent run on a branch.

        Returns:
            The run together with a page of its issue occurrences
        """
        run = await self.find_most_recent_run(project_key, branch_name)
        params = process_pagination_params(pagination).params
        variables: Dict[str, Any] = {"runUid": run.run_uid}
        variables.update({
            key: value for key, value in params.to_variables().items()
            if key in ("first", "after", "before", "last")
        })

        try:
            data = await self.transport.execute(RUN_ISSUES_QUERY, variables)
        except Exception as e:
            return RecentRunIssues(
                run=run,
                issues=recover_or_raise(e, create_empty_paginated_response(), "get_recent_run_issues"),
            )

        return RecentRunIssues(run=run, issues=self._collect_check_occurrences(data))

    @staticmethod
    def _collect_check_occurrences(data: Dict[str, Any]) -> PaginatedResponse[Issue]:
        """Merge occurrence pages from every check of a run."""
        issues: List[Issue] = []
        has_next_page = has_previous_page = False
        start_cursor = end_cursor = None
        total_count = 0

        for check_edge in dig(data, "run", "checks", "edges") or []:
            check = dig(check_edge, "node")
            if check is None:
                continue
            page = extract_connection(check, "occurrences", root=())
            issues.extend(collect_valid(page.items, map_occurrence, label="occurrence"))
            has_next_page = has_next_page or page.page_info.has_next_page
            has_previous_page = has_previous_page or page.page_info.has_previous_page
            start_cursor = start_cursor or page.page_info.start_cursor
            end_cursor = page.page_info.end_cursor or end_cursor
            total_count += page.total_count

        return PaginatedResponse(
            items=issues,
            page_info=PageInfo(
                has_next_page=has_next_page,
                has_previous_page=has_previous_page,
                start_cursor=start_cursor,
                end_cursor=end_cursor,
            ),
            total_count=total_count,
        )
