"""
Security service for the DeepSource MCP Server.

Reads dependency vulnerability occurrences and compliance reports
(OWASP Top 10, SANS Top 25, MISRA C).
"""

from typing import Optional

from loguru import logger

from ..config import Config
from ..constants import COMPLIANCE
from ..error_classifier import recover_or_raise
from ..exceptions import ClassifiedError, ErrorCategory
from ..extraction import dig, extract_connection
from ..mappers import Valid, iter_vulnerability_occurrences, map_compliance_report
from ..models import (
    ComplianceReport,
    PaginatedResponse,
    PaginationParams,
    Project,
    ReportType,
    VulnerabilityOccurrence,
)
from ..pagination import create_empty_paginated_response, paginate, process_pagination_params
from ..queries import DEPENDENCY_VULNERABILITIES_QUERY, compliance_report_query
from ..transport import GraphQLTransport
from .project_service import ProjectService


class SecurityService:
    """Service for dependency vulnerabilities and compliance reports."""

    def __init__(self, config: Config, transport: GraphQLTransport, projects: ProjectService):
        self.config = config
        self.transport = transport
        self.projects = projects

    async def get_dependency_vulnerabilities(
        self,
        project_key: str,
        pagination: Optional[PaginationParams] = None,
    ) -> PaginatedResponse[VulnerabilityOccurrence]:
        """
        Get dependency vulnerability occurrences for a project.

        Malformed occurrences are logged and skipped.

        Returns:
            A page of occurrences; the empty page for unknown projects
        """
        plan = process_pagination_params(pagination)
        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return create_empty_paginated_response()

            async def fetch_page(params: PaginationParams) -> PaginatedResponse[VulnerabilityOccurrence]:
                return await self._fetch_page(project, params)

            return await paginate(plan, fetch_page)

        except Exception as e:
            return recover_or_raise(e, create_empty_paginated_response(), "get_dependency_vulnerabilities")

    async def _fetch_page(self, project: Project, params: PaginationParams) -> PaginatedResponse[VulnerabilityOccurrence]:
        variables = {**ProjectService.repository_variables(project), **params.to_variables()}
        logger.info(f"Fetching dependency vulnerabilities for {project.name}")
        data = await self.transport.execute(DEPENDENCY_VULNERABILITIES_QUERY, variables)

        page = extract_connection(data, "dependencyVulnerabilityOccurrences")
        occurrences = list(iter_vulnerability_occurrences(page.items))
        logger.info(f"Found {len(occurrences)} valid vulnerability occurrences")
        return PaginatedResponse(items=occurrences, page_info=page.page_info, total_count=page.total_count)

    async def get_compliance_report(self, project_key: str, report_type: str) -> Optional[ComplianceReport]:
        """
        Get a compliance report for a project.

        Args:
            project_key: Project key (repository DSN)
            report_type: ``OWASP_TOP_10``, ``SANS_TOP_25`` or ``MISRA_C``

        Returns:
            The report with its compliance score, or None when unavailable

        Raises:
            ClassifiedError: For unsupported report types and failed requests
        """
        if report_type not in COMPLIANCE.REPORT_FIELDS:
            raise ClassifiedError(
                f"Unsupported report type: {report_type}",
                ErrorCategory.CLIENT,
                metadata={"supported": sorted(COMPLIANCE.REPORT_FIELDS)},
            )
        report_field, title = COMPLIANCE.REPORT_FIELDS[report_type]

        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return None

            logger.info(f"Fetching {title} report for {project.name}")
            data = await self.transport.execute(
                compliance_report_query(report_field),
                ProjectService.repository_variables(project),
            )
            node = dig(data, "repository", "reports", report_field)
            if node is None:
                return None

            parsed = map_compliance_report(ReportType(report_type), title, node)
            return parsed.record if isinstance(parsed, Valid) else None

        except Exception as e:
            return recover_or_raise(e, None, "get_compliance_report", tolerate_not_found=True)
