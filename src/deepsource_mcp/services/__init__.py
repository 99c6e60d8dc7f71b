"""
Service layer for the DeepSource MCP Server.

Contains one service per API area, all sharing a single GraphQL transport
and resolving project keys through the project service.
"""

from .project_service import ProjectService
from .issue_service import IssueService
from .run_service import RunService
from .metric_service import MetricService
from .security_service import SecurityService

__all__ = [
    "ProjectService",
    "IssueService",
    "RunService",
    "MetricService",
    "SecurityService",
]
