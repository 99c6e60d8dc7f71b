"""
Project service for the DeepSource MCP Server.

Lists the repositories activated on DeepSource for the token's accounts
and resolves project keys (repository DSNs) to repository coordinates.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from ..config import Config
from ..error_classifier import recover_or_raise
from ..extraction import collect_valid, dig
from ..mappers import map_project
from ..models import Project
from ..queries import VIEWER_PROJECTS_QUERY
from ..transport import GraphQLTransport


class ProjectService:
    """Service for DeepSource project lookups."""

    def __init__(self, config: Config, transport: GraphQLTransport):
        """
        Initialize project service.

        Args:
            config: Configuration instance
            transport: Shared GraphQL transport
        """
        self.config = config
        self.transport = transport

    async def list_projects(self) -> List[Project]:
        """
        List all projects across the viewer's accounts.

        Repositories without a DSN are skipped.

        Returns:
            Projects keyed by DSN; empty when upstream returns no viewer

        Raises:
            ClassifiedError: If the request fails
        """
        try:
            logger.info("Fetching DeepSource projects")
            data = await self.transport.execute(VIEWER_PROJECTS_QUERY)

            repositories: List[Any] = []
            for account_edge in dig(data, "viewer", "accounts", "edges") or []:
                repository_edges = dig(account_edge, "node", "repositories", "edges") or []
                for repository_edge in repository_edges:
                    node = dig(repository_edge, "node")
                    if node is None:
                        continue
                    # Login lives on the account, not the repository
                    repositories.append({**node, "login": dig(account_edge, "node", "login")})

            projects = collect_valid(repositories, map_project, label="repository")
            logger.info(f"Found {len(projects)} projects")
            return projects

        except Exception as e:
            return recover_or_raise(e, [], "list_projects")

    async def find_project(self, project_key: str) -> Optional[Project]:
        """Resolve a project key to its project, or None if unknown."""
        for project in await self.list_projects():
            if project.key == project_key:
                return project
        logger.warning(f"Project with key {project_key} not found")
        return None

    @staticmethod
    def repository_variables(project: Project) -> Dict[str, Any]:
        """GraphQL variables addressing the project's repository."""
        return {
            "name": project.name,
            "login": project.repository.login,
            "provider": project.repository.provider,
        }
