"""
Configuration constants for the DeepSource MCP Server.

This module centralizes all magic numbers and upstream sentinel values
so that pagination, extraction and error handling share one source.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class PaginationConstants:
    """Constants for cursor and offset pagination."""

    # Relay page sizes
    DEFAULT_PAGE_SIZE: int = 10
    MULTI_PAGE_SIZE: int = 50

    # Multi-page fetching
    DEFAULT_MAX_PAGES: int = 10


@dataclass(frozen=True)
class ApiConstants:
    """Constants for talking to the DeepSource GraphQL endpoint."""

    BASE_URL: str = "https://api.deepsource.io/graphql/"
    REQUEST_TIMEOUT: float = 30.0
    SERVER_NAME: str = "deepsource-mcp-server"


@dataclass(frozen=True)
class ProcessingConstants:
    """Limits applied while walking upstream payloads."""

    # Hard bound on edges processed in one generator pass
    MAX_ITERATIONS: int = 10000

    # Nested connection sizes requested from upstream
    PROJECTS_PER_ACCOUNT: int = 100
    OCCURRENCES_PER_ISSUE: int = 100
    HISTORY_VALUES: int = 50

    # Runs scanned per page when searching a branch
    RUNS_PAGE_SIZE: int = 50


@dataclass(frozen=True)
class ErrorSentinels:
    """Substrings the upstream API uses to signal absent objects."""

    NONE_TYPE: str = "NoneType"
    NOT_FOUND: str = "not found"


@dataclass(frozen=True)
class ComplianceConstants:
    """Compliance report scoring and reference material."""

    CRITICAL_WEIGHT: int = 10
    MAJOR_WEIGHT: int = 5
    MINOR_WEIGHT: int = 1
    MAX_SCORE: int = 100

    # Report type -> (GraphQL field, display title)
    REPORT_FIELDS: Dict[str, Tuple[str, str]] = field(default_factory=lambda: {
        "OWASP_TOP_10": ("owaspTop10", "OWASP Top 10"),
        "SANS_TOP_25": ("sansTop25", "SANS Top 25"),
        "MISRA_C": ("misraC", "MISRA C"),
    })

    RESOURCES: Dict[str, str] = field(default_factory=lambda: {
        "OWASP_TOP_10": "https://owasp.org/www-project-top-ten/",
        "SANS_TOP_25": "https://www.sans.org/top25-software-errors/",
        "MISRA_C": "https://www.misra.org.uk/",
    })


# Global instances for easy access
PAGINATION = PaginationConstants()
API = ApiConstants()
PROCESSING = ProcessingConstants()
SENTINELS = ErrorSentinels()
COMPLIANCE = ComplianceConstants()
