"""
DeepSource MCP Server

A Model Context Protocol server exposing DeepSource's GraphQL API: projects,
issues, analysis runs, quality metrics, dependency vulnerabilities and
compliance reports.
"""

__version__ = "1.0.0"
__author__ = "DeepSource MCP Server Team"

from .server import DeepSourceMCPServer
from .client import DeepSourceClient
from .config import Config
from .models import (
    PaginationParams,
    PaginatedResponse,
    PageInfo,
    Project,
    Issue,
    Run,
    VulnerabilityOccurrence,
    MetricHistoryResponse,
    ComplianceReport,
)
from .exceptions import (
    DeepSourceError,
    ConfigurationError,
    ClassifiedError,
    ErrorCategory,
)

__all__ = [
    # Core
    "DeepSourceMCPServer",
    "DeepSourceClient",
    "Config",
    # Models
    "PaginationParams",
    "PaginatedResponse",
    "PageInfo",
    "Project",
    "Issue",
    "Run",
    "VulnerabilityOccurrence",
    "MetricHistoryResponse",
    "ComplianceReport",
    # Exceptions
    "DeepSourceError",
    "ConfigurationError",
    "ClassifiedError",
    "ErrorCategory",
]
