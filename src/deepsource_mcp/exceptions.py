"""
Custom exceptions for the DeepSource MCP Server.

Provides the base error type, configuration errors and the classified
error raised for every failed call against the DeepSource API.
"""

from enum import Enum
from typing import Optional, Dict, Any
from loguru import logger


class ErrorCategory(Enum):
    """Categories assigned to errors by the error classifier."""
    AUTH = "AUTHENTICATION_ERROR"
    NETWORK = "NETWORK_ERROR"
    SERVER = "SERVER_ERROR"
    CLIENT = "CLIENT_ERROR"
    TIMEOUT = "TIMEOUT_ERROR"
    RATE_LIMIT = "RATE_LIMIT_ERROR"
    SCHEMA = "SCHEMA_ERROR"
    NOT_FOUND = "NOT_FOUND_ERROR"
    FORMAT = "FORMAT_ERROR"
    GRAPHQL = "GRAPHQL_ERROR"
    UNKNOWN = "UNKNOWN_ERROR"


class DeepSourceError(Exception):
    """Base exception for all DeepSource MCP Server errors."""

    log_level = "ERROR"

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause
        logger.log(self.log_level, f"{self.__class__.__name__}: {message}")
        if details:
            logger.log(self.log_level, f"Error details: {details}")
        if cause:
            logger.log(self.log_level, f"Caused by: {cause!r}")


class ConfigurationError(DeepSourceError):
    """Raised when there are configuration issues."""

    def __init__(self, message: str, missing_vars: Optional[list] = None, **kwargs):
        details = kwargs.pop("details", {})
        if missing_vars:
            details["missing_environment_variables"] = missing_vars
        cause = kwargs.pop("cause", None)
        super().__init__(message, details=details, cause=cause)


class ClassifiedError(DeepSourceError):
    """
    An API failure tagged with an :class:`ErrorCategory`.

    Raised by the transport and the error classifier; callers inspect
    ``category`` to decide how to present the failure.
    """

    # Absorbed "not found" conditions also pass through here
    log_level = "WARNING"

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        original_error: Any = None,
        metadata: Optional[Dict[str, Any]] = None,
        **kwargs
    ):
        details = kwargs.pop("details", {})
        details["category"] = category.value
        if metadata:
            details.update(metadata)
        cause = original_error if isinstance(original_error, BaseException) else None
        super().__init__(message, details=details, cause=cause)
        self.category = category
        self.original_error = original_error
        self.metadata = metadata or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "code": self.category.value,
            "message": self.message,
            "metadata": self.metadata,
        }


class ReportNotFoundError(DeepSourceError):
    """Raised when a requested compliance report is unavailable."""

    def __init__(self, project_key: str, report_type: str, **kwargs):
        details = kwargs.pop("details", {})
        details["project_key"] = project_key
        details["report_type"] = report_type
        super().__init__(
            f"Report of type '{report_type}' not found for project '{project_key}'",
            details=details,
            cause=kwargs.pop("cause", None),
        )
