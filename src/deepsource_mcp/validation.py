"""
Input validation for tool arguments.

Rejects malformed identifiers before they reach the GraphQL layer and
keeps API keys out of log output.
"""

import re
from typing import Any, Optional, Type
from enum import Enum

from .models import MetricKey, MetricShortcode, ReportType


class InputValidator:
    """Centralized input validation for tool arguments."""

    # Patterns
    PROJECT_KEY_PATTERN = re.compile(r'^[A-Za-z0-9_.:/@+=-]+$')
    RUN_UID_PATTERN = re.compile(
        r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', re.IGNORECASE
    )
    COMMIT_OID_PATTERN = re.compile(r'^[0-9a-f]{7,40}$', re.IGNORECASE)
    BEARER_PATTERN = re.compile(r'(Bearer\s+)[A-Za-z0-9._~+/=-]+')

    # Limits
    MAX_PROJECT_KEY_LENGTH = 512
    MAX_BRANCH_NAME_LENGTH = 255

    @staticmethod
    def validate_project_key(project_key: str) -> str:
        """
        Validate a DeepSource project key (repository DSN).

        Args:
            project_key: Project key as returned by the projects tool

        Returns:
            Validated project key

        Raises:
            ValueError: If the key is empty, too long or has invalid characters
        """
        if not project_key or not isinstance(project_key, str):
            raise ValueError("Project key must be a non-empty string")

        project_key = project_key.strip()
        if len(project_key) > InputValidator.MAX_PROJECT_KEY_LENGTH:
            raise ValueError(
                f"Project key too long (max {InputValidator.MAX_PROJECT_KEY_LENGTH} chars)"
            )

        if not InputValidator.PROJECT_KEY_PATTERN.match(project_key):
            raise ValueError(f"Invalid project key format: {project_key}")

        return project_key

    @staticmethod
    def is_run_uid(identifier: str) -> bool:
        """Check whether ``identifier`` is a run UUID rather than a commit OID."""
        return bool(InputValidator.RUN_UID_PATTERN.match(identifier or ""))

    @staticmethod
    def validate_run_identifier(identifier: str) -> str:
        """
        Validate a run UUID or commit OID.

        Raises:
            ValueError: If it is neither
        """
        if not identifier or not isinstance(identifier, str):
            raise ValueError("Run identifier must be a non-empty string")

        identifier = identifier.strip()
        if InputValidator.is_run_uid(identifier) or InputValidator.COMMIT_OID_PATTERN.match(identifier):
            return identifier

        raise ValueError(
            f"Invalid run identifier: {identifier}. "
            "Expected a run UUID or a commit SHA."
        )

    @staticmethod
    def validate_branch_name(branch_name: str) -> str:
        """Validate a git branch name."""
        if not branch_name or not isinstance(branch_name, str):
            raise ValueError("Branch name must be a non-empty string")

        if len(branch_name) > InputValidator.MAX_BRANCH_NAME_LENGTH:
            raise ValueError(
                f"Branch name too long (max {InputValidator.MAX_BRANCH_NAME_LENGTH} chars)"
            )

        if '..' in branch_name or any(char in branch_name for char in ' ~^:?*[\\\n\r'):
            raise ValueError(f"Invalid branch name: {branch_name}")

        return branch_name

    @staticmethod
    def validate_enum(value: str, enum_cls: Type[Enum], label: str) -> str:
        """Validate that ``value`` is a member value of ``enum_cls``."""
        allowed = [member.value for member in enum_cls]
        if value not in allowed:
            raise ValueError(
                f"Invalid {label}: {value}. Must be one of: {', '.join(allowed)}"
            )
        return value

    @staticmethod
    def validate_threshold(threshold: Optional[float]) -> Optional[float]:
        """A threshold is a non-negative number, or None to clear it."""
        if threshold is None:
            return None
        if isinstance(threshold, bool) or not isinstance(threshold, (int, float)):
            raise ValueError("Threshold must be a number or null")
        if threshold < 0:
            raise ValueError("Threshold must not be negative")
        return threshold

    @staticmethod
    def sanitize_for_logging(data: Any) -> Any:
        """
        Sanitize data for logging to prevent leaking credentials.

        Args:
            data: Data to sanitize (can be dict, list, string, etc.)

        Returns:
            Sanitized data safe for logging
        """
        if isinstance(data, dict):
            sensitive_keys = {'api_key', 'token', 'password', 'secret', 'authorization'}
            return {
                k: '***REDACTED***' if any(s in k.lower() for s in sensitive_keys) else InputValidator.sanitize_for_logging(v)
                for k, v in data.items()
            }
        elif isinstance(data, (list, tuple)):
            return [InputValidator.sanitize_for_logging(item) for item in data]
        elif isinstance(data, str):
            return InputValidator.BEARER_PATTERN.sub(r'\1***REDACTED***', data)
        else:
            return data


# Convenience functions
def validate_project_key(project_key: str) -> str:
    """Validate project key."""
    return InputValidator.validate_project_key(project_key)


def validate_metric_shortcode(shortcode: str) -> str:
    """Validate metric shortcode."""
    return InputValidator.validate_enum(shortcode, MetricShortcode, "metric shortcode")


def validate_metric_key(metric_key: str) -> str:
    """Validate metric key."""
    return InputValidator.validate_enum(metric_key, MetricKey, "metric key")


def validate_report_type(report_type: str) -> str:
    """Validate report type."""
    return InputValidator.validate_enum(report_type, ReportType, "report type")


def sanitize_for_logging(data: Any) -> Any:
    """Sanitize data for logging."""
    return InputValidator.sanitize_for_logging(data)
