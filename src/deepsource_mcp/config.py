"""
Configuration management for the DeepSource MCP Server.

Handles environment variables, validation, and configuration defaults
without ever exposing the API key in logs or reprs.
"""

import os
from typing import Optional, Dict, Any
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

from .constants import API, PAGINATION
from .exceptions import ConfigurationError


class Config:
    """Configuration manager for the DeepSource MCP Server."""

    def __init__(self, env_file: Optional[str] = None):
        """
        Initialize configuration with environment variables.

        Args:
            env_file: Optional path to .env file
        """
        if env_file and Path(env_file).exists():
            load_dotenv(env_file)
        else:
            load_dotenv()

        self._required_vars = {
            "DEEPSOURCE_API_KEY": "DeepSource personal access token",
        }

        self._optional_vars = {
            "DEEPSOURCE_API_URL": API.BASE_URL,
            "DEEPSOURCE_REQUEST_TIMEOUT": str(API.REQUEST_TIMEOUT),
            "DEEPSOURCE_MAX_PAGES": str(PAGINATION.DEFAULT_MAX_PAGES),
            "LOG_LEVEL": "INFO",
            "MCP_SERVER_NAME": API.SERVER_NAME,
        }

        self._validate_and_load()

    def _validate_and_load(self) -> None:
        """Validate required variables and load all configuration."""
        missing_vars = []

        for var_name, description in self._required_vars.items():
            if not os.getenv(var_name):
                missing_vars.append(f"{var_name} ({description})")

        if missing_vars:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join([var.split(' (')[0] for var in missing_vars])}",
                missing_vars=missing_vars,
                details={
                    "missing_variables": missing_vars,
                    "suggestion": "Please set these environment variables in your .env file or system environment"
                }
            )

        self._load_values()
        logger.info("Configuration loaded and validated successfully")

    def _get(self, name: str) -> str:
        return os.getenv(name, self._optional_vars[name])

    def _load_values(self) -> None:
        """Load all configuration values from environment."""
        self.api_key = os.getenv("DEEPSOURCE_API_KEY")

        self.api_url = self._get("DEEPSOURCE_API_URL")
        self.server_name = self._get("MCP_SERVER_NAME")
        self.log_level = self._get("LOG_LEVEL").upper()

        try:
            self.request_timeout = float(self._get("DEEPSOURCE_REQUEST_TIMEOUT"))
            self.max_pages = int(self._get("DEEPSOURCE_MAX_PAGES"))
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid numeric configuration value: {e}",
                details={"suggestion": "Timeouts and page limits must be numbers"},
                cause=e,
            )

        if self.request_timeout <= 0:
            raise ConfigurationError(
                "DEEPSOURCE_REQUEST_TIMEOUT must be positive",
                details={"value": self.request_timeout},
            )

        if self.max_pages < 1:
            raise ConfigurationError(
                "DEEPSOURCE_MAX_PAGES must be at least 1",
                details={"value": self.max_pages},
            )

    @property
    def auth_headers(self) -> Dict[str, str]:
        """HTTP headers sent with every GraphQL request."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def get_status(self) -> Dict[str, Any]:
        """
        Get configuration status with secrets redacted.

        Returns:
            Dictionary with configuration status and details
        """
        return {
            "configuration": {
                "api_url": self.api_url,
                "api_key_configured": bool(self.api_key),
                "server_name": self.server_name,
                "log_level": self.log_level,
            },
            "limits": {
                "request_timeout": self.request_timeout,
                "max_pages": self.max_pages,
            },
        }

    def __repr__(self) -> str:
        """String representation of configuration (without sensitive data)."""
        return (
            f"Config("
            f"api_url={self.api_url}, "
            f"timeout={self.request_timeout}, "
            f"max_pages={self.max_pages}"
            f")"
        )
