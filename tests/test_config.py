#!/usr/bin/env python3
"""Tests for configuration loading."""

import os
import unittest
from unittest.mock import patch

from graphql_fakes import make_config

from deepsource_mcp.config import Config
from deepsource_mcp.exceptions import ConfigurationError


class TestConfig(unittest.TestCase):

    def test_missing_api_key(self):
        with patch.dict(os.environ, {}, clear=True), patch("deepsource_mcp.config.load_dotenv"):
            with self.assertRaises(ConfigurationError) as ctx:
                Config()
        self.assertIn("DEEPSOURCE_API_KEY", ctx.exception.message)

    def test_defaults(self):
        config = make_config()
        self.assertEqual(config.api_url, "https://api.deepsource.io/graphql/")
        self.assertEqual(config.request_timeout, 30.0)
        self.assertEqual(config.max_pages, 10)
        self.assertEqual(config.log_level, "INFO")

    def test_overrides(self):
        config = make_config(
            DEEPSOURCE_API_URL="http://localhost:9000/graphql/",
            DEEPSOURCE_REQUEST_TIMEOUT="5",
            DEEPSOURCE_MAX_PAGES="3",
            LOG_LEVEL="debug",
        )
        self.assertEqual(config.api_url, "http://localhost:9000/graphql/")
        self.assertEqual(config.request_timeout, 5.0)
        self.assertEqual(config.max_pages, 3)
        self.assertEqual(config.log_level, "DEBUG")

    def test_invalid_numbers(self):
        with self.assertRaises(ConfigurationError):
            make_config(DEEPSOURCE_MAX_PAGES="many")
        with self.assertRaises(ConfigurationError):
            make_config(DEEPSOURCE_REQUEST_TIMEOUT="0")
        with self.assertRaises(ConfigurationError):
            make_config(DEEPSOURCE_MAX_PAGES="0")
        with self.assertRaises(ConfigurationError):
            make_config(DEEPSOURCE_MAX_PAGES="-2")

    def test_key_is_never_exposed(self):
        config = make_config(DEEPSOURCE_API_KEY="super-secret")
        self.assertNotIn("super-secret", repr(config))
        self.assertNotIn("super-secret", str(config.get_status()))
        self.assertEqual(config.auth_headers["Authorization"], "Bearer super-secret")


if __name__ == "__main__":
    unittest.main()
