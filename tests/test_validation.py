#!/usr/bin/env python3
"""Tests for tool argument validation."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from deepsource_mcp.validation import (
    InputValidator,
    sanitize_for_logging,
    validate_metric_shortcode,
    validate_project_key,
    validate_report_type,
)


class TestInputValidator(unittest.TestCase):

    def test_project_key(self):
        self.assertEqual(validate_project_key("  https://abc@deepsource.io "), "https://abc@deepsource.io")
        for bad in ("", "has space", "x" * 600):
            with self.subTest(key=bad):
                with self.assertRaises(ValueError):
                    validate_project_key(bad)

    def test_run_identifiers(self):
        uid = "3F2B6C1E-8D4A-4B7E-9C1F-2A5D6E7F8A9B"
        self.assertTrue(InputValidator.is_run_uid(uid))
        self.assertEqual(InputValidator.validate_run_identifier("abc1234"), "abc1234")
        self.assertFalse(InputValidator.is_run_uid("abc1234"))
        with self.assertRaises(ValueError):
            InputValidator.validate_run_identifier("abc")

    def test_branch_name(self):
        self.assertEqual(InputValidator.validate_branch_name("feature/login"), "feature/login")
        for bad in ("", "a..b", "with space", "x^1"):
            with self.subTest(branch=bad):
                with self.assertRaises(ValueError):
                    InputValidator.validate_branch_name(bad)

    def test_enums(self):
        self.assertEqual(validate_metric_shortcode("LCV"), "LCV")
        self.assertEqual(validate_report_type("MISRA_C"), "MISRA_C")
        with self.assertRaises(ValueError):
            validate_metric_shortcode("XYZ")

    def test_threshold(self):
        self.assertIsNone(InputValidator.validate_threshold(None))
        self.assertEqual(InputValidator.validate_threshold(80.5), 80.5)
        for bad in (-1, True, "80"):
            with self.subTest(threshold=bad):
                with self.assertRaises(ValueError):
                    InputValidator.validate_threshold(bad)

    def test_sanitize_for_logging(self):
        data = {
            "api_key": "secret",
            "header": "Bearer abc.def",
            "nested": [{"Authorization": "x"}, "plain"],
            "first": 10,
        }
        self.assertEqual(sanitize_for_logging(data), {
            "api_key": "***REDACTED***",
            "header": "Bearer ***REDACTED***",
            "nested": [{"Authorization": "***REDACTED***"}, "plain"],
            "first": 10,
        })


if __name__ == "__main__":
    unittest.main()
