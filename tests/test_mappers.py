#!/usr/bin/env python3
"""Tests for GraphQL node mappers."""

import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "src"))

from deepsource_mcp.mappers import (
    Malformed,
    Valid,
    compliance_score,
    is_valid_enum,
    iter_vulnerability_occurrences,
    map_compliance_report,
    map_history_value,
    map_metric,
    map_occurrence,
    map_project,
    map_repository_issue,
    map_run,
    map_vulnerability_occurrence,
    to_enum,
)
from deepsource_mcp.models import (
    MetricDirection,
    MetricThresholdStatus,
    ReportStatus,
    ReportType,
    SeverityDistribution,
    VulnerabilityFixability,
    VulnerabilityReachability,
    VulnerabilitySeverity,
)


def vulnerability_node(**overrides):
    node = {
        "id": "occ-1",
        "reachability": "REACHABLE",
        "fixability": "AUTO_FIXABLE",
        "package": {"id": "pkg-1", "ecosystem": "NPM", "name": "lodash", "purl": "pkg:npm/lodash"},
        "packageVersion": {"id": "ver-1", "version": "4.17.20", "versionType": "SEMVER"},
        "vulnerability": {
            "id": "vuln-1",
            "identifier": "CVE-2021-23337",
            "aliases": ["GHSA-35jh-r3h4-6jhm"],
            "severity": "HIGH",
            "cvssV3BaseScore": 7.2,
            "fixedVersions": ["4.17.21"],
        },
    }
    node.update(overrides)
    return node


class TestVulnerabilityMapping(unittest.TestCase):
    """Validation of dependency vulnerability occurrences."""

    def test_valid_occurrence(self):
        parsed = map_vulnerability_occurrence(vulnerability_node())
        self.assertIsInstance(parsed, Valid)
        occurrence = parsed.record
        self.assertEqual(occurrence.package.name, "lodash")
        self.assertEqual(occurrence.vulnerability.severity, VulnerabilitySeverity.HIGH)
        self.assertEqual(occurrence.vulnerability.cvss_v3_base_score, 7.2)
        self.assertEqual(occurrence.reachability, VulnerabilityReachability.REACHABLE)
        self.assertEqual(occurrence.to_dict()["packageVersion"]["versionType"], "SEMVER")

    def test_invalid_enums_fall_back(self):
        node = vulnerability_node(reachability="MAYBE", fixability="SOON")
        node["vulnerability"] = {"id": "v", "identifier": "CVE-1", "severity": "APOCALYPTIC"}
        node["packageVersion"] = {"id": "ver", "version": "1.0", "versionType": "CALVER"}
        occurrence = map_vulnerability_occurrence(node).record
        self.assertEqual(occurrence.vulnerability.severity, VulnerabilitySeverity.NONE)
        self.assertEqual(occurrence.reachability, VulnerabilityReachability.UNKNOWN)
        self.assertEqual(occurrence.fixability, VulnerabilityFixability.ERROR)
        self.assertIsNone(occurrence.package_version.version_type)

    def test_missing_required_fields_are_malformed(self):
        cases = [
            None,
            {"package": {}},
            vulnerability_node(package={"id": "p", "ecosystem": "NPM"}),
            vulnerability_node(packageVersion=None),
            vulnerability_node(vulnerability={"id": "v"}),
        ]
        for node in cases:
            with self.subTest(node=node):
                self.assertIsInstance(map_vulnerability_occurrence(node), Malformed)

    def test_iteration_skips_malformed(self):
        nodes = [vulnerability_node(id="a"), {"id": "broken"}, vulnerability_node(id="b")]
        self.assertEqual([o.id for o in iter_vulnerability_occurrences(nodes)], ["a", "b"])

    def test_iteration_cap(self):
        nodes = [vulnerability_node(id=str(i)) for i in range(5)]
        with patch("deepsource_mcp.mappers.logger") as mock_logger:
            result = list(iter_vulnerability_occurrences(nodes, max_iterations=3))
        self.assertEqual([o.id for o in result], ["0", "1", "2"])
        mock_logger.warning.assert_called_once()


class TestProjectAndIssueMapping(unittest.TestCase):

    def test_project_defaults(self):
        project = map_project({"dsn": "https://k@deepsource.io"}).record
        self.assertEqual(project.key, "https://k@deepsource.io")
        self.assertEqual(project.name, "Unnamed Repository")
        self.assertEqual(project.repository.provider, "N/A")
        self.assertEqual(project.repository.url, "https://k@deepsource.io")

    def test_project_without_dsn_is_malformed(self):
        self.assertIsInstance(map_project({"name": "x"}), Malformed)

    def test_issue_per_occurrence(self):
        node = {
            "id": "ri-1",
            "issue": {"shortcode": "PY-W0612", "title": "Unused variable", "category": "ANTI_PATTERN",
                      "severity": "MINOR", "description": "Remove it", "tags": ["python", 3]},
            "occurrences": {"edges": [
                {"node": {"id": "o1", "path": "app.py", "beginLine": 12}},
                {"node": None},
                {"node": {"id": "o2", "path": "lib.py"}},
            ]},
        }
        issues = map_repository_issue(node).record
        self.assertEqual([issue.id for issue in issues], ["o1", "o2"])
        self.assertEqual(issues[0].line_number, 12)
        self.assertIsNone(issues[1].line_number)
        self.assertEqual(issues[0].tags, ["python"])
        self.assertEqual(issues[0].to_dict()["issue_text"], "Remove it")

    def test_issue_without_occurrences_maps_to_nothing(self):
        self.assertEqual(map_repository_issue({"issue": {"shortcode": "X"}}).record, [])

    def test_occurrence_defaults(self):
        issue = map_occurrence({"id": "o1"}).record
        self.assertEqual(issue.title, "Untitled Issue")
        self.assertEqual(issue.file_path, "N/A")
        self.assertEqual(issue.status, "OPEN")


class TestRunAndMetricMapping(unittest.TestCase):

    def test_run_summary_defaults(self):
        run = map_run({"id": "r", "runUid": "u", "summary": {"occurrencesIntroduced": 4}}).record
        self.assertEqual(run.summary.occurrences_introduced, 4)
        self.assertEqual(run.summary.occurrences_resolved, 0)
        self.assertEqual(run.status, "UNKNOWN")

    def test_run_requires_identifiers(self):
        self.assertIsInstance(map_run({"id": "r"}), Malformed)

    def test_metric_with_items(self):
        node = {
            "name": "Line Coverage",
            "shortcode": "LCV",
            "positiveDirection": "UPWARD",
            "unit": "%",
            "isThresholdEnforced": True,
            "items": [
                {"id": "i1", "key": "AGGREGATE", "threshold": 80, "latestValue": 72.5,
                 "thresholdStatus": "FAILING"},
                {"key": "PYTHON"},
            ],
        }
        metric = map_metric(node).record
        self.assertEqual(metric.positive_direction, MetricDirection.UPWARD)
        self.assertEqual(len(metric.items), 1)
        self.assertEqual(metric.find_item("AGGREGATE").threshold_status, MetricThresholdStatus.FAILING)
        self.assertIsNone(metric.find_item("PYTHON"))

    def test_history_value_must_be_numeric(self):
        self.assertIsInstance(map_history_value({"value": "high"}), Malformed)
        value = map_history_value({"value": 75, "measuredAt": "2024-01-01"}).record
        self.assertEqual(value.value_display, "75")
        self.assertEqual(value.created_at, "2024-01-01")


class TestCompliance(unittest.TestCase):

    def test_score_without_issues(self):
        self.assertEqual(compliance_score(SeverityDistribution()), 100)

    def test_score_is_weighted_and_floored(self):
        self.assertEqual(compliance_score(SeverityDistribution(critical=2, major=3, minor=4, total=9)), 61)
        self.assertEqual(compliance_score(SeverityDistribution(critical=20, total=20)), 0)

    def test_report_totals(self):
        node = {
            "status": "FAILING",
            "currentValue": 3,
            "securityIssueStats": [
                {"key": "A01", "occurrence": {"critical": 1, "major": 2, "minor": 0, "total": 3}},
                {"key": "A03", "occurrence": {"critical": 0, "major": 0, "minor": 5}},
                "junk",
            ],
        }
        report = map_compliance_report(ReportType.OWASP_TOP_10, "OWASP Top 10", node).record
        self.assertEqual(report.status, ReportStatus.FAILING)
        self.assertEqual([c.category for c in report.categories], ["A01", "A03"])
        self.assertEqual(report.severity_distribution.to_dict(),
                         {"critical": 1, "major": 2, "minor": 5, "total": 8})
        self.assertEqual(report.compliance_score, 75)
        self.assertEqual(report.title, "OWASP Top 10")


class TestEnumHelpers(unittest.TestCase):

    def test_is_valid_enum(self):
        self.assertTrue(is_valid_enum("HIGH", VulnerabilitySeverity))
        self.assertFalse(is_valid_enum("high", VulnerabilitySeverity))
        self.assertFalse(is_valid_enum(None, VulnerabilitySeverity))
        self.assertTrue(is_valid_enum("A", ["A", "B"]))

    def test_to_enum(self):
        self.assertEqual(to_enum("LOW", VulnerabilitySeverity, None), VulnerabilitySeverity.LOW)
        self.assertIsNone(to_enum("nope", VulnerabilitySeverity, None))


if __name__ == "__main__":
    unittest.main()
