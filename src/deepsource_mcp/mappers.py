"""
Node mappers for DeepSource GraphQL payloads.

Every mapper is a total function from an untyped node to ``ParsedNode``:
either ``Valid(record)`` or ``Malformed(raw, reason)``. Callers skip
malformed nodes instead of failing the whole batch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type, TypeVar, Union

from loguru import logger

from .constants import COMPLIANCE, PROCESSING
from .models import (
    ComplianceCategory,
    ComplianceReport,
    Issue,
    MetricDirection,
    MetricHistoryValue,
    MetricItem,
    MetricThresholdStatus,
    Package,
    PackageVersion,
    PackageVersionType,
    Project,
    ProjectRepository,
    ReportStatus,
    ReportType,
    RepositoryMetric,
    Run,
    RunSummary,
    SeverityDistribution,
    Vulnerability,
    VulnerabilityFixability,
    VulnerabilityOccurrence,
    VulnerabilityReachability,
    VulnerabilitySeverity,
)


E = TypeVar("E", bound=Enum)


@dataclass(frozen=True)
class Valid:
    """A node that mapped cleanly."""
    record: Any


@dataclass(frozen=True)
class Malformed:
    """A node rejected during mapping."""
    raw: Any
    reason: str


ParsedNode = Union[Valid, Malformed]


# Scalar coercion

def is_valid_enum(value: Any, allowed: Union[Type[Enum], Iterable[str]]) -> bool:
    """Check ``value`` is one of the allowed enum values."""
    if not isinstance(value, str):
        return False
    if isinstance(allowed, type) and issubclass(allowed, Enum):
        return value in {member.value for member in allowed}
    return value in set(allowed)


def to_enum(value: Any, enum_cls: Type[E], default: Optional[E]) -> Optional[E]:
    """Return the enum member for ``value`` or ``default`` when invalid."""
    if isinstance(value, enum_cls):
        return value
    if is_valid_enum(value, enum_cls):
        return enum_cls(value)
    return default


def _str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


def _int(value: Any, default: int = 0) -> int:
    number = _number(value)
    return int(number) if number is not None else default


def _str_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, str)]


def _missing(node: Dict[str, Any], *keys: str) -> List[str]:
    return [key for key in keys if not isinstance(node.get(key), str) or not node.get(key)]


# Projects

def map_project(node: Any) -> ParsedNode:
    """Map an account repository node to a Project keyed by its DSN."""
    if not isinstance(node, dict):
        return Malformed(node, "repository node is not an object")
    if not isinstance(node.get("dsn"), str) or not node["dsn"]:
        return Malformed(node, "repository has no dsn")

    vcs_url = _str(node.get("vcsUrl"))
    repository = ProjectRepository(
        url=vcs_url or node["dsn"],
        provider=_str(node.get("vcsProvider")) or "N/A",
        login=_str(node.get("login")),
        is_private=bool(node.get("isPrivate")),
        is_activated=bool(node.get("isActivated")),
    )
    return Valid(Project(
        key=node["dsn"],
        name=_str(node.get("name")) or "Unnamed Repository",
        repository=repository,
    ))


# Issues

def _issue_from(issue: Dict[str, Any], occurrence: Dict[str, Any], issue_id: str) -> Issue:
    return Issue(
        id=issue_id,
        shortcode=_str(issue.get("shortcode")) or "",
        title=_str(issue.get("title")) or "Untitled Issue",
        category=_str(issue.get("category")) or "UNKNOWN",
        severity=_str(issue.get("severity")) or "UNKNOWN",
        status="OPEN",
        issue_text=_str(issue.get("description")) or "",
        file_path=_str(occurrence.get("path")) or "N/A",
        line_number=_int(occurrence.get("beginLine"), default=0) or None,
        tags=_str_list(issue.get("tags")),
    )


def map_repository_issue(node: Any) -> ParsedNode:
    """
    Map a repository issue node to one Issue per occurrence.

    The record is a list; an issue without occurrences maps to an empty list.
    """
    if not isinstance(node, dict):
        return Malformed(node, "issue node is not an object")
    issue = node.get("issue")
    if not isinstance(issue, dict):
        return Malformed(node, "issue node has no issue details")

    occurrences = node.get("occurrences") if isinstance(node.get("occurrences"), dict) else {}
    occurrence_edges = occurrences.get("edges") or []
    issues = []
    for edge in occurrence_edges:
        occurrence = edge.get("node") if isinstance(edge, dict) else None
        if not isinstance(occurrence, dict):
            continue
        issue_id = _str(occurrence.get("id")) or _str(node.get("id")) or "unknown"
        issues.append(_issue_from(issue, occurrence, issue_id))
    return Valid(issues)


def map_occurrence(node: Any) -> ParsedNode:
    """Map a run check occurrence to an Issue."""
    if not isinstance(node, dict):
        return Malformed(node, "occurrence node is not an object")
    if not isinstance(node.get("id"), str):
        return Malformed(node, "occurrence has no id")
    issue = node.get("issue") if isinstance(node.get("issue"), dict) else {}
    return Valid(_issue_from(issue, node, node["id"]))


# Runs

def map_run(node: Any) -> ParsedNode:
    """Map an analysis run node; counts default to 0 and status to UNKNOWN."""
    if not isinstance(node, dict):
        return Malformed(node, "run node is not an object")
    missing = _missing(node, "id", "runUid")
    if missing:
        return Malformed(node, f"run is missing {', '.join(missing)}")

    summary = node.get("summary") if isinstance(node.get("summary"), dict) else {}
    repository = node.get("repository") if isinstance(node.get("repository"), dict) else {}
    return Valid(Run(
        id=node["id"],
        run_uid=node["runUid"],
        commit_oid=_str(node.get("commitOid")) or "",
        branch_name=_str(node.get("branchName")) or "",
        base_oid=_str(node.get("baseOid")),
        status=_str(node.get("status")) or "UNKNOWN",
        created_at=_str(node.get("createdAt")),
        updated_at=_str(node.get("updatedAt")),
        finished_at=_str(node.get("finishedAt")),
        summary=RunSummary(
            occurrences_introduced=_int(summary.get("occurrencesIntroduced")),
            occurrences_resolved=_int(summary.get("occurrencesResolved")),
            occurrences_suppressed=_int(summary.get("occurrencesSuppressed")),
            occurrence_distribution_by_analyzer=[
                entry for entry in summary.get("occurrenceDistributionByAnalyzer") or []
                if isinstance(entry, dict)
            ],
            occurrence_distribution_by_category=[
                entry for entry in summary.get("occurrenceDistributionByCategory") or []
                if isinstance(entry, dict)
            ],
        ),
        repository_name=_str(repository.get("name")),
        repository_id=_str(repository.get("id")),
    ))


# Metrics

def map_metric_item(node: Any) -> ParsedNode:
    if not isinstance(node, dict):
        return Malformed(node, "metric item is not an object")
    missing = _missing(node, "id", "key")
    if missing:
        return Malformed(node, f"metric item is missing {', '.join(missing)}")
    return Valid(MetricItem(
        id=node["id"],
        key=node["key"],
        threshold=_number(node.get("threshold")),
        latest_value=_number(node.get("latestValue")),
        latest_value_display=_str(node.get("latestValueDisplay")),
        threshold_status=to_enum(
            node.get("thresholdStatus"), MetricThresholdStatus, MetricThresholdStatus.UNKNOWN
        ),
    ))


def map_metric(node: Any) -> ParsedNode:
    """Map a repository metric and its per-language items."""
    if not isinstance(node, dict):
        return Malformed(node, "metric node is not an object")
    if not isinstance(node.get("shortcode"), str):
        return Malformed(node, "metric has no shortcode")

    items = []
    for raw_item in node.get("items") or []:
        parsed = map_metric_item(raw_item)
        if isinstance(parsed, Valid):
            items.append(parsed.record)
        else:
            logger.warning(f"Skipping malformed metric item: {parsed.reason}")

    return Valid(RepositoryMetric(
        name=_str(node.get("name")) or node["shortcode"],
        shortcode=node["shortcode"],
        description=_str(node.get("description")) or "",
        positive_direction=MetricDirection.parse(node.get("positiveDirection")),
        unit=_str(node.get("unit")),
        min_value_allowed=_number(node.get("minValueAllowed")),
        max_value_allowed=_number(node.get("maxValueAllowed")),
        is_reported=bool(node.get("isReported")),
        is_threshold_enforced=bool(node.get("isThresholdEnforced")),
        items=items,
    ))


def map_history_value(node: Any) -> ParsedNode:
    """Map a recorded metric value; a non-numeric value is malformed."""
    if not isinstance(node, dict):
        return Malformed(node, "history value is not an object")
    value = _number(node.get("value"))
    if value is None:
        return Malformed(node, "history value is not numeric")
    return Valid(MetricHistoryValue(
        value=value,
        value_display=_str(node.get("valueDisplay")) or f"{value:g}",
        threshold=_number(node.get("threshold")),
        commit_oid=_str(node.get("commitOid")),
        created_at=_str(node.get("createdAt")) or _str(node.get("measuredAt")),
    ))


# Dependency vulnerabilities

def map_vulnerability_occurrence(node: Any) -> ParsedNode:
    """
    Validate and map a dependency vulnerability occurrence.

    Required: ``id``; ``package`` with ``id``/``ecosystem``/``name``;
    ``packageVersion`` with ``id``/``version``; ``vulnerability`` with
    ``id``/``identifier``. Invalid enum values fall back to severity NONE,
    reachability UNKNOWN, fixability ERROR and no version type.
    """
    if not isinstance(node, dict):
        return Malformed(node, "occurrence is not an object")
    if not isinstance(node.get("id"), str) or not node["id"]:
        return Malformed(node, "occurrence has no id")

    package = node.get("package")
    version = node.get("packageVersion")
    advisory = node.get("vulnerability")
    for name, sub in (("package", package), ("packageVersion", version), ("vulnerability", advisory)):
        if not isinstance(sub, dict):
            return Malformed(node, f"occurrence {node['id']} has no {name}")

    missing = _missing(package, "id", "ecosystem", "name")
    if missing:
        return Malformed(node, f"package is missing {', '.join(missing)}")
    missing = _missing(version, "id", "version")
    if missing:
        return Malformed(node, f"packageVersion is missing {', '.join(missing)}")
    missing = _missing(advisory, "id", "identifier")
    if missing:
        return Malformed(node, f"vulnerability is missing {', '.join(missing)}")

    return Valid(VulnerabilityOccurrence(
        id=node["id"],
        package=Package(
            id=package["id"],
            ecosystem=package["ecosystem"],
            name=package["name"],
            purl=_str(package.get("purl")),
        ),
        package_version=PackageVersion(
            id=version["id"],
            version=version["version"],
            version_type=to_enum(version.get("versionType"), PackageVersionType, None),
        ),
        vulnerability=Vulnerability(
            id=advisory["id"],
            identifier=advisory["identifier"],
            aliases=_str_list(advisory.get("aliases")),
            summary=_str(advisory.get("summary")),
            details=_str(advisory.get("details")),
            published_at=_str(advisory.get("publishedAt")),
            updated_at=_str(advisory.get("updatedAt")),
            withdrawn_at=_str(advisory.get("withdrawnAt")),
            severity=to_enum(advisory.get("severity"), VulnerabilitySeverity, VulnerabilitySeverity.NONE),
            cvss_v2_vector=_str(advisory.get("cvssV2Vector")),
            cvss_v2_base_score=_number(advisory.get("cvssV2BaseScore")),
            cvss_v2_severity=to_enum(advisory.get("cvssV2Severity"), VulnerabilitySeverity, None),
            cvss_v3_vector=_str(advisory.get("cvssV3Vector")),
            cvss_v3_base_score=_number(advisory.get("cvssV3BaseScore")),
            cvss_v3_severity=to_enum(advisory.get("cvssV3Severity"), VulnerabilitySeverity, None),
            cvss_v4_vector=_str(advisory.get("cvssV4Vector")),
            cvss_v4_base_score=_number(advisory.get("cvssV4BaseScore")),
            cvss_v4_severity=to_enum(advisory.get("cvssV4Severity"), VulnerabilitySeverity, None),
            epss_score=_number(advisory.get("epssScore")),
            epss_percentile=_number(advisory.get("epssPercentile")),
            introduced_versions=_str_list(advisory.get("introducedVersions")),
            fixed_versions=_str_list(advisory.get("fixedVersions")),
            reference_urls=_str_list(advisory.get("referenceUrls")),
        ),
        reachability=to_enum(
            node.get("reachability"), VulnerabilityReachability, VulnerabilityReachability.UNKNOWN
        ),
        fixability=to_enum(
            node.get("fixability"), VulnerabilityFixability, VulnerabilityFixability.ERROR
        ),
    ))


def iter_vulnerability_occurrences(
    nodes: Iterable[Any],
    max_iterations: int = PROCESSING.MAX_ITERATIONS,
) -> Iterator[VulnerabilityOccurrence]:
    """
    Yield valid occurrences, skipping malformed nodes.

    Stops after ``max_iterations`` nodes regardless of how many remain.
    """
    for index, node in enumerate(nodes):
        if index >= max_iterations:
            logger.warning(
                f"Reached maximum iteration count ({max_iterations}) while processing "
                f"vulnerabilities, stopping"
            )
            break
        parsed = map_vulnerability_occurrence(node)
        if isinstance(parsed, Malformed):
            logger.warning(f"Skipping invalid vulnerability node: {parsed.reason}")
            continue
        yield parsed.record


# Compliance reports

def compliance_score(distribution: SeverityDistribution) -> int:
    """100 with no issues, otherwise penalized per severity and floored at 0."""
    if distribution.total == 0:
        return COMPLIANCE.MAX_SCORE
    penalty = (
        distribution.critical * COMPLIANCE.CRITICAL_WEIGHT
        + distribution.major * COMPLIANCE.MAJOR_WEIGHT
        + distribution.minor * COMPLIANCE.MINOR_WEIGHT
    )
    return max(0, round(COMPLIANCE.MAX_SCORE - penalty))


def map_compliance_report(report_type: ReportType, title: str, node: Any) -> ParsedNode:
    """Map a report payload, totalling category counts into a severity distribution."""
    if not isinstance(node, dict):
        return Malformed(node, f"{report_type.value} report is not an object")

    categories = []
    for raw in node.get("categories") or node.get("securityIssueStats") or []:
        if not isinstance(raw, dict):
            continue
        counts = raw.get("occurrence") if isinstance(raw.get("occurrence"), dict) else raw
        critical = _int(counts.get("criticalCount", counts.get("critical")))
        major = _int(counts.get("majorCount", counts.get("major")))
        minor = _int(counts.get("minorCount", counts.get("minor")))
        total = _number(counts.get("totalCount", counts.get("total")))
        categories.append(ComplianceCategory(
            category=_str(raw.get("category")) or _str(raw.get("key")) or "UNKNOWN",
            critical=critical,
            major=major,
            minor=minor,
            total=int(total) if total is not None else critical + major + minor,
        ))

    distribution = SeverityDistribution(
        critical=sum(category.critical for category in categories),
        major=sum(category.major for category in categories),
        minor=sum(category.minor for category in categories),
        total=sum(category.total for category in categories),
    )
    return Valid(ComplianceReport(
        key=report_type,
        title=_str(node.get("title")) or title,
        status=to_enum(node.get("status"), ReportStatus, None),
        current_value=_number(node.get("currentValue")),
        categories=categories,
        severity_distribution=distribution,
        compliance_score=compliance_score(distribution),
    ))
