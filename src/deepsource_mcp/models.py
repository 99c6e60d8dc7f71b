"""
Data models for the DeepSource MCP Server.

Defines the immutable records produced from DeepSource GraphQL payloads:
pagination parameters and pages, projects, issues, analysis runs,
dependency vulnerabilities, quality metrics and compliance reports.
Every record serializes back to the upstream camelCase vocabulary
through ``to_dict()``.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, List, Optional, TypeVar
from enum import Enum


T = TypeVar("T")


class MetricShortcode(Enum):
    """Quality metric shortcodes."""
    LCV = "LCV"  # Line coverage
    BCV = "BCV"  # Branch coverage
    DCV = "DCV"  # Documentation coverage
    DDP = "DDP"  # Duplicate code percentage
    SCV = "SCV"  # Statement coverage
    TCV = "TCV"  # Total coverage
    CMP = "CMP"  # Code maturity


class MetricKey(Enum):
    """Language scopes a metric can be reported for."""
    AGGREGATE = "AGGREGATE"
    PYTHON = "PYTHON"
    JAVASCRIPT = "JAVASCRIPT"
    TYPESCRIPT = "TYPESCRIPT"
    GO = "GO"
    JAVA = "JAVA"
    RUBY = "RUBY"
    RUST = "RUST"


class MetricThresholdStatus(Enum):
    PASSING = "PASSING"
    FAILING = "FAILING"
    UNKNOWN = "UNKNOWN"


class MetricDirection(Enum):
    """Which way a metric improves."""
    UPWARD = "UPWARD"
    DOWNWARD = "DOWNWARD"

    @classmethod
    def parse(cls, value: Any) -> Optional["MetricDirection"]:
        """Resolve a direction, accepting the HIGHER/LOWER_IS_BETTER aliases."""
        if isinstance(value, cls):
            return value
        aliases = {
            "UPWARD": cls.UPWARD,
            "HIGHER_IS_BETTER": cls.UPWARD,
            "DOWNWARD": cls.DOWNWARD,
            "LOWER_IS_BETTER": cls.DOWNWARD,
        }
        if isinstance(value, str):
            return aliases.get(value.upper())
        return None


class RunStatus(Enum):
    PENDING = "PENDING"
    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    TIMEOUT = "TIMEOUT"
    CANCEL = "CANCEL"
    READY = "READY"
    SKIPPED = "SKIPPED"


class VulnerabilitySeverity(Enum):
    NONE = "NONE"
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class PackageVersionType(Enum):
    SEMVER = "SEMVER"
    ECOSYSTEM = "ECOSYSTEM"
    GIT = "GIT"


class VulnerabilityReachability(Enum):
    REACHABLE = "REACHABLE"
    UNREACHABLE = "UNREACHABLE"
    UNKNOWN = "UNKNOWN"


class VulnerabilityFixability(Enum):
    ERROR = "ERROR"
    UNFIXABLE = "UNFIXABLE"
    GENERATING_FIX = "GENERATING_FIX"
    POSSIBLY_FIXABLE = "POSSIBLY_FIXABLE"
    MANUALLY_FIXABLE = "MANUALLY_FIXABLE"
    AUTO_FIXABLE = "AUTO_FIXABLE"


class ReportType(Enum):
    """Report types offered by DeepSource."""
    OWASP_TOP_10 = "OWASP_TOP_10"
    SANS_TOP_25 = "SANS_TOP_25"
    MISRA_C = "MISRA_C"
    CODE_COVERAGE = "CODE_COVERAGE"
    CODE_HEALTH_TREND = "CODE_HEALTH_TREND"
    ISSUE_DISTRIBUTION = "ISSUE_DISTRIBUTION"
    ISSUES_PREVENTED = "ISSUES_PREVENTED"
    ISSUES_AUTOFIXED = "ISSUES_AUTOFIXED"


class ReportStatus(Enum):
    PASSING = "PASSING"
    FAILING = "FAILING"
    NOOP = "NOOP"


def _serialize(value: Any) -> Any:
    """Recursively convert records, enums and lists to plain JSON values."""
    if hasattr(value, "to_dict"):
        return value.to_dict()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (list, tuple)):
        return [_serialize(item) for item in value]
    return value


# Pagination

@dataclass(frozen=True)
class PaginationParams:
    """
    Pagination input accepted by every list operation.

    Supports legacy ``offset`` pagination and Relay cursor pagination
    (``first``/``after`` forward, ``last``/``before`` backward).
    ``page_size`` and ``max_pages`` drive multi-page fetching and are
    never sent upstream.
    """
    offset: Any = None
    first: Any = None
    after: Any = None
    before: Any = None
    last: Any = None
    page_size: Any = None
    max_pages: Any = None

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PaginationParams":
        """Build params from a loose mapping, ignoring unknown keys."""
        data = data or {}
        return cls(
            offset=data.get("offset"),
            first=data.get("first"),
            after=data.get("after"),
            before=data.get("before"),
            last=data.get("last"),
            page_size=data.get("page_size"),
            max_pages=data.get("max_pages"),
        )

    def to_variables(self) -> Dict[str, Any]:
        """GraphQL variables for the fields that are set."""
        variables = {
            "offset": self.offset,
            "first": self.first,
            "after": self.after,
            "before": self.before,
            "last": self.last,
        }
        return {key: value for key, value in variables.items() if value is not None}


@dataclass(frozen=True)
class PageInfo:
    has_next_page: bool = False
    has_previous_page: bool = False
    start_cursor: Optional[str] = None
    end_cursor: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "hasNextPage": self.has_next_page,
            "hasPreviousPage": self.has_previous_page,
            "startCursor": self.start_cursor,
            "endCursor": self.end_cursor,
        }


@dataclass(frozen=True)
class PaginatedResponse(Generic[T]):
    """One page of results plus the upstream page metadata."""
    items: List[T] = field(default_factory=list)
    page_info: PageInfo = field(default_factory=PageInfo)
    total_count: int = 0

    @classmethod
    def empty(cls) -> "PaginatedResponse[T]":
        """The canonical empty page."""
        return cls(items=[], page_info=PageInfo(), total_count=0)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "items": _serialize(self.items),
            "pageInfo": self.page_info.to_dict(),
            "totalCount": self.total_count,
        }


# Projects and issues

@dataclass(frozen=True)
class ProjectRepository:
    url: Optional[str] = None
    provider: str = "N/A"
    login: Optional[str] = None
    is_private: bool = False
    is_activated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "url": self.url,
            "provider": self.provider,
            "login": self.login,
            "isPrivate": self.is_private,
            "isActivated": self.is_activated,
        }


@dataclass(frozen=True)
class Project:
    """A repository activated on DeepSource, keyed by its DSN."""
    key: str
    name: str
    repository: ProjectRepository = field(default_factory=ProjectRepository)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key,
            "name": self.name,
            "repository": self.repository.to_dict(),
        }


@dataclass(frozen=True)
class Issue:
    """A single issue occurrence reported by an analyzer."""
    id: str
    shortcode: str
    title: str = "Untitled Issue"
    category: str = "UNKNOWN"
    severity: str = "UNKNOWN"
    status: str = "OPEN"
    issue_text: str = ""
    file_path: str = "N/A"
    line_number: Optional[int] = None
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "shortcode": self.shortcode,
            "title": self.title,
            "category": self.category,
            "severity": self.severity,
            "status": self.status,
            "issue_text": self.issue_text,
            "file_path": self.file_path,
            "line_number": self.line_number,
            "tags": list(self.tags),
        }


# Runs

@dataclass(frozen=True)
class RunSummary:
    occurrences_introduced: int = 0
    occurrences_resolved: int = 0
    occurrences_suppressed: int = 0
    occurrence_distribution_by_analyzer: List[Dict[str, Any]] = field(default_factory=list)
    occurrence_distribution_by_category: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "occurrencesIntroduced": self.occurrences_introduced,
            "occurrencesResolved": self.occurrences_resolved,
            "occurrencesSuppressed": self.occurrences_suppressed,
            "occurrenceDistributionByAnalyzer": list(self.occurrence_distribution_by_analyzer),
            "occurrenceDistributionByCategory": list(self.occurrence_distribution_by_category),
        }


@dataclass(frozen=True)
class Run:
    """An analysis run triggered for a commit."""
    id: str
    run_uid: str
    commit_oid: str
    branch_name: str
    base_oid: Optional[str] = None
    status: str = "UNKNOWN"
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    finished_at: Optional[str] = None
    summary: RunSummary = field(default_factory=RunSummary)
    repository_name: Optional[str] = None
    repository_id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "runUid": self.run_uid,
            "commitOid": self.commit_oid,
            "branchName": self.branch_name,
            "baseOid": self.base_oid,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "finishedAt": self.finished_at,
            "summary": self.summary.to_dict(),
            "repository": {"name": self.repository_name, "id": self.repository_id},
        }


@dataclass(frozen=True)
class RecentRunIssues:
    """Issues raised by the most recent run on a branch."""
    run: Run
    issues: PaginatedResponse[Issue] = field(default_factory=PaginatedResponse.empty)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = self.issues.to_dict()
        result["run"] = self.run.to_dict()
        return result


# Dependency vulnerabilities

@dataclass(frozen=True)
class Package:
    id: str
    ecosystem: str
    name: str
    purl: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "ecosystem": self.ecosystem, "name": self.name, "purl": self.purl}


@dataclass(frozen=True)
class PackageVersion:
    id: str
    version: str
    version_type: Optional[PackageVersionType] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "version": self.version,
            "versionType": _serialize(self.version_type),
        }


@dataclass(frozen=True)
class Vulnerability:
    """An advisory from a vulnerability database."""
    id: str
    identifier: str
    aliases: List[str] = field(default_factory=list)
    summary: Optional[str] = None
    details: Optional[str] = None
    published_at: Optional[str] = None
    updated_at: Optional[str] = None
    withdrawn_at: Optional[str] = None
    severity: VulnerabilitySeverity = VulnerabilitySeverity.NONE
    cvss_v2_vector: Optional[str] = None
    cvss_v2_base_score: Optional[float] = None
    cvss_v2_severity: Optional[VulnerabilitySeverity] = None
    cvss_v3_vector: Optional[str] = None
    cvss_v3_base_score: Optional[float] = None
    cvss_v3_severity: Optional[VulnerabilitySeverity] = None
    cvss_v4_vector: Optional[str] = None
    cvss_v4_base_score: Optional[float] = None
    cvss_v4_severity: Optional[VulnerabilitySeverity] = None
    epss_score: Optional[float] = None
    epss_percentile: Optional[float] = None
    introduced_versions: List[str] = field(default_factory=list)
    fixed_versions: List[str] = field(default_factory=list)
    reference_urls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "identifier": self.identifier,
            "aliases": list(self.aliases),
            "summary": self.summary,
            "details": self.details,
            "publishedAt": self.published_at,
            "updatedAt": self.updated_at,
            "withdrawnAt": self.withdrawn_at,
            "severity": _serialize(self.severity),
            "cvssV2Vector": self.cvss_v2_vector,
            "cvssV2BaseScore": self.cvss_v2_base_score,
            "cvssV2Severity": _serialize(self.cvss_v2_severity),
            "cvssV3Vector": self.cvss_v3_vector,
            "cvssV3BaseScore": self.cvss_v3_base_score,
            "cvssV3Severity": _serialize(self.cvss_v3_severity),
            "cvssV4Vector": self.cvss_v4_vector,
            "cvssV4BaseScore": self.cvss_v4_base_score,
            "cvssV4Severity": _serialize(self.cvss_v4_severity),
            "epssScore": self.epss_score,
            "epssPercentile": self.epss_percentile,
            "introducedVersions": list(self.introduced_versions),
            "fixedVersions": list(self.fixed_versions),
            "referenceUrls": list(self.reference_urls),
        }


@dataclass(frozen=True)
class VulnerabilityOccurrence:
    """A vulnerability affecting one resolved package version."""
    id: str
    package: Package
    package_version: PackageVersion
    vulnerability: Vulnerability
    reachability: VulnerabilityReachability = VulnerabilityReachability.UNKNOWN
    fixability: VulnerabilityFixability = VulnerabilityFixability.ERROR

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "package": self.package.to_dict(),
            "packageVersion": self.package_version.to_dict(),
            "vulnerability": self.vulnerability.to_dict(),
            "reachability": self.reachability.value,
            "fixability": self.fixability.value,
        }


# Quality metrics

@dataclass(frozen=True)
class MetricItem:
    """A metric value for a single language scope."""
    id: str
    key: str
    threshold: Optional[float] = None
    latest_value: Optional[float] = None
    latest_value_display: Optional[str] = None
    threshold_status: MetricThresholdStatus = MetricThresholdStatus.UNKNOWN

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "key": self.key,
            "threshold": self.threshold,
            "latestValue": self.latest_value,
            "latestValueDisplay": self.latest_value_display,
            "thresholdStatus": self.threshold_status.value,
        }


@dataclass(frozen=True)
class RepositoryMetric:
    name: str
    shortcode: str
    description: str = ""
    positive_direction: Optional[MetricDirection] = None
    unit: Optional[str] = None
    min_value_allowed: Optional[float] = None
    max_value_allowed: Optional[float] = None
    is_reported: bool = False
    is_threshold_enforced: bool = False
    items: List[MetricItem] = field(default_factory=list)

    def find_item(self, key: str) -> Optional[MetricItem]:
        """Return the item reported for ``key``, if any."""
        return next((item for item in self.items if item.key == key), None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "name": self.name,
            "shortcode": self.shortcode,
            "description": self.description,
            "positiveDirection": _serialize(self.positive_direction),
            "unit": self.unit,
            "minValueAllowed": self.min_value_allowed,
            "maxValueAllowed": self.max_value_allowed,
            "isReported": self.is_reported,
            "isThresholdEnforced": self.is_threshold_enforced,
            "items": _serialize(self.items),
        }


@dataclass(frozen=True)
class MetricHistoryValue:
    value: float
    value_display: str
    threshold: Optional[float] = None
    commit_oid: Optional[str] = None
    created_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "value": self.value,
            "valueDisplay": self.value_display,
            "threshold": self.threshold,
            "commitOid": self.commit_oid,
            "createdAt": self.created_at,
        }


@dataclass(frozen=True)
class MetricHistoryResponse:
    """A metric's identity together with its recorded values."""
    shortcode: str
    metric_key: str
    name: str
    unit: Optional[str] = None
    positive_direction: Optional[MetricDirection] = None
    threshold: Optional[float] = None
    is_threshold_enforced: bool = False
    values: List[MetricHistoryValue] = field(default_factory=list)
    is_trending_positive: bool = True

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "shortcode": self.shortcode,
            "metricKey": self.metric_key,
            "name": self.name,
            "unit": self.unit,
            "positiveDirection": _serialize(self.positive_direction),
            "threshold": self.threshold,
            "isThresholdEnforced": self.is_threshold_enforced,
            "values": _serialize(self.values),
            "isTrendingPositive": self.is_trending_positive,
        }


# Compliance reports

@dataclass(frozen=True)
class ComplianceCategory:
    category: str
    critical: int = 0
    major: int = 0
    minor: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "category": self.category,
            "critical": self.critical,
            "major": self.major,
            "minor": self.minor,
            "total": self.total,
        }


@dataclass(frozen=True)
class SeverityDistribution:
    critical: int = 0
    major: int = 0
    minor: int = 0
    total: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "critical": self.critical,
            "major": self.major,
            "minor": self.minor,
            "total": self.total,
        }


@dataclass(frozen=True)
class ComplianceReport:
    """Security posture of a project against a compliance standard."""
    key: ReportType
    title: str
    status: Optional[ReportStatus] = None
    current_value: Optional[float] = None
    categories: List[ComplianceCategory] = field(default_factory=list)
    severity_distribution: SeverityDistribution = field(default_factory=SeverityDistribution)
    compliance_score: int = 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "key": self.key.value,
            "title": self.title,
            "status": _serialize(self.status),
            "currentValue": self.current_value,
            "securityIssueStats": _serialize(self.categories),
            "severityDistribution": self.severity_distribution.to_dict(),
            "complianceScore": self.compliance_score,
        }
