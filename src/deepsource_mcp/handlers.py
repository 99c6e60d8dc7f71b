"""
Tool handlers for the DeepSource MCP Server.

Each handler calls the client and shapes the result into an MCP content
payload. Failures never escape a handler; they come back as a payload
flagged with ``isError``.
"""

import functools
import json
import time
from typing import Any, Awaitable, Callable, Dict, List, Optional

from loguru import logger

from .client import DeepSourceClient
from .exceptions import ClassifiedError, ReportNotFoundError
from .error_classifier import get_error_message, is_error_with_message
from .models import (
    ComplianceReport,
    MetricDirection,
    MetricItem,
    MetricThresholdStatus,
    PaginatedResponse,
    PaginationParams,
    VulnerabilityFixability,
    VulnerabilityOccurrence,
    VulnerabilityReachability,
    VulnerabilitySeverity,
)
from .pagination import pagination_metadata
from .constants import COMPLIANCE
from .validation import (
    InputValidator,
    validate_metric_key,
    validate_metric_shortcode,
    validate_project_key,
    validate_report_type,
)


ApiResponse = Dict[str, Any]


def wrap_in_api_response(data: Any) -> ApiResponse:
    """Wrap JSON-serializable data as MCP text content."""
    return {"content": [{"type": "text", "text": json.dumps(data, indent=2)}]}


def create_error_response(error: Any, details: str) -> ApiResponse:
    """Build the ``isError`` payload for a failed tool call."""
    message = get_error_message(error) if is_error_with_message(error) else "Unknown error"
    body: Dict[str, Any] = {"error": message, "details": details}
    if isinstance(error, ClassifiedError):
        body["code"] = error.category.value
    return {"isError": True, "content": [{"type": "text", "text": json.dumps(body, indent=2)}]}


def tool_handler(details: str) -> Callable:
    """Log timing and convert any raised error into an error payload."""
    def decorator(func: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[ApiResponse]]:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> ApiResponse:
            started = time.perf_counter()
            try:
                result = await func(*args, **kwargs)
                logger.debug(f"{func.__name__} completed in {(time.perf_counter() - started) * 1000:.0f}ms")
                return wrap_in_api_response(result)
            except Exception as e:
                logger.error(f"❌ {func.__name__} failed: {e}")
                return create_error_response(e, details)
        return wrapper
    return decorator


def _page_payload(response: PaginatedResponse, page_size: Optional[int] = None) -> Dict[str, Any]:
    payload = response.to_dict()
    payload["pagination"] = pagination_metadata(response, page_size=page_size)
    return payload


# Derived analysis helpers

def describe_cvss_score(score: Optional[float]) -> str:
    """Qualitative rating for a CVSS base score."""
    if score is None:
        return "Unknown"
    if score >= 9.0:
        return "Critical"
    if score >= 7.0:
        return "High"
    if score >= 4.0:
        return "Medium"
    return "Low"


def severity_level(severity: VulnerabilitySeverity) -> str:
    """Human-readable urgency for a vulnerability severity."""
    return {
        VulnerabilitySeverity.CRITICAL: "Critical - immediate action required",
        VulnerabilitySeverity.HIGH: "High - prioritize remediation",
        VulnerabilitySeverity.MEDIUM: "Medium - plan remediation",
        VulnerabilitySeverity.LOW: "Low - address when convenient",
    }.get(severity, "None - informational")


def remediation_advice(occurrence: VulnerabilityOccurrence) -> str:
    """Suggest a fix for a vulnerable dependency."""
    package = occurrence.package.name
    fixed = occurrence.vulnerability.fixed_versions
    if occurrence.fixability is VulnerabilityFixability.AUTO_FIXABLE:
        return f"An autofix is available for {package}; apply it from DeepSource."
    if fixed:
        return f"Upgrade {package} to a fixed version: {', '.join(fixed)}."
    if occurrence.reachability is VulnerabilityReachability.UNREACHABLE:
        return f"No fix is available for {package}, but the vulnerable code is not reachable; monitor for updates."
    return f"No fixed version of {package} is available yet; consider mitigations or an alternative package."


def threshold_info(item: MetricItem) -> Optional[Dict[str, Any]]:
    """Distance of the latest value from the threshold, when both exist."""
    if item.threshold is None or item.latest_value is None:
        return None
    difference = item.latest_value - item.threshold
    percent = (difference / item.threshold * 100) if item.threshold else 0.0
    return {
        "difference": difference,
        "percentDifference": f"{percent:.2f}%",
        "isPassing": item.threshold_status is MetricThresholdStatus.PASSING,
    }


def compliance_recommendations(report: ComplianceReport) -> List[str]:
    """Action items derived from a report's severity distribution."""
    distribution = report.severity_distribution
    recommendations = []
    if distribution.critical:
        recommendations.append(
            f"Fix the {distribution.critical} critical issue(s) first; they carry the largest score penalty."
        )
    if distribution.major:
        recommendations.append(f"Schedule remediation of the {distribution.major} major issue(s).")
    if distribution.minor:
        recommendations.append(f"Review the {distribution.minor} minor issue(s) during regular maintenance.")
    if not recommendations:
        recommendations.append(f"No {report.title} issues found; keep analysis enabled to stay compliant.")
    return recommendations


# Handlers

@tool_handler("Failed to retrieve projects")
async def handle_projects(client: DeepSourceClient) -> List[Dict[str, str]]:
    projects = await client.list_projects()
    return [{"key": project.key, "name": project.name} for project in projects]


@tool_handler("Failed to retrieve project issues")
async def handle_project_issues(
    client: DeepSourceClient,
    project_key: str,
    pagination: Optional[PaginationParams] = None,
    analyzer_in: Optional[List[str]] = None,
    tags: Optional[List[str]] = None,
    path: Optional[str] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    response = await client.get_issues(project_key, pagination, analyzer_in, tags, path)
    return _page_payload(response)


@tool_handler("Failed to retrieve runs")
async def handle_runs(
    client: DeepSourceClient,
    project_key: str,
    pagination: Optional[PaginationParams] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    return _page_payload(await client.list_runs(project_key, pagination))


@tool_handler("Failed to retrieve run")
async def handle_run(client: DeepSourceClient, run_identifier: str) -> Dict[str, Any]:
    run = await client.get_run(run_identifier)
    if run is None:
        raise LookupError(f"Run with identifier {run_identifier} not found")
    return run.to_dict()


@tool_handler("Failed to retrieve recent run issues")
async def handle_recent_run_issues(
    client: DeepSourceClient,
    project_key: str,
    branch_name: str,
    pagination: Optional[PaginationParams] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    InputValidator.validate_branch_name(branch_name)
    result = await client.get_recent_run_issues(project_key, branch_name, pagination)
    payload = result.to_dict()
    payload["pagination"] = pagination_metadata(result.issues)
    return payload


@tool_handler("Failed to retrieve dependency vulnerabilities")
async def handle_dependency_vulnerabilities(
    client: DeepSourceClient,
    project_key: str,
    pagination: Optional[PaginationParams] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    response = await client.get_dependency_vulnerabilities(project_key, pagination)

    payload = _page_payload(response)
    for item, occurrence in zip(payload["items"], response.items):
        advisory = occurrence.vulnerability
        score = advisory.cvss_v3_base_score if advisory.cvss_v3_base_score is not None else advisory.cvss_v2_base_score
        item["analysis"] = {
            "severityLevel": severity_level(advisory.severity),
            "cvssScore": score,
            "cvssDescription": describe_cvss_score(score),
            "remediationAdvice": remediation_advice(occurrence),
        }
    return payload


@tool_handler("Failed to retrieve quality metrics")
async def handle_quality_metrics(
    client: DeepSourceClient,
    project_key: str,
    shortcode_in: Optional[List[str]] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    for shortcode in shortcode_in or []:
        validate_metric_shortcode(shortcode)

    metrics = await client.get_quality_metrics(project_key, shortcode_in)
    serialized = []
    for metric in metrics:
        data = metric.to_dict()
        for item_data, item in zip(data["items"], metric.items):
            item_data["thresholdInfo"] = threshold_info(item)
        serialized.append(data)
    return {"metrics": serialized}


@tool_handler("Failed to update metric threshold")
async def handle_update_metric_threshold(
    client: DeepSourceClient,
    project_key: str,
    repository_id: str,
    metric_shortcode: str,
    metric_key: str,
    threshold: Optional[float],
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    validate_metric_shortcode(metric_shortcode)
    validate_metric_key(metric_key)
    InputValidator.validate_threshold(threshold)

    result = await client.set_metric_threshold(project_key, repository_id, metric_shortcode, metric_key, threshold)
    action = f"set to {threshold}" if threshold is not None else "removed"
    return {
        "ok": result["ok"],
        "projectKey": project_key,
        "metricShortcode": metric_shortcode,
        "metricKey": metric_key,
        "threshold": threshold,
        "message": f"Threshold for {metric_shortcode} ({metric_key}) {action}" if result["ok"]
        else f"Failed to update threshold for {metric_shortcode} ({metric_key})",
    }


@tool_handler("Failed to update metric setting")
async def handle_update_metric_setting(
    client: DeepSourceClient,
    project_key: str,
    repository_id: str,
    metric_shortcode: str,
    is_reported: bool,
    is_threshold_enforced: bool,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    validate_metric_shortcode(metric_shortcode)

    result = await client.update_metric_setting(
        project_key, repository_id, metric_shortcode, is_reported, is_threshold_enforced
    )
    return {
        "ok": result["ok"],
        "projectKey": project_key,
        "metricShortcode": metric_shortcode,
        "settings": {"isReported": is_reported, "isThresholdEnforced": is_threshold_enforced},
        "message": f"Settings for {metric_shortcode} updated" if result["ok"]
        else f"Failed to update settings for {metric_shortcode}",
    }


@tool_handler("Failed to retrieve metric history")
async def handle_metric_history(
    client: DeepSourceClient,
    project_key: str,
    metric_shortcode: str,
    metric_key: str = "AGGREGATE",
    limit: Optional[int] = None,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    validate_metric_shortcode(metric_shortcode)
    validate_metric_key(metric_key)

    history = await client.get_metric_history(project_key, metric_shortcode, metric_key, limit)
    if history is None:
        raise LookupError(f"No history found for metric {metric_shortcode} ({metric_key}) in project {project_key}")

    payload = history.to_dict()
    values = [value.value for value in history.values]
    analysis: Dict[str, Any] = {
        "valueCount": len(values),
        "isTrendingPositive": history.is_trending_positive,
        "direction": "higher is better" if history.positive_direction is MetricDirection.UPWARD
        else "lower is better",
    }
    if len(values) >= 2:
        change = values[-1] - values[0]
        analysis["change"] = change
        analysis["changePercentage"] = f"{(change / values[0] * 100) if values[0] else 0.0:.2f}%"
    payload["analysis"] = analysis
    return payload


@tool_handler("Failed to retrieve compliance report")
async def handle_compliance_report(
    client: DeepSourceClient,
    project_key: str,
    report_type: str,
) -> Dict[str, Any]:
    project_key = validate_project_key(project_key)
    validate_report_type(report_type)

    report = await client.get_compliance_report(project_key, report_type)
    if report is None:
        raise ReportNotFoundError(project_key, report_type)

    payload = report.to_dict()
    distribution = report.severity_distribution
    payload["analysis"] = {
        "summary": f"{report.title}: {distribution.total} issue(s) across {len(report.categories)} categories",
        "complianceScore": report.compliance_score,
        "criticalIssues": distribution.critical,
        "status": payload["status"],
    }
    payload["recommendations"] = compliance_recommendations(report)
    payload["resource"] = COMPLIANCE.RESOURCES.get(report_type)
    return payload
