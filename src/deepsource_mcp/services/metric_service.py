"""
Metric service for the DeepSource MCP Server.

Reads repository quality metrics and their history, and updates metric
thresholds and settings.
"""

from typing import Any, Dict, List, Optional

from loguru import logger

from ..config import Config
from ..constants import PROCESSING
from ..error_classifier import classify_error, recover_or_raise
from ..exceptions import ClassifiedError
from ..extraction import collect_valid, dig, extract_items
from ..mappers import map_metric, map_history_value
from ..models import (
    MetricDirection,
    MetricHistoryResponse,
    MetricHistoryValue,
    MetricKey,
    Project,
    RepositoryMetric,
)
from ..queries import (
    METRIC_HISTORY_QUERY,
    QUALITY_METRICS_QUERY,
    SET_METRIC_THRESHOLD_MUTATION,
    UPDATE_METRIC_SETTING_MUTATION,
)
from ..transport import GraphQLTransport
from .project_service import ProjectService


def is_trending_positive(values: List[float], direction: Any) -> bool:
    """
    Whether a metric moved in its good direction between first and last value.

    Upward metrics (``UPWARD``/``HIGHER_IS_BETTER``) trend positive when the
    last value is at least the first; all others when it is at most the
    first. Fewer than two values count as positive.
    """
    if len(values) < 2:
        return True
    first, last = values[0], values[-1]
    if MetricDirection.parse(direction) is MetricDirection.UPWARD:
        return last >= first
    return last <= first


def _chronological(values: List[MetricHistoryValue]) -> List[MetricHistoryValue]:
    """Order values oldest first; values without a timestamp keep their position."""
    slots = [index for index, value in enumerate(values) if value.created_at]
    ordered = sorted((values[index] for index in slots), key=lambda value: value.created_at)
    result = list(values)
    for index, value in zip(slots, ordered):
        result[index] = value
    return result


class MetricService:
    """Service for repository quality metrics."""

    def __init__(self, config: Config, transport: GraphQLTransport, projects: ProjectService):
        self.config = config
        self.transport = transport
        self.projects = projects

    async def get_quality_metrics(
        self,
        project_key: str,
        shortcode_in: Optional[List[str]] = None,
    ) -> List[RepositoryMetric]:
        """
        Get quality metrics for a project.

        Args:
            project_key: Project key (repository DSN)
            shortcode_in: Restrict to these metric shortcodes

        Returns:
            Metrics with their per-language items; empty for unknown projects
        """
        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return []
            return await self._fetch_metrics(project, shortcode_in)

        except Exception as e:
            return recover_or_raise(e, [], "get_quality_metrics")

    async def _fetch_metrics(self, project: Project, shortcode_in: Optional[List[str]]) -> List[RepositoryMetric]:
        variables: Dict[str, Any] = ProjectService.repository_variables(project)
        if shortcode_in:
            variables["shortcodeIn"] = shortcode_in

        logger.info(f"Fetching quality metrics for {project.name}")
        data = await self.transport.execute(QUALITY_METRICS_QUERY, variables)
        metrics = collect_valid(dig(data, "repository", "metrics") or [], map_metric, label="metric")
        logger.info(f"Found {len(metrics)} metrics")
        return metrics

    async def set_metric_threshold(
        self,
        project_key: str,
        repository_id: str,
        metric_shortcode: str,
        metric_key: str,
        threshold: Optional[float],
    ) -> Dict[str, bool]:
        """
        Set or clear the threshold of a metric.

        Returns:
            ``{"ok": bool}`` as reported by upstream
        """
        variables = {
            "input": {
                "repositoryId": repository_id,
                "metricShortcode": metric_shortcode,
                "metricKey": metric_key,
                "thresholdValue": threshold,
            }
        }
        try:
            logger.info(f"Setting {metric_shortcode}/{metric_key} threshold to {threshold} for {project_key}")
            data = await self.transport.execute(SET_METRIC_THRESHOLD_MUTATION, variables)
            return {"ok": bool(dig(data, "setRepositoryMetricThreshold", "ok"))}
        except ClassifiedError:
            raise
        except Exception as e:
            raise classify_error(e) from e

    async def update_metric_setting(
        self,
        project_key: str,
        repository_id: str,
        metric_shortcode: str,
        is_reported: bool,
        is_threshold_enforced: bool,
    ) -> Dict[str, bool]:
        """
        Update whether a metric is reported and whether its threshold is enforced.

        Returns:
            ``{"ok": bool}`` as reported by upstream
        """
        variables = {
            "input": {
                "repositoryId": repository_id,
                "metricShortcode": metric_shortcode,
                "isReported": is_reported,
                "isThresholdEnforced": is_threshold_enforced,
            }
        }
        try:
            logger.info(f"Updating {metric_shortcode} settings for {project_key}")
            data = await self.transport.execute(UPDATE_METRIC_SETTING_MUTATION, variables)
            return {"ok": bool(dig(data, "updateRepositoryMetricSetting", "ok"))}
        except ClassifiedError:
            raise
        except Exception as e:
            raise classify_error(e) from e

    async def get_metric_history(
        self,
        project_key: str,
        metric_shortcode: str,
        metric_key: str = MetricKey.AGGREGATE.value,
        limit: Optional[int] = None,
    ) -> Optional[MetricHistoryResponse]:
        """
        Get historical values of one metric.

        Looks up the metric's identity and direction first, then fetches its
        values in a second request.

        Args:
            project_key: Project key (repository DSN)
            metric_shortcode: Metric shortcode, e.g. ``LCV``
            metric_key: Language scope, e.g. ``AGGREGATE``
            limit: Maximum number of values

        Returns:
            The history with ``is_trending_positive`` computed, or None when
            the project or metric does not exist
        """
        try:
            project = await self.projects.find_project(project_key)
            if project is None:
                return None

            metrics = await self._fetch_metrics(project, [metric_shortcode])
            metric = next((m for m in metrics if m.shortcode == metric_shortcode), None)
            item = metric.find_item(metric_key) if metric else None
            if metric is None or item is None:
                logger.warning(f"Metric {metric_shortcode}/{metric_key} not found for {project_key}")
                return None

            variables = {
                **ProjectService.repository_variables(project),
                "metricItemId": item.id,
                "limit": limit or PROCESSING.HISTORY_VALUES,
            }
            data = await self.transport.execute(METRIC_HISTORY_QUERY, variables)
            values = _chronological(
                extract_items(data, "values", map_history_value, root=("repository", "metric")).items
            )

            return MetricHistoryResponse(
                shortcode=metric.shortcode,
                metric_key=item.key,
                name=metric.name,
                unit=metric.unit,
                positive_direction=metric.positive_direction,
                threshold=item.threshold,
                is_threshold_enforced=metric.is_threshold_enforced,
                values=values,
                is_trending_positive=is_trending_positive(
                    [value.value for value in values], metric.positive_direction
                ),
            )

        except Exception as e:
            return recover_or_raise(e, None, "get_metric_history", tolerate_not_found=True)
