"""
Report Assembler.

Runs one analytics report end to end, in a single pass with no retries and
no persisted intermediate state:

    Routed -> Gathered -> Aggregated -> Insighted -> Costed -> Assembled

1. Validate the query. A reversed date range, an unknown report type or a
   malformed payload raises ConfigurationError before any store is touched.
2. Route on the date range alone (services.routing).
3. Gather topics, prompts and media concurrently from the chosen tier.
   Failed gathers degrade to empty lists (services.gathering).
4. Aggregate (services.aggregation).
5. Produce insights, falling back to templates (services.insights).
6. Estimate the query cost (services.cost_model).
7. Assemble the frozen AnalyticsReport with visualization descriptors.

An optional per-call timeout is converted to a deadline; the remaining budget
is handed to the gathers and to the insight call, and running out of time
degrades those steps exactly like any other failure.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Tuple, Union
from uuid import uuid4

from pydantic import ValidationError

from analytics_backend.core.config import AnalyticsConfig
from analytics_backend.core.exceptions import ConfigurationError
from analytics_backend.models.enums import ChartType, ReportType, StorageTier
from analytics_backend.models.schemas import (
    AnalyticsQuery,
    AnalyticsReport,
    ProcessedData,
    ReportMetadata,
    ReportSummary,
    VisualizationDescriptor,
    Visualizations,
)
from analytics_backend.services.aggregation import (
    CorrelationHook,
    process_analytics_data,
    zero_correlations,
)
from analytics_backend.services.cost_model import calculate_query_cost
from analytics_backend.services.gathering import Gatherer, gather_records
from analytics_backend.services.insights import InsightAdapter
from analytics_backend.services.routing import compute_span_days, select_tier


logger = logging.getLogger(__name__)


# =============================================================================
# Query Validation
# =============================================================================


def parse_query(payload: Union[AnalyticsQuery, Mapping[str, Any]]) -> AnalyticsQuery:
    """
    Parse a request payload into an AnalyticsQuery.

    Raises:
        ConfigurationError: The payload does not describe a valid query
            (unknown reportType, unparsable dates, wrong types).
    """
    if isinstance(payload, AnalyticsQuery):
        return payload
    try:
        return AnalyticsQuery.model_validate(payload)
    except ValidationError as e:
        details = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ConfigurationError(f"Invalid analytics query: {details}") from e


def validate_query(query: AnalyticsQuery) -> None:
    """
    Check constraints the schema alone does not enforce.

    Raises:
        ConfigurationError: startDate is after endDate.
    """
    if query.dateRange.startDate > query.dateRange.endDate:
        raise ConfigurationError(
            f"Invalid date range: startDate {query.dateRange.startDate.isoformat()} "
            f"is after endDate {query.dateRange.endDate.isoformat()}"
        )


def build_report_id(generated_at: datetime, report_type: ReportType) -> str:
    """
    Report id from generation time and report type.

    A random suffix keeps ids distinct for identical queries issued within
    the same millisecond; the query content never contributes.
    """
    millis = int(generated_at.timestamp() * 1000)
    return f"report-{millis}-{report_type.value}-{uuid4().hex[:8]}"


# =============================================================================
# Visualization Descriptors
# =============================================================================

# (kind, chart type, title, dataRef, section)
_Descriptor = Tuple[str, str, str, str, str]

_BASE_DESCRIPTORS: List[_Descriptor] = [
    ("chart", ChartType.BAR.value, "Topics by Category", "data.topics.byCategory", "topics"),
    ("chart", ChartType.PIE.value, "Urgency Distribution", "data.topics.byUrgency", "topics"),
    ("chart", ChartType.LINE.value, "Media Performance by Category", "data.media.byCategory", "media"),
    ("table", "table", "Search Volume Statistics", "data.topics.searchVolumeStats", "topics"),
    ("table", "table", "ROI Analysis", "data.media.roi", "roi"),
]

_REPORT_DESCRIPTORS = {
    ReportType.TREND_ANALYSIS: [
        ("chart", ChartType.LINE.value, "Topics Discovered per Day", "data.topics.byDate", "topics"),
        ("table", "table", "Conversion Rates", "data.topics.conversionRates", "topics"),
    ],
    ReportType.PROMPT_PERFORMANCE: [
        ("chart", ChartType.PIE.value, "Prompt Quality Distribution",
         "data.prompts.qualityDistribution", "prompts"),
        ("chart", ChartType.BAR.value, "Prompts by Category", "data.prompts.byCategory", "prompts"),
        ("table", "table", "Prompt Reuse", "data.prompts.reuseStats", "prompts"),
    ],
    ReportType.VIDEO_PERFORMANCE: [
        ("table", "table", "Media Performance", "data.media.performance", "media"),
    ],
    ReportType.COST_ANALYSIS: [
        ("chart", ChartType.BAR.value, "Production Cost by Category", "data.media.byCategory", "media"),
        ("table", "table", "Query Cost", "costAnalysis", "cost"),
    ],
    ReportType.ROI_ANALYSIS: [
        ("table", "table", "Media Performance", "data.media.performance", "media"),
        ("table", "table", "Query Cost", "costAnalysis", "cost"),
    ],
    ReportType.CONTENT_EFFECTIVENESS: [
        ("table", "table", "Conversion Rates", "data.topics.conversionRates", "topics"),
        ("chart", ChartType.PIE.value, "Prompt Quality Distribution",
         "data.prompts.qualityDistribution", "prompts"),
    ],
}


def create_visualizations(processed: ProcessedData, query: AnalyticsQuery) -> Visualizations:
    """
    Declarative chart and table descriptors for a report.

    The base set is always considered; report-type descriptors are added,
    a grouped chart is added when groupBy is set, and query.metrics (when
    given) keeps only descriptors of the named sections
    (topics, prompts, media, roi, cost, grouped).
    """
    descriptors = list(_BASE_DESCRIPTORS) + _REPORT_DESCRIPTORS.get(query.reportType, [])
    if processed.groupBy is not None:
        descriptors.append((
            "chart", ChartType.BAR.value,
            f"Records by {processed.groupBy.value}", "data.grouped", "grouped",
        ))

    wanted = {m.strip().lower() for m in query.metrics} if query.metrics else None

    charts: List[VisualizationDescriptor] = []
    tables: List[VisualizationDescriptor] = []
    seen = set()
    for kind, chart_type, title, data_ref, section in descriptors:
        if wanted is not None and section not in wanted:
            continue
        if (kind, title) in seen:
            continue
        seen.add((kind, title))
        target = charts if kind == "chart" else tables
        target.append(VisualizationDescriptor(type=chart_type, title=title, dataRef=data_ref))

    return Visualizations(charts=charts, tables=tables)


# =============================================================================
# Report Service
# =============================================================================


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _earliest(*budgets: Optional[float]) -> Optional[float]:
    present = [b for b in budgets if b is not None]
    return min(present) if present else None


class ReportService:
    """
    Executes analytics queries against the two tiers.

    All collaborators and configuration are injected; the service keeps no
    state between calls and can serve concurrent reports.

    Args:
        config: Engine configuration.
        fast_gatherer: Gatherer for the hot tables.
        archive_gatherer: Gatherer for the archive store.
        insight_adapter: Insight synthesizer adapter with fallback.
        correlation_hook: Computes the correlations section.
        clock: Returns the current UTC time (injectable for tests).
    """

    def __init__(
        self,
        config: AnalyticsConfig,
        fast_gatherer: Gatherer,
        archive_gatherer: Gatherer,
        insight_adapter: Optional[InsightAdapter] = None,
        correlation_hook: CorrelationHook = zero_correlations,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.config = config
        self._gatherers = {
            StorageTier.FAST: fast_gatherer,
            StorageTier.ARCHIVE: archive_gatherer,
        }
        self._insights = insight_adapter or InsightAdapter(timeout=config.insight_timeout_seconds)
        self._correlation_hook = correlation_hook
        self._clock = clock

    async def generate_report(
        self,
        query: Union[AnalyticsQuery, Mapping[str, Any]],
        timeout: Optional[float] = None,
    ) -> AnalyticsReport:
        """
        Generate one analytics report.

        Args:
            query: AnalyticsQuery or its JSON payload.
            timeout: Optional overall deadline in seconds for the I/O phases.

        Returns:
            The assembled, immutable AnalyticsReport.

        Raises:
            ConfigurationError: The query is invalid. No I/O has happened.
        """
        query = parse_query(query)
        validate_query(query)

        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + timeout if timeout is not None else None

        def remaining() -> Optional[float]:
            if deadline is None:
                return None
            return max(0.0, deadline - loop.time())

        generated_at = self._clock()
        report_id = build_report_id(generated_at, query.reportType)

        # Routed
        span_days = compute_span_days(query.dateRange)
        tier = select_tier(query.dateRange, self.config.hot_cold_threshold_days)
        logger.info(f"Report {report_id}: {span_days}-day span routed to {tier.value} tier")

        # Gathered
        gathered = await gather_records(
            self._gatherers[tier],
            query,
            timeout=_earliest(self.config.gather_timeout_seconds, remaining()),
        )

        # Aggregated
        processed = process_analytics_data(
            gathered.topics,
            gathered.prompts,
            gathered.media,
            cpm_constant=self.config.cpm_constant,
            group_by=query.groupBy,
            correlation_hook=self._correlation_hook,
        )

        # Insighted
        insights, insight_source = await self._insights.generate(processed, query, timeout=remaining())
        logger.info(f"Report {report_id}: insights from {insight_source.value}")

        # Costed
        cost_analysis = calculate_query_cost(tier, gathered.total_records, self.config)

        # Assembled
        failures = gathered.failures if self.config.flag_partial_reports else []
        report = AnalyticsReport(
            reportId=report_id,
            reportType=query.reportType,
            generatedAt=generated_at,
            dateRange=query.dateRange,
            summary=ReportSummary(
                totalRecords=gathered.total_records,
                keyInsights=insights.keyInsights,
                recommendations=insights.recommendations,
            ),
            data=processed,
            visualizations=create_visualizations(processed, query),
            costAnalysis=cost_analysis,
            insights=insights,
            metadata=ReportMetadata(
                tier=tier,
                spanDays=span_days,
                partial=bool(failures),
                gatherFailures=failures,
                insightSource=insight_source,
                executionTimeMs=int((loop.time() - started) * 1000),
            ),
        )

        logger.info(
            f"Report {report_id} generated in {report.metadata.executionTimeMs}ms "
            f"({gathered.total_records} records, partial={report.metadata.partial})"
        )
        return report
