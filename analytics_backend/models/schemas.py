"""
Pydantic request/response models for the analytics backend.

This module provides type-safe data validation and serialization for:
- the three input record types (topics, prompts, media items), as produced
  by the ingestion pipeline and coerced by the gatherers
- the analytics query accepted by generate_report
- the processed aggregates, insight result and cost analysis
- the immutable analytics report

Field names are camelCase to match the JSON wire format one-to-one.
Everything created by the engine for a report (ProcessedData and below) is
frozen down to its collections: sequences are tuples and mappings are
read-only views. A report is never mutated after it has been assembled.

All models use Pydantic v2 syntax with field validation and examples.
"""

from datetime import datetime, timezone
from types import MappingProxyType
from typing import Annotated, Any, Dict, List, Mapping, Optional, Tuple, TypeVar

from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    field_validator,
)

from analytics_backend.models.enums import (
    EntityType,
    GroupBy,
    InsightSource,
    ReportType,
    StorageTier,
)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive timestamps as UTC so spans and dates compare safely."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _freeze_mapping(value: Dict[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(value))


def _thaw_mapping(value: Mapping[str, Any]) -> Dict[str, Any]:
    return dict(value)


def _empty_mapping() -> Mapping[str, Any]:
    return MappingProxyType({})


V = TypeVar("V")

# Read-only str-keyed mapping; serialized as a plain JSON object.
FrozenDict = Annotated[
    Dict[str, V],
    AfterValidator(_freeze_mapping),
    PlainSerializer(_thaw_mapping),
]


# =============================================================================
# Input Records (owned by the ingestion pipeline, read-only here)
# =============================================================================


class TopicRecord(BaseModel):
    """
    A discovered trending topic.

    Numeric fields are never missing: the gatherers coerce absent or
    malformed values to 0 before the record is constructed.
    """
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Topic identifier")
    keyword: str = Field(default="", description="Search keyword")
    searchVolume: int = Field(default=0, ge=0, description="Observed search volume")
    category: str = Field(default="", description="Content category")
    urgency: str = Field(default="", description="Urgency (low, medium, high)")
    discoveredAt: Optional[datetime] = Field(
        default=None,
        description="When the topic was discovered"
    )
    contentGenerated: bool = Field(default=False, description="Prompt was generated")
    mediaCreated: bool = Field(default=False, description="Media item was created")

    @field_validator("discoveredAt")
    @classmethod
    def _normalize_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class PromptRecord(BaseModel):
    """A content prompt generated for a topic."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Prompt identifier")
    topicId: str = Field(default="", description="Topic the prompt was generated for")
    category: str = Field(default="", description="Content category")
    confidence: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Generator confidence score (0-100)"
    )
    usageCount: int = Field(default=0, ge=0, description="Times the prompt was reused")
    generatedAt: Optional[datetime] = Field(default=None)

    @field_validator("generatedAt")
    @classmethod
    def _normalize_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


class MediaRecord(BaseModel):
    """A published media item and its performance counters."""
    model_config = ConfigDict(frozen=True)

    id: str = Field(default="", description="Media item identifier")
    topicId: str = Field(default="")
    promptId: str = Field(default="")
    createdAt: Optional[datetime] = Field(default=None)
    category: str = Field(default="")
    durationSeconds: float = Field(default=0.0, ge=0.0)
    cost: float = Field(default=0.0, ge=0.0, description="Production cost")
    views: int = Field(default=0, ge=0)
    likes: int = Field(default=0, ge=0)
    comments: int = Field(default=0, ge=0)
    clickThroughRate: float = Field(
        default=0.0,
        ge=0.0,
        le=100.0,
        description="Click-through rate in percent"
    )
    watchTimeSeconds: float = Field(default=0.0, ge=0.0)

    @field_validator("createdAt")
    @classmethod
    def _normalize_ts(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)


# =============================================================================
# Query
# =============================================================================


class DateRange(BaseModel):
    """
    Inclusive date range of an analytics query.

    Ordering (startDate <= endDate) is checked by the report service so that a
    reversed range surfaces as a ConfigurationError rather than a schema error.

    Both bounds are instants, not calendar days. A date-only endDate such as
    "2025-01-03" parses to midnight at the start of that day, so records
    from later that day fall outside the range; pass "2025-01-03T23:59:59Z"
    to include the whole day.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "startDate": "2025-01-01T00:00:00Z",
                "endDate": "2025-01-07T23:59:59Z"
            }
        }
    )

    startDate: datetime
    endDate: datetime

    @field_validator("startDate", "endDate")
    @classmethod
    def _normalize(cls, value: datetime) -> datetime:
        return _as_utc(value)


class QueryFilters(BaseModel):
    """Optional record filters pushed down to whichever store is queried."""
    model_config = ConfigDict(frozen=True)

    category: Optional[List[str]] = None
    urgency: Optional[List[str]] = None
    searchVolumeMin: Optional[float] = None
    searchVolumeMax: Optional[float] = None


class AnalyticsQuery(BaseModel):
    """
    Request for one analytics report.

    Example:
        {
            "reportType": "trend-analysis",
            "dateRange": {"startDate": "2025-01-01", "endDate": "2025-01-03"},
            "filters": {"category": ["technology"], "searchVolumeMin": 1000},
            "groupBy": "day"
        }
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "reportType": "trend-analysis",
                "dateRange": {"startDate": "2025-01-01", "endDate": "2025-01-03"},
                "filters": {"category": ["technology"], "searchVolumeMin": 1000},
                "groupBy": "day",
            }
        }
    )

    reportType: ReportType
    dateRange: DateRange
    filters: QueryFilters = Field(default_factory=QueryFilters)
    groupBy: Optional[GroupBy] = None
    metrics: Optional[List[str]] = Field(
        default=None,
        description="Data sections to visualize (topics, prompts, media, roi, cost, grouped)"
    )


# =============================================================================
# Processed Data
# =============================================================================


class SearchVolumeStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: float = 0.0
    average: float = 0.0
    median: float = 0.0
    max: float = 0.0
    min: float = 0.0


class ConversionRates(BaseModel):
    """Percentages of topics that progressed to a prompt / a media item."""
    model_config = ConfigDict(frozen=True)

    contentGenerated: float = 0.0
    mediaCreated: float = 0.0


class TopicAggregates(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    byCategory: FrozenDict[int] = Field(default_factory=_empty_mapping)
    byUrgency: FrozenDict[int] = Field(default_factory=_empty_mapping)
    byDate: FrozenDict[int] = Field(default_factory=_empty_mapping)
    searchVolumeStats: SearchVolumeStats = Field(default_factory=SearchVolumeStats)
    conversionRates: ConversionRates = Field(default_factory=ConversionRates)


class QualityDistribution(BaseModel):
    """
    Prompt confidence buckets.

    - high: confidence > 80
    - medium: 60 < confidence <= 80
    - low: confidence <= 60
    """
    model_config = ConfigDict(frozen=True)

    high: int = 0
    medium: int = 0
    low: int = 0


class PromptAggregates(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    averageConfidence: float = 0.0
    byCategory: FrozenDict[int] = Field(default_factory=_empty_mapping)
    qualityDistribution: QualityDistribution = Field(default_factory=QualityDistribution)
    reuseStats: FrozenDict[int] = Field(
        default_factory=_empty_mapping,
        description="Usage count keyed by prompt id"
    )


class MediaPerformance(BaseModel):
    model_config = ConfigDict(frozen=True)

    totalViews: int = 0
    averageViews: float = 0.0
    totalWatchTime: float = 0.0
    averageCTR: float = 0.0
    totalLikes: int = 0
    totalComments: int = 0


class MediaCategoryStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = 0
    totalCost: float = 0.0
    totalViews: int = 0
    averageViews: float = 0.0


class RoiMetrics(BaseModel):
    """
    Return-on-investment block.

    revenueEstimate is totalViews multiplied by the configured CPM constant,
    a rough assumption rather than measured revenue.
    """
    model_config = ConfigDict(frozen=True)

    costPerView: float = 0.0
    costPerHour: float = 0.0
    revenueEstimate: float = 0.0


class MediaAggregates(BaseModel):
    model_config = ConfigDict(frozen=True)

    total: int = 0
    totalCost: float = 0.0
    averageCost: float = 0.0
    performance: MediaPerformance = Field(default_factory=MediaPerformance)
    byCategory: FrozenDict[MediaCategoryStats] = Field(default_factory=_empty_mapping)
    roi: RoiMetrics = Field(default_factory=RoiMetrics)


class Correlations(BaseModel):
    """Cross-entity correlations. Zero unless a correlation hook computes them."""
    model_config = ConfigDict(frozen=True)

    searchVolumeToViews: float = 0.0
    confidenceToPerformance: float = 0.0
    urgencyToSuccess: float = 0.0


class GroupCounts(BaseModel):
    model_config = ConfigDict(frozen=True)

    topics: int = 0
    prompts: int = 0
    media: int = 0


class ProcessedData(BaseModel):
    """Aggregates computed from the gathered records of one report."""
    model_config = ConfigDict(frozen=True)

    topics: TopicAggregates = Field(default_factory=TopicAggregates)
    prompts: PromptAggregates = Field(default_factory=PromptAggregates)
    media: MediaAggregates = Field(default_factory=MediaAggregates)
    correlations: Correlations = Field(default_factory=Correlations)
    groupBy: Optional[GroupBy] = None
    grouped: FrozenDict[GroupCounts] = Field(
        default_factory=_empty_mapping,
        description="Record counts per groupBy key, empty when groupBy is not set"
    )


# =============================================================================
# Insights
# =============================================================================


class CategoryAnalysis(BaseModel):
    model_config = ConfigDict(frozen=True)

    bestPerforming: str = ""
    needsImprovement: str = ""
    reasoning: str = ""


class CostOptimization(BaseModel):
    model_config = ConfigDict(frozen=True)

    currentEfficiency: str = ""
    improvements: Tuple[str, ...] = ()


class InsightResult(BaseModel):
    """
    Insight text for a report, from the synthesizer or the template fallback.

    keyInsights always holds exactly three entries and recommendations
    between three and six.
    """
    model_config = ConfigDict(frozen=True)

    keyInsights: Tuple[str, ...] = Field(..., min_length=3, max_length=3)
    recommendations: Tuple[str, ...] = Field(..., min_length=3, max_length=6)
    categoryAnalysis: CategoryAnalysis = Field(default_factory=CategoryAnalysis)
    costOptimization: CostOptimization = Field(default_factory=CostOptimization)


# =============================================================================
# Report
# =============================================================================


class CostAnalysis(BaseModel):
    """Estimated cost of executing the query itself, rounded to 6 decimals."""
    model_config = ConfigDict(frozen=True)

    dataStorageCost: float = Field(default=0.0, ge=0.0)
    queryingCost: float = Field(default=0.0, ge=0.0)
    totalCost: float = Field(default=0.0, ge=0.0)


class VisualizationDescriptor(BaseModel):
    """
    Declarative chart/table description. Rendering is left to the consumer.

    dataRef is a dotted path into the AnalyticsReport, e.g.
    ``data.topics.byCategory`` or ``costAnalysis``.
    """
    model_config = ConfigDict(frozen=True)

    type: str
    title: str
    dataRef: str


class Visualizations(BaseModel):
    model_config = ConfigDict(frozen=True)

    charts: Tuple[VisualizationDescriptor, ...] = ()
    tables: Tuple[VisualizationDescriptor, ...] = ()


class ReportSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    totalRecords: int = Field(..., ge=0)
    keyInsights: Tuple[str, ...]
    recommendations: Tuple[str, ...]


class GatherFailure(BaseModel):
    """One entity-type gather that degraded to an empty result."""
    model_config = ConfigDict(frozen=True)

    entity: EntityType
    tier: StorageTier
    error: str


class ReportMetadata(BaseModel):
    """Execution details recorded for observability."""
    model_config = ConfigDict(frozen=True)

    tier: StorageTier
    spanDays: int
    partial: bool = False
    gatherFailures: Tuple[GatherFailure, ...] = ()
    insightSource: InsightSource
    executionTimeMs: int = 0


class AnalyticsReport(BaseModel):
    """The immutable result of one generate_report invocation."""
    model_config = ConfigDict(frozen=True)

    reportId: str
    reportType: ReportType
    generatedAt: datetime
    dateRange: DateRange
    summary: ReportSummary
    data: ProcessedData
    visualizations: Visualizations
    costAnalysis: CostAnalysis
    insights: InsightResult
    metadata: ReportMetadata


__all__ = [
    "TopicRecord",
    "PromptRecord",
    "MediaRecord",
    "DateRange",
    "QueryFilters",
    "AnalyticsQuery",
    "SearchVolumeStats",
    "ConversionRates",
    "TopicAggregates",
    "QualityDistribution",
    "PromptAggregates",
    "MediaPerformance",
    "MediaCategoryStats",
    "RoiMetrics",
    "MediaAggregates",
    "Correlations",
    "GroupCounts",
    "ProcessedData",
    "CategoryAnalysis",
    "CostOptimization",
    "InsightResult",
    "CostAnalysis",
    "VisualizationDescriptor",
    "Visualizations",
    "ReportSummary",
    "GatherFailure",
    "ReportMetadata",
    "AnalyticsReport",
]
