"""
Package initialization file for analytics models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py,
making them importable from analytics_backend.models directly.

Usage:
    from analytics_backend.models import (
        AnalyticsQuery,
        AnalyticsReport,
        ReportType,
        StorageTier,
    )
"""

# =============================================================================
# Enums
# =============================================================================

from analytics_backend.models.enums import (
    ReportType,
    GroupBy,
    Urgency,
    StorageTier,
    EntityType,
    InsightSource,
    ChartType,
)


# =============================================================================
# Schemas
# =============================================================================

from analytics_backend.models.schemas import (
    # Input records
    TopicRecord,
    PromptRecord,
    MediaRecord,
    # Query
    DateRange,
    QueryFilters,
    AnalyticsQuery,
    # Processed data
    SearchVolumeStats,
    ConversionRates,
    TopicAggregates,
    QualityDistribution,
    PromptAggregates,
    MediaPerformance,
    MediaCategoryStats,
    RoiMetrics,
    MediaAggregates,
    Correlations,
    GroupCounts,
    ProcessedData,
    # Insights
    CategoryAnalysis,
    CostOptimization,
    InsightResult,
    # Report
    CostAnalysis,
    VisualizationDescriptor,
    Visualizations,
    ReportSummary,
    GatherFailure,
    ReportMetadata,
    AnalyticsReport,
)


__all__ = [
    # Enums
    "ReportType",
    "GroupBy",
    "Urgency",
    "StorageTier",
    "EntityType",
    "InsightSource",
    "ChartType",
    # Input records
    "TopicRecord",
    "PromptRecord",
    "MediaRecord",
    # Query
    "DateRange",
    "QueryFilters",
    "AnalyticsQuery",
    # Processed data
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
    # Insights
    "CategoryAnalysis",
    "CostOptimization",
    "InsightResult",
    # Report
    "CostAnalysis",
    "VisualizationDescriptor",
    "Visualizations",
    "ReportSummary",
    "GatherFailure",
    "ReportMetadata",
    "AnalyticsReport",
]
