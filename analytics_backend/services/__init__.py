"""
Analytics Services Module

Business logic of the analytics query engine. Each service is stateless;
collaborators (database pool, archive store, insight synthesizer) are injected.

Services:
- routing: Tier selection from the query date range
- gathering: Concurrent per-entity gathering with isolated failures
- fast_tier: Hot-table gatherer (PostgreSQL via asyncpg)
- archive_tier: Archive gatherer with streamed NDJSON decoding (httpx)
- aggregation: Pure aggregation of gathered records into ProcessedData
- insights: Insight synthesizer adapter with deterministic fallback
- cost_model: Query cost estimation per tier
- reports: Report assembly (ReportService)

All services are consumed by the API layer (analytics_backend/api/).
"""

# =============================================================================
# Routing
# =============================================================================

from analytics_backend.services.routing import (
    DEFAULT_HOT_COLD_THRESHOLD_DAYS,
    compute_span_days,
    select_tier,
)

# =============================================================================
# Gathering
# =============================================================================

from analytics_backend.services.gathering import (
    Gatherer,
    GatheredData,
    coerce_records,
    gather_records,
)
from analytics_backend.services.fast_tier import FastTierGatherer
from analytics_backend.services.archive_tier import (
    ArchiveStore,
    ArchiveTierGatherer,
    HttpArchiveStore,
    NdjsonStreamDecoder,
)

# =============================================================================
# Aggregation + Cost
# =============================================================================

from analytics_backend.services.aggregation import (
    aggregate_media,
    aggregate_prompts,
    aggregate_topics,
    classify_confidence,
    median,
    process_analytics_data,
    safe_divide,
    zero_correlations,
)
from analytics_backend.services.cost_model import calculate_query_cost

# =============================================================================
# Insights
# =============================================================================

from analytics_backend.services.insights import (
    HttpInsightSynthesizer,
    InsightAdapter,
    InsightSynthesizer,
    generate_fallback_insights,
    parse_insight_response,
)

# =============================================================================
# Reports
# =============================================================================

from analytics_backend.services.reports import (
    ReportService,
    build_report_id,
    create_visualizations,
    parse_query,
    validate_query,
)

__all__ = [
    # ----- Routing -----
    'DEFAULT_HOT_COLD_THRESHOLD_DAYS',
    'compute_span_days',
    'select_tier',
    # ----- Gathering -----
    'Gatherer',
    'GatheredData',
    'coerce_records',
    'gather_records',
    'FastTierGatherer',
    'ArchiveStore',
    'ArchiveTierGatherer',
    'HttpArchiveStore',
    'NdjsonStreamDecoder',
    # ----- Aggregation -----
    'aggregate_media',
    'aggregate_prompts',
    'aggregate_topics',
    'classify_confidence',
    'median',
    'process_analytics_data',
    'safe_divide',
    'zero_correlations',
    # ----- Cost -----
    'calculate_query_cost',
    # ----- Insights -----
    'HttpInsightSynthesizer',
    'InsightAdapter',
    'InsightSynthesizer',
    'generate_fallback_insights',
    'parse_insight_response',
    # ----- Reports -----
    'ReportService',
    'build_report_id',
    'create_visualizations',
    'parse_query',
    'validate_query',
]
