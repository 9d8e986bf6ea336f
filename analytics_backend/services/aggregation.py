"""
Aggregation Engine.

Pure functions turning the gathered records of one report into ProcessedData.
No I/O, no clock, no shared state: the same records always yield the same
aggregates.

Provides:
1. TOPICS - category/urgency/day histograms, search volume statistics,
   conversion rates (percent of topics that reached a prompt / a media item)
2. PROMPTS - category histogram, mean confidence, quality buckets, reuse counts
   - high: confidence > 80, medium: 60 < confidence <= 80, low: confidence <= 60
3. MEDIA - cost/view/watch-time totals, mean CTR, per-category totals, ROI block
   - costPerView = totalCost / totalViews
   - costPerHour = totalCost / (totalWatchTime / 3600)
   - revenueEstimate = totalViews * CPM constant (assumed, default 0.001)
4. CORRELATIONS - delegated to an injectable hook; the default returns zeros
5. GROUPED COUNTS - per groupBy key record counts (day, week, month, category, urgency)

Every ratio goes through safe_divide(): a zero denominator yields 0, never
NaN or infinity, and never an exception.
"""

import math
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import pandas as pd

from analytics_backend.models.enums import EntityType, GroupBy
from analytics_backend.models.schemas import (
    ConversionRates,
    Correlations,
    GroupCounts,
    MediaAggregates,
    MediaCategoryStats,
    MediaPerformance,
    MediaRecord,
    ProcessedData,
    PromptAggregates,
    PromptRecord,
    QualityDistribution,
    RoiMetrics,
    SearchVolumeStats,
    TopicAggregates,
    TopicRecord,
)


# =============================================================================
# Constants
# =============================================================================

# Assumed revenue per view ($1 CPM). Not derived from platform data.
DEFAULT_CPM_CONSTANT: float = 0.001

HIGH_CONFIDENCE_THRESHOLD: float = 80.0
MEDIUM_CONFIDENCE_THRESHOLD: float = 60.0

SECONDS_PER_HOUR: float = 3600.0


CorrelationHook = Callable[
    [Sequence[TopicRecord], Sequence[PromptRecord], Sequence[MediaRecord]],
    Correlations,
]


# =============================================================================
# Statistical Helper Functions
# =============================================================================


def safe_divide(numerator: float, denominator: float) -> float:
    """Divide, returning 0 for a zero denominator or a non-finite result."""
    if not denominator:
        return 0.0
    result = numerator / denominator
    if not math.isfinite(result):
        return 0.0
    return result


def mean(values: Sequence[float]) -> float:
    """
    Calculate the arithmetic mean of a list of values.

    Returns:
        Arithmetic mean, or 0 if empty list
    """
    if not values:
        return 0.0
    return sum(values) / len(values)


def median(values: Sequence[float]) -> float:
    """
    Calculate the median of a list of values.

    Sorts ascending; an odd count yields the middle value, an even count the
    mean of the two middle values.

    Returns:
        Median value, or 0 if empty list
    """
    if not values:
        return 0.0
    sorted_vals = sorted(values)
    mid = len(sorted_vals) // 2
    if len(sorted_vals) % 2 != 0:
        return sorted_vals[mid]
    return (sorted_vals[mid - 1] + sorted_vals[mid]) / 2


def classify_confidence(confidence: float) -> str:
    """Map a prompt confidence score to its quality bucket name."""
    if confidence > HIGH_CONFIDENCE_THRESHOLD:
        return "high"
    if confidence > MEDIUM_CONFIDENCE_THRESHOLD:
        return "medium"
    return "low"


def _increment(histogram: Dict[str, int], key: str) -> None:
    histogram[key] = histogram.get(key, 0) + 1


def _date_key(record_ts: Optional[datetime]) -> str:
    return record_ts.date().isoformat() if record_ts is not None else ""


# =============================================================================
# Per-Entity Aggregation
# =============================================================================


def search_volume_stats(volumes: Sequence[int]) -> SearchVolumeStats:
    """Sum, mean, median, max and min of search volumes; all zero when empty."""
    if not volumes:
        return SearchVolumeStats()
    values_array = np.array(volumes, dtype=np.float64)
    return SearchVolumeStats(
        total=float(np.sum(values_array)),
        average=float(np.mean(values_array)),
        median=float(median(list(volumes))),
        max=float(np.max(values_array)),
        min=float(np.min(values_array)),
    )


def aggregate_topics(topics: Sequence[TopicRecord]) -> TopicAggregates:
    """Histograms, search volume statistics and conversion rates for topics."""
    by_category: Dict[str, int] = {}
    by_urgency: Dict[str, int] = {}
    by_date: Dict[str, int] = {}
    content_generated = 0
    media_created = 0

    for topic in topics:
        _increment(by_category, topic.category)
        _increment(by_urgency, topic.urgency)
        _increment(by_date, _date_key(topic.discoveredAt))
        if topic.contentGenerated:
            content_generated += 1
        if topic.mediaCreated:
            media_created += 1

    total = len(topics)
    return TopicAggregates(
        total=total,
        byCategory=by_category,
        byUrgency=by_urgency,
        byDate=dict(sorted(by_date.items())),
        searchVolumeStats=search_volume_stats([t.searchVolume for t in topics]),
        conversionRates=ConversionRates(
            contentGenerated=safe_divide(content_generated * 100.0, total),
            mediaCreated=safe_divide(media_created * 100.0, total),
        ),
    )


def aggregate_prompts(prompts: Sequence[PromptRecord]) -> PromptAggregates:
    """Category histogram, mean confidence, quality buckets and reuse counts."""
    by_category: Dict[str, int] = {}
    buckets: Dict[str, int] = {"high": 0, "medium": 0, "low": 0}
    reuse_stats: Dict[str, int] = {}

    for prompt in prompts:
        _increment(by_category, prompt.category)
        buckets[classify_confidence(prompt.confidence)] += 1
        reuse_stats[prompt.id] = prompt.usageCount

    return PromptAggregates(
        total=len(prompts),
        averageConfidence=mean([p.confidence for p in prompts]),
        byCategory=by_category,
        qualityDistribution=QualityDistribution(**buckets),
        reuseStats=reuse_stats,
    )


def aggregate_media(
    media: Sequence[MediaRecord],
    cpm_constant: float = DEFAULT_CPM_CONSTANT,
) -> MediaAggregates:
    """
    Totals, per-category breakdown and ROI block for media items.

    Args:
        media: Gathered media records.
        cpm_constant: Revenue assumed per view for revenueEstimate.
    """
    total_cost = 0.0
    total_views = 0
    total_watch_time = 0.0
    total_likes = 0
    total_comments = 0
    category_totals: Dict[str, Dict[str, float]] = {}

    for item in media:
        total_cost += item.cost
        total_views += item.views
        total_watch_time += item.watchTimeSeconds
        total_likes += item.likes
        total_comments += item.comments

        cat = category_totals.setdefault(item.category, {"count": 0, "cost": 0.0, "views": 0})
        cat["count"] += 1
        cat["cost"] += item.cost
        cat["views"] += item.views

    count = len(media)
    by_category = {
        category: MediaCategoryStats(
            count=int(totals["count"]),
            totalCost=totals["cost"],
            totalViews=int(totals["views"]),
            averageViews=safe_divide(totals["views"], totals["count"]),
        )
        for category, totals in category_totals.items()
    }

    return MediaAggregates(
        total=count,
        totalCost=total_cost,
        averageCost=safe_divide(total_cost, count),
        performance=MediaPerformance(
            totalViews=total_views,
            averageViews=safe_divide(total_views, count),
            totalWatchTime=total_watch_time,
            averageCTR=mean([m.clickThroughRate for m in media]),
            totalLikes=total_likes,
            totalComments=total_comments,
        ),
        byCategory=by_category,
        roi=RoiMetrics(
            costPerView=safe_divide(total_cost, total_views),
            costPerHour=safe_divide(total_cost, total_watch_time / SECONDS_PER_HOUR),
            revenueEstimate=total_views * cpm_constant,
        ),
    )


# =============================================================================
# Correlations Hook
# =============================================================================


def zero_correlations(
    topics: Sequence[TopicRecord],
    prompts: Sequence[PromptRecord],
    media: Sequence[MediaRecord],
) -> Correlations:
    """Default correlation hook: correlations are not computed."""
    return Correlations()


# =============================================================================
# Grouped Counts
# =============================================================================


def _group_key(
    group_by: GroupBy,
    timestamp: Optional[datetime],
    category: str,
    urgency: Optional[str],
) -> Optional[str]:
    if group_by == GroupBy.CATEGORY:
        return category
    if group_by == GroupBy.URGENCY:
        return urgency
    if timestamp is None:
        return None
    if group_by == GroupBy.DAY:
        return timestamp.date().isoformat()
    if group_by == GroupBy.WEEK:
        return (timestamp.date() - timedelta(days=timestamp.weekday())).isoformat()
    return timestamp.strftime("%Y-%m")


def group_record_counts(
    topics: Sequence[TopicRecord],
    prompts: Sequence[PromptRecord],
    media: Sequence[MediaRecord],
    group_by: GroupBy,
) -> Dict[str, GroupCounts]:
    """
    Count records of each entity type per groupBy key.

    Records without a usable key (no timestamp for time grouping, prompts and
    media for urgency grouping) are left out. Keys are returned sorted.
    """
    rows: List[Dict[str, Optional[str]]] = []
    for t in topics:
        rows.append({"entity": EntityType.TOPICS.value,
                     "key": _group_key(group_by, t.discoveredAt, t.category, t.urgency)})
    for p in prompts:
        rows.append({"entity": EntityType.PROMPTS.value,
                     "key": _group_key(group_by, p.generatedAt, p.category, None)})
    for m in media:
        rows.append({"entity": EntityType.MEDIA.value,
                     "key": _group_key(group_by, m.createdAt, m.category, None)})

    df = pd.DataFrame(rows, columns=["entity", "key"]).dropna(subset=["key"])
    if df.empty:
        return {}

    counts = df.groupby(["key", "entity"]).size().unstack(fill_value=0).sort_index()
    return {
        str(key): GroupCounts(
            topics=int(row.get(EntityType.TOPICS.value, 0)),
            prompts=int(row.get(EntityType.PROMPTS.value, 0)),
            media=int(row.get(EntityType.MEDIA.value, 0)),
        )
        for key, row in counts.iterrows()
    }


# =============================================================================
# Main Entry Point
# =============================================================================


def process_analytics_data(
    topics: Sequence[TopicRecord],
    prompts: Sequence[PromptRecord],
    media: Sequence[MediaRecord],
    cpm_constant: float = DEFAULT_CPM_CONSTANT,
    group_by: Optional[GroupBy] = None,
    correlation_hook: CorrelationHook = zero_correlations,
) -> ProcessedData:
    """
    Aggregate the gathered records of one report.

    Args:
        topics: Gathered topic records.
        prompts: Gathered prompt records.
        media: Gathered media records.
        cpm_constant: Revenue per view assumed by the ROI block.
        group_by: Optional grouping for the grouped record counts.
        correlation_hook: Computes the correlations section.

    Returns:
        ProcessedData with all sections populated; empty inputs give zeros.
    """
    return ProcessedData(
        topics=aggregate_topics(topics),
        prompts=aggregate_prompts(prompts),
        media=aggregate_media(media, cpm_constant=cpm_constant),
        correlations=correlation_hook(topics, prompts, media),
        groupBy=group_by,
        grouped=group_record_counts(topics, prompts, media, group_by) if group_by else {},
    )
