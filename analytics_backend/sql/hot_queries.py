"""
Hot Store Queries Module.

Provides parameterized PostgreSQL queries for the fast tier: one filtered
range read per entity type against the hot tables maintained by the ingestion
pipeline.

Hot tables:
- topics_hot:  topic_id, keyword, search_volume, category, urgency,
               discovered_at, content_generated, media_created
- prompts_hot: prompt_id, topic_id, category, confidence, usage_count,
               generated_at
- media_hot:   media_id, topic_id, prompt_id, created_at, metadata,
               performance (metadata/performance are JSON documents
               written as text by the ingestion pipeline)

Every builder returns a ``(query, params)`` tuple using asyncpg's $n
placeholders; user-supplied filter values are never interpolated into the
SQL text.
"""

import math
from typing import Any, List, Optional, Tuple

from analytics_backend.models.schemas import DateRange, QueryFilters


# =============================================================================
# CONSTANTS
# =============================================================================

TOPICS_TABLE: str = "topics_hot"
PROMPTS_TABLE: str = "prompts_hot"
MEDIA_TABLE: str = "media_hot"

TOPIC_COLUMNS: Tuple[str, ...] = (
    "topic_id",
    "keyword",
    "search_volume",
    "category",
    "urgency",
    "discovered_at",
    "content_generated",
    "media_created",
)

PROMPT_COLUMNS: Tuple[str, ...] = (
    "prompt_id",
    "topic_id",
    "category",
    "confidence",
    "usage_count",
    "generated_at",
)

MEDIA_COLUMNS: Tuple[str, ...] = (
    "media_id",
    "topic_id",
    "prompt_id",
    "created_at",
    "metadata",
    "performance",
)


# =============================================================================
# SHARED BUILDER
# =============================================================================

def _build_range_query(
    table: str,
    columns: Tuple[str, ...],
    timestamp_column: str,
    date_range: DateRange,
    filters: Optional[QueryFilters],
    category_expr: Optional[str] = None,
    urgency_column: Optional[str] = None,
    volume_column: Optional[str] = None,
) -> Tuple[str, List[Any]]:
    """
    Build a filtered range read over one hot table.

    The date range is inclusive on both ends. Filters are only applied when
    the table carries the corresponding column (urgency and search volume
    exist on topics only).
    """
    params: List[Any] = [date_range.startDate, date_range.endDate]
    conditions = [f"{timestamp_column} BETWEEN $1 AND $2"]

    if filters is not None:
        if category_expr and filters.category:
            params.append(list(filters.category))
            conditions.append(f"{category_expr} = ANY(${len(params)}::text[])")

        if urgency_column and filters.urgency:
            params.append(list(filters.urgency))
            conditions.append(f"{urgency_column} = ANY(${len(params)}::text[])")

        # search_volume is an integer column; round fractional bounds inward
        if volume_column and filters.searchVolumeMin is not None:
            params.append(math.ceil(filters.searchVolumeMin))
            conditions.append(f"{volume_column} >= ${len(params)}")

        if volume_column and filters.searchVolumeMax is not None:
            params.append(math.floor(filters.searchVolumeMax))
            conditions.append(f"{volume_column} <= ${len(params)}")

    where_clause = "\n      AND ".join(conditions)
    query = f"""
    SELECT {", ".join(columns)}
    FROM {table}
    WHERE {where_clause}
    ORDER BY {timestamp_column} ASC
    """
    return query, params


# =============================================================================
# ENTITY QUERIES
# =============================================================================

def get_hot_topics_query(
    date_range: DateRange,
    filters: Optional[QueryFilters] = None,
) -> Tuple[str, List[Any]]:
    """
    Generate the topics read for the fast tier.

    Args:
        date_range: Inclusive range applied to discovered_at.
        filters: Optional category, urgency and search volume filters.

    Returns:
        Tuple of (SQL text, positional parameters).
    """
    return _build_range_query(
        TOPICS_TABLE,
        TOPIC_COLUMNS,
        "discovered_at",
        date_range,
        filters,
        category_expr="category",
        urgency_column="urgency",
        volume_column="search_volume",
    )


def get_hot_prompts_query(
    date_range: DateRange,
    filters: Optional[QueryFilters] = None,
) -> Tuple[str, List[Any]]:
    """Generate the prompts read for the fast tier (category filter only)."""
    return _build_range_query(
        PROMPTS_TABLE,
        PROMPT_COLUMNS,
        "generated_at",
        date_range,
        filters,
        category_expr="category",
    )


def get_hot_media_query(
    date_range: DateRange,
    filters: Optional[QueryFilters] = None,
) -> Tuple[str, List[Any]]:
    """
    Generate the media read for the fast tier.

    Media category lives inside the metadata document, so the category
    filter is applied to the extracted JSON field.
    """
    return _build_range_query(
        MEDIA_TABLE,
        MEDIA_COLUMNS,
        "created_at",
        date_range,
        filters,
        category_expr="(metadata::jsonb ->> 'category')",
    )
