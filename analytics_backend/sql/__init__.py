"""
Query Module for the analytics backend.

Provides the store-specific query text for both tiers:
- hot_queries: parameterized PostgreSQL range reads over the hot tables
- archive_queries: server-side filter expressions for the archive select endpoint

Example usage:
    from analytics_backend.sql import get_hot_topics_query, build_select_expression

    sql, params = get_hot_topics_query(query.dateRange, query.filters)
    expression = build_select_expression(EntityType.TOPICS, query.dateRange, query.filters)
"""

# =============================================================================
# HOT STORE QUERIES
# =============================================================================

from analytics_backend.sql.hot_queries import (
    get_hot_topics_query,
    get_hot_prompts_query,
    get_hot_media_query,
    TOPICS_TABLE,
    PROMPTS_TABLE,
    MEDIA_TABLE,
)

# =============================================================================
# ARCHIVE FILTER EXPRESSIONS
# =============================================================================

from analytics_backend.sql.archive_queries import (
    build_select_expression,
    archive_key_prefix,
    format_timestamp,
    quote_literal,
    ARCHIVE_TIMESTAMP_FIELDS,
)


__all__ = [
    'get_hot_topics_query',
    'get_hot_prompts_query',
    'get_hot_media_query',
    'TOPICS_TABLE',
    'PROMPTS_TABLE',
    'MEDIA_TABLE',
    'build_select_expression',
    'archive_key_prefix',
    'format_timestamp',
    'quote_literal',
    'ARCHIVE_TIMESTAMP_FIELDS',
]
