"""
Archive Filter Expressions Module.

Builds the server-side filter expressions pushed down to the archive store.
The archive holds line-delimited JSON objects partitioned under one key
prefix per entity type (``topics/``, ``prompts/``, ``media/``); the select
endpoint evaluates the expression over ``s3object[*]`` and streams back only
the matching lines, so the cost scales with the matching data rather than
with the full objects.

Archived records use the camelCase field names of the JSON wire format and
ISO-8601 UTC timestamps with millisecond precision, which makes string
comparison of timestamps equivalent to chronological comparison.
"""

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from analytics_backend.models.enums import EntityType
from analytics_backend.models.schemas import DateRange, QueryFilters


# =============================================================================
# CONSTANTS
# =============================================================================

# Timestamp field compared against the date range, per entity type
ARCHIVE_TIMESTAMP_FIELDS = {
    EntityType.TOPICS: "discoveredAt",
    EntityType.PROMPTS: "generatedAt",
    EntityType.MEDIA: "createdAt",
}

# Entity types whose archived records carry urgency and searchVolume
_TOPIC_ONLY_FILTERS = {EntityType.TOPICS}


# =============================================================================
# LITERAL FORMATTING
# =============================================================================

def format_timestamp(value: datetime) -> str:
    """Render a timestamp the way archived records store it (millisecond ISO, Z)."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc = value.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def quote_literal(value: str) -> str:
    """Quote a string literal for the select expression, doubling embedded quotes."""
    return "'" + str(value).replace("'", "''") + "'"


def _format_number(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def _in_list(field: str, values: Sequence[str]) -> str:
    return f"s.{field} IN ({', '.join(quote_literal(v) for v in values)})"


# =============================================================================
# EXPRESSION BUILDER
# =============================================================================

def archive_key_prefix(entity: EntityType) -> str:
    """Key prefix under which an entity type is archived."""
    return f"{entity.value}/"


def build_select_expression(
    entity: EntityType,
    date_range: DateRange,
    filters: Optional[QueryFilters] = None,
) -> str:
    """
    Build the filter expression for one archived entity type.

    Args:
        entity: Entity type being queried.
        date_range: Inclusive range applied to the entity's timestamp field.
        filters: Optional filters; urgency and search volume only apply to topics.

    Returns:
        A single-line select expression, e.g.
        ``SELECT * FROM s3object[*] s WHERE s.discoveredAt BETWEEN '...' AND '...'
        AND s.category IN ('tech')``
    """
    ts_field = ARCHIVE_TIMESTAMP_FIELDS[entity]
    conditions: List[str] = [
        f"s.{ts_field} BETWEEN {quote_literal(format_timestamp(date_range.startDate))} "
        f"AND {quote_literal(format_timestamp(date_range.endDate))}"
    ]

    if filters is not None:
        if filters.category:
            conditions.append(_in_list("category", filters.category))

        if entity in _TOPIC_ONLY_FILTERS:
            if filters.urgency:
                conditions.append(_in_list("urgency", filters.urgency))
            if filters.searchVolumeMin is not None:
                conditions.append(f"s.searchVolume >= {_format_number(filters.searchVolumeMin)}")
            if filters.searchVolumeMax is not None:
                conditions.append(f"s.searchVolume <= {_format_number(filters.searchVolumeMax)}")

    return "SELECT * FROM s3object[*] s WHERE " + " AND ".join(conditions)
