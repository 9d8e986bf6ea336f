"""
Query Router.

Chooses the storage tier for a report from its date range alone. Filters,
report type and grouping never influence the decision, so the same span
always lands on the same tier.

- span_days = ceil((endDate - startDate) / 1 day)
- span_days <= threshold (default 7) -> fast tier (hot tables)
- otherwise -> archive tier
"""

import math
from datetime import timedelta

from analytics_backend.models.enums import StorageTier
from analytics_backend.models.schemas import DateRange


DEFAULT_HOT_COLD_THRESHOLD_DAYS: int = 7

_ONE_DAY_SECONDS: float = timedelta(days=1).total_seconds()


def compute_span_days(date_range: DateRange) -> int:
    """
    Number of days covered by a date range, rounded up.

    A range shorter than a full day but longer than zero counts as one day;
    a zero-length range counts as zero days.

    Args:
        date_range: The query's inclusive date range.

    Returns:
        ceil((end - start) / 1 day). Negative for reversed ranges; callers
        validate ordering before routing.
    """
    delta = date_range.endDate - date_range.startDate
    return math.ceil(delta.total_seconds() / _ONE_DAY_SECONDS)


def select_tier(
    date_range: DateRange,
    threshold_days: int = DEFAULT_HOT_COLD_THRESHOLD_DAYS,
) -> StorageTier:
    """
    Route a query to the fast or the archive tier.

    Args:
        date_range: The query's inclusive date range.
        threshold_days: Longest span still served by the hot store (inclusive).

    Returns:
        StorageTier.FAST when the span is at most threshold_days, else
        StorageTier.ARCHIVE.
    """
    if compute_span_days(date_range) <= threshold_days:
        return StorageTier.FAST
    return StorageTier.ARCHIVE
