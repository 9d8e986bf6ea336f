"""
Enumeration definitions for the analytics backend.

All enums inherit from both `str` and `Enum` to ensure JSON serialization
compatibility with Pydantic models, so values round-trip unchanged through
request bodies, report payloads and archive filter expressions.
"""

from enum import Enum


class ReportType(str, Enum):
    """
    Kinds of analytics report an operator can request.

    The report type never influences routing; it only selects which
    visualization descriptors are emphasized in the assembled report.
    """
    TREND_ANALYSIS = "trend-analysis"
    PROMPT_PERFORMANCE = "prompt-performance"
    VIDEO_PERFORMANCE = "video-performance"
    COST_ANALYSIS = "cost-analysis"
    ROI_ANALYSIS = "roi-analysis"
    CONTENT_EFFECTIVENESS = "content-effectiveness"


class GroupBy(str, Enum):
    """
    Optional grouping key for the grouped record counts.

    - day: calendar date of the record timestamp (UTC)
    - week: Monday that starts the record's ISO week
    - month: YYYY-MM of the record timestamp
    - category: record category
    - urgency: topic urgency (topics only)
    """
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    CATEGORY = "category"
    URGENCY = "urgency"


class Urgency(str, Enum):
    """Urgency assigned to a discovered topic by the trend detector."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class StorageTier(str, Enum):
    """
    Storage tier chosen by the query router.

    - fast: low-latency hot tables holding recent, expiring records
    - archive: cost-efficient line-delimited JSON archive queried with
      server-side filtering
    """
    FAST = "fast"
    ARCHIVE = "archive"


class EntityType(str, Enum):
    """
    The three event streams the engine reports on.

    The value doubles as the archive key prefix (e.g. ``topics/``).
    """
    TOPICS = "topics"
    PROMPTS = "prompts"
    MEDIA = "media"


class InsightSource(str, Enum):
    """Where the insight text of a report came from."""
    SYNTHESIZER = "synthesizer"
    FALLBACK = "fallback"


class ChartType(str, Enum):
    """Chart kinds used in visualization descriptors."""
    BAR = "bar"
    PIE = "pie"
    LINE = "line"
