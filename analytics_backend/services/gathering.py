"""
Gatherer interface, record coercion and concurrent gather orchestration.

Both storage tiers implement the same small Gatherer protocol: fetch all
records of one entity type matching a query. The report service picks an
implementation with the router and hands it to gather_records(), which

1. issues the topics, prompts and media fetches concurrently,
2. waits for all three (a join barrier before aggregation),
3. turns any failure of an individual fetch into an empty list plus a
   recorded GatherFailure. A failed fetch is never retried.

Records arrive in two shapes: snake_case rows from the hot tables and
camelCase JSON objects from the archive (including legacy names such as
trendId, videoId, ctr and watchTime written by older ingestion versions).
The coerce_* functions accept either and never raise: missing or malformed
numbers become 0, missing strings become "", missing booleans False.
"""

import asyncio
import json
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Awaitable, Dict, List, Mapping, Optional, Protocol, Sequence

from analytics_backend.models.enums import EntityType, StorageTier
from analytics_backend.models.schemas import (
    AnalyticsQuery,
    GatherFailure,
    MediaRecord,
    PromptRecord,
    TopicRecord,
)


logger = logging.getLogger(__name__)


# =============================================================================
# Gatherer Protocol
# =============================================================================


class Gatherer(Protocol):
    """A storage tier that can return the records of one entity type for a query."""

    tier: StorageTier

    async def fetch(self, entity: EntityType, query: AnalyticsQuery) -> List[Any]:
        """Return coerced records (TopicRecord, PromptRecord or MediaRecord)."""
        ...


@dataclass
class GatheredData:
    """Records gathered for one report, plus any per-entity failures."""
    tier: StorageTier
    topics: List[TopicRecord] = field(default_factory=list)
    prompts: List[PromptRecord] = field(default_factory=list)
    media: List[MediaRecord] = field(default_factory=list)
    failures: List[GatherFailure] = field(default_factory=list)

    @property
    def total_records(self) -> int:
        return len(self.topics) + len(self.prompts) + len(self.media)


# =============================================================================
# Field Coercion Helpers
# =============================================================================


def pick(raw: Mapping[str, Any], *keys: str) -> Any:
    """Return the first non-None value found under any of the given keys."""
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def coerce_float(value: Any, upper: Optional[float] = None) -> float:
    """
    Coerce a numeric field, mapping anything unusable to 0.

    Unusable means missing, non-numeric, NaN/infinite, negative, or above
    the optional upper bound.
    """
    if isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number) or number < 0:
        return 0.0
    if upper is not None and number > upper:
        return 0.0
    return number


def coerce_int(value: Any) -> int:
    return int(coerce_float(value))


def coerce_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def coerce_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return False


def coerce_timestamp(value: Any) -> Optional[datetime]:
    """Parse ISO-8601 strings (including a trailing Z); None when unparsable."""
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not value:
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_json_document(value: Any) -> Dict[str, Any]:
    """Decode an embedded JSON document column; {} when missing or malformed."""
    if isinstance(value, Mapping):
        return dict(value)
    if not isinstance(value, (str, bytes)):
        return {}
    try:
        decoded = json.loads(value)
    except (ValueError, TypeError):
        return {}
    return decoded if isinstance(decoded, dict) else {}


# =============================================================================
# Record Coercion
# =============================================================================


def coerce_topic(raw: Mapping[str, Any]) -> TopicRecord:
    return TopicRecord(
        id=coerce_str(pick(raw, "topic_id", "topicId", "trendId", "id")),
        keyword=coerce_str(pick(raw, "keyword")),
        searchVolume=coerce_int(pick(raw, "search_volume", "searchVolume")),
        category=coerce_str(pick(raw, "category")),
        urgency=coerce_str(pick(raw, "urgency")),
        discoveredAt=coerce_timestamp(pick(raw, "discovered_at", "discoveredAt")),
        contentGenerated=coerce_bool(pick(raw, "content_generated", "contentGenerated")),
        mediaCreated=coerce_bool(pick(raw, "media_created", "mediaCreated", "videoCreated")),
    )


def coerce_prompt(raw: Mapping[str, Any]) -> PromptRecord:
    return PromptRecord(
        id=coerce_str(pick(raw, "prompt_id", "promptId", "id")),
        topicId=coerce_str(pick(raw, "topic_id", "topicId", "trendId")),
        category=coerce_str(pick(raw, "category")),
        confidence=coerce_float(pick(raw, "confidence"), upper=100.0),
        usageCount=coerce_int(pick(raw, "usage_count", "usageCount")),
        generatedAt=coerce_timestamp(pick(raw, "generated_at", "generatedAt")),
    )


def coerce_media(raw: Mapping[str, Any]) -> MediaRecord:
    """
    Coerce a media row or archived media object.

    Hot rows keep category/duration/cost in a ``metadata`` document and the
    counters in a ``performance`` document; archived objects are flat. Flat
    fields win over embedded ones when both are present.
    """
    merged: Dict[str, Any] = {}
    merged.update(parse_json_document(raw.get("metadata")))
    merged.update(parse_json_document(raw.get("performance")))
    merged.update({k: v for k, v in raw.items() if k not in ("metadata", "performance")})

    return MediaRecord(
        id=coerce_str(pick(merged, "media_id", "mediaId", "videoId", "id")),
        topicId=coerce_str(pick(merged, "topic_id", "topicId", "trendId")),
        promptId=coerce_str(pick(merged, "prompt_id", "promptId")),
        createdAt=coerce_timestamp(pick(merged, "created_at", "createdAt")),
        category=coerce_str(pick(merged, "category")),
        durationSeconds=coerce_float(pick(merged, "duration_seconds", "durationSeconds", "duration")),
        cost=coerce_float(pick(merged, "cost")),
        views=coerce_int(pick(merged, "views")),
        likes=coerce_int(pick(merged, "likes")),
        comments=coerce_int(pick(merged, "comments")),
        clickThroughRate=coerce_float(
            pick(merged, "click_through_rate", "clickThroughRate", "ctr"),
            upper=100.0,
        ),
        watchTimeSeconds=coerce_float(
            pick(merged, "watch_time_seconds", "watchTimeSeconds", "watchTime")
        ),
    )


RECORD_COERCERS = {
    EntityType.TOPICS: coerce_topic,
    EntityType.PROMPTS: coerce_prompt,
    EntityType.MEDIA: coerce_media,
}


def coerce_records(entity: EntityType, rows: Sequence[Mapping[str, Any]]) -> List[Any]:
    """Coerce raw rows/objects of one entity type into record models."""
    coercer = RECORD_COERCERS[entity]
    return [coercer(row) for row in rows]


# =============================================================================
# Concurrent Gather
# =============================================================================


async def _guarded_fetch(
    gatherer: Gatherer,
    entity: EntityType,
    query: AnalyticsQuery,
    timeout: Optional[float],
    failures: List[GatherFailure],
) -> List[Any]:
    """Run one fetch; on failure or timeout record it and return []."""
    try:
        fetch: Awaitable[List[Any]] = gatherer.fetch(entity, query)
        if timeout is not None:
            return await asyncio.wait_for(fetch, timeout=timeout)
        return await fetch
    except asyncio.TimeoutError:
        error = f"timed out after {timeout:.3f}s" if timeout is not None else "timed out"
    except Exception as e:
        error = str(e) or e.__class__.__name__

    logger.warning(
        f"{gatherer.tier.value} gather for {entity.value} degraded to empty result: {error}"
    )
    failures.append(GatherFailure(entity=entity, tier=gatherer.tier, error=error))
    return []


async def gather_records(
    gatherer: Gatherer,
    query: AnalyticsQuery,
    timeout: Optional[float] = None,
) -> GatheredData:
    """
    Fetch topics, prompts and media concurrently from one tier.

    Args:
        gatherer: The tier chosen by the router.
        query: The validated analytics query.
        timeout: Optional per-fetch time budget in seconds.

    Returns:
        GatheredData with whatever could be gathered. Never raises for
        store failures; those are listed in GatheredData.failures.
    """
    failures: List[GatherFailure] = []
    topics, prompts, media = await asyncio.gather(
        _guarded_fetch(gatherer, EntityType.TOPICS, query, timeout, failures),
        _guarded_fetch(gatherer, EntityType.PROMPTS, query, timeout, failures),
        _guarded_fetch(gatherer, EntityType.MEDIA, query, timeout, failures),
    )

    gathered = GatheredData(
        tier=gatherer.tier,
        topics=topics,
        prompts=prompts,
        media=media,
        failures=failures,
    )
    logger.info(
        f"Gathered {gathered.total_records} records from {gatherer.tier.value} tier "
        f"({len(topics)} topics, {len(prompts)} prompts, {len(media)} media, "
        f"{len(failures)} failed gathers)"
    )
    return gathered
