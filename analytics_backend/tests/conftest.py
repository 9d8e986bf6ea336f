"""
Pytest Configuration and Shared Fixtures for Analytics Backend Tests.

This module provides fixtures and helpers for all backend tests, supporting:
- Async test execution with pytest-asyncio
- Mock database pool fixtures for testing the fast tier without PostgreSQL
- Scripted gatherers and archive stores for exercising the report pipeline
- Sample hot-table rows and archived NDJSON objects in production shape

Scenario data (used across modules):
- 3-day range (2025-01-01 .. 2025-01-03)
- 2 topics with search volume 100 and 200
- 1 prompt with confidence 90
- 1 media item costing 0.08 with 500 views and 300 seconds of watch time
"""

import asyncio
import json
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional
from unittest.mock import AsyncMock, Mock

import pytest

from analytics_backend.core.config import AnalyticsConfig
from analytics_backend.models import (
    AnalyticsQuery,
    DateRange,
    EntityType,
    MediaRecord,
    PromptRecord,
    StorageTier,
    TopicRecord,
)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Configure custom pytest markers for test organization.

    Custom markers defined:
    - slow: Marks tests as slow (deselect with -m "not slow")
    - integration: Marks integration tests requiring external services
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )
    config.addinivalue_line(
        'markers',
        'integration: marks tests requiring external service connectivity'
    )


# ============================================================
# DATABASE MOCK FIXTURES
# ============================================================

@pytest.fixture
def mock_db_pool() -> AsyncMock:
    """
    Create a mock asyncpg connection pool.

    Usage:
        async def test_query(mock_db_pool):
            conn = mock_db_pool.acquire.return_value.__aenter__.return_value
            conn.fetch.return_value = [{'topic_id': 't1'}]

    Methods Mocked:
        - pool.acquire(): Returns async context manager yielding the connection
        - conn.fetch(query, *args): Fetch multiple rows, returns []
    """
    pool = AsyncMock()

    conn = AsyncMock()
    conn.fetch = AsyncMock(return_value=[])

    acquire_context = AsyncMock()
    acquire_context.__aenter__ = AsyncMock(return_value=conn)
    acquire_context.__aexit__ = AsyncMock(return_value=None)
    pool.acquire = Mock(return_value=acquire_context)

    pool.close = AsyncMock(return_value=None)

    return pool


def get_mock_connection(pool: AsyncMock) -> AsyncMock:
    """Return the connection yielded by a mock_db_pool."""
    return pool.acquire.return_value.__aenter__.return_value


# ============================================================
# CONFIGURATION FIXTURES
# ============================================================

@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    """Default engine configuration."""
    return AnalyticsConfig()


# ============================================================
# QUERY HELPERS
# ============================================================

SCENARIO_START = datetime(2025, 1, 1, tzinfo=timezone.utc)


def make_query(
    days: float = 2,
    report_type: str = "trend-analysis",
    start: datetime = SCENARIO_START,
    **extra: Any,
) -> AnalyticsQuery:
    """Build an AnalyticsQuery spanning ``days`` days from ``start``."""
    payload: Dict[str, Any] = {
        "reportType": report_type,
        "dateRange": {
            "startDate": start.isoformat(),
            "endDate": (start + timedelta(days=days)).isoformat(),
        },
    }
    payload.update(extra)
    return AnalyticsQuery.model_validate(payload)


def make_range(days: float, start: datetime = SCENARIO_START) -> DateRange:
    return DateRange(startDate=start, endDate=start + timedelta(days=days))


# ============================================================
# SAMPLE RECORDS
# ============================================================

@pytest.fixture
def scenario_topics() -> List[TopicRecord]:
    return [
        TopicRecord(
            id="t1", keyword="ai video tools", searchVolume=100, category="technology",
            urgency="high", discoveredAt=datetime(2025, 1, 1, 9, tzinfo=timezone.utc),
            contentGenerated=True, mediaCreated=True,
        ),
        TopicRecord(
            id="t2", keyword="home workouts", searchVolume=200, category="fitness",
            urgency="medium", discoveredAt=datetime(2025, 1, 2, 15, tzinfo=timezone.utc),
            contentGenerated=False, mediaCreated=False,
        ),
    ]


@pytest.fixture
def scenario_prompts() -> List[PromptRecord]:
    return [
        PromptRecord(
            id="p1", topicId="t1", category="technology", confidence=90.0,
            usageCount=3, generatedAt=datetime(2025, 1, 1, 10, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def scenario_media() -> List[MediaRecord]:
    return [
        MediaRecord(
            id="m1", topicId="t1", promptId="p1",
            createdAt=datetime(2025, 1, 1, 12, tzinfo=timezone.utc),
            category="technology", durationSeconds=30.0, cost=0.08, views=500,
            likes=40, comments=5, clickThroughRate=4.5, watchTimeSeconds=300.0,
        ),
    ]


@pytest.fixture
def hot_topic_rows() -> List[Dict[str, Any]]:
    """topics_hot rows as returned by asyncpg (converted to dicts)."""
    return [
        {
            "topic_id": "t1", "keyword": "ai video tools", "search_volume": 100,
            "category": "technology", "urgency": "high",
            "discovered_at": datetime(2025, 1, 1, 9, tzinfo=timezone.utc),
            "content_generated": True, "media_created": True,
        },
        {
            "topic_id": "t2", "keyword": "home workouts", "search_volume": 200,
            "category": "fitness", "urgency": "medium",
            "discovered_at": datetime(2025, 1, 2, 15, tzinfo=timezone.utc),
            "content_generated": False, "media_created": False,
        },
    ]


@pytest.fixture
def hot_media_rows() -> List[Dict[str, Any]]:
    """media_hot rows; metadata and performance are JSON text columns."""
    return [
        {
            "media_id": "m1", "topic_id": "t1", "prompt_id": "p1",
            "created_at": datetime(2025, 1, 1, 12, tzinfo=timezone.utc),
            "metadata": json.dumps({"category": "technology", "duration": 30, "cost": 0.08}),
            "performance": json.dumps({
                "views": 500, "likes": 40, "comments": 5, "ctr": 4.5, "watchTime": 300,
            }),
        },
    ]


def ndjson(*objects: Dict[str, Any]) -> bytes:
    """Encode objects as newline-delimited JSON."""
    return b"".join(json.dumps(obj).encode("utf-8") + b"\n" for obj in objects)


# ============================================================
# SCRIPTED COLLABORATORS
# ============================================================

class FakeGatherer:
    """
    Gatherer returning canned records per entity type.

    A value in ``results`` that is an exception instance is raised instead
    of returned. ``delay`` makes every fetch sleep first. Each call is
    recorded in ``calls``.
    """

    def __init__(
        self,
        tier: StorageTier,
        results: Optional[Dict[EntityType, Any]] = None,
        delay: float = 0.0,
    ) -> None:
        self.tier = tier
        self.results = results or {}
        self.delay = delay
        self.calls: List[EntityType] = []

    async def fetch(self, entity: EntityType, query: AnalyticsQuery) -> List[Any]:
        self.calls.append(entity)
        if self.delay:
            await asyncio.sleep(self.delay)
        result = self.results.get(entity, [])
        if isinstance(result, Exception):
            raise result
        return list(result)


class FakeArchiveStore:
    """Archive store yielding fixed chunks, optionally failing afterwards."""

    def __init__(self, chunks: List[bytes], error: Optional[Exception] = None) -> None:
        self.chunks = chunks
        self.error = error
        self.requests: List[Dict[str, Any]] = []

    async def select(self, entity: EntityType, expression: str) -> AsyncIterator[bytes]:
        self.requests.append({"entity": entity, "expression": expression})
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error


class FakeSynthesizer:
    """Insight synthesizer returning a canned response or raising."""

    def __init__(self, response: str = "", error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.response = response
        self.error = error
        self.delay = delay
        self.prompts: List[str] = []

    async def synthesize(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.response


@pytest.fixture
def scenario_fast_gatherer(scenario_topics, scenario_prompts, scenario_media) -> FakeGatherer:
    return FakeGatherer(
        StorageTier.FAST,
        {
            EntityType.TOPICS: scenario_topics,
            EntityType.PROMPTS: scenario_prompts,
            EntityType.MEDIA: scenario_media,
        },
    )


@pytest.fixture
def empty_archive_gatherer() -> FakeGatherer:
    return FakeGatherer(StorageTier.ARCHIVE)


VALID_INSIGHT_DOCUMENT: Dict[str, Any] = {
    "keyInsights": [
        "Technology topics convert to media at twice the fitness rate",
        "High-confidence prompts are reused three times on average",
        "Cost per view stays below two hundredths of a cent",
    ],
    "recommendations": [
        "Expand technology coverage",
        "Retire low-confidence prompt templates",
        "Shorten fitness videos",
        "Test thumbnails on high-volume topics",
    ],
    "categoryAnalysis": {
        "bestPerforming": "technology",
        "needsImprovement": "fitness",
        "reasoning": "Technology has the only published media",
    },
    "costOptimization": {
        "currentEfficiency": "Efficient",
        "improvements": ["Batch rendering"],
    },
}
