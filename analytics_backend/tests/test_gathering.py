"""
Tests for record coercion and concurrent gathering.

Test Categories:
- TestFieldCoercion: numeric/boolean/timestamp coercion never raises
- TestRecordCoercion: hot-table rows and archived objects (including legacy
  field names) map onto the same record models
- TestGatherRecords: concurrent fetches, per-entity failure isolation, timeouts
"""

import asyncio
import json
from datetime import datetime, timezone

import pytest

from analytics_backend.core.exceptions import GatherError
from analytics_backend.models import EntityType, StorageTier
from analytics_backend.services.gathering import (
    coerce_bool,
    coerce_float,
    coerce_media,
    coerce_prompt,
    coerce_records,
    coerce_timestamp,
    coerce_topic,
    gather_records,
    parse_json_document,
)
from analytics_backend.tests.conftest import FakeGatherer, make_query


class TestFieldCoercion:

    @pytest.mark.parametrize("value,expected", [
        (12, 12.0),
        ("3.5", 3.5),
        (None, 0.0),
        ("n/a", 0.0),
        (-4, 0.0),
        (float("nan"), 0.0),
        (True, 0.0),
    ])
    def test_coerce_float(self, value, expected):
        assert coerce_float(value) == expected

    def test_coerce_float_upper_bound(self):
        assert coerce_float(100, upper=100.0) == 100.0
        assert coerce_float(100.5, upper=100.0) == 0.0

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (1, True),
        (0, False),
        ("true", True),
        ("no", False),
        (None, False),
    ])
    def test_coerce_bool(self, value, expected):
        assert coerce_bool(value) is expected

    def test_coerce_timestamp_with_z_suffix(self):
        parsed = coerce_timestamp("2025-01-02T03:04:05.000Z")
        assert parsed == datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_coerce_timestamp_invalid(self):
        assert coerce_timestamp("yesterday") is None
        assert coerce_timestamp(12345) is None

    def test_parse_json_document(self):
        assert parse_json_document('{"a": 1}') == {"a": 1}
        assert parse_json_document("{not json") == {}
        assert parse_json_document("[1, 2]") == {}
        assert parse_json_document(None) == {}


class TestRecordCoercion:

    def test_hot_topic_row(self, hot_topic_rows):
        topic = coerce_topic(hot_topic_rows[0])
        assert topic.id == "t1"
        assert topic.searchVolume == 100
        assert topic.urgency == "high"
        assert topic.mediaCreated is True

    def test_archived_topic_with_legacy_names(self):
        topic = coerce_topic({
            "trendId": "legacy-1",
            "keyword": "retro games",
            "searchVolume": "2500",
            "category": "gaming",
            "urgency": "low",
            "discoveredAt": "2025-01-05T10:00:00.000Z",
            "contentGenerated": True,
            "videoCreated": True,
        })
        assert topic.id == "legacy-1"
        assert topic.searchVolume == 2500
        assert topic.mediaCreated is True
        assert topic.discoveredAt == datetime(2025, 1, 5, 10, tzinfo=timezone.utc)

    def test_prompt_confidence_out_of_range(self):
        prompt = coerce_prompt({"promptId": "p", "confidence": 140})
        assert prompt.confidence == 0.0

    def test_hot_media_row_merges_documents(self, hot_media_rows):
        media = coerce_media(hot_media_rows[0])
        assert media.id == "m1"
        assert media.category == "technology"
        assert media.cost == pytest.approx(0.08)
        assert media.views == 500
        assert media.clickThroughRate == pytest.approx(4.5)
        assert media.watchTimeSeconds == pytest.approx(300.0)
        assert media.durationSeconds == pytest.approx(30.0)

    def test_media_with_malformed_documents(self):
        media = coerce_media({"media_id": "m2", "metadata": "{broken", "performance": None})
        assert media.id == "m2"
        assert media.cost == 0.0
        assert media.views == 0

    def test_flat_fields_win_over_documents(self):
        media = coerce_media({
            "mediaId": "m3",
            "views": 10,
            "performance": json.dumps({"views": 99}),
        })
        assert media.views == 10

    def test_negative_counters_become_zero(self):
        media = coerce_media({"videoId": "v", "views": -10, "cost": -1, "ctr": 250})
        assert media.id == "v"
        assert media.views == 0
        assert media.cost == 0.0
        assert media.clickThroughRate == 0.0

    def test_coerce_records_dispatches_on_entity(self, hot_topic_rows):
        records = coerce_records(EntityType.TOPICS, hot_topic_rows)
        assert [r.id for r in records] == ["t1", "t2"]


class TestGatherRecords:

    @pytest.mark.asyncio
    async def test_fetches_all_three_entities(self, scenario_fast_gatherer):
        gathered = await gather_records(scenario_fast_gatherer, make_query())

        assert sorted(e.value for e in scenario_fast_gatherer.calls) == ["media", "prompts", "topics"]
        assert gathered.tier == StorageTier.FAST
        assert len(gathered.topics) == 2
        assert len(gathered.prompts) == 1
        assert len(gathered.media) == 1
        assert gathered.total_records == 4
        assert gathered.failures == []

    @pytest.mark.asyncio
    async def test_failed_entity_degrades_to_empty(self, scenario_topics, scenario_media):
        gatherer = FakeGatherer(
            StorageTier.ARCHIVE,
            {
                EntityType.TOPICS: scenario_topics,
                EntityType.PROMPTS: GatherError("prompts", "archive", "connection reset"),
                EntityType.MEDIA: scenario_media,
            },
        )

        gathered = await gather_records(gatherer, make_query(days=30))

        assert len(gathered.topics) == 2
        assert gathered.prompts == []
        assert len(gathered.media) == 1
        assert len(gathered.failures) == 1
        failure = gathered.failures[0]
        assert failure.entity == EntityType.PROMPTS
        assert failure.tier == StorageTier.ARCHIVE
        assert "connection reset" in failure.error

    @pytest.mark.asyncio
    async def test_all_entities_failing_still_returns(self):
        gatherer = FakeGatherer(
            StorageTier.FAST,
            {entity: RuntimeError("down") for entity in EntityType},
        )
        gathered = await gather_records(gatherer, make_query())
        assert gathered.total_records == 0
        assert {f.entity for f in gathered.failures} == set(EntityType)

    @pytest.mark.asyncio
    async def test_timeout_degrades_to_empty(self, scenario_topics):
        gatherer = FakeGatherer(StorageTier.FAST, {EntityType.TOPICS: scenario_topics}, delay=1.0)

        gathered = await gather_records(gatherer, make_query(), timeout=0.01)

        assert gathered.total_records == 0
        assert len(gathered.failures) == 3
        assert all("timed out" in f.error for f in gathered.failures)

    @pytest.mark.asyncio
    async def test_fetches_run_concurrently_and_are_joined(
        self, scenario_topics, scenario_prompts, scenario_media
    ):
        # Arrange: every fetch sleeps, and the gatherer tracks how many overlap
        gatherer = _InFlightGatherer(
            StorageTier.FAST,
            {
                EntityType.TOPICS: scenario_topics,
                EntityType.PROMPTS: scenario_prompts,
                EntityType.MEDIA: scenario_media,
            },
            delay=0.2,
        )
        loop = asyncio.get_running_loop()

        # Act
        started = loop.time()
        gathered = await gather_records(gatherer, make_query())
        elapsed = loop.time() - started

        # Assert: all three were in flight at once, and all three results are in
        assert gatherer.peak_in_flight == 3
        assert elapsed < 0.4
        assert gathered.total_records == 4
        assert gathered.failures == []


class _InFlightGatherer(FakeGatherer):
    """FakeGatherer that records the peak number of overlapping fetches."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.in_flight = 0
        self.peak_in_flight = 0

    async def fetch(self, entity, query):
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            return await super().fetch(entity, query)
        finally:
            self.in_flight -= 1
