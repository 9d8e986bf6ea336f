"""
Tests for the query cost model.

Fast tier: ceil(records / recordsPerBillingUnit) * unitReadCost, no query cost.
Archive tier: per-GB access and select rates on records * avgRecordSizeKB / 1e6.
All values are rounded to 6 decimals and totalCost is the sum of its parts.
"""

import pytest

from analytics_backend.core.config import AnalyticsConfig
from analytics_backend.models import CostAnalysis, StorageTier
from analytics_backend.services.cost_model import COST_DECIMAL_PLACES, calculate_query_cost


class TestFastTierCost:

    def test_read_units_round_up(self, analytics_config):
        # 5 records at 4 per unit -> 2 units
        cost = calculate_query_cost(StorageTier.FAST, 5, analytics_config)
        assert cost.dataStorageCost == pytest.approx(0.0005)
        assert cost.queryingCost == 0.0
        assert cost.totalCost == pytest.approx(0.0005)

    def test_exact_multiple(self, analytics_config):
        cost = calculate_query_cost(StorageTier.FAST, 8, analytics_config)
        assert cost.dataStorageCost == pytest.approx(0.0005)

    def test_scenario_record_count(self, analytics_config):
        # 2 topics + 1 prompt + 1 media item
        cost = calculate_query_cost(StorageTier.FAST, 4, analytics_config)
        assert cost.dataStorageCost == pytest.approx(0.00025)
        assert cost.totalCost == pytest.approx(0.00025)

    def test_zero_records_cost_nothing(self, analytics_config):
        cost = calculate_query_cost(StorageTier.FAST, 0, analytics_config)
        assert cost == CostAnalysis(dataStorageCost=0.0, queryingCost=0.0, totalCost=0.0)


class TestArchiveTierCost:

    def test_million_records(self, analytics_config):
        # 1e6 records * 1 KB = 1 GB scanned
        cost = calculate_query_cost(StorageTier.ARCHIVE, 1_000_000, analytics_config)
        assert cost.dataStorageCost == pytest.approx(0.0004)
        assert cost.queryingCost == pytest.approx(0.002)
        assert cost.totalCost == pytest.approx(0.0024)

    def test_small_scan_rounds_to_zero(self, analytics_config):
        cost = calculate_query_cost(StorageTier.ARCHIVE, 10, analytics_config)
        assert cost.dataStorageCost == 0.0
        assert cost.queryingCost == pytest.approx(0.0)

    def test_rates_come_from_config(self):
        config = AnalyticsConfig(avg_record_size_kb=2.0, select_query_rate=0.01)
        cost = calculate_query_cost(StorageTier.ARCHIVE, 500_000, config)
        assert cost.dataStorageCost == pytest.approx(0.0004)
        assert cost.queryingCost == pytest.approx(0.01)


class TestCostInvariants:

    @pytest.mark.parametrize("tier", [StorageTier.FAST, StorageTier.ARCHIVE])
    @pytest.mark.parametrize("records", [0, 1, 3, 7, 999, 123_457, 10_000_001])
    def test_total_is_sum_of_parts(self, tier, records):
        config = AnalyticsConfig(
            unit_read_cost=0.000123457,
            storage_access_rate=0.000777,
            select_query_rate=0.00333,
            avg_record_size_kb=3.3,
        )
        cost = calculate_query_cost(tier, records, config)
        assert round(cost.dataStorageCost + cost.queryingCost, COST_DECIMAL_PLACES) == cost.totalCost
        assert cost.dataStorageCost >= 0
        assert cost.queryingCost >= 0

    def test_values_are_rounded_to_six_places(self):
        config = AnalyticsConfig(unit_read_cost=0.0000001234)
        cost = calculate_query_cost(StorageTier.FAST, 40, config)
        assert cost.dataStorageCost == round(cost.dataStorageCost, 6)

    def test_negative_record_count_is_clamped(self, analytics_config):
        cost = calculate_query_cost(StorageTier.ARCHIVE, -5, analytics_config)
        assert cost.totalCost == 0.0
