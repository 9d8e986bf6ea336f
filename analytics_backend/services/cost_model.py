"""
Cost Model.

Estimates what executing a report's query cost, from the tier used and the
number of records returned. Deterministic and side-effect free; all rates
come from AnalyticsConfig.

Fast tier (hot tables, billed per read unit):
    dataStorageCost = ceil(totalRecords / recordsPerBillingUnit) * unitReadCost
    queryingCost    = 0

Archive tier (billed per GB scanned):
    scannedGB       = totalRecords * avgRecordSizeKB / 1e6
    dataStorageCost = scannedGB * storageAccessRate
    queryingCost    = scannedGB * selectQueryRate

Each component is rounded to 6 decimal places and totalCost is the rounded
sum of the rounded components, so totalCost == dataStorageCost + queryingCost
holds at 6 decimal places.
"""

import math

from analytics_backend.core.config import AnalyticsConfig
from analytics_backend.models.enums import StorageTier
from analytics_backend.models.schemas import CostAnalysis


COST_DECIMAL_PLACES: int = 6

KB_PER_GB: float = 1e6


def calculate_query_cost(
    tier: StorageTier,
    total_records: int,
    config: AnalyticsConfig,
) -> CostAnalysis:
    """
    Calculate the cost analysis block of a report.

    Args:
        tier: Tier the records were read from.
        total_records: Number of records gathered across all entity types.
        config: Engine configuration holding the billing constants.

    Returns:
        CostAnalysis with non-negative values rounded to 6 decimal places.
    """
    total_records = max(0, total_records)

    if tier == StorageTier.FAST:
        read_units = math.ceil(total_records / config.records_per_billing_unit)
        data_storage_cost = read_units * config.unit_read_cost
        querying_cost = 0.0
    else:
        scanned_gb = total_records * config.avg_record_size_kb / KB_PER_GB
        data_storage_cost = scanned_gb * config.storage_access_rate
        querying_cost = scanned_gb * config.select_query_rate

    data_storage_cost = round(data_storage_cost, COST_DECIMAL_PLACES)
    querying_cost = round(querying_cost, COST_DECIMAL_PLACES)

    return CostAnalysis(
        dataStorageCost=data_storage_cost,
        queryingCost=querying_cost,
        totalCost=round(data_storage_cost + querying_cost, COST_DECIMAL_PLACES),
    )
