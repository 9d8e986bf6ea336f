'''
Analytics Backend Test Suite

Test Modules:
-------------
- test_routing.py: Tier selection boundaries (7-day threshold, partial days)
- test_gathering.py: Record coercion, concurrent gathering, failure isolation
- test_fast_tier.py: Hot-table SQL builders and the asyncpg-backed gatherer
- test_archive_tier.py: Streaming NDJSON decoding, filter expressions, HTTP store
- test_aggregation.py: Statistics, confidence buckets, ROI, grouped counts
- test_cost_model.py: Fast and archive cost formulas, rounding
- test_insights.py: Synthesizer parsing, fallback templates, adapter behavior
- test_reports.py: Report assembly, validation, degradation, visualizations
- test_api.py: POST /reports, error mapping, dependency wiring

Running Tests:
--------------
    pip install -e ".[test]"
    pytest

Configuration:
--------------
See conftest.py for shared fixtures and test configuration.
'''

# This file enables pytest discovery of the tests directory

__all__ = []
