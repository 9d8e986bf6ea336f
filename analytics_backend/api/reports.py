"""
FastAPI router module for analytics reports.

Implements POST /reports: accepts an AnalyticsQuery JSON document, runs it
through the ReportService and returns the assembled AnalyticsReport.

Error mapping:
- ConfigurationError (unknown report type, malformed payload, reversed
  date range) -> 400, raised before any store is read
- anything else -> 500

Gather and insight failures never surface here: the service degrades them
and reports them in the report metadata instead.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, HTTPException, Query

from analytics_backend.core.dependencies import ReportServiceDep
from analytics_backend.core.exceptions import ConfigurationError
from analytics_backend.models.schemas import AnalyticsReport


# Configure logging
logger = logging.getLogger(__name__)


router = APIRouter()


# =============================================================================
# Endpoint Implementations
# =============================================================================


@router.post("", response_model=AnalyticsReport)
async def create_report(
    service: ReportServiceDep,
    payload: Dict[str, Any] = Body(..., description="AnalyticsQuery document"),
    timeout: Optional[float] = Query(
        default=None,
        gt=0,
        description="Overall deadline in seconds for gathering and insights",
    ),
) -> AnalyticsReport:
    """
    Generate an analytics report.

    Args:
        payload: AnalyticsQuery with reportType, dateRange and optional
            filters, groupBy and metrics.
        timeout: Optional deadline; steps still running when it passes
            degrade like failed steps.

    Returns:
        AnalyticsReport for the query.

    Raises:
        HTTPException(400): The query is invalid.
        HTTPException(500): Unexpected failure while assembling the report.
    """
    try:
        return await service.generate_report(payload, timeout=timeout)
    except ConfigurationError as e:
        logger.warning(f"Rejected analytics query: {e}")
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Error generating analytics report")
        raise HTTPException(
            status_code=500,
            detail=f"Failed to generate report: {str(e)}"
        )
