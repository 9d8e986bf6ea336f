"""
Analytics API package initialization.

Router modules:
- reports: Analytics report generation
"""

from fastapi import APIRouter

from analytics_backend.api.reports import router as reports_router

# Create main API router
api_router = APIRouter()

api_router.include_router(reports_router, prefix="/reports", tags=["reports"])

__all__ = [
    "api_router",
    "reports_router",
]
