"""
FastAPI dependency injection module for the analytics backend.

Endpoint handlers never build engine components themselves. They receive
configuration and a ready ReportService through the dependencies below,
which keeps handlers thin and lets tests swap any piece via
``app.dependency_overrides``.

Key Dependencies Provided:
- get_settings_dependency: Returns the cached Settings singleton
- SettingsDep: Type alias for injecting Settings into endpoints
- build_report_service: Wires a ReportService from Settings and a pool
- get_report_service: FastAPI dependency returning the wired ReportService
- ReportServiceDep: Type alias for injecting the ReportService

Usage Examples:
    @router.post("/reports")
    async def create_report(
        service: ReportServiceDep,
        payload: Dict[str, Any] = Body(...),
    ) -> AnalyticsReport:
        return await service.generate_report(payload)

    # In tests
    app.dependency_overrides[get_report_service] = lambda: fake_service
"""

from typing import Annotated, Optional

from asyncpg import Pool
from fastapi import Depends

from analytics_backend.core.config import Settings, get_settings
from analytics_backend.services.archive_tier import ArchiveTierGatherer, HttpArchiveStore
from analytics_backend.services.fast_tier import FastTierGatherer
from analytics_backend.services.insights import HttpInsightSynthesizer, InsightAdapter
from analytics_backend.services.reports import ReportService


# =============================================================================
# Settings Dependency
# =============================================================================

def get_settings_dependency() -> Settings:
    """
    Return the Settings singleton instance.

    Thin wrapper around get_settings() so the settings can be replaced with
    FastAPI's dependency override mechanism:

        app.dependency_overrides[get_settings_dependency] = lambda: mock_settings
    """
    return get_settings()


SettingsDep = Annotated[Settings, Depends(get_settings_dependency)]


# =============================================================================
# Report Service Dependency
# =============================================================================

def build_report_service(settings: Settings, pool: Optional[Pool] = None) -> ReportService:
    """
    Wire a ReportService from settings.

    The archive store and the insight synthesizer are optional: without
    ARCHIVE_URL archive-tier gathers degrade to empty results, and without
    INSIGHT_URL the template insights are used.

    Args:
        settings: Application settings.
        pool: Hot-store connection pool; None uses the process-wide pool.

    Returns:
        ReportService: A service holding no per-request state.
    """
    config = settings.analytics_config()

    archive_store = None
    if settings.archive_url:
        archive_store = HttpArchiveStore(settings.archive_url, api_key=settings.archive_api_key)

    synthesizer = None
    if settings.insight_url:
        synthesizer = HttpInsightSynthesizer(
            settings.insight_url,
            api_key=settings.insight_api_key,
            model=settings.insight_model,
            max_tokens=settings.insight_max_tokens,
        )

    return ReportService(
        config=config,
        fast_gatherer=FastTierGatherer(pool),
        archive_gatherer=ArchiveTierGatherer(archive_store),
        insight_adapter=InsightAdapter(synthesizer, timeout=config.insight_timeout_seconds),
    )


def get_report_service(settings: SettingsDep) -> ReportService:
    """Return a ReportService backed by the process-wide connection pool."""
    return build_report_service(settings)


ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
