"""
Core infrastructure package for the analytics backend.

Provides:
- Configuration management via pydantic-settings (Settings, AnalyticsConfig)
- Async PostgreSQL connectivity for the hot store via asyncpg
- The error taxonomy shared by the engine
- FastAPI dependency injection utilities

Usage Examples:
    from analytics_backend.core import get_settings, init_db, close_db

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        await init_db()
        yield
        await close_db()
"""

# =============================================================================
# Re-exports from analytics_backend.core.config
# =============================================================================
from analytics_backend.core.config import AnalyticsConfig, Settings, get_settings

# =============================================================================
# Re-exports from analytics_backend.core.database
# =============================================================================
from analytics_backend.core.database import init_db, close_db, get_db_pool

# =============================================================================
# Re-exports from analytics_backend.core.exceptions
# =============================================================================
from analytics_backend.core.exceptions import ConfigurationError, GatherError, InsightError

__all__ = [
    # Configuration management (from config.py)
    'AnalyticsConfig',
    'Settings',
    'get_settings',
    # Database pool lifecycle (from database.py)
    'init_db',
    'close_db',
    'get_db_pool',
    # Errors (from exceptions.py)
    'ConfigurationError',
    'GatherError',
    'InsightError',
]
