"""
Async PostgreSQL connection pool module for the hot store.

The hot store keeps recent topics, prompts and media items in the
topics_hot, prompts_hot and media_hot tables, written and expired by the
ingestion pipeline. This module only manages the connection pool; the
parameterized reads live in analytics_backend.sql.hot_queries and are issued
by the fast-tier gatherer.

Key Components:
- Global connection pool (_pool), created once per process
- init_db(): Initialize the connection pool at application startup
- get_db_pool(): Get the pool instance (initializes if needed)
- close_db(): Gracefully close the pool at application shutdown

Connection Pool Configuration:
- min_size: 2 (minimum idle connections kept in pool)
- max_size: 10 (maximum connections in pool)
- command_timeout: 60 seconds (query timeout)

The pool is the only process-wide object in the backend. It holds no
request state; each report acquires its own connections from it.

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    pool = await get_db_pool()
    gatherer = FastTierGatherer(pool)

    # At application shutdown
    await close_db()
"""

import asyncio
from typing import Optional

import asyncpg
from asyncpg import Pool

from analytics_backend.core.config import get_settings


# =============================================================================
# Global Pool
# =============================================================================

_pool: Optional[Pool] = None

# Serializes first-time pool creation between concurrent gathers.
_pool_lock = asyncio.Lock()


# =============================================================================
# Pool Lifecycle Functions
# =============================================================================

async def init_db() -> Pool:
    """
    Initialize the hot-store connection pool.

    Idempotent: if the pool already exists it is returned unchanged.
    Concurrent callers wait on one creation and share its pool.

    Returns:
        Pool: The asyncpg connection pool instance.

    Raises:
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is not None:
        return _pool

    async with _pool_lock:
        if _pool is None:
            settings = get_settings()
            _pool = await asyncpg.create_pool(
                dsn=settings.database_url,
                min_size=2,
                max_size=10,
                command_timeout=60,
            )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the hot-store connection pool, initializing it lazily if needed.

    Returns:
        Pool: The asyncpg connection pool instance.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"

    return _pool


async def close_db() -> None:
    """
    Close the connection pool gracefully.

    Idempotent. After closing, the next get_db_pool() creates a new pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None
