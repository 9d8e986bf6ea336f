"""
Fast-Tier Gatherer.

Reads recent records from the hot PostgreSQL tables through the shared
asyncpg pool. One parameterized range read is issued per entity type; the
rows are coerced field by field (see services.gathering) so a half-written or
legacy row never aborts a report.

Errors raised by asyncpg propagate out of fetch() as GatherError and are
turned into an empty result by gather_records().
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from asyncpg import Pool

from analytics_backend.core.database import get_db_pool
from analytics_backend.core.exceptions import GatherError
from analytics_backend.models.enums import EntityType, StorageTier
from analytics_backend.models.schemas import AnalyticsQuery, DateRange, QueryFilters
from analytics_backend.services.gathering import coerce_records
from analytics_backend.sql.hot_queries import (
    get_hot_media_query,
    get_hot_prompts_query,
    get_hot_topics_query,
)


logger = logging.getLogger(__name__)


QueryBuilder = Callable[[DateRange, Optional[QueryFilters]], Tuple[str, List[Any]]]

HOT_QUERY_BUILDERS: Dict[EntityType, QueryBuilder] = {
    EntityType.TOPICS: get_hot_topics_query,
    EntityType.PROMPTS: get_hot_prompts_query,
    EntityType.MEDIA: get_hot_media_query,
}


class FastTierGatherer:
    """
    Gatherer backed by the hot tables.

    Args:
        pool: asyncpg connection pool for the hot store. When None the
            process-wide pool is used, created on first fetch.
    """

    tier = StorageTier.FAST

    def __init__(self, pool: Optional[Pool] = None) -> None:
        self._pool = pool

    async def _get_pool(self) -> Pool:
        if self._pool is not None:
            return self._pool
        return await get_db_pool()

    async def fetch(self, entity: EntityType, query: AnalyticsQuery) -> List[Any]:
        sql, params = HOT_QUERY_BUILDERS[entity](query.dateRange, query.filters)

        try:
            pool = await self._get_pool()
            async with pool.acquire() as conn:
                rows = await conn.fetch(sql, *params)
        except Exception as e:
            raise GatherError(entity.value, self.tier.value, str(e)) from e

        records = coerce_records(entity, [dict(row) for row in rows])
        logger.debug(f"Hot store returned {len(records)} {entity.value} records")
        return records
