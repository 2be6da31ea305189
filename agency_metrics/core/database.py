"""
Async PostgreSQL connection pool module.

Only the Postgres-backed metrics source talks to the database; the seeded
source never touches it. The pool is a process-wide singleton created at
application startup when METRICS_SOURCE=postgres and closed on shutdown.

Connection Pool Configuration:
- min_size: 1
- max_size: 10
- command_timeout: 30 seconds

Usage:
    # At application startup (in FastAPI lifespan)
    await init_db()

    # In the metrics source
    rows = await execute_query("SELECT ... WHERE metric_key = $1", "impressions")

    # At application shutdown
    await close_db()
"""

from typing import Any, List, Optional

import asyncpg
from asyncpg import Pool

from agency_metrics.core.config import get_settings


# Global connection pool instance - None until init_db() is called
_pool: Optional[Pool] = None


async def init_db() -> Pool:
    """
    Initialize the database connection pool.

    Idempotent: returns the existing pool if it was already created.

    Raises:
        ValueError: If DATABASE_URL is not configured.
        asyncpg.PostgresError: If connection to the database fails.
        OSError: If the database host is unreachable.
    """
    global _pool

    if _pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise ValueError('DATABASE_URL is not configured')

        _pool = await asyncpg.create_pool(
            dsn=settings.database_url,
            min_size=1,
            max_size=10,
            command_timeout=30,
        )

    return _pool


async def get_db_pool() -> Pool:
    """
    Get the database connection pool, initializing lazily if needed.
    """
    global _pool

    if _pool is None:
        await init_db()

    assert _pool is not None, "Pool should be initialized after init_db()"
    return _pool


async def close_db() -> None:
    """
    Close the database connection pool gracefully.

    Idempotent; subsequent get_db_pool() calls create a fresh pool.
    """
    global _pool

    if _pool is not None:
        await _pool.close()
        _pool = None


async def execute_query(query: str, *args: Any) -> List[asyncpg.Record]:
    """
    Execute a single query and return all rows.

    Args:
        query: SQL string with $1, $2, ... placeholders.
        *args: Positional query parameters.

    Returns:
        List of asyncpg records (dict-like access by column name).
    """
    pool = await get_db_pool()
    async with pool.acquire() as conn:
        return await conn.fetch(query, *args)
