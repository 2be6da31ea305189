"""
Core infrastructure package for the Agency Metrics backend.

Provides:
- Configuration management via pydantic-settings
- Async PostgreSQL connectivity via asyncpg (postgres metrics source only)

FastAPI dependency providers live in agency_metrics.core.dependencies and are
imported from there directly; they depend on the services package, which in
turn depends on this one.

Usage Examples:
    from agency_metrics.core import get_settings, init_db, close_db

    settings = get_settings()
"""

from agency_metrics.core.config import Settings, get_settings
from agency_metrics.core.database import init_db, close_db, get_db_pool, execute_query

__all__ = [
    'Settings',
    'get_settings',
    'init_db',
    'close_db',
    'get_db_pool',
    'execute_query',
]
