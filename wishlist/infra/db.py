"""Postgres engine and connection handling for the wishlist store.

    metadata           registry for the ``movies`` table; Alembic reads it too
    get_engine()       lazily built async engine, one per process
    get_connection()   ``async with`` block wrapping a single transaction
    dispose_engine()   drops the pool at API shutdown

A repository method opens exactly one connection block, so every INSERT or
UPDATE it issues commits on exit, or rolls back if the block raises.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine, create_async_engine

metadata: MetaData = MetaData()

# One API process serves all requests on one event loop; a handful of
# connections covers the single-row statements the repository issues.
_POOL_OPTIONS = {
    "pool_pre_ping": True,
    "pool_size": 5,
    "max_overflow": 10,
}

_engine: AsyncEngine | None = None


def get_engine() -> AsyncEngine:
    """Return the process-wide async engine, building it on first use.

    The constants import is deferred so Alembic can import ``metadata`` from
    this module without the TMDb and service env vars being set.
    """
    from wishlist.config import constants

    global _engine
    if _engine is None:
        _engine = create_async_engine(constants.DATABASE_URL, echo=False, **_POOL_OPTIONS)
    return _engine


async def dispose_engine() -> None:
    """Close pooled connections; the next get_engine() call builds a new engine."""
    global _engine
    if _engine is not None:
        await _engine.dispose()
        _engine = None


@asynccontextmanager
async def get_connection() -> AsyncGenerator[AsyncConnection, None]:
    """Yield a connection inside ``engine.begin()``.

    Driver errors propagate unchanged; the lifecycle and catalog services
    translate them with ``wishlist.services.errors.db_errors``.
    """
    async with get_engine().begin() as conn:
        yield conn
