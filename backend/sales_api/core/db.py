from __future__ import annotations

from collections.abc import AsyncIterator

from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from sales_api.core.config import get_settings


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    # `sale_items.sale_id` relies on ON DELETE CASCADE, which SQLite ignores unless asked.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str | None = None) -> AsyncEngine:
    url = make_url(database_url or get_settings().database_url)
    if url.get_backend_name() == "sqlite":
        sales_engine = create_async_engine(url)
        event.listen(sales_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return sales_engine
    return create_async_engine(url, pool_pre_ping=True)


engine = build_engine()
SessionLocal = async_sessionmaker(bind=engine, expire_on_commit=False)


async def get_session() -> AsyncIterator[AsyncSession]:
    """Request-scoped session; endpoints open their own `session.begin()` around each use case."""
    async with SessionLocal() as session:
        yield session
