"""
PeerRate – Async SQLAlchemy engine, session, and declarative base.
"""

from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from peerrate.config import settings

# ── Engine ──
engine_kwargs = {
    "echo": settings.DATABASE_ECHO,
    "future": True,
}

# If using PostgreSQL (Render/Supabase), disable prepared statement caching
# because PgBouncer (transaction mode) does not support it properly.
if "postgresql" in settings.DATABASE_URL:
    engine_kwargs["connect_args"] = {"statement_cache_size": 0}

engine = create_async_engine(
    settings.DATABASE_URL,
    **engine_kwargs
)


def enable_sqlite_foreign_keys(target: AsyncEngine) -> None:
    """SQLite ignores FOREIGN KEY clauses unless asked per connection."""

    @event.listens_for(target.sync_engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if settings.DATABASE_URL.startswith("sqlite"):
    enable_sqlite_foreign_keys(engine)

# ── Session factory ──
async_session = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ── Declarative base ──
class Base(DeclarativeBase):
    """Base class for all ORM models."""
    pass


# ── Dependency for FastAPI routes ──
async def get_db() -> AsyncSession:  # type: ignore[misc]
    """Yield an async database session, auto-closed on exit."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
