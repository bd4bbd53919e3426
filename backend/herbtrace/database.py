"""Database engine, session factory, and declarative base.

Every stage record, the product batch and the user table share one
DeclarativeBase.  ``get_db()`` yields one session per request and rolls it
back on any error.  Write paths commit explicitly before the response is
built, so a client never receives an id for a row that failed to commit.
"""

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    create_async_engine,
    async_sessionmaker,
)
from sqlalchemy.orm import DeclarativeBase

from herbtrace.config import settings


def _engine_kwargs(url: str) -> dict:
    # SQLite (local dev) has no connection pool sizing
    if url.startswith("sqlite"):
        return {}
    return {"pool_size": 20, "max_overflow": 10}


engine = create_async_engine(
    settings.database_url,
    echo=settings.debug and settings.log_level == "DEBUG",
    **_engine_kwargs(settings.database_url),
)

async_session = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


class Base(DeclarativeBase):
    """Base class for all HerbTrace tables."""
    pass


# ── Session dependency ──────────────────────────────────────

async def get_db() -> AsyncSession:
    """Yield a request-scoped session; commit on success, roll back on error."""
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
