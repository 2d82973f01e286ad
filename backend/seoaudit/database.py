"""
Database connection and session management.
"""
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from seoaudit.config import settings
from seoaudit.models.base import Base

# Convert sync URL to async
DATABASE_URL = settings.DATABASE_URL.replace(
    "postgresql://", "postgresql+asyncpg://"
)


def create_engine(url: str = DATABASE_URL, **overrides) -> AsyncEngine:
    kwargs = {"echo": settings.ENVIRONMENT == "development", "pool_pre_ping": True}
    if not url.startswith("sqlite"):
        kwargs.update(pool_size=10, max_overflow=20)
    kwargs.update(overrides)
    return create_async_engine(url, **kwargs)


def create_session_maker(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


engine = create_engine()

AsyncSessionLocal = create_session_maker(engine)


async def init_db(bind: AsyncEngine | None = None) -> None:
    """Initialize database tables."""
    from seoaudit.models.audit import SeoAuditJob  # noqa: F401

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
