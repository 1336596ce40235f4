import uuid

from sqlalchemy import String, TypeDecorator
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker, AsyncEngine
from sqlalchemy.orm import declarative_base
from sqlalchemy.pool import NullPool, AsyncAdaptedQueuePool
from fastapi import Request
from typing import AsyncGenerator, Optional

from app.core.config import Settings

# Create base class for models (can be defined before engine)
Base = declarative_base()


def new_record_id() -> str:
    return str(uuid.uuid4())


class RecordID(TypeDecorator):
    """Surrogate key stored as VARCHAR(36) on SQLite and PostgreSQL alike"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        # uuid.UUID objects from callers are normalised to their string form
        return str(value) if value is not None else None


def get_database_url(raw_url: str) -> str:
    """Get properly formatted async database URL"""
    if raw_url.startswith("postgres://"):
        raw_url = raw_url.replace("postgres://", "postgresql://", 1)
    if raw_url.startswith("postgresql://"):
        raw_url = raw_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if raw_url.startswith("sqlite:///"):
        raw_url = raw_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return raw_url


class Database:
    """
    Process-wide database handle.

    Created once in the application lifespan, stored on ``app.state.db`` and
    disposed of on shutdown.

    Connection pooling strategy:
    - SQLite: NullPool (required for thread safety)
    - PostgreSQL Development: NullPool (simpler debugging)
    - PostgreSQL Production: AsyncAdaptedQueuePool with connection limits
    """

    def __init__(self, settings: Settings, url: Optional[str] = None):
        db_url = get_database_url(url or settings.DATABASE_URL)

        if "sqlite" in db_url:
            self.engine: AsyncEngine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                connect_args={"check_same_thread": False},
                poolclass=NullPool,
            )
        elif settings.DEBUG or settings.ENVIRONMENT == "development":
            self.engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                poolclass=NullPool,
            )
        else:
            self.engine = create_async_engine(
                db_url,
                echo=settings.DB_ECHO,
                poolclass=AsyncAdaptedQueuePool,
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
                pool_pre_ping=True,  # Verify connections before use
            )

        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    async def create_all(self) -> None:
        """Create tables for every imported model"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self) -> None:
        """Close all pooled connections"""
        await self.engine.dispose()


# Dependency to get DB session
async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session - only commits if there are pending changes"""
    database: Database = request.app.state.db
    async with database.session_factory() as session:
        try:
            yield session
            # Only commit if there are pending changes (new, dirty, or deleted objects)
            if session.new or session.dirty or session.deleted:
                await session.commit()
        except Exception:
            await session.rollback()
            raise
