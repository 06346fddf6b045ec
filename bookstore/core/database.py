"""
Database configuration and session management

Configurable connection pooling for PostgreSQL; SQLite (tests, local
experiments) gets foreign key enforcement switched on per connection.
"""
from contextlib import asynccontextmanager

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base

from bookstore.core.config import settings

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE rules unless this is set on every connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs) -> AsyncEngine:
    """Create an async engine with pool settings appropriate for the backend."""
    pool_config = {}

    if database_url.startswith("sqlite"):
        pool_config.update(kwargs)
        new_engine = create_async_engine(database_url, echo=settings.DEBUG, **pool_config)
        event.listen(new_engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        return new_engine

    if settings.ENVIRONMENT == "production":
        pool_config = {
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_recycle": settings.DB_POOL_RECYCLE,
            "pool_pre_ping": True,  # Verify connections before use
        }
    else:
        pool_config = {
            "pool_size": 2,
            "max_overflow": 5,
            "pool_pre_ping": True,
        }
    pool_config.update(kwargs)

    return create_async_engine(database_url, echo=settings.DEBUG, **pool_config)


engine = build_engine(settings.DATABASE_URL)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


@asynccontextmanager
async def get_db_session():
    """
    Context manager for database sessions outside a request context.

    Use this in:
    - Seed scripts
    - CLI tools
    - Service-to-service calls

    Usage:
        async with get_db_session() as db:
            user = await UserService(db).create_user(...)
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_models(bind: AsyncEngine = None) -> None:
    """
    Create all tables from the model definitions.

    Only for tests and throwaway databases; real schemas come from Alembic.
    """
    import bookstore.models  # noqa: F401  registers every mapped class

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
