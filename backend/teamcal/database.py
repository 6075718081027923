"""Database configuration and session management."""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from teamcal.config import get_settings

settings = get_settings()


def _engine_options() -> dict:
    """Pool and driver options for the configured database."""
    if not settings.is_postgres:
        return {"echo": False}

    # pgbouncer-compatible settings for the hosted Postgres
    return {
        "echo": False,
        "pool_size": 20,
        "max_overflow": 50,
        "pool_pre_ping": True,
        "connect_args": {
            "server_settings": {
                "jit": "off",
            },
            "prepared_statement_cache_size": 0,
        },
    }


engine = create_async_engine(settings.async_database_url, **_engine_options())

# Create session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)

# Base class for models
Base = declarative_base()


async def get_db() -> AsyncSession:
    """Dependency for getting database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
