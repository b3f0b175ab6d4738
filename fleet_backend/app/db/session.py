"""
Database session configuration.

This module handles database engine creation and session management
using SQLAlchemy with async support (aiosqlite by default, asyncpg for PostgreSQL).
"""

from pathlib import Path

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from fleet_backend.app.core.config import settings


def build_engine_options(database_url: str) -> dict:
    """
    Engine keyword arguments for the given URL.
    
    SQLite pools do not accept sizing options, and a file database needs
    its parent directory to exist before the first connection.
    """
    url = make_url(database_url)
    options = {
        "echo": settings.db_echo,
        "isolation_level": settings.db_isolation_level,
    }
    
    if url.get_backend_name() == "sqlite":
        if url.database and url.database != ":memory:":
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
        return options
    
    options["pool_size"] = settings.db_pool_size
    options["max_overflow"] = settings.db_max_overflow
    return options


# Create async engine
engine = create_async_engine(settings.database_url, **build_engine_options(settings.database_url))

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

# Create declarative base for models
Base = declarative_base()


async def get_db():
    """
    FastAPI dependency for database sessions.
    
    Yields an async database session and ensures it's properly closed.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
