"""Database connection and session management."""

import asyncio
import logging
from collections.abc import AsyncIterator

from fastapi import Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from chatpulse.settings import get_async_database_url

logger = logging.getLogger(__name__)

# Base class for models
Base = declarative_base()


class DatabaseNotOpenError(RuntimeError):
    """Raised when a session is requested before ``open()`` or after ``close()``."""


# Everything that means the store could not serve a read. Drivers raise socket
# level errors (refused connections, timeouts) without SQLAlchemy wrapping them.
STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError, DatabaseNotOpenError)


class Database:
    """Owns the async engine and session factory for one backing store.

    The engine is created by ``open()`` and disposed by ``close()``; the
    application lifespan drives both, tests build their own instance.
    """

    def __init__(self, url: str | None = None, echo: bool = False) -> None:
        self.url = get_async_database_url(url)
        self.echo = echo
        self.engine: AsyncEngine | None = None
        self.session_factory: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_open(self) -> bool:
        return self.engine is not None

    async def open(self) -> None:
        """Create the engine and session factory."""
        if self.engine is not None:
            return
        self.engine = create_async_engine(self.url, echo=self.echo, future=True)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autocommit=False,
            autoflush=False,
        )
        logger.info("Database engine opened", extra={"dialect": self.engine.dialect.name})

    async def close(self) -> None:
        """Dispose the engine."""
        if self.engine is None:
            return
        await self.engine.dispose()
        self.engine = None
        self.session_factory = None
        logger.info("Database engine closed")

    async def create_all(self) -> None:
        """Create every table known to ``Base`` (development and tests)."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    def session(self) -> AsyncSession:
        """Return a new session; use it as an async context manager."""
        if self.session_factory is None:
            raise DatabaseNotOpenError("Database is not open")
        return self.session_factory()


def get_database(request: Request) -> Database:
    """Dependency returning the application's database."""
    return request.app.state.database


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """Dependency for getting a database session."""
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        finally:
            await session.close()
