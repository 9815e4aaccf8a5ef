"""
Database Connection Module
Owns the SQLAlchemy async engine and session factory.

The store client is an explicit object: the application lifespan opens it
at startup, keeps it on ``app.state.database`` and disposes it at shutdown.
Request handlers receive sessions through the ``get_db`` dependency.
"""

import logging
from pathlib import Path
from typing import AsyncIterator, Optional

from fastapi import Request
from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

logger = logging.getLogger(__name__)


# Base class for all our models
class Base(DeclarativeBase):
    pass


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Store client with an explicit open/close lifecycle.

    Example:
        >>> database = Database("sqlite+aiosqlite:///./food.db")
        >>> await database.connect()
        >>> async with database.session() as session:
        ...     ...
        >>> await database.disconnect()
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Optional[AsyncEngine] = None
        self._session_maker: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def is_sqlite(self) -> bool:
        return make_url(self.url).get_backend_name() == "sqlite"

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            raise RuntimeError("Database is not connected")
        return self._engine

    async def connect(self) -> None:
        """Create the engine and session factory, then create all tables."""
        if self._engine is not None:
            return

        if self.is_sqlite:
            # Ensure database directory exists
            database_path = make_url(self.url).database
            if database_path and database_path != ":memory:":
                Path(database_path).parent.mkdir(parents=True, exist_ok=True)

            self._engine = create_async_engine(self.url, echo=self.echo)
            event.listen(self._engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
        else:
            self._engine = create_async_engine(
                self.url,
                echo=self.echo,
                pool_size=5,  # Connection pool size
                max_overflow=10,  # Extra connections when pool is full
            )

        # Objects remain accessible after commit
        self._session_maker = async_sessionmaker(
            bind=self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

        # Import models so they register on Base.metadata
        from food_delivery import models  # noqa: F401

        async with self._engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Database tables ready ({make_url(self.url).get_backend_name()})")

    async def disconnect(self) -> None:
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._session_maker = None

    def session(self) -> AsyncSession:
        if self._session_maker is None:
            raise RuntimeError("Database is not connected")
        return self._session_maker()

    async def ping(self) -> bool:
        """Run a trivial query; used by health checks."""
        try:
            async with self.session() as session:
                await session.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False


async def get_db(request: Request) -> AsyncIterator[AsyncSession]:
    """
    Dependency injection for FastAPI routes.
    Yields a database session and rolls back anything left uncommitted.
    """
    database: Database = request.app.state.database
    async with database.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
