"""
Database handle and per-request session dependency.

The engine and its connection pool belong to a `Database` instance that the
application builds at startup and disposes at shutdown. Request handlers get
a session through `get_db`; services receive that session as an argument and
own their transaction boundaries (commit on success, rollback on failure).
"""

from typing import Any, AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import Settings
from app.core.logging import get_logger

logger = get_logger(__name__)


class Database:
    """Owns the async engine, its pool and the session factory."""

    def __init__(self, url: str, echo: bool = False, **engine_options: Any):
        self.url = url
        self.engine: AsyncEngine = create_async_engine(url, echo=echo, **engine_options)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        options: dict[str, Any] = {"pool_pre_ping": True}
        if make_url(settings.DATABASE_URL).get_backend_name() != "sqlite":
            options.update(
                pool_size=settings.DB_POOL_SIZE,
                max_overflow=settings.DB_MAX_OVERFLOW,
                pool_timeout=settings.DB_POOL_TIMEOUT,
                pool_recycle=settings.DB_POOL_RECYCLE,
            )
        return cls(settings.DATABASE_URL, echo=settings.DEBUG, **options)

    async def connect(self) -> None:
        """Open one connection to fail fast on bad credentials or an unreachable host."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("database_connected", backend=self.engine.dialect.name)

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("database_disposed")

    def session(self) -> AsyncSession:
        return self.session_factory()


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session bound to the application's database; always closed on exit."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
