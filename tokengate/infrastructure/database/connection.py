"""Database connection management module."""
from typing import Optional
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    AsyncEngine,
    create_async_engine,
    async_sessionmaker
)
from sqlalchemy.pool import NullPool, StaticPool

from tokengate.infrastructure.logging import get_logger

logger = get_logger(__name__)


class DatabaseConnection:
    """Owns the engine and session factory for the process lifetime."""

    def __init__(
        self,
        database_url: str,
        pool_size: int = 20,
        max_overflow: int = 40,
        pool_timeout: int = 30,
        echo: bool = False
    ):
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None
        self.database_url = self._convert_to_async_url(database_url)
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.echo = echo

    def _convert_to_async_url(self, url: str) -> str:
        """Convert sync database URL to async."""
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        elif url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    async def connect(self) -> None:
        """Initialize database connection."""
        if self._engine is not None:
            return

        if self.is_sqlite and ":memory:" in self.database_url:
            # One shared connection, otherwise every checkout sees an empty database
            engine_kwargs = {
                "poolclass": StaticPool,
                "connect_args": {"check_same_thread": False},
            }
        elif self.is_sqlite:
            engine_kwargs = {"poolclass": NullPool}
        else:
            engine_kwargs = {
                "pool_size": self.pool_size,
                "max_overflow": self.max_overflow,
                "pool_timeout": self.pool_timeout,
                "pool_pre_ping": True,
            }

        self._engine = create_async_engine(
            self.database_url,
            echo=self.echo,
            **engine_kwargs,
        )

        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        logger.info("database_connected", dialect=self._engine.dialect.name)

    async def create_schema(self) -> None:
        """Create tables once at startup."""
        from tokengate.infrastructure.database.models import Base

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("database_schema_ready")

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None
            logger.info("database_disconnected")

    async def ping(self) -> bool:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True

    @asynccontextmanager
    async def get_session(self):
        """Get a session that commits on success and rolls back on error."""
        if self._sessionmaker is None:
            raise RuntimeError("Database not connected")

        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    @property
    def engine(self) -> AsyncEngine:
        """Get database engine."""
        if self._engine is None:
            raise RuntimeError("Database not connected")
        return self._engine
