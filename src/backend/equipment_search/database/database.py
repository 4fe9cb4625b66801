"""
Database configuration for the PostgreSQL catalog.

The equipment catalog, its pgvector embeddings and the parameter dictionary
all live in one PostgreSQL database accessed through SQLAlchemy asyncio
with the asyncpg driver.
"""

import logging
import os
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

logger = logging.getLogger(__name__)


class PostgreSQLManager:
    """
    PostgreSQL manager for catalog reads.

    Features:
    - Async engine built from POSTGRES_* environment variables
    - Session factory for repositories
    - Connectivity check for the health endpoint
    """

    def __init__(self, database_url: Optional[str] = None):
        """Initialize PostgreSQL manager with .env configuration."""
        self.postgres_host = os.getenv("POSTGRES_HOST", "localhost")
        self.postgres_port = int(os.getenv("POSTGRES_PORT", "5432"))
        self.postgres_db = os.getenv("POSTGRES_DB", "equipment")
        self.postgres_user = os.getenv("POSTGRES_USER", "postgres")
        self.postgres_password = os.getenv("POSTGRES_PASSWORD", "postgres")
        self.database_url = database_url or os.getenv("DATABASE_URL")

        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def build_url(self) -> str:
        if self.database_url:
            # Accept plain postgres:// URLs and force the async driver
            url = self.database_url
            for scheme in ("postgresql://", "postgres://"):
                if url.startswith(scheme):
                    return "postgresql+asyncpg://" + url[len(scheme):]
            return url

        return (
            f"postgresql+asyncpg://{self.postgres_user}:"
            f"{self.postgres_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    def init_db(self):
        """Initialize PostgreSQL engine and session factory."""
        if self._initialized:
            return

        self.engine = create_async_engine(
            self.build_url(),
            echo=False,
            poolclass=NullPool,
            future=True
        )

        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        self._initialized = True
        logger.info(f"PostgreSQL connected: {self.postgres_host}:{self.postgres_port}/{self.postgres_db}")

    def session(self) -> AsyncSession:
        """
        Open a new session.

        Raises:
            RuntimeError: If init_db() has not been called
        """
        if not self._initialized or self.session_factory is None:
            raise RuntimeError("PostgreSQL not initialized. Call init_db() first.")
        return self.session_factory()

    async def verify_connectivity(self) -> bool:
        """Run SELECT 1; False on any failure"""
        if not self._initialized:
            return False
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error(f"PostgreSQL connectivity check failed: {e}")
            return False

    async def close(self):
        """Close PostgreSQL engine."""
        if self.engine:
            await self.engine.dispose()
            logger.info("PostgreSQL engine disposed")
        self.engine = None
        self.session_factory = None
        self._initialized = False


postgresql_manager = PostgreSQLManager()
