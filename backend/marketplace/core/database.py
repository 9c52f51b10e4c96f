"""
Course Marketplace Database Management

Async connection management for the persistence gateway:
- Engine creation with retry and exponential backoff
- Session factory with explicit transaction control
- First-run schema bootstrap (no migrations)
- Health check and connection metrics
"""

import time
from contextlib import asynccontextmanager
from functools import lru_cache
from typing import AsyncGenerator, Dict, Any, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
import structlog
from prometheus_client import Counter, Histogram

from .config import Settings, get_settings
from ..models import Base

logger = structlog.get_logger()

DB_CONNECTION_DURATION = Histogram(
    "marketplace_db_connection_duration_seconds",
    "Time spent establishing the database engine",
)
DB_FAILED_CONNECTIONS = Counter(
    "marketplace_db_failed_connections_total",
    "Total number of failed database connection attempts",
)
DB_SESSION_ROLLBACKS = Counter(
    "marketplace_db_session_rollbacks_total",
    "Total number of sessions rolled back after an error",
)


class DatabaseManager:
    """
    Database connection manager.

    One instance per process; created lazily by ``get_database_manager`` and
    initialized in the application lifespan.
    """

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None

    def _engine_options(self) -> Dict[str, Any]:
        if self.settings.is_sqlite:
            # In-memory SQLite needs a single shared connection
            return {
                "connect_args": {"check_same_thread": False},
                "poolclass": StaticPool,
            }
        return {
            "pool_size": self.settings.DATABASE_POOL_SIZE,
            "max_overflow": self.settings.DATABASE_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "pool_recycle": 3600,
            "connect_args": {
                "command_timeout": self.settings.GATEWAY_TIMEOUT_SECONDS,
                "server_settings": {"application_name": self.settings.SERVICE_NAME},
            },
        }

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        retry=retry_if_exception_type((ConnectionError, OSError)),
        before_sleep=lambda retry_state: logger.warning(
            "Database connection retry",
            attempt=retry_state.attempt_number,
            wait_time=retry_state.next_action.sleep,
        ),
    )
    async def _create_engine_with_retry(self) -> AsyncEngine:
        """Create database engine and verify connectivity."""
        start_time = time.time()

        try:
            engine = create_async_engine(
                self.settings.DATABASE_URL,
                echo=self.settings.DATABASE_ECHO,
                **self._engine_options(),
            )

            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

            duration = time.time() - start_time
            DB_CONNECTION_DURATION.observe(duration)

            logger.info(
                "Database engine created successfully",
                duration_seconds=duration,
                dialect=engine.dialect.name,
            )

            return engine

        except Exception as e:
            DB_FAILED_CONNECTIONS.inc()
            logger.error(
                "Failed to create database engine",
                error=str(e),
                duration_seconds=time.time() - start_time,
            )
            raise

    async def initialize(self, create_schema: bool = False) -> None:
        """Create engine and session factory; optionally bootstrap tables."""
        if self.engine is not None:
            return

        self.engine = await self._create_engine_with_retry()
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

        if create_schema:
            await self.create_all()

        logger.info("Database initialized", create_schema=create_schema)

    async def create_all(self) -> None:
        """Create all tables that do not exist yet."""
        if not self.engine:
            raise RuntimeError("Database engine not initialized")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        """Drop all tables. Used by the seed command and tests."""
        if not self.engine:
            raise RuntimeError("Database engine not initialized")

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Get database session with transaction management.

        Commits when the block exits cleanly, rolls back on any error.
        Services may commit earlier to order side effects after the write.
        """
        if not self.session_factory:
            raise RuntimeError("Database not initialized. Call initialize() first.")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                DB_SESSION_ROLLBACKS.inc()
                raise

    async def health_check(self) -> Dict[str, Any]:
        """Check database connectivity."""
        if not self.engine:
            return {"status": "unhealthy", "error": "not initialized"}

        start_time = time.time()
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return {
                "status": "healthy",
                "response_time_ms": round((time.time() - start_time) * 1000, 2),
            }
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {"status": "unhealthy", "error": str(e)}

    async def close(self) -> None:
        """Close database connections and cleanup resources."""
        if self.engine:
            await self.engine.dispose()
            logger.info("Database connections closed")
        self.engine = None
        self.session_factory = None


@lru_cache()
def get_database_manager() -> DatabaseManager:
    """Process-wide database manager, created on first use."""
    return DatabaseManager()


async def get_database_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a transactional session."""
    async with get_database_manager().get_session() as session:
        yield session
