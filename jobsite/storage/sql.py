"""
SQL storage backend.

Stores each collection document as one JSON row using async SQLAlchemy.
Defaults to a local SQLite file through aiosqlite; any async driver URL
(e.g. postgresql+asyncpg://) works the same way.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import JSON, DateTime, String, delete, select, text
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.pool import StaticPool

from .base import StoragePort
from .exceptions import StorageConnectionError, StorageOperationError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class DocumentDB(Base):
    """One stored collection document."""
    __tablename__ = "storage_documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[Any] = mapped_column(JSON, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


def normalize_database_url(database_url: str) -> str:
    """Convert sync driver URLs to their async equivalents."""
    if database_url.startswith("postgres://"):
        return database_url.replace("postgres://", "postgresql+asyncpg://", 1)
    if database_url.startswith("postgresql://"):
        return database_url.replace("postgresql://", "postgresql+asyncpg://", 1)
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    return database_url


class SQLStorage(StoragePort):
    """Documents stored as JSON rows in a SQL database."""

    def __init__(self, database_url: str, prefix: str = "", echo: bool = False):
        super().__init__(prefix)
        self.database_url = normalize_database_url(database_url)
        self.echo = echo
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self._initialized = False

    async def initialize(self) -> bool:
        """Create the engine and the documents table."""
        if self._initialized:
            return True

        try:
            engine_kwargs: Dict[str, Any] = {"echo": self.echo}
            if self.database_url.startswith("sqlite"):
                if ":memory:" in self.database_url:
                    # One shared connection, otherwise every session sees an empty database
                    engine_kwargs["poolclass"] = StaticPool
                    engine_kwargs["connect_args"] = {"check_same_thread": False}
            else:
                engine_kwargs["pool_pre_ping"] = True

            self.engine = create_async_engine(self.database_url, **engine_kwargs)
            self.session_factory = async_sessionmaker(
                bind=self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )

            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)

            self._initialized = True
            logger.info("SQL storage initialized")
            return True

        except Exception as e:
            logger.error(f"SQL storage initialization failed: {e}")
            raise StorageConnectionError(f"Cannot initialize SQL storage: {e}") from e

    async def close(self) -> None:
        if self.engine:
            await self.engine.dispose()
            self._initialized = False
            logger.info("SQL storage connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session."""
        if not self._initialized:
            await self.initialize()

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                logger.error(f"Storage session error: {e}")
                raise

    async def get(self, key: str) -> Optional[Any]:
        try:
            async with self.session() as session:
                result = await session.execute(
                    select(DocumentDB.value).where(DocumentDB.key == self.full_key(key))
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StorageOperationError(f"Failed to read {key}: {e}") from e

    async def set(self, key: str, value: Any) -> None:
        full_key = self.full_key(key)
        now = datetime.now(timezone.utc)
        try:
            async with self.session() as session:
                upsert = self._upsert_statement(full_key, value, now)
                if upsert is not None:
                    await session.execute(upsert)
                else:
                    await session.merge(DocumentDB(key=full_key, value=value, updated_at=now))
        except SQLAlchemyError as e:
            raise StorageOperationError(f"Failed to write {key}: {e}") from e

    def _upsert_statement(self, full_key: str, value: Any, now: datetime):
        """Single-statement insert-or-update where the dialect supports it."""
        dialect = self.engine.dialect.name
        if dialect == "sqlite":
            statement = sqlite_insert(DocumentDB)
        elif dialect == "postgresql":
            statement = postgresql_insert(DocumentDB)
        else:
            return None

        statement = statement.values(key=full_key, value=value, updated_at=now)
        return statement.on_conflict_do_update(
            index_elements=[DocumentDB.key],
            set_={"value": statement.excluded["value"], "updated_at": statement.excluded["updated_at"]},
        )

    async def delete(self, key: str) -> bool:
        try:
            async with self.session() as session:
                result = await session.execute(
                    delete(DocumentDB).where(DocumentDB.key == self.full_key(key))
                )
                return result.rowcount > 0
        except SQLAlchemyError as e:
            raise StorageOperationError(f"Failed to delete {key}: {e}") from e

    async def health_check(self) -> Dict[str, Any]:
        try:
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                result.scalar()
            return {"status": "healthy", "backend": "sql", "initialized": self._initialized}
        except Exception as e:
            return {"status": "unhealthy", "backend": "sql", "error": str(e)}
