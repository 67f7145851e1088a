"""
Database engine, session factory, and declarative base.

This module sets up SQLAlchemy 2.0 with async support:

  - Base: declarative base class that all ORM models inherit from
  - Database: owns the async engine and the session factory; one instance is
    created by the application factory and stored on app.state

Locking:
  Transfers lock account rows with SELECT ... FOR UPDATE. PostgreSQL (asyncpg)
  honours that with row-level locks. SQLite has no row locks and ignores
  FOR UPDATE, so for SQLite every transaction is opened with BEGIN IMMEDIATE
  instead: the first statement of a unit of work takes the database write
  lock, and concurrent writers wait up to SQLITE_BUSY_TIMEOUT_SECONDS for it.
  This gives the same "one writer per account pair at a time" guarantee, just
  at database granularity.
"""

from pathlib import Path

from sqlalchemy import event, text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""
    pass


def _install_sqlite_locking(engine) -> None:
    """Replace the driver's deferred BEGIN with BEGIN IMMEDIATE."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        # Stop the driver from emitting its own BEGIN (and COMMIT before DDL)
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """
    Owns the async engine and session factory for one application instance.

    Usage:
        database = Database("sqlite+aiosqlite:///./data/transfers.db")
        await database.create_all()
        async with database.session_factory() as session:
            ...
        await database.close()
    """

    def __init__(
        self,
        database_url: str,
        echo: bool = False,
        pool_size: int = 10,
        max_overflow: int = 20,
        sqlite_busy_timeout: float = 30.0,
    ) -> None:
        url = make_url(database_url)
        self.is_sqlite = url.get_backend_name() == "sqlite"

        if self.is_sqlite:
            # sqlite3 fails on a missing parent directory; in-memory URLs have no path
            if url.database and url.database != ":memory:":
                Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_async_engine(
                url,
                echo=echo,
                connect_args={"timeout": sqlite_busy_timeout},
            )
            _install_sqlite_locking(self.engine)
        else:
            self.engine = create_async_engine(
                url,
                echo=echo,
                pool_pre_ping=True,
                pool_size=pool_size,
                max_overflow=max_overflow,
            )

        # expire_on_commit=False keeps returned ORM objects readable after the
        # unit of work commits, without a lazy load in async context.
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def create_all(self) -> None:
        """Create all tables that don't exist yet."""
        # Importing the models registers them on Base.metadata
        import transfer_api.models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_all(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def ping(self) -> None:
        """Round-trip a trivial query; raises if the database is unreachable."""
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def close(self) -> None:
        await self.engine.dispose()
