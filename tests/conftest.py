"""
Test fixtures for the Internal Transfers API test suite.

This module provides shared fixtures used across all test files:

  - database: Fresh SQLite database file for each test, tables created
  - account_repository / transaction_repository: Repositories on that database
  - account_service / transfer_service: Services wired the same way the
    FastAPI dependencies wire them
  - client: Async HTTP test client against an app built by create_app()
  - make_account: Helper that creates an account through the service layer
  - balance_of / count_transactions: Read-back helpers for assertions

Key design decisions:
  - A file database under tmp_path, not in-memory SQLite. Concurrency tests
    open many sessions at once, and each needs its own connection to the
    same database.
  - The app is built with create_app(settings, database=...) so requests hit
    the test database without any dependency overrides.
"""

from functools import partial

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from transfer_api.config import Settings
from transfer_api.database import Database
from transfer_api.main import create_app
from transfer_api.models.transaction import Transaction
from transfer_api.repositories.account_repository import AccountRepository
from transfer_api.repositories.transaction_repository import TransactionRepository
from transfer_api.services.account_service import AccountService
from transfer_api.services.transfer_service import TransferService
from transfer_api.unit_of_work import UnitOfWork


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'transfers.db'}"


@pytest.fixture
def settings(database_url):
    return Settings(
        DATABASE_URL=database_url,
        CREATE_TABLES_ON_STARTUP=False,
        LOG_FORMAT="console",
        LOG_LEVEL="WARNING",
        REQUEST_TIMEOUT_SECONDS=5.0,
        SQLITE_BUSY_TIMEOUT_SECONDS=30.0,
    )


@pytest_asyncio.fixture
async def database(settings):
    """Create a fresh database with all tables for each test."""
    db = Database(
        settings.DATABASE_URL,
        sqlite_busy_timeout=settings.SQLITE_BUSY_TIMEOUT_SECONDS,
    )
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
def account_repository(database):
    return AccountRepository(database.session_factory)


@pytest.fixture
def transaction_repository(database):
    return TransactionRepository(database.session_factory)


@pytest.fixture
def account_service(account_repository):
    return AccountService(account_repository)


@pytest.fixture
def transfer_service(database, account_repository, transaction_repository):
    return TransferService(
        accounts=account_repository,
        transactions=transaction_repository,
        unit_of_work_factory=partial(UnitOfWork, database.session_factory),
    )


@pytest.fixture
def app(settings, database):
    return create_app(settings, database=database)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP test client against the test database."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_account(account_service):
    """Create an account directly through the service layer."""

    async def _make(account_id: int, balance: str = "0"):
        return await account_service.create_account(account_id, balance)

    return _make


@pytest.fixture
def count_transactions(database):
    """Number of transfer records in the database, optionally by status."""

    async def _count(status: str | None = None) -> int:
        query = select(func.count()).select_from(Transaction)
        if status is not None:
            query = query.where(Transaction.status == status)
        async with database.session_factory() as session:
            return (await session.execute(query)).scalar_one()

    return _count


@pytest.fixture
def balance_of(account_service):
    """Current balance of an account as canonical text, e.g. "70.00"."""

    async def _balance(account_id: int) -> str:
        account = await account_service.get_account(account_id)
        return str(account.balance)

    return _balance
