"""
Account repository — persistence for Account rows.

Two kinds of operations:

  - Standalone (create, get_by_id): open their own short-lived session from
    the session factory. Used for account creation, GET /accounts/{id}, and
    the transfer engine's non-locking existence pre-check.
  - Unit-of-work scoped (get_for_update, update_balance): run on the session
    of the caller's UnitOfWork, so the row lock and the write belong to the
    transfer's single database transaction.
"""

from datetime import datetime, timezone

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from transfer_api.exceptions import AccountExistsError, AccountNotFoundError
from transfer_api.models.account import Account
from transfer_api.money import Money
from transfer_api.unit_of_work import UnitOfWork


# Driver-level codes for a primary key / unique constraint violation:
# PostgreSQL SQLSTATE, and sqlite3's extended error names (Python 3.11+).
_UNIQUE_VIOLATION_CODES = {
    "23505",
    "SQLITE_CONSTRAINT_PRIMARYKEY",
    "SQLITE_CONSTRAINT_UNIQUE",
}


def is_unique_violation(exc: IntegrityError) -> bool:
    """True if the driver reported a uniqueness violation (not another constraint)."""
    orig = exc.orig
    for attribute in ("sqlstate", "pgcode", "sqlite_errorname"):
        if getattr(orig, attribute, None) in _UNIQUE_VIOLATION_CODES:
            return True
    return False


def lock_account_query(account_id: int):
    """SELECT one account row, locked FOR NO KEY UPDATE where the backend supports it."""
    return (
        select(Account)
        .where(Account.id == account_id)
        .with_for_update(key_share=True)
        .execution_options(populate_existing=True)
    )


class AccountRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, account_id: int, initial_balance: Money) -> Account:
        """
        Insert a new account.

        Uniqueness is left to the primary key constraint rather than checked
        with a prior SELECT, so two concurrent creates cannot both succeed.

        Raises:
            AccountExistsError: If an account with this id already exists.
        """
        async with self._session_factory() as session:
            account = Account(id=account_id, balance=initial_balance)
            session.add(account)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                if is_unique_violation(exc):
                    raise AccountExistsError(account_id) from exc
                raise
            return account

    async def get_by_id(self, account_id: int) -> Account:
        """
        Point lookup without locking.

        Raises:
            AccountNotFoundError: If the account doesn't exist.
        """
        async with self._session_factory() as session:
            account = await session.get(Account, account_id)

        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def get_for_update(self, account_id: int, uow: UnitOfWork) -> Account:
        """
        Lookup that locks the row until the unit of work ends.

        On PostgreSQL this is FOR NO KEY UPDATE. The pending transaction
        record inserted earlier in the same unit of work holds FOR KEY SHARE
        locks on both accounts through its foreign keys, and a plain
        FOR UPDATE would conflict with another transfer's key-share locks.

        populate_existing makes sure the balance comes from the locked read,
        not from an object already sitting in the session.

        Raises:
            AccountNotFoundError: If the account doesn't exist.
        """
        result = await uow.session.execute(lock_account_query(account_id))
        account = result.scalar_one_or_none()

        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    async def update_balance(
        self,
        account_id: int,
        new_balance: Money,
        uow: UnitOfWork,
    ) -> None:
        """
        Overwrite the balance inside the unit of work.

        The caller must already hold the row lock from get_for_update().

        Raises:
            AccountNotFoundError: If no row matched.
        """
        result = await uow.session.execute(
            update(Account)
            .where(Account.id == account_id)
            .values(balance=new_balance, updated_at=datetime.now(timezone.utc))
        )
        if result.rowcount == 0:
            raise AccountNotFoundError(account_id)
