"""
Account service — business logic for creating and reading accounts.

Balance rules are checked here, before anything reaches the database:
  - the initial balance must parse as a decimal numeral
  - it cannot be negative
  - it cannot exceed the maximum balance a NUMERIC(20,5) column holds

Duplicate ids are detected by the database (primary key violation), not by a
pre-check, so two racing creates for the same id cannot both succeed.
"""

import structlog
from sqlalchemy.exc import SQLAlchemyError

from transfer_api.exceptions import BalanceOverflowError, InternalError, InvalidBalanceError
from transfer_api.models.account import Account
from transfer_api.money import MAX_BALANCE, Money
from transfer_api.repositories.account_repository import AccountRepository


logger = structlog.get_logger()


class AccountService:
    def __init__(self, accounts: AccountRepository, max_balance: Money = MAX_BALANCE) -> None:
        self._accounts = accounts
        self._max_balance = max_balance

    async def create_account(self, account_id: int, initial_balance: str) -> Account:
        """
        Create an account with the given id and starting balance.

        Raises:
            InvalidFormatError: If initial_balance is not a decimal numeral.
            InvalidBalanceError: If the balance is negative.
            BalanceOverflowError: If the balance exceeds the maximum.
            AccountExistsError: If the id is already taken.
            InternalError: On any other storage failure.
        """
        balance = Money.parse(initial_balance)

        if balance.is_negative():
            raise InvalidBalanceError()
        if balance.exceeds(self._max_balance):
            raise BalanceOverflowError("Initial balance exceeds maximum allowed")

        try:
            account = await self._accounts.create(account_id, balance)
        except SQLAlchemyError as exc:
            logger.error("account_create_failed", account_id=account_id, exc_info=exc)
            raise InternalError(f"Failed to create account {account_id}") from exc

        logger.info("account_created", account_id=account.id, balance=str(account.balance))
        return account

    async def get_account(self, account_id: int) -> Account:
        """
        Raises:
            AccountNotFoundError: If the account doesn't exist.
            InternalError: On a storage failure.
        """
        try:
            return await self._accounts.get_by_id(account_id)
        except SQLAlchemyError as exc:
            logger.error("account_lookup_failed", account_id=account_id, exc_info=exc)
            raise InternalError(f"Failed to get account {account_id}") from exc
