"""
Transfer service — moves money between two accounts.

THIS IS THE CORE OF THE SYSTEM. A transfer either updates both balances or
neither, a balance never goes negative, and concurrent transfers over the
same accounts are serialized by the database without deadlocking.

Sequence (each failure stops the rest):
   1. Parse the amount                        -> InvalidFormatError
   2. Amount must be positive                 -> AmountMustBePositiveError
      and within MAX_BALANCE                  -> BalanceOverflowError
   3. Source and destination must differ      -> SameAccountError
   4. Both accounts exist (plain reads)       -> Source/DestinationAccountNotFoundError
   5. Open a unit of work
   6. Insert a PENDING transaction record
   7. Lock both account rows, LOWER ID FIRST  -> record FAILED + not-found error
   8. Source balance covers the amount        -> record FAILED + InsufficientBalanceError
   9. Destination stays within MAX_BALANCE    -> record FAILED + BalanceOverflowError
  10. Write both balances
  11. Mark the record COMPLETED
  12. Commit

Deadlock prevention:
  Every transfer locks its two accounts in ascending id order. A transfer
  1 -> 2 and a concurrent transfer 2 -> 1 both lock account 1 first, so
  neither can hold a lock the other is waiting for. Locking in request order
  (source, then destination) would deadlock exactly that pair.

Failure handling:
  - Steps 7-9 fail before any balance is written. The record is marked
    FAILED and the unit of work is committed, so the attempt stays auditable.
    If recording the failure itself breaks, that is logged and the original
    business error is still raised.
  - A storage error from step 6 onwards rolls back everything, the pending
    record included, and surfaces as InternalError.
  - A failed commit (step 12) is InternalError with an unknown outcome:
    callers must not assume the money moved.

There is no idempotency key. Two identical calls make two transfers.
"""

from collections.abc import Callable

import structlog
from sqlalchemy.exc import SQLAlchemyError

from transfer_api.exceptions import (
    AccountNotFoundError,
    AmountMustBePositiveError,
    BalanceOverflowError,
    DestinationAccountNotFoundError,
    InsufficientBalanceError,
    InternalError,
    SameAccountError,
    SourceAccountNotFoundError,
    TransferAPIError,
)
from transfer_api.models.account import Account
from transfer_api.models.transaction import Transaction, TransactionStatus
from transfer_api.money import MAX_BALANCE, Money
from transfer_api.repositories.account_repository import AccountRepository
from transfer_api.repositories.transaction_repository import TransactionRepository
from transfer_api.unit_of_work import UnitOfWork


logger = structlog.get_logger()

# Business rejections that happen after the record exists but before any write
_DECLINE_ERRORS = (AccountNotFoundError, InsufficientBalanceError, BalanceOverflowError)


class TransferService:
    def __init__(
        self,
        accounts: AccountRepository,
        transactions: TransactionRepository,
        unit_of_work_factory: Callable[[], UnitOfWork],
        max_balance: Money = MAX_BALANCE,
    ) -> None:
        self._accounts = accounts
        self._transactions = transactions
        self._unit_of_work_factory = unit_of_work_factory
        self._max_balance = max_balance

    async def transfer(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount_text: str,
    ) -> Transaction:
        """
        Execute a transfer and return its COMPLETED transaction record.

        Raises:
            InvalidFormatError, AmountMustBePositiveError, SameAccountError:
                Before anything is read or written.
            BalanceOverflowError: Before anything is read or written if the
                amount itself exceeds the maximum; otherwise record FAILED.
            SourceAccountNotFoundError, DestinationAccountNotFoundError:
                From the pre-check, or from the locked re-check (record FAILED).
            InsufficientBalanceError, BalanceOverflowError:
                Record FAILED, balances untouched.
            InternalError: Storage failure; nothing from this attempt persisted,
                unless the failure was the final commit (outcome unknown).
        """
        amount = Money.parse(amount_text)
        if not amount.is_positive():
            raise AmountMustBePositiveError()
        if amount.exceeds(self._max_balance):
            raise BalanceOverflowError("Amount exceeds maximum allowed")
        if source_account_id == destination_account_id:
            raise SameAccountError(source_account_id)

        log = logger.bind(
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            amount=str(amount),
        )

        try:
            await self._require_account(source_account_id, SourceAccountNotFoundError)
            await self._require_account(destination_account_id, DestinationAccountNotFoundError)

            async with self._unit_of_work_factory() as uow:
                record = await self._transactions.create(
                    source_account_id, destination_account_id, amount, uow
                )
                log = log.bind(transaction_id=record.id)

                try:
                    source, destination = await self._lock_accounts(
                        source_account_id, destination_account_id, uow
                    )
                    new_source_balance, new_destination_balance = self._apply(
                        source, destination, amount
                    )
                except _DECLINE_ERRORS as exc:
                    await self._record_failure(record, exc, uow, log)
                    raise

                await self._write_balances(
                    source_account_id, new_source_balance,
                    destination_account_id, new_destination_balance,
                    uow,
                )
                await self._transactions.update_status(
                    record.id, TransactionStatus.COMPLETED, uow
                )

                try:
                    await uow.commit()
                except SQLAlchemyError as exc:
                    log.error("transfer_commit_failed", exc_info=exc)
                    raise InternalError(
                        f"Commit of transaction {record.id} failed; outcome unknown"
                    ) from exc
        except TransferAPIError:
            raise
        except SQLAlchemyError as exc:
            log.error("transfer_storage_failure", exc_info=exc)
            raise InternalError("Transfer failed in storage and was rolled back") from exc

        log.info(
            "transfer_completed",
            source_balance=str(new_source_balance),
            destination_balance=str(new_destination_balance),
        )
        return record

    async def get_transaction(self, transaction_id: int) -> Transaction:
        """
        Raises:
            TransactionNotFoundError: If the record doesn't exist.
            InternalError: On a storage failure.
        """
        try:
            return await self._transactions.get_by_id(transaction_id)
        except SQLAlchemyError as exc:
            logger.error("transaction_lookup_failed", transaction_id=transaction_id, exc_info=exc)
            raise InternalError(f"Failed to get transaction {transaction_id}") from exc

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _require_account(
        self,
        account_id: int,
        missing_error: type[AccountNotFoundError],
    ) -> None:
        """Non-locking existence check; the locked re-check stays authoritative."""
        try:
            await self._accounts.get_by_id(account_id)
        except AccountNotFoundError:
            raise missing_error(account_id) from None

    async def _lock_accounts(
        self,
        source_account_id: int,
        destination_account_id: int,
        uow: UnitOfWork,
    ) -> tuple[Account, Account]:
        """Lock both rows in ascending id order; return (source, destination)."""
        locked: dict[int, Account] = {}
        for account_id in sorted((source_account_id, destination_account_id)):
            try:
                locked[account_id] = await self._accounts.get_for_update(account_id, uow)
            except AccountNotFoundError:
                if account_id == source_account_id:
                    raise SourceAccountNotFoundError(account_id) from None
                raise DestinationAccountNotFoundError(account_id) from None

        return locked[source_account_id], locked[destination_account_id]

    def _apply(
        self,
        source: Account,
        destination: Account,
        amount: Money,
    ) -> tuple[Money, Money]:
        """Compute both new balances, enforcing non-negative and max-balance rules."""
        if source.balance.less_than(amount):
            raise InsufficientBalanceError(
                account_id=source.id,
                requested=str(amount),
                available=str(source.balance),
            )

        new_source_balance = source.balance.subtract(amount)
        new_destination_balance = destination.balance.add(amount)

        if new_destination_balance.exceeds(self._max_balance):
            raise BalanceOverflowError()

        return new_source_balance, new_destination_balance

    async def _write_balances(
        self,
        source_account_id: int,
        new_source_balance: Money,
        destination_account_id: int,
        new_destination_balance: Money,
        uow: UnitOfWork,
    ) -> None:
        try:
            await self._accounts.update_balance(source_account_id, new_source_balance, uow)
            await self._accounts.update_balance(
                destination_account_id, new_destination_balance, uow
            )
        except AccountNotFoundError as exc:
            # The row was locked a moment ago; losing it is a storage fault
            raise InternalError(
                f"Account {exc.account_id} disappeared while locked"
            ) from exc

    async def _record_failure(
        self,
        record: Transaction,
        reason: TransferAPIError,
        uow: UnitOfWork,
        log: structlog.stdlib.BoundLogger,
    ) -> None:
        """
        Mark the record FAILED and commit it.

        Never raises: the caller re-raises the business error, and a problem
        here must not replace it.
        """
        try:
            await self._transactions.update_status(record.id, TransactionStatus.FAILED, uow)
            await uow.commit()
        except (SQLAlchemyError, TransferAPIError) as exc:
            log.error(
                "transfer_failure_not_recorded",
                error_type=reason.code.value,
                exc_info=exc,
            )
            return

        log.info("transfer_declined", error_type=reason.code.value, detail=reason.detail)
