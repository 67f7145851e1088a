"""
Transaction repository — persistence for transfer records.

create() and update_status() always run inside the transfer's UnitOfWork;
get_by_id() is a standalone read for GET /transactions/{id}.
"""

from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from transfer_api.exceptions import InvalidStatusTransitionError, TransactionNotFoundError
from transfer_api.models.transaction import Transaction, TransactionStatus
from transfer_api.money import Money
from transfer_api.unit_of_work import UnitOfWork


class TransactionRepository:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(
        self,
        source_account_id: int,
        destination_account_id: int,
        amount: Money,
        uow: UnitOfWork,
    ) -> Transaction:
        """Insert a PENDING record; the flush assigns its id and created_at."""
        record = Transaction(
            source_account_id=source_account_id,
            destination_account_id=destination_account_id,
            amount=amount,
            status=TransactionStatus.PENDING.value,
        )
        uow.session.add(record)
        await uow.session.flush()
        return record

    async def update_status(
        self,
        transaction_id: int,
        status: TransactionStatus,
        uow: UnitOfWork,
    ) -> Transaction:
        """
        Move a PENDING record to a terminal status.

        Raises:
            TransactionNotFoundError: If the record doesn't exist.
            InvalidStatusTransitionError: If the record is already terminal,
                or the target status is PENDING.
        """
        record = await uow.session.get(Transaction, transaction_id)
        if record is None:
            raise TransactionNotFoundError(transaction_id)

        current = TransactionStatus(record.status)
        if current.is_terminal or not status.is_terminal:
            raise InvalidStatusTransitionError(transaction_id, current.value, status.value)

        record.status = status.value
        if status is TransactionStatus.COMPLETED:
            record.completed_at = datetime.now(timezone.utc)

        await uow.session.flush()
        return record

    async def get_by_id(self, transaction_id: int) -> Transaction:
        """
        Raises:
            TransactionNotFoundError: If the record doesn't exist.
        """
        async with self._session_factory() as session:
            record = await session.get(Transaction, transaction_id)

        if record is None:
            raise TransactionNotFoundError(transaction_id)
        return record
