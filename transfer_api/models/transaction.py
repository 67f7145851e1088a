"""
Transaction model — the auditable record of one attempted transfer.

A record is inserted as PENDING inside the same unit of work that later
moves the money, so every attempt that gets that far leaves a trace:

  pending ──► completed   both balances were written (completed_at stamped)
     │
     └──────► failed      a business rule rejected the transfer after the
                          record existed; no balance was touched

Both terminal states are final. The repository refuses any other transition.
"""

import enum
from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from transfer_api.database import Base
from transfer_api.models.types import MoneyType
from transfer_api.money import Money


class TransactionStatus(str, enum.Enum):
    """
    Lifecycle of a transfer record.

    Inherits from str so the value serializes naturally to JSON and is
    stored as a plain string column.
    """
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not TransactionStatus.PENDING


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
        CheckConstraint(
            "source_account_id <> destination_account_id",
            name="ck_transactions_distinct_accounts",
        ),
        CheckConstraint(
            "status IN ('pending', 'completed', 'failed')",
            name="ck_transactions_status",
        ),
    )

    # BIGINT on PostgreSQL; SQLite only auto-assigns INTEGER PRIMARY KEY columns
    id: Mapped[int] = mapped_column(
        BigInteger().with_variant(Integer, "sqlite"),
        primary_key=True,
        autoincrement=True,
    )

    source_account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )
    destination_account_id: Mapped[int] = mapped_column(
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    amount: Mapped[Money] = mapped_column(
        MoneyType(),
        nullable=False,
    )

    status: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        default=TransactionStatus.PENDING.value,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    # Only set on the transition to COMPLETED
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
