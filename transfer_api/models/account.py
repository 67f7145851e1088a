"""
Account model — a ledger account with a non-negative balance.

Each account has:
  - A caller-supplied integer id (the primary key, never generated here)
  - An exact decimal balance with 5 fractional digits (NUMERIC(20,5))
  - Audit timestamps; updated_at only moves when the balance changes,
    because the balance is the only mutable column

A CHECK constraint keeps the balance non-negative at the database level on
backends with native numerics. The transfer engine checks before every
debit as well; the constraint is the last line of defence.
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, CheckConstraint, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from transfer_api.database import Base
from transfer_api.models.types import MoneyType
from transfer_api.money import Money


class Account(Base):
    __tablename__ = "accounts"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_accounts_non_negative_balance"),
    )

    id: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
    )

    balance: Mapped[Money] = mapped_column(
        MoneyType(),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
