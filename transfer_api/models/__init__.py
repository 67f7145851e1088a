"""
SQLAlchemy ORM models package.

All models are imported here so that Base.metadata knows every table
before create_all() runs, and other modules can import from
transfer_api.models directly.
"""

from transfer_api.models.account import Account  # noqa: F401
from transfer_api.models.transaction import Transaction, TransactionStatus  # noqa: F401
