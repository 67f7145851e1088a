"""
MoneyType — persists Money values exactly.

On PostgreSQL the column is a native NUMERIC(20,5). SQLite has no exact
decimal storage (NUMERIC affinity falls back to 8-byte floats, which cannot
hold 20 significant digits), so there the value is stored as fixed-scale
text such as "70.00000" and parsed back into a Decimal on load.
"""

from decimal import Decimal

from sqlalchemy import Numeric, String
from sqlalchemy.types import TypeDecorator

from transfer_api.money import Money


PRECISION = 20


class MoneyType(TypeDecorator):
    impl = Numeric
    cache_ok = True

    def __init__(self) -> None:
        super().__init__(precision=PRECISION, scale=5, asdecimal=True)

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(PRECISION + 2))
        return dialect.type_descriptor(Numeric(precision=PRECISION, scale=5, asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if not isinstance(value, Money):
            value = Money(Decimal(value))
        quantized = value.quantized()
        if dialect.name == "sqlite":
            return format(quantized, "f")
        return quantized

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return Money(Decimal(value))
