"""
Money — exact fixed-point decimal amounts.

Balances and transfer amounts are stored as NUMERIC(20,5): up to 15 integer
digits and exactly 5 fractional digits. All arithmetic goes through
decimal.Decimal so 0.1 + 0.2 is exactly 0.3; binary floating point never
touches a monetary value.

The type itself never clamps or rejects large results. Callers compare
against MAX_BALANCE before they persist anything.

Canonical text form:
    str(Money.parse("100.00000"))  -> "100.00"
    str(Money.parse("0.12345"))    -> "0.12345"
Trailing zeros are trimmed, but at least two fractional digits are kept.
"""

import re
from dataclasses import dataclass
from decimal import Decimal

from transfer_api.exceptions import InvalidFormatError


SCALE = 5
QUANTUM = Decimal(1).scaleb(-SCALE)

# Largest value a NUMERIC(20,5) column can hold
MAX_BALANCE_TEXT = "999999999999999.99999"

# Signed decimal in ASCII digits; no exponent, no bare ".5"
NUMERAL = re.compile(r"[+-]?[0-9]+(?:\.[0-9]+)?")


@dataclass(frozen=True)
class Money:
    """An exact decimal amount with at most SCALE fractional digits."""

    amount: Decimal

    @classmethod
    def parse(cls, text: str) -> "Money":
        """
        Parse a plain decimal numeral such as "30", "-5.00" or "0.00001".

        Raises:
            InvalidFormatError: If the text is not a decimal numeral, uses
                exponent notation, or has more than SCALE fractional digits.
        """
        if not isinstance(text, str) or not NUMERAL.fullmatch(text):
            raise InvalidFormatError(f"Invalid decimal value: {text!r}")

        amount = Decimal(text)
        if amount.as_tuple().exponent < -SCALE:
            raise InvalidFormatError(
                f"Invalid decimal value: {text!r} has more than {SCALE} fractional digits"
            )
        return cls(amount)

    @classmethod
    def zero(cls) -> "Money":
        return cls(Decimal(0))

    def add(self, other: "Money") -> "Money":
        return Money(self.amount + other.amount)

    def subtract(self, other: "Money") -> "Money":
        return Money(self.amount - other.amount)

    def less_than(self, other: "Money") -> bool:
        return self.amount < other.amount

    def greater_than(self, other: "Money") -> bool:
        return self.amount > other.amount

    def exceeds(self, bound: "Money") -> bool:
        return self.amount > bound.amount

    def is_negative(self) -> bool:
        return self.amount < 0

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def quantized(self) -> Decimal:
        """The amount at the fixed storage scale, e.g. Decimal('70.00000')."""
        return self.amount.quantize(QUANTUM)

    def __str__(self) -> str:
        if self.amount == 0:
            return "0.00"

        whole, _, fraction = format(self.amount, "f").partition(".")
        return f"{whole}.{fraction.rstrip('0').ljust(2, '0')}"


MAX_BALANCE = Money.parse(MAX_BALANCE_TEXT)
