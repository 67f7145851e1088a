"""
Reusable field types for request validation.

These checks are structural only (is the field present, is it the right
shape). Business rules like "amount must be positive" live in the services,
which stay authoritative even when a request passes these checks.

The numeric check uses the same grammar as Money.parse, so a value the
schema lets through is never rejected by the service as badly formatted,
except for having more than 5 fractional digits.
"""

from typing import Annotated

from pydantic import AfterValidator, Field

from transfer_api.money import NUMERAL


# Largest value a BIGINT id column holds
MAX_ID = 2**63 - 1


def require_numeric(value: str) -> str:
    if not NUMERAL.fullmatch(value):
        raise ValueError("must be numeric")
    return value


# strict=True rejects "5", 5.0 and true for an id field
PositiveId = Annotated[int, Field(gt=0, le=MAX_ID, strict=True)]

NumericString = Annotated[str, AfterValidator(require_numeric)]
