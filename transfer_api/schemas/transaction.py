"""
Pydantic schemas for Transfer and Transaction endpoints.

Amounts are decimal strings with up to 5 fractional digits.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from transfer_api.money import Money
from transfer_api.schemas.validators import NumericString, PositiveId


class TransferRequest(BaseModel):
    """Request body for POST /transactions."""
    source_account_id: PositiveId
    destination_account_id: PositiveId
    amount: NumericString = Field(description="Amount as a decimal string, e.g. \"100.12345\"")

    @model_validator(mode="after")
    def accounts_must_differ(self):
        """Cannot transfer money to the same account."""
        if self.source_account_id == self.destination_account_id:
            raise ValueError("destination_account_id must be different from source_account_id")
        return self


class TransactionResponse(BaseModel):
    """Public representation of a transfer record."""
    id: int
    source_account_id: int
    destination_account_id: int
    amount: str
    status: str
    created_at: datetime
    completed_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_validator("amount", mode="before")
    @classmethod
    def money_as_text(cls, value):
        if isinstance(value, Money):
            return str(value)
        return value
