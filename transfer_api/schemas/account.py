"""
Pydantic schemas for Account endpoints.

Monetary values travel as decimal strings ("100.00"), never as JSON numbers,
so no float ever touches a balance.
"""

from pydantic import BaseModel, Field

from transfer_api.schemas.validators import NumericString, PositiveId


class AccountCreateRequest(BaseModel):
    """Request body for POST /accounts."""
    account_id: PositiveId = Field(description="Caller-chosen account id")
    initial_balance: NumericString = Field(
        description="Starting balance as a decimal string, e.g. \"100.23344\"",
    )


class AccountResponse(BaseModel):
    """Response body for GET /accounts/{account_id}."""
    account_id: int
    balance: str
