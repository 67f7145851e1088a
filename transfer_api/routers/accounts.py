"""
Accounts router — account creation and lookup.

Endpoints:
  POST /accounts                — Create an account with a caller-chosen id
  GET  /accounts/{account_id}   — Get an account's current balance

Creation returns 201 with an empty body and a Location header; the balance
can then be read back with GET.
"""

from fastapi import APIRouter, Depends, Path, Response, status

from transfer_api.dependencies import get_account_service
from transfer_api.schemas.account import AccountCreateRequest, AccountResponse
from transfer_api.schemas.validators import MAX_ID
from transfer_api.services.account_service import AccountService

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    summary="Create an account",
)
async def create_account(
    request: AccountCreateRequest,
    service: AccountService = Depends(get_account_service),
):
    """
    Create an account with the given id and initial balance.

    - **account_id**: Positive integer, must not already exist (409 otherwise)
    - **initial_balance**: Decimal string, non-negative, at most 5 decimals
    """
    account = await service.create_account(
        account_id=request.account_id,
        initial_balance=request.initial_balance,
    )
    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": f"/accounts/{account.id}"},
    )


@router.get(
    "/{account_id}",
    response_model=AccountResponse,
    summary="Get account balance",
)
async def get_account(
    account_id: int = Path(gt=0, le=MAX_ID),
    service: AccountService = Depends(get_account_service),
):
    """Return the account id and its balance as a decimal string."""
    account = await service.get_account(account_id)
    return AccountResponse(account_id=account.id, balance=str(account.balance))
