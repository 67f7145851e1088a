"""
Transactions router — transfers between accounts.

Endpoints:
  POST /transactions                   — Transfer an amount between two accounts
  GET  /transactions/{transaction_id}  — Look up a transfer record

A transfer is atomic: both balances change or neither does. Rejected
transfers that got as far as creating a record are kept with status
"failed" and can be looked up like any other.

Each transfer runs under REQUEST_TIMEOUT_SECONDS. If the deadline passes
before the commit, the task is cancelled and its unit of work rolled back.
"""

import asyncio

import structlog
from fastapi import APIRouter, Depends, Path, Request, Response, status

from transfer_api.dependencies import get_transfer_service
from transfer_api.exceptions import InternalError
from transfer_api.schemas.transaction import TransactionResponse, TransferRequest
from transfer_api.schemas.validators import MAX_ID
from transfer_api.services.transfer_service import TransferService

router = APIRouter()

logger = structlog.get_logger()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_class=Response,
    summary="Transfer money between accounts",
)
async def create_transaction(
    body: TransferRequest,
    request: Request,
    service: TransferService = Depends(get_transfer_service),
):
    """
    Transfer money from one account to another.

    - **source_account_id**: Account to debit
    - **destination_account_id**: Account to credit (must differ from the source)
    - **amount**: Positive decimal string, at most 5 decimals

    Returns 201 with an empty body and a Location header pointing at the
    transaction record.
    """
    timeout = request.app.state.settings.REQUEST_TIMEOUT_SECONDS
    try:
        record = await asyncio.wait_for(
            service.transfer(
                source_account_id=body.source_account_id,
                destination_account_id=body.destination_account_id,
                amount_text=body.amount,
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as exc:
        logger.error(
            "transfer_timed_out",
            timeout_seconds=timeout,
            source_account_id=body.source_account_id,
            destination_account_id=body.destination_account_id,
        )
        raise InternalError(f"Transfer did not finish within {timeout}s") from exc

    return Response(
        status_code=status.HTTP_201_CREATED,
        headers={"Location": f"/transactions/{record.id}"},
    )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get a transaction",
)
async def get_transaction(
    transaction_id: int = Path(gt=0, le=MAX_ID),
    service: TransferService = Depends(get_transfer_service),
):
    """Get a transfer record, including its status."""
    record = await service.get_transaction(transaction_id)
    return TransactionResponse.model_validate(record)
