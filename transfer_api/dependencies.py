"""
FastAPI dependencies that wire services to the application's database.

The Database instance lives on app.state (set by create_app), so nothing
here reads global state: each request builds lightweight repositories and
services around the shared session factory.

    get_database ──► get_account_service
                 └─► get_transfer_service

Each service opens its own sessions as it needs them. No session is held
open across the whole request; that keeps the transfer engine's unit of
work the only transaction a transfer ever runs.
"""

from functools import partial

from fastapi import Depends, Request

from transfer_api.database import Database
from transfer_api.repositories.account_repository import AccountRepository
from transfer_api.repositories.transaction_repository import TransactionRepository
from transfer_api.services.account_service import AccountService
from transfer_api.services.transfer_service import TransferService
from transfer_api.unit_of_work import UnitOfWork


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_account_service(database: Database = Depends(get_database)) -> AccountService:
    return AccountService(AccountRepository(database.session_factory))


def get_transfer_service(database: Database = Depends(get_database)) -> TransferService:
    session_factory = database.session_factory
    return TransferService(
        accounts=AccountRepository(session_factory),
        transactions=TransactionRepository(session_factory),
        unit_of_work_factory=partial(UnitOfWork, session_factory),
    )
