"""
Error taxonomy and FastAPI exception handlers.

The service layer raises domain errors without knowing anything about HTTP.
Each error class carries a stable ErrorCode, a fixed HTTP status and a
default message; the handlers registered here turn them into responses of
the form:

    {"detail": "Insufficient balance in source account",
     "error_type": "insufficient_balance"}

Callers branch on the exception type or on `exc.code`, never on the message.

Exception hierarchy:
    TransferAPIError (base)
    ├── InvalidFormatError              — amount/balance is not a decimal numeral
    ├── InvalidBalanceError             — negative initial balance
    ├── AmountMustBePositiveError       — zero or negative transfer amount
    ├── SameAccountError                — source == destination
    ├── AccountExistsError              — duplicate account id
    ├── AccountNotFoundError
    │   ├── SourceAccountNotFoundError
    │   └── DestinationAccountNotFoundError
    ├── TransactionNotFoundError
    ├── InsufficientBalanceError
    ├── BalanceOverflowError            — result above MAX_BALANCE
    ├── ValidationError                 — request field failed validation
    ├── InvalidRequestError             — body is not a JSON object
    └── InternalError                   — storage failures, unknown outcomes
        └── InvalidStatusTransitionError
"""

import enum

import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


logger = structlog.get_logger()


class ErrorCode(str, enum.Enum):
    """Machine-readable error identifiers exposed as `error_type`."""

    INVALID_FORMAT = "invalid_format"
    INVALID_BALANCE = "invalid_balance"
    AMOUNT_MUST_BE_POSITIVE = "amount_must_be_positive"
    SAME_ACCOUNT = "same_account"
    ACCOUNT_EXISTS = "account_exists"
    ACCOUNT_NOT_FOUND = "account_not_found"
    SOURCE_ACCOUNT_NOT_FOUND = "source_account_not_found"
    DESTINATION_ACCOUNT_NOT_FOUND = "destination_account_not_found"
    TRANSACTION_NOT_FOUND = "transaction_not_found"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    BALANCE_OVERFLOW = "balance_overflow"
    VALIDATION_ERROR = "validation_error"
    INVALID_REQUEST = "invalid_request"
    INTERNAL_ERROR = "internal_error"


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class TransferAPIError(Exception):
    """Base exception for all domain errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "An error occurred"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Input errors
# ---------------------------------------------------------------------------

class InvalidFormatError(TransferAPIError):
    code = ErrorCode.INVALID_FORMAT
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid format"


class InvalidBalanceError(TransferAPIError):
    code = ErrorCode.INVALID_BALANCE
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Initial balance cannot be negative"


class AmountMustBePositiveError(TransferAPIError):
    code = ErrorCode.AMOUNT_MUST_BE_POSITIVE
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Amount must be positive"


class SameAccountError(TransferAPIError):
    code = ErrorCode.SAME_ACCOUNT
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Source and destination accounts must be different"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__()


class ValidationError(TransferAPIError):
    """A request field failed structural validation."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Request validation failed"


class InvalidRequestError(TransferAPIError):
    code = ErrorCode.INVALID_REQUEST
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid request format"


# ---------------------------------------------------------------------------
# Lookup errors
# ---------------------------------------------------------------------------

class AccountExistsError(TransferAPIError):
    code = ErrorCode.ACCOUNT_EXISTS
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Account already exists"

    def __init__(self, account_id: int):
        self.account_id = account_id
        super().__init__(f"Account with ID {account_id} already exists")


class AccountNotFoundError(TransferAPIError):
    code = ErrorCode.ACCOUNT_NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Account not found"

    def __init__(self, account_id: int, detail: str | None = None):
        self.account_id = account_id
        super().__init__(detail or f"Account with ID {account_id} not found")


class SourceAccountNotFoundError(AccountNotFoundError):
    code = ErrorCode.SOURCE_ACCOUNT_NOT_FOUND

    def __init__(self, account_id: int):
        super().__init__(account_id, f"Source account {account_id} not found")


class DestinationAccountNotFoundError(AccountNotFoundError):
    code = ErrorCode.DESTINATION_ACCOUNT_NOT_FOUND

    def __init__(self, account_id: int):
        super().__init__(account_id, f"Destination account {account_id} not found")


class TransactionNotFoundError(TransferAPIError):
    code = ErrorCode.TRANSACTION_NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Transaction not found"

    def __init__(self, transaction_id: int):
        self.transaction_id = transaction_id
        super().__init__(f"Transaction with ID {transaction_id} not found")


# ---------------------------------------------------------------------------
# Business rule errors
# ---------------------------------------------------------------------------

class InsufficientBalanceError(TransferAPIError):
    """
    Raised when the source account's locked balance is below the amount.

    Attributes:
        account_id: The source account.
        requested: The transfer amount, as canonical decimal text.
        available: The source balance at lock time, as canonical decimal text.
    """

    code = ErrorCode.INSUFFICIENT_BALANCE
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Insufficient balance in source account"

    def __init__(self, account_id: int, requested: str, available: str):
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__()


class BalanceOverflowError(TransferAPIError):
    code = ErrorCode.BALANCE_OVERFLOW
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Transaction would exceed maximum account balance"


# ---------------------------------------------------------------------------
# Internal errors
# ---------------------------------------------------------------------------

class InternalError(TransferAPIError):
    """
    Storage failure or unknown outcome.

    The detail is for logs only; clients always receive the generic message.
    """

    code = ErrorCode.INTERNAL_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Internal server error"


class InvalidStatusTransitionError(InternalError):
    """A transaction record was asked to leave a terminal status."""

    def __init__(self, transaction_id: int, current: str, target: str):
        self.transaction_id = transaction_id
        self.current = current
        self.target = target
        super().__init__(
            f"Transaction {transaction_id} cannot move from {current} to {target}"
        )


# ---------------------------------------------------------------------------
# Request validation translation
# ---------------------------------------------------------------------------

# Pydantic error types that mean the body itself is unusable
_MALFORMED_BODY_TYPES = {"json_invalid", "model_type", "model_attributes_type", "dict_type"}


def _field_message(error: dict) -> str:
    """Build a short, field-level message from one pydantic error."""
    loc = [part for part in error.get("loc", ()) if part not in ("body", "path", "query")]
    field = str(loc[-1]) if loc else None
    error_type = error.get("type", "")

    if error_type == "value_error":
        reason = str(error.get("ctx", {}).get("error", error.get("msg", "")))
        return f"{field} {reason}" if field else reason
    if field is None:
        return ValidationError.default_detail

    if error_type == "missing":
        return f"{field} is required"
    if error_type in ("greater_than", "greater_than_equal"):
        return f"{field} is too small"
    if error_type in ("less_than", "less_than_equal"):
        return f"{field} is too large"
    if error_type in ("int_type", "int_parsing", "int_from_float"):
        return f"{field} must be a positive integer"
    if error_type == "string_type":
        return f"{field} must be a string"
    return f"{field} is invalid"


def classify_validation_error(exc: RequestValidationError) -> TransferAPIError:
    """Map FastAPI's request validation failure to InvalidRequest or ValidationError."""
    errors = exc.errors()
    if not errors:
        return ValidationError()

    first = errors[0]
    body_level = tuple(first.get("loc", ())) == ("body",)
    if first.get("type") in _MALFORMED_BODY_TYPES or (body_level and first.get("type") == "missing"):
        return InvalidRequestError()
    return ValidationError(_field_message(first))


def _error_response(exc: TransferAPIError) -> JSONResponse:
    detail = InternalError.default_detail if isinstance(exc, InternalError) else exc.detail
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": detail, "error_type": exc.code.value},
    )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register custom exception handlers with the FastAPI application.

    Called once from the application factory in main.py.
    """

    @app.exception_handler(TransferAPIError)
    async def transfer_api_error_handler(
        request: Request, exc: TransferAPIError
    ) -> JSONResponse:
        if isinstance(exc, InternalError):
            logger.error(
                "internal_error",
                detail=exc.detail,
                path=request.url.path,
                exc_info=exc.__cause__ or exc,
            )
        else:
            logger.info(
                "request_rejected",
                error_type=exc.code.value,
                detail=exc.detail,
                path=request.url.path,
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        classified = classify_validation_error(exc)
        logger.info(
            "request_invalid",
            error_type=classified.code.value,
            detail=classified.detail,
            path=request.url.path,
        )
        return _error_response(classified)
