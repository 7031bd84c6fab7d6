"""Map domain exceptions to HTTP error responses"""

import logging
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from bank_api.api.dependencies import get_request_id
from bank_api.domain.exceptions import (
    AccountSuspendedError,
    BalanceUpdateError,
    InsufficientBalanceError,
    InvalidAccountDataError,
    InvalidTransactionDataError,
    NotFoundError,
    StoreError,
)


class InvalidParameterError(Exception):
    """Query parameter failed validation outside of pydantic (e.g. sort order)"""

    pass


def error_response(status: int, code: str, message: str, errors: dict | None = None) -> JSONResponse:
    body = {
        "status": status,
        "code": code,
        "message": message,
        "timestamp": datetime.now().isoformat(),
    }
    if errors is not None:
        body["errors"] = errors
    return JSONResponse(status_code=status, content=body)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach handlers for the domain exception taxonomy"""

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        logging.warning(f"Entity not found: {exc}", extra={"request_id": get_request_id(request)})
        return error_response(404, "NOT_FOUND", str(exc))

    @app.exception_handler(InsufficientBalanceError)
    async def handle_insufficient_balance(request: Request, exc: InsufficientBalanceError):
        logging.warning(f"Insufficient balance: {exc}", extra={"request_id": get_request_id(request)})
        return error_response(400, "INSUFFICIENT_BALANCE", "Insufficient balance")

    @app.exception_handler(AccountSuspendedError)
    async def handle_account_suspended(request: Request, exc: AccountSuspendedError):
        logging.warning(f"Account suspended: {exc.account_id}", extra={"request_id": get_request_id(request)})
        return error_response(403, "ACCOUNT_SUSPENDED", str(exc))

    @app.exception_handler(InvalidTransactionDataError)
    @app.exception_handler(InvalidAccountDataError)
    async def handle_invalid_data(request: Request, exc: Exception):
        logging.warning(f"Validation failed: {exc}", extra={"request_id": get_request_id(request)})
        return error_response(400, "VALIDATION_ERROR", str(exc))

    @app.exception_handler(InvalidParameterError)
    async def handle_invalid_parameter(request: Request, exc: InvalidParameterError):
        logging.warning(f"Invalid parameter: {exc}", extra={"request_id": get_request_id(request)})
        return error_response(400, "INVALID_PARAMETER", str(exc))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = {}
        for error in exc.errors():
            # Drop the "body"/"query" prefix from the location
            field = ".".join(str(part) for part in error["loc"][1:]) or str(error["loc"][0])
            errors[field] = error["msg"]
        logging.warning("Validation failed", extra={"request_id": get_request_id(request), "errors": errors})
        return error_response(400, "VALIDATION_ERROR", "Validation failed", errors)

    @app.exception_handler(BalanceUpdateError)
    async def handle_balance_update_failure(request: Request, exc: BalanceUpdateError):
        logging.error(
            f"Balance update failed: {exc}",
            extra={"request_id": get_request_id(request), "transaction_id": str(exc.transaction.id)},
        )
        return error_response(500, "BALANCE_UPDATE_FAILED", "Transaction could not be applied to the balance")

    @app.exception_handler(StoreError)
    async def handle_store_error(request: Request, exc: StoreError):
        logging.error(f"Store error: {exc}", extra={"request_id": get_request_id(request)})
        return error_response(503, "STORE_UNAVAILABLE", "Storage is unavailable")

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logging.error(f"Unexpected error: {exc}", extra={"request_id": get_request_id(request)}, exc_info=exc)
        return error_response(500, "INTERNAL_ERROR", "An unexpected error occurred")
