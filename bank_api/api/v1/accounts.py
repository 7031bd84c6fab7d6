"""/api/v1/accounts - account management endpoints"""

import logging
import uuid
from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from bank_api.api.v1.schemas import (
    AccountDetailResponse,
    AccountResponse,
    CreateAccountRequest,
    PageResponse,
    TransactionResponse,
    UpdateAccountStatusRequest,
)
from bank_api.api.dependencies import get_account_service, get_request_id
from bank_api.api.errors import InvalidParameterError
from bank_api.config import settings
from bank_api.domain.accounts import AccountService
from bank_api.domain.exceptions import AccountNotFoundError
from bank_api.infrastructure.database.repositories import (
    SORTABLE_ACCOUNT_FIELDS,
    AccountRepository,
    TransactionRepository,
)
from bank_api.infrastructure.database.session import commit, get_db
from bank_api.infrastructure.observability.metrics import accounts_opened_counter

router = APIRouter()


def parse_sort(sort: str) -> tuple[str, bool]:
    """
    Parse "field,direction" into (field, descending).

    Direction defaults to descending; only "asc" switches it.
    """
    parts = [part.strip() for part in sort.split(",")]
    field = parts[0]
    if field not in SORTABLE_ACCOUNT_FIELDS:
        raise InvalidParameterError(
            f"Invalid value '{field}' for parameter 'sort'. Expected one of: {', '.join(sorted(SORTABLE_ACCOUNT_FIELDS))}"
        )
    descending = not (len(parts) > 1 and parts[1].lower() == "asc")
    return field, descending


@router.get("/accounts", response_model=PageResponse[AccountResponse])
def list_accounts(
    page: int = Query(0, ge=0, description="Page number (0-based)"),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size, description="Page size"),
    sort: str = Query("created_at,desc", description="Sort field and direction (e.g. 'created_at,desc')"),
    db: Session = Depends(get_db),
):
    """List accounts, newest first by default"""
    sort_field, descending = parse_sort(sort)
    accounts = AccountRepository(db).list_accounts(page, size, sort_field, descending)
    return PageResponse[AccountResponse].from_page(accounts, AccountResponse.from_domain)


@router.get("/accounts/{account_id}", response_model=AccountDetailResponse)
def get_account(account_id: uuid.UUID, db: Session = Depends(get_db)):
    """
    Retrieve account with transaction statistics.

    Totals cover every recorded transaction, flagged ones included.
    """
    detail = AccountRepository(db).get_detail(account_id)
    if detail is None:
        raise AccountNotFoundError(account_id)
    return AccountDetailResponse.from_detail(detail)


@router.post("/accounts", response_model=AccountResponse, status_code=201)
def create_account(
    request_body: CreateAccountRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: AccountService = Depends(get_account_service),
):
    """Open an ACTIVE account funded with the initial balance"""
    try:
        account = service.open_account(
            request_body.account_holder,
            request_body.initial_balance,
            request_body.currency,
        )
        commit(db)
    except Exception:
        db.rollback()
        raise

    accounts_opened_counter.labels(currency=account.currency.value).inc()
    logging.info(
        "Account opened",
        extra={"request_id": get_request_id(request), "account_number": account.account_number},
    )
    return AccountResponse.from_domain(account)


@router.patch("/accounts/{account_id}/status", response_model=AccountResponse)
def update_account_status(
    account_id: uuid.UUID,
    request_body: UpdateAccountStatusRequest,
    db: Session = Depends(get_db),
    service: AccountService = Depends(get_account_service),
):
    """Change account status; any transition is allowed"""
    try:
        account, _ = service.change_status(account_id, request_body.status)
        commit(db)
    except Exception:
        db.rollback()
        raise
    return AccountResponse.from_domain(account)


@router.get("/accounts/{account_id}/transactions", response_model=PageResponse[TransactionResponse])
def list_account_transactions(
    account_id: uuid.UUID,
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
):
    """Account transactions, newest first"""
    transactions = TransactionRepository(db).list_by_account(account_id, page, size)
    return PageResponse[TransactionResponse].from_page(transactions, TransactionResponse.from_domain)
