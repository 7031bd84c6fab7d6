"""/api/v1/transactions - posting and transaction queries"""

import logging
import time
import uuid
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from bank_api.api.v1.schemas import CreateTransactionRequest, PageResponse, TransactionResponse
from bank_api.api.dependencies import get_request_id, get_transaction_poster
from bank_api.config import settings
from bank_api.domain.exceptions import (
    AccountNotFoundError,
    AccountSuspendedError,
    BalanceUpdateError,
    InsufficientBalanceError,
    InvalidTransactionDataError,
    StoreError,
    TransactionNotFoundError,
)
from bank_api.domain.models import TransactionStatus, TransactionType
from bank_api.domain.posting import TransactionPoster
from bank_api.infrastructure.database.repositories import TransactionRepository
from bank_api.infrastructure.database.session import commit, get_db
from bank_api.infrastructure.observability.logging import log_posting, log_rejection
from bank_api.infrastructure.observability.metrics import (
    balance_update_failures_counter,
    record_posting,
    record_rejection,
    store_failures_counter,
)

router = APIRouter()

REJECTION_REASONS = {
    AccountNotFoundError: "account_not_found",
    AccountSuspendedError: "account_suspended",
    InsufficientBalanceError: "insufficient_balance",
    InvalidTransactionDataError: "invalid_request",
}


@router.post("/transactions", response_model=TransactionResponse, status_code=201)
def create_transaction(
    request_body: CreateTransactionRequest,
    request: Request,
    db: Session = Depends(get_db),
    poster: TransactionPoster = Depends(get_transaction_poster),
):
    """
    Post a transaction against an account.

    Flow:
    1. Validate account status and balance
    2. Score fraud risk against the last hour of account activity
    3. Record the transaction (COMPLETED or FLAGGED)
    4. Apply COMPLETED transactions to the balance
    5. Commit record and balance together
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        transaction = poster.post(
            account_id=request_body.account_id,
            amount=request_body.amount,
            type=request_body.type,
            category=request_body.category,
            description=request_body.description,
        )
        commit(db)

    except BalanceUpdateError:
        # Record written, balance not moved: discard both
        db.rollback()
        balance_update_failures_counter.inc()
        raise

    except StoreError:
        db.rollback()
        store_failures_counter.inc()
        raise

    except (AccountNotFoundError, AccountSuspendedError, InsufficientBalanceError, InvalidTransactionDataError) as e:
        db.rollback()
        reason = REJECTION_REASONS[type(e)]
        record_rejection(reason)
        log_rejection(request_id, str(request_body.account_id), reason, str(e))
        raise

    except Exception:
        db.rollback()
        raise

    duration_ms = (time.time() - start_time) * 1000
    record_posting(transaction)
    log_posting(request_id, transaction, duration_ms)

    return TransactionResponse.from_domain(transaction)


@router.get("/transactions", response_model=PageResponse[TransactionResponse])
def list_transactions(
    account_id: Optional[uuid.UUID] = Query(None, description="Filter by account ID"),
    status: Optional[TransactionStatus] = Query(None, description="Filter by status"),
    type: Optional[TransactionType] = Query(None, description="Filter by type (DEBIT/CREDIT)"),
    from_date: Optional[datetime] = Query(None, description="Filter from date (ISO format: 2025-01-01T10:00:00)"),
    to_date: Optional[datetime] = Query(None, description="Filter to date (ISO format: 2025-01-31T23:59:59)"),
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
):
    """Transactions matching all given filters, newest first"""
    transactions = TransactionRepository(db).find_by_filters(
        account_id=account_id,
        status=status,
        type=type,
        from_date=from_date,
        to_date=to_date,
        page=page,
        size=size,
    )
    return PageResponse[TransactionResponse].from_page(transactions, TransactionResponse.from_domain)


@router.get("/transactions/flagged", response_model=PageResponse[TransactionResponse])
def list_flagged_transactions(
    page: int = Query(0, ge=0),
    size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
):
    """Flagged transactions awaiting review, highest risk first"""
    logging.debug("Listing flagged transactions", extra={"page": page, "size": size})
    transactions = TransactionRepository(db).list_flagged(page, size)
    return PageResponse[TransactionResponse].from_page(transactions, TransactionResponse.from_domain)


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: uuid.UUID, db: Session = Depends(get_db)):
    transaction = TransactionRepository(db).get(transaction_id)
    if transaction is None:
        raise TransactionNotFoundError(transaction_id)
    return TransactionResponse.from_domain(transaction)
