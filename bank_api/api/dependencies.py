"""Dependency injection for FastAPI endpoints"""

from datetime import datetime
from typing import Callable

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bank_api.config import settings
from bank_api.domain.accounts import AccountService
from bank_api.domain.posting import TransactionPoster
from bank_api.domain.scoring import RiskRules, RiskScorer
from bank_api.infrastructure.database.repositories import AccountRepository, TransactionRepository
from bank_api.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_clock() -> Callable[[], datetime]:
    """Wall clock used to timestamp postings (local time)"""
    return datetime.now


def get_risk_rules() -> RiskRules:
    """Risk heuristic parameters from settings"""
    return RiskRules(
        high_amount_threshold=settings.risk_high_amount_threshold,
        high_amount_points=settings.risk_high_amount_points,
        night_start_hour=settings.risk_night_start_hour,
        night_end_hour=settings.risk_night_end_hour,
        night_points=settings.risk_night_points,
        velocity_window_minutes=settings.risk_velocity_window_minutes,
        velocity_threshold=settings.risk_velocity_threshold,
        velocity_points=settings.risk_velocity_points,
        flag_threshold=settings.risk_flag_threshold,
    )


def get_account_service(db: Session = Depends(get_db)) -> AccountService:
    """Provide account service bound to the request session"""
    return AccountService(AccountRepository(db), number_prefix=settings.account_number_prefix)


def get_transaction_poster(
    db: Session = Depends(get_db),
    rules: RiskRules = Depends(get_risk_rules),
    clock: Callable[[], datetime] = Depends(get_clock),
) -> TransactionPoster:
    """
    Provide a poster whose stores share the request session.

    Account rows are locked on read so concurrent postings against one account
    serialize until the request commits.
    """
    transactions = TransactionRepository(db)
    return TransactionPoster(
        accounts=AccountRepository(db, lock_rows=True),
        transactions=transactions,
        scorer=RiskScorer(transactions, rules),
        clock=clock,
    )
