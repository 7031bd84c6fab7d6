"""Pydantic schemas for API request/response validation"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from bank_api.domain.models import (
    Account,
    AccountDetail,
    AccountStatus,
    Currency,
    Page,
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)

T = TypeVar("T")


class CreateAccountRequest(BaseModel):
    """Request body for POST /api/v1/accounts"""

    account_holder: str = Field(..., min_length=2, max_length=100, description="Account holder name")
    initial_balance: Decimal = Field(..., ge=0, decimal_places=2, description="Opening deposit")
    currency: Currency


class UpdateAccountStatusRequest(BaseModel):
    """Request body for PATCH /api/v1/accounts/{id}/status"""

    status: AccountStatus


class CreateTransactionRequest(BaseModel):
    """Request body for POST /api/v1/transactions"""

    account_id: uuid.UUID
    amount: Decimal = Field(..., ge=Decimal("0.01"), decimal_places=2, description="Positive amount")
    type: TransactionType
    category: TransactionCategory
    description: Optional[str] = Field(None, max_length=500)


class AccountResponse(BaseModel):
    """Account without aggregates"""

    id: uuid.UUID
    account_number: str
    account_holder: str
    balance: Decimal
    currency: Currency
    status: AccountStatus

    @classmethod
    def from_domain(cls, account: Account) -> "AccountResponse":
        return cls(
            id=account.id,
            account_number=account.account_number,
            account_holder=account.account_holder,
            balance=account.balance,
            currency=account.currency,
            status=account.status,
        )


class AccountDetailResponse(AccountResponse):
    """Account with transaction statistics"""

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    total_transactions: int
    total_debits: Decimal
    total_credits: Decimal

    @classmethod
    def from_detail(cls, detail: AccountDetail) -> "AccountDetailResponse":
        account = detail.account
        return cls(
            id=account.id,
            account_number=account.account_number,
            account_holder=account.account_holder,
            balance=account.balance,
            currency=account.currency,
            status=account.status,
            created_at=account.created_at,
            updated_at=account.updated_at,
            total_transactions=detail.total_transactions,
            total_debits=detail.total_debits,
            total_credits=detail.total_credits,
        )


class TransactionResponse(BaseModel):
    """Posted transaction"""

    id: uuid.UUID
    account_id: uuid.UUID
    amount: Decimal
    currency: Currency
    type: TransactionType
    category: TransactionCategory
    description: Optional[str] = None
    status: TransactionStatus
    risk_score: int
    timestamp: datetime

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            account_id=transaction.account_id,
            amount=transaction.amount,
            currency=transaction.currency,
            type=transaction.type,
            category=transaction.category,
            description=transaction.description,
            status=transaction.status,
            risk_score=transaction.risk_score,
            timestamp=transaction.timestamp,
        )


class PageResponse(BaseModel, Generic[T]):
    """Paged listing envelope"""

    content: List[T]
    page: int
    size: int
    total_elements: int
    total_pages: int

    @classmethod
    def from_page(cls, page: Page, convert) -> "PageResponse":
        return cls(
            content=[convert(item) for item in page.items],
            page=page.page,
            size=page.size,
            total_elements=page.total,
            total_pages=page.total_pages,
        )


class ErrorResponse(BaseModel):
    """Error body shared by all failure responses"""

    status: int
    code: str
    message: str
    timestamp: datetime
    errors: Optional[Dict[str, str]] = None
