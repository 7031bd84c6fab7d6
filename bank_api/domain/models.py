"""Domain models - pure Python dataclasses representing business entities"""

import enum
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

T = TypeVar("T")


class Currency(str, enum.Enum):
    GBP = "GBP"
    EUR = "EUR"
    USD = "USD"


class AccountStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    SUSPENDED = "SUSPENDED"
    CLOSED = "CLOSED"


class TransactionType(str, enum.Enum):
    DEBIT = "DEBIT"
    CREDIT = "CREDIT"


class TransactionCategory(str, enum.Enum):
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    TRANSFER = "TRANSFER"
    PAYMENT = "PAYMENT"


class TransactionStatus(str, enum.Enum):
    COMPLETED = "COMPLETED"
    FLAGGED = "FLAGGED"


@dataclass
class Account:
    """Bank account snapshot borrowed from the account store"""

    id: uuid.UUID
    account_number: str
    account_holder: str
    balance: Decimal
    currency: Currency
    status: AccountStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """Posted transaction, immutable once built"""

    account_id: uuid.UUID
    amount: Decimal
    currency: Currency
    type: TransactionType
    category: TransactionCategory
    status: TransactionStatus
    risk_score: int
    timestamp: datetime
    description: Optional[str] = None
    id: uuid.UUID = field(default_factory=uuid.uuid4)


@dataclass(frozen=True)
class RiskAssessment:
    """Output of risk scoring for a single posting"""

    risk_score: int
    status: TransactionStatus
    signals: List[str] = field(default_factory=list)


@dataclass
class AccountDetail:
    """Account with aggregate statistics over its transactions"""

    account: Account
    total_transactions: int
    total_debits: Decimal
    total_credits: Decimal


@dataclass
class Page(Generic[T]):
    """One page of a listing query"""

    items: List[T]
    page: int
    size: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.size <= 0:
            return 0
        return (self.total + self.size - 1) // self.size
