"""SQLAlchemy ORM models for accounts and transactions"""

import uuid
from sqlalchemy import Column, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func

from bank_api.domain.models import (
    AccountStatus,
    Currency,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)

Base = declarative_base()

# Money columns: 19 digits, 2 decimal places
MONEY = Numeric(19, 2)


def _enum(enum_cls, name: str) -> Enum:
    # Persist enum values as plain strings
    return Enum(enum_cls, name=name, native_enum=False, length=20, validate_strings=True)


class AccountRecord(Base):
    """Bank account row"""

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_number = Column(String(34), nullable=False, unique=True)
    account_holder = Column(String(100), nullable=False)
    balance = Column(MONEY, nullable=False)
    currency = Column(_enum(Currency, "currency"), nullable=False)
    status = Column(_enum(AccountStatus, "account_status"), nullable=False, default=AccountStatus.ACTIVE)
    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(DateTime, nullable=True, onupdate=func.now())

    transactions = relationship("TransactionRecord", back_populates="account")


class TransactionRecord(Base):
    """Posted transaction row, never updated after insert"""

    __tablename__ = "transactions"
    __table_args__ = (
        # Velocity lookups: account + time window
        Index("ix_transactions_account_timestamp", "account_id", "timestamp"),
        Index("ix_transactions_status_risk", "status", "risk_score"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    account_id = Column(UUID(as_uuid=True), ForeignKey("accounts.id"), nullable=False)
    amount = Column(MONEY, nullable=False)
    currency = Column(_enum(Currency, "currency"), nullable=False)
    type = Column(_enum(TransactionType, "transaction_type"), nullable=False)
    category = Column(_enum(TransactionCategory, "transaction_category"), nullable=False)
    description = Column(Text, nullable=True)
    status = Column(_enum(TransactionStatus, "transaction_status"), nullable=False)
    risk_score = Column(Integer, nullable=False)
    timestamp = Column(DateTime, nullable=False)

    account = relationship("AccountRecord", back_populates="transactions")
