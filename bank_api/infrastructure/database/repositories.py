"""Data access layer for accounts and transactions"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bank_api.domain.exceptions import StoreError
from bank_api.domain.models import (
    Account,
    AccountDetail,
    AccountStatus,
    Page,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from bank_api.infrastructure.database.models import AccountRecord, TransactionRecord

CENTS = Decimal("0.01")

SORTABLE_ACCOUNT_FIELDS = {
    "created_at": AccountRecord.created_at,
    "account_number": AccountRecord.account_number,
    "account_holder": AccountRecord.account_holder,
    "balance": AccountRecord.balance,
    "status": AccountRecord.status,
}


def account_to_domain(record: AccountRecord) -> Account:
    return Account(
        id=record.id,
        account_number=record.account_number,
        account_holder=record.account_holder,
        balance=record.balance,
        currency=record.currency,
        status=record.status,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def transaction_to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=record.id,
        account_id=record.account_id,
        amount=record.amount,
        currency=record.currency,
        type=record.type,
        category=record.category,
        description=record.description,
        status=record.status,
        risk_score=record.risk_score,
        timestamp=record.timestamp,
    )


def _money(value) -> Decimal:
    # SQLite returns aggregate sums as floats
    return Decimal(str(value)).quantize(CENTS)


class AccountRepository:
    """
    Repository for accounts.

    With `lock_rows=True`, `get` takes a row lock (SELECT ... FOR UPDATE) held until the
    session commits or rolls back, serializing postings against the same account.

    Balance writes are also conditional on the balance this repository last read for the
    account. Databases without row locks (SQLite) then reject a write computed from a
    stale read instead of overwriting a concurrent posting.
    """

    def __init__(self, db: Session, lock_rows: bool = False):
        self.db = db
        self.lock_rows = lock_rows
        self._read_balances: Dict[uuid.UUID, Decimal] = {}

    def get(self, account_id: uuid.UUID) -> Optional[Account]:
        """Fetch account by id"""
        try:
            query = self.db.query(AccountRecord).filter(AccountRecord.id == account_id)
            if self.lock_rows:
                query = query.with_for_update()
            record = query.first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load account {account_id}") from e
        if record is None:
            return None
        self._read_balances[account_id] = record.balance
        return account_to_domain(record)

    def update_balance(self, account_id: uuid.UUID, new_balance: Decimal) -> None:
        """
        Write a new balance for one account.

        Raises StoreError when the row is missing or its balance no longer matches the
        value returned by the last `get`.
        """
        query = self.db.query(AccountRecord).filter(AccountRecord.id == account_id)
        expected = self._read_balances.get(account_id)
        if expected is not None:
            query = query.filter(AccountRecord.balance == expected)
        try:
            updated = query.update({AccountRecord.balance: new_balance, AccountRecord.updated_at: func.now()})
            self.db.flush()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update balance for account {account_id}") from e
        if updated != 1:
            if expected is not None:
                raise StoreError(f"Balance of account {account_id} changed since it was read")
            raise StoreError(f"Balance update matched {updated} rows for account {account_id}")
        self._read_balances[account_id] = new_balance

    def add(self, account: Account) -> Account:
        """Persist a new account"""
        record = AccountRecord(
            id=account.id,
            account_number=account.account_number,
            account_holder=account.account_holder,
            balance=account.balance,
            currency=account.currency,
            status=account.status,
        )
        try:
            self.db.add(record)
            self.db.flush()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to create account {account.account_number}") from e
        return account_to_domain(record)

    def exists_by_number(self, account_number: str) -> bool:
        try:
            match = self.db.query(AccountRecord.id).filter(AccountRecord.account_number == account_number).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to look up account number {account_number}") from e
        return match is not None

    def update_status(self, account_id: uuid.UUID, status: AccountStatus) -> None:
        try:
            self.db.query(AccountRecord).filter(AccountRecord.id == account_id).update(
                {AccountRecord.status: status, AccountRecord.updated_at: func.now()}
            )
            self.db.flush()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to update status for account {account_id}") from e

    def list_accounts(
        self,
        page: int = 0,
        size: int = 20,
        sort_field: str = "created_at",
        descending: bool = True,
    ) -> Page[Account]:
        """Page through accounts ordered by a whitelisted column"""
        column = SORTABLE_ACCOUNT_FIELDS[sort_field]
        query = self.db.query(AccountRecord)
        try:
            total = query.count()
            records = (
                query.order_by(column.desc() if descending else column.asc(), AccountRecord.id)
                .offset(page * size)
                .limit(size)
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to list accounts") from e
        return Page(items=[account_to_domain(r) for r in records], page=page, size=size, total=total)

    def get_detail(self, account_id: uuid.UUID) -> Optional[AccountDetail]:
        """Account with counts and sums over all of its transactions"""
        debit_amount = case((TransactionRecord.type == TransactionType.DEBIT, TransactionRecord.amount), else_=0)
        credit_amount = case((TransactionRecord.type == TransactionType.CREDIT, TransactionRecord.amount), else_=0)
        try:
            record = self.db.query(AccountRecord).filter(AccountRecord.id == account_id).first()
            if record is None:
                return None
            total_transactions, total_debits, total_credits = (
                self.db.query(
                    func.count(TransactionRecord.id),
                    func.coalesce(func.sum(debit_amount), 0),
                    func.coalesce(func.sum(credit_amount), 0),
                )
                .filter(TransactionRecord.account_id == account_id)
                .one()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load details for account {account_id}") from e

        return AccountDetail(
            account=account_to_domain(record),
            total_transactions=total_transactions,
            total_debits=_money(total_debits),
            total_credits=_money(total_credits),
        )


class TransactionRepository:
    """Repository for transactions"""

    def __init__(self, db: Session):
        self.db = db

    def insert(self, transaction: Transaction) -> Transaction:
        """Persist a posted transaction without committing"""
        record = TransactionRecord(
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
        try:
            self.db.add(record)
            self.db.flush()  # Surface constraint errors before the balance update
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to insert transaction {transaction.id}") from e
        return transaction

    def count_since(self, account_id: uuid.UUID, since: datetime) -> int:
        """Count the account's transactions with timestamp strictly after `since`"""
        try:
            return (
                self.db.query(func.count(TransactionRecord.id))
                .filter(
                    TransactionRecord.account_id == account_id,
                    TransactionRecord.timestamp > since,
                )
                .scalar()
            )
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to count recent transactions for account {account_id}") from e

    def get(self, transaction_id: uuid.UUID) -> Optional[Transaction]:
        try:
            record = self.db.query(TransactionRecord).filter(TransactionRecord.id == transaction_id).first()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to load transaction {transaction_id}") from e
        return transaction_to_domain(record) if record else None

    def list_by_account(self, account_id: uuid.UUID, page: int = 0, size: int = 20) -> Page[Transaction]:
        """Account transactions, newest first"""
        query = self.db.query(TransactionRecord).filter(TransactionRecord.account_id == account_id)
        return self._page(query.order_by(TransactionRecord.timestamp.desc()), page, size)

    def list_flagged(self, page: int = 0, size: int = 20) -> Page[Transaction]:
        """Flagged transactions, riskiest first"""
        query = self.db.query(TransactionRecord).filter(TransactionRecord.status == TransactionStatus.FLAGGED)
        return self._page(
            query.order_by(TransactionRecord.risk_score.desc(), TransactionRecord.timestamp.desc()),
            page,
            size,
        )

    def find_by_filters(
        self,
        account_id: Optional[uuid.UUID] = None,
        status: Optional[TransactionStatus] = None,
        type: Optional[TransactionType] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        page: int = 0,
        size: int = 20,
    ) -> Page[Transaction]:
        """Filter transactions; every filter is optional and date bounds are inclusive"""
        query = self.db.query(TransactionRecord)
        if account_id is not None:
            query = query.filter(TransactionRecord.account_id == account_id)
        if status is not None:
            query = query.filter(TransactionRecord.status == status)
        if type is not None:
            query = query.filter(TransactionRecord.type == type)
        if from_date is not None:
            query = query.filter(TransactionRecord.timestamp >= from_date)
        if to_date is not None:
            query = query.filter(TransactionRecord.timestamp <= to_date)
        return self._page(query.order_by(TransactionRecord.timestamp.desc()), page, size)

    def _page(self, query, page: int, size: int) -> Page[Transaction]:
        try:
            total = query.order_by(None).count()
            records = query.offset(page * size).limit(size).all()
        except SQLAlchemyError as e:
            raise StoreError("Failed to list transactions") from e
        return Page(items=[transaction_to_domain(r) for r in records], page=page, size=size, total=total)
