"""Domain-specific exceptions"""

import uuid
from decimal import Decimal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bank_api.domain.models import Transaction


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class NotFoundError(DomainException):
    """Requested account or transaction does not exist"""

    pass


class AccountNotFoundError(NotFoundError):
    """Account id does not resolve in the account store"""

    def __init__(self, account_id: uuid.UUID):
        super().__init__(f"Account not found: {account_id}")
        self.account_id = account_id


class TransactionNotFoundError(NotFoundError):
    """Transaction id does not resolve in the transaction store"""

    def __init__(self, transaction_id: uuid.UUID):
        super().__init__(f"Transaction not found: {transaction_id}")
        self.transaction_id = transaction_id


class PolicyViolationError(DomainException):
    """Business rule rejected the request (not a system fault)"""

    pass


class AccountSuspendedError(PolicyViolationError):
    """Account is suspended and cannot accept new transactions"""

    def __init__(self, account_id: uuid.UUID):
        super().__init__("Account is suspended")
        self.account_id = account_id


class InsufficientBalanceError(PolicyViolationError):
    """Debit amount exceeds the current account balance"""

    def __init__(self, balance: Decimal, amount: Decimal):
        super().__init__(f"Insufficient balance: {balance} available, {amount} requested")
        self.balance = balance
        self.amount = amount


class StoreError(DomainException):
    """Storage collaborator failed (I/O, constraint, connection)"""

    pass


class BalanceUpdateError(StoreError):
    """
    Balance update failed after the transaction record was written.

    The caller must not commit: the record exists but money has not moved.
    """

    def __init__(self, transaction: "Transaction", message: str = "Balance update failed after transaction insert"):
        super().__init__(f"{message} (transaction {transaction.id})")
        self.transaction = transaction


class InvalidTransactionDataError(DomainException):
    """Transaction data is malformed or invalid"""

    pass


class InvalidAccountDataError(DomainException):
    """Account data is malformed or invalid"""

    pass
