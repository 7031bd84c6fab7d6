"""Transaction posting pipeline - validation, scoring, persistence and balance mutation"""

import logging
import uuid
from datetime import datetime
from decimal import Decimal
from typing import Callable, Optional

from bank_api.domain.exceptions import (
    AccountNotFoundError,
    AccountSuspendedError,
    BalanceUpdateError,
    InsufficientBalanceError,
    InvalidTransactionDataError,
    StoreError,
)
from bank_api.domain.models import (
    Account,
    AccountStatus,
    Transaction,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)
from bank_api.domain.scoring import RiskScorer
from bank_api.domain.stores import AccountStore, TransactionStore

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 500


def apply_to_balance(balance: Decimal, amount: Decimal, type: TransactionType) -> Decimal:
    """Signed balance arithmetic: credits add, debits subtract"""
    if type == TransactionType.DEBIT:
        return balance - amount
    elif type == TransactionType.CREDIT:
        return balance + amount
    raise ValueError(f"Unsupported transaction type: {type}")


def moves_money(status: TransactionStatus) -> bool:
    """Only completed transactions are applied to the balance"""
    if status == TransactionStatus.COMPLETED:
        return True
    elif status == TransactionStatus.FLAGGED:
        return False
    raise ValueError(f"Unsupported transaction status: {status}")


class TransactionPoster:
    """
    Posts transactions against accounts.

    Flow:
    1. Load the account and reject unknown or suspended accounts
    2. Reject debits larger than the current balance
    3. Read the clock once; the same instant is used for scoring and storage
    4. Score the posting against recent account history
    5. Persist the transaction (flagged transactions are recorded too)
    6. Apply completed transactions to the account balance

    The record is written before the balance, so a failure can leave a recorded but
    unapplied transaction, never moved money without a record. Callers backed by a
    database should commit both writes together.
    """

    def __init__(
        self,
        accounts: AccountStore,
        transactions: TransactionStore,
        scorer: RiskScorer,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.accounts = accounts
        self.transactions = transactions
        self.scorer = scorer
        self.clock = clock

    def post(
        self,
        account_id: uuid.UUID,
        amount: Decimal,
        type: TransactionType,
        category: TransactionCategory,
        description: Optional[str] = None,
    ) -> Transaction:
        """
        Post a transaction.

        Raises:
            InvalidTransactionDataError: Non-positive amount or oversized description
            AccountNotFoundError: Account id does not resolve
            AccountSuspendedError: Account status is SUSPENDED
            InsufficientBalanceError: Debit amount exceeds the balance
            BalanceUpdateError: Transaction was recorded but the balance update failed
            StoreError: Any other storage failure
        """
        self._validate_request(amount, description)

        account = self.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)

        # CLOSED accounts are not blocked
        if account.status == AccountStatus.SUSPENDED:
            raise AccountSuspendedError(account_id)

        if type == TransactionType.DEBIT and amount > account.balance:
            raise InsufficientBalanceError(account.balance, amount)

        now = self.clock()
        assessment = self.scorer.score(account_id, amount, now)

        transaction = Transaction(
            account_id=account_id,
            amount=amount,
            currency=account.currency,
            type=type,
            category=category,
            description=description,
            status=assessment.status,
            risk_score=assessment.risk_score,
            timestamp=now,
        )
        saved = self.transactions.insert(transaction)

        if moves_money(saved.status):
            self._update_balance(account, saved)

        logger.info(
            "Transaction created: %s %s %s (risk: %d)",
            type.value,
            amount,
            account.currency.value,
            saved.risk_score,
        )
        return saved

    def _validate_request(self, amount: Decimal, description: Optional[str]) -> None:
        if amount is None or amount <= 0:
            raise InvalidTransactionDataError("Amount must be positive")
        if description is not None and len(description) > MAX_DESCRIPTION_LENGTH:
            raise InvalidTransactionDataError(
                f"Description must be at most {MAX_DESCRIPTION_LENGTH} characters"
            )

    def _update_balance(self, account: Account, transaction: Transaction) -> None:
        new_balance = apply_to_balance(account.balance, transaction.amount, transaction.type)
        try:
            self.accounts.update_balance(account.id, new_balance)
        except StoreError as e:
            logger.error(
                "Balance update failed for account %s after recording transaction %s",
                account.id,
                transaction.id,
            )
            raise BalanceUpdateError(transaction) from e
        account.balance = new_balance
