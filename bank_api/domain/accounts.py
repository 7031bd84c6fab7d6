"""Account lifecycle - opening accounts and changing their status"""

import logging
import secrets
import uuid
from decimal import Decimal
from typing import Tuple

from bank_api.domain.exceptions import AccountNotFoundError, InvalidAccountDataError
from bank_api.domain.models import Account, AccountStatus, Currency
from bank_api.domain.stores import AccountRegistry

logger = logging.getLogger(__name__)

ACCOUNT_NUMBER_DIGITS = 22
MIN_HOLDER_LENGTH = 2
MAX_HOLDER_LENGTH = 100


def generate_account_number(prefix: str = "GB") -> str:
    """Random account number: prefix followed by 22 zero-padded digits"""
    return f"{prefix}{secrets.randbelow(10**ACCOUNT_NUMBER_DIGITS):0{ACCOUNT_NUMBER_DIGITS}d}"


class AccountService:
    """Service for opening and managing accounts"""

    def __init__(self, accounts: AccountRegistry, number_prefix: str = "GB"):
        self.accounts = accounts
        self.number_prefix = number_prefix

    def open_account(self, account_holder: str, initial_balance: Decimal, currency: Currency) -> Account:
        """
        Open a new ACTIVE account with the initial deposit as its balance.

        Raises:
            InvalidAccountDataError: Holder name out of bounds or negative initial balance
        """
        holder = (account_holder or "").strip()
        if not MIN_HOLDER_LENGTH <= len(holder) <= MAX_HOLDER_LENGTH:
            raise InvalidAccountDataError(
                f"Account holder must be between {MIN_HOLDER_LENGTH} and {MAX_HOLDER_LENGTH} characters"
            )
        if initial_balance is None or initial_balance < 0:
            raise InvalidAccountDataError("Initial balance must not be negative")

        account = Account(
            id=uuid.uuid4(),
            account_number=self._unique_account_number(),
            account_holder=holder,
            balance=initial_balance,
            currency=currency,
            status=AccountStatus.ACTIVE,
        )
        saved = self.accounts.add(account)
        logger.info("Account created: %s", saved.account_number)
        return saved

    def change_status(self, account_id: uuid.UUID, status: AccountStatus) -> Tuple[Account, AccountStatus]:
        """
        Move an account to any status; transitions are not restricted.

        Returns:
            (updated account, previous status)
        """
        account = self.get_account(account_id)
        old_status = account.status

        self.accounts.update_status(account_id, status)
        account.status = status

        logger.info("Account %s status changed: %s -> %s", account.account_number, old_status.value, status.value)
        return account, old_status

    def get_account(self, account_id: uuid.UUID) -> Account:
        account = self.accounts.get(account_id)
        if account is None:
            raise AccountNotFoundError(account_id)
        return account

    def _unique_account_number(self) -> str:
        while True:
            number = generate_account_number(self.number_prefix)
            if not self.accounts.exists_by_number(number):
                return number
