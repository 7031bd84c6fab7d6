"""Storage collaborator contracts consumed by the posting core"""

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional, Protocol

from bank_api.domain.models import Account, AccountStatus, Transaction


class AccountStore(Protocol):
    """
    Account records keyed by id.

    Implementations must serialize read-validate-write per account: between `get`
    and `update_balance` for one posting, no other posting may observe the same balance.
    """

    def get(self, account_id: uuid.UUID) -> Optional[Account]: ...

    def update_balance(self, account_id: uuid.UUID, new_balance: Decimal) -> None: ...


class AccountRegistry(AccountStore, Protocol):
    """Account store with the lifecycle operations used when opening and managing accounts"""

    def add(self, account: Account) -> Account: ...

    def exists_by_number(self, account_number: str) -> bool: ...

    def update_status(self, account_id: uuid.UUID, status: AccountStatus) -> None: ...


class TransactionStore(Protocol):
    """Transaction records, append-only from the core's point of view"""

    def insert(self, transaction: Transaction) -> Transaction: ...

    def count_since(self, account_id: uuid.UUID, since: datetime) -> int:
        """Count the account's transactions with timestamp strictly after `since`"""
        ...
