"""Unit tests for the transaction posting pipeline"""

import uuid
import pytest
from datetime import datetime
from decimal import Decimal
from bank_api.domain.exceptions import (
    AccountNotFoundError,
    AccountSuspendedError,
    BalanceUpdateError,
    InsufficientBalanceError,
    InvalidTransactionDataError,
)
from bank_api.domain.models import (
    AccountStatus,
    Currency,
    TransactionCategory,
    TransactionStatus,
    TransactionType,
)
from bank_api.domain.posting import TransactionPoster, apply_to_balance, moves_money
from bank_api.domain.scoring import RiskRules, RiskScorer

from fakes import DAYTIME, FakeAccountStore, FakeTransactionStore, make_account


class CountingScorer(RiskScorer):
    """Scorer that records whether it was consulted"""

    def __init__(self, transactions):
        super().__init__(transactions)
        self.calls = []

    def score(self, account_id, amount, timestamp):
        self.calls.append((account_id, amount, timestamp))
        return super().score(account_id, amount, timestamp)


def make_poster(account_store, transaction_store, clock_time=DAYTIME):
    scorer = CountingScorer(transaction_store)
    poster = TransactionPoster(account_store, transaction_store, scorer, clock=lambda: clock_time)
    return poster, scorer


def test_credit_completes_and_increases_balance(account, account_store, transaction_store):
    """Scenario B: 100 at 14:00 with no history scores 0 and moves money"""
    poster, _ = make_poster(account_store, transaction_store)

    transaction = poster.post(account.id, Decimal("100.00"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert transaction.risk_score == 0
    assert transaction.status == TransactionStatus.COMPLETED
    assert account_store.accounts[account.id].balance == Decimal("1100.00")
    assert transaction_store.transactions == [transaction]


def test_debit_completes_and_decreases_balance(account, account_store, transaction_store):
    poster, _ = make_poster(account_store, transaction_store)

    poster.post(account.id, Decimal("100.00"), TransactionType.DEBIT, TransactionCategory.PAYMENT)

    assert account_store.accounts[account.id].balance == Decimal("900.00")


def test_transaction_fields_copied_from_account_and_clock(transaction_store):
    account = make_account(currency=Currency.EUR)
    store = FakeAccountStore([account])
    poster, _ = make_poster(store, transaction_store)

    transaction = poster.post(
        account.id,
        Decimal("42.50"),
        TransactionType.CREDIT,
        TransactionCategory.TRANSFER,
        "Rent share",
    )

    assert transaction.currency == Currency.EUR
    assert transaction.timestamp == DAYTIME
    assert transaction.account_id == account.id
    assert transaction.category == TransactionCategory.TRANSFER
    assert transaction.description == "Rent share"


def test_clock_read_once_for_scoring_and_storage(account, account_store, transaction_store):
    ticks = iter([datetime(2025, 1, 15, 10, 0), datetime(2025, 1, 15, 23, 0)])
    scorer = CountingScorer(transaction_store)
    poster = TransactionPoster(account_store, transaction_store, scorer, clock=lambda: next(ticks))

    transaction = poster.post(account.id, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert scorer.calls[0][2] == transaction.timestamp == datetime(2025, 1, 15, 10, 0)


def test_flagged_transaction_recorded_without_moving_money():
    """Scenario A: 15000 at 02:00 with 6 recent transactions is flagged, balance unchanged"""
    account = make_account(balance="50000.00")
    account_store = FakeAccountStore([account])
    transaction_store = FakeTransactionStore(recent_count=6)
    poster, _ = make_poster(account_store, transaction_store, datetime(2025, 1, 15, 2, 0))

    transaction = poster.post(account.id, Decimal("15000"), TransactionType.DEBIT, TransactionCategory.WITHDRAWAL)

    assert transaction.risk_score == 90
    assert transaction.status == TransactionStatus.FLAGGED
    assert transaction_store.transactions == [transaction]
    assert account_store.balance_updates == []
    assert account_store.accounts[account.id].balance == Decimal("50000.00")


def test_score_of_exactly_70_completes():
    """Scenario C: threshold is exclusive"""
    account = make_account()
    account_store = FakeAccountStore([account])
    transaction_store = FakeTransactionStore(recent_count=5)
    scorer = RiskScorer(transaction_store, RiskRules(night_points=30))
    poster = TransactionPoster(account_store, transaction_store, scorer, clock=lambda: datetime(2025, 1, 15, 3, 0))

    transaction = poster.post(account.id, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert transaction.risk_score == 70
    assert transaction.status == TransactionStatus.COMPLETED
    assert account_store.accounts[account.id].balance == Decimal("1010.00")


def test_debit_of_entire_balance_allowed(account, account_store, transaction_store):
    """Scenario D: equality is not insufficient"""
    poster, _ = make_poster(account_store, transaction_store)

    poster.post(account.id, Decimal("1000.00"), TransactionType.DEBIT, TransactionCategory.WITHDRAWAL)

    assert account_store.accounts[account.id].balance == Decimal("0.00")


def test_debit_above_balance_rejected_without_side_effects(account, account_store, transaction_store):
    """Scenario E: one cent over is rejected before anything is written"""
    poster, scorer = make_poster(account_store, transaction_store)

    with pytest.raises(InsufficientBalanceError):
        poster.post(account.id, Decimal("1000.01"), TransactionType.DEBIT, TransactionCategory.WITHDRAWAL)

    assert transaction_store.transactions == []
    assert account_store.balance_updates == []
    assert scorer.calls == []


def test_credit_ignores_balance_check():
    account = make_account(balance="0.00")
    account_store = FakeAccountStore([account])
    poster, _ = make_poster(account_store, FakeTransactionStore())

    poster.post(account.id, Decimal("5000"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert account_store.accounts[account.id].balance == Decimal("5000.00")


def test_unknown_account_rejected(account_store, transaction_store):
    poster, _ = make_poster(account_store, transaction_store)
    missing = uuid.uuid4()

    with pytest.raises(AccountNotFoundError) as exc_info:
        poster.post(missing, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert exc_info.value.account_id == missing
    assert transaction_store.transactions == []


def test_suspended_account_rejected_before_scoring(transaction_store):
    account = make_account(status=AccountStatus.SUSPENDED)
    account_store = FakeAccountStore([account])
    poster, scorer = make_poster(account_store, transaction_store)

    with pytest.raises(AccountSuspendedError):
        poster.post(account.id, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert scorer.calls == []
    assert transaction_store.count_queries == []
    assert transaction_store.transactions == []


def test_suspension_checked_before_balance(transaction_store):
    account = make_account(balance="0.00", status=AccountStatus.SUSPENDED)
    poster, _ = make_poster(FakeAccountStore([account]), transaction_store)

    with pytest.raises(AccountSuspendedError):
        poster.post(account.id, Decimal("10"), TransactionType.DEBIT, TransactionCategory.PAYMENT)


def test_closed_account_still_accepts_postings(transaction_store):
    account = make_account(status=AccountStatus.CLOSED)
    account_store = FakeAccountStore([account])
    poster, _ = make_poster(account_store, transaction_store)

    transaction = poster.post(account.id, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert transaction.status == TransactionStatus.COMPLETED
    assert account_store.accounts[account.id].balance == Decimal("1010.00")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5.00")])
def test_non_positive_amount_rejected(account, account_store, transaction_store, amount):
    poster, _ = make_poster(account_store, transaction_store)

    with pytest.raises(InvalidTransactionDataError):
        poster.post(account.id, amount, TransactionType.CREDIT, TransactionCategory.DEPOSIT)


def test_oversized_description_rejected(account, account_store, transaction_store):
    poster, _ = make_poster(account_store, transaction_store)

    with pytest.raises(InvalidTransactionDataError):
        poster.post(account.id, Decimal("1"), TransactionType.CREDIT, TransactionCategory.DEPOSIT, "x" * 501)


def test_balance_update_failure_surfaces_recorded_transaction(account, account_store, transaction_store):
    account_store.fail_updates = True
    poster, _ = make_poster(account_store, transaction_store)

    with pytest.raises(BalanceUpdateError) as exc_info:
        poster.post(account.id, Decimal("10"), TransactionType.CREDIT, TransactionCategory.DEPOSIT)

    assert transaction_store.transactions == [exc_info.value.transaction]
    assert account_store.accounts[account.id].balance == Decimal("1000.00")


def test_velocity_counts_prior_postings_only(account, account_store):
    """The fifth posting sees four prior ones; the sixth sees five and picks up +40"""
    transaction_store = FakeTransactionStore()
    poster, _ = make_poster(account_store, transaction_store)

    scores = [
        poster.post(account.id, Decimal("1"), TransactionType.CREDIT, TransactionCategory.DEPOSIT).risk_score
        for _ in range(6)
    ]

    assert scores == [0, 0, 0, 0, 0, 40]


def test_balance_matches_completed_postings(account_store, account, transaction_store):
    """Initial balance plus completed credits minus completed debits, flagged ignored"""
    poster, _ = make_poster(account_store, transaction_store, datetime(2025, 1, 15, 1, 0))
    postings = [
        (Decimal("500.00"), TransactionType.CREDIT),
        (Decimal("20000.00"), TransactionType.CREDIT),
        (Decimal("250.25"), TransactionType.DEBIT),
        (Decimal("12000.00"), TransactionType.DEBIT),
        (Decimal("75.50"), TransactionType.DEBIT),
        (Decimal("15000.00"), TransactionType.CREDIT),  # night + high amount + velocity: flagged
        (Decimal("1.00"), TransactionType.CREDIT),
    ]
    for amount, type in postings:
        poster.post(account.id, amount, type, TransactionCategory.TRANSFER)

    completed = [t for t in transaction_store.transactions if t.status == TransactionStatus.COMPLETED]
    expected = account.balance + sum(
        apply_to_balance(Decimal("0"), t.amount, t.type) for t in completed
    )

    assert any(t.status == TransactionStatus.FLAGGED for t in transaction_store.transactions)
    assert account_store.accounts[account.id].balance == expected
    assert account_store.accounts[account.id].balance >= 0


def test_apply_to_balance():
    assert apply_to_balance(Decimal("10.00"), Decimal("2.50"), TransactionType.CREDIT) == Decimal("12.50")
    assert apply_to_balance(Decimal("10.00"), Decimal("2.50"), TransactionType.DEBIT) == Decimal("7.50")


def test_moves_money_only_for_completed():
    assert moves_money(TransactionStatus.COMPLETED) is True
    assert moves_money(TransactionStatus.FLAGGED) is False
    with pytest.raises(ValueError):
        moves_money("PENDING")
