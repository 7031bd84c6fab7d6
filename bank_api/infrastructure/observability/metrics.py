"""Prometheus metrics for monitoring postings, risk scores and store health"""

from prometheus_client import Counter, Histogram

from bank_api.domain.models import Transaction

# Posting metrics
transactions_counter = Counter(
    "bank_transactions_total",
    "Total transactions posted",
    ["type", "status"],  # DEBIT | CREDIT, COMPLETED | FLAGGED
)

risk_score_histogram = Histogram(
    "bank_risk_score",
    "Risk score assigned to posted transactions",
    buckets=[0, 20, 30, 40, 50, 60, 70, 80, 90, 100],
)

posting_rejections_counter = Counter(
    "bank_posting_rejections_total",
    "Postings rejected before a transaction was recorded",
    ["reason"],  # account_not_found | account_suspended | insufficient_balance | invalid_request
)

# Store health
balance_update_failures_counter = Counter(
    "bank_balance_update_failures_total",
    "Balance updates that failed after the transaction record was written",
)

store_failures_counter = Counter(
    "bank_store_failures_total",
    "Storage failures surfaced to callers",
)

accounts_opened_counter = Counter(
    "bank_accounts_opened_total",
    "Accounts opened",
    ["currency"],
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_posting(transaction: Transaction) -> None:
    """Record posting outcome and its risk score"""
    transactions_counter.labels(type=transaction.type.value, status=transaction.status.value).inc()
    risk_score_histogram.observe(transaction.risk_score)


def record_rejection(reason: str) -> None:
    posting_rejections_counter.labels(reason=reason).inc()
