"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from bank_api.domain.models import Transaction


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def __init__(self, *args, service_name: str = "bank-api", **kwargs):
        super().__init__(*args, **kwargs)
        self.service_name = service_name

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = self.service_name


def setup_logging(level: str = "INFO", service_name: str = "bank-api") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s",
        service_name=service_name,
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_posting(request_id: str, transaction: Transaction, duration_ms: float) -> None:
    """Log structured posting outcome for analysis"""
    logging.info(
        "Posting completed",
        extra={
            "request_id": request_id,
            "account_id": str(transaction.account_id),
            "transaction_id": str(transaction.id),
            "step": "posting_complete",
            "transaction_type": transaction.type.value,
            "outcome": transaction.status.value,
            "risk_score": transaction.risk_score,
            "amount": str(transaction.amount),
            "currency": transaction.currency.value,
            "duration_ms": duration_ms,
        },
    )


def log_rejection(request_id: str, account_id: str, reason: str, message: str) -> None:
    """Log a posting rejected by a business rule or missing account"""
    logging.warning(
        "Posting rejected",
        extra={
            "request_id": request_id,
            "account_id": account_id,
            "step": "posting_rejected",
            "reason": reason,
            "detail": message,
        },
    )
