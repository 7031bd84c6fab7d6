"""Risk scoring engine - fraud heuristics applied to every posting"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import List

from bank_api.domain.models import RiskAssessment, TransactionStatus
from bank_api.domain.stores import TransactionStore
from bank_api.utils.date_utils import is_in_hour_window, window_start

logger = logging.getLogger(__name__)

HIGH_AMOUNT = "HIGH_AMOUNT"
NIGHT_TIME = "NIGHT_TIME"
HIGH_VELOCITY = "HIGH_VELOCITY"

MIN_SCORE = 0
MAX_SCORE = 100


@dataclass(frozen=True)
class RiskRules:
    """
    Thresholds and weights for the additive risk heuristic.

    Defaults:
    - amount > 10,000 (any currency): +30
    - local hour in 23:00-05:59: +20
    - 5 or more transactions in the previous hour: +40
    - score > 70: FLAGGED
    """

    high_amount_threshold: Decimal = Decimal("10000")
    high_amount_points: int = 30
    night_start_hour: int = 23
    night_end_hour: int = 6
    night_points: int = 20
    velocity_window_minutes: int = 60
    velocity_threshold: int = 5
    velocity_points: int = 40
    flag_threshold: int = 70

    def points_for(self, signal: str) -> int:
        if signal == HIGH_AMOUNT:
            return self.high_amount_points
        elif signal == NIGHT_TIME:
            return self.night_points
        elif signal == HIGH_VELOCITY:
            return self.velocity_points
        raise ValueError(f"Unknown risk signal: {signal}")


DEFAULT_RULES = RiskRules()


def identify_risk_signals(
    amount: Decimal,
    timestamp: datetime,
    recent_count: int,
    rules: RiskRules = DEFAULT_RULES,
) -> List[str]:
    """Return the heuristic signals triggered by a posting, in a stable order"""
    signals = []

    if amount > rules.high_amount_threshold:
        signals.append(HIGH_AMOUNT)

    if is_in_hour_window(timestamp, rules.night_start_hour, rules.night_end_hour):
        signals.append(NIGHT_TIME)

    if recent_count >= rules.velocity_threshold:
        signals.append(HIGH_VELOCITY)

    return signals


def score_signals(signals: List[str], rules: RiskRules = DEFAULT_RULES) -> int:
    """Additive score over triggered signals, clamped to [0, 100]"""
    score = sum(rules.points_for(signal) for signal in signals)
    return min(max(score, MIN_SCORE), MAX_SCORE)


def calculate_risk_score(
    amount: Decimal,
    timestamp: datetime,
    recent_count: int,
    rules: RiskRules = DEFAULT_RULES,
) -> int:
    """
    Sum the points of every triggered signal, clamped to [0, 100].

    `recent_count` is the number of the account's transactions inside the velocity
    window, excluding the posting being scored.
    """
    signals = identify_risk_signals(amount, timestamp, recent_count, rules)
    return score_signals(signals, rules)


def determine_status(risk_score: int, rules: RiskRules = DEFAULT_RULES) -> TransactionStatus:
    """FLAGGED strictly above the threshold; a score equal to it still completes"""
    return TransactionStatus.FLAGGED if risk_score > rules.flag_threshold else TransactionStatus.COMPLETED


def assess_risk(
    amount: Decimal,
    timestamp: datetime,
    recent_count: int,
    rules: RiskRules = DEFAULT_RULES,
) -> RiskAssessment:
    """Score a posting from its inputs and an already-read history count"""
    signals = identify_risk_signals(amount, timestamp, recent_count, rules)
    score = score_signals(signals, rules)
    return RiskAssessment(risk_score=score, status=determine_status(score, rules), signals=signals)


class RiskScorer:
    """Risk scorer backed by a read-only transaction history query"""

    def __init__(self, transactions: TransactionStore, rules: RiskRules = DEFAULT_RULES):
        self.transactions = transactions
        self.rules = rules

    def score(self, account_id: uuid.UUID, amount: Decimal, timestamp: datetime) -> RiskAssessment:
        since = window_start(timestamp, self.rules.velocity_window_minutes)
        recent_count = self.transactions.count_since(account_id, since)

        assessment = assess_risk(amount, timestamp, recent_count, self.rules)

        if HIGH_AMOUNT in assessment.signals:
            logger.debug("Risk +%d: High amount %s", self.rules.high_amount_points, amount)
        if NIGHT_TIME in assessment.signals:
            logger.debug("Risk +%d: Night transaction at %dh", self.rules.night_points, timestamp.hour)
        if HIGH_VELOCITY in assessment.signals:
            logger.warning(
                "Risk +%d: %d transactions in last %d minutes for account %s",
                self.rules.velocity_points,
                recent_count,
                self.rules.velocity_window_minutes,
                account_id,
            )

        return assessment
