"""
Retention Model - per-card forgetting curve and priority score.

Key quantities:
- Memory strength (S): I x EF, in days, floored at 0.1
- Retention probability (R): exp(-t / S), t = days since last review
- Retention score: 0-100 measure of how well-established a card is
- Priority score: weighted urgency used to order the due queue
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import math

from deepgalaxy.scheduling.constants import (
    MAX_RETENTION_SCORE,
    MIN_STRENGTH,
    NEW_CARD_PRIORITY,
    PRIORITY_WEIGHTS,
)
from deepgalaxy.scheduling.schemas import Card, ensure_utc


SECONDS_PER_DAY = 86400.0


@dataclass(frozen=True)
class CardStats:
    """
    Derived retention metrics for one card at one moment.

    retention_score is None for new cards (nothing to measure yet).
    """
    retention_probability: float
    forget_risk: float
    retention_score: Optional[float]
    priority_score: float
    forget_rate: float = 0.0


def days_between(start: Optional[datetime], end: datetime) -> float:
    """
    Days elapsed from start to end (0 if start is None).
    """
    if start is None:
        return 0.0
    delta = ensure_utc(end) - ensure_utc(start)
    return delta.total_seconds() / SECONDS_PER_DAY


def memory_strength(interval_days: int, ease_factor: float) -> float:
    return max(interval_days * ease_factor, MIN_STRENGTH)


def calculate_retention_probability(strength: float, days_elapsed: float) -> float:
    """
    Exponential forgetting curve.

    Formula: R = exp(-t / S)

    Immediately after a review R is 1.0; it decays smoothly with time.
    Negative elapsed time (clock skew) is treated as "just reviewed".
    """
    if days_elapsed <= 0:
        return 1.0
    return math.exp(-days_elapsed / strength)


def calculate_retention_score(successes: int, ease_factor: float) -> float:
    """
    Formula: min(100, log2(1 + successes) * EF * 10)
    """
    return min(MAX_RETENTION_SCORE, math.log2(1 + successes) * ease_factor * 10)


def calculate_priority(
    forget_risk: float,
    retention_score: float,
    ease_factor: float,
    overdue_days: float
) -> float:
    """
    Weighted urgency of a scheduled card, roughly in [0, 1].
    """
    return (
        PRIORITY_WEIGHTS["forget_risk"] * forget_risk
        + PRIORITY_WEIGHTS["retention_gap"] * (1 - retention_score / MAX_RETENTION_SCORE)
        + PRIORITY_WEIGHTS["ease_penalty"] * (1.0 / ease_factor)
        + PRIORITY_WEIGHTS["overdue"] * math.log10(1 + overdue_days)
    )


def card_stats(card: Card, now: datetime, forget_rate: float = 0.0) -> CardStats:
    """
    Compute retention and priority for a card.

    New cards (n == 0) get a fixed sentinel: retention 0, forget risk 1.0
    and priority 100, independent of every other field.

    Args:
        card: Card to evaluate
        now: Evaluation time
        forget_rate: Learner's trailing forgetting rate (carried on the result,
            not part of the score)

    Returns:
        CardStats for this card at `now`
    """
    if card.is_new:
        return CardStats(
            retention_probability=0.0,
            forget_risk=1.0,
            retention_score=None,
            priority_score=NEW_CARD_PRIORITY,
            forget_rate=forget_rate,
        )

    elapsed = days_between(card.last_review_at, now)
    strength = memory_strength(card.interval_days, card.ease_factor)
    retention_probability = calculate_retention_probability(strength, elapsed)
    forget_risk = 1 - retention_probability

    successes = card.total_successes if card.total_successes is not None else card.repetitions
    retention_score = calculate_retention_score(successes, card.ease_factor)

    overdue_days = 0.0
    if card.next_review_at is not None:
        overdue_days = max(0.0, days_between(card.next_review_at, now))

    priority = calculate_priority(forget_risk, retention_score, card.ease_factor, overdue_days)

    return CardStats(
        retention_probability=retention_probability,
        forget_risk=forget_risk,
        retention_score=retention_score,
        priority_score=priority,
        forget_rate=forget_rate,
    )
