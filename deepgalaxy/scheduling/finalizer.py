"""
Review Finalizer - turns a graded review into the next card state.

Pure logic (no database calls). Workflow:
1. Forgetting rate over the trailing window -> ease multiplier
2. Card retention score -> interval multiplier
3. SM-2 step
4. Corrected ease factor (floored again at 1.3)
5. Final interval and next review time
6. Log entry with before/after snapshots

The caller is responsible for persisting the returned card and log entry.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from deepgalaxy.errors import InvalidQualityError
from deepgalaxy.scheduling.constants import (
    EASE_MULTIPLIER_HIGH_FORGET,
    EASE_MULTIPLIER_LOW_FORGET,
    EF_FLOOR,
    HIGH_FORGET_RATE,
    HIGH_RETENTION_SCORE,
    LAPSE_INTERVAL_DAYS,
    LOW_FORGET_RATE,
    LOW_RETENTION_SCORE,
    MAX_QUALITY,
    MIN_QUALITY,
    PASSING_QUALITY,
    RETENTION_MULTIPLIER_HIGH,
    RETENTION_MULTIPLIER_LOW,
)
from deepgalaxy.scheduling.ledger import forgetting_rate
from deepgalaxy.scheduling.retention import card_stats
from deepgalaxy.scheduling.schemas import Card, ReviewLogEntry, ensure_utc
from deepgalaxy.scheduling.sm2 import compute_interval, round_half_up


@dataclass(frozen=True)
class ReviewOutcome:
    """Updated card plus the log entry describing the review."""
    card: Card
    log_entry: ReviewLogEntry
    forget_rate: float
    ease_multiplier: float
    retention_multiplier: float


def validate_quality(quality) -> int:
    """
    Reject anything that is not an integer quality in 1..5.

    Raises:
        InvalidQualityError: if the value is out of range or not an int
    """
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQualityError(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQualityError(quality)
    return quality


def ease_multiplier(forget_rate: float) -> float:
    """
    Ease correction from the learner's forgetting rate.

    - rate > 0.35: 0.9 (intervals grow slower)
    - rate < 0.15: 1.1 (intervals grow faster)
    - otherwise: 1.0
    """
    if forget_rate > HIGH_FORGET_RATE:
        return EASE_MULTIPLIER_HIGH_FORGET
    if forget_rate < LOW_FORGET_RATE:
        return EASE_MULTIPLIER_LOW_FORGET
    return 1.0


def retention_multiplier(retention_score: Optional[float]) -> float:
    """
    Interval correction from the card's retention score.

    - score < 40: 0.8
    - score > 80: 1.2
    - otherwise (or no score yet): 1.0
    """
    if retention_score is None:
        return 1.0
    if retention_score < LOW_RETENTION_SCORE:
        return RETENTION_MULTIPLIER_LOW
    if retention_score > HIGH_RETENTION_SCORE:
        return RETENTION_MULTIPLIER_HIGH
    return 1.0


def finalize_review(
    card: Card,
    quality: int,
    logs: Iterable[ReviewLogEntry],
    now: datetime
) -> ReviewOutcome:
    """
    Compute the post-review card state and its log entry.

    The input card is not modified.

    Args:
        card: Card being reviewed (must have an id)
        quality: SM-2 quality 1-5
        logs: Review log covering at least the trailing forgetting window
        now: Review time

    Returns:
        ReviewOutcome with the new card and log entry
    """
    quality = validate_quality(quality)
    now = ensure_utc(now)

    rate = forgetting_rate(logs, now)
    ease_mult = ease_multiplier(rate)

    stats = card_stats(card, now, rate)
    retention_mult = retention_multiplier(stats.retention_score)

    sm2 = compute_interval(card.repetitions, card.interval_days, card.ease_factor, quality)

    new_ease = max(sm2.ease_factor * ease_mult, EF_FLOOR)

    if sm2.repetitions > 2 and quality >= PASSING_QUALITY:
        new_interval = max(1, round_half_up(card.interval_days * new_ease * retention_mult))
    elif quality < PASSING_QUALITY:
        new_interval = LAPSE_INTERVAL_DAYS
    else:
        # First two repetitions keep the fixed 1 / 6 day steps
        new_interval = sm2.interval_days

    total_successes = card.total_successes
    if total_successes is None:
        total_successes = card.repetitions
    if quality >= PASSING_QUALITY:
        total_successes += 1

    updated = card.rescheduled(
        repetitions=sm2.repetitions,
        interval_days=new_interval,
        ease_factor=new_ease,
        last_review_at=now,
        next_review_at=now + timedelta(days=new_interval),
        total_successes=total_successes,
        updated_at=now,
    )

    log_entry = ReviewLogEntry(
        card_id=card.id,
        reviewed_at=now,
        quality=quality,
        interval_before=card.interval_days,
        ease_before=card.ease_factor,
        interval_after=new_interval,
        ease_after=new_ease,
    )

    return ReviewOutcome(
        card=updated,
        log_entry=log_entry,
        forget_rate=rate,
        ease_multiplier=ease_mult,
        retention_multiplier=retention_mult,
    )
