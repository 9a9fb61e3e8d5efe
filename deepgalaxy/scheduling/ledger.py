"""
Review Ledger - statistics over the append-only review log.

The learner's forgetting rate is the share of lapses (q < 3) among the
reviews of the trailing 30 days. It drives the ease correction applied
after every review.
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from deepgalaxy.scheduling.constants import (
    FORGET_WINDOW_DAYS,
    PASSING_QUALITY,
    RECENT_WINDOW_DAYS,
)
from deepgalaxy.scheduling.schemas import ReviewLogEntry, ensure_utc


@dataclass(frozen=True)
class ForgetStats:
    """Forgetting rate and the number of reviews it was computed from."""
    rate: float
    total: int


def window_cutoff(now: datetime, days: int = FORGET_WINDOW_DAYS) -> datetime:
    """Lower bound of a trailing window ending at now."""
    return ensure_utc(now) - timedelta(days=days)


def logs_in_window(
    logs: Iterable[ReviewLogEntry],
    now: datetime,
    days: int = FORGET_WINDOW_DAYS
) -> list[ReviewLogEntry]:
    """
    Select entries with cutoff <= reviewed_at <= now.
    """
    now = ensure_utc(now)
    cutoff = window_cutoff(now, days)
    return [log for log in logs if cutoff <= log.reviewed_at <= now]


def forgetting_stats(logs: Iterable[ReviewLogEntry], now: datetime) -> ForgetStats:
    """
    Compute the trailing-window forgetting rate.

    An empty window is not an error: it yields rate 0 (no correction).
    """
    recent = logs_in_window(logs, now)
    if not recent:
        return ForgetStats(rate=0.0, total=0)

    failed = sum(1 for log in recent if log.quality < PASSING_QUALITY)
    return ForgetStats(rate=failed / len(recent), total=len(recent))


def forgetting_rate(logs: Iterable[ReviewLogEntry], now: datetime) -> float:
    """Share of lapses among reviews in the last 30 days, in [0, 1]."""
    return forgetting_stats(logs, now).rate


def success_rate(
    logs: Iterable[ReviewLogEntry],
    now: datetime,
    days: int = RECENT_WINDOW_DAYS
) -> float:
    """
    Share of successful reviews (q >= 3) strictly after now - days.

    Returns 0.0 when there were no reviews in the window.
    """
    now = ensure_utc(now)
    cutoff = now - timedelta(days=days)
    recent = [log for log in logs if cutoff < log.reviewed_at <= now]
    if not recent:
        return 0.0
    passed = sum(1 for log in recent if log.quality >= PASSING_QUALITY)
    return passed / len(recent)
