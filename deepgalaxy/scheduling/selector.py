"""
Due Set Selector - builds the prioritized review queue.

A card is due when any of these hold:
- it is new (n == 0), which keeps new and lapsed cards in rotation
- it has never been scheduled
- its next review time has passed
- its priority score reaches the due threshold (early review of at-risk cards)

The queue is a fresh snapshot on every call, sorted by priority (highest
first, stable for ties).
"""

from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable

from deepgalaxy.scheduling.constants import DUE_PRIORITY_THRESHOLD
from deepgalaxy.scheduling.ledger import forgetting_rate
from deepgalaxy.scheduling.retention import CardStats, card_stats
from deepgalaxy.scheduling.schemas import Card, ReviewLogEntry, ensure_utc


@dataclass(frozen=True)
class ScoredCard:
    """A card paired with its stats at queue-building time."""
    card: Card
    stats: CardStats

    @property
    def priority_score(self) -> float:
        return self.stats.priority_score


def is_due(card: Card, stats: CardStats, now: datetime) -> bool:
    if card.is_new:
        return True
    if card.next_review_at is None:
        return True
    if card.next_review_at <= ensure_utc(now):
        return True
    return stats.priority_score >= DUE_PRIORITY_THRESHOLD


def rank_cards(
    cards: Iterable[Card],
    logs: Iterable[ReviewLogEntry],
    now: datetime
) -> list[ScoredCard]:
    """
    Score every card, keep the due ones and sort them by priority.

    Args:
        cards: Full card collection
        logs: Review log (at least the trailing forgetting window)
        now: Evaluation time

    Returns:
        Due cards with their stats, most urgent first
    """
    forget_rate = forgetting_rate(logs, now)

    scored = [ScoredCard(card, card_stats(card, now, forget_rate)) for card in cards]
    due = [s for s in scored if is_due(s.card, s.stats, now)]

    # list.sort is stable: ties keep input order
    due.sort(key=lambda s: s.priority_score, reverse=True)
    return due


def due_queue(
    cards: Iterable[Card],
    logs: Iterable[ReviewLogEntry],
    now: datetime
) -> list[Card]:
    """Cards due for review at `now`, most urgent first."""
    return [s.card for s in rank_cards(cards, logs, now)]
