"""
Exceptions raised by the scheduler and its repositories.
"""

from __future__ import annotations


class SchedulerError(Exception):
    """Base class for all scheduler errors."""


class InvalidQualityError(SchedulerError, ValueError):
    """Review quality outside the 1-5 SM-2 scale."""

    def __init__(self, quality):
        super().__init__(f"Review quality must be an integer 1-5, got {quality!r}")
        self.quality = quality


class InvalidGradeError(SchedulerError, ValueError):
    """UI grade outside the 1-4 button scale."""

    def __init__(self, grade):
        super().__init__(f"UI grade must be one of 1, 2, 3, 4, got {grade!r}")
        self.grade = grade


class ReviewInProgressError(SchedulerError):
    """A review for this card is already being finalized."""

    def __init__(self, card_id: int):
        super().__init__(f"Review already in progress for card {card_id}")
        self.card_id = card_id


class PersistenceError(SchedulerError):
    """A repository read or write failed."""
