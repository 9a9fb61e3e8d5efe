"""
Scheduling - SM-2 with statistical corrections

Main API of the scheduler.

This package implements:
- SM-2 interval and ease updates
- Trailing 30-day forgetting rate from the review log
- Exponential retention estimate: R = exp(-t / (I x EF))
- Composite priority score and the due queue built from it
- Review finalization with ease and interval corrections

Quick start:
    from deepgalaxy import scheduling

    engine = scheduling.get_engine()
    scheduling.init_db(engine)
    service = scheduling.ReviewService(scheduling.SqlRepository(engine))

    queue = await service.due_queue(now)
    await service.submit_review(queue[0].id, scheduling.UiGrade.GOOD, now)
"""

# Pure algorithm
from deepgalaxy.scheduling.sm2 import Sm2Result, compute_interval
from deepgalaxy.scheduling.ledger import (
    ForgetStats,
    forgetting_rate,
    forgetting_stats,
    success_rate,
    window_cutoff,
)
from deepgalaxy.scheduling.retention import CardStats, card_stats
from deepgalaxy.scheduling.selector import ScoredCard, due_queue, rank_cards
from deepgalaxy.scheduling.finalizer import (
    ReviewOutcome,
    ease_multiplier,
    finalize_review,
    retention_multiplier,
)

# Records
from deepgalaxy.scheduling.schemas import Card, Deck, ReviewLogEntry

# Persistence
from deepgalaxy.scheduling.database import get_engine, init_db, reset_db
from deepgalaxy.scheduling.repository import InMemoryRepository, Repository, SqlRepository

# Service and sessions
from deepgalaxy.scheduling.service import ReviewService, quality_for_grade
from deepgalaxy.scheduling.session import (
    StudySession,
    current_card,
    grade_current,
    is_finished,
    reveal_answer,
    start_session,
)

# Constants
from deepgalaxy.scheduling.constants import (
    DUE_PRIORITY_THRESHOLD,
    EF_FLOOR,
    FORGET_WINDOW_DAYS,
    INITIAL_EASE_FACTOR,
    NEW_CARD_PRIORITY,
    QUALITY_BY_UI_GRADE,
    UiGrade,
)


__all__ = [
    # Core algorithm
    "Sm2Result",
    "compute_interval",
    "ForgetStats",
    "forgetting_rate",
    "forgetting_stats",
    "success_rate",
    "window_cutoff",
    "CardStats",
    "card_stats",
    "ScoredCard",
    "due_queue",
    "rank_cards",
    "ReviewOutcome",
    "ease_multiplier",
    "finalize_review",
    "retention_multiplier",

    # Records
    "Card",
    "Deck",
    "ReviewLogEntry",

    # Persistence
    "get_engine",
    "init_db",
    "reset_db",
    "Repository",
    "InMemoryRepository",
    "SqlRepository",

    # Service and sessions
    "ReviewService",
    "quality_for_grade",
    "StudySession",
    "start_session",
    "current_card",
    "reveal_answer",
    "grade_current",
    "is_finished",

    # Parameters
    "DUE_PRIORITY_THRESHOLD",
    "EF_FLOOR",
    "FORGET_WINDOW_DAYS",
    "INITIAL_EASE_FACTOR",
    "NEW_CARD_PRIORITY",
    "QUALITY_BY_UI_GRADE",
    "UiGrade",
]
