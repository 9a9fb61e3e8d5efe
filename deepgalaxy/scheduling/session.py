"""
Study session context.

A session is an immutable value: every operation returns a new session
instead of mutating shared state. Abandoning a session has no persisted
effect for the cards not yet graded.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional
import uuid

from deepgalaxy.scheduling.constants import UiGrade
from deepgalaxy.scheduling.schemas import Card
from deepgalaxy.scheduling.service import ReviewService


@dataclass(frozen=True)
class StudySession:
    """
    Queue snapshot and progress of one study run.
    """
    session_id: str
    queue: tuple[Card, ...]
    position: int = 0
    showing_answer: bool = False
    reviewed: int = 0
    correct: int = 0
    skipped: int = 0

    @property
    def remaining(self) -> int:
        return max(0, len(self.queue) - self.position)


async def start_session(service: ReviewService, now: datetime) -> StudySession:
    """Build a session from the current due queue."""
    queue = await service.due_queue(now)
    return StudySession(session_id=str(uuid.uuid4()), queue=tuple(queue))


def is_finished(session: StudySession) -> bool:
    return session.position >= len(session.queue)


def current_card(session: StudySession) -> Optional[Card]:
    if is_finished(session):
        return None
    return session.queue[session.position]


def reveal_answer(session: StudySession) -> StudySession:
    if is_finished(session) or session.showing_answer:
        return session
    return replace(session, showing_answer=True)


async def grade_current(
    service: ReviewService,
    session: StudySession,
    ui_grade: int,
    now: datetime
) -> StudySession:
    """
    Submit a grade for the current card and advance.

    A card deleted since the queue was built is counted as skipped.
    If persisting fails the error propagates and the session is unchanged.
    """
    card = current_card(session)
    if card is None:
        return session

    outcome = await service.submit_review(card.id, ui_grade, now)

    if outcome is None:
        return replace(
            session,
            position=session.position + 1,
            showing_answer=False,
            skipped=session.skipped + 1,
        )

    return replace(
        session,
        position=session.position + 1,
        showing_answer=False,
        reviewed=session.reviewed + 1,
        correct=session.correct + (1 if ui_grade != UiGrade.FORGOT else 0),
    )
