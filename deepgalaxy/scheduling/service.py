"""
Review Service - the scheduler surface used by study sessions and the CLI.

Loads records from a Repository, runs the pure scheduling logic and writes
the results back:

- due_queue(now): prioritized cards due for review
- submit_review(card_id, ui_grade, now): finalize one review
- forgetting_rate(now): learner's trailing forgetting rate (display only)
"""

from __future__ import annotations
import logging
from datetime import datetime
from typing import Optional

from deepgalaxy.errors import InvalidGradeError, ReviewInProgressError
from deepgalaxy.scheduling.constants import QUALITY_BY_UI_GRADE, UiGrade
from deepgalaxy.scheduling.finalizer import ReviewOutcome, finalize_review
from deepgalaxy.scheduling.ledger import forgetting_stats, window_cutoff
from deepgalaxy.scheduling.repository import Repository
from deepgalaxy.scheduling.schemas import Card, ReviewLogEntry
from deepgalaxy.scheduling.selector import ScoredCard, rank_cards


logger = logging.getLogger(__name__)


def quality_for_grade(ui_grade) -> int:
    """
    Map a 1-4 UI grade to SM-2 quality (1, 3, 4, 5).

    Raises:
        InvalidGradeError: for anything outside 1-4
    """
    if isinstance(ui_grade, bool) or not isinstance(ui_grade, int):
        raise InvalidGradeError(ui_grade)
    try:
        return QUALITY_BY_UI_GRADE[UiGrade(ui_grade)]
    except ValueError:
        raise InvalidGradeError(ui_grade) from None


class ReviewService:
    """
    Coordinates the scheduler with a repository.

    At most one submit_review may be in flight per card; a concurrent second
    submission for the same card is rejected with ReviewInProgressError.
    """

    def __init__(self, repository: Repository):
        self.repository = repository
        self._in_flight: set[int] = set()

    async def _recent_logs(self, now: datetime) -> list[ReviewLogEntry]:
        return await self.repository.logs_since(window_cutoff(now))

    async def ranked_queue(self, now: datetime) -> list[ScoredCard]:
        """Due cards with their stats, most urgent first."""
        cards = await self.repository.get_all("cards")
        logs = await self._recent_logs(now)
        return rank_cards(cards, logs, now)

    async def due_queue(self, now: datetime) -> list[Card]:
        """Snapshot of due cards, recomputed on every call."""
        return [scored.card for scored in await self.ranked_queue(now)]

    async def forgetting_rate(self, now: datetime) -> float:
        stats = forgetting_stats(await self._recent_logs(now), now)
        return stats.rate

    async def submit_review(
        self,
        card_id: int,
        ui_grade: int,
        now: datetime
    ) -> Optional[ReviewOutcome]:
        """
        Finalize one review and persist it.

        Workflow:
        1. Map the UI grade to quality
        2. Load the trailing-window log, then re-read the card
           (a deleted card is skipped, returning None)
        3. Finalize the review
        4. Update the card in place (skipped if it was deleted meanwhile),
           then append the log entry

        Args:
            card_id: Id of the reviewed card
            ui_grade: Button pressed (1-4)
            now: Review time

        Returns:
            ReviewOutcome, or None if the card no longer exists

        Raises:
            InvalidGradeError: ui_grade outside 1-4
            ReviewInProgressError: another review of this card is in flight
            PersistenceError: a repository read or write failed
        """
        quality = quality_for_grade(ui_grade)

        if card_id in self._in_flight:
            logger.warning("Rejected concurrent review of card %s", card_id)
            raise ReviewInProgressError(card_id)
        self._in_flight.add(card_id)

        try:
            logs = await self._recent_logs(now)
            card = await self.repository.get("cards", card_id)
            if card is None:
                logger.warning("Card %s vanished before its review was saved; skipping", card_id)
                return None

            outcome = finalize_review(card, quality, logs, now)

            if not await self.repository.update("cards", outcome.card):
                logger.warning("Card %s was deleted during its review; skipping", card_id)
                return None
            await self.repository.add("logs", outcome.log_entry)
        finally:
            self._in_flight.discard(card_id)

        logger.info(
            "Reviewed card %s: q=%s interval %s->%s EF %.2f->%.2f",
            card_id,
            quality,
            card.interval_days,
            outcome.card.interval_days,
            card.ease_factor,
            outcome.card.ease_factor,
        )
        return outcome
