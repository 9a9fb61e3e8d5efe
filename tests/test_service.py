import asyncio
from datetime import timedelta

import pytest

from deepgalaxy.errors import InvalidGradeError, PersistenceError, ReviewInProgressError
from deepgalaxy.scheduling.repository import InMemoryRepository
from deepgalaxy.scheduling.service import ReviewService, quality_for_grade
from tests.conftest import NOW, days_ago, make_card, make_log


class GatedRepository(InMemoryRepository):
    """Holds card reads open until the test releases them."""

    def __init__(self):
        super().__init__()
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def get(self, kind, entity_id):
        if kind == "cards":
            self.entered.set()
            await self.gate.wait()
        return await super().get(kind, entity_id)


class FailingCardWrites(InMemoryRepository):
    async def update(self, kind, value):
        if kind == "cards":
            raise PersistenceError("disk full")
        return await super().update(kind, value)


class DeletesDuringLogRead(InMemoryRepository):
    """Removes the card while the review loads its log window."""

    def __init__(self, card_id):
        super().__init__()
        self.card_id = card_id

    async def logs_since(self, cutoff):
        await self.delete("cards", self.card_id)
        return await super().logs_since(cutoff)


class DeletesAfterCardRead(InMemoryRepository):
    """Removes the card right after the review has read it."""

    async def get(self, kind, entity_id):
        value = await super().get(kind, entity_id)
        if kind == "cards":
            await self.delete("cards", entity_id)
        return value


@pytest.mark.parametrize("ui_grade,quality", [(1, 1), (2, 3), (3, 4), (4, 5)])
def test_grade_mapping(ui_grade, quality):
    assert quality_for_grade(ui_grade) == quality


@pytest.mark.parametrize("ui_grade", [0, 5, -1, "3", 2.0, None, True])
def test_invalid_grade(ui_grade):
    with pytest.raises(InvalidGradeError):
        quality_for_grade(ui_grade)


def test_submit_review_persists_card_and_log(memory_repo):
    async def scenario():
        card_id = await memory_repo.add("cards", make_card(id=None))
        service = ReviewService(memory_repo)
        outcome = await service.submit_review(card_id, 3, NOW)
        return (
            card_id,
            outcome,
            await memory_repo.get("cards", card_id),
            await memory_repo.get_all("logs"),
        )

    card_id, outcome, stored, logs = asyncio.run(scenario())

    assert outcome.card == stored
    assert stored.repetitions == 1
    assert stored.next_review_at == NOW + timedelta(days=1)
    assert len(logs) == 1
    assert logs[0].card_id == card_id
    assert logs[0].quality == 4


def test_history_feeds_forgetting_rate(memory_repo):
    async def scenario():
        card_id = await memory_repo.add("cards", make_card(id=None))
        for quality, age in [(1, 1), (1, 2), (4, 3), (5, 45)]:
            await memory_repo.add("logs", make_log(quality, days_ago(age), card_id=card_id))
        service = ReviewService(memory_repo)
        rate = await service.forgetting_rate(NOW)
        outcome = await service.submit_review(card_id, 4, NOW)
        return rate, outcome

    rate, outcome = asyncio.run(scenario())

    # The 45-day-old review is outside the window
    assert rate == pytest.approx(2 / 3)
    assert outcome.forget_rate == pytest.approx(2 / 3)
    assert outcome.ease_multiplier == 0.9


def test_vanished_card_is_skipped(memory_repo):
    service = ReviewService(memory_repo)

    assert asyncio.run(service.submit_review(99, 3, NOW)) is None
    assert asyncio.run(memory_repo.get_all("logs")) == []


@pytest.mark.parametrize(
    "make_repo",
    [lambda: DeletesDuringLogRead(card_id=1), DeletesAfterCardRead],
    ids=["deleted-during-log-read", "deleted-after-card-read"],
)
def test_card_deleted_mid_review_stays_deleted(make_repo):
    async def scenario():
        repo = make_repo()
        card_id = await repo.add("cards", make_card(id=None))
        service = ReviewService(repo)
        outcome = await service.submit_review(card_id, 3, NOW)
        return (
            outcome,
            service,
            await repo.get_all("cards"),
            await repo.get_all("logs"),
        )

    outcome, service, cards, logs = asyncio.run(scenario())

    assert outcome is None
    assert cards == []
    assert logs == []
    assert service._in_flight == set()


def test_invalid_grade_writes_nothing(memory_repo):
    async def scenario():
        card_id = await memory_repo.add("cards", make_card(id=None))
        service = ReviewService(memory_repo)
        with pytest.raises(InvalidGradeError):
            await service.submit_review(card_id, 7, NOW)
        return await memory_repo.get("cards", card_id), await memory_repo.get_all("logs")

    card, logs = asyncio.run(scenario())

    assert card.repetitions == 0
    assert logs == []


def test_concurrent_review_of_same_card_is_rejected():
    async def scenario():
        repo = GatedRepository()
        card_id = await repo.add("cards", make_card(id=None))
        service = ReviewService(repo)

        first = asyncio.create_task(service.submit_review(card_id, 3, NOW))
        await repo.entered.wait()
        with pytest.raises(ReviewInProgressError):
            await service.submit_review(card_id, 4, NOW)

        repo.gate.set()
        outcome = await first
        return outcome, await repo.get_all("logs")

    outcome, logs = asyncio.run(scenario())

    assert outcome.card.repetitions == 1
    assert len(logs) == 1


def test_failed_write_leaves_state_untouched():
    async def scenario():
        repo = FailingCardWrites()
        card_id = await repo.add("cards", make_card(id=None))
        service = ReviewService(repo)
        with pytest.raises(PersistenceError):
            await service.submit_review(card_id, 3, NOW)
        return service, await repo.get("cards", card_id), await repo.get_all("logs")

    service, card, logs = asyncio.run(scenario())

    assert card.repetitions == 0
    assert card.last_review_at is None
    assert logs == []
    assert service._in_flight == set()


def test_due_queue_is_a_fresh_snapshot(memory_repo):
    async def scenario():
        service = ReviewService(memory_repo)
        card_id = await memory_repo.add("cards", make_card(id=None))
        before = await service.due_queue(NOW)
        await service.submit_review(card_id, 4, NOW)
        after = await service.due_queue(NOW)
        return before, after

    before, after = asyncio.run(scenario())

    assert len(before) == 1
    assert after == []
