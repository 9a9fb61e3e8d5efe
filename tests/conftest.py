from datetime import datetime, timedelta, timezone

import pytest

from deepgalaxy.scheduling import (
    Card,
    InMemoryRepository,
    ReviewLogEntry,
    SqlRepository,
    get_engine,
    init_db,
)


NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_card(**overrides) -> Card:
    """Card with sensible defaults; keyword overrides use field names."""
    data = {
        "id": 1,
        "deck_id": 1,
        "front_text": "hola",
        "back_text": "hello",
    }
    data.update(overrides)
    return Card(**data)


def make_log(quality: int, reviewed_at: datetime, card_id: int = 1) -> ReviewLogEntry:
    return ReviewLogEntry(
        card_id=card_id,
        reviewed_at=reviewed_at,
        quality=quality,
        interval_before=1,
        ease_before=2.5,
        interval_after=1,
        ease_after=2.5,
    )


@pytest.fixture
def memory_repo():
    return InMemoryRepository()


@pytest.fixture
def sqlite_url(tmp_path):
    return f"sqlite:///{tmp_path / 'deepgalaxy.db'}"


@pytest.fixture
def sql_engine(sqlite_url):
    engine = get_engine(sqlite_url)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sql_repo(sql_engine):
    return SqlRepository(sql_engine)
