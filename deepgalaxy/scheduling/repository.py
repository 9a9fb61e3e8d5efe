"""
Repository - keyed record store for decks, cards and review logs.

The scheduler talks to persistence only through the async `Repository`
contract:

- get_all(kind) for "decks", "cards", "logs"
- cards_by_deck(deck_id) and logs_since(cutoff) (secondary indexes)
- get / put / update / add / delete by id

Two implementations:
- InMemoryRepository: dictionaries, used by tests and dry runs
- SqlRepository: SQLAlchemy; blocking session work runs in a worker thread
"""

from __future__ import annotations
import asyncio
import itertools
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Literal, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from deepgalaxy.errors import PersistenceError
from deepgalaxy.scheduling.database import get_session_factory
from deepgalaxy.scheduling.models import CardModel, DeckModel, ReviewLogModel
from deepgalaxy.scheduling.schemas import Card, Deck, ReviewLogEntry, ensure_utc


logger = logging.getLogger(__name__)

EntityKind = Literal["decks", "cards", "logs"]
Entity = Union[Deck, Card, ReviewLogEntry]

SCHEMA_BY_KIND = {
    "decks": Deck,
    "cards": Card,
    "logs": ReviewLogEntry,
}

MODEL_BY_KIND = {
    "decks": DeckModel,
    "cards": CardModel,
    "logs": ReviewLogModel,
}


def _check_kind(kind: str) -> None:
    if kind not in SCHEMA_BY_KIND:
        raise ValueError(f"Unknown entity kind: {kind!r}")


class Repository(ABC):
    """Async persistence contract consumed by the review service."""

    @abstractmethod
    async def get_all(self, kind: EntityKind) -> list[Entity]:
        ...

    @abstractmethod
    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        ...

    @abstractmethod
    async def add(self, kind: EntityKind, value: Entity) -> int:
        """Insert under a fresh id and return it."""
        ...

    @abstractmethod
    async def put(self, kind: EntityKind, value: Entity) -> int:
        """Overwrite the record with value.id in place (insert if new)."""
        ...

    @abstractmethod
    async def update(self, kind: EntityKind, value: Entity) -> bool:
        """
        Overwrite an existing record; never inserts.

        Returns False when no record with value.id exists (deleted meanwhile).
        """
        ...

    @abstractmethod
    async def delete(self, kind: EntityKind, entity_id: int) -> None:
        ...

    @abstractmethod
    async def cards_by_deck(self, deck_id: int) -> list[Card]:
        ...

    @abstractmethod
    async def logs_since(self, cutoff: datetime) -> list[ReviewLogEntry]:
        """Log entries with reviewed_at >= cutoff, oldest first."""
        ...


# ---- In-memory store ----

class InMemoryRepository(Repository):
    """
    Dictionary-backed repository.

    Values are copied on the way in, so callers cannot mutate stored state.
    """

    def __init__(self):
        self._records: dict[str, dict[int, Entity]] = {kind: {} for kind in SCHEMA_BY_KIND}
        self._ids = {kind: itertools.count(1) for kind in SCHEMA_BY_KIND}

    def _next_id(self, kind: str) -> int:
        records = self._records[kind]
        while True:
            candidate = next(self._ids[kind])
            if candidate not in records:
                return candidate

    async def get_all(self, kind: EntityKind) -> list[Entity]:
        _check_kind(kind)
        records = self._records[kind]
        return [records[key] for key in sorted(records)]

    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        _check_kind(kind)
        return self._records[kind].get(entity_id)

    async def add(self, kind: EntityKind, value: Entity) -> int:
        _check_kind(kind)
        new_id = self._next_id(kind)
        self._records[kind][new_id] = value.model_copy(update={"id": new_id})
        return new_id

    async def put(self, kind: EntityKind, value: Entity) -> int:
        _check_kind(kind)
        if value.id is None:
            return await self.add(kind, value)
        self._records[kind][value.id] = value.model_copy()
        return value.id

    async def update(self, kind: EntityKind, value: Entity) -> bool:
        _check_kind(kind)
        records = self._records[kind]
        if value.id is None or value.id not in records:
            return False
        records[value.id] = value.model_copy()
        return True

    async def delete(self, kind: EntityKind, entity_id: int) -> None:
        _check_kind(kind)
        self._records[kind].pop(entity_id, None)

    async def cards_by_deck(self, deck_id: int) -> list[Card]:
        return [card for card in await self.get_all("cards") if card.deck_id == deck_id]

    async def logs_since(self, cutoff: datetime) -> list[ReviewLogEntry]:
        cutoff = ensure_utc(cutoff)
        logs = [log for log in await self.get_all("logs") if log.reviewed_at >= cutoff]
        logs.sort(key=lambda log: log.reviewed_at)
        return logs


# ---- SQLAlchemy store ----

def _to_entity(kind: str, row) -> Entity:
    schema = SCHEMA_BY_KIND[kind]
    data = {name: getattr(row, name) for name in schema.model_fields}
    return schema.model_validate(data)


def _to_row(kind: str, value: Entity):
    model = MODEL_BY_KIND[kind]
    return model(**value.model_dump())


class SqlRepository(Repository):
    """
    SQLAlchemy-backed repository.

    Every call opens its own session; SQLAlchemy errors are re-raised as
    PersistenceError and the transaction is rolled back.
    """

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = get_session_factory(engine)

    @contextmanager
    def _session(self) -> Iterator[Session]:
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            logger.error("Database operation failed: %s", exc)
            raise PersistenceError(str(exc)) from exc
        finally:
            session.close()

    # -- blocking implementations --

    def _get_all_sync(self, kind: str) -> list[Entity]:
        model = MODEL_BY_KIND[kind]
        with self._session() as session:
            rows = session.query(model).order_by(model.id).all()
            return [_to_entity(kind, row) for row in rows]

    def _get_sync(self, kind: str, entity_id: int) -> Optional[Entity]:
        with self._session() as session:
            row = session.get(MODEL_BY_KIND[kind], entity_id)
            return _to_entity(kind, row) if row is not None else None

    def _add_sync(self, kind: str, value: Entity) -> int:
        with self._session() as session:
            row = _to_row(kind, value.model_copy(update={"id": None}))
            session.add(row)
            session.flush()
            return row.id

    def _put_sync(self, kind: str, value: Entity) -> int:
        with self._session() as session:
            row = session.merge(_to_row(kind, value))
            session.flush()
            return row.id

    def _update_sync(self, kind: str, value: Entity) -> bool:
        if value.id is None:
            return False
        with self._session() as session:
            row = session.get(MODEL_BY_KIND[kind], value.id)
            if row is None:
                return False
            for name, field_value in value.model_dump(exclude={"id"}).items():
                setattr(row, name, field_value)
            return True

    def _delete_sync(self, kind: str, entity_id: int) -> None:
        with self._session() as session:
            row = session.get(MODEL_BY_KIND[kind], entity_id)
            if row is not None:
                session.delete(row)

    def _cards_by_deck_sync(self, deck_id: int) -> list[Card]:
        with self._session() as session:
            rows = session.query(CardModel).filter(
                CardModel.deck_id == deck_id
            ).order_by(CardModel.id).all()
            return [_to_entity("cards", row) for row in rows]

    def _logs_since_sync(self, cutoff: datetime) -> list[ReviewLogEntry]:
        with self._session() as session:
            rows = session.query(ReviewLogModel).filter(
                ReviewLogModel.reviewed_at >= ensure_utc(cutoff)
            ).order_by(ReviewLogModel.reviewed_at, ReviewLogModel.id).all()
            return [_to_entity("logs", row) for row in rows]

    # -- async contract --

    async def get_all(self, kind: EntityKind) -> list[Entity]:
        _check_kind(kind)
        return await asyncio.to_thread(self._get_all_sync, kind)

    async def get(self, kind: EntityKind, entity_id: int) -> Optional[Entity]:
        _check_kind(kind)
        return await asyncio.to_thread(self._get_sync, kind, entity_id)

    async def add(self, kind: EntityKind, value: Entity) -> int:
        _check_kind(kind)
        return await asyncio.to_thread(self._add_sync, kind, value)

    async def put(self, kind: EntityKind, value: Entity) -> int:
        _check_kind(kind)
        return await asyncio.to_thread(self._put_sync, kind, value)

    async def update(self, kind: EntityKind, value: Entity) -> bool:
        _check_kind(kind)
        return await asyncio.to_thread(self._update_sync, kind, value)

    async def delete(self, kind: EntityKind, entity_id: int) -> None:
        _check_kind(kind)
        await asyncio.to_thread(self._delete_sync, kind, entity_id)

    async def cards_by_deck(self, deck_id: int) -> list[Card]:
        return await asyncio.to_thread(self._cards_by_deck_sync, deck_id)

    async def logs_since(self, cutoff: datetime) -> list[ReviewLogEntry]:
        return await asyncio.to_thread(self._logs_since_sync, cutoff)
