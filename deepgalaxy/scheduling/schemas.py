"""
Pydantic models for decks, cards and review log entries.

Field names are Pythonic; each field also accepts the camelCase key used by
the exported record store (n, I, EF, nextReviewAt, ...) so that restored
records validate directly.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from deepgalaxy.scheduling.constants import (
    EF_FLOOR,
    INITIAL_EASE_FACTOR,
    MAX_QUALITY,
    MIN_QUALITY,
)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Normalize a timestamp to an aware UTC datetime.

    Naive values (as returned by SQLite) are taken to already be UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Deck(BaseModel):
    """A named collection of cards."""
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    name: str = ""
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)


class Card(BaseModel):
    """
    A learnable unit and its SM-2 scheduling state.

    Invariants:
    - ease_factor >= 1.3
    - repetitions and interval_days are non-negative
    - interval_days >= 1 once the card has been reviewed
    """
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[int] = None
    deck_id: int = Field(0, alias="deckId")

    # Content (opaque to the scheduler)
    front_text: str = Field("", alias="frontText")
    back_text: str = Field("", alias="backText")
    front_image: Optional[str] = Field(None, alias="frontImage")
    back_image: Optional[str] = Field(None, alias="backImage")

    # Scheduling state
    repetitions: int = Field(0, alias="n", ge=0)
    interval_days: int = Field(0, alias="I", ge=0)
    ease_factor: float = Field(INITIAL_EASE_FACTOR, alias="EF", ge=EF_FLOOR)
    next_review_at: Optional[datetime] = Field(None, alias="nextReviewAt")
    last_review_at: Optional[datetime] = Field(None, alias="lastReviewAt")
    total_successes: Optional[int] = Field(0, alias="totalSuccesses", ge=0)

    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("next_review_at", "last_review_at", "created_at", "updated_at")
    @classmethod
    def normalize_timestamps(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value)

    @model_validator(mode="after")
    def _check_reviewed_interval(self) -> "Card":
        if self.last_review_at is not None and self.interval_days < 1:
            raise ValueError("interval_days must be >= 1 once a card has been reviewed")
        return self

    @property
    def is_new(self) -> bool:
        """True until the card has a successful repetition since its last lapse."""
        return self.repetitions == 0

    def rescheduled(self, **changes) -> "Card":
        """Return a validated copy with the given fields replaced."""
        return Card.model_validate({**self.model_dump(), **changes})


class ReviewLogEntry(BaseModel):
    """
    Immutable record of one review event.

    Captures the quality and the interval/ease snapshots before and after.
    """
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: Optional[int] = None
    card_id: int = Field(..., alias="cardId")
    reviewed_at: datetime = Field(..., alias="reviewedAt")
    quality: int = Field(..., alias="q", ge=MIN_QUALITY, le=MAX_QUALITY)

    interval_before: int = Field(0, alias="intervalBefore", ge=0)
    ease_before: float = Field(INITIAL_EASE_FACTOR, alias="efBefore")
    interval_after: int = Field(0, alias="intervalAfter", ge=0)
    ease_after: float = Field(INITIAL_EASE_FACTOR, alias="EF")

    @field_validator("reviewed_at")
    @classmethod
    def normalize_timestamps(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def is_lapse(self) -> bool:
        return self.quality < 3
