"""
SQLAlchemy ORM Models for the record store

Defines Deck, Card and ReviewLog tables. Secondary indexes mirror the
lookups the scheduler needs: cards by deck, logs by review time.
"""

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class DeckModel(Base):
    """A named collection of cards."""
    __tablename__ = 'decks'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, default="")
    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<DeckModel(id={self.id}, name={self.name!r})>"


class CardModel(Base):
    """
    Persistent flashcard with its SM-2 scheduling state.
    """
    __tablename__ = 'cards'

    id = Column(Integer, primary_key=True, autoincrement=True)
    deck_id = Column(Integer, ForeignKey('decks.id'), nullable=False, index=True)

    # Content (opaque to the scheduler)
    front_text = Column(Text, nullable=False, default="")
    back_text = Column(Text, nullable=False, default="")
    front_image = Column(Text, nullable=True)
    back_image = Column(Text, nullable=True)

    # SM-2 state
    repetitions = Column(Integer, nullable=False, default=0)  # n
    interval_days = Column(Integer, nullable=False, default=0)  # I
    ease_factor = Column(Float, nullable=False, default=2.5)  # EF
    next_review_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_review_at = Column(DateTime(timezone=True), nullable=True)
    total_successes = Column(Integer, nullable=True, default=0)

    created_at = Column(DateTime(timezone=True), nullable=True)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    def __repr__(self):
        return f"<CardModel(id={self.id}, deck={self.deck_id}, n={self.repetitions}, I={self.interval_days})>"


class ReviewLogModel(Base):
    """
    Append-only log entry for a single review.
    """
    __tablename__ = 'review_logs'

    id = Column(Integer, primary_key=True, autoincrement=True)
    # No foreign key: logs outlive deleted cards
    card_id = Column(Integer, nullable=False, index=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=False, index=True)
    quality = Column(Integer, nullable=False, index=True)  # q, 1-5

    interval_before = Column(Integer, nullable=False)
    ease_before = Column(Float, nullable=False)
    interval_after = Column(Integer, nullable=False)
    ease_after = Column(Float, nullable=False)

    def __repr__(self):
        return f"<ReviewLogModel(id={self.id}, card={self.card_id}, q={self.quality})>"
