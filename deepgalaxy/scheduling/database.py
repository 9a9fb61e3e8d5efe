"""
Database - engine and session management for the record store.

Uses SQLAlchemy ORM; SQLite by default, any SQLAlchemy URL via DATABASE_URL.

This module handles ONLY connection setup and schema management.
Record access is handled by the repository module.
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Optional
from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from deepgalaxy.config import get_database_url
from deepgalaxy.scheduling.models import Base


logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("decks", "cards", "review_logs")


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def get_engine(database_url: Optional[str] = None) -> Engine:
    """
    Get SQLAlchemy engine for database connection.

    SQLite connections are shared across threads (the repository runs
    blocking work in worker threads); in-memory SQLite uses a single
    static connection so every session sees the same data.
    Server databases get a connection pool.

    Args:
        database_url: Connection string (defaults to DATABASE_URL)

    Returns:
        SQLAlchemy Engine instance
    """
    url = database_url or get_database_url()

    if url.startswith("sqlite"):
        if _is_memory_sqlite(url):
            return create_engine(
                url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        return create_engine(url, connect_args={"check_same_thread": False})

    return create_engine(
        url,
        pool_size=5,           # Keep 5 connections open
        max_overflow=10,       # Allow up to 10 extra connections
        pool_pre_ping=True,    # Verify connections before use
        echo=False
    )


def get_session_factory(engine: Engine) -> sessionmaker:
    """Session factory bound to an engine (objects stay usable after commit)."""
    return sessionmaker(bind=engine, expire_on_commit=False)


def ensure_sqlite_directory(engine: Engine) -> None:
    """Create the parent directory of a file-backed SQLite database."""
    database = engine.url.database
    if engine.url.get_backend_name() != "sqlite" or not database or database == ":memory:":
        return
    Path(database).parent.mkdir(parents=True, exist_ok=True)


def init_db(engine: Engine) -> None:
    """
    Initialize database schema if tables don't exist.

    Safe to call multiple times - only creates missing tables.
    """
    ensure_sqlite_directory(engine)
    existing_tables = set(inspect(engine).get_table_names())
    missing = [name for name in REQUIRED_TABLES if name not in existing_tables]
    if missing:
        Base.metadata.create_all(engine)
        logger.info("Created tables: %s", ", ".join(missing))


def reset_db(engine: Engine) -> None:
    """
    DANGEROUS: Delete all data and recreate tables.

    Only use this for testing or when you want to start fresh.
    All review history will be lost!
    """
    Base.metadata.drop_all(engine)
    logger.warning("All tables dropped")

    # Recreate tables
    init_db(engine)
