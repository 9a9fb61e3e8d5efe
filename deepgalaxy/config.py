"""
Environment-driven configuration and logging setup.

Settings are read from the process environment (optionally seeded from a
.env file):

- DATABASE_URL: SQLAlchemy URL (default: local SQLite file)
- TEST_MODE: "true" switches to the test database
- LOG_LEVEL: logging level name (default: INFO)
- LOG_FILE: optional path for a rotating log file
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment
load_dotenv()

DEFAULT_DATABASE_URL = "sqlite:///data/deepgalaxy.db"
DEFAULT_DB_NAME = "deepgalaxy"
TEST_DB_NAME = "test_deepgalaxy"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def is_test_mode() -> bool:
    """Check if running in test mode."""
    return os.getenv("TEST_MODE", "false").lower() == "true"


def get_database_url() -> str:
    """
    Get the database URL from environment variables.

    In test mode the database name 'deepgalaxy' is replaced with
    'test_deepgalaxy', so the same DATABASE_URL can serve both.

    Returns:
        SQLAlchemy connection string
    """
    base_url = os.getenv("DATABASE_URL") or DEFAULT_DATABASE_URL
    if is_test_mode():
        return base_url.replace(DEFAULT_DB_NAME, TEST_DB_NAME)
    return base_url


def get_log_level() -> int:
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_name, logging.INFO)


def configure_logging(log_file: Optional[str] = None) -> None:
    """
    Install console (and optional rotating file) handlers on the root logger.

    Args:
        log_file: Path for the log file; defaults to LOG_FILE from the environment
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [console_handler]

    log_file = log_file or os.getenv("LOG_FILE")
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(path, maxBytes=5_000_000, backupCount=5)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    root_logger = logging.getLogger()
    root_logger.setLevel(get_log_level())
    root_logger.handlers = handlers
