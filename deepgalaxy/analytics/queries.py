"""
Data-loading helpers for analytics.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from deepgalaxy.scheduling.repository import Repository
from deepgalaxy.scheduling.schemas import Card, ReviewLogEntry


LOG_COLUMNS = ["card_id", "reviewed_at", "quality", "day_utc"]
CARD_COLUMNS = ["card_id", "deck_id", "repetitions", "interval_days", "ease_factor"]


def logs_to_df(logs: Iterable[ReviewLogEntry]) -> pd.DataFrame:
    """
    Review log entries as a dataframe sorted by review time.
    """
    rows = [
        {"card_id": log.card_id, "reviewed_at": log.reviewed_at, "quality": log.quality}
        for log in logs
    ]
    if not rows:
        return pd.DataFrame(columns=LOG_COLUMNS)

    df = pd.DataFrame(rows)
    df["reviewed_at"] = pd.to_datetime(df["reviewed_at"], utc=True)
    df["day_utc"] = df["reviewed_at"].dt.floor("D")
    return df.sort_values("reviewed_at").reset_index(drop=True)


def cards_to_df(cards: Iterable[Card]) -> pd.DataFrame:
    rows = [
        {
            "card_id": card.id,
            "deck_id": card.deck_id,
            "repetitions": card.repetitions,
            "interval_days": card.interval_days,
            "ease_factor": card.ease_factor,
        }
        for card in cards
    ]
    if not rows:
        return pd.DataFrame(columns=CARD_COLUMNS)
    return pd.DataFrame(rows)


async def load_review_logs_df(repository: Repository) -> pd.DataFrame:
    return logs_to_df(await repository.get_all("logs"))


async def load_cards_df(repository: Repository) -> pd.DataFrame:
    return cards_to_df(await repository.get_all("cards"))
