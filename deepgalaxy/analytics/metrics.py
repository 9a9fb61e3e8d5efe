"""
Metric computations for the dashboard.
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pandas as pd

from deepgalaxy.scheduling.constants import (
    PASSING_QUALITY,
    RECENT_WINDOW_DAYS,
    STRUGGLING_EASE_FACTOR,
)
from deepgalaxy.scheduling.schemas import ensure_utc
from deepgalaxy.scheduling.sm2 import round_half_up


def build_day_index(logs_df: pd.DataFrame) -> pd.DatetimeIndex:
    """
    Build a dense UTC day index spanning the review range.
    """
    if logs_df.empty:
        return pd.DatetimeIndex([], tz="UTC")
    start = logs_df["day_utc"].min()
    end = logs_df["day_utc"].max()
    return pd.date_range(start=start, end=end, freq="D")


def compute_daily_reviews(logs_df: pd.DataFrame, day_index: pd.DatetimeIndex) -> pd.Series:
    """
    Number of reviews per UTC day, zero-filled.
    """
    if logs_df.empty or len(day_index) == 0:
        return pd.Series(dtype="int64")
    counts = logs_df.groupby("day_utc").size()
    return counts.reindex(day_index, fill_value=0).astype("int64")


def compute_retention_rate(
    logs_df: pd.DataFrame,
    now: datetime,
    days: int = RECENT_WINDOW_DAYS
) -> int:
    """
    Percentage (0-100, rounded) of reviews with q >= 3 in the last `days` days.
    """
    if logs_df.empty:
        return 0
    now_ts = pd.Timestamp(ensure_utc(now))
    cutoff = pd.Timestamp(ensure_utc(now) - timedelta(days=days))
    recent = logs_df[(logs_df["reviewed_at"] > cutoff) & (logs_df["reviewed_at"] <= now_ts)]
    if recent.empty:
        return 0
    passed = int((recent["quality"] >= PASSING_QUALITY).sum())
    return round_half_up(passed / len(recent) * 100)


def compute_struggling_count(cards_df: pd.DataFrame) -> int:
    """
    Cards whose ease factor has sunk below the struggling threshold.
    """
    if cards_df.empty:
        return 0
    return int((cards_df["ease_factor"] < STRUGGLING_EASE_FACTOR).sum())
