"""
Types for the dashboard.
"""

from __future__ import annotations

from dataclasses import dataclass

import pandas as pd


@dataclass(frozen=True)
class DashboardData:
    """
    Precomputed KPI values and series for the dashboard.
    """
    due_count: int
    total_cards: int
    retention_rate_7d: int  # percent of successful reviews in the last 7 days
    forget_rate: float  # lapse share over the trailing 30 days
    struggling_cards: int  # cards with EF below 1.5
    daily_reviews: pd.Series
