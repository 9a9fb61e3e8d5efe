"""
Service layer to assemble the dashboard.
"""

from __future__ import annotations

from datetime import datetime

from deepgalaxy.analytics.metrics import (
    build_day_index,
    compute_daily_reviews,
    compute_retention_rate,
    compute_struggling_count,
)
from deepgalaxy.analytics.queries import load_cards_df, load_review_logs_df
from deepgalaxy.analytics.types import DashboardData
from deepgalaxy.scheduling.repository import Repository
from deepgalaxy.scheduling.service import ReviewService


async def build_dashboard(repository: Repository, now: datetime) -> DashboardData:
    """
    Build all KPI values and series shown on the dashboard.
    """
    service = ReviewService(repository)
    due = await service.ranked_queue(now)
    forget_rate = await service.forgetting_rate(now)

    logs_df = await load_review_logs_df(repository)
    cards_df = await load_cards_df(repository)
    day_index = build_day_index(logs_df)

    return DashboardData(
        due_count=len(due),
        total_cards=len(cards_df),
        retention_rate_7d=compute_retention_rate(logs_df, now),
        forget_rate=forget_rate,
        struggling_cards=compute_struggling_count(cards_df),
        daily_reviews=compute_daily_reviews(logs_df, day_index),
    )
