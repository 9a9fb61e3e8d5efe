"""
Analytics package exports.
"""

from deepgalaxy.analytics.service import build_dashboard
from deepgalaxy.analytics.types import DashboardData

__all__ = [
    "build_dashboard",
    "DashboardData",
]
