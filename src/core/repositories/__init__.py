"""Repository pattern implementations for clean data access."""

from .base import BaseRepository
from .daily_metrics import DailyMetricsRepository
from .top_content import TopContentRepository

__all__ = [
    "BaseRepository",
    "DailyMetricsRepository",
    "TopContentRepository",
]
