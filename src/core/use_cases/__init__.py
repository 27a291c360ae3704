"""Use case layer for business logic (Clean Architecture)."""

from .aggregate_metrics import (
    AggregateMetricsUseCase,
    AggregatedMetrics,
    InvalidWindowError,
    MetricsError,
    PeriodTotals,
    StoreUnavailableError,
)
from .get_audience_overview import AudienceOverview, GetAudienceOverviewUseCase
from .get_top_content import GetTopContentUseCase
from .record_daily_metrics import DailyMetricsSnapshotError, RecordDailyMetricsUseCase

__all__ = [
    "AggregateMetricsUseCase",
    "AggregatedMetrics",
    "PeriodTotals",
    "MetricsError",
    "InvalidWindowError",
    "StoreUnavailableError",
    "AudienceOverview",
    "GetAudienceOverviewUseCase",
    "GetTopContentUseCase",
    "RecordDailyMetricsUseCase",
    "DailyMetricsSnapshotError",
]
