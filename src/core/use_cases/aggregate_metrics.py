from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass, field
from datetime import date, timedelta
from typing import Any, Awaitable, Callable, Dict, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IDailyMetricsRepository
from ..schemas.breakdown import Number, normalize_breakdown
from ..utils.time import today_utc

logger = logging.getLogger(__name__)

T = TypeVar("T")

INTERACTION_FIELDS = (
    "profile_views_daily",
    "email_contacts",
    "website_clicks",
    "phone_call_clicks",
    "text_message_clicks",
    "get_directions_clicks",
)
BREAKDOWN_FIELDS = ("audience_city", "audience_gender_age", "audience_country")
STORE_ERRORS = (SQLAlchemyError, OSError, asyncio.TimeoutError)


class MetricsError(Exception):
    """Domain error for metrics aggregation."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


class InvalidWindowError(MetricsError):
    """Raised for a non-positive aggregation window, before any I/O."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class StoreUnavailableError(MetricsError):
    """Raised when the snapshot store fails or times out on a required read."""

    def __init__(self, message: str):
        super().__init__(message, status_code=503)


@dataclass
class PeriodTotals:
    reach: int = 0
    impressions: int = 0
    interactions: int = 0
    followers_gained: int = 0
    snapshot_count: int = 0

    @classmethod
    def from_snapshots(cls, rows: Sequence[Any]) -> "PeriodTotals":
        if not rows:
            return cls()
        return cls(
            reach=sum(_counter(row, "reach_daily") for row in rows),
            impressions=sum(_counter(row, "impressions_daily") for row in rows),
            interactions=sum(_counter(row, name) for row in rows for name in INTERACTION_FIELDS),
            # Net change between first and last snapshot, not a sum of daily deltas
            followers_gained=_counter(rows[-1], "followers_count") - _counter(rows[0], "followers_count"),
            snapshot_count=len(rows),
        )


@dataclass
class AggregatedMetrics:
    days: int
    period_start: date
    period_end: date
    total_reach: int
    total_impressions: int
    total_interactions: int
    followers_gained: int
    reach_growth: float
    impressions_growth: float
    interactions_growth: float
    followers_growth: float
    snapshot_count: int
    previous: PeriodTotals = field(default_factory=PeriodTotals)
    audience_city: Dict[str, Number] = field(default_factory=dict)
    audience_gender_age: Dict[str, Number] = field(default_factory=dict)
    audience_country: Dict[str, Number] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        payload = asdict(self)
        payload["period_start"] = self.period_start.isoformat()
        payload["period_end"] = self.period_end.isoformat()
        return payload


def _counter(row: Any, name: str) -> int:
    return getattr(row, name, None) or 0


def growth(current: Number, previous: Number) -> float:
    """Percent change versus the previous window; 0 when there is no baseline."""
    if previous == 0:
        return 0.0
    return (current - previous) / previous * 100


class AggregateMetricsUseCase:
    """Sum daily snapshots over a window and compare with the preceding window."""

    def __init__(
        self,
        session: AsyncSession,
        daily_metrics_repository_factory: Callable[..., IDailyMetricsRepository],
        store_timeout_seconds: float = 10.0,
    ):
        self.session = session
        self.repo: IDailyMetricsRepository = daily_metrics_repository_factory(session=session)
        self.store_timeout_seconds = store_timeout_seconds

    async def execute(self, days: int, *, today: date | None = None) -> AggregatedMetrics:
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise InvalidWindowError(f"Window length must be a positive number of days, got {days!r}")

        end = today or today_utc()
        start = end - timedelta(days=days)
        previous_start = end - timedelta(days=days * 2)

        current_rows = await self._read(
            "current period",
            lambda: self.repo.get_between(start, end),
        )

        try:
            previous_rows = await self._read(
                "previous period",
                lambda: self.repo.get_between(previous_start, start, include_end=False),
            )
        except StoreUnavailableError as exc:
            logger.warning(
                "Previous period unavailable, growth will be reported as 0 | days=%s | error=%s",
                days,
                exc,
            )
            previous_rows = []

        current = PeriodTotals.from_snapshots(current_rows)
        previous = PeriodTotals.from_snapshots(previous_rows)
        audience = await self._latest_audience()

        logger.info(
            "Aggregated metrics | days=%s | range=(%s,%s) | snapshots=%s | previous_snapshots=%s",
            days,
            start.isoformat(),
            end.isoformat(),
            current.snapshot_count,
            previous.snapshot_count,
        )

        return AggregatedMetrics(
            days=days,
            period_start=start,
            period_end=end,
            total_reach=current.reach,
            total_impressions=current.impressions,
            total_interactions=current.interactions,
            followers_gained=current.followers_gained,
            reach_growth=growth(current.reach, previous.reach),
            impressions_growth=growth(current.impressions, previous.impressions),
            interactions_growth=growth(current.interactions, previous.interactions),
            followers_growth=growth(current.followers_gained, previous.followers_gained),
            snapshot_count=current.snapshot_count,
            previous=previous,
            **audience,
        )

    async def _latest_audience(self) -> Dict[str, Dict[str, Number]]:
        """Breakdowns of the newest snapshot in the store, regardless of window."""
        try:
            latest = await self._read("latest snapshot", self.repo.get_latest)
        except StoreUnavailableError as exc:
            logger.warning("Latest audience snapshot unavailable | error=%s", exc)
            latest = None
        return {name: normalize_breakdown(getattr(latest, name, None)) for name in BREAKDOWN_FIELDS}

    async def _read(self, description: str, query: Callable[[], Awaitable[T]]) -> T:
        try:
            return await asyncio.wait_for(query(), timeout=self.store_timeout_seconds)
        except STORE_ERRORS as exc:
            logger.error("Snapshot store read failed | query=%s | error=%r", description, exc)
            await self._reset_session()
            raise StoreUnavailableError(f"Snapshot store unavailable while reading {description}") from exc

    async def _reset_session(self) -> None:
        try:
            await self.session.rollback()
        except SQLAlchemyError:
            logger.debug("Session rollback failed after store error", exc_info=True)
