"""Repository for daily Instagram metrics snapshots."""

from __future__ import annotations

from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models.daily_metrics import DailyMetrics

SNAPSHOT_FIELDS = frozenset(
    {
        "followers_count",
        "media_count",
        "reach_daily",
        "impressions_daily",
        "profile_views_daily",
        "email_contacts",
        "website_clicks",
        "phone_call_clicks",
        "text_message_clicks",
        "get_directions_clicks",
        "reach_28d",
        "impressions_28d",
        "audience_city",
        "audience_gender_age",
        "audience_country",
        "audience_locale",
        "online_followers",
        "raw_payload",
    }
)


class DailyMetricsRepository(BaseRepository[DailyMetrics]):
    """Read daily snapshots by date range and upsert one row per day."""

    def __init__(self, session: AsyncSession):
        super().__init__(DailyMetrics, session)

    async def get_between(self, start: date, end: date, *, include_end: bool = True) -> list[DailyMetrics]:
        """Snapshots from ``start`` up to ``end`` ordered by date ascending."""
        upper = DailyMetrics.date <= end if include_end else DailyMetrics.date < end
        stmt = (
            select(DailyMetrics)
            .where(DailyMetrics.date >= start, upper)
            .order_by(DailyMetrics.date.asc())
        )
        return await self._all(stmt)

    async def get_latest(self) -> DailyMetrics | None:
        stmt = select(DailyMetrics).order_by(DailyMetrics.date.desc()).limit(1)
        return await self._first(stmt)

    async def get_by_date(self, snapshot_date: date) -> DailyMetrics | None:
        return await self._first(select(DailyMetrics).where(DailyMetrics.date == snapshot_date))

    async def upsert_snapshot(self, *, snapshot_date: date, **fields: Any) -> DailyMetrics:
        unknown = set(fields) - SNAPSHOT_FIELDS
        if unknown:
            raise ValueError(f"Unknown daily metrics fields: {', '.join(sorted(unknown))}")

        record = await self.get_by_date(snapshot_date)
        if record:
            for name, value in fields.items():
                setattr(record, name, value)
        else:
            return await self.create(DailyMetrics(date=snapshot_date, **fields))

        await self.session.flush()
        return record
