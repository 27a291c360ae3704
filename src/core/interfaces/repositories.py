"""Repository protocols consumed by use cases."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING, Any, Iterable, Optional, Protocol, Sequence

if TYPE_CHECKING:
    from core.models.daily_metrics import DailyMetrics
    from core.models.top_content import TopContent


class IDailyMetricsRepository(Protocol):
    async def get_between(
        self,
        start: date,
        end: date,
        *,
        include_end: bool = True,
    ) -> Sequence["DailyMetrics"]:
        ...

    async def get_latest(self) -> Optional["DailyMetrics"]:
        ...

    async def get_by_date(self, snapshot_date: date) -> Optional["DailyMetrics"]:
        ...

    async def upsert_snapshot(self, *, snapshot_date: date, **fields: Any) -> "DailyMetrics":
        ...


class ITopContentRepository(Protocol):
    async def get_top(self, limit: int = 5) -> Sequence["TopContent"]:
        ...

    async def upsert_many(self, items: Iterable[dict[str, Any]]) -> int:
        ...
