from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IDailyMetricsRepository
from ..schemas.breakdown import Number, normalize_breakdown
from ..utils.audience import (
    CityBreakdown,
    GenderAgeBreakdown,
    StateBreakdown,
    reduce_cities,
    reduce_gender_age,
    reduce_states,
)
from .aggregate_metrics import STORE_ERRORS, StoreUnavailableError

logger = logging.getLogger(__name__)


@dataclass
class AudienceOverview:
    snapshot_date: date | None = None
    gender_age: GenderAgeBreakdown = field(default_factory=GenderAgeBreakdown)
    cities: CityBreakdown = field(default_factory=CityBreakdown)
    states: StateBreakdown = field(default_factory=StateBreakdown)
    countries: Dict[str, Number] = field(default_factory=dict)


class GetAudienceOverviewUseCase:
    """Build the audience charts from the most recent snapshot."""

    def __init__(
        self,
        session: AsyncSession,
        daily_metrics_repository_factory: Callable[..., IDailyMetricsRepository],
        store_timeout_seconds: float = 10.0,
    ):
        self.session = session
        self.repo: IDailyMetricsRepository = daily_metrics_repository_factory(session=session)
        self.store_timeout_seconds = store_timeout_seconds

    async def execute(self) -> AudienceOverview:
        try:
            latest = await asyncio.wait_for(self.repo.get_latest(), timeout=self.store_timeout_seconds)
        except STORE_ERRORS as exc:
            logger.error("Latest snapshot read failed | error=%r", exc)
            raise StoreUnavailableError("Snapshot store unavailable while reading latest snapshot") from exc

        if latest is None:
            logger.info("No snapshots stored yet; audience overview is empty")
            return AudienceOverview()

        # Normalize once; reducers only see canonical mappings
        city = normalize_breakdown(latest.audience_city)
        gender_age = normalize_breakdown(latest.audience_gender_age)

        return AudienceOverview(
            snapshot_date=latest.date,
            gender_age=reduce_gender_age(gender_age),
            cities=reduce_cities(city),
            states=reduce_states(city),
            countries=normalize_breakdown(latest.audience_country),
        )
