"""
FastAPI dependencies for dependency injection.

Bridges FastAPI's dependency system and the application's DI container.
"""

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .container import Container, get_container
from .models import db_helper
from .use_cases.aggregate_metrics import AggregateMetricsUseCase
from .use_cases.get_audience_overview import GetAudienceOverviewUseCase
from .use_cases.get_top_content import GetTopContentUseCase
from .use_cases.record_daily_metrics import RecordDailyMetricsUseCase


def get_aggregate_metrics_use_case(
    session: AsyncSession = Depends(db_helper.session_dependency),
    container: Container = Depends(get_container),
) -> AggregateMetricsUseCase:
    """
    Provide AggregateMetricsUseCase with all dependencies injected.

    Usage in endpoint:
        async def my_endpoint(
            use_case: AggregateMetricsUseCase = Depends(get_aggregate_metrics_use_case)
        ):
            result = await use_case.execute(days)
    """
    return container.aggregate_metrics_use_case(session=session)


def get_audience_overview_use_case(
    session: AsyncSession = Depends(db_helper.session_dependency),
    container: Container = Depends(get_container),
) -> GetAudienceOverviewUseCase:
    """Provide GetAudienceOverviewUseCase with dependencies injected."""
    return container.get_audience_overview_use_case(session=session)


def get_record_daily_metrics_use_case(
    session: AsyncSession = Depends(db_helper.session_dependency),
    container: Container = Depends(get_container),
) -> RecordDailyMetricsUseCase:
    """Provide RecordDailyMetricsUseCase with dependencies injected."""
    return container.record_daily_metrics_use_case(session=session)


def get_top_content_use_case(
    session: AsyncSession = Depends(db_helper.session_dependency),
    container: Container = Depends(get_container),
) -> GetTopContentUseCase:
    """Provide GetTopContentUseCase with dependencies injected."""
    return container.get_top_content_use_case(session=session)
