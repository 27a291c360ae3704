from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Query

from api_v1.common.errors import JsonApiError
from api_v1.common.schemas import SimpleMeta
from api_v1.common.security import require_service_token
from api_v1.metrics.schemas import (
    AggregatedMetricsPayload,
    AggregatedMetricsResponse,
    AudienceOverviewPayload,
    AudienceOverviewResponse,
    CitiesSchema,
    GenderAgeSchema,
    SnapshotPayload,
    SnapshotResponse,
    StatesSchema,
    StateShareSchema,
    TopContentItemSchema,
    TopContentPayload,
    TopContentResponse,
)
from core.config import settings
from core.constants.brazil_states import STATE_CODE_TO_NAME
from core.dependencies import (
    get_aggregate_metrics_use_case,
    get_audience_overview_use_case,
    get_record_daily_metrics_use_case,
    get_top_content_use_case,
)
from core.use_cases.aggregate_metrics import (
    AggregateMetricsUseCase,
    InvalidWindowError,
    StoreUnavailableError,
)
from core.use_cases.get_audience_overview import AudienceOverview, GetAudienceOverviewUseCase
from core.use_cases.get_top_content import MAX_TOP_CONTENT, GetTopContentUseCase
from core.use_cases.record_daily_metrics import DailyMetricsSnapshotError, RecordDailyMetricsUseCase

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/metrics", tags=["Metrics"])


@router.get(
    "",
    response_model=AggregatedMetricsResponse,
    summary="Aggregate daily metrics over a window",
    description=(
        "Sums reach, impressions and interactions over the last `days` days, "
        "compares them with the preceding window of the same length and attaches "
        "the audience breakdowns of the most recent snapshot."
    ),
)
async def get_metrics(
    days: int = Query(30, description="Window length in days"),
    use_case: AggregateMetricsUseCase = Depends(get_aggregate_metrics_use_case),
):
    if days not in settings.metrics.allowed_windows:
        allowed = ", ".join(str(window) for window in settings.metrics.allowed_windows)
        raise JsonApiError(400, 4000, f"days must be one of: {allowed}")

    try:
        result = await use_case.execute(days)
    except InvalidWindowError as exc:
        raise JsonApiError(exc.status_code, 4020, str(exc))
    except StoreUnavailableError as exc:
        logger.error("Metrics aggregation failed | days=%s | error=%s", days, exc)
        raise JsonApiError(exc.status_code, 5020, "Metrics store is unavailable")

    payload = AggregatedMetricsPayload(**result.to_dict())
    return AggregatedMetricsResponse(meta=SimpleMeta(), payload=payload)


@router.get(
    "/audience",
    response_model=AudienceOverviewResponse,
    summary="Audience charts from the latest snapshot",
    description="Gender split, age buckets, top cities and Brazilian state ranking with map colours.",
)
async def get_audience(
    use_case: GetAudienceOverviewUseCase = Depends(get_audience_overview_use_case),
):
    try:
        overview = await use_case.execute()
    except StoreUnavailableError as exc:
        logger.error("Audience overview failed | error=%s", exc)
        raise JsonApiError(exc.status_code, 5021, "Metrics store is unavailable")

    return AudienceOverviewResponse(meta=SimpleMeta(), payload=serialize_audience(overview))


@router.get(
    "/top-content",
    response_model=TopContentResponse,
    summary="Most liked recent posts",
    description="Recent media stored by the daily ingestion, ordered by like count.",
)
async def get_top_content(
    limit: int = Query(5, ge=1, le=MAX_TOP_CONTENT, description="Number of posts to return"),
    use_case: GetTopContentUseCase = Depends(get_top_content_use_case),
):
    try:
        items = await use_case.execute(limit)
    except StoreUnavailableError as exc:
        logger.error("Top content failed | error=%s", exc)
        raise JsonApiError(exc.status_code, 5023, "Metrics store is unavailable")

    payload = TopContentPayload(items=[TopContentItemSchema.model_validate(item) for item in items])
    return TopContentResponse(meta=SimpleMeta(), payload=payload)


@router.post(
    "/snapshots",
    response_model=SnapshotResponse,
    summary="Record today's metrics snapshot",
    description="Fetches insights from Instagram and upserts the snapshot for the current UTC day.",
)
async def record_snapshot(
    _: dict = Depends(require_service_token),
    use_case: RecordDailyMetricsUseCase = Depends(get_record_daily_metrics_use_case),
):
    try:
        result = await use_case.execute()
    except DailyMetricsSnapshotError as exc:
        logger.error("Manual snapshot failed | error=%s", exc)
        raise JsonApiError(exc.status_code, 5022, str(exc))

    return SnapshotResponse(meta=SimpleMeta(), payload=SnapshotPayload(**result))


def serialize_audience(overview: AudienceOverview) -> AudienceOverviewPayload:
    states = overview.states
    return AudienceOverviewPayload(
        snapshot_date=overview.snapshot_date,
        gender_age=GenderAgeSchema.model_validate(overview.gender_age),
        cities=CitiesSchema.model_validate(overview.cities),
        states=StatesSchema(
            totals=states.totals,
            ranking=[StateShareSchema.model_validate(item) for item in states.ranking],
            max_value=states.max_value,
            colors={code: states.color_for(code) for code in STATE_CODE_TO_NAME},
        ),
        countries=overview.countries,
    )
