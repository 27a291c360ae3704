"""Celery tasks for daily Instagram metrics ingestion."""

import logging

from ..celery_app import celery_app
from ..container import get_container
from ..use_cases.record_daily_metrics import DailyMetricsSnapshotError
from ..utils.task_helpers import async_task, get_db_session

logger = logging.getLogger(__name__)


async def record_daily_metrics_task_async():
    """Core implementation for recording the daily metrics snapshot."""
    async with get_db_session() as session:
        container = get_container()
        use_case = container.record_daily_metrics_use_case(session=session)

        try:
            result = await use_case.execute()
            logger.info("Daily metrics snapshot recorded | snapshot_date=%s", result["snapshot_date"])
            return {"status": "ok", **result}
        except DailyMetricsSnapshotError as exc:
            logger.error("Failed to record daily metrics snapshot | error=%s", exc)
            return {"status": "error", "reason": str(exc)}


@celery_app.task
@async_task
async def record_daily_metrics_task():
    """Celery task wrapper."""
    return await record_daily_metrics_task_async()
