from celery import Celery
from celery.schedules import crontab
from celery.signals import before_task_publish, task_prerun

from core.logging_config import trace_id_ctx

from .config import settings

celery_app = Celery(
    "athlete_metrics",
    broker=settings.celery.broker_url,
    backend=settings.celery.result_backend,
    include=[
        "core.tasks.metrics_tasks",
    ],
)

# Broker connection resilience
celery_app.conf.broker_connection_retry_on_startup = True
celery_app.conf.broker_connection_retry = True
celery_app.conf.broker_connection_max_retries = 30

celery_app.conf.broker_transport_options = {
    "visibility_timeout": 3600,
    "retry_on_timeout": True,
    "max_connections": 10,
}

celery_app.conf.result_backend_transport_options = {
    "retry_on_timeout": True,
    "max_connections": 10,
}

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Logging is configured in celery_worker.py
    worker_hijack_root_logger=False,
    worker_log_format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    worker_task_log_format="%(asctime)s | %(levelname)s | %(task_name)s[%(task_id)s] | %(message)s",
    worker_redirect_stdouts=True,
    worker_redirect_stdouts_level="WARNING",
    worker_log_color=False,
    task_routes={
        "core.tasks.metrics_tasks.record_daily_metrics_task": {"queue": "instagram_queue"},
    },
    task_soft_time_limit=300,
    task_time_limit=600,
    worker_prefetch_multiplier=1,
    task_acks_late=True,
    worker_max_tasks_per_child=50,
    worker_cancel_long_running_tasks_on_connection_loss=True,
)

celery_app.conf.beat_schedule = {
    "record-daily-metrics": {
        "task": "core.tasks.metrics_tasks.record_daily_metrics_task",
        # Snapshots are keyed by UTC calendar day
        "schedule": crontab(minute=0, hour=settings.metrics.ingest_hour_utc),
    },
}


# Propagate trace_id via Celery headers
@before_task_publish.connect
def add_trace_id_on_publish(headers=None, body=None, **kwargs):
    trace_id = trace_id_ctx.get()
    if trace_id and headers is not None:
        headers.setdefault("trace_id", trace_id)


@task_prerun.connect
def bind_trace_id_on_worker(task_id=None, task=None, **kwargs):
    request = getattr(task, "request", None)
    headers = getattr(request, "headers", None) or {}
    tid = headers.get("trace_id")
    if tid:
        trace_id_ctx.set(tid)
