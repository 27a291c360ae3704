"""
Celery worker entry point that ensures all tasks are imported
"""

import logging
import sys

sys.path.insert(0, "/app/src")

# Register task modules
import core.tasks.metrics_tasks  # noqa: F401

from core.celery_app import celery_app
from core.logging_config import configure_logging

app = celery_app

configure_logging()
logging.getLogger(__name__).info("Celery worker logging configured")
