"""Helpers for running async use cases inside Celery workers."""

import asyncio
import logging
from contextlib import asynccontextmanager
from functools import wraps
from typing import Callable, Optional

from ..container import get_container

logger = logging.getLogger(__name__)


def _get_worker_event_loop() -> asyncio.AbstractEventLoop:
    """
    Return the event loop shared by every task in this worker process.

    asyncpg connections are bound to the loop that opened them, so the
    container-managed engine only works if each task runs on the same loop.
    The loop is created lazily and recreated if something closed it.
    """
    loop = getattr(_get_worker_event_loop, "_loop", None)
    if loop is None or loop.is_closed():
        loop = asyncio.new_event_loop()
        _get_worker_event_loop._loop = loop  # type: ignore[attr-defined]
    return loop


def _close_worker_event_loop() -> None:
    """Close the cached worker loop; tests call this to avoid unclosed-loop warnings."""
    loop: Optional[asyncio.AbstractEventLoop] = getattr(_get_worker_event_loop, "_loop", None)  # type: ignore[attr-defined]
    if loop is not None and not loop.is_closed():
        loop.close()
        asyncio.set_event_loop(None)
    if hasattr(_get_worker_event_loop, "_loop"):
        delattr(_get_worker_event_loop, "_loop")


def async_task(celery_task_func: Callable):
    """Run an async Celery task body to completion on the worker loop."""

    @wraps(celery_task_func)
    def wrapper(*args, **kwargs):
        loop = _get_worker_event_loop()
        asyncio.set_event_loop(loop)
        logger.debug("Running async task | task=%s", celery_task_func.__name__)
        return loop.run_until_complete(celery_task_func(*args, **kwargs))

    return wrapper


@asynccontextmanager
async def get_db_session():
    """Open a session from the container-managed session factory."""
    container = get_container()
    session_factory = container.db_session_factory()

    async with session_factory() as session:
        yield session
