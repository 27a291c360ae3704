from __future__ import annotations

import asyncio
import logging
from typing import Callable, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import ITopContentRepository
from ..models.top_content import TopContent
from .aggregate_metrics import STORE_ERRORS, MetricsError, StoreUnavailableError

logger = logging.getLogger(__name__)

MAX_TOP_CONTENT = 50


class GetTopContentUseCase:
    """Most liked recent posts for the site's top content section."""

    def __init__(
        self,
        session: AsyncSession,
        top_content_repository_factory: Callable[..., ITopContentRepository],
        store_timeout_seconds: float = 10.0,
    ):
        self.session = session
        self.repo: ITopContentRepository = top_content_repository_factory(session=session)
        self.store_timeout_seconds = store_timeout_seconds

    async def execute(self, limit: int = 5) -> Sequence[TopContent]:
        if isinstance(limit, bool) or not isinstance(limit, int) or not 1 <= limit <= MAX_TOP_CONTENT:
            raise MetricsError(f"limit must be between 1 and {MAX_TOP_CONTENT}, got {limit!r}")

        try:
            items = await asyncio.wait_for(self.repo.get_top(limit), timeout=self.store_timeout_seconds)
        except STORE_ERRORS as exc:
            logger.error("Top content read failed | error=%r", exc)
            raise StoreUnavailableError("Snapshot store unavailable while reading top content") from exc

        logger.debug("Top content loaded | limit=%s | count=%s", limit, len(items))
        return items
