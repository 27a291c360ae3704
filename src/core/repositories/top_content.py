"""Repository for the recent-media table behind the top content section."""

from __future__ import annotations

from typing import Any, Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .base import BaseRepository
from ..models.top_content import TopContent

CONTENT_FIELDS = frozenset(
    {
        "media_type",
        "media_url",
        "thumbnail_url",
        "caption",
        "permalink",
        "like_count",
        "comments_count",
        "posted_at",
    }
)


class TopContentRepository(BaseRepository[TopContent]):
    """Upsert media by Instagram ID and read the most liked posts."""

    def __init__(self, session: AsyncSession):
        super().__init__(TopContent, session)

    async def get_top(self, limit: int = 5) -> list[TopContent]:
        stmt = (
            select(TopContent)
            .order_by(TopContent.like_count.desc(), TopContent.comments_count.desc(), TopContent.id.asc())
            .limit(limit)
        )
        return await self._all(stmt)

    async def upsert_many(self, items: Iterable[dict[str, Any]]) -> int:
        """Insert or update each item keyed by ``id``; returns how many were written."""
        written = 0
        for item in items:
            fields = dict(item)
            media_id = fields.pop("id")
            unknown = set(fields) - CONTENT_FIELDS
            if unknown:
                raise ValueError(f"Unknown top content fields: {', '.join(sorted(unknown))}")

            record = await self.get_by_id(media_id)
            if record:
                for name, value in fields.items():
                    setattr(record, name, value)
            else:
                await self.create(TopContent(id=media_id, **fields))
            written += 1

        await self.session.flush()
        return written
