from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from ..utils.time import now_db_utc


class TopContent(Base):
    """Recent Instagram posts with engagement counters, refreshed by daily ingestion."""

    __tablename__ = "top_content"

    id: Mapped[str] = mapped_column(String(100), primary_key=True, comment="Instagram media ID")
    media_type: Mapped[str | None] = mapped_column(
        String(50), nullable=True, comment="Type of media (IMAGE, VIDEO, CAROUSEL_ALBUM)"
    )
    media_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    thumbnail_url: Mapped[str | None] = mapped_column(Text, nullable=True, comment="Video cover, or media_url for images")
    caption: Mapped[str | None] = mapped_column(Text, nullable=True)
    permalink: Mapped[str | None] = mapped_column(Text, nullable=True)
    like_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    comments_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    posted_at: Mapped[datetime | None] = mapped_column(
        "timestamp",
        DateTime,
        nullable=True,
        comment="When the media was posted on Instagram",
    )
    last_updated: Mapped[datetime] = mapped_column(DateTime, default=now_db_utc, onupdate=now_db_utc, nullable=False)
