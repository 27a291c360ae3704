from __future__ import annotations

import datetime as dt

from sqlalchemy import Date, DateTime, Integer
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base
from ..utils.time import now_db_utc


class DailyMetrics(Base):
    """One row per calendar day of Instagram account metrics."""

    __tablename__ = "daily_metrics"

    date: Mapped[dt.date] = mapped_column(Date, nullable=False, unique=True, comment="Snapshot day (natural key)")
    followers_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    media_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    # Single-day counters
    reach_daily: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    impressions_daily: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    profile_views_daily: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    email_contacts: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    website_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    phone_call_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    text_message_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    get_directions_clicks: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Rolling 28-day counters
    reach_28d: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    impressions_28d: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Audience breakdowns: flat {label: count} or [{value, dimension_values}]
    audience_city = mapped_column(JSONB, nullable=True, comment="Followers by city")
    audience_gender_age = mapped_column(JSONB, nullable=True, comment="Followers by gender and age bucket")
    audience_country = mapped_column(JSONB, nullable=True, comment="Followers by country")
    audience_locale = mapped_column(JSONB, nullable=True, comment="Followers by locale")
    online_followers = mapped_column(JSONB, nullable=True, comment="Followers online per hour")

    raw_payload = mapped_column(JSONB, nullable=False, default=dict, comment="Raw Instagram API responses")
    created_at: Mapped[dt.datetime] = mapped_column(DateTime, default=now_db_utc, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(DateTime, default=now_db_utc, onupdate=now_db_utc, nullable=False)
