from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..interfaces.repositories import IDailyMetricsRepository, ITopContentRepository
from ..interfaces.services import IInstagramService
from ..schemas.breakdown import parse_breakdown
from ..utils.time import today_utc

logger = logging.getLogger(__name__)

DAILY_METRICS = {
    "reach": "reach_daily",
    "impressions": "impressions_daily",
    "profile_views": "profile_views_daily",
    "email_contacts": "email_contacts",
    "phone_call_clicks": "phone_call_clicks",
    "text_message_clicks": "text_message_clicks",
    "get_directions_clicks": "get_directions_clicks",
    "website_clicks": "website_clicks",
}
ROLLING_METRICS = {
    "reach": "reach_28d",
    "impressions": "impressions_28d",
}
AUDIENCE_METRICS = ("audience_city", "audience_country", "audience_gender_age", "audience_locale")
RECENT_MEDIA_LIMIT = 50


class DailyMetricsSnapshotError(Exception):
    """Raised when recording the daily metrics snapshot fails."""

    def __init__(self, message: str, status_code: int = 502):
        super().__init__(message)
        self.status_code = status_code


def extract_metric_value(payload: Dict[str, Any] | None, name: str, default: Any = None) -> Any:
    """Pull one metric's value out of an insights response.

    Handles ``values[0].value`` (period metrics, legacy lifetime breakdowns) and
    ``total_value`` with or without ``breakdowns`` (current demographics API,
    which yields ``[{"value", "dimension_values"}]`` results). Shapes that match
    none of these yield ``default``.
    """
    if not isinstance(payload, dict):
        return default
    metrics = payload.get("data")
    if not isinstance(metrics, list):
        return default

    for metric in metrics:
        if not isinstance(metric, dict) or metric.get("name") != name:
            continue
        values = metric.get("values")
        if isinstance(values, list) and values:
            first = values[0]
            return first.get("value", default) if isinstance(first, dict) else default
        total = metric.get("total_value")
        if not isinstance(total, dict):
            return default
        breakdowns = total.get("breakdowns")
        if isinstance(breakdowns, list) and breakdowns:
            first = breakdowns[0]
            return (first.get("results") or default) if isinstance(first, dict) else default
        return total.get("value", default)
    return default


def parse_media_timestamp(value: Any) -> Optional[datetime]:
    """Graph API timestamps ("2026-03-31T07:00:00+0000") as naive UTC."""
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S%z")
    except ValueError:
        return None
    return parsed.astimezone(timezone.utc).replace(tzinfo=None)


def _safe_int(value: Any, default: int | None = None) -> int | None:
    if value in (None, "") or isinstance(value, bool):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def media_to_record(item: Any) -> Optional[Dict[str, Any]]:
    """Map one Graph API media object onto top content columns; ``None`` without an id."""
    if not isinstance(item, dict) or not item.get("id"):
        return None
    media_url = item.get("media_url")
    return {
        "id": str(item["id"]),
        "media_type": item.get("media_type"),
        "media_url": media_url,
        "thumbnail_url": item.get("thumbnail_url") or media_url,
        "caption": item.get("caption"),
        "permalink": item.get("permalink"),
        "like_count": _safe_int(item.get("like_count"), default=0),
        "comments_count": _safe_int(item.get("comments_count"), default=0),
        "posted_at": parse_media_timestamp(item.get("timestamp")),
    }


class RecordDailyMetricsUseCase:
    """Fetch today's Instagram insights and upsert them as one daily snapshot.

    Optional insight groups (28-day counters, audience breakdowns, online
    followers) that fail to load are defaulted on insert but left untouched
    when the day's row already exists, so a retry never erases data stored
    by an earlier run. Recent media is refreshed afterwards as a separate,
    non-fatal step.
    """

    def __init__(
        self,
        session: AsyncSession,
        instagram_service: IInstagramService,
        daily_metrics_repository_factory: Callable[..., IDailyMetricsRepository],
        top_content_repository_factory: Optional[Callable[..., ITopContentRepository]] = None,
        account_id: str = "",
    ):
        self.session = session
        self.instagram_service = instagram_service
        self.account_id = account_id
        self.repo: IDailyMetricsRepository = daily_metrics_repository_factory(session=session)
        self.content_repo: Optional[ITopContentRepository] = (
            top_content_repository_factory(session=session) if top_content_repository_factory else None
        )

    async def execute(self, snapshot_date: date | None = None) -> dict:
        if not self.account_id:
            raise DailyMetricsSnapshotError("Instagram base account ID is not configured", status_code=503)

        target_date = snapshot_date or today_utc()

        profile = await self._fetch_profile()
        daily = await self._fetch_insights(
            {"metric": ",".join(DAILY_METRICS), "period": "day"},
            required=True,
        )
        rolling = await self._fetch_insights({"metric": ",".join(ROLLING_METRICS), "period": "days_28"})
        audience = await self._fetch_insights({"metric": ",".join(AUDIENCE_METRICS), "period": "lifetime"})
        online = await self._fetch_insights({"metric": "online_followers", "period": "lifetime"})

        fields: Dict[str, Any] = {
            "followers_count": _safe_int(profile.get("followers_count"), default=0),
            "media_count": _safe_int(profile.get("media_count")),
        }
        for metric, column in DAILY_METRICS.items():
            fields[column] = _safe_int(extract_metric_value(daily, metric), default=0)
        raw_parts: Dict[str, Any] = {"profile": profile, "insights_day": daily}

        try:
            existing = await self.repo.get_by_date(target_date)

            if rolling is not None or existing is None:
                for metric, column in ROLLING_METRICS.items():
                    fields[column] = _safe_int(extract_metric_value(rolling, metric), default=0)
                raw_parts["insights_28d"] = rolling or {}
            if audience is not None or existing is None:
                for metric in AUDIENCE_METRICS:
                    breakdown = parse_breakdown(extract_metric_value(audience, metric))
                    fields[metric] = breakdown.to_mapping() if breakdown is not None else None
                raw_parts["audience"] = audience or {}
            if online is not None or existing is None:
                fields["online_followers"] = extract_metric_value(online, "online_followers")
                raw_parts["online_followers"] = online or {}

            previous_raw = existing.raw_payload if existing is not None and existing.raw_payload else {}
            fields["raw_payload"] = {**previous_raw, **raw_parts}

            record = await self.repo.upsert_snapshot(snapshot_date=target_date, **fields)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.exception("Failed to store daily metrics snapshot")
            raise DailyMetricsSnapshotError("Failed to store daily metrics snapshot", status_code=503) from exc

        logger.info(
            "Recorded daily metrics snapshot | date=%s | followers=%s | reach=%s",
            target_date.isoformat(),
            record.followers_count,
            record.reach_daily,
        )
        media_saved = await self._refresh_top_content()
        return {
            "snapshot_date": target_date.isoformat(),
            "followers_count": record.followers_count,
            "reach_daily": record.reach_daily,
            "impressions_daily": record.impressions_daily,
            "media_saved": media_saved,
        }

    async def _refresh_top_content(self) -> int:
        if self.content_repo is None:
            return 0

        try:
            result = await self.instagram_service.get_recent_media(self.account_id, limit=RECENT_MEDIA_LIMIT)
        except Exception as exc:
            logger.warning("Recent media fetch failed | error=%s", exc)
            return 0
        if not result.get("success"):
            logger.warning("Recent media unavailable | error=%s", result.get("error"))
            return 0

        items = result.get("data")
        records = [record for record in map(media_to_record, items if isinstance(items, list) else []) if record]
        if not records:
            return 0

        try:
            saved = await self.content_repo.upsert_many(records)
            await self.session.commit()
        except Exception as exc:
            await self.session.rollback()
            logger.warning("Failed to store recent media | count=%s | error=%s", len(records), exc)
            return 0

        logger.info("Stored recent media | count=%s", saved)
        return saved

    async def _fetch_profile(self) -> dict[str, Any]:
        try:
            result = await self.instagram_service.get_account_profile(self.account_id)
        except Exception as exc:
            logger.exception("Failed to fetch Instagram account profile")
            raise DailyMetricsSnapshotError("Failed to fetch Instagram account profile") from exc

        if not result.get("success"):
            logger.error("Instagram account profile request failed | error=%s", result.get("error"))
            raise DailyMetricsSnapshotError("Instagram account profile request failed")

        payload = result.get("data")
        if not isinstance(payload, dict):
            logger.error("Malformed Instagram account profile | type=%s", type(payload).__name__)
            raise DailyMetricsSnapshotError("Malformed Instagram account profile")
        return payload

    async def _fetch_insights(self, params: Dict[str, Any], *, required: bool = False) -> Optional[Dict[str, Any]]:
        """Insights payload, or ``None`` when an optional group could not be loaded."""
        try:
            result = await self.instagram_service.get_insights(self.account_id, params)
        except Exception as exc:
            if required:
                logger.exception("Failed to fetch Instagram insights | params=%s", params)
                raise DailyMetricsSnapshotError("Failed to fetch Instagram insights") from exc
            logger.warning("Optional Instagram insights failed | params=%s | error=%s", params, exc)
            return None

        if not result.get("success"):
            if required:
                logger.error("Instagram insights error | params=%s | error=%s", params, result.get("error"))
                raise DailyMetricsSnapshotError("Failed to fetch Instagram insights")
            logger.warning(
                "Optional Instagram insights unavailable | params=%s | error=%s",
                params,
                result.get("error"),
            )
            return None
        data = result.get("data")
        return data if isinstance(data, dict) else {}
