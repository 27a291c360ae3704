"""Integration tests for the metrics JSON API endpoints."""

from datetime import timedelta

import pytest
from dependency_injector import providers
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.exc import OperationalError

from core.constants.brazil_states import EMPTY_STATE_COLOR, STATE_CODE_TO_NAME
from core.models import DailyMetrics, TopContent
from core.utils.time import today_utc


async def _seed_window_scenario(session_factory):
    """10 reach/day over the current 30-day window, 5 reach/day over the previous one."""
    today = today_utc()
    async with session_factory() as session:
        for offset in range(0, 30):
            session.add(
                DailyMetrics(
                    date=today - timedelta(days=offset),
                    followers_count=1029 - offset,
                    reach_daily=10,
                    impressions_daily=20,
                    profile_views_daily=1,
                    audience_city={
                        "São Paulo, São Paulo (state)": 100,
                        "Rio de Janeiro, Rio de Janeiro (state)": 50,
                    }
                    if offset == 0
                    else None,
                    audience_gender_age=[
                        {"value": 30, "dimension_values": ["M", "18-24"]},
                        {"value": 70, "dimension_values": ["F", "25-34"]},
                    ]
                    if offset == 0
                    else None,
                    raw_payload={},
                )
            )
        for offset in range(31, 61):
            session.add(
                DailyMetrics(
                    date=today - timedelta(days=offset),
                    followers_count=1000,
                    reach_daily=5,
                    impressions_daily=10,
                    raw_payload={},
                )
            )
        await session.commit()
    return today


class FailingDailyMetricsRepository:
    def __init__(self, session):
        self.session = session

    async def get_between(self, *args, **kwargs):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    async def get_latest(self):
        raise OperationalError("SELECT", {}, Exception("connection refused"))


class FailingTopContentRepository:
    def __init__(self, session):
        self.session = session

    async def get_top(self, limit=5):
        raise OperationalError("SELECT", {}, Exception("connection refused"))

    async def upsert_many(self, items):
        raise OperationalError("INSERT", {}, Exception("connection refused"))


# ---------------------------------------------------------------------------
# GET /api/v1/metrics
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_metrics_window_totals_and_growth(integration_environment):
    client: AsyncClient = integration_environment["client"]
    today = await _seed_window_scenario(integration_environment["session_factory"])

    response = await client.get("/api/v1/metrics", params={"days": 30})

    assert response.status_code == 200
    body = response.json()
    assert body["meta"]["error"] is None
    payload = body["payload"]
    assert payload["days"] == 30
    assert payload["period_end"] == today.isoformat()
    assert payload["period_start"] == (today - timedelta(days=30)).isoformat()
    assert payload["total_reach"] == 300
    assert payload["total_impressions"] == 600
    assert payload["total_interactions"] == 30
    assert payload["followers_gained"] == 29
    assert payload["snapshot_count"] == 30
    assert payload["previous"]["reach"] == 150
    assert payload["previous"]["snapshot_count"] == 30
    assert payload["reach_growth"] == pytest.approx(100.0)
    assert payload["impressions_growth"] == pytest.approx(100.0)
    # No interactions or follower change in the previous window
    assert payload["interactions_growth"] == 0.0
    assert payload["followers_growth"] == 0.0
    assert payload["audience_gender_age"] == {"M, 18-24": 30, "F, 25-34": 70}
    assert payload["audience_city"]["São Paulo, São Paulo (state)"] == 100


@pytest.mark.asyncio
async def test_metrics_empty_store_returns_zeroes(integration_environment):
    client: AsyncClient = integration_environment["client"]

    response = await client.get("/api/v1/metrics", params={"days": 60})

    assert response.status_code == 200
    payload = response.json()["payload"]
    assert payload["days"] == 60
    assert payload["total_reach"] == 0
    assert payload["snapshot_count"] == 0
    assert payload["reach_growth"] == 0.0
    assert payload["followers_growth"] == 0.0
    assert payload["audience_city"] == {}
    assert payload["audience_gender_age"] == {}


@pytest.mark.asyncio
async def test_metrics_default_window_is_30_days(integration_environment):
    client: AsyncClient = integration_environment["client"]

    response = await client.get("/api/v1/metrics")

    assert response.status_code == 200
    assert response.json()["payload"]["days"] == 30


@pytest.mark.asyncio
@pytest.mark.parametrize("days", [45, 0, -30])
async def test_metrics_rejects_unsupported_window(integration_environment, days):
    client: AsyncClient = integration_environment["client"]

    response = await client.get("/api/v1/metrics", params={"days": days})

    assert response.status_code == 400
    body = response.json()
    assert body["meta"]["error"]["code"] == 4000
    assert body["payload"] is None


@pytest.mark.asyncio
async def test_metrics_rejects_non_numeric_window(integration_environment):
    client: AsyncClient = integration_environment["client"]

    response = await client.get("/api/v1/metrics", params={"days": "abc"})

    assert response.status_code == 422
    body = response.json()
    assert body["meta"]["error"]["code"] == 4000
    assert body["meta"]["error"]["details"]


@pytest.mark.asyncio
async def test_metrics_store_failure_returns_503(integration_environment):
    client: AsyncClient = integration_environment["client"]
    container = integration_environment["container"]

    container.daily_metrics_repository_factory.override(providers.Factory(FailingDailyMetricsRepository))
    try:
        response = await client.get("/api/v1/metrics", params={"days": 30})
    finally:
        container.daily_metrics_repository_factory.reset_override()

    assert response.status_code == 503
    body = response.json()
    assert body["meta"]["error"]["code"] == 5020
    assert body["payload"] is None


# ---------------------------------------------------------------------------
# GET /api/v1/metrics/audience
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_audience_overview_from_latest_snapshot(integration_environment):
    client: AsyncClient = integration_environment["client"]
    today = await _seed_window_scenario(integration_environment["session_factory"])

    response = await client.get("/api/v1/metrics/audience")

    assert response.status_code == 200
    payload = response.json()["payload"]
    assert payload["snapshot_date"] == today.isoformat()

    gender_age = payload["gender_age"]
    assert gender_age["male"] == 30
    assert gender_age["female"] == 70
    assert gender_age["total"] == 100
    assert gender_age["male_percent"] == 30
    assert gender_age["female_percent"] == 70
    assert [bucket["label"] for bucket in gender_age["age_buckets"]] == ["18-24", "25-34"]

    cities = payload["cities"]
    assert cities["total"] == 150
    assert [city["name"] for city in cities["cities"]] == ["São Paulo", "Rio de Janeiro"]
    assert [city["percent"] for city in cities["cities"]] == [67, 33]

    states = payload["states"]
    assert states["totals"] == {"SP": 100, "RJ": 50}
    assert states["max_value"] == 100
    assert [state["code"] for state in states["ranking"]] == ["SP", "RJ"]
    assert states["ranking"][1]["bar_fraction"] == pytest.approx(0.5)
    assert set(states["colors"]) == set(STATE_CODE_TO_NAME)
    assert states["colors"]["SP"] == "rgba(240,170,40,1)"
    assert states["colors"]["AM"] == EMPTY_STATE_COLOR


@pytest.mark.asyncio
async def test_audience_overview_empty_store(integration_environment):
    client: AsyncClient = integration_environment["client"]

    response = await client.get("/api/v1/metrics/audience")

    assert response.status_code == 200
    payload = response.json()["payload"]
    assert payload["snapshot_date"] is None
    assert payload["gender_age"]["total"] == 0
    assert payload["cities"]["cities"] == []
    assert payload["states"]["ranking"] == []
    assert all(color == EMPTY_STATE_COLOR for color in payload["states"]["colors"].values())


@pytest.mark.asyncio
async def test_audience_overview_store_failure(integration_environment):
    client: AsyncClient = integration_environment["client"]
    container = integration_environment["container"]

    container.daily_metrics_repository_factory.override(providers.Factory(FailingDailyMetricsRepository))
    try:
        response = await client.get("/api/v1/metrics/audience")
    finally:
        container.daily_metrics_repository_factory.reset_override()

    assert response.status_code == 503
    assert response.json()["meta"]["error"]["code"] == 5021


# ---------------------------------------------------------------------------
# POST /api/v1/metrics/snapshots
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_record_snapshot_persists_today(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    instagram_service = integration_environment["instagram_service"]
    instagram_service.insights_responses["day"] = {
        "success": True,
        "data": {
            "data": [
                {"name": "reach", "values": [{"value": 321}]},
                {"name": "impressions", "values": [{"value": 654}]},
                {"name": "website_clicks", "total_value": {"value": 4}},
            ]
        },
    }
    instagram_service.insights_responses["lifetime"] = {
        "success": True,
        "data": {
            "data": [
                {
                    "name": "audience_city",
                    "values": [{"value": {"Curitiba, Paraná (state)": 12}}],
                },
            ]
        },
    }

    response = await client.post(
        "/api/v1/metrics/snapshots",
        headers=integration_environment["auth_headers"],
    )

    assert response.status_code == 200
    payload = response.json()["payload"]
    today = today_utc()
    assert payload == {
        "snapshot_date": today.isoformat(),
        "followers_count": 1500,
        "reach_daily": 321,
        "impressions_daily": 654,
        "media_saved": 0,
    }

    async with session_factory() as session:
        rows = (await session.execute(select(DailyMetrics))).scalars().all()
        assert len(rows) == 1
        assert rows[0].date == today
        assert rows[0].media_count == 12
        assert rows[0].website_clicks == 4
        assert rows[0].audience_city == {"Curitiba, Paraná (state)": 12}
        assert rows[0].raw_payload["profile"]["username"] == "test_account"


@pytest.mark.asyncio
async def test_record_snapshot_twice_updates_same_row(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    instagram_service = integration_environment["instagram_service"]
    headers = integration_environment["auth_headers"]

    first = await client.post("/api/v1/metrics/snapshots", headers=headers)
    instagram_service.account_profile_response = {
        "success": True,
        "data": {"followers_count": 1600, "media_count": 13},
    }
    second = await client.post("/api/v1/metrics/snapshots", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    async with session_factory() as session:
        rows = (await session.execute(select(DailyMetrics))).scalars().all()
        assert len(rows) == 1
        assert rows[0].followers_count == 1600


@pytest.mark.asyncio
async def test_record_snapshot_upstream_failure(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    instagram_service = integration_environment["instagram_service"]
    instagram_service.account_profile_response = {"success": False, "error": "boom", "status_code": 500}

    response = await client.post(
        "/api/v1/metrics/snapshots",
        headers=integration_environment["auth_headers"],
    )

    assert response.status_code == 502
    body = response.json()
    assert body["meta"]["error"]["code"] == 5022
    assert body["payload"] is None
    async with session_factory() as session:
        assert (await session.execute(select(DailyMetrics))).scalars().all() == []


@pytest.mark.asyncio
async def test_record_snapshot_optional_insights_failure_still_records(integration_environment):
    client: AsyncClient = integration_environment["client"]
    instagram_service = integration_environment["instagram_service"]
    instagram_service.insights_responses["lifetime"] = {"success": False, "error": "unsupported"}
    instagram_service.insights_responses["days_28"] = {"success": False, "error": "unsupported"}

    response = await client.post(
        "/api/v1/metrics/snapshots",
        headers=integration_environment["auth_headers"],
    )

    assert response.status_code == 200
    assert response.json()["payload"]["reach_daily"] == 0


@pytest.mark.asyncio
async def test_record_snapshot_retry_keeps_audience_when_lifetime_fails(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    instagram_service = integration_environment["instagram_service"]
    headers = integration_environment["auth_headers"]
    instagram_service.insights_responses["lifetime"] = {
        "success": True,
        "data": {
            "data": [
                {"name": "audience_city", "values": [{"value": {"Curitiba, Paraná (state)": 12}}]},
                {"name": "online_followers", "values": [{"value": {"20": 40}}]},
            ]
        },
    }

    first = await client.post("/api/v1/metrics/snapshots", headers=headers)
    instagram_service.insights_responses["lifetime"] = {"success": False, "error": "rate limited"}
    instagram_service.insights_responses["day"] = {
        "success": True,
        "data": {"data": [{"name": "reach", "values": [{"value": 77}]}]},
    }
    second = await client.post("/api/v1/metrics/snapshots", headers=headers)

    assert first.status_code == 200
    assert second.status_code == 200
    async with session_factory() as session:
        rows = (await session.execute(select(DailyMetrics))).scalars().all()
        assert len(rows) == 1
        assert rows[0].reach_daily == 77
        assert rows[0].audience_city == {"Curitiba, Paraná (state)": 12}
        assert rows[0].online_followers == {"20": 40}
        assert rows[0].raw_payload["audience"]["data"][0]["name"] == "audience_city"

    audience = await client.get("/api/v1/metrics/audience")
    assert audience.status_code == 200
    assert [city["name"] for city in audience.json()["payload"]["cities"]["cities"]] == ["Curitiba"]


# ---------------------------------------------------------------------------
# GET /api/v1/metrics/top-content
# ---------------------------------------------------------------------------


def _media_item(media_id, likes, comments=0):
    return {
        "id": media_id,
        "media_type": "IMAGE",
        "media_url": f"https://cdn.test/{media_id}.jpg",
        "caption": f"Post {media_id}",
        "permalink": f"https://instagram.com/p/{media_id}",
        "timestamp": "2026-03-30T18:15:00+0000",
        "like_count": likes,
        "comments_count": comments,
    }


@pytest.mark.asyncio
async def test_snapshot_stores_recent_media_for_top_content(integration_environment):
    client: AsyncClient = integration_environment["client"]
    instagram_service = integration_environment["instagram_service"]
    instagram_service.media_response = {
        "success": True,
        "data": [_media_item(str(n), likes=n * 10) for n in range(1, 8)],
    }

    recorded = await client.post("/api/v1/metrics/snapshots", headers=integration_environment["auth_headers"])
    response = await client.get("/api/v1/metrics/top-content")

    assert recorded.status_code == 200
    assert recorded.json()["payload"]["media_saved"] == 7
    assert instagram_service.media_calls == [{"account_id": "acct", "limit": 50}]
    assert response.status_code == 200
    items = response.json()["payload"]["items"]
    assert [item["id"] for item in items] == ["7", "6", "5", "4", "3"]
    assert items[0]["like_count"] == 70
    assert items[0]["thumbnail_url"] == "https://cdn.test/7.jpg"
    assert items[0]["timestamp"].startswith("2026-03-30T18:15:00")


@pytest.mark.asyncio
async def test_top_content_respects_limit_and_updates_counts(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    async with session_factory() as session:
        session.add_all([TopContent(id="a", like_count=5), TopContent(id="b", like_count=9)])
        await session.commit()
    instagram_service = integration_environment["instagram_service"]
    instagram_service.media_response = {"success": True, "data": [_media_item("a", likes=50)]}

    await client.post("/api/v1/metrics/snapshots", headers=integration_environment["auth_headers"])
    response = await client.get("/api/v1/metrics/top-content", params={"limit": 1})

    assert response.status_code == 200
    items = response.json()["payload"]["items"]
    assert [(item["id"], item["like_count"]) for item in items] == [("a", 50)]


@pytest.mark.asyncio
async def test_top_content_empty_store(integration_environment):
    response = await integration_environment["client"].get("/api/v1/metrics/top-content")

    assert response.status_code == 200
    assert response.json()["payload"] == {"items": []}


@pytest.mark.asyncio
@pytest.mark.parametrize("limit", [0, 51, "many"])
async def test_top_content_rejects_invalid_limit(integration_environment, limit):
    response = await integration_environment["client"].get("/api/v1/metrics/top-content", params={"limit": limit})

    assert response.status_code == 422
    assert response.json()["meta"]["error"]["code"] == 4000


@pytest.mark.asyncio
async def test_top_content_store_failure(integration_environment):
    client: AsyncClient = integration_environment["client"]
    container = integration_environment["container"]

    container.top_content_repository_factory.override(providers.Factory(FailingTopContentRepository))
    try:
        response = await client.get("/api/v1/metrics/top-content")
    finally:
        container.top_content_repository_factory.reset_override()

    assert response.status_code == 503
    body = response.json()
    assert body["meta"]["error"]["code"] == 5023
    assert body["payload"] is None


@pytest.mark.asyncio
async def test_snapshot_survives_media_failures(integration_environment):
    client: AsyncClient = integration_environment["client"]
    session_factory = integration_environment["session_factory"]
    container = integration_environment["container"]
    instagram_service = integration_environment["instagram_service"]
    instagram_service.media_response = {"success": True, "data": [_media_item("a", likes=1)]}

    container.top_content_repository_factory.override(providers.Factory(FailingTopContentRepository))
    try:
        response = await client.post("/api/v1/metrics/snapshots", headers=integration_environment["auth_headers"])
    finally:
        container.top_content_repository_factory.reset_override()

    assert response.status_code == 200
    assert response.json()["payload"]["media_saved"] == 0
    async with session_factory() as session:
        assert len((await session.execute(select(DailyMetrics))).scalars().all()) == 1
        assert (await session.execute(select(TopContent))).scalars().all() == []
