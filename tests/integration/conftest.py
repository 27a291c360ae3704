from typing import Any, Dict, List, Optional

import pytest
from dependency_injector import providers
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker

from core.config import settings
from core.container import get_container, reset_container
from core.logging_config import configure_logging
from core.models import db_helper
from main import app
from tests.integration.json_api_helpers import auth_headers


class StubInstagramService:
    """Instagram API stub covering the account, media and insights calls."""

    def __init__(self) -> None:
        self.closed = False
        self.insights_calls: List[Dict[str, Any]] = []
        # Keyed by the requested ``period`` (day, days_28, lifetime)
        self.insights_responses: Dict[str, Dict[str, Any]] = {}
        self.insights_error: Optional[Exception] = None
        self.account_profile_calls: int = 0
        self.account_profile_response: Dict[str, Any] = {
            "success": True,
            "data": {
                "username": "test_account",
                "media_count": 12,
                "followers_count": 1500,
                "follows_count": 80,
                "id": "acct",
            },
        }
        self.account_profile_error: Optional[Exception] = None
        self.media_calls: List[Dict[str, Any]] = []
        self.media_response: Dict[str, Any] = {"success": True, "data": []}
        self.media_error: Optional[Exception] = None

    async def close(self) -> None:
        self.closed = True

    async def get_account_profile(self, account_id: Optional[str] = None) -> Dict[str, Any]:
        self.account_profile_calls += 1
        if self.account_profile_error:
            raise self.account_profile_error
        return self.account_profile_response

    async def get_recent_media(self, account_id: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        self.media_calls.append({"account_id": account_id, "limit": limit})
        if self.media_error:
            raise self.media_error
        return self.media_response

    async def get_insights(self, account_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        self.insights_calls.append({"account_id": account_id, "params": params})
        if self.insights_error:
            raise self.insights_error

        response = self.insights_responses.get(params.get("period"))
        if response is None:
            return {"success": True, "data": {"data": []}}
        return response


@pytest.fixture
async def integration_environment(test_engine):
    """Configure dependency injection overrides and database for integration tests."""
    original_engine = db_helper.engine
    original_session_factory = db_helper.session_factory
    session_factory = async_sessionmaker(test_engine, expire_on_commit=False)

    db_helper.engine = test_engine
    db_helper.session_factory = session_factory

    original_json_api_secret = settings.json_api.secret_key
    original_json_api_algorithm = settings.json_api.algorithm
    settings.json_api.secret_key = "test-json-secret"
    settings.json_api.algorithm = "HS256"

    reset_container()
    container = get_container()

    instagram_service = StubInstagramService()
    container.instagram_service.override(providers.Object(instagram_service))
    container.db_session_factory.override(providers.Callable(lambda: session_factory))
    container.db_engine.override(providers.Callable(lambda: test_engine))

    json_api_env = {
        "json_api_secret": settings.json_api.secret_key,
        "json_api_algorithm": settings.json_api.algorithm,
    }

    try:
        configure_logging()
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield {
                "client": client,
                "container": container,
                "session_factory": session_factory,
                "instagram_service": instagram_service,
                "auth_headers": auth_headers(json_api_env),
                **json_api_env,
            }
    finally:
        container.instagram_service.reset_override()
        container.db_session_factory.reset_override()
        container.db_engine.reset_override()

        reset_container()
        db_helper.engine = original_engine
        db_helper.session_factory = original_session_factory
        settings.json_api.secret_key = original_json_api_secret
        settings.json_api.algorithm = original_json_api_algorithm


__all__ = [
    "integration_environment",
    "StubInstagramService",
]
