import inspect
import logging
from typing import Any, Dict, Optional, Protocol, Tuple

import aiohttp
from aiolimiter import AsyncLimiter

from ..config import settings

logger = logging.getLogger(__name__)

MEDIA_FIELDS = "id,media_type,media_url,thumbnail_url,caption,permalink,timestamp,like_count,comments_count"


class RateLimiterProtocol(Protocol):
    max_rate: int
    time_period: int

    async def acquire(self) -> Tuple[bool, float]:
        ...


class _AsyncLimiterAdapter:
    """Adapter to match AsyncLimiter interface to RateLimiterProtocol."""

    def __init__(self, limiter: AsyncLimiter):
        self._limiter = limiter
        self.max_rate = limiter.max_rate
        self.time_period = limiter.time_period

    async def acquire(self) -> Tuple[bool, float]:
        async with self._limiter:
            return True, 0.0

    async def close(self) -> None:
        return None


class InstagramGraphAPIService:
    """Read-only client for the Instagram Graph API account, media and insights endpoints."""

    def __init__(
        self,
        access_token: str = None,
        session: Optional[aiohttp.ClientSession] = None,
        rate_limiter: Optional[RateLimiterProtocol] = None,
        base_account_id: Optional[str] = None,
    ):
        self.access_token = access_token or settings.instagram.access_token
        self.base_url = settings.instagram.base_url
        self.base_account_id = base_account_id or settings.instagram.base_account_id

        if not self.access_token:
            raise ValueError("Instagram access token is required")

        self._session = session
        self._should_close_session = session is None
        if rate_limiter is not None:
            self._rate_limiter: RateLimiterProtocol = rate_limiter
            self._owns_rate_limiter = False
        else:
            self._rate_limiter = _AsyncLimiterAdapter(
                AsyncLimiter(
                    max_rate=settings.instagram.insights_rate_limit_per_hour,
                    time_period=settings.instagram.insights_rate_period_seconds,
                )
            )
            self._owns_rate_limiter = True

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=settings.instagram.request_timeout_seconds),
                connector=aiohttp.TCPConnector(limit=20, limit_per_host=10),
            )
            self._should_close_session = True
            logger.debug("Created new aiohttp.ClientSession")
        return self._session

    async def close(self):
        """Close the aiohttp session."""
        if self._session and not self._session.closed and self._should_close_session:
            await self._session.close()
            logger.info("InstagramGraphAPIService session closed")
        if self._owns_rate_limiter and hasattr(self._rate_limiter, "close"):
            closer = getattr(self._rate_limiter, "close")
            if inspect.iscoroutinefunction(closer):
                await closer()
            else:
                closer()

    async def __aenter__(self):
        await self._get_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _get_json(self, url: str, params: Dict[str, Any]) -> Tuple[int, Any]:
        allowed, delay = await self._rate_limiter.acquire()
        if not allowed:
            return 429, {"error": f"Instagram rate limit reached, retry after {delay:.2f}s"}

        session = await self._get_session()
        async with session.get(url, params=params) as response:
            return response.status, await response.json()

    async def get_insights(self, account_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """Fetch insights from Instagram Graph API for the given account."""
        if not account_id:
            raise ValueError("Instagram account ID is required for insights")

        url = f"{self.base_url}/{account_id}/insights"
        query = {"access_token": self.access_token, **params}

        try:
            status, response_data = await self._get_json(url, query)
        except Exception as exc:
            logger.exception("Error fetching Instagram insights | account_id=%s", account_id)
            return {"success": False, "error": str(exc), "status_code": None}

        if status == 200:
            logger.debug(
                "Instagram insights fetched | account_id=%s | metric=%s | period=%s",
                account_id,
                params.get("metric"),
                params.get("period"),
            )
            return {"success": True, "data": response_data, "status_code": status}

        logger.error(
            "Failed to fetch Instagram insights | account_id=%s | status=%s | error=%s",
            account_id,
            status,
            response_data,
        )
        return {"success": False, "error": response_data, "status_code": status}

    async def get_account_profile(self, account_id: Optional[str] = None) -> Dict[str, Any]:
        """Fetch account profile information: username, followers and media counters."""
        target_id = account_id or self.base_account_id
        if not target_id:
            return {"success": False, "error": "Missing Instagram base account ID", "status_code": 400}

        url = f"{self.base_url}/{target_id}"
        params = {
            "access_token": self.access_token,
            "fields": "username,media_count,followers_count,follows_count",
        }

        try:
            status, response_data = await self._get_json(url, params)
        except Exception as exc:
            logger.exception("Error fetching Instagram account profile | account_id=%s", target_id)
            return {"success": False, "error": str(exc), "status_code": None}

        if status == 200:
            logger.info("Instagram account profile fetched | account_id=%s", target_id)
            return {"success": True, "data": response_data, "status_code": status}

        logger.error(
            "Failed to fetch Instagram account profile | account_id=%s | status=%s | error=%s",
            target_id,
            status,
            response_data,
        )
        return {"success": False, "error": response_data, "status_code": status}

    async def get_recent_media(self, account_id: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """
        Fetch the most recent media of the account with like and comment counters.

        Returns:
            Dict with ``success`` and ``data`` (list of media objects) or ``error``
        """
        target_id = account_id or self.base_account_id
        if not target_id:
            return {"success": False, "error": "Missing Instagram base account ID", "status_code": 400}

        url = f"{self.base_url}/{target_id}/media"
        params = {
            "access_token": self.access_token,
            "fields": MEDIA_FIELDS,
            "limit": limit,
        }

        try:
            status, response_data = await self._get_json(url, params)
        except Exception as exc:
            logger.exception("Error fetching Instagram media | account_id=%s", target_id)
            return {"success": False, "error": str(exc), "status_code": None}

        if status == 200:
            items = response_data.get("data") if isinstance(response_data, dict) else None
            if not isinstance(items, list):
                logger.error("Unexpected Instagram media payload | account_id=%s", target_id)
                return {"success": False, "error": "Unexpected media payload", "status_code": status}
            logger.info("Instagram media fetched | account_id=%s | count=%s", target_id, len(items))
            return {"success": True, "data": items, "status_code": status}

        logger.error(
            "Failed to fetch Instagram media | account_id=%s | status=%s | error=%s",
            target_id,
            status,
            response_data,
        )
        return {"success": False, "error": response_data, "status_code": status}
