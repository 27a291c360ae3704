"""
Service protocols for dependency injection.

These protocols define the interfaces that services must implement,
allowing use cases to depend on abstractions rather than concrete implementations.
"""

from typing import Any, Dict, Optional, Protocol


class IInstagramService(Protocol):
    """Protocol for the Instagram Graph API calls used by metrics ingestion."""

    async def get_account_profile(self, account_id: Optional[str] = None) -> Dict[str, Any]:
        """
        Fetch profile counters (username, followers_count, media_count).

        Returns:
            Dict with ``success`` flag and ``data`` or ``error``
        """
        ...

    async def get_insights(self, account_id: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Fetch account insights for the given query parameters.

        Args:
            account_id: Instagram business account ID
            params: Graph API query (metric, period, breakdown, ...)

        Returns:
            Dict with ``success`` flag and ``data`` or ``error``
        """
        ...

    async def get_recent_media(self, account_id: Optional[str] = None, limit: int = 50) -> Dict[str, Any]:
        """
        Fetch the most recent media with engagement counters.

        Returns:
            Dict with ``success`` flag and ``data`` (list of media dicts) or ``error``
        """
        ...

    async def close(self) -> None:
        ...
