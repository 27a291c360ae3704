"""
Service and repository protocols for dependency injection.

Use cases depend on these abstractions rather than concrete implementations.
"""

from .repositories import IDailyMetricsRepository, ITopContentRepository
from .services import IInstagramService

__all__ = [
    "IDailyMetricsRepository",
    "ITopContentRepository",
    "IInstagramService",
]
