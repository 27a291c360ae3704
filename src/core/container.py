"""
Dependency Injection Container.

Centralizes dependency wiring for the metrics pipeline so use cases only
see protocols and tests can override any provider.
"""

from dependency_injector import containers, providers

from .config import settings
from .models.db_helper import db_helper
from .repositories.daily_metrics import DailyMetricsRepository
from .repositories.top_content import TopContentRepository
from .services.instagram_service import InstagramGraphAPIService
from .use_cases.aggregate_metrics import AggregateMetricsUseCase
from .use_cases.get_audience_overview import GetAudienceOverviewUseCase
from .use_cases.get_top_content import GetTopContentUseCase
from .use_cases.record_daily_metrics import RecordDailyMetricsUseCase


class Container(containers.DeclarativeContainer):
    """
    Application DI container.

    Services are singletons; repositories and use cases are factories that
    receive the request session at call time.
    """

    # Database infrastructure
    database_helper = providers.Object(db_helper)
    db_engine = providers.Callable(lambda helper: helper.engine, database_helper)
    db_session_factory = providers.Callable(lambda helper: helper.session_factory, database_helper)

    # Repository factories
    daily_metrics_repository_factory = providers.Factory(DailyMetricsRepository)
    top_content_repository_factory = providers.Factory(TopContentRepository)

    # Services
    instagram_service = providers.Singleton(
        InstagramGraphAPIService,
        access_token=settings.instagram.access_token,
        base_account_id=settings.instagram.base_account_id,
    )

    # Use Cases - Factory (new instance per request)
    # Note: session is provided at call time via Depends()

    aggregate_metrics_use_case = providers.Factory(
        AggregateMetricsUseCase,
        daily_metrics_repository_factory=daily_metrics_repository_factory.provider,
        store_timeout_seconds=settings.metrics.store_timeout_seconds,
    )

    get_audience_overview_use_case = providers.Factory(
        GetAudienceOverviewUseCase,
        daily_metrics_repository_factory=daily_metrics_repository_factory.provider,
        store_timeout_seconds=settings.metrics.store_timeout_seconds,
    )

    get_top_content_use_case = providers.Factory(
        GetTopContentUseCase,
        top_content_repository_factory=top_content_repository_factory.provider,
        store_timeout_seconds=settings.metrics.store_timeout_seconds,
    )

    record_daily_metrics_use_case = providers.Factory(
        RecordDailyMetricsUseCase,
        instagram_service=instagram_service,
        daily_metrics_repository_factory=daily_metrics_repository_factory.provider,
        top_content_repository_factory=top_content_repository_factory.provider,
        account_id=settings.instagram.base_account_id,
    )


# Global container instance
container = Container()


def get_container() -> Container:
    """
    Get the global container instance.

    Used as a FastAPI dependency:
        container: Container = Depends(get_container)
    """
    return container


def reset_container():
    """
    Reset container for testing.

    Clears all singletons and allows fresh initialization.
    """
    container.reset_singletons()
