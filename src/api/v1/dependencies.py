"""Dependency injection factories for API v1."""

from functools import lru_cache
from typing import Callable

from domain.services.dynamic_group_service import DynamicGroupService
from domain.services.group_service import GroupService
from domain.services.metric_collectors import MetricCollector
from infrastructure.database.session import async_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


def get_uow_factory() -> Callable[[], SQLAlchemyUnitOfWork]:
    """Factory for creating Unit of Work instances."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(async_session_factory)

    return factory


@lru_cache
def get_metric_collector() -> MetricCollector:
    """Get Metric collector instance."""
    return MetricCollector(get_uow_factory())


@lru_cache
def get_dynamic_group_service() -> DynamicGroupService:
    """Get Dynamic Group service instance."""
    return DynamicGroupService(get_uow_factory(), collector=get_metric_collector())


@lru_cache
def get_group_service() -> GroupService:
    """Get Group service instance."""
    return GroupService(
        get_uow_factory(),
        dynamic_groups=get_dynamic_group_service(),
    )
