"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.group_repository import IGroupRepository
from domain.repositories.organization_repository import IOrganizationRepository
from domain.repositories.profile_repository import IProfileRepository
from domain.repositories.user_activity_repository import IUserActivityRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    organizations: IOrganizationRepository
    profiles: IProfileRepository
    groups: IGroupRepository
    activity: IUserActivityRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
