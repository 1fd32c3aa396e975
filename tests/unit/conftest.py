"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest

from domain.entities.organization import Organization
from domain.entities.profile import Profile, ProfileRole


class FakeUnitOfWork:
    """Fake Unit of Work with all 4 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.organizations = AsyncMock()
        self.profiles = AsyncMock()
        self.groups = AsyncMock()
        self.activity = AsyncMock()
        self.committed = False
        self.rolled_back = False

    async def commit(self) -> None:
        self.committed = True

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


def stub_empty_activity(uow: FakeUnitOfWork) -> None:
    """Make every activity aggregate return no rows."""
    for name in (
        "max_current_streak",
        "sum_view_time",
        "count_completed_courses",
        "count_collection_items",
        "sum_credits",
        "count_conversations",
        "count_user_messages",
        "last_active_at",
    ):
        getattr(uow.activity, name).return_value = {}
    for name in (
        "users_with_progress_since",
        "users_with_conversations_since",
        "users_with_streaks_since",
    ):
        getattr(uow.activity, name).return_value = set()


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork with empty activity."""
    fake = FakeUnitOfWork()
    stub_empty_activity(fake)
    return fake


@pytest.fixture
def org_id() -> UUID:
    """A random organization ID."""
    return uuid4()


@pytest.fixture
def organization(org_id: UUID) -> Organization:
    return Organization(id=org_id, name="Acme", slug="acme")


@pytest.fixture
def admin(org_id: UUID) -> Profile:
    """An org admin profile."""
    return Profile(email="admin@acme.test", org_id=org_id, role=ProfileRole.ORG_ADMIN)


@pytest.fixture
def employee(org_id: UUID) -> Profile:
    """A regular employee profile of the same org."""
    return Profile(email="emp@acme.test", org_id=org_id, role=ProfileRole.EMPLOYEE)


@pytest.fixture
def outsider() -> Profile:
    """An admin profile of a different org."""
    return Profile(email="admin@other.test", org_id=uuid4(), role=ProfileRole.ADMIN)
