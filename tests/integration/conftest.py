"""Fixtures for API integration tests.

The in-memory database is shared by the whole session, so every test seeds
its own organization with unique slugs and emails.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from uuid import UUID, uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.models import (
    CollectionItemModel,
    ConversationMessageModel,
    ConversationModel,
    OrganizationModel,
    ProfileModel,
    UserCollectionModel,
    UserCreditsLedgerModel,
    UserProgressModel,
    UserStreakModel,
)


@dataclass
class SeededOrg:
    """IDs of an organization, its admin and its employees."""

    id: UUID
    admin_id: UUID
    employee_ids: list[UUID] = field(default_factory=list)

    @property
    def user_ids(self) -> list[UUID]:
        return [self.admin_id, *self.employee_ids]


async def seed_org(
    session_factory: async_sessionmaker[AsyncSession], employees: int = 3
) -> SeededOrg:
    """Insert an organization with one org admin and ``employees`` employees."""
    suffix = uuid4().hex[:12]
    org = OrganizationModel(id=uuid4(), name=f"Org {suffix}", slug=f"org-{suffix}")
    admin = ProfileModel(
        id=uuid4(),
        org_id=org.id,
        email=f"admin-{suffix}@example.com",
        full_name="Admin",
        role="org_admin",
    )
    staff = [
        ProfileModel(
            id=uuid4(),
            org_id=org.id,
            email=f"employee{i}-{suffix}@example.com",
            full_name=f"Employee {i}",
            role="employee",
        )
        for i in range(employees)
    ]

    async with session_factory() as session:
        session.add(org)
        session.add_all([admin, *staff])
        await session.commit()

    return SeededOrg(id=org.id, admin_id=admin.id, employee_ids=[p.id for p in staff])


async def add_progress(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    view_time_seconds: int = 600,
    is_completed: bool = False,
    days_ago: int = 1,
) -> None:
    async with session_factory() as session:
        session.add(
            UserProgressModel(
                user_id=user_id,
                course_id=uuid4(),
                view_time_seconds=view_time_seconds,
                is_completed=is_completed,
                last_accessed=datetime.utcnow() - timedelta(days=days_ago),
            )
        )
        await session.commit()


async def add_conversation(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    user_messages: int = 1,
    days_ago: int = 0,
    messages_days_ago: int | None = None,
) -> None:
    """Insert a conversation with ``user_messages`` user turns, each answered.

    Messages are timestamped with the conversation unless ``messages_days_ago``
    is given.
    """
    created = datetime.utcnow() - timedelta(days=days_ago, hours=1)
    sent = (
        created
        if messages_days_ago is None
        else datetime.utcnow() - timedelta(days=messages_days_ago, hours=1)
    )
    conversation = ConversationModel(
        id=uuid4(), user_id=user_id, created_at=created, updated_at=created
    )
    async with session_factory() as session:
        session.add(conversation)
        for _ in range(user_messages):
            session.add_all(
                [
                    ConversationMessageModel(
                        conversation_id=conversation.id, role="user", created_at=sent
                    ),
                    ConversationMessageModel(
                        conversation_id=conversation.id, role="assistant", created_at=sent
                    ),
                ]
            )
        await session.commit()


async def add_streak(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    current_streak: int,
    days_ago: int = 0,
) -> None:
    async with session_factory() as session:
        session.add(
            UserStreakModel(
                user_id=user_id,
                current_streak=current_streak,
                activity_date=(datetime.utcnow() - timedelta(days=days_ago)).date(),
            )
        )
        await session.commit()


async def add_credit(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    amount: float,
    days_ago: int = 1,
) -> None:
    async with session_factory() as session:
        session.add(
            UserCreditsLedgerModel(
                user_id=user_id,
                amount=amount,
                awarded_at=datetime.utcnow() - timedelta(days=days_ago),
            )
        )
        await session.commit()


async def add_collection(
    session_factory: async_sessionmaker[AsyncSession],
    user_id: UUID,
    items: int,
) -> None:
    """Insert a collection holding ``items`` saved courses."""
    collection = UserCollectionModel(id=uuid4(), user_id=user_id, name="Saved")
    async with session_factory() as session:
        session.add(collection)
        session.add_all(
            [
                CollectionItemModel(collection_id=collection.id, item_id=uuid4())
                for _ in range(items)
            ]
        )
        await session.commit()


@pytest.fixture
async def org(session_factory: async_sessionmaker[AsyncSession]) -> SeededOrg:
    """A freshly seeded organization with an admin and three employees."""
    return await seed_org(session_factory)


@pytest.fixture
async def other_org(session_factory: async_sessionmaker[AsyncSession]) -> SeededOrg:
    """A second organization, for cross-tenant checks."""
    return await seed_org(session_factory, employees=1)
