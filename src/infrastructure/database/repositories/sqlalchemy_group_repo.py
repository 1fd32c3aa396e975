"""SQLAlchemy implementation of Employee Group repository."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.group import EmployeeGroup, GroupMembership
from infrastructure.database.models import EmployeeGroupMemberModel, EmployeeGroupModel


class SQLAlchemyGroupRepository:
    """SQLAlchemy implementation of IGroupRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> EmployeeGroup | None:
        """Get a group by ID."""
        model = await self._get_model(id)
        return self._to_entity(model) if model else None

    async def get_for_org(
        self, org_id: UUID, dynamic_only: bool = False
    ) -> list[EmployeeGroup]:
        """Get the groups of an organization, newest first."""
        stmt = select(EmployeeGroupModel).where(EmployeeGroupModel.org_id == org_id)
        if dynamic_only:
            stmt = stmt.where(EmployeeGroupModel.is_dynamic.is_(True))
        stmt = stmt.order_by(EmployeeGroupModel.created_at.desc())

        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def create(self, group: EmployeeGroup) -> EmployeeGroup:
        """Create a new group."""
        model = self._to_model(group)
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_entity(model)

    async def update(self, group: EmployeeGroup) -> EmployeeGroup:
        """Update a group's name and dynamic settings."""
        model = await self._get_model(group.id)
        if not model:
            raise ValueError(f"Group {group.id} not found")

        model.name = group.name
        model.is_dynamic = group.is_dynamic
        model.dynamic_type = group.dynamic_type
        model.criteria = group.criteria

        await self._session.flush()
        return self._to_entity(model)

    async def update_criteria(
        self, id: UUID, criteria: dict[str, Any]
    ) -> EmployeeGroup | None:
        """Replace the stored criteria payload of a group."""
        model = await self._get_model(id)
        if not model:
            return None

        model.criteria = criteria
        await self._session.flush()
        return self._to_entity(model)

    async def mark_computed(self, id: UUID, computed_at: datetime) -> None:
        """Record when a dynamic group's membership was last computed."""
        stmt = (
            update(EmployeeGroupModel)
            .where(EmployeeGroupModel.id == id)
            .values(last_computed_at=computed_at)
        )
        await self._session.execute(stmt)

    async def delete(self, id: UUID) -> bool:
        """Delete a group and its membership rows."""
        model = await self._get_model(id)
        if not model:
            return False

        await self.clear_members(id)
        await self._session.delete(model)
        await self._session.flush()
        return True

    async def get_member_ids(self, group_id: UUID) -> list[UUID]:
        """Get the user IDs of a static group's members."""
        stmt = (
            select(EmployeeGroupMemberModel.user_id)
            .where(EmployeeGroupMemberModel.group_id == group_id)
            .order_by(EmployeeGroupMemberModel.added_at)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars())

    async def count_members(self, group_ids: Sequence[UUID]) -> dict[UUID, int]:
        """Count static members per group."""
        if not group_ids:
            return {}

        stmt = (
            select(EmployeeGroupMemberModel.group_id, func.count())
            .where(EmployeeGroupMemberModel.group_id.in_(group_ids))
            .group_by(EmployeeGroupMemberModel.group_id)
        )
        result = await self._session.execute(stmt)
        return {group_id: count for group_id, count in result}

    async def add_members(
        self, group_id: UUID, user_ids: Sequence[UUID]
    ) -> list[GroupMembership]:
        """Insert membership rows for users not already in the group."""
        existing = set(await self.get_member_ids(group_id))
        models = [
            EmployeeGroupMemberModel(group_id=group_id, user_id=user_id)
            for user_id in dict.fromkeys(user_ids)
            if user_id not in existing
        ]
        if not models:
            return []

        self._session.add_all(models)
        await self._session.flush()
        return [self._member_to_entity(model) for model in models]

    async def remove_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Remove one member from a group."""
        stmt = delete(EmployeeGroupMemberModel).where(
            EmployeeGroupMemberModel.group_id == group_id,
            EmployeeGroupMemberModel.user_id == user_id,
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)

    async def clear_members(self, group_id: UUID) -> int:
        """Remove every member of a group."""
        stmt = delete(EmployeeGroupMemberModel).where(
            EmployeeGroupMemberModel.group_id == group_id
        )
        result = await self._session.execute(stmt)
        return result.rowcount or 0

    async def _get_model(self, id: UUID) -> EmployeeGroupModel | None:
        stmt = select(EmployeeGroupModel).where(EmployeeGroupModel.id == id)
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    def _to_entity(self, model: EmployeeGroupModel) -> EmployeeGroup:
        """Convert ORM model to domain entity."""
        return EmployeeGroup(
            id=model.id,
            org_id=model.org_id,
            name=model.name,
            is_dynamic=model.is_dynamic,
            dynamic_type=model.dynamic_type,
            criteria=dict(model.criteria) if model.criteria is not None else None,
            last_computed_at=model.last_computed_at,
            created_at=model.created_at,
        )

    def _to_model(self, entity: EmployeeGroup) -> EmployeeGroupModel:
        """Convert domain entity to ORM model."""
        return EmployeeGroupModel(
            id=entity.id,
            org_id=entity.org_id,
            name=entity.name,
            is_dynamic=entity.is_dynamic,
            dynamic_type=entity.dynamic_type,
            criteria=entity.criteria,
            last_computed_at=entity.last_computed_at,
            created_at=entity.created_at,
        )

    def _member_to_entity(self, model: EmployeeGroupMemberModel) -> GroupMembership:
        """Convert member ORM model to domain entity."""
        return GroupMembership(
            group_id=model.group_id,
            user_id=model.user_id,
            added_at=model.added_at,
        )
