"""Employee group service layer with business logic."""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any
from uuid import UUID

import structlog

from core.config import settings
from core.exceptions import (
    DynamicGroupMembershipError,
    GroupMemberNotFoundError,
    GroupNotFoundError,
    UsersNotInOrganizationError,
)
from domain.entities.criteria import (
    criteria_to_dict,
    parse_criteria,
    validate_criteria,
)
from domain.entities.group import (
    EmployeeGroup,
    GroupDetails,
    GroupMembership,
    GroupStats,
    GroupSummary,
    MemberStats,
)
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import require_org_admin, require_org_member
from domain.services.dynamic_group_service import DynamicGroupService

logger = structlog.get_logger()


class GroupService:
    """Service layer for organization employee groups.

    Static groups are edited directly. Reads of dynamic groups go through
    ``DynamicGroupService`` so their membership is always freshly computed.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        dynamic_groups: DynamicGroupService,
        active_window_days: int = settings.group_stats_active_window_days,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._dynamic = dynamic_groups
        self._active_window = timedelta(days=active_window_days)
        self._clock = clock

    async def get_for_org(self, org_id: UUID, user_id: UUID) -> list[GroupSummary]:
        """Get all groups of an organization. Requires org membership."""
        async with self._uow_factory() as uow:
            await require_org_member(uow, user_id, org_id)

            groups = await uow.groups.get_for_org(org_id)
            static_ids = [g.id for g in groups if not g.is_dynamic]
            counts = await uow.groups.count_members(static_ids) if static_ids else {}

            return [
                GroupSummary(
                    group=g,
                    member_count=None if g.is_dynamic else counts.get(g.id, 0),
                )
                for g in groups
            ]

    async def get_details(
        self, org_id: UUID, group_id: UUID, user_id: UUID
    ) -> GroupDetails:
        """Get a group with its member profiles. Requires org membership."""
        async with self._uow_factory() as uow:
            await require_org_member(uow, user_id, org_id)
            group = await self._get_group(uow, org_id, group_id)

        member_ids = await self._member_ids(group, user_id)
        async with self._uow_factory() as uow:
            members = await uow.profiles.get_many(member_ids) if member_ids else []

        return GroupDetails(group=group, members=members)

    async def create(
        self,
        org_id: UUID,
        user_id: UUID,
        name: str,
        member_ids: Sequence[UUID] = (),
        criteria: Mapping[str, Any] | None = None,
    ) -> EmployeeGroup:
        """Create a group. Requires org admin.

        With ``criteria`` the group is dynamic and ``member_ids`` must be empty.
        """
        async with self._uow_factory() as uow:
            await require_org_admin(uow, user_id, org_id)

            group = EmployeeGroup(org_id=org_id, name=name)
            if criteria is not None:
                if member_ids:
                    raise DynamicGroupMembershipError(str(group.id))
                parsed = parse_criteria(criteria.get("type", ""), criteria)
                validate_criteria(parsed)
                group.is_dynamic = True
                group.dynamic_type = parsed.type.value
                group.criteria = criteria_to_dict(parsed)
            elif member_ids:
                await self._require_org_users(uow, org_id, member_ids)

            created = await uow.groups.create(group)
            if member_ids and not created.is_dynamic:
                await uow.groups.add_members(created.id, _unique(member_ids))

            await uow.commit()

            logger.info(
                "group_created",
                group_id=str(created.id),
                org_id=str(org_id),
                is_dynamic=created.is_dynamic,
            )
            return created

    async def update(
        self,
        org_id: UUID,
        group_id: UUID,
        user_id: UUID,
        name: str | None = None,
        member_ids: Sequence[UUID] | None = None,
    ) -> EmployeeGroup:
        """Rename a group and/or replace its members. Requires org admin.

        The member list is replaced wholesale: existing rows are deleted and
        the given users inserted.
        """
        async with self._uow_factory() as uow:
            await require_org_admin(uow, user_id, org_id)
            group = await self._get_group(uow, org_id, group_id)

            if member_ids is not None:
                if group.is_dynamic:
                    raise DynamicGroupMembershipError(str(group_id))
                await self._require_org_users(uow, org_id, member_ids)

            if name is not None:
                group.name = name
                group = await uow.groups.update(group)

            if member_ids is not None:
                await uow.groups.clear_members(group_id)
                if member_ids:
                    await uow.groups.add_members(group_id, _unique(member_ids))

            await uow.commit()
            return group

    async def delete(self, org_id: UUID, group_id: UUID, user_id: UUID) -> bool:
        """Delete a group. Requires org admin."""
        async with self._uow_factory() as uow:
            await require_org_admin(uow, user_id, org_id)
            await self._get_group(uow, org_id, group_id)

            deleted = await uow.groups.delete(group_id)
            await uow.commit()

            logger.info("group_deleted", group_id=str(group_id), org_id=str(org_id))
            return deleted

    async def add_members(
        self,
        org_id: UUID,
        group_id: UUID,
        user_id: UUID,
        target_user_ids: Sequence[UUID],
    ) -> list[GroupMembership]:
        """Add users to a static group. Existing members are skipped."""
        async with self._uow_factory() as uow:
            await require_org_admin(uow, user_id, org_id)
            group = await self._get_group(uow, org_id, group_id)
            if group.is_dynamic:
                raise DynamicGroupMembershipError(str(group_id))

            await self._require_org_users(uow, org_id, target_user_ids)

            added = await uow.groups.add_members(group_id, _unique(target_user_ids))
            await uow.commit()
            return added

    async def remove_member(
        self,
        org_id: UUID,
        group_id: UUID,
        user_id: UUID,
        target_user_id: UUID,
    ) -> bool:
        """Remove a user from a static group. Requires org admin."""
        async with self._uow_factory() as uow:
            await require_org_admin(uow, user_id, org_id)
            group = await self._get_group(uow, org_id, group_id)
            if group.is_dynamic:
                raise DynamicGroupMembershipError(str(group_id))

            removed = await uow.groups.remove_member(group_id, target_user_id)
            if not removed:
                raise GroupMemberNotFoundError(str(target_user_id))

            await uow.commit()
            return removed

    async def get_stats(self, org_id: UUID, group_id: UUID, user_id: UUID) -> GroupStats:
        """Aggregate learning and conversation activity over a group's members."""
        members = await self.get_members_with_stats(org_id, group_id, user_id)
        active_since = self._clock() - self._active_window

        return GroupStats(
            group_id=group_id,
            member_count=len(members),
            active_member_count=sum(
                1
                for m in members
                if m.last_active_at is not None and m.last_active_at >= active_since
            ),
            total_time_spent_seconds=sum(m.time_spent_seconds for m in members),
            total_courses_completed=sum(m.courses_completed for m in members),
            total_credits_earned=sum(m.credits_earned for m in members),
            total_conversations=sum(m.conversation_count for m in members),
        )

    async def get_members_with_stats(
        self, org_id: UUID, group_id: UUID, user_id: UUID
    ) -> list[MemberStats]:
        """Get each member's profile joined with their all-time activity totals."""
        details = await self.get_details(org_id, group_id, user_id)
        if not details.members:
            return []

        async with self._uow_factory() as uow:
            return await self._member_stats(uow, details.members)

    # --- Internal helpers ---

    async def _get_group(
        self, uow: IUnitOfWork, org_id: UUID, group_id: UUID
    ) -> EmployeeGroup:
        group = await uow.groups.get(group_id)
        if not group or group.org_id != org_id:
            raise GroupNotFoundError(str(group_id))
        return group

    async def _member_ids(self, group: EmployeeGroup, user_id: UUID) -> list[UUID]:
        if group.is_dynamic:
            # Computed membership is only visible to org admins
            return sorted(await self._dynamic.compute_members(group.id, user_id), key=str)

        async with self._uow_factory() as uow:
            return await uow.groups.get_member_ids(group.id)

    async def _require_org_users(
        self, uow: IUnitOfWork, org_id: UUID, user_ids: Sequence[UUID]
    ) -> None:
        """Verify every user belongs to the organization."""
        if not user_ids:
            return
        org_user_ids = set(await uow.profiles.get_ids_for_org(org_id))
        outsiders = [str(uid) for uid in _unique(user_ids) if uid not in org_user_ids]
        if outsiders:
            raise UsersNotInOrganizationError(outsiders)

    async def _member_stats(
        self, uow: IUnitOfWork, profiles: list[Profile]
    ) -> list[MemberStats]:
        ids = [p.id for p in profiles]
        today = self._clock().date()

        time_spent = await uow.activity.sum_view_time(ids)
        completed = await uow.activity.count_completed_courses(ids)
        credits = await uow.activity.sum_credits(ids)
        conversations = await uow.activity.count_conversations(ids)
        # A streak not extended since yesterday has lapsed
        streaks = await uow.activity.max_current_streak(ids, today - timedelta(days=1))
        last_active = await uow.activity.last_active_at(ids)

        return [
            MemberStats(
                profile=p,
                time_spent_seconds=time_spent.get(p.id, 0),
                courses_completed=int(completed.get(p.id, 0)),
                credits_earned=credits.get(p.id, 0),
                conversation_count=int(conversations.get(p.id, 0)),
                current_streak=int(streaks.get(p.id, 0)),
                last_active_at=last_active.get(p.id),
            )
            for p in profiles
        ]


def _unique(user_ids: Sequence[UUID]) -> list[UUID]:
    """De-duplicate user IDs, keeping first-seen order."""
    return list(dict.fromkeys(user_ids))
