"""Dynamic group membership resolution and criteria management."""

from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timedelta
from typing import Any, assert_never
from uuid import UUID

import structlog

from core.exceptions import (
    GroupNotFoundError,
    InvalidCriteriaError,
    NotADynamicGroupError,
    OrganizationNotFoundError,
)
from domain.entities.criteria import (
    DYNAMIC_GROUP_TYPES,
    DynamicGroupCriteria,
    DynamicGroupType,
    MostActiveCriteria,
    MostTalkativeCriteria,
    NoLoginsCriteria,
    RecentLoginsCriteria,
    ScoredCriteria,
    TopLearnersCriteria,
    criteria_to_dict,
    parse_criteria,
    validate_criteria,
)
from domain.entities.group import EmployeeGroup
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import ACCESS_DENIED_ERRORS, require_org_admin
from domain.services.metric_collectors import MetricCollector
from domain.services.scoring import composite_scores, select_at_threshold

logger = structlog.get_logger()


class DynamicGroupService:
    """Computes dynamic group membership from user activity.

    Membership is never stored: every read evaluates the group's criteria
    against all profiles of its organization and stamps
    ``last_computed_at``.
    """

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        collector: MetricCollector | None = None,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._uow_factory = uow_factory
        self._collector = collector or MetricCollector(uow_factory)
        self._clock = clock

    async def compute_members(
        self, group_id: UUID, actor_id: UUID, org_id: UUID | None = None
    ) -> set[UUID]:
        """Compute the members of a dynamic group on behalf of an org admin.

        Fails closed: a missing or static group (or one outside ``org_id``
        when given), an actor who is not an admin of the group's
        organization, or an unsupported group type all yield an empty set
        rather than an error.
        """
        async with self._uow_factory() as uow:
            group = await uow.groups.get(group_id)
            if group is None or (org_id is not None and group.org_id != org_id):
                logger.info(
                    "dynamic_group_unavailable", group_id=str(group_id), reason="not_found"
                )
                return set()
            if not group.is_dynamic:
                logger.info(
                    "dynamic_group_unavailable", group_id=str(group_id), reason="not_dynamic"
                )
                return set()

            try:
                await require_org_admin(uow, actor_id, group.org_id)
            except ACCESS_DENIED_ERRORS as e:
                logger.info(
                    "dynamic_group_access_denied",
                    group_id=str(group_id),
                    actor_id=str(actor_id),
                    error_code=e.error_code.value,
                )
                return set()

        return await self.resolve(group)

    async def resolve(self, group: EmployeeGroup) -> set[UUID]:
        """Evaluate a dynamic group's criteria without access checks."""
        criteria = self._load_criteria(group)
        if criteria is None:
            return set()

        now = self._clock()
        members = await self._evaluate(group.org_id, criteria, now)
        await self._mark_computed(group.id, now)

        logger.info(
            "dynamic_group_computed",
            group_id=str(group.id),
            dynamic_type=criteria.type.value,
            member_count=len(members),
        )
        return members

    async def update_criteria(
        self,
        org_id: UUID,
        group_id: UUID,
        actor_id: UUID,
        payload: Mapping[str, Any],
    ) -> EmployeeGroup:
        """Validate and store new criteria for a dynamic group. Requires org admin."""
        async with self._uow_factory() as uow:
            await require_org_admin(uow, actor_id, org_id)

            group = await uow.groups.get(group_id)
            if not group or group.org_id != org_id:
                raise GroupNotFoundError(str(group_id))
            if not group.is_dynamic or group.dynamic_type is None:
                raise NotADynamicGroupError(str(group_id))

            criteria = parse_criteria(group.dynamic_type, payload)
            validate_criteria(criteria)

            updated = await uow.groups.update_criteria(group_id, criteria_to_dict(criteria))
            if updated is None:
                raise GroupNotFoundError(str(group_id))
            await uow.commit()

            logger.info(
                "dynamic_group_criteria_updated",
                group_id=str(group_id),
                actor_id=str(actor_id),
                dynamic_type=criteria.type.value,
            )
            return updated

    async def get_for_org(self, org_id: UUID, actor_id: UUID) -> list[EmployeeGroup]:
        """List an organization's dynamic groups. Empty for non-admins."""
        async with self._uow_factory() as uow:
            try:
                await require_org_admin(uow, actor_id, org_id)
            except ACCESS_DENIED_ERRORS as e:
                logger.info(
                    "dynamic_group_list_denied",
                    org_id=str(org_id),
                    actor_id=str(actor_id),
                    error_code=e.error_code.value,
                )
                return []

            return await uow.groups.get_for_org(org_id, dynamic_only=True)

    async def seed_for_org(self, org_id: UUID, actor_id: UUID) -> list[EmployeeGroup]:
        """Create one default dynamic group per type the org is missing.

        Safe to call repeatedly; returns only the groups created by this call.
        """
        async with self._uow_factory() as uow:
            organization = await uow.organizations.get(org_id)
            if not organization:
                raise OrganizationNotFoundError(str(org_id))

            await require_org_admin(uow, actor_id, org_id)

            existing = {
                group.dynamic_type
                for group in await uow.groups.get_for_org(org_id, dynamic_only=True)
            }

            created: list[EmployeeGroup] = []
            for group_type, info in DYNAMIC_GROUP_TYPES.items():
                if group_type.value in existing:
                    continue
                group = EmployeeGroup(
                    org_id=org_id,
                    name=info.name,
                    is_dynamic=True,
                    dynamic_type=group_type.value,
                    criteria=criteria_to_dict(info.default_criteria),
                )
                created.append(await uow.groups.create(group))

            await uow.commit()

            logger.info(
                "dynamic_groups_seeded",
                org_id=str(org_id),
                created_count=len(created),
            )
            return created

    # --- Internal helpers ---

    def _load_criteria(self, group: EmployeeGroup) -> DynamicGroupCriteria | None:
        """Parse the stored criteria, or log and return None if unusable."""
        try:
            group_type = DynamicGroupType(group.dynamic_type)
        except ValueError:
            logger.error(
                "unsupported_dynamic_group_type",
                group_id=str(group.id),
                dynamic_type=group.dynamic_type,
            )
            return None

        try:
            return parse_criteria(group_type, group.criteria or {})
        except InvalidCriteriaError as e:
            logger.error(
                "invalid_dynamic_group_criteria",
                group_id=str(group.id),
                dynamic_type=group_type.value,
                error=e.message,
            )
            return None

    async def _evaluate(
        self, org_id: UUID, criteria: DynamicGroupCriteria, now: datetime
    ) -> set[UUID]:
        async with self._uow_factory() as uow:
            user_ids = await uow.profiles.get_ids_for_org(org_id)

        if not user_ids:
            return set()

        match criteria:
            case RecentLoginsCriteria(days=days):
                return await self._active_users(user_ids, now - timedelta(days=days))
            case NoLoginsCriteria(days=days):
                active = await self._active_users(user_ids, now - timedelta(days=days))
                return set(user_ids) - active
            case MostActiveCriteria() | TopLearnersCriteria() | MostTalkativeCriteria():
                return await self._score(user_ids, criteria, now)
            case _:
                assert_never(criteria)

    async def _active_users(self, user_ids: Sequence[UUID], since: datetime) -> set[UUID]:
        """Union of users with progress, conversation or streak activity since the cutoff."""
        by_signal = await self._collector.collect_active_users(user_ids, since)
        active: set[UUID] = set()
        for users in by_signal.values():
            active |= users
        return active & set(user_ids)

    async def _score(
        self, user_ids: Sequence[UUID], criteria: ScoredCriteria, now: datetime
    ) -> set[UUID]:
        since = now - timedelta(days=criteria.period_days)
        raw = await self._collector.collect_metrics(criteria.metrics, user_ids, since)
        scores = composite_scores(raw, criteria.metrics, user_ids)
        return select_at_threshold(scores, criteria.threshold)

    async def _mark_computed(self, group_id: UUID, computed_at: datetime) -> None:
        """Stamp last_computed_at; a failed write never affects the result."""
        try:
            async with self._uow_factory() as uow:
                await uow.groups.mark_computed(group_id, computed_at)
                await uow.commit()
        except Exception as e:
            logger.warning(
                "dynamic_group_mark_computed_failed",
                group_id=str(group_id),
                error=str(e),
                error_type=type(e).__name__,
            )
