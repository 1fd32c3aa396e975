"""Unit tests for DynamicGroupService."""

from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

import pytest

from core.exceptions import (
    GroupNotFoundError,
    InsufficientPermissionsError,
    InvalidCriteriaError,
    NotADynamicGroupError,
    NotAnOrgMemberError,
    OrganizationNotFoundError,
)
from domain.entities.criteria import DynamicGroupType
from domain.entities.group import EmployeeGroup
from domain.entities.organization import Organization
from domain.entities.profile import Profile
from domain.services.dynamic_group_service import DynamicGroupService
from domain.services.metric_collectors import MetricCollector
from tests.unit.conftest import FakeUnitOfWork

NOW = datetime(2026, 5, 1, 12, 0, 0)


@pytest.fixture
def service(uow: FakeUnitOfWork) -> DynamicGroupService:
    return DynamicGroupService(
        lambda: uow,
        collector=MetricCollector(lambda: uow, timeout_seconds=1, concurrency=4),
        clock=lambda: NOW,
    )


def _dynamic_group(org_id: UUID, criteria: dict[str, Any]) -> EmployeeGroup:
    return EmployeeGroup(
        org_id=org_id,
        name=criteria["type"],
        is_dynamic=True,
        dynamic_type=criteria["type"],
        criteria=criteria,
    )


def _org_with_users(uow: FakeUnitOfWork, admin: Profile, count: int) -> list[UUID]:
    users = [uuid4() for _ in range(count)]
    uow.profiles.get.return_value = admin
    uow.profiles.get_ids_for_org.return_value = users
    return users


# --- compute_members: criteria variants ---


class TestComputeScoredGroups:
    async def test_most_active_includes_users_at_threshold(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        x, y, z = _org_with_users(uow, admin, 3)
        uow.activity.max_current_streak.return_value = {x: 10, y: 5}
        uow.activity.sum_view_time.return_value = {x: 3600, y: 1800}
        uow.activity.count_completed_courses.return_value = {x: 2, y: 1}
        uow.activity.count_collection_items.return_value = {x: 5, y: 2}
        group = _dynamic_group(
            org_id,
            {
                "type": "most_active",
                "metrics": ["streaks", "time_in_course"],
                "period_days": 30,
                "threshold": 50,
            },
        )
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        assert result == {x, y}
        uow.activity.count_collection_items.assert_not_awaited()

    async def test_top_learners_threshold_zero_returns_whole_org(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        users = _org_with_users(uow, admin, 4)
        uow.activity.sum_credits.return_value = {users[0]: 12.5}
        group = _dynamic_group(
            org_id,
            {
                "type": "top_learners",
                "metrics": ["credits_earned"],
                "period_days": 30,
                "threshold": 0,
            },
        )
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        assert result == set(users)

    async def test_most_talkative_scores_missing_metric_as_zero(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        x, y = _org_with_users(uow, admin, 2)
        uow.activity.count_conversations.return_value = {x: 4, y: 2}
        # No messages at all: every user scores 0 on message_count
        uow.activity.count_user_messages.return_value = {}
        group = _dynamic_group(
            org_id,
            {
                "type": "most_talkative",
                "metrics": ["conversation_count", "message_count"],
                "period_days": 7,
                "threshold": 50,
            },
        )
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        # x: (100 + 0) / 2 = 50, y: (50 + 0) / 2 = 25
        assert result == {x}

    async def test_failing_collector_scores_zero_and_others_continue(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        x, y = _org_with_users(uow, admin, 2)
        uow.activity.sum_view_time.return_value = {x: 100, y: 100}
        uow.activity.sum_credits.side_effect = RuntimeError("ledger down")
        group = _dynamic_group(
            org_id,
            {
                "type": "top_learners",
                "metrics": ["time_spent", "credits_earned"],
                "period_days": 30,
                "threshold": 50,
            },
        )
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        assert result == {x, y}


class TestComputeLoginGroups:
    async def test_no_logins_excludes_active_users(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        a, b, c = _org_with_users(uow, admin, 3)
        uow.activity.users_with_progress_since.return_value = {a}
        group = _dynamic_group(org_id, {"type": "no_logins", "days": 30})
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        assert result == {b, c}
        uow.activity.users_with_progress_since.assert_awaited_once_with(
            [a, b, c], datetime(2026, 4, 1, 12, 0, 0)
        )

    async def test_recent_logins_is_union_of_signals(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        a, b, c, d = _org_with_users(uow, admin, 4)
        uow.activity.users_with_progress_since.return_value = {a}
        uow.activity.users_with_conversations_since.return_value = {b}
        uow.activity.users_with_streaks_since.return_value = {a, c}
        group = _dynamic_group(org_id, {"type": "recent_logins", "days": 7})
        uow.groups.get.return_value = group

        result = await service.compute_members(group.id, admin.id)

        assert result == {a, b, c}

    async def test_recent_and_no_logins_partition_the_org(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        users = _org_with_users(uow, admin, 5)
        uow.activity.users_with_conversations_since.return_value = {users[1], users[3]}
        uow.activity.users_with_streaks_since.return_value = {users[4]}

        uow.groups.get.return_value = _dynamic_group(
            org_id, {"type": "recent_logins", "days": 14}
        )
        recent = await service.compute_members(uuid4(), admin.id)
        uow.groups.get.return_value = _dynamic_group(org_id, {"type": "no_logins", "days": 14})
        inactive = await service.compute_members(uuid4(), admin.id)

        assert recent | inactive == set(users)
        assert recent & inactive == set()

    async def test_active_users_outside_org_are_ignored(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        (a,) = _org_with_users(uow, admin, 1)
        uow.activity.users_with_progress_since.return_value = {a, uuid4()}
        group = _dynamic_group(org_id, {"type": "recent_logins", "days": 7})
        uow.groups.get.return_value = group

        assert await service.compute_members(group.id, admin.id) == {a}

    async def test_empty_org_returns_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        _org_with_users(uow, admin, 0)
        group = _dynamic_group(org_id, {"type": "no_logins", "days": 30})
        uow.groups.get.return_value = group

        assert await service.compute_members(group.id, admin.id) == set()
        uow.activity.users_with_progress_since.assert_not_awaited()


# --- compute_members: fail-closed paths ---


class TestComputeFailsClosed:
    @pytest.fixture
    def group(self, uow: FakeUnitOfWork, org_id: UUID) -> EmployeeGroup:
        group = _dynamic_group(org_id, {"type": "no_logins", "days": 30})
        uow.groups.get.return_value = group
        uow.profiles.get_ids_for_org.return_value = [uuid4()]
        return group

    async def test_non_admin_gets_empty(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        employee: Profile,
    ):
        uow.profiles.get.return_value = employee

        assert await service.compute_members(group.id, employee.id) == set()
        uow.profiles.get_ids_for_org.assert_not_awaited()
        uow.groups.mark_computed.assert_not_awaited()

    async def test_admin_of_other_org_gets_empty(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        outsider: Profile,
    ):
        uow.profiles.get.return_value = outsider

        assert await service.compute_members(group.id, outsider.id) == set()

    async def test_missing_profile_gets_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, group: EmployeeGroup
    ):
        uow.profiles.get.return_value = None

        assert await service.compute_members(group.id, uuid4()) == set()

    async def test_missing_group_gets_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile
    ):
        uow.groups.get.return_value = None

        assert await service.compute_members(uuid4(), admin.id) == set()

    async def test_static_group_gets_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.groups.get.return_value = EmployeeGroup(org_id=org_id, name="Sales")
        uow.profiles.get.return_value = admin

        assert await service.compute_members(uuid4(), admin.id) == set()

    async def test_group_outside_requested_org_gets_empty(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        admin: Profile,
    ):
        uow.profiles.get.return_value = admin

        result = await service.compute_members(group.id, admin.id, org_id=uuid4())

        assert result == set()

    async def test_unknown_type_gets_empty_without_stamp(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.profiles.get.return_value = admin
        uow.groups.get.return_value = EmployeeGroup(
            org_id=org_id,
            name="Legacy",
            is_dynamic=True,
            dynamic_type="most_helpful",
            criteria={"type": "most_helpful"},
        )

        assert await service.compute_members(uuid4(), admin.id) == set()
        uow.groups.mark_computed.assert_not_awaited()

    async def test_unparseable_criteria_gets_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.profiles.get.return_value = admin
        uow.groups.get.return_value = _dynamic_group(
            org_id, {"type": "most_active", "metrics": ["karma"], "period_days": 30, "threshold": 5}
        )

        assert await service.compute_members(uuid4(), admin.id) == set()


# --- compute_members: last_computed_at ---


class TestMarkComputed:
    async def test_stamps_last_computed_at(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        _org_with_users(uow, admin, 2)
        group = _dynamic_group(org_id, {"type": "recent_logins", "days": 30})
        uow.groups.get.return_value = group

        await service.compute_members(group.id, admin.id)

        uow.groups.mark_computed.assert_awaited_once_with(group.id, NOW)
        assert uow.committed

    async def test_stamps_even_when_result_is_empty(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        _org_with_users(uow, admin, 0)
        group = _dynamic_group(org_id, {"type": "recent_logins", "days": 30})
        uow.groups.get.return_value = group

        await service.compute_members(group.id, admin.id)

        uow.groups.mark_computed.assert_awaited_once()

    async def test_failed_stamp_still_returns_members(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        a, b = _org_with_users(uow, admin, 2)
        uow.groups.mark_computed.side_effect = RuntimeError("read-only replica")
        group = _dynamic_group(org_id, {"type": "no_logins", "days": 30})
        uow.groups.get.return_value = group

        assert await service.compute_members(group.id, admin.id) == {a, b}

    async def test_repeated_computation_is_stable(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        x, y, _ = _org_with_users(uow, admin, 3)
        uow.activity.sum_view_time.return_value = {x: 50, y: 20}
        group = _dynamic_group(
            org_id,
            {"type": "top_learners", "metrics": ["time_spent"], "period_days": 30, "threshold": 40},
        )
        uow.groups.get.return_value = group

        first = await service.compute_members(group.id, admin.id)
        second = await service.compute_members(group.id, admin.id)

        assert first == second == {x}


# --- update_criteria ---


class TestUpdateCriteria:
    @pytest.fixture
    def group(self, uow: FakeUnitOfWork, org_id: UUID, admin: Profile) -> EmployeeGroup:
        group = _dynamic_group(
            org_id,
            {"type": "most_active", "metrics": ["streaks"], "period_days": 30, "threshold": 50},
        )
        uow.groups.get.return_value = group
        uow.profiles.get.return_value = admin
        uow.groups.update_criteria.side_effect = lambda group_id, criteria: EmployeeGroup(
            id=group_id,
            org_id=org_id,
            name=group.name,
            is_dynamic=True,
            dynamic_type=group.dynamic_type,
            criteria=criteria,
        )
        return group

    async def test_stores_normalized_criteria(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        admin: Profile,
        org_id: UUID,
    ):
        updated = await service.update_criteria(
            org_id,
            group.id,
            admin.id,
            {
                "type": "most_active",
                "metrics": ["streaks", "courses_completed", "streaks"],
                "period_days": 14,
                "threshold": 75,
            },
        )

        assert updated.criteria == {
            "type": "most_active",
            "metrics": ["streaks", "courses_completed"],
            "period_days": 14,
            "threshold": 75.0,
        }
        assert uow.committed

    @pytest.mark.parametrize(
        "payload",
        [
            {"type": "most_active", "metrics": ["streaks"], "period_days": 30, "threshold": 101},
            {"type": "most_active", "metrics": [], "period_days": 30, "threshold": 50},
            {"type": "most_active", "metrics": ["streaks"], "period_days": 0, "threshold": 50},
            {"type": "most_active", "metrics": ["message_count"], "period_days": 30, "threshold": 50},
            {"type": "recent_logins", "days": 30},
        ],
    )
    async def test_rejects_invalid_criteria(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        admin: Profile,
        org_id: UUID,
        payload: dict[str, Any],
    ):
        with pytest.raises(InvalidCriteriaError):
            await service.update_criteria(org_id, group.id, admin.id, payload)

        uow.groups.update_criteria.assert_not_awaited()
        assert not uow.committed

    async def test_requires_org_admin(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        employee: Profile,
        org_id: UUID,
    ):
        uow.profiles.get.return_value = employee

        with pytest.raises(InsufficientPermissionsError):
            await service.update_criteria(
                org_id, group.id, employee.id, {"type": "most_active", "days": 1}
            )

    async def test_rejects_static_group(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        admin: Profile,
        org_id: UUID,
    ):
        uow.groups.get.return_value = EmployeeGroup(org_id=org_id, name="Static")

        with pytest.raises(NotADynamicGroupError):
            await service.update_criteria(org_id, uuid4(), admin.id, {"days": 3})

    async def test_rejects_group_of_other_org(
        self,
        service: DynamicGroupService,
        uow: FakeUnitOfWork,
        group: EmployeeGroup,
        admin: Profile,
        org_id: UUID,
    ):
        uow.groups.get.return_value = _dynamic_group(uuid4(), {"type": "no_logins", "days": 3})

        with pytest.raises(GroupNotFoundError):
            await service.update_criteria(org_id, uuid4(), admin.id, {"days": 3})


# --- get_for_org ---


class TestGetForOrg:
    async def test_admin_sees_dynamic_groups(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.profiles.get.return_value = admin
        groups = [_dynamic_group(org_id, {"type": "no_logins", "days": 30})]
        uow.groups.get_for_org.return_value = groups

        result = await service.get_for_org(org_id, admin.id)

        assert result == groups
        uow.groups.get_for_org.assert_awaited_once_with(org_id, dynamic_only=True)

    async def test_non_admin_gets_empty_list(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, employee: Profile, org_id: UUID
    ):
        uow.profiles.get.return_value = employee

        assert await service.get_for_org(org_id, employee.id) == []
        uow.groups.get_for_org.assert_not_awaited()


# --- seed_for_org ---


class TestSeedForOrg:
    @pytest.fixture(autouse=True)
    def _setup(self, uow: FakeUnitOfWork, organization: Organization, admin: Profile) -> None:
        uow.organizations.get.return_value = organization
        uow.profiles.get.return_value = admin
        uow.groups.create.side_effect = lambda group: group

    async def test_creates_one_group_per_type(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.groups.get_for_org.return_value = []

        created = await service.seed_for_org(org_id, admin.id)

        assert {g.dynamic_type for g in created} == {t.value for t in DynamicGroupType}
        assert all(g.is_dynamic and g.org_id == org_id for g in created)
        assert uow.committed

    async def test_skips_existing_types(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.groups.get_for_org.return_value = [
            _dynamic_group(org_id, {"type": "no_logins", "days": 90})
        ]

        created = await service.seed_for_org(org_id, admin.id)

        assert len(created) == len(DynamicGroupType) - 1
        assert "no_logins" not in {g.dynamic_type for g in created}

    async def test_is_idempotent(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.groups.get_for_org.return_value = []
        first = await service.seed_for_org(org_id, admin.id)
        uow.groups.get_for_org.return_value = first

        second = await service.seed_for_org(org_id, admin.id)

        assert second == []

    async def test_raises_when_org_missing(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, admin: Profile, org_id: UUID
    ):
        uow.organizations.get.return_value = None

        with pytest.raises(OrganizationNotFoundError):
            await service.seed_for_org(org_id, admin.id)

    async def test_requires_admin_of_same_org(
        self, service: DynamicGroupService, uow: FakeUnitOfWork, outsider: Profile, org_id: UUID
    ):
        uow.profiles.get.return_value = outsider

        with pytest.raises(NotAnOrgMemberError):
            await service.seed_for_org(org_id, outsider.id)
