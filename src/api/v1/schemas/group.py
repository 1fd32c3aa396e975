"""Pydantic schemas for Group API."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from api.v1.schemas.criteria import CriteriaBody
from domain.entities.group import EmployeeGroup


class GroupCreate(BaseModel):
    """Schema for creating a group.

    Passing ``criteria`` creates a dynamic group, which takes no members.
    """

    name: str = Field(..., min_length=1, max_length=100)
    member_ids: list[UUID] = Field(default_factory=list)
    criteria: CriteriaBody | None = None


class GroupUpdate(BaseModel):
    """Schema for updating a group; ``member_ids`` replaces all members."""

    name: str | None = Field(None, min_length=1, max_length=100)
    member_ids: list[UUID] | None = None


class AddGroupMembersRequest(BaseModel):
    """Schema for adding members to a group."""

    user_ids: list[UUID] = Field(..., min_length=1)


class GroupResponse(BaseModel):
    """Schema for Group response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    org_id: UUID
    name: str
    is_dynamic: bool
    dynamic_type: str | None = None
    criteria: dict[str, Any] | None = None
    last_computed_at: datetime | None = None
    member_count: int | None = None
    created_at: datetime

    @classmethod
    def from_entity(
        cls, group: EmployeeGroup, member_count: int | None = None
    ) -> "GroupResponse":
        return cls(
            id=group.id,
            org_id=group.org_id,
            name=group.name,
            is_dynamic=group.is_dynamic,
            dynamic_type=group.dynamic_type,
            criteria=group.criteria,
            last_computed_at=group.last_computed_at,
            member_count=member_count,
            created_at=group.created_at,
        )


class GroupListResponse(BaseModel):
    """Schema for list of Groups response."""

    data: list[GroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class MemberProfileResponse(BaseModel):
    """Schema for a group member's profile."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    full_name: str | None = None
    avatar_url: str | None = None
    headline: str | None = None
    role: str | None = None


class GroupWithMembersResponse(GroupResponse):
    """Schema for a Group together with its members."""

    members: list[MemberProfileResponse] = Field(default_factory=list)


class GroupDetailResponse(BaseModel):
    """Schema for single Group response."""

    data: GroupResponse


class GroupWithMembersDetailResponse(BaseModel):
    """Schema for single Group with members response."""

    data: GroupWithMembersResponse


class GroupMembershipResponse(BaseModel):
    """Schema for a newly added membership row."""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    added_at: datetime


class GroupMembershipListResponse(BaseModel):
    """Schema for list of added memberships response."""

    data: list[GroupMembershipResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class MemberStatsResponse(MemberProfileResponse):
    """Schema for a member's profile with activity totals."""

    time_spent_seconds: float = 0
    courses_completed: int = 0
    credits_earned: float = 0
    conversation_count: int = 0
    current_streak: int = 0
    last_active_at: datetime | None = None


class MemberStatsListResponse(BaseModel):
    """Schema for list of members with stats response."""

    data: list[MemberStatsResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class GroupStatsResponse(BaseModel):
    """Schema for aggregated group activity."""

    group_id: UUID
    member_count: int
    active_member_count: int
    total_time_spent_seconds: float
    average_time_spent_seconds: float
    total_courses_completed: int
    total_credits_earned: float
    total_conversations: int


class GroupStatsDetailResponse(BaseModel):
    """Schema for single Group Stats response."""

    data: GroupStatsResponse
