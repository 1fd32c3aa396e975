"""Employee group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_group_service
from api.v1.schemas.group import (
    AddGroupMembersRequest,
    GroupCreate,
    GroupDetailResponse,
    GroupListResponse,
    GroupMembershipListResponse,
    GroupMembershipResponse,
    GroupResponse,
    GroupStatsDetailResponse,
    GroupStatsResponse,
    GroupUpdate,
    GroupWithMembersDetailResponse,
    GroupWithMembersResponse,
    MemberProfileResponse,
    MemberStatsListResponse,
    MemberStatsResponse,
)
from core.rate_limit import READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.group import MemberStats
from domain.services.group_service import GroupService

router = APIRouter(
    prefix="/organizations/{org_id}/groups",
    tags=["groups"],
)


@router.get(
    "",
    response_model=GroupListResponse,
    summary="List organization groups",
    responses={
        200: {"description": "Groups of the organization"},
        403: {"description": "Not an organization member"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_groups(
    request: Request,
    org_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """Get all groups of an organization.

    ``member_count`` is null for dynamic groups, whose size is only known
    once their membership is computed.
    """
    summaries = await service.get_for_org(org_id, user.id)
    data = [GroupResponse.from_entity(s.group, s.member_count) for s in summaries]
    return GroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "",
    response_model=GroupDetailResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
    responses={
        201: {"description": "Group created"},
        400: {"description": "Invalid criteria or members outside the organization"},
        403: {"description": "Insufficient permissions (org admin only)"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def create_group(
    request: Request,
    org_id: UUID,
    body: GroupCreate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Create a static group, or a dynamic one when ``criteria`` is given."""
    group = await service.create(
        org_id=org_id,
        user_id=user.id,
        name=body.name,
        member_ids=body.member_ids,
        criteria=body.criteria.model_dump() if body.criteria else None,
    )
    member_count = None if group.is_dynamic else len(set(body.member_ids))
    return GroupDetailResponse(data=GroupResponse.from_entity(group, member_count))


@router.get(
    "/{group_id}",
    response_model=GroupWithMembersDetailResponse,
    summary="Get group details",
    responses={
        200: {"description": "Group with its members"},
        403: {"description": "Not an organization member"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_group(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupWithMembersDetailResponse:
    """Get a group with its member profiles.

    Members of a dynamic group are computed on the fly and only visible to
    organization admins.
    """
    details = await service.get_details(org_id, group_id, user.id)
    base = GroupResponse.from_entity(details.group, details.member_count)
    return GroupWithMembersDetailResponse(
        data=GroupWithMembersResponse(
            **base.model_dump(),
            members=[MemberProfileResponse.model_validate(p) for p in details.members],
        )
    )


@router.patch(
    "/{group_id}",
    response_model=GroupDetailResponse,
    summary="Update a group",
    responses={
        200: {"description": "Group updated"},
        400: {"description": "Member edit on a dynamic group"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_group(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    body: GroupUpdate,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupDetailResponse:
    """Rename a group and/or replace its member list. Requires org admin."""
    group = await service.update(
        org_id=org_id,
        group_id=group_id,
        user_id=user.id,
        name=body.name,
        member_ids=body.member_ids,
    )
    return GroupDetailResponse(data=GroupResponse.from_entity(group))


@router.delete(
    "/{group_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a group",
    responses={
        204: {"description": "Group deleted"},
        403: {"description": "Insufficient permissions (org admin only)"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def delete_group(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Delete a group and its memberships. Requires org admin."""
    await service.delete(org_id, group_id, user.id)
    return None


# --- Group Member Management ---


@router.post(
    "/{group_id}/members",
    response_model=GroupMembershipListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add group members",
    responses={
        201: {"description": "Members added; existing members are skipped"},
        400: {"description": "Dynamic group or users outside the organization"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def add_group_members(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    body: AddGroupMembersRequest,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupMembershipListResponse:
    """Add users to a static group. Requires org admin."""
    added = await service.add_members(
        org_id=org_id,
        group_id=group_id,
        user_id=user.id,
        target_user_ids=body.user_ids,
    )
    data = [GroupMembershipResponse.model_validate(m) for m in added]
    return GroupMembershipListResponse(data=data, meta={"total": len(data)})


@router.delete(
    "/{group_id}/members/{member_user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove group member",
    responses={
        204: {"description": "Member removed from group"},
        400: {"description": "Dynamic group"},
        403: {"description": "Insufficient permissions"},
        404: {"description": "Group or member not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def remove_group_member(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    member_user_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> None:
    """Remove a user from a static group. Requires org admin."""
    await service.remove_member(
        org_id=org_id,
        group_id=group_id,
        user_id=user.id,
        target_user_id=member_user_id,
    )
    return None


# --- Group Analytics ---


@router.get(
    "/{group_id}/stats",
    response_model=GroupStatsDetailResponse,
    summary="Get group stats",
    responses={
        200: {"description": "Aggregated activity of the group's members"},
        403: {"description": "Not an organization member"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def get_group_stats(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> GroupStatsDetailResponse:
    stats = await service.get_stats(org_id, group_id, user.id)
    return GroupStatsDetailResponse(
        data=GroupStatsResponse(
            group_id=stats.group_id,
            member_count=stats.member_count,
            active_member_count=stats.active_member_count,
            total_time_spent_seconds=stats.total_time_spent_seconds,
            average_time_spent_seconds=stats.average_time_spent_seconds,
            total_courses_completed=stats.total_courses_completed,
            total_credits_earned=stats.total_credits_earned,
            total_conversations=stats.total_conversations,
        )
    )


@router.get(
    "/{group_id}/members",
    response_model=MemberStatsListResponse,
    summary="List group members with stats",
    responses={
        200: {"description": "Member profiles with activity totals"},
        403: {"description": "Not an organization member"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_group_members(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    user: CurrentUser,
    service: GroupService = Depends(get_group_service),
) -> MemberStatsListResponse:
    members = await service.get_members_with_stats(org_id, group_id, user.id)
    data = [_build_member_stats_response(m) for m in members]
    return MemberStatsListResponse(data=data, meta={"total": len(data)})


def _build_member_stats_response(member: MemberStats) -> MemberStatsResponse:
    """Convert domain entity to response schema."""
    profile = member.profile
    return MemberStatsResponse(
        id=profile.id,
        email=profile.email,
        full_name=profile.full_name,
        avatar_url=profile.avatar_url,
        headline=profile.headline,
        role=profile.role,
        time_spent_seconds=member.time_spent_seconds,
        courses_completed=member.courses_completed,
        credits_earned=member.credits_earned,
        conversation_count=member.conversation_count,
        current_streak=member.current_streak,
        last_active_at=member.last_active_at,
    )
