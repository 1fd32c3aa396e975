"""Dynamic group API routes."""

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from api.dependencies.auth import CurrentUser
from api.v1.dependencies import get_dynamic_group_service
from api.v1.schemas.criteria import UpdateCriteriaRequest
from api.v1.schemas.dynamic_group import (
    DynamicGroupListResponse,
    DynamicGroupMembersResponse,
    DynamicGroupTypeListResponse,
    DynamicGroupTypeResponse,
)
from api.v1.schemas.group import GroupDetailResponse, GroupResponse
from core.rate_limit import COMPUTE_LIMIT, READ_LIMIT, WRITE_LIMIT, limiter
from domain.entities.criteria import DYNAMIC_GROUP_TYPES, criteria_to_dict
from domain.services.dynamic_group_service import DynamicGroupService

router = APIRouter(
    prefix="/organizations/{org_id}/dynamic-groups",
    tags=["dynamic-groups"],
)

types_router = APIRouter(prefix="/dynamic-group-types", tags=["dynamic-groups"])


@types_router.get(
    "",
    response_model=DynamicGroupTypeListResponse,
    summary="List dynamic group types",
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_dynamic_group_types(
    request: Request,
    user: CurrentUser,
) -> DynamicGroupTypeListResponse:
    """Get the supported dynamic group types with their default criteria."""
    data = [
        DynamicGroupTypeResponse(
            type=group_type.value,
            name=info.name,
            description=info.description,
            default_criteria=criteria_to_dict(info.default_criteria),
        )
        for group_type, info in DYNAMIC_GROUP_TYPES.items()
    ]
    return DynamicGroupTypeListResponse(data=data, meta={"total": len(data)})


@router.get(
    "",
    response_model=DynamicGroupListResponse,
    summary="List dynamic groups",
    responses={200: {"description": "Dynamic groups; empty for non-admins"}},
)
@limiter.limit(READ_LIMIT)  # type: ignore[untyped-decorator]
async def list_dynamic_groups(
    request: Request,
    org_id: UUID,
    user: CurrentUser,
    service: DynamicGroupService = Depends(get_dynamic_group_service),
) -> DynamicGroupListResponse:
    """Get the dynamic groups of an organization. Org admins only."""
    groups = await service.get_for_org(org_id, user.id)
    data = [GroupResponse.from_entity(g) for g in groups]
    return DynamicGroupListResponse(data=data, meta={"total": len(data)})


@router.post(
    "/seed",
    response_model=DynamicGroupListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Seed default dynamic groups",
    responses={
        201: {"description": "Groups created by this call (possibly none)"},
        403: {"description": "Insufficient permissions (org admin only)"},
        404: {"description": "Organization not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def seed_dynamic_groups(
    request: Request,
    org_id: UUID,
    user: CurrentUser,
    service: DynamicGroupService = Depends(get_dynamic_group_service),
) -> DynamicGroupListResponse:
    """Create one default group per dynamic type the organization lacks."""
    created = await service.seed_for_org(org_id, user.id)
    data = [GroupResponse.from_entity(g) for g in created]
    return DynamicGroupListResponse(data=data, meta={"created": len(data)})


@router.get(
    "/{group_id}/members",
    response_model=DynamicGroupMembersResponse,
    summary="Compute dynamic group members",
    responses={200: {"description": "Member IDs; empty when not permitted"}},
)
@limiter.limit(COMPUTE_LIMIT)  # type: ignore[untyped-decorator]
async def compute_dynamic_group_members(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    user: CurrentUser,
    service: DynamicGroupService = Depends(get_dynamic_group_service),
) -> DynamicGroupMembersResponse:
    """Evaluate the group's criteria against current activity."""
    members = await service.compute_members(group_id, user.id, org_id=org_id)
    data = sorted(members, key=str)
    return DynamicGroupMembersResponse(
        data=data,
        meta={"group_id": str(group_id), "total": len(data)},
    )


@router.put(
    "/{group_id}/criteria",
    response_model=GroupDetailResponse,
    summary="Update dynamic group criteria",
    responses={
        200: {"description": "Criteria updated"},
        400: {"description": "Invalid criteria or not a dynamic group"},
        403: {"description": "Insufficient permissions (org admin only)"},
        404: {"description": "Group not found"},
    },
)
@limiter.limit(WRITE_LIMIT)  # type: ignore[untyped-decorator]
async def update_dynamic_group_criteria(
    request: Request,
    org_id: UUID,
    group_id: UUID,
    body: UpdateCriteriaRequest,
    user: CurrentUser,
    service: DynamicGroupService = Depends(get_dynamic_group_service),
) -> GroupDetailResponse:
    """Validate and store new criteria. The type must match the group's."""
    group = await service.update_criteria(
        org_id=org_id,
        group_id=group_id,
        actor_id=user.id,
        payload=body.root.model_dump(),
    )
    return GroupDetailResponse(data=GroupResponse.from_entity(group))
