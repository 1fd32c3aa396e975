"""Pydantic schemas for Dynamic Group API."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from api.v1.schemas.group import GroupResponse


class DynamicGroupListResponse(BaseModel):
    """Schema for list of Dynamic Groups response."""

    data: list[GroupResponse]
    meta: dict[str, Any] = Field(default_factory=dict)


class DynamicGroupMembersResponse(BaseModel):
    """Computed member IDs of a dynamic group."""

    data: list[UUID]
    meta: dict[str, Any] = Field(default_factory=dict)


class DynamicGroupTypeResponse(BaseModel):
    """Display metadata and default criteria for a dynamic group type."""

    type: str
    name: str
    description: str
    default_criteria: dict[str, Any]


class DynamicGroupTypeListResponse(BaseModel):
    """Schema for list of Dynamic Group Types response."""

    data: list[DynamicGroupTypeResponse]
    meta: dict[str, Any] = Field(default_factory=dict)
