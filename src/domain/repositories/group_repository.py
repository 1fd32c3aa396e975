"""Employee group repository protocol."""

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID

from domain.entities.group import EmployeeGroup, GroupMembership


class IGroupRepository(Protocol):
    """Repository interface for EmployeeGroup entities."""

    async def get(self, id: UUID) -> EmployeeGroup | None:
        """Get a group by ID."""
        ...

    async def get_for_org(
        self, org_id: UUID, dynamic_only: bool = False
    ) -> list[EmployeeGroup]:
        """Get the groups of an organization, newest first."""
        ...

    async def create(self, group: EmployeeGroup) -> EmployeeGroup:
        """Create a new group."""
        ...

    async def update(self, group: EmployeeGroup) -> EmployeeGroup:
        """Update a group's name and dynamic settings."""
        ...

    async def update_criteria(
        self, id: UUID, criteria: dict[str, Any]
    ) -> EmployeeGroup | None:
        """Replace the stored criteria payload of a group."""
        ...

    async def mark_computed(self, id: UUID, computed_at: datetime) -> None:
        """Record when a dynamic group's membership was last computed."""
        ...

    async def delete(self, id: UUID) -> bool:
        """Delete a group (members cascade)."""
        ...

    async def get_member_ids(self, group_id: UUID) -> list[UUID]:
        """Get the user IDs of a static group's members."""
        ...

    async def count_members(self, group_ids: Sequence[UUID]) -> dict[UUID, int]:
        """Count static members per group."""
        ...

    async def add_members(
        self, group_id: UUID, user_ids: Sequence[UUID]
    ) -> list[GroupMembership]:
        """Insert membership rows for users not already in the group."""
        ...

    async def remove_member(self, group_id: UUID, user_id: UUID) -> bool:
        """Remove one member from a group."""
        ...

    async def clear_members(self, group_id: UUID) -> int:
        """Remove every member of a group."""
        ...
