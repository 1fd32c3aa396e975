"""Profile repository protocol."""

from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from domain.entities.profile import Profile


class IProfileRepository(Protocol):
    """Read-only repository for user profiles."""

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        ...

    async def get_many(self, ids: Sequence[UUID]) -> list[Profile]:
        """Get the profiles for the given user IDs, ordered by name."""
        ...

    async def get_ids_for_org(self, org_id: UUID) -> list[UUID]:
        """Get the IDs of every profile in an organization."""
        ...
