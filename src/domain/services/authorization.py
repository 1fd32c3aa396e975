"""Organization access checks shared by the group services."""

from uuid import UUID

from core.exceptions import (
    AuthorizationError,
    InsufficientPermissionsError,
    NotAnOrgMemberError,
)
from domain.entities.profile import Profile
from domain.repositories.unit_of_work import IUnitOfWork

# Raised by the guards below; callers that fail closed catch exactly these
ACCESS_DENIED_ERRORS = (
    AuthorizationError,
    NotAnOrgMemberError,
    InsufficientPermissionsError,
)


async def require_org_member(uow: IUnitOfWork, actor_id: UUID, org_id: UUID) -> Profile:
    """Return the actor's profile if it belongs to ``org_id``."""
    profile = await uow.profiles.get(actor_id)
    if profile is None:
        raise AuthorizationError("No profile for the current user")
    if not profile.belongs_to(org_id):
        raise NotAnOrgMemberError(str(org_id))
    return profile


async def require_org_admin(uow: IUnitOfWork, actor_id: UUID, org_id: UUID) -> Profile:
    """Return the actor's profile if it administers ``org_id``.

    Platform admins, org admins and profiles whose membership status is
    ``org_admin`` qualify, but only within their own organization.
    """
    profile = await require_org_member(uow, actor_id, org_id)
    if not profile.is_org_admin:
        raise InsufficientPermissionsError("org_admin")
    return profile
