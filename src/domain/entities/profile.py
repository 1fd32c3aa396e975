"""Profile domain entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID, uuid4


class ProfileRole(StrEnum):
    """Platform roles stored on a profile."""

    ADMIN = "admin"
    ORG_ADMIN = "org_admin"
    EMPLOYEE = "employee"


ORG_ADMIN_MEMBERSHIP_STATUS = "org_admin"


@dataclass
class Profile:
    """Domain entity for a user profile (synced from Supabase auth)."""

    id: UUID = field(default_factory=uuid4)
    email: str = ""
    org_id: UUID | None = None
    full_name: str | None = None
    avatar_url: str | None = None
    headline: str | None = None
    role: str | None = None
    membership_status: str | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def is_org_admin(self) -> bool:
        """Whether the profile may administer its organization."""
        return (
            self.role in (ProfileRole.ADMIN, ProfileRole.ORG_ADMIN)
            or self.membership_status == ORG_ADMIN_MEMBERSHIP_STATUS
        )

    def belongs_to(self, org_id: UUID) -> bool:
        return self.org_id is not None and self.org_id == org_id
