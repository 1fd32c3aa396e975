"""Employee group domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from domain.entities.profile import Profile


@dataclass
class EmployeeGroup:
    """Domain entity for an organization-scoped employee group.

    Static groups own explicit ``GroupMembership`` rows. Dynamic groups carry
    a ``dynamic_type`` and its ``criteria`` payload instead, and their members
    are recomputed on every read.
    """

    org_id: UUID
    name: str
    id: UUID = field(default_factory=uuid4)
    is_dynamic: bool = False
    dynamic_type: str | None = None
    criteria: dict[str, Any] | None = None
    last_computed_at: datetime | None = None
    created_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class GroupMembership:
    """Domain entity for a static group membership row."""

    group_id: UUID
    user_id: UUID
    added_at: datetime = field(default_factory=datetime.utcnow)


@dataclass
class MemberStats:
    """Activity totals for one group member."""

    profile: Profile
    time_spent_seconds: float = 0
    courses_completed: int = 0
    credits_earned: float = 0
    conversation_count: int = 0
    current_streak: int = 0
    last_active_at: datetime | None = None


@dataclass
class GroupStats:
    """Aggregated activity over the members of a group."""

    group_id: UUID
    member_count: int = 0
    active_member_count: int = 0
    total_time_spent_seconds: float = 0
    total_courses_completed: int = 0
    total_credits_earned: float = 0
    total_conversations: int = 0

    @property
    def average_time_spent_seconds(self) -> float:
        if not self.member_count:
            return 0.0
        return self.total_time_spent_seconds / self.member_count


@dataclass
class GroupSummary:
    """A group with its member count; ``None`` when membership is computed."""

    group: EmployeeGroup
    member_count: int | None = None


@dataclass
class GroupDetails:
    """A group together with its members' profiles."""

    group: EmployeeGroup
    members: list[Profile] = field(default_factory=list)

    @property
    def member_count(self) -> int:
        return len(self.members)
