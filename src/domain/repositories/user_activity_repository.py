"""User activity repository protocol.

Activity tables are written by the learning, chat and credits services. This
repository only aggregates them per user, scoped to a candidate user set and,
where a ``since`` bound is given, to rows on or after it.
"""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Protocol
from uuid import UUID


class IUserActivityRepository(Protocol):
    """Read-only aggregates over user activity records."""

    async def max_current_streak(
        self, user_ids: Sequence[UUID], since: date | None = None
    ) -> dict[UUID, float]:
        """Highest ``current_streak`` per user over streak rows dated on/after ``since``."""
        ...

    async def sum_view_time(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        """Total ``view_time_seconds`` per user over progress accessed on/after ``since``."""
        ...

    async def count_completed_courses(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        """Completed progress rows per user accessed on/after ``since``."""
        ...

    async def count_collection_items(
        self, user_ids: Sequence[UUID]
    ) -> dict[UUID, float]:
        """Items across all collections each user owns."""
        ...

    async def sum_credits(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        """Ledger credits per user awarded on/after ``since``."""
        ...

    async def count_conversations(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        """Conversations per user created on/after ``since``."""
        ...

    async def count_user_messages(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        """User-authored messages on/after ``since`` in conversations created on/after ``since``."""
        ...

    async def users_with_progress_since(
        self, user_ids: Sequence[UUID], since: datetime
    ) -> set[UUID]:
        """Users with a progress row accessed on/after ``since``."""
        ...

    async def users_with_conversations_since(
        self, user_ids: Sequence[UUID], since: datetime
    ) -> set[UUID]:
        """Users with a conversation updated on/after ``since``."""
        ...

    async def users_with_streaks_since(
        self, user_ids: Sequence[UUID], since: date
    ) -> set[UUID]:
        """Users with a streak row dated on/after ``since``."""
        ...

    async def last_active_at(self, user_ids: Sequence[UUID]) -> dict[UUID, datetime]:
        """Most recent progress access or conversation update per user."""
        ...
