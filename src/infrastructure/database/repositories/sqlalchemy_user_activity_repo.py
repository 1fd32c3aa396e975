"""SQLAlchemy implementation of the user activity aggregates."""

from collections.abc import Sequence
from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import (
    CollectionItemModel,
    ConversationMessageModel,
    ConversationModel,
    UserCollectionModel,
    UserCreditsLedgerModel,
    UserProgressModel,
    UserStreakModel,
)


class SQLAlchemyUserActivityRepository:
    """SQLAlchemy implementation of IUserActivityRepository.

    Every aggregate is a single ``GROUP BY user_id`` query restricted to the
    candidate users. Users without matching rows are absent from the result.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def max_current_streak(
        self, user_ids: Sequence[UUID], since: date | None = None
    ) -> dict[UUID, float]:
        stmt = select(UserStreakModel.user_id, func.max(UserStreakModel.current_streak))
        if since is not None:
            stmt = stmt.where(UserStreakModel.activity_date >= since)
        return await self._per_user(stmt, UserStreakModel.user_id, user_ids)

    async def sum_view_time(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        stmt = select(
            UserProgressModel.user_id,
            func.coalesce(func.sum(UserProgressModel.view_time_seconds), 0),
        )
        if since is not None:
            stmt = stmt.where(UserProgressModel.last_accessed >= since)
        return await self._per_user(stmt, UserProgressModel.user_id, user_ids)

    async def count_completed_courses(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        stmt = select(UserProgressModel.user_id, func.count()).where(
            UserProgressModel.is_completed.is_(True)
        )
        if since is not None:
            stmt = stmt.where(UserProgressModel.last_accessed >= since)
        return await self._per_user(stmt, UserProgressModel.user_id, user_ids)

    async def count_collection_items(
        self, user_ids: Sequence[UUID]
    ) -> dict[UUID, float]:
        stmt = select(UserCollectionModel.user_id, func.count(CollectionItemModel.id)).join(
            CollectionItemModel,
            CollectionItemModel.collection_id == UserCollectionModel.id,
        )
        return await self._per_user(stmt, UserCollectionModel.user_id, user_ids)

    async def sum_credits(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        stmt = select(
            UserCreditsLedgerModel.user_id,
            func.coalesce(func.sum(UserCreditsLedgerModel.amount), 0),
        )
        if since is not None:
            stmt = stmt.where(UserCreditsLedgerModel.awarded_at >= since)
        return await self._per_user(stmt, UserCreditsLedgerModel.user_id, user_ids)

    async def count_conversations(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        stmt = select(ConversationModel.user_id, func.count())
        if since is not None:
            stmt = stmt.where(ConversationModel.created_at >= since)
        return await self._per_user(stmt, ConversationModel.user_id, user_ids)

    async def count_user_messages(
        self, user_ids: Sequence[UUID], since: datetime | None = None
    ) -> dict[UUID, float]:
        stmt = (
            select(ConversationModel.user_id, func.count(ConversationMessageModel.id))
            .join(
                ConversationMessageModel,
                ConversationMessageModel.conversation_id == ConversationModel.id,
            )
            .where(ConversationMessageModel.role == "user")
        )
        if since is not None:
            stmt = stmt.where(
                ConversationModel.created_at >= since,
                ConversationMessageModel.created_at >= since,
            )
        return await self._per_user(stmt, ConversationModel.user_id, user_ids)

    async def users_with_progress_since(
        self, user_ids: Sequence[UUID], since: datetime
    ) -> set[UUID]:
        stmt = select(UserProgressModel.user_id).where(
            UserProgressModel.last_accessed >= since
        )
        return await self._distinct_users(stmt, UserProgressModel.user_id, user_ids)

    async def users_with_conversations_since(
        self, user_ids: Sequence[UUID], since: datetime
    ) -> set[UUID]:
        stmt = select(ConversationModel.user_id).where(
            ConversationModel.updated_at >= since
        )
        return await self._distinct_users(stmt, ConversationModel.user_id, user_ids)

    async def users_with_streaks_since(
        self, user_ids: Sequence[UUID], since: date
    ) -> set[UUID]:
        stmt = select(UserStreakModel.user_id).where(
            UserStreakModel.activity_date >= since
        )
        return await self._distinct_users(stmt, UserStreakModel.user_id, user_ids)

    async def last_active_at(self, user_ids: Sequence[UUID]) -> dict[UUID, datetime]:
        if not user_ids:
            return {}

        progress = await self._latest(
            select(UserProgressModel.user_id, func.max(UserProgressModel.last_accessed)),
            UserProgressModel.user_id,
            user_ids,
        )
        conversations = await self._latest(
            select(ConversationModel.user_id, func.max(ConversationModel.updated_at)),
            ConversationModel.user_id,
            user_ids,
        )

        latest = dict(progress)
        for user_id, updated_at in conversations.items():
            if user_id not in latest or updated_at > latest[user_id]:
                latest[user_id] = updated_at
        return latest

    # --- Internal helpers ---

    async def _per_user(
        self, stmt: Select[Any], user_column: Any, user_ids: Sequence[UUID]
    ) -> dict[UUID, float]:
        if not user_ids:
            return {}
        stmt = stmt.where(user_column.in_(user_ids)).group_by(user_column)
        result = await self._session.execute(stmt)
        return {user_id: float(value or 0) for user_id, value in result}

    async def _distinct_users(
        self, stmt: Select[Any], user_column: Any, user_ids: Sequence[UUID]
    ) -> set[UUID]:
        if not user_ids:
            return set()
        stmt = stmt.where(user_column.in_(user_ids)).distinct()
        result = await self._session.execute(stmt)
        return set(result.scalars())

    async def _latest(
        self, stmt: Select[Any], user_column: Any, user_ids: Sequence[UUID]
    ) -> dict[UUID, datetime]:
        stmt = stmt.where(user_column.in_(user_ids)).group_by(user_column)
        result = await self._session.execute(stmt)
        return {user_id: value for user_id, value in result if value is not None}
