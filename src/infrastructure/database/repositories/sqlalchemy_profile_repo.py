"""SQLAlchemy implementation of Profile repository."""

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.profile import Profile
from infrastructure.database.models import ProfileModel


class SQLAlchemyProfileRepository:
    """SQLAlchemy implementation of IProfileRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Profile | None:
        """Get a profile by user ID."""
        stmt = select(ProfileModel).where(ProfileModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def get_many(self, ids: Sequence[UUID]) -> list[Profile]:
        """Get the profiles for the given user IDs, ordered by name."""
        if not ids:
            return []

        stmt = (
            select(ProfileModel)
            .where(ProfileModel.id.in_(ids))
            .order_by(ProfileModel.full_name, ProfileModel.email)
        )
        result = await self._session.execute(stmt)
        return [self._to_entity(model) for model in result.scalars()]

    async def get_ids_for_org(self, org_id: UUID) -> list[UUID]:
        """Get the IDs of every profile in an organization."""
        stmt = select(ProfileModel.id).where(ProfileModel.org_id == org_id)
        result = await self._session.execute(stmt)
        return list(result.scalars())

    def _to_entity(self, model: ProfileModel) -> Profile:
        """Convert ORM model to domain entity."""
        return Profile(
            id=model.id,
            email=model.email,
            org_id=model.org_id,
            full_name=model.full_name,
            avatar_url=model.avatar_url,
            headline=model.headline,
            role=model.role,
            membership_status=model.membership_status,
            created_at=model.created_at,
        )
