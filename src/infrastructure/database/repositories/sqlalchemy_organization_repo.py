"""SQLAlchemy implementation of Organization repository."""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.organization import Organization
from infrastructure.database.models import OrganizationModel


class SQLAlchemyOrganizationRepository:
    """SQLAlchemy implementation of IOrganizationRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, id: UUID) -> Organization | None:
        """Get an organization by ID."""
        stmt = select(OrganizationModel).where(OrganizationModel.id == id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if not model:
            return None
        return Organization(
            id=model.id,
            name=model.name,
            slug=model.slug,
            created_at=model.created_at,
        )
