"""Profile repository."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chatpulse.persistence.models.profile import Profile
from chatpulse.persistence.repositories.base import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for Profile entities."""

    def __init__(self, session: AsyncSession):
        """Initialize profile repository."""
        super().__init__(Profile, session)

    async def get_with_role(self, organization_id: int | None, profile_id: int) -> Profile | None:
        """Get a non-deleted profile with its role eagerly loaded."""
        stmt = (
            select(Profile)
            .options(selectinload(Profile.role))
            .where(Profile.id == profile_id, Profile.deleted_at.is_(None))
        )
        if organization_id is not None:
            stmt = stmt.where(Profile.organization_id == organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_active(self, organization_id: int) -> list[Profile]:
        """List the organization's profiles, excluding soft-deleted ones, by name."""
        stmt = (
            select(Profile)
            .options(selectinload(Profile.role))
            .where(
                Profile.organization_id == organization_id,
                Profile.deleted_at.is_(None),
            )
            .order_by(Profile.name, Profile.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
