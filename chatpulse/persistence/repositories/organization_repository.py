"""Organization, team and blacklist repositories."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatpulse.persistence.models.blacklist import BlacklistEntry
from chatpulse.persistence.models.organization import Organization, Team
from chatpulse.persistence.repositories.base import BaseRepository


class OrganizationRepository(BaseRepository[Organization]):
    """Repository for Organization entities."""

    def __init__(self, session: AsyncSession):
        """Initialize organization repository."""
        super().__init__(Organization, session)

    async def get_timezone(self, organization_id: int) -> str | None:
        """Get the organization's configured timezone, if any."""
        result = await self.session.execute(
            select(Organization.timezone).where(Organization.id == organization_id)
        )
        return result.scalar_one_or_none()


class TeamRepository(BaseRepository[Team]):
    """Repository for Team entities."""

    def __init__(self, session: AsyncSession):
        """Initialize team repository."""
        super().__init__(Team, session)


class BlacklistRepository(BaseRepository[BlacklistEntry]):
    """Repository for BlacklistEntry entities."""

    def __init__(self, session: AsyncSession):
        """Initialize blacklist repository."""
        super().__init__(BlacklistEntry, session)

    async def list_active_numbers(self, organization_id: int) -> set[str]:
        """Digits-only phone numbers currently blacklisted by the organization."""
        stmt = select(BlacklistEntry.phone_number).where(
            BlacklistEntry.organization_id == organization_id,
            BlacklistEntry.is_active.is_(True),
        )
        result = await self.session.execute(stmt)
        return {"".join(ch for ch in number if ch.isdigit()) for number in result.scalars().all()}
