"""Base repository with organization-scoped queries."""

from typing import Generic, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chatpulse.persistence.database import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """Base repository with organization-scoped query methods."""

    def __init__(self, model: Type[ModelType], session: AsyncSession):
        """Initialize repository with model and session."""
        self.model = model
        self.session = session

    def _scoped(self, stmt, organization_id: int | None):
        if organization_id is None:
            return stmt
        return stmt.where(self.model.organization_id == organization_id)

    async def get_by_id(self, organization_id: int | None, id: int) -> ModelType | None:
        """Get entity by ID, scoped to organization."""
        stmt = self._scoped(select(self.model).where(self.model.id == id), organization_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list(
        self,
        organization_id: int | None,
        skip: int = 0,
        limit: int | None = 100,
        **filters
    ) -> list[ModelType]:
        """List entities, scoped to organization."""
        stmt = self._scoped(select(self.model), organization_id)

        for key, value in filters.items():
            if hasattr(self.model, key):
                stmt = stmt.where(getattr(self.model, key) == value)

        stmt = stmt.order_by(self.model.id).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def create(self, organization_id: int | None, **data) -> ModelType:
        """Create new entity with organization_id."""
        if organization_id is not None:
            data["organization_id"] = organization_id
        instance = self.model(**data)
        self.session.add(instance)
        await self.session.commit()
        await self.session.refresh(instance)
        return instance
