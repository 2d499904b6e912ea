"""Message repository."""

from collections.abc import Collection
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from chatpulse.persistence.models.chat import Message
from chatpulse.persistence.repositories.base import BaseRepository


class MessageRepository(BaseRepository[Message]):
    """Repository for Message entities.

    Window queries never return rows with null content and are always scoped
    to one organization; ``chat_ids`` narrows them further when given.
    """

    def __init__(self, session: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, session)

    def _window_filters(
        self,
        organization_id: int,
        start: datetime,
        end: datetime,
        chat_ids: Collection[int] | None,
    ) -> list:
        filters = [
            Message.organization_id == organization_id,
            Message.created_at >= start,
            Message.created_at <= end,
            Message.content.is_not(None),
        ]
        if chat_ids is not None:
            filters.append(Message.chat_id.in_(list(chat_ids)))
        return filters

    async def count_in_window(
        self,
        organization_id: int,
        start: datetime,
        end: datetime,
        chat_ids: Collection[int] | None = None,
    ) -> int:
        """Count messages in the window (count-only query, no rows)."""
        stmt = (
            select(func.count())
            .select_from(Message)
            .where(*self._window_filters(organization_id, start, end, chat_ids))
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0

    async def fetch_page(
        self,
        organization_id: int,
        start: datetime,
        end: datetime,
        offset: int,
        limit: int,
        chat_ids: Collection[int] | None = None,
    ) -> list[Message]:
        """Fetch one page of messages with their chat eagerly loaded.

        Ordered by ``(created_at, id)`` so consecutive pages never overlap.
        """
        stmt = (
            select(Message)
            .options(selectinload(Message.chat))
            .where(*self._window_filters(organization_id, start, end, chat_ids))
            .order_by(Message.created_at, Message.id)
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
