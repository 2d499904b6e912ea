"""Chat repository."""

from collections.abc import Collection, Mapping

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatpulse.persistence.models.chat import Chat, ChatAnalytics
from chatpulse.persistence.repositories.base import BaseRepository


class ChatRepository(BaseRepository[Chat]):
    """Repository for Chat entities."""

    def __init__(self, session: AsyncSession):
        """Initialize chat repository."""
        super().__init__(Chat, session)

    async def list_ids_for_agent(self, organization_id: int, agent_id: int) -> list[int]:
        """IDs of the organization's chats assigned to an agent.

        Args:
            organization_id: Organization ID
            agent_id: Profile ID of the assigned agent

        Returns:
            Chat IDs, possibly empty
        """
        stmt = select(Chat.id).where(
            Chat.organization_id == organization_id,
            Chat.assigned_agent_id == agent_id,
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def list_filtered(
        self,
        organization_id: int,
        chat_ids: Collection[int] | None = None,
        agent_ids: Collection[int] | None = None,
        platforms: Collection[str] | None = None,
        statuses: Collection[str] | None = None,
        departments: Collection[str] | None = None,
        priorities: Collection[str] | None = None,
        defaults: Mapping[str, str] | None = None,
    ) -> list[Chat]:
        """List the organization's chats matching every given filter.

        Text filters compare lowercase values. ``defaults`` maps a column name
        to the value a NULL in that column stands for, so filtering on the
        default also matches unset rows.
        """
        defaults = defaults or {}
        stmt = select(Chat).where(Chat.organization_id == organization_id)
        if chat_ids is not None:
            stmt = stmt.where(Chat.id.in_(list(chat_ids)))
        if agent_ids is not None:
            stmt = stmt.where(Chat.assigned_agent_id.in_(list(agent_ids)))
        for column, values in (
            (Chat.platform, platforms),
            (Chat.status, statuses),
            (Chat.department, departments),
            (Chat.priority, priorities),
        ):
            if values is None:
                continue
            condition = func.lower(column).in_(sorted(values))
            default = defaults.get(column.key)
            if default is not None and default.lower() in values:
                condition = or_(condition, column.is_(None))
            stmt = stmt.where(condition)
        result = await self.session.execute(stmt.order_by(Chat.id))
        return list(result.scalars().all())

    async def list_analytics(
        self, organization_id: int, chat_ids: Collection[int]
    ) -> list[ChatAnalytics]:
        """Analytics records for the given chats."""
        if not chat_ids:
            return []
        stmt = select(ChatAnalytics).where(
            ChatAnalytics.organization_id == organization_id,
            ChatAnalytics.chat_id.in_(list(chat_ids)),
        ).order_by(ChatAnalytics.id)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
