"""Row source adapter.

Reads messages, chats, profiles and lookup tables for one organization and
converts them into the analytics row types. The backing store caps every
single fetch at ``store_max_rows_per_fetch`` rows, so message reads issue a
count query first and then page through the matching rows.

Every public method opens its own session so independent fetches can run
concurrently with ``asyncio.gather``.
"""

import logging
from collections.abc import Awaitable, Callable, Collection
from datetime import datetime
from typing import TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from chatpulse.domain.models.analytics import (
    AgentRow,
    ChatAnalyticsRow,
    ChatMeta,
    MessageRow,
    PagedFetch,
    TeamRow,
)
from chatpulse.domain.services.conversation_aggregator import DEFAULT_PLATFORM, DEFAULT_PRIORITY, DEFAULT_STATUS
from chatpulse.domain.services.conversation_report import ConversationFilters
from chatpulse.persistence.database import STORE_ERRORS, Database
from chatpulse.persistence.models.chat import Chat, Message
from chatpulse.persistence.repositories import (
    BlacklistRepository,
    ChatRepository,
    MessageRepository,
    OrganizationRepository,
    ProfileRepository,
    TeamRepository,
)
from chatpulse.settings import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

# What a NULL chat column is reported as
CHAT_DEFAULTS = {"platform": DEFAULT_PLATFORM, "status": DEFAULT_STATUS, "priority": DEFAULT_PRIORITY}


def chat_to_meta(chat: Chat) -> ChatMeta:
    return ChatMeta(
        id=chat.id,
        name=chat.name,
        whatsapp_jid=chat.whatsapp_jid,
        platform=chat.platform,
        status=chat.status,
        priority=chat.priority,
        department=chat.department,
        assigned_agent_id=chat.assigned_agent_id,
        created_at=chat.created_at,
        last_message_at=chat.last_message_at,
    )


def message_to_row(message: Message) -> MessageRow:
    return MessageRow(
        id=message.id,
        chat_id=message.chat_id,
        organization_id=message.organization_id,
        content=message.content,
        created_at=message.created_at,
        is_from_me=bool(message.is_from_me),
        sender_name=message.sender_name,
        user_id=message.user_id,
        chat=chat_to_meta(message.chat) if message.chat is not None else None,
    )


class RowSource:
    """Organization-scoped reads for the analytics engine."""

    def __init__(self, database: Database, max_rows_per_fetch: int | None = None):
        self.database = database
        self.max_rows_per_fetch = max_rows_per_fetch or settings.store_max_rows_per_fetch

    async def _read(
        self,
        what: str,
        organization_id: int,
        read: Callable[[AsyncSession], Awaitable[T]],
        default: T,
    ) -> T:
        """Run ``read`` on a fresh session, degrading to ``default`` on store errors."""
        try:
            async with self.database.session() as session:
                return await read(session)
        except STORE_ERRORS as e:
            logger.warning(
                f"Failed to fetch {what}: {e}",
                extra={"organization_id": organization_id},
            )
            return default

    async def fetch_messages(
        self,
        organization_id: int,
        start: datetime,
        end: datetime,
        chat_ids: Collection[int] | None = None,
        max_pages: int | None = None,
    ) -> PagedFetch:
        """Fetch the messages of a window.

        Args:
            organization_id: Organization ID
            start: Inclusive window start (naive UTC)
            end: Inclusive window end (naive UTC)
            chat_ids: Optional allow-list; an empty allow-list returns nothing
                without touching the store
            max_pages: Optional page bound (sample mode)

        Returns:
            PagedFetch with the authoritative count and the fetched sample.
            On a store error the fetch is empty and carries the error.
        """
        if chat_ids is not None and not chat_ids:
            return PagedFetch.empty()

        allowed = frozenset(chat_ids) if chat_ids is not None else None
        cap = self.max_rows_per_fetch
        try:
            async with self.database.session() as session:
                repo = MessageRepository(session)
                count = await repo.count_in_window(organization_id, start, end, allowed)

                sample: list[MessageRow] = []
                pages = 0
                truncated = False
                while len(sample) < count:
                    if max_pages is not None and pages >= max_pages:
                        truncated = True
                        break
                    page = await repo.fetch_page(
                        organization_id, start, end, offset=pages * cap, limit=cap, chat_ids=allowed
                    )
                    pages += 1
                    sample.extend(message_to_row(message) for message in page)
                    if len(page) < cap:
                        break
        except STORE_ERRORS as e:
            logger.error(
                f"Message fetch failed: {e}",
                extra={"organization_id": organization_id},
            )
            return PagedFetch.empty(error=str(e))

        if allowed is not None:
            sample = [row for row in sample if row.chat_id in allowed]

        is_complete = not truncated and len(sample) == count
        if not is_complete:
            logger.info(
                "Message fetch is partial",
                extra={
                    "organization_id": organization_id,
                    "authoritative_count": count,
                    "fetched": len(sample),
                    "pages": pages,
                },
            )
        return PagedFetch(sample=sample, authoritative_count=count, is_complete=is_complete)

    async def fetch_agents(self, organization_id: int) -> list[AgentRow]:
        """Non-deleted profiles of the organization, ordered by name."""

        async def read(session: AsyncSession) -> list[AgentRow]:
            profiles = await ProfileRepository(session).list_active(organization_id)
            return [
                AgentRow(
                    id=profile.id,
                    organization_id=profile.organization_id,
                    name=profile.name,
                    email=profile.email,
                    department=profile.department,
                    is_online=bool(profile.is_online),
                    role_name=profile.role.name if profile.role is not None else profile.user_role,
                )
                for profile in profiles
            ]

        return await self._read("agents", organization_id, read, [])

    async def fetch_chat_ids_for_agent(self, organization_id: int, agent_id: int) -> frozenset[int] | None:
        """Chats assigned to an agent, or None when the lookup failed."""

        async def read(session: AsyncSession) -> frozenset[int] | None:
            return frozenset(await ChatRepository(session).list_ids_for_agent(organization_id, agent_id))

        return await self._read("agent chat ids", organization_id, read, None)

    async def fetch_conversations(
        self,
        organization_id: int,
        filters: ConversationFilters,
        chat_ids: Collection[int] | None = None,
    ) -> list[ChatMeta]:
        """Chats passing the report filters; an empty allow-list returns nothing."""
        if chat_ids is not None and not chat_ids:
            return []

        async def read(session: AsyncSession) -> list[ChatMeta]:
            chats = await ChatRepository(session).list_filtered(
                organization_id,
                chat_ids=chat_ids,
                agent_ids=filters.agent_ids,
                platforms=filters.channels,
                statuses=filters.store_statuses,
                departments=filters.departments,
                priorities=filters.priorities,
                defaults=CHAT_DEFAULTS,
            )
            return [chat_to_meta(chat) for chat in chats]

        return await self._read("conversations", organization_id, read, [])

    async def fetch_chat_analytics(
        self, organization_id: int, chat_ids: Collection[int]
    ) -> list[ChatAnalyticsRow]:
        if not chat_ids:
            return []

        async def read(session: AsyncSession) -> list[ChatAnalyticsRow]:
            records = await ChatRepository(session).list_analytics(organization_id, chat_ids)
            return [
                ChatAnalyticsRow(
                    chat_id=record.chat_id,
                    resolution_status=record.resolution_status,
                    customer_satisfaction=record.customer_satisfaction,
                )
                for record in records
            ]

        return await self._read("chat analytics", organization_id, read, [])

    async def fetch_teams(self, organization_id: int) -> list[TeamRow]:
        async def read(session: AsyncSession) -> list[TeamRow]:
            teams = await TeamRepository(session).list(organization_id, limit=None)
            return [TeamRow(id=team.id, name=team.name) for team in teams]

        return await self._read("teams", organization_id, read, [])

    async def fetch_blacklist(self, organization_id: int) -> set[str] | None:
        """Active blacklisted numbers, or None when the lookup failed."""

        async def read(session: AsyncSession) -> set[str] | None:
            return await BlacklistRepository(session).list_active_numbers(organization_id)

        return await self._read("blacklist", organization_id, read, None)

    async def fetch_timezone(self, organization_id: int) -> str:
        async def read(session: AsyncSession) -> str:
            timezone = await OrganizationRepository(session).get_timezone(organization_id)
            return timezone or settings.default_timezone

        return await self._read("organization timezone", organization_id, read, settings.default_timezone)
