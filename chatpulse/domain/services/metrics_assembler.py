"""Conversation analytics service.

Resolves the window and the caller's visibility, fetches the scoped rows and
assembles dashboard, trend, heatmap, per-agent, contact and conversation
payloads from them.
Every section of one payload is computed from the same scoped message set.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from chatpulse.domain.errors import AnalyticsInputError
from chatpulse.domain.models.analytics import (
    AgentMetrics,
    AgentRow,
    ConversationRecord,
    MessageRow,
    PagedFetch,
    TeamRow,
    TrendPoint,
)
from chatpulse.domain.services.blacklist_filter import filter_blacklisted
from chatpulse.domain.services.contact_report import build_contact_report
from chatpulse.domain.services.conversation_aggregator import aggregate_conversations, count_by_status
from chatpulse.domain.services.conversation_report import (
    ConversationFilters,
    build_conversation_report,
    split_values,
)
from chatpulse.domain.services.productivity_scorer import (
    ProductivityScorer,
    group_analytics,
    organization_productivity,
)
from chatpulse.domain.services.response_time import response_time_stats
from chatpulse.domain.services.row_source import RowSource
from chatpulse.domain.services.time_window import (
    Granularity,
    TimeWindow,
    WindowKind,
    resolve_time_window,
)
from chatpulse.domain.services.trend_builder import build_heatmap, build_trends
from chatpulse.domain.services.visibility import RoleResolver, VisibilityScope
from chatpulse.persistence.database import Database
from chatpulse.settings import settings
from chatpulse.utils.numbers import round_half_up, round_int

logger = logging.getLogger(__name__)

_ALL_USERS = {"", "all", "null", "undefined"}


def parse_identifier(value: Any, what: str) -> int:
    """Coerce an identifier to int or raise AnalyticsInputError."""
    if value is None or isinstance(value, bool):
        raise AnalyticsInputError(f"{what} is required")
    try:
        return int(str(value).strip())
    except ValueError:
        raise AnalyticsInputError(f"Invalid {what}: {value!r}") from None


def parse_selected_user(value: Any) -> int | None:
    """``None``/``"all"`` mean no narrowing; anything else must be an id."""
    if value is None or (isinstance(value, str) and value.strip().lower() in _ALL_USERS):
        return None
    return parse_identifier(value, "selected_user")


def is_placeholder_profile(agent: AgentRow) -> bool:
    """Seed/test profiles are recognised by keywords in their name or email."""
    haystack = f"{agent.name or ''} {agent.email or ''}".lower()
    return any(keyword in haystack for keyword in settings.placeholder_profile_keywords)


def count_active_teams(
    teams: list[TeamRow], agents: list[AgentRow], messages: list[MessageRow]
) -> int:
    """Teams with at least one member who sent a message or owns a chat in the window."""
    active = 0
    for team in teams:
        member_ids = {agent.id for agent in agents if agent.department == team.name}
        if not member_ids:
            continue
        for message in messages:
            if message.user_id in member_ids:
                active += 1
                break
            if message.chat is not None and message.chat.assigned_agent_id in member_ids:
                active += 1
                break
    return active


@dataclass
class ScopedMessages:
    """The window, scope and message fetch one payload is built from."""

    window: TimeWindow
    scope: VisibilityScope
    fetch: PagedFetch

    @property
    def messages(self) -> list[MessageRow]:
        # The row source already narrows by allow-list; re-check every row
        return [row for row in self.fetch.sample if self.scope.permits(row.chat_id)]


class ConversationAnalyticsService:
    """Build analytics payloads for one organization and caller."""

    def __init__(
        self,
        database: Database,
        row_source: RowSource | None = None,
        role_resolver: RoleResolver | None = None,
        scorer: ProductivityScorer | None = None,
    ):
        self.database = database
        self.row_source = row_source or RowSource(database)
        self.role_resolver = role_resolver or RoleResolver(database)
        self.scorer = scorer or ProductivityScorer()

    async def resolve_scope(
        self,
        organization_id: int,
        user_id: int | None,
        selected_user: int | None = None,
    ) -> VisibilityScope:
        """Resolve what the caller may see.

        Own-records callers are limited to their assigned chats and any
        ``selected_user`` is ignored. Organization-wide viewers may narrow to
        one agent's chats with ``selected_user``.
        """
        role = await self.role_resolver.resolve(organization_id, user_id)

        if role.is_own_records_only:
            agent_id = user_id
        elif selected_user is not None:
            agent_id = selected_user
        else:
            return VisibilityScope(organization_id=organization_id, role=role, user_id=user_id)

        allowed = None
        if agent_id is not None:
            allowed = await self.row_source.fetch_chat_ids_for_agent(organization_id, agent_id)
        return VisibilityScope(
            organization_id=organization_id,
            role=role,
            user_id=user_id,
            allowed_chat_ids=allowed if allowed is not None else frozenset(),
            agent_id=agent_id,
            lookup_failed=agent_id is not None and allowed is None,
        )

    async def _load_messages(
        self,
        organization_id: Any,
        user_id: Any,
        kind: WindowKind,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        granularity: Granularity | str | None = None,
        selected_user: Any = None,
        now: datetime | None = None,
    ) -> tuple[int, ScopedMessages]:
        organization_id = parse_identifier(organization_id, "organization_id")
        user_id = parse_identifier(user_id, "user_id") if user_id is not None else None
        selected = parse_selected_user(selected_user)

        window = resolve_time_window(
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            kind=kind,
            granularity=granularity,
            now=now,
        )
        scope = await self.resolve_scope(organization_id, user_id, selected)

        if scope.lookup_failed:
            fetch = PagedFetch.empty(error="Chat ownership lookup failed")
        else:
            if scope.narrows_to_nothing:
                logger.info(
                    "Caller has no visible chats",
                    extra={"organization_id": organization_id, "user_id": user_id, "role": scope.role.value},
                )
            fetch = await self.row_source.fetch_messages(
                organization_id, window.start, window.end, chat_ids=scope.allowed_chat_ids
            )
        if not fetch.ok:
            logger.error(
                "Analytics served from an empty data set",
                extra={"organization_id": organization_id, "error": fetch.error},
            )
        return organization_id, ScopedMessages(window=window, scope=scope, fetch=fetch)

    def _visible_agents(self, agents: list[AgentRow], scope: VisibilityScope) -> list[AgentRow]:
        if scope.agent_id is not None:
            return [agent for agent in agents if agent.id == scope.agent_id]
        if scope.is_agent:
            return []
        return agents

    async def _score(
        self,
        organization_id: int,
        agents: list[AgentRow],
        conversations: list[ConversationRecord],
    ) -> list[AgentMetrics]:
        analytics_rows = await self.row_source.fetch_chat_analytics(
            organization_id, [c.chat_id for c in conversations]
        )
        return self.scorer.score_agents(agents, conversations, group_analytics(analytics_rows))

    async def build_dashboard(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        granularity: Granularity | str | None = None,
        selected_user: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the full dashboard payload.

        Args:
            organization_id: Caller's organization (required)
            user_id: Caller's profile ID
            date_start: Optional window start
            date_end: Optional window end
            selected_period: Optional period tag used when dates are missing
            granularity: Optional trend granularity override
            selected_user: Optional agent to narrow to (organization-wide viewers only)
            now: Current UTC time (injectable for tests)

        Returns:
            Dict with global, users, productivity, trends, heatmap, period and scope
        """
        organization_id, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.DASHBOARD,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            granularity=granularity,
            selected_user=selected_user,
            now=now,
        )
        agents, teams, timezone = await asyncio.gather(
            self.row_source.fetch_agents(organization_id),
            self.row_source.fetch_teams(organization_id),
            self.row_source.fetch_timezone(organization_id),
        )

        messages = scoped.messages
        conversations = aggregate_conversations(messages)
        visible_agents = self._visible_agents(agents, scoped.scope)
        users = await self._score(organization_id, visible_agents, conversations)

        total_messages, sent, received = scoped.fetch.message_split()
        total_conversations, active_conversations, finished_conversations = count_by_status(conversations)
        avg_response = response_time_stats(conversations).average
        trends = build_trends(messages, scoped.window)
        productivity = organization_productivity(users)

        logger.info(
            "Dashboard built",
            extra={
                "organization_id": organization_id,
                "total_messages": total_messages,
                "conversations": total_conversations,
                "is_complete": scoped.fetch.is_complete,
            },
        )

        return {
            "global": {
                "total_messages": total_messages,
                "sent_messages": sent,
                "received_messages": received,
                "total_conversations": total_conversations,
                "active_conversations": active_conversations,
                "finished_conversations": finished_conversations,
                "avg_response_time": round_int(avg_response) if avg_response is not None else 0,
                "productivity": productivity,
                "total_users": len(visible_agents),
                "active_users": sum(1 for agent in visible_agents if agent.is_online),
                "total_teams": count_active_teams(teams, agents, messages),
                "is_complete": scoped.fetch.ok and scoped.fetch.is_complete,
            },
            "users": [metrics.to_dict() for metrics in users],
            "productivity": self._productivity_section(users, trends, total_messages, scoped.window),
            "trends": [point.to_dict() for point in trends],
            "heatmap": [cell.to_dict() for cell in build_heatmap(messages, timezone)],
            "period": scoped.window.to_dict(),
            "scope": scoped.scope.to_dict(),
        }

    def _productivity_section(
        self,
        users: list[AgentMetrics],
        trends: list[TrendPoint],
        total_messages: int,
        window: TimeWindow,
    ) -> dict[str, Any]:
        return {
            "average_productivity": organization_productivity(users),
            "scored_agents": sum(1 for metrics in users if metrics.is_scored),
            "average_messages_per_day": round_half_up(total_messages / window.days, 2),
            "max_messages": max((point.messages for point in trends), default=0),
            "periods": [
                {"period_label": point.period_label, "messages": point.messages} for point in trends
            ],
        }

    async def build_heatmap(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        selected_user: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the 7 x 24 activity heatmap in the organization's timezone."""
        organization_id, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.DASHBOARD,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            now=now,
        )
        timezone = await self.row_source.fetch_timezone(organization_id)
        return {
            "heatmap": [cell.to_dict() for cell in build_heatmap(scoped.messages, timezone)],
            "timezone": timezone,
            "period": scoped.window.to_dict(),
            "scope": scoped.scope.to_dict(),
        }

    async def build_trends(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        granularity: Granularity | str | None = None,
        selected_user: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Build the trend series for the resolved window."""
        _, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.DASHBOARD,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            granularity=granularity,
            selected_user=selected_user,
            now=now,
        )
        trends = build_trends(scoped.messages, scoped.window)
        return {
            "trends": [point.to_dict() for point in trends],
            "period": scoped.window.to_dict(),
            "scope": scoped.scope.to_dict(),
        }

    async def build_agent_metrics(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        selected_user: Any = None,
        include_placeholders: bool = False,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Per-agent metrics plus team totals over the report window."""
        organization_id, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.REPORT,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            now=now,
        )
        agents = self._visible_agents(await self.row_source.fetch_agents(organization_id), scoped.scope)
        if not include_placeholders:
            agents = [agent for agent in agents if not is_placeholder_profile(agent)]

        conversations = aggregate_conversations(scoped.messages)
        metrics = await self._score(organization_id, agents, conversations)

        online = sum(1 for agent in agents if agent.is_online)
        agent_messages = sum(m.total_messages for m in metrics)
        agent_conversations = sum(m.total_conversations for m in metrics)
        return {
            "agents": [m.to_dict() for m in metrics],
            "totals": {
                "total_agents": len(agents),
                "online_agents": online,
                "offline_agents": len(agents) - online,
                "average_messages_per_agent": (
                    round_half_up(agent_messages / len(agents), 2) if agents else 0
                ),
                "average_messages_per_conversation": (
                    round_half_up(agent_messages / agent_conversations, 2) if agent_conversations else 0
                ),
                "average_productivity": organization_productivity(metrics),
            },
            "period": scoped.window.to_dict(),
            "scope": scoped.scope.to_dict(),
        }

    async def build_contact_report(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        selected_user: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """Contact productivity report over blacklist-filtered messages."""
        organization_id, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.REPORT,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            now=now,
        )
        blacklist = await self.row_source.fetch_blacklist(organization_id)
        messages = filter_blacklisted(scoped.messages, blacklist)

        report = build_contact_report(messages, scoped.window)
        report["filters"] = {
            "organization_id": organization_id,
            "selected_user": None if scoped.scope.is_agent else scoped.scope.agent_id,
        }
        report["is_complete"] = scoped.fetch.ok and scoped.fetch.is_complete
        report["scope"] = scoped.scope.to_dict()
        return report

    async def build_conversation_report(
        self,
        organization_id: Any,
        user_id: Any,
        date_start: Any = None,
        date_end: Any = None,
        selected_period: str | None = None,
        selected_user: Any = None,
        channels: Any = None,
        agents: Any = None,
        statuses: Any = None,
        departments: Any = None,
        priority: Any = None,
        keywords: Any = None,
        now: datetime | None = None,
    ) -> dict[str, Any]:
        """List the visible conversations of the report window.

        Blacklisted numbers are excluded. ``channels``, ``agents``,
        ``statuses``, ``departments``, ``priority`` and ``keywords`` each take
        a comma-separated string or a list; ``agents`` holds profile IDs.
        """
        filters = ConversationFilters.build(
            channels=channels,
            agent_ids=[parse_identifier(agent, "agent id") for agent in split_values(agents)],
            statuses=statuses,
            departments=departments,
            priority=priority,
            keywords=keywords,
        )
        organization_id, scoped = await self._load_messages(
            organization_id,
            user_id,
            WindowKind.REPORT,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            now=now,
        )
        chats, blacklist, agent_rows = await asyncio.gather(
            self.row_source.fetch_conversations(organization_id, filters, chat_ids=scoped.scope.allowed_chat_ids),
            self.row_source.fetch_blacklist(organization_id),
            self.row_source.fetch_agents(organization_id),
        )
        messages = filter_blacklisted(scoped.messages, blacklist)
        agent_names = {agent.id: agent.display_name for agent in agent_rows}

        conversations = build_conversation_report(
            messages, chats, agent_names, keywords=filters.keywords, sentiment=self.scorer.sentiment
        )
        return {
            "conversations": conversations,
            "total": len(conversations),
            "filters": filters.to_dict(),
            "is_complete": scoped.fetch.ok and scoped.fetch.is_complete,
            "period": scoped.window.to_dict(),
            "scope": scoped.scope.to_dict(),
        }
