"""Conversation report.

One row per conversation seen in the window: assigned agent, duration,
message counts and the sentiment of the customer's messages. Chats are
narrowed by channel, agent, status, department and priority in the store;
keywords are matched here against the chat name and message text.
"""

from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from chatpulse.domain.models.analytics import ChatMeta, ConversationRecord, MessageRow
from chatpulse.domain.services.conversation_aggregator import aggregate_conversations
from chatpulse.domain.services.sentiment import SentimentEstimator

UNASSIGNED_AGENT_NAME = "Unassigned"

# Statuses shown under a different name in the report
REPORT_STATUS_ALIASES = {"finished": "closed"}


def split_values(value: str | Iterable[str] | None) -> list[str]:
    """Comma-separated string or list of strings to trimmed, non-empty values."""
    if value is None:
        return []
    parts = value.split(",") if isinstance(value, str) else [str(item) for item in value]
    return [part.strip() for part in parts if part and part.strip()]


def _lowered(values: Iterable[str]) -> frozenset[str] | None:
    lowered = frozenset(value.lower() for value in values)
    return lowered or None


def report_status(conversation: ConversationRecord) -> str:
    return REPORT_STATUS_ALIASES.get(conversation.status, conversation.status)


@dataclass(frozen=True)
class ConversationFilters:
    """Report filters. ``None`` means the dimension is not filtered."""

    channels: frozenset[str] | None = None
    agent_ids: frozenset[int] | None = None
    statuses: frozenset[str] | None = None
    departments: frozenset[str] | None = None
    priorities: frozenset[str] | None = None
    keywords: tuple[str, ...] = ()

    @classmethod
    def build(
        cls,
        channels: str | Iterable[str] | None = None,
        agent_ids: Iterable[int] | None = None,
        statuses: str | Iterable[str] | None = None,
        departments: str | Iterable[str] | None = None,
        priority: str | Iterable[str] | None = None,
        keywords: str | Iterable[str] | None = None,
    ) -> "ConversationFilters":
        agent_ids = frozenset(agent_ids or ())
        return cls(
            channels=_lowered(split_values(channels)),
            agent_ids=agent_ids or None,
            statuses=_lowered(split_values(statuses)),
            departments=_lowered(split_values(departments)),
            priorities=_lowered(split_values(priority)),
            keywords=tuple(dict.fromkeys(keyword.lower() for keyword in split_values(keywords))),
        )

    @property
    def store_statuses(self) -> frozenset[str] | None:
        """Statuses as stored, so filtering on "closed" also finds "finished" chats."""
        if self.statuses is None:
            return None
        stored = {raw for raw, shown in REPORT_STATUS_ALIASES.items() if shown in self.statuses}
        return self.statuses | stored

    def to_dict(self) -> dict[str, Any]:
        def listed(values):
            return sorted(values) if values is not None else None

        return {
            "channels": listed(self.channels),
            "agent_ids": listed(self.agent_ids),
            "statuses": listed(self.statuses),
            "departments": listed(self.departments),
            "priorities": listed(self.priorities),
            "keywords": list(self.keywords),
        }


def mentions_keyword(conversation: ConversationRecord, keywords: Collection[str]) -> bool:
    """Any keyword in the conversation's name or in one of its messages."""
    texts = [conversation.name] + [message.content or "" for message in conversation.messages]
    haystack = " ".join(texts).lower()
    return any(keyword in haystack for keyword in keywords)


def build_conversation_report(
    messages: Iterable[MessageRow],
    chats: Iterable[ChatMeta],
    agent_names: Mapping[int, str],
    keywords: Collection[str] = (),
    sentiment: SentimentEstimator | None = None,
) -> list[dict[str, Any]]:
    """Report rows for the chats in ``chats`` that had messages in the window.

    Args:
        messages: Scoped, blacklist-filtered messages
        chats: Chats that passed the store-side filters
        agent_names: Display name by profile ID
        keywords: Lowercase keywords; a conversation must mention one
        sentiment: Estimator used for the per-conversation breakdown

    Returns:
        Rows ordered by chat ID
    """
    sentiment = sentiment or SentimentEstimator()
    chat_ids = {chat.id for chat in chats}
    selected = [message for message in messages if message.chat_id in chat_ids]

    rows = []
    for conversation in aggregate_conversations(selected):
        if keywords and not mentions_keyword(conversation, keywords):
            continue
        row = conversation.to_dict()
        duration = conversation.last_message_at - conversation.created_at
        row.update(
            status=report_status(conversation),
            agent_name=agent_names.get(conversation.assigned_agent_id, UNASSIGNED_AGENT_NAME),
            duration_seconds=max(0, int(duration.total_seconds())),
            sentiment=sentiment.breakdown(conversation.messages).to_dict(),
        )
        rows.append(row)
    return rows
