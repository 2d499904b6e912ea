"""Request-scoped analytics data types.

Rows fetched from the store are converted to these frozen dataclasses so the
aggregation services never touch ORM objects or sessions. Derived records
(conversations, agent metrics, trend points) live only for one request.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from chatpulse.utils.numbers import round_int

# Sent/received ratio assumed when a sample holds no rows at all
DEFAULT_SENT_RATIO = 0.5

ACTIVE_STATUSES = frozenset({"active", "pending"})
FINISHED_STATUSES = frozenset({"finished", "closed"})


@dataclass(frozen=True)
class ChatMeta:
    """Minimal chat metadata joined onto every fetched message."""

    id: int
    name: str | None = None
    whatsapp_jid: str | None = None
    platform: str | None = None
    status: str | None = None
    priority: str | None = None
    department: str | None = None
    assigned_agent_id: int | None = None
    created_at: datetime | None = None
    last_message_at: datetime | None = None


@dataclass(frozen=True)
class MessageRow:
    id: int
    chat_id: int | None
    organization_id: int
    content: str | None
    created_at: datetime
    is_from_me: bool
    sender_name: str | None = None
    user_id: int | None = None
    chat: ChatMeta | None = None


@dataclass(frozen=True)
class AgentRow:
    id: int
    organization_id: int
    name: str | None = None
    email: str | None = None
    department: str | None = None
    is_online: bool = False
    role_name: str | None = None

    @property
    def display_name(self) -> str:
        if self.name:
            return self.name
        if self.email:
            return self.email.split("@")[0]
        return "Agent"


@dataclass(frozen=True)
class ChatAnalyticsRow:
    chat_id: int
    resolution_status: str | None = None
    customer_satisfaction: float | None = None  # 1-5


@dataclass(frozen=True)
class TeamRow:
    id: int
    name: str


@dataclass
class PagedFetch:
    """Result of a count query plus range-paginated fetches.

    ``authoritative_count`` comes from the count query and is the number to
    report as a total; ``sample`` holds the rows actually fetched.
    ``is_complete`` is True when every page was read.
    """

    sample: list[MessageRow]
    authoritative_count: int
    is_complete: bool
    error: str | None = None

    @classmethod
    def empty(cls, error: str | None = None) -> "PagedFetch":
        return cls(sample=[], authoritative_count=0, is_complete=error is None, error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_exact(self) -> bool:
        """True when the sample is the whole matching set."""
        return self.is_complete and len(self.sample) == self.authoritative_count

    def message_split(self) -> tuple[int, int, int]:
        """Return ``(total, sent, received)`` for the whole matching set.

        Exact counts when the sample is the full set; otherwise the sample's
        sent ratio is extrapolated onto the authoritative count. In both cases
        ``sent + received == total``.
        """
        total = self.authoritative_count
        sample_sent = sum(1 for row in self.sample if row.is_from_me)
        if self.is_exact:
            return total, sample_sent, total - sample_sent
        ratio = sample_sent / len(self.sample) if self.sample else DEFAULT_SENT_RATIO
        sent = min(total, round_int(total * ratio))
        return total, sent, total - sent


@dataclass
class ConversationRecord:
    """One conversation derived from the messages sharing a chat_id.

    ``total_messages`` is derived from the two counters so it can never drift.
    """

    chat_id: int
    name: str
    platform: str
    status: str
    priority: str
    department: str | None
    assigned_agent_id: int | None
    created_at: datetime
    last_message_at: datetime
    whatsapp_jid: str | None = None
    sent_messages: int = 0
    received_messages: int = 0
    messages: list[MessageRow] = field(default_factory=list, repr=False)

    @property
    def total_messages(self) -> int:
        return self.sent_messages + self.received_messages

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_STATUSES

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def to_dict(self) -> dict[str, Any]:
        return {
            "chat_id": self.chat_id,
            "name": self.name,
            "platform": self.platform,
            "status": self.status,
            "priority": self.priority,
            "department": self.department,
            "assigned_agent_id": self.assigned_agent_id,
            "created_at": self.created_at,
            "last_message_at": self.last_message_at,
            "total_messages": self.total_messages,
            "sent_messages": self.sent_messages,
            "received_messages": self.received_messages,
        }


@dataclass
class AgentMetrics:
    """Per-agent metrics for one window."""

    id: int
    name: str
    email: str | None
    department: str | None
    is_online: bool
    role: str | None
    sent_messages: int = 0
    received_messages: int = 0
    avg_response_time_seconds: float | None = None
    best_response_time_seconds: float | None = None
    resolution_rate: float = 0.0
    customer_satisfaction: float | None = None
    productivity_score: int | None = None  # None when the agent had no activity
    total_conversations: int = 0
    active_conversations: int = 0
    finished_conversations: int = 0

    @property
    def total_messages(self) -> int:
        return self.sent_messages + self.received_messages

    @property
    def is_scored(self) -> bool:
        return self.productivity_score is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "department": self.department,
            "is_online": self.is_online,
            "role": self.role,
            "sent_messages": self.sent_messages,
            "received_messages": self.received_messages,
            "total_messages": self.total_messages,
            "avg_response_time_seconds": self.avg_response_time_seconds,
            "best_response_time_seconds": self.best_response_time_seconds,
            "resolution_rate": self.resolution_rate,
            "customer_satisfaction": self.customer_satisfaction,
            "productivity_score": self.productivity_score,
            "total_conversations": self.total_conversations,
            "active_conversations": self.active_conversations,
            "finished_conversations": self.finished_conversations,
        }


@dataclass
class TrendPoint:
    period_label: str
    messages: int = 0
    sent_messages: int = 0
    received_messages: int = 0
    active_users: int = 0
    avg_response_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_label": self.period_label,
            "messages": self.messages,
            "sent_messages": self.sent_messages,
            "received_messages": self.received_messages,
            "active_users": self.active_users,
            "avg_response_time": self.avg_response_time,
        }


@dataclass
class HeatmapCell:
    day_of_week: int  # 0=Sunday, 6=Saturday
    hour: int  # 0-23
    value: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"day_of_week": self.day_of_week, "hour": self.hour, "value": self.value}
