"""Contact productivity report.

A contact is one chat seen in the window. Active contacts received at least
one agent message; reactive contacts sent at least one message themselves.
A contact can be both.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from typing import Any

from chatpulse.domain.models.analytics import ConversationRecord, MessageRow
from chatpulse.domain.services.conversation_aggregator import aggregate_conversations
from chatpulse.domain.services.time_window import TimeWindow
from chatpulse.utils.numbers import round_int


@dataclass
class ContactRecord:
    chat_id: int
    contact_name: str
    contact_phone: str
    assigned_agent_id: int | None
    platform: str
    status: str
    department: str | None
    priority: str
    first_message_at: Any
    last_message_at: Any
    messages_sent: int = 0
    messages_received: int = 0

    @property
    def total_messages(self) -> int:
        return self.messages_sent + self.messages_received

    @property
    def is_active(self) -> bool:
        return self.messages_sent > 0

    @property
    def is_reactive(self) -> bool:
        return self.messages_received > 0

    @classmethod
    def from_conversation(cls, conversation: ConversationRecord) -> "ContactRecord":
        return cls(
            chat_id=conversation.chat_id,
            contact_name=conversation.name,
            contact_phone=conversation.whatsapp_jid or "",
            assigned_agent_id=conversation.assigned_agent_id,
            platform=conversation.platform,
            status=conversation.status,
            department=conversation.department,
            priority=conversation.priority,
            first_message_at=conversation.created_at,
            last_message_at=conversation.last_message_at,
            messages_sent=conversation.sent_messages,
            messages_received=conversation.received_messages,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "chat_id": self.chat_id,
            "contact_name": self.contact_name,
            "contact_phone": self.contact_phone,
            "assigned_agent_id": self.assigned_agent_id,
            "platform": self.platform,
            "status": self.status,
            "department": self.department,
            "priority": self.priority,
            "first_message_at": self.first_message_at,
            "last_message_at": self.last_message_at,
            "total_messages": self.total_messages,
            "messages_sent": self.messages_sent,
            "messages_received": self.messages_received,
        }


@dataclass
class DailyContactStats:
    date: date
    unique_contacts: set[int] = field(default_factory=set)
    active_contacts: set[int] = field(default_factory=set)
    reactive_contacts: set[int] = field(default_factory=set)
    messages_sent: int = 0
    messages_received: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "unique_contacts": len(self.unique_contacts),
            "active_contacts": len(self.active_contacts),
            "reactive_contacts": len(self.reactive_contacts),
            "total_messages": self.messages_sent + self.messages_received,
            "messages_sent": self.messages_sent,
            "messages_received": self.messages_received,
        }


def build_contact_report(messages: Iterable[MessageRow], window: TimeWindow) -> dict[str, Any]:
    """Summarize contacts, their initiative and a per-day breakdown.

    Args:
        messages: Scoped, blacklist-filtered messages
        window: Window the messages were fetched for

    Returns:
        Dict with contact lists, daily breakdown, summary and period
    """
    messages = [message for message in messages if message.chat_id is not None]
    contacts = [ContactRecord.from_conversation(c) for c in aggregate_conversations(messages)]
    by_chat = {contact.chat_id: contact for contact in contacts}

    daily: dict[date, DailyContactStats] = {}
    for message in messages:
        contact = by_chat[message.chat_id]
        day = message.created_at.date()
        stats = daily.setdefault(day, DailyContactStats(date=day))
        stats.unique_contacts.add(contact.chat_id)
        if contact.is_active:
            stats.active_contacts.add(contact.chat_id)
        if contact.is_reactive:
            stats.reactive_contacts.add(contact.chat_id)
        if message.is_from_me:
            stats.messages_sent += 1
        else:
            stats.messages_received += 1

    active = [contact for contact in contacts if contact.is_active]
    reactive = [contact for contact in contacts if contact.is_reactive]
    sent = sum(1 for message in messages if message.is_from_me)

    return {
        "unique_contacts": [contact.to_dict() for contact in contacts],
        "active_contacts": [contact.to_dict() for contact in active],
        "reactive_contacts": [contact.to_dict() for contact in reactive],
        "daily_breakdown": [daily[day].to_dict() for day in sorted(daily)],
        "summary": {
            "total_unique_contacts": len(contacts),
            "total_active_contacts": len(active),
            "total_reactive_contacts": len(reactive),
            "total_messages": len(messages),
            "total_messages_sent": sent,
            "total_messages_received": len(messages) - sent,
            "average_messages_per_contact": (
                round_int(len(messages) / len(contacts)) if contacts else 0
            ),
        },
        "period": window.to_dict(),
    }
