"""Group messages into per-chat conversation records."""

import logging
from collections.abc import Iterable

from chatpulse.domain.models.analytics import ConversationRecord, MessageRow

logger = logging.getLogger(__name__)

DEFAULT_CONVERSATION_NAME = "Untitled conversation"
DEFAULT_PLATFORM = "whatsapp"
DEFAULT_STATUS = "active"
DEFAULT_PRIORITY = "normal"


def _new_record(message: MessageRow) -> ConversationRecord:
    chat = message.chat
    name = (chat.name or chat.whatsapp_jid) if chat is not None else None
    return ConversationRecord(
        chat_id=message.chat_id,
        name=name or DEFAULT_CONVERSATION_NAME,
        platform=(chat.platform if chat is not None else None) or DEFAULT_PLATFORM,
        status=(chat.status if chat is not None else None) or DEFAULT_STATUS,
        priority=(chat.priority if chat is not None else None) or DEFAULT_PRIORITY,
        department=chat.department if chat is not None else None,
        assigned_agent_id=chat.assigned_agent_id if chat is not None else None,
        created_at=(chat.created_at if chat is not None else None) or message.created_at,
        last_message_at=(chat.last_message_at if chat is not None else None) or message.created_at,
        whatsapp_jid=chat.whatsapp_jid if chat is not None else None,
    )


def aggregate_conversations(messages: Iterable[MessageRow]) -> list[ConversationRecord]:
    """Build one ConversationRecord per distinct chat id.

    Each message increments exactly one of the sent/received counters, so
    ``total_messages`` always equals their sum. Messages without a chat id are
    dropped. The result is ordered by chat id and does not depend on input
    order.
    """
    records: dict[int, ConversationRecord] = {}
    # Timestamps only fill in when the chat row does not carry them
    fallback_created: set[int] = set()
    fallback_last: set[int] = set()
    dropped = 0

    for message in messages:
        if message.chat_id is None:
            dropped += 1
            continue

        record = records.get(message.chat_id)
        if record is None:
            record = _new_record(message)
            records[message.chat_id] = record
            if message.chat is None or message.chat.created_at is None:
                fallback_created.add(message.chat_id)
            if message.chat is None or message.chat.last_message_at is None:
                fallback_last.add(message.chat_id)
        else:
            if message.chat_id in fallback_created and message.created_at < record.created_at:
                record.created_at = message.created_at
            if message.chat_id in fallback_last and message.created_at > record.last_message_at:
                record.last_message_at = message.created_at

        if message.is_from_me:
            record.sent_messages += 1
        else:
            record.received_messages += 1
        record.messages.append(message)

    if dropped:
        logger.info("Dropped messages without a chat", extra={"dropped": dropped})

    return [records[chat_id] for chat_id in sorted(records)]


def count_by_status(conversations: Iterable[ConversationRecord]) -> tuple[int, int, int]:
    """Return ``(total, active, finished)`` conversation counts."""
    total = active = finished = 0
    for conversation in conversations:
        total += 1
        if conversation.is_active:
            active += 1
        elif conversation.is_finished:
            finished += 1
    return total, active, finished
