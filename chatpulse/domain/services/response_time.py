"""First-response time statistics."""

from collections.abc import Iterable
from dataclasses import dataclass

from chatpulse.domain.models.analytics import ConversationRecord, MessageRow
from chatpulse.utils.numbers import mean


@dataclass(frozen=True)
class ResponseTimeStats:
    """Aggregate over first-response samples, in seconds."""

    samples: tuple[float, ...]

    @property
    def count(self) -> int:
        return len(self.samples)

    @property
    def average(self) -> float | None:
        return mean(list(self.samples))

    @property
    def best(self) -> float | None:
        return min(self.samples) if self.samples else None


def first_response_seconds(messages: Iterable[MessageRow]) -> float | None:
    """Seconds from the first customer message to the first agent message.

    Returns None when either side is missing or the agent spoke first; a
    conversation never contributes a zero sample for lack of data.
    """
    first_customer = None
    first_agent = None
    for message in sorted(messages, key=lambda m: (m.created_at, m.id)):
        if message.is_from_me:
            if first_agent is None:
                first_agent = message
        elif first_customer is None:
            first_customer = message
        if first_agent is not None and first_customer is not None:
            break

    if first_customer is None or first_agent is None:
        return None
    if first_agent.created_at <= first_customer.created_at:
        return None
    return (first_agent.created_at - first_customer.created_at).total_seconds()


def response_time_stats(conversations: Iterable[ConversationRecord]) -> ResponseTimeStats:
    """Collect one sample per conversation that has one."""
    samples = []
    for conversation in conversations:
        seconds = first_response_seconds(conversation.messages)
        if seconds is not None:
            samples.append(seconds)
    return ResponseTimeStats(samples=tuple(samples))


def response_time_for_messages(messages: Iterable[MessageRow]) -> ResponseTimeStats:
    """Group raw messages by chat and collect first-response samples."""
    by_chat: dict[int, list[MessageRow]] = {}
    for message in messages:
        if message.chat_id is not None:
            by_chat.setdefault(message.chat_id, []).append(message)
    samples = []
    for chat_id in sorted(by_chat):
        seconds = first_response_seconds(by_chat[chat_id])
        if seconds is not None:
            samples.append(seconds)
    return ResponseTimeStats(samples=tuple(samples))
