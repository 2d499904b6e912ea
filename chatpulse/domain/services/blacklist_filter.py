"""Drop messages from blacklisted customer numbers."""

import logging
import re
from collections.abc import Iterable

from chatpulse.domain.models.analytics import MessageRow

logger = logging.getLogger(__name__)

_SENDER_PHONE = re.compile(r"\d{10,}")
_JID_PHONE = re.compile(r"(\d+)@")


def extract_phone_number(message: MessageRow) -> str | None:
    """Customer phone number of a message.

    Taken from the sender name (first run of at least ten digits), else from
    the chat's WhatsApp JID (digits before ``@``).
    """
    if message.sender_name:
        match = _SENDER_PHONE.search(message.sender_name)
        if match:
            return match.group(0)
    if message.chat is not None and message.chat.whatsapp_jid:
        match = _JID_PHONE.search(message.chat.whatsapp_jid)
        if match:
            return match.group(1)
    return None


def filter_blacklisted(
    messages: Iterable[MessageRow], blacklist: set[str] | None
) -> list[MessageRow]:
    """Remove messages whose phone number is blacklisted.

    Messages without an extractable number are kept. ``blacklist=None`` means
    the lookup failed, in which case every message is kept.
    """
    messages = list(messages)
    if not blacklist:
        return messages

    kept = []
    for message in messages:
        number = extract_phone_number(message)
        if number is None or number not in blacklist:
            kept.append(message)

    removed = len(messages) - len(kept)
    if removed:
        logger.info("Filtered blacklisted messages", extra={"removed": removed})
    return kept
