"""Tests for the conversation report."""

from datetime import datetime, timedelta

from chatpulse.domain.models.analytics import ChatMeta, MessageRow
from chatpulse.domain.services.conversation_report import (
    ConversationFilters,
    build_conversation_report,
    split_values,
)

START = datetime(2024, 3, 4, 9, 0)

OPEN_CHAT = ChatMeta(id=1, name="Maria", status="active", assigned_agent_id=3)
DONE_CHAT = ChatMeta(id=2, status="finished", created_at=START, last_message_at=START + timedelta(minutes=30))
ORPHAN_CHAT = ChatMeta(id=3, name="Joao", assigned_agent_id=99)


def make_message(id, chat, minutes, is_from_me, content="ok"):
    return MessageRow(
        id=id,
        chat_id=chat.id,
        organization_id=1,
        content=content,
        created_at=START + timedelta(minutes=minutes),
        is_from_me=is_from_me,
        chat=chat,
    )


MESSAGES = [
    make_message(1, OPEN_CHAT, 0, False, "bom dia"),
    make_message(2, OPEN_CHAT, 5, True),
    make_message(3, OPEN_CHAT, 9, False, "obrigado"),
    make_message(4, DONE_CHAT, 1, False, "atendimento péssimo"),
    make_message(5, DONE_CHAT, 2, True, "desculpe"),
    make_message(6, ORPHAN_CHAT, 3, False),
]
AGENT_NAMES = {3: "Ana"}


class TestConversationFilters:
    def test_split_values(self):
        assert split_values(" whatsapp, ,Telegram ") == ["whatsapp", "Telegram"]
        assert split_values(["a", "", " b"]) == ["a", "b"]
        assert split_values(None) == []

    def test_empty_filters_are_unset(self):
        filters = ConversationFilters.build(channels="", statuses=[], keywords=" ")

        assert filters == ConversationFilters()
        assert filters.store_statuses is None

    def test_build_normalizes_values(self):
        filters = ConversationFilters.build(
            channels="WhatsApp,telegram",
            agent_ids=[4, 3, 4],
            statuses="Closed",
            departments=["Vendas"],
            priority="high",
            keywords="Boleto, boleto,PIX",
        )

        assert filters.to_dict() == {
            "channels": ["telegram", "whatsapp"],
            "agent_ids": [3, 4],
            "statuses": ["closed"],
            "departments": ["vendas"],
            "priorities": ["high"],
            "keywords": ["boleto", "pix"],
        }

    def test_closed_includes_stored_alias(self):
        assert ConversationFilters.build(statuses="closed").store_statuses == {"closed", "finished"}
        assert ConversationFilters.build(statuses="pending").store_statuses == {"pending"}


class TestBuildConversationReport:
    def test_rows_cover_selected_chats_only(self):
        rows = build_conversation_report(MESSAGES, [OPEN_CHAT, DONE_CHAT], AGENT_NAMES)

        assert [row["chat_id"] for row in rows] == [1, 2]

    def test_row_contents(self):
        rows = build_conversation_report(MESSAGES, [OPEN_CHAT, DONE_CHAT, ORPHAN_CHAT], AGENT_NAMES)
        by_id = {row["chat_id"]: row for row in rows}

        open_row = by_id[1]
        assert open_row["name"] == "Maria"
        assert open_row["agent_name"] == "Ana"
        assert open_row["status"] == "active"
        assert (open_row["sent_messages"], open_row["received_messages"], open_row["total_messages"]) == (1, 2, 3)
        # Timestamps fall back to the first and last message
        assert open_row["duration_seconds"] == 9 * 60
        assert open_row["sentiment"] == {"positive": 1, "negative": 0, "neutral": 1}

        done_row = by_id[2]
        assert done_row["status"] == "closed"
        assert done_row["agent_name"] == "Unassigned"
        assert done_row["duration_seconds"] == 30 * 60
        assert done_row["sentiment"] == {"positive": 0, "negative": 1, "neutral": 0}

        assert by_id[3]["agent_name"] == "Unassigned"

    def test_keywords_match_name_or_messages(self):
        chats = [OPEN_CHAT, DONE_CHAT, ORPHAN_CHAT]

        by_message = build_conversation_report(MESSAGES, chats, AGENT_NAMES, keywords=("péssimo",))
        by_name = build_conversation_report(MESSAGES, chats, AGENT_NAMES, keywords=("joao", "nada"))

        assert [row["chat_id"] for row in by_message] == [2]
        # A matching conversation keeps all of its messages
        assert by_message[0]["total_messages"] == 2
        assert [row["chat_id"] for row in by_name] == [3]

    def test_duration_is_never_negative(self):
        late_chat = ChatMeta(id=7, created_at=START + timedelta(hours=1), last_message_at=START)

        rows = build_conversation_report([make_message(1, late_chat, 0, False)], [late_chat], {})

        assert rows[0]["duration_seconds"] == 0

    def test_no_chats_no_rows(self):
        assert build_conversation_report(MESSAGES, [], AGENT_NAMES) == []
