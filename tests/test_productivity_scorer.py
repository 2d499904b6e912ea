"""Tests for productivity scoring."""

from datetime import datetime, timedelta

from chatpulse.domain.models.analytics import AgentRow, ChatAnalyticsRow, ChatMeta, MessageRow
from chatpulse.domain.services.conversation_aggregator import aggregate_conversations
from chatpulse.domain.services.productivity_scorer import (
    ProductivityScorer,
    ScoreInputs,
    group_analytics,
    organization_productivity,
)

BASE = datetime(2024, 3, 4, 9, 0)
AGENT_A = AgentRow(id=1, organization_id=1, name="Ana", email="ana@acme.io")
AGENT_B = AgentRow(id=2, organization_id=1, name="Bruno", email="bruno@acme.io")


def conversation_messages(chat_id, status, received, sent, start_id):
    """First customer message, agent reply one minute later, then the rest."""
    chat = ChatMeta(id=chat_id, status=status, assigned_agent_id=AGENT_A.id)
    messages = []
    moment = BASE + timedelta(hours=chat_id)
    for index in range(received):
        messages.append(
            MessageRow(
                id=start_id + index,
                chat_id=chat_id,
                organization_id=1,
                content="ok",
                created_at=moment + timedelta(seconds=index * 600),
                is_from_me=False,
                chat=chat,
            )
        )
    for index in range(sent):
        messages.append(
            MessageRow(
                id=start_id + 100 + index,
                chat_id=chat_id,
                organization_id=1,
                content="ok",
                created_at=moment + timedelta(seconds=60 + index * 600),
                is_from_me=True,
                chat=chat,
            )
        )
    return messages


class TestProductivityScorer:
    def test_two_agent_scenario(self):
        # Agent A: 10 sent + 5 received over 3 conversations, 2 of them finished
        messages = (
            conversation_messages(1, "finished", received=2, sent=4, start_id=1)
            + conversation_messages(2, "closed", received=2, sent=3, start_id=1000)
            + conversation_messages(3, "active", received=1, sent=3, start_id=2000)
        )
        conversations = aggregate_conversations(messages)

        users = ProductivityScorer().score_agents([AGENT_A, AGENT_B], conversations, {})
        a, b = users

        assert a.sent_messages == 10
        assert a.received_messages == 5
        assert a.total_conversations == 3
        assert a.finished_conversations == 2
        assert a.resolution_rate == 66.67
        assert a.avg_response_time_seconds == 60
        # 66.67*0.4 + 50*0.3 + 99*0.2 + 30*0.1
        assert a.productivity_score == 64

        assert b.productivity_score is None
        assert b.total_messages == 0
        assert organization_productivity(users) == a.productivity_score

    def test_analytics_resolution_counts_as_resolved(self):
        conversations = aggregate_conversations(
            conversation_messages(5, "active", received=1, sent=1, start_id=1)
        )
        analytics = group_analytics(
            [ChatAnalyticsRow(chat_id=5, resolution_status="resolved", customer_satisfaction=5)]
        )

        metrics = ProductivityScorer().score_agent(AGENT_A, conversations, analytics)

        assert metrics.resolution_rate == 100
        assert metrics.customer_satisfaction == 100

    def test_first_analytics_record_decides_resolution_and_rating(self):
        conversations = aggregate_conversations(
            conversation_messages(6, "active", received=1, sent=1, start_id=1)
        )
        analytics = group_analytics(
            [
                ChatAnalyticsRow(chat_id=6, resolution_status="resolved", customer_satisfaction=5),
                ChatAnalyticsRow(chat_id=6, resolution_status="open", customer_satisfaction=1),
            ]
        )

        metrics = ProductivityScorer().score_agent(AGENT_A, conversations, analytics)

        assert metrics.resolution_rate == 100
        assert metrics.customer_satisfaction == 100

    def test_score_is_clamped(self):
        perfect = ScoreInputs(
            resolution_rate=100, satisfaction=100, avg_response_seconds=0, total_conversations=50
        )
        empty = ScoreInputs(
            resolution_rate=0, satisfaction=0, avg_response_seconds=None, total_conversations=0
        )

        assert perfect.score() == 100
        assert empty.score() == 0

    def test_slow_responses_floor_at_zero(self):
        inputs = ScoreInputs(
            resolution_rate=0, satisfaction=0, avg_response_seconds=7200, total_conversations=1
        )

        assert inputs.response_time_score == 0
        assert inputs.activity_score == 10

    def test_nobody_scored(self):
        users = ProductivityScorer().score_agents([AGENT_A, AGENT_B], [], {})

        assert organization_productivity(users) == 0
        assert all(not user.is_scored for user in users)
