"""Per-agent productivity scoring.

An agent owns the conversations assigned to them; their sent and received
counts are the agent and customer messages inside those conversations.

    resolution_rate     = resolved / total_conversations * 100
    response_time_score = max(0, 100 - avg_response_seconds / 60)
    activity_score      = min(100, total_conversations * 10)
    productivity_score  = resolution_rate * 0.4 + satisfaction * 0.3
                          + response_time_score * 0.2 + activity_score * 0.1
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from chatpulse.domain.models.analytics import AgentMetrics, AgentRow, ChatAnalyticsRow, ConversationRecord
from chatpulse.domain.services.response_time import response_time_stats
from chatpulse.domain.services.sentiment import SentimentEstimator
from chatpulse.utils.numbers import clamp, round_half_up, round_int

RESOLUTION_WEIGHT = 0.4
SATISFACTION_WEIGHT = 0.3
RESPONSE_TIME_WEIGHT = 0.2
ACTIVITY_WEIGHT = 0.1

# Each conversation adds this many activity points, capped at 100
ACTIVITY_POINTS_PER_CONVERSATION = 10
RESOLVED_ANALYTICS_STATUS = "resolved"


@dataclass(frozen=True)
class ScoreInputs:
    resolution_rate: float
    satisfaction: float
    avg_response_seconds: float | None
    total_conversations: int

    @property
    def response_time_score(self) -> float:
        if self.avg_response_seconds is None:
            return 0.0
        return max(0.0, 100 - self.avg_response_seconds / 60)

    @property
    def activity_score(self) -> float:
        return float(min(100, self.total_conversations * ACTIVITY_POINTS_PER_CONVERSATION))

    def score(self) -> int:
        raw = (
            self.resolution_rate * RESOLUTION_WEIGHT
            + self.satisfaction * SATISFACTION_WEIGHT
            + self.response_time_score * RESPONSE_TIME_WEIGHT
            + self.activity_score * ACTIVITY_WEIGHT
        )
        return int(clamp(round_half_up(raw)))


def is_resolved(conversation: ConversationRecord, analytics: ChatAnalyticsRow | None) -> bool:
    if conversation.is_finished:
        return True
    return analytics is not None and analytics.resolution_status == RESOLVED_ANALYTICS_STATUS


class ProductivityScorer:
    """Compute AgentMetrics for each agent from their assigned conversations."""

    def __init__(self, sentiment: SentimentEstimator | None = None):
        self.sentiment = sentiment or SentimentEstimator()

    def score_agent(
        self,
        agent: AgentRow,
        conversations: Iterable[ConversationRecord],
        analytics: Mapping[int, list[ChatAnalyticsRow]],
    ) -> AgentMetrics:
        owned = [c for c in conversations if c.assigned_agent_id == agent.id]
        sent = sum(c.sent_messages for c in owned)
        received = sum(c.received_messages for c in owned)
        active = sum(1 for c in owned if c.is_active)
        finished = sum(1 for c in owned if c.is_finished)

        metrics = AgentMetrics(
            id=agent.id,
            name=agent.display_name,
            email=agent.email,
            department=agent.department,
            is_online=agent.is_online,
            role=agent.role_name,
            sent_messages=sent,
            received_messages=received,
            total_conversations=len(owned),
            active_conversations=active,
            finished_conversations=finished,
        )

        # Zero-activity agents stay listed but unscored
        if not owned and sent == 0:
            return metrics

        resolved = 0
        ratings: list[float | None] = []
        for conversation in owned:
            # The first analytics record of a chat is authoritative
            records = analytics.get(conversation.chat_id, [])
            record = records[0] if records else None
            if is_resolved(conversation, record):
                resolved += 1
            if record is not None:
                ratings.append(record.customer_satisfaction)

        resolution_rate = resolved / len(owned) * 100 if owned else 0.0
        satisfaction = self.sentiment.estimate_satisfaction(
            (message for c in owned for message in c.messages), ratings
        )
        stats = response_time_stats(owned)

        inputs = ScoreInputs(
            resolution_rate=resolution_rate,
            satisfaction=satisfaction,
            avg_response_seconds=stats.average,
            total_conversations=len(owned),
        )
        metrics.resolution_rate = round_half_up(resolution_rate, 2)
        metrics.customer_satisfaction = round_half_up(satisfaction, 2)
        metrics.avg_response_time_seconds = (
            round_half_up(stats.average, 2) if stats.average is not None else None
        )
        metrics.best_response_time_seconds = stats.best
        metrics.productivity_score = inputs.score()
        return metrics

    def score_agents(
        self,
        agents: Iterable[AgentRow],
        conversations: list[ConversationRecord],
        analytics: Mapping[int, list[ChatAnalyticsRow]],
    ) -> list[AgentMetrics]:
        return [self.score_agent(agent, conversations, analytics) for agent in agents]


def organization_productivity(metrics: Iterable[AgentMetrics]) -> int:
    """Half-up rounded mean of scored agents only; 0 when nobody is scored."""
    scores = [m.productivity_score for m in metrics if m.is_scored]
    if not scores:
        return 0
    return round_int(sum(scores) / len(scores))


def group_analytics(rows: Iterable[ChatAnalyticsRow]) -> dict[int, list[ChatAnalyticsRow]]:
    grouped: dict[int, list[ChatAnalyticsRow]] = {}
    for row in rows:
        grouped.setdefault(row.chat_id, []).append(row)
    return grouped
