"""Domain services."""

from chatpulse.domain.services.metrics_assembler import ConversationAnalyticsService
from chatpulse.domain.services.productivity_scorer import ProductivityScorer
from chatpulse.domain.services.row_source import RowSource
from chatpulse.domain.services.sentiment import SentimentEstimator
from chatpulse.domain.services.visibility import Role, RoleResolver, VisibilityScope

__all__ = [
    "ConversationAnalyticsService",
    "ProductivityScorer",
    "Role",
    "RoleResolver",
    "RowSource",
    "SentimentEstimator",
    "VisibilityScope",
]
