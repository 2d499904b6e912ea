"""API schemas package."""

from chatpulse.api.schemas.analytics import (
    AgentMetricsListResponse,
    ContactReportResponse,
    ConversationReportResponse,
    DashboardResponse,
    HeatmapResponse,
    TrendsResponse,
)

__all__ = [
    "AgentMetricsListResponse",
    "ContactReportResponse",
    "ConversationReportResponse",
    "DashboardResponse",
    "HeatmapResponse",
    "TrendsResponse",
]
