"""Pydantic schemas for conversation analytics endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class PeriodInfo(BaseModel):
    start: str
    end: str
    granularity: str
    days: int


class ScopeInfo(BaseModel):
    role: str
    is_agent: bool


# --- Dashboard ---

class GlobalStats(BaseModel):
    total_messages: int = 0
    sent_messages: int = 0
    received_messages: int = 0
    total_conversations: int = 0
    active_conversations: int = 0
    finished_conversations: int = 0
    avg_response_time: int = 0  # seconds
    productivity: int = 0
    total_users: int = 0
    active_users: int = 0
    total_teams: int = 0
    is_complete: bool = True  # False when sent/received were extrapolated


class AgentMetricsResponse(BaseModel):
    id: int
    name: str
    email: str | None = None
    department: str | None = None
    is_online: bool = False
    role: str | None = None
    sent_messages: int = 0
    received_messages: int = 0
    total_messages: int = 0
    avg_response_time_seconds: float | None = None
    best_response_time_seconds: float | None = None
    resolution_rate: float = 0.0
    customer_satisfaction: float | None = None
    productivity_score: int | None = None  # null for agents without activity
    total_conversations: int = 0
    active_conversations: int = 0
    finished_conversations: int = 0


class ProductivityPeriod(BaseModel):
    period_label: str
    messages: int = 0


class ProductivitySummary(BaseModel):
    average_productivity: int = 0
    scored_agents: int = 0
    average_messages_per_day: float = 0.0
    max_messages: int = 0
    periods: list[ProductivityPeriod] = []


class TrendPointResponse(BaseModel):
    period_label: str
    messages: int = 0
    sent_messages: int = 0
    received_messages: int = 0
    active_users: int = 0
    avg_response_time: int = 0


class HeatmapCellResponse(BaseModel):
    day_of_week: int  # 0=Sunday, 6=Saturday
    hour: int  # 0-23
    value: int = 0


class DashboardResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    global_stats: GlobalStats = Field(default_factory=GlobalStats, alias="global")
    users: list[AgentMetricsResponse] = []
    productivity: ProductivitySummary = ProductivitySummary()
    trends: list[TrendPointResponse] = []
    heatmap: list[HeatmapCellResponse] = []
    period: PeriodInfo
    scope: ScopeInfo


class HeatmapResponse(BaseModel):
    heatmap: list[HeatmapCellResponse] = []
    timezone: str = "UTC"
    period: PeriodInfo
    scope: ScopeInfo


class TrendsResponse(BaseModel):
    trends: list[TrendPointResponse] = []
    period: PeriodInfo
    scope: ScopeInfo


# --- Agents ---

class AgentTotals(BaseModel):
    total_agents: int = 0
    online_agents: int = 0
    offline_agents: int = 0
    average_messages_per_agent: float = 0.0
    average_messages_per_conversation: float = 0.0
    average_productivity: int = 0


class AgentMetricsListResponse(BaseModel):
    agents: list[AgentMetricsResponse] = []
    totals: AgentTotals = AgentTotals()
    period: PeriodInfo
    scope: ScopeInfo


# --- Contacts ---

class ContactInfo(BaseModel):
    chat_id: int
    contact_name: str
    contact_phone: str = ""
    assigned_agent_id: int | None = None
    platform: str
    status: str
    department: str | None = None
    priority: str
    first_message_at: datetime | None = None
    last_message_at: datetime | None = None
    total_messages: int = 0
    messages_sent: int = 0
    messages_received: int = 0


class DailyContactBreakdown(BaseModel):
    date: str
    unique_contacts: int = 0
    active_contacts: int = 0
    reactive_contacts: int = 0
    total_messages: int = 0
    messages_sent: int = 0
    messages_received: int = 0


class ContactSummary(BaseModel):
    total_unique_contacts: int = 0
    total_active_contacts: int = 0
    total_reactive_contacts: int = 0
    total_messages: int = 0
    total_messages_sent: int = 0
    total_messages_received: int = 0
    average_messages_per_contact: int = 0


class ContactFilters(BaseModel):
    organization_id: int
    selected_user: int | None = None


class ContactReportResponse(BaseModel):
    unique_contacts: list[ContactInfo] = []
    active_contacts: list[ContactInfo] = []
    reactive_contacts: list[ContactInfo] = []
    daily_breakdown: list[DailyContactBreakdown] = []
    summary: ContactSummary = ContactSummary()
    period: PeriodInfo
    filters: ContactFilters
    is_complete: bool = True
    scope: ScopeInfo


# --- Conversations ---

class SentimentCounts(BaseModel):
    positive: int = 0
    negative: int = 0
    neutral: int = 0


class ConversationReportRow(BaseModel):
    chat_id: int
    name: str
    platform: str
    status: str
    priority: str
    department: str | None = None
    assigned_agent_id: int | None = None
    agent_name: str
    created_at: datetime
    last_message_at: datetime
    duration_seconds: int = 0
    total_messages: int = 0
    sent_messages: int = 0
    received_messages: int = 0
    sentiment: SentimentCounts = SentimentCounts()


class ConversationFiltersInfo(BaseModel):
    channels: list[str] | None = None
    agent_ids: list[int] | None = None
    statuses: list[str] | None = None
    departments: list[str] | None = None
    priorities: list[str] | None = None
    keywords: list[str] = []


class ConversationReportResponse(BaseModel):
    conversations: list[ConversationReportRow] = []
    total: int = 0
    filters: ConversationFiltersInfo = ConversationFiltersInfo()
    is_complete: bool = True
    period: PeriodInfo
    scope: ScopeInfo
