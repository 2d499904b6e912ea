"""Conversation analytics API endpoints."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from chatpulse.api.deps import get_analytics_service, get_current_profile, require_organization_context
from chatpulse.api.schemas.analytics import (
    AgentMetricsListResponse,
    ContactReportResponse,
    ConversationReportResponse,
    DashboardResponse,
    HeatmapResponse,
    TrendsResponse,
)
from chatpulse.domain.errors import AnalyticsInputError
from chatpulse.domain.services.metrics_assembler import ConversationAnalyticsService
from chatpulse.persistence.models.profile import Profile

logger = logging.getLogger(__name__)

router = APIRouter()


def _bad_request(error: AnalyticsInputError) -> HTTPException:
    logger.info(f"Rejected analytics request: {error}")
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    granularity: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
) -> DashboardResponse:
    """Get the full analytics dashboard for the caller's visible data."""
    try:
        payload = await service.build_dashboard(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            granularity=granularity,
            selected_user=selected_user,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return DashboardResponse.model_validate(payload)


@router.get("/agents", response_model=AgentMetricsListResponse)
async def get_agent_metrics(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
    include_placeholders: Annotated[bool, Query()] = False,
) -> AgentMetricsListResponse:
    """Get per-agent productivity metrics."""
    try:
        payload = await service.build_agent_metrics(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            include_placeholders=include_placeholders,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return AgentMetricsListResponse.model_validate(payload)


@router.get("/heatmap", response_model=HeatmapResponse)
async def get_heatmap(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
) -> HeatmapResponse:
    """Get message volume by day of week and hour in the organization's timezone."""
    try:
        payload = await service.build_heatmap(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return HeatmapResponse.model_validate(payload)


@router.get("/trends", response_model=TrendsResponse)
async def get_trends(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    granularity: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
) -> TrendsResponse:
    """Get the message trend series."""
    try:
        payload = await service.build_trends(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            granularity=granularity,
            selected_user=selected_user,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return TrendsResponse.model_validate(payload)


@router.get("/contacts", response_model=ContactReportResponse)
async def get_contact_report(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
) -> ContactReportResponse:
    """Get the contact productivity report (blacklisted numbers excluded)."""
    try:
        payload = await service.build_contact_report(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return ContactReportResponse.model_validate(payload)


@router.get("/conversations", response_model=ConversationReportResponse)
async def get_conversation_report(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
    organization_id: Annotated[int, Depends(require_organization_context)],
    service: Annotated[ConversationAnalyticsService, Depends(get_analytics_service)],
    date_start: Annotated[str | None, Query()] = None,
    date_end: Annotated[str | None, Query()] = None,
    selected_period: Annotated[str | None, Query()] = None,
    selected_user: Annotated[str | None, Query()] = None,
    channels: Annotated[str | None, Query(description="Comma-separated platforms")] = None,
    agents: Annotated[str | None, Query(description="Comma-separated agent profile IDs")] = None,
    statuses: Annotated[str | None, Query(description="Comma-separated statuses")] = None,
    departments: Annotated[str | None, Query(description="Comma-separated departments")] = None,
    priority: Annotated[str | None, Query()] = None,
    keywords: Annotated[str | None, Query(description="Comma-separated keywords")] = None,
) -> ConversationReportResponse:
    """List the caller's visible conversations (blacklisted numbers excluded)."""
    try:
        payload = await service.build_conversation_report(
            organization_id,
            current_profile.id,
            date_start=date_start,
            date_end=date_end,
            selected_period=selected_period,
            selected_user=selected_user,
            channels=channels,
            agents=agents,
            statuses=statuses,
            departments=departments,
            priority=priority,
            keywords=keywords,
        )
    except AnalyticsInputError as e:
        raise _bad_request(e)
    return ConversationReportResponse.model_validate(payload)
