"""FastAPI dependencies for auth and organization resolution."""

import logging
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from chatpulse.core.auth import InvalidTokenError, profile_id_from_token
from chatpulse.core.tenant_context import set_organization_context
from chatpulse.domain.services.metrics_assembler import ConversationAnalyticsService
from chatpulse.persistence.database import Database, get_database, get_db
from chatpulse.persistence.models.profile import Profile
from chatpulse.persistence.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)

security = HTTPBearer()


async def get_current_profile(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Profile:
    """Get the authenticated profile from the JWT token.

    Args:
        credentials: HTTP bearer credentials
        db: Database session

    Returns:
        Current profile

    Raises:
        HTTPException: If authentication fails
    """
    try:
        profile_id = profile_id_from_token(credentials.credentials)
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authentication credentials",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    profile = await ProfileRepository(db).get_with_role(None, profile_id)
    if profile is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Profile not found",
        )

    return profile


async def require_organization_context(
    current_profile: Annotated[Profile, Depends(get_current_profile)],
) -> int:
    """Require the caller to belong to an organization.

    Returns:
        Organization ID (guaranteed non-None)

    Raises:
        HTTPException: If the profile has no organization
    """
    if current_profile.organization_id is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Profile has no organization",
        )
    set_organization_context(current_profile.organization_id)
    return current_profile.organization_id


def get_analytics_service(
    database: Annotated[Database, Depends(get_database)],
) -> ConversationAnalyticsService:
    """Build the analytics service on the application's database."""
    return ConversationAnalyticsService(database)
